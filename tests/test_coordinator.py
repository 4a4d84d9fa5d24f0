"""
Unit tests for the two-phase automation-code generation protocol in
`automation.coordinator.GenerationCoordinator`.
"""
from datetime import datetime, timedelta, timezone

import pytest

from automation.code_renderer import PLACEHOLDER_MARKER
from models.generation_session import Artifact
from utils.exceptions import SessionNotFoundError, StillIncompleteError

SCENARIO = """Login with valid credentials
1. Open the login page
2. Enter username
Expected: user is logged in"""

LOGIN_PAGE = '''from selenium.webdriver.common.by import By


class LoginPage:
    URL = "https://example.com/login"

    def __init__(self, driver):
        self.driver = driver

    def open(self):
        self.driver.get(self.URL)

    def enter_username(self, name="standard_user"):
        self.driver.find_element(By.ID, "user-name").send_keys(name)

    def is_logged_in(self):
        return self.driver.find_element(By.ID, "inventory").is_displayed()
'''

# Navigation and an assertion, but no page object and no locators
SMOKE_TEST = '''def test_home(driver):
    driver.get("https://example.com")
    assert driver.title
'''


def test_analyze_with_all_patterns_completes_immediately(coordinator):
    session = coordinator.analyze(SCENARIO, [Artifact("pages/login_page.py", LOGIN_PAGE)])

    assert session.status == "completed"
    assert session.missing_patterns == {}
    assert session.can_generate_complete
    assert session.result is not None
    assert session.result.code.strip()
    assert session.result.placeholders == []
    assert "from login_page import LoginPage" in session.result.code
    assert "page.open()" in session.result.code
    assert "page.enter_username()" in session.result.code
    assert "assert page.is_logged_in()" in session.result.code
    assert PLACEHOLDER_MARKER not in session.result.code


def test_analyze_without_artifacts_awaits_input(coordinator):
    session = coordinator.analyze(SCENARIO)

    assert session.status == "awaiting-input"
    assert set(session.missing_patterns) == {"page_object", "locators", "navigation", "assertions"}
    assert session.result is None
    assert coordinator.get(session.session_id).status == "awaiting-input"


def test_complete_with_skip_missing_marks_every_missing_category(coordinator):
    session = coordinator.analyze(SCENARIO, [Artifact("tests/test_home.py", SMOKE_TEST)])
    assert set(session.missing_patterns) == {"page_object", "locators"}

    code = coordinator.complete(session.session_id, skip_missing=True)

    assert f"# {PLACEHOLDER_MARKER} [page_object]" in code.code
    assert f"# {PLACEHOLDER_MARKER} [locators]" in code.code
    assert "pytest.fail(" in code.code
    assert sorted(code.placeholders) == ["locators", "page_object"]
    assert coordinator.get(session.session_id).status == "completed"


def test_complete_while_incomplete_raises_and_keeps_session_open(coordinator):
    session = coordinator.analyze(SCENARIO)

    with pytest.raises(StillIncompleteError) as exc_info:
        coordinator.complete(session.session_id)

    assert set(exc_info.value.missing_patterns) == set(session.missing_patterns)
    assert exc_info.value.phase == "complete"
    assert coordinator.get(session.session_id).status == "awaiting-input"


def test_complete_with_supplied_artifacts_generates_full_code(coordinator):
    session = coordinator.analyze(SCENARIO)

    code = coordinator.complete(session.session_id, [Artifact("login_page.py", LOGIN_PAGE)])

    assert code.placeholders == []
    assert PLACEHOLDER_MARKER not in code.code
    assert code.file_name == "test_login_with_valid_credentials.py"


def test_supplied_artifacts_merge_before_placeholders(coordinator):
    session = coordinator.analyze(SCENARIO)

    code = coordinator.complete(session.session_id, [Artifact("test_home.py", SMOKE_TEST)], skip_missing=True)

    assert sorted(code.placeholders) == ["locators", "page_object"]
    assert "[navigation]" not in code.code


@pytest.mark.parametrize("finish", ["complete", "abandon"])
def test_complete_on_terminal_session_raises_not_found(coordinator, finish):
    session = coordinator.analyze(SCENARIO)
    if finish == "complete":
        coordinator.complete(session.session_id, skip_missing=True)
    else:
        coordinator.abandon(session.session_id)

    with pytest.raises(SessionNotFoundError) as exc_info:
        coordinator.complete(session.session_id, skip_missing=True)
    assert exc_info.value.status in ("completed", "abandoned")


def test_complete_on_unknown_session_raises_not_found(coordinator):
    with pytest.raises(SessionNotFoundError):
        coordinator.complete("does-not-exist")


def test_update_appends_tagged_artifacts_and_refreshes_missing(coordinator):
    session = coordinator.analyze(SCENARIO)

    updated = coordinator.update(session.session_id, "locators", [Artifact("locators.properties", "# empty")])

    assert updated.status == "awaiting-input"
    assert updated.existing_artifacts[-1].category == "locators"
    assert "locators" not in updated.missing_patterns
    assert "page_object" in updated.missing_patterns


def test_abandon_moves_session_to_abandoned(coordinator):
    session = coordinator.analyze(SCENARIO)

    abandoned = coordinator.abandon(session.session_id)

    assert abandoned.status == "abandoned"
    with pytest.raises(SessionNotFoundError):
        coordinator.update(session.session_id, "locators", [])
    with pytest.raises(SessionNotFoundError):
        coordinator.abandon(session.session_id)


def test_get_unknown_session_raises_not_found(coordinator):
    with pytest.raises(SessionNotFoundError):
        coordinator.get("nope")


def test_evict_stale_drops_idle_sessions(coordinator):
    stale = coordinator.analyze(SCENARIO)
    session = coordinator.get(stale.session_id)
    session.updated_at = (datetime.now(timezone.utc) - timedelta(hours=2)).isoformat()
    coordinator.store.put(session)
    fresh = coordinator.analyze(SCENARIO)

    assert coordinator.evict_stale(3600) == [stale.session_id]
    with pytest.raises(SessionNotFoundError):
        coordinator.get(stale.session_id)
    assert coordinator.get(fresh.session_id).status == "awaiting-input"
