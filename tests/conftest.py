"""
Shared fakes and fixtures. The fakes implement the collaborator protocols in memory so
workflows can run end to end without Jira, TestRail or an LLM provider.
"""
import json

import pytest

from automation.coordinator import GenerationCoordinator
from llm.llm_client import AbstractLLMClient
from pipeline.orchestrator import WorkflowOrchestrator
from pipeline.services import StepServices
from storage.session_store import InMemorySessionStore
from storage.workflow_store import InMemoryWorkflowStore
from utils.exceptions import TestRepositoryError

GENERATED_CASES = {
    "testcases": [
        {
            "test_id": "TC-001",
            "title": "Login with valid credentials",
            "type": "positive",
            "priority": "High",
            "preconditions": "User account exists",
            "steps": [
                {"action": "Open the login page", "expected": "Login form is displayed"},
                {"action": "Enter username and password", "expected": "Fields are filled"},
            ],
            "expected_result": "User is logged in",
        },
        {
            "test_id": "TC-002",
            "title": "Login with wrong password",
            "type": "negative",
            "priority": "Medium",
            "steps": [{"action": "Submit a wrong password", "expected": "Error message is shown"}],
            "expected_result": "User stays on the login page",
        },
        {
            "title": "Login with empty form",
            "steps": ["Submit the empty form"],
        },
    ]
}


class FakeLLMClient(AbstractLLMClient):
    name = "fake"

    def __init__(self, reply=None):
        self.reply = reply if reply is not None else "```json\n" + json.dumps(GENERATED_CASES) + "\n```"
        self.prompts = []

    def generate_content(self, contents, generation_config):
        self.prompts.append(contents[0])
        return self.reply


class FakeTracker:
    def __init__(self):
        self.requested = []

    def get_issue(self, key):
        self.requested.append(key)
        return {
            "ref": key,
            "summary": "User can log in",
            "description": "As a user I want to log in with my credentials.",
            "issueType": "Story",
            "priority": "High",
            "acceptanceCriteria": "Valid credentials open the dashboard",
        }


class FakeCaseRepository:
    def __init__(self, examples=None, reject_titles=()):
        self.examples = examples or []
        self.reject_titles = set(reject_titles)
        self.added = []

    def get_cases(self, section_id, project_id=None, suite_id=None, limit=10):
        return self.examples[:limit]

    def add_case(self, section_id, case, refs=None):
        if case.get("title") in self.reject_titles:
            raise TestRepositoryError(f"Section {section_id} rejected '{case.get('title')}'")
        case_id = 100 + len(self.added)
        self.added.append((section_id, case, refs))
        return {"id": case_id, "url": f"https://testrail.example.com/index.php?/cases/view/{case_id}"}


@pytest.fixture
def llm_client():
    return FakeLLMClient()


@pytest.fixture
def tracker():
    return FakeTracker()


@pytest.fixture
def case_repository():
    return FakeCaseRepository()


@pytest.fixture
def coordinator():
    return GenerationCoordinator(InMemorySessionStore())


@pytest.fixture
def services(llm_client, tracker, case_repository, coordinator):
    return StepServices(
        llm_client=llm_client,
        tracker=tracker,
        test_repository=case_repository,
        coordinator=coordinator,
    )


@pytest.fixture
def store():
    return InMemoryWorkflowStore()


@pytest.fixture
def orchestrator(store, services):
    return WorkflowOrchestrator(store, services)
