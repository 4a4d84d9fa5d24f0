"""
TestRail client: reads example cases from a destination section and writes reviewed cases back.
"""
import logging
from typing import Any, Dict, List, Optional

import requests
from requests.auth import HTTPBasicAuth

from utils.exceptions import TestRepositoryError

PRIORITY_IDS = {"critical": 1, "high": 2, "medium": 3, "low": 4}
DEFAULT_PRIORITY_ID = 3
MANUAL_TYPE_ID = 1


def format_steps(steps: Optional[list]) -> str:
    """Renders steps as numbered text, with the expected result under each structured step."""
    if not steps:
        return ""
    lines = []
    for index, step in enumerate(steps, start=1):
        if isinstance(step, dict):
            lines.append(f"{index}. {step.get('action', '')}\nExpected: {step.get('expected', '')}")
        else:
            lines.append(f"{index}. {step}")
    return "\n".join(lines)


def build_case_payload(case: Dict[str, Any], refs: Optional[str] = None) -> Dict[str, Any]:
    """Maps a reviewed case onto the TestRail ``add_case`` body."""
    priority = str(case.get("priority") or "").lower()
    return {
        "title": case.get("title") or "Untitled test case",
        "type_id": MANUAL_TYPE_ID,
        "priority_id": PRIORITY_IDS.get(priority, DEFAULT_PRIORITY_ID),
        "refs": refs,
        "custom_preconds": case.get("preconditions") or "",
        "custom_steps": format_steps(case.get("steps")),
        "custom_expected": case.get("expectedResult") or "",
    }


class TestRailClient:
    """HTTP client for the TestRail API v2."""
    __test__ = False

    def __init__(self, base_url: str, user: str, api_key: str, timeout: int = 30):
        """
        Args:
            base_url: TestRail instance URL (e.g., "https://company.testrail.io")
            user: User email for authentication
            api_key: API key (found in My Settings > API Keys)
            timeout: Request timeout in seconds
        """
        if not base_url:
            raise ValueError("Base URL is required")
        if not user or not api_key:
            raise ValueError("User and API key are required")
        self.base_url = base_url.rstrip("/")
        self.auth = HTTPBasicAuth(user, api_key)
        self.timeout = timeout

    def _request(self, method: str, endpoint: str, payload: Optional[dict] = None) -> Any:
        url = f"{self.base_url}/index.php?/api/v2/{endpoint}"
        try:
            response = requests.request(
                method,
                url,
                auth=self.auth,
                json=payload,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            return response.json()
        except requests.exceptions.RequestException as e:
            raise TestRepositoryError(f"TestRail {method} {endpoint} failed: {e}") from e
        except ValueError as e:
            raise TestRepositoryError(f"TestRail {method} {endpoint} returned invalid JSON: {e}") from e

    def get_cases(self, section_id: str, project_id: Optional[str] = None,
                  suite_id: Optional[str] = None, limit: int = 10) -> List[Dict[str, Any]]:
        """
        Returns up to ``limit`` cases from a section. TestRail scopes case listing by
        project, so without a project id there is nothing to fetch.
        """
        if not project_id:
            return []
        endpoint = f"get_cases/{project_id}&section_id={section_id}&limit={limit}"
        if suite_id:
            endpoint += f"&suite_id={suite_id}"
        result = self._request("GET", endpoint)
        # Newer TestRail versions paginate and wrap the list
        cases = result.get("cases", []) if isinstance(result, dict) else result
        return [
            {
                "title": case.get("title"),
                "priority": case.get("priority_id"),
                "preconditions": case.get("custom_preconds"),
                "steps": case.get("custom_steps"),
            }
            for case in cases[:limit]
        ]

    def add_case(self, section_id: str, case: Dict[str, Any], refs: Optional[str] = None) -> Dict[str, Any]:
        """
        Creates a case in a section.

        Returns:
            dict: ``{"id": <TestRail case id>, "url": <case view URL>}``

        Raises:
            TestRepositoryError: If TestRail rejects the case.
        """
        created = self._request("POST", f"add_case/{section_id}", build_case_payload(case, refs))
        case_id = created.get("id")
        logging.info(f"Created TestRail case C{case_id} in section {section_id}")
        return {"id": case_id, "url": self.case_url(case_id)}

    def case_url(self, case_id: Any) -> str:
        return f"{self.base_url}/index.php?/cases/view/{case_id}"
