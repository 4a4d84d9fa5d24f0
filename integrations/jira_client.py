"""
Jira client used to pull the work item a workflow is bound to.

Only the fields relevant to test design are kept; people, time tracking, comments
and attachments never leave the tracker.
"""
import logging
import re
from typing import Any, Dict, Optional

import requests
from requests.auth import HTTPBasicAuth

from utils.exceptions import TrackerError

ACCEPTANCE_CRITERIA_FIELD = "customfield_10014"

# Jira wiki mentions ([~accountid:...]) and links to internal tooling
_MENTION_RE = re.compile(r"\[~[^\]]*\]")
_INTERNAL_LINK_RE = re.compile(r"https?://\S*(?:internal|jira|confluence)\S*", re.IGNORECASE)


def clean_description(value: Optional[str]) -> str:
    if not value:
        return ""
    value = _MENTION_RE.sub("[user]", value)
    value = _INTERNAL_LINK_RE.sub("[internal-link]", value)
    return value.strip()


def _names(items: Optional[list]) -> list:
    return [item.get("name") for item in items or [] if isinstance(item, dict) and item.get("name")]


class JiraClient:
    """HTTP client for the Jira REST API (v2, which returns plain-text descriptions)."""

    def __init__(self, base_url: str, email: str, api_token: str, timeout: int = 30):
        """
        Args:
            base_url: Jira instance URL (e.g., "https://company.atlassian.net")
            email: User email for authentication
            api_token: API token (Cloud) or password (Server)
            timeout: Request timeout in seconds
        """
        if not base_url:
            raise ValueError("Base URL is required")
        if not email or not api_token:
            raise ValueError("Email and API token are required")
        self.base_url = base_url.rstrip("/")
        self.auth = HTTPBasicAuth(email, api_token)
        self.timeout = timeout

    def get_issue(self, key: str) -> Dict[str, Any]:
        """
        Fetches a work item and reduces it to the fields used for test generation.

        Raises:
            TrackerError: If the request fails or the issue does not exist.
        """
        url = f"{self.base_url}/rest/api/2/issue/{key}"
        try:
            response = requests.get(
                url,
                auth=self.auth,
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            raise TrackerError(f"Failed to fetch Jira issue '{key}': {e}") from e
        except ValueError as e:
            raise TrackerError(f"Jira returned invalid JSON for issue '{key}': {e}") from e

        logging.info(f"Fetched Jira issue {key}")
        return self.filter_issue(data)

    @staticmethod
    def filter_issue(data: Dict[str, Any]) -> Dict[str, Any]:
        fields = data.get("fields") or {}
        return {
            "ref": data.get("key"),
            "summary": fields.get("summary") or "",
            "description": clean_description(fields.get("description")),
            "issueType": (fields.get("issuetype") or {}).get("name"),
            "priority": (fields.get("priority") or {}).get("name"),
            "status": (fields.get("status") or {}).get("name"),
            "labels": fields.get("labels") or [],
            "components": _names(fields.get("components")),
            "acceptanceCriteria": clean_description(fields.get(ACCEPTANCE_CRITERIA_FIELD)),
            "environment": fields.get("environment") or "",
        }
