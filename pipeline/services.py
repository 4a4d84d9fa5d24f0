"""
The collaborators a step handler may call, bundled so the orchestrator can hand them
to every handler and tests can swap in fakes.
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol

from automation.coordinator import GenerationCoordinator
from llm.llm_client import AbstractLLMClient


class IssueTracker(Protocol):
    def get_issue(self, key: str) -> Dict[str, Any]:
        """Return the work item reduced to its test-relevant fields."""


class CaseRepository(Protocol):
    def get_cases(self, section_id: str, project_id: Optional[str] = None,
                  suite_id: Optional[str] = None, limit: int = 10) -> List[Dict[str, Any]]:
        """Return example cases from a section."""

    def add_case(self, section_id: str, case: Dict[str, Any], refs: Optional[str] = None) -> Dict[str, Any]:
        """Create a case and return ``{"id": ..., "url": ...}``."""


def _unchanged(text: str) -> str:
    return text


@dataclass
class StepServices:
    llm_client: Optional[AbstractLLMClient] = None
    tracker: Optional[IssueTracker] = None
    test_repository: Optional[CaseRepository] = None
    coordinator: Optional[GenerationCoordinator] = None
    # Applied to work-item text before it is put into a prompt
    sanitize: Callable[[str], str] = field(default=_unchanged)
