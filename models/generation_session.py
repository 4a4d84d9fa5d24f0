"""
Dataclasses for the two-phase automation-code generation protocol: the source
artifacts offered for reuse, the generated code, and the session tying them together.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from models.workflow import utcnow


class SessionStatus(str, Enum):
    ANALYZING = "analyzing"
    AWAITING_INPUT = "awaiting-input"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


TERMINAL_STATUSES = (SessionStatus.COMPLETED.value, SessionStatus.ABANDONED.value)


@dataclass
class Artifact:
    """A named source snippet supplied as a reuse candidate (page object, locators file, test...)."""
    name: str
    content: str
    category: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "content": self.content, "category": self.category}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Artifact":
        return cls(name=data["name"], content=data.get("content", ""), category=data.get("category"))


@dataclass
class GeneratedCode:
    file_name: str
    code: str
    placeholders: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"fileName": self.file_name, "code": self.code, "placeholders": list(self.placeholders)}


@dataclass
class GenerationSession:
    """
    One in-flight automation-code generation attempt.

    Attributes:
        session_id (str): Opaque identifier.
        input_description (str): The test scenario being converted to automation code.
        existing_artifacts (List[Artifact]): Ordered reuse candidates.
        missing_patterns (Dict[str, str]): Pattern category -> what is absent. Empty when complete generation is possible.
        available_patterns (Dict[str, str]): Pattern category -> evidence found in the artifacts.
        status (str): One of the `SessionStatus` values.
        result (Optional[GeneratedCode]): Attached once the session completes.
    """
    session_id: str
    input_description: str
    existing_artifacts: List[Artifact] = field(default_factory=list)
    missing_patterns: Dict[str, str] = field(default_factory=dict)
    available_patterns: Dict[str, str] = field(default_factory=dict)
    status: str = SessionStatus.ANALYZING.value
    result: Optional[GeneratedCode] = None
    created_at: str = field(default_factory=utcnow)
    updated_at: str = field(default_factory=utcnow)

    @property
    def can_generate_complete(self) -> bool:
        return not self.missing_patterns

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "inputDescription": self.input_description,
            "existingArtifacts": [artifact.to_dict() for artifact in self.existing_artifacts],
            "missingPatterns": dict(self.missing_patterns),
            "availablePatterns": dict(self.available_patterns),
            "canGenerateComplete": self.can_generate_complete,
            "status": self.status,
            "result": self.result.to_dict() if self.result else None,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
