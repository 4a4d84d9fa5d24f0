"""
This module defines the `Workflow` dataclass, which represents one user's end-to-end run
through the fixed QA stage sequence, together with the `Stage` enumeration that orders it.
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

WORKFLOW_ID_PREFIX = "workflow"

# Position marker once the terminal stage has run. Not a step name.
COMPLETE = "complete"


class Stage(str, Enum):
    """The workflow stages, declared in their fixed execution order."""
    SELECT_ITEM = "select-item"
    SELECT_DESTINATION = "select-destination"
    GENERATE_CASES = "generate-cases"
    REVIEW_CASES = "review-cases"
    PERSIST_CASES = "persist-cases"
    GENERATE_AUTOMATION = "generate-automation"

    @classmethod
    def values(cls) -> list:
        return [stage.value for stage in cls]


STAGE_ORDER = Stage.values()
TERMINAL_STAGE = Stage.GENERATE_AUTOMATION.value


def utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_workflow_id(owner_id: str) -> str:
    """
    Builds a workflow identifier that embeds the owning user as its suffix,
    e.g. ``workflow_3f2a..._alice``.
    """
    return f"{WORKFLOW_ID_PREFIX}_{uuid.uuid4().hex}_{owner_id}"


def owner_from_workflow_id(workflow_id: str) -> Optional[str]:
    """Returns the owner embedded in a workflow identifier, or None if it has no usable suffix."""
    parts = workflow_id.split("_", 2)
    if len(parts) == 3 and parts[0] == WORKFLOW_ID_PREFIX and parts[2]:
        return parts[2]
    return None


@dataclass
class Workflow:
    """
    Represents one end-to-end QA workflow run.

    Attributes:
        id (str): Opaque identifier issued at start.
        owner_id (str): Identifier of the initiating user.
        stage (str): The next expected stage name, or ``complete`` once the terminal stage ran.
        stage_data (Dict[str, Any]): Output of each executed stage, keyed by stage name.
        created_at (str): ISO-8601 UTC creation timestamp.
        updated_at (str): ISO-8601 UTC timestamp of the last stage write.
    """
    id: str
    owner_id: str
    stage: str = Stage.SELECT_ITEM.value
    stage_data: Dict[str, Any] = field(default_factory=dict)
    created_at: str = field(default_factory=utcnow)
    updated_at: str = field(default_factory=utcnow)

    @property
    def is_complete(self) -> bool:
        # generate-automation is optional, so persisted cases close the workflow
        return bool(self.stage_data.get(Stage.PERSIST_CASES.value))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "ownerId": self.owner_id,
            "stage": self.stage,
            "stageData": self.stage_data,
            "isComplete": self.is_complete,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Workflow":
        return cls(
            id=data["id"],
            owner_id=data["ownerId"],
            stage=data.get("stage", Stage.SELECT_ITEM.value),
            stage_data=data.get("stageData") or {},
            created_at=data.get("createdAt") or utcnow(),
            updated_at=data.get("updatedAt") or utcnow(),
        )
