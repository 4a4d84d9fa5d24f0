"""
Request bodies for the HTTP API. Field names follow the camelCase JSON of the wire format;
the Python attributes are snake_case.
"""
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from models.generation_session import Artifact


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class StartWorkflowRequest(CamelModel):
    owner_id: str = Field(alias="ownerId", min_length=1)


class StepRequest(CamelModel):
    step: str
    data: Any = None


class RecreateWorkflowRequest(CamelModel):
    owner_id: Optional[str] = Field(default=None, alias="ownerId")


class ArtifactIn(CamelModel):
    name: str
    content: str = ""
    category: Optional[str] = None

    def to_artifact(self) -> Artifact:
        return Artifact(name=self.name, content=self.content, category=self.category)


class AnalyzeRequest(CamelModel):
    input_description: str = Field(alias="inputDescription", min_length=1)
    existing_artifacts: List[ArtifactIn] = Field(default_factory=list, alias="existingArtifacts")


class CompleteRequest(CamelModel):
    session_id: str = Field(alias="sessionId")
    supplied_artifacts: Optional[List[ArtifactIn]] = Field(default=None, alias="suppliedArtifacts")
    skip_missing: bool = Field(default=False, alias="skipMissing")


class UpdateSessionRequest(CamelModel):
    session_id: str = Field(alias="sessionId")
    category: Optional[str] = None
    artifacts: List[ArtifactIn] = Field(default_factory=list)


class SessionRequest(CamelModel):
    session_id: str = Field(alias="sessionId")
