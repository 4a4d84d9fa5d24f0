"""
This module handles the persistence of workflow instances.

Two backends implement the same `WorkflowStore` protocol: an in-memory map for tests and
single-process deployments, and a Minio-backed store that keeps every workflow as a JSON
document so a workflow survives a service restart.
"""
import copy
import logging
from typing import Dict, List, Optional, Protocol

from config import config
from models.workflow import Workflow
from storage import minio_client

WORKFLOW_PREFIX = "workflows/"


class WorkflowStore(Protocol):
    """Key-value repository for workflow instances."""

    def get(self, workflow_id: str) -> Optional[Workflow]:
        """Return the stored workflow, or None if absent."""

    def put(self, workflow: Workflow) -> None:
        """Insert or overwrite a workflow."""

    def delete(self, workflow_id: str) -> None:
        """Remove a workflow. Removing an absent id is a no-op."""

    def list_by_owner(self, owner_id: str) -> List[Workflow]:
        """Return the owner's workflows in insertion order."""


class InMemoryWorkflowStore:
    """
    Store workflow state in local memory.

    Workflows are copied on the way in and out, so callers always hold snapshots
    and concurrent writers to one key resolve as last write wins. Data is not
    persisted across process restarts.
    """

    def __init__(self) -> None:
        self._workflows: Dict[str, Workflow] = {}

    def get(self, workflow_id: str) -> Optional[Workflow]:
        workflow = self._workflows.get(workflow_id)
        return copy.deepcopy(workflow) if workflow else None

    def put(self, workflow: Workflow) -> None:
        self._workflows[workflow.id] = copy.deepcopy(workflow)

    def delete(self, workflow_id: str) -> None:
        self._workflows.pop(workflow_id, None)

    def list_by_owner(self, owner_id: str) -> List[Workflow]:
        return [copy.deepcopy(wf) for wf in self._workflows.values() if wf.owner_id == owner_id]


class MinioWorkflowStore:
    """
    Store each workflow as ``workflows/<id>.json`` in a Minio bucket.

    Listing is ordered by ``created_at``, which matches insertion order for
    workflows issued by this service.
    """

    def __init__(self, bucket: Optional[str] = None) -> None:
        self.bucket = bucket or config.minio_bucket

    @staticmethod
    def _path(workflow_id: str) -> str:
        return f"{WORKFLOW_PREFIX}{workflow_id}.json"

    def get(self, workflow_id: str) -> Optional[Workflow]:
        path = self._path(workflow_id)
        if not minio_client.object_exists(self.bucket, path):
            return None
        return Workflow.from_dict(minio_client.download_json(self.bucket, path))

    def put(self, workflow: Workflow) -> None:
        minio_client.upload_json(self.bucket, self._path(workflow.id), workflow.to_dict())

    def delete(self, workflow_id: str) -> None:
        minio_client.remove(self.bucket, self._path(workflow_id))

    def list_by_owner(self, owner_id: str) -> List[Workflow]:
        workflows = []
        for path in minio_client.list_paths(self.bucket, WORKFLOW_PREFIX):
            workflow = Workflow.from_dict(minio_client.download_json(self.bucket, path))
            if workflow.owner_id == owner_id:
                workflows.append(workflow)
        workflows.sort(key=lambda wf: wf.created_at)
        logging.debug(f"Loaded {len(workflows)} workflows for owner {owner_id} from Minio")
        return workflows
