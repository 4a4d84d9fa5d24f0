"""
This module drives QA workflows through their fixed stage sequence.

The orchestrator owns every read and write of workflow state: it validates that a submitted
step is known and in order, runs the stage handler against the data gathered so far, stores
the handler output and advances the stage pointer. Handlers themselves never touch the store.
"""
import logging
from typing import Any, List, Optional

from logs.logger import log_error
from models.workflow import COMPLETE, Workflow, new_workflow_id, utcnow
from pipeline.runner import get_handler, missing_prerequisites, next_stage, stage_index
from pipeline.services import StepServices
from storage.workflow_store import WorkflowStore
from utils.exceptions import NotFoundError, OutOfOrderError, StepFailedError, UnknownStepError


class WorkflowOrchestrator:
    """
    Creates, advances and recovers workflows held in a `WorkflowStore`.

    Args:
        store (WorkflowStore): Where workflows live between requests.
        services (Optional[StepServices]): Collaborators handed to every step handler.
    """

    def __init__(self, store: WorkflowStore, services: Optional[StepServices] = None):
        self.store = store
        self.services = services or StepServices()

    def start(self, owner_id: str) -> Workflow:
        """Creates a workflow for ``owner_id`` positioned at the first stage."""
        workflow = Workflow(id=new_workflow_id(owner_id), owner_id=owner_id)
        self.store.put(workflow)
        logging.info(f"Workflow {workflow.id} started for {owner_id}")
        return workflow

    def get(self, workflow_id: str) -> Workflow:
        workflow = self.store.get(workflow_id)
        if workflow is None:
            raise NotFoundError(workflow_id)
        return workflow

    def recreate(self, workflow_id: str, owner_id: str) -> Workflow:
        """
        Restores a workflow identifier lost from the store, e.g. after a restart.

        The recreated workflow starts over at the first stage with no stage data; whatever the
        lost workflow had reached is gone. If the identifier is still stored, the stored workflow
        is returned unchanged.

        Args:
            workflow_id (str): The identifier to restore.
            owner_id (str): Owner of the recreated workflow.

        Returns:
            Workflow: The existing or recreated workflow.
        """
        existing = self.store.get(workflow_id)
        if existing is not None:
            return existing
        workflow = Workflow(id=workflow_id, owner_id=owner_id)
        self.store.put(workflow)
        logging.warning(f"Workflow {workflow_id} recreated for {owner_id}; previous stage data is lost")
        return workflow

    def execute_step(self, workflow_id: str, step_name: str, payload: Any = None) -> Any:
        """
        Runs one stage of a workflow and stores its output.

        A stage may run when it is the workflow's current stage, or again after it has already run,
        as long as every stage it draws data from is stored. Running the current stage advances the
        workflow; re-running an earlier stage only overwrites that stage's output.

        Args:
            workflow_id (str): The workflow to advance.
            step_name (str): One of the stage names.
            payload (Any): Stage-specific input.

        Returns:
            Any: The stage handler's output, as stored under ``stage_data[step_name]``.

        Raises:
            NotFoundError: If the workflow does not exist.
            UnknownStepError: If ``step_name`` is not a stage.
            OutOfOrderError: If the stage is ahead of the workflow or its inputs are missing.
            StepFailedError: If the stage handler fails; the workflow is left unchanged.
        """
        # Checked before the lookup: an unknown step must never trigger workflow recovery
        handler = get_handler(step_name)
        if handler is None:
            raise UnknownStepError(step_name)
        workflow = self.get(workflow_id)

        if stage_index(step_name) > stage_index(workflow.stage):
            raise OutOfOrderError(step_name, workflow.stage)
        missing = missing_prerequisites(step_name, workflow.stage_data)
        if missing:
            raise OutOfOrderError(step_name, workflow.stage, missing)

        logging.info(f"Workflow {workflow_id}: running {step_name}")
        try:
            output = handler(workflow.stage_data, payload, self.services)
        except Exception as e:
            log_error(f"Workflow {workflow_id}: step {step_name} failed: {e}")
            raise StepFailedError(step_name, e) from e

        workflow.stage_data[step_name] = output
        if step_name == workflow.stage:
            workflow.stage = next_stage(step_name)
        workflow.updated_at = utcnow()
        self.store.put(workflow)
        if workflow.stage == COMPLETE:
            logging.info(f"Workflow {workflow_id} complete")
        return output

    def list_by_owner(self, owner_id: str) -> List[Workflow]:
        return self.store.list_by_owner(owner_id)

    def delete(self, workflow_id: str) -> None:
        """
        Raises:
            NotFoundError: If the workflow does not exist.
        """
        if self.store.get(workflow_id) is None:
            raise NotFoundError(workflow_id)
        self.store.delete(workflow_id)
        logging.info(f"Workflow {workflow_id} deleted")
