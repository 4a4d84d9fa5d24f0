"""
This module implements the Select Item step of the QA workflow.
It binds the workflow to a work item in the issue tracker. Only the reference is validated;
the item itself is fetched when test cases are generated.
"""
from typing import Any, Dict

from models.workflow import Stage
from pipeline.services import StepServices
from pipeline.steps.validation import require_ref


def run(stage_data: Dict[str, Any], payload: Any, services: StepServices) -> Dict[str, Any]:
    """
    Args:
        stage_data (Dict[str, Any]): Output of earlier stages (unused here).
        payload (Any): ``{"ref": "PROJ-123", ...}``; extra fields such as ``summary`` and
                       ``description`` are kept and spare a tracker lookup later.
        services (StepServices): Collaborators (unused here).

    Returns:
        Dict[str, Any]: The payload, unchanged.
    """
    return require_ref(payload, Stage.SELECT_ITEM.value)
