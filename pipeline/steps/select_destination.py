"""
This module implements the Select Destination step of the QA workflow.
It binds the workflow to a section of the test-case repository, where example cases are read
from and where reviewed cases are written to. Optional ``projectId`` and ``suiteId`` fields
are carried along for the repository lookups.
"""
from typing import Any, Dict

from models.workflow import Stage
from pipeline.services import StepServices
from pipeline.steps.validation import require_ref


def run(stage_data: Dict[str, Any], payload: Any, services: StepServices) -> Dict[str, Any]:
    return require_ref(payload, Stage.SELECT_DESTINATION.value)
