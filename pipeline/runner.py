"""
This module defines the QA workflow steps: the handler for every stage, the data each stage
needs from earlier ones, and the order they run in.
"""
from typing import Any, Callable, Dict, List, Optional, Tuple

from models.workflow import COMPLETE, STAGE_ORDER, Stage
from pipeline.services import StepServices
from pipeline.steps import (
    select_item,
    select_destination,
    generate_cases,
    review_cases,
    persist_cases,
    generate_automation,
)

StepHandler = Callable[[Dict[str, Any], Any, StepServices], Any]

# Define the sequence of workflow steps
# Each tuple contains the stage name and the function to execute for that stage.
PIPELINE_STEPS: List[Tuple[str, StepHandler]] = [
    (Stage.SELECT_ITEM.value, select_item.run),
    (Stage.SELECT_DESTINATION.value, select_destination.run),
    (Stage.GENERATE_CASES.value, generate_cases.run),
    (Stage.REVIEW_CASES.value, review_cases.run),
    (Stage.PERSIST_CASES.value, persist_cases.run),
    (Stage.GENERATE_AUTOMATION.value, generate_automation.run),
]

STEP_HANDLERS: Dict[str, StepHandler] = dict(PIPELINE_STEPS)

# Stage -> earlier stages whose output must already be stored
PREREQUISITES: Dict[str, Tuple[str, ...]] = {
    Stage.SELECT_ITEM.value: (),
    Stage.SELECT_DESTINATION.value: (),
    Stage.GENERATE_CASES.value: (Stage.SELECT_ITEM.value, Stage.SELECT_DESTINATION.value),
    Stage.REVIEW_CASES.value: (Stage.GENERATE_CASES.value,),
    Stage.PERSIST_CASES.value: (Stage.REVIEW_CASES.value, Stage.SELECT_ITEM.value),
    Stage.GENERATE_AUTOMATION.value: (Stage.REVIEW_CASES.value,),
}

if [name for name, _ in PIPELINE_STEPS] != STAGE_ORDER or set(PREREQUISITES) != set(STAGE_ORDER):
    raise RuntimeError("Workflow step table does not cover every stage in order")


def stage_index(stage: str) -> int:
    """Position of a stage in the run order; ``complete`` sorts after every stage."""
    if stage == COMPLETE:
        return len(STAGE_ORDER)
    return STAGE_ORDER.index(stage)


def next_stage(stage: str) -> str:
    """Returns the stage that follows ``stage``, or ``complete`` after the last one."""
    index = stage_index(stage) + 1
    return STAGE_ORDER[index] if index < len(STAGE_ORDER) else COMPLETE


def missing_prerequisites(stage: str, stage_data: Dict[str, Any]) -> List[str]:
    return [required for required in PREREQUISITES[stage] if required not in stage_data]


def get_handler(stage: str) -> Optional[StepHandler]:
    return STEP_HANDLERS.get(stage)
