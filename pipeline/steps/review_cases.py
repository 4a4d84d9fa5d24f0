"""
This module implements the Review Cases step of the QA workflow.
The user edits, removes or adds cases in the generated draft and submits the result; the
reviewed list is stored verbatim and becomes the input for persisting and automation.
What changed against the draft is summarized in the log.
"""
import logging
from typing import Any, Dict, List

from models.workflow import Stage
from pipeline.services import StepServices
from utils.exceptions import InvalidPayloadError


def _by_id(cases: List[Any]) -> Dict[Any, Dict[str, Any]]:
    return {case.get("id"): case for case in cases if isinstance(case, dict) and case.get("id")}


def summarize_changes(generated: List[Any], reviewed: List[Any]) -> Dict[str, List[Any]]:
    """
    Compares the reviewed cases with the generated draft by case id.

    Returns:
        Dict[str, List[Any]]: Ids that were ``kept`` unchanged, ``modified``, ``removed``,
                              plus ``added`` for reviewed cases without a draft counterpart.
    """
    draft = _by_id(generated)
    final = _by_id(reviewed)
    added = [case_id for case_id in final if case_id not in draft]
    added += [None] * sum(1 for case in reviewed if not (isinstance(case, dict) and case.get("id")))
    return {
        "kept": [case_id for case_id in final if case_id in draft and final[case_id] == draft[case_id]],
        "modified": [case_id for case_id in final if case_id in draft and final[case_id] != draft[case_id]],
        "removed": [case_id for case_id in draft if case_id not in final],
        "added": added,
    }


def run(stage_data: Dict[str, Any], payload: Any, services: StepServices) -> List[Any]:
    stage = Stage.REVIEW_CASES.value
    if isinstance(payload, dict) and "cases" in payload:
        payload = payload["cases"]
    if not isinstance(payload, list):
        raise InvalidPayloadError("Step 'review-cases' expects a list of cases", stage=stage)

    changes = summarize_changes(stage_data.get(Stage.GENERATE_CASES.value) or [], payload)
    logging.info(
        f"Reviewed {len(payload)} case(s): {len(changes['kept'])} kept, {len(changes['modified'])} modified, "
        f"{len(changes['removed'])} removed, {len(changes['added'])} added"
    )
    return payload
