"""
This module implements the Persist Cases step of the QA workflow.
It pushes every reviewed case into the destination section of the test-case repository and
links each one to the selected work item. A case the repository rejects is recorded as failed
and the remaining cases are still attempted.
"""
import logging
from typing import Any, Dict

from logs.logger import log_error
from models.workflow import Stage
from pipeline.services import StepServices
from pipeline.steps.validation import require_mapping
from utils.exceptions import InvalidPayloadError, TestRepositoryError


def run(stage_data: Dict[str, Any], payload: Any, services: StepServices) -> Dict[str, Any]:
    """
    Executes the Persist Cases step.

    Args:
        stage_data (Dict[str, Any]): Must hold the ``review-cases`` and ``select-item`` outputs.
        payload (Any): Optional ``{"sectionId": "..."}`` overriding the selected destination.
        services (StepServices): Needs ``test_repository``.

    Returns:
        Dict[str, Any]: ``{"sectionId", "results", "totalSaved", "totalFailed"}``.

    Raises:
        TestRepositoryError: If no test-case repository is configured.
        InvalidPayloadError: If there is no section to write to.
    """
    stage = Stage.PERSIST_CASES.value
    payload = require_mapping(payload, stage)
    cases = stage_data.get(Stage.REVIEW_CASES.value) or []
    item = stage_data.get(Stage.SELECT_ITEM.value) or {}
    destination = stage_data.get(Stage.SELECT_DESTINATION.value) or {}

    section_id = payload.get("sectionId") or destination.get("ref")
    if not section_id:
        raise InvalidPayloadError("No destination section to persist cases into", stage=stage)
    if services.test_repository is None:
        raise TestRepositoryError("Test case repository is not configured")

    results = []
    for case in cases:
        case = case if isinstance(case, dict) else {"title": str(case)}
        result = {"caseId": case.get("id"), "title": case.get("title")}
        try:
            created = services.test_repository.add_case(section_id, case, refs=item.get("ref"))
            result.update(status="saved", externalId=created.get("id"), url=created.get("url"))
        except TestRepositoryError as e:
            log_error(f"Failed to persist case '{case.get('title')}': {e}")
            result.update(status="failed", error=str(e))
        results.append(result)

    total_saved = sum(1 for r in results if r["status"] == "saved")
    logging.info(f"Persisted {total_saved}/{len(results)} case(s) to section {section_id}")
    return {
        "sectionId": section_id,
        "results": results,
        "totalSaved": total_saved,
        "totalFailed": len(results) - total_saved,
    }
