"""
This module implements the Generate Automation step of the QA workflow.
Each selected reviewed case is turned into a scenario description and handed to the
generation coordinator, which opens one two-phase session per case. Sessions that still
miss code patterns are left awaiting input unless the caller accepts placeholders.
"""
import logging
from typing import Any, Dict, List

from models.generation_session import Artifact, SessionStatus
from models.workflow import Stage
from pipeline.services import StepServices
from pipeline.steps.validation import require_mapping
from utils.exceptions import InvalidPayloadError, PipelineError


def describe_case(case: Dict[str, Any]) -> str:
    """
    Renders a reviewed case as the plain-text scenario the code renderer understands:
    the title, numbered steps, then ``Expected:`` lines.
    """
    lines = [case.get("title") or case.get("id") or "Untitled test case"]
    if case.get("preconditions"):
        lines.append(f"Preconditions: {case['preconditions']}")
    expectations = []
    for number, step in enumerate(case.get("steps") or [], start=1):
        if isinstance(step, dict):
            lines.append(f"{number}. {step.get('action', '')}")
            if step.get("expected"):
                expectations.append(step["expected"])
        else:
            lines.append(f"{number}. {step}")
    if case.get("expectedResult"):
        expectations.append(case["expectedResult"])
    lines.extend(f"Expected: {expected}" for expected in expectations)
    return "\n".join(lines)


def _parse_artifacts(raw: Any, stage: str) -> List[Artifact]:
    if not isinstance(raw, list):
        raise InvalidPayloadError("'artifacts' must be a list", stage=stage)
    try:
        return [Artifact.from_dict(item) for item in raw]
    except (KeyError, TypeError, AttributeError) as e:
        raise InvalidPayloadError(f"Each artifact needs a 'name' and 'content': {e}", stage=stage) from e


def _select_cases(cases: List[Any], case_ids: Any, stage: str) -> List[Dict[str, Any]]:
    cases = [case for case in cases if isinstance(case, dict)]
    if case_ids is None:
        return cases
    if not isinstance(case_ids, list):
        raise InvalidPayloadError("'caseIds' must be a list", stage=stage)
    wanted = set(case_ids)
    selected = [case for case in cases if case.get("id") in wanted]
    unknown = wanted - {case.get("id") for case in selected}
    if unknown:
        raise InvalidPayloadError(f"Unknown case id(s): {', '.join(sorted(map(str, unknown)))}", stage=stage)
    return selected


def run(stage_data: Dict[str, Any], payload: Any, services: StepServices) -> Dict[str, Any]:
    """
    Executes the Generate Automation step.

    Args:
        stage_data (Dict[str, Any]): Must hold the ``review-cases`` output.
        payload (Any): ``{"caseIds": [...]?, "artifacts": [...]?, "skipMissing": bool?}``.
        services (StepServices): Needs ``coordinator``.

    Returns:
        Dict[str, Any]: ``{"sessions": [...]}``, one entry per processed case.
    """
    stage = Stage.GENERATE_AUTOMATION.value
    payload = require_mapping(payload, stage)
    if services.coordinator is None:
        raise PipelineError("Automation generation is not configured", stage=stage)

    cases = _select_cases(stage_data.get(Stage.REVIEW_CASES.value) or [], payload.get("caseIds"), stage)
    artifacts = _parse_artifacts(payload.get("artifacts") or [], stage)
    skip_missing = bool(payload.get("skipMissing", False))

    sessions = []
    for case in cases:
        session = services.coordinator.analyze(describe_case(case), artifacts)
        missing = dict(session.missing_patterns)
        if skip_missing and session.status == SessionStatus.AWAITING_INPUT.value:
            services.coordinator.complete(session.session_id, skip_missing=True)
            session = services.coordinator.get(session.session_id)

        entry = {
            "caseId": case.get("id"),
            "sessionId": session.session_id,
            "status": session.status,
            "missingPatterns": missing,
        }
        if session.result is not None:
            entry.update(session.result.to_dict())
        sessions.append(entry)

    logging.info(f"Opened {len(sessions)} automation session(s)")
    return {"sessions": sessions}
