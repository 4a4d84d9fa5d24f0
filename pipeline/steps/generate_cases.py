import json
import logging
import re
from typing import Any, Dict, List

from llm.llm_client import call_llm
from llm.prompts.testcases import PROMPT
from logs.logger import log_error
from models.workflow import Stage
from pipeline.services import StepServices
from pipeline.steps.validation import require_mapping
from utils.exceptions import InvalidPayloadError, LLMError, TrackerError

EXAMPLE_LIMIT = 10


def _extract_json_obj(text: str) -> str:
    """Extracts the outermost {...} pair from the text and strips single-line // comments."""
    start = text.find('{')
    end = text.rfind('}')
    if start == -1 or end == -1 or start >= end:
        raise ValueError("No valid JSON object detected in LLM response")
    json_str = text[start:end + 1]
    # Only comments at line start or after whitespace, so URLs survive
    json_str = re.sub(r"(^|\s)//[^\n]*", r"\1", json_str)
    return json_str


def _normalize_step(step: Any) -> Any:
    if isinstance(step, dict):
        return {
            "action": step.get("action") or step.get("step") or step.get("content") or "",
            "expected": step.get("expected") or step.get("expected_result") or step.get("expectedResult") or "",
        }
    return str(step)


def normalize_case(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Maps one provider-authored case onto the workflow's case shape."""
    return {
        "id": str(raw.get("test_id") or raw.get("id") or "").strip(),
        "title": raw.get("title") or "Untitled test case",
        "type": raw.get("type") or "positive",
        "priority": raw.get("priority") or "Medium",
        "preconditions": raw.get("preconditions") or "",
        "steps": [_normalize_step(step) for step in raw.get("steps") or []],
        "expectedResult": raw.get("expected_result") or raw.get("expectedResult") or "",
    }


def assign_ids(cases: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Guarantees every case a unique id. Provider ids are kept when unique; missing or
    duplicated ones are replaced with the next free ``TC-NNN``.
    """
    taken = {case["id"] for case in cases if case["id"]}
    seen = set()
    counter = 1
    for case in cases:
        if case["id"] and case["id"] not in seen:
            seen.add(case["id"])
            continue
        while f"TC-{counter:03d}" in taken:
            counter += 1
        case["id"] = f"TC-{counter:03d}"
        taken.add(case["id"])
        seen.add(case["id"])
    return cases


def parse_cases(result: str) -> List[Dict[str, Any]]:
    """
    Parses the provider reply into normalized cases with unique ids.

    Raises:
        LLMError: If the reply holds no usable ``testcases`` array.
    """
    try:
        parsed = json.loads(_extract_json_obj(result))
    except (json.JSONDecodeError, ValueError) as e:
        log_error(f"Failed to parse LLM response as JSON: {e}\nRaw response (first 500 chars): {result[:500]}...")
        raise LLMError(f"LLM did not return valid JSON for test cases. Error: {e}") from e

    raw_cases = parsed.get("testcases")
    if not isinstance(raw_cases, list):
        raise LLMError("LLM response JSON missing 'testcases' array")
    cases = [normalize_case(raw) for raw in raw_cases if isinstance(raw, dict)]
    if not cases:
        raise LLMError("LLM returned no test cases")
    return assign_ids(cases)


def _format_examples(examples: List[Dict[str, Any]]) -> str:
    if not examples:
        return "(none, use a clear and consistent style)"
    return json.dumps(examples[:EXAMPLE_LIMIT], ensure_ascii=False, indent=2, default=str)


def build_prompt(ticket: Dict[str, Any], examples: List[Dict[str, Any]], instructions: str,
                 services: StepServices) -> str:
    return PROMPT.format(
        key=ticket.get("ref") or ticket.get("key") or "N/A",
        summary=services.sanitize(ticket.get("summary") or ""),
        issue_type=ticket.get("issueType") or "N/A",
        priority=ticket.get("priority") or "N/A",
        description=services.sanitize(ticket.get("description") or "(no description)"),
        acceptance_criteria=services.sanitize(ticket.get("acceptanceCriteria") or "(not specified)"),
        examples=_format_examples(examples),
        instructions=f"Additional instructions: {instructions}" if instructions else "",
    )


def run(stage_data: Dict[str, Any], payload: Any, services: StepServices) -> List[Dict[str, Any]]:
    """
    Executes the Generate Cases step: drafts test cases for the selected work item with the
    generative provider, using cases already in the destination section as style examples.

    Args:
        stage_data (Dict[str, Any]): Must hold the ``select-item`` and ``select-destination`` outputs.
        payload (Any): Optional ``{"instructions": "..."}``.
        services (StepServices): Needs ``llm_client``; ``tracker`` when the item has no text yet;
                                 ``test_repository`` for style examples.

    Returns:
        List[Dict[str, Any]]: Draft cases, each with a unique ``id``.
    """
    stage = Stage.GENERATE_CASES.value
    payload = require_mapping(payload, stage)
    item = stage_data.get(Stage.SELECT_ITEM.value)
    destination = stage_data.get(Stage.SELECT_DESTINATION.value)
    if not item or not destination:
        raise InvalidPayloadError("Select a work item and a destination before generating cases", stage=stage)

    # === Work item ===
    ticket = item
    if not item.get("summary") and not item.get("description"):
        if services.tracker is None:
            raise TrackerError("Issue tracker is not configured; include summary/description in select-item")
        ticket = services.tracker.get_issue(item["ref"])

    # === Style examples from the destination section ===
    examples = []
    if services.test_repository is not None:
        examples = services.test_repository.get_cases(
            destination["ref"], destination.get("projectId"), destination.get("suiteId"), limit=EXAMPLE_LIMIT
        )
    logging.info(f"Generating cases for {item['ref']} with {len(examples)} example case(s)")

    # === Provider call ===
    if services.llm_client is None:
        raise LLMError("No LLM provider is configured")
    prompt_text = build_prompt(ticket, examples, payload.get("instructions") or "", services)
    result = call_llm(services.llm_client, prompt_text)
    logging.debug(f"Raw LLM response (first 500 chars): {result[:500]}...")

    cases = parse_cases(result)
    logging.info(f"Generated {len(cases)} case(s) for {item['ref']}")
    return cases
