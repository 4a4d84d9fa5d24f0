"""
Unit tests for `pipeline.orchestrator.WorkflowOrchestrator`: stage ordering, stored stage data,
failure handling and recovery of lost workflows.
"""
import pytest

from models.workflow import COMPLETE, STAGE_ORDER, Workflow
from utils.exceptions import (
    InvalidPayloadError,
    LLMError,
    NotFoundError,
    OutOfOrderError,
    StepFailedError,
    UnknownStepError,
)

PAYLOADS = {
    "select-item": {"ref": "TICKET-1"},
    "select-destination": {"ref": "FOLDER-9"},
    "generate-cases": {},
    "review-cases": None,  # filled from the generated cases
    "persist-cases": {},
    "generate-automation": {},
}


def _run_until(orchestrator, workflow_id, last_stage):
    outputs = {}
    for stage in STAGE_ORDER:
        payload = PAYLOADS[stage]
        if stage == "review-cases":
            payload = outputs["generate-cases"]
        outputs[stage] = orchestrator.execute_step(workflow_id, stage, payload)
        if stage == last_stage:
            break
    return outputs


def test_start_creates_workflow_at_first_stage(orchestrator):
    workflow = orchestrator.start("u1")
    assert workflow.owner_id == "u1"
    assert workflow.stage == "select-item"
    assert workflow.stage_data == {}
    assert workflow.id.startswith("workflow_") and workflow.id.endswith("_u1")
    assert orchestrator.get(workflow.id) == workflow


def test_full_run_stores_every_stage_and_completes(orchestrator):
    workflow = orchestrator.start("u1")
    outputs = _run_until(orchestrator, workflow.id, "generate-automation")

    stored = orchestrator.get(workflow.id)
    assert stored.stage == COMPLETE
    assert stored.is_complete
    assert set(stored.stage_data) == set(STAGE_ORDER)
    assert stored.stage_data == outputs


def test_concrete_scenario_review_stores_edited_cases_verbatim(orchestrator, tracker):
    workflow = orchestrator.start("u1")
    orchestrator.execute_step(workflow.id, "select-item", {"ref": "TICKET-1"})
    orchestrator.execute_step(workflow.id, "select-destination", {"ref": "FOLDER-9"})
    cases = orchestrator.execute_step(workflow.id, "generate-cases", {})

    assert len(cases) > 0
    ids = [case["id"] for case in cases]
    assert len(ids) == len(set(ids))
    assert tracker.requested == ["TICKET-1"]

    # One generated case deleted, one edited
    edited = [dict(cases[0], title="Login with valid credentials (edited)")] + cases[2:]
    stored_output = orchestrator.execute_step(workflow.id, "review-cases", edited)

    assert stored_output == edited
    stored = orchestrator.get(workflow.id)
    assert stored.stage_data["review-cases"] == edited
    assert cases[1]["id"] not in [case["id"] for case in stored.stage_data["review-cases"]]
    assert stored.stage == "persist-cases"


@pytest.mark.parametrize("step_name", ["unknown", "", "Select-Item", "complete", "select_item"])
def test_unknown_step_is_rejected_without_mutation(orchestrator, step_name):
    workflow = orchestrator.start("u1")
    orchestrator.execute_step(workflow.id, "select-item", {"ref": "TICKET-1"})
    before = orchestrator.get(workflow.id)

    with pytest.raises(UnknownStepError):
        orchestrator.execute_step(workflow.id, step_name, {"ref": "X"})

    assert orchestrator.get(workflow.id) == before


def test_generate_cases_before_destination_is_out_of_order(orchestrator):
    workflow = orchestrator.start("u1")
    orchestrator.execute_step(workflow.id, "select-item", {"ref": "TICKET-1"})

    with pytest.raises(OutOfOrderError) as exc_info:
        orchestrator.execute_step(workflow.id, "generate-cases", {})
    assert exc_info.value.current_stage == "select-destination"
    assert "generate-cases" not in orchestrator.get(workflow.id).stage_data

    orchestrator.execute_step(workflow.id, "select-destination", {"ref": "FOLDER-9"})
    cases = orchestrator.execute_step(workflow.id, "generate-cases", {})
    assert cases


def test_step_ahead_of_current_stage_is_out_of_order(orchestrator):
    workflow = orchestrator.start("u1")
    with pytest.raises(OutOfOrderError):
        orchestrator.execute_step(workflow.id, "persist-cases", {})


def test_missing_prerequisite_data_is_out_of_order(orchestrator, store):
    store.put(Workflow(id="workflow_x_u1", owner_id="u1", stage="generate-cases",
                       stage_data={"select-item": {"ref": "TICKET-1"}}))

    with pytest.raises(OutOfOrderError) as exc_info:
        orchestrator.execute_step("workflow_x_u1", "generate-cases", {})
    assert exc_info.value.missing == ["select-destination"]


def test_resubmitting_earlier_stage_keeps_pointer_and_later_data(orchestrator):
    workflow = orchestrator.start("u1")
    outputs = _run_until(orchestrator, workflow.id, "review-cases")

    orchestrator.execute_step(workflow.id, "select-item", {"ref": "TICKET-2"})

    stored = orchestrator.get(workflow.id)
    assert stored.stage == "persist-cases"
    assert stored.stage_data["select-item"] == {"ref": "TICKET-2"}
    assert stored.stage_data["generate-cases"] == outputs["generate-cases"]
    assert stored.stage_data["review-cases"] == outputs["review-cases"]


def test_handler_failure_is_wrapped_and_workflow_unchanged(orchestrator, llm_client):
    llm_client.reply = "I cannot help with that."
    workflow = orchestrator.start("u1")
    _run_until(orchestrator, workflow.id, "select-destination")
    before = orchestrator.get(workflow.id)

    with pytest.raises(StepFailedError) as exc_info:
        orchestrator.execute_step(workflow.id, "generate-cases", {})

    assert exc_info.value.stage == "generate-cases"
    assert isinstance(exc_info.value.error, LLMError)
    assert exc_info.value.__cause__ is exc_info.value.error
    assert str(exc_info.value.error) in str(exc_info.value)
    assert orchestrator.get(workflow.id) == before


def test_invalid_payload_is_reported_as_step_failure(orchestrator):
    workflow = orchestrator.start("u1")
    with pytest.raises(StepFailedError) as exc_info:
        orchestrator.execute_step(workflow.id, "select-item", {"summary": "no ref"})
    assert isinstance(exc_info.value.error, InvalidPayloadError)
    assert orchestrator.get(workflow.id).stage == "select-item"


def test_execute_step_on_missing_workflow_raises_not_found(orchestrator):
    with pytest.raises(NotFoundError):
        orchestrator.execute_step("workflow_missing_u1", "select-item", {"ref": "TICKET-1"})


def test_unknown_step_on_missing_workflow_is_rejected_before_lookup(orchestrator, store):
    with pytest.raises(UnknownStepError):
        orchestrator.execute_step("workflow_missing_u1", "bogus", {})
    assert store.get("workflow_missing_u1") is None


def test_workflow_is_complete_once_cases_are_persisted(orchestrator):
    workflow = orchestrator.start("u1")
    _run_until(orchestrator, workflow.id, "persist-cases")

    stored = orchestrator.get(workflow.id)
    assert stored.stage == "generate-automation"
    assert stored.is_complete
    assert stored.to_dict()["isComplete"] is True
    assert "generate-automation" not in stored.stage_data


def test_workflow_is_not_complete_before_cases_are_persisted(orchestrator):
    workflow = orchestrator.start("u1")
    _run_until(orchestrator, workflow.id, "review-cases")

    assert not orchestrator.get(workflow.id).is_complete


def test_generate_automation_can_rerun_after_completion(orchestrator):
    workflow = orchestrator.start("u1")
    first = _run_until(orchestrator, workflow.id, "generate-automation")["generate-automation"]
    assert orchestrator.get(workflow.id).stage == COMPLETE

    case_id = first["sessions"][0]["caseId"]
    second = orchestrator.execute_step(workflow.id, "generate-automation", {"caseIds": [case_id], "skipMissing": True})

    stored = orchestrator.get(workflow.id)
    assert stored.stage == COMPLETE
    assert stored.stage_data["generate-automation"] == second
    assert [entry["caseId"] for entry in second["sessions"]] == [case_id]
    assert second["sessions"][0]["status"] == "completed"


def test_recreate_missing_workflow_starts_over(orchestrator, store):
    workflow = orchestrator.start("u1")
    _run_until(orchestrator, workflow.id, "review-cases")
    store.delete(workflow.id)  # simulate a restart losing in-memory state

    recreated = orchestrator.recreate(workflow.id, "u1")

    assert recreated.id == workflow.id
    assert recreated.stage == "select-item"
    assert recreated.stage_data == {}
    assert orchestrator.get(workflow.id) == recreated


def test_recreate_existing_workflow_returns_it_unchanged(orchestrator):
    workflow = orchestrator.start("u1")
    orchestrator.execute_step(workflow.id, "select-item", {"ref": "TICKET-1"})
    before = orchestrator.get(workflow.id)

    assert orchestrator.recreate(workflow.id, "someone-else") == before


def test_list_by_owner_returns_only_owner_workflows_in_order(orchestrator):
    first = orchestrator.start("u1")
    orchestrator.start("u2")
    second = orchestrator.start("u1")

    assert [wf.id for wf in orchestrator.list_by_owner("u1")] == [first.id, second.id]
    assert orchestrator.list_by_owner("nobody") == []


def test_delete_removes_workflow(orchestrator):
    workflow = orchestrator.start("u1")
    orchestrator.delete(workflow.id)

    with pytest.raises(NotFoundError):
        orchestrator.get(workflow.id)
    with pytest.raises(NotFoundError):
        orchestrator.delete(workflow.id)
