"""
HTTP entry point of the QA Copilot workflow service.

Exposes the workflow orchestrator (start, step, recreate, inspect) and the two-phase
automation-code generation protocol over JSON. Run with ``python -m api.main`` or
``uvicorn api.main:create_app --factory``.
"""
import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.responses import JSONResponse

from api.schemas import (
    AnalyzeRequest,
    CompleteRequest,
    RecreateWorkflowRequest,
    SessionRequest,
    StartWorkflowRequest,
    StepRequest,
    UpdateSessionRequest,
)
from automation.coordinator import GenerationCoordinator
from config import config
from integrations.jira_client import JiraClient
from integrations.testrail_client import TestRailClient
from llm.llm_client import get_llm_client
from logs.logger import configure_logging
from models.workflow import owner_from_workflow_id
from pipeline.orchestrator import WorkflowOrchestrator
from pipeline.services import StepServices
from storage.session_store import InMemorySessionStore
from storage.workflow_store import InMemoryWorkflowStore, MinioWorkflowStore, WorkflowStore
from utils.exceptions import (
    GenerationError,
    IntegrationError,
    InvalidPayloadError,
    LLMError,
    NotFoundError,
    OutOfOrderError,
    PipelineError,
    SessionNotFoundError,
    StepFailedError,
    StillIncompleteError,
    StorageError,
    UnknownStepError,
)


def build_workflow_store() -> WorkflowStore:
    """Selects the workflow backend from ``WORKFLOW_STORE``; Minio needs a reachable bucket."""
    if config.workflow_store == "minio":
        from storage.minio_client import get_client
        from storage.minio_setup import ensure_bucket

        ensure_bucket(get_client(), config.minio_bucket)
        logging.info(f"Using Minio workflow store (bucket '{config.minio_bucket}')")
        return MinioWorkflowStore(config.minio_bucket)
    logging.info("Using in-memory workflow store")
    return InMemoryWorkflowStore()


def build_services(coordinator: GenerationCoordinator) -> StepServices:
    """
    Wires the step collaborators from configuration. Integrations without credentials are left
    out, so the steps that need them fail with a clear error instead of the whole service.
    """
    services = StepServices(coordinator=coordinator)
    try:
        services.llm_client = get_llm_client()
    except LLMError as e:
        logging.warning(f"No LLM provider available: {e}")

    if config.jira_url and config.jira_email and config.jira_api_token:
        services.tracker = JiraClient(config.jira_url, config.jira_email, config.jira_api_token,
                                      timeout=config.http_timeout)
    else:
        logging.warning("Jira is not configured; work items must carry their own summary/description.")

    if config.testrail_url and config.testrail_user and config.testrail_api_key:
        services.test_repository = TestRailClient(config.testrail_url, config.testrail_user,
                                                  config.testrail_api_key, timeout=config.http_timeout)
    else:
        logging.warning("TestRail is not configured; cases cannot be persisted.")

    if config.pii_masking_enabled:
        from utils.pii import mask_pii

        services.sanitize = mask_pii
    return services


def _error_body(exc: Exception, stage: Optional[str]) -> dict:
    return {"error": type(exc).__name__, "detail": str(exc), "stage": stage}


def _pipeline_status(exc: PipelineError) -> int:
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, UnknownStepError):
        return 400
    if isinstance(exc, OutOfOrderError):
        return 409
    if isinstance(exc, InvalidPayloadError):
        return 400
    if isinstance(exc, StepFailedError):
        if isinstance(exc.error, InvalidPayloadError):
            return 400
        if isinstance(exc.error, (IntegrationError, LLMError)):
            return 502
        return 500
    return 500


def create_app(orchestrator: Optional[WorkflowOrchestrator] = None,
               coordinator: Optional[GenerationCoordinator] = None) -> FastAPI:
    """
    Builds the FastAPI application.

    Args:
        orchestrator (Optional[WorkflowOrchestrator]): Built from configuration when omitted.
        coordinator (Optional[GenerationCoordinator]): Built over an in-memory session store when
                                                       omitted.

    Returns:
        FastAPI: The application with all routes and error handlers registered.
    """
    coordinator = coordinator or GenerationCoordinator(InMemorySessionStore())
    if orchestrator is None:
        orchestrator = WorkflowOrchestrator(build_workflow_store(), build_services(coordinator))

    app = FastAPI(title="QA Copilot Workflow Service", version="1.0.0")
    app.state.orchestrator = orchestrator
    app.state.coordinator = coordinator

    @app.exception_handler(PipelineError)
    async def pipeline_error_handler(request: Request, exc: PipelineError):
        return JSONResponse(status_code=_pipeline_status(exc), content=_error_body(exc, exc.stage))

    @app.exception_handler(GenerationError)
    async def generation_error_handler(request: Request, exc: GenerationError):
        status_code = 404 if isinstance(exc, SessionNotFoundError) else 409
        content = _error_body(exc, exc.phase)
        if isinstance(exc, StillIncompleteError):
            content["missingPatterns"] = exc.missing_patterns
        return JSONResponse(status_code=status_code, content=content)

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError):
        return JSONResponse(status_code=503, content=_error_body(exc, None))

    @app.get("/health")
    def health():
        return {"status": "ok"}

    # === Workflows ===

    @app.post("/workflow/start")
    def start_workflow(body: StartWorkflowRequest):
        return orchestrator.start(body.owner_id).to_dict()

    @app.post("/workflow/{workflow_id}/step")
    def execute_step(workflow_id: str, body: StepRequest):
        try:
            output = orchestrator.execute_step(workflow_id, body.step, body.data)
        except NotFoundError:
            owner_id = owner_from_workflow_id(workflow_id)
            if not config.auto_recreate_workflows or owner_id is None:
                raise
            # Workflow lost (e.g. restart); recreate it at the first stage and retry once
            orchestrator.recreate(workflow_id, owner_id)
            output = orchestrator.execute_step(workflow_id, body.step, body.data)
        workflow = orchestrator.get(workflow_id)
        return {"workflowId": workflow_id, "step": body.step, "stage": workflow.stage, "output": output}

    @app.post("/workflow/{workflow_id}/recreate")
    def recreate_workflow(workflow_id: str, body: Optional[RecreateWorkflowRequest] = None):
        owner_id = (body.owner_id if body else None) or owner_from_workflow_id(workflow_id)
        if not owner_id:
            raise HTTPException(status_code=400, detail="ownerId is required for this workflow id")
        return orchestrator.recreate(workflow_id, owner_id).to_dict()

    @app.get("/workflow/user/{owner_id}")
    def list_workflows(owner_id: str):
        return [workflow.to_dict() for workflow in orchestrator.list_by_owner(owner_id)]

    @app.get("/workflow/{workflow_id}")
    def get_workflow(workflow_id: str):
        return orchestrator.get(workflow_id).to_dict()

    @app.delete("/workflow/{workflow_id}", status_code=204)
    def delete_workflow(workflow_id: str):
        orchestrator.delete(workflow_id)
        return Response(status_code=204)

    # === Automation-code generation ===

    @app.post("/automation/analyze")
    def analyze(body: AnalyzeRequest):
        coordinator.evict_stale(config.session_ttl_seconds)
        artifacts = [artifact.to_artifact() for artifact in body.existing_artifacts]
        return coordinator.analyze(body.input_description, artifacts).to_dict()

    @app.post("/automation/complete")
    def complete(body: CompleteRequest):
        supplied = [artifact.to_artifact() for artifact in body.supplied_artifacts or []]
        code = coordinator.complete(body.session_id, supplied, skip_missing=body.skip_missing)
        return {"sessionId": body.session_id, **code.to_dict()}

    @app.post("/automation/session/update")
    def update_session(body: UpdateSessionRequest):
        artifacts = [artifact.to_artifact() for artifact in body.artifacts]
        return coordinator.update(body.session_id, body.category, artifacts).to_dict()

    @app.post("/automation/session/cancel")
    def cancel_session(body: SessionRequest):
        return coordinator.abandon(body.session_id).to_dict()

    @app.get("/automation/session/{session_id}")
    def get_session(session_id: str):
        return coordinator.get(session_id).to_dict()

    return app


def main() -> None:
    """Starts the service with uvicorn."""
    configure_logging(config.log_level, config.log_dir)
    logging.info("Starting QA Copilot workflow service...")
    uvicorn.run(create_app(), host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
