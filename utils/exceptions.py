"""
This module defines custom exception classes used throughout the QA Copilot workflow service.
These exceptions provide more specific error handling and identification for different
failure domains within the application, such as storage, LLM interactions, workflow
execution, automation-code generation and the external QA integrations.
"""
from typing import Iterable, Optional


class StorageError(Exception):
    """Custom exception raised for errors related to storage operations (e.g., Minio)."""
    pass


class LLMError(Exception):
    """Custom exception raised for errors related to Large Language Model (LLM) interactions."""
    pass


class IntegrationError(Exception):
    """Base exception for failures reported by an external QA system."""
    pass


class TrackerError(IntegrationError):
    """Raised when the issue tracker (Jira) cannot return a work item."""
    pass


class TestRepositoryError(IntegrationError):
    """Raised when the test-case repository (TestRail) rejects a read or write."""
    __test__ = False


class PipelineError(Exception):
    """
    Custom exception raised for errors occurring during workflow execution.

    Attributes:
        stage (Optional[str]): The stage the failure belongs to, so a client can route
                               the user back to the right step.
    """

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.stage = stage


class NotFoundError(PipelineError):
    """Raised when a workflow identifier is not present in the workflow store."""

    def __init__(self, workflow_id: str):
        super().__init__(f"Workflow '{workflow_id}' not found")
        self.workflow_id = workflow_id


class UnknownStepError(PipelineError):
    """Raised when a step name is not one of the recognised stages."""

    def __init__(self, step_name: str):
        super().__init__(f"Unknown step: '{step_name}'", stage=step_name)


class OutOfOrderError(PipelineError):
    """Raised when a stage is submitted before the workflow has reached it."""

    def __init__(self, step_name: str, current_stage: str, missing: Iterable[str] = ()):
        missing = list(missing)
        if missing:
            message = (
                f"Step '{step_name}' requires data from {', '.join(missing)}; "
                f"workflow is at '{current_stage}'"
            )
        else:
            message = f"Step '{step_name}' submitted out of order; workflow is at '{current_stage}'"
        super().__init__(message, stage=step_name)
        self.current_stage = current_stage
        self.missing = missing


class InvalidPayloadError(PipelineError):
    """Raised by a step handler when the submitted payload fails validation."""
    pass


class StepFailedError(PipelineError):
    """
    Wraps any failure raised while a step handler runs.

    The original exception is kept untouched on ``error`` and as ``__cause__``.
    """

    def __init__(self, stage: str, error: Exception):
        super().__init__(f"Step '{stage}' failed: {error}", stage=stage)
        self.error = error


class GenerationError(Exception):
    """
    Base exception for the automation-code generation protocol.

    Attributes:
        phase (str): The protocol phase that failed (analyze, update, complete, cancel).
    """

    def __init__(self, message: str, phase: str):
        super().__init__(message)
        self.phase = phase


class SessionNotFoundError(GenerationError):
    """Raised when a generation session is absent or already terminal."""

    def __init__(self, session_id: str, phase: str, status: Optional[str] = None):
        if status:
            message = f"Generation session '{session_id}' is already {status}"
        else:
            message = f"Generation session '{session_id}' not found"
        super().__init__(message, phase)
        self.session_id = session_id
        self.status = status


class StillIncompleteError(GenerationError):
    """Raised when completion is requested while patterns are still missing."""

    def __init__(self, session_id: str, missing_patterns: dict):
        categories = ", ".join(sorted(missing_patterns))
        super().__init__(
            f"Generation session '{session_id}' is still missing patterns: {categories}. "
            f"Supply artifacts or complete with skipMissing to accept placeholders.",
            phase="complete",
        )
        self.session_id = session_id
        self.missing_patterns = dict(missing_patterns)
