"""
Structured exceptions and error responses for Taskgraph.

Provides consistent error handling across the engine and the API with:
- Stable error codes (ErrorCode)
- One exception class per code
- FastAPI exception handlers rendering a structured response
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from fastapi import Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from taskgraph.logging_config import get_logger

logger = get_logger("error")


# =============================================================================
# Error codes
# =============================================================================

class ErrorCode(str, Enum):
    TASK_NOT_FOUND = "TASK_NOT_FOUND"
    SELF_REFERENCE = "SELF_REFERENCE"
    DUPLICATE = "DUPLICATE"
    LIMIT_EXCEEDED = "LIMIT_EXCEEDED"
    CIRCULAR = "CIRCULAR"
    NOT_FOUND = "NOT_FOUND"
    STORAGE_UNAVAILABLE = "STORAGE_UNAVAILABLE"
    # Raised by the task layer, not by the engine
    TASK_BLOCKED = "TASK_BLOCKED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


ERROR_MESSAGES = {
    ErrorCode.TASK_NOT_FOUND: "One or both tasks do not exist",
    ErrorCode.SELF_REFERENCE: "A task cannot depend on itself",
    ErrorCode.DUPLICATE: "This dependency already exists",
    ErrorCode.LIMIT_EXCEEDED: "Maximum number of dependencies per task reached",
    ErrorCode.CIRCULAR: "This would create a circular dependency",
    ErrorCode.NOT_FOUND: "Dependency not found",
    ErrorCode.STORAGE_UNAVAILABLE: "Dependency storage is unavailable",
    ErrorCode.TASK_BLOCKED: "Task is blocked by incomplete dependencies",
    ErrorCode.INTERNAL_ERROR: "An unexpected error occurred",
}


# =============================================================================
# Error Response Schema
# =============================================================================

class ErrorResponse(BaseModel):
    """Structured error response format."""
    error: str  # Stable error code, e.g. "CIRCULAR"
    message: str
    details: Optional[List[Dict[str, Any]]] = None


# =============================================================================
# Custom Exceptions
# =============================================================================

class TaskGraphException(Exception):
    """Base exception for all Taskgraph errors."""

    def __init__(
        self,
        message: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[List[Dict[str, Any]]] = None,
    ):
        self.message = message or ERROR_MESSAGES[error_code]
        self.error_code = error_code
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)

    @property
    def code(self) -> str:
        return self.error_code.value


class TaskNotFoundError(TaskGraphException):
    """One of the endpoint tasks does not exist in the task repository."""

    def __init__(self, task_id: str):
        super().__init__(
            error_code=ErrorCode.TASK_NOT_FOUND,
            status_code=status.HTTP_404_NOT_FOUND,
            details=[{
                "loc": ["body"],
                "msg": f"Task {task_id} not found",
                "type": "task_not_found",
            }],
        )
        self.task_id = task_id


class SelfReferenceError(TaskGraphException):
    """Task cannot depend on itself."""

    def __init__(self, task_id: str):
        super().__init__(
            error_code=ErrorCode.SELF_REFERENCE,
            status_code=status.HTTP_400_BAD_REQUEST,
        )
        self.task_id = task_id


class DuplicateDependencyError(TaskGraphException):
    """Dependency already exists."""

    def __init__(self, dependent_task_id: str, blocking_task_id: str):
        super().__init__(
            error_code=ErrorCode.DUPLICATE,
            status_code=status.HTTP_409_CONFLICT,
        )
        self.dependent_task_id = dependent_task_id
        self.blocking_task_id = blocking_task_id


class LimitExceededError(TaskGraphException):
    """The dependent task already has the maximum number of blockers."""

    def __init__(self, task_id: str, limit: int):
        super().__init__(
            message=f"Maximum of {limit} dependencies per task reached",
            error_code=ErrorCode.LIMIT_EXCEEDED,
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
        )
        self.task_id = task_id
        self.limit = limit


class CircularDependencyError(TaskGraphException):
    """Adding a dependency would create a cycle."""

    def __init__(self, path: Sequence[Any], chain: Optional[str] = None):
        self.path = [str(task_id) for task_id in path]
        self.chain = chain or " → ".join(self.path + self.path[:1])
        super().__init__(
            error_code=ErrorCode.CIRCULAR,
            status_code=status.HTTP_400_BAD_REQUEST,
            details=[{
                "loc": ["body"],
                "msg": self.chain,
                "type": "cycle_error",
                "path": self.path,
            }],
        )


class DependencyNotFoundError(TaskGraphException):
    """Dependency with the given id does not exist."""

    def __init__(self, dependency_id: str):
        super().__init__(
            message=f"Dependency with ID {dependency_id} not found",
            error_code=ErrorCode.NOT_FOUND,
            status_code=status.HTTP_404_NOT_FOUND,
        )
        self.dependency_id = dependency_id


class StorageUnavailableError(TaskGraphException):
    """The persistence medium failed; the operation did not complete."""

    def __init__(self, operation: str, reason: Optional[str] = None):
        super().__init__(
            message=f"Dependency storage unavailable during {operation}",
            error_code=ErrorCode.STORAGE_UNAVAILABLE,
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details=[{"loc": ["storage"], "msg": reason, "type": "storage_error"}] if reason else None,
        )
        self.operation = operation


class TaskBlockedError(TaskGraphException):
    """Soft block: the task has open blockers and no override was given."""

    def __init__(self, task_id: str, blocking_task_ids: Sequence[Any]):
        self.blocking_task_ids = [str(t) for t in blocking_task_ids]
        super().__init__(
            error_code=ErrorCode.TASK_BLOCKED,
            status_code=status.HTTP_409_CONFLICT,
            details=[{
                "loc": ["body", "status"],
                "msg": "Pass force=true to start the task anyway",
                "type": "task_blocked",
                "blocking_task_ids": self.blocking_task_ids,
            }],
        )
        self.task_id = task_id


# =============================================================================
# Exception Handlers
# =============================================================================

async def taskgraph_exception_handler(request: Request, exc: TaskGraphException) -> JSONResponse:
    """Handle TaskGraphException and return structured response."""
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=exc.code,
            message=exc.message,
            details=exc.details,
        ).model_dump(),
    )


def register_exception_handlers(app):
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(TaskGraphException, taskgraph_exception_handler)
