"""FastAPI Exception Handlers

Maps the engine's outcomes onto HTTP responses:
- ConstraintViolationError (invalid data)      -> 400 {"status": "BAD_REQUEST", "errors": [...]}
- ConfigurationError / EvaluationError (defect) -> 500 with the AppError envelope

Invalid data and engine defects never share a status code.
"""
from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from constraintkit.core.logging import get_logger

from .types import AppError, ConstraintKitError

log = get_logger("errors.handlers")


def _with_request_context(request: Request, error: AppError) -> AppError:
    return error.with_context(
        request_id=request.headers.get("X-Request-ID"),
        correlation_id=request.headers.get("X-Correlation-ID") or error.context.correlation_id,
    )


def result_to_response(error: AppError) -> JSONResponse:
    """Convert AppError to FastAPI JSONResponse."""
    status_code = error.code.http_status

    log_method = log.warning if status_code < 500 else log.error
    log_method(
        "error_response",
        error_code=error.code.name,
        error_code_num=error.code.value,
        message=error.message,
        category=error.code.category,
        correlation_id=error.context.correlation_id,
        origin=error.context.origin,
    )

    # Violation errors built by boundary helpers carry their wire payload
    payload = error.metadata.get("payload")
    if status_code < 500 and payload is not None:
        return JSONResponse(status_code=status_code, content=payload)
    return JSONResponse(status_code=status_code, content=error.to_dict())


async def constraint_violation_handler(request: Request, exc: Exception) -> JSONResponse:
    """Invalid data: 400 with the violation messages."""
    from constraintkit.validation.violations import ConstraintViolationError

    if not isinstance(exc, ConstraintViolationError):
        raise exc

    error = _with_request_context(request, exc.error)
    log.warning(
        "constraint_violations",
        error_count=len(exc.violations),
        fields=sorted(exc.violations.by_path()),
        correlation_id=error.context.correlation_id,
    )
    return JSONResponse(status_code=error.code.http_status, content=exc.to_payload())


async def constraint_kit_error_handler(request: Request, exc: ConstraintKitError) -> JSONResponse:
    """Configuration and evaluation faults: 500 with the structured envelope."""
    error = _with_request_context(request, exc.error)
    if exc.__cause__ is not None:
        log.error("engine_fault_cause", error_type=type(exc.__cause__).__name__, cause=str(exc.__cause__))
    return result_to_response(error)


def register_error_handlers(app: FastAPI) -> None:
    """Register all error handlers on FastAPI app.

    Usage:
        from constraintkit.core.errors.handlers import register_error_handlers

        app = FastAPI(...)
        register_error_handlers(app)
    """
    from constraintkit.validation.violations import ConstraintViolationError

    app.add_exception_handler(ConstraintViolationError, constraint_violation_handler)
    app.add_exception_handler(ConstraintKitError, constraint_kit_error_handler)
