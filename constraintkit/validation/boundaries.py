"""Validation at System Boundaries

Adapters between the engine and the code that calls it:
- check / check_batch: Result-returning validation (no exceptions for bad data)
- ValidatedBody: FastAPI dependency that parses and validates a request body

Invalid data becomes ``Err`` (or a 400 response); configuration and
evaluation faults are never folded into that channel and propagate as
exceptions.
"""
import json
from typing import Any, Generic, TypeVar

from fastapi import Depends, Request
from fastapi.exceptions import RequestValidationError
from pydantic import TypeAdapter, ValidationError

from constraintkit.core.errors import AppError, Err, Ok, Result, constraint_violation
from constraintkit.core.logging import get_logger

from .engine import Engine
from .violations import ConstraintViolationError

T = TypeVar("T")

log = get_logger("validation.boundaries")


# ============================================================================
# Functional Boundary Checks
# ============================================================================

def check(engine: Engine, obj: T, *, origin: str = "ingress") -> Result[T, AppError]:
    """Validate ``obj``; Ok(obj) when valid, Err carrying the 400 payload otherwise.

    Usage:
        match check(engine, order):
            case Ok(order):
                await repository.save(order)
            case Err(error):
                return result_to_response(error)
    """
    violations = engine.validate(obj)
    if violations.is_valid:
        return Ok(obj)
    return constraint_violation(violations.to_payload(), count=len(violations), origin=origin)


def check_batch(
    engine: Engine,
    items: list[T],
    *,
    max_errors: int = 50,
) -> Result[list[T], list[tuple[int, AppError]]]:
    """Validate a batch; Ok with all items or Err with (index, error) pairs.

    Stops collecting after ``max_errors`` invalid items.
    """
    errors: list[tuple[int, AppError]] = []
    for idx, item in enumerate(items):
        if len(errors) >= max_errors:
            break
        result = check(engine, item, origin="batch")
        if result.is_err():
            errors.append((idx, result.unwrap_err().with_metadata(batch_index=idx)))
    if errors:
        return Err(errors)
    return Ok(items)


# ============================================================================
# FastAPI Integration
# ============================================================================

class ValidatedBody(Generic[T]):
    """FastAPI dependency for a parsed and constraint-checked request body.

    The body is parsed with pydantic (shape errors keep FastAPI's 422) and
    then validated by the engine; violations raise ConstraintViolationError,
    which ``register_error_handlers`` turns into a 400.

    Usage:
        @app.post("/employees")
        async def create(employee: Employee = Depends(ValidatedBody(Employee, engine))):
            ...
    """

    def __init__(self, schema: type[T], engine: Engine):
        self.schema = schema
        self.engine = engine
        self._adapter = TypeAdapter(schema)

    async def __call__(self, request: Request) -> T:
        try:
            body: Any = await request.json()
        except json.JSONDecodeError as exc:
            raise RequestValidationError(
                [{"type": "json_invalid", "loc": ("body", exc.pos), "msg": "JSON decode error", "input": {}}]
            ) from exc

        try:
            parsed = self._adapter.validate_python(body)
        except ValidationError as exc:
            raise RequestValidationError(exc.errors(include_url=False)) from exc

        violations = self.engine.validate(parsed)
        if not violations.is_valid:
            log.info(
                "request_body_rejected",
                schema=getattr(self.schema, "__name__", repr(self.schema)),
                path=request.url.path,
                error_count=len(violations),
            )
            raise ConstraintViolationError(violations)
        return parsed


def validated_body(schema: type[T], engine: Engine) -> Any:
    """FastAPI dependency factory: ``body: Employee = validated_body(Employee, engine)``."""
    return Depends(ValidatedBody(schema, engine))
