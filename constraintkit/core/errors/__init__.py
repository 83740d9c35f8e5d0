"""Error Handling System

Typed errors and a Result monad for the constraint engine.

Key components:
- ErrorCode: Error code taxonomy (validation / configuration / evaluation)
- AppError: Error payload with full context
- ConfigurationError / EvaluationError: the two fault families
- Result[T, E]: Monadic container used at boundaries
- Builder functions: Ergonomic error construction

Usage:
    from constraintkit.core.errors import ConfigurationError, EvaluationError

    try:
        violations = engine.validate(order)
    except ConfigurationError as exc:
        log.error("misconfigured", code=exc.code.name)
"""
from .types import (
    # Core types
    Result,
    Ok,
    Err,
    AppError,
    ErrorCode,
    ErrorContext,
    # Exceptions
    ConstraintKitError,
    ConfigurationError,
    UnknownConstraintError,
    InvalidParametersError,
    UnexpectedTypeError,
    EvaluationError,
    ConstraintEvaluationError,
    MemberAccessError,
)

from .builders import (
    constraint_violation,
    configuration_error,
    unknown_constraint,
    invalid_parameters,
    unexpected_type,
    duplicate_kind,
    registry_frozen,
    unresolvable_annotation,
    validator_failed,
    member_access_failed,
    not_a_container,
)

__all__ = [
    "Result",
    "Ok",
    "Err",
    "AppError",
    "ErrorCode",
    "ErrorContext",
    "ConstraintKitError",
    "ConfigurationError",
    "UnknownConstraintError",
    "InvalidParametersError",
    "UnexpectedTypeError",
    "EvaluationError",
    "ConstraintEvaluationError",
    "MemberAccessError",
    "constraint_violation",
    "configuration_error",
    "unknown_constraint",
    "invalid_parameters",
    "unexpected_type",
    "duplicate_kind",
    "registry_frozen",
    "unresolvable_annotation",
    "validator_failed",
    "member_access_failed",
    "not_a_container",
]
