"""Domain-Specific Error Builders

Ergonomic constructors for the engine's typed errors. Configuration and
evaluation builders return exception instances ready to ``raise``; the
validation builder returns an ``Err`` for Result-based boundaries.
"""
from typing import Any

from .types import (
    AppError,
    ConfigurationError,
    ConstraintEvaluationError,
    Err,
    ErrorCode,
    ErrorContext,
    InvalidParametersError,
    MemberAccessError,
    UnexpectedTypeError,
    UnknownConstraintError,
)


def _app_error(code: ErrorCode, message: str, origin: str, cause: BaseException | None = None, **metadata) -> AppError:
    return AppError(
        code=code,
        message=message,
        context=ErrorContext(origin=origin),
        metadata={k: v for k, v in metadata.items() if v is not None},
        cause=cause,
    )


# =============================================================================
# Validation Errors (E2xxx)
# =============================================================================

def constraint_violation(payload: dict[str, Any], *, count: int, origin: str = "") -> Err[AppError]:
    """Invalid data at a boundary, carrying the rendered violation payload."""
    return Err(_app_error(
        ErrorCode.E2005_CONSTRAINT_VIOLATION,
        f"Validation failed: {count} constraint violation(s)",
        origin,
        error_count=count,
        payload=payload,
    ))


# =============================================================================
# Configuration Errors (E7xxx)
# =============================================================================

def configuration_error(
    message: str,
    *,
    code: ErrorCode = ErrorCode.E7000_CONFIGURATION_GENERIC,
    origin: str = "",
    cause: BaseException | None = None,
    **metadata,
) -> ConfigurationError:
    return ConfigurationError(_app_error(code, message, origin, cause, **metadata))


def unknown_constraint(kind: str, *, owner: str | None = None, member: str | None = None,
                       available: list[str] | None = None) -> UnknownConstraintError:
    where = f" on {owner}.{member}" if owner and member else ""
    return UnknownConstraintError(_app_error(
        ErrorCode.E7001_UNKNOWN_CONSTRAINT_KIND,
        f"Constraint kind '{kind}'{where} is not registered",
        "registry",
        kind=kind,
        owner=owner,
        member=member,
        available=available,
    ))


def invalid_parameters(kind: str, detail: str, *, owner: str | None = None, member: str | None = None,
                       cause: BaseException | None = None) -> InvalidParametersError:
    where = f" on {owner}.{member}" if owner and member else ""
    return InvalidParametersError(_app_error(
        ErrorCode.E7002_INVALID_PARAMETERS,
        f"Invalid parameters for constraint '{kind}'{where}: {detail}",
        "introspection",
        cause,
        kind=kind,
        owner=owner,
        member=member,
    ))


def unexpected_type(kind: str, declared: Any, *, owner: str, member: str) -> UnexpectedTypeError:
    type_name = getattr(declared, "__name__", repr(declared))
    return UnexpectedTypeError(_app_error(
        ErrorCode.E7003_UNEXPECTED_TYPE,
        f"Constraint '{kind}' cannot be applied to {owner}.{member} of type {type_name}",
        "introspection",
        kind=kind,
        owner=owner,
        member=member,
        declared_type=type_name,
    ))


def duplicate_kind(kind: str) -> ConfigurationError:
    return configuration_error(
        f"Constraint kind '{kind}' is already registered",
        code=ErrorCode.E7004_DUPLICATE_KIND,
        origin="registry",
        kind=kind,
    )


def registry_frozen(kind: str) -> ConfigurationError:
    return configuration_error(
        f"Cannot register '{kind}': registry is frozen once an engine is built",
        code=ErrorCode.E7005_REGISTRY_FROZEN,
        origin="registry",
        kind=kind,
    )


def unresolvable_annotation(owner: str, cause: BaseException) -> ConfigurationError:
    return configuration_error(
        f"Cannot resolve type annotations of {owner}: {cause}",
        code=ErrorCode.E7006_UNRESOLVABLE_ANNOTATION,
        origin="introspection",
        cause=cause,
        owner=owner,
    )


# =============================================================================
# Evaluation Errors (E8xxx)
# =============================================================================

def validator_failed(kind: str, path: str, cause: BaseException) -> ConstraintEvaluationError:
    return ConstraintEvaluationError(_app_error(
        ErrorCode.E8001_VALIDATOR_FAILED,
        f"Constraint '{kind}' raised while evaluating '{path}': {type(cause).__name__}: {cause}",
        "engine",
        cause,
        kind=kind,
        path=path,
    ))


def member_access_failed(owner: str, member: str, path: str, cause: BaseException) -> MemberAccessError:
    return MemberAccessError(_app_error(
        ErrorCode.E8002_MEMBER_ACCESS_FAILED,
        f"Reading {owner}.{member} at '{path}' raised {type(cause).__name__}: {cause}",
        "engine",
        cause,
        owner=owner,
        member=member,
        path=path,
    ))


def not_a_container(member: str, path: str, cause: BaseException) -> MemberAccessError:
    return MemberAccessError(_app_error(
        ErrorCode.E8003_NOT_A_CONTAINER,
        f"Cannot iterate elements of '{member}' at '{path}': {cause}",
        "engine",
        cause,
        member=member,
        path=path,
    ))
