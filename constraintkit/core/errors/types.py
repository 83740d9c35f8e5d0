"""Error Types

Typed error taxonomy for the constraint engine. Three failure classes are
kept strictly apart:

- Validation failure: data-dependent, returned as violations, never raised
  by ``Engine.validate`` (E2xxx, HTTP 400 at a boundary)
- Configuration error: unknown constraint kinds, malformed parameters,
  incompatible declarations (E7xxx, HTTP 500)
- Evaluation fault: a validator or member accessor crashed (E8xxx, HTTP 500)

Also carries the Result monad (``Ok``/``Err``) used by boundary helpers.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Generic, NoReturn, TypeVar, Union, final
from uuid import uuid4

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E")
F = TypeVar("F")


class ErrorCode(Enum):
    """Hierarchical error code taxonomy.

    E2xxx: Validation failures (invalid user data)
    E7xxx: Configuration errors (engine or type misconfiguration)
    E8xxx: Evaluation faults (broken constraint implementations)
    E9xxx: Internal/Unknown errors
    """
    # Validation (E2xxx)
    E2000_VALIDATION_GENERIC = 2000
    E2005_CONSTRAINT_VIOLATION = 2005

    # Configuration (E7xxx)
    E7000_CONFIGURATION_GENERIC = 7000
    E7001_UNKNOWN_CONSTRAINT_KIND = 7001
    E7002_INVALID_PARAMETERS = 7002
    E7003_UNEXPECTED_TYPE = 7003
    E7004_DUPLICATE_KIND = 7004
    E7005_REGISTRY_FROZEN = 7005
    E7006_UNRESOLVABLE_ANNOTATION = 7006

    # Evaluation (E8xxx)
    E8000_EVALUATION_GENERIC = 8000
    E8001_VALIDATOR_FAILED = 8001
    E8002_MEMBER_ACCESS_FAILED = 8002
    E8003_NOT_A_CONTAINER = 8003

    # Internal (E9xxx)
    E9000_INTERNAL_GENERIC = 9000
    E9001_UNEXPECTED_ERROR = 9001

    @property
    def http_status(self) -> int:
        """Map error code to appropriate HTTP status."""
        if 2000 <= self.value < 3000:
            return 400
        return 500

    @property
    def category(self) -> str:
        """Human-readable error category."""
        code = self.value
        if 2000 <= code < 3000:
            return "validation"
        if 7000 <= code < 8000:
            return "configuration"
        if 8000 <= code < 9000:
            return "evaluation"
        return "internal"


@dataclass(frozen=True, slots=True)
class ErrorContext:
    """Immutable context for error tracing and debugging."""
    correlation_id: str = field(default_factory=lambda: str(uuid4())[:8])
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    origin: str = ""
    request_id: str | None = None


@dataclass(frozen=True, slots=True)
class AppError:
    """Base application error with full context.

    All errors carry:
    - Typed error code from taxonomy
    - Human-readable message
    - Structured metadata for debugging
    - Tracing context
    - Optional cause for error chaining
    """
    code: ErrorCode
    message: str
    context: ErrorContext = field(default_factory=ErrorContext)
    metadata: dict = field(default_factory=dict)
    cause: BaseException | None = None

    def with_context(self, **kwargs) -> AppError:
        """Create new error with updated context."""
        new_ctx = ErrorContext(
            correlation_id=kwargs.get("correlation_id") or self.context.correlation_id,
            timestamp=self.context.timestamp,
            origin=kwargs.get("origin", self.context.origin),
            request_id=kwargs.get("request_id", self.context.request_id),
        )
        return AppError(
            code=self.code,
            message=self.message,
            context=new_ctx,
            metadata=self.metadata,
            cause=self.cause,
        )

    def with_metadata(self, **kwargs) -> AppError:
        """Create new error with additional metadata."""
        return AppError(
            code=self.code,
            message=self.message,
            context=self.context,
            metadata={**self.metadata, **kwargs},
            cause=self.cause,
        )

    def to_dict(self) -> dict:
        """Serialize error for API responses."""
        return {
            "error": {
                "code": self.code.name,
                "code_num": self.code.value,
                "message": self.message,
                "category": self.code.category,
                "correlation_id": self.context.correlation_id,
                "timestamp": self.context.timestamp.isoformat(),
                "metadata": self.metadata,
            }
        }

    def __str__(self) -> str:
        return f"[{self.code.name}] {self.message} (correlation_id={self.context.correlation_id})"


# =============================================================================
# Exceptions
# =============================================================================

class ConstraintKitError(Exception):
    """Base exception. Wraps an AppError so boundaries can render it."""

    def __init__(self, error: AppError):
        self.error = error
        super().__init__(error.message)

    @property
    def code(self) -> ErrorCode:
        return self.error.code


class ConfigurationError(ConstraintKitError):
    """Engine or type misconfiguration, detected when metadata is built."""


class UnknownConstraintError(ConfigurationError):
    """A declaration references a constraint kind that is not registered."""


class InvalidParametersError(ConfigurationError):
    """Declaration parameters do not satisfy the kind's parameter schema."""


class UnexpectedTypeError(ConfigurationError):
    """A constraint is declared on a member whose type it cannot evaluate."""


class EvaluationError(ConstraintKitError):
    """A constraint implementation or accessor failed while validating."""


class ConstraintEvaluationError(EvaluationError):
    """A validator raised instead of returning a verdict."""


class MemberAccessError(EvaluationError):
    """Reading a member value from an instance raised."""


# =============================================================================
# Result monad
# =============================================================================

@final
@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Success variant of Result monad."""
    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value

    def unwrap_err(self) -> NoReturn:
        raise ValueError(f"Called unwrap_err on Ok: {self.value!r}")

    def map(self, f: Callable[[T], U]) -> Result[U, E]:
        """Transform the success value."""
        return Ok(f(self.value))

    def map_err(self, f: Callable[[E], F]) -> Result[T, F]:
        """No-op for Ok variant."""
        return self  # type: ignore

    def and_then(self, f: Callable[[T], Result[U, E]]) -> Result[U, E]:
        """Chain operations that may fail."""
        return f(self.value)


@final
@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failure variant of Result monad."""
    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> NoReturn:
        """Raises because Err has no value to unwrap."""
        raise ValueError(f"Called unwrap on Err: {self.error}")

    def unwrap_or(self, default: T) -> T:
        return default

    def unwrap_err(self) -> E:
        return self.error

    def map(self, f: Callable[[T], U]) -> Result[U, E]:
        """No-op for Err variant."""
        return self  # type: ignore

    def map_err(self, f: Callable[[E], F]) -> Result[T, F]:
        """Transform the error."""
        return Err(f(self.error))

    def and_then(self, f: Callable[[T], Result[U, E]]) -> Result[U, E]:
        """No-op for Err variant."""
        return self  # type: ignore


Result = Union[Ok[T], Err[E]]
