"""Declarative Constraint Validation

Constraints are declared on members with ``typing.Annotated``; the engine
walks an object graph, evaluates every declared constraint and returns an
ordered set of violations, each with a typed path and a rendered message.

Key Features:
- Registry of constraint kinds (built-in catalog + custom kinds)
- Parameters checked by pydantic schemas when metadata is built
- Cascading into nested beans and container elements, cycle-safe
- Fail-fast or collect-all accumulation
- Result-returning and FastAPI boundary helpers

Usage:
    from constraintkit.validation import Engine, Min, NotBlank, Positive, Valid

    @dataclass
    class Employee:
        name: Annotated[str, NotBlank()]
        age: Annotated[int, Min(18, message="Age should not be less than {value}")]
        salary: Annotated[Decimal, Positive(message="Salary must be positive")]
        address: Annotated[Address, Valid()]

    engine = Engine()
    violations = engine.validate(employee)
    violations.to_payload()
    # {"status": "BAD_REQUEST", "errors": ["Age should not be less than 18", ...]}
"""

# Paths and violations
from .path import (
    PropertyPath,
    PathNode,
    PropertyNode,
    IndexNode,
    KeyNode,
    ElementNode,
)
from .violations import (
    Violation,
    ViolationSet,
    ConstraintViolationError,
)

# Messages
from .interpolation import MessageInterpolator, render

# Declarations
from .declarations import (
    ConstraintDeclaration,
    Constraint,
    Valid,
    ValidElements,
    Each,
    constrained,
    # Presence
    NotNull,
    Null,
    NotEmpty,
    NotBlank,
    # Size and numeric
    Size,
    Length,
    Min,
    Max,
    Range,
    DecimalMin,
    DecimalMax,
    Positive,
    PositiveOrZero,
    Negative,
    NegativeOrZero,
    Digits,
    # Formats
    Pattern,
    Email,
    URL,
    UUID,
    CreditCardNumber,
    CPF,
    PESEL,
    # Temporal and boolean
    Past,
    PastOrPresent,
    Future,
    FutureOrPresent,
    AssertTrue,
    AssertFalse,
)

# Kinds and validators
from .params import ConstraintParams, NoParams, OpenParams
from .validators import ConstraintValidator, FunctionValidator
from .registry import (
    ConstraintKind,
    ConstraintRegistry,
    BUILTIN_KINDS,
    constraint_kind,
)

# Metadata and traversal
from .introspection import (
    BoundConstraint,
    MemberMetadata,
    TypeMetadata,
    Introspector,
)
from .context import (
    ValidationMode,
    ValidationContext,
    ConstraintValidatorContext,
)
from .engine import Engine, system_clock

# Boundaries
from .boundaries import (
    check,
    check_batch,
    ValidatedBody,
    validated_body,
)

__all__ = [
    # Paths and violations
    "PropertyPath",
    "PathNode",
    "PropertyNode",
    "IndexNode",
    "KeyNode",
    "ElementNode",
    "Violation",
    "ViolationSet",
    "ConstraintViolationError",
    # Messages
    "MessageInterpolator",
    "render",
    # Declarations
    "ConstraintDeclaration",
    "Constraint",
    "Valid",
    "ValidElements",
    "Each",
    "constrained",
    "NotNull",
    "Null",
    "NotEmpty",
    "NotBlank",
    "Size",
    "Length",
    "Min",
    "Max",
    "Range",
    "DecimalMin",
    "DecimalMax",
    "Positive",
    "PositiveOrZero",
    "Negative",
    "NegativeOrZero",
    "Digits",
    "Pattern",
    "Email",
    "URL",
    "UUID",
    "CreditCardNumber",
    "CPF",
    "PESEL",
    "Past",
    "PastOrPresent",
    "Future",
    "FutureOrPresent",
    "AssertTrue",
    "AssertFalse",
    # Kinds and validators
    "ConstraintParams",
    "NoParams",
    "OpenParams",
    "ConstraintValidator",
    "FunctionValidator",
    "ConstraintKind",
    "ConstraintRegistry",
    "BUILTIN_KINDS",
    "constraint_kind",
    # Metadata and traversal
    "BoundConstraint",
    "MemberMetadata",
    "TypeMetadata",
    "Introspector",
    "ValidationMode",
    "ValidationContext",
    "ConstraintValidatorContext",
    "Engine",
    "system_clock",
    # Boundaries
    "check",
    "check_batch",
    "ValidatedBody",
    "validated_body",
]
