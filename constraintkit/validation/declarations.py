"""Constraint Declarations

Constraints are attached to members with ``typing.Annotated``; cascading is
declared with explicit markers. Works on dataclasses, pydantic models and
plain annotated classes.

Usage:
    @dataclass
    class Employee:
        name: Annotated[str, NotBlank()]
        email: Annotated[str, NotNull(), Email()]
        age: Annotated[int, Min(18, message="Age should not be less than {value}"), Max(100)]
        salary: Annotated[Decimal, Positive(message="Salary must be positive")]
        address: Annotated[Address, Valid()]
        projects: Annotated[list[Project], ValidElements()]
        tags: Annotated[list[str], Each(NotBlank(), Size(max=20))]

Custom kinds use the generic form: ``Constraint("even")``.
"""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping, Sequence, TypeVar

T = TypeVar("T", bound=type)

CLASS_CONSTRAINTS_ATTR = "__class_constraints__"


@dataclass(frozen=True, slots=True)
class ConstraintDeclaration:
    """One constraint attached to one member.

    ``member`` is None until the introspector binds the declaration to the
    member it was found on. Parameters are read-only.
    """
    kind: str
    parameters: Mapping[str, Any]
    member: str | None = None

    def __hash__(self) -> int:
        return hash((self.kind, self.member))

    def bind(self, member: str) -> ConstraintDeclaration:
        return ConstraintDeclaration(self.kind, self.parameters, member)

    @property
    def message(self) -> str | None:
        return self.parameters.get("message")

    def __repr__(self) -> str:
        params = ", ".join(f"{k}={v!r}" for k, v in self.parameters.items())
        return f"{self.kind}({params})"


def Constraint(kind: str, **parameters: Any) -> ConstraintDeclaration:
    """Declare a constraint of any registered kind."""
    return ConstraintDeclaration(kind, MappingProxyType(dict(parameters)))


def _decl(kind: str, message: str | None, **parameters: Any) -> ConstraintDeclaration:
    """Build a declaration, leaving unset parameters to the kind's schema defaults."""
    params = {k: v for k, v in parameters.items() if v is not None}
    if message is not None:
        params["message"] = message
    return ConstraintDeclaration(kind, MappingProxyType(params))


# ============================================================================
# Cascade Markers
# ============================================================================

@dataclass(frozen=True, slots=True)
class Valid:
    """Cascade into the member's value and validate it as a bean."""


@dataclass(frozen=True, slots=True)
class ValidElements:
    """Cascade into every element of a sequence, set or mapping (values)."""


@dataclass(frozen=True, slots=True)
class Each:
    """Constraints applied to every element of a container member."""
    declarations: tuple[ConstraintDeclaration, ...]

    def __init__(self, *declarations: ConstraintDeclaration):
        object.__setattr__(self, "declarations", tuple(declarations))


def constrained(*declarations: ConstraintDeclaration):
    """Class decorator declaring class-level constraints.

    The validator receives the whole instance; violations are reported at the
    bean's own path.

        @constrained(Constraint("passwords_match", message="passwords must match"))
        @dataclass
        class SignUp: ...
    """
    def decorator(cls: T) -> T:
        own = tuple(cls.__dict__.get(CLASS_CONSTRAINTS_ATTR, ()))
        setattr(cls, CLASS_CONSTRAINTS_ATTR, own + tuple(declarations))
        return cls
    return decorator


# ============================================================================
# Presence
# ============================================================================

def NotNull(*, message: str | None = None) -> ConstraintDeclaration:
    return _decl("not_null", message)

def Null(*, message: str | None = None) -> ConstraintDeclaration:
    return _decl("null", message)

def NotEmpty(*, message: str | None = None) -> ConstraintDeclaration:
    return _decl("not_empty", message)

def NotBlank(*, message: str | None = None) -> ConstraintDeclaration:
    return _decl("not_blank", message)


# ============================================================================
# Size and Numeric Ranges
# ============================================================================

def Size(*, min: int | None = None, max: int | None = None, message: str | None = None) -> ConstraintDeclaration:
    return _decl("size", message, min=min, max=max)

def Length(*, min: int | None = None, max: int | None = None, message: str | None = None) -> ConstraintDeclaration:
    return _decl("length", message, min=min, max=max)

def Min(value: int, *, message: str | None = None) -> ConstraintDeclaration:
    return _decl("min", message, value=value)

def Max(value: int, *, message: str | None = None) -> ConstraintDeclaration:
    return _decl("max", message, value=value)

def Range(*, min: int | None = None, max: int | None = None, message: str | None = None) -> ConstraintDeclaration:
    return _decl("range", message, min=min, max=max)

def DecimalMin(value: str, *, inclusive: bool = True, message: str | None = None) -> ConstraintDeclaration:
    return _decl("decimal_min", message, value=value, inclusive=inclusive)

def DecimalMax(value: str, *, inclusive: bool = True, message: str | None = None) -> ConstraintDeclaration:
    return _decl("decimal_max", message, value=value, inclusive=inclusive)

def Positive(*, message: str | None = None) -> ConstraintDeclaration:
    return _decl("positive", message)

def PositiveOrZero(*, message: str | None = None) -> ConstraintDeclaration:
    return _decl("positive_or_zero", message)

def Negative(*, message: str | None = None) -> ConstraintDeclaration:
    return _decl("negative", message)

def NegativeOrZero(*, message: str | None = None) -> ConstraintDeclaration:
    return _decl("negative_or_zero", message)

def Digits(*, integer: int, fraction: int, message: str | None = None) -> ConstraintDeclaration:
    return _decl("digits", message, integer=integer, fraction=fraction)


# ============================================================================
# Formats
# ============================================================================

def Pattern(regexp: str, *, flags: Sequence[str] = (), message: str | None = None) -> ConstraintDeclaration:
    return _decl("pattern", message, regexp=regexp, flags=tuple(flags) or None)

def Email(*, regexp: str | None = None, flags: Sequence[str] = (), message: str | None = None) -> ConstraintDeclaration:
    return _decl("email", message, regexp=regexp, flags=tuple(flags) or None)

def URL(*, protocol: str | None = None, host: str | None = None, port: int | None = None,
        message: str | None = None) -> ConstraintDeclaration:
    return _decl("url", message, protocol=protocol, host=host, port=port)

def UUID(*, message: str | None = None) -> ConstraintDeclaration:
    return _decl("uuid", message)

def CreditCardNumber(*, ignore_non_digit_characters: bool = False,
                     message: str | None = None) -> ConstraintDeclaration:
    return _decl("credit_card_number", message, ignore_non_digit_characters=ignore_non_digit_characters)

def CPF(*, message: str | None = None) -> ConstraintDeclaration:
    return _decl("cpf", message)

def PESEL(*, message: str | None = None) -> ConstraintDeclaration:
    return _decl("pesel", message)


# ============================================================================
# Temporal and Boolean
# ============================================================================

def Past(*, message: str | None = None) -> ConstraintDeclaration:
    return _decl("past", message)

def PastOrPresent(*, message: str | None = None) -> ConstraintDeclaration:
    return _decl("past_or_present", message)

def Future(*, message: str | None = None) -> ConstraintDeclaration:
    return _decl("future", message)

def FutureOrPresent(*, message: str | None = None) -> ConstraintDeclaration:
    return _decl("future_or_present", message)

def AssertTrue(*, message: str | None = None) -> ConstraintDeclaration:
    return _decl("assert_true", message)

def AssertFalse(*, message: str | None = None) -> ConstraintDeclaration:
    return _decl("assert_false", message)
