"""Constraint Kind Registry

Maps a constraint kind name to its parameter schema, validator factory and
default message. Built-in and custom kinds go through the same interface;
an ``Engine`` freezes its registry at construction so no kind can be added
or replaced once validation may be running.

Usage:
    @constraint_kind("even", message="must be even", supported_types=(int,))
    def even(value, params, context):
        return value is None or value % 2 == 0

    engine = Engine([even])
"""
from __future__ import annotations

from collections.abc import Sized
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from functools import partial
from typing import Any, Callable, Iterable, Iterator, Mapping

from constraintkit.core.errors import duplicate_kind, registry_frozen, unknown_constraint
from constraintkit.core.logging import get_logger

from .params import (
    BoundParams, ConstraintParams, CreditCardParams, DecimalBoundParams, DigitsParams,
    EmailParams, NoParams, OpenParams, PatternParams, RangeParams, SizeParams, URLParams,
)
from .validators import (
    AssertValidator, ConstraintValidator, CPFValidator, CreditCardNumberValidator,
    DecimalMaxValidator, DecimalMinValidator, DigitsValidator, EmailValidator, FunctionValidator,
    LengthValidator, MaxValidator, MinValidator, NotBlankValidator, NotEmptyValidator,
    NotNullValidator, NullValidator, PatternValidator, PESELValidator, RangeValidator,
    SignValidator, SizeValidator, TemporalValidator, URLValidator, UUIDValidator,
)

log = get_logger(__name__)

MessageSource = str | Callable[[Any], str]


@dataclass(frozen=True, slots=True)
class ConstraintKind:
    """Everything the engine needs to evaluate one kind of constraint.

    - name: identifier used in declarations (e.g. "size")
    - validator_factory: zero-argument callable producing a ConstraintValidator
    - params: pydantic schema declarations are parsed against
    - default_message: template, or callable of the parsed params returning one
    - supported_types: declared member types the kind accepts (None = any)
    """
    name: str
    validator_factory: Callable[[], ConstraintValidator]
    params: type[ConstraintParams] = NoParams
    default_message: MessageSource = "invalid value"
    supported_types: tuple[type, ...] | None = None

    def parse(self, parameters: Mapping[str, Any]) -> ConstraintParams:
        """Validate declaration parameters; raises pydantic.ValidationError."""
        return self.params.model_validate(dict(parameters))

    def message_template(self, params: ConstraintParams) -> str:
        if params.message is not None:
            return params.message
        if callable(self.default_message):
            return self.default_message(params)
        return self.default_message

    def supports(self, declared: type) -> bool:
        return self.supported_types is None or issubclass(declared, self.supported_types)


class ConstraintRegistry:
    """Name -> ConstraintKind mapping, immutable once frozen."""

    def __init__(self, kinds: Iterable[ConstraintKind] = ()):
        self._kinds: dict[str, ConstraintKind] = {}
        self._frozen = False
        for kind in kinds:
            self.register(kind)

    @classmethod
    def with_builtins(cls) -> ConstraintRegistry:
        """Registry pre-populated with the built-in catalog."""
        return cls(BUILTIN_KINDS)

    def register(
        self,
        kind: ConstraintKind | str,
        params: type[ConstraintParams] | None = None,
        factory: Callable[[], ConstraintValidator] | None = None,
        *,
        message: MessageSource = "invalid value",
        supported_types: tuple[type, ...] | None = None,
    ) -> ConstraintKind:
        """Register a kind, either prebuilt or from (name, params, factory)."""
        if isinstance(kind, str):
            if factory is None:
                raise TypeError(f"register('{kind}') needs a validator factory")
            kind = ConstraintKind(kind, factory, params or OpenParams, message, supported_types)
        if self._frozen:
            raise registry_frozen(kind.name)
        if kind.name in self._kinds:
            raise duplicate_kind(kind.name)
        self._kinds[kind.name] = kind
        log.debug("kind_registered", kind=kind.name, params=kind.params.__name__)
        return kind

    def lookup(self, name: str) -> ConstraintKind:
        if (kind := self._kinds.get(name)) is None:
            raise unknown_constraint(name, available=sorted(self._kinds))
        return kind

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def names(self) -> list[str]:
        return list(self._kinds)

    def __contains__(self, name: object) -> bool:
        return name in self._kinds

    def __iter__(self) -> Iterator[ConstraintKind]:
        return iter(self._kinds.values())

    def __len__(self) -> int:
        return len(self._kinds)


def constraint_kind(
    name: str,
    *,
    params: type[ConstraintParams] = OpenParams,
    message: MessageSource = "invalid value",
    supported_types: tuple[type, ...] | None = None,
) -> Callable[[Callable[[Any, Any, Any], bool]], ConstraintKind]:
    """Decorator turning a predicate ``fn(value, params, context) -> bool`` into a ConstraintKind."""
    def decorator(fn: Callable[[Any, Any, Any], bool]) -> ConstraintKind:
        return ConstraintKind(name, partial(FunctionValidator, fn), params, message, supported_types)
    return decorator


# ============================================================================
# Built-in Catalog
# ============================================================================

_NUMBER = (int, float, Decimal)
_NUMBER_OR_STR = (int, float, Decimal, str)


def _kind(name: str, factory: Callable[[], ConstraintValidator], message: MessageSource,
          params: type[ConstraintParams] = NoParams, types: tuple[type, ...] | None = None) -> ConstraintKind:
    return ConstraintKind(name, factory, params, message, types)


BUILTIN_KINDS: tuple[ConstraintKind, ...] = (
    # Presence
    _kind("not_null", NotNullValidator, "must not be null"),
    _kind("null", NullValidator, "must be null"),
    _kind("not_empty", NotEmptyValidator, "must not be empty", types=(Sized,)),
    _kind("not_blank", NotBlankValidator, "must not be blank", types=(str,)),
    # Size
    _kind("size", SizeValidator, "size must be between {min} and {max}", SizeParams, (Sized,)),
    _kind("length", LengthValidator, "length must be between {min} and {max}", SizeParams, (str,)),
    # Numeric
    _kind("min", MinValidator, "must be greater than or equal to {value}", BoundParams, _NUMBER),
    _kind("max", MaxValidator, "must be less than or equal to {value}", BoundParams, _NUMBER),
    _kind("range", RangeValidator, "must be between {min} and {max}", RangeParams, _NUMBER),
    _kind("decimal_min", DecimalMinValidator,
          lambda p: "must be greater than or equal to {value}" if p.inclusive else "must be greater than {value}",
          DecimalBoundParams, _NUMBER_OR_STR),
    _kind("decimal_max", DecimalMaxValidator,
          lambda p: "must be less than or equal to {value}" if p.inclusive else "must be less than {value}",
          DecimalBoundParams, _NUMBER_OR_STR),
    _kind("positive", partial(SignValidator, 1), "must be greater than 0", types=_NUMBER),
    _kind("positive_or_zero", partial(SignValidator, 1, True), "must be greater than or equal to 0", types=_NUMBER),
    _kind("negative", partial(SignValidator, -1), "must be less than 0", types=_NUMBER),
    _kind("negative_or_zero", partial(SignValidator, -1, True), "must be less than or equal to 0", types=_NUMBER),
    _kind("digits", DigitsValidator,
          "numeric value out of bounds (<{integer} digits>.<{fraction} digits> expected)",
          DigitsParams, _NUMBER_OR_STR),
    # Formats
    _kind("pattern", PatternValidator, 'must match "{regexp}"', PatternParams, (str,)),
    _kind("email", EmailValidator, "must be a well-formed email address", EmailParams, (str,)),
    _kind("url", URLValidator, "must be a valid URL", URLParams, (str,)),
    _kind("uuid", UUIDValidator, "must be a valid UUID", types=(str,)),
    _kind("credit_card_number", CreditCardNumberValidator, "invalid credit card number", CreditCardParams, (str,)),
    _kind("cpf", CPFValidator, "invalid Brazilian individual taxpayer registry number (CPF)", types=(str,)),
    _kind("pesel", PESELValidator, "invalid Polish National Identification Number (PESEL)", types=(str,)),
    # Temporal
    _kind("past", partial(TemporalValidator, -1), "must be a past date", types=(date,)),
    _kind("past_or_present", partial(TemporalValidator, -1, True),
          "must be a date in the past or in the present", types=(date,)),
    _kind("future", partial(TemporalValidator, 1), "must be a future date", types=(date,)),
    _kind("future_or_present", partial(TemporalValidator, 1, True),
          "must be a date in the present or in the future", types=(date,)),
    # Boolean
    _kind("assert_true", partial(AssertValidator, True), "must be true", types=(bool,)),
    _kind("assert_false", partial(AssertValidator, False), "must be false", types=(bool,)),
)
