"""Constraint Validators

The capability every constraint kind implements:

    is_valid(value, params, context) -> bool

Validators are pure functions of (value, params): no hidden state, safe to
call concurrently and repeatedly. Except for the presence-required kinds
(not_null, not_empty, not_blank) a None value is valid; required-ness is a
separate constraint. A value of a type the validator cannot evaluate raises
``TypeError``, which the engine reports as an evaluation fault.
"""
from __future__ import annotations

import math
import re
from abc import ABC, abstractmethod
from collections.abc import Sized
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from ipaddress import ip_address
from typing import TYPE_CHECKING, Any, Callable
from urllib.parse import urlsplit

if TYPE_CHECKING:
    from .context import ConstraintValidatorContext
    from .params import (
        BoundParams, CreditCardParams, DecimalBoundParams, DigitsParams,
        PatternParams, RangeParams, SizeParams, URLParams,
    )


class ConstraintValidator(ABC):
    """Base class for constraint validators."""

    @abstractmethod
    def is_valid(self, value: Any, params: Any, context: ConstraintValidatorContext) -> bool:
        """Return True if ``value`` satisfies the constraint."""

    def __call__(self, value: Any, params: Any, context: ConstraintValidatorContext) -> bool:
        return self.is_valid(value, params, context)


@dataclass(frozen=True, slots=True)
class FunctionValidator(ConstraintValidator):
    """Adapts a plain predicate ``fn(value, params, context) -> bool``."""
    fn: Callable[[Any, Any, Any], bool]

    def is_valid(self, value: Any, params: Any, context: ConstraintValidatorContext) -> bool:
        return bool(self.fn(value, params, context))


def _unsupported(value: Any, expected: str) -> TypeError:
    return TypeError(f"Expected {expected}, got {type(value).__name__}")


@lru_cache(maxsize=256)
def _compile(pattern: str, flags: int = 0) -> re.Pattern:
    return re.compile(pattern, flags)


# ============================================================================
# Presence Validators
# ============================================================================

@dataclass(frozen=True, slots=True)
class NotNullValidator(ConstraintValidator):
    def is_valid(self, value: Any, params: Any, context: ConstraintValidatorContext) -> bool:
        return value is not None


@dataclass(frozen=True, slots=True)
class NullValidator(ConstraintValidator):
    def is_valid(self, value: Any, params: Any, context: ConstraintValidatorContext) -> bool:
        return value is None


@dataclass(frozen=True, slots=True)
class NotEmptyValidator(ConstraintValidator):
    """Non-null with at least one character, item or entry."""

    def is_valid(self, value: Any, params: Any, context: ConstraintValidatorContext) -> bool:
        if value is None:
            return False
        if not isinstance(value, Sized):
            raise _unsupported(value, "string or collection")
        return len(value) > 0


@dataclass(frozen=True, slots=True)
class NotBlankValidator(ConstraintValidator):
    """Non-null string with at least one non-whitespace character."""

    def is_valid(self, value: Any, params: Any, context: ConstraintValidatorContext) -> bool:
        if value is None:
            return False
        if not isinstance(value, str):
            raise _unsupported(value, "string")
        return bool(value.strip())


# ============================================================================
# Size Validators
# ============================================================================

@dataclass(frozen=True, slots=True)
class SizeValidator(ConstraintValidator):
    """Length of a string, collection or mapping within [min, max]."""

    def is_valid(self, value: Any, params: SizeParams, context: ConstraintValidatorContext) -> bool:
        if value is None:
            return True
        if not isinstance(value, Sized):
            raise _unsupported(value, "string or collection")
        return params.min <= len(value) <= params.max


@dataclass(frozen=True, slots=True)
class LengthValidator(ConstraintValidator):
    """String length within [min, max]."""

    def is_valid(self, value: Any, params: SizeParams, context: ConstraintValidatorContext) -> bool:
        if value is None:
            return True
        if not isinstance(value, str):
            raise _unsupported(value, "string")
        return params.min <= len(value) <= params.max


# ============================================================================
# Numeric Validators
# ============================================================================

def _as_decimal(value: Any, *, allow_str: bool = False) -> Decimal | None:
    """Exact Decimal view of a number; None when it has no ordering (NaN, bad string)."""
    if isinstance(value, Decimal):
        return None if value.is_nan() else value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return None if math.isnan(value) else Decimal(str(value))
    if allow_str and isinstance(value, str):
        try:
            parsed = Decimal(value.strip())
        except InvalidOperation:
            return None
        return None if parsed.is_nan() else parsed
    raise _unsupported(value, "number")


@dataclass(frozen=True, slots=True)
class MinValidator(ConstraintValidator):
    def is_valid(self, value: Any, params: BoundParams, context: ConstraintValidatorContext) -> bool:
        if value is None:
            return True
        number = _as_decimal(value)
        return number is not None and number >= params.value


@dataclass(frozen=True, slots=True)
class MaxValidator(ConstraintValidator):
    def is_valid(self, value: Any, params: BoundParams, context: ConstraintValidatorContext) -> bool:
        if value is None:
            return True
        number = _as_decimal(value)
        return number is not None and number <= params.value


@dataclass(frozen=True, slots=True)
class RangeValidator(ConstraintValidator):
    def is_valid(self, value: Any, params: RangeParams, context: ConstraintValidatorContext) -> bool:
        if value is None:
            return True
        number = _as_decimal(value)
        return number is not None and params.min <= number <= params.max


@dataclass(frozen=True, slots=True)
class DecimalMinValidator(ConstraintValidator):
    def is_valid(self, value: Any, params: DecimalBoundParams, context: ConstraintValidatorContext) -> bool:
        if value is None:
            return True
        number = _as_decimal(value, allow_str=True)
        if number is None:
            return False
        return number >= params.value if params.inclusive else number > params.value


@dataclass(frozen=True, slots=True)
class DecimalMaxValidator(ConstraintValidator):
    def is_valid(self, value: Any, params: DecimalBoundParams, context: ConstraintValidatorContext) -> bool:
        if value is None:
            return True
        number = _as_decimal(value, allow_str=True)
        if number is None:
            return False
        return number <= params.value if params.inclusive else number < params.value


@dataclass(frozen=True, slots=True)
class SignValidator(ConstraintValidator):
    """Positive/negative checks. ``sign`` is +1 or -1; ``or_zero`` admits 0."""
    sign: int
    or_zero: bool = False

    def is_valid(self, value: Any, params: Any, context: ConstraintValidatorContext) -> bool:
        if value is None:
            return True
        number = _as_decimal(value)
        if number is None:
            return False
        if number == 0:
            return self.or_zero
        return (number > 0) == (self.sign > 0)


@dataclass(frozen=True, slots=True)
class DigitsValidator(ConstraintValidator):
    """At most ``integer`` integral digits and ``fraction`` fractional digits."""

    def is_valid(self, value: Any, params: DigitsParams, context: ConstraintValidatorContext) -> bool:
        if value is None:
            return True
        number = _as_decimal(value, allow_str=True)
        if number is None or not number.is_finite():
            return False
        _, digits, exponent = number.normalize().as_tuple()
        scale = -exponent
        integer_len = max(len(digits) - scale, 0)
        fraction_len = max(scale, 0)
        return integer_len <= params.integer and fraction_len <= params.fraction


# ============================================================================
# Format Validators
# ============================================================================

@dataclass(frozen=True, slots=True)
class PatternValidator(ConstraintValidator):
    """Whole string matches the regular expression."""

    def is_valid(self, value: Any, params: PatternParams, context: ConstraintValidatorContext) -> bool:
        if value is None:
            return True
        if not isinstance(value, str):
            raise _unsupported(value, "string")
        return _compile(params.regexp, params.compiled_flags).fullmatch(value) is not None


_ATOM = r"[a-z0-9!#$%&'*+/=?^_`{|}~\u0080-\uffff-]+"
_LOCAL_PART = re.compile(rf'(?:{_ATOM}(?:\.{_ATOM})*|"(?:[^"\\]|\\.)*")', re.IGNORECASE)
_DOMAIN_LABEL = re.compile(r"[a-z0-9\u0080-\uffff](?:[a-z0-9\u0080-\uffff-]{0,61}[a-z0-9\u0080-\uffff])?", re.IGNORECASE)
_MAX_LOCAL_PART = 64
_MAX_DOMAIN = 255


def _valid_domain(domain: str) -> bool:
    if domain.startswith("[") and domain.endswith("]"):
        literal = domain[1:-1]
        if literal.lower().startswith("ipv6:"):
            literal = literal[5:]
        try:
            ip_address(literal)
        except ValueError:
            return False
        return True
    if not domain or len(domain) > _MAX_DOMAIN:
        return False
    return all(_DOMAIN_LABEL.fullmatch(label) for label in domain.split("."))


@dataclass(frozen=True, slots=True)
class EmailValidator(ConstraintValidator):
    """Well-formed address; an empty string passes (use not_blank to require one)."""

    def is_valid(self, value: Any, params: PatternParams, context: ConstraintValidatorContext) -> bool:
        if value is None or value == "":
            return True
        if not isinstance(value, str):
            raise _unsupported(value, "string")
        local, sep, domain = value.rpartition("@")
        if not sep or not local or len(local) > _MAX_LOCAL_PART:
            return False
        if not _LOCAL_PART.fullmatch(local) or not _valid_domain(domain):
            return False
        return _compile(params.regexp, params.compiled_flags).fullmatch(value) is not None


@dataclass(frozen=True, slots=True)
class URLValidator(ConstraintValidator):
    """Absolute URL, optionally pinned to a protocol, host or port."""

    def is_valid(self, value: Any, params: URLParams, context: ConstraintValidatorContext) -> bool:
        if value is None or value == "":
            return True
        if not isinstance(value, str):
            raise _unsupported(value, "string")
        try:
            parts = urlsplit(value)
            port = parts.port
        except ValueError:
            return False
        if not parts.scheme or not parts.netloc:
            return False
        if params.protocol is not None and parts.scheme.lower() != params.protocol.lower():
            return False
        if params.host is not None and (parts.hostname or "").lower() != params.host.lower():
            return False
        return params.port is None or port == params.port


_UUID = re.compile(r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class UUIDValidator(ConstraintValidator):
    """Canonical 8-4-4-4-12 hex representation."""

    def is_valid(self, value: Any, params: Any, context: ConstraintValidatorContext) -> bool:
        if value is None:
            return True
        if not isinstance(value, str):
            raise _unsupported(value, "string")
        return _UUID.fullmatch(value) is not None


# ============================================================================
# Check-digit Validators
# ============================================================================

_DIGITS = re.compile(r"[0-9]+")


def _luhn(digits: str) -> bool:
    total = 0
    for position, char in enumerate(reversed(digits)):
        digit = int(char)
        if position % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return total % 10 == 0


@dataclass(frozen=True, slots=True)
class CreditCardNumberValidator(ConstraintValidator):
    """Luhn checksum over the digits of the number."""

    def is_valid(self, value: Any, params: CreditCardParams, context: ConstraintValidatorContext) -> bool:
        if value is None:
            return True
        if not isinstance(value, str):
            raise _unsupported(value, "string")
        digits = re.sub(r"[^0-9]", "", value) if params.ignore_non_digit_characters else value
        return _DIGITS.fullmatch(digits) is not None and _luhn(digits)


_CPF = re.compile(r"[0-9]{3}\.?[0-9]{3}\.?[0-9]{3}-?[0-9]{2}")


def _mod11_digit(digits: list[int], first_weight: int) -> int:
    total = sum(d * w for d, w in zip(digits, range(first_weight, 1, -1)))
    return (total * 10) % 11 % 10


@dataclass(frozen=True, slots=True)
class CPFValidator(ConstraintValidator):
    """Brazilian individual taxpayer number: two mod-11 check digits."""

    def is_valid(self, value: Any, params: Any, context: ConstraintValidatorContext) -> bool:
        if value is None:
            return True
        if not isinstance(value, str):
            raise _unsupported(value, "string")
        if not _CPF.fullmatch(value):
            return False
        digits = [int(c) for c in value if c.isdigit()]
        if len(set(digits)) == 1:
            return False
        return (_mod11_digit(digits[:9], 10) == digits[9]
                and _mod11_digit(digits[:10], 11) == digits[10])


_PESEL = re.compile(r"[0-9]{11}")
_PESEL_WEIGHTS = (1, 3, 7, 9, 1, 3, 7, 9, 1, 3)


@dataclass(frozen=True, slots=True)
class PESELValidator(ConstraintValidator):
    """Polish national identification number: weighted mod-10 check digit."""

    def is_valid(self, value: Any, params: Any, context: ConstraintValidatorContext) -> bool:
        if value is None:
            return True
        if not isinstance(value, str):
            raise _unsupported(value, "string")
        if not _PESEL.fullmatch(value):
            return False
        digits = [int(c) for c in value]
        total = sum(d * w for d, w in zip(digits, _PESEL_WEIGHTS))
        return (10 - total % 10) % 10 == digits[10]


# ============================================================================
# Temporal Validators
# ============================================================================

def _compare_to_now(value: Any, context: ConstraintValidatorContext) -> int:
    """-1, 0 or 1 as ``value`` is before, at or after the context's "now".

    Naive datetimes are read in the clock's zone; dates compare by calendar day.
    """
    now = context.now()
    if isinstance(value, datetime):
        reference = now if value.tzinfo is not None else now.replace(tzinfo=None)
    elif isinstance(value, date):
        reference = now.date()
    else:
        raise _unsupported(value, "date or datetime")
    return (value > reference) - (value < reference)


@dataclass(frozen=True, slots=True)
class TemporalValidator(ConstraintValidator):
    """``direction`` -1 for past, +1 for future; ``or_present`` admits now."""
    direction: int
    or_present: bool = False

    def is_valid(self, value: Any, params: Any, context: ConstraintValidatorContext) -> bool:
        if value is None:
            return True
        cmp = _compare_to_now(value, context)
        return cmp == self.direction or (self.or_present and cmp == 0)


# ============================================================================
# Boolean Validators
# ============================================================================

@dataclass(frozen=True, slots=True)
class AssertValidator(ConstraintValidator):
    expected: bool

    def is_valid(self, value: Any, params: Any, context: ConstraintValidatorContext) -> bool:
        if value is None:
            return True
        if not isinstance(value, bool):
            raise _unsupported(value, "bool")
        return value is self.expected
