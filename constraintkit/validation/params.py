"""Constraint Parameter Schemas

Every constraint kind declares its parameters as a frozen pydantic model.
Declarations are parsed against the schema once, when type metadata is
built, so malformed parameters (``size`` with ``min > max``, an invalid
regex, an unknown parameter name) surface as configuration errors before any
data is validated.
"""
from __future__ import annotations

import re
import sys
from decimal import Decimal
from functools import reduce
from typing import Any, Literal, Self

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, field_validator, model_validator

RegexFlag = Literal["IGNORECASE", "MULTILINE", "DOTALL", "VERBOSE", "ASCII"]


class ConstraintParams(BaseModel):
    """Base schema: every kind accepts an optional message template."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    message: str | None = None

    def attributes(self) -> dict[str, Any]:
        """Parameters available to message interpolation."""
        return self.model_dump(exclude={"message"})


class NoParams(ConstraintParams):
    """Kinds without parameters."""


class OpenParams(ConstraintParams):
    """Schema-less kinds: any parameter is accepted as declared."""
    model_config = ConfigDict(frozen=True, extra="allow")


# ============================================================================
# Size and Numeric
# ============================================================================

class SizeParams(ConstraintParams):
    min: StrictInt = Field(default=0, ge=0)
    max: StrictInt = Field(default=sys.maxsize, ge=0)

    @model_validator(mode="after")
    def _check_bounds(self) -> Self:
        if self.min > self.max:
            raise ValueError(f"min ({self.min}) cannot be greater than max ({self.max})")
        return self


class RangeParams(ConstraintParams):
    min: StrictInt = 0
    max: StrictInt = sys.maxsize

    @model_validator(mode="after")
    def _check_bounds(self) -> Self:
        if self.min > self.max:
            raise ValueError(f"min ({self.min}) cannot be greater than max ({self.max})")
        return self


class BoundParams(ConstraintParams):
    """``min`` / ``max``: integral bound."""
    value: StrictInt


class DecimalBoundParams(ConstraintParams):
    """``decimal_min`` / ``decimal_max``: decimal bound given as a string or number."""
    value: Decimal
    inclusive: StrictBool = True

    @field_validator("value")
    @classmethod
    def _finite(cls, v: Decimal) -> Decimal:
        if not v.is_finite():
            raise ValueError("bound must be a finite number")
        return v


class DigitsParams(ConstraintParams):
    integer: StrictInt = Field(ge=0)
    fraction: StrictInt = Field(ge=0)


# ============================================================================
# Formats
# ============================================================================

class PatternParams(ConstraintParams):
    regexp: str
    flags: tuple[RegexFlag, ...] = ()

    @property
    def compiled_flags(self) -> int:
        return reduce(lambda acc, name: acc | getattr(re, name), self.flags, 0)

    @model_validator(mode="after")
    def _check_regexp(self) -> Self:
        try:
            re.compile(self.regexp, self.compiled_flags)
        except re.error as exc:
            raise ValueError(f"invalid regular expression {self.regexp!r}: {exc}") from exc
        return self


class EmailParams(PatternParams):
    regexp: str = ".*"


class URLParams(ConstraintParams):
    protocol: str | None = None
    host: str | None = None
    port: StrictInt | None = Field(default=None, ge=0, le=65535)


class CreditCardParams(ConstraintParams):
    ignore_non_digit_characters: StrictBool = False
