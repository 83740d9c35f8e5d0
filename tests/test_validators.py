"""Built-in validator predicates."""
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from constraintkit.validation import ConstraintRegistry, ConstraintValidatorContext, PropertyPath

from conftest import fixed_clock

REGISTRY = ConstraintRegistry.with_builtins()
CONTEXT = ConstraintValidatorContext(root=None, root_type=None, path=PropertyPath.root(), clock=fixed_clock)


def _valid(kind: str, value, /, **params) -> bool:
    """Run one built-in kind against a value with the given parameters."""
    constraint_kind = REGISTRY.lookup(kind)
    return constraint_kind.validator_factory().is_valid(value, constraint_kind.parse(params), CONTEXT)


# ------------------------------------------------------------------
# Presence
# ------------------------------------------------------------------

@pytest.mark.parametrize("kind, value, expected", [
    ("not_null", None, False),
    ("not_null", "", True),
    ("null", None, True),
    ("null", 0, False),
    ("not_empty", None, False),
    ("not_empty", "", False),
    ("not_empty", [], False),
    ("not_empty", {"k": 1}, True),
    ("not_blank", None, False),
    ("not_blank", " \t ", False),
    ("not_blank", " a ", True),
])
def test_presence(kind, value, expected):
    assert _valid(kind, value) is expected


# ------------------------------------------------------------------
# Size and numeric
# ------------------------------------------------------------------

def test_size():
    assert _valid("size", "ab", min=2, max=3)
    assert not _valid("size", "abcd", min=2, max=3)
    assert not _valid("size", [1], min=2)
    assert _valid("size", None, min=2)
    assert _valid("length", "abc", max=3)
    assert not _valid("length", "abcd", max=3)


def test_min_max_range():
    assert _valid("min", 18, value=18)
    assert not _valid("min", 17.9, value=18)
    assert _valid("min", Decimal("18.0"), value=18)
    assert not _valid("min", float("nan"), value=18)
    assert _valid("min", None, value=18)
    assert not _valid("max", 101, value=100)
    assert _valid("range", 3, min=1, max=5)
    assert not _valid("range", 0, min=1, max=5)


def test_decimal_bounds():
    assert _valid("decimal_min", "0.5", value="0.5")
    assert _valid("decimal_min", Decimal("0.50"), value="0.5")
    assert not _valid("decimal_min", 0.4, value="0.5")
    assert not _valid("decimal_min", 0.5, value="0.5", inclusive=False)
    assert not _valid("decimal_min", "abc", value="0.5")
    assert not _valid("decimal_max", 10, value="10", inclusive=False)
    assert _valid("decimal_max", 9.99, value="10", inclusive=False)


@pytest.mark.parametrize("kind, value, expected", [
    ("positive", 1, True),
    ("positive", 0, False),
    ("positive", Decimal("-1000.00"), False),
    ("positive_or_zero", 0, True),
    ("negative", -0.5, True),
    ("negative", 0, False),
    ("negative_or_zero", 0, True),
    ("negative_or_zero", 1, False),
])
def test_sign(kind, value, expected):
    assert _valid(kind, value) is expected


@pytest.mark.parametrize("value, expected", [
    (Decimal("123.45"), True),
    (100, True),
    ("12.345", False),
    (Decimal("1234.5"), False),
])
def test_digits(value, expected):
    assert _valid("digits", value, integer=3, fraction=2) is expected


# ------------------------------------------------------------------
# Formats
# ------------------------------------------------------------------

def test_pattern_is_full_match():
    assert _valid("pattern", "abc", regexp="[a-z]+")
    assert not _valid("pattern", "abc1", regexp="[a-z]+")
    assert _valid("pattern", "ABC", regexp="[a-z]+", flags=["IGNORECASE"])


@pytest.mark.parametrize("value, expected", [
    ("john.doe@example.com", True),
    ("", True),
    ("a@b", True),
    ("user@[192.168.0.1]", True),
    ("user@[IPv6:::1]", True),
    ('"quoted local"@example.com', True),
    ("no-at-sign", False),
    ("a@@b", False),
    ("user@-bad.com", False),
    ("user@exa mple.com", False),
])
def test_email(value, expected):
    assert _valid("email", value) is expected


def test_email_with_extra_regexp():
    assert _valid("email", "x@example.com", regexp=r".*@example\.com")
    assert not _valid("email", "x@other.com", regexp=r".*@example\.com")


def test_url():
    assert _valid("url", "https://example.com/path")
    assert _valid("url", "")
    assert not _valid("url", "example.com")
    assert not _valid("url", "http://example.com", protocol="https")
    assert _valid("url", "http://h:8080/", port=8080)
    assert not _valid("url", "http://h:99999")


def test_uuid():
    assert _valid("uuid", "123e4567-e89b-12d3-a456-426614174000")
    assert not _valid("uuid", "123e4567e89b12d3a456426614174000")


# ------------------------------------------------------------------
# Check digits
# ------------------------------------------------------------------

def test_credit_card_number():
    assert _valid("credit_card_number", "4111111111111111")
    assert not _valid("credit_card_number", "4111111111111112")
    assert not _valid("credit_card_number", "4111-1111-1111-1111")
    assert _valid("credit_card_number", "4111-1111-1111-1111", ignore_non_digit_characters=True)


@pytest.mark.parametrize("value, expected", [
    ("529.982.247-25", True),
    ("52998224725", True),
    ("529.982.247-26", False),
    ("111.111.111-11", False),
    ("5299822472", False),
])
def test_cpf(value, expected):
    assert _valid("cpf", value) is expected


def test_pesel():
    assert _valid("pesel", "44051401359")
    assert not _valid("pesel", "44051401358")
    assert not _valid("pesel", "4405140135")


# ------------------------------------------------------------------
# Temporal and boolean
# ------------------------------------------------------------------

@pytest.mark.parametrize("kind, value, expected", [
    ("past", date(2024, 5, 31), True),
    ("past", date(2024, 6, 1), False),
    ("past_or_present", date(2024, 6, 1), True),
    ("past", datetime(2024, 6, 1, 11, 59, tzinfo=timezone.utc), True),
    ("future", datetime(2024, 6, 1, 12, 1), True),
    ("future", date(2024, 6, 2), True),
    ("future", date(2024, 6, 1), False),
    ("future_or_present", date(2024, 6, 1), True),
])
def test_temporal(kind, value, expected):
    assert _valid(kind, value) is expected


def test_assert_true_false():
    assert _valid("assert_true", True)
    assert not _valid("assert_true", False)
    assert _valid("assert_true", None)
    assert _valid("assert_false", False)


# ------------------------------------------------------------------
# Unsupported values
# ------------------------------------------------------------------

@pytest.mark.parametrize("kind, value, params", [
    ("not_blank", 5, {}),
    ("size", 5, {"max": 3}),
    ("past", "2024-01-01", {}),
    ("min", "18", {"value": 1}),
    ("assert_true", 1, {}),
])
def test_unsupported_value_type_raises(kind, value, params):
    with pytest.raises(TypeError):
        _valid(kind, value, **params)
