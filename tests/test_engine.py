"""Graph walker behaviour: ordering, paths, cascading, cycles and fault handling."""
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from decimal import Decimal
from typing import Annotated, Any, ClassVar

import pytest
from pydantic import BaseModel, Field

from constraintkit.core.errors import (
    ConfigurationError,
    ConstraintEvaluationError,
    ErrorCode,
    EvaluationError,
    MemberAccessError,
)
from constraintkit.validation import (
    Constraint,
    ConstraintParams,
    ConstraintViolationError,
    Each,
    Email,
    Engine,
    Length,
    Max,
    Min,
    NotBlank,
    NotNull,
    Positive,
    Size,
    Valid,
    ValidElements,
    ValidationMode,
    constrained,
    constraint_kind,
)

from conftest import fixed_clock


# ------------------------------------------------------------------
# Model fixtures
# ------------------------------------------------------------------

@dataclass
class Employee:
    name: Annotated[str, NotBlank()]
    email: Annotated[str, NotNull(), Email()]
    age: Annotated[int, Min(18, message="Age should not be less than {value}"),
                   Max(100, message="Age should not be greater than {value}")]
    salary: Annotated[Decimal, Positive(message="Salary must be positive")]


@dataclass
class Address:
    street: Annotated[str, NotBlank()]
    city: Annotated[str, NotBlank()]


@dataclass
class Customer:
    name: Annotated[str, NotBlank()]
    address: Annotated[Address | None, Valid()] = None


@dataclass
class Item:
    sku: Annotated[str, Size(min=2)]


@dataclass
class Order:
    items: Annotated[list[Item], ValidElements()]


@dataclass
class Score:
    value: Annotated[int, Min(0), Max(100)]


@dataclass
class ReportCard:
    scores: Annotated[dict[str, Score], ValidElements()]


@dataclass
class Tagged:
    tags: Annotated[list[str], Each(NotBlank(), Size(max=5))]


@dataclass
class Coupon:
    code: Annotated[str | None, NotNull(), Size(min=2, max=10)]


@dataclass(eq=False)
class Node:
    name: Annotated[str, NotBlank()]
    next: Annotated["Node | None", Valid()] = None


@dataclass
class Shipment:
    origin: Annotated[Address, Valid()]
    destination: Annotated[Address, Valid()]


@dataclass
class Manager(Employee):
    reports: Annotated[list[Employee], ValidElements()] = None


class Profile(BaseModel):
    handle: Annotated[str, NotBlank(), Length(min=3, max=20)]
    bio: str = ""


class Member(BaseModel):
    profile: Annotated[Profile, Valid()]
    nicknames: Annotated[list[str], Each(NotBlank())] = Field(default_factory=list)


class Account:
    owner: Annotated[str, NotBlank()]
    limit: ClassVar[int] = 10

    def __init__(self, owner: str):
        self.owner = owner


class Unset:
    value: Annotated[int, Min(0)]


@dataclass
class Loose:
    anything: Annotated[Any, Size(max=3)]


@dataclass
class Bag:
    items: Annotated[Any, ValidElements(), Each(NotNull())]


def _employee(**overrides) -> Employee:
    data = {"name": "John", "email": "john.doe@example.com", "age": 30, "salary": Decimal("1000.00")}
    data.update(overrides)
    return Employee(**data)


# ------------------------------------------------------------------
# Core properties
# ------------------------------------------------------------------

class TestCoreProperties:
    def test_end_to_end_employee(self, engine):
        """Two failing members render their templates in declaration order."""
        result = engine.validate(_employee(age=15, salary=Decimal("-1000.00")))

        assert len(result) == 2
        assert result.messages() == ["Age should not be less than 18", "Salary must be positive"]
        assert result.to_payload() == {
            "status": "BAD_REQUEST",
            "errors": ["Age should not be less than 18", "Salary must be positive"],
        }

    def test_valid_instance_has_no_violations(self, engine):
        result = engine.validate(_employee())
        assert result.is_valid
        assert len(result) == 0

    def test_null_root_is_empty(self, engine):
        assert engine.validate(None).is_valid

    def test_violation_count_matches_failing_constraints(self, engine):
        """Each failing constraint on a member contributes exactly one violation."""
        result = engine.validate(_employee(name=" ", age=101))

        assert [v.constraint_kind for v in result] == ["not_blank", "max"]
        assert [v.field_path for v in result] == ["name", "age"]

    def test_not_null_and_size_yield_single_violation(self, engine):
        result = engine.validate(Coupon(code="a"))

        assert len(result) == 1
        assert result[0].constraint_kind == "size"
        assert result[0].message == "size must be between 2 and 10"

    def test_idempotent(self, engine):
        employee = _employee(age=15, salary=Decimal("-1"))
        assert engine.validate(employee) == engine.validate(employee)

    def test_violation_carries_details(self, engine):
        violation = engine.validate(_employee(age=15))[0]

        assert violation.invalid_value == 15
        assert violation.root_type is Employee
        assert violation.message_template == "Age should not be less than {value}"
        assert violation.attributes["value"] == 18


# ------------------------------------------------------------------
# Cascading and paths
# ------------------------------------------------------------------

class TestCascading:
    def test_nested_path(self, engine):
        result = engine.validate(Customer("Ann", Address("Main St", "  ")))

        assert len(result) == 1
        assert result[0].path.as_tuple() == ("address", "city")
        assert result[0].field_path == "address.city"

    def test_none_cascade_is_skipped(self, engine):
        assert engine.validate(Customer("Ann")).is_valid

    def test_sequence_elements(self, engine):
        result = engine.validate(Order([Item("ab"), Item("x"), Item("cd")]))

        assert len(result) == 1
        assert result[0].path.as_tuple() == ("items", 1, "sku")
        assert str(result[0].path) == "items[1].sku"

    def test_mapping_elements(self, engine):
        result = engine.validate(ReportCard({"math": Score(90), "art": Score(120)}))

        assert len(result) == 1
        assert result[0].path.as_tuple() == ("scores", "art", "value")
        assert result[0].field_path == "scores[art].value"

    def test_element_constraints(self, engine):
        result = engine.validate(Tagged(["ok", " ", "toolong"]))

        assert [(v.path.as_tuple(), v.constraint_kind) for v in result] == [
            (("tags", 1), "not_blank"),
            (("tags", 2), "size"),
        ]

    def test_depth_first_order(self, engine):
        """Nested violations appear where their member is declared."""
        shipment = Shipment(Address("", "Paris"), Address("Main St", ""))
        result = engine.validate(shipment)

        assert [v.field_path for v in result] == ["origin.street", "destination.city"]

    def test_inherited_members_come_first(self, engine):
        manager = Manager(name="", email="m@example.com", age=40, salary=Decimal(1),
                          reports=[_employee(age=12)])
        result = engine.validate(manager)

        assert [v.field_path for v in result] == ["name", "reports[0].age"]


class TestCycles:
    def test_self_reference_terminates(self, engine):
        node = Node("")
        node.next = node

        result = engine.validate(node)

        assert [v.field_path for v in result] == ["name"]

    def test_two_node_cycle(self, engine):
        a, b = Node("a"), Node("")
        a.next, b.next = b, a

        result = engine.validate(a)

        assert [v.field_path for v in result] == ["next.name"]

    def test_shared_instance_validated_once(self, engine):
        """An instance reachable twice is reported at its first path only."""
        shared = Address("Main St", "")
        result = engine.validate(Shipment(shared, shared))

        assert [v.field_path for v in result] == ["origin.city"]

    def test_deep_chain_beyond_recursion_limit(self, engine):
        head = tail = Node("n0")
        for i in range(1, 3000):
            tail.next = Node(f"n{i}")
            tail = tail.next
        tail.name = ""

        result = engine.validate(head)

        assert len(result) == 1
        assert len(result[0].path) == 3000
        assert result[0].path.as_tuple()[-2:] == ("next", "name")


# ------------------------------------------------------------------
# Discovery sources
# ------------------------------------------------------------------

class TestModelKinds:
    def test_pydantic_models(self, engine):
        member = Member(profile=Profile(handle="ab"), nicknames=["ok", ""])
        result = engine.validate(member)

        assert [(v.field_path, v.constraint_kind) for v in result] == [
            ("profile.handle", "length"),
            ("nicknames[1]", "not_blank"),
        ]

    def test_plain_annotated_class(self, engine):
        result = engine.validate(Account(" "))

        assert [v.field_path for v in result] == ["owner"]
        assert [m.name for m in engine.metadata_for(Account).members] == ["owner"]

    def test_unconstrained_type(self, engine):
        assert engine.validate(object()).is_valid
        assert not engine.metadata_for(int).is_constrained


# ------------------------------------------------------------------
# Accumulation modes and partial validation
# ------------------------------------------------------------------

class TestModes:
    def test_fail_fast_stops_at_first(self, fail_fast_engine):
        result = fail_fast_engine.validate(_employee(age=15, salary=Decimal("-1")))

        assert fail_fast_engine.mode is ValidationMode.FAIL_FAST
        assert result.messages() == ["Age should not be less than 18"]

    def test_fail_fast_stops_inside_nested(self, fail_fast_engine):
        shipment = Shipment(Address("", ""), Address("", ""))
        result = fail_fast_engine.validate(shipment)

        assert [v.field_path for v in result] == ["origin.street"]

    def test_fail_fast_from_settings(self, monkeypatch):
        monkeypatch.setenv("CONSTRAINTKIT_FAIL_FAST", "true")

        assert Engine(clock=fixed_clock).mode is ValidationMode.FAIL_FAST

    def test_validate_property(self, engine):
        result = engine.validate_property(_employee(age=15, name=""), "age")
        assert result.messages() == ["Age should not be less than 18"]

    def test_validate_property_does_not_cascade(self, engine):
        customer = Customer("Ann", Address("", ""))
        assert engine.validate_property(customer, "address").is_valid

    def test_validate_value(self, engine):
        result = engine.validate_value(Employee, "age", 150)

        assert result.messages() == ["Age should not be greater than 100"]
        assert result.root_type is Employee

    def test_validate_unknown_member(self, engine):
        with pytest.raises(ConfigurationError, match="no constrained member"):
            engine.validate_value(Employee, "nickname", "x")

    def test_assert_valid(self, engine):
        employee = _employee()
        assert engine.assert_valid(employee) is employee

        with pytest.raises(ConstraintViolationError) as exc_info:
            engine.assert_valid(_employee(age=15, salary=Decimal("-1")))

        assert exc_info.value.code is ErrorCode.E2005_CONSTRAINT_VIOLATION
        assert len(exc_info.value.violations) == 2


# ------------------------------------------------------------------
# Custom kinds
# ------------------------------------------------------------------

class DivisibleParams(ConstraintParams):
    divisor: int = Field(gt=0)


@constraint_kind("divisible_by", params=DivisibleParams,
                 message="must be divisible by {divisor}", supported_types=(int,))
def divisible_by(value, params, context):
    return value is None or value % params.divisor == 0


@constraint_kind("passwords_match", message="passwords must match")
def passwords_match(value, params, context):
    return value.password == value.confirm


@constraint_kind("explodes")
def explodes(value, params, context):
    raise RuntimeError("boom")


@dataclass
class Batch:
    size: Annotated[int, Constraint("divisible_by", divisor=3)]


@constrained(Constraint("passwords_match"))
@dataclass
class SignUpForm:
    password: Annotated[str, NotBlank()]
    confirm: str


@dataclass
class Fragile:
    value: Annotated[int, Constraint("explodes")]


class TestCustomKinds:
    def test_custom_kind_with_params(self):
        engine = Engine([divisible_by], clock=fixed_clock)

        result = engine.validate(Batch(4))

        assert result.messages() == ["must be divisible by 3"]
        assert engine.validate(Batch(9)).is_valid

    def test_class_level_constraint(self):
        engine = Engine([passwords_match], clock=fixed_clock)
        form = SignUpForm("secret", "other")

        result = engine.validate(form)

        assert result.messages() == ["passwords must match"]
        assert result[0].field_path == ""
        assert result[0].invalid_value is form

    def test_class_constraints_precede_members(self):
        engine = Engine([passwords_match], clock=fixed_clock)
        result = engine.validate(SignUpForm("", "x"))

        assert [v.constraint_kind for v in result] == ["passwords_match", "not_blank"]


# ------------------------------------------------------------------
# Evaluation faults
# ------------------------------------------------------------------

class TestEvaluationFaults:
    def test_validator_exception_is_not_a_violation(self):
        engine = Engine([explodes], clock=fixed_clock)

        with pytest.raises(ConstraintEvaluationError) as exc_info:
            engine.validate(Fragile(1))

        assert exc_info.value.code is ErrorCode.E8001_VALIDATOR_FAILED
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert exc_info.value.error.metadata["path"] == "value"

    def test_builtin_type_mismatch_at_runtime(self, engine):
        with pytest.raises(ConstraintEvaluationError, match="size"):
            engine.validate(Loose(5))

    def test_member_access_failure(self, engine):
        with pytest.raises(MemberAccessError) as exc_info:
            engine.validate(Unset())

        assert isinstance(exc_info.value, EvaluationError)
        assert exc_info.value.code is ErrorCode.E8002_MEMBER_ACCESS_FAILED
        assert isinstance(exc_info.value.__cause__, AttributeError)

    @pytest.mark.parametrize("items", [42, "abc"])
    def test_elements_of_a_scalar(self, engine, items):
        with pytest.raises(MemberAccessError) as exc_info:
            engine.validate(Bag(items))

        assert exc_info.value.code is ErrorCode.E8003_NOT_A_CONTAINER
        assert exc_info.value.error.metadata["path"] == "items"
        assert isinstance(exc_info.value.__cause__, TypeError)

    def test_elements_of_an_untyped_container(self, engine):
        assert engine.validate(Bag({"a": 1})).is_valid
        assert [str(v.path) for v in engine.validate(Bag([1, None]))] == ["items[1]"]


# ------------------------------------------------------------------
# Concurrency
# ------------------------------------------------------------------

class TestConcurrency:
    def test_shared_engine_across_threads(self, engine):
        employees = [_employee(age=10 + i % 20, salary=Decimal(i % 3 - 1)) for i in range(200)]
        expected = [engine.validate(e) for e in employees]

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(engine.validate, employees))

        assert results == expected
