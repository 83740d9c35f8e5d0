"""Violation Model

Structured results of a validation run. A ``Violation`` is one failed
constraint at one path; a ``ViolationSet`` is the ordered, immutable outcome
of a whole ``validate`` call (valid iff empty).

Wire format (the only one the core guarantees):
{
    "status": "BAD_REQUEST",
    "errors": ["Age should not be less than 18", "Salary must be positive"]
}

Detailed format (``ViolationSet.to_dict``):
{
    "error": {
        "type": "constraint_violation",
        "message": "Validation failed",
        "error_count": 1,
        "errors": [
            {
                "field": "addresses[0].city",
                "constraint": "not_blank",
                "value": "",
                "message": "must not be blank"
            }
        ]
    }
}
"""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterator, Mapping

from constraintkit.core.errors import AppError, ConstraintKitError, ErrorCode, ErrorContext

from .path import PropertyNode, PropertyPath

BAD_REQUEST = "BAD_REQUEST"


@dataclass(frozen=True, slots=True)
class Violation:
    """A single failed constraint.

    - path: typed path from the validated root to the failing value
    - message: rendered, human-readable message
    - invalid_value: the value that failed (the bean itself for class-level constraints)
    - constraint_kind: registered kind name (e.g. "size")
    - root_type: type of the object ``validate`` was called with
    - message_template: template before interpolation
    - attributes: constraint parameters used for interpolation
    """
    path: PropertyPath
    message: str
    invalid_value: Any
    constraint_kind: str
    root_type: type | None = None
    message_template: str = ""
    attributes: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def field_path(self) -> str:
        return str(self.path)

    @property
    def member(self) -> str | None:
        """Name of the innermost member on the path, if any."""
        for node in reversed(self.path.nodes):
            if isinstance(node, PropertyNode):
                return node.name
        return None

    def redact_if_sensitive(self, sensitive_fields: frozenset[str] | set[str] | None = None) -> Violation:
        """Redact invalid value if any member on the path is sensitive."""
        if not sensitive_fields:
            return self
        names = {n.name for n in self.path if isinstance(n, PropertyNode)}
        if names & set(sensitive_fields):
            return Violation(path=self.path, message=self.message, invalid_value="[REDACTED]",
                constraint_kind=self.constraint_kind, root_type=self.root_type,
                message_template=self.message_template, attributes=self.attributes)
        return self

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for API responses."""
        result = {"field": self.field_path, "constraint": self.constraint_kind, "message": self.message}
        if self.invalid_value is not None:
            result["value"] = self.invalid_value if _is_plain(self.invalid_value) else repr(self.invalid_value)
        return result

    def __str__(self) -> str:
        return f"{self.field_path}: {self.message}" if self.path else self.message


def _is_plain(value: Any) -> bool:
    return isinstance(value, (str, int, float, bool))


@dataclass(frozen=True, slots=True)
class ViolationSet:
    """Ordered, immutable result of one ``validate`` call.

    Order is traversal order: declaration order within a member, member
    declaration order within a bean, depth-first across the graph.
    """
    violations: tuple[Violation, ...] = ()
    root_type: type | None = None

    @property
    def is_valid(self) -> bool:
        return not self.violations

    def __iter__(self) -> Iterator[Violation]:
        return iter(self.violations)

    def __len__(self) -> int:
        return len(self.violations)

    def __getitem__(self, index: int) -> Violation:
        return self.violations[index]

    def messages(self) -> list[str]:
        return [v.message for v in self.violations]

    def by_path(self) -> dict[str, list[Violation]]:
        """Group violations by rendered path."""
        result: dict[str, list[Violation]] = {}
        for v in self.violations:
            result.setdefault(v.field_path, []).append(v)
        return result

    def for_path(self, field_path: str) -> list[Violation]:
        return [v for v in self.violations if v.field_path == field_path]

    def to_payload(self) -> dict[str, Any]:
        """Response body for a 400-class reply."""
        return {"status": BAD_REQUEST, "errors": self.messages()}

    def to_dict(self, *, sensitive_fields: frozenset[str] | None = None) -> dict[str, Any]:
        """Detailed serialization, redacting sensitive members when asked."""
        details = [v.redact_if_sensitive(sensitive_fields) for v in self.violations]
        return {"error": {"type": "constraint_violation", "message": "Validation failed",
            "error_count": len(details), "errors": [d.to_dict() for d in details]}}

    def raise_if_invalid(self) -> None:
        if self.violations:
            raise ConstraintViolationError(self)


class ConstraintViolationError(ConstraintKitError):
    """Raised by ``Engine.assert_valid`` and boundary helpers when data is invalid.

    Carries the complete ViolationSet; this is expected, data-dependent
    failure and maps to a 400-class response.
    """

    def __init__(self, violations: ViolationSet, message: str = "Validation failed"):
        self.violations = violations
        super().__init__(AppError(
            code=ErrorCode.E2005_CONSTRAINT_VIOLATION,
            message=message,
            context=ErrorContext(origin="validation"),
            metadata={"error_count": len(violations), "errors": [v.to_dict() for v in violations]},
        ))

    def __str__(self) -> str:
        if len(self.violations) == 1:
            return str(self.violations[0])
        return f"{self.error.message} ({len(self.violations)} violations)"

    def to_payload(self) -> dict[str, Any]:
        return self.violations.to_payload()
