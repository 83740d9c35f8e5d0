"""Validation Context

Per-call mutable state for one ``Engine.validate`` call: the visited-set
cycle guard and the violation accumulator. A context is created by the call
that owns it and never shared across calls or threads.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable

from .path import PropertyPath
from .violations import Violation, ViolationSet


class ValidationMode(str, Enum):
    """Violation accumulation strategy."""
    FAIL_FAST = "fail_fast"
    COLLECT_ALL = "collect_all"


@dataclass(frozen=True, slots=True)
class ConstraintValidatorContext:
    """Read-only view handed to validators."""
    root: Any
    root_type: type | None
    path: PropertyPath
    clock: Callable[[], datetime]

    def now(self) -> datetime:
        """Current time from the engine's clock (timezone-aware)."""
        return self.clock()


class ViolationAccumulator(ABC):
    """Abstract base for accumulation strategies."""

    @abstractmethod
    def add(self, violation: Violation) -> bool:
        """Add a violation. Returns True if validation should continue."""

    @abstractmethod
    def get_violations(self) -> tuple[Violation, ...]:
        """Accumulated violations in insertion order."""

    @property
    @abstractmethod
    def mode(self) -> ValidationMode:
        """Get the accumulation mode."""


@dataclass
class FailFastAccumulator(ViolationAccumulator):
    """Stops on the first violation."""
    _violation: Violation | None = None

    @property
    def mode(self) -> ValidationMode: return ValidationMode.FAIL_FAST

    def add(self, violation: Violation) -> bool:
        if self._violation is None: self._violation = violation
        return False

    def get_violations(self) -> tuple[Violation, ...]: return (self._violation,) if self._violation else ()


@dataclass
class CollectAllAccumulator(ViolationAccumulator):
    """Gathers every violation."""
    _violations: list[Violation] = field(default_factory=list)

    @property
    def mode(self) -> ValidationMode: return ValidationMode.COLLECT_ALL

    def add(self, violation: Violation) -> bool:
        self._violations.append(violation)
        return True

    def get_violations(self) -> tuple[Violation, ...]: return tuple(self._violations)


def create_accumulator(mode: ValidationMode) -> ViolationAccumulator:
    """Factory for creating accumulators based on mode."""
    return FailFastAccumulator() if mode == ValidationMode.FAIL_FAST else CollectAllAccumulator()


class ValidationContext:
    """State owned by a single validation call."""

    __slots__ = ("root", "root_type", "clock", "_accumulator", "_visited", "_halted")

    def __init__(self, root: Any, root_type: type | None, *, mode: ValidationMode,
                 clock: Callable[[], datetime]):
        self.root, self.root_type, self.clock = root, root_type, clock
        self._accumulator = create_accumulator(mode)
        # id -> object keeps visited instances alive for the whole call so ids are not reused
        self._visited: dict[int, Any] = {}
        self._halted = False

    def enter(self, bean: Any) -> bool:
        """Mark ``bean`` visited. False if it was already visited (cycle or shared instance)."""
        key = id(bean)
        if key in self._visited:
            return False
        self._visited[key] = bean
        return True

    def add(self, violation: Violation) -> None:
        if not self._accumulator.add(violation):
            self._halted = True

    @property
    def halted(self) -> bool:
        return self._halted

    def constraint_context(self, path: PropertyPath) -> ConstraintValidatorContext:
        return ConstraintValidatorContext(root=self.root, root_type=self.root_type, path=path, clock=self.clock)

    def result(self) -> ViolationSet:
        return ViolationSet(self._accumulator.get_violations(), self.root_type)
