"""Validation Engine

Walks an object graph and evaluates every declared constraint, producing
one ordered ``ViolationSet`` per call.

Traversal is depth-first in declaration order: a bean's class-level
constraints, then for each member its constraints, its cascaded value and
its elements. Nested beans are expanded on an explicit stack of per-bean
generators, so arbitrarily deep graphs never hit the recursion limit.

Invalid data is reported, never raised; a validator or accessor that raises
is a defect and propagates as an ``EvaluationError``.

Usage:
    engine = Engine(preload=[Employee])
    violations = engine.validate(employee)
    if not violations.is_valid:
        return violations.to_payload()
"""
from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime, timezone
from functools import partial
from typing import Any, Callable, Iterator
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from constraintkit.core.config import get_settings
from constraintkit.core.errors import (
    configuration_error,
    member_access_failed,
    not_a_container,
    validator_failed,
)
from constraintkit.core.logging import get_logger

from .context import ValidationContext, ValidationMode
from .interpolation import MessageInterpolator
from .introspection import BoundConstraint, Introspector, MemberMetadata, TypeMetadata
from .path import ElementNode, IndexNode, KeyNode, PathNode, PropertyPath
from .registry import ConstraintKind, ConstraintRegistry
from .violations import Violation, ViolationSet

log = get_logger(__name__)

Clock = Callable[[], datetime]
_Cascade = tuple[Any, PropertyPath]


def system_clock(zone: str = "UTC") -> Clock:
    """Timezone-aware wall clock."""
    if zone.upper() == "UTC":
        return partial(datetime.now, timezone.utc)
    try:
        tz = ZoneInfo(zone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise configuration_error(
            f"Unknown clock timezone '{zone}'", origin="engine", cause=exc, zone=zone
        ) from exc
    return partial(datetime.now, tz)


def _elements(value: Any) -> Iterator[tuple[PathNode, Any]]:
    """Container elements with their path node: key for mappings, index for sequences.

    Raises TypeError for scalars and strings.
    """
    if isinstance(value, Mapping):
        return ((KeyNode(key), item) for key, item in value.items())
    if isinstance(value, (str, bytes, bytearray)) or not isinstance(value, Iterable):
        raise TypeError(f"expected a container, got {type(value).__name__}")
    if isinstance(value, Sequence):
        return ((IndexNode(index), item) for index, item in enumerate(value))
    return ((ElementNode(), item) for item in value)


class Engine:
    """Declarative constraint validation over object graphs.

    The registry is frozen at construction; metadata is cached per type.
    An engine holds no per-call state, so one instance may validate from
    many threads at once.
    """

    def __init__(
        self,
        kinds: Iterable[ConstraintKind] = (),
        *,
        registry: ConstraintRegistry | None = None,
        clock: Clock | None = None,
        fail_fast: bool | None = None,
        preload: Iterable[type] = (),
        interpolator: MessageInterpolator | None = None,
    ):
        settings = get_settings()
        # Private copy: the caller's registry stays open for other engines
        self._registry = ConstraintRegistry(registry) if registry is not None else ConstraintRegistry.with_builtins()
        for kind in kinds:
            self._registry.register(kind)
        self._registry.freeze()

        self._clock = clock or system_clock(settings.CLOCK_TIMEZONE)
        fail_fast = settings.FAIL_FAST if fail_fast is None else fail_fast
        self._mode = ValidationMode.FAIL_FAST if fail_fast else ValidationMode.COLLECT_ALL
        self._introspector = Introspector(self._registry, interpolator)

        preloaded = self._preload(preload)
        log.debug("engine_ready", kinds=len(self._registry), mode=self._mode.value, preloaded=preloaded)

    @property
    def registry(self) -> ConstraintRegistry:
        return self._registry

    @property
    def mode(self) -> ValidationMode:
        return self._mode

    @property
    def clock(self) -> Clock:
        return self._clock

    def metadata_for(self, cls: type) -> TypeMetadata:
        return self._introspector.metadata_for(cls)

    def _preload(self, roots: Iterable[type]) -> list[str]:
        """Build metadata for ``roots`` and every class they cascade into."""
        pending, seen = deque(roots), []
        while pending:
            cls = pending.popleft()
            if cls in seen:
                continue
            seen.append(cls)
            pending.extend(self.metadata_for(cls).cascade_targets())
        return [cls.__qualname__ for cls in seen]

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def validate(self, obj: Any) -> ViolationSet:
        """Validate ``obj`` and everything reachable through cascade markers.

        Raises:
            ConfigurationError: a reachable type is misconfigured
            EvaluationError: a validator or member accessor raised
        """
        if obj is None:
            return ViolationSet()
        ctx = self._context(obj, type(obj))
        self._walk(obj, ctx)
        result = ctx.result()
        log.debug(
            "validation_complete",
            root_type=type(obj).__qualname__,
            violations=len(result),
            mode=self._mode.value,
        )
        return result

    def validate_property(self, obj: Any, name: str) -> ViolationSet:
        """Evaluate one member's constraints on ``obj`` without cascading."""
        member = self.metadata_for(type(obj)).member(name)
        ctx = self._context(obj, type(obj))
        value = self._read(type(obj), member, obj, PropertyPath.root() / name)
        for _ in self._visit_member(member, value, PropertyPath.root() / name, ctx):
            pass
        return ctx.result()

    def validate_value(self, cls: type, name: str, value: Any) -> ViolationSet:
        """Evaluate the constraints ``cls`` declares on ``name`` against a candidate value."""
        member = self.metadata_for(cls).member(name)
        ctx = self._context(None, cls)
        for _ in self._visit_member(member, value, PropertyPath.root() / name, ctx):
            pass
        return ctx.result()

    def assert_valid(self, obj: Any) -> Any:
        """Return ``obj`` unchanged, or raise ConstraintViolationError."""
        self.validate(obj).raise_if_invalid()
        return obj

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def _context(self, root: Any, root_type: type | None) -> ValidationContext:
        return ValidationContext(root, root_type, mode=self._mode, clock=self._clock)

    def _walk(self, root: Any, ctx: ValidationContext) -> None:
        ctx.enter(root)
        stack: list[Iterator[_Cascade]] = [self._visit(root, PropertyPath.root(), ctx)]
        while stack and not ctx.halted:
            try:
                bean, path = next(stack[-1])
            except StopIteration:
                stack.pop()
                continue
            # Already visited: a cycle or a shared instance, validated once per call
            if ctx.enter(bean):
                stack.append(self._visit(bean, path, ctx))

    def _visit(self, bean: Any, path: PropertyPath, ctx: ValidationContext) -> Iterator[_Cascade]:
        """Evaluate one bean; yields nested beans to cascade into, in order."""
        metadata = self.metadata_for(type(bean))
        for bound in metadata.class_constraints:
            if not self._check(bound, bean, path, ctx):
                return
        for member in metadata.members:
            member_path = path / member.name
            value = self._read(metadata.type, member, bean, member_path)
            yield from self._visit_member(member, value, member_path, ctx)
            if ctx.halted:
                return

    def _visit_member(
        self, member: MemberMetadata, value: Any, path: PropertyPath, ctx: ValidationContext
    ) -> Iterator[_Cascade]:
        for bound in member.constraints:
            if not self._check(bound, value, path, ctx):
                return
        if value is None:
            return
        if member.cascade:
            yield value, path
            if ctx.halted:
                return
        if not (member.element_constraints or member.cascade_elements):
            return
        try:
            elements = _elements(value)
        except TypeError as exc:
            log.error("elements_unavailable", member=member.name, path=str(path), value_type=type(value).__name__)
            raise not_a_container(member.name, str(path), exc) from exc
        for node, element in elements:
            element_path = path / node
            for bound in member.element_constraints:
                if not self._check(bound, element, element_path, ctx):
                    return
            if member.cascade_elements and element is not None:
                yield element, element_path
                if ctx.halted:
                    return

    def _read(self, owner: type, member: MemberMetadata, bean: Any, path: PropertyPath) -> Any:
        try:
            return member.accessor(bean)
        except Exception as exc:
            log.error("member_access_failed", owner=owner.__qualname__, member=member.name, path=str(path))
            raise member_access_failed(owner.__qualname__, member.name, str(path), exc) from exc

    def _check(self, bound: BoundConstraint, value: Any, path: PropertyPath, ctx: ValidationContext) -> bool:
        """Evaluate one constraint. Returns False once the call must stop."""
        try:
            valid = bound.validator.is_valid(value, bound.params, ctx.constraint_context(path))
        except Exception as exc:
            log.error(
                "constraint_evaluation_failed",
                kind=bound.name,
                path=str(path),
                error_type=type(exc).__name__,
            )
            raise validator_failed(bound.name, str(path), exc) from exc
        if not valid:
            ctx.add(Violation(
                path=path,
                message=bound.message,
                invalid_value=value,
                constraint_kind=bound.name,
                root_type=ctx.root_type,
                message_template=bound.template,
                attributes=bound.attributes,
            ))
        return not ctx.halted
