"""Type Introspection

Builds ``TypeMetadata`` for a class: the members bearing constraint
declarations or cascade markers, in declaration order, with every
declaration already resolved against the registry (kind looked up,
parameters parsed, validator instantiated, message rendered).

Discovery reads ``typing.Annotated`` metadata from:
1. pydantic models (``model_fields[...].metadata``)
2. dataclasses (``dataclasses.fields`` + resolved type hints)
3. plain annotated classes (type hints across the MRO, base first)

All configuration mistakes surface here, once per type, as
``ConfigurationError``; the engine never sees a half-resolved declaration.
"""
from __future__ import annotations

import dataclasses
import threading
import types
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from operator import attrgetter
from typing import Annotated, Any, Callable, ClassVar, Union, get_args, get_origin, get_type_hints

from pydantic import BaseModel, ValidationError

from constraintkit.core.errors import (
    configuration_error,
    invalid_parameters,
    unexpected_type,
    unknown_constraint,
    unresolvable_annotation,
)
from constraintkit.core.logging import get_logger

from .declarations import CLASS_CONSTRAINTS_ATTR, ConstraintDeclaration, Each, Valid, ValidElements
from .interpolation import MessageInterpolator
from .params import ConstraintParams
from .registry import ConstraintKind, ConstraintRegistry
from .validators import ConstraintValidator

log = get_logger(__name__)

_NOT_CONTAINERS = (str, bytes, bytearray)


@dataclass(frozen=True, slots=True)
class BoundConstraint:
    """A declaration resolved against its kind, ready to evaluate."""
    declaration: ConstraintDeclaration
    kind: ConstraintKind
    params: ConstraintParams
    validator: ConstraintValidator
    template: str
    attributes: Mapping[str, Any]
    message: str

    @property
    def name(self) -> str:
        return self.kind.name


@dataclass(frozen=True, slots=True)
class MemberMetadata:
    """One constrained or cascaded member of a type."""
    name: str
    accessor: Callable[[Any], Any]
    constraints: tuple[BoundConstraint, ...] = ()
    cascade: bool = False
    cascade_elements: bool = False
    element_constraints: tuple[BoundConstraint, ...] = ()
    declared_type: Any = None


@dataclass(frozen=True, slots=True)
class TypeMetadata:
    type: type
    members: tuple[MemberMetadata, ...] = ()
    class_constraints: tuple[BoundConstraint, ...] = ()

    def member(self, name: str) -> MemberMetadata:
        for member in self.members:
            if member.name == name:
                return member
        raise configuration_error(
            f"{self.type.__name__} has no constrained member '{name}'",
            origin="introspection",
            owner=self.type.__name__,
            member=name,
        )

    @property
    def is_constrained(self) -> bool:
        return bool(self.members or self.class_constraints)

    def cascade_targets(self) -> list[type]:
        """Declared classes reached through ``Valid``/``ValidElements`` members."""
        targets = []
        for member in self.members:
            if member.cascade:
                targets.append(_concrete_type(member.declared_type))
            if member.cascade_elements:
                targets.append(_concrete_type(_element_type(member.declared_type)))
        return [t for t in targets if t is not None and t.__module__ != "builtins"]


# ============================================================================
# Annotation helpers
# ============================================================================

def _split_annotated(annotation: Any) -> tuple[Any, list[Any]]:
    """(bare type, Annotated metadata); looks through ``Optional[Annotated[...]]``."""
    if get_origin(annotation) is Annotated:
        base, *extras = get_args(annotation)
        return base, extras
    if get_origin(annotation) in (Union, types.UnionType):
        args = [a for a in get_args(annotation) if a is not type(None)]
        if len(args) == 1 and get_origin(args[0]) is Annotated:
            base, extras = _split_annotated(args[0])
            return base | None, extras
    return annotation, []


def _concrete_type(annotation: Any) -> type | None:
    """Runtime class a declared type checks against; None when it cannot be pinned down."""
    if get_origin(annotation) is Annotated:
        annotation = get_args(annotation)[0]
    if annotation is Any or annotation is object:
        return None
    origin = get_origin(annotation)
    if origin in (Union, types.UnionType):
        args = [a for a in get_args(annotation) if a is not type(None)]
        return _concrete_type(args[0]) if len(args) == 1 else None
    if origin is not None:
        return origin if isinstance(origin, type) else None
    return annotation if isinstance(annotation, type) else None


def _is_container(declared: type | None) -> bool:
    if declared is None:
        return True
    return issubclass(declared, Iterable) and not issubclass(declared, _NOT_CONTAINERS)


def _element_type(annotation: Any) -> Any:
    """Element (or mapping value) type of a container annotation, if declared."""
    base, _ = _split_annotated(annotation)
    if get_origin(base) in (Union, types.UnionType):
        args = [a for a in get_args(base) if a is not type(None)]
        base = args[0] if len(args) == 1 else None
    origin, args = get_origin(base), get_args(base)
    if origin is None or not args:
        return None
    if isinstance(origin, type) and issubclass(origin, Mapping):
        return args[1] if len(args) == 2 else None
    if origin is tuple and len(args) == 2 and args[1] is Ellipsis:
        return args[0]
    return args[0] if origin is not tuple else None


def _annotated_members(cls: type) -> list[tuple[str, Any, list[Any]]]:
    """(name, declared type, metadata) for every annotated member, in declaration order."""
    if issubclass(cls, BaseModel):
        members = []
        for name, info in cls.model_fields.items():
            base, extras = _split_annotated(info.annotation)
            members.append((name, base, list(info.metadata) + extras))
        return members

    try:
        hints = get_type_hints(cls, include_extras=True)
    except Exception as exc:
        raise unresolvable_annotation(cls.__qualname__, exc) from exc

    if dataclasses.is_dataclass(cls):
        names = [f.name for f in dataclasses.fields(cls)]
    else:
        names = [n for n, hint in hints.items() if get_origin(hint) is not ClassVar and hint is not ClassVar]

    return [(name, *_split_annotated(hints[name])) for name in names if name in hints]


# ============================================================================
# Introspector
# ============================================================================

class Introspector:
    """Builds and memoizes ``TypeMetadata`` per class.

    Thread-safe: concurrent first requests for the same class may both build,
    exactly one result is retained and every caller receives that instance.
    """

    def __init__(self, registry: ConstraintRegistry, interpolator: MessageInterpolator | None = None):
        self._registry = registry
        self._interpolator = interpolator or MessageInterpolator()
        self._cache: dict[type, TypeMetadata] = {}
        self._lock = threading.Lock()

    def metadata_for(self, cls: type) -> TypeMetadata:
        cached = self._cache.get(cls)
        if cached is not None:
            return cached
        built = self._build(cls)
        with self._lock:
            return self._cache.setdefault(cls, built)

    def __contains__(self, cls: type) -> bool:
        return cls in self._cache

    def _build(self, cls: type) -> TypeMetadata:
        owner = cls.__qualname__
        members = tuple(
            member
            for name, declared, extras in _annotated_members(cls)
            if (member := self._member(owner, name, declared, extras)) is not None
        )
        class_constraints = tuple(
            self._bind(declaration.bind(""), owner, cls)
            for klass in reversed(cls.__mro__)
            for declaration in vars(klass).get(CLASS_CONSTRAINTS_ATTR, ())
        )
        metadata = TypeMetadata(cls, members, class_constraints)
        log.debug(
            "metadata_built",
            type=owner,
            members=[m.name for m in members],
            class_constraints=len(class_constraints),
        )
        return metadata

    def _member(self, owner: str, name: str, declared: Any, extras: list[Any]) -> MemberMetadata | None:
        declarations = [d for d in extras if isinstance(d, ConstraintDeclaration)]
        each = [d for e in extras if isinstance(e, Each) for d in e.declarations]
        cascade = any(isinstance(e, Valid) for e in extras)
        cascade_elements = any(isinstance(e, ValidElements) for e in extras)
        if not (declarations or each or cascade or cascade_elements):
            return None

        concrete = _concrete_type(declared)
        if (each or cascade_elements) and not _is_container(concrete):
            marker = "Each" if each else "ValidElements"
            raise configuration_error(
                f"{marker} on {owner}.{name} requires a container type, got {getattr(concrete, '__name__', concrete)}",
                origin="introspection",
                owner=owner,
                member=name,
            )

        element = _concrete_type(_element_type(declared)) if each else None
        return MemberMetadata(
            name=name,
            accessor=attrgetter(name),
            constraints=tuple(self._bind(d.bind(name), owner, concrete) for d in declarations),
            cascade=cascade,
            cascade_elements=cascade_elements,
            element_constraints=tuple(self._bind(d.bind(name), owner, element) for d in each),
            declared_type=declared,
        )

    def _bind(self, declaration: ConstraintDeclaration, owner: str, declared: type | None) -> BoundConstraint:
        member = declaration.member or "<class>"
        if declaration.kind not in self._registry:
            raise unknown_constraint(
                declaration.kind, owner=owner, member=member, available=sorted(self._registry.names())
            )
        kind = self._registry.lookup(declaration.kind)
        try:
            params = kind.parse(declaration.parameters)
        except ValidationError as exc:
            detail = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'parameters'}: {err['msg']}" for err in exc.errors()
            )
            raise invalid_parameters(kind.name, detail, owner=owner, member=member, cause=exc) from exc

        if declared is not None and not kind.supports(declared):
            raise unexpected_type(kind.name, declared, owner=owner, member=member)

        template = kind.message_template(params)
        attributes = types.MappingProxyType(params.attributes())
        return BoundConstraint(
            declaration=declaration,
            kind=kind,
            params=params,
            validator=kind.validator_factory(),
            template=template,
            attributes=attributes,
            message=self._interpolator.render(template, attributes),
        )
