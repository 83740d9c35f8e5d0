"""Property Paths

A path is an immutable sequence of typed nodes so comparisons are structural;
``str(path)`` renders the dotted/bracketed form used in reports::

    PropertyPath.root() / "addresses" / IndexNode(2) / "city"  ->  addresses[2].city
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, Union


@dataclass(frozen=True, slots=True)
class PropertyNode:
    """Named member of a bean."""
    name: str

    def render(self, first: bool) -> str:
        return self.name if first else f".{self.name}"

    @property
    def value(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class IndexNode:
    """Position inside an ordered sequence."""
    index: int

    def render(self, first: bool) -> str:
        return f"[{self.index}]"

    @property
    def value(self) -> int:
        return self.index


@dataclass(frozen=True, slots=True)
class KeyNode:
    """Key inside a mapping."""
    key: Any

    def render(self, first: bool) -> str:
        return f"[{self.key}]"

    @property
    def value(self) -> Any:
        return self.key


@dataclass(frozen=True, slots=True)
class ElementNode:
    """Element of an unordered iterable (set, frozenset); carries no position."""

    def render(self, first: bool) -> str:
        return "[]"

    @property
    def value(self) -> None:
        return None


PathNode = Union[PropertyNode, IndexNode, KeyNode, ElementNode]


@dataclass(frozen=True, slots=True)
class PropertyPath:
    """Immutable path from the validated root to a value."""
    nodes: tuple[PathNode, ...] = ()

    @classmethod
    def root(cls) -> PropertyPath:
        return _ROOT

    def __truediv__(self, node: PathNode | str) -> PropertyPath:
        if isinstance(node, str):
            node = PropertyNode(node)
        return PropertyPath(self.nodes + (node,))

    def __iter__(self) -> Iterator[PathNode]:
        return iter(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)

    def __bool__(self) -> bool:
        return bool(self.nodes)

    @property
    def leaf(self) -> PathNode | None:
        return self.nodes[-1] if self.nodes else None

    def as_tuple(self) -> tuple[Any, ...]:
        """Node values only, e.g. ``("items", 1, "name")``."""
        return tuple(node.value for node in self.nodes)

    def __str__(self) -> str:
        return "".join(node.render(i == 0) for i, node in enumerate(self.nodes))


_ROOT = PropertyPath()
