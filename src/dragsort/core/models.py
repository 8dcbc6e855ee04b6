"""
Item and envelope models for the ordered collection.

``SortableItem`` is the only mutable record in the engine: its ``order`` and
``latched`` fields are rewritten in place by move, lock, renumber and the
reconciler. Everything handed back to callers is wrapped in an
``ItemWithIndex`` envelope carrying a snapshot copy, so callers can't corrupt
the sort invariant by editing what they got back.

Architecture:
    ::

        ┌─────────────────────────────────────────┐
        │ SortableItem[P]                          │
        │   id: str          unique, immutable     │
        │   order: float     sort key              │
        │   latched: int     -1 or pinned slot     │
        │   data: P | None   opaque payload        │
        ├─────────────────────────────────────────┤
        │ ItemWithIndex[P]                         │
        │   index: int                             │
        │   item: SortableItem[P]  (snapshot)      │
        └─────────────────────────────────────────┘

Tags:
    models, dataclass, generic, dragsort

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Generic, Mapping, TypeVar

P = TypeVar("P")

# latched value of an item that floats freely
UNLOCKED = -1


@dataclass
class SortableItem(Generic[P]):
    """
    One entry of the ordered collection.

    Attributes:
        id: Unique key, never changed after creation
        order: Sort key; storage order equals ascending ``order``
        latched: ``UNLOCKED`` (-1), or the slot index the item is pinned to
        data: Opaque caller payload, carried but never inspected

    Examples:
        >>> item = SortableItem(id="a", order=1000.0)
        >>> item.is_locked
        False
        >>> SortableItem(id="b", order=2000.0, latched=1).is_locked
        True
    """

    id: str
    order: float
    latched: int = UNLOCKED
    data: P | None = None

    @property
    def is_locked(self) -> bool:
        return self.latched != UNLOCKED

    def copy(self) -> SortableItem[P]:
        """Shallow snapshot; the payload object itself is shared."""
        return replace(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "order": self.order,
            "latched": self.latched,
            "data": self.data,
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> SortableItem[Any]:
        """Build an item from a mapping with ``id``/``order`` and optional ``latched``/``data``."""
        return cls(
            id=str(raw["id"]),
            order=float(raw["order"]),
            latched=int(raw.get("latched", UNLOCKED)),
            data=raw.get("data"),
        )


@dataclass(frozen=True)
class ItemWithIndex(Generic[P]):
    """An item snapshot together with its storage index."""

    index: int
    item: SortableItem[P]

    @property
    def id(self) -> str:
        return self.item.id


@dataclass
class RenumberResult:
    """
    Outcome of one renumbering pass.

    Attributes:
        changed: Items whose key was rewritten, in storage order
        notified: True if the sink returned without raising (for async
            sinks, once its awaitable was scheduled or driven)
        error: The wrapped sink failure, if the sink raised synchronously
            or its awaitable was rejected while being driven to completion
    """

    changed: list[SortableItem[Any]] = field(default_factory=list)
    notified: bool = False
    error: Exception | None = None

    @property
    def count(self) -> int:
        return len(self.changed)


__all__ = [
    "UNLOCKED",
    "SortableItem",
    "ItemWithIndex",
    "RenumberResult",
]
