"""
Ordered collection with fractional order keys and pinned slots.

``DragSortLibrary`` keeps items sorted by a float ``order`` key and lets a
subset of them be pinned ("latched") to an explicit index. Insert and move
only re-key the one item being placed; when the key space between two
neighbours is exhausted at the configured precision the whole collection is
renumbered and the renumber sink is told which keys changed.

Manifesto:
    Drag-and-drop lists are persisted row by row. Rewriting every row's
    position on each drag is expensive and conflict-prone, so:

    - **Fractional keys:** A moved item gets a key between its new
      neighbours; nothing else is written
    - **Pinned slots:** Locked items declare the index they must occupy;
      unlocked inserts/moves never land in front of a locked run
    - **Explicit reconciliation:** Index shifts may knock pinned items off
      their slot; ``reorder_locked()`` puts them back after a batch
    - **Unchanged on error:** Every caller-visible error is raised before
      the first mutation

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                     DragSortLibrary[P]                        │
        ├──────────────────────────────────────────────────────────────┤
        │  insert / append / move        → find_free_position()        │
        │                                → _relocate() / _place()      │
        │                                    └─ keys.compute_order()   │
        │                                    └─ renumber + notify_sink │
        │  delete / lock                 → in-place, no reconcile      │
        │  reorder_locked()              → reconcile.reorder_locked()  │
        │  get / get_all / clone         → snapshots                   │
        │  check_order()                 → ordering + pin invariant    │
        └──────────────────────────────────────────────────────────────┘

Examples:
    >>> library = DragSortLibrary(step=1000, precision=8)
    >>> library.append("a", lock=True).index
    0
    >>> library.append("b").item.order
    2000.0
    >>> library.insert("c", 0).index      # pushed past the locked run
    1
    >>> [entry.id for entry in library.get_all()]
    ['a', 'c', 'b']
    >>> library.check_order()
    True

Guardrails:
    ❌ DON'T: Mutate items returned by get()/get_all(); they are copies
    ✅ DO: Use move()/lock() to change position or pin state

    ❌ DON'T: Expect delete() to keep downstream pins consistent
    ✅ DO: Call reorder_locked() after a batch of structural changes

Tags:
    fractional-indexing, ordered-collection, drag-and-drop, pinned-items,
    dragsort

Doc-Types:
    - API Reference
    - Usage Guide
"""

from __future__ import annotations

import math
from typing import Any, Generic, Iterable, Iterator, Mapping, TypeVar

from .errors import DuplicateIdError, ItemNotFoundError, PositionOutOfRangeError, ValidationError
from .keys import compute_order
from .logging import LogContext, get_logger
from .models import UNLOCKED, ItemWithIndex, RenumberResult, SortableItem
from .reconcile import reorder_locked
from .renumber import notify_sink, renumber
from .settings import SortOptions

logger = get_logger(__name__)

P = TypeVar("P")


class DragSortLibrary(Generic[P]):
    """
    Sorted, id-addressed collection of ``SortableItem`` with pinned slots.

    Construction copies the given items, sorts them by ``order`` and runs the
    reconciler, so the instance starts with both invariants restored. If the
    given keys are not strictly increasing after sorting (duplicates), the
    collection is renumbered once.

    Args:
        items: Optional initial items (``SortableItem`` or mappings with
            ``id``/``order``/``latched``/``data``), in any order
        options: Base ``SortOptions``; defaults come from ``DragSortSettings``
        name: Bound as ``collection`` on renumber and reconcile log events
        **overrides: ``step``, ``precision``, ``on_renumber``, ``context``

    Raises:
        DuplicateIdError: Two initial items share an id
        ValidationError: An initial item has a latched value below -1
        InvalidConfigError: Options out of range
    """

    def __init__(
        self,
        items: Iterable[SortableItem[P] | Mapping[str, Any]] | None = None,
        options: SortOptions | None = None,
        name: str = "default",
        **overrides: Any,
    ):
        self._options = (options or SortOptions.from_settings()).merged(**overrides)
        self.name = name
        self._items: list[SortableItem[P]] = []
        self.last_renumber: RenumberResult | None = None

        if items:
            loaded = [
                item.copy() if isinstance(item, SortableItem) else SortableItem.from_dict(item)
                for item in items
            ]
            seen: set[str] = set()
            for item in loaded:
                if item.id in seen:
                    raise DuplicateIdError("Item with this id already exists").with_context(
                        item_id=item.id
                    )
                seen.add(item.id)
                if item.latched < UNLOCKED:
                    raise ValidationError("Latched slot must be -1 or a slot index").with_context(
                        item_id=item.id, latched=item.latched
                    )

            self._items.extend(sorted(loaded, key=lambda i: i.order))
            if not self._keys_increasing():
                logger.warning("initial_orders_not_unique", items=len(self._items))
                self._renumber()
            self.reorder_locked()

    # ── Introspection ────────────────────────────────────────────

    @property
    def options(self) -> SortOptions:
        return self._options

    @property
    def length(self) -> int:
        return len(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        return self.index_of(item_id) >= 0  # type: ignore[arg-type]

    def __iter__(self) -> Iterator[ItemWithIndex[P]]:
        return iter(self.get_all())

    def __repr__(self) -> str:
        return (
            f"DragSortLibrary(name={self.name!r}, items={len(self._items)}, "
            f"step={self._options.step}, precision={self._options.precision})"
        )

    def index_of(self, item_id: str) -> int:
        """Storage index of ``item_id``, or -1."""
        for index, item in enumerate(self._items):
            if item.id == item_id:
                return index
        return -1

    def ids(self) -> list[str]:
        return [item.id for item in self._items]

    # ── Mutations ────────────────────────────────────────────────

    def insert(
        self,
        item_id: str,
        position: int,
        lock: bool = False,
        data: P | None = None,
    ) -> ItemWithIndex[P]:
        """
        Insert a new item at ``position``; key derived from its neighbours.

        An unlocked item requested inside or in front of a run of locked items
        is placed at the first unlocked slot at or after ``position``. A locked
        item takes ``position`` exactly, displacing the current occupant, and
        is pinned there.

        Raises:
            PositionOutOfRangeError: ``position`` not in ``[0, len]``
            DuplicateIdError: ``item_id`` already present
        """
        if not 0 <= position <= len(self._items):
            raise PositionOutOfRangeError("Position out of range").with_context(
                position=position, length=len(self._items)
            )
        if item_id in self:
            raise DuplicateIdError("Item with this id already exists").with_context(
                item_id=item_id
            )

        slot = self.find_free_position(position, lock)
        item: SortableItem[P] = SortableItem(
            id=item_id,
            order=math.nan,
            latched=slot if lock else UNLOCKED,
            data=data,
        )
        self._place(item, slot)
        return ItemWithIndex(index=slot, item=item.copy())

    def append(self, item_id: str, lock: bool = False, data: P | None = None) -> ItemWithIndex[P]:
        """Insert at the end of the collection."""
        return self.insert(item_id, len(self._items), lock, data)

    def move(self, item_id: str, position: int) -> ItemWithIndex[P]:
        """
        Move an existing item to ``position``.

        The item is taken out first, then the slot-skipping rule of
        ``insert`` is applied with the item's own lock state. A locked item
        is re-pinned to its new index.

        Raises:
            ItemNotFoundError: ``item_id`` unknown
            PositionOutOfRangeError: ``position`` not in ``[0, len - 1]``
        """
        index = self.index_of(item_id)
        if index < 0:
            raise ItemNotFoundError("Item not found").with_context(item_id=item_id)
        if not 0 <= position <= len(self._items) - 1:
            raise PositionOutOfRangeError("Position out of range").with_context(
                position=position, length=len(self._items)
            )

        if position == index:
            return ItemWithIndex(index=index, item=self._items[index].copy())

        item = self._items[index]
        slot = self.find_free_position(position, item.is_locked, skip=index)
        if slot == index:
            return ItemWithIndex(index=index, item=item.copy())

        moved = self._relocate(index, slot)
        return ItemWithIndex(index=slot, item=moved.copy())

    def delete(self, item_id: str) -> ItemWithIndex[P] | None:
        """
        Remove an item and return it with its former index.

        Pinned items behind it shift down by one and are not re-homed; call
        ``reorder_locked()`` if the pin invariant must hold again.
        """
        index = self.index_of(item_id)
        if index < 0:
            return None
        item = self._items.pop(index)
        return ItemWithIndex(index=index, item=item)

    def lock(self, item_id: str, lock: bool = True) -> ItemWithIndex[P]:
        """
        Pin an item to its current index, or unpin it.

        Raises:
            ItemNotFoundError: ``item_id`` unknown
        """
        index = self.index_of(item_id)
        if index < 0:
            raise ItemNotFoundError("Item not found").with_context(item_id=item_id)

        item = self._items[index]
        item.latched = index if lock else UNLOCKED
        return ItemWithIndex(index=index, item=item.copy())

    def reorder_locked(self) -> list[ItemWithIndex[P]]:
        """Re-home pinned items to their declared slots; see ``dragsort.core.reconcile``."""
        with LogContext(collection=self.name):
            return reorder_locked(self._items, self._relocate)

    # ── Reads ────────────────────────────────────────────────────

    def get(self, item_id: str) -> ItemWithIndex[P] | None:
        index = self.index_of(item_id)
        if index < 0:
            return None
        return ItemWithIndex(index=index, item=self._items[index].copy())

    def get_all(self) -> list[ItemWithIndex[P]]:
        """Snapshot of every item with its index, in storage (= key) order."""
        return [ItemWithIndex(index=i, item=item.copy()) for i, item in enumerate(self._items)]

    def clone(self) -> list[SortableItem[P]]:
        """Copies of all items, suitable for constructing another library."""
        return [item.copy() for item in self._items]

    def check_order(self) -> bool:
        """True if keys strictly increase and every pinned item sits on its slot."""
        previous: float | None = None
        for index, item in enumerate(self._items):
            if item.is_locked and item.latched != index:
                return False
            if previous is not None and not previous < item.order:
                return False
            previous = item.order
        return True

    # ── Internals ────────────────────────────────────────────────

    def find_free_position(self, wanted: int, lock: bool, skip: int | None = None) -> int:
        """
        Slot an item would actually take when requested at ``wanted``.

        Locked items take ``wanted`` as is. Unlocked items advance past any
        locked items starting at ``wanted``. ``skip`` is the current index of
        an item being moved; the scan runs as if it were already removed.
        """
        if lock:
            return wanted
        others = self._items if skip is None else self._items[:skip] + self._items[skip + 1 :]
        slot = wanted
        while slot < len(others) and others[slot].is_locked:
            slot += 1
        return slot

    def _relocate(self, index: int, position: int) -> SortableItem[P]:
        """
        Take the item at ``index`` out and place it at ``position``.

        If no key can be computed the item goes back to ``index`` unchanged
        and the error propagates.
        """
        item = self._items.pop(index)
        latched = item.latched
        if item.is_locked:
            item.latched = position
        try:
            self._place(item, position)
        except Exception:
            item.latched = latched
            self._items.insert(index, item)
            raise
        return item

    def _place(self, item: SortableItem[P], position: int) -> None:
        order = compute_order(
            [existing.order for existing in self._items],
            position,
            self._options.step,
            self._options.precision,
        )
        self._items.insert(position, item)
        if order is None:
            logger.info(
                "order_overflow",
                item_id=item.id,
                position=position,
                precision=self._options.precision,
            )
            # NaN differs from every renumbered key, so the item is reported
            item.order = math.nan
            self._renumber()
        else:
            item.order = order

    def _renumber(self) -> RenumberResult:
        with LogContext(collection=self.name):
            changed = renumber(self._items, self._options.step)
            logger.info("order_renumbered", changed=len(changed), items=len(self._items))
            self.last_renumber = notify_sink(
                self._options.on_renumber, changed, self._options.context
            )
        return self.last_renumber

    def _keys_increasing(self) -> bool:
        return all(a.order < b.order for a, b in zip(self._items, self._items[1:]))


__all__ = ["DragSortLibrary"]
