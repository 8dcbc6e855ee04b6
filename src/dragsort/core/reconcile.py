"""
Lock reconciler: re-home pinned items after structural changes.

Insert, move and delete shift indices, so a pinned item can end up away from
the slot it declared in ``latched``. ``reorder_locked`` restores the pin
invariant (every pinned item sits at ``index == latched``) in two phases.

Manifesto:
    - **Plan from a snapshot:** The list of pinned ids is taken once, before
      anything moves, so the live sequence is never iterated while mutated
    - **Decide on live state:** Each candidate's current index and the
      current occupant of its target slot are looked up when it is processed
    - **Earliest claimant wins:** A slot held by an item pinned to that same
      slot, or already settled earlier in the pass, is not contested
    - **Losers adopt their fallback:** The final sweep overwrites ``latched``
      of every pinned item that is still off its slot with its actual index
    - **Idempotent:** A second pass with no mutation in between changes nothing

Architecture:
    ::

        Phase 1  plan_reconciliation(items)  → [pinned ids, storage order]

        Phase 2  for id in plan:
                   ├─ unpinned / latched out of range  → skip (stale pin)
                   ├─ index == latched                 → settle slot
                   ├─ slot settled, or occupant pinned
                   │  to the same slot                 → skip (conflict)
                   └─ relocate(index, latched)         → record, settle slot

        Sweep    for every pinned item with latched != index:
                   latched = index                     → record

Examples:
    Delete an unpinned item in front of two pinned ones:

    >>> # [0_lock@0, 1_unlock, 2_lock@2, 3_unlock, 4_lock@4, 5_unlock]
    >>> # delete 1_unlock → 2_lock at 1, 4_lock at 3
    >>> # reorder_locked() → 2_lock back at 2, 4_lock back at 4

Tags:
    reconciliation, pinned-items, conflict-resolution, dragsort

Doc-Types:
    - API Reference
    - Algorithm Notes
"""

from __future__ import annotations

from typing import Any, Callable, Sequence

from .logging import get_logger
from .models import ItemWithIndex, SortableItem

logger = get_logger(__name__)

# relocate(current_index, target_index) -> moved item
Relocate = Callable[[int, int], SortableItem[Any]]


def plan_reconciliation(items: Sequence[SortableItem[Any]]) -> list[str]:
    """Ids of pinned items in current storage order."""
    return [item.id for item in items if item.is_locked]


def _index_of(items: Sequence[SortableItem[Any]], item_id: str) -> int:
    for index, item in enumerate(items):
        if item.id == item_id:
            return index
    return -1


def reorder_locked(
    items: list[SortableItem[Any]],
    relocate: Relocate,
) -> list[ItemWithIndex[Any]]:
    """
    Move pinned items back to their declared slots and resolve conflicts.

    Args:
        items: The live storage list; ``relocate`` mutates it in place
        relocate: Primitive that removes the item at ``current_index``,
            re-keys it for ``target_index`` and reinserts it there

    Returns:
        ``ItemWithIndex`` snapshots for every item that was moved or had its
        ``latched`` rewritten, in the order the changes happened.
    """
    updated: list[ItemWithIndex[Any]] = []
    settled: set[int] = set()
    total = len(items)

    for item_id in plan_reconciliation(items):
        index = _index_of(items, item_id)
        if index < 0:
            continue
        item = items[index]
        target = item.latched

        if not item.is_locked or not 0 <= target < total:
            continue
        if target == index:
            settled.add(target)
            continue
        if target in settled or items[target].latched == target:
            logger.debug(
                "reconcile_slot_contested",
                item_id=item_id,
                slot=target,
                holder=items[target].id,
            )
            continue

        try:
            moved = relocate(index, target)
        except Exception as exc:
            logger.error(
                "reconcile_move_failed",
                item_id=item_id,
                index=index,
                slot=target,
                exc_info=exc,
            )
            continue

        updated.append(ItemWithIndex(index=target, item=moved.copy()))
        settled.add(target)

    for index, item in enumerate(items):
        if item.is_locked and item.latched != index:
            logger.debug("reconcile_repinned", item_id=item.id, declared=item.latched, slot=index)
            item.latched = index
            updated.append(ItemWithIndex(index=index, item=item.copy()))

    if updated:
        logger.info("reconcile_completed", changed=len(updated))
    return updated


__all__ = [
    "Relocate",
    "plan_reconciliation",
    "reorder_locked",
]
