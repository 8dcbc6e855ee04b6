"""
Renumbering service: global key reassignment after precision overflow.

When no key fits between two neighbours, every item gets a fresh, evenly
spaced key ``(index + 1) * step`` in current storage order. Only items whose
key actually changed are reported to the renumber sink, an injected callable
that typically persists the new keys.

Manifesto:
    The in-memory collection is the source of truth. The sink is a
    notification, not a transaction participant:

    - **Apply first:** Keys are rewritten before the sink is called, so the
      sink always observes final, consistent state
    - **Isolate failures:** A raising sink or a rejected awaitable is logged,
      never propagated to the insert/move caller
    - **Sync or async sinks:** Plain callables and coroutine functions are
      both accepted

Architecture:
    ::

        insert/move ──► compute_order() ─► None (Overflow)
                                              │
                                              ▼
                          renumber(items, step)   in-place, returns changed
                                              │
                                              ▼
                  notify_sink(sink, changed, context) ─► RenumberResult
                     │ sync result      → done
                     │ awaitable, no running loop → asyncio.run()
                     │ awaitable, running loop    → task + done-callback

Examples:
    >>> items = [SortableItem("a", 10.0), SortableItem("b", 10.5)]
    >>> [i.id for i in renumber(items, step=10)]
    ['b']
    >>> items[1].order
    20.0

Guardrails:
    ❌ DON'T: Roll back renumbered keys when the sink fails
    ✅ DO: Log the failure; the caller's persistence can resync later

Tags:
    renumbering, overflow, callback, sink, dragsort

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import asyncio
import inspect
from decimal import Decimal
from typing import Any, Awaitable, Protocol, Sequence

from .errors import RenumberNotificationError
from .logging import get_logger
from .models import RenumberResult, SortableItem

logger = get_logger(__name__)

# Strong references to scheduled sink tasks until they finish.
_PENDING_TASKS: set[asyncio.Task[Any]] = set()


class RenumberSink(Protocol):
    """Receives the items whose key changed in one renumbering pass."""

    def __call__(
        self, changed: list[SortableItem[Any]], context: Any
    ) -> Awaitable[None] | None: ...


def renumbered_key(index: int, step: float) -> float:
    """Key assigned to the item at ``index`` by a renumbering pass."""
    return float((index + 1) * Decimal(repr(float(step))))


def renumber(items: Sequence[SortableItem[Any]], step: float) -> list[SortableItem[Any]]:
    """Reassign ``(index + 1) * step`` keys in place; return the changed items."""
    changed: list[SortableItem[Any]] = []
    for index, item in enumerate(items):
        order = renumbered_key(index, step)
        if item.order != order:
            item.order = order
            changed.append(item)
    return changed


def _log_task_failure(task: asyncio.Task[Any]) -> None:
    _PENDING_TASKS.discard(task)
    if task.cancelled():
        logger.warning("renumber_sink_cancelled")
        return
    exc = task.exception()
    if exc is not None:
        error = RenumberNotificationError("Renumber sink failed", cause=exc)
        logger.error("renumber_sink_failed", exc_info=exc, **error.to_dict())


async def _drive(awaitable: Awaitable[Any]) -> Any:
    return await awaitable


def notify_sink(
    sink: RenumberSink | None,
    changed: list[SortableItem[Any]],
    context: Any = None,
) -> RenumberResult:
    """
    Invoke ``sink`` with the changed items, isolating any failure.

    Never raises. A synchronous exception, or an awaitable that fails while
    being driven to completion, is logged and stored on the result. When a
    loop is already running in this thread the awaitable is scheduled on it
    and failures are logged from the task's done-callback.
    """
    result = RenumberResult(changed=list(changed))
    if sink is None or not changed:
        return result

    try:
        outcome = sink(result.changed, context)
        result.notified = True
        if not inspect.isawaitable(outcome):
            return result

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(_drive(outcome))
        else:
            task = loop.create_task(_drive(outcome))
            _PENDING_TASKS.add(task)
            task.add_done_callback(_log_task_failure)
    except Exception as exc:
        error = RenumberNotificationError("Renumber sink failed", cause=exc)
        error.with_context(changed=len(changed))
        logger.error("renumber_sink_failed", exc_info=exc, **error.to_dict())
        result.error = error

    return result


__all__ = [
    "RenumberSink",
    "renumbered_key",
    "renumber",
    "notify_sink",
]
