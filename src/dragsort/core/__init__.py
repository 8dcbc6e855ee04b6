"""Dragsort Core -- fractional order keys and pinned-slot reconciliation.

Manifesto:
    Drag-and-drop lists need stable, cheap reordering: moving one item
    should write one row. ``dragsort.core`` keeps items ordered by float keys
    derived from their neighbours, renumbers everything only when precision
    runs out, and re-homes pinned items on request.

    - **Sync-only, in-process:** No I/O; persistence is the caller's sink
    - **Pure key math:** ``keys`` has no state and no dependencies
    - **Typed errors:** Every caller-visible failure is a ``DragSortError``

Architecture::

    Layer 1 -- Types & Errors
        errors.py          Structured error hierarchy (DragSortError, ...)
        models.py          SortableItem, ItemWithIndex, RenumberResult

    Layer 2 -- Algorithms
        keys.py            midpoint / next_step_value / compute_order
        renumber.py        Global re-keying + isolated sink notification
        reconcile.py       Two-phase pinned-slot reconciliation

    Layer 3 -- Collection
        collection.py      DragSortLibrary: insert/move/delete/lock/get

    Cross-Cutting Concerns
        logging.py         Structured logging (structlog)
        settings.py        DragSortSettings (pydantic-settings) + SortOptions

Tags:
    dragsort, fractional-indexing, ordering, pinned-items

Doc-Types:
    package-overview, module-index
"""

from .collection import DragSortLibrary
from .errors import (
    ConfigError,
    DragSortError,
    DuplicateIdError,
    ErrorCategory,
    InvalidConfigError,
    ItemNotFoundError,
    PositionOutOfRangeError,
    RenumberNotificationError,
    ValidationError,
)
from .keys import compute_order, midpoint, next_step_value
from .models import UNLOCKED, ItemWithIndex, RenumberResult, SortableItem
from .renumber import RenumberSink, notify_sink, renumber
from .settings import DragSortSettings, SortOptions, get_settings, reset_settings

__all__ = [
    # collection
    "DragSortLibrary",
    # models
    "UNLOCKED",
    "SortableItem",
    "ItemWithIndex",
    "RenumberResult",
    # keys
    "midpoint",
    "next_step_value",
    "compute_order",
    # renumber
    "RenumberSink",
    "renumber",
    "notify_sink",
    # settings
    "DragSortSettings",
    "SortOptions",
    "get_settings",
    "reset_settings",
    # errors
    "ErrorCategory",
    "DragSortError",
    "ValidationError",
    "PositionOutOfRangeError",
    "DuplicateIdError",
    "ItemNotFoundError",
    "ConfigError",
    "InvalidConfigError",
    "RenumberNotificationError",
]
