"""
Dragsort - Fractional-index ordering with pinned slots.

Re-exports the public API of ``dragsort.core``:

    >>> from dragsort import DragSortLibrary
    >>> library = DragSortLibrary(step=10, precision=2)
"""

__version__ = "0.1.0"

from dragsort.core import *  # noqa: F401,F403
from dragsort.core import __all__ as _core_all

__all__ = ["__version__", *_core_all]
