"""
Shared pytest fixtures and configuration for dragsort tests.

This module provides:
- Settings cache / environment isolation
- A recording renumber sink
- Prebuilt libraries with interleaved locked and unlocked items

Usage:
    Fixtures are auto-discovered by pytest. Use them as function arguments:

    def test_something(interleaved_library, recording_sink):
        ...
"""

from pathlib import Path
from typing import Any

import pytest

from dragsort.core import DragSortLibrary, SortableItem, reset_settings


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(str(item.fspath))

        if "integration" in test_path.parts:
            item.add_marker(pytest.mark.integration)

        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration", "golden"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Run every test with default settings and no stray .env file."""
    monkeypatch.chdir(tmp_path)
    for key in ("DRAGSORT_STEP", "DRAGSORT_PRECISION", "DRAGSORT_LOG_LEVEL", "DRAGSORT_LOG_FORMAT"):
        monkeypatch.delenv(key, raising=False)
    reset_settings()
    yield
    reset_settings()


# =============================================================================
# Sinks
# =============================================================================


class RecordingSink:
    """Renumber sink that remembers every call."""

    def __init__(self) -> None:
        self.calls: list[tuple[list[SortableItem[Any]], Any]] = []

    def __call__(self, changed: list[SortableItem[Any]], context: Any) -> None:
        self.calls.append(([item.copy() for item in changed], context))

    @property
    def items(self) -> list[SortableItem[Any]]:
        return [item for changed, _ in self.calls for item in changed]

    @property
    def ids(self) -> list[str]:
        return [item.id for item in self.items]


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()


# =============================================================================
# Libraries
# =============================================================================


@pytest.fixture
def interleaved_library() -> DragSortLibrary:
    """Locked items at 0, 2, 4 and unlocked items at 1, 3, 5."""
    library: DragSortLibrary = DragSortLibrary()
    library.insert("0_lock", 0, True)
    library.insert("1_unlock", 1, False)
    library.insert("2_lock", 2, True)
    library.insert("3_unlock", 3, False)
    library.insert("4_lock", 4, True)
    library.insert("5_unlock", 5, False)
    return library


@pytest.fixture
def lock_run_library() -> DragSortLibrary:
    """[0_lock, 1_unlock, 2_lock, 3_lock, 4_unlock] built by append."""
    library: DragSortLibrary = DragSortLibrary()
    library.append("0_lock", True)
    library.append("1_unlock", False)
    library.append("2_lock", True)
    library.append("3_lock", True)
    library.append("4_unlock", False)
    return library


