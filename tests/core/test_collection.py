"""
Tests for dragsort.core.collection module.

Tests cover:
- Construction: sorting, copying, reconciling, duplicate detection
- insert/append/move/delete/lock semantics and slot skipping
- Error paths leave the collection unchanged
- Snapshot isolation of get/get_all/clone
- Overflow renumbering through the collection
"""

import math

import pytest

from dragsort.core.collection import DragSortLibrary
from dragsort.core.errors import (
    DuplicateIdError,
    InvalidConfigError,
    ItemNotFoundError,
    PositionOutOfRangeError,
    ValidationError,
)
from dragsort.core.models import UNLOCKED, SortableItem
from dragsort.core.settings import SortOptions


def ids_of(library):
    return [entry.item.id for entry in library.get_all()]


class TestConstruction:
    """Tests for DragSortLibrary.__init__."""

    def test_empty_library(self):
        library = DragSortLibrary()
        assert len(library) == 0
        assert library.check_order() is True

    def test_defaults_from_settings(self):
        library = DragSortLibrary()
        assert library.options.step == 1000.0
        assert library.options.precision == 8

    def test_items_sorted_by_order(self):
        library = DragSortLibrary(
            [
                SortableItem(id="0", order=1),
                SortableItem(id="2", order=3),
                SortableItem(id="1", order=2),
            ],
            step=100000,
        )

        assert ids_of(library) == ["0", "1", "2"]
        assert library.check_order() is True

    def test_accepts_mappings(self):
        library = DragSortLibrary(
            [{"id": "b", "order": 2.0}, {"id": "a", "order": 1.0, "latched": 0, "data": {"x": 1}}]
        )

        assert ids_of(library) == ["a", "b"]
        assert library.get("a").item.data == {"x": 1}

    def test_input_items_are_copied(self):
        source = [SortableItem(id="a", order=1.0), SortableItem(id="b", order=2.0)]
        library = DragSortLibrary(source)

        library.move("b", 0)

        assert source[1].order == 2.0

    def test_inconsistent_pins_reconciled(self):
        library = DragSortLibrary(
            [
                SortableItem(id="a", order=1.0),
                SortableItem(id="b", order=2.0),
                SortableItem(id="pinned", order=3.0, latched=0),
            ]
        )

        assert ids_of(library) == ["pinned", "a", "b"]
        assert library.check_order() is True

    def test_duplicate_keys_renumbered(self, recording_sink):
        library = DragSortLibrary(
            [SortableItem(id="a", order=5.0), SortableItem(id="b", order=5.0)],
            step=10,
            on_renumber=recording_sink,
        )

        assert [entry.item.order for entry in library.get_all()] == [10.0, 20.0]
        assert library.check_order() is True
        assert recording_sink.ids == ["a", "b"]

    def test_duplicate_ids_rejected(self):
        with pytest.raises(DuplicateIdError):
            DragSortLibrary([SortableItem(id="a", order=1.0), SortableItem(id="a", order=2.0)])

    @pytest.mark.parametrize("latched", [-2, -3])
    def test_latched_below_unlocked_rejected(self, latched):
        items = [
            SortableItem(id="a", order=1.0),
            SortableItem(id="b", order=2.0),
            SortableItem(id="p", order=3.0, latched=latched),
        ]
        with pytest.raises(ValidationError) as exc_info:
            DragSortLibrary(items)
        assert exc_info.value.context["item_id"] == "p"

    def test_latched_below_unlocked_rejected_from_mapping(self):
        with pytest.raises(ValidationError):
            DragSortLibrary([{"id": "p", "order": 1.0, "latched": -5}])

    def test_unplaceable_pin_kept_in_collection(self):
        """A pin whose move cannot be keyed stays put and is re-pinned where it is."""
        library = DragSortLibrary(
            [
                SortableItem(id="a", order=1.0),
                SortableItem(id="p", order=2.0, latched=2),
                SortableItem(id="z", order=math.inf),
            ],
            precision=2,
        )

        assert ids_of(library) == ["a", "p", "z"]
        assert library.get("p").item.latched == 1
        assert library.get("p").item.order == 2.0

    def test_name_in_repr(self):
        assert "name='board-9'" in repr(DragSortLibrary(name="board-9"))

    def test_options_and_overrides(self):
        library = DragSortLibrary(options=SortOptions(step=50, precision=3), precision=2)
        assert library.options.step == 50.0
        assert library.options.precision == 2

    def test_invalid_options_rejected(self):
        with pytest.raises(InvalidConfigError):
            DragSortLibrary(step=0)


class TestInsert:
    """Tests for insert() and append()."""

    def test_first_item_gets_step(self):
        library = DragSortLibrary()
        result = library.append("a")
        assert result.index == 0
        assert result.item.order == 1000.0

    def test_append_uses_next_step(self):
        library = DragSortLibrary()
        library.append("a")
        assert library.append("b").item.order == 2000.0

    def test_insert_between(self):
        library = DragSortLibrary(
            [SortableItem(id="0", order=1), SortableItem(id="1", order=2), SortableItem(id="2", order=3)],
            step=100000,
        )

        library.insert("insert_2", 2)
        library.insert("insert_3", 3)

        assert ids_of(library) == ["0", "1", "insert_2", "insert_3", "2"]
        assert library.get("insert_2").item.order == 2.6
        assert library.check_order() is True
        assert library.reorder_locked() == []

    def test_insert_at_head(self):
        library = DragSortLibrary()
        library.append("a")
        result = library.insert("head", 0)
        assert result.index == 0
        assert result.item.order == 500.0

    def test_locked_insert_is_pinned(self):
        library = DragSortLibrary()
        library.append("a")
        result = library.insert("pinned", 1, lock=True)
        assert result.item.latched == 1
        assert result.item.is_locked

    def test_unlocked_insert_has_no_pin(self):
        library = DragSortLibrary()
        assert library.append("a").item.latched == UNLOCKED

    def test_payload_carried(self):
        library: DragSortLibrary[dict] = DragSortLibrary()
        library.append("card", data={"title": "Todo"})
        assert library.get("card").item.data == {"title": "Todo"}

    def test_unlocked_insert_skips_locked_run(self, lock_run_library):
        result = lock_run_library.insert("new_unlock", 2)

        assert result.index == 4
        assert ids_of(lock_run_library) == [
            "0_lock",
            "1_unlock",
            "2_lock",
            "3_lock",
            "new_unlock",
            "4_unlock",
        ]
        assert lock_run_library.reorder_locked() == []

    def test_unlocked_insert_past_trailing_locked_run(self):
        library = DragSortLibrary()
        library.append("a")
        library.append("pinned", lock=True)

        result = library.insert("b", 1)

        assert result.index == 2
        assert ids_of(library) == ["a", "pinned", "b"]

    def test_locked_insert_displaces_occupant(self, lock_run_library):
        lock_run_library.insert("new_lock", 2, lock=True)

        assert ids_of(lock_run_library) == [
            "0_lock",
            "1_unlock",
            "new_lock",
            "2_lock",
            "3_lock",
            "4_unlock",
        ]
        entries = lock_run_library.get_all()
        assert all(a.item.order < b.item.order for a, b in zip(entries, entries[1:]))

    @pytest.mark.parametrize("position", [-1, 2])
    def test_position_out_of_range(self, position):
        library = DragSortLibrary()
        library.append("a")

        with pytest.raises(PositionOutOfRangeError):
            library.insert("b", position)
        assert ids_of(library) == ["a"]

    def test_range_error_is_index_error(self):
        with pytest.raises(IndexError):
            DragSortLibrary().insert("a", 1)

    def test_duplicate_id(self):
        library = DragSortLibrary()
        library.append("a")

        with pytest.raises(DuplicateIdError) as exc_info:
            library.insert("a", 0)
        assert exc_info.value.context["item_id"] == "a"
        assert len(library) == 1


class TestMove:
    """Tests for move()."""

    def test_move_to_head_and_middle(self):
        library = DragSortLibrary()
        library.insert("00", 0)
        library.insert("10", 1)
        library.insert("move", 2)

        library.move("move", 0)
        assert ids_of(library)[0] == "move"

        library.move("move", 1)
        assert ids_of(library)[1] == "move"
        assert library.check_order() is True
        assert library.reorder_locked() == []

    def test_move_to_tail(self):
        library = DragSortLibrary()
        for item_id in ("a", "b", "c"):
            library.append(item_id)

        result = library.move("a", 2)

        assert result.index == 2
        assert ids_of(library) == ["b", "c", "a"]
        assert library.check_order() is True

    def test_same_position_is_noop(self):
        library = DragSortLibrary()
        library.append("a")
        library.append("b")
        before = library.get("b").item.order

        result = library.move("b", 1)

        assert result.index == 1
        assert result.item.order == before

    def test_unlocked_move_skips_locked_run(self, lock_run_library):
        lock_run_library.append("moveable")

        result = lock_run_library.move("moveable", 2)

        assert result.index == 4
        assert ids_of(lock_run_library) == [
            "0_lock",
            "1_unlock",
            "2_lock",
            "3_lock",
            "moveable",
            "4_unlock",
        ]

    def test_forward_move_lands_on_first_free_slot(self):
        library = DragSortLibrary()
        library.append("x")
        library.append("u1")
        library.append("pinned", lock=True)
        library.append("u3")

        result = library.move("x", 2)

        assert result.index == 2
        assert ids_of(library) == ["u1", "pinned", "x", "u3"]

    def test_locked_move_repins(self):
        library = DragSortLibrary()
        library.append("a")
        library.append("b")
        library.append("pinned", lock=True)

        result = library.move("pinned", 0)

        assert result.item.latched == 0
        assert library.check_order() is True

    def test_unknown_id(self):
        library = DragSortLibrary()
        library.append("a")
        with pytest.raises(ItemNotFoundError):
            library.move("missing", 0)

    def test_unknown_id_is_lookup_error(self):
        with pytest.raises(LookupError):
            DragSortLibrary().move("missing", 0)

    @pytest.mark.parametrize("position", [-1, 2])
    def test_position_out_of_range(self, position):
        library = DragSortLibrary()
        library.append("a")
        library.append("b")
        before = [entry.item for entry in library.get_all()]

        with pytest.raises(PositionOutOfRangeError):
            library.move("a", position)
        assert [entry.item for entry in library.get_all()] == before


class TestDelete:
    """Tests for delete()."""

    def test_delete_returns_item_and_index(self):
        library = DragSortLibrary()
        library.insert("0", 0)
        library.insert("1", 1)
        library.insert("header", 0, True)

        deleted = library.delete("0")

        assert deleted.item.id == "0"
        assert deleted.index == 1
        assert ids_of(library) == ["header", "1"]
        assert library.check_order() is True
        assert library.reorder_locked() == []

    def test_delete_missing_returns_none(self):
        assert DragSortLibrary().delete("missing") is None

    def test_delete_does_not_reconcile(self, interleaved_library):
        interleaved_library.delete("1_unlock")

        assert interleaved_library.get("2_lock").index == 1
        assert interleaved_library.get("2_lock").item.latched == 2
        assert interleaved_library.check_order() is False


class TestLock:
    """Tests for lock()."""

    def test_lock_stamps_current_index(self):
        library = DragSortLibrary()
        library.append("a")
        library.append("b")

        result = library.lock("b")

        assert result.index == 1
        assert result.item.latched == 1

    def test_relock_restamps_current_index(self, interleaved_library):
        interleaved_library.delete("1_unlock")

        result = interleaved_library.lock("2_lock")

        assert result.item.latched == 1

    def test_unlock(self, interleaved_library):
        result = interleaved_library.lock("2_lock", False)
        assert result.item.latched == UNLOCKED
        assert interleaved_library.get("2_lock").item.is_locked is False

    def test_unknown_id(self):
        with pytest.raises(ItemNotFoundError):
            DragSortLibrary().lock("missing")


class TestReads:
    """Tests for get(), get_all(), clone() and container helpers."""

    def test_get_missing(self):
        assert DragSortLibrary().get("missing") is None

    def test_get_returns_copy(self):
        library = DragSortLibrary()
        library.append("a")

        library.get("a").item.order = -5

        assert library.get("a").item.order == 1000.0

    def test_get_all_indices(self, interleaved_library):
        entries = interleaved_library.get_all()
        assert [entry.index for entry in entries] == list(range(6))

    def test_get_after_construction(self):
        items = [
            SortableItem(id="0_lock", order=0, latched=0),
            SortableItem(id="1_lock", order=1, latched=1),
            SortableItem(id="2_lock", order=2, latched=2),
            SortableItem(id="3_unlock", order=3),
            SortableItem(id="4_lock", order=4, latched=4),
        ]
        library = DragSortLibrary(items)
        library.insert("5_unlock", 5)

        for index, item in enumerate(items):
            found = library.get(item.id)
            assert found.index == index
            assert found.item.latched == item.latched

    def test_clone_is_independent(self):
        library = DragSortLibrary()
        library.append("a")

        clone = library.clone()
        clone[0].order = 1.0

        assert library.get("a").item.order == 1000.0
        assert DragSortLibrary(clone).get("a").item.order == 1.0

    def test_container_protocol(self, interleaved_library):
        assert "0_lock" in interleaved_library
        assert "missing" not in interleaved_library
        assert interleaved_library.length == 6
        assert [entry.id for entry in interleaved_library] == interleaved_library.ids()


class TestOverflow:
    """Overflow handling through insert/move."""

    def make_library(self, sink):
        return DragSortLibrary(
            [
                SortableItem(id="head", order=1),
                SortableItem(id="tail", order=1.02),
                SortableItem(id="mid", order=3),
            ],
            precision=2,
            step=10,
            on_renumber=sink,
            context="ctx",
        )

    def test_move_between_close_keys_without_renumber(self, recording_sink):
        library = self.make_library(recording_sink)

        library.move("mid", 1)
        library.move("mid", 1)

        assert library.get_all()[1].item.id == "mid"
        assert library.get_all()[1].item.order == 1.01
        assert library.check_order() is True
        assert recording_sink.calls == []
        assert library.last_renumber is None

    def test_insert_overflow_renumbers_everything_changed(self, recording_sink):
        library = self.make_library(recording_sink)
        library.move("mid", 1)

        result = library.insert("new-node", 1)

        assert result.index == 1
        assert result.item.order == 20.0
        assert library.check_order() is True
        assert library.get_all()[0].item.order == 10.0
        assert len(recording_sink.items) == 4
        assert recording_sink.calls[0][1] == "ctx"

    def test_move_overflow_reports_changed_subset(self, recording_sink):
        library = self.make_library(recording_sink)
        library.move("mid", 1)

        library.move("tail", 1)

        assert library.check_order() is True
        assert ids_of(library) == ["head", "tail", "mid"]
        assert sorted(recording_sink.ids) == ["head", "mid", "tail"]
        assert library.last_renumber.count == 3

    def test_unchanged_keys_not_reported(self, recording_sink):
        library = DragSortLibrary(
            [
                SortableItem(id="head", order=10),
                SortableItem(id="tail", order=12),
                SortableItem(id="mid", order=13),
            ],
            precision=0,
            step=10,
            on_renumber=recording_sink,
        )
        library.move("mid", 1)
        assert library.get("mid").item.order == 11

        library.move("tail", 1)

        assert library.check_order() is True
        assert recording_sink.ids == ["tail", "mid"]

    def test_repeated_moves_stay_within_precision(self, recording_sink):
        library = DragSortLibrary(precision=3, step=10, on_renumber=recording_sink)
        library.append("header")
        middler = library.append("mid").item
        tailer = library.append("tail").item

        moving = tailer
        for _ in range(10):
            library.move(moving.id, 1)
            assert library.check_order() is True
            moving = middler if moving.id == tailer.id else tailer

        assert recording_sink.calls == []

    def test_failing_sink_does_not_fail_insert(self):
        def sink(changed, context):
            raise RuntimeError("persistence unavailable")

        library = self.make_library(sink)
        library.move("mid", 1)

        result = library.insert("new-node", 1)

        assert result.index == 1
        assert library.check_order() is True
        assert library.last_renumber.error is not None
