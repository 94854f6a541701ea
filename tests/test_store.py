"""Tests for the per-tab snapshot store"""

import pytest

from playwright_snapshot_mcp.snapshot.allocator import ReferenceAllocator
from playwright_snapshot_mcp.snapshot.store import SnapshotStore


class TestSnapshotStore:
    """Tests for SnapshotStore"""

    def test_starts_empty_at_generation_one(self):
        store = SnapshotStore()
        assert store.current() is None
        assert store.next_generation == 1

    def test_commit_publishes_entry(self, nested_captures):
        store = SnapshotStore()
        tree = ReferenceAllocator().allocate(nested_captures, store.next_generation)

        entry = store.commit(tree, "text")

        assert store.current() is entry
        assert entry.generation == 1
        assert entry.tree is tree
        assert entry.text == "text"
        assert store.next_generation == 2

    def test_generations_strictly_increase(self, nested_captures):
        store = SnapshotStore()
        generations = []
        for _ in range(3):
            tree = ReferenceAllocator().allocate(nested_captures, store.next_generation)
            generations.append(store.commit(tree, "").generation)

        assert generations == [1, 2, 3]

    def test_commit_rejects_other_generation(self, nested_captures):
        store = SnapshotStore()
        tree = ReferenceAllocator().allocate(nested_captures, 5)

        with pytest.raises(ValueError, match="does not match"):
            store.commit(tree, "")
        assert store.current() is None
        assert store.next_generation == 1

    def test_commit_replaces_previous_entry(self, nested_captures):
        store = SnapshotStore()
        first = store.commit(ReferenceAllocator().allocate(nested_captures, 1), "first")
        second = store.commit(ReferenceAllocator().allocate(nested_captures, 2), "second")

        assert store.current() is second
        assert first.text == "first"

    def test_clear_keeps_counting(self, nested_captures):
        store = SnapshotStore()
        store.commit(ReferenceAllocator().allocate(nested_captures, 1), "")
        store.clear()

        assert store.current() is None
        assert store.next_generation == 2

    def test_new_store_restarts_generations(self, nested_captures):
        old = SnapshotStore()
        old.commit(ReferenceAllocator().allocate(nested_captures, 1), "")

        assert SnapshotStore().next_generation == 1
