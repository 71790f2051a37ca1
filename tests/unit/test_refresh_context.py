import pytest

from mv_timeliness.errors import RefreshContextLockError
from mv_timeliness.model import BasePartitionVersion
from mv_timeliness.refresh_context import RefreshContext


def test_view_is_unusable_after_lock_release():
    context = RefreshContext()
    with context.locked() as view:
        view.record(1, "p1", BasePartitionVersion(partition_id=11, version=1))

    with pytest.raises(RefreshContextLockError):
        view.get_version_map(1)
    with pytest.raises(RefreshContextLockError):
        view.record(1, "p2", BasePartitionVersion(partition_id=12, version=1))


def test_ensure_version_map_registers_empty_map_once():
    context = RefreshContext({1: {"p1": BasePartitionVersion(partition_id=11, version=3)}})
    with context.locked() as view:
        assert not view.has_version_map(2)
        assert view.ensure_version_map(2) == {}
        assert view.has_version_map(2)
        assert set(view.ensure_version_map(1)) == {"p1"}
        assert view.table_ids() == [1, 2]


def test_returned_version_maps_are_copies():
    context = RefreshContext({1: {"p1": BasePartitionVersion(partition_id=11, version=3)}})
    with context.locked() as view:
        versions = view.get_version_map(1)
        versions.clear()
        assert set(view.get_version_map(1)) == {"p1"}


def test_locked_contexts_are_reentrant_for_same_thread():
    context = RefreshContext()
    with context.locked() as outer:
        with context.locked() as inner:
            inner.record(1, "p1", BasePartitionVersion(partition_id=11, version=1))
        assert set(outer.get_version_map(1)) == {"p1"}
