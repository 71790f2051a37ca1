from datetime import datetime, timezone

from mv_timeliness.context_store import RefreshContextRecord, RefreshContextRepository
from mv_timeliness.model import BasePartitionVersion
from mv_timeliness.refresh_context import RefreshContext


def _make_repo(tmp_path):
    repo = RefreshContextRepository(db_path=tmp_path / "ctx" / "refresh_context.db")
    repo.ensure_schema()
    return repo


def test_save_and_load_context(tmp_path):
    repo = _make_repo(tmp_path)
    refreshed_at = datetime(2024, 2, 1, 12, 0, tzinfo=timezone.utc)
    context = RefreshContext(
        {
            1: {
                "p20240101": BasePartitionVersion(101, 3, refreshed_at),
                "p20240102": BasePartitionVersion(102, 2),
            },
            2: {"customers": BasePartitionVersion(201, 7)},
        }
    )

    written = repo.save_context(10, context)
    loaded = repo.load_context(10)

    assert written == 3
    with loaded.locked() as view:
        assert view.table_ids() == [1, 2]
        versions = view.get_version_map(1)
        assert versions["p20240101"] == BasePartitionVersion(101, 3, refreshed_at)
        assert versions["p20240102"].last_refresh_time is None
        assert view.get_version_map(2)["customers"].version == 7


def test_upsert_replaces_existing_version(tmp_path):
    repo = _make_repo(tmp_path)
    repo.upsert_records([RefreshContextRecord(10, 1, "p1", 101, 1)])
    repo.upsert_records([RefreshContextRecord(10, 1, "p1", 101, 2)])

    records = repo.list_records(mv_id=10)

    assert len(records) == 1
    assert records[0].version == 2


def test_list_records_filters(tmp_path):
    repo = _make_repo(tmp_path)
    repo.upsert_records(
        [
            RefreshContextRecord(10, 1, "p1", 101, 1),
            RefreshContextRecord(10, 2, "c1", 201, 1),
            RefreshContextRecord(11, 1, "p1", 101, 1),
        ]
    )

    assert [(r.mv_id, r.base_table_id) for r in repo.list_records(mv_id=10)] == [(10, 1), (10, 2)]
    assert [r.mv_id for r in repo.list_records(base_table_id=1)] == [10, 11]
    assert len(repo.list_records(limit=1)) == 1


def test_load_context_of_unknown_mv_is_empty(tmp_path):
    repo = _make_repo(tmp_path)

    with repo.load_context(99).locked() as view:
        assert view.table_ids() == []
