from mv_timeliness.arbiter.collector import collect_base_table_changes
from mv_timeliness.model import BaseTable, BaseTableDelta, MaterializedView, TableKind
from mv_timeliness.policy import Purpose

SALES = BaseTable(1, "sales")
MV_DAILY = BaseTable(2, "mv_daily", TableKind.MATERIALIZED_VIEW)
MV_WEEKLY = BaseTable(3, "mv_weekly", TableKind.MATERIALIZED_VIEW)

PARENT = MaterializedView(id=9, name="mv_parent", base_tables=(SALES, MV_DAILY, MV_WEEKLY))


class _Tracker:
    def __init__(self, deltas):
        self.deltas = deltas
        self.requests: list[tuple[str, bool, Purpose]] = []

    def is_table_changed(self, mv, base_table, purpose):  # pragma: no cover - not used
        raise AssertionError("collector must not probe whole tables")

    def get_base_table_delta(self, mv, base_table, use_cache, purpose):
        self.requests.append((base_table.name, use_cache, purpose))
        return self.deltas[base_table]


def test_every_ref_table_gets_a_delta_record():
    tracker = _Tracker(
        {
            SALES: BaseTableDelta(),
            MV_DAILY: BaseTableDelta(changed_partitions=frozenset({"d1"})),
            MV_WEEKLY: BaseTableDelta(),
        }
    )

    collected = collect_base_table_changes(
        PARENT, (SALES, MV_DAILY, MV_WEEKLY), tracker, Purpose.REFRESH, use_cache=False
    )

    assert set(collected.deltas) == {SALES, MV_DAILY, MV_WEEKLY}
    assert collected.change_set == {
        SALES: frozenset(),
        MV_DAILY: frozenset({"d1"}),
        MV_WEEKLY: frozenset(),
    }
    assert tracker.requests == [
        ("sales", False, Purpose.REFRESH),
        ("mv_daily", False, Purpose.REFRESH),
        ("mv_weekly", False, Purpose.REFRESH),
    ]


def test_only_non_empty_nested_cells_are_surfaced():
    tracker = _Tracker(
        {
            SALES: BaseTableDelta(),
            MV_DAILY: BaseTableDelta(
                changed_partitions=frozenset({"d1"}), nested_cells={"d1": ("2024-01-01", "2024-01-02")}
            ),
            MV_WEEKLY: BaseTableDelta(),
        }
    )

    collected = collect_base_table_changes(
        PARENT, (SALES, MV_DAILY, MV_WEEKLY), tracker, Purpose.QUERY_REWRITE
    )

    assert [update.table for update in collected.nested_cell_updates] == [MV_DAILY]
    assert collected.nested_cell_updates[0].cells == {"d1": ("2024-01-01", "2024-01-02")}
