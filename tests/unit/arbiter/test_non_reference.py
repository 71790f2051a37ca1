from mv_timeliness.arbiter.non_reference import needs_refresh_on_non_ref_base_tables
from mv_timeliness.model import BaseTable, MaterializedView, TableKind
from mv_timeliness.policy import ExternalRewriteMode, Purpose
from mv_timeliness.update_info import FailureReason

SALES = BaseTable(1, "sales")
STORES = BaseTable(2, "stores")
REGIONS = BaseTable(3, "regions")
HIVE_RATES = BaseTable(4, "hive_rates", TableKind.EXTERNAL)


class _Tracker:
    def __init__(self, changed=()):
        self.changed = set(changed)
        self.probed: list[str] = []

    def is_table_changed(self, mv, base_table, purpose):
        self.probed.append(base_table.name)
        return base_table in self.changed

    def get_base_table_delta(self, mv, base_table, use_cache, purpose):  # pragma: no cover
        raise AssertionError("non-ref check must not collect deltas")


def _mv(*base_tables, external_rewrite_mode=None):
    return MaterializedView(
        id=1,
        name="mv_sales",
        base_tables=base_tables,
        external_rewrite_mode=external_rewrite_mode,
    )


def test_fresh_non_ref_tables_report_nothing():
    tracker = _Tracker()

    failure = needs_refresh_on_non_ref_base_tables(
        _mv(SALES, STORES, REGIONS), (SALES,), tracker, Purpose.QUERY_REWRITE
    )

    assert failure is None
    assert tracker.probed == ["stores", "regions"]


def test_stops_at_first_changed_table():
    tracker = _Tracker(changed={STORES, REGIONS})

    failure = needs_refresh_on_non_ref_base_tables(
        _mv(SALES, STORES, REGIONS), (SALES,), tracker, Purpose.REFRESH
    )

    assert failure.table == STORES
    assert failure.reason is FailureReason.TABLE_CHANGED
    assert tracker.probed == ["stores"]


def test_external_table_with_rewrite_disabled_is_stale_without_probe():
    tracker = _Tracker()

    failure = needs_refresh_on_non_ref_base_tables(
        _mv(SALES, HIVE_RATES, external_rewrite_mode=ExternalRewriteMode.DISABLE),
        (SALES,),
        tracker,
        Purpose.QUERY_REWRITE,
    )

    assert failure.table == HIVE_RATES
    assert failure.reason is FailureReason.EXTERNAL_REWRITE_DISABLED
    assert tracker.probed == []
