from mv_timeliness.arbiter.backfill import empty_partitions_to_refresh
from mv_timeliness.model import BaseTable, MaterializedView, MvPartition, TableKind

NATIVE = BaseTable(1, "sales", TableKind.NATIVE)
NESTED = BaseTable(2, "mv_daily", TableKind.MATERIALIZED_VIEW)
EXTERNAL = BaseTable(3, "hive_sales", TableKind.EXTERNAL)


def _mv(*base_tables):
    return MaterializedView(
        id=7,
        name="mv_sales",
        base_tables=base_tables,
        partitions={
            "m1": MvPartition("m1", has_storage_data=True),
            "m2": MvPartition("m2", has_storage_data=False),
            "m3": MvPartition("m3", has_storage_data=False),
        },
    )


def test_partitions_without_data_are_returned():
    assert empty_partitions_to_refresh(_mv(NATIVE), (NATIVE,)) == frozenset({"m2", "m3"})


def test_materialized_view_ref_tables_count_as_native():
    assert empty_partitions_to_refresh(_mv(NATIVE, NESTED), (NATIVE, NESTED)) == frozenset(
        {"m2", "m3"}
    )


def test_any_external_ref_table_disables_backfill():
    assert empty_partitions_to_refresh(_mv(NATIVE, EXTERNAL), (NATIVE, EXTERNAL)) == frozenset()


def test_external_non_ref_table_does_not_matter():
    assert empty_partitions_to_refresh(_mv(NATIVE, EXTERNAL), (NATIVE,)) == frozenset({"m2", "m3"})
