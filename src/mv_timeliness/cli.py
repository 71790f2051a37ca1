"""Command line interface for offline staleness arbitration."""
import logging
from pathlib import Path
from typing import List, Optional

import typer

from .arbiter import compute_update_info
from .config import ArbiterConfig, load_config
from .context_store import RefreshContextRepository
from .errors import ArbiterError
from .policy import ConsistencyMode, Purpose
from .report import format_context_records, format_update_infos
from .snapshot import CatalogSnapshot, SnapshotVersionTracker

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)

logger = logging.getLogger(__name__)

app = typer.Typer(help="Materialized view staleness arbiter")
context_app = typer.Typer(help="Refresh context commands")
app.add_typer(context_app, name="context")


def _load_config_or_exit(config_path: Optional[str]) -> ArbiterConfig:
    try:
        return load_config(config_path)
    except (FileNotFoundError, ValueError) as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1)


def _set_verbosity(verbose: bool) -> None:
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


@app.command()
def evaluate(
    snapshot_path: str = typer.Option(..., "--snapshot", help="Catalog snapshot YAML"),
    mv_names: Optional[List[str]] = typer.Option(None, "--mv", help="Limit to these views"),
    mode: Optional[str] = typer.Option(None, "--mode", help="loose or checked"),
    purpose: Optional[str] = typer.Option(None, "--purpose", help="query_rewrite or refresh"),
    context_db: Optional[str] = typer.Option(
        None, "--context-db", help="Read recorded versions from this store instead of the snapshot"
    ),
    output_format: Optional[str] = typer.Option(None, "--format", help="table or json"),
    config_path: Optional[str] = typer.Option(None, "--config"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Decide which partitions of each materialized view are stale."""
    _set_verbosity(verbose)
    config = _load_config_or_exit(config_path)
    try:
        consistency_mode = ConsistencyMode.parse(mode or config.arbiter.default_mode)
        request_purpose = Purpose(purpose.strip().lower()) if purpose else config.arbiter.purpose
        snapshot = CatalogSnapshot.load(snapshot_path)
        repo = None
        if context_db:
            repo = RefreshContextRepository(db_path=context_db)
            repo.ensure_schema()

        tracker = SnapshotVersionTracker.from_snapshot(snapshot)
        results = []
        for name in mv_names or list(snapshot.entries):
            try:
                entry = snapshot.get_entry(name)
            except KeyError as exc:
                raise ValueError(exc.args[0]) from exc
            context = repo.load_context(entry.mv.id) if repo else entry.context
            with context.locked() as view:
                tracker.register(entry.mv, view.snapshot())
                info = compute_update_info(
                    entry.mv,
                    entry.lineage,
                    view,
                    tracker,
                    consistency_mode,
                    purpose=request_purpose,
                    use_cache=config.arbiter.use_cache,
                )
            results.append((entry.mv, info))
    except (ArbiterError, FileNotFoundError, ValueError) as exc:
        logger.error("Evaluation failed: %s", exc)
        typer.echo(f"Evaluation failed: {exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(format_update_infos(results, output_format=output_format or config.output.format))


@context_app.command("import")
def context_import(
    snapshot_path: str = typer.Option(..., "--snapshot", help="Catalog snapshot YAML"),
    db_path: Optional[str] = typer.Option(None, "--db-path"),
    config_path: Optional[str] = typer.Option(None, "--config"),
) -> None:
    """Store the recorded refresh context of every view in the snapshot."""
    config = _load_config_or_exit(config_path)
    try:
        snapshot = CatalogSnapshot.load(snapshot_path)
    except (FileNotFoundError, ValueError) as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1)

    repo = RefreshContextRepository(db_path=db_path or config.storage.context_db_path)
    repo.ensure_schema()
    written = 0
    for entry in snapshot.entries.values():
        written += repo.save_context(entry.mv.id, entry.context)
    typer.echo(
        f"Imported {written} refresh context record(s) for "
        f"{len(snapshot.entries)} materialized view(s)"
    )


@context_app.command("inspect")
def context_inspect(
    mv_id: Optional[int] = typer.Option(None, "--mv-id"),
    base_table_id: Optional[int] = typer.Option(None, "--base-table-id"),
    limit: Optional[int] = typer.Option(None, "--limit"),
    output_format: str = typer.Option("table", "--format", help="table or json"),
    db_path: Optional[str] = typer.Option(None, "--db-path"),
    config_path: Optional[str] = typer.Option(None, "--config"),
) -> None:
    """Inspect recorded refresh context without mutating anything."""
    config = _load_config_or_exit(config_path)
    path = db_path or config.storage.context_db_path
    if not Path(path).exists():
        typer.echo("Refresh context store not initialized; no records found.")
        raise typer.Exit(code=0)

    repo = RefreshContextRepository(db_path=path)
    repo.ensure_schema()
    records = repo.list_records(mv_id=mv_id, base_table_id=base_table_id, limit=limit)
    typer.echo(format_context_records(records, output_format=output_format))


if __name__ == "__main__":
    app()
