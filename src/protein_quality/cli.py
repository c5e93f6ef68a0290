import json
from pathlib import Path

import typer

from .app_logging import configure_logging
from .calculations import (
    CalculationInputError,
    calculate_digestible_protein,
    calculate_dv_from_protein,
    create_calculation_record,
    digestibility_band,
    effective_quality_score,
    get_protein_quality_rating,
    parse_calculation_input,
    sort_by_quality,
)
from .catalog import ProteinCatalog, default_catalog
from .config import Settings, load_settings
from .history import (
    HistoryStore,
    calculation_statistics,
    filter_history,
    open_history_store,
)
from .history_io import HistoryImportError, export_history_file, import_history_file, record_to_dict
from .models import CATEGORIES, ProteinSource

app = typer.Typer(help="Protein quality calculator (DIAAS / PDCAAS)")
history_app = typer.Typer(help="Calculation history")
app.add_typer(history_app, name="history")


def _echo_json(data: object) -> None:
    typer.echo(json.dumps(data, ensure_ascii=False))


def _check_category(value: str) -> str:
    value = value.strip().lower()
    if value not in CATEGORIES:
        raise typer.BadParameter(f"must be one of: {', '.join(CATEGORIES)}")
    return value


def _catalog(ctx: typer.Context) -> ProteinCatalog:
    return ctx.obj["catalog"]


def _store(ctx: typer.Context) -> HistoryStore:
    settings: Settings = ctx.obj["settings"]
    return open_history_store(ctx.obj["history_path"], limit=settings.history_limit)


def _lookup(ctx: typer.Context, source_id: str) -> ProteinSource:
    source = _catalog(ctx).get(source_id)
    if source is None:
        typer.echo(f"Unknown protein source: {source_id}", err=True)
        raise typer.Exit(code=1)
    return source


def _source_summary(source: ProteinSource) -> dict[str, object]:
    rating = get_protein_quality_rating(source)
    return {
        "id": source.id,
        "name": source.name,
        "category": source.category,
        "diaas": source.diaas_score,
        "pdcaas": source.pdcaas_score,
        "rating": rating.rating,
    }


@app.callback()
def main(
    ctx: typer.Context,
    verbose: int = typer.Option(0, "--verbose", "-v", count=True, help="Increase log verbosity"),
    log_file: str | None = typer.Option(None, help="Also write logs to this file"),
    history: Path | None = typer.Option(None, help="History file (.json) or SQLite database"),
) -> None:
    try:
        settings = load_settings()
    except ValueError as exc:
        typer.echo(f"Invalid configuration: {exc}", err=True)
        raise typer.Exit(code=2) from exc
    configure_logging(verbose, log_file, base_level=settings.log_level_number)
    ctx.obj = {
        "settings": settings,
        "history_path": history or settings.history_path,
        "catalog": default_catalog(),
    }


@app.command()
def calculate(
    ctx: typer.Context,
    protein: str = typer.Option(..., help="Stated protein in grams"),
    source: str = typer.Option(..., help="Protein source id (see `sources`)"),
    dv: str = typer.Option("", help="Daily Value percentage from the label"),
    save: bool = typer.Option(True, help="Save the calculation to history"),
) -> None:
    """Compute quality-adjusted protein for a stated amount."""
    protein_source = _lookup(ctx, source)
    try:
        calc_input = parse_calculation_input(protein, dv, protein_source)
    except CalculationInputError as exc:
        raise typer.BadParameter(str(exc)) from exc

    result = calculate_digestible_protein(calc_input)
    rating = get_protein_quality_rating(protein_source)
    payload: dict[str, object] = {
        "source": protein_source.name,
        "stated_protein": calc_input.stated_protein,
        "stated_dv_percentage": round(calculate_dv_from_protein(calc_input.stated_protein), 1),
        "dv_percentage": calc_input.dv_percentage,
        "method": result.calculation_method,
        "score": result.score_used,
        "quality_adjusted_protein": round(result.quality_adjusted_protein, 2),
        "protein_quality_percentage": round(result.protein_quality_percentage, 2),
        "adjusted_protein": None if result.adjusted_protein is None else round(result.adjusted_protein, 2),
        "dv_discrepancy": None if result.dv_discrepancy is None else round(result.dv_discrepancy, 2),
        "band": digestibility_band(result.protein_quality_percentage),
        "rating": rating.rating,
    }
    if save:
        record = create_calculation_record(calc_input, result)
        _store(ctx).append(record)
        payload["record_id"] = record.id
    _echo_json(payload)


@app.command()
def sources(
    ctx: typer.Context,
    category: str = typer.Option("all", callback=_check_category, help="Category filter"),
    query: str = typer.Option("", help="Search name or description"),
    top: int = typer.Option(0, min=0, help="Only the N highest quality sources"),
) -> None:
    """List protein sources."""
    found = _catalog(ctx).search_sources(query, category)
    if top:
        found = sort_by_quality(found)[:top]
    _echo_json([_source_summary(s) for s in found])


@app.command()
def rating(ctx: typer.Context, source: str = typer.Option(..., help="Protein source id")) -> None:
    """Show the quality rating for a source."""
    protein_source = _lookup(ctx, source)
    result = get_protein_quality_rating(protein_source)
    _echo_json(
        {
            "source": protein_source.name,
            "score": effective_quality_score(protein_source),
            "rating": result.rating,
            "description": result.description,
            "color": result.color,
        }
    )


@history_app.command("list")
def history_list(
    ctx: typer.Context,
    category: str = typer.Option("all", callback=_check_category, help="Category filter"),
    query: str = typer.Option("", help="Filter by source name"),
) -> None:
    records = filter_history(_store(ctx).list_records(), category, query)
    _echo_json([record_to_dict(r) for r in records])


@history_app.command("delete")
def history_delete(ctx: typer.Context, record_id: str) -> None:
    if not _store(ctx).delete_by_id(record_id):
        typer.echo(f"No calculation with id {record_id}", err=True)
        raise typer.Exit(code=1)
    _echo_json({"deleted": record_id})


@history_app.command("clear")
def history_clear(ctx: typer.Context, yes: bool = typer.Option(False, "--yes", help="Skip confirmation")) -> None:
    if not yes:
        typer.confirm("Delete all calculation history?", abort=True)
    _store(ctx).clear()
    _echo_json({"cleared": True})


@history_app.command("export")
def history_export(ctx: typer.Context, path: Path) -> None:
    count = export_history_file(_store(ctx), path)
    _echo_json({"exported": count, "path": str(path)})


@history_app.command("import")
def history_import(
    ctx: typer.Context,
    path: Path = typer.Argument(..., exists=True, dir_okay=False),
    replace: bool = typer.Option(False, help="Replace existing history instead of merging"),
) -> None:
    try:
        accepted = import_history_file(_store(ctx), path, replace_existing=replace)
    except HistoryImportError as exc:
        typer.echo(f"Import failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    _echo_json({"imported": accepted, "replace": replace})


@history_app.command("stats")
def history_stats(ctx: typer.Context) -> None:
    stats = calculation_statistics(_store(ctx).list_records())
    _echo_json(
        {
            "total_calculations": stats.total_calculations,
            "average_stated_protein": round(stats.average_stated_protein, 2),
            "average_quality_adjusted_protein": round(stats.average_quality_adjusted_protein, 2),
            "most_used_sources": [{"name": name, "count": count} for name, count in stats.most_used_sources],
        }
    )


if __name__ == "__main__":
    app()
