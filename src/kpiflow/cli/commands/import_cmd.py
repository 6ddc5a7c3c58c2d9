"""Spreadsheet import, preview and mapping suggestion commands."""

import click
from kpiflow.domain.column_mapping import analyze_columns, validate_mappings_have_date
from kpiflow.domain.entities import DATA_TYPES, MappingSelection
from kpiflow.domain.errors import DomainError
from kpiflow.domain.kpi_import import KpiImportService
from kpiflow.sources import open_source
from kpiflow.cli.error_handling import echo_import_result, handle_domain_error


def _read_file(ctx, path: str, sheet_name):
    source = open_source(path, sheet_name=sheet_name)
    try:
        return source.read_rows()
    except (ValueError, FileNotFoundError) as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)


def _column_names(rows) -> list[str]:
    names: list[str] = []
    for row in rows:
        for key in row:
            if key not in names:
                names.append(key)
    return names


def _warn_if_no_date_column(columns, rows) -> None:
    message = validate_mappings_have_date(columns, rows)
    if message:
        click.echo(f"Warning: {message}", err=True)


def _parse_map_option(ctx, value: str) -> MappingSelection:
    """Parse 'Column=kpi_code' or 'Column=kpi_code:data_type'."""
    column, sep, target = value.rpartition("=")
    if not sep or not column or not target:
        click.echo(f"Error: Invalid mapping '{value}'. Use COLUMN=KPI_CODE[:DATA_TYPE]", err=True)
        ctx.exit(1)
    kpi_code, _, data_type = target.partition(":")
    data_type = data_type or "actual"
    if data_type not in DATA_TYPES:
        click.echo(
            f"Error: Invalid data type '{data_type}'. Must be one of: {', '.join(DATA_TYPES)}",
            err=True,
        )
        ctx.exit(1)
    return MappingSelection(column_name=column.strip(), kpi_code=kpi_code.strip(), data_type=data_type)


@click.command("suggest")
@click.argument("file", type=click.Path(exists=True))
@click.option("--sheet", "sheet_name", help="Worksheet name for Excel files")
@click.pass_context
def suggest(ctx, file: str, sheet_name):
    """Suggest KPI mappings for the columns of a CSV or Excel file."""
    db = ctx.obj["db"]
    service = KpiImportService(db)

    rows = _read_file(ctx, file, sheet_name)
    columns = _column_names(rows)
    samples = {name: [row.get(name) for row in rows[:10]] for name in columns}

    click.echo("\nColumns:")
    for info in analyze_columns(columns, rows):
        examples = ", ".join(str(v) for v in info.sample_values[:3])
        click.echo(f"  {info.name:<30} {info.detected_type:<10} blanks: {info.null_count:<4} {examples}")
    _warn_if_no_date_column(columns, rows)

    suggestions = service.suggest_mappings(columns, samples)
    click.echo("\nSuggested mappings:")
    click.echo("-" * 72)
    for s in suggestions:
        mark = "✓" if s.include else " "
        if s.suggested_kpi_code is None:
            click.echo(f"{mark} {s.column_name:<30} (no match)")
        else:
            click.echo(
                f"{mark} {s.column_name:<30} -> {s.suggested_kpi_code} "
                f"[{s.confidence} {s.confidence_score:.2f}]"
            )


@click.command("preview")
@click.argument("file", type=click.Path(exists=True))
@click.option("--connection", "connection_id", type=int, required=True, help="Connection ID")
@click.option("--sheet", "sheet_name", help="Worksheet name for Excel files")
@click.option("--rows", "row_limit", type=int, default=5, show_default=True, help="Rows to preview")
@click.pass_context
def preview(ctx, file: str, connection_id: int, sheet_name, row_limit: int):
    """Preview how a file lines up with a connection's mapping."""
    db = ctx.obj["db"]
    service = KpiImportService(db)

    rows = _read_file(ctx, file, sheet_name)
    try:
        result = service.preview_mapped_data(connection_id, rows[:row_limit])
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"\nColumns: {', '.join(result.columns)}")
    if result.mapped_data:
        click.echo("Mapped:")
        for column in result.mapped_data:
            values = ", ".join("" if v is None else str(v) for v in column.values)
            click.echo(f"  {column.kpi_name} ({column.kpi_code}): {values}")
    if result.unmapped_columns:
        click.echo(f"Unmapped: {', '.join(result.unmapped_columns)}")


@click.command("import")
@click.argument("file", type=click.Path(exists=True))
@click.option("--deal", "deal_id", required=True, help="Deal the values belong to")
@click.option("--connection", "connection_id", type=int, help="Existing Excel connection ID")
@click.option("--fund", "fund_id", help="Fund ID for a new connection")
@click.option("--name", help="Name for a new connection (defaults to the file name)")
@click.option(
    "--map",
    "map_options",
    multiple=True,
    help="Column mapping for a new connection: COLUMN=KPI_CODE[:DATA_TYPE]",
)
@click.option("--auto", is_flag=True, help="Use suggested mappings for a new connection")
@click.option("--sheet", "sheet_name", help="Worksheet name for Excel files")
@click.option("--user", "user_id", help="Importing user ID")
@click.pass_context
def import_file(
    ctx, file: str, deal_id: str, connection_id, fund_id, name, map_options, auto: bool, sheet_name, user_id
):
    """Import KPI values from a CSV or Excel file.

    Either reuse an existing connection's mapping (--connection) or create a
    new connection (--fund with --map and/or --auto).
    """
    db = ctx.obj["db"]
    service = KpiImportService(db)

    rows = _read_file(ctx, file, sheet_name)

    if connection_id is not None:
        if fund_id or map_options or auto:
            click.echo("Error: --connection cannot be combined with --fund, --map or --auto", err=True)
            ctx.exit(1)
        result = service.import_excel(deal_id, connection_id, rows, user_id=user_id)
        echo_import_result(ctx, result)
        return

    if not fund_id:
        click.echo("Error: Either --connection or --fund is required", err=True)
        ctx.exit(1)

    _warn_if_no_date_column(_column_names(rows), rows)

    selections = []
    if auto:
        columns = _column_names(rows)
        samples = {c: [row.get(c) for row in rows[:10]] for c in columns}
        selections.extend(
            MappingSelection(column_name=s.column_name, kpi_code=s.suggested_kpi_code, include=s.include)
            for s in service.suggest_mappings(columns, samples)
            if s.suggested_kpi_code is not None
        )
    selections.extend(_parse_map_option(ctx, value) for value in map_options)
    if not any(s.include for s in selections):
        click.echo("Error: No column mappings. Use --map or --auto.", err=True)
        ctx.exit(1)

    result = service.create_connection_and_import(
        fund_id=fund_id,
        name=name or click.format_filename(file, shorten=True),
        selections=selections,
        deal_id=deal_id,
        rows=rows,
        user_id=user_id,
    )
    echo_import_result(ctx, result)


@click.command("sync")
@click.argument("connection_id", type=int)
@click.option("--deal", "deal_id", required=True, help="Deal the values belong to")
@click.option(
    "--from",
    "export_file",
    type=click.Path(exists=True),
    required=True,
    help="Local CSV/Excel export of the connected sheet",
)
@click.option("--user", "user_id", help="Importing user ID")
@click.pass_context
def sync(ctx, connection_id: int, deal_id: str, export_file: str, user_id):
    """Sync a Google Sheets connection from a local export of the sheet."""
    db = ctx.obj["db"]
    conn = db.get_connection(connection_id)
    source = open_source(export_file, sheet_name=conn.sheet_name if conn else None)
    service = KpiImportService(db, sheet_source=source)

    result = service.sync_google_sheets(connection_id, deal_id, user_id=user_id)
    echo_import_result(ctx, result)


def register_commands(cli):
    """Register import commands with main CLI."""
    cli.add_command(suggest)
    cli.add_command(preview)
    cli.add_command(import_file)
    cli.add_command(sync)
