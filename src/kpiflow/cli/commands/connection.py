"""Data connection management commands."""

import click
from kpiflow.domain.connection import ConnectionService
from kpiflow.domain.entities import DATA_TYPES, PROVIDERS, SYNC_FREQUENCIES
from kpiflow.domain.errors import DomainError
from kpiflow.cli.error_handling import handle_domain_error


@click.group()
def connection_group():
    """Manage data connections."""
    pass


@connection_group.command("create")
@click.argument("name")
@click.option("--fund", "fund_id", required=True, help="Owning fund ID")
@click.option("--deal", "deal_id", help="Deal the connection feeds")
@click.option("--provider", type=click.Choice(PROVIDERS), default="excel", show_default=True)
@click.option("--spreadsheet-id", help="Google spreadsheet ID (google_sheets only)")
@click.option("--sheet", "sheet_name", help="Sheet/tab name")
@click.pass_context
def create_connection(ctx, name: str, fund_id: str, deal_id, provider: str, spreadsheet_id, sheet_name):
    """Create a new data connection."""
    db = ctx.obj["db"]
    service = ConnectionService(db)

    try:
        if provider == "google_sheets":
            connection_id = service.create_google_sheets_connection(
                fund_id=fund_id,
                name=name,
                spreadsheet_id=spreadsheet_id,
                sheet_name=sheet_name,
                deal_id=deal_id,
            )
        else:
            connection_id = service.create_excel_connection(fund_id=fund_id, name=name, deal_id=deal_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Created connection '{name}' (ID: {connection_id})")
    click.echo("Use 'connection map' to add column mappings.")


@connection_group.command("list")
@click.option("--fund", "fund_id", help="Filter by fund ID")
@click.option("--deal", "deal_id", help="Filter by deal ID")
@click.pass_context
def list_connections(ctx, fund_id, deal_id):
    """List data connections."""
    db = ctx.obj["db"]
    service = ConnectionService(db)

    connections = service.list_connections(fund_id=fund_id, deal_id=deal_id)
    if not connections:
        click.echo("No connections found.")
        return

    click.echo("\nConnections:")
    click.echo("-" * 60)
    for conn in connections:
        click.echo(
            f"{conn.name} (ID: {conn.id}, Provider: {conn.provider}, "
            f"Status: {conn.sync_status}, Columns: {len(conn.column_mapping)})"
        )


@connection_group.command("show")
@click.argument("connection_id", type=int)
@click.pass_context
def show_connection(ctx, connection_id: int):
    """Show connection details and its column mapping."""
    db = ctx.obj["db"]
    service = ConnectionService(db)

    try:
        conn = service.require_connection(connection_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"\nConnection: {conn.name}")
    click.echo(f"  ID: {conn.id}")
    click.echo(f"  Fund: {conn.fund_id}")
    click.echo(f"  Deal: {conn.deal_id or '-'}")
    click.echo(f"  Provider: {conn.provider}")
    if conn.spreadsheet_id:
        click.echo(f"  Spreadsheet: {conn.spreadsheet_id} [{conn.sheet_name or 'first sheet'}]")
    click.echo(f"  Status: {conn.sync_status}")
    if conn.sync_error:
        click.echo(f"  Last error: {conn.sync_error}")
    if conn.last_synced_at:
        click.echo(f"  Last synced: {conn.last_synced_at:%Y-%m-%d %H:%M} ({conn.last_sync_row_count} values)")
    click.echo(f"  Sync: {conn.sync_frequency} ({'enabled' if conn.sync_enabled else 'disabled'})")
    if conn.column_mapping:
        click.echo("  Mappings:")
        for m in conn.column_mapping:
            click.echo(f"    {m.column_name} -> {m.kpi_code} ({m.data_type})")
    else:
        click.echo("  No column mappings configured.")


@connection_group.command("map")
@click.argument("connection_id", type=int)
@click.argument("column_name")
@click.argument("kpi_code")
@click.option("--data-type", type=click.Choice(DATA_TYPES), default="actual", show_default=True)
@click.pass_context
def map_column(ctx, connection_id: int, column_name: str, kpi_code: str, data_type: str):
    """Map a spreadsheet column to a KPI code."""
    db = ctx.obj["db"]
    service = ConnectionService(db)

    try:
        service.set_column(connection_id, column_name, kpi_code, data_type)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Mapped column '{column_name}' to '{kpi_code}' ({data_type})")


@connection_group.command("unmap")
@click.argument("connection_id", type=int)
@click.argument("column_name")
@click.pass_context
def unmap_column(ctx, connection_id: int, column_name: str):
    """Remove a column mapping."""
    db = ctx.obj["db"]
    service = ConnectionService(db)

    try:
        service.remove_column(connection_id, column_name)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Removed mapping for column '{column_name}'")


@connection_group.command("set-deal")
@click.argument("connection_id", type=int)
@click.argument("deal_id", required=False)
@click.pass_context
def set_deal(ctx, connection_id: int, deal_id):
    """Point a connection at a deal (omit DEAL_ID to clear)."""
    db = ctx.obj["db"]
    service = ConnectionService(db)

    try:
        service.update_connection_deal(connection_id, deal_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Connection {connection_id} deal set to {deal_id or '-'}")


@connection_group.command("schedule")
@click.argument("connection_id", type=int)
@click.option("--frequency", type=click.Choice(SYNC_FREQUENCIES), help="Sync frequency")
@click.option("--enable/--disable", "enabled", default=None, help="Enable or disable syncing")
@click.pass_context
def schedule(ctx, connection_id: int, frequency, enabled):
    """Update a connection's sync schedule."""
    db = ctx.obj["db"]
    service = ConnectionService(db)

    if frequency is None and enabled is None:
        click.echo("Error: Nothing to update. Use --frequency and/or --enable/--disable.", err=True)
        ctx.exit(1)

    try:
        service.update_sync_settings(connection_id, frequency=frequency, enabled=enabled)
        conn = service.require_connection(connection_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(
        f"Connection {connection_id} syncs {conn.sync_frequency} "
        f"({'enabled' if conn.sync_enabled else 'disabled'})"
    )


@connection_group.command("delete")
@click.argument("connection_id", type=int)
@click.option("--force", is_flag=True, help="Skip confirmation")
@click.pass_context
def delete_connection(ctx, connection_id: int, force: bool):
    """Delete a connection. Imported KPI data is kept."""
    db = ctx.obj["db"]
    service = ConnectionService(db)

    try:
        conn = service.require_connection(connection_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not force and not click.confirm(f"Delete connection '{conn.name}'?"):
        click.echo("Cancelled.")
        return

    service.delete_connection(connection_id)
    click.echo(f"Deleted connection '{conn.name}'")


def register_commands(cli):
    """Register connection commands with main CLI."""
    cli.add_command(connection_group, name="connection")
