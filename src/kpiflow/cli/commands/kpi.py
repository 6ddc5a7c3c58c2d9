"""KPI catalog and stored data commands."""

import click
from kpiflow.domain.entities import DATA_TYPES
from kpiflow.domain.errors import DomainError
from kpiflow.domain.kpi import KpiService
from kpiflow.cli.error_handling import handle_domain_error
from kpiflow.utils.date_parser import parse_date_value


@click.group()
def kpi_group():
    """Browse KPI definitions and imported values."""
    pass


@kpi_group.command("list")
@click.option("--category", help="Only show one category")
@click.pass_context
def list_kpis(ctx, category):
    """List KPI definitions."""
    db = ctx.obj["db"]
    service = KpiService(db)

    definitions = service.list_definitions(category=category)
    if not definitions:
        click.echo("No KPI definitions found. Run 'init-kpis' first.")
        return

    current = None
    for definition in definitions:
        if definition.category != current:
            current = definition.category
            click.echo(f"\n{current}:")
        click.echo(f"  {definition.code:<28} {definition.name} ({definition.format})")


@kpi_group.command("data")
@click.argument("deal_id")
@click.option("--kpi", "kpi_code", help="Filter by KPI code")
@click.option("--data-type", type=click.Choice(DATA_TYPES), help="Filter by data type")
@click.option("--start-date", help="First period (inclusive)")
@click.option("--end-date", help="Last period (inclusive)")
@click.pass_context
def list_data(ctx, deal_id: str, kpi_code, data_type, start_date, end_date):
    """List imported KPI values for a deal."""
    db = ctx.obj["db"]
    service = KpiService(db)

    start = parse_date_value(start_date) if start_date else None
    end = parse_date_value(end_date) if end_date else None
    if (start_date and start is None) or (end_date and end is None):
        click.echo("Error: Invalid date filter", err=True)
        ctx.exit(1)

    try:
        values = service.list_data(
            deal_id=deal_id,
            kpi_code=kpi_code,
            data_type=data_type,
            start_date=start,
            end_date=end,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not values:
        click.echo(f"No KPI data found for deal {deal_id}.")
        return

    codes = {d.id: d.code for d in service.list_definitions()}
    click.echo(f"\nKPI data for deal {deal_id}:")
    click.echo("-" * 72)
    for value in values:
        click.echo(
            f"{value.period_date.isoformat()}  {codes.get(value.kpi_id, value.kpi_id):<24} "
            f"{value.data_type:<9} {value.value:>16}  {value.source_ref or ''}"
        )


def register_commands(cli):
    """Register kpi commands with main CLI."""
    cli.add_command(kpi_group, name="kpi")
