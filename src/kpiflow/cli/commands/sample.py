"""Sample dataset commands."""

import csv

import click
from kpiflow.domain.kpi_import import KpiImportService
from kpiflow.domain.sample_data import (
    DEFAULT_SEED,
    get_minimal_sample_data_columns,
    get_minimal_sample_data_rows,
    get_sample_data,
)
from kpiflow.cli.error_handling import echo_import_result


@click.group()
def sample_group():
    """Demo dataset for a reference multifamily property."""
    pass


@sample_group.command("show")
@click.option("--seed", type=int, default=DEFAULT_SEED, show_default=True)
@click.option("--mappings", "show_mappings", is_flag=True, help="Also list the column mappings")
@click.pass_context
def show_sample(ctx, seed: int, show_mappings: bool):
    """Show the sample dataset."""
    sample = get_sample_data(seed)

    click.echo(f"\n{sample.name}")
    click.echo(sample.description)
    click.echo(f"Property type: {sample.property_type}")
    click.echo(f"Columns: {len(sample.columns)}, Rows: {len(sample.rows)}")
    click.echo("-" * 60)
    for row in sample.rows:
        click.echo(
            f"{row['Date']}  Revenue {row['Total Revenue']:>9,}  "
            f"NOI {row['Net Operating Income']:>9,}  Occupancy {row['Occupancy Rate']}%"
        )

    if show_mappings:
        click.echo("\nMappings:")
        for m in sample.mappings:
            click.echo(f"  {m.column_name} -> {m.kpi_code} ({m.data_type})")


@sample_group.command("export")
@click.argument("output", type=click.Path(dir_okay=False, writable=True))
@click.option("--seed", type=int, default=DEFAULT_SEED, show_default=True)
@click.option("--minimal", is_flag=True, help="Only Date and the essential actual columns")
def export_sample(output: str, seed: int, minimal: bool):
    """Write the sample dataset to a CSV file."""
    if minimal:
        columns = get_minimal_sample_data_columns()
        rows = get_minimal_sample_data_rows(seed)
    else:
        sample = get_sample_data(seed)
        columns = sample.columns
        rows = sample.rows

    with open(output, "w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=columns)
        writer.writeheader()
        writer.writerows(rows)

    click.echo(f"Wrote {len(rows)} rows to {output}")


@sample_group.command("import")
@click.option("--fund", "fund_id", required=True, help="Owning fund ID")
@click.option("--deal", "deal_id", required=True, help="Deal the values belong to")
@click.option("--seed", type=int, default=DEFAULT_SEED, show_default=True)
@click.option("--user", "user_id", help="Importing user ID")
@click.pass_context
def import_sample(ctx, fund_id: str, deal_id: str, seed: int, user_id):
    """Create a connection for the sample dataset and import it."""
    db = ctx.obj["db"]
    service = KpiImportService(db)

    result = service.import_sample_data(fund_id, deal_id, user_id=user_id, seed=seed)
    echo_import_result(ctx, result)


def register_commands(cli):
    """Register sample commands with main CLI."""
    cli.add_command(sample_group, name="sample")
