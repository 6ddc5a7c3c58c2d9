"""CLI error handling helpers."""

import click

from kpiflow.domain.entities import ImportResult
from kpiflow.domain.errors import DomainError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


def echo_import_result(ctx: click.Context, result: ImportResult) -> None:
    """Print an import summary; exit with failure if nothing was imported."""
    if not result.success:
        for issue in result.errors:
            click.echo(f"Error: {issue.message}", err=True)
        ctx.exit(1)
        return

    click.echo("\nImport complete:")
    click.echo(f"  Connection: {result.connection_id}")
    click.echo(f"  Imported: {result.rows_imported} values")
    click.echo(f"  Skipped: {result.rows_skipped} rows")
    click.echo(f"  Columns mapped: {result.columns_mapped}")
    if result.errors:
        click.echo(f"  Issues: {len(result.errors)}")
        for issue in result.errors:
            click.echo(f"    [{issue.severity}] {issue}", err=True)
