"""CLI error handling helpers."""

from contextlib import contextmanager

import click

from groomreports.domain.errors import DomainError, UnknownReportError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    if isinstance(error, UnknownReportError):
        click.echo("Run 'groomreports reports' to list available reports.", err=True)
    ctx.exit(1)


@contextmanager
def domain_errors(ctx: click.Context):
    """Render any DomainError raised inside the block and exit with failure."""
    try:
        yield
    except DomainError as e:
        handle_domain_error(ctx, e)
