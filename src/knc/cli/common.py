"""knc.cli.common — Helpers shared by the knc commands."""

from __future__ import annotations

import sys
from typing import NoReturn

import click
import yaml

from knc.errors import KncError, OutputError, ValidationError


def fail(ctx: click.Context, error: KncError) -> NoReturn:
    """Print the error (plus a usage hint for bad input) and exit 1."""
    click.echo(f"Error: {error}", err=True)
    if isinstance(error, ValidationError):
        click.echo(f"Run '{ctx.command_path} --help' for usage.", err=True)
    sys.exit(1)


def output_yaml(data: dict, output: str | None) -> None:
    text = yaml.safe_dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)
    if output:
        try:
            with open(output, "w") as f:
                f.write(text)
        except OSError as e:
            raise OutputError(f"cannot write {output}: {e}") from e
        click.echo(f"Written to {output}", err=True)
    else:
        click.echo(text, nl=False)
