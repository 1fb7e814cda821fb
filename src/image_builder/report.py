"""User-facing build output."""

from __future__ import annotations

import click


class Reporter:
    """Writes build headings and result lines to the console."""

    def heading(self, text: str) -> None:
        click.echo()
        click.secho(text, bold=True)
        click.echo("-" * len(text))

    def message(self, text: str = "") -> None:
        click.echo(text)
