"""Line item mapping table command."""

import click

from clinicfin.domain.line_items import CATEGORIES, LINE_ITEM_MAPPINGS


@click.command("line-items")
@click.option("--category", type=click.Choice(CATEGORIES), help="Only this category")
def list_line_items(category: str | None):
    """List the account codes and labels mapped onto record fields."""
    entries = [e for e in LINE_ITEM_MAPPINGS if category is None or e.category == category]
    for entry in entries:
        code = entry.code or "-"
        click.echo(f"{code:>6s} | {entry.label:45s} | {entry.field:35s} | {entry.category}")


def register_commands(cli):
    """Register line-items command with main CLI."""
    cli.add_command(list_line_items)
