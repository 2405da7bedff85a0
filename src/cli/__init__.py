"""CLI entry point for the Restaurant Bulk Operations service."""

from __future__ import annotations

import click

from src.cli.commands import (
    add_product,
    bulk_products,
    init_db,
    list_products,
    serve,
)


@click.group()
def cli() -> None:
    """Restaurant Bulk Operations."""


cli.add_command(init_db)
cli.add_command(add_product)
cli.add_command(list_products)
cli.add_command(bulk_products)
cli.add_command(serve)
