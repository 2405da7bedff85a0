"""CLI command implementations for the Restaurant Bulk Operations service."""

from __future__ import annotations

import json
from pathlib import Path

import click
from pydantic import ValidationError

from src.core.result_aggregation import format_batch_summary
from src.core.validators import InvalidBatchRequestError, parse_batch_request
from src.models.config import Config
from src.models.product import Product
from src.services.database import Database
from src.utils.logger import configure_logging


def _get_config() -> Config:
    """Load configuration from .env file."""
    return Config()  # type: ignore[call-arg]


def _get_db(config: Config) -> Database:
    """Initialize database with schema."""
    db = Database(db_path=config.database_path)
    db.init_db()
    return db


def _read_ids_file(path: str) -> list[str]:
    """One id per line; blank lines and # comments are skipped."""
    lines = Path(path).read_text(encoding="utf-8").splitlines()
    return [line.strip() for line in lines if line.strip() and not line.startswith("#")]


@click.command()
def init_db() -> None:
    """Create the local SQLite schema."""
    config = _get_config()
    configure_logging(config.log_level, json_output=config.log_json)
    db = _get_db(config)
    click.echo(f"[SUCCESS] Database ready at {config.database_path}")
    db.close()


@click.command()
@click.option("--name", required=True, help="Product name")
@click.option("--price", default=0.0, type=float, help="Unit price")
@click.option("--description", default=None, help="Menu description")
@click.option("--category", default=None, help="Menu category")
@click.option("--unavailable", is_flag=True, help="Create the product as not available")
def add_product(
    name: str,
    price: float,
    description: str | None,
    category: str | None,
    unavailable: bool,
) -> None:
    """Add a product to the local menu."""
    config = _get_config()
    configure_logging(config.log_level, json_output=config.log_json)

    try:
        product = Product(
            name=name,
            price=price,
            description=description,
            category=category,
            is_available=not unavailable,
        )
    except ValidationError as exc:
        raise click.BadParameter(str(exc)) from exc

    db = _get_db(config)

    from src.repositories.product_repository import ProductRepository

    product_id = ProductRepository(db).add_product(product)
    click.echo(product_id)
    db.close()


@click.command()
@click.option(
    "--status",
    default="all",
    type=click.Choice(["all", "available", "unavailable"]),
    help="Filter by availability",
)
def list_products(status: str) -> None:
    """List local menu products."""
    config = _get_config()
    configure_logging(config.log_level, json_output=config.log_json)
    db = _get_db(config)

    from src.repositories.product_repository import ProductRepository

    availability = {"all": None, "available": True, "unavailable": False}[status]
    products = ProductRepository(db).get_products(is_available=availability)

    if not products:
        click.echo("[INFO] No products found")
    for product in products:
        flag = "available" if product["is_available"] else "unavailable"
        category = product["category"] or "-"
        click.echo(
            f"{product['id']}  {product['name']}  [{category}]  "
            f"{product['price']:.2f}  {flag}"
        )
    db.close()


@click.command()
@click.argument("operation", type=click.Choice(["delete", "activate", "deactivate"]))
@click.argument("ids", nargs=-1)
@click.option(
    "--ids-file",
    type=click.Path(exists=True, dir_okay=False),
    help="File with one id per line",
)
@click.option(
    "--output-format",
    default="summary",
    type=click.Choice(["summary", "json"]),
    help="Output format",
)
def bulk_products(
    operation: str,
    ids: tuple[str, ...],
    ids_file: str | None,
    output_format: str,
) -> None:
    """Delete, activate or deactivate up to 100 products."""
    config = _get_config()
    configure_logging(config.log_level, json_output=config.log_json)

    target_ids = list(ids)
    if ids_file:
        target_ids.extend(_read_ids_file(ids_file))

    try:
        request = parse_batch_request({"operation": operation, "targetIds": target_ids})
    except InvalidBatchRequestError as exc:
        raise click.UsageError(exc.message) from exc

    from src.api.bulk_handler import success_body
    from src.services.batch_processor import open_batch_processor

    if not config.uses_postgrest:
        _get_db(config).close()

    try:
        with open_batch_processor(config) as processor:
            summary = processor.run(request)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc

    if output_format == "json":
        click.echo(json.dumps(success_body(summary), indent=2))
    else:
        click.echo(format_batch_summary(summary))


@click.command()
@click.option("--host", default="127.0.0.1", help="Bind address")
@click.option("--port", default=8000, type=int, help="Bind port")
def serve(host: str, port: int) -> None:
    """Serve the bulk operations HTTP API."""
    import uvicorn

    from src.api.app import create_app

    uvicorn.run(create_app(_get_config()), host=host, port=port)
