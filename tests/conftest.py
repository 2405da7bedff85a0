"""Shared test fixtures for the Restaurant Bulk Operations service."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
import structlog

from src.core.throttle import Throttle
from src.models.config import Config
from src.models.product import Product
from src.repositories.product_repository import ProductRepository
from src.services.database import Database
from src.services.sqlite_resource_client import SQLiteResourceClient

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture(autouse=True)
def _reset_structlog() -> None:
    """Drop logging config that may point at a test's captured, now closed, stream."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def tmp_db_path(tmp_path: Path) -> str:
    """Provide a temporary database file path."""
    return str(tmp_path / "test.db")


@pytest.fixture
def db(tmp_db_path: str) -> Database:
    """Provide an initialized temporary database."""
    database = Database(db_path=tmp_db_path)
    database.init_db()
    yield database
    database.close()


@pytest.fixture
def product_repo(db: Database) -> ProductRepository:
    return ProductRepository(db)


@pytest.fixture
def menu_ids(product_repo: ProductRepository) -> list[str]:
    """Insert a small menu and return the product ids in insertion order."""
    products = [
        Product(id="p-burger", name="Classic Burger", price=8.5, category="Mains"),
        Product(id="p-fries", name="Fries", price=3.0, category="Sides"),
        Product(id="p-salad", name="Caesar Salad", price=6.25, category="Starters"),
        Product(id="p-soda", name="Soda", price=1.5, category="Drinks", is_available=False),
    ]
    return [product_repo.add_product(product) for product in products]


@pytest.fixture
def sqlite_client(db: Database) -> SQLiteResourceClient:
    return SQLiteResourceClient(db)


@pytest.fixture
def sleep_calls() -> list[float]:
    """Collects the delays a recording throttle was asked to sleep."""
    return []


@pytest.fixture
def recording_throttle(sleep_calls: list[float]) -> Throttle:
    return Throttle(item_delay_seconds=0.05, batch_delay_seconds=0.1, sleep=sleep_calls.append)


@pytest.fixture
def test_config(tmp_db_path: str) -> Config:
    """Configuration with no pacing, no retry waits and no .env file."""
    return Config(
        _env_file=None,
        database_path=tmp_db_path,
        log_level="WARNING",
        item_delay_ms=0,
        batch_delay_ms=0,
        retry_min_wait_seconds=0,
        retry_max_wait_seconds=0,
    )
