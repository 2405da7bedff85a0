"""Product repository for database CRUD operations."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

import structlog

from src.models.product import Product

if TYPE_CHECKING:
    from src.services.database import Database

logger = structlog.get_logger(__name__)


def _row_to_dict(row: Any) -> dict[str, Any]:
    data = dict(row)
    data["is_available"] = bool(data["is_available"])
    return data


class ProductRepository:
    """Repository for menu product data access."""

    def __init__(self, db: Database) -> None:
        self.db = db

    def add_product(self, product: Product) -> str:
        """Insert a product. Returns its id, generating one when missing."""
        product_id = product.id or uuid.uuid4().hex
        self.db.execute(
            """INSERT INTO products
               (id, name, description, price, category, is_available,
                created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                product_id,
                product.name,
                product.description,
                product.price,
                product.category,
                int(product.is_available),
                product.created_at.isoformat(),
                product.updated_at.isoformat(),
            ),
        )
        self.db.connection.commit()
        logger.info("product_added", id=product_id, name=product.name)
        return product_id

    def get_product_by_id(self, product_id: str) -> dict[str, Any] | None:
        """Get a product by ID."""
        row = self.db.fetchone("SELECT * FROM products WHERE id = ?", (product_id,))
        return _row_to_dict(row) if row else None

    def get_products(self, is_available: bool | None = None) -> list[dict[str, Any]]:
        """Get all products, optionally filtered by availability."""
        if is_available is None:
            rows = self.db.fetchall("SELECT * FROM products ORDER BY category, name")
        else:
            rows = self.db.fetchall(
                "SELECT * FROM products WHERE is_available = ? ORDER BY category, name",
                (int(is_available),),
            )
        return [_row_to_dict(row) for row in rows]

    def get_product_count(self) -> int:
        """Get total number of products."""
        row = self.db.fetchone("SELECT COUNT(*) as count FROM products")
        return row["count"] if row else 0
