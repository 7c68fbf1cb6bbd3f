# Overview: Catalog and stock lookups consumed by the stock adjuster.

"""
Catalog capability

Billing does not own the product catalog. The stock adjuster only needs
two things from it: find a product by name or code, and get the stock
record for a product code. StockCatalog describes that capability;
SqlStockCatalog serves it from the database inside the caller's
transaction.
"""

from __future__ import annotations

from typing import Optional, Protocol

from sqlalchemy import or_

from ..extensions import db
from ..models import Product, StockQuantity
from .concurrency import lock_for_update


class StockCatalog(Protocol):
    def find_product(self, name: str | None, code: str | None) -> Optional[Product]:
        ...

    def get_stock(self, product_code: str) -> Optional[StockQuantity]:
        ...


class SqlStockCatalog:
    """Database-backed catalog; stock rows are locked for the update."""

    def find_product(self, name: str | None, code: str | None) -> Optional[Product]:
        clauses = []
        if name:
            clauses.append(Product.product_name == name)
        if code:
            clauses.append(Product.product_code == code)
        if not clauses:
            return None
        # An exact code match wins over a name match
        matches = db.session.query(Product).filter(or_(*clauses)).order_by(Product.id).all()
        if code:
            for product in matches:
                if product.product_code == code:
                    return product
        return matches[0] if matches else None

    def get_stock(self, product_code: str) -> Optional[StockQuantity]:
        return lock_for_update(
            db.session.query(StockQuantity).filter_by(product_code=product_code)
        ).first()
