# Overview: Stock adjustment for sold line items.

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from flask import current_app

from .catalog import StockCatalog


STOCK_POLICY_ALLOW = "allow"
STOCK_POLICY_WARN = "warn"


@dataclass(frozen=True)
class StockAdjustment:
    product_code: str
    quantity_in_base: Decimal
    available_after: Decimal


def to_base_quantity(
    quantity: Decimal,
    unit: str | None,
    base_unit: str,
    conversion_rate,
    *,
    product_code: str | None = None,
) -> Decimal:
    """
    Convert a sold quantity into the catalog's base unit.

    Same unit: used as-is. Any other unit: divided by the conversion rate.
    A missing, zero or negative rate is a catalog error; it is logged and
    the quantity is taken as already being in base units.
    """
    quantity = Decimal(str(quantity))
    if unit == base_unit:
        return quantity
    rate = Decimal(str(conversion_rate)) if conversion_rate is not None else Decimal(0)
    if rate <= 0:
        current_app.logger.warning(
            "Invalid conversion rate %s for product %s (%s -> %s); using 1",
            conversion_rate,
            product_code,
            unit,
            base_unit,
        )
        rate = Decimal(1)
    return quantity / rate


def adjust_stock(
    catalog: StockCatalog,
    *,
    name: str | None,
    code: str | None,
    quantity: Decimal,
    unit: str | None,
) -> StockAdjustment | None:
    """
    Decrement available stock for one sold line item.

    A missing product or stock record is logged and skipped: invoicing is
    never blocked by catalog drift. Returns None when skipped.

    Stock may go negative. With STOCK_NEGATIVE_POLICY="warn" a warning is
    logged when it does; the invoice is unaffected either way.
    """
    product = catalog.find_product(name, code)
    if product is None:
        current_app.logger.warning("Product not found: %s (%s)", name, code)
        return None

    stock = catalog.get_stock(product.product_code)
    if stock is None:
        current_app.logger.warning("Stock not found for product: %s", product.product_code)
        return None

    qty_in_base = to_base_quantity(
        quantity, unit, product.base_unit, product.conversion_rate, product_code=product.product_code
    )
    available = Decimal(str(stock.available_quantity or 0)) - qty_in_base
    stock.available_quantity = available

    if available < 0 and current_app.config.get("STOCK_NEGATIVE_POLICY") == STOCK_POLICY_WARN:
        current_app.logger.warning(
            "Stock for %s went negative: %s %s",
            product.product_code,
            available,
            product.base_unit,
        )

    return StockAdjustment(
        product_code=product.product_code,
        quantity_in_base=qty_in_base,
        available_after=available,
    )
