from __future__ import annotations

from ..extensions import db


class Product(db.Model):
    """
    Catalog entry as seen by billing.

    Catalog maintenance happens elsewhere; billing only needs the code,
    the base unit stock is kept in, and the conversion rate from any
    other sale unit to that base unit.

    CONVERSION: quantity_in_base = quantity / conversion_rate when the
    sale unit differs from base_unit (e.g. base_unit="box",
    conversion_rate=12, selling 6 "pcs" removes 0.5 box).
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("product_code", name="uq_products_code"),
        db.Index("ix_products_name", "product_name"),
    )

    id = db.Column(db.Integer, primary_key=True)

    product_code = db.Column(db.String(64), nullable=False)
    product_name = db.Column(db.String(255), nullable=False)

    base_unit = db.Column(db.String(32), nullable=False)
    conversion_rate = db.Column(db.Numeric(14, 4), nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Product id={self.id} code={self.product_code!r} name={self.product_name!r}>"


class StockQuantity(db.Model):
    """
    Available quantity per product, in the product's base unit.

    Mutated only by stock_service.adjust_stock. May go negative: a
    negative balance is an inventory accuracy problem, not a billing error.
    """
    __tablename__ = "stock_quantities"
    __table_args__ = (
        db.UniqueConstraint("product_code", name="uq_stock_quantities_code"),
    )

    id = db.Column(db.Integer, primary_key=True)
    product_code = db.Column(db.String(64), nullable=False)
    available_quantity = db.Column(db.Numeric(14, 4), nullable=False, default=0)

    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )
    version_id = db.Column(db.Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version_id}
