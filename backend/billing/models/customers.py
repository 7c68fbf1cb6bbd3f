from __future__ import annotations

from ..extensions import db
from billing.time_utils import to_utc_z


class Customer(db.Model):
    """
    Customer master data.

    The id is the externally assigned customer number used on invoices;
    customer records are owned upstream and only read here, apart from
    the outstanding credit aggregate.

    outstanding_credit_cents is a materialized aggregate: the sum of
    unpaid_amount_cents over this customer's invoices. Only
    customer_service.recalculate_outstanding_credit writes it.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.Index("ix_customers_contact", "contact"),
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=False)

    name = db.Column(db.String(255), nullable=False)
    contact = db.Column(db.String(64), nullable=True)
    aadhaar = db.Column(db.String(32), nullable=True)
    location = db.Column(db.String(255), nullable=True)

    # Denormalized aggregate (recomputed after every settlement)
    outstanding_credit_cents = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "contact": self.contact,
            "aadhaar": self.aadhaar,
            "location": self.location,
            "outstanding_credit_cents": self.outstanding_credit_cents,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }
