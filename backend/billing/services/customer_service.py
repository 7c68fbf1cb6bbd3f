# Overview: Customer outstanding credit recalculation.

from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import Customer, Invoice
from .concurrency import lock_for_update


def sum_unpaid_cents(customer_id: int) -> int:
    """Total unpaid balance across the customer's invoices."""
    total = db.session.query(
        func.coalesce(func.sum(Invoice.unpaid_amount_cents), 0)
    ).filter(
        Invoice.customer_id == customer_id,
        Invoice.unpaid_amount_cents > 0,
    ).scalar()
    return int(total or 0)


def recalculate_outstanding_credit(customer_id: int) -> int | None:
    """
    Recompute and store a customer's outstanding credit.

    Always a full recompute from invoices, never an increment, so the
    aggregate cannot drift. Pending invoice changes are flushed first so
    the sum sees this transaction's own writes.

    Returns the new outstanding credit, or None when no customer record
    exists (customer master data is owned elsewhere; nothing to update).
    """
    db.session.flush()

    customer = lock_for_update(db.session.query(Customer).filter_by(id=customer_id)).first()
    if customer is None:
        return None

    customer.outstanding_credit_cents = sum_unpaid_cents(customer_id)
    return customer.outstanding_credit_cents


def recalculate_all_outstanding_credit() -> dict[int, int]:
    """Recompute outstanding credit for every customer. Caller commits."""
    results = {}
    for (customer_id,) in db.session.query(Customer.id).order_by(Customer.id).all():
        results[customer_id] = recalculate_outstanding_credit(customer_id)
    return results


def get_customer(customer_id: int) -> Customer | None:
    return db.session.get(Customer, customer_id)
