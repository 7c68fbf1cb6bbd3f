# Overview: Distributes a payment across a customer's outstanding invoices.

"""
Outstanding Allocation

WHY: A customer may pay one lump sum against several unpaid invoices.
The amount is spread over the selected invoices, oldest debt first.

ALLOCATION POLICY (the only one):
- Only invoices with unpaid_amount_cents > 0 are eligible
- Ascending created_at (ties broken by id); no skipping, no reordering
- Each invoice takes min(remaining, unpaid); allocation stops at zero
- Whatever is left over is returned as remainder, never applied elsewhere

CONSERVATION: sum(applied) + remainder == amount, always.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ..extensions import db
from ..models import Invoice
from ..validation import NoEligibleInvoicesError, ValidationError
from .concurrency import lock_for_update
from .payment_status import derive_status


@dataclass(frozen=True)
class Allocation:
    invoice_id: int | None
    applied_cents: int
    unpaid_after_cents: int


@dataclass
class AllocationResult:
    updated_invoices: list = field(default_factory=list)
    allocations: list[Allocation] = field(default_factory=list)
    remainder_cents: int = 0

    @property
    def applied_cents(self) -> int:
        return sum(a.applied_cents for a in self.allocations)


def settlement_order_key(invoice: Invoice):
    return (invoice.created_at, invoice.id or 0)


def load_eligible_invoices(customer_id: int, invoice_ids) -> list[Invoice]:
    """
    Fetch and lock the selected invoices that still carry an unpaid balance.

    Ids that do not exist, belong to another customer, or are already
    fully paid are dropped without error.
    """
    if not invoice_ids:
        return []
    query = (
        db.session.query(Invoice)
        .filter(
            Invoice.id.in_(list(invoice_ids)),
            Invoice.customer_id == customer_id,
            Invoice.unpaid_amount_cents > 0,
        )
        .order_by(Invoice.created_at.asc(), Invoice.id.asc())
    )
    return lock_for_update(query).all()


def allocate_payment(
    amount_cents: int,
    invoices: list[Invoice],
    *,
    payment_method: str,
    transaction_id: str | None = None,
) -> AllocationResult:
    """
    Apply amount_cents across invoices, oldest first.

    Mutates the invoices in place (paid, unpaid, status, payment method and,
    when given, transaction id). Invoices past the point where the amount
    runs out are left untouched.

    Raises:
        ValidationError: negative amount
        NoEligibleInvoicesError: no invoice in the set has an unpaid balance
    """
    if amount_cents < 0:
        raise ValidationError("Payment amount must be >= 0")

    eligible = sorted(
        (inv for inv in invoices if (inv.unpaid_amount_cents or 0) > 0),
        key=settlement_order_key,
    )
    if not eligible:
        raise NoEligibleInvoicesError("No valid outstanding invoices found for settlement.")

    result = AllocationResult()
    remaining = amount_cents

    for invoice in eligible:
        if remaining <= 0:
            break

        applied = min(remaining, invoice.unpaid_amount_cents)
        invoice.paid_amount_cents = (invoice.paid_amount_cents or 0) + applied
        invoice.unpaid_amount_cents -= applied
        remaining -= applied

        invoice.status = derive_status(invoice.paid_amount_cents, invoice.unpaid_amount_cents)
        invoice.payment_method = payment_method
        if transaction_id:
            invoice.transaction_id = transaction_id

        result.updated_invoices.append(invoice)
        result.allocations.append(Allocation(
            invoice_id=invoice.id,
            applied_cents=applied,
            unpaid_after_cents=invoice.unpaid_amount_cents,
        ))

    result.remainder_cents = remaining
    return result
