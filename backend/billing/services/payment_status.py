"""
Invoice payment status rules.

Status is never set directly: it is derived from the paid/unpaid split so
an invoice cannot hold an inconsistent combination.

- UNPAID:  paid == 0 and unpaid > 0
- PARTIAL: paid > 0 and unpaid > 0
- PAID:    unpaid == 0
"""

from __future__ import annotations


INVOICE_STATUS_UNPAID = "unpaid"
INVOICE_STATUS_PARTIAL = "partial"
INVOICE_STATUS_PAID = "paid"


def derive_status(paid_cents: int, unpaid_cents: int) -> str:
    if unpaid_cents <= 0:
        return INVOICE_STATUS_PAID
    if paid_cents > 0:
        return INVOICE_STATUS_PARTIAL
    return INVOICE_STATUS_UNPAID


def split_payment(grand_total_cents: int, payment_cents: int) -> tuple[int, int, int]:
    """
    Split a payment against a bill total.

    Returns (paid, unpaid, change). Anything tendered above the total is
    change, so paid + unpaid always equals the total.
    """
    paid = min(payment_cents, grand_total_cents)
    unpaid = max(0, grand_total_cents - paid)
    change = max(0, payment_cents - grand_total_cents)
    return paid, unpaid, change
