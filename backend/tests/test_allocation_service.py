"""
Outstanding allocation tests.

Verifies:
- Oldest-first allocation with remainder
- Conservation: applied + remainder == amount
- Zero amount is a no-op
- Transaction id never overwritten with an empty value
- No eligible invoices raises NotFound
"""

from datetime import datetime, timedelta

import pytest

from billing.models import Invoice
from billing.services.allocation_service import allocate_payment
from billing.services.payment_status import derive_status
from billing.validation import NoEligibleInvoicesError, NotFoundError, ValidationError


DAY_1 = datetime(2026, 3, 1, 10, 0, 0)


def _invoice(invoice_id: int, unpaid: int, paid: int = 0, days: int = 0, transaction_id=None) -> Invoice:
    return Invoice(
        id=invoice_id,
        invoice_number=f"T-{invoice_id}",
        customer_id=42,
        grand_total_cents=paid + unpaid,
        paid_amount_cents=paid,
        unpaid_amount_cents=unpaid,
        status=derive_status(paid, unpaid),
        payment_method="cash",
        transaction_id=transaction_id,
        created_at=DAY_1 + timedelta(days=days),
    )


def _state(invoices):
    return [(i.id, i.paid_amount_cents, i.unpaid_amount_cents, i.status) for i in invoices]


# =============================================================================
# SCENARIOS
# =============================================================================


class TestOldestFirst:
    def test_partial_second_invoice(self):
        a = _invoice(1, unpaid=500, days=0)
        b = _invoice(2, unpaid=300, days=1)

        result = allocate_payment(600, [b, a], payment_method="upi")

        assert (a.unpaid_amount_cents, a.status) == (0, "paid")
        assert (b.unpaid_amount_cents, b.status) == (200, "partial")
        assert a.paid_amount_cents == 500
        assert b.paid_amount_cents == 100
        assert result.remainder_cents == 0
        assert [inv.id for inv in result.updated_invoices] == [1, 2]

    def test_overpayment_returns_remainder(self):
        a = _invoice(1, unpaid=500, days=0)
        b = _invoice(2, unpaid=300, days=1)

        result = allocate_payment(1000, [a, b], payment_method="cash")

        assert a.status == "paid" and b.status == "paid"
        assert a.unpaid_amount_cents == 0 and b.unpaid_amount_cents == 0
        assert result.remainder_cents == 200

    def test_stops_once_amount_exhausted(self):
        a = _invoice(1, unpaid=500, days=0)
        b = _invoice(2, unpaid=300, days=1)
        c = _invoice(3, unpaid=100, days=2)

        result = allocate_payment(500, [c, b, a], payment_method="card")

        assert a.status == "paid"
        assert (b.paid_amount_cents, b.unpaid_amount_cents, b.status, b.payment_method) == (0, 300, "unpaid", "cash")
        assert c.unpaid_amount_cents == 100
        assert [inv.id for inv in result.updated_invoices] == [1]

    def test_same_timestamp_orders_by_id(self):
        first = _invoice(7, unpaid=100)
        second = _invoice(9, unpaid=100)

        result = allocate_payment(150, [second, first], payment_method="cash")

        assert first.status == "paid"
        assert second.unpaid_amount_cents == 50
        assert [a.invoice_id for a in result.allocations] == [7, 9]

    def test_partially_paid_invoice_becomes_paid(self):
        a = _invoice(1, paid=400, unpaid=100)

        allocate_payment(100, [a], payment_method="cash")

        assert a.paid_amount_cents == 500
        assert a.unpaid_amount_cents == 0
        assert a.status == "paid"


# =============================================================================
# INVARIANTS
# =============================================================================


class TestInvariants:
    @pytest.mark.parametrize("amount", [0, 1, 299, 500, 799, 800, 801, 5000])
    def test_conservation(self, amount):
        invoices = [_invoice(1, unpaid=500, days=0), _invoice(2, unpaid=300, days=1)]

        result = allocate_payment(amount, invoices, payment_method="cash")

        assert result.applied_cents + result.remainder_cents == amount
        for inv in invoices:
            assert inv.paid_amount_cents + inv.unpaid_amount_cents == inv.grand_total_cents
            assert inv.unpaid_amount_cents >= 0
            assert inv.status == derive_status(inv.paid_amount_cents, inv.unpaid_amount_cents)

    def test_deterministic_from_same_start(self):
        def run():
            invoices = [_invoice(2, unpaid=300, days=1), _invoice(1, unpaid=500, days=0), _invoice(3, unpaid=50, days=2)]
            result = allocate_payment(650, invoices, payment_method="cash")
            return _state(sorted(invoices, key=lambda i: i.id)), result.remainder_cents

        assert run() == run()

    def test_zero_amount_changes_nothing(self):
        a = _invoice(1, unpaid=500, transaction_id="OLD-TXN")
        before = _state([a]) + [(a.payment_method, a.transaction_id)]

        result = allocate_payment(0, [a], payment_method="card", transaction_id="NEW")

        assert _state([a]) + [(a.payment_method, a.transaction_id)] == before
        assert result.updated_invoices == []
        assert result.remainder_cents == 0


# =============================================================================
# PAYMENT METADATA
# =============================================================================


class TestPaymentMetadata:
    def test_sets_method_and_transaction(self):
        a = _invoice(1, unpaid=500)

        allocate_payment(100, [a], payment_method="upi", transaction_id="UPI-77")

        assert a.payment_method == "upi"
        assert a.transaction_id == "UPI-77"

    @pytest.mark.parametrize("empty", [None, ""])
    def test_empty_transaction_keeps_previous(self, empty):
        a = _invoice(1, unpaid=500, transaction_id="UPI-1")

        allocate_payment(100, [a], payment_method="cash", transaction_id=empty)

        assert a.transaction_id == "UPI-1"
        assert a.payment_method == "cash"


# =============================================================================
# ERRORS
# =============================================================================


class TestErrors:
    def test_no_invoices(self):
        with pytest.raises(NoEligibleInvoicesError):
            allocate_payment(100, [], payment_method="cash")

    def test_only_paid_invoices(self):
        paid = _invoice(1, paid=500, unpaid=0)

        with pytest.raises(NotFoundError):
            allocate_payment(100, [paid], payment_method="cash")

        assert paid.paid_amount_cents == 500

    def test_negative_amount(self):
        with pytest.raises(ValidationError):
            allocate_payment(-1, [_invoice(1, unpaid=10)], payment_method="cash")
