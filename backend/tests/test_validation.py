"""
Request validation tests.

Payloads become exactly one request variant or raise a ValidationError
before anything is written.
"""

from decimal import Decimal

import pytest

from billing.validation import (
    MAX_AMOUNT_CENTS,
    MissingCashierDetailsError,
    MissingLineItemsError,
    MissingRequiredFieldsError,
    OutstandingOnlyRequest,
    RegularInvoiceRequest,
    ValidationError,
    coerce_cents,
    coerce_int,
    coerce_quantity,
    parse_bool_flag,
    parse_customer_id,
    parse_invoice_ids,
    parse_invoice_request,
    parse_settle_request,
)

from conftest import invoice_payload


# =============================================================================
# COERCION
# =============================================================================


class TestCoercion:
    @pytest.mark.parametrize("value,expected", [(5, 5), ("12", 12), (" 7 ", 7), ("-3", -3)])
    def test_coerce_int_accepts(self, value, expected):
        assert coerce_int(value, "x") == expected

    @pytest.mark.parametrize("value", [True, 1.5, "1e3", "12.5", "", "abc", None, [1]])
    def test_coerce_int_rejects(self, value):
        with pytest.raises(ValidationError):
            coerce_int(value, "x")

    def test_cents_bounds(self):
        assert coerce_cents(0, "amount") == 0
        assert coerce_cents(MAX_AMOUNT_CENTS, "amount") == MAX_AMOUNT_CENTS
        with pytest.raises(ValidationError):
            coerce_cents(-1, "amount")
        with pytest.raises(ValidationError):
            coerce_cents(MAX_AMOUNT_CENTS + 1, "amount")

    def test_cents_default(self):
        assert coerce_cents(None, "amount") == 0
        with pytest.raises(ValidationError, match="amount is required"):
            coerce_cents(None, "amount", default=None)

    def test_quantity(self):
        assert coerce_quantity("1.5", "qty") == Decimal("1.5")
        assert coerce_quantity(2, "qty") == Decimal("2")
        for bad in (0, -1, "abc", None, True, "NaN"):
            with pytest.raises(ValidationError):
                coerce_quantity(bad, "qty")

    def test_customer_id(self):
        assert parse_customer_id("42") == 42
        with pytest.raises(ValidationError, match="Customer ID must be a number"):
            parse_customer_id("forty-two")
        with pytest.raises(MissingRequiredFieldsError):
            parse_customer_id("")

    def test_invoice_ids_drop_garbage(self):
        assert parse_invoice_ids([3, "7", "x", 3, None, 1.5]) == (3, 7)
        assert parse_invoice_ids(None) == ()
        with pytest.raises(ValidationError):
            parse_invoice_ids("3,7")

    @pytest.mark.parametrize("value,expected", [("true", True), ("1", True), ("YES", True),
                                                ("false", False), (None, False), ("", False)])
    def test_bool_flag(self, value, expected):
        assert parse_bool_flag(value) is expected


# =============================================================================
# CREATE INVOICE PAYLOAD
# =============================================================================


class TestParseInvoiceRequest:
    def test_regular(self, cashier):
        request = parse_invoice_request(invoice_payload(cashier))

        assert isinstance(request, RegularInvoiceRequest)
        assert request.customer.id == 42
        assert request.cashier.cashier_name == "Asha"
        assert request.line_items[0].quantity == Decimal("2")
        assert request.transport_charge_cents == 2000
        assert request.payment.current_bill_payment_cents == 60000
        assert request.invoice_number is None

    def test_outstanding_only(self, cashier):
        payload = invoice_payload(
            cashier,
            line_items=[],
            payment={"outstanding_payment_cents": 5000},
            selected_unpaid_invoice_ids=[1, 2],
        )

        request = parse_invoice_request(payload)

        assert isinstance(request, OutstandingOnlyRequest)
        assert request.payment.method == "cash"
        assert request.selected_unpaid_invoice_ids == (1, 2)

    def test_no_lines_no_outstanding(self, cashier):
        with pytest.raises(MissingLineItemsError):
            parse_invoice_request(invoice_payload(cashier, line_items=[]))

    @pytest.mark.parametrize("cashier_override", [
        None,
        {"cashier_id": "C-01", "cashier_name": "Asha"},
        {"cashier_id": "C-01", "cashier_name": " ", "counter_num": "2"},
    ])
    def test_missing_cashier(self, cashier, cashier_override):
        with pytest.raises(MissingCashierDetailsError):
            parse_invoice_request(invoice_payload(cashier, cashier=cashier_override))

    def test_cashier_checked_first(self):
        payload = {"customer": None, "cashier": None, "payment": None}

        with pytest.raises(MissingCashierDetailsError):
            parse_invoice_request(payload)

    def test_missing_customer(self, cashier):
        with pytest.raises(MissingRequiredFieldsError):
            parse_invoice_request(invoice_payload(cashier, customer={"name": "Ravi"}))

    def test_non_numeric_customer(self, cashier):
        with pytest.raises(ValidationError, match="Customer ID must be a number"):
            parse_invoice_request(invoice_payload(cashier, customer={"id": "abc"}))

    def test_missing_payment(self, cashier):
        with pytest.raises(MissingRequiredFieldsError):
            parse_invoice_request(invoice_payload(cashier, payment={"method": "cash"}))

    def test_outstanding_without_selection(self, cashier):
        payload = invoice_payload(cashier, payment={"current_bill_payment_cents": 0,
                                                    "outstanding_payment_cents": 100})

        with pytest.raises(ValidationError, match="selected_unpaid_invoice_ids"):
            parse_invoice_request(payload)

    def test_bad_line_quantity(self, cashier):
        payload = invoice_payload(cashier)
        payload["line_items"][0]["quantity"] = 0

        with pytest.raises(ValidationError, match=r"line_items\[0\]\.quantity"):
            parse_invoice_request(payload)

    def test_line_needs_name_or_code(self, cashier):
        with pytest.raises(ValidationError):
            parse_invoice_request(invoice_payload(cashier, line_items=[{"quantity": 1}]))

    def test_not_an_object(self):
        with pytest.raises(ValidationError):
            parse_invoice_request(None)


# =============================================================================
# SETTLE PAYLOAD
# =============================================================================


class TestParseSettleRequest:
    def _payload(self, cashier_details, **overrides):
        payload = {
            "customer_id": "42",
            "payment_method": "cash",
            "amount_paid_cents": 1000,
            "cashier": cashier_details,
            "selected_unpaid_invoice_ids": [5, 3],
        }
        payload.update(overrides)
        return payload

    def test_valid(self, cashier):
        request = parse_settle_request(self._payload(cashier, transaction_id=""))

        assert request.customer_id == 42
        assert request.amount_paid_cents == 1000
        assert request.selected_unpaid_invoice_ids == (5, 3)
        assert request.transaction_id is None

    @pytest.mark.parametrize("field,value", [
        ("customer_id", None),
        ("payment_method", ""),
        ("amount_paid_cents", None),
        ("selected_unpaid_invoice_ids", []),
        ("selected_unpaid_invoice_ids", None),
    ])
    def test_missing_fields(self, cashier, field, value):
        with pytest.raises(MissingRequiredFieldsError, match="Missing required payment details"):
            parse_settle_request(self._payload(cashier, **{field: value}))

    def test_missing_cashier(self, cashier):
        with pytest.raises(MissingCashierDetailsError):
            parse_settle_request(self._payload(cashier, cashier={}))

    def test_negative_amount(self, cashier):
        with pytest.raises(ValidationError):
            parse_settle_request(self._payload(cashier, amount_paid_cents=-5))
