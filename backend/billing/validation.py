from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Union


# Maximum amount: 9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical amounts
MAX_AMOUNT_CENTS = 999_999_999

DEFAULT_PAYMENT_METHOD = "cash"


class ValidationError(ValueError):
    """400-level input problem."""


class MissingLineItemsError(ValidationError):
    """Regular invoice submitted without line items."""


class MissingCashierDetailsError(ValidationError):
    """Cashier id, name or counter number missing."""


class MissingRequiredFieldsError(ValidationError):
    """Customer id or payment block missing."""


class NotFoundError(LookupError):
    """404-level: the thing the request points at does not exist (or is not eligible)."""


class NoEligibleInvoicesError(NotFoundError):
    """None of the selected invoices has an unpaid balance."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate invoice number)."""


class DuplicateInvoiceNumberError(ConflictError):
    def __init__(self, invoice_number: str):
        super().__init__(f"Invoice number already exists: {invoice_number}")
        self.invoice_number = invoice_number


# =============================================================================
# REQUEST TYPES
# =============================================================================

@dataclass(frozen=True)
class CustomerRef:
    id: int
    name: str | None = None
    contact: str | None = None
    aadhaar: str | None = None
    location: str | None = None


@dataclass(frozen=True)
class CashierRef:
    cashier_id: str
    cashier_name: str
    counter_num: str
    contact_number: str | None = None


@dataclass(frozen=True)
class LineItem:
    name: str
    quantity: Decimal
    code: str | None = None
    unit: str | None = None
    unit_price_cents: int = 0
    total_price_cents: int = 0
    discount_cents: int = 0
    basic_price_cents: int = 0
    gst_rate_bps: int = 0
    sgst_rate_bps: int = 0
    gst_amount_cents: int = 0
    sgst_amount_cents: int = 0
    hsn_code: str | None = None


@dataclass(frozen=True)
class PaymentBlock:
    method: str = DEFAULT_PAYMENT_METHOD
    transaction_id: str | None = None
    current_bill_payment_cents: int = 0
    outstanding_payment_cents: int = 0


@dataclass(frozen=True)
class RegularInvoiceRequest:
    """New invoice with line items, optionally paying down older invoices too."""
    customer: CustomerRef
    cashier: CashierRef
    line_items: tuple[LineItem, ...]
    payment: PaymentBlock
    transport_charge_cents: int = 0
    invoice_number: str | None = None
    previous_outstanding_credit_cents: int | None = None
    selected_unpaid_invoice_ids: tuple[int, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class OutstandingOnlyRequest:
    """Payment against older invoices only; no new invoice is created."""
    customer: CustomerRef
    cashier: CashierRef
    payment: PaymentBlock
    selected_unpaid_invoice_ids: tuple[int, ...] = field(default_factory=tuple)


InvoiceRequest = Union[RegularInvoiceRequest, OutstandingOnlyRequest]


@dataclass(frozen=True)
class SettleOutstandingRequest:
    customer_id: int
    cashier: CashierRef
    payment_method: str
    amount_paid_cents: int
    selected_unpaid_invoice_ids: tuple[int, ...]
    transaction_id: str | None = None


# =============================================================================
# COERCION
# =============================================================================

def coerce_int(value: Any, key: str) -> int:
    """
    Strict integer coercion: rejects floats, booleans and scientific notation.
    """
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if '.' in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    # Reject floats explicitly
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def coerce_cents(value: Any, key: str, *, default: int | None = 0) -> int:
    """Non-negative integer amount in cents; None falls back to default."""
    if value is None:
        if default is None:
            raise ValidationError(f"{key} is required")
        return default
    cents = coerce_int(value, key)
    if cents < 0:
        raise ValidationError(f"{key} must be >= 0")
    if cents > MAX_AMOUNT_CENTS:
        raise ValidationError(f"{key} cannot exceed {MAX_AMOUNT_CENTS}")
    return cents


def coerce_quantity(value: Any, key: str) -> Decimal:
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{key} is required")
    try:
        qty = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{key} must be a number")
    if not qty.is_finite() or qty <= 0:
        raise ValidationError(f"{key} must be > 0")
    return qty


def parse_customer_id(value: Any) -> int:
    """Customer ids are integers; numeric strings (query params) are accepted."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise MissingRequiredFieldsError("customer_id is required")
    try:
        return coerce_int(value, "customer_id")
    except ValidationError:
        raise ValidationError("Customer ID must be a number")


def parse_invoice_ids(value: Any) -> tuple[int, ...]:
    """
    Selected invoice ids. Entries that are not integers are dropped: stale or
    malformed ids simply select nothing.
    """
    if value is None:
        return ()
    if not isinstance(value, (list, tuple)):
        raise ValidationError("selected_unpaid_invoice_ids must be a list")
    ids = []
    for raw in value:
        try:
            invoice_id = coerce_int(raw, "invoice_id")
        except ValidationError:
            continue
        if invoice_id not in ids:
            ids.append(invoice_id)
    return tuple(ids)


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def parse_cashier(data: Any) -> CashierRef:
    if not isinstance(data, dict):
        raise MissingCashierDetailsError("Cashier details are required.")
    cashier_id = _optional_str(data.get("cashier_id"))
    cashier_name = _optional_str(data.get("cashier_name"))
    counter_num = _optional_str(data.get("counter_num"))
    if not (cashier_id and cashier_name and counter_num):
        raise MissingCashierDetailsError("Cashier details are required.")
    return CashierRef(
        cashier_id=cashier_id,
        cashier_name=cashier_name,
        counter_num=counter_num,
        contact_number=_optional_str(data.get("contact_number")),
    )


def parse_customer(data: Any) -> CustomerRef:
    if not isinstance(data, dict) or data.get("id") is None:
        raise MissingRequiredFieldsError("Customer information is required")
    return CustomerRef(
        id=parse_customer_id(data.get("id")),
        name=_optional_str(data.get("name")),
        contact=_optional_str(data.get("contact")),
        aadhaar=_optional_str(data.get("aadhaar")),
        location=_optional_str(data.get("location")),
    )


def parse_payment(data: Any) -> PaymentBlock:
    if not isinstance(data, dict):
        raise MissingRequiredFieldsError("Payment information is required")
    if data.get("current_bill_payment_cents") is None and data.get("outstanding_payment_cents") is None:
        raise MissingRequiredFieldsError("Payment information is required")
    return PaymentBlock(
        method=_optional_str(data.get("method")) or DEFAULT_PAYMENT_METHOD,
        transaction_id=_optional_str(data.get("transaction_id")),
        current_bill_payment_cents=coerce_cents(data.get("current_bill_payment_cents"), "current_bill_payment_cents"),
        outstanding_payment_cents=coerce_cents(data.get("outstanding_payment_cents"), "outstanding_payment_cents"),
    )


def parse_line_item(data: Any, index: int) -> LineItem:
    if not isinstance(data, dict):
        raise ValidationError(f"line_items[{index}] must be an object")
    name = _optional_str(data.get("name"))
    code = _optional_str(data.get("code"))
    if not name and not code:
        raise ValidationError(f"line_items[{index}] requires a name or code")

    def cents(key: str) -> int:
        return coerce_cents(data.get(key), f"line_items[{index}].{key}")

    return LineItem(
        name=name or code,
        code=code,
        quantity=coerce_quantity(data.get("quantity"), f"line_items[{index}].quantity"),
        unit=_optional_str(data.get("unit")),
        unit_price_cents=cents("unit_price_cents"),
        total_price_cents=cents("total_price_cents"),
        discount_cents=cents("discount_cents"),
        basic_price_cents=cents("basic_price_cents"),
        gst_rate_bps=cents("gst_rate_bps"),
        sgst_rate_bps=cents("sgst_rate_bps"),
        gst_amount_cents=cents("gst_amount_cents"),
        sgst_amount_cents=cents("sgst_amount_cents"),
        hsn_code=_optional_str(data.get("hsn_code")),
    )


# =============================================================================
# REQUEST PARSERS
# =============================================================================

def parse_invoice_request(payload: Any) -> InvoiceRequest:
    """
    Validate a create-invoice payload into exactly one request variant.

    - line items present -> RegularInvoiceRequest
    - no line items, outstanding portion > 0 -> OutstandingOnlyRequest
    - neither -> MissingLineItemsError

    Raises ValidationError subclasses only; nothing is written.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    cashier = parse_cashier(payload.get("cashier"))
    customer = parse_customer(payload.get("customer"))
    payment = parse_payment(payload.get("payment"))

    raw_lines = payload.get("line_items") or []
    if not isinstance(raw_lines, list):
        raise ValidationError("line_items must be a list")

    selected_ids = parse_invoice_ids(payload.get("selected_unpaid_invoice_ids"))
    if payment.outstanding_payment_cents > 0 and not selected_ids:
        raise ValidationError("selected_unpaid_invoice_ids required when an outstanding payment is specified")

    if not raw_lines:
        if payment.outstanding_payment_cents > 0:
            return OutstandingOnlyRequest(
                customer=customer,
                cashier=cashier,
                payment=payment,
                selected_unpaid_invoice_ids=selected_ids,
            )
        raise MissingLineItemsError("At least one line item is required for regular invoices")

    previous_credit = payload.get("previous_outstanding_credit_cents")
    return RegularInvoiceRequest(
        customer=customer,
        cashier=cashier,
        line_items=tuple(parse_line_item(item, i) for i, item in enumerate(raw_lines)),
        payment=payment,
        transport_charge_cents=coerce_cents(payload.get("transport_charge_cents"), "transport_charge_cents"),
        invoice_number=_optional_str(payload.get("invoice_number")),
        previous_outstanding_credit_cents=(
            coerce_cents(previous_credit, "previous_outstanding_credit_cents")
            if previous_credit is not None else None
        ),
        selected_unpaid_invoice_ids=selected_ids,
    )


def parse_settle_request(payload: Any) -> SettleOutstandingRequest:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    cashier = parse_cashier(payload.get("cashier"))

    raw_ids = payload.get("selected_unpaid_invoice_ids")
    if (
        payload.get("customer_id") is None
        or not _optional_str(payload.get("payment_method"))
        or payload.get("amount_paid_cents") is None
        or not isinstance(raw_ids, list)
        or not raw_ids
    ):
        raise MissingRequiredFieldsError("Missing required payment details or selected invoices.")

    return SettleOutstandingRequest(
        customer_id=parse_customer_id(payload.get("customer_id")),
        cashier=cashier,
        payment_method=_optional_str(payload.get("payment_method")),
        amount_paid_cents=coerce_cents(payload.get("amount_paid_cents"), "amount_paid_cents", default=None),
        selected_unpaid_invoice_ids=parse_invoice_ids(raw_ids),
        transaction_id=_optional_str(payload.get("transaction_id")),
    )


def parse_bool_flag(value: str | None) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes")
