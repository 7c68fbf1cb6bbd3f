# Overview: Service-layer operations for invoices; builds new invoices and serves invoice reads.

"""
Invoice Service

WHY: One place that turns a validated RegularInvoiceRequest into an
Invoice row with consistent totals and payment state.

TOTALS (cents, half-up rounding per line):
- product_subtotal = sum(basic_price * quantity)
- tax_amount = sum((gst_amount + sgst_amount) * quantity)
- current_bill_total = product_subtotal + tax_amount
- grand_total = current_bill_total + transport_charge

The outstanding portion of a payment pays down OTHER invoices and is
never folded into this invoice's grand total.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Customer, Invoice, InvoiceLine, SettlementEntry
from ..validation import DuplicateInvoiceNumberError, LineItem, RegularInvoiceRequest
from billing.time_utils import utcnow
from .catalog import StockCatalog
from .numbering import invoice_number_exists, next_invoice_number
from .payment_status import derive_status, split_payment
from .stock_service import adjust_stock


ENTRY_INVOICE_PAYMENT = "INVOICE_PAYMENT"
ENTRY_OUTSTANDING_SETTLEMENT = "OUTSTANDING_SETTLEMENT"


@dataclass(frozen=True)
class InvoiceTotals:
    product_subtotal_cents: int
    tax_amount_cents: int
    transport_charge_cents: int

    @property
    def current_bill_total_cents(self) -> int:
        return self.product_subtotal_cents + self.tax_amount_cents

    @property
    def grand_total_cents(self) -> int:
        return self.current_bill_total_cents + self.transport_charge_cents


def _cents(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def calculate_totals(line_items, transport_charge_cents: int = 0) -> InvoiceTotals:
    subtotal = 0
    tax = 0
    for item in line_items:
        qty = Decimal(str(item.quantity))
        subtotal += _cents(item.basic_price_cents * qty)
        tax += _cents((item.gst_amount_cents + item.sgst_amount_cents) * qty)
    return InvoiceTotals(
        product_subtotal_cents=subtotal,
        tax_amount_cents=tax,
        transport_charge_cents=transport_charge_cents,
    )


def _line_from_item(item: LineItem, position: int) -> InvoiceLine:
    return InvoiceLine(
        position=position,
        name=item.name,
        code=item.code,
        hsn_code=item.hsn_code or "",
        quantity=item.quantity,
        unit=item.unit,
        unit_price_cents=item.unit_price_cents,
        basic_price_cents=item.basic_price_cents,
        discount_cents=item.discount_cents,
        total_price_cents=item.total_price_cents,
        gst_rate_bps=item.gst_rate_bps,
        sgst_rate_bps=item.sgst_rate_bps,
        gst_amount_cents=item.gst_amount_cents,
        sgst_amount_cents=item.sgst_amount_cents,
    )


def build_invoice(
    request: RegularInvoiceRequest,
    catalog: StockCatalog,
    *,
    number_prefix: str = "INV",
) -> Invoice:
    """
    Create an invoice from a validated request and decrement stock for its lines.

    Runs inside the caller's transaction; nothing is committed here.

    Raises:
        DuplicateInvoiceNumberError: supplied number already in use
    """
    invoice_number = request.invoice_number
    if invoice_number:
        if invoice_number_exists(invoice_number):
            raise DuplicateInvoiceNumberError(invoice_number)
    else:
        invoice_number = next_invoice_number(number_prefix)

    totals = calculate_totals(request.line_items, request.transport_charge_cents)
    payment = request.payment
    paid, unpaid, change = split_payment(totals.grand_total_cents, payment.current_bill_payment_cents)

    customer = request.customer
    cashier = request.cashier
    previous_credit = request.previous_outstanding_credit_cents
    if previous_credit is None:
        known = db.session.get(Customer, customer.id)
        previous_credit = known.outstanding_credit_cents if known else None

    invoice = Invoice(
        invoice_number=invoice_number,
        customer_id=customer.id,
        customer_name=customer.name,
        customer_contact=customer.contact,
        customer_aadhaar=customer.aadhaar,
        customer_location=customer.location,
        cashier_id=cashier.cashier_id,
        cashier_name=cashier.cashier_name,
        counter_num=cashier.counter_num,
        cashier_contact_number=cashier.contact_number,
        product_subtotal_cents=totals.product_subtotal_cents,
        tax_amount_cents=totals.tax_amount_cents,
        transport_charge_cents=totals.transport_charge_cents,
        current_bill_total_cents=totals.current_bill_total_cents,
        grand_total_cents=totals.grand_total_cents,
        paid_amount_cents=paid,
        unpaid_amount_cents=unpaid,
        change_due_cents=change,
        status=derive_status(paid, unpaid),
        payment_method=payment.method,
        transaction_id=payment.transaction_id,
        current_bill_payment_cents=payment.current_bill_payment_cents,
        outstanding_payment_cents=payment.outstanding_payment_cents,
        previous_outstanding_credit_cents=previous_credit,
        created_at=utcnow(),
        lines=[_line_from_item(item, i + 1) for i, item in enumerate(request.line_items)],
    )

    db.session.add(invoice)
    try:
        db.session.flush()
    except IntegrityError as exc:
        # Lost a race with a concurrent insert of the same number
        if "invoice_number" in str(exc.orig) or "uq_invoices_invoice_number" in str(exc.orig):
            raise DuplicateInvoiceNumberError(invoice_number) from exc
        raise

    if paid > 0:
        record_settlement_entry(
            invoice,
            entry_type=ENTRY_INVOICE_PAYMENT,
            amount_cents=paid,
            payment_method=payment.method,
            transaction_id=payment.transaction_id,
            cashier=cashier,
        )

    for item in request.line_items:
        adjust_stock(
            catalog,
            name=item.name,
            code=item.code,
            quantity=item.quantity,
            unit=item.unit,
        )

    return invoice


def record_settlement_entry(
    invoice: Invoice,
    *,
    entry_type: str,
    amount_cents: int,
    payment_method: str | None,
    transaction_id: str | None,
    cashier,
) -> SettlementEntry:
    """Append an immutable settlement entry for money applied to an invoice."""
    entry = SettlementEntry(
        invoice_id=invoice.id,
        customer_id=invoice.customer_id,
        entry_type=entry_type,
        amount_cents=amount_cents,
        payment_method=payment_method,
        transaction_id=transaction_id or None,
        cashier_id=cashier.cashier_id if cashier else None,
        cashier_name=cashier.cashier_name if cashier else None,
        counter_num=cashier.counter_num if cashier else None,
        occurred_at=utcnow(),
    )
    db.session.add(entry)
    return entry


# =============================================================================
# READS
# =============================================================================

def list_invoices(customer_id: int | None = None, unpaid_only: bool = False) -> list[Invoice]:
    """
    List invoices, optionally for one customer and/or only those with a balance.

    Unpaid listings come back oldest first (settlement order).
    """
    query = db.session.query(Invoice)
    if customer_id is not None:
        query = query.filter(Invoice.customer_id == customer_id)
    if unpaid_only:
        query = query.filter(Invoice.unpaid_amount_cents > 0)
        query = query.order_by(Invoice.created_at.asc(), Invoice.id.asc())
    else:
        query = query.order_by(Invoice.id.asc())
    return query.all()


def get_unpaid_invoices(customer_id: int) -> list[Invoice]:
    return list_invoices(customer_id=customer_id, unpaid_only=True)


def get_invoice(invoice_id: int) -> Invoice | None:
    return db.session.get(Invoice, invoice_id)


def get_settlement_entries(invoice_id: int) -> list[SettlementEntry]:
    return db.session.query(SettlementEntry).filter_by(
        invoice_id=invoice_id
    ).order_by(SettlementEntry.occurred_at, SettlementEntry.id).all()


def normalize_invoice(invoice: Invoice) -> dict:
    """
    Listing shape with sanitized fields.

    Missing snapshot data is replaced with display defaults so one bad row
    cannot break a listing.
    """
    data = invoice.to_dict(include_lines=False)
    data["customer"] = {
        "id": invoice.customer_id or 0,
        "name": invoice.customer_name or "Unknown",
        "contact": invoice.customer_contact or "Not provided",
    }
    data["line_items"] = [
        {
            "name": line.name or "Unnamed product",
            "code": line.code or "",
            "unit_price_cents": line.unit_price_cents or 0,
            "quantity": float(line.quantity) if line.quantity is not None else 0,
            "unit": line.unit or "",
            "total_price_cents": line.total_price_cents or 0,
        }
        for line in invoice.lines
    ]
    data["grand_total_cents"] = invoice.grand_total_cents or 0
    data["paid_amount_cents"] = invoice.paid_amount_cents or 0
    data["unpaid_amount_cents"] = invoice.unpaid_amount_cents or 0
    data["status"] = invoice.status or derive_status(data["paid_amount_cents"], data["unpaid_amount_cents"])
    return data
