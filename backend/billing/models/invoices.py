from __future__ import annotations

from ..extensions import db
from billing.time_utils import to_utc_z


class Invoice(db.Model):
    """
    One recorded sale and its payment state.

    WHY: An invoice is the unit of debt. Customer outstanding credit is
    derived from invoices, never stored independently of them.

    TOTALS (all amounts in cents):
    - current_bill_total = product_subtotal + tax_amount
    - grand_total = current_bill_total + transport_charge
      (never includes the customer's prior outstanding balance)

    PAYMENT INVARIANTS:
    - paid_amount + unpaid_amount == grand_total, both >= 0
    - status is derived from (paid_amount, unpaid_amount):
      unpaid  -> paid == 0 and unpaid > 0
      partial -> 0 < paid < grand_total
      paid    -> unpaid == 0

    Customer and cashier details are snapshots taken at creation time.
    """
    __tablename__ = "invoices"
    __table_args__ = (
        db.UniqueConstraint("invoice_number", name="uq_invoices_invoice_number"),
        # Settlement lookups: customer's unpaid invoices, oldest first
        db.Index("ix_invoices_customer_unpaid_created", "customer_id", "unpaid_amount_cents", "created_at"),
        db.CheckConstraint("paid_amount_cents >= 0", name="ck_invoices_paid_non_negative"),
        db.CheckConstraint("unpaid_amount_cents >= 0", name="ck_invoices_unpaid_non_negative"),
    )

    id = db.Column(db.Integer, primary_key=True)
    invoice_number = db.Column(db.String(64), nullable=False)

    # Customer snapshot
    customer_id = db.Column(db.Integer, nullable=False, index=True)
    customer_name = db.Column(db.String(255), nullable=True)
    customer_contact = db.Column(db.String(64), nullable=True)
    customer_aadhaar = db.Column(db.String(32), nullable=True)
    customer_location = db.Column(db.String(255), nullable=True)

    # Cashier snapshot
    cashier_id = db.Column(db.String(64), nullable=False)
    cashier_name = db.Column(db.String(255), nullable=False)
    counter_num = db.Column(db.String(32), nullable=False)
    cashier_contact_number = db.Column(db.String(64), nullable=True)

    # Totals
    product_subtotal_cents = db.Column(db.Integer, nullable=False, default=0)
    tax_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    transport_charge_cents = db.Column(db.Integer, nullable=False, default=0)
    current_bill_total_cents = db.Column(db.Integer, nullable=False, default=0)
    grand_total_cents = db.Column(db.Integer, nullable=False, default=0)

    # Payment state
    paid_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    unpaid_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    change_due_cents = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(16), nullable=False, default="unpaid", index=True)  # unpaid, partial, paid
    payment_method = db.Column(db.String(32), nullable=True)
    transaction_id = db.Column(db.String(128), nullable=True)

    # Payment details as submitted with the invoice
    current_bill_payment_cents = db.Column(db.Integer, nullable=False, default=0)
    outstanding_payment_cents = db.Column(db.Integer, nullable=False, default=0)

    # Informational only; not part of grand_total
    previous_outstanding_credit_cents = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    lines = db.relationship(
        "InvoiceLine",
        backref="invoice",
        lazy=True,
        order_by="InvoiceLine.position",
        cascade="all, delete-orphan",
    )
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return (
            f"<Invoice id={self.id} number={self.invoice_number!r} "
            f"paid={self.paid_amount_cents} unpaid={self.unpaid_amount_cents} status={self.status}>"
        )

    def to_dict(self, include_lines: bool = True) -> dict:
        data = {
            "id": self.id,
            "invoice_number": self.invoice_number,
            "customer": {
                "id": self.customer_id,
                "name": self.customer_name,
                "contact": self.customer_contact,
                "aadhaar": self.customer_aadhaar,
                "location": self.customer_location,
            },
            "cashier": {
                "cashier_id": self.cashier_id,
                "cashier_name": self.cashier_name,
                "counter_num": self.counter_num,
                "contact_number": self.cashier_contact_number,
            },
            "product_subtotal_cents": self.product_subtotal_cents,
            "tax_amount_cents": self.tax_amount_cents,
            "transport_charge_cents": self.transport_charge_cents,
            "current_bill_total_cents": self.current_bill_total_cents,
            "grand_total_cents": self.grand_total_cents,
            "paid_amount_cents": self.paid_amount_cents,
            "unpaid_amount_cents": self.unpaid_amount_cents,
            "change_due_cents": self.change_due_cents,
            "status": self.status,
            "payment_method": self.payment_method,
            "transaction_id": self.transaction_id,
            "payment_details": {
                "current_bill_payment_cents": self.current_bill_payment_cents,
                "outstanding_payment_cents": self.outstanding_payment_cents,
            },
            "previous_outstanding_credit_cents": self.previous_outstanding_credit_cents,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }
        if include_lines:
            data["line_items"] = [line.to_dict() for line in self.lines]
        return data


class InvoiceLine(db.Model):
    """Individual line items on an invoice, in submission order."""
    __tablename__ = "invoice_lines"

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False)

    name = db.Column(db.String(255), nullable=False)
    code = db.Column(db.String(64), nullable=True)
    hsn_code = db.Column(db.String(32), nullable=True)

    quantity = db.Column(db.Numeric(14, 4), nullable=False)
    unit = db.Column(db.String(32), nullable=True)

    unit_price_cents = db.Column(db.Integer, nullable=False, default=0)
    basic_price_cents = db.Column(db.Integer, nullable=False, default=0)
    discount_cents = db.Column(db.Integer, nullable=False, default=0)
    total_price_cents = db.Column(db.Integer, nullable=False, default=0)

    # Rates in basis points (1800 = 18%)
    gst_rate_bps = db.Column(db.Integer, nullable=False, default=0)
    sgst_rate_bps = db.Column(db.Integer, nullable=False, default=0)
    # Per-unit tax amounts
    gst_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    sgst_amount_cents = db.Column(db.Integer, nullable=False, default=0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "invoice_id": self.invoice_id,
            "position": self.position,
            "name": self.name,
            "code": self.code,
            "hsn_code": self.hsn_code,
            "quantity": float(self.quantity) if self.quantity is not None else None,
            "unit": self.unit,
            "unit_price_cents": self.unit_price_cents,
            "basic_price_cents": self.basic_price_cents,
            "discount_cents": self.discount_cents,
            "total_price_cents": self.total_price_cents,
            "gst_rate_bps": self.gst_rate_bps,
            "sgst_rate_bps": self.sgst_rate_bps,
            "gst_amount_cents": self.gst_amount_cents,
            "sgst_amount_cents": self.sgst_amount_cents,
        }


class SettlementEntry(db.Model):
    """
    Append-only record of money applied to an invoice.

    ENTRY TYPES:
    - INVOICE_PAYMENT: payment taken together with a new invoice
    - OUTSTANDING_SETTLEMENT: allocation against an older unpaid invoice

    IMMUTABLE: Records are never updated or deleted.
    """
    __tablename__ = "settlement_entries"
    __table_args__ = (
        db.Index("ix_settlement_entries_invoice_occurred", "invoice_id", "occurred_at"),
    )

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, nullable=False, index=True)

    entry_type = db.Column(db.String(32), nullable=False, index=True)
    amount_cents = db.Column(db.Integer, nullable=False)
    payment_method = db.Column(db.String(32), nullable=True)
    transaction_id = db.Column(db.String(128), nullable=True)

    cashier_id = db.Column(db.String(64), nullable=True)
    cashier_name = db.Column(db.String(255), nullable=True)
    counter_num = db.Column(db.String(32), nullable=True)

    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    invoice = db.relationship("Invoice", backref=db.backref("settlement_entries", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "invoice_id": self.invoice_id,
            "customer_id": self.customer_id,
            "entry_type": self.entry_type,
            "amount_cents": self.amount_cents,
            "payment_method": self.payment_method,
            "transaction_id": self.transaction_id,
            "cashier_id": self.cashier_id,
            "cashier_name": self.cashier_name,
            "counter_num": self.counter_num,
            "occurred_at": to_utc_z(self.occurred_at),
        }
