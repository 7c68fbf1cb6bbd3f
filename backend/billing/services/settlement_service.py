# Overview: Transactional orchestration of invoice creation and outstanding settlement.

"""
Settlement Orchestrator

WHY: Creating an invoice, decrementing stock, paying down older invoices
and recomputing the customer's outstanding credit must succeed or fail
together. Each public function here is exactly one database transaction.

FLOWS:
- settle_outstanding: lock eligible invoices -> allocate -> recalculate -> commit
- create_invoice:
    Regular:          build invoice (+ stock) -> [allocate other invoices]
                      -> recalculate -> commit
    OutstandingOnly:  allocate -> recalculate -> commit

FAILURE: any exception rolls back every write of the flow. Validation,
not-found and conflict errors propagate as-is; store errors surface as
SettlementError with the original exception chained.
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Invoice
from ..validation import (
    InvoiceRequest,
    RegularInvoiceRequest,
    SettleOutstandingRequest,
)
from .allocation_service import AllocationResult, allocate_payment, load_eligible_invoices
from .catalog import SqlStockCatalog, StockCatalog
from .concurrency import begin_write_transaction, run_with_retry
from .customer_service import recalculate_outstanding_credit
from .invoice_service import ENTRY_OUTSTANDING_SETTLEMENT, build_invoice, record_settlement_entry


class SettlementError(Exception):
    """Raised when the store fails mid-transaction; nothing was committed."""


@dataclass
class SettlementOutcome:
    invoice: Invoice | None = None
    allocation: AllocationResult | None = None
    outstanding_credit_cents: int | None = None

    @property
    def updated_invoices(self) -> list[Invoice]:
        return list(self.allocation.updated_invoices) if self.allocation else []

    @property
    def remainder_cents(self) -> int:
        return self.allocation.remainder_cents if self.allocation else 0


def _run_atomic(op):
    """
    Run op inside one write transaction and commit only if it returns.

    Lock and optimistic-version conflicts are retried; anything else rolls
    back and propagates.
    """
    def _op():
        begin_write_transaction()
        try:
            result = op()
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        return result

    attempts = current_app.config.get("SETTLEMENT_RETRY_ATTEMPTS", 3)
    try:
        return run_with_retry(_op, attempts=attempts)
    except SQLAlchemyError as exc:
        raise SettlementError("Failed to process payment") from exc


def _apply_outstanding(
    *,
    customer_id: int,
    invoice_ids,
    amount_cents: int,
    payment_method: str,
    transaction_id: str | None,
    cashier,
    exclude_invoice_id: int | None = None,
) -> AllocationResult:
    invoices = [
        inv for inv in load_eligible_invoices(customer_id, invoice_ids)
        if inv.id != exclude_invoice_id
    ]
    allocation = allocate_payment(
        amount_cents,
        invoices,
        payment_method=payment_method,
        transaction_id=transaction_id,
    )
    for invoice, applied in zip(allocation.updated_invoices, allocation.allocations):
        record_settlement_entry(
            invoice,
            entry_type=ENTRY_OUTSTANDING_SETTLEMENT,
            amount_cents=applied.applied_cents,
            payment_method=payment_method,
            transaction_id=transaction_id,
            cashier=cashier,
        )
    return allocation


def settle_outstanding(request: SettleOutstandingRequest) -> SettlementOutcome:
    """
    Apply a payment to a customer's selected unpaid invoices; no new invoice.

    Raises:
        NoEligibleInvoicesError: none of the selected invoices is unpaid
        SettlementError: store failure (rolled back)
    """
    def _op() -> SettlementOutcome:
        allocation = _apply_outstanding(
            customer_id=request.customer_id,
            invoice_ids=request.selected_unpaid_invoice_ids,
            amount_cents=request.amount_paid_cents,
            payment_method=request.payment_method,
            transaction_id=request.transaction_id,
            cashier=request.cashier,
        )
        credit = recalculate_outstanding_credit(request.customer_id)
        return SettlementOutcome(allocation=allocation, outstanding_credit_cents=credit)

    outcome = _run_atomic(_op)
    current_app.logger.info(
        "Settled %s invoice(s) for customer %s, remainder %s",
        len(outcome.updated_invoices),
        request.customer_id,
        outcome.remainder_cents,
    )
    return outcome


def create_invoice(request: InvoiceRequest, catalog: StockCatalog | None = None) -> SettlementOutcome:
    """
    Create a new invoice and/or settle older invoices in one transaction.

    RegularInvoiceRequest creates the invoice and decrements stock; an
    outstanding portion, when given, is allocated across the selected
    older invoices of the same customer. OutstandingOnlyRequest only
    allocates.

    Raises:
        DuplicateInvoiceNumberError: invoice number already in use
        NoEligibleInvoicesError: outstanding portion given but nothing to settle
        SettlementError: store failure (rolled back)
    """
    catalog = catalog or SqlStockCatalog()
    prefix = current_app.config.get("INVOICE_NUMBER_PREFIX", "INV")

    def _op() -> SettlementOutcome:
        invoice = None
        if isinstance(request, RegularInvoiceRequest):
            invoice = build_invoice(request, catalog, number_prefix=prefix)

        allocation = None
        payment = request.payment
        if payment.outstanding_payment_cents > 0:
            allocation = _apply_outstanding(
                customer_id=request.customer.id,
                invoice_ids=request.selected_unpaid_invoice_ids,
                amount_cents=payment.outstanding_payment_cents,
                payment_method=payment.method,
                transaction_id=payment.transaction_id,
                cashier=request.cashier,
                exclude_invoice_id=invoice.id if invoice is not None else None,
            )

        credit = recalculate_outstanding_credit(request.customer.id)
        return SettlementOutcome(invoice=invoice, allocation=allocation, outstanding_credit_cents=credit)

    outcome = _run_atomic(_op)
    if outcome.invoice is not None:
        current_app.logger.info(
            "Created invoice %s for customer %s (%s)",
            outcome.invoice.invoice_number,
            request.customer.id,
            outcome.invoice.status,
        )
    if outcome.allocation is not None:
        current_app.logger.info(
            "Settled %s invoice(s) for customer %s, remainder %s",
            len(outcome.updated_invoices),
            request.customer.id,
            outcome.remainder_cents,
        )
    return outcome
