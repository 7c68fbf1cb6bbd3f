# Overview: Invoice number allocation backed by document sequences.

from __future__ import annotations

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import DocumentSequence, Invoice


INVOICE_DOCUMENT_TYPE = "INVOICE"


class DocumentSequenceError(Exception):
    """Raised when document sequence operations fail."""
    pass


def _next_sequence_value(document_type: str) -> int:
    """
    Atomically take the next value of a sequence, inside the caller's transaction.

    The UPDATE takes a row lock on the sequence; the first allocation for a
    type inserts the row under a savepoint so a concurrent first insert does
    not abort the enclosing transaction.
    """
    if not document_type:
        raise DocumentSequenceError("document_type is required")

    stmt = (
        update(DocumentSequence)
        .where(DocumentSequence.document_type == document_type)
        .values(next_number=DocumentSequence.next_number + 1)
    )

    result = db.session.execute(stmt)
    if not result.rowcount:
        try:
            with db.session.begin_nested():
                db.session.add(DocumentSequence(document_type=document_type, next_number=2))
            return 1
        except IntegrityError:
            result = db.session.execute(stmt)
            if not result.rowcount:
                raise

    db.session.flush()
    current = (
        db.session.query(DocumentSequence.next_number)
        .filter_by(document_type=document_type)
        .scalar()
    )
    return current - 1


def invoice_number_exists(invoice_number: str) -> bool:
    return db.session.query(Invoice.id).filter_by(invoice_number=invoice_number).first() is not None


def next_invoice_number(prefix: str = "INV", *, pad: int = 6, max_attempts: int = 20) -> str:
    """
    Generate a unique invoice number such as "INV-000042".

    Caller-supplied numbers share the same namespace, so sequence values
    that were already taken by hand are skipped.
    """
    for _ in range(max_attempts):
        candidate = f"{prefix}-{_next_sequence_value(INVOICE_DOCUMENT_TYPE):0{pad}d}"
        if not invoice_number_exists(candidate):
            return candidate
    raise DocumentSequenceError("Could not allocate a free invoice number")
