from __future__ import annotations

from ..extensions import db


class DocumentSequence(db.Model):
    """
    Per-type counter behind generated document numbers (e.g. INVOICE).

    next_number is the value the next allocation will hand out; it is only
    advanced with an atomic UPDATE inside the allocating transaction, so a
    rolled-back invoice gives its number back.
    """
    __tablename__ = "document_sequences"
    __table_args__ = (
        db.UniqueConstraint("document_type", name="uq_doc_sequences_type"),
    )

    id = db.Column(db.Integer, primary_key=True)
    document_type = db.Column(db.String(32), nullable=False, index=True)
    next_number = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def __repr__(self) -> str:
        return f"<DocumentSequence {self.document_type} next={self.next_number}>"
