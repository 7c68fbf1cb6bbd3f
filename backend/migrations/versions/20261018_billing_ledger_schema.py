"""Billing ledger schema: customers, catalog stock, invoices, settlements

Revision ID: 20261018_billing_ledger
Revises:
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261018_billing_ledger"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "customers",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("contact", sa.String(64), nullable=True),
        sa.Column("aadhaar", sa.String(32), nullable=True),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("outstanding_credit_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("customers", schema=None) as batch_op:
        batch_op.create_index("ix_customers_contact", ["contact"], unique=False)

    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("product_code", sa.String(64), nullable=False),
        sa.Column("product_name", sa.String(255), nullable=False),
        sa.Column("base_unit", sa.String(32), nullable=False),
        sa.Column("conversion_rate", sa.Numeric(14, 4), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("product_code", name="uq_products_code"),
    )
    with op.batch_alter_table("products", schema=None) as batch_op:
        batch_op.create_index("ix_products_name", ["product_name"], unique=False)

    op.create_table(
        "stock_quantities",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("product_code", sa.String(64), nullable=False),
        sa.Column("available_quantity", sa.Numeric(14, 4), nullable=False, server_default=sa.text("0")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("product_code", name="uq_stock_quantities_code"),
    )

    op.create_table(
        "document_sequences",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("document_type", sa.String(32), nullable=False),
        sa.Column("next_number", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("document_type", name="uq_doc_sequences_type"),
    )
    with op.batch_alter_table("document_sequences", schema=None) as batch_op:
        batch_op.create_index("ix_document_sequences_document_type", ["document_type"], unique=False)

    op.create_table(
        "invoices",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("invoice_number", sa.String(64), nullable=False),
        sa.Column("customer_id", sa.Integer(), nullable=False),
        sa.Column("customer_name", sa.String(255), nullable=True),
        sa.Column("customer_contact", sa.String(64), nullable=True),
        sa.Column("customer_aadhaar", sa.String(32), nullable=True),
        sa.Column("customer_location", sa.String(255), nullable=True),
        sa.Column("cashier_id", sa.String(64), nullable=False),
        sa.Column("cashier_name", sa.String(255), nullable=False),
        sa.Column("counter_num", sa.String(32), nullable=False),
        sa.Column("cashier_contact_number", sa.String(64), nullable=True),
        sa.Column("product_subtotal_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("tax_amount_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("transport_charge_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("current_bill_total_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("grand_total_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("paid_amount_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("unpaid_amount_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("change_due_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("status", sa.String(16), nullable=False, server_default="unpaid"),
        sa.Column("payment_method", sa.String(32), nullable=True),
        sa.Column("transaction_id", sa.String(128), nullable=True),
        sa.Column("current_bill_payment_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("outstanding_payment_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("previous_outstanding_credit_cents", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("invoice_number", name="uq_invoices_invoice_number"),
        sa.CheckConstraint("paid_amount_cents >= 0", name="ck_invoices_paid_non_negative"),
        sa.CheckConstraint("unpaid_amount_cents >= 0", name="ck_invoices_unpaid_non_negative"),
    )
    with op.batch_alter_table("invoices", schema=None) as batch_op:
        batch_op.create_index("ix_invoices_customer_id", ["customer_id"], unique=False)
        batch_op.create_index("ix_invoices_status", ["status"], unique=False)
        batch_op.create_index("ix_invoices_created_at", ["created_at"], unique=False)
        batch_op.create_index(
            "ix_invoices_customer_unpaid_created",
            ["customer_id", "unpaid_amount_cents", "created_at"],
            unique=False,
        )

    op.create_table(
        "invoice_lines",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("invoice_id", sa.Integer(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("code", sa.String(64), nullable=True),
        sa.Column("hsn_code", sa.String(32), nullable=True),
        sa.Column("quantity", sa.Numeric(14, 4), nullable=False),
        sa.Column("unit", sa.String(32), nullable=True),
        sa.Column("unit_price_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("basic_price_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("discount_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_price_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("gst_rate_bps", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("sgst_rate_bps", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("gst_amount_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("sgst_amount_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.ForeignKeyConstraint(["invoice_id"], ["invoices.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("invoice_lines", schema=None) as batch_op:
        batch_op.create_index("ix_invoice_lines_invoice_id", ["invoice_id"], unique=False)

    op.create_table(
        "settlement_entries",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("invoice_id", sa.Integer(), nullable=False),
        sa.Column("customer_id", sa.Integer(), nullable=False),
        sa.Column("entry_type", sa.String(32), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("payment_method", sa.String(32), nullable=True),
        sa.Column("transaction_id", sa.String(128), nullable=True),
        sa.Column("cashier_id", sa.String(64), nullable=True),
        sa.Column("cashier_name", sa.String(255), nullable=True),
        sa.Column("counter_num", sa.String(32), nullable=True),
        sa.Column("occurred_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.ForeignKeyConstraint(["invoice_id"], ["invoices.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("settlement_entries", schema=None) as batch_op:
        batch_op.create_index("ix_settlement_entries_invoice_id", ["invoice_id"], unique=False)
        batch_op.create_index("ix_settlement_entries_customer_id", ["customer_id"], unique=False)
        batch_op.create_index("ix_settlement_entries_entry_type", ["entry_type"], unique=False)
        batch_op.create_index("ix_settlement_entries_occurred_at", ["occurred_at"], unique=False)
        batch_op.create_index(
            "ix_settlement_entries_invoice_occurred",
            ["invoice_id", "occurred_at"],
            unique=False,
        )


def downgrade():
    op.drop_table("settlement_entries")
    op.drop_table("invoice_lines")
    op.drop_table("invoices")
    op.drop_table("document_sequences")
    op.drop_table("stock_quantities")
    op.drop_table("products")
    op.drop_table("customers")
