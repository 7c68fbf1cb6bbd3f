# Overview: Flask API routes for invoices and settlements; parses input and returns JSON responses.

# backend/billing/routes/invoices.py
"""
Invoice & Settlement API Routes

DESIGN:
- Create invoices (with optional settlement of older invoices)
- Settle outstanding invoices without a new purchase
- List invoices and a customer's unpaid invoices (oldest first)

ERRORS:
- 400: validation failure (nothing written)
- 404: no eligible invoices / invoice not found
- 409: invoice number already exists
- 500: processing failure (transaction rolled back)
"""

from flask import Blueprint, request, jsonify, current_app

from ..services import invoice_service, settlement_service
from ..services.settlement_service import SettlementError
from ..validation import (
    ConflictError,
    NotFoundError,
    ValidationError,
    parse_bool_flag,
    parse_customer_id,
    parse_invoice_request,
    parse_settle_request,
)


invoices_bp = Blueprint("invoices", __name__, url_prefix="/api/invoices")


# =============================================================================
# QUERIES
# =============================================================================

@invoices_bp.get("/")
def list_invoices_route():
    """
    List invoices.

    Query params:
    - customer_id: integer (optional)
    - unpaid_only: true/false (optional); unpaid results are oldest first

    Returns normalized invoices; missing customer/product fields are
    replaced with defaults.
    """
    try:
        raw_customer_id = request.args.get("customer_id")
        customer_id = parse_customer_id(raw_customer_id) if raw_customer_id else None
        unpaid_only = parse_bool_flag(request.args.get("unpaid_only"))

        invoices = invoice_service.list_invoices(customer_id=customer_id, unpaid_only=unpaid_only)
        return jsonify([invoice_service.normalize_invoice(inv) for inv in invoices]), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to fetch invoices")
        return jsonify({"error": "Failed to fetch invoices"}), 500


@invoices_bp.get("/unpaid")
def list_unpaid_invoices_route():
    """
    Unpaid invoices for one customer, oldest first.

    Query params:
    - customer_id: integer (required)
    """
    try:
        raw_customer_id = request.args.get("customer_id")
        if not raw_customer_id:
            return jsonify({"error": "Customer ID is required"}), 400
        customer_id = parse_customer_id(raw_customer_id)

        invoices = invoice_service.get_unpaid_invoices(customer_id)
        return jsonify([inv.to_dict() for inv in invoices]), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to fetch unpaid invoices")
        return jsonify({"error": "Failed to fetch unpaid invoices"}), 500


@invoices_bp.get("/<int:invoice_id>")
def get_invoice_route(invoice_id: int):
    """Invoice with line items and its settlement history."""
    invoice = invoice_service.get_invoice(invoice_id)
    if not invoice:
        return jsonify({"error": "Invoice not found"}), 404

    entries = invoice_service.get_settlement_entries(invoice_id)

    return jsonify({
        "invoice": invoice.to_dict(),
        "settlement_entries": [e.to_dict() for e in entries],
    }), 200


# =============================================================================
# SETTLEMENT
# =============================================================================

@invoices_bp.post("/settle-outstanding")
def settle_outstanding_route():
    """
    Apply a payment to selected unpaid invoices, oldest first.

    Request body:
    {
        "customer_id": 42,
        "payment_method": "cash",
        "transaction_id": "UPI-123",  (optional)
        "amount_paid_cents": 60000,
        "cashier": {"cashier_id": "C1", "cashier_name": "Asha", "counter_num": "2"},
        "selected_unpaid_invoice_ids": [3, 7]
    }

    Returns:
        200: updated invoices and any unapplied remainder
        400: missing cashier or payment details, empty selection
        404: none of the selected invoices is unpaid
        500: processing failure
    """
    try:
        settle_request = parse_settle_request(request.get_json(silent=True))

        outcome = settlement_service.settle_outstanding(settle_request)

        return jsonify({
            "message": "Outstanding invoices settled successfully.",
            "updated_invoices": [inv.to_dict() for inv in outcome.updated_invoices],
            "remaining_payment_cents": outcome.remainder_cents,
            "outstanding_credit_cents": outcome.outstanding_credit_cents,
        }), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except SettlementError as e:
        current_app.logger.exception("Failed to settle outstanding invoices")
        return jsonify({"error": str(e)}), 500
    except Exception:
        current_app.logger.exception("Failed to settle outstanding invoices")
        return jsonify({"error": "Failed to settle outstanding invoices"}), 500


# =============================================================================
# INVOICE CREATION
# =============================================================================

@invoices_bp.post("/")
def create_invoice_route():
    """
    Create an invoice, optionally paying down older invoices in the same step.

    Request body:
    {
        "customer": {"id": 42, "name": "Ravi", "contact": "98450..."},
        "cashier": {"cashier_id": "C1", "cashier_name": "Asha", "counter_num": "2"},
        "line_items": [
            {"name": "Cement", "code": "CEM-01", "quantity": 2, "unit": "bag",
             "basic_price_cents": 50000, "gst_amount_cents": 4500, "sgst_amount_cents": 4500}
        ],
        "transport_charge_cents": 2000,
        "payment": {
            "method": "cash",
            "transaction_id": null,
            "current_bill_payment_cents": 60000,
            "outstanding_payment_cents": 0
        },
        "invoice_number": "INV-7788",  (optional, generated if absent)
        "selected_unpaid_invoice_ids": []  (required when outstanding_payment_cents > 0)
    }

    With no line items and outstanding_payment_cents > 0 only the older
    invoices are settled; no invoice is created.

    Returns:
        201: created invoice (null for outstanding-only payments)
        400: validation failure
        404: outstanding payment given but no selected invoice is unpaid
        409: invoice number already exists
        500: processing failure
    """
    try:
        invoice_request = parse_invoice_request(request.get_json(silent=True))

        outcome = settlement_service.create_invoice(invoice_request)

        message = (
            "Invoice created successfully"
            if outcome.invoice is not None
            else "Outstanding payments processed successfully"
        )
        return jsonify({
            "success": True,
            "message": message,
            "invoice": outcome.invoice.to_dict() if outcome.invoice is not None else None,
            "updated_invoices": [inv.to_dict() for inv in outcome.updated_invoices],
            "remaining_payment_cents": outcome.remainder_cents,
            "outstanding_credit_cents": outcome.outstanding_credit_cents,
        }), 201

    except ValidationError as e:
        return jsonify({"success": False, "error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"success": False, "error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"success": False, "error": str(e)}), 409
    except SettlementError as e:
        current_app.logger.exception("Failed to create invoice")
        return jsonify({"success": False, "error": str(e)}), 500
    except Exception:
        current_app.logger.exception("Failed to create invoice")
        return jsonify({"success": False, "error": "Failed to process payment"}), 500
