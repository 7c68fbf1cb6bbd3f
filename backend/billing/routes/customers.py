# Overview: Flask API routes for customer balances.

from flask import Blueprint, jsonify

from ..services import customer_service, invoice_service


customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("/<int:customer_id>/outstanding")
def get_outstanding_route(customer_id: int):
    """
    Customer's stored outstanding credit and the unpaid invoices behind it.

    Returns:
        200: {"customer": {...}, "outstanding_credit_cents": n, "unpaid_invoices": [...]}
        404: customer not found
    """
    customer = customer_service.get_customer(customer_id)
    if not customer:
        return jsonify({"error": "Customer not found"}), 404

    unpaid = invoice_service.get_unpaid_invoices(customer_id)

    return jsonify({
        "customer": customer.to_dict(),
        "outstanding_credit_cents": customer.outstanding_credit_cents,
        "unpaid_invoices": [inv.to_dict(include_lines=False) for inv in unpaid],
    }), 200
