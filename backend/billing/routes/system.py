# backend/billing/routes/system.py
"""
System health endpoint.

Reports database connectivity for deployment debugging.
"""

import time
from flask import Blueprint, current_app, jsonify
from ..extensions import db
from ..models import Invoice, Customer
from billing.time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Check database connectivity and basic operations.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        invoice_count = db.session.query(Invoice).count()
        customer_count = db.session.query(Customer).count()

        elapsed_ms = (time.time() - start_time) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "invoices": invoice_count,
                "customers": customer_count,
            }
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


@system_bp.get("/health")
def health():
    database = check_database_health()
    healthy = database["status"] == "healthy"
    return jsonify({
        "status": "ok" if healthy else "degraded",
        "checked_at": to_utc_z(utcnow()),
        "database": database,
    }), 200 if healthy else 503
