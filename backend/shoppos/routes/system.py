# backend/shoppos/routes/system.py
"""
System health endpoint.

Reports database connectivity and row counts for deployment debugging.
"""

import time
from flask import Blueprint, current_app
from ..extensions import db
from ..models import Category, Employee, Product, PurchaseInvoice, Sale, User
from shoppos.time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__, url_prefix="/api")


def check_database_health() -> dict:
    """
    Check database connectivity and basic operations.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        details = {
            "categories": db.session.query(Category).count(),
            "products": db.session.query(Product).count(),
            "employees": db.session.query(Employee).count(),
            "users": db.session.query(User).count(),
            "sales": db.session.query(Sale).count(),
            "purchase_invoices": db.session.query(PurchaseInvoice).count(),
        }
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": details,
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        db.session.rollback()
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: database reachable
    - 503: database unreachable
    """
    database_health = check_database_health()
    http_status = 200 if database_health["status"] == "healthy" else 503

    response = {
        "status": database_health["status"],
        "timestamp": to_utc_z(utcnow()),
        "checks": {
            "database": database_health,
        }
    }
    return response, http_status
