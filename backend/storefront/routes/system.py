# backend/storefront/routes/system.py
"""
System health endpoint.

Checks database connectivity and that the order collection loads.
"""

import time
from flask import Blueprint, current_app, jsonify
from ..extensions import db
from ..models import Product, StockLevel, StoredRecord
from ..services.order_repository import default_repository
from ..time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Check database connectivity and basic operations.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        product_count = db.session.query(Product).count()
        stock_rows = db.session.query(StockLevel).count()
        record_count = db.session.query(StoredRecord).count()
        order_count = len(default_repository().load_all())

        elapsed_ms = (time.time() - start_time) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "products": product_count,
                "stock_levels": stock_rows,
                "records": record_count,
                "orders": order_count,
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
    status_code = 200 if database["status"] == "healthy" else 503
    return jsonify({
        "status": database["status"],
        "time": to_utc_z(utcnow()),
        "checks": {"database": database},
    }), status_code
