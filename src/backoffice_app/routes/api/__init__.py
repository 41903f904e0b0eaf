"""
Back-office API - Modular Blueprint Structure

Each module handles one resource family; all of them are mounted under
``/api`` by the application factory.
"""

import logging

from flask import Blueprint

logger = logging.getLogger(__name__)

# Create main API blueprint
api_bp = Blueprint("api", __name__)

# Import and register sub-blueprints
from .auth import auth_bp  # noqa: E402
from .inventory import inventory_bp  # noqa: E402
from .legal_status import legal_status_bp  # noqa: E402
from .notifications import notifications_bp  # noqa: E402
from .order_items import order_items_bp  # noqa: E402
from .quotations import quotations_bp  # noqa: E402
from .roles import roles_bp  # noqa: E402
from .third_parties import third_parties_bp  # noqa: E402

api_bp.register_blueprint(auth_bp)
api_bp.register_blueprint(legal_status_bp)
api_bp.register_blueprint(third_parties_bp)
api_bp.register_blueprint(inventory_bp)
api_bp.register_blueprint(order_items_bp)
api_bp.register_blueprint(quotations_bp)
api_bp.register_blueprint(roles_bp)
api_bp.register_blueprint(notifications_bp)


# Health check endpoint
@api_bp.get("/health")
def health_check():
    """Simple health check endpoint"""
    return {"status": "ok", "service": "viomar-backoffice"}, 200
