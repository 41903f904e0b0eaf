"""
Quotation helpers: promised delivery and expiry dates from item lead times.
"""

from http import HTTPStatus

from flask import Blueprint, jsonify

from viomar_shared.permissions import PermissionName, require_permission
from viomar_shared.schemas import DeliveryEstimateRequest
from viomar_shared.services.delivery_date_service import delivery_date, expiry_date, max_lead_days
from viomar_shared.validation import parse_body

quotations_bp = Blueprint("quotations", __name__)


@quotations_bp.post("/quotations/delivery-estimate")
@require_permission(PermissionName.VER_PEDIDO)
def delivery_estimate():
    payload = parse_body(DeliveryEstimateRequest)
    items = [item.model_dump() for item in payload.items]

    delivery = delivery_date(items, payload.from_date)
    return jsonify(
        {
            "leadDays": max_lead_days(items),
            "deliveryDate": delivery,
            "expiryDate": expiry_date(delivery, payload.expiry_extra_days),
        }
    ), HTTPStatus.OK
