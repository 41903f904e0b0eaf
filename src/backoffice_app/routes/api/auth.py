"""
Session endpoints: who am I, which permissions do I hold, logout.
"""

from http import HTTPStatus

from flask import Blueprint, g, jsonify, request

from viomar_shared.jwt_middleware import get_current_user, jwt_required
from viomar_shared.jwt_service import get_cookie_name
from viomar_shared.permissions import resolve_permission

auth_bp = Blueprint("auth", __name__)


@auth_bp.get("/auth/me")
@jwt_required
def me():
    user = get_current_user()
    return jsonify(
        {
            "id": user.get("user_id", user.get("sub")),
            "name": user.get("name"),
            "role": user.get("role"),
        }
    ), HTTPStatus.OK


@auth_bp.get("/auth/permissions")
@jwt_required
def my_permissions():
    """``?names=A,B`` -> ``{"permissions": {"A": true, "B": false}}``"""
    raw = (request.args.get("names") or "").strip()
    names = [name.strip() for name in raw.split(",") if name.strip()]

    result = {name: resolve_permission(g.jwt_token, name).allowed for name in names}
    return jsonify({"permissions": result}), HTTPStatus.OK


@auth_bp.post("/auth/logout")
def logout():
    response = jsonify({"success": True})
    response.delete_cookie(get_cookie_name(), path="/")
    return response, HTTPStatus.OK
