"""
Role and permission administration.
"""

from http import HTTPStatus

from flask import Blueprint, jsonify, request

from viomar_shared.db import get_session
from viomar_shared.permissions import PermissionName, require_permission
from viomar_shared.schemas import PermissionCreateRequest, RoleCreateRequest, RolePermissionRequest
from viomar_shared.security_middleware import rate_limit
from viomar_shared.serializers import serialize_permission, serialize_role
from viomar_shared.services import role_service
from viomar_shared.validation import parse_body, parse_int

roles_bp = Blueprint("roles", __name__)


@roles_bp.get("/roles")
@require_permission(PermissionName.VER_ROL)
def list_roles():
    with get_session() as session:
        data = [serialize_role(role) for role in role_service.list_roles(session)]
    return jsonify(data), HTTPStatus.OK


@roles_bp.post("/roles")
@rate_limit("roles:post", limit=30, window_seconds=60)
@require_permission(PermissionName.CREAR_ROL)
def create_role():
    payload = parse_body(RoleCreateRequest)
    with get_session() as session:
        data = serialize_role(role_service.create_role(session, payload.name))
    return jsonify(data), HTTPStatus.CREATED


@roles_bp.get("/permissions")
@require_permission(PermissionName.VER_PERMISO)
def list_permissions():
    with get_session() as session:
        data = [serialize_permission(p) for p in role_service.list_permissions(session)]
    return jsonify(data), HTTPStatus.OK


@roles_bp.post("/permissions")
@rate_limit("permissions:post", limit=30, window_seconds=60)
@require_permission(PermissionName.CREAR_PERMISO)
def create_permission():
    payload = parse_body(PermissionCreateRequest)
    with get_session() as session:
        data = serialize_permission(role_service.create_permission(session, payload.name))
    return jsonify(data), HTTPStatus.CREATED


@roles_bp.get("/role-permissions")
@require_permission(PermissionName.VER_ROLE_PERMISSION)
def list_role_permissions():
    raw_role_id = (request.args.get("roleId") or "").strip()
    role_id = parse_int(raw_role_id, "roleId") if raw_role_id else None
    with get_session() as session:
        data = role_service.list_role_permissions(session, role_id)
    return jsonify(data), HTTPStatus.OK


@roles_bp.post("/role-permissions")
@rate_limit("role-permissions:post", limit=60, window_seconds=60)
@require_permission(PermissionName.CREAR_ROLE_PERMISSION)
def grant_role_permission():
    payload = parse_body(RolePermissionRequest)
    with get_session() as session:
        role_service.grant_permission(session, payload.role_id, payload.permission_id)
    return jsonify(
        {"roleId": payload.role_id, "permissionId": payload.permission_id}
    ), HTTPStatus.CREATED


@roles_bp.delete("/role-permissions")
@rate_limit("role-permissions:delete", limit=60, window_seconds=60)
@require_permission(PermissionName.ELIMINAR_ROLE_PERMISSION)
def revoke_role_permission():
    payload = parse_body(RolePermissionRequest)
    with get_session() as session:
        role_service.revoke_permission(session, payload.role_id, payload.permission_id)
    return jsonify({"deleted": True}), HTTPStatus.OK
