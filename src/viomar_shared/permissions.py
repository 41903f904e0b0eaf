"""
Permission resolver for back-office routes.

Authorization is decided per request from the role claim of the session
token and the role -> permission associations stored in the database. The
``ADMINISTRADOR`` role bypasses the lookup and a small static table grants
extra permissions to specific roles.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from functools import wraps
from http import HTTPStatus

from flask import g, jsonify, request
from sqlalchemy import select

from .constants import Roles
from .db import get_session
from .jwt_service import JWTError, decode_token, extract_token_from_request
from .models import Permission, Role, RolePermission

logger = logging.getLogger(__name__)


class PermissionName(str, Enum):
    """Permisos usados por las rutas del back-office"""

    # Terceros
    VER_CLIENTE = "VER_CLIENTE"
    CREAR_CLIENTE = "CREAR_CLIENTE"
    EDITAR_CLIENTE = "EDITAR_CLIENTE"
    VER_EMPLEADO = "VER_EMPLEADO"
    CREAR_EMPLEADO = "CREAR_EMPLEADO"
    EDITAR_EMPLEADO = "EDITAR_EMPLEADO"
    VER_PROVEEDOR = "VER_PROVEEDOR"
    CREAR_PROVEEDOR = "CREAR_PROVEEDOR"
    EDITAR_PROVEEDOR = "EDITAR_PROVEEDOR"
    VER_CONFECCIONISTA = "VER_CONFECCIONISTA"
    CREAR_CONFECCIONISTA = "CREAR_CONFECCIONISTA"
    EDITAR_CONFECCIONISTA = "EDITAR_CONFECCIONISTA"
    VER_EMPAQUE = "VER_EMPAQUE"
    CREAR_EMPAQUE = "CREAR_EMPAQUE"
    EDITAR_EMPAQUE = "EDITAR_EMPAQUE"

    # Inventario
    VER_INVENTARIO = "VER_INVENTARIO"
    CREAR_ITEM_INVENTARIO = "CREAR_ITEM_INVENTARIO"
    REGISTRAR_ENTRADA = "REGISTRAR_ENTRADA"
    REGISTRAR_SALIDA = "REGISTRAR_SALIDA"

    # Pedidos
    VER_PEDIDO = "VER_PEDIDO"
    CAMBIAR_ESTADO_PEDIDO = "CAMBIAR_ESTADO_PEDIDO"
    CAMBIAR_ESTADO_DISENO = "CAMBIAR_ESTADO_DISEÑO"
    VER_HISTORIAL_ESTADO = "VER_HISTORIAL_ESTADO"

    # Administracion
    VER_ROL = "VER_ROL"
    CREAR_ROL = "CREAR_ROL"
    VER_PERMISO = "VER_PERMISO"
    CREAR_PERMISO = "CREAR_PERMISO"
    VER_ROLE_PERMISSION = "VER_ROLE_PERMISSION"
    CREAR_ROLE_PERMISSION = "CREAR_ROLE_PERMISSION"
    ELIMINAR_ROLE_PERMISSION = "ELIMINAR_ROLE_PERMISSION"
    VER_NOTIFICACION = "VER_NOTIFICACION"


# Grants that hold regardless of the stored associations
ROLE_PERMISSION_OVERRIDES: dict[str, frozenset[str]] = {
    Roles.COMPRAS.value: frozenset(
        {PermissionName.VER_PEDIDO.value, PermissionName.CAMBIAR_ESTADO_DISENO.value}
    ),
}

UNAUTHORIZED_MESSAGE = "Unauthorized"
FORBIDDEN_MESSAGE = "Forbidden"


@dataclass(frozen=True)
class PermissionDecision:
    allowed: bool
    status: int = HTTPStatus.OK
    reason: str | None = None
    role: str | None = None

    @classmethod
    def allow(cls, role: str) -> "PermissionDecision":
        return cls(True, HTTPStatus.OK, None, role)

    @classmethod
    def deny(cls, status: int, reason: str, role: str | None = None) -> "PermissionDecision":
        return cls(False, status, reason, role)


def _permission_value(permission) -> str:
    return permission.value if isinstance(permission, Enum) else str(permission)


def role_has_permission(role: str, permission_name: str) -> bool:
    """
    Check the stored role -> permission association.

    Store failures propagate; ``resolve_permission`` turns them into a deny.
    """
    with get_session() as session:
        stmt = (
            select(RolePermission.role_id)
            .join(Role, Role.id == RolePermission.role_id)
            .join(Permission, Permission.id == RolePermission.permission_id)
            .where(Role.name == role, Permission.name == permission_name)
            .limit(1)
        )
        return session.execute(stmt).first() is not None


def has_permission(role: str | None, permission_name) -> bool:
    """
    Decide whether ``role`` holds ``permission_name``, applying the
    administrator bypass and the static overrides before the store lookup.
    """
    if not role:
        return False
    name = _permission_value(permission_name)
    if role == Roles.ADMINISTRADOR.value:
        return True
    if name in ROLE_PERMISSION_OVERRIDES.get(role, frozenset()):
        return True
    return role_has_permission(role, name)


def resolve_permission(token: str | None, permission_name) -> PermissionDecision:
    """
    Resolve whether the holder of ``token`` may use ``permission_name``.

    Never raises: a missing or invalid token is a 401 deny, a missing role
    claim, a missing association or any store failure is a 403 deny.
    """
    name = _permission_value(permission_name)

    if not token:
        return PermissionDecision.deny(HTTPStatus.UNAUTHORIZED, "missing token")

    try:
        payload = decode_token(token)
    except JWTError as e:
        return PermissionDecision.deny(HTTPStatus.UNAUTHORIZED, e.message)

    role = payload.get("role") if isinstance(payload, dict) else None
    if not isinstance(role, str) or not role.strip():
        return PermissionDecision.deny(HTTPStatus.FORBIDDEN, "missing role claim")
    role = role.strip()

    try:
        allowed = has_permission(role, name)
    except Exception as e:
        logger.error(f"Permission lookup failed for role={role} permission={name}: {e}")
        return PermissionDecision.deny(HTTPStatus.FORBIDDEN, "permission lookup failed", role)

    if not allowed:
        logger.info(f"Permission denied: role={role} permission={name}")
        return PermissionDecision.deny(HTTPStatus.FORBIDDEN, "permission not granted", role)

    return PermissionDecision.allow(role)


def require_permission(permission_name):
    """
    Decorador para verificar permisos en endpoints

    Uso:
        @require_permission(PermissionName.VER_INVENTARIO)
        def get_stock():
            pass

    ``permission_name`` may also be a callable receiving the view kwargs and
    returning the permission, for routes whose permission depends on the URL.
    The error body never names the missing permission.
    """

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            name = permission_name(**kwargs) if callable(permission_name) else permission_name
            if name is None:
                return jsonify({"error": "Not Found"}), HTTPStatus.NOT_FOUND

            decision = resolve_permission(extract_token_from_request(request), name)
            if not decision.allowed:
                message = (
                    UNAUTHORIZED_MESSAGE
                    if decision.status == HTTPStatus.UNAUTHORIZED
                    else FORBIDDEN_MESSAGE
                )
                return jsonify({"error": message}), decision.status

            g.permission_role = decision.role
            return f(*args, **kwargs)

        return decorated_function

    return decorator
