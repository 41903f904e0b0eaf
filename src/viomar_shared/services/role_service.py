"""Helpers to administer roles, permissions and their associations."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..constants import Roles
from ..errors import ConflictError, NotFoundError, ValidationError
from ..models import Permission, Role, RolePermission
from ..permissions import PermissionName

logger = logging.getLogger(__name__)


def ensure_default_roles(session: Session) -> None:
    """Create the built-in roles and permission names that are missing."""
    existing_roles = set(session.execute(select(Role.name)).scalars())
    for role in Roles:
        if role.value not in existing_roles:
            session.add(Role(name=role.value))

    existing_permissions = set(session.execute(select(Permission.name)).scalars())
    for permission in PermissionName:
        if permission.value not in existing_permissions:
            session.add(Permission(name=permission.value))

    session.flush()


def list_roles(session: Session) -> list[Role]:
    return list(session.execute(select(Role).order_by(Role.name)).scalars())


def list_permissions(session: Session) -> list[Permission]:
    return list(session.execute(select(Permission).order_by(Permission.name)).scalars())


def _normalize_name(value: str, label: str) -> str:
    name = (value or "").strip().upper()
    if not name:
        raise ValidationError(f"Nombre de {label} requerido")
    return name


def create_role(session: Session, name: str) -> Role:
    name = _normalize_name(name, "rol")
    if session.execute(select(Role.id).where(Role.name == name)).first():
        raise ConflictError("El rol ya existe")
    role = Role(name=name)
    session.add(role)
    session.flush()
    logger.info(f"Role created: {name}")
    return role


def create_permission(session: Session, name: str) -> Permission:
    name = _normalize_name(name, "permiso")
    if session.execute(select(Permission.id).where(Permission.name == name)).first():
        raise ConflictError("El permiso ya existe")
    permission = Permission(name=name)
    session.add(permission)
    session.flush()
    logger.info(f"Permission created: {name}")
    return permission


def list_role_permissions(session: Session, role_id: int | None = None) -> list[dict[str, object]]:
    stmt = (
        select(RolePermission.role_id, Role.name, RolePermission.permission_id, Permission.name)
        .join(Role, Role.id == RolePermission.role_id)
        .join(Permission, Permission.id == RolePermission.permission_id)
        .order_by(Role.name, Permission.name)
    )
    if role_id is not None:
        stmt = stmt.where(RolePermission.role_id == role_id)

    return [
        {
            "roleId": rid,
            "roleName": role_name,
            "permissionId": pid,
            "permissionName": permission_name,
        }
        for rid, role_name, pid, permission_name in session.execute(stmt)
    ]


def grant_permission(session: Session, role_id: int, permission_id: int) -> RolePermission:
    role = session.get(Role, role_id)
    if role is None:
        raise NotFoundError("Rol no encontrado")
    permission = session.get(Permission, permission_id)
    if permission is None:
        raise NotFoundError("Permiso no encontrado")

    if session.get(RolePermission, (role_id, permission_id)) is not None:
        raise ConflictError("El rol ya tiene este permiso")

    binding = RolePermission(role_id=role_id, permission_id=permission_id)
    session.add(binding)
    try:
        session.flush()
    except IntegrityError:
        # Granted concurrently
        raise ConflictError("El rol ya tiene este permiso")

    logger.info(f"Permission {permission.name} granted to role {role.name}")
    return binding


def revoke_permission(session: Session, role_id: int, permission_id: int) -> None:
    binding = session.get(RolePermission, (role_id, permission_id))
    if binding is None:
        raise NotFoundError("Asignación no encontrada")
    session.delete(binding)
    session.flush()
    logger.info(f"Permission {permission_id} revoked from role {role_id}")


def grant_by_name(session: Session, role_name: str, permission_names) -> None:
    """Grant permissions by name, creating missing roles and permissions."""
    role = session.execute(select(Role).where(Role.name == role_name)).scalar_one_or_none()
    if role is None:
        role = Role(name=role_name)
        session.add(role)
        session.flush()

    for name in permission_names:
        name = getattr(name, "value", name)
        permission = session.execute(
            select(Permission).where(Permission.name == name)
        ).scalar_one_or_none()
        if permission is None:
            permission = Permission(name=name)
            session.add(permission)
            session.flush()
        if session.get(RolePermission, (role.id, permission.id)) is None:
            session.add(RolePermission(role_id=role.id, permission_id=permission.id))
    session.flush()
