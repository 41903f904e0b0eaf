"""
Role-addressed notifications stored in the database.

A notification row targets one role; events fan out to every role that
holds a given permission.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from ..errors import NotFoundError
from ..models import Notification, Permission, Role, RolePermission

logger = logging.getLogger(__name__)


def roles_with_permission(session: Session, permission_name: str) -> list[str]:
    stmt = (
        select(Role.name)
        .join(RolePermission, RolePermission.role_id == Role.id)
        .join(Permission, Permission.id == RolePermission.permission_id)
        .where(Permission.name == permission_name)
        .order_by(Role.name)
    )
    return [name for name in session.execute(stmt).scalars() if name]


def notify_permission_holders(
    session: Session,
    permission_name: str,
    title: str,
    message: str,
    href: str | None = None,
) -> int:
    """Create one notification per role holding ``permission_name``."""
    role_names = roles_with_permission(session, permission_name)
    for role in role_names:
        session.add(Notification(title=title, message=message, role=role, href=href))
    if role_names:
        session.flush()
        logger.info(f"Notified {len(role_names)} role(s) holding {permission_name}: {title}")
    return len(role_names)


def list_notifications(
    session: Session,
    role: str,
    limit: int,
    offset: int,
    unread_only: bool = False,
    start_date: date | None = None,
    end_date: date | None = None,
) -> tuple[list[Notification], int, int]:
    """
    Notifications of ``role``, newest first.

    Returns: (page items, total matching, unread count for the role)
    """
    filters = [Notification.role == role]
    if start_date is not None:
        filters.append(Notification.created_at >= datetime.combine(start_date, time.min))
    if end_date is not None:
        filters.append(Notification.created_at <= datetime.combine(end_date, time.max))
    if unread_only:
        filters.append(Notification.is_read.is_(False))

    total = session.execute(select(func.count(Notification.id)).where(*filters)).scalar_one()
    items = list(
        session.execute(
            select(Notification)
            .where(*filters)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(limit)
            .offset(offset)
        ).scalars()
    )
    unread = session.execute(
        select(func.count(Notification.id)).where(
            Notification.role == role, Notification.is_read.is_(False)
        )
    ).scalar_one()
    return items, total, unread


def mark_read(session: Session, notification_id: int, role: str) -> Notification:
    notification = session.execute(
        select(Notification).where(Notification.id == notification_id, Notification.role == role)
    ).scalar_one_or_none()
    if notification is None:
        raise NotFoundError("Notificación no encontrada")
    notification.is_read = True
    session.flush()
    return notification


def mark_all_read(session: Session, role: str, ids: list[int] | None = None) -> int:
    stmt = update(Notification).where(Notification.role == role, Notification.is_read.is_(False))
    if ids:
        stmt = stmt.where(Notification.id.in_(ids))
    result = session.execute(stmt.values(is_read=True).execution_options(synchronize_session=False))
    return result.rowcount or 0
