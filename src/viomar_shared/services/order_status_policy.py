"""
Status-role policy for order item workflow statuses.

Each status has a static set of roles allowed to move an item into it.
``ADMINISTRADOR`` may set every status; ``LIDER_DE_PROCESOS`` every status
except ``CANCELADO``. Pure lookups, no I/O.
"""

from __future__ import annotations

from ..constants import OrderItemStatus, Roles

S = OrderItemStatus

ADMIN_ROLE = Roles.ADMINISTRADOR.value
LEADER_ROLE = Roles.LIDER_DE_PROCESOS.value

ALL_STATUSES: frozenset[OrderItemStatus] = frozenset(OrderItemStatus)
LEADER_STATUSES: frozenset[OrderItemStatus] = ALL_STATUSES - {S.CANCELADO}

_COMMERCIAL = (Roles.ASESOR.value, Roles.COMPRAS.value)

STATUS_ROLE_MAP: dict[OrderItemStatus, frozenset[str]] = {
    S.PENDIENTE: frozenset(_COMMERCIAL),
    S.APROBACION_INICIAL: frozenset(_COMMERCIAL),
    S.PENDIENTE_PRODUCCION: frozenset((*_COMMERCIAL, Roles.OPERARIO_INVENTARIO.value)),
    S.EN_MONTAJE: frozenset({Roles.OPERARIO_MONTAJE.value}),
    S.EN_IMPRESION: frozenset(
        {Roles.OPERARIO_IMPRESION.value, Roles.OPERARIO_ESTAMPACION.value}
    ),
    S.SUBLIMACION: frozenset({Roles.OPERARIO_SUBLIMACION.value}),
    S.CORTE_MANUAL: frozenset({Roles.OPERARIO_CORTE_MANUAL.value}),
    S.CORTE_LASER: frozenset({Roles.OPERARIO_CORTE_LASER.value}),
    S.PENDIENTE_CONFECCION: frozenset({Roles.OPERARIO_INTEGRACION.value}),
    S.CONFECCION: frozenset({Roles.OPERARIO_INTEGRACION.value, Roles.OPERARIO_EMPAQUE.value}),
    S.EN_BODEGA: frozenset({Roles.OPERARIO_EMPAQUE.value, Roles.OPERARIO_INVENTARIO.value}),
    S.EMPAQUE: frozenset({Roles.OPERARIO_EMPAQUE.value}),
    S.ENVIADO: frozenset({Roles.OPERARIO_EMPAQUE.value}),
    S.COMPLETADO: frozenset({Roles.OPERARIO_EMPAQUE.value}),
    # Only the special roles
    S.REVISION_ADMIN: frozenset(),
    S.EN_REVISION_CAMBIO: frozenset(),
    S.APROBADO_CAMBIO: frozenset(),
    S.RECHAZADO_CAMBIO: frozenset(),
    S.CANCELADO: frozenset(),
}

# Workflow successors of each status
STATUS_TRANSITIONS: dict[OrderItemStatus, tuple[OrderItemStatus, ...]] = {
    S.PENDIENTE: (S.REVISION_ADMIN, S.APROBACION_INICIAL),
    S.REVISION_ADMIN: (S.APROBACION_INICIAL,),
    S.APROBACION_INICIAL: (S.PENDIENTE_PRODUCCION, S.EN_REVISION_CAMBIO),
    S.PENDIENTE_PRODUCCION: (
        S.EN_MONTAJE,
        S.EN_IMPRESION,
        S.SUBLIMACION,
        S.CORTE_MANUAL,
        S.CORTE_LASER,
        S.PENDIENTE_CONFECCION,
    ),
    S.EN_MONTAJE: (S.PENDIENTE_CONFECCION,),
    S.EN_IMPRESION: (S.PENDIENTE_CONFECCION,),
    S.SUBLIMACION: (S.PENDIENTE_CONFECCION,),
    S.CORTE_MANUAL: (S.PENDIENTE_CONFECCION,),
    S.CORTE_LASER: (S.PENDIENTE_CONFECCION,),
    S.PENDIENTE_CONFECCION: (S.CONFECCION,),
    S.CONFECCION: (S.EN_BODEGA,),
    S.EN_BODEGA: (S.EMPAQUE,),
    S.EMPAQUE: (S.ENVIADO,),
    S.ENVIADO: (S.COMPLETADO,),
    S.EN_REVISION_CAMBIO: (S.APROBADO_CAMBIO, S.RECHAZADO_CAMBIO),
    S.APROBADO_CAMBIO: (S.PENDIENTE_PRODUCCION,),
    S.RECHAZADO_CAMBIO: (S.PENDIENTE_PRODUCCION,),
    S.COMPLETADO: (),
    S.CANCELADO: (),
}


def parse_status(value) -> OrderItemStatus | None:
    """Return the enum member for ``value``, or None when it is not a status."""
    if isinstance(value, OrderItemStatus):
        return value
    if not isinstance(value, str):
        return None
    try:
        return OrderItemStatus(value.strip().upper())
    except ValueError:
        return None


def allowed_statuses(role: str | None) -> frozenset[OrderItemStatus]:
    """Statuses ``role`` may set; empty for a missing or unknown role."""
    if not role:
        return frozenset()
    if role == ADMIN_ROLE:
        return ALL_STATUSES
    if role == LEADER_ROLE:
        return LEADER_STATUSES
    return frozenset(status for status, roles in STATUS_ROLE_MAP.items() if role in roles)


def can_transition(role: str | None, target_status) -> bool:
    target = parse_status(target_status)
    if target is None:
        return False
    return target in allowed_statuses(role)


def allowed_next_statuses(role: str | None, current) -> list[OrderItemStatus]:
    """
    Statuses ``role`` may move an item to from ``current``.

    The administrator may jump anywhere; everyone else follows the workflow
    successors filtered by what the role may set.
    """
    current_status = parse_status(current)
    if not role or current_status is None:
        return []
    if role == ADMIN_ROLE:
        return list(OrderItemStatus)

    allowed = allowed_statuses(role)
    return [status for status in STATUS_TRANSITIONS[current_status] if status in allowed]


def can_change_status(role: str | None, current, target) -> bool:
    """
    Full check for a status change: the role must be allowed to set
    ``target`` and ``target`` must be a workflow successor of ``current``
    (or ``current`` itself). The administrator bypasses the workflow.
    """
    target_status = parse_status(target)
    if not role or target_status is None:
        return False
    if role == ADMIN_ROLE:
        return True

    current_status = parse_status(current)
    if current_status is None:
        return False
    if target_status not in allowed_statuses(role):
        return False

    return target_status == current_status or target_status in STATUS_TRANSITIONS[current_status]


def is_operator_role(role: str | None) -> bool:
    return bool(role) and role.startswith("OPERARIO_")
