"""
Application constants and enums.
"""

from enum import Enum


class Roles(str, Enum):
    ADMINISTRADOR = "ADMINISTRADOR"
    LIDER_DE_PROCESOS = "LIDER_DE_PROCESOS"
    ASESOR = "ASESOR"
    COMPRAS = "COMPRAS"
    DISENADOR = "DISEÑADOR"
    OPERARIO_EMPAQUE = "OPERARIO_EMPAQUE"
    OPERARIO_INVENTARIO = "OPERARIO_INVENTARIO"
    OPERARIO_INTEGRACION = "OPERARIO_INTEGRACION"
    OPERARIO_CORTE_LASER = "OPERARIO_CORTE_LASER"
    OPERARIO_CORTE_MANUAL = "OPERARIO_CORTE_MANUAL"
    OPERARIO_IMPRESION = "OPERARIO_IMPRESION"
    OPERARIO_ESTAMPACION = "OPERARIO_ESTAMPACION"
    OPERARIO_MONTAJE = "OPERARIO_MONTAJE"
    OPERARIO_SUBLIMACION = "OPERARIO_SUBLIMACION"


class OrderItemStatus(str, Enum):
    PENDIENTE = "PENDIENTE"
    REVISION_ADMIN = "REVISION_ADMIN"
    APROBACION_INICIAL = "APROBACION_INICIAL"
    PENDIENTE_PRODUCCION = "PENDIENTE_PRODUCCION"
    EN_MONTAJE = "EN_MONTAJE"
    EN_IMPRESION = "EN_IMPRESION"
    SUBLIMACION = "SUBLIMACION"
    CORTE_MANUAL = "CORTE_MANUAL"
    CORTE_LASER = "CORTE_LASER"
    PENDIENTE_CONFECCION = "PENDIENTE_CONFECCION"
    CONFECCION = "CONFECCION"
    EN_BODEGA = "EN_BODEGA"
    EMPAQUE = "EMPAQUE"
    ENVIADO = "ENVIADO"
    EN_REVISION_CAMBIO = "EN_REVISION_CAMBIO"
    APROBADO_CAMBIO = "APROBADO_CAMBIO"
    RECHAZADO_CAMBIO = "RECHAZADO_CAMBIO"
    COMPLETADO = "COMPLETADO"
    CANCELADO = "CANCELADO"


class LegalStatus(str, Enum):
    VIGENTE = "VIGENTE"
    EN_REVISION = "EN_REVISION"
    BLOQUEADO = "BLOQUEADO"

    @classmethod
    def all_values(cls) -> set:
        return {member.value for member in cls}


class ThirdPartyType(str, Enum):
    CLIENTE = "CLIENTE"
    EMPLEADO = "EMPLEADO"
    PROVEEDOR = "PROVEEDOR"
    CONFECCIONISTA = "CONFECCIONISTA"
    EMPAQUE = "EMPAQUE"


class InventoryLocation(str, Enum):
    BODEGA_PRINCIPAL = "BODEGA_PRINCIPAL"
    TIENDA = "TIENDA"


# URL segment -> third party type
THIRD_PARTY_SEGMENTS = {
    "clients": ThirdPartyType.CLIENTE,
    "employees": ThirdPartyType.EMPLEADO,
    "suppliers": ThirdPartyType.PROVEEDOR,
    "confectionists": ThirdPartyType.CONFECCIONISTA,
    "packers": ThirdPartyType.EMPAQUE,
}

# Noun used in user-facing legal status messages
THIRD_PARTY_LABELS = {
    ThirdPartyType.CLIENTE: "Cliente",
    ThirdPartyType.EMPLEADO: "Empleado",
    ThirdPartyType.PROVEEDOR: "Proveedor",
    ThirdPartyType.CONFECCIONISTA: "Confeccionista",
    ThirdPartyType.EMPAQUE: "Empacador",
}

# Permission suffix per third party type (VER_CLIENTE, EDITAR_PROVEEDOR, ...)
THIRD_PARTY_PERMISSION_SUFFIX = {
    ThirdPartyType.CLIENTE: "CLIENTE",
    ThirdPartyType.EMPLEADO: "EMPLEADO",
    ThirdPartyType.PROVEEDOR: "PROVEEDOR",
    ThirdPartyType.CONFECCIONISTA: "CONFECCIONISTA",
    ThirdPartyType.EMPAQUE: "EMPAQUE",
}

# Fields whose change sends a third party back to legal review
CRITICAL_FIELDS_FOR_LEGAL_REVIEW = ("name", "identification", "address")

NO_LEGAL_STATUS_REASON = "Sin estado jurídico definido"
LEGAL_STATUS_CHECK_FAILED_REASON = "No se pudo verificar el estado jurídico"

# Lead time (calendar days) per normalised negotiation tag
NEGOTIATION_LEAD_DAYS = {
    "MUESTRA": 28,
    "PRODUCCION": 28,
    "COMPRAS": 15,
    "REPOSICION": 6,
    "BODEGA": 5,
}

NEGOTIATION_ALIASES = {
    "MUESTRA_G": "MUESTRA",
    "MUESTRA_C": "MUESTRA",
    "MUESTRAS": "MUESTRA",
}

DEFAULT_LEAD_DAYS = 7
ADDITIONS_EXTRA_DAYS = 0
DEFAULT_EXPIRY_EXTRA_DAYS = 30
MAX_EXPIRY_EXTRA_DAYS = 3650

# Quantities are stored as NUMERIC(12, 2).
QUANTITY_DECIMAL_PLACES = 2
QUANTITY_LIMIT = 10**10

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
