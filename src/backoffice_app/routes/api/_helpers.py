"""Helpers shared by the third-party route modules."""

from viomar_shared.constants import THIRD_PARTY_PERMISSION_SUFFIX, THIRD_PARTY_SEGMENTS


def third_party_permission(action: str):
    """
    Permission resolver for ``/third-parties/<party_type>/...`` routes:
    ``action`` plus the type suffix (``EDITAR_PROVEEDOR``). Unknown segments
    resolve to None, which the permission decorator answers with 404.
    """

    def resolve(party_type: str, **_kwargs):
        entity_type = THIRD_PARTY_SEGMENTS.get(party_type)
        if entity_type is None:
            return None
        return f"{action}_{THIRD_PARTY_PERMISSION_SUFFIX[entity_type]}"

    return resolve
