"""Role and overlay based capability checks.

Everything here is a pure function of the profiles and overlay records passed
in; nothing reads session state. The ``require_*`` variants raise
``AuthorizationDenied`` and are what the managers call before touching the
data service.
"""

from hrm_console.core.errors import AuthorizationDenied
from hrm_console.models.enums import ProfileStatus, Role
from hrm_console.schemas import EffectivePermission, PermissionRecord, ProfileRecord

# Every Role member appears in each table, so a new role fails loudly in _lookup.
_MANAGES_USERS = {
    Role.user: False,
    Role.admin: False,
    Role.super_admin: True,
}

_EDITS_CATALOG = {
    Role.user: False,
    Role.admin: True,
    Role.super_admin: True,
}

_BLOCKS_ACCESS = {
    ProfileStatus.active: False,
    ProfileStatus.inactive: False,
    ProfileStatus.blocked: True,
}

DEFAULT_PERMISSION = EffectivePermission(can_delete=True, can_block=True, is_hidden=False)


def _lookup(table: dict, key):
    try:
        return table[key]
    except KeyError:
        raise AuthorizationDenied(f"Unhandled value: {key!r}") from None


def is_blocked(profile: ProfileRecord) -> bool:
    return _lookup(_BLOCKS_ACCESS, ProfileStatus(profile.status))


def can_manage_users(profile: ProfileRecord) -> bool:
    return _lookup(_MANAGES_USERS, Role(profile.role))


def can_edit_catalog(profile: ProfileRecord) -> bool:
    return _lookup(_EDITS_CATALOG, Role(profile.role))


def effective_permission(overlay: PermissionRecord | None) -> EffectivePermission:
    """Resolve an overlay row; no row means fully permissive and visible."""
    if overlay is None:
        return DEFAULT_PERMISSION
    return EffectivePermission(
        can_delete=overlay.can_delete,
        can_block=overlay.can_block,
        is_hidden=overlay.is_hidden,
    )


def can_delete_user(overlay: PermissionRecord | None) -> bool:
    return effective_permission(overlay).can_delete


def can_block_user(overlay: PermissionRecord | None) -> bool:
    return effective_permission(overlay).can_block


# ---------------------------------------------------------------------------
# Guards
# ---------------------------------------------------------------------------

def require_active(profile: ProfileRecord) -> None:
    if is_blocked(profile):
        raise AuthorizationDenied(
            "Your account has been blocked. Please contact your administrator."
        )


def require_user_manager(profile: ProfileRecord) -> None:
    require_active(profile)
    if not can_manage_users(profile):
        raise AuthorizationDenied("Super admin access required")


def require_catalog_editor(profile: ProfileRecord) -> None:
    require_active(profile)
    if not can_edit_catalog(profile):
        raise AuthorizationDenied("Admin access required to modify products")
