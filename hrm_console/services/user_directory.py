"""Super admin user directory.

Each super admin sees every profile through their own permission overlays
(``user_permissions`` rows keyed by ``(super_admin_id, target_user_id)``).
An overlay can hide a user from that super admin's list and can withhold the
right to delete or block them. A missing overlay means full rights, visible.
"""

import logging
from datetime import datetime
from typing import Callable, Iterable, List

from hrm_console.core.errors import (
    AuthorizationDenied,
    ConfirmationRequired,
    RecordNotFound,
)
from hrm_console.database.base import utcnow
from hrm_console.models.enums import ProfileStatus
from hrm_console.schemas import (
    DirectoryEntry,
    PermissionRecord,
    PermissionRights,
    ProfileRecord,
)
from hrm_console.services.authorization import (
    can_block_user,
    can_delete_user,
    effective_permission,
    require_user_manager,
)
from hrm_console.services.data_service import PROFILES, USER_PERMISSIONS, DataService

logger = logging.getLogger(__name__)

OVERLAY_KEY = ("super_admin_id", "target_user_id")


def search_users(entries: Iterable[DirectoryEntry], search: str | None) -> List[DirectoryEntry]:
    """Case-insensitive match on email or full name."""
    entries = list(entries)
    if not search:
        return entries
    needle = search.lower()
    return [
        e for e in entries
        if needle in e.email.lower() or (e.full_name is not None and needle in e.full_name.lower())
    ]


def visible_users(entries: Iterable[DirectoryEntry], search: str | None = None) -> List[DirectoryEntry]:
    """Drop entries the acting super admin has hidden, then apply ``search``."""
    shown = [e for e in entries if not effective_permission(e.permissions).is_hidden]
    return search_users(shown, search)


class UserDirectoryManager:
    def __init__(
        self,
        data: DataService,
        clock: Callable[[], datetime] = utcnow,
        enforce_block_permission: bool = False,
    ):
        self.data = data
        self.clock = clock
        self.enforce_block_permission = enforce_block_permission

    def list(self, actor: ProfileRecord) -> List[DirectoryEntry]:
        """All profiles, newest first, each joined with the actor's overlay for it."""
        require_user_manager(actor)

        profiles = self.data.select(PROFILES, order_by="created_at", descending=True)
        overlays = self.data.select(USER_PERMISSIONS, {"super_admin_id": actor.id})

        by_target = {}
        for row in overlays:
            overlay = PermissionRecord.model_validate(row)
            by_target.setdefault(overlay.target_user_id, overlay)

        return [
            DirectoryEntry.model_validate({**row, "permissions": by_target.get(str(row["id"]))})
            for row in profiles
        ]

    def list_visible(self, actor: ProfileRecord, search: str | None = None) -> List[DirectoryEntry]:
        return visible_users(self.list(actor), search)

    def get(self, actor: ProfileRecord, user_id: str) -> DirectoryEntry:
        require_user_manager(actor)

        row = self.data.get(PROFILES, user_id)
        if row is None:
            raise RecordNotFound("User not found")
        overlay = self._find_overlay(actor, user_id)
        return DirectoryEntry.model_validate({**row, "permissions": overlay})

    def toggle_block(self, actor: ProfileRecord, user: DirectoryEntry) -> ProfileRecord:
        """blocked -> active; active or inactive -> blocked."""
        require_user_manager(actor)
        self._refuse_self(actor, user, "block")
        if self.enforce_block_permission and not can_block_user(self._own_overlay(actor, user)):
            logger.warning("Block refused by overlay", extra={"actor_id": actor.id, "target_id": user.id})
            raise AuthorizationDenied("Block permission is disabled for this user")

        if user.status == ProfileStatus.blocked:
            new_status = ProfileStatus.active
        else:
            new_status = ProfileStatus.blocked

        row = self.data.update(PROFILES, {"status": new_status, "updated_at": self.clock()}, user.id)
        if row is None:
            raise RecordNotFound("User not found")
        logger.info(
            "User status changed",
            extra={"actor_id": actor.id, "target_id": user.id, "status": new_status.value},
        )
        return ProfileRecord.model_validate(row)

    def toggle_hidden(self, actor: ProfileRecord, user: DirectoryEntry) -> PermissionRecord:
        require_user_manager(actor)

        now = self.clock()
        overlay = self._find_overlay(actor, user.id)
        if overlay is not None:
            row = self.data.update(
                USER_PERMISSIONS,
                {"is_hidden": not overlay.is_hidden, "updated_at": now},
                overlay.id,
            )
            if row is None:
                raise RecordNotFound("Permission overlay not found")
        else:
            row = self.data.upsert(
                USER_PERMISSIONS,
                {
                    "super_admin_id": actor.id,
                    "target_user_id": user.id,
                    "is_hidden": True,
                    "can_delete": True,
                    "can_block": True,
                    "updated_at": now,
                },
                on_conflict=OVERLAY_KEY,
            )

        result = PermissionRecord.model_validate(row)
        logger.info(
            "User visibility changed",
            extra={"actor_id": actor.id, "target_id": user.id, "is_hidden": result.is_hidden},
        )
        return result

    def delete(self, actor: ProfileRecord, user: DirectoryEntry, confirmed: bool = False) -> None:
        """Irreversibly remove ``user``'s profile.

        Every refusal (missing right, own account, no confirmation) happens
        before the data service is called.
        """
        require_user_manager(actor)
        if not can_delete_user(self._own_overlay(actor, user)):
            logger.warning("Delete refused by overlay", extra={"actor_id": actor.id, "target_id": user.id})
            raise AuthorizationDenied("Delete permission is disabled for this user")
        self._refuse_self(actor, user, "delete")
        if not confirmed:
            raise ConfirmationRequired(f"Are you sure you want to delete user {user.email}?")

        self.data.delete(PROFILES, user.id)
        logger.info("User deleted", extra={"actor_id": actor.id, "target_id": user.id})

    def update_rights(
        self, actor: ProfileRecord, target: ProfileRecord, rights: PermissionRights
    ) -> PermissionRecord:
        require_user_manager(actor)

        row = self.data.upsert(
            USER_PERMISSIONS,
            {
                "super_admin_id": actor.id,
                "target_user_id": target.id,
                **rights.model_dump(),
                "updated_at": self.clock(),
            },
            on_conflict=OVERLAY_KEY,
        )
        logger.info(
            "User rights updated",
            extra={"actor_id": actor.id, "target_id": target.id, **rights.model_dump()},
        )
        return PermissionRecord.model_validate(row)

    # -----------------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------------

    def _find_overlay(self, actor: ProfileRecord, target_id: str) -> PermissionRecord | None:
        rows = self.data.select(
            USER_PERMISSIONS,
            {"super_admin_id": actor.id, "target_user_id": target_id},
        )
        return PermissionRecord.model_validate(rows[0]) if rows else None

    def _own_overlay(self, actor: ProfileRecord, user: DirectoryEntry) -> PermissionRecord | None:
        overlay = user.permissions
        if overlay is not None and overlay.super_admin_id != actor.id:
            raise AuthorizationDenied("Permission overlay belongs to another super admin")
        return overlay

    def _refuse_self(self, actor: ProfileRecord, user: ProfileRecord, action: str) -> None:
        if user.id == actor.id:
            raise AuthorizationDenied(f"Cannot {action} your own account")
