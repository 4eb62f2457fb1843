"""Super admin user management routes."""

from typing import List

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel

from hrm_console.api.auth import ProfileResponse, profile_response
from hrm_console.api.dependencies import get_active_profile, get_user_directory
from hrm_console.schemas import DirectoryEntry, PermissionRecord, PermissionRights, ProfileRecord
from hrm_console.services.authorization import effective_permission
from hrm_console.services.user_directory import UserDirectoryManager, search_users, visible_users

router = APIRouter(prefix="/users", tags=["users"])


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class PermissionResponse(BaseModel):
    id: str
    super_admin_id: str
    target_user_id: str
    can_delete: bool
    can_block: bool
    is_hidden: bool

    class Config:
        from_attributes = True


class DirectoryEntryResponse(ProfileResponse):
    can_delete: bool
    can_block: bool
    is_hidden: bool
    permission_id: str | None = None


def _entry_response(entry: DirectoryEntry) -> DirectoryEntryResponse:
    effective = effective_permission(entry.permissions)
    return DirectoryEntryResponse(
        **profile_response(entry).model_dump(),
        can_delete=effective.can_delete,
        can_block=effective.can_block,
        is_hidden=effective.is_hidden,
        permission_id=entry.permissions.id if entry.permissions else None,
    )


def _permission_response(overlay: PermissionRecord) -> PermissionResponse:
    return PermissionResponse.model_validate(overlay)


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@router.get("", response_model=List[DirectoryEntryResponse])
def list_users(
    search: str | None = Query(None, description="Match on email or full name"),
    include_hidden: bool = Query(False),
    profile: ProfileRecord = Depends(get_active_profile),
    directory: UserDirectoryManager = Depends(get_user_directory),
):
    entries = directory.list(profile)
    if include_hidden:
        entries = search_users(entries, search)
    else:
        entries = visible_users(entries, search)
    return [_entry_response(e) for e in entries]


@router.get("/{user_id}", response_model=DirectoryEntryResponse)
def get_user(
    user_id: str,
    profile: ProfileRecord = Depends(get_active_profile),
    directory: UserDirectoryManager = Depends(get_user_directory),
):
    return _entry_response(directory.get(profile, user_id))


@router.post("/{user_id}/block", response_model=ProfileResponse)
def toggle_block(
    user_id: str,
    profile: ProfileRecord = Depends(get_active_profile),
    directory: UserDirectoryManager = Depends(get_user_directory),
):
    """Block an active or inactive user, or unblock a blocked one."""
    entry = directory.get(profile, user_id)
    return profile_response(directory.toggle_block(profile, entry))


@router.post("/{user_id}/hidden", response_model=PermissionResponse)
def toggle_hidden(
    user_id: str,
    profile: ProfileRecord = Depends(get_active_profile),
    directory: UserDirectoryManager = Depends(get_user_directory),
):
    entry = directory.get(profile, user_id)
    return _permission_response(directory.toggle_hidden(profile, entry))


@router.put("/{user_id}/rights", response_model=PermissionResponse)
def update_rights(
    user_id: str,
    body: PermissionRights,
    profile: ProfileRecord = Depends(get_active_profile),
    directory: UserDirectoryManager = Depends(get_user_directory),
):
    entry = directory.get(profile, user_id)
    return _permission_response(directory.update_rights(profile, entry, body))


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: str,
    confirm: bool = Query(False, description="Must be true; deletion cannot be undone"),
    profile: ProfileRecord = Depends(get_active_profile),
    directory: UserDirectoryManager = Depends(get_user_directory),
):
    entry = directory.get(profile, user_id)
    directory.delete(profile, entry, confirmed=confirm)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
