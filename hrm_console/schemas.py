"""Pydantic records exchanged between the data service, the managers and the API.

Rows come back from either data backend as plain dicts (ids as strings,
timestamps as ISO strings or datetimes); these models are the typed view of
those rows.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from hrm_console.models.enums import ProductStatus, ProfileStatus, Role


# ---------------------------------------------------------------------------
# Stored records
# ---------------------------------------------------------------------------

class ProfileRecord(BaseModel):
    id: str
    email: str
    full_name: str | None = None
    role: Role = Role.user
    status: ProfileStatus = ProfileStatus.active
    created_at: datetime | None = None
    updated_at: datetime | None = None
    created_by: str | None = None

    class Config:
        from_attributes = True


class ProductRecord(BaseModel):
    id: str
    product_code: str
    description: str
    unit: str
    status: ProductStatus
    created_at: datetime | None = None
    updated_at: datetime | None = None
    created_by: str | None = None
    activated_by: str | None = None
    activated_at: datetime | None = None

    class Config:
        from_attributes = True


class PermissionRecord(BaseModel):
    id: str
    super_admin_id: str
    target_user_id: str
    can_delete: bool = True
    can_block: bool = True
    is_hidden: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class DirectoryEntry(ProfileRecord):
    """A profile joined with the acting super admin's overlay for it, if any."""

    permissions: PermissionRecord | None = None


class EffectivePermission(BaseModel):
    can_delete: bool = True
    can_block: bool = True
    is_hidden: bool = False

    class Config:
        frozen = True


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

class ProductCreate(BaseModel):
    product_code: str = Field(min_length=1)
    description: str = Field(min_length=1)
    unit: str = Field(min_length=1)
    status: ProductStatus = ProductStatus.active


class ProductUpdate(BaseModel):
    # Accepted so edit forms can post the whole record; never written.
    product_code: str | None = None
    description: str | None = Field(default=None, min_length=1)
    unit: str | None = Field(default=None, min_length=1)
    status: ProductStatus | None = None


class PermissionRights(BaseModel):
    can_delete: bool = True
    can_block: bool = True
    is_hidden: bool = False
