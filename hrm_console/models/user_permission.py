import uuid

from sqlalchemy import Boolean, Column, ForeignKey, UniqueConstraint

from hrm_console.database.base import Base, UTCDateTime, UUIDType, utcnow


class UserPermission(Base):
    """Rights a super admin keeps over one target user."""

    __tablename__ = "user_permissions"
    __table_args__ = (
        UniqueConstraint("super_admin_id", "target_user_id", name="uq_user_permissions_pair"),
    )

    id = Column(UUIDType, primary_key=True, default=uuid.uuid4, index=True)
    super_admin_id = Column(UUIDType, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    target_user_id = Column(UUIDType, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    can_delete = Column(Boolean, nullable=False, default=True)
    can_block = Column(Boolean, nullable=False, default=True)
    is_hidden = Column(Boolean, nullable=False, default=False)
    created_at = Column(UTCDateTime, default=utcnow, nullable=False)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False)
