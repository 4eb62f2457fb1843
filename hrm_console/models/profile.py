import uuid

from sqlalchemy import Column, ForeignKey, String

from hrm_console.database.base import Base, UTCDateTime, UUIDType, utcnow


class Profile(Base):
    __tablename__ = "profiles"

    # Same value as the identity id issued by the auth service
    id = Column(UUIDType, primary_key=True, default=uuid.uuid4, index=True)
    email = Column(String, nullable=False, unique=True, index=True)
    full_name = Column(String, nullable=True)
    role = Column(String, nullable=False, default="user")  # user, admin, super_admin
    status = Column(String, nullable=False, default="active")  # active, inactive, blocked
    created_at = Column(UTCDateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False)
    created_by = Column(UUIDType, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
