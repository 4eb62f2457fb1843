import uuid

from sqlalchemy import Column, ForeignKey, String

from hrm_console.database.base import Base, UTCDateTime, UUIDType, utcnow


class Product(Base):
    __tablename__ = "products"

    id = Column(UUIDType, primary_key=True, default=uuid.uuid4, index=True)
    product_code = Column(String, nullable=False, unique=True, index=True)
    description = Column(String, nullable=False)
    unit = Column(String, nullable=False)  # EA, PCS, BOX
    status = Column(String, nullable=False, default="active")  # active, inactive
    created_at = Column(UTCDateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False)
    created_by = Column(UUIDType, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    # First transition into "active"; never cleared or overwritten
    activated_by = Column(UUIDType, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    activated_at = Column(UTCDateTime, nullable=True)
