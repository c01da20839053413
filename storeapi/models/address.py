"""
Address model

Delivery addresses owned by a user and placed in a locality.
"""

from enum import Enum
from sqlalchemy import (
    Column,
    String,
    DateTime,
    Boolean,
    Uuid,
    ForeignKey,
    Index,
    CheckConstraint,
    text,
)
import uuid

from .base import Base, utcnow


class AddressType(str, Enum):
    """Address type"""

    HOME = "HOME"
    WORK = "WORK"
    OTHER = "OTHER"


class Address(Base):
    """Address model"""

    __tablename__ = "addresses"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    locality_id = Column(
        Uuid, ForeignKey("localities.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    address_line1 = Column(String(255), nullable=False)
    address_line2 = Column(String(255), nullable=True)
    landmark = Column(String(255), nullable=True)
    contact_name = Column(String(100), nullable=False)
    contact_phone = Column(String(10), nullable=False)
    address_type = Column(String(10), nullable=False)
    is_default = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint(
            "address_type IN ('HOME', 'WORK', 'OTHER')", name="address_type"
        ),
        Index("idx_addresses_user", "user_id", "is_default", "created_at"),
        # At most one default address per user
        Index(
            "idx_addresses_user_default",
            "user_id",
            unique=True,
            postgresql_where=text("is_default = true"),
            sqlite_where=text("is_default = 1"),
        ),
    )

    def __repr__(self):
        return f"<Address(id={self.id}, user_id={self.user_id}, type={self.address_type}, is_default={self.is_default})>"
