"""
User model

Customer and staff accounts that own addresses.
"""

from enum import Enum
from sqlalchemy import Column, String, DateTime, Uuid, CheckConstraint
import uuid

from .base import Base, utcnow


class UserRole(str, Enum):
    """User roles"""

    CUSTOMER = "customer"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


class UserStatus(str, Enum):
    """Account status"""

    ACTIVE = "active"
    SUSPENDED = "suspended"
    DELETED = "deleted"


class User(Base):
    """User model"""

    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    role = Column(
        String(50),
        nullable=False,
        default=UserRole.CUSTOMER.value,
    )
    status = Column(
        String(50),
        nullable=False,
        default=UserStatus.ACTIVE.value,
        index=True,
    )
    created_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint(
            "role IN ('customer', 'admin', 'super_admin')", name="check_user_role"
        ),
        CheckConstraint(
            "status IN ('active', 'suspended', 'deleted')", name="check_user_status"
        ),
    )

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE.value
