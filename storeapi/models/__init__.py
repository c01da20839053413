"""
Database model package

Import every model here so Alembic autogenerate picks it up.
"""

from .base import Base, get_db, init_db, drop_db, close_db
from .user import User, UserRole, UserStatus
from .geography import State, City, Locality
from .address import Address, AddressType

__all__ = [
    "Base",
    "get_db",
    "init_db",
    "drop_db",
    "close_db",
    "User",
    "UserRole",
    "UserStatus",
    "State",
    "City",
    "Locality",
    "Address",
    "AddressType",
]
