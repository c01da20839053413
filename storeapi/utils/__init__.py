"""
Utility package

Security, logging and exception helpers shared across the application.
"""

from storeapi.utils.security import JWTManager

from storeapi.utils.logging import (
    setup_logging,
    get_logger,
    RequestLogger,
    AuditLogger,
    audit_logger,
)

from storeapi.utils.exceptions import (
    AppException,
    NotFoundException,
    ForbiddenException,
    ConflictException,
    UserNotFoundException,
    AddressNotFoundException,
    StateNotFoundException,
    CityNotFoundException,
    LocalityNotFoundException,
    DefaultAddressConflictException,
)

__all__ = [
    "JWTManager",
    "setup_logging",
    "get_logger",
    "RequestLogger",
    "AuditLogger",
    "audit_logger",
    "AppException",
    "NotFoundException",
    "ForbiddenException",
    "ConflictException",
    "UserNotFoundException",
    "AddressNotFoundException",
    "StateNotFoundException",
    "CityNotFoundException",
    "LocalityNotFoundException",
    "DefaultAddressConflictException",
]
