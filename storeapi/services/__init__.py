"""
Service layer
"""

from storeapi.services.address_service import AddressService, format_address
from storeapi.services.geography_service import GeographyService, LocalityView
from storeapi.services.user_service import UserService

__all__ = [
    "AddressService",
    "format_address",
    "GeographyService",
    "LocalityView",
    "UserService",
]
