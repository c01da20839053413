"""
Application exception classes

Every domain error raised by the services derives from AppException and is
rendered by the exception handler registered in storeapi.main.
"""

from typing import Optional, Any
from fastapi import status


class AppException(Exception):
    """
    Base application exception

    All custom exceptions inherit from this class.
    """

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: str = "app_error",
        details: Optional[dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundException(AppException):
    """
    Referenced resource does not exist
    """

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
    ):
        if message is None:
            if resource_id:
                message = f"{resource} not found with ID: {resource_id}"
            else:
                message = f"{resource} not found."

        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="not_found",
            details={"resource": resource, "resource_id": resource_id},
        )


class ForbiddenException(AppException):
    """
    Missing permission (403 Forbidden)
    """

    def __init__(
        self,
        message: str = "You do not have permission to perform this action.",
        permission: Optional[str] = None,
    ):
        details = {}
        if permission:
            details["permission"] = permission

        super().__init__(
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
            error_code="forbidden",
            details=details,
        )


class ConflictException(AppException):
    """
    Request conflicts with the current state (409 Conflict)

    e.g. creating a state whose name already exists
    """

    def __init__(
        self,
        message: str = "The request conflicts with the current state of the resource.",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            error_code="conflict",
            details=details,
        )


# Store specific exceptions


class UserNotFoundException(NotFoundException):
    """User does not exist"""

    def __init__(self, user_id: Any):
        super().__init__(resource="User", resource_id=str(user_id))


class AddressNotFoundException(NotFoundException):
    """Address does not exist"""

    def __init__(self, address_id: Any):
        super().__init__(resource="Address", resource_id=str(address_id))


class StateNotFoundException(NotFoundException):
    def __init__(self, state_id: Any):
        super().__init__(resource="State", resource_id=str(state_id))


class CityNotFoundException(NotFoundException):
    def __init__(self, city_id: Any):
        super().__init__(resource="City", resource_id=str(city_id))


class LocalityNotFoundException(NotFoundException):
    def __init__(self, locality_id: Any):
        super().__init__(resource="Locality", resource_id=str(locality_id))


class DefaultAddressConflictException(ConflictException):
    """
    The default-address swap could not be completed

    Raised when the one-default-per-user constraint rejects a write, usually
    because a concurrent request changed the same user's default first. The
    transaction is rolled back so the previous default stays in place.
    """

    def __init__(self, user_id: Any):
        super().__init__(
            message="Default address changed concurrently; please retry.",
            details={"user_id": str(user_id), "rule": "single_default_address"},
        )
