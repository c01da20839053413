"""
Address API endpoints

Delivery addresses of a user, including default-address management.
"""

import uuid
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from storeapi.api.schemas.address_schemas import (
    AddressRequest,
    AddressResponse,
    AddressListResponse,
    DefaultAddressResponse,
)
from storeapi.middleware.authorization import AccessContext, get_access_context
from storeapi.models.base import get_db
from storeapi.services.address_service import AddressService


router = APIRouter(prefix="/v1/users/{user_id}/addresses", tags=["Addresses"])


@router.get("", response_model=AddressListResponse)
async def get_addresses(
    user_id: uuid.UUID,
    context: AccessContext = Depends(get_access_context),
    db: AsyncSession = Depends(get_db),
):
    """
    List a user's addresses

    The default address comes first.
    """
    address_service = AddressService(db, context)
    addresses = await address_service.get_addresses(user_id=user_id)

    return AddressListResponse(
        addresses=[AddressResponse(**addr) for addr in addresses]
    )


@router.get("/default", response_model=DefaultAddressResponse)
async def get_default_address(
    user_id: uuid.UUID,
    context: AccessContext = Depends(get_access_context),
    db: AsyncSession = Depends(get_db),
):
    """
    Get the default address

    Returns `{"address": null}` when the user has no address.
    """
    address_service = AddressService(db, context)
    default_address = await address_service.get_default_address(user_id=user_id)

    if default_address is None:
        return DefaultAddressResponse(address=None)
    return DefaultAddressResponse(address=AddressResponse(**default_address))


@router.get("/{address_id}", response_model=AddressResponse)
async def get_address(
    user_id: uuid.UUID,
    address_id: uuid.UUID,
    context: AccessContext = Depends(get_access_context),
    db: AsyncSession = Depends(get_db),
):
    """Get one address"""
    address_service = AddressService(db, context)
    address = await address_service.get_address(address_id=address_id, user_id=user_id)
    return AddressResponse(**address)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=AddressResponse)
async def create_address(
    user_id: uuid.UUID,
    request: AddressRequest,
    context: AccessContext = Depends(get_access_context),
    db: AsyncSession = Depends(get_db),
):
    """
    Add an address

    A user's first address always becomes the default. Creating an address
    with is_default=true replaces the current default.
    """
    address_service = AddressService(db, context)
    new_address = await address_service.create_address(user_id=user_id, **request.model_dump())
    return AddressResponse(**new_address)


@router.put("/{address_id}", response_model=AddressResponse)
async def update_address(
    user_id: uuid.UUID,
    address_id: uuid.UUID,
    request: AddressRequest,
    context: AccessContext = Depends(get_access_context),
    db: AsyncSession = Depends(get_db),
):
    """
    Update an address

    is_default=true replaces the current default.
    """
    address_service = AddressService(db, context)
    updated_address = await address_service.update_address(
        address_id=address_id, user_id=user_id, **request.model_dump()
    )
    return AddressResponse(**updated_address)


@router.delete("/{address_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_address(
    user_id: uuid.UUID,
    address_id: uuid.UUID,
    context: AccessContext = Depends(get_access_context),
    db: AsyncSession = Depends(get_db),
):
    """
    Delete an address

    Deleting the default promotes the oldest remaining address.
    """
    address_service = AddressService(db, context)
    await address_service.delete_address(address_id=address_id, user_id=user_id)

    return None


@router.put("/{address_id}/default", response_model=AddressResponse)
async def set_default_address(
    user_id: uuid.UUID,
    address_id: uuid.UUID,
    context: AccessContext = Depends(get_access_context),
    db: AsyncSession = Depends(get_db),
):
    """Make an address the default"""
    address_service = AddressService(db, context)
    default_address = await address_service.set_default_address(
        address_id=address_id, user_id=user_id
    )
    return AddressResponse(**default_address)
