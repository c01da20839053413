"""
Address API request/response schemas
"""

import re
from typing import List, Optional
from uuid import UUID
from pydantic import BaseModel, Field, field_validator

from storeapi.models.address import AddressType


# 10-digit Indian mobile number, ASCII digits only
PHONE_PATTERN = re.compile(r"^[6-9]\d{9}$", re.ASCII)


class AddressRequest(BaseModel):
    """Create/update address request"""

    address_line1: str = Field(..., max_length=255, description="Address line 1")
    address_line2: Optional[str] = Field(None, max_length=255, description="Address line 2")
    landmark: Optional[str] = Field(None, max_length=255, description="Nearby landmark")
    locality_id: UUID = Field(..., description="Locality ID")
    is_default: bool = Field(False, description="Make this the default address")
    contact_name: str = Field(..., max_length=100, description="Recipient name")
    contact_phone: str = Field(..., description="10-digit mobile number")
    address_type: AddressType = Field(..., description="HOME, WORK or OTHER")

    @field_validator("address_line1", "contact_name", "contact_phone")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Required text fields may not be blank"""
        if not v or not v.strip():
            raise ValueError("must not be blank")
        return v.strip()

    @field_validator("contact_phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        if not PHONE_PATTERN.match(v):
            raise ValueError("Please enter a valid 10-digit Indian mobile number")
        return v


class AddressResponse(BaseModel):
    """Address with its locality, city and state expanded"""

    id: str
    user_id: str
    address_line1: str
    address_line2: Optional[str]
    landmark: Optional[str]
    contact_name: str
    contact_phone: str
    is_default: bool
    address_type: AddressType

    locality_id: str
    locality_name: str
    pincode: str
    city_id: str
    city_name: str
    state_id: str
    state_name: str

    formatted_address: str
    created_at: str
    updated_at: str


class AddressListResponse(BaseModel):
    """Address list response"""

    addresses: List[AddressResponse]


class DefaultAddressResponse(BaseModel):
    """Default address lookup; `address` is null when the user has none"""

    address: Optional[AddressResponse] = None
