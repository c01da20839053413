"""
State / city / locality request and response schemas
"""

from typing import List
from uuid import UUID
from pydantic import BaseModel, Field, field_validator


class StateRequest(BaseModel):
    """Create state request"""

    name: str = Field(..., min_length=1, max_length=100, description="State name")
    code: str = Field(..., min_length=2, max_length=2, description="Two letter state code")

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        if not v.isalpha():
            raise ValueError("State code must be two letters")
        return v.upper()


class CityRequest(BaseModel):
    """Create city request"""

    name: str = Field(..., min_length=1, max_length=100, description="City name")
    state_id: UUID = Field(..., description="State ID")


class LocalityRequest(BaseModel):
    """Create locality request"""

    name: str = Field(..., min_length=1, max_length=150, description="Locality name")
    pincode: str = Field(..., min_length=1, max_length=10, description="Postal code")
    city_id: UUID = Field(..., description="City ID")


class StateResponse(BaseModel):
    id: str
    name: str
    code: str


class CityResponse(BaseModel):
    id: str
    name: str
    state_id: str
    state_name: str


class LocalityResponse(BaseModel):
    id: str
    name: str
    pincode: str
    city_id: str
    city_name: str
    state_id: str
    state_name: str


class StateListResponse(BaseModel):
    states: List[StateResponse]


class CityListResponse(BaseModel):
    cities: List[CityResponse]


class LocalityListResponse(BaseModel):
    localities: List[LocalityResponse]
