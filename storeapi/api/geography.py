"""
Geography API endpoints

States, cities and localities. Reads are open to any signed-in user;
creation needs the geography:manage permission.
"""

import uuid
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from storeapi.api.schemas.geography_schemas import (
    StateRequest,
    StateResponse,
    StateListResponse,
    CityRequest,
    CityResponse,
    CityListResponse,
    LocalityRequest,
    LocalityResponse,
    LocalityListResponse,
)
from storeapi.middleware.authorization import (
    AccessContext,
    Permission,
    get_access_context,
    require_permission,
)
from storeapi.models.base import get_db
from storeapi.services.geography_service import GeographyService


router = APIRouter(prefix="/v1", tags=["Geography"])

require_geography_manage = require_permission(Permission.GEOGRAPHY_MANAGE)


# States


@router.get("/states", response_model=StateListResponse)
async def list_states(
    context: AccessContext = Depends(get_access_context),
    db: AsyncSession = Depends(get_db),
):
    """List states by name"""
    states = await GeographyService(db, context).list_states()
    return StateListResponse(states=[StateResponse(**s) for s in states])


@router.get("/states/{state_id}", response_model=StateResponse)
async def get_state(
    state_id: uuid.UUID,
    context: AccessContext = Depends(get_access_context),
    db: AsyncSession = Depends(get_db),
):
    return StateResponse(**await GeographyService(db, context).get_state(state_id))


@router.post("/states", status_code=status.HTTP_201_CREATED, response_model=StateResponse)
async def create_state(
    request: StateRequest,
    context: AccessContext = Depends(require_geography_manage),
    db: AsyncSession = Depends(get_db),
):
    """Create a state (admin)"""
    state = await GeographyService(db, context).create_state(
        name=request.name, code=request.code
    )
    return StateResponse(**state)


# Cities


@router.get("/cities", response_model=CityListResponse)
async def list_cities(
    context: AccessContext = Depends(get_access_context),
    db: AsyncSession = Depends(get_db),
):
    cities = await GeographyService(db, context).list_cities()
    return CityListResponse(cities=[CityResponse(**c) for c in cities])


@router.get("/cities/by-state/{state_id}", response_model=CityListResponse)
async def list_cities_by_state(
    state_id: uuid.UUID,
    context: AccessContext = Depends(get_access_context),
    db: AsyncSession = Depends(get_db),
):
    cities = await GeographyService(db, context).list_cities_by_state(state_id)
    return CityListResponse(cities=[CityResponse(**c) for c in cities])


@router.get("/cities/{city_id}", response_model=CityResponse)
async def get_city(
    city_id: uuid.UUID,
    context: AccessContext = Depends(get_access_context),
    db: AsyncSession = Depends(get_db),
):
    return CityResponse(**await GeographyService(db, context).get_city(city_id))


@router.post("/cities", status_code=status.HTTP_201_CREATED, response_model=CityResponse)
async def create_city(
    request: CityRequest,
    context: AccessContext = Depends(require_geography_manage),
    db: AsyncSession = Depends(get_db),
):
    """Create a city (admin)"""
    city = await GeographyService(db, context).create_city(
        name=request.name, state_id=request.state_id
    )
    return CityResponse(**city)


# Localities


@router.get("/localities", response_model=LocalityListResponse)
async def list_localities(
    context: AccessContext = Depends(get_access_context),
    db: AsyncSession = Depends(get_db),
):
    localities = await GeographyService(db, context).list_localities()
    return LocalityListResponse(localities=[LocalityResponse(**loc) for loc in localities])


@router.get("/localities/by-city/{city_id}", response_model=LocalityListResponse)
async def list_localities_by_city(
    city_id: uuid.UUID,
    context: AccessContext = Depends(get_access_context),
    db: AsyncSession = Depends(get_db),
):
    localities = await GeographyService(db, context).list_localities_by_city(city_id)
    return LocalityListResponse(localities=[LocalityResponse(**loc) for loc in localities])


@router.get("/localities/{locality_id}", response_model=LocalityResponse)
async def get_locality(
    locality_id: uuid.UUID,
    context: AccessContext = Depends(get_access_context),
    db: AsyncSession = Depends(get_db),
):
    return LocalityResponse(**await GeographyService(db, context).get_locality(locality_id))


@router.post(
    "/localities", status_code=status.HTTP_201_CREATED, response_model=LocalityResponse
)
async def create_locality(
    request: LocalityRequest,
    context: AccessContext = Depends(require_geography_manage),
    db: AsyncSession = Depends(get_db),
):
    """Create a locality (admin)"""
    locality = await GeographyService(db, context).create_locality(
        name=request.name, pincode=request.pincode, city_id=request.city_id
    )
    return LocalityResponse(**locality)
