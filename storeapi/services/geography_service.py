"""
Geography service

States, cities and localities. Also resolves a locality id into the
locality/city/state names an address needs for display.
"""

import uuid
from dataclasses import dataclass
from typing import Dict, List
from sqlalchemy import select, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storeapi.middleware.authorization import AccessContext, Permission
from storeapi.models.geography import State, City, Locality
from storeapi.utils.exceptions import (
    ConflictException,
    StateNotFoundException,
    CityNotFoundException,
    LocalityNotFoundException,
)
from storeapi.utils.logging import get_logger, audit_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class LocalityView:
    """A locality with its city and state resolved"""

    locality_id: uuid.UUID
    locality_name: str
    pincode: str
    city_id: uuid.UUID
    city_name: str
    state_id: uuid.UUID
    state_name: str

    def to_dict(self) -> Dict:
        return {
            "id": str(self.locality_id),
            "name": self.locality_name,
            "pincode": self.pincode,
            "city_id": str(self.city_id),
            "city_name": self.city_name,
            "state_id": str(self.state_id),
            "state_name": self.state_name,
        }


def _locality_view_query():
    return (
        select(
            Locality.id,
            Locality.name,
            Locality.pincode,
            City.id,
            City.name,
            State.id,
            State.name,
        )
        .join(City, Locality.city_id == City.id)
        .join(State, City.state_id == State.id)
    )


class GeographyService:
    """State, city and locality service"""

    def __init__(self, db_session: AsyncSession, context: AccessContext):
        self.db = db_session
        self.context = context

    # States

    async def list_states(self) -> List[Dict]:
        self.context.require(Permission.GEOGRAPHY_READ)
        result = await self.db.execute(select(State).order_by(State.name))
        return [self._state_to_dict(state) for state in result.scalars().all()]

    async def get_state(self, state_id: uuid.UUID) -> Dict:
        self.context.require(Permission.GEOGRAPHY_READ)
        return self._state_to_dict(await self._get_state(state_id))

    async def create_state(self, name: str, code: str) -> Dict:
        """
        Create a state

        Raises:
            ConflictException: a state with the same name or code exists
        """
        self.context.require(Permission.GEOGRAPHY_MANAGE)

        existing = await self.db.execute(
            select(State.id).where(or_(State.name == name, State.code == code))
        )
        if existing.first() is not None:
            raise ConflictException(
                message="State with this name or code already exists",
                details={"name": name, "code": code},
            )

        state = State(id=uuid.uuid4(), name=name, code=code)
        await self._save(state, conflict_message="State with this name or code already exists")
        self._audit("state", state.id, {"name": name, "code": code})
        return self._state_to_dict(state)

    # Cities

    async def list_cities(self) -> List[Dict]:
        self.context.require(Permission.GEOGRAPHY_READ)
        result = await self.db.execute(self._city_query().order_by(City.name))
        return [self._city_row_to_dict(row) for row in result.all()]

    async def list_cities_by_state(self, state_id: uuid.UUID) -> List[Dict]:
        self.context.require(Permission.GEOGRAPHY_READ)
        await self._get_state(state_id)
        result = await self.db.execute(
            self._city_query().where(City.state_id == state_id).order_by(City.name)
        )
        return [self._city_row_to_dict(row) for row in result.all()]

    async def get_city(self, city_id: uuid.UUID) -> Dict:
        self.context.require(Permission.GEOGRAPHY_READ)
        result = await self.db.execute(self._city_query().where(City.id == city_id))
        row = result.first()
        if row is None:
            raise CityNotFoundException(city_id)
        return self._city_row_to_dict(row)

    async def create_city(self, name: str, state_id: uuid.UUID) -> Dict:
        """
        Create a city inside a state

        Raises:
            StateNotFoundException: the state does not exist
            ConflictException: the state already has a city with this name
        """
        self.context.require(Permission.GEOGRAPHY_MANAGE)
        state = await self._get_state(state_id)

        existing = await self.db.execute(
            select(City.id).where(City.name == name, City.state_id == state_id)
        )
        if existing.first() is not None:
            raise ConflictException(
                message=f"City '{name}' already exists in {state.name}",
                details={"name": name, "state_id": str(state_id)},
            )

        city = City(id=uuid.uuid4(), name=name, state_id=state_id)
        await self._save(city, conflict_message=f"City '{name}' already exists in {state.name}")
        self._audit("city", city.id, {"name": name, "state_id": str(state_id)})
        return {
            "id": str(city.id),
            "name": city.name,
            "state_id": str(state.id),
            "state_name": state.name,
        }

    # Localities

    async def list_localities(self) -> List[Dict]:
        self.context.require(Permission.GEOGRAPHY_READ)
        result = await self.db.execute(_locality_view_query().order_by(Locality.name))
        return [self._row_to_view(row).to_dict() for row in result.all()]

    async def list_localities_by_city(self, city_id: uuid.UUID) -> List[Dict]:
        self.context.require(Permission.GEOGRAPHY_READ)
        await self._get_city(city_id)
        result = await self.db.execute(
            _locality_view_query()
            .where(Locality.city_id == city_id)
            .order_by(Locality.name)
        )
        return [self._row_to_view(row).to_dict() for row in result.all()]

    async def get_locality(self, locality_id: uuid.UUID) -> Dict:
        self.context.require(Permission.GEOGRAPHY_READ)
        return (await self.get_locality_view(locality_id)).to_dict()

    async def create_locality(self, name: str, pincode: str, city_id: uuid.UUID) -> Dict:
        """
        Create a locality inside a city

        Raises:
            CityNotFoundException: the city does not exist
            ConflictException: the city already has a locality with this name
        """
        self.context.require(Permission.GEOGRAPHY_MANAGE)
        city = await self._get_city(city_id)

        existing = await self.db.execute(
            select(Locality.id).where(Locality.name == name, Locality.city_id == city_id)
        )
        if existing.first() is not None:
            raise ConflictException(
                message=f"Locality '{name}' already exists in {city.name}",
                details={"name": name, "city_id": str(city_id)},
            )

        locality = Locality(id=uuid.uuid4(), name=name, pincode=pincode, city_id=city_id)
        await self._save(
            locality, conflict_message=f"Locality '{name}' already exists in {city.name}"
        )
        self._audit(
            "locality", locality.id, {"name": name, "pincode": pincode, "city_id": str(city_id)}
        )
        return (await self.get_locality_view(locality.id)).to_dict()

    async def get_locality_view(self, locality_id: uuid.UUID) -> LocalityView:
        """
        Resolve a locality with its city and state

        No permission check: this is the lookup other services use internally.

        Raises:
            LocalityNotFoundException: the locality does not exist
        """
        result = await self.db.execute(
            _locality_view_query().where(Locality.id == locality_id)
        )
        row = result.first()
        if row is None:
            raise LocalityNotFoundException(locality_id)
        return self._row_to_view(row)

    # Internal helpers

    async def _get_state(self, state_id: uuid.UUID) -> State:
        state = await self.db.get(State, state_id)
        if state is None:
            raise StateNotFoundException(state_id)
        return state

    async def _get_city(self, city_id: uuid.UUID) -> City:
        city = await self.db.get(City, city_id)
        if city is None:
            raise CityNotFoundException(city_id)
        return city

    async def _save(self, instance, conflict_message: str) -> None:
        self.db.add(instance)
        try:
            await self.db.commit()
        except IntegrityError:
            # Lost a race against an identical insert
            await self.db.rollback()
            logger.warning(conflict_message, extra={"table": instance.__tablename__})
            raise ConflictException(message=conflict_message)
        await self.db.refresh(instance)

    def _audit(self, resource_type: str, resource_id: uuid.UUID, details: Dict) -> None:
        audit_logger.log_event(
            event_type=f"{resource_type}.created",
            resource_type=resource_type,
            resource_id=str(resource_id),
            action="create",
            actor_id=str(self.context.actor_id) if self.context.actor_id else None,
            details=details,
        )

    @staticmethod
    def _city_query():
        return select(City.id, City.name, State.id, State.name).join(
            State, City.state_id == State.id
        )

    @staticmethod
    def _state_to_dict(state: State) -> Dict:
        return {"id": str(state.id), "name": state.name, "code": state.code}

    @staticmethod
    def _city_row_to_dict(row) -> Dict:
        city_id, city_name, state_id, state_name = row
        return {
            "id": str(city_id),
            "name": city_name,
            "state_id": str(state_id),
            "state_name": state_name,
        }

    @staticmethod
    def _row_to_view(row) -> LocalityView:
        locality_id, locality_name, pincode, city_id, city_name, state_id, state_name = row
        return LocalityView(
            locality_id=locality_id,
            locality_name=locality_name,
            pincode=pincode,
            city_id=city_id,
            city_name=city_name,
            state_id=state_id,
            state_name=state_name,
        )
