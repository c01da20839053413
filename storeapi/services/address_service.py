"""
Address service

Delivery address management. Keeps exactly one default address per user:

- a user's first address always becomes the default;
- making an address the default clears the previous one in the same
  transaction, under a row lock on the user;
- deleting the default promotes the oldest remaining address.

A partial unique index on addresses(user_id) WHERE is_default backs this up
at the database level; a write that trips it is rolled back and reported as
DefaultAddressConflictException.
"""

import uuid
from typing import List, Dict, Optional
from sqlalchemy import select, update, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storeapi.middleware.authorization import AccessContext
from storeapi.models.address import Address, AddressType
from storeapi.models.geography import State, City, Locality
from storeapi.services.geography_service import GeographyService, LocalityView
from storeapi.services.user_service import UserService
from storeapi.utils.exceptions import (
    AddressNotFoundException,
    DefaultAddressConflictException,
)
from storeapi.utils.logging import get_logger, audit_logger


logger = get_logger(__name__)


def format_address(
    address_line1: str,
    address_line2: Optional[str],
    landmark: Optional[str],
    locality_name: str,
    city_name: str,
    state_name: str,
    pincode: str,
) -> str:
    """
    Build the single-line display address

    Example:
        >>> format_address("221B Baker Street", None, "near park",
        ...                "Marylebone", "London", "Greater London", "NW16XE")
        '221B Baker Street, Near near park, Marylebone, London, Greater London - NW16XE'
    """
    parts = [address_line1]
    if address_line2 and address_line2.strip():
        parts.append(f", {address_line2}")
    if landmark and landmark.strip():
        parts.append(f", Near {landmark}")
    parts.append(f", {locality_name}, {city_name}, {state_name} - {pincode}")
    return "".join(parts)


class AddressService:
    """Address service"""

    def __init__(self, db_session: AsyncSession, context: AccessContext):
        self.db = db_session
        self.context = context
        self.users = UserService(db_session)
        self.geography = GeographyService(db_session, context)

    async def get_addresses(self, user_id: uuid.UUID) -> List[Dict]:
        """
        List a user's addresses

        Args:
            user_id: owner ID

        Returns:
            Expanded addresses, default first, then newest first

        Raises:
            ForbiddenException: caller may not read this user's addresses
            UserNotFoundException: no such user
        """
        self.context.ensure_address_access(user_id)
        await self.users.get_user_by_id(user_id)

        result = await self.db.execute(
            self._expanded_query()
            .where(Address.user_id == user_id)
            .order_by(Address.is_default.desc(), Address.created_at.desc())
        )
        return [self._row_to_dict(row) for row in result.all()]

    async def get_address(
        self, address_id: uuid.UUID, user_id: Optional[uuid.UUID] = None
    ) -> Dict:
        """
        Fetch one address

        Args:
            address_id: address ID
            user_id: when given, addresses of other users are reported as missing

        Raises:
            AddressNotFoundException: no such address (for this user)
            ForbiddenException: caller may not read it
        """
        address = await self._get_address(address_id, user_id)
        self.context.ensure_address_access(address.user_id)
        return await self._expand(address)

    async def create_address(
        self,
        user_id: uuid.UUID,
        address_line1: str,
        locality_id: uuid.UUID,
        contact_name: str,
        contact_phone: str,
        address_type: AddressType,
        address_line2: Optional[str] = None,
        landmark: Optional[str] = None,
        is_default: bool = False,
    ) -> Dict:
        """
        Add an address

        The first address of a user is made the default whatever is_default
        says. Later addresses become default only on request, and then the
        previous default is cleared in the same transaction.

        Args:
            user_id: owner ID
            address_line1, address_line2, landmark: street part of the address
            locality_id: locality the address lies in
            contact_name, contact_phone: recipient
            address_type: HOME, WORK or OTHER
            is_default: make this the default address

        Returns:
            The new address, expanded

        Raises:
            UserNotFoundException: no such user
            LocalityNotFoundException: no such locality
            DefaultAddressConflictException: a concurrent write won the default slot
        """
        self.context.ensure_address_access(user_id, manage=True)
        await self.users.lock_user(user_id)
        view = await self.geography.get_locality_view(locality_id)

        should_be_default = is_default or await self._count_addresses(user_id) == 0
        if should_be_default:
            await self._clear_default(user_id)

        address = Address(
            id=uuid.uuid4(),
            user_id=user_id,
            locality_id=view.locality_id,
            address_line1=address_line1,
            address_line2=address_line2,
            landmark=landmark,
            contact_name=contact_name,
            contact_phone=contact_phone,
            address_type=AddressType(address_type).value,
            is_default=should_be_default,
        )
        self.db.add(address)
        await self._commit(user_id)
        await self.db.refresh(address)

        self._audit("address.created", address, "create", {"is_default": should_be_default})
        return self._to_dict(address, view)

    async def update_address(
        self,
        address_id: uuid.UUID,
        address_line1: str,
        locality_id: uuid.UUID,
        contact_name: str,
        contact_phone: str,
        address_type: AddressType,
        address_line2: Optional[str] = None,
        landmark: Optional[str] = None,
        is_default: bool = False,
        user_id: Optional[uuid.UUID] = None,
    ) -> Dict:
        """
        Overwrite every mutable field of an address

        Setting is_default clears the user's other default atomically.
        Clearing is_default on the current default is allowed and promotes
        nothing, so the user is left without a default until another
        address is made default.

        Raises:
            AddressNotFoundException: no such address (for this user)
            LocalityNotFoundException: no such locality
            DefaultAddressConflictException: a concurrent write won the default slot
        """
        address = await self._get_address(address_id, user_id)
        self.context.ensure_address_access(address.user_id, manage=True)
        await self.users.lock_user(address.user_id)
        await self.db.refresh(address)
        view = await self.geography.get_locality_view(locality_id)

        if is_default and not address.is_default:
            await self._clear_default(address.user_id, exclude_id=address.id)
        elif address.is_default and not is_default:
            logger.warning(
                "Default flag cleared without a replacement",
                extra={"address_id": str(address.id), "user_id": str(address.user_id)},
            )

        address.address_line1 = address_line1
        address.address_line2 = address_line2
        address.landmark = landmark
        address.locality_id = view.locality_id
        address.is_default = is_default
        address.contact_name = contact_name
        address.contact_phone = contact_phone
        address.address_type = AddressType(address_type).value

        await self._commit(address.user_id)
        await self.db.refresh(address)

        self._audit("address.updated", address, "update", {"is_default": address.is_default})
        return self._to_dict(address, view)

    async def delete_address(
        self, address_id: uuid.UUID, user_id: Optional[uuid.UUID] = None
    ) -> None:
        """
        Delete an address

        When the default is deleted and the user has other addresses, the
        oldest remaining one becomes the default.

        Raises:
            AddressNotFoundException: no such address (for this user)
        """
        address = await self._get_address(address_id, user_id)
        self.context.ensure_address_access(address.user_id, manage=True)
        await self.users.lock_user(address.user_id)
        await self.db.refresh(address)

        was_default = address.is_default
        owner_id = address.user_id

        await self.db.delete(address)
        # Free the default slot before promoting another row
        await self.db.flush()

        promoted = None
        if was_default:
            result = await self.db.execute(
                select(Address)
                .where(Address.user_id == owner_id)
                .order_by(Address.created_at, Address.id)
                .limit(1)
            )
            promoted = result.scalar_one_or_none()
            if promoted is not None:
                promoted.is_default = True

        await self._commit(owner_id)

        self._audit("address.deleted", address, "delete", {"was_default": was_default})
        if promoted is not None:
            self._audit(
                "address.default_promoted",
                promoted,
                "update",
                {"replaced_address_id": str(address_id)},
            )

    async def set_default_address(
        self, address_id: uuid.UUID, user_id: Optional[uuid.UUID] = None
    ) -> Dict:
        """
        Make an address the user's default

        No-op when it already is.

        Raises:
            AddressNotFoundException: no such address (for this user)
            DefaultAddressConflictException: a concurrent write won the default slot
        """
        address = await self._get_address(address_id, user_id)
        self.context.ensure_address_access(address.user_id, manage=True)
        await self.users.lock_user(address.user_id)
        await self.db.refresh(address)

        if address.is_default:
            return await self._expand(address)

        await self._clear_default(address.user_id, exclude_id=address.id)
        address.is_default = True
        await self._commit(address.user_id)
        await self.db.refresh(address)

        self._audit("address.default_changed", address, "update", {"is_default": True})
        return await self._expand(address)

    async def get_default_address(self, user_id: uuid.UUID) -> Optional[Dict]:
        """
        The user's default address, or None when there is none

        Raises:
            UserNotFoundException: no such user
        """
        self.context.ensure_address_access(user_id)
        await self.users.get_user_by_id(user_id)

        result = await self.db.execute(
            self._expanded_query().where(
                Address.user_id == user_id, Address.is_default.is_(True)
            )
        )
        row = result.first()
        return self._row_to_dict(row) if row is not None else None

    async def _get_address(
        self, address_id: uuid.UUID, user_id: Optional[uuid.UUID] = None
    ) -> Address:
        query = select(Address).where(Address.id == address_id)
        if user_id is not None:
            query = query.where(Address.user_id == user_id)

        result = await self.db.execute(query)
        address = result.scalar_one_or_none()
        if address is None:
            raise AddressNotFoundException(address_id)
        return address

    async def _count_addresses(self, user_id: uuid.UUID) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(Address).where(Address.user_id == user_id)
        )
        return result.scalar_one()

    async def _clear_default(
        self, user_id: uuid.UUID, exclude_id: Optional[uuid.UUID] = None
    ) -> None:
        """Unset every default address of the user except `exclude_id`."""
        statement = update(Address).where(
            Address.user_id == user_id, Address.is_default.is_(True)
        )
        if exclude_id is not None:
            statement = statement.where(Address.id != exclude_id)

        await self.db.execute(
            statement.values(is_default=False).execution_options(
                synchronize_session="fetch"
            )
        )

    async def _commit(self, user_id: uuid.UUID) -> None:
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.warning(
                "Default address swap rejected by the database",
                extra={"user_id": str(user_id)},
            )
            raise DefaultAddressConflictException(user_id)

    async def _expand(self, address: Address) -> Dict:
        view = await self.geography.get_locality_view(address.locality_id)
        return self._to_dict(address, view)

    @staticmethod
    def _expanded_query():
        return (
            select(
                Address,
                Locality.name,
                Locality.pincode,
                City.id,
                City.name,
                State.id,
                State.name,
            )
            .join(Locality, Address.locality_id == Locality.id)
            .join(City, Locality.city_id == City.id)
            .join(State, City.state_id == State.id)
        )

    def _row_to_dict(self, row) -> Dict:
        address, locality_name, pincode, city_id, city_name, state_id, state_name = row
        view = LocalityView(
            locality_id=address.locality_id,
            locality_name=locality_name,
            pincode=pincode,
            city_id=city_id,
            city_name=city_name,
            state_id=state_id,
            state_name=state_name,
        )
        return self._to_dict(address, view)

    @staticmethod
    def _to_dict(address: Address, view: LocalityView) -> Dict:
        return {
            "id": str(address.id),
            "user_id": str(address.user_id),
            "address_line1": address.address_line1,
            "address_line2": address.address_line2,
            "landmark": address.landmark,
            "contact_name": address.contact_name,
            "contact_phone": address.contact_phone,
            "is_default": address.is_default,
            "address_type": address.address_type,
            "locality_id": str(view.locality_id),
            "locality_name": view.locality_name,
            "pincode": view.pincode,
            "city_id": str(view.city_id),
            "city_name": view.city_name,
            "state_id": str(view.state_id),
            "state_name": view.state_name,
            "formatted_address": format_address(
                address.address_line1,
                address.address_line2,
                address.landmark,
                view.locality_name,
                view.city_name,
                view.state_name,
                view.pincode,
            ),
            "created_at": address.created_at.isoformat(),
            "updated_at": address.updated_at.isoformat(),
        }

    def _audit(self, event_type: str, address: Address, action: str, details: Dict) -> None:
        audit_logger.log_event(
            event_type=event_type,
            user_id=str(address.user_id),
            resource_type="address",
            resource_id=str(address.id),
            action=action,
            actor_id=str(self.context.actor_id) if self.context.actor_id else None,
            details=details,
        )
