"""
AddressService unit tests

Default-address bookkeeping against an in-memory database.
"""

import pytest
from uuid import uuid4
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storeapi.middleware.authorization import AccessContext
from storeapi.models.address import Address
from storeapi.models.geography import Locality
from storeapi.models.user import User
from storeapi.services.address_service import AddressService
from storeapi.utils.exceptions import (
    AddressNotFoundException,
    DefaultAddressConflictException,
    ForbiddenException,
    LocalityNotFoundException,
    UserNotFoundException,
)


def address_fields(locality: Locality, **overrides) -> dict:
    data = {
        "address_line1": "221B Baker Street",
        "landmark": "near park",
        "locality_id": locality.id,
        "is_default": False,
        "contact_name": "Sherlock Holmes",
        "contact_phone": "9876543210",
        "address_type": "HOME",
    }
    data.update(overrides)
    return data


async def default_flags(db_session: AsyncSession, user_id) -> dict:
    """address id -> is_default, read straight from the table"""
    result = await db_session.execute(
        select(Address.id, Address.is_default).where(Address.user_id == user_id)
    )
    return {str(address_id): is_default for address_id, is_default in result.all()}


@pytest.mark.asyncio
class TestCreateAddress:
    """create_address"""

    async def test_first_address_becomes_default(
        self, db_session: AsyncSession, test_user: User, locality: Locality, user_context
    ):
        service = AddressService(db_session, user_context)

        address = await service.create_address(test_user.id, **address_fields(locality, is_default=False))

        assert address["is_default"] is True
        assert await default_flags(db_session, test_user.id) == {address["id"]: True}

    async def test_second_default_address_replaces_first(
        self, db_session: AsyncSession, test_user: User, locality: Locality, user_context
    ):
        service = AddressService(db_session, user_context)
        first = await service.create_address(test_user.id, **address_fields(locality))

        second = await service.create_address(
            test_user.id, **address_fields(locality, address_line1="10 Downing Street", is_default=True)
        )

        assert second["is_default"] is True
        flags = await default_flags(db_session, test_user.id)
        assert flags == {first["id"]: False, second["id"]: True}

    async def test_second_non_default_address_keeps_existing_default(
        self, db_session: AsyncSession, test_user: User, locality: Locality, user_context
    ):
        service = AddressService(db_session, user_context)
        first = await service.create_address(test_user.id, **address_fields(locality))

        second = await service.create_address(test_user.id, **address_fields(locality, is_default=False))

        assert second["is_default"] is False
        flags = await default_flags(db_session, test_user.id)
        assert flags == {first["id"]: True, second["id"]: False}

    async def test_create_returns_expanded_address(
        self, db_session: AsyncSession, test_user: User, locality: Locality, user_context
    ):
        service = AddressService(db_session, user_context)

        address = await service.create_address(test_user.id, **address_fields(locality))

        assert address["locality_name"] == "Marylebone"
        assert address["city_name"] == "London"
        assert address["state_name"] == "Greater London"
        assert address["pincode"] == "NW16XE"
        assert address["address_type"] == "HOME"
        assert address["user_id"] == str(test_user.id)
        assert address["formatted_address"] == (
            "221B Baker Street, Near near park, Marylebone, London, Greater London - NW16XE"
        )

    async def test_create_for_unknown_user(
        self, db_session: AsyncSession, locality: Locality, admin_context
    ):
        service = AddressService(db_session, admin_context)

        with pytest.raises(UserNotFoundException):
            await service.create_address(uuid4(), **address_fields(locality))

    async def test_create_with_unknown_locality(
        self, db_session: AsyncSession, test_user: User, locality: Locality, user_context
    ):
        service = AddressService(db_session, user_context)
        fields = address_fields(locality, locality_id=uuid4())

        with pytest.raises(LocalityNotFoundException):
            await service.create_address(test_user.id, **fields)

        assert await default_flags(db_session, test_user.id) == {}


@pytest.mark.asyncio
class TestUpdateAddress:
    """update_address"""

    async def test_update_overwrites_fields(
        self,
        db_session: AsyncSession,
        test_user: User,
        locality: Locality,
        second_locality: Locality,
        user_context,
    ):
        service = AddressService(db_session, user_context)
        created = await service.create_address(test_user.id, **address_fields(locality))

        updated = await service.update_address(
            created["id"],
            **address_fields(
                second_locality,
                address_line1="1 Carnaby Street",
                address_line2="Flat 2",
                landmark=None,
                contact_name="John Watson",
                contact_phone="6123456789",
                address_type="WORK",
                is_default=True,
            ),
        )

        assert updated["address_line1"] == "1 Carnaby Street"
        assert updated["contact_name"] == "John Watson"
        assert updated["contact_phone"] == "6123456789"
        assert updated["address_type"] == "WORK"
        assert updated["locality_name"] == "Soho"
        assert updated["formatted_address"] == (
            "1 Carnaby Street, Flat 2, Soho, London, Greater London - W1D3QU"
        )

    async def test_update_to_default_clears_previous_default(
        self, db_session: AsyncSession, test_user: User, locality: Locality, user_context
    ):
        service = AddressService(db_session, user_context)
        first = await service.create_address(test_user.id, **address_fields(locality))
        second = await service.create_address(test_user.id, **address_fields(locality))

        await service.update_address(second["id"], **address_fields(locality, is_default=True))

        flags = await default_flags(db_session, test_user.id)
        assert flags == {first["id"]: False, second["id"]: True}

    async def test_update_can_clear_the_only_default(
        self, db_session: AsyncSession, test_user: User, locality: Locality, user_context
    ):
        """Clearing the default via update promotes nothing"""
        service = AddressService(db_session, user_context)
        first = await service.create_address(test_user.id, **address_fields(locality))
        second = await service.create_address(test_user.id, **address_fields(locality))

        updated = await service.update_address(first["id"], **address_fields(locality, is_default=False))

        assert updated["is_default"] is False
        flags = await default_flags(db_session, test_user.id)
        assert flags == {first["id"]: False, second["id"]: False}
        assert await service.get_default_address(test_user.id) is None

    async def test_update_unknown_address(
        self, db_session: AsyncSession, test_user: User, locality: Locality, user_context
    ):
        service = AddressService(db_session, user_context)

        with pytest.raises(AddressNotFoundException):
            await service.update_address(uuid4(), **address_fields(locality))

    async def test_update_with_unknown_locality_changes_nothing(
        self, db_session: AsyncSession, test_user: User, locality: Locality, user_context
    ):
        service = AddressService(db_session, user_context)
        created = await service.create_address(test_user.id, **address_fields(locality))

        with pytest.raises(LocalityNotFoundException):
            await service.update_address(
                created["id"],
                **address_fields(locality, locality_id=uuid4(), address_line1="Elsewhere"),
            )

        fetched = await service.get_address(created["id"])
        assert fetched["address_line1"] == "221B Baker Street"


@pytest.mark.asyncio
class TestDeleteAddress:
    """delete_address"""

    async def test_deleting_default_promotes_remaining_address(
        self, db_session: AsyncSession, test_user: User, locality: Locality, user_context
    ):
        service = AddressService(db_session, user_context)
        first = await service.create_address(test_user.id, **address_fields(locality))
        second = await service.create_address(test_user.id, **address_fields(locality))

        await service.delete_address(first["id"])

        assert await default_flags(db_session, test_user.id) == {second["id"]: True}

    async def test_deleting_default_promotes_oldest_address(
        self, db_session: AsyncSession, test_user: User, locality: Locality, user_context
    ):
        service = AddressService(db_session, user_context)
        first = await service.create_address(test_user.id, **address_fields(locality))
        second = await service.create_address(test_user.id, **address_fields(locality))
        third = await service.create_address(test_user.id, **address_fields(locality, is_default=True))

        await service.delete_address(third["id"])

        flags = await default_flags(db_session, test_user.id)
        assert flags == {first["id"]: True, second["id"]: False}

    async def test_deleting_non_default_keeps_default(
        self, db_session: AsyncSession, test_user: User, locality: Locality, user_context
    ):
        service = AddressService(db_session, user_context)
        first = await service.create_address(test_user.id, **address_fields(locality))
        second = await service.create_address(test_user.id, **address_fields(locality))

        await service.delete_address(second["id"])

        assert await default_flags(db_session, test_user.id) == {first["id"]: True}

    async def test_deleting_only_address_leaves_none(
        self, db_session: AsyncSession, test_user: User, locality: Locality, user_context
    ):
        service = AddressService(db_session, user_context)
        only = await service.create_address(test_user.id, **address_fields(locality))

        await service.delete_address(only["id"])

        assert await service.get_addresses(test_user.id) == []
        assert await service.get_default_address(test_user.id) is None

    async def test_delete_unknown_address(
        self, db_session: AsyncSession, test_user: User, user_context
    ):
        service = AddressService(db_session, user_context)

        with pytest.raises(AddressNotFoundException):
            await service.delete_address(uuid4())


@pytest.mark.asyncio
class TestDefaultAddress:
    """set_default_address / get_default_address"""

    async def test_set_default_switches_default(
        self, db_session: AsyncSession, test_user: User, locality: Locality, user_context
    ):
        service = AddressService(db_session, user_context)
        first = await service.create_address(test_user.id, **address_fields(locality))
        second = await service.create_address(test_user.id, **address_fields(locality))

        result = await service.set_default_address(second["id"])

        assert result["is_default"] is True
        flags = await default_flags(db_session, test_user.id)
        assert flags == {first["id"]: False, second["id"]: True}

    async def test_set_default_is_idempotent(
        self, db_session: AsyncSession, test_user: User, locality: Locality, user_context
    ):
        service = AddressService(db_session, user_context)
        first = await service.create_address(test_user.id, **address_fields(locality))
        second = await service.create_address(test_user.id, **address_fields(locality))

        again = await service.set_default_address(first["id"])

        assert again == await service.get_address(first["id"])
        flags = await default_flags(db_session, test_user.id)
        assert flags == {first["id"]: True, second["id"]: False}

    async def test_get_default_without_addresses_returns_none(
        self, db_session: AsyncSession, test_user: User, user_context
    ):
        service = AddressService(db_session, user_context)

        assert await service.get_default_address(test_user.id) is None

    async def test_get_default_returns_default(
        self, db_session: AsyncSession, test_user: User, locality: Locality, user_context
    ):
        service = AddressService(db_session, user_context)
        await service.create_address(test_user.id, **address_fields(locality))
        second = await service.create_address(test_user.id, **address_fields(locality, is_default=True))

        default = await service.get_default_address(test_user.id)

        assert default["id"] == second["id"]

    async def test_get_default_for_unknown_user(self, db_session: AsyncSession, admin_context):
        service = AddressService(db_session, admin_context)

        with pytest.raises(UserNotFoundException):
            await service.get_default_address(uuid4())

    async def test_exactly_one_default_after_mixed_operations(
        self, db_session: AsyncSession, test_user: User, locality: Locality, user_context
    ):
        service = AddressService(db_session, user_context)
        a = await service.create_address(test_user.id, **address_fields(locality))
        b = await service.create_address(test_user.id, **address_fields(locality, is_default=True))
        c = await service.create_address(test_user.id, **address_fields(locality))
        await service.set_default_address(c["id"])
        await service.update_address(a["id"], **address_fields(locality, is_default=True))
        await service.delete_address(a["id"])
        d = await service.create_address(test_user.id, **address_fields(locality))
        await service.set_default_address(d["id"])
        await service.delete_address(b["id"])

        flags = await default_flags(db_session, test_user.id)
        assert len(flags) == 2
        assert sum(flags.values()) == 1
        assert flags[d["id"]] is True


@pytest.mark.asyncio
class TestListAndGet:
    """get_addresses / get_address"""

    async def test_list_puts_default_first(
        self, db_session: AsyncSession, test_user: User, locality: Locality, user_context
    ):
        service = AddressService(db_session, user_context)
        first = await service.create_address(test_user.id, **address_fields(locality))
        second = await service.create_address(test_user.id, **address_fields(locality))
        third = await service.create_address(test_user.id, **address_fields(locality))
        await service.set_default_address(second["id"])

        addresses = await service.get_addresses(test_user.id)

        assert [a["id"] for a in addresses][0] == second["id"]
        assert {a["id"] for a in addresses} == {first["id"], second["id"], third["id"]}

    async def test_list_for_unknown_user(self, db_session: AsyncSession, admin_context):
        service = AddressService(db_session, admin_context)

        with pytest.raises(UserNotFoundException):
            await service.get_addresses(uuid4())

    async def test_get_scoped_to_other_user_is_not_found(
        self,
        db_session: AsyncSession,
        test_user: User,
        admin_user: User,
        locality: Locality,
        admin_context,
    ):
        service = AddressService(db_session, admin_context)
        created = await service.create_address(test_user.id, **address_fields(locality))

        with pytest.raises(AddressNotFoundException):
            await service.get_address(created["id"], user_id=admin_user.id)

    async def test_get_unknown_address(self, db_session: AsyncSession, user_context):
        service = AddressService(db_session, user_context)

        with pytest.raises(AddressNotFoundException):
            await service.get_address(uuid4())


@pytest.mark.asyncio
class TestAccessControl:
    """AccessContext checks inside the service"""

    async def test_customer_cannot_read_other_users_addresses(
        self,
        db_session: AsyncSession,
        test_user: User,
        other_user: User,
        locality: Locality,
        user_context,
    ):
        owner_service = AddressService(db_session, user_context)
        created = await owner_service.create_address(test_user.id, **address_fields(locality))

        intruder = AddressService(db_session, AccessContext.for_user(other_user))

        with pytest.raises(ForbiddenException):
            await intruder.get_addresses(test_user.id)
        with pytest.raises(ForbiddenException):
            await intruder.get_address(created["id"])
        with pytest.raises(ForbiddenException):
            await intruder.delete_address(created["id"])
        with pytest.raises(ForbiddenException):
            await intruder.create_address(test_user.id, **address_fields(locality))

    async def test_admin_can_manage_any_users_addresses(
        self, db_session: AsyncSession, test_user: User, locality: Locality, admin_context
    ):
        service = AddressService(db_session, admin_context)

        created = await service.create_address(test_user.id, **address_fields(locality))
        await service.delete_address(created["id"])

        assert await service.get_addresses(test_user.id) == []


@pytest.mark.asyncio
class TestDefaultConstraint:
    """Partial unique index on addresses(user_id) WHERE is_default"""

    async def test_database_rejects_second_default(
        self, db_session: AsyncSession, test_user: User, locality: Locality
    ):
        for _ in range(2):
            db_session.add(
                Address(
                    id=uuid4(),
                    user_id=test_user.id,
                    locality_id=locality.id,
                    address_line1="221B Baker Street",
                    contact_name="Sherlock Holmes",
                    contact_phone="9876543210",
                    address_type="HOME",
                    is_default=True,
                )
            )

        with pytest.raises(IntegrityError):
            await db_session.commit()
        await db_session.rollback()

    async def test_defaults_of_different_users_do_not_collide(
        self, db_session: AsyncSession, test_user: User, other_user: User, locality: Locality
    ):
        for user in (test_user, other_user):
            db_session.add(
                Address(
                    id=uuid4(),
                    user_id=user.id,
                    locality_id=locality.id,
                    address_line1="221B Baker Street",
                    contact_name="Sherlock Holmes",
                    contact_phone="9876543210",
                    address_type="HOME",
                    is_default=True,
                )
            )

        await db_session.commit()


async def _skip_clear_default(self, user_id, exclude_id=None):
    """Stand-in for AddressService._clear_default that leaves the old default set"""
    return None


@pytest.mark.asyncio
class TestDefaultConflict:
    """Writes rejected by the one-default index roll back and raise 409"""

    async def test_create_conflict_keeps_previous_default(
        self,
        db_session: AsyncSession,
        test_user: User,
        locality: Locality,
        user_context,
        monkeypatch,
    ):
        # Given: A default address, and fixture values read before the rollback expires them
        user_id = test_user.id
        fields = address_fields(locality, is_default=True)
        service = AddressService(db_session, user_context)
        first = await service.create_address(user_id, **address_fields(locality))
        monkeypatch.setattr(AddressService, "_clear_default", _skip_clear_default)

        # When: A second default is written without clearing the first
        with pytest.raises(DefaultAddressConflictException) as exc_info:
            await service.create_address(user_id, **fields)

        # Then: 409, and the previous default is still the only address
        assert exc_info.value.status_code == 409
        assert exc_info.value.details["rule"] == "single_default_address"
        assert await default_flags(db_session, user_id) == {first["id"]: True}

    async def test_set_default_conflict_keeps_previous_default(
        self,
        db_session: AsyncSession,
        test_user: User,
        locality: Locality,
        user_context,
        monkeypatch,
    ):
        user_id = test_user.id
        service = AddressService(db_session, user_context)
        first = await service.create_address(user_id, **address_fields(locality))
        second = await service.create_address(user_id, **address_fields(locality))
        monkeypatch.setattr(AddressService, "_clear_default", _skip_clear_default)

        with pytest.raises(DefaultAddressConflictException):
            await service.set_default_address(second["id"])

        assert await default_flags(db_session, user_id) == {
            first["id"]: True,
            second["id"]: False,
        }
