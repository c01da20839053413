"""
User service

User lookups used by the address service, and account creation for seeding.
"""

import uuid
from typing import Optional
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storeapi.models.user import User, UserRole, UserStatus
from storeapi.utils.exceptions import ConflictException, UserNotFoundException


class UserService:
    """User lookups"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_id(self, user_id: uuid.UUID) -> User:
        """
        Fetch a user by id

        Raises:
            UserNotFoundException: no such user
        """
        result = await self.db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if user is None:
            raise UserNotFoundException(user_id)
        return user

    async def lock_user(self, user_id: uuid.UUID) -> User:
        """
        Fetch a user and lock the row until the transaction ends

        Serializes default-address writes for the same user. SQLite has no
        row locks and ignores FOR UPDATE.

        Raises:
            UserNotFoundException: no such user
        """
        result = await self.db.execute(
            select(User).where(User.id == user_id).with_for_update()
        )
        user = result.scalar_one_or_none()
        if user is None:
            raise UserNotFoundException(user_id)
        return user

    async def get_user_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def create_user(
        self,
        email: str,
        name: str,
        role: UserRole = UserRole.CUSTOMER,
    ) -> User:
        """
        Create an active user

        Raises:
            ConflictException: the email is already registered
        """
        if await self.get_user_by_email(email):
            raise ConflictException(
                message=f"A user with email {email} already exists",
                details={"email": email},
            )

        user = User(
            id=uuid.uuid4(),
            email=email,
            name=name,
            role=role.value,
            status=UserStatus.ACTIVE.value,
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictException(
                message=f"A user with email {email} already exists",
                details={"email": email},
            )
        await self.db.refresh(user)
        return user
