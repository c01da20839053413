"""
JWT authentication dependencies

Resolves the bearer token on each request into an active User.
"""

from typing import Optional
from uuid import UUID
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storeapi.models.base import get_db
from storeapi.models.user import User
from storeapi.utils.security import JWTManager


# Authorization: Bearer <token>
security = HTTPBearer()


class AuthenticationError(HTTPException):
    """Authentication failure"""

    def __init__(self, detail: str = "Authentication failed."):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> str:
    """
    Extract the user id from the bearer token

    Raises:
        AuthenticationError: the token is invalid, expired or not an access token

    Example:
        ```python
        @router.get("/me")
        async def me(user_id: str = Depends(get_current_user_id)):
            return {"user_id": user_id}
        ```
    """
    token = credentials.credentials

    try:
        payload = JWTManager.decode_token(token)
    except ValueError as e:
        raise AuthenticationError(detail=str(e))

    if not JWTManager.verify_token_type(payload, "access"):
        raise AuthenticationError(detail="Invalid token type.")

    user_id: Optional[str] = payload.get("sub")
    if user_id is None:
        raise AuthenticationError(detail="Token does not identify a user.")

    return user_id


async def get_current_user(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Load the authenticated user

    Raises:
        AuthenticationError: the user does not exist or is not active
    """
    try:
        user_uuid = UUID(user_id)
    except ValueError:
        raise AuthenticationError(detail="Malformed user id in token.")

    result = await db.execute(select(User).where(User.id == user_uuid))
    user = result.scalar_one_or_none()

    if user is None:
        raise AuthenticationError(detail="User not found.")

    if not user.is_active:
        raise AuthenticationError(detail="Account is not active.")

    return user
