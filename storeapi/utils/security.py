"""
JWT helpers

Issues and verifies the stateless access tokens used by the API.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt

from storeapi.config import get_settings


class JWTManager:
    """
    JWT creation and verification
    """

    @staticmethod
    def create_access_token(
        data: dict,
        expires_delta: Optional[timedelta] = None,
    ) -> str:
        """
        Create an access token

        Args:
            data: claims to embed (sub, role, ...)
            expires_delta: lifetime (defaults to ACCESS_TOKEN_EXPIRE_MINUTES)

        Returns:
            str: encoded JWT

        Example:
            >>> token = JWTManager.create_access_token({"sub": "user-id", "role": "customer"})
        """
        settings = get_settings()
        to_encode = data.copy()
        if expires_delta:
            expire = datetime.now(timezone.utc) + expires_delta
        else:
            expire = datetime.now(timezone.utc) + timedelta(
                minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
            )

        to_encode.update({"exp": expire, "type": "access"})
        return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

    @staticmethod
    def decode_token(token: str) -> dict:
        """
        Decode and verify a JWT

        Raises:
            ValueError: the token is malformed, tampered with or expired
        """
        settings = get_settings()
        try:
            return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
        except JWTError as e:
            raise ValueError(f"Invalid token: {str(e)}")

    @staticmethod
    def verify_token_type(payload: dict, expected_type: str) -> bool:
        return payload.get("type") == expected_type
