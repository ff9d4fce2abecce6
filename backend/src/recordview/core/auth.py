"""Authentication module for the application.

This module provides functions for password verification and JWT token generation.
"""

import time
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

import jwt
from fastapi import HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from recordview.core.config import get_settings

# Get settings
settings = get_settings()

# Get authentication settings from config
AUTH_PASSWORD = settings.auth_password or "recordview-password"

# JWT settings
JWT_SECRET = settings.jwt_secret or "recordview-jwt-secret-key"
JWT_ALGORITHM = "HS256"
JWT_EXPIRATION_DAYS = 30  # Token valid for 30 days


class Token(BaseModel):
    """Token response model."""
    access_token: str
    token_type: str = "bearer"


class TokenData(BaseModel):
    """Token data model."""
    exp: int


def verify_password(password: str) -> bool:
    """Verify if the provided password matches the configured password.

    Args:
        password: The password to verify.

    Returns:
        bool: True if the password is correct, False otherwise.
    """
    return password == AUTH_PASSWORD


def create_access_token() -> str:
    """Create a new JWT access token.

    Returns:
        str: The JWT access token.
    """
    expire = datetime.now(timezone.utc) + timedelta(days=JWT_EXPIRATION_DAYS)
    to_encode = {"exp": int(expire.timestamp())}
    return jwt.encode(to_encode, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> Optional[Dict]:
    """Decode and validate a JWT token.

    Args:
        token: The JWT token to decode.

    Returns:
        Optional[Dict]: The decoded token payload if valid, None otherwise.
    """
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])

        # Check if token has expired
        if payload["exp"] < time.time():
            return None

        return payload
    except jwt.PyJWTError:
        return None


# Bearer token authentication
class JWTBearer(HTTPBearer):
    """JWT Bearer token authentication."""

    def __init__(self, auto_error: bool = True):
        super().__init__(auto_error=auto_error)

    async def __call__(self, request: Request) -> TokenData:
        """Validate the JWT token in the Authorization header.

        Args:
            request: The FastAPI request object.

        Returns:
            TokenData: The decoded token data.

        Raises:
            HTTPException: If the token is invalid or missing.
        """
        credentials: HTTPAuthorizationCredentials = await super().__call__(request)

        if not credentials:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid authorization credentials."
            )
        if credentials.scheme.lower() != "bearer":
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid authentication scheme."
            )

        payload = decode_token(credentials.credentials)
        if payload is None:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid or expired token."
            )

        return TokenData(exp=payload["exp"])


# Dependency for protected routes
jwt_auth = JWTBearer()
