"""Request authentication for the lead API and the cron endpoint."""

import hmac
import os
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from pydantic import BaseModel

# Tokens are issued by the hosted auth provider and signed with its JWT secret
ALGORITHM = "HS256"
AUDIENCE = "authenticated"

security = HTTPBearer(auto_error=False)


class TokenData(BaseModel):
    """Data encoded in the access token."""
    user_id: str
    email: Optional[str] = None


def get_jwt_secret() -> str:
    return os.environ.get("SUPABASE_JWT_SECRET", "dev-secret-key-change-in-production")


def create_access_token(user_id: str, email: Optional[str] = None) -> str:
    """Create a signed access token (used by tests and local tooling)."""
    to_encode = {"sub": user_id, "aud": AUDIENCE}
    if email:
        to_encode["email"] = email
    return jwt.encode(to_encode, get_jwt_secret(), algorithm=ALGORITHM)


def decode_token(token: str) -> Optional[TokenData]:
    """Decode and validate an access token."""
    try:
        payload = jwt.decode(token, get_jwt_secret(), algorithms=[ALGORITHM], audience=AUDIENCE)
    except JWTError:
        return None

    user_id = payload.get("sub")
    if not user_id:
        return None
    return TokenData(user_id=str(user_id), email=payload.get("email"))


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> TokenData:
    """
    Dependency to get the current authenticated user.

    Raises HTTPException if not authenticated.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if credentials is None:
        raise credentials_exception

    token_data = decode_token(credentials.credentials)
    if token_data is None:
        raise credentials_exception

    return token_data


def verify_cron_secret(request: Request) -> None:
    """
    Dependency guarding the cron endpoint.

    Requires "Authorization: Bearer <CRON_SECRET>". With no secret set,
    requests are only allowed in development.
    """
    cron_secret = os.environ.get("CRON_SECRET", "")

    if not cron_secret:
        if os.environ.get("ENVIRONMENT") == "development":
            return
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    auth_header = request.headers.get("authorization", "")
    if not hmac.compare_digest(auth_header.encode(), f"Bearer {cron_secret}".encode()):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
