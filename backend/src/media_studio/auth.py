from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from . import config
from .exceptions import AuthenticationError

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class CurrentUser:
    user_id: str


def verify_token(token: str) -> CurrentUser:
    """Check a session token issued by the identity provider and return its subject."""
    if not config.AUTH_SECRET:
        logger.error("MEDIA_STUDIO_AUTH_SECRET is not set, rejecting all sessions")
        raise AuthenticationError("Authentication is not configured")
    try:
        claims = jwt.decode(
            token,
            config.AUTH_SECRET,
            algorithms=config.AUTH_ALGORITHMS,
            audience=config.AUTH_AUDIENCE,
            issuer=config.AUTH_ISSUER,
        )
    except JWTError as exc:
        raise AuthenticationError(str(exc)) from exc
    subject = claims.get("sub")
    if not subject:
        raise AuthenticationError("Token has no subject")
    return CurrentUser(user_id=str(subject))


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> CurrentUser:
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Unauthorized")
    try:
        return verify_token(credentials.credentials)
    except AuthenticationError:
        raise HTTPException(
            status_code=401,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None
