from datetime import datetime, timedelta, timezone
import logging
from typing import Any, Dict, Optional, cast

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
import jwt
from jwt import PyJWTError

from .core.config import settings
from .core.enums import RoleName
from .principal import Actor

logger = logging.getLogger(__name__)

oauth2_scheme_optional = OAuth2PasswordBearer(tokenUrl="auth/login", auto_error=False)


def _secret_value(secret_obj: Any) -> str:
    getter = getattr(secret_obj, "get_secret_value", None)
    if callable(getter):
        return cast(str, getter())
    return cast(str, secret_obj)


def decode_access_token(token: str) -> Dict[str, Any]:
    """Decode and verify a JWT access token issued by the auth collaborator."""
    payload_raw = jwt.decode(
        token,
        _secret_value(settings.secret_key),
        algorithms=[settings.algorithm],
        options={"verify_aud": False},
    )
    return cast(Dict[str, Any], payload_raw)


def create_access_token(
    actor_id: str, role: RoleName | str, expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a JWT access token carrying the actor id and role.

    Args:
        actor_id: Account id, stored in the ``sub`` claim
        role: Account role, stored in the ``role`` claim
        expires_delta: Optional expiration time delta

    Returns:
        str: The encoded JWT token
    """
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode = {
        "sub": actor_id,
        "role": RoleName(role).value,
        "exp": expire,
    }
    encoded_jwt = cast(
        str,
        jwt.encode(
            to_encode,
            _secret_value(settings.secret_key),
            algorithm=settings.algorithm,
        ),
    )
    logger.debug(f"Created access token for actor: {actor_id}")
    return encoded_jwt


def actor_from_claims(payload: Dict[str, Any]) -> Optional[Actor]:
    """Build an Actor from token claims, or None when they are incomplete."""
    actor_id = payload.get("sub")
    role_raw = payload.get("role")
    if not isinstance(actor_id, str) or not actor_id:
        return None
    try:
        role = RoleName(role_raw)
    except ValueError:
        return None
    return Actor(id=actor_id, role=role)


async def get_current_actor(token: Optional[str] = Depends(oauth2_scheme_optional)) -> Actor:
    """
    Dependency resolving the authenticated actor from the bearer token.

    Raises:
        HTTPException: 401 if the token is missing, invalid or expired
    """
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    invalid_credentials = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_access_token(token)
    except PyJWTError as e:
        logger.warning(f"JWT validation error: {str(e)}")
        raise invalid_credentials

    actor = actor_from_claims(payload)
    if actor is None:
        logger.warning("Token payload missing 'sub' or 'role' claim")
        raise invalid_credentials
    return actor
