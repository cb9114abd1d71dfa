# backend/app/api/dependencies/auth.py
"""
Authentication and authorization dependencies.

The actor is resolved from the bearer token on every request and passed
explicitly into the services; nothing here keeps session state.
"""

import logging
from typing import Callable

from fastapi import Depends

from ...auth import get_current_actor
from ...core.enums import RoleName
from ...core.exceptions import NotAuthorizedException
from ...principal import Actor

logger = logging.getLogger(__name__)


def require_role(*roles: RoleName) -> Callable[..., Actor]:
    """
    Build a dependency that only lets the given roles through.

    Usage:
        @router.post("/", dependencies=[Depends(require_role(RoleName.GUIDE))])
    """

    def dependency(actor: Actor = Depends(get_current_actor)) -> Actor:
        if actor.role not in roles:
            logger.warning(
                "Role check failed",
                extra={"actor_id": actor.id, "role": actor.role.value},
            )
            raise NotAuthorizedException().to_http_exception()
        return actor

    return dependency


__all__ = ["get_current_actor", "require_role"]
