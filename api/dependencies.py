"""
Request-scoped dependencies.

The service container lives on `app.state`; callers are identified by the
Supabase session token in the Authorization header.
"""

from typing import Optional

from fastapi import Depends, Header, Request

from services.auth_service import Actor, bearer_token
from services.container import ServiceContainer


def get_container(request: Request) -> ServiceContainer:
    container = getattr(request.app.state, "container", None)
    if container is None:
        raise RuntimeError("Service container not initialised")
    return container


def optional_actor(
    authorization: Optional[str] = Header(None),
    container: ServiceContainer = Depends(get_container),
) -> Optional[Actor]:
    return container.auth.actor_from_token(bearer_token(authorization))


def require_actor(
    authorization: Optional[str] = Header(None),
    container: ServiceContainer = Depends(get_container),
) -> Actor:
    return container.auth.require_session(bearer_token(authorization))


def require_admin(
    authorization: Optional[str] = Header(None),
    container: ServiceContainer = Depends(get_container),
) -> Actor:
    return container.auth.require_admin(bearer_token(authorization))
