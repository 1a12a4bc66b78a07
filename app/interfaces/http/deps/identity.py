"""Identity dependency providers."""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.container import ApplicationContainer, get_container
from app.core.security import TokenIdentity

# auto_error is off so a missing token surfaces as UnauthenticatedError
# from the service call instead of FastAPI's own 403
bearer_scheme = HTTPBearer(auto_error=False)


def get_app_container() -> ApplicationContainer:
    return get_container()


def get_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    container: ApplicationContainer = Depends(get_app_container),
) -> TokenIdentity:
    token = credentials.credentials if credentials else None
    return TokenIdentity(token, container.session_factory, container.settings)


__all__ = [
    "bearer_scheme",
    "get_app_container",
    "get_identity",
]
