"""Shared FastAPI dependencies: container, client id, teacher guard."""

from datetime import UTC, tzinfo
from uuid import uuid4
from zoneinfo import ZoneInfo

from fastapi import Depends, Header, HTTPException, Request, Response, WebSocket, status

from pickup_coordinator.containers import AppContainer
from pickup_coordinator.domain.identity import Identity

CLIENT_COOKIE = "pickup_client"
CLIENT_HEADER = "x-client-id"


def get_container(request: Request) -> AppContainer:
    return request.app.state.container


def get_client_id(
    request: Request,
    response: Response,
    x_client_id: str | None = Header(default=None),
) -> str:
    """Return the caller's client id, issuing a cookie for new clients."""
    client_id = x_client_id or request.cookies.get(CLIENT_COOKIE)
    if client_id:
        return client_id
    client_id = str(uuid4())
    response.set_cookie(CLIENT_COOKIE, client_id, httponly=True, samesite="lax")
    return client_id


def websocket_client_id(websocket: WebSocket) -> str | None:
    return websocket.headers.get(CLIENT_HEADER) or websocket.cookies.get(CLIENT_COOKIE)


async def require_teacher(
    client_id: str = Depends(get_client_id),
    container: AppContainer = Depends(get_container),
) -> str:
    """Ensure the client holds the teacher flag."""
    if not container.session_service.load(client_id).is_teacher:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    return client_id


def get_identity(
    client_id: str = Depends(require_teacher),
    container: AppContainer = Depends(get_container),
    authorization: str | None = Header(default=None),
) -> Identity:
    """Resolve the acting teacher from an optional bearer token."""
    token = None
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization[len("bearer ") :].strip() or None
    return container.identity_provider.resolve(client_id, token)


def display_timezone(container: AppContainer) -> tzinfo:
    name = container.settings.display_timezone
    if name.upper() == "UTC":
        return UTC
    return ZoneInfo(name)
