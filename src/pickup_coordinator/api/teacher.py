"""Teacher API endpoints guarded by the shared access code session."""

from fastapi import APIRouter, Depends, HTTPException, WebSocket, status

from pickup_coordinator.api.dependencies import (
    display_timezone,
    get_container,
    get_identity,
    require_teacher,
    websocket_client_id,
)
from pickup_coordinator.api.feeds import SnapshotFeed
from pickup_coordinator.api.schemas import (
    TeacherActionRequest,
    serialize_dashboard,
)
from pickup_coordinator.containers import AppContainer
from pickup_coordinator.domain.identity import Identity
from pickup_coordinator.errors import WriteFailure
from pickup_coordinator.services.dashboard import TeacherDashboardView

router = APIRouter(tags=["teacher"])

WEBSOCKET_UNAUTHORIZED = 4401


@router.get("/teacher/dashboard", dependencies=[Depends(require_teacher)])
async def dashboard(
    container: AppContainer = Depends(get_container),
) -> dict[str, object]:
    """Return the ordered active list and the capped completed list."""
    view = TeacherDashboardView(
        container.record_store,
        completed_limit=container.settings.completed_display_limit,
    )
    view.open()
    try:
        return serialize_dashboard(view.snapshot, display_timezone(container))
    finally:
        view.close()


@router.post("/teacher/pickups/{record_id}/actions")
async def apply_action(
    record_id: str,
    payload: TeacherActionRequest,
    identity: Identity = Depends(get_identity),
    container: AppContainer = Depends(get_container),
) -> dict[str, str]:
    """Apply one teacher action to a pickup record."""
    try:
        applied = container.pickup_service.apply(
            record_id, payload.to_action(), identity
        )
    except WriteFailure as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to update notification status. Please check connection.",
        ) from exc
    if not applied:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Reply text is required.",
        )
    return {"status": "ok"}


@router.websocket("/ws/dashboard")
async def dashboard_feed(websocket: WebSocket) -> None:
    """Push a dashboard payload on every collection snapshot."""
    container: AppContainer = websocket.app.state.container
    client_id = websocket_client_id(websocket)
    if not client_id or not container.session_service.load(client_id).is_teacher:
        await websocket.close(code=WEBSOCKET_UNAUTHORIZED)
        return
    await websocket.accept()
    feed = SnapshotFeed(websocket)
    tz = display_timezone(container)
    view = TeacherDashboardView(
        container.record_store,
        completed_limit=container.settings.completed_display_limit,
        on_change=lambda snapshot: feed.push(serialize_dashboard(snapshot, tz)),
    )
    view.open()
    try:
        await feed.run()
    finally:
        view.close()
