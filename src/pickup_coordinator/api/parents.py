"""Parent API endpoints: submission and live tracking."""

from fastapi import APIRouter, Depends, HTTPException, WebSocket, status

from pickup_coordinator.api.dependencies import (
    display_timezone,
    get_client_id,
    get_container,
    websocket_client_id,
)
from pickup_coordinator.api.feeds import SnapshotFeed
from pickup_coordinator.api.schemas import (
    PickupRequest,
    serialize_session,
    serialize_tracking,
)
from pickup_coordinator.containers import AppContainer
from pickup_coordinator.domain.sessions import View
from pickup_coordinator.errors import WriteFailure
from pickup_coordinator.services.tracking import ParentTrackingView

router = APIRouter(tags=["parents"])


@router.post("/pickups", status_code=status.HTTP_201_CREATED)
async def submit_pickup(
    payload: PickupRequest,
    client_id: str = Depends(get_client_id),
    container: AppContainer = Depends(get_container),
) -> dict[str, object]:
    """Create a pickup record and start tracking it for this client."""
    try:
        record_id = container.pickup_service.submit(
            parent_name=payload.parent_name,
            student_names=payload.student_names,
            pickup_helper=payload.pickup_helper,
            status=payload.status,
            eta=payload.eta,
            message=payload.message,
        )
    except WriteFailure as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Submission failed. Please check your connection or try again.",
        ) from exc
    if record_id is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Parent name and student names are required.",
        )
    state = container.session_service.record_submission(client_id, record_id)
    return {"id": record_id, **serialize_session(state)}


@router.get("/pickups/tracked")
async def tracked_pickup(
    client_id: str = Depends(get_client_id),
    container: AppContainer = Depends(get_container),
) -> dict[str, object]:
    """Return the live state of the client's tracked pickup record."""
    record_id = container.session_service.load(client_id).tracked_record_id
    if not record_id:
        return {"view": View.SUBMISSION_FORM.value, "record": None}
    view = ParentTrackingView(
        container.record_store,
        record_id,
        on_reset=lambda: container.session_service.reset(client_id),
    )
    view.open()
    try:
        return serialize_tracking(view, display_timezone(container))
    finally:
        view.close()


@router.websocket("/ws/tracked")
async def tracked_feed(websocket: WebSocket) -> None:
    """Push the tracked record on every change until it disappears."""
    container: AppContainer = websocket.app.state.container
    client_id = websocket_client_id(websocket)
    await websocket.accept()
    record_id = (
        container.session_service.load(client_id).tracked_record_id
        if client_id
        else None
    )
    if not client_id or not record_id:
        await websocket.send_json({"view": View.SUBMISSION_FORM.value, "record": None})
        await websocket.close()
        return
    feed = SnapshotFeed(websocket)
    tz = display_timezone(container)

    def on_change(view: ParentTrackingView) -> None:
        feed.push(serialize_tracking(view, tz))
        if view.has_reset:
            feed.finish()

    view = ParentTrackingView(
        container.record_store,
        record_id,
        on_reset=lambda: container.session_service.reset(client_id),
        on_change=on_change,
    )
    view.open()
    try:
        await feed.run()
    finally:
        view.close()
