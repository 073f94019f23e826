"""Request models and response serializers for the HTTP API."""

from datetime import tzinfo
from typing import Literal

from pydantic import BaseModel

from pickup_coordinator.domain.pickups import (
    MarkDelivered,
    MarkProcessing,
    MarkReady,
    MarkSeen,
    ParentStatus,
    PickupRecord,
    Reply,
    ServerTime,
    TeacherAction,
    Timestamp,
    format_clock,
)
from pickup_coordinator.domain.sessions import SessionState, View, route
from pickup_coordinator.services.dashboard import DashboardSnapshot
from pickup_coordinator.services.tracking import ParentTrackingView


class LoginRequest(BaseModel):
    """Teacher access code submission."""

    access_code: str


class PickupRequest(BaseModel):
    """Parent pickup submission."""

    parent_name: str
    student_names: str
    status: ParentStatus = ParentStatus.ARRIVED
    pickup_helper: str = ""
    eta: str | None = None
    message: str = ""


class TeacherActionRequest(BaseModel):
    """Teacher action on one pickup record."""

    action: Literal["seen", "processing", "ready", "delivered", "reply"]
    text: str | None = None

    def to_action(self) -> TeacherAction:
        if self.action == "seen":
            return MarkSeen()
        if self.action == "processing":
            return MarkProcessing()
        if self.action == "ready":
            return MarkReady()
        if self.action == "delivered":
            return MarkDelivered()
        return Reply(self.text or "")


def serialize_session(state: SessionState) -> dict[str, object]:
    return {
        "role": state.role.value,
        "tracked_record_id": state.tracked_record_id,
        "view": route(state).value,
    }


def serialize_pickup(
    record: PickupRecord, tz: tzinfo | None = None
) -> dict[str, object]:
    """Return the JSON shape of a pickup record."""
    return {
        "id": record.id,
        "parent_name": record.parent_name,
        "parent_session_id": record.parent_session_id,
        "short_session_id": record.short_session_id,
        "student_names": record.student_names,
        "pickup_helper": record.pickup_helper,
        "status": str(record.status),
        "status_label": record.status_label,
        "park_detail": record.park_detail,
        "eta": record.eta,
        "message": record.message,
        "teacher_status": record.teacher_status.value,
        "teacher_status_label": record.teacher_status_label,
        "teacher_message": record.teacher_message,
        "teacher_id": record.teacher_id,
        "teacher_name": record.teacher_name,
        "created_at": _isoformat(record.created_at),
        "created_at_display": format_clock(record.created_at, tz),
        "last_update_at": _isoformat(record.last_update_at),
        "student_ready_at": _isoformat(record.student_ready_at),
    }


def serialize_dashboard(
    snapshot: DashboardSnapshot, tz: tzinfo | None = None
) -> dict[str, object]:
    return {
        "loading": snapshot.loading,
        "degraded": snapshot.degraded,
        "active": [serialize_pickup(record, tz) for record in snapshot.active],
        "completed": [serialize_pickup(record, tz) for record in snapshot.completed],
        "completed_overflow": snapshot.completed_overflow,
    }


def serialize_tracking(
    view: ParentTrackingView, tz: tzinfo | None = None
) -> dict[str, object]:
    """Return the parent tracking payload, or the form view after a reset."""
    if view.has_reset:
        return {"view": View.SUBMISSION_FORM.value, "record": None}
    ready_time = view.ready_time()
    return {
        "view": View.PARENT_TRACKING.value,
        "loading": view.loading,
        "is_ready": view.is_ready,
        "is_delivered": view.is_delivered,
        "can_start_new_submission": view.can_start_new_submission,
        "ready_time": format_clock(ready_time, tz) if ready_time else None,
        "record": serialize_pickup(view.record, tz) if view.record else None,
    }


def _isoformat(timestamp: Timestamp) -> str | None:
    if isinstance(timestamp, ServerTime):
        return timestamp.value.isoformat()
    return None
