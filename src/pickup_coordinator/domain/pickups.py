"""Domain model for pickup records and the teacher action set."""

from dataclasses import dataclass
from datetime import UTC, datetime, tzinfo
from enum import StrEnum
from typing import ClassVar

from pickup_coordinator.domain.identity import Identity
from pickup_coordinator.errors import ValidationError


class ParentStatus(StrEnum):
    """Situational status a parent reports once, at submission."""

    ARRIVED = "ARRIVED"
    FIVE_MINS = "5_MINS"
    READY = "READY"
    ABSENT = "ABSENT"
    PARK_TEACHER = "PARK_TEACHER"
    PARK_PARENT = "PARK_PARENT"
    MESSAGE = "MESSAGE"


class TeacherStatus(StrEnum):
    """Processing stage of a record, owned by the teacher role."""

    PENDING = "PENDING"
    SEEN = "SEEN"
    PROCESSING = "PROCESSING"
    READY = "READY"
    DELIVERED = "DELIVERED"


PARENT_STATUS_LABELS: dict[ParentStatus, str] = {
    ParentStatus.ARRIVED: "I have arrived (in the car)",
    ParentStatus.FIVE_MINS: "Arriving in 5-10 minutes",
    ParentStatus.READY: "Student is ready to come out!",
    ParentStatus.ABSENT: "Absent today/Activity cancelled",
    ParentStatus.PARK_TEACHER: "Park Pickup - Please bring student out",
    ParentStatus.PARK_PARENT: "Park Pickup - Parent will pick up at park",
    ParentStatus.MESSAGE: "Message only for teacher",
}

PARK_PICKUP_DETAILS: dict[ParentStatus, str] = {
    ParentStatus.PARK_TEACHER: "Teacher brings out",
    ParentStatus.PARK_PARENT: "Parent picks up at park",
}

TEACHER_STATUS_LABELS: dict[TeacherStatus, str] = {
    TeacherStatus.PENDING: "Pending",
    TeacherStatus.SEEN: "Seen",
    TeacherStatus.PROCESSING: "Processing",
    TeacherStatus.READY: "Ready",
    TeacherStatus.DELIVERED: "Delivered",
}

# Urgency order, not pipeline order: SEEN sorts after READY.
TEACHER_STATUS_RANK: dict[TeacherStatus, int] = {
    TeacherStatus.PENDING: 0,
    TeacherStatus.PROCESSING: 1,
    TeacherStatus.READY: 2,
    TeacherStatus.SEEN: 3,
    TeacherStatus.DELIVERED: 4,
}

ETA_OPTIONS = ("5-10 minutes", "10-15 minutes", "15+ minutes")
DEFAULT_ETA = ETA_OPTIONS[0]
ARRIVED_ETA = "Arrived"
SHORT_SESSION_ID_LENGTH = 8


@dataclass(frozen=True)
class ServerTime:
    """Timestamp committed by the record store."""

    value: datetime


class PendingTime:
    """Marker for a server timestamp the store has not committed yet."""

    def __repr__(self) -> str:
        return "PENDING_TIME"


PENDING_TIME = PendingTime()

Timestamp = ServerTime | PendingTime


class ServerTimestamp:
    """Write sentinel replaced by the record store's clock."""

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = ServerTimestamp()


@dataclass(frozen=True)
class SetOnce:
    """Write wrapper for a field the store must only fill while it is unset."""

    value: object


def coerce_timestamp(raw: object) -> Timestamp:
    """Convert a stored timestamp value into a typed timestamp."""
    if isinstance(raw, ServerTime | PendingTime):
        return raw
    if isinstance(raw, datetime):
        return ServerTime(raw if raw.tzinfo else raw.replace(tzinfo=UTC))
    if isinstance(raw, int | float) and not isinstance(raw, bool):
        return ServerTime(datetime.fromtimestamp(raw, tz=UTC))
    if isinstance(raw, str) and raw.strip():
        try:
            parsed = datetime.fromisoformat(raw.strip())
        except ValueError:
            return PENDING_TIME
        return ServerTime(parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC))
    return PENDING_TIME


def resolve_time(timestamp: Timestamp, fallback: datetime) -> datetime:
    """Return the committed time, or the fallback for a pending timestamp."""
    if isinstance(timestamp, ServerTime):
        return timestamp.value
    return fallback


def format_clock(timestamp: Timestamp, tz: tzinfo | None = None) -> str:
    """Format a timestamp as 24-hour HH:MM:SS, or N/A while pending."""
    if not isinstance(timestamp, ServerTime):
        return "N/A"
    value = timestamp.value.astimezone(tz) if tz else timestamp.value
    return value.strftime("%H:%M:%S")


def resolve_write(
    fields: dict[str, object], server_time: object
) -> tuple[dict[str, object], dict[str, object]]:
    """Apply the store clock to sentinels and split off set-once fields."""
    plain: dict[str, object] = {}
    once: dict[str, object] = {}
    for key, value in fields.items():
        if isinstance(value, SetOnce):
            inner = value.value
            once[key] = server_time if isinstance(inner, ServerTimestamp) else inner
        elif isinstance(value, ServerTimestamp):
            plain[key] = server_time
        else:
            plain[key] = value
    return plain, once


@dataclass(frozen=True)
class PickupRecord:
    """One parent pickup submission and its processing state."""

    id: str
    parent_name: str
    student_names: str
    pickup_helper: str
    status: ParentStatus | str
    eta: str
    message: str
    parent_session_id: str
    teacher_status: TeacherStatus
    teacher_message: str | None
    teacher_id: str | None
    teacher_name: str | None
    created_at: Timestamp
    last_update_at: Timestamp
    student_ready_at: Timestamp

    @property
    def rank(self) -> int:
        return TEACHER_STATUS_RANK[self.teacher_status]

    @property
    def is_ready(self) -> bool:
        return self.teacher_status == TeacherStatus.READY

    @property
    def is_delivered(self) -> bool:
        return self.teacher_status == TeacherStatus.DELIVERED

    @property
    def short_session_id(self) -> str:
        return self.parent_session_id[:SHORT_SESSION_ID_LENGTH]

    @property
    def status_label(self) -> str:
        if isinstance(self.status, ParentStatus):
            return PARENT_STATUS_LABELS[self.status]
        return str(self.status)

    @property
    def teacher_status_label(self) -> str:
        return TEACHER_STATUS_LABELS[self.teacher_status]

    @property
    def park_detail(self) -> str | None:
        if isinstance(self.status, ParentStatus):
            return PARK_PICKUP_DETAILS.get(self.status)
        return None


def record_from_row(row: dict[str, object]) -> PickupRecord:
    """Materialize a stored row into a pickup record."""
    raw_status = str(row.get("status") or "")
    try:
        status: ParentStatus | str = ParentStatus(raw_status)
    except ValueError:
        status = raw_status
    try:
        teacher_status = TeacherStatus(str(row.get("teacher_status") or ""))
    except ValueError:
        teacher_status = TeacherStatus.PENDING
    return PickupRecord(
        id=str(row["id"]),
        parent_name=str(row.get("parent_name") or ""),
        student_names=str(row.get("student_names") or ""),
        pickup_helper=str(row.get("pickup_helper") or ""),
        status=status,
        eta=str(row.get("eta") or ""),
        message=str(row.get("message") or ""),
        parent_session_id=str(row.get("parent_session_id") or ""),
        teacher_status=teacher_status,
        teacher_message=_optional_text(row.get("teacher_message")),
        teacher_id=_optional_text(row.get("teacher_id")),
        teacher_name=_optional_text(row.get("teacher_name")),
        created_at=coerce_timestamp(row.get("created_at")),
        last_update_at=coerce_timestamp(row.get("last_update_at")),
        student_ready_at=coerce_timestamp(row.get("student_ready_at")),
    )


def compute_eta(status: ParentStatus, eta: str | None) -> str:
    """Derive the stored ETA from the parent status."""
    if status == ParentStatus.ARRIVED:
        return ARRIVED_ETA
    if status == ParentStatus.FIVE_MINS:
        chosen = (eta or "").strip()
        return chosen or DEFAULT_ETA
    return ""


@dataclass(frozen=True)
class PickupSubmission:
    """Parent-supplied fields for a new pickup record."""

    parent_name: str
    student_names: str
    status: ParentStatus = ParentStatus.ARRIVED
    pickup_helper: str = ""
    eta: str | None = None
    message: str = ""


def build_submission_fields(
    submission: PickupSubmission, parent_session_id: str
) -> dict[str, object]:
    """Return the creation write for a submission."""
    parent_name = submission.parent_name.strip()
    student_names = submission.student_names.strip()
    if not parent_name or not student_names:
        raise ValidationError("Parent name and student names are required")
    return {
        "parent_name": parent_name,
        "student_names": student_names,
        "status": submission.status.value,
        "eta": compute_eta(submission.status, submission.eta),
        "pickup_helper": submission.pickup_helper.strip(),
        "message": submission.message.strip(),
        "parent_session_id": parent_session_id,
        "teacher_status": TeacherStatus.PENDING.value,
        "created_at": SERVER_TIMESTAMP,
        "last_update_at": SERVER_TIMESTAMP,
    }


# Teacher actions are unconditional "set" writes. No action checks the
# record's current teacher status, so any stage can be set from any other.


@dataclass(frozen=True)
class MarkSeen:
    target: ClassVar[TeacherStatus] = TeacherStatus.SEEN


@dataclass(frozen=True)
class MarkProcessing:
    target: ClassVar[TeacherStatus] = TeacherStatus.PROCESSING


@dataclass(frozen=True)
class MarkReady:
    target: ClassVar[TeacherStatus] = TeacherStatus.READY


@dataclass(frozen=True)
class MarkDelivered:
    target: ClassVar[TeacherStatus] = TeacherStatus.DELIVERED


@dataclass(frozen=True)
class Reply:
    text: str

    target: ClassVar[TeacherStatus] = TeacherStatus.PROCESSING


TeacherAction = MarkSeen | MarkProcessing | MarkReady | MarkDelivered | Reply


def action_fields(action: TeacherAction, identity: Identity) -> dict[str, object]:
    """Return the merge write a teacher action performs."""
    if isinstance(action, Reply):
        text = action.text.strip()
        if not text:
            raise ValidationError("Reply text is required")
        return {
            "teacher_message": text,
            "teacher_status": action.target.value,
            "last_update_at": SERVER_TIMESTAMP,
        }
    fields: dict[str, object] = {
        "teacher_status": action.target.value,
        "teacher_id": identity.id,
        "teacher_name": identity.label,
        "last_update_at": SERVER_TIMESTAMP,
    }
    if isinstance(action, MarkReady):
        fields["student_ready_at"] = SetOnce(SERVER_TIMESTAMP)
    return fields


def _optional_text(value: object) -> str | None:
    if value is None:
        return None
    return str(value)
