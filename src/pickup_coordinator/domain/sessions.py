"""Client session state and role routing."""

from dataclasses import dataclass, replace
from enum import StrEnum


class Role(StrEnum):
    """Role a client acts in."""

    GUEST = "GUEST"
    TEACHER = "TEACHER"


class View(StrEnum):
    """Top-level view a client should show."""

    TEACHER_DASHBOARD = "teacher_dashboard"
    PARENT_TRACKING = "parent_tracking"
    SUBMISSION_FORM = "submission_form"


@dataclass(frozen=True)
class SessionState:
    """Durable per-client facts: teacher flag and tracked record id."""

    role: Role = Role.GUEST
    tracked_record_id: str | None = None

    @property
    def is_teacher(self) -> bool:
        return self.role == Role.TEACHER


def login(
    state: SessionState, access_code: str, secret: str
) -> tuple[SessionState, bool]:
    """Return the state after a login attempt and whether it succeeded."""
    if access_code != secret:
        return state, False
    return replace(state, role=Role.TEACHER), True


def logout(state: SessionState) -> SessionState:
    return replace(state, role=Role.GUEST)


def record_submission(state: SessionState, record_id: str) -> SessionState:
    return replace(state, tracked_record_id=record_id)


def reset(state: SessionState) -> SessionState:
    return replace(state, tracked_record_id=None)


def route(state: SessionState) -> View:
    """Pick the view for a session: teacher first, then tracked record."""
    if state.is_teacher:
        return View.TEACHER_DASHBOARD
    if state.tracked_record_id:
        return View.PARENT_TRACKING
    return View.SUBMISSION_FORM
