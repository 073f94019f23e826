"""Tests for session persistence and role routing."""

from pickup_coordinator.domain import sessions
from pickup_coordinator.domain.sessions import Role, SessionState, View
from pickup_coordinator.services.key_value import InMemoryKeyValueStore
from pickup_coordinator.services.sessions import SessionService

ACCESS_CODE = "1429"


def _service(store: InMemoryKeyValueStore) -> SessionService:
    return SessionService(store=store, access_code=ACCESS_CODE)


def test_route_prefers_teacher_then_tracked_record() -> None:
    assert sessions.route(SessionState()) == View.SUBMISSION_FORM
    assert (
        sessions.route(SessionState(tracked_record_id="rec-1"))
        == View.PARENT_TRACKING
    )
    assert (
        sessions.route(SessionState(role=Role.TEACHER, tracked_record_id="rec-1"))
        == View.TEACHER_DASHBOARD
    )


def test_login_requires_exact_access_code() -> None:
    state = SessionState()

    for attempt in ("", "1428", " 1429", "1429 "):
        rejected, ok = sessions.login(state, attempt, ACCESS_CODE)
        assert ok is False
        assert rejected is state

    accepted, ok = sessions.login(state, ACCESS_CODE, ACCESS_CODE)
    assert ok is True
    assert accepted.is_teacher


def test_login_persists_teacher_flag() -> None:
    store = InMemoryKeyValueStore()
    service = _service(store)

    assert service.login("client-a", "0000") is False
    assert store.get("client-a:teacher_login") is None

    assert service.login("client-a", ACCESS_CODE) is True
    assert store.get("client-a:teacher_login") == "true"
    assert service.current_view("client-a") == View.TEACHER_DASHBOARD
    assert service.current_view("client-b") == View.SUBMISSION_FORM


def test_submission_is_tracked_until_reset() -> None:
    store = InMemoryKeyValueStore()
    service = _service(store)

    state = service.record_submission("client-a", "rec-1")

    assert state.tracked_record_id == "rec-1"
    assert store.get("client-a:pickup_doc_id") == "rec-1"
    assert service.current_view("client-a") == View.PARENT_TRACKING

    state = service.reset("client-a")

    assert state.tracked_record_id is None
    assert store.get("client-a:pickup_doc_id") is None
    assert service.current_view("client-a") == View.SUBMISSION_FORM


def test_logout_keeps_tracked_record() -> None:
    store = InMemoryKeyValueStore()
    service = _service(store)
    service.record_submission("client-a", "rec-1")
    service.login("client-a", ACCESS_CODE)

    state = service.logout("client-a")

    assert state.role == Role.GUEST
    assert state.tracked_record_id == "rec-1"
    assert store.get("client-a:teacher_login") is None
    assert service.current_view("client-a") == View.PARENT_TRACKING


def test_reset_keeps_teacher_flag() -> None:
    store = InMemoryKeyValueStore()
    service = _service(store)
    service.login("client-a", ACCESS_CODE)
    service.record_submission("client-a", "rec-1")

    state = service.reset("client-a")

    assert state.is_teacher
    assert store.get("client-a:teacher_login") == "true"
