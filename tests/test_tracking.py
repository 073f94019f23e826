from datetime import UTC, datetime

from pickup_coordinator.domain.identity import Identity
from pickup_coordinator.domain.pickups import ServerTime
from pickup_coordinator.services.pickups import PickupService
from pickup_coordinator.services.tracking import ParentTrackingView
from tests.conftest import InMemoryPickupStore

TEACHER = Identity(id="teacher-uid", label="Teacher")


class ResetCounter:
    def __init__(self) -> None:
        self.calls = 0

    def __call__(self) -> None:
        self.calls += 1


def _submitted(store: InMemoryPickupStore) -> tuple[PickupService, str]:
    service = PickupService(store)
    record_id = service.submit(parent_name="Dana", student_names="Jason")
    assert record_id is not None
    return service, record_id


def test_tracking_view_follows_teacher_status() -> None:
    store = InMemoryPickupStore()
    service, record_id = _submitted(store)
    on_reset = ResetCounter()
    view = ParentTrackingView(store, record_id, on_reset=on_reset)

    view.open()

    assert view.loading is False
    assert view.record is not None
    assert view.is_ready is False
    assert view.ready_time() is None

    service.mark_ready(record_id, TEACHER)

    assert view.is_ready is True
    assert view.ready_time() == view.record.student_ready_at
    assert isinstance(view.ready_time(), ServerTime)
    assert view.can_start_new_submission is False

    service.mark_delivered(record_id, TEACHER)

    assert view.is_delivered is True
    assert view.can_start_new_submission is True
    assert on_reset.calls == 0


def test_ready_time_falls_back_to_now_when_unset() -> None:
    store = InMemoryPickupStore()
    record_id = store.add_row(id="rec-1", teacher_status="READY")
    view = ParentTrackingView(store, record_id, on_reset=ResetCounter())
    view.open()
    now = datetime(2024, 9, 2, 15, 45, tzinfo=UTC)

    assert view.ready_time(now) == ServerTime(now)


def test_deleted_record_resets_exactly_once() -> None:
    store = InMemoryPickupStore()
    _, record_id = _submitted(store)
    on_reset = ResetCounter()
    changes: list[ParentTrackingView] = []
    view = ParentTrackingView(
        store, record_id, on_reset=on_reset, on_change=changes.append
    )
    view.open()

    store.delete(record_id)
    store.refresh()
    store.refresh()

    assert on_reset.calls == 1
    assert view.has_reset is True
    assert view.record is None
    assert view.loading is False
    assert not changes[-1].is_ready
    assert store.registry.active_count == 0


def test_missing_record_on_open_resets_and_unsubscribes() -> None:
    store = InMemoryPickupStore()
    on_reset = ResetCounter()
    view = ParentTrackingView(store, "purged-record", on_reset=on_reset)

    view.open()
    view.open()

    assert on_reset.calls == 1
    assert view.has_reset is True
    assert store.registry.active_count == 0


def test_read_error_keeps_loading_without_reset() -> None:
    store = InMemoryPickupStore()
    _, record_id = _submitted(store)
    on_reset = ResetCounter()
    view = ParentTrackingView(store, record_id, on_reset=on_reset)
    view.open()

    store.fail_reads = True
    store.refresh()

    assert view.loading is True
    assert on_reset.calls == 0
    assert view.has_reset is False

    store.fail_reads = False
    store.refresh()

    assert view.loading is False
    assert view.record is not None


def test_start_new_submission_clears_tracking() -> None:
    store = InMemoryPickupStore()
    service, record_id = _submitted(store)
    on_reset = ResetCounter()
    view = ParentTrackingView(store, record_id, on_reset=on_reset)
    view.open()
    service.mark_delivered(record_id, TEACHER)

    view.start_new_submission()
    view.start_new_submission()

    assert on_reset.calls == 1
    assert view.record is None
    assert store.registry.active_count == 0
    assert record_id in store.rows
