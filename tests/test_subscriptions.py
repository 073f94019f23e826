import pytest

from pickup_coordinator.errors import SubscriptionFailure
from pickup_coordinator.services.subscriptions import Row, SubscriptionRegistry

ROWS: list[Row] = [
    {"id": "rec-1", "teacher_status": "PENDING"},
    {"id": "rec-2", "teacher_status": "READY"},
]


def _load() -> list[Row]:
    return [dict(row) for row in ROWS]


def _fail() -> list[Row]:
    raise ConnectionError("offline")


def test_collection_listener_receives_initial_snapshot() -> None:
    registry = SubscriptionRegistry()
    received: list[list[Row]] = []

    registry.add_collection(received.append, pytest.fail, _load)

    assert received == [ROWS]
    assert registry.active_count == 1


def test_document_listener_receives_its_row_or_none() -> None:
    registry = SubscriptionRegistry()
    found: list[Row | None] = []
    missing: list[Row | None] = []

    registry.add_document("rec-2", found.append, pytest.fail, _load)
    registry.add_document("rec-9", missing.append, pytest.fail, _load)

    assert found == [ROWS[1]]
    assert missing == [None]


def test_refresh_reads_once_for_all_listeners() -> None:
    registry = SubscriptionRegistry()
    reads = 0

    def counting_load() -> list[Row]:
        nonlocal reads
        reads += 1
        return _load()

    seen: list[object] = []
    registry.add_collection(seen.append, pytest.fail, _load)
    registry.add_document("rec-1", seen.append, pytest.fail, _load)
    seen.clear()

    registry.refresh(counting_load)

    assert reads == 1
    assert seen == [ROWS, ROWS[0]]


def test_refresh_without_listeners_skips_read() -> None:
    registry = SubscriptionRegistry()

    registry.refresh(_fail)

    assert registry.active_count == 0


def test_read_failure_is_delivered_to_error_callbacks() -> None:
    registry = SubscriptionRegistry()
    errors: list[Exception] = []

    registry.add_collection(pytest.fail, errors.append, _fail)
    registry.refresh(_fail)

    assert len(errors) == 2
    assert all(isinstance(error, SubscriptionFailure) for error in errors)
    assert isinstance(errors[0].__cause__, ConnectionError)


def test_unsubscribe_is_idempotent() -> None:
    registry = SubscriptionRegistry()
    received: list[list[Row]] = []
    unsubscribe = registry.add_collection(received.append, pytest.fail, _load)

    unsubscribe()
    unsubscribe()
    registry.refresh(_load)

    assert registry.active_count == 0
    assert received == [ROWS]


def test_failing_listener_does_not_block_others() -> None:
    registry = SubscriptionRegistry()
    received: list[list[Row]] = []

    def broken(_rows: list[Row]) -> None:
        raise RuntimeError("socket closed")

    registry.add_collection(broken, pytest.fail, _load)
    registry.add_collection(received.append, pytest.fail, _load)

    registry.refresh(_load)

    assert received == [ROWS, ROWS]
    assert registry.active_count == 2
