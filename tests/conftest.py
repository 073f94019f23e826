"""Shared test fixtures."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from pickup_coordinator.config import Settings
from pickup_coordinator.containers import AppContainer
from pickup_coordinator.domain.pickups import resolve_write
from pickup_coordinator.services.identity import AnonymousIdentityProvider
from pickup_coordinator.services.key_value import InMemoryKeyValueStore
from pickup_coordinator.services.pickups import PickupService, RecordStoreGateway
from pickup_coordinator.services.sessions import SessionService
from pickup_coordinator.services.subscriptions import (
    CollectionCallback,
    DocumentCallback,
    ErrorCallback,
    Row,
    SubscriptionRegistry,
    Unsubscribe,
)

FAKE_SERVICE_KEY = (
    "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9."
    "eyJyb2xlIjoic2VydmljZV9yb2xlIn0."
    "c2lnbmF0dXJlLWZvci10ZXN0cw"
)


@dataclass
class FakeClock:
    """Clock that advances one second per reading."""

    current: datetime = field(
        default_factory=lambda: datetime(2024, 9, 2, 15, 0, tzinfo=UTC)
    )

    def __call__(self) -> datetime:
        value = self.current
        self.current = value + timedelta(seconds=1)
        return value


@dataclass
class InMemoryPickupStore(RecordStoreGateway):
    """In-memory pickup store for tests."""

    rows: dict[str, Row] = field(default_factory=dict)
    registry: SubscriptionRegistry = field(default_factory=SubscriptionRegistry)
    clock: Callable[[], datetime] = field(default_factory=FakeClock)
    writes: list[tuple[str, dict[str, object]]] = field(default_factory=list)
    fail_writes: bool = False
    fail_reads: bool = False

    def subscribe_collection(
        self, on_snapshot: CollectionCallback, on_error: ErrorCallback
    ) -> Unsubscribe:
        return self.registry.add_collection(on_snapshot, on_error, self.list_rows)

    def subscribe_document(
        self, record_id: str, on_snapshot: DocumentCallback, on_error: ErrorCallback
    ) -> Unsubscribe:
        return self.registry.add_document(
            record_id, on_snapshot, on_error, self.list_rows
        )

    def create_document(self, fields: dict[str, object]) -> str:
        if self.fail_writes:
            raise ConnectionError("store unavailable")
        record_id = uuid4().hex
        self.writes.append((record_id, dict(fields)))
        plain, once = resolve_write(fields, self.clock())
        self.rows[record_id] = {"id": record_id, **plain, **once}
        self.refresh()
        return record_id

    def merge_update(self, record_id: str, fields: dict[str, object]) -> None:
        if self.fail_writes:
            raise ConnectionError("store unavailable")
        self.writes.append((record_id, dict(fields)))
        plain, once = resolve_write(fields, self.clock())
        row = self.rows.setdefault(record_id, {"id": record_id})
        row.update(plain)
        for key, value in once.items():
            if row.get(key) is None:
                row[key] = value
        self.refresh()

    def delete(self, record_id: str) -> None:
        self.rows.pop(record_id, None)
        self.refresh()

    def list_rows(self) -> list[Row]:
        if self.fail_reads:
            raise ConnectionError("store unavailable")
        return [dict(row) for row in self.rows.values()]

    def refresh(self) -> None:
        self.registry.refresh(self.list_rows)

    def add_row(self, **row: object) -> str:
        """Seed a row directly, bypassing the write log."""
        record_id = str(row.setdefault("id", uuid4().hex))
        self.rows[record_id] = dict(row)
        return record_id


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key=FAKE_SERVICE_KEY,
        teacher_access_code="1429",
        session_backend="memory",
        refresh_interval_seconds=0,
    )


@pytest.fixture
def pickup_store() -> InMemoryPickupStore:
    return InMemoryPickupStore()


@pytest.fixture
def key_value_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def container(
    settings: Settings,
    pickup_store: InMemoryPickupStore,
    key_value_store: InMemoryKeyValueStore,
) -> AppContainer:
    return AppContainer(
        settings=settings,
        record_store=pickup_store,
        identity_provider=AnonymousIdentityProvider(),
        pickup_service=PickupService(pickup_store),
        session_service=SessionService(
            store=key_value_store,
            access_code=settings.teacher_access_code,
        ),
        refresh_snapshots=pickup_store.refresh,
    )
