"""Teacher dashboard projection of the pickup collection."""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from pickup_coordinator.domain.pickups import (
    PickupRecord,
    record_from_row,
    resolve_time,
)
from pickup_coordinator.services.pickups import RecordStoreGateway
from pickup_coordinator.services.subscriptions import Row, Unsubscribe

logger = logging.getLogger(__name__)

DEFAULT_COMPLETED_LIMIT = 5


@dataclass(frozen=True)
class DashboardSnapshot:
    """Ordered, partitioned view of all pickups."""

    active: list[PickupRecord]
    completed: list[PickupRecord]
    completed_overflow: int
    loading: bool = False
    degraded: bool = False

    @classmethod
    def empty(
        cls, *, loading: bool = False, degraded: bool = False
    ) -> "DashboardSnapshot":
        return cls(
            active=[],
            completed=[],
            completed_overflow=0,
            loading=loading,
            degraded=degraded,
        )


def order_pickups(
    records: Iterable[PickupRecord], now: datetime | None = None
) -> list[PickupRecord]:
    """Sort by teacher status rank, then newest created_at first."""
    fallback = now or datetime.now(tz=UTC)
    by_newest = sorted(
        records,
        key=lambda record: resolve_time(record.created_at, fallback),
        reverse=True,
    )
    return sorted(by_newest, key=lambda record: record.rank)


def partition_pickups(
    records: Iterable[PickupRecord],
    completed_limit: int = DEFAULT_COMPLETED_LIMIT,
    now: datetime | None = None,
) -> DashboardSnapshot:
    """Split ordered pickups into active and capped completed lists."""
    ordered = order_pickups(records, now)
    active = [record for record in ordered if not record.is_delivered]
    completed = [record for record in ordered if record.is_delivered]
    shown = completed[:completed_limit]
    return DashboardSnapshot(
        active=active,
        completed=shown,
        completed_overflow=len(completed) - len(shown),
    )


@dataclass
class TeacherDashboardView:
    """Live dashboard that rebuilds its lists on every collection snapshot."""

    gateway: RecordStoreGateway
    completed_limit: int = DEFAULT_COMPLETED_LIMIT
    on_change: Callable[[DashboardSnapshot], None] | None = None
    snapshot: DashboardSnapshot = field(
        default_factory=lambda: DashboardSnapshot.empty(loading=True)
    )
    _unsubscribe: Unsubscribe | None = field(default=None, repr=False)

    @property
    def is_open(self) -> bool:
        return self._unsubscribe is not None

    def open(self) -> None:
        """Start listening; a second call while open does nothing."""
        if self._unsubscribe is not None:
            return
        self._unsubscribe = self.gateway.subscribe_collection(
            self._handle_snapshot, self._handle_error
        )

    def close(self) -> None:
        """Stop listening; safe to call more than once."""
        unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is not None:
            unsubscribe()

    def _handle_snapshot(self, rows: list[Row]) -> None:
        records = [record_from_row(row) for row in rows]
        self._publish(partition_pickups(records, self.completed_limit))

    def _handle_error(self, exc: Exception) -> None:
        logger.error("Error listening to pickups: %s", exc)
        self._publish(DashboardSnapshot.empty(degraded=True))

    def _publish(self, snapshot: DashboardSnapshot) -> None:
        self.snapshot = snapshot
        if self.on_change is not None:
            self.on_change(snapshot)
