"""Parent-side live tracking of one pickup record."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from pickup_coordinator.domain.pickups import (
    PickupRecord,
    ServerTime,
    Timestamp,
    record_from_row,
)
from pickup_coordinator.services.pickups import RecordStoreGateway
from pickup_coordinator.services.subscriptions import Row, Unsubscribe

logger = logging.getLogger(__name__)


@dataclass
class ParentTrackingView:
    """Follows one record and resets the parent session when it disappears.

    A missing record is not an error: archived records may be purged at any
    time, so the parent falls back to the submission form. The reset runs at
    most once per view.
    """

    gateway: RecordStoreGateway
    record_id: str
    on_reset: Callable[[], None]
    on_change: Callable[["ParentTrackingView"], None] | None = None
    record: PickupRecord | None = None
    loading: bool = True
    has_reset: bool = False
    _unsubscribe: Unsubscribe | None = field(default=None, repr=False)

    @property
    def is_ready(self) -> bool:
        return self.record is not None and self.record.is_ready

    @property
    def is_delivered(self) -> bool:
        return self.record is not None and self.record.is_delivered

    @property
    def can_start_new_submission(self) -> bool:
        return self.is_delivered

    def ready_time(self, now: datetime | None = None) -> Timestamp | None:
        """Return when the student was marked ready, falling back to now."""
        if not self.is_ready or self.record is None:
            return None
        if isinstance(self.record.student_ready_at, ServerTime):
            return self.record.student_ready_at
        return ServerTime(now or datetime.now(tz=UTC))

    def open(self) -> None:
        """Start listening to the record."""
        if self._unsubscribe is not None or self.has_reset:
            return
        unsubscribe = self.gateway.subscribe_document(
            self.record_id, self._handle_snapshot, self._handle_error
        )
        if self.has_reset:
            unsubscribe()
            return
        self._unsubscribe = unsubscribe

    def close(self) -> None:
        """Stop listening; safe to call more than once."""
        unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is not None:
            unsubscribe()

    def start_new_submission(self) -> None:
        """Drop the tracked record so the parent can submit again."""
        self._reset()

    def _handle_snapshot(self, row: Row | None) -> None:
        if self.has_reset:
            return
        if row is None:
            logger.info(
                "Tracked pickup record not found",
                extra={"record_id": self.record_id},
            )
            self._reset()
            return
        self.record = record_from_row(row)
        self.loading = False
        self._changed()

    def _handle_error(self, exc: Exception) -> None:
        logger.error(
            "Error listening to parent status: %s",
            exc,
            extra={"record_id": self.record_id},
        )
        self.loading = True
        self._changed()

    def _reset(self) -> None:
        if self.has_reset:
            return
        self.has_reset = True
        self.record = None
        self.loading = False
        self.close()
        self.on_reset()
        self._changed()

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change(self)
