"""Supabase-backed pickup record store."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from supabase import Client

from pickup_coordinator.domain.pickups import resolve_write
from pickup_coordinator.services.pickups import RecordStoreGateway
from pickup_coordinator.services.subscriptions import (
    CollectionCallback,
    DocumentCallback,
    ErrorCallback,
    Row,
    SubscriptionRegistry,
    Unsubscribe,
)

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class SupabasePickupStore(RecordStoreGateway):
    """Supabase implementation of the pickup record gateway.

    Snapshots are fanned out from this process: every successful write, and
    every ``refresh()``, re-reads the table and delivers it to all open
    subscriptions.
    """

    client: Client
    table: str = "pickups"
    registry: SubscriptionRegistry = field(default_factory=SubscriptionRegistry)
    clock: Callable[[], datetime] = _utc_now

    def subscribe_collection(
        self, on_snapshot: CollectionCallback, on_error: ErrorCallback
    ) -> Unsubscribe:
        """Subscribe to every pickup row."""
        return self.registry.add_collection(on_snapshot, on_error, self.list_rows)

    def subscribe_document(
        self, record_id: str, on_snapshot: DocumentCallback, on_error: ErrorCallback
    ) -> Unsubscribe:
        """Subscribe to a single pickup row."""
        return self.registry.add_document(
            record_id, on_snapshot, on_error, self.list_rows
        )

    def create_document(self, fields: dict[str, object]) -> str:
        """Insert a pickup row and return its id."""
        plain, once = resolve_write(fields, self._server_time())
        response = self.client.table(self.table).insert({**plain, **once}).execute()
        if not response.data:
            raise RuntimeError("Failed to create pickup")
        record_id = str(response.data[0]["id"])
        self.refresh()
        return record_id

    def merge_update(self, record_id: str, fields: dict[str, object]) -> None:
        """Update only the given columns of a pickup row.

        This is not atomic. Set-once columns are written before the plain
        columns, so when the second update fails the row keeps its old status
        and a retry leaves the already stamped set-once value untouched.
        """
        plain, once = resolve_write(fields, self._server_time())
        for column, value in once.items():
            (
                self.client.table(self.table)
                .update({column: value})
                .eq("id", record_id)
                .is_(column, "null")
                .execute()
            )
        if plain:
            self.client.table(self.table).update(plain).eq("id", record_id).execute()
        self.refresh()

    def list_rows(self) -> list[Row]:
        """Return every pickup row."""
        response = self.client.table(self.table).select("*").execute()
        return list(response.data or [])

    def refresh(self) -> None:
        """Re-read the table and deliver snapshots to open subscriptions."""
        self.registry.refresh(self.list_rows)

    def _server_time(self) -> str:
        return self.clock().isoformat()
