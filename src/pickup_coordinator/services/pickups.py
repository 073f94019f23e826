"""Pickup record state machine: parent submission and teacher actions."""

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from pickup_coordinator.domain.identity import Identity
from pickup_coordinator.domain.pickups import (
    MarkDelivered,
    MarkProcessing,
    MarkReady,
    MarkSeen,
    ParentStatus,
    PickupSubmission,
    Reply,
    TeacherAction,
    action_fields,
    build_submission_fields,
)
from pickup_coordinator.errors import ValidationError, WriteFailure
from pickup_coordinator.services.subscriptions import (
    CollectionCallback,
    DocumentCallback,
    ErrorCallback,
    Unsubscribe,
)

logger = logging.getLogger(__name__)


class RecordStoreGateway(Protocol):
    """Real-time document collection holding pickup records."""

    def subscribe_collection(
        self, on_snapshot: CollectionCallback, on_error: ErrorCallback
    ) -> Unsubscribe:
        """Listen to every record; the current snapshot arrives first."""

    def subscribe_document(
        self, record_id: str, on_snapshot: DocumentCallback, on_error: ErrorCallback
    ) -> Unsubscribe:
        """Listen to one record; None is delivered while it does not exist."""

    def create_document(self, fields: dict[str, object]) -> str:
        """Create a record and return its store-assigned id."""

    def merge_update(self, record_id: str, fields: dict[str, object]) -> None:
        """Shallow-merge fields into a record, leaving other fields untouched."""


@dataclass
class PickupService:
    """Writes pickup records on behalf of parents and teachers.

    Every operation is a single fire-and-forget write. Nothing is read back
    first, so concurrent writers resolve last-write-wins per field; only
    ``student_ready_at`` is protected, by the store's set-once handling.
    """

    gateway: RecordStoreGateway
    session_id_factory: Callable[[], str] = field(default=lambda: str(uuid.uuid4()))

    def submit(  # noqa: PLR0913
        self,
        parent_name: str,
        student_names: str,
        pickup_helper: str = "",
        status: ParentStatus = ParentStatus.ARRIVED,
        eta: str | None = None,
        message: str = "",
    ) -> str | None:
        """Create a pickup record and return its id, or None when invalid."""
        submission = PickupSubmission(
            parent_name=parent_name,
            student_names=student_names,
            status=status,
            pickup_helper=pickup_helper,
            eta=eta,
            message=message,
        )
        try:
            fields = build_submission_fields(submission, self.session_id_factory())
        except ValidationError as exc:
            logger.info("Ignoring pickup submission: %s", exc)
            return None
        try:
            record_id = self.gateway.create_document(fields)
        except Exception as exc:
            logger.exception(
                "Failed to submit pickup request",
                extra={"pickup_status": submission.status.value},
            )
            raise WriteFailure("Submission failed") from exc
        logger.info("Pickup request created", extra={"record_id": record_id})
        return record_id

    def apply(
        self, record_id: str, action: TeacherAction, identity: Identity
    ) -> bool:
        """Apply a teacher action; return False when it was a no-op."""
        try:
            fields = action_fields(action, identity)
        except ValidationError as exc:
            logger.info("Ignoring teacher action: %s", exc)
            return False
        try:
            self.gateway.merge_update(record_id, fields)
        except Exception as exc:
            logger.exception(
                "Failed to update pickup",
                extra={"record_id": record_id, "teacher_status": action.target},
            )
            raise WriteFailure("Failed to update notification status") from exc
        return True

    def mark_seen(self, record_id: str, identity: Identity) -> bool:
        return self.apply(record_id, MarkSeen(), identity)

    def mark_processing(self, record_id: str, identity: Identity) -> bool:
        return self.apply(record_id, MarkProcessing(), identity)

    def mark_ready(self, record_id: str, identity: Identity) -> bool:
        return self.apply(record_id, MarkReady(), identity)

    def mark_delivered(self, record_id: str, identity: Identity) -> bool:
        return self.apply(record_id, MarkDelivered(), identity)

    def reply_with_message(
        self, record_id: str, text: str, identity: Identity
    ) -> bool:
        """Send a teacher reply; blank text writes nothing."""
        return self.apply(record_id, Reply(text), identity)
