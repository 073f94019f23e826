"""Listener bookkeeping for snapshot subscriptions."""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field

from pickup_coordinator.errors import SubscriptionFailure

logger = logging.getLogger(__name__)

Row = dict[str, object]
RowLoader = Callable[[], list[Row]]
CollectionCallback = Callable[[list[Row]], None]
DocumentCallback = Callable[[Row | None], None]
ErrorCallback = Callable[[Exception], None]
Unsubscribe = Callable[[], None]


@dataclass(eq=False)
class _Listener:
    on_snapshot: Callable[..., None]
    on_error: ErrorCallback
    record_id: str | None = None


@dataclass
class SubscriptionRegistry:
    """Thread-safe registry that fans collection reads out to listeners.

    Every delivery starts from one full read of the collection. Collection
    listeners get all rows; document listeners get their row or None.
    """

    _listeners: list[_Listener] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    @property
    def active_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def add_collection(
        self,
        on_snapshot: CollectionCallback,
        on_error: ErrorCallback,
        load_rows: RowLoader,
    ) -> Unsubscribe:
        """Register a collection listener and deliver the current snapshot."""
        listener = _Listener(on_snapshot=on_snapshot, on_error=on_error)
        return self._add(listener, load_rows)

    def add_document(
        self,
        record_id: str,
        on_snapshot: DocumentCallback,
        on_error: ErrorCallback,
        load_rows: RowLoader,
    ) -> Unsubscribe:
        """Register a single-record listener and deliver the current snapshot."""
        listener = _Listener(
            on_snapshot=on_snapshot, on_error=on_error, record_id=record_id
        )
        return self._add(listener, load_rows)

    def refresh(self, load_rows: RowLoader) -> None:
        """Read the collection once and deliver it to every listener."""
        listeners = self._current()
        if not listeners:
            return
        try:
            rows = load_rows()
        except Exception as exc:
            logger.exception("Snapshot read failed")
            for listener in listeners:
                _fail(listener, exc)
            return
        for listener in listeners:
            _notify(listener, rows)

    def _add(self, listener: _Listener, load_rows: RowLoader) -> Unsubscribe:
        with self._lock:
            self._listeners.append(listener)
        closed = False

        def unsubscribe() -> None:
            nonlocal closed
            with self._lock:
                if closed:
                    return
                closed = True
                self._listeners.remove(listener)

        try:
            rows = load_rows()
        except Exception as exc:
            logger.exception("Initial snapshot read failed")
            _fail(listener, exc)
        else:
            _notify(listener, rows)
        return unsubscribe

    def _current(self) -> list[_Listener]:
        with self._lock:
            return list(self._listeners)


def _notify(listener: _Listener, rows: list[Row]) -> None:
    if listener.record_id is None:
        snapshot: object = [dict(row) for row in rows]
    else:
        match = next(
            (row for row in rows if str(row.get("id")) == listener.record_id), None
        )
        snapshot = dict(match) if match is not None else None
    # Listener errors stay with the listener: the rest still get the snapshot
    # and the write that triggered the read still succeeds.
    try:
        listener.on_snapshot(snapshot)
    except Exception:
        logger.exception(
            "Snapshot listener failed", extra={"record_id": listener.record_id}
        )


def _fail(listener: _Listener, exc: Exception) -> None:
    failure = SubscriptionFailure(f"Snapshot read failed: {exc}")
    failure.__cause__ = exc
    try:
        listener.on_error(failure)
    except Exception:
        logger.exception(
            "Snapshot error listener failed", extra={"record_id": listener.record_id}
        )
