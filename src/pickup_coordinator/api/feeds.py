"""WebSocket feeds for live snapshots."""

import asyncio
import logging

from fastapi import WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)


class SnapshotFeed:
    """Forwards payloads from store callbacks to one WebSocket.

    Callbacks may run on worker threads, so payloads are handed to the event
    loop with ``call_soon_threadsafe``.
    """

    def __init__(self, websocket: WebSocket) -> None:
        self.websocket = websocket
        self._loop = asyncio.get_running_loop()
        self._queue: asyncio.Queue[dict[str, object] | None] = asyncio.Queue()

    def push(self, payload: dict[str, object]) -> None:
        self._loop.call_soon_threadsafe(self._queue.put_nowait, payload)

    def finish(self) -> None:
        """Close the socket after the payloads already pushed are sent."""
        self._loop.call_soon_threadsafe(self._queue.put_nowait, None)

    async def run(self) -> None:
        """Send payloads until the feed finishes or the client goes away."""
        sender = asyncio.create_task(self._send_payloads())
        receiver = asyncio.create_task(self._wait_for_disconnect())
        done, pending = await asyncio.wait(
            {sender, receiver}, return_when=asyncio.FIRST_COMPLETED
        )
        for task in pending:
            task.cancel()
        for task in done:
            exc = task.exception()
            if exc is not None:
                logger.info("Snapshot feed stopped: %s", exc)

    async def _send_payloads(self) -> None:
        while True:
            payload = await self._queue.get()
            if payload is None:
                await self.websocket.close()
                return
            await self.websocket.send_json(payload)

    async def _wait_for_disconnect(self) -> None:
        try:
            while True:
                await self.websocket.receive_text()
        except WebSocketDisconnect:
            return
