"""FastAPI application factory."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager, suppress

from fastapi import Depends, FastAPI, HTTPException, status

from pickup_coordinator.api.dependencies import get_client_id, get_container
from pickup_coordinator.api.parents import router as parents_router
from pickup_coordinator.api.schemas import LoginRequest, serialize_session
from pickup_coordinator.api.teacher import router as teacher_router
from pickup_coordinator.app_logging import configure_logging
from pickup_coordinator.containers import AppContainer


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    async def refresh_loop(interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await asyncio.to_thread(container.refresh_snapshots)
            except Exception:
                logger.exception("Failed to refresh pickup snapshots")

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        interval = app.state.container.settings.refresh_interval_seconds
        task = asyncio.create_task(refresh_loop(interval)) if interval > 0 else None
        yield
        if task is not None:
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(parents_router)
    app.include_router(teacher_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/session")
    async def session(
        client_id: str = Depends(get_client_id),
        state_container: AppContainer = Depends(get_container),
    ) -> dict[str, object]:
        """Return the client's role, tracked record and routed view."""
        return serialize_session(state_container.session_service.load(client_id))

    @app.post("/session/login")
    async def login(
        payload: LoginRequest,
        client_id: str = Depends(get_client_id),
        state_container: AppContainer = Depends(get_container),
    ) -> dict[str, object]:
        """Log the client in as a teacher with the shared access code."""
        session_service = state_container.session_service
        if not session_service.login(client_id, payload.access_code):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Access Code incorrect. Please check.",
            )
        return serialize_session(session_service.load(client_id))

    @app.post("/session/logout")
    async def logout(
        client_id: str = Depends(get_client_id),
        state_container: AppContainer = Depends(get_container),
    ) -> dict[str, object]:
        """Clear the teacher flag for this client."""
        return serialize_session(state_container.session_service.logout(client_id))

    @app.post("/session/reset")
    async def reset(
        client_id: str = Depends(get_client_id),
        state_container: AppContainer = Depends(get_container),
    ) -> dict[str, object]:
        """Forget the tracked record so the parent can submit again."""
        return serialize_session(state_container.session_service.reset(client_id))

    return app
