"""ASGI entrypoint for running the FastAPI app."""

from pickup_coordinator.api.app import create_app
from pickup_coordinator.containers import build_container

app = create_app(build_container())
