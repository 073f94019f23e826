"""Dependency container wiring for the application."""

from collections.abc import Callable
from dataclasses import dataclass

from supabase import create_client

from pickup_coordinator.adapters.supabase_identity_provider import (
    SupabaseIdentityProvider,
)
from pickup_coordinator.adapters.supabase_key_value_store import (
    SupabaseKeyValueStore,
)
from pickup_coordinator.adapters.supabase_pickup_store import SupabasePickupStore
from pickup_coordinator.config import Settings
from pickup_coordinator.services.identity import IdentityProvider
from pickup_coordinator.services.key_value import InMemoryKeyValueStore, KeyValueStore
from pickup_coordinator.services.pickups import PickupService, RecordStoreGateway
from pickup_coordinator.services.sessions import SessionService


@dataclass
class AppContainer:
    """Holds application-wide dependencies.

    Views and routes receive the store and identity provider from here
    rather than from module-level handles.
    """

    settings: Settings
    record_store: RecordStoreGateway
    identity_provider: IdentityProvider
    pickup_service: PickupService
    session_service: SessionService
    refresh_snapshots: Callable[[], None]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    record_store = SupabasePickupStore(
        supabase_client, table=resolved_settings.pickups_table
    )
    key_value_store: KeyValueStore
    if resolved_settings.session_backend == "memory":
        key_value_store = InMemoryKeyValueStore()
    else:
        key_value_store = SupabaseKeyValueStore(
            supabase_client, table=resolved_settings.sessions_table
        )
    identity_provider = SupabaseIdentityProvider(
        supabase_client, default_token=resolved_settings.supabase_auth_token
    )
    return AppContainer(
        settings=resolved_settings,
        record_store=record_store,
        identity_provider=identity_provider,
        pickup_service=PickupService(record_store),
        session_service=SessionService(
            store=key_value_store,
            access_code=resolved_settings.teacher_access_code,
        ),
        refresh_snapshots=record_store.refresh,
    )
