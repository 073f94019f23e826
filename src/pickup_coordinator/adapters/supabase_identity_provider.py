"""Supabase Auth identity provider."""

import logging
from dataclasses import dataclass, field

from supabase import Client

from pickup_coordinator.domain.identity import DEFAULT_TEACHER_LABEL, Identity
from pickup_coordinator.services.identity import (
    AnonymousIdentityProvider,
    IdentityProvider,
)

logger = logging.getLogger(__name__)


@dataclass
class SupabaseIdentityProvider(IdentityProvider):
    """Exchanges access tokens for Supabase users, else stays anonymous."""

    client: Client
    default_token: str | None = None
    fallback: IdentityProvider = field(default_factory=AnonymousIdentityProvider)

    def resolve(self, client_id: str, access_token: str | None = None) -> Identity:
        """Return the Supabase user behind the token, or an anonymous identity.

        Tokens are checked on every call; an expired or revoked token stops
        resolving once Supabase rejects it.
        """
        token = access_token or self.default_token
        if not token:
            return self.fallback.resolve(client_id)
        try:
            response = self.client.auth.get_user(token)
        except Exception:
            logger.exception("Token sign in failed", extra={"client_id": client_id})
            return self.fallback.resolve(client_id)
        user = response.user if response else None
        if user is None:
            return self.fallback.resolve(client_id)
        return Identity(id=str(user.id), label=user.email or DEFAULT_TEACHER_LABEL)
