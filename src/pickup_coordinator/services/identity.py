"""Identity resolution for attributing teacher writes."""

from dataclasses import dataclass
from typing import Protocol

from pickup_coordinator.domain.identity import DEFAULT_TEACHER_LABEL, Identity


class IdentityProvider(Protocol):
    """Resolves the identity behind a client."""

    def resolve(self, client_id: str, access_token: str | None = None) -> Identity:
        """Return the identity for a client, exchanging a token when given."""


@dataclass
class AnonymousIdentityProvider(IdentityProvider):
    """Gives every client an anonymous identity keyed by its client id."""

    label: str = DEFAULT_TEACHER_LABEL

    def resolve(self, client_id: str, access_token: str | None = None) -> Identity:
        return Identity(id=client_id, label=self.label)
