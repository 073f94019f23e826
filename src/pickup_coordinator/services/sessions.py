"""Per-client session persistence and teacher login."""

import logging
from dataclasses import dataclass

from pickup_coordinator.domain import sessions
from pickup_coordinator.domain.sessions import Role, SessionState, View
from pickup_coordinator.services.key_value import KeyValueStore

logger = logging.getLogger(__name__)

TEACHER_FLAG_KEY = "teacher_login"
TRACKED_RECORD_KEY = "pickup_doc_id"
_TEACHER_FLAG_VALUE = "true"


@dataclass
class SessionService:
    """Loads and stores the two durable session facts for each client.

    Transitions are computed by the pure functions in
    ``pickup_coordinator.domain.sessions``; this service only persists them.
    """

    store: KeyValueStore
    access_code: str

    def load(self, client_id: str) -> SessionState:
        """Return the persisted session for a client."""
        is_teacher = (
            self.store.get(_key(client_id, TEACHER_FLAG_KEY)) == _TEACHER_FLAG_VALUE
        )
        tracked = self.store.get(_key(client_id, TRACKED_RECORD_KEY)) or None
        return SessionState(
            role=Role.TEACHER if is_teacher else Role.GUEST,
            tracked_record_id=tracked,
        )

    def current_view(self, client_id: str) -> View:
        return sessions.route(self.load(client_id))

    def login(self, client_id: str, access_code: str) -> bool:
        """Set the teacher flag when the access code matches exactly."""
        previous = self.load(client_id)
        state, ok = sessions.login(previous, access_code, self.access_code)
        if not ok:
            logger.info("Teacher login rejected")
            return False
        self._save(client_id, previous, state)
        logger.info("Teacher logged in")
        return True

    def logout(self, client_id: str) -> SessionState:
        """Clear only the local teacher flag."""
        previous = self.load(client_id)
        state = sessions.logout(previous)
        self._save(client_id, previous, state)
        logger.info("Teacher logged out")
        return state

    def record_submission(self, client_id: str, record_id: str) -> SessionState:
        previous = self.load(client_id)
        state = sessions.record_submission(previous, record_id)
        self._save(client_id, previous, state)
        return state

    def reset(self, client_id: str) -> SessionState:
        """Forget the tracked record so the client returns to the form."""
        previous = self.load(client_id)
        state = sessions.reset(previous)
        self._save(client_id, previous, state)
        return state

    def _save(
        self, client_id: str, previous: SessionState, state: SessionState
    ) -> None:
        """Write only the keys whose value changed."""
        if state.role != previous.role:
            teacher_key = _key(client_id, TEACHER_FLAG_KEY)
            if state.is_teacher:
                self.store.set(teacher_key, _TEACHER_FLAG_VALUE)
            else:
                self.store.remove(teacher_key)
        if state.tracked_record_id != previous.tracked_record_id:
            tracked_key = _key(client_id, TRACKED_RECORD_KEY)
            if state.tracked_record_id:
                self.store.set(tracked_key, state.tracked_record_id)
            else:
                self.store.remove(tracked_key)


def _key(client_id: str, name: str) -> str:
    return f"{client_id}:{name}"
