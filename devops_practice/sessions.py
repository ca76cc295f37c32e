"""In-memory session store.

Sessions are proof-of-login records kept in process memory only: there is no
expiry, no persistence and no locking. Concurrent logins and logouts race
freely on the same dict.
"""

from __future__ import annotations

import itertools
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

SESSION_COOKIE_NAME = "practice_session"


@dataclass(frozen=True, slots=True)
class SessionRecord:
    username: str
    login_time: datetime = field(default_factory=lambda: datetime.now(UTC))


class SessionStore(Protocol):
    """Storage interface handed to the login/logout handlers."""

    def new_token(self) -> str:
        """Return a token that is unique within this process."""

    def get(self, token: str) -> SessionRecord | None:
        """Return the record stored under `token`, if any."""

    def set(self, token: str, record: SessionRecord) -> None:
        """Store `record` under `token`, replacing any previous record."""

    def clear(self) -> None:
        """Drop every stored session."""

    def __len__(self) -> int:
        """Return the number of stored sessions."""


class InMemorySessionStore:
    def __init__(self) -> None:
        self._sessions: dict[str, SessionRecord] = {}
        self._counter = itertools.count(1)

    def new_token(self) -> str:
        return f"{time.time_ns()}-{next(self._counter)}"

    def get(self, token: str) -> SessionRecord | None:
        return self._sessions.get(token)

    def set(self, token: str, record: SessionRecord) -> None:
        self._sessions[token] = record

    def clear(self) -> None:
        self._sessions.clear()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, token: object) -> bool:
        return token in self._sessions
