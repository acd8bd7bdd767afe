"""User directory collaborator: who may own accounts."""

import threading
from typing import Protocol


class UserDirectory(Protocol):
    """Existence checks against the user-management subsystem."""

    def user_exists(self, user_id: int) -> bool: ...


class InMemoryUserDirectory:
    """Set-backed directory for development, seeding and tests."""

    def __init__(self, user_ids: set[int] | None = None) -> None:
        self._lock = threading.Lock()
        self._user_ids: set[int] = set(user_ids or ())

    def add_user(self, user_id: int) -> None:
        with self._lock:
            self._user_ids.add(user_id)

    def remove_user(self, user_id: int) -> None:
        with self._lock:
            self._user_ids.discard(user_id)

    def user_exists(self, user_id: int) -> bool:
        with self._lock:
            return user_id in self._user_ids
