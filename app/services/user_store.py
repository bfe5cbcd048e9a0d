"""In-memory user profile collection.

The store owns its list and guards it with a lock. One instance is created
per application and handed to routes through ``app.state`` so tests get an
isolated collection simply by building a new app.
"""

from __future__ import annotations

import logging
import threading
from typing import Iterable

from app.core.errors import ConflictAppError, NotFoundAppError
from app.schemas.user import UserProfile

logger = logging.getLogger(__name__)


DEFAULT_USERS: tuple[UserProfile, ...] = (
    UserProfile(id="1", full_name="John Doe", email="john.doe@example.com", emoji="😀"),
    UserProfile(id="2", full_name="Jane Smith", email="jane.smith@example.com", emoji="🚀"),
    UserProfile(id="3", full_name="Robert Johnson", email="robert.johnson@example.com", emoji="🎸"),
)


class UserStore:
    """Thread-safe list of user profiles keyed by ``id``."""

    def __init__(self, users: Iterable[UserProfile] | None = None) -> None:
        self._lock = threading.RLock()
        self._seed = tuple(DEFAULT_USERS if users is None else users)
        self._users: list[UserProfile] = [u.model_copy() for u in self._seed]

    def __len__(self) -> int:
        with self._lock:
            return len(self._users)

    def _index_of(self, user_id: str) -> int:
        for index, user in enumerate(self._users):
            if user.id == user_id:
                return index
        return -1

    def _not_found(self, user_id: str) -> NotFoundAppError:
        return NotFoundAppError(
            code="USER_NOT_FOUND",
            message=f"User with id '{user_id}' was not found",
            details={"id": user_id},
        )

    def list_users(self) -> list[UserProfile]:
        with self._lock:
            return list(self._users)

    def get_user(self, user_id: str) -> UserProfile:
        """Return the profile with ``user_id``.

        Raises:
            NotFoundAppError: If no profile has that id.
        """
        with self._lock:
            index = self._index_of(user_id)
            if index == -1:
                raise self._not_found(user_id)
            return self._users[index]

    def create_user(self, user: UserProfile) -> UserProfile:
        """Append a new profile.

        Raises:
            ConflictAppError: If a profile with the same id already exists.
        """
        with self._lock:
            if self._index_of(user.id) != -1:
                raise ConflictAppError(
                    code="DUPLICATE_ID",
                    message=f"User with id '{user.id}' already exists",
                    details={"id": user.id},
                )
            self._users.append(user)

        logger.info("users.created", extra={"user_id": user.id, "total_users": len(self)})
        return user

    def update_user(self, user_id: str, user: UserProfile) -> UserProfile:
        """Replace the profile stored under ``user_id``.

        The stored id always stays ``user_id``; an id in the body is ignored.

        Raises:
            NotFoundAppError: If no profile has that id.
        """
        updated = user.model_copy(update={"id": user_id})
        with self._lock:
            index = self._index_of(user_id)
            if index == -1:
                raise self._not_found(user_id)
            self._users[index] = updated

        logger.info("users.updated", extra={"user_id": user_id})
        return updated

    def delete_user(self, user_id: str) -> None:
        """Remove the profile with ``user_id``.

        Raises:
            NotFoundAppError: If no profile has that id.
        """
        with self._lock:
            index = self._index_of(user_id)
            if index == -1:
                raise self._not_found(user_id)
            del self._users[index]

        logger.info("users.deleted", extra={"user_id": user_id, "total_users": len(self)})

    def reset(self) -> None:
        """Restore the seed profiles."""
        with self._lock:
            self._users = [u.model_copy() for u in self._seed]
