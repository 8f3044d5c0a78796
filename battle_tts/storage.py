# battle_tts/storage.py

"""User storage collaborator. The TTS engine only ever calls `get_user`."""
import logging
from typing import Dict, Optional, Protocol

from .models import User

logger = logging.getLogger(__name__)


class UserNotFoundError(Exception):
    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User not found: {user_id}")


class UserStorage(Protocol):
    async def get_user(self, user_id: str) -> Optional[User]:
        ...


class MemoryStorage:
    """In-process user store used by the service and its tests."""

    def __init__(self, users: Optional[Dict[str, User]] = None):
        self._users: Dict[str, User] = dict(users or {})

    async def get_user(self, user_id: str) -> Optional[User]:
        return self._users.get(user_id)

    async def save_user(self, user: User) -> User:
        self._users[user.id] = user
        logger.debug(f"Saved TTS settings for user {user.id}")
        return user
