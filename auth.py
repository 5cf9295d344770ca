import logging
import threading
import uuid
from typing import Optional

from cachetools import TTLCache
from fastapi import Cookie, Depends, Request
from passlib.context import CryptContext

import config
import schemas
from errors import InvalidCredentials, NotAuthenticated
from storage import Storage

logger = logging.getLogger(__name__)

SESSION_COOKIE = "session_token"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# verified against when the username is unknown, so both failures cost the same
_DUMMY_HASH = pwd_context.hash("not-a-real-password")


class SessionStore:
    """Opaque token -> user id. Entries expire ``ttl`` seconds after login."""

    def __init__(self, ttl=config.SESSION_TTL, maxsize=config.SESSION_MAX):
        self._lock = threading.Lock()
        self._sessions = TTLCache(maxsize=maxsize, ttl=ttl)

    def create(self, user_id: int) -> str:
        session_token = str(uuid.uuid4())
        with self._lock:
            self._sessions[session_token] = user_id
        return session_token

    def get(self, session_token: Optional[str]) -> Optional[int]:
        if not session_token:
            return None
        with self._lock:
            return self._sessions.get(session_token)

    def destroy(self, session_token: Optional[str]) -> bool:
        if not session_token:
            return False
        with self._lock:
            return self._sessions.pop(session_token, None) is not None

    def __len__(self):
        with self._lock:
            return len(self._sessions)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    return pwd_context.verify(password, hashed_password)


def register(storage: Storage, request: schemas.RegisterRequest) -> schemas.User:
    candidate = schemas.NewUser(
        username=request.username,
        password=hash_password(request.password),
        name=request.name,
        email=request.email,
    )
    user = storage.create_user(candidate)
    logger.info("Registered user %d", user.id)
    return user


def authenticate(storage: Storage, username: str, password: str) -> schemas.User:
    user = storage.get_user_by_username(username)
    if user is None:
        verify_password(password, _DUMMY_HASH)
        raise InvalidCredentials()
    if not verify_password(password, user.password):
        raise InvalidCredentials()
    return user


def resolve_user(session_token: Optional[str], sessions: SessionStore, storage: Storage) -> Optional[schemas.User]:
    """The user behind a session token, or None for an anonymous caller."""
    user_id = sessions.get(session_token)
    if user_id is None:
        return None
    return storage.get_user(user_id)


def get_storage(request: Request) -> Storage:
    return request.app.state.storage


def get_sessions(request: Request) -> SessionStore:
    return request.app.state.sessions


def get_current_user(session_token: Optional[str] = Cookie(None),
                     sessions: SessionStore = Depends(get_sessions),
                     storage: Storage = Depends(get_storage)) -> Optional[schemas.User]:
    return resolve_user(session_token, sessions, storage)


def require_user(current_user: Optional[schemas.User] = Depends(get_current_user)) -> schemas.User:
    if current_user is None:
        raise NotAuthenticated()
    return current_user
