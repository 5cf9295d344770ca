import time

import pytest

import schemas
from auth import SessionStore, authenticate, hash_password, register, resolve_user, verify_password
from errors import InvalidCredentials
from storage import MemStorage


def test_password_hash_is_salted():
    first = hash_password("s3cret-pass")
    second = hash_password("s3cret-pass")

    assert first != second
    assert first != "s3cret-pass"
    assert verify_password("s3cret-pass", first)
    assert not verify_password("wrong-pass", first)


def test_register_stores_hash_only():
    storage = MemStorage()
    user = register(storage, schemas.RegisterRequest(username="alice", password="s3cret-pass"))

    stored = storage.get_user_by_username("alice")
    assert stored.id == user.id
    assert stored.password != "s3cret-pass"


def test_authenticate():
    storage = MemStorage()
    user = register(storage, schemas.RegisterRequest(username="alice", password="s3cret-pass"))

    assert authenticate(storage, "alice", "s3cret-pass").id == user.id


def test_wrong_password_and_unknown_user_look_the_same():
    storage = MemStorage()
    register(storage, schemas.RegisterRequest(username="alice", password="s3cret-pass"))

    with pytest.raises(InvalidCredentials) as wrong_password:
        authenticate(storage, "alice", "not-the-pass")
    with pytest.raises(InvalidCredentials) as unknown_user:
        authenticate(storage, "mallory", "s3cret-pass")

    assert wrong_password.value.message == unknown_user.value.message
    assert wrong_password.value.status_code == unknown_user.value.status_code == 401


def test_session_store_lifecycle():
    sessions = SessionStore()
    token = sessions.create(7)

    assert sessions.get(token) == 7
    assert sessions.get("unknown") is None
    assert sessions.get(None) is None
    assert sessions.destroy(token) is True
    assert sessions.get(token) is None
    assert sessions.destroy(token) is False


def test_session_tokens_are_unique():
    sessions = SessionStore()
    assert sessions.create(1) != sessions.create(1)
    assert len(sessions) == 2


def test_sessions_expire():
    sessions = SessionStore(ttl=0.05)
    token = sessions.create(1)
    time.sleep(0.1)
    assert sessions.get(token) is None


def test_resolve_user():
    storage = MemStorage()
    sessions = SessionStore()
    user = register(storage, schemas.RegisterRequest(username="alice", password="s3cret-pass"))
    token = sessions.create(user.id)

    assert resolve_user(token, sessions, storage).id == user.id
    assert resolve_user(None, sessions, storage) is None
    assert resolve_user("bogus", sessions, storage) is None
    # session for a user the store does not know
    assert resolve_user(sessions.create(999), sessions, storage) is None
