"""Session identity and the versioned storage the cart is persisted in.

A session identifier is an opaque per-browser token. It is created once,
never expires, and is only used to scope cart storage.
"""
from __future__ import annotations

import secrets
import string
import threading
import time
from typing import Optional, Protocol

from pymongo.errors import DuplicateKeyError

import database

SESSION_KEY = "shopping_session_id"
SESSION_MAX_AGE = 10 * 365 * 24 * 60 * 60

_BASE36 = string.digits + string.ascii_lowercase


def new_session_id() -> str:
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"session_{int(time.time() * 1000)}_{suffix}"


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class CookieStore:
    """Client cookie jar seen through one request/response pair."""

    def __init__(self, request, response, max_age: int = SESSION_MAX_AGE):
        self.request = request
        self.response = response
        self.max_age = max_age

    def get(self, key):
        return self.request.cookies.get(key)

    def set(self, key, value):
        self.response.set_cookie(key, value, max_age=self.max_age, httponly=True, samesite="lax")


class SessionIdentity:
    def __init__(self, store: KeyValueStore):
        self.store = store

    def get_or_create(self) -> str:
        session_id = self.store.get(SESSION_KEY)
        if not session_id:
            session_id = new_session_id()
            self.store.set(SESSION_KEY, session_id)
        return session_id


# -----------------------------
# Versioned storage
# -----------------------------

class VersionedStore(Protocol):
    """Key/value storage with compare-and-swap writes.

    ``load`` returns ``(value, version)``; ``version`` is ``None`` when the key
    does not exist. ``save`` and ``delete`` only succeed if the stored version
    still equals ``expected_version``.
    """

    def load(self, key: str) -> tuple[Optional[str], Optional[int]]: ...

    def save(self, key: str, value: str, expected_version: Optional[int]) -> bool: ...

    def delete(self, key: str, expected_version: Optional[int]) -> bool: ...


class MemoryStore:
    def __init__(self):
        self._data: dict[str, tuple[str, int]] = {}
        self._lock = threading.Lock()

    def load(self, key):
        with self._lock:
            entry = self._data.get(key)
        if entry is None:
            return None, None
        return entry

    def save(self, key, value, expected_version):
        with self._lock:
            current = self._data.get(key)
            current_version = current[1] if current else None
            if current_version != expected_version:
                return False
            self._data[key] = (value, (current_version or 0) + 1)
            return True

    def delete(self, key, expected_version):
        with self._lock:
            current = self._data.get(key)
            if (current[1] if current else None) != expected_version:
                return False
            self._data.pop(key, None)
            return True


class MongoStore:
    def __init__(self, collection_name: str = "cart_storage"):
        self.collection_name = collection_name

    @property
    def collection(self):
        return database.get_db()[self.collection_name]

    def load(self, key):
        doc = self.collection.find_one({"_id": key})
        if not doc:
            return None, None
        return doc["value"], doc["version"]

    def save(self, key, value, expected_version):
        if expected_version is None:
            try:
                self.collection.insert_one(
                    {"_id": key, "value": value, "version": 1, "updated_at": database.now()}
                )
            except DuplicateKeyError:
                return False
            return True
        res = self.collection.update_one(
            {"_id": key, "version": expected_version},
            {"$set": {"value": value, "updated_at": database.now()}, "$inc": {"version": 1}},
        )
        return res.matched_count == 1

    def delete(self, key, expected_version):
        if expected_version is None:
            return self.collection.find_one({"_id": key}, {"_id": 1}) is None
        res = self.collection.delete_one({"_id": key, "version": expected_version})
        return res.deleted_count == 1
