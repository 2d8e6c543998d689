# core/storage.py
"""Durable client-side session: the auth token and a snapshot of the user.

Two fixed keys are kept in a key-value backend. The SQL backend follows the
same upsert-a-JSON-blob approach as the app's other config tables; the
in-memory backend is used by tests and storage-less runs.
"""
from __future__ import annotations
import json
import logging
from typing import Any, Dict, Iterator, MutableMapping, Optional

from pydantic import ValidationError
from sqlalchemy import text as sa_text
from sqlalchemy.engine import Engine

from core.events import Signal
from core.models import Session, UserProfile

logger = logging.getLogger(__name__)

TOKEN_KEY = "auth_token"
USER_KEY = "user"


class SqlKeyValueStore(MutableMapping[str, str]):
    """String key-value mapping persisted in ``client_storage`` under one namespace."""

    def __init__(self, engine: Engine, namespace: str = "default"):
        self.engine = engine
        self.namespace = namespace
        self.ensure_schema()

    def ensure_schema(self) -> None:
        with self.engine.begin() as conn:
            conn.execute(sa_text("""
            CREATE TABLE IF NOT EXISTS client_storage (
                namespace TEXT NOT NULL,
                key TEXT NOT NULL,
                value TEXT NOT NULL,
                updated_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                PRIMARY KEY (namespace, key)
            )"""))

    def __getitem__(self, key: str) -> str:
        with self.engine.begin() as conn:
            row = conn.execute(sa_text(
                "SELECT value FROM client_storage WHERE namespace=:ns AND key=:k"
            ), dict(ns=self.namespace, k=key)).fetchone()
        if not row:
            raise KeyError(key)
        return row[0]

    def __setitem__(self, key: str, value: str) -> None:
        with self.engine.begin() as conn:
            conn.execute(sa_text("""
                INSERT INTO client_storage (namespace, key, value)
                VALUES (:ns, :k, :v)
                ON CONFLICT(namespace, key) DO UPDATE
                SET value=excluded.value, updated_at=CURRENT_TIMESTAMP
            """), dict(ns=self.namespace, k=key, v=str(value)))

    def __delitem__(self, key: str) -> None:
        with self.engine.begin() as conn:
            res = conn.execute(sa_text(
                "DELETE FROM client_storage WHERE namespace=:ns AND key=:k"
            ), dict(ns=self.namespace, k=key))
        if not res.rowcount:
            raise KeyError(key)

    def __iter__(self) -> Iterator[str]:
        with self.engine.begin() as conn:
            rows = conn.execute(sa_text(
                "SELECT key FROM client_storage WHERE namespace=:ns ORDER BY key"
            ), dict(ns=self.namespace)).fetchall()
        return iter([r[0] for r in rows])

    def __len__(self) -> int:
        with self.engine.begin() as conn:
            row = conn.execute(sa_text(
                "SELECT COUNT(*) FROM client_storage WHERE namespace=:ns"
            ), dict(ns=self.namespace)).fetchone()
        return int(row[0]) if row else 0


class SessionStore:
    """Token + user snapshot over any string mapping.

    ``user_changed`` fires after ``set_user``, ``remove_user`` and ``clear``
    with the store as sender and the new user dict (or ``None``) as ``user``.
    """

    def __init__(self, backend: Optional[MutableMapping[str, str]] = None):
        self.backend: MutableMapping[str, str] = backend if backend is not None else {}
        self.user_changed = Signal("user_changed")

    # token
    def set_token(self, token: str) -> None:
        self.backend[TOKEN_KEY] = token

    def get_token(self) -> Optional[str]:
        return self.backend.get(TOKEN_KEY) or None

    def remove_token(self) -> None:
        self.backend.pop(TOKEN_KEY, None)

    # user
    def set_user(self, user: Dict[str, Any]) -> None:
        if isinstance(user, UserProfile):
            user = user.model_dump(by_alias=True, exclude_none=True)
        self.backend[USER_KEY] = json.dumps(user, ensure_ascii=False)
        logger.debug("Stored user snapshot for %s", user.get("email"))
        self.user_changed.send(self, user=user)

    def get_user(self) -> Optional[Dict[str, Any]]:
        raw = self.backend.get(USER_KEY)
        if not raw:
            return None
        try:
            user = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Stored user snapshot is not valid JSON; treating as signed out")
            return None
        return user if isinstance(user, dict) else None

    def remove_user(self) -> None:
        self.backend.pop(USER_KEY, None)
        self.user_changed.send(self, user=None)

    def clear(self) -> None:
        self.backend.pop(TOKEN_KEY, None)
        self.backend.pop(USER_KEY, None)
        logger.debug("Session cleared")
        self.user_changed.send(self, user=None)

    # pair helpers
    def set_session(self, token: str, user: Dict[str, Any]) -> None:
        self.set_token(token)
        self.set_user(user)

    def has_session(self) -> bool:
        return bool(self.get_token()) and self.get_user() is not None

    def get_session(self) -> Optional[Session]:
        token = self.get_token()
        user = self.get_user()
        if not token or user is None:
            return None
        try:
            return Session(token=token, user=UserProfile.model_validate(user))
        except ValidationError:
            logger.warning("Stored user snapshot does not match the profile schema")
            return None
