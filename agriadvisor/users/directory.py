"""User directory: records a farmer's name, email and saved location."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from pathlib import Path
from threading import Lock
from typing import Dict, Optional

from agriadvisor.errors import UserAlreadyExists


@dataclass(frozen=True)
class Identity:
    name: str
    email: str
    location: str


class UserDirectory:
    def find_by_email(self, email: str) -> Optional[Identity]:
        raise NotImplementedError

    def register(self, identity: Identity) -> Identity:
        raise NotImplementedError


class MemoryUserDirectory(UserDirectory):
    def __init__(self) -> None:
        self._items: Dict[str, Identity] = {}
        self._lock = Lock()

    def find_by_email(self, email: str) -> Optional[Identity]:
        with self._lock:
            return self._items.get(email)

    def register(self, identity: Identity) -> Identity:
        with self._lock:
            if identity.email in self._items:
                raise UserAlreadyExists(identity.email)
            self._items[identity.email] = identity
        return identity


class SQLiteUserDirectory(UserDirectory):
    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = Lock()
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self._path)

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS users (
                    email TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    location TEXT NOT NULL
                )
                """
            )

    def find_by_email(self, email: str) -> Optional[Identity]:
        with self._lock, self._connect() as conn:
            row = conn.execute(
                "SELECT name, email, location FROM users WHERE email = ?",
                (email,),
            ).fetchone()
        if not row:
            return None
        return Identity(name=row[0], email=row[1], location=row[2])

    def register(self, identity: Identity) -> Identity:
        try:
            with self._lock, self._connect() as conn:
                conn.execute(
                    "INSERT INTO users (email, name, location) VALUES (?, ?, ?)",
                    (identity.email, identity.name, identity.location),
                )
        except sqlite3.IntegrityError as e:
            raise UserAlreadyExists(identity.email) from e
        return identity


def build_user_directory(db_path: Optional[str]) -> UserDirectory:
    if db_path:
        return SQLiteUserDirectory(Path(db_path))
    return MemoryUserDirectory()
