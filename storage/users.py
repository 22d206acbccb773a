"""SQLite-backed storage for backend users."""

from __future__ import annotations

from dataclasses import dataclass
import hashlib
import hmac
import json
from pathlib import Path
import secrets
import threading
import time
from typing import Iterable

from storage.database import connect, resolve_db_path

PBKDF2_ITERATIONS = 260_000


def _now_millis() -> int:
    return int(time.time() * 1000)


def hash_password(password: str, *, salt: str | None = None, iterations: int = PBKDF2_ITERATIONS) -> str:
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), iterations)
    return f"pbkdf2_sha256${iterations}${salt}${digest.hex()}"


def verify_password(password: str, password_hash: str) -> bool:
    try:
        algorithm, iterations, salt, _ = password_hash.split("$")
    except ValueError:
        return False
    if algorithm != "pbkdf2_sha256":
        return False
    candidate = hash_password(password, salt=salt, iterations=int(iterations))
    return hmac.compare_digest(candidate, password_hash)


class UserAlreadyExistsError(ValueError):
    """Raised when creating a user whose username is taken."""


@dataclass(frozen=True)
class User:
    username: str
    first_name: str
    last_name: str
    roles: list[str]
    password_hash: str
    created: int


class UserRepository:
    """Manage persisted backend users."""

    def __init__(self, db_path: Path | None = None) -> None:
        self._db_path = db_path if db_path is not None else resolve_db_path()
        self._lock = threading.Lock()
        self._conn = connect(self._db_path)
        self._initialize_db()

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _initialize_db(self) -> None:
        cursor = self._conn.cursor()
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS users (
                username TEXT PRIMARY KEY,
                first_name TEXT,
                last_name TEXT,
                roles JSON,
                password_hash TEXT,
                created INTEGER
            )
            """
        )
        self._conn.commit()

    def count(self) -> int:
        cursor = self._conn.execute("SELECT COUNT(*) FROM users")
        return int(cursor.fetchone()[0])

    def find_by_username(self, username: str) -> User | None:
        cursor = self._conn.execute(
            """
            SELECT username, first_name, last_name, roles, password_hash, created
            FROM users
            WHERE username = ?
            """,
            (username,),
        )
        row = cursor.fetchone()
        if not row:
            return None
        return User(
            username=row[0],
            first_name=row[1],
            last_name=row[2],
            roles=json.loads(row[3]) if row[3] else [],
            password_hash=row[4],
            created=row[5],
        )

    def create_user(
        self,
        username: str,
        password: str,
        first_name: str,
        last_name: str,
        roles: Iterable[str] = (),
    ) -> User:
        user = User(
            username=username,
            first_name=first_name,
            last_name=last_name,
            roles=list(roles),
            password_hash=hash_password(password),
            created=_now_millis(),
        )
        with self._lock:
            if self.find_by_username(username) is not None:
                raise UserAlreadyExistsError(f'The username "{username}" is already in use')
            self._conn.execute(
                """
                INSERT INTO users (username, first_name, last_name, roles, password_hash, created)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    user.username,
                    user.first_name,
                    user.last_name,
                    json.dumps(user.roles),
                    user.password_hash,
                    user.created,
                ),
            )
            self._conn.commit()
        return user

    def close(self) -> None:
        self._conn.close()
