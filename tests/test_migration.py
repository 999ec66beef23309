import os
import sqlite3
import tempfile
from datetime import datetime

import pytest

from migration.add_refresh_tokens import migrate


def create_legacy_db(path: str):
    conn = sqlite3.connect(path)
    try:
        conn.execute("CREATE TABLE users (id INTEGER PRIMARY KEY, username TEXT NOT NULL, email TEXT NOT NULL UNIQUE)")
        conn.execute("INSERT INTO users (username, email) VALUES ('alice', 'alice@example.com')")
        conn.commit()
    finally:
        conn.close()


def test_migration_creates_refresh_tokens_table():
    with tempfile.TemporaryDirectory() as tmp:
        db_path = os.path.join(tmp, "legacy.db")
        create_legacy_db(db_path)

        assert migrate(db_path) == 0

        conn = sqlite3.connect(db_path)
        try:
            cols = [r[1] for r in conn.execute("PRAGMA table_info(refresh_tokens)")]
            assert cols == ["token", "user_id", "expires_at", "created_at"]
            fks = conn.execute("PRAGMA foreign_key_list(refresh_tokens)").fetchall()
            assert fks[0][2] == "users"
        finally:
            conn.close()


def test_migration_is_rerunnable_and_purges_expired():
    with tempfile.TemporaryDirectory() as tmp:
        db_path = os.path.join(tmp, "legacy.db")
        create_legacy_db(db_path)
        migrate(db_path)

        conn = sqlite3.connect(db_path)
        try:
            conn.executemany(
                "INSERT INTO refresh_tokens (token, user_id, expires_at) VALUES (?, 1, ?)",
                [("old", "2020-01-01 00:00:00"), ("fresh", "2999-01-01 00:00:00")],
            )
            conn.commit()
        finally:
            conn.close()

        assert migrate(db_path, now=datetime(2024, 1, 1)) == 1

        conn = sqlite3.connect(db_path)
        try:
            tokens = [r[0] for r in conn.execute("SELECT token FROM refresh_tokens")]
            assert tokens == ["fresh"]
        finally:
            conn.close()


def test_migration_requires_users_table():
    with tempfile.TemporaryDirectory() as tmp:
        db_path = os.path.join(tmp, "empty.db")
        sqlite3.connect(db_path).close()
        with pytest.raises(RuntimeError):
            migrate(db_path)


def test_migration_rejects_missing_or_memory_db():
    with pytest.raises(ValueError):
        migrate(":memory:")
    with pytest.raises(FileNotFoundError):
        migrate("/nonexistent/restaurant.db")
