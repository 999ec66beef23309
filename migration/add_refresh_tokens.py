"""
Add the refresh_tokens table to a database created before logout/revocation existed.
- Creates refresh_tokens (token PK, user_id FK users ON DELETE CASCADE, expires_at, created_at)
- Adds the user_id index
- Drops rows that are already expired when the table exists

Safe to run more than once.

Usage:
  python -m migration.add_refresh_tokens --db path/to/restaurant.db
"""
import argparse
import os
import sqlite3
from contextlib import closing
from datetime import datetime

CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS refresh_tokens (
    token VARCHAR(512) NOT NULL PRIMARY KEY,
    user_id INTEGER NOT NULL,
    expires_at DATETIME NOT NULL,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
)
"""

CREATE_INDEX = "CREATE INDEX IF NOT EXISTS ix_refresh_tokens_user_id ON refresh_tokens (user_id)"


def table_names(conn: sqlite3.Connection) -> set:
    return {r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}


def migrate(db_path: str, now: datetime | None = None) -> int:
    """Run the migration; returns how many expired tokens were removed."""
    if db_path == ":memory:":
        raise ValueError("Use a file-backed DB for migration script")

    if not os.path.exists(db_path):
        raise FileNotFoundError(db_path)

    with closing(sqlite3.connect(db_path)) as conn:
        conn.execute("PRAGMA foreign_keys=ON")

        if "users" not in table_names(conn):
            raise RuntimeError("users table missing; cannot migrate")

        conn.execute(CREATE_TABLE)
        conn.execute(CREATE_INDEX)
        # SQLAlchemy stores DateTime as ISO text with a space separator
        cutoff = (now or datetime.now()).isoformat(sep=" ")
        removed = conn.execute("DELETE FROM refresh_tokens WHERE expires_at <= ?", (cutoff,)).rowcount
        conn.commit()
    return removed


def main():
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--db", required=True, help="Path to SQLite database file")
    args = parser.parse_args()
    removed = migrate(args.db)
    print(f"refresh_tokens ready ({removed} expired token(s) removed)")

if __name__ == "__main__":
    main()
