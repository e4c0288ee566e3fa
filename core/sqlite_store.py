"""
SQLite-backed message store for Hashtag Radar.

Implements ``core.store.MessageStore`` so the service can run without a host
chat platform. Only source data lives here; tag counts are never stored.

Schema
──────
table: teams     id TEXT PK, name TEXT
table: channels  id TEXT PK, team_id TEXT, name TEXT, display_name TEXT,
                 is_public INTEGER (1 = listed by list_public_channels)
table: authors   id TEXT PK, display_name TEXT, is_automated INTEGER
table: messages  id TEXT PK, channel_id TEXT, author_id TEXT, text TEXT,
                 type TEXT ('' for normal posts), created_at INTEGER (ms epoch)
"""

from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, Union

from core.errors import StoreError
from core.models import Author, ChannelRef, Message, MessagesPage, TeamRef

logger = logging.getLogger(__name__)

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS teams (
        id   TEXT PRIMARY KEY,
        name TEXT NOT NULL DEFAULT ''
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS channels (
        id           TEXT PRIMARY KEY,
        team_id      TEXT NOT NULL,
        name         TEXT NOT NULL DEFAULT '',
        display_name TEXT NOT NULL DEFAULT '',
        is_public    INTEGER NOT NULL DEFAULT 1
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS authors (
        id           TEXT PRIMARY KEY,
        display_name TEXT NOT NULL,
        is_automated INTEGER NOT NULL DEFAULT 0
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS messages (
        id         TEXT PRIMARY KEY,
        channel_id TEXT NOT NULL,
        author_id  TEXT NOT NULL,
        text       TEXT NOT NULL DEFAULT '',
        type       TEXT NOT NULL DEFAULT '',
        created_at INTEGER NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_messages_channel ON messages (channel_id, created_at)",
)


class SQLiteMessageStore:
    """Message store backed by a single SQLite file."""

    def __init__(self, db_path: Union[str, Path]) -> None:
        self._db_path = Path(db_path)

    @contextmanager
    def _connect(self):
        """Yield a connected sqlite3.Connection, creating the file/dir if needed.

        ``sqlite3.Error`` is re-raised as ``StoreError``.
        """
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self._db_path))
        except (OSError, sqlite3.Error) as exc:
            raise StoreError(f"cannot open {self._db_path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise StoreError(str(exc)) from exc
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def init_db(self) -> None:
        """Create the tables if they don't exist yet."""
        with self._connect() as conn:
            for statement in _SCHEMA:
                conn.execute(statement)
        logger.info("Message DB initialised at %s", self._db_path)

    # ── MessageStore ───────────────────────────────────────────────────────

    def list_teams(self) -> list[TeamRef]:
        with self._connect() as conn:
            rows = conn.execute("SELECT id, name FROM teams ORDER BY name, id").fetchall()
        return [TeamRef(id=row["id"], name=row["name"]) for row in rows]

    def list_public_channels(self, team_id: str, offset: int, limit: int) -> list[ChannelRef]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT id, team_id, name, display_name FROM channels "
                "WHERE team_id = ? AND is_public = 1 "
                "ORDER BY name, id LIMIT ? OFFSET ?",
                (team_id, limit, offset),
            ).fetchall()
        return [_channel_from_row(row) for row in rows]

    def get_channel(self, channel_id: str) -> ChannelRef:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT id, team_id, name, display_name FROM channels WHERE id = ?",
                (channel_id,),
            ).fetchone()
        if row is None:
            raise StoreError(f"channel not found: {channel_id}")
        return _channel_from_row(row)

    def get_messages_page(
        self, channel_id: str, page_index: int, page_size: int
    ) -> Optional[MessagesPage]:
        """Return one page of a channel's messages, newest first."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT id, channel_id, author_id, text, type, created_at FROM messages "
                "WHERE channel_id = ? ORDER BY created_at DESC, id ASC LIMIT ? OFFSET ?",
                (channel_id, page_size, page_index * page_size),
            ).fetchall()
        if not rows:
            return None

        page = MessagesPage()
        for row in rows:
            message = Message(
                id=row["id"],
                channel_id=row["channel_id"],
                author_id=row["author_id"],
                text=row["text"],
                type=row["type"],
                created_at=row["created_at"],
            )
            page.order.append(message.id)
            page.messages[message.id] = message
        return page

    def get_author(self, author_id: str) -> Author:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT id, display_name, is_automated FROM authors WHERE id = ?",
                (author_id,),
            ).fetchone()
        if row is None:
            raise StoreError(f"author not found: {author_id}")
        return Author(
            id=row["id"],
            display_name=row["display_name"],
            is_automated=bool(row["is_automated"]),
        )

    # ── Seeding ────────────────────────────────────────────────────────────

    def save_team(self, team: TeamRef) -> None:
        with self._connect() as conn:
            _insert_team(conn, team)

    def save_channel(self, channel: ChannelRef, is_public: bool = True) -> None:
        with self._connect() as conn:
            _insert_channel(conn, channel, is_public)

    def save_author(self, author: Author) -> None:
        with self._connect() as conn:
            _insert_author(conn, author)

    def save_message(self, message: Message) -> None:
        with self._connect() as conn:
            _insert_message(conn, message)

    def load_json(self, path: Union[str, Path]) -> dict[str, int]:
        """Import an export file and return the number of rows per section.

        The file is a JSON object with optional ``teams``, ``channels``,
        ``authors`` and ``messages`` arrays whose entries use the model field
        names. Channels may carry an ``is_public`` flag (default true).

        Every entry is validated before anything is written, and all rows go
        in through one transaction, so a bad file leaves the store untouched.

        Raises:
            pydantic.ValidationError: An entry does not match its model.
            StoreError: The database write failed.
        """
        with open(path, encoding="utf-8") as handle:
            data = json.load(handle)

        teams = [TeamRef.model_validate(entry) for entry in data.get("teams", [])]
        channels = []
        for entry in data.get("channels", []):
            entry = dict(entry)
            is_public = bool(entry.pop("is_public", True))
            channels.append((ChannelRef.model_validate(entry), is_public))
        authors = [Author.model_validate(entry) for entry in data.get("authors", [])]
        messages = [Message.model_validate(entry) for entry in data.get("messages", [])]

        with self._connect() as conn:
            for team in teams:
                _insert_team(conn, team)
            for channel, is_public in channels:
                _insert_channel(conn, channel, is_public)
            for author in authors:
                _insert_author(conn, author)
            for message in messages:
                _insert_message(conn, message)

        loaded = {
            "teams": len(teams),
            "channels": len(channels),
            "authors": len(authors),
            "messages": len(messages),
        }
        logger.info("Loaded %s from %s", loaded, path)
        return loaded


# ── Row helpers ────────────────────────────────────────────────────────────────


def _insert_team(conn: sqlite3.Connection, team: TeamRef) -> None:
    conn.execute(
        "INSERT OR REPLACE INTO teams (id, name) VALUES (?, ?)",
        (team.id, team.name),
    )


def _insert_channel(conn: sqlite3.Connection, channel: ChannelRef, is_public: bool) -> None:
    conn.execute(
        "INSERT OR REPLACE INTO channels (id, team_id, name, display_name, is_public) "
        "VALUES (?, ?, ?, ?, ?)",
        (channel.id, channel.team_id, channel.name, channel.display_name, int(is_public)),
    )


def _insert_author(conn: sqlite3.Connection, author: Author) -> None:
    conn.execute(
        "INSERT OR REPLACE INTO authors (id, display_name, is_automated) VALUES (?, ?, ?)",
        (author.id, author.display_name, int(author.is_automated)),
    )


def _insert_message(conn: sqlite3.Connection, message: Message) -> None:
    conn.execute(
        "INSERT OR REPLACE INTO messages (id, channel_id, author_id, text, type, created_at) "
        "VALUES (?, ?, ?, ?, ?, ?)",
        (
            message.id,
            message.channel_id,
            message.author_id,
            message.text,
            message.type,
            message.created_at,
        ),
    )


def _channel_from_row(row: sqlite3.Row) -> ChannelRef:
    return ChannelRef(
        id=row["id"],
        team_id=row["team_id"],
        name=row["name"],
        display_name=row["display_name"],
    )
