"""Shared fixtures: an in-memory MessageStore with injectable failures."""

from __future__ import annotations

import itertools
from collections import defaultdict
from typing import Optional

import pytest

from config.settings import Settings
from core.errors import StoreError
from core.models import Author, ChannelRef, Message, MessagesPage, TeamRef


class FakeStore:
    """Dict-backed ``MessageStore``.

    Messages are served in insertion order. Failures are injected by adding
    ids to the ``failing_*`` sets, or a page index to ``fail_from_page``.
    """

    def __init__(self) -> None:
        self.teams: list[TeamRef] = []
        self.channels: dict[str, ChannelRef] = {}
        self.authors: dict[str, Author] = {}
        self.messages: dict[str, list[Message]] = defaultdict(list)

        self.fail_list_teams = False
        self.failing_teams: set[str] = set()
        self.failing_channels: set[str] = set()
        self.fail_from_page: dict[str, int] = {}

        self.page_calls: list[tuple[str, int]] = []
        self.author_calls: list[str] = []
        self._ids = itertools.count(1)

    # ── Seeding ────────────────────────────────────────────────────────────

    def add_team(self, team_id: str) -> TeamRef:
        team = TeamRef(id=team_id, name=team_id)
        self.teams.append(team)
        return team

    def add_channel(self, channel_id: str, team_id: str = "team-1") -> ChannelRef:
        channel = ChannelRef(id=channel_id, team_id=team_id, name=channel_id)
        self.channels[channel_id] = channel
        return channel

    def add_author(self, author_id: str, name: Optional[str] = None, bot: bool = False) -> Author:
        author = Author(id=author_id, display_name=name or author_id, is_automated=bot)
        self.authors[author_id] = author
        return author

    def add_message(
        self,
        channel_id: str,
        text: str,
        author_id: str = "alice",
        created_at: Optional[int] = None,
        type: str = "",
    ) -> Message:
        seq = next(self._ids)
        message = Message(
            id=f"m{seq}",
            text=text,
            created_at=seq * 1000 if created_at is None else created_at,
            author_id=author_id,
            channel_id=channel_id,
            type=type,
        )
        self.messages[channel_id].append(message)
        return message

    # ── MessageStore ───────────────────────────────────────────────────────

    def list_teams(self) -> list[TeamRef]:
        if self.fail_list_teams:
            raise StoreError("teams unavailable")
        return list(self.teams)

    def list_public_channels(self, team_id: str, offset: int, limit: int) -> list[ChannelRef]:
        if team_id in self.failing_teams:
            raise StoreError(f"team {team_id} unavailable")
        in_team = [c for c in self.channels.values() if c.team_id == team_id]
        return in_team[offset:offset + limit]

    def get_channel(self, channel_id: str) -> ChannelRef:
        if channel_id not in self.channels:
            raise StoreError(f"channel not found: {channel_id}")
        return self.channels[channel_id]

    def get_messages_page(self, channel_id: str, page_index: int, page_size: int) -> Optional[MessagesPage]:
        self.page_calls.append((channel_id, page_index))
        if channel_id in self.failing_channels:
            raise StoreError(f"channel {channel_id} unavailable")
        if page_index >= self.fail_from_page.get(channel_id, page_index + 1):
            raise StoreError(f"channel {channel_id} page {page_index} unavailable")

        chunk = self.messages.get(channel_id, [])[page_index * page_size:(page_index + 1) * page_size]
        if not chunk:
            return None
        return MessagesPage(order=[m.id for m in chunk], messages={m.id: m for m in chunk})

    def get_author(self, author_id: str) -> Author:
        self.author_calls.append(author_id)
        if author_id not in self.authors:
            raise StoreError(f"user not found: {author_id}")
        return self.authors[author_id]


@pytest.fixture
def store() -> FakeStore:
    """A store with one team, human authors alice/bob and a bot."""
    fake = FakeStore()
    fake.add_team("team-1")
    fake.add_author("alice", "Alice")
    fake.add_author("bob", "Bob")
    fake.add_author("robot", "Robot", bot=True)
    return fake


@pytest.fixture
def settings() -> Settings:
    """Small page sizes so multi-page paths are exercised."""
    return Settings(
        db_path="unused.db",
        scan_budget=5000,
        team_default_max=1000,
        messages_page_size=2,
        channel_list_page_size=2,
        log_level="DEBUG",
    )
