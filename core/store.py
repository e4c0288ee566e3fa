"""Read-only message store contract consumed by the core.

Any host platform can back the core by implementing this protocol. Every
method raises ``core.errors.StoreError`` on failure.
"""

from __future__ import annotations

from typing import Optional, Protocol

from core.models import Author, ChannelRef, MessagesPage, TeamRef


class MessageStore(Protocol):
    """Data access operations required by the aggregator and query service."""

    def list_teams(self) -> list[TeamRef]:
        ...

    def list_public_channels(self, team_id: str, offset: int, limit: int) -> list[ChannelRef]:
        ...

    def get_channel(self, channel_id: str) -> ChannelRef:
        ...

    def get_messages_page(
        self, channel_id: str, page_index: int, page_size: int
    ) -> Optional[MessagesPage]:
        ...

    def get_author(self, author_id: str) -> Author:
        ...
