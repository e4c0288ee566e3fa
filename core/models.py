"""
Pydantic models shared across the Hashtag Radar core.

Store-side models (Message, Author, ChannelRef, TeamRef, MessagesPage) are
read-only views of the host's data. Result models (TagCount, TagGroup,
TaggedMessage, Page) are rebuilt on every request and never persisted.
"""

from __future__ import annotations

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


# ── Store-side models ──────────────────────────────────────────────────────


class Message(BaseModel):
    """A single message as returned by the message store."""

    model_config = ConfigDict(frozen=True)

    id: str
    text: str = ""
    created_at: int = 0
    author_id: str
    channel_id: str
    #: Non-empty for join/leave notices and other platform-generated posts.
    type: str = ""

    @property
    def is_system_generated(self) -> bool:
        return self.type != ""


class Author(BaseModel):
    """A message author looked up by id."""

    model_config = ConfigDict(frozen=True)

    id: str
    display_name: str
    is_automated: bool = False


class ChannelRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    team_id: str
    name: str = ""
    display_name: str = ""


class TeamRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""


class MessagesPage(BaseModel):
    """One page of a channel's messages.

    ``order`` lists message ids in page order; ``messages`` maps each id to
    its message. An empty ``order`` marks the end of the channel.
    """

    order: list[str] = Field(default_factory=list)
    messages: dict[str, Message] = Field(default_factory=dict)


# ── Result models ──────────────────────────────────────────────────────────


class TagCount(BaseModel):
    """How often a tag occurred within one scan."""

    model_config = ConfigDict(frozen=True)

    tag: str
    count: int = Field(ge=0)
    first_used: Optional[int] = None
    last_used: Optional[int] = None


class TagGroup(BaseModel):
    """Tags sharing the text before their first hyphen."""

    prefix: str
    tags: list[TagCount] = Field(default_factory=list)


class HashtagSummary(BaseModel):
    """Response body for channel- and team-scope count queries."""

    hashtags: list[TagCount] = Field(default_factory=list)
    groups: list[TagGroup] = Field(default_factory=list)


class TaggedMessage(BaseModel):
    """A message that carries a looked-up tag, joined with its author name."""

    id: str
    text: str
    created_at: int
    author_name: str
    channel_id: str


class Page(BaseModel, Generic[T]):
    """A single page sliced out of a fully computed result list."""

    items: list[T] = Field(default_factory=list)
    total_count: int = 0
    page: int = 1
    page_size: int = 20
    has_more: bool = False
