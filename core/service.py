"""Query service: the public contract of Hashtag Radar.

Three queries are exposed:

1. ``get_channel_hashtags``  ranked tag counts + prefix groups for a channel
2. ``get_team_hashtags``     the same across all public channels of a team
3. ``get_messages_for_tag``  messages carrying an exact tag, newest first
   (``get_messages_for_tag_page`` slices that list into a ``Page``)

The service is stateless between calls. It holds the message store, the
settings, a logger and the hashtag pattern compiled once at construction, so
a single instance can be shared by concurrent requests.
"""

from __future__ import annotations

import logging
import re
from typing import Optional, Union

from config.settings import Settings
from core.aggregator import (
    AuthorFilter,
    compute_channel_counts,
    compute_team_counts,
    iter_channel_messages,
    list_team_channels,
)
from core.errors import InvalidArgument, StoreError, UpstreamFailure
from core.grouping import group_by_prefix
from core.models import ChannelRef, HashtagSummary, Page, TagCount, TaggedMessage
from core.paginator import PageParam, paginate
from core.store import MessageStore
from core.tokenizer import compile_hashtag_pattern, contains_tag

logger = logging.getLogger(__name__)

IntParam = Union[int, str, None]

_INT_RE = re.compile(r"-?\d+", re.ASCII)


def _require(value: Optional[str], name: str) -> str:
    value = (value or "").strip()
    if not value:
        raise InvalidArgument(f"{name} is required")
    return value


def _parse_int(value: IntParam, name: str) -> Optional[int]:
    """Parse an optional user-supplied integer; reject garbage.

    Strings must be plain ASCII decimal (an optional leading minus, then
    digits). Underscores, a leading plus and non-ASCII digits are refused.
    """
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise InvalidArgument(f"Invalid {name} parameter: {value!r}")
    if isinstance(value, int):
        return value
    text = value.strip()
    if not text:
        return None
    if not _INT_RE.fullmatch(text):
        raise InvalidArgument(f"Invalid {name} parameter: {value!r}")
    return int(text)


class HashtagService:
    """Orchestrates aggregation, grouping and tag lookups over a store."""

    def __init__(
        self,
        store: MessageStore,
        settings: Optional[Settings] = None,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self._store = store
        self._settings = settings or Settings()
        self._log = log or logger
        self.pattern = compile_hashtag_pattern()

    # ── Count queries ──────────────────────────────────────────────────────

    def get_channel_hashtags(self, channel_id: Optional[str], limit: IntParam = None) -> HashtagSummary:
        """Ranked hashtags and prefix groups for one channel.

        Args:
            channel_id: Channel to scan (required).
            limit: Optional cap on the number of distinct tags returned.

        Raises:
            InvalidArgument: Missing channel id or unparsable limit.
            UpstreamFailure: The store failed while reading the channel.
        """
        channel_id = _require(channel_id, "channel_id")
        top_n = _parse_int(limit, "limit")

        hashtags = compute_channel_counts(
            self._store,
            channel_id,
            self._settings.scan_budget,
            pattern=self.pattern,
            log=self._log,
            page_size=self._settings.messages_page_size,
        )
        if top_n is not None and top_n > 0:
            hashtags = hashtags[:top_n]
        return self._summarize(hashtags)

    def get_team_hashtags(self, team_id: Optional[str], max_count: IntParam = None) -> HashtagSummary:
        """Ranked hashtags and prefix groups across a team's public channels.

        Args:
            team_id: Team to scan (required).
            max_count: Occurrence budget; defaults to ``settings.team_default_max``,
                ``<= 0`` scans everything.

        Raises:
            InvalidArgument: Missing team id or unparsable max.
            UpstreamFailure: Channel listing or the first channel failed.
        """
        team_id = _require(team_id, "team_id")
        budget = _parse_int(max_count, "max")
        if budget is None:
            budget = self._settings.team_default_max

        self._log.debug("Computing team hashtags for %s (budget=%d)", team_id, budget)
        hashtags = compute_team_counts(
            self._store,
            team_id,
            budget,
            pattern=self.pattern,
            log=self._log,
            page_size=self._settings.messages_page_size,
            channel_page_size=self._settings.channel_list_page_size,
        )
        return self._summarize(hashtags)

    @staticmethod
    def _summarize(hashtags: list[TagCount]) -> HashtagSummary:
        return HashtagSummary(hashtags=hashtags, groups=group_by_prefix(hashtags))

    # ── Tag lookup ─────────────────────────────────────────────────────────

    def get_messages_for_tag(
        self, tag: Optional[str], channel_id: Optional[str] = None
    ) -> list[TaggedMessage]:
        """All human messages carrying exactly *tag*, newest first.

        Matching is case-sensitive: ``Foo`` does not match ``#foo``. A single
        leading ``#`` on *tag* is ignored.

        Raises:
            InvalidArgument: Missing tag.
            UpstreamFailure: The requested channel, or the team listing for a
                store-wide scan, could not be read.
        """
        tag = _require(tag, "tag")
        if tag.startswith("#"):
            tag = _require(tag[1:], "tag")
        channel_id = (channel_id or "").strip()

        self._log.debug("Getting messages for tag %r (channel_id=%r)", tag, channel_id)
        authors = AuthorFilter(self._store, self._log)
        if channel_id:
            matches = self._tagged_in_channel(tag, channel_id, authors)
        else:
            matches = self._tagged_everywhere(tag, authors)

        matches.sort(key=lambda m: (-m.created_at, m.id))
        self._log.debug("Found %d messages for tag %r", len(matches), tag)
        return matches

    def get_messages_for_tag_page(
        self,
        tag: Optional[str],
        channel_id: Optional[str] = None,
        page: PageParam = None,
        page_size: PageParam = None,
    ) -> Page[TaggedMessage]:
        """Paginated ``get_messages_for_tag``; always scans fully for exact totals."""
        return paginate(self.get_messages_for_tag(tag, channel_id), page, page_size)

    def _tagged_in_channel(self, tag: str, channel_id: str, authors: AuthorFilter) -> list[TaggedMessage]:
        try:
            channel = self._store.get_channel(channel_id)
        except StoreError as exc:
            self._log.error("Failed to get channel info for %s: %s", channel_id, exc)
        else:
            self._log.debug("Channel info: name=%s team_id=%s", channel.name, channel.team_id)

        try:
            return self._scan_for_tag(tag, channel_id, authors)
        except StoreError as exc:
            self._log.error("Failed to read channel %s: %s", channel_id, exc)
            raise UpstreamFailure(f"failed to read channel {channel_id}: {exc}") from exc

    def _tagged_everywhere(self, tag: str, authors: AuthorFilter) -> list[TaggedMessage]:
        try:
            teams = self._store.list_teams()
        except StoreError as exc:
            self._log.error("Failed to list teams: %s", exc)
            raise UpstreamFailure(f"failed to list teams: {exc}") from exc

        matches: list[TaggedMessage] = []
        seen_channels: set[str] = set()
        for team in teams:
            try:
                channels: list[ChannelRef] = list_team_channels(
                    self._store, team.id, self._settings.channel_list_page_size
                )
            except StoreError as exc:
                self._log.warning("Skipping team %s: %s", team.id, exc)
                continue

            for channel in channels:
                if channel.id in seen_channels:
                    continue
                seen_channels.add(channel.id)
                try:
                    matches.extend(self._scan_for_tag(tag, channel.id, authors))
                except StoreError as exc:
                    self._log.warning("Skipping channel %s: %s", channel.id, exc)
        return matches

    def _scan_for_tag(self, tag: str, channel_id: str, authors: AuthorFilter) -> list[TaggedMessage]:
        found: list[TaggedMessage] = []
        for message in iter_channel_messages(self._store, channel_id, self._settings.messages_page_size):
            if message.is_system_generated or not contains_tag(message.text, tag, self.pattern):
                continue
            author_name = authors.display_name(message.author_id)
            if author_name is None:
                continue
            found.append(
                TaggedMessage(
                    id=message.id,
                    text=message.text,
                    created_at=message.created_at,
                    author_name=author_name,
                    channel_id=message.channel_id,
                )
            )
        return found
