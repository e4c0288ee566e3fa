"""Hashtag counting over a message store.

Responsibilities:
- Page through a channel's messages in the store's fixed order
- Drop system-generated posts and posts by automated (or unknown) authors
- Count every tag occurrence until a global budget is reached
- Return a ranked ``TagCount`` list (count descending, tag ascending)

Budget semantics: the budget caps the number of tag *occurrences* counted,
not the number of distinct tags or messages. The scan stops the moment the
budget is reached, even in the middle of a message. A budget of zero or
less means "no cap".

Failure policy for team scans: listing the team's channels and scanning the
first channel must succeed; a store error on any later channel is logged and
that channel is skipped, including any occurrences its earlier pages produced.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator
from typing import Optional

from core.errors import StoreError, UpstreamFailure
from core.models import ChannelRef, Message, TagCount
from core.store import MessageStore
from core.tokenizer import compile_hashtag_pattern

logger = logging.getLogger(__name__)

#: Messages fetched per store call.
DEFAULT_MESSAGES_PAGE_SIZE = 200

#: Channels fetched per listing call.
DEFAULT_CHANNEL_PAGE_SIZE = 1000


# ── Store traversal ────────────────────────────────────────────────────────────


def iter_channel_messages(
    store: MessageStore,
    channel_id: str,
    page_size: int = DEFAULT_MESSAGES_PAGE_SIZE,
) -> Iterator[Message]:
    """Yield a channel's messages, page 0 first, in store order.

    Stops at the first empty or missing page. Ids listed in a page's order
    but absent from its message map are skipped. ``StoreError`` from the store
    propagates to the caller.
    """
    page_index = 0
    while True:
        page = store.get_messages_page(channel_id, page_index, page_size)
        if page is None or not page.order:
            return
        for message_id in page.order:
            message = page.messages.get(message_id)
            if message is not None:
                yield message
        page_index += 1


def list_team_channels(
    store: MessageStore,
    team_id: str,
    page_size: int = DEFAULT_CHANNEL_PAGE_SIZE,
) -> list[ChannelRef]:
    """Return every public channel of *team_id* in listing order."""
    channels: list[ChannelRef] = []
    offset = 0
    while True:
        batch = store.list_public_channels(team_id, offset, page_size)
        channels.extend(batch)
        if len(batch) < page_size:
            return channels
        offset += len(batch)


class AuthorFilter:
    """Request-local cache answering "should this author's posts count?".

    Automated accounts are excluded, and so is any author whose lookup fails.
    """

    def __init__(self, store: MessageStore, log: Optional[logging.Logger] = None) -> None:
        self._store = store
        self._log = log or logger
        self._names: dict[str, Optional[str]] = {}

    def display_name(self, author_id: str) -> Optional[str]:
        """Return the author's display name, or ``None`` if excluded."""
        if author_id not in self._names:
            try:
                author = self._store.get_author(author_id)
            except StoreError as exc:
                self._log.debug("Author lookup failed for %s: %s", author_id, exc)
                self._names[author_id] = None
            else:
                self._names[author_id] = None if author.is_automated else author.display_name
        return self._names[author_id]

    def allows(self, message: Message) -> bool:
        """True for human, non-system messages."""
        if message.is_system_generated:
            return False
        return self.display_name(message.author_id) is not None


# ── Counting ───────────────────────────────────────────────────────────────────


class TagCounter:
    """Accumulates tag occurrences up to a budget."""

    def __init__(self, budget: int) -> None:
        self.budget = budget
        self.total = 0
        self._counts: dict[str, int] = {}
        self._first_used: dict[str, int] = {}
        self._last_used: dict[str, int] = {}

    @property
    def exhausted(self) -> bool:
        return self.budget > 0 and self.total >= self.budget

    def add(self, tag: str, created_at: int) -> bool:
        """Count one occurrence. Returns ``False`` once the budget is spent."""
        if self.exhausted:
            return False
        self._counts[tag] = self._counts.get(tag, 0) + 1
        self._first_used[tag] = min(created_at, self._first_used.get(tag, created_at))
        self._last_used[tag] = max(created_at, self._last_used.get(tag, created_at))
        self.total += 1
        return True

    def add_message(self, message: Message, pattern: re.Pattern) -> None:
        for match in pattern.finditer(message.text):
            if not self.add(match.group(1), message.created_at):
                return

    def fork(self) -> TagCounter:
        """An empty counter that shares this one's budget and running total.

        Occurrences added to the fork only reach this counter through
        ``merge``, so a scan that fails halfway can simply be dropped.
        """
        fork = TagCounter(self.budget)
        fork.total = self.total
        return fork

    def merge(self, other: TagCounter) -> None:
        """Fold the occurrences counted by *other* into this counter."""
        for tag, count in other._counts.items():
            self._counts[tag] = self._counts.get(tag, 0) + count
            first, last = other._first_used[tag], other._last_used[tag]
            self._first_used[tag] = min(first, self._first_used.get(tag, first))
            self._last_used[tag] = max(last, self._last_used.get(tag, last))
            self.total += count

    def results(self) -> list[TagCount]:
        return format_counts(
            TagCount(
                tag=tag,
                count=count,
                first_used=self._first_used[tag],
                last_used=self._last_used[tag],
            )
            for tag, count in self._counts.items()
        )


def format_counts(counts: Iterable[TagCount]) -> list[TagCount]:
    """Rank tag counts: highest count first, ties broken by tag ascending.

    Args:
        counts: Iterable of ``TagCount``.

    Returns:
        A new sorted list.
    """
    return sorted(counts, key=lambda tc: (-tc.count, tc.tag))


def _scan_channel(
    store: MessageStore,
    channel_id: str,
    counter: TagCounter,
    authors: AuthorFilter,
    pattern: re.Pattern,
    page_size: int,
) -> None:
    if counter.exhausted:
        return
    for message in iter_channel_messages(store, channel_id, page_size):
        if not authors.allows(message):
            continue
        counter.add_message(message, pattern)
        if counter.exhausted:
            return


# ── Public pipeline ────────────────────────────────────────────────────────────


def compute_channel_counts(
    store: MessageStore,
    channel_id: str,
    budget: int,
    pattern: Optional[re.Pattern] = None,
    log: Optional[logging.Logger] = None,
    page_size: int = DEFAULT_MESSAGES_PAGE_SIZE,
) -> list[TagCount]:
    """Count hashtags in a single channel.

    Args:
        store: Message store to read from.
        channel_id: Channel to scan.
        budget: Maximum tag occurrences to count (``<= 0`` for no cap).
        pattern: Precompiled hashtag pattern.
        log: Logger for diagnostics; defaults to this module's logger.
        page_size: Messages per store call.

    Returns:
        Ranked ``TagCount`` list.

    Raises:
        UpstreamFailure: Any store error while paging the channel.
    """
    log = log or logger
    pattern = pattern or compile_hashtag_pattern()
    counter = TagCounter(budget)
    authors = AuthorFilter(store, log)

    try:
        _scan_channel(store, channel_id, counter, authors, pattern, page_size)
    except StoreError as exc:
        log.error("Failed to scan channel %s: %s", channel_id, exc)
        raise UpstreamFailure(f"failed to read channel {channel_id}: {exc}") from exc

    log.debug("Counted %d tag occurrences in channel %s", counter.total, channel_id)
    return counter.results()


def compute_team_counts(
    store: MessageStore,
    team_id: str,
    budget: int,
    pattern: Optional[re.Pattern] = None,
    log: Optional[logging.Logger] = None,
    page_size: int = DEFAULT_MESSAGES_PAGE_SIZE,
    channel_page_size: int = DEFAULT_CHANNEL_PAGE_SIZE,
) -> list[TagCount]:
    """Count hashtags across every public channel of a team.

    Channels are visited in listing order and the budget applies to the
    whole scan, not per channel.

    Raises:
        UpstreamFailure: Channel listing failed, or the first channel could
            not be read.
    """
    log = log or logger
    pattern = pattern or compile_hashtag_pattern()
    counter = TagCounter(budget)
    authors = AuthorFilter(store, log)

    log.debug("Getting channels for team %s", team_id)
    try:
        channels = list_team_channels(store, team_id, channel_page_size)
    except StoreError as exc:
        log.error("Failed to get channels for team %s: %s", team_id, exc)
        raise UpstreamFailure(f"failed to get channels: {exc}") from exc
    log.debug("Found %d channels in team %s", len(channels), team_id)

    for index, channel in enumerate(channels):
        if counter.exhausted:
            break
        channel_counter = counter.fork()
        try:
            _scan_channel(store, channel.id, channel_counter, authors, pattern, page_size)
        except StoreError as exc:
            if index == 0:
                log.error("Failed to scan channel %s: %s", channel.id, exc)
                raise UpstreamFailure(f"failed to read channel {channel.id}: {exc}") from exc
            log.warning("Skipping channel %s in team %s: %s", channel.id, team_id, exc)
            continue
        counter.merge(channel_counter)

    log.debug("Counted %d tag occurrences in team %s", counter.total, team_id)
    return counter.results()
