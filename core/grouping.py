"""Prefix grouping of counted tags.

``db-read`` and ``db-write`` share the group ``db``; a tag without a hyphen
is its own group key. Groups come back sorted by prefix, members in the order
they appear in the input (normally the ranked count order).
"""

from __future__ import annotations

from collections import defaultdict

from core.models import TagCount, TagGroup


def group_key(tag: str) -> str:
    """Return the text before the first ``-`` in *tag*, or *tag* itself."""
    prefix, _, _ = tag.partition("-")
    return prefix


def group_by_prefix(counts: list[TagCount]) -> list[TagGroup]:
    """Cluster tag counts by their hyphen prefix.

    A group is kept when it has several members or when its key contains no
    hyphen.

    Args:
        counts: Ranked ``TagCount`` list from the aggregator.

    Returns:
        ``TagGroup`` list sorted by prefix ascending.

    Examples:
        Tags ``db-read``, ``db-write`` and ``cache`` give two groups:
        ``cache`` with one member, then ``db`` with two.
    """
    groups: dict[str, list[TagCount]] = defaultdict(list)
    for tag_count in counts:
        groups[group_key(tag_count.tag)].append(tag_count)

    return [
        TagGroup(prefix=prefix, tags=members)
        for prefix, members in sorted(groups.items())
        if len(members) > 1 or "-" not in prefix
    ]
