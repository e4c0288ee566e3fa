"""Hashtag tokenization.

A hashtag is a ``#`` at the start of the text or right after whitespace,
followed by one or more of ``A-Z a-z 0-9 _ . -``. Case is kept exactly as
written, so ``#Foo`` and ``#foo`` are different tags.
"""

from __future__ import annotations

import re
from typing import Optional

#: Capture group 1 is the tag body without the leading ``#``.
HASHTAG_REGEX = r"(?:^|(?<=\s))#([A-Za-z0-9_.\-]+)"


def compile_hashtag_pattern() -> re.Pattern:
    """Compile the hashtag pattern. Callers hold on to the result."""
    return re.compile(HASHTAG_REGEX, re.ASCII)


def extract_hashtags(text: str, pattern: Optional[re.Pattern] = None) -> list[str]:
    """Return every hashtag in *text* in order of appearance.

    Duplicates are kept; deduplication is up to the caller.

    Examples:
        >>> extract_hashtags("hello #foo-bar#baz #foo")
        ['foo-bar', 'foo']
    """
    if not text:
        return []
    pattern = pattern or compile_hashtag_pattern()
    return [match.group(1) for match in pattern.finditer(text)]


def contains_tag(text: str, tag: str, pattern: Optional[re.Pattern] = None) -> bool:
    """True if *tag* (case-sensitive) is one of the hashtags in *text*."""
    return tag in extract_hashtags(text, pattern)
