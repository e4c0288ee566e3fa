"""Error taxonomy for Hashtag Radar.

``InvalidArgument`` maps to a client error, ``UpstreamFailure`` to a server
error. Stores raise ``StoreError``; the core decides whether that is fatal
(and wraps it in ``UpstreamFailure``) or a per-item skip.
"""

from __future__ import annotations


class InvalidArgument(ValueError):
    """A required parameter is missing or malformed."""


class UpstreamFailure(RuntimeError):
    """A message-store call failed in a way that aborts the query."""


class StoreError(Exception):
    """Raised by ``MessageStore`` implementations when a lookup fails."""
