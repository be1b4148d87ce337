"""Brand URL canonicalization.

Turns whatever the caller typed into the brand URL field ("https://WWW.Nike.com/",
"nike.com?ref=ad", "  Nike.COM  ") into the bare lowercase host token that
identifies the brand for caching.  Pure string processing: nothing is
resolved or fetched.
"""

from __future__ import annotations

import re

# Only http(s) schemes are stripped; anything else is treated as part of the host.
_SCHEME_RE = re.compile(r"^https?://")
# The host ends at the first path, query or fragment delimiter.
_HOST_END_RE = re.compile(r"[/?#]")

_WWW_PREFIX = "www."


def canonicalize_domain(raw: str | None) -> str:
    """Return the canonical host token for *raw*, or ``""`` if there is none.

    Steps: trim, lower-case, drop a leading ``http://`` / ``https://``, cut
    at the first ``/``, ``?`` or ``#``, then drop one leading ``www.``
    label.  An empty return value is the "invalid" marker; callers must
    reject the request rather than hash it.

    Examples
    --------
    >>> canonicalize_domain("https://WWW.Example.com/shop?x=1")
    'example.com'
    >>> canonicalize_domain("example.com")
    'example.com'
    >>> canonicalize_domain("https:///")
    ''
    """
    if not raw:
        return ""
    value = _SCHEME_RE.sub("", raw.strip().lower())
    host = _HOST_END_RE.split(value, maxsplit=1)[0].strip()
    if host.startswith(_WWW_PREFIX):
        host = host[len(_WWW_PREFIX):]
    return host


def is_valid_domain(token: str) -> bool:
    """Return ``True`` when *token* is a usable canonical domain (non-empty)."""
    return bool(token)
