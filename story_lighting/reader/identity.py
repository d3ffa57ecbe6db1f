from __future__ import annotations

from hashlib import sha1
from urllib.parse import urlparse, urlunparse


def canonicalize_url(url: str, *, preserve_query: bool = True) -> str:
    """
    Canonicalize an article URL by:
    - removing whitespace/newlines
    - lower-casing scheme and host
    - dropping the fragment
    - optionally dropping the query string
    """
    url = "".join(url.split())
    parsed = urlparse(url)

    scheme = parsed.scheme.lower() if parsed.scheme else "https"
    netloc = parsed.netloc.lower()
    query = parsed.query if preserve_query else ""

    return urlunparse((scheme, netloc, parsed.path, parsed.params, query, ""))


def article_id_for(url: str) -> str:
    """Content-addressed store key for an article URL."""
    return sha1(canonicalize_url(url).encode("utf-8")).hexdigest()
