"""Content normalization and fingerprinting.

Two artifact contents are equivalent when their normalized forms are equal.
Normalization lowercases, decodes HTML entities, strips markup and collapses
whitespace, so formatting noise never produces a version bump or a conflict.
"""

import hashlib
import html
import re
from typing import Optional

_SCRIPT_OR_STYLE = re.compile(
    r"<(script|style)\b[^<]*(?:(?!</\1>)<[^<]*)*</\1>", re.IGNORECASE
)
_TAG = re.compile(r"<[^>]+>")
_WHITESPACE = re.compile(r"\s+")


def strip_html_tags(text: Optional[str]) -> str:
    """Remove script/style blocks and markup tags, decoding entities.

    Tags are replaced by a space so adjacent words stay separated.
    """
    if not text:
        return ""
    stripped = _SCRIPT_OR_STYLE.sub(" ", text)
    stripped = _TAG.sub(" ", stripped)
    return html.unescape(stripped)


def collapse_whitespace(text: Optional[str]) -> str:
    """Collapse whitespace runs into single spaces and trim."""
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text).strip()


def strip_wrapped_quotes(content: Optional[str]) -> str:
    """Remove one layer of surrounding double quotes from double-encoded text."""
    if not content:
        return ""
    trimmed = content.strip()
    if len(trimmed) >= 2 and trimmed.startswith('"') and trimmed.endswith('"'):
        return trimmed[1:-1]
    return content


def _normalize_step(text: str) -> str:
    return collapse_whitespace(strip_html_tags(text.lower())).lower()


def normalize_for_comparison(content: Optional[str]) -> str:
    """Canonicalize content for equality checks.

    Decoding an entity can produce new markup (``&lt;b&gt;``), so the step is
    repeated until the text stops changing; the result is therefore a fixed
    point and normalizing it again returns it unchanged. After the first pass
    every change strictly shortens the text, which bounds the loop.

    Args:
        content: Raw artifact content; None is treated as empty

    Returns:
        Normalized text
    """
    if not content:
        return ""

    current = content
    while True:
        normalized = _normalize_step(current)
        if normalized == current:
            return normalized
        current = normalized


def compute_content_hash(content: Optional[str]) -> str:
    """SHA-256 hex digest of the normalized content."""
    normalized = normalize_for_comparison(content)
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()


def contents_equivalent(left: Optional[str], right: Optional[str]) -> bool:
    """Check whether two contents normalize to the same text."""
    return compute_content_hash(left) == compute_content_hash(right)
