"""Content normalization and fingerprinting."""

from .normalizer import (
    collapse_whitespace,
    compute_content_hash,
    contents_equivalent,
    normalize_for_comparison,
    strip_html_tags,
    strip_wrapped_quotes,
)

__all__ = [
    "collapse_whitespace",
    "compute_content_hash",
    "contents_equivalent",
    "normalize_for_comparison",
    "strip_html_tags",
    "strip_wrapped_quotes",
]
