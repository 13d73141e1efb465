"""URL resolution and canonical dedup keys for media references."""

import re
from urllib.parse import urljoin, urlsplit, urlunsplit

from feedlens.models import CanonicalKey

SCHEME_PATTERN = re.compile(r"^[a-z][a-z0-9+.-]*:", re.IGNORECASE)

# Responsive-image rewrites embed the rendition size before the extension:
# photo-800x600.jpg, photo-300x200-1024x768.webp
SIZE_SUFFIX_PATTERN = re.compile(r"(?:-\d+x\d+)+(?=\.[a-z0-9]+\Z)", re.IGNORECASE)


def is_absolute_reference(value: str) -> bool:
    """Check if a reference carries a scheme or is protocol-relative."""
    return bool(SCHEME_PATTERN.match(value)) or value.startswith("//")


def resolve_url(base_url: str | None, raw: str | None) -> str:
    """Resolve a possibly relative reference against a document URL.

    Resolution is best-effort: whenever the base or the reference cannot be
    parsed the reference is returned as given.

    Args:
        base_url: The URL of the document the reference appears in.
        raw: The reference as written in the markup.

    Returns:
        An absolute URL, or the original reference.
    """
    if not base_url or not raw:
        return raw or ""
    value = raw.strip()
    if not value or is_absolute_reference(value):
        return value
    try:
        base = urlsplit(base_url.strip())
        if not base.scheme or not base.netloc:
            return value
        return urljoin(base_url.strip(), value)
    except ValueError:
        return value


def canonicalize_media_url(raw: str) -> CanonicalKey:
    """Map an absolute media URL to its dedup key.

    Drops the query and fragment and the ``-WxH`` rendition suffix, so
    ``https://site.com/photo-800x600.jpg?w=1`` and ``https://site.com/photo.jpg``
    share a key. Protocol-relative URLs (``//cdn.site.com/...``) keep their
    scheme-less form. Input without a host is its own key.
    """
    try:
        parts = urlsplit(raw)
    except ValueError:
        return raw
    if not parts.netloc:
        return raw
    path = SIZE_SUFFIX_PATTERN.sub("", parts.path)
    return urlunsplit((parts.scheme, parts.netloc.lower(), path, "", ""))


def media_key(base_url: str | None, raw: str | None) -> CanonicalKey | None:
    """Resolve then canonicalize a reference; None when there is nothing to key."""
    resolved = resolve_url(base_url, raw)
    if not resolved:
        return None
    return canonicalize_media_url(resolved)


def is_safe_media_url(value: str) -> bool:
    """Check if a reference may be used as an image or media source.

    Relative and protocol-relative references, http(s) URLs and inline image
    data are allowed.
    """
    normalized = value.strip().lower()
    if normalized.startswith("data:"):
        return normalized.startswith("data:image/")
    match = SCHEME_PATTERN.match(normalized)
    if match is None:
        return True
    return match.group(0) in ("http:", "https:")
