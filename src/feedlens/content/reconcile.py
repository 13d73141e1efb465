"""Drop declared attachments that the inline content already shows."""

from collections.abc import Iterable

from bs4 import BeautifulSoup

from feedlens.content.sources import select_source
from feedlens.content.urls import media_key
from feedlens.models import CanonicalKey, ImageCandidate, MediaAttachment
from feedlens.utils.logging import get_logger

logger = get_logger(__name__)


def collect_media_keys(soup: BeautifulSoup, base_url: str | None) -> set[CanonicalKey]:
    """Collect the dedup keys of every image, audio and video in a document.

    Audio and video contribute their own ``src`` and the ``src`` of each nested
    <source>.
    """
    keys: set[CanonicalKey] = set()

    for img in soup.find_all("img"):
        key = media_key(base_url, select_source(ImageCandidate.from_tag(img)))
        if key:
            keys.add(key)

    for media in soup.find_all(["video", "audio"]):
        key = media_key(base_url, media.get("src"))
        if key:
            keys.add(key)
        for source in media.find_all("source"):
            key = media_key(base_url, source.get("src"))
            if key:
                keys.add(key)

    return keys


def reconcile_attachments(
    attachments: Iterable[MediaAttachment],
    inline_keys: set[CanonicalKey],
    base_url: str | None,
) -> list[MediaAttachment]:
    """Filter attachments down to the ones not already shown inline.

    Args:
        attachments: Declared attachments, in feed order.
        inline_keys: Keys of the media surviving in the inline content.
        base_url: URL relative attachment URLs resolve against.

    Returns:
        The attachments to display, order preserved. Entries without a URL
        are dropped.
    """
    visible = []
    for attachment in attachments:
        if not attachment.url.strip():
            continue
        key = media_key(base_url, attachment.url)
        if key in inline_keys:
            logger.debug("Attachment already shown inline", url=attachment.url)
            continue
        visible.append(attachment)
    return visible
