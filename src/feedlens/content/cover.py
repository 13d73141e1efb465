"""Cover image selection for article lists."""

import re

from bs4 import BeautifulSoup

from feedlens.content.admission import looks_like_avatar, parse_dimension
from feedlens.models import Article

_STYLE_SIZE_PATTERN = re.compile(r"width:\s*(\d+)px.*height:\s*(\d+)px", re.IGNORECASE)

GOOD_ENOUGH_SCORE = 3

# (min width, min height, score); either side reaching its floor earns the score.
SIZE_TIERS = (
    (400, 300, 4),
    (240, 180, 3),
    (160, 120, 2),
    (90, 90, 1),
)


def size_score(width: int, height: int) -> int:
    """Bucket an image by its declared size, 0 (tiny/unknown) to 4 (large)."""
    for min_width, min_height, score in SIZE_TIERS:
        if width >= min_width or height >= min_height:
            return score
    return 0


def _declared_size(width_attr: str, height_attr: str, style: str) -> tuple[int, int]:
    match = _STYLE_SIZE_PATTERN.search(style)
    style_width = int(match.group(1)) if match else 0
    style_height = int(match.group(2)) if match else 0
    return (
        max(parse_dimension(width_attr), style_width),
        max(parse_dimension(height_attr), style_height),
    )


def select_cover(article: Article) -> str | None:
    """Pick a thumbnail URL for an article.

    A declared image attachment wins; otherwise the largest-looking inline
    image of the body is used.

    Returns:
        The image URL as written in the feed, or None.
    """
    for attachment in article.media:
        if attachment.kind == "image" and attachment.url and not looks_like_avatar(attachment.url):
            return attachment.url

    if not article.body:
        return None

    soup = BeautifulSoup(article.body, "html.parser")
    best_src: str | None = None
    best_score = -1
    for img in soup.find_all("img", src=True):
        src = img["src"].strip()
        css_class = " ".join(img.get("class") or [])
        hint = f"{img.get('alt') or ''} {css_class} {img.get('id') or ''}"
        if not src or looks_like_avatar(src) or looks_like_avatar(hint):
            continue
        width, height = _declared_size(
            img.get("width") or "", img.get("height") or "", img.get("style") or ""
        )
        score = size_score(width, height)
        if score > best_score:
            best_src, best_score = src, score
        if score >= GOOD_ENOUGH_SCORE:
            break
    return best_src
