"""Turn raw article markup into a safe, deduplicated document.

Pipeline per call: sanitize, parse, fix up links and media references, drop
unwanted images, then reconcile the declared attachments against what is left
inline. Each call owns its parsed tree and key sets; nothing is shared between
articles.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

import bleach
from bs4 import BeautifulSoup, Tag

from feedlens.content.admission import (
    admit_eager,
    admit_post_load,
    is_vector_source,
    is_vector_type,
    srcset_contains_vector,
)
from feedlens.content.reconcile import collect_media_keys, reconcile_attachments
from feedlens.content.sources import parse_srcset, select_source
from feedlens.content.urls import (
    canonicalize_media_url,
    is_safe_media_url,
    resolve_url,
)
from feedlens.models import LAZY_SOURCE_ATTRIBUTES, ImageCandidate, MediaAttachment
from feedlens.utils.logging import get_logger

logger = get_logger(__name__)

ALLOWED_TAGS = frozenset({
    "a", "abbr", "article", "aside", "audio", "b", "blockquote", "br", "caption",
    "cite", "code", "dd", "del", "details", "div", "dl", "dt", "em", "figcaption",
    "figure", "footer", "h1", "h2", "h3", "h4", "h5", "h6", "header", "hr", "i",
    "img", "ins", "kbd", "li", "mark", "ol", "p", "picture", "pre", "q", "s",
    "section", "small", "source", "span", "strong", "sub", "summary", "sup",
    "table", "tbody", "td", "tfoot", "th", "thead", "time", "tr", "track", "u",
    "ul", "video",
    # inline vector graphics; removed again in strict mode
    "svg", "g", "path", "circle", "rect", "line", "polygon", "polyline",
})

GLOBAL_ATTRIBUTES = frozenset({"class", "id", "title", "lang", "dir"})

ALLOWED_ATTRIBUTES: dict[str, frozenset[str]] = {
    "a": frozenset({"href", "name"}),
    "img": frozenset({
        "src", "srcset", "data-srcset", "sizes", "alt", "width", "height",
        *LAZY_SOURCE_ATTRIBUTES,
    }),
    "source": frozenset({"src", "srcset", "type", "media", "sizes"}),
    "video": frozenset({"src", "poster", "controls", "width", "height", "preload"}),
    "audio": frozenset({"src", "controls", "preload"}),
    "track": frozenset({"src", "kind", "srclang", "label"}),
    "td": frozenset({"colspan", "rowspan"}),
    "th": frozenset({"colspan", "rowspan", "scope"}),
    "time": frozenset({"datetime"}),
    "blockquote": frozenset({"cite"}),
    "ol": frozenset({"start", "type"}),
    "svg": frozenset({"width", "height", "viewbox", "viewBox", "fill", "xmlns"}),
    "path": frozenset({"d", "fill", "stroke", "stroke-width"}),
    "circle": frozenset({"cx", "cy", "r", "fill", "stroke"}),
    "rect": frozenset({"x", "y", "width", "height", "rx", "fill", "stroke"}),
    "line": frozenset({"x1", "y1", "x2", "y2", "stroke"}),
    "polygon": frozenset({"points", "fill", "stroke"}),
    "polyline": frozenset({"points", "fill", "stroke"}),
    "g": frozenset({"fill", "stroke"}),
}

ALLOWED_PROTOCOLS = frozenset({"http", "https", "mailto", "data"})

# Elements dropped with their content before sanitizing.
DISCARDED_ELEMENTS = ("script", "style", "noscript", "template", "iframe", "object", "embed")

LINK_TARGET = "_blank"
LINK_REL = "noopener noreferrer"


@dataclass
class NormalizedContent:
    """Display-ready markup plus the attachments it does not already show."""

    html: str
    attachments: list[MediaAttachment] = field(default_factory=list)


def _allow_attribute(tag: str, name: str, value: str) -> bool:
    if name not in GLOBAL_ATTRIBUTES and name not in ALLOWED_ATTRIBUTES.get(tag, ()):
        return False
    if value.strip().lower().startswith("data:"):
        # inline data only as image payloads
        return tag in ("img", "source") and value.strip().lower().startswith("data:image/")
    return True


def sanitize_html(markup: str) -> str:
    """Strip scripts, event handlers and unknown markup from feed HTML."""
    if not markup:
        return ""
    soup = BeautifulSoup(markup, "html.parser")
    for element in soup.find_all(DISCARDED_ELEMENTS):
        element.decompose()
    return bleach.clean(
        str(soup),
        tags=ALLOWED_TAGS,
        attributes=_allow_attribute,
        protocols=ALLOWED_PROTOCOLS,
        strip=True,
        strip_comments=True,
    )


def resolve_srcset(base_url: str | None, srcset: str) -> str:
    """Resolve every URL of a srcset list, keeping descriptors."""
    return ", ".join(
        f"{resolve_url(base_url, entry.url)} {entry.descriptor}"
        for entry in parse_srcset(srcset)
    )


def _rewrite_links(soup: BeautifulSoup, base_url: str | None) -> None:
    for anchor in soup.find_all("a"):
        anchor["target"] = LINK_TARGET
        anchor["rel"] = LINK_REL
        href = anchor.get("href")
        if href:
            resolved = resolve_url(base_url, href)
            if resolved != href:
                anchor["href"] = resolved


def _resolve_media(soup: BeautifulSoup, base_url: str | None) -> None:
    for element in soup.find_all(["video", "audio", "source", "track"]):
        for name in ("src", "poster"):
            value = element.get(name)
            if value:
                element[name] = resolve_url(base_url, value)
        if element.get("srcset"):
            element["srcset"] = resolve_srcset(base_url, element["srcset"])


def _remove_vector_graphics(soup: BeautifulSoup) -> int:
    removed = 0
    for svg in soup.find_all("svg"):
        svg.decompose()
        removed += 1
    for source in soup.find_all("source"):
        if (
            is_vector_type(source.get("type") or "")
            or is_vector_source(source.get("src") or "")
            or srcset_contains_vector(source.get("srcset") or "")
        ):
            source.decompose()
            removed += 1
    return removed


def _drop_image(img: Tag) -> None:
    picture = img.find_parent("picture")
    (picture or img).decompose()


def _filter_images(soup: BeautifulSoup, base_url: str | None, strict: bool) -> int:
    """Resolve, filter and dedup every <img>, in document order."""
    seen: set[str] = set()
    removed = 0

    for img in soup.find_all("img"):
        if img.decomposed:
            continue
        candidate = ImageCandidate.from_tag(img)
        chosen = select_source(candidate)

        if not chosen or not is_safe_media_url(chosen):
            _drop_image(img)
            removed += 1
            continue

        if strict and (is_vector_source(chosen) or srcset_contains_vector(candidate.srcset)):
            _drop_image(img)
            removed += 1
            continue

        src = resolve_url(base_url, chosen)
        if not admit_eager(candidate, src):
            _drop_image(img)
            removed += 1
            continue

        key = canonicalize_media_url(src)
        if key in seen:
            _drop_image(img)
            removed += 1
            continue
        seen.add(key)

        img["src"] = src
        for name in ("srcset", "data-srcset"):
            if img.get(name):
                img[name] = resolve_srcset(base_url, img[name])

    return removed


def normalize(
    markup: str,
    base_url: str | None,
    attachments: Iterable[MediaAttachment] = (),
    strict: bool = False,
) -> NormalizedContent:
    """Produce the displayable form of an article body.

    Args:
        markup: Raw article HTML.
        base_url: URL of the document the markup came from.
        attachments: Media declared alongside the markup.
        strict: Also remove vector graphics. Used for reader-view extractions,
            where decorative icons lose their page chrome.

    Returns:
        NormalizedContent with the filtered markup and the attachments that are
        not already shown inline.
    """
    soup = BeautifulSoup(sanitize_html(markup), "html.parser")

    _rewrite_links(soup, base_url)
    vectors_removed = _remove_vector_graphics(soup) if strict else 0
    _resolve_media(soup, base_url)
    images_removed = _filter_images(soup, base_url, strict)

    inline_keys = collect_media_keys(soup, base_url)
    attachments = list(attachments)
    visible = reconcile_attachments(attachments, inline_keys, base_url)

    logger.debug(
        "Content normalized",
        strict=strict,
        vectors_removed=vectors_removed,
        images_removed=images_removed,
        attachments_hidden=len(attachments) - len(visible),
    )
    return NormalizedContent(html=str(soup), attachments=visible)


def apply_observed_sizes(html: str, observed: Mapping[str, tuple[int, int]]) -> str:
    """Re-check images of normalized markup against their rendered sizes.

    Args:
        html: Output of normalize().
        observed: Rendered (width, height) by image ``src``; images not yet
            loaded are simply absent.

    Returns:
        The markup without the images that turned out too small.
    """
    if not observed:
        return html
    soup = BeautifulSoup(html, "html.parser")
    for img in soup.find_all("img"):
        if img.decomposed:
            continue
        src = img.get("src") or ""
        if src not in observed:
            continue
        width, height = observed[src]
        if not admit_post_load(ImageCandidate.from_tag(img), src, width, height):
            logger.debug("Dropping image after load", src=src, width=width, height=height)
            _drop_image(img)
    return str(soup)
