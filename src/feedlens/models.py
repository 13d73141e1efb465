"""Shared data models for feedlens."""

import json
import math
from dataclasses import dataclass, field
from typing import Any, Literal

from bs4 import Tag

from feedlens.utils.logging import get_logger

logger = get_logger(__name__)

# Derived dedup key; only ever compared, never navigated to.
CanonicalKey = str

# Attributes holding a lazy-loaded image source, in lookup order.
LAZY_SOURCE_ATTRIBUTES = (
    "data-src",
    "data-original",
    "data-lazy-src",
    "data-url",
    "data-hi-res-src",
)

WORDS_PER_MINUTE = 200


@dataclass(frozen=True)
class MediaAttachment:
    """A media reference declared alongside the markup (e.g. a feed enclosure)."""

    type: str
    url: str
    length: int | None = None

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "MediaAttachment":
        """Create a MediaAttachment from a decoded feed/API entry."""
        length = data.get("length")
        try:
            length = int(length) if length is not None else None
        except (TypeError, ValueError):
            length = None
        return cls(
            type=str(data.get("type") or ""),
            url=str(data.get("url") or ""),
            length=length,
        )

    @property
    def kind(self) -> str:
        """Top-level MIME kind: image, audio, video or other."""
        major = self.type.split("/", 1)[0].lower()
        return major if major in ("image", "audio", "video") else "other"


def parse_media_json(raw: str | list[Any] | None) -> list[MediaAttachment]:
    """Parse a declared media list.

    Accepts the JSON text stored with an item or an already decoded list.
    Malformed JSON and non-list payloads yield an empty list.
    """
    if not raw:
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            logger.debug("Ignoring malformed media list")
            return []
    if not isinstance(raw, list):
        return []
    return [MediaAttachment.from_api_response(entry) for entry in raw if isinstance(entry, dict)]


@dataclass(frozen=True)
class Article:
    """A fetched feed item as seen by the detail view."""

    id: int | str
    content_html: str = ""
    summary_text: str | None = None
    link: str | None = None
    author: str | None = None
    title: str = ""
    site_url: str | None = None
    source_title: str | None = None
    media: tuple[MediaAttachment, ...] = ()

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "Article":
        """Create an Article from an item payload (camelCase keys)."""
        source = data.get("source") or {}
        media = data.get("media")
        if media is None:
            media = data.get("mediaJson")
        return cls(
            id=data["id"],
            content_html=data.get("contentHtml") or "",
            summary_text=data.get("summaryText"),
            link=data.get("link") or None,
            author=data.get("author"),
            title=data.get("title") or "",
            site_url=source.get("siteUrl") or None,
            source_title=source.get("title"),
            media=tuple(parse_media_json(media)),
        )

    @property
    def body(self) -> str:
        """Markup shown for the feed variant."""
        return self.content_html or self.summary_text or ""

    @property
    def base_url(self) -> str | None:
        """URL that relative references in the body resolve against."""
        return self.link or self.site_url


@dataclass(frozen=True)
class PictureSource:
    """One <source> offered inside a <picture> group."""

    srcset: str
    type: str = ""


@dataclass
class ImageCandidate:
    """An <img> reference discovered while walking the markup."""

    src: str = ""
    srcset: str = ""
    picture_sources: tuple[PictureSource, ...] = ()
    lazy_sources: dict[str, str] = field(default_factory=dict)
    alt: str = ""
    css_class: str = ""
    element_id: str = ""
    width: str = ""
    height: str = ""

    @classmethod
    def from_tag(cls, img: Tag) -> "ImageCandidate":
        """Build a candidate from a parsed <img> element."""
        picture = img.find_parent("picture")
        sources: tuple[PictureSource, ...] = ()
        if picture is not None:
            sources = tuple(
                PictureSource(
                    srcset=_attr(source, "srcset"),
                    type=_attr(source, "type"),
                )
                for source in picture.find_all("source")
            )
        return cls(
            src=_attr(img, "src"),
            srcset=_attr(img, "srcset") or _attr(img, "data-srcset"),
            picture_sources=sources,
            lazy_sources={
                name: _attr(img, name) for name in LAZY_SOURCE_ATTRIBUTES if _attr(img, name)
            },
            alt=_attr(img, "alt"),
            css_class=_attr(img, "class"),
            element_id=_attr(img, "id"),
            width=_attr(img, "width"),
            height=_attr(img, "height"),
        )


def _attr(tag: Tag, name: str) -> str:
    value = tag.get(name)
    if value is None:
        return ""
    if isinstance(value, list):
        # multi-valued attributes such as class
        return " ".join(value)
    return str(value)


@dataclass
class ExtractionResult:
    """Cleaned rendition of an article's source page."""

    title: str
    content_html: str
    word_count: int = 0
    fallback: bool = False
    error: str | None = None
    byline: str | None = None
    site_name: str | None = None
    source_url: str | None = None
    excerpt: str | None = None
    published_time: str | None = None
    image: str | None = None

    @property
    def reading_minutes(self) -> int | None:
        """Estimated reading time at 200 words per minute."""
        if self.word_count <= 0:
            return None
        return math.ceil(self.word_count / WORDS_PER_MINUTE)


@dataclass
class SummaryResult:
    """Short key points derived from an article."""

    points: list[str]
    source: Literal["ai", "fallback"] = "ai"
    reason: str | None = None
