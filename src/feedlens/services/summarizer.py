"""Key-point summary generation for feedlens."""

import json
import time
from collections.abc import Callable
from typing import Any

from bs4 import BeautifulSoup

from feedlens.clients.gemini import GeminiClient
from feedlens.models import Article, SummaryResult
from feedlens.utils.logging import get_logger

logger = get_logger(__name__)

SUMMARY_CACHE_TTL = 30 * 60  # seconds
SUMMARY_CACHE_SIZE = 512
MAX_CONTENT_CHARS = 8000
MAX_POINTS = 5
MAX_POINT_LENGTH = 240
MAX_FALLBACK_POINTS = 4
MIN_SENTENCE_LENGTH = 30
MAX_SENTENCE_LENGTH = 250

_BULLET_CHARS = "-•*0123456789. "


class SummaryError(Exception):
    """Raised when an article has nothing that could be summarized."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


def strip_html(markup: str) -> str:
    """Return the text content of an HTML fragment."""
    if not markup:
        return ""
    return BeautifulSoup(markup, "html.parser").get_text(" ")


def normalize_whitespace(text: str) -> str:
    return " ".join(text.split())


def build_summary_content(article: Article) -> str:
    """Plain text sent to the model: summary text, then the stripped body."""
    parts = []
    if article.summary_text:
        parts.append(article.summary_text)
    if article.content_html:
        parts.append(strip_html(article.content_html))
    text = normalize_whitespace("\n\n".join(parts))
    if len(text) > MAX_CONTENT_CHARS:
        text = text[:MAX_CONTENT_CHARS] + "..."
    return text


def split_sentences(text: str) -> list[str]:
    """Split on terminal punctuation, keeping the punctuation."""
    sentences = []
    current: list[str] = []
    for char in text:
        current.append(char)
        if char in ".!?":
            sentence = "".join(current).strip()
            if sentence:
                sentences.append(sentence)
            current = []
    remainder = "".join(current).strip()
    if remainder:
        sentences.append(remainder)
    return sentences


def extract_fallback_points(article: Article) -> list[str]:
    """Pick a few leading sentences of reasonable length as key points."""
    text = (article.summary_text or "").strip()
    if not text:
        text = strip_html(article.content_html).strip()
    if not text:
        return []

    points = []
    for sentence in split_sentences(normalize_whitespace(text)):
        if not MIN_SENTENCE_LENGTH <= len(sentence) <= MAX_SENTENCE_LENGTH:
            continue
        points.append(sentence)
        if len(points) >= MAX_FALLBACK_POINTS:
            break
    return points


def strip_markdown_code_blocks(text: str) -> str:
    """Return the body of the first fenced code block, if there is one."""
    start = text.find("```")
    if start == -1:
        return text
    body = text[start + 3:]
    newline = body.find("\n")
    if newline != -1:
        body = body[newline + 1:]
    end = body.find("```")
    if end != -1:
        body = body[:end]
    return body.strip()


def clean_points(points: list[Any]) -> list[str]:
    """Trim, truncate and dedup points, keeping at most five."""
    seen: set[str] = set()
    cleaned = []
    for point in points:
        if not isinstance(point, str):
            continue
        point = point.strip()
        if not point:
            continue
        if len(point) > MAX_POINT_LENGTH:
            point = point[:MAX_POINT_LENGTH] + "..."
        key = point.lower()
        if key in seen:
            continue
        seen.add(key)
        cleaned.append(point)
        if len(cleaned) >= MAX_POINTS:
            break
    return cleaned


def _decode(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return None


def parse_summary_points(text: str) -> list[str]:
    """Parse a model reply into key points.

    Accepts a JSON array, a JSON string holding an array, an object with
    ``points`` or ``key_points``, or plain bulleted lines.
    """
    text = strip_markdown_code_blocks(text.strip())

    payload = _decode(text)
    if isinstance(payload, str):
        # double-encoded reply
        payload = _decode(payload)
    if isinstance(payload, list):
        return clean_points(payload)
    if isinstance(payload, dict):
        for key in ("points", "key_points"):
            if isinstance(payload.get(key), list) and payload[key]:
                return clean_points(payload[key])

    points = []
    for line in text.splitlines():
        line = line.strip()
        if not line or line.upper().rstrip(":") == "KEY POINTS":
            continue
        line = line.lstrip(_BULLET_CHARS).strip()
        if line:
            points.append(line)
    return clean_points(points)


class SummarizerService:
    """Service producing key-point summaries for articles."""

    def __init__(
        self,
        gemini_client: GeminiClient | None,
        *,
        temperature: float = 0.2,
        max_output_tokens: int = 320,
        cache_ttl: float = SUMMARY_CACHE_TTL,
        cache_size: int = SUMMARY_CACHE_SIZE,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._gemini = gemini_client
        self._temperature = temperature
        self._max_output_tokens = max_output_tokens
        self._cache_ttl = cache_ttl
        self._cache_size = cache_size
        self._clock = clock
        self._cache: dict[int | str, tuple[list[str], float]] = {}

    def _fallback(self, article: Article, reason: str) -> SummaryResult:
        logger.info("Using fallback summary", article_id=article.id, reason=reason)
        return SummaryResult(
            points=extract_fallback_points(article),
            source="fallback",
            reason=reason,
        )

    def _get_cached(self, article_id: int | str) -> list[str] | None:
        entry = self._cache.get(article_id)
        if entry is None:
            return None
        points, expires_at = entry
        if self._clock() >= expires_at:
            del self._cache[article_id]
            return None
        return list(points)

    def _put_cached(self, article_id: int | str, points: list[str]) -> None:
        now = self._clock()
        for key in [k for k, (_, expires_at) in self._cache.items() if now >= expires_at]:
            del self._cache[key]
        # entries share one TTL, so insertion order is expiry order
        self._cache.pop(article_id, None)
        while self._cache and len(self._cache) >= self._cache_size:
            del self._cache[next(iter(self._cache))]
        self._cache[article_id] = (list(points), now + self._cache_ttl)

    async def summarize(self, article: Article) -> SummaryResult:
        """Generate key points for an article.

        Model failures degrade to leading sentences of the article, tagged
        ``source="fallback"`` with a reason code.

        Args:
            article: The article to summarize.

        Returns:
            A SummaryResult; its point list may be empty.

        Raises:
            SummaryError: If the article has no text at all.
        """
        if self._gemini is None:
            return self._fallback(article, "missing_client")

        cached = self._get_cached(article.id)
        if cached is not None:
            logger.debug("Summary cache hit", article_id=article.id)
            return SummaryResult(points=cached, source="ai")

        content = build_summary_content(article)
        if not content:
            raise SummaryError("no article content available")

        try:
            reply = await self._gemini.key_points(
                title=article.title.strip(),
                source=(article.source_title or "").strip(),
                content=content,
                temperature=self._temperature,
                max_output_tokens=self._max_output_tokens,
            )
        except Exception as e:
            logger.warning("Gemini request failed", article_id=article.id, error=str(e))
            return self._fallback(article, "gemini_error")

        points = parse_summary_points(reply)
        if not points:
            return self._fallback(article, "no_points")

        self._put_cached(article.id, points)
        logger.info("Summary generated", article_id=article.id, points=len(points))
        return SummaryResult(points=points, source="ai")
