"""Reader-view extraction of an article's source page."""

import re

import httpx
import trafilatura
from bs4 import BeautifulSoup
from readability import Document

from feedlens.config import DEFAULT_USER_AGENT
from feedlens.models import ExtractionResult
from feedlens.utils.logging import get_logger

logger = get_logger(__name__)

MIN_CONTENT_LENGTH = 200
EXCERPT_MAX_LENGTH = 200
LOW_QUALITY_ERROR = "extracted content is too short"

_WORD_PATTERN = re.compile(r"[^\W_]+")


class ExtractionError(Exception):
    """Raised when a page cannot be fetched or no article can be extracted."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


def count_words(text: str) -> int:
    """Count words, treating punctuation as a separator."""
    return len(_WORD_PATTERN.findall(text))


def generate_excerpt(description: str | None, text: str) -> str:
    """Build a short teaser, preferring the page's own description."""
    source = (description or "").strip() or text.strip()
    if not source:
        return ""
    source = " ".join(source.split())
    if len(source) <= EXCERPT_MAX_LENGTH:
        return source

    excerpt = source[:EXCERPT_MAX_LENGTH]
    last_space = excerpt.rfind(" ")
    if last_space > EXCERPT_MAX_LENGTH // 2:
        excerpt = excerpt[:last_space]
    return excerpt + "..."


class ReaderClient:
    """Fetches source pages and extracts a clean article body."""

    def __init__(
        self,
        timeout: float = 20.0,
        user_agent: str = DEFAULT_USER_AGENT,
        min_content_length: int = MIN_CONTENT_LENGTH,
    ) -> None:
        self._min_content_length = min_content_length
        self._client = httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            headers={
                "User-Agent": user_agent,
                "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
                "Accept-Language": "en-US,en;q=0.5",
            },
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "ReaderClient":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    async def extract(self, url: str) -> ExtractionResult:
        """Fetch a page and extract its article.

        Args:
            url: The article's source URL.

        Returns:
            An ExtractionResult. Pages whose text is too short come back with
            ``fallback=True`` and an explanatory ``error``.

        Raises:
            ExtractionError: If the page cannot be fetched or parsed.
        """
        logger.info("Extracting reader view", url=url)

        html = await self._fetch_html(url)
        result = self._extract_content(url, html)

        if result.fallback:
            logger.warning(
                "Reader extraction is low quality",
                url=url,
                word_count=result.word_count,
            )
        else:
            logger.info(
                "Reader view extracted",
                url=url,
                title=result.title,
                word_count=result.word_count,
            )
        return result

    async def _fetch_html(self, url: str) -> str:
        """Fetch HTML content from a URL.

        Raises:
            ExtractionError: If the HTTP request fails.
        """
        try:
            response = await self._client.get(url)
            response.raise_for_status()
            return response.text
        except httpx.HTTPStatusError as e:
            logger.warning("HTTP error fetching URL", url=url, status=e.response.status_code)
            raise ExtractionError(f"server returned {e.response.status_code}") from e
        except httpx.TimeoutException as e:
            logger.warning("Timeout fetching URL", url=url)
            raise ExtractionError("timeout") from e
        except httpx.InvalidURL as e:
            logger.warning("Invalid URL", url=url, error=str(e))
            raise ExtractionError("invalid URL") from e
        except httpx.RequestError as e:
            logger.warning("Request error fetching URL", url=url, error=str(e))
            raise ExtractionError("failed to fetch article") from e

    def _extract_content(self, url: str, html: str) -> ExtractionResult:
        """Extract the article body and metadata from HTML.

        readability-lxml provides the body markup; trafilatura provides the
        page metadata.
        """
        try:
            doc = Document(html)
            content_html = doc.summary(html_partial=True)
            readability_title = doc.short_title()
        except Exception as e:
            logger.warning("Readability extraction failed", url=url, error=str(e))
            raise ExtractionError("failed to extract article content") from e

        metadata = trafilatura.extract_metadata(html)
        text = BeautifulSoup(content_html, "html.parser").get_text(" ")
        is_fallback = len(text.strip()) < self._min_content_length

        return ExtractionResult(
            title=(metadata.title if metadata and metadata.title else readability_title) or "",
            content_html=content_html,
            word_count=count_words(text),
            fallback=is_fallback,
            error=LOW_QUALITY_ERROR if is_fallback else None,
            byline=metadata.author if metadata else None,
            site_name=metadata.sitename if metadata else None,
            source_url=url,
            excerpt=generate_excerpt(metadata.description if metadata else None, text),
            published_time=metadata.date if metadata else None,
            image=metadata.image if metadata else None,
        )
