"""Content variant selection for the article detail view.

A session shows one of three variants of an article: the feed's own markup,
a reader-view extraction of the source page, or AI key points. The two
fetched variants load only when their tab is first selected, and their results
are kept for the life of the session.
"""

import asyncio
from collections import OrderedDict
from collections.abc import Awaitable, Callable, Hashable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Generic, TypeVar

from feedlens.clients.reader import ReaderClient
from feedlens.config import Settings
from feedlens.content.normalize import NormalizedContent, normalize
from feedlens.models import Article, ExtractionResult, MediaAttachment, SummaryResult
from feedlens.services.summarizer import SummarizerService
from feedlens.utils.errors import READER_UNAVAILABLE, SUMMARY_UNAVAILABLE, extract_error_message
from feedlens.utils.logging import get_logger

logger = get_logger(__name__)

FALLBACK_SUFFIX = "Showing feed content instead."
EMPTY_SUMMARY_MESSAGE = "No summary points available."
DEFAULT_CACHE_SIZE = 32

ExtractionFetcher = Callable[[str], Awaitable[ExtractionResult]]
SummaryFetcher = Callable[[Article], Awaitable[SummaryResult]]

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class Tab(StrEnum):
    ORIGINAL = "original"
    ALTERNATE = "alternate"
    SUMMARY = "summary"


class VariantState(StrEnum):
    ORIGINAL = "original"
    ALTERNATE_LOADING = "alternate_loading"
    ALTERNATE_READY = "alternate_ready"
    ALTERNATE_FALLBACK = "alternate_fallback"
    SUMMARY_LOADING = "summary_loading"
    SUMMARY_READY = "summary_ready"
    SUMMARY_EMPTY = "summary_empty"
    SUMMARY_ERROR = "summary_error"


class BoundedCache(Generic[K, V]):
    """Small LRU map; the least recently used entry goes first."""

    def __init__(self, max_size: int = DEFAULT_CACHE_SIZE) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._max_size = max_size
        self._entries: OrderedDict[K, V] = OrderedDict()

    def get(self, key: K) -> V | None:
        if key not in self._entries:
            return None
        self._entries.move_to_end(key)
        return self._entries[key]

    def put(self, key: K, value: V) -> None:
        self._entries[key] = value
        self._entries.move_to_end(key)
        while len(self._entries) > self._max_size:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


@dataclass(frozen=True)
class _Outcome(Generic[V]):
    """A completed fetch: a result or a user-facing error message."""

    result: V | None = None
    error: str | None = None


@dataclass
class RenderedView:
    """Everything the presentation layer needs for the active tab."""

    state: VariantState
    html: str = ""
    attachments: list[MediaAttachment] = field(default_factory=list)
    points: list[str] = field(default_factory=list)
    message: str | None = None
    notice: str | None = None
    reading_minutes: int | None = None
    word_count: int | None = None


class ArticleViewSession:
    """Tab state and fetched variants for one article in the detail view."""

    def __init__(
        self,
        article: Article,
        fetch_extraction: ExtractionFetcher,
        fetch_summary: SummaryFetcher,
        cache_size: int = DEFAULT_CACHE_SIZE,
    ) -> None:
        self._article = article
        self._fetch_extraction = fetch_extraction
        self._fetch_summary = fetch_summary
        self._extractions: BoundedCache[str, _Outcome[ExtractionResult]] = BoundedCache(cache_size)
        self._summaries: BoundedCache[int | str, _Outcome[SummaryResult]] = BoundedCache(
            cache_size
        )
        self._pending: dict[tuple[Tab, Hashable], asyncio.Future[None]] = {}
        self._original: NormalizedContent | None = None
        self._tab = Tab.ORIGINAL
        self._closed = False

    @property
    def article(self) -> Article:
        return self._article

    @property
    def tab(self) -> Tab:
        return self._tab

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def state(self) -> VariantState:
        """The variant state derived from the active tab and what has loaded."""
        if self._tab is Tab.ALTERNATE:
            if not self._article.link:
                return VariantState.ALTERNATE_FALLBACK
            extraction = self._extractions.get(self._article.link)
            if extraction is None:
                return VariantState.ALTERNATE_LOADING
            if extraction.error is not None or extraction.result is None:
                return VariantState.ALTERNATE_FALLBACK
            if extraction.result.fallback:
                return VariantState.ALTERNATE_FALLBACK
            return VariantState.ALTERNATE_READY

        if self._tab is Tab.SUMMARY:
            summary = self._summaries.get(self._article.id)
            if summary is None:
                return VariantState.SUMMARY_LOADING
            if summary.error is not None or summary.result is None:
                return VariantState.SUMMARY_ERROR
            if not summary.result.points:
                return VariantState.SUMMARY_EMPTY
            return VariantState.SUMMARY_READY

        return VariantState.ORIGINAL

    @property
    def reason(self) -> str | None:
        """The single failure reason for fallback and error states."""
        state = self.state
        if state is VariantState.ALTERNATE_FALLBACK and self._article.link:
            extraction = self._extractions.get(self._article.link)
            if extraction is None:
                return None
            if extraction.error is not None:
                return extraction.error
            return extraction.result.error if extraction.result else None
        if state is VariantState.SUMMARY_ERROR:
            summary = self._summaries.get(self._article.id)
            return summary.error if summary else SUMMARY_UNAVAILABLE
        return None

    @property
    def notice(self) -> str | None:
        """Dismissible notice shown above fallback content."""
        reason = self.reason
        if self.state is not VariantState.ALTERNATE_FALLBACK or not reason:
            return None
        return f"{reason.rstrip('.')}. {FALLBACK_SUFFIX}"

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("Article view session is closed")

    async def select(self, tab: Tab) -> VariantState:
        """Switch to a tab, loading its variant if it has not loaded yet."""
        if tab is Tab.ALTERNATE:
            return await self.select_alternate()
        if tab is Tab.SUMMARY:
            return await self.select_summary()
        return await self.select_original()

    async def select_original(self) -> VariantState:
        """Show the feed's own content. Never fetches."""
        self._ensure_open()
        self._tab = Tab.ORIGINAL
        return self.state

    async def select_alternate(self) -> VariantState:
        """Show the reader-view extraction, fetching it on first use."""
        self._ensure_open()
        self._tab = Tab.ALTERNATE
        link = self._article.link
        if not link:
            logger.info("Article has no link, skipping reader view", article_id=self._article.id)
            return self.state
        if link not in self._extractions:
            await self._await_pending(Tab.ALTERNATE, link, lambda: self._load_extraction(link))
        return self.state

    async def select_summary(self) -> VariantState:
        """Show the AI key points, fetching them on first use."""
        self._ensure_open()
        self._tab = Tab.SUMMARY
        article_id = self._article.id
        if article_id not in self._summaries:
            await self._await_pending(Tab.SUMMARY, article_id, self._load_summary)
        return self.state

    async def _await_pending(
        self,
        tab: Tab,
        key: Hashable,
        load: Callable[[], Awaitable[None]],
    ) -> None:
        pending_key = (tab, key)
        future = self._pending.get(pending_key)
        if future is None:
            future = asyncio.ensure_future(load())
            self._pending[pending_key] = future
            future.add_done_callback(lambda _: self._pending.pop(pending_key, None))
        # closing the view must not cancel the fetch itself
        await asyncio.shield(future)

    async def _load_extraction(self, link: str) -> None:
        try:
            outcome: _Outcome[ExtractionResult] = _Outcome(
                result=await self._fetch_extraction(link)
            )
        except Exception as e:
            logger.warning("Reader view failed", url=link, error=str(e))
            outcome = _Outcome(error=extract_error_message(e, READER_UNAVAILABLE))

        if self._closed:
            logger.debug("Discarding reader view for closed session", url=link)
            return
        self._extractions.put(link, outcome)

    async def _load_summary(self) -> None:
        article_id = self._article.id
        try:
            outcome: _Outcome[SummaryResult] = _Outcome(
                result=await self._fetch_summary(self._article)
            )
        except Exception as e:
            logger.warning("AI summary failed", article_id=article_id, error=str(e))
            outcome = _Outcome(error=extract_error_message(e, SUMMARY_UNAVAILABLE))

        if self._closed:
            logger.debug("Discarding summary for closed session", article_id=article_id)
            return
        if outcome.result is not None:
            logger.info(
                "AI summary loaded",
                article_id=article_id,
                points=len(outcome.result.points),
                source=outcome.result.source,
            )
        self._summaries.put(article_id, outcome)

    def _original_content(self) -> NormalizedContent:
        if self._original is None:
            self._original = normalize(
                self._article.body,
                self._article.base_url,
                self._article.media,
                strict=False,
            )
        return self._original

    def render(self) -> RenderedView:
        """Build the view for the active tab."""
        state = self.state

        if state in (VariantState.ORIGINAL, VariantState.ALTERNATE_FALLBACK):
            original = self._original_content()
            return RenderedView(
                state=state,
                html=original.html,
                attachments=list(original.attachments),
                notice=self.notice,
            )

        if state is VariantState.ALTERNATE_READY:
            extraction = self._extractions.get(self._article.link or "")
            result = extraction.result if extraction else None
            if result is not None:
                content = normalize(
                    result.content_html,
                    result.source_url or self._article.base_url,
                    strict=True,
                )
                return RenderedView(
                    state=state,
                    html=content.html,
                    reading_minutes=result.reading_minutes,
                    word_count=result.word_count,
                )

        if state is VariantState.SUMMARY_READY:
            summary = self._summaries.get(self._article.id)
            if summary is not None and summary.result is not None:
                return RenderedView(state=state, points=list(summary.result.points))

        if state is VariantState.SUMMARY_EMPTY:
            return RenderedView(state=state, message=EMPTY_SUMMARY_MESSAGE)

        if state is VariantState.SUMMARY_ERROR:
            return RenderedView(state=state, message=self.reason)

        return RenderedView(state=state)

    def close(self) -> None:
        """Drop cached variants; fetches still in flight are ignored when they finish."""
        self._closed = True
        self._extractions.clear()
        self._summaries.clear()
        self._original = None
        logger.debug("Article view session closed", article_id=self._article.id)


class DetailView:
    """Owns the session of the article currently open in the detail view."""

    def __init__(
        self,
        fetch_extraction: ExtractionFetcher,
        fetch_summary: SummaryFetcher,
        cache_size: int = DEFAULT_CACHE_SIZE,
    ) -> None:
        self._fetch_extraction = fetch_extraction
        self._fetch_summary = fetch_summary
        self._cache_size = cache_size
        self._session: ArticleViewSession | None = None

    @property
    def session(self) -> ArticleViewSession | None:
        return self._session

    def open(self, article: Article) -> ArticleViewSession:
        """Open an article, reusing the live session when it is the same article."""
        current = self._session
        if current is not None and not current.closed and current.article.id == article.id:
            return current
        if current is not None:
            current.close()
        self._session = ArticleViewSession(
            article,
            self._fetch_extraction,
            self._fetch_summary,
            cache_size=self._cache_size,
        )
        return self._session

    def close(self) -> None:
        """Close the detail view and forget its session."""
        if self._session is not None:
            self._session.close()
            self._session = None


def create_detail_view(
    settings: Settings,
    reader: ReaderClient,
    summarizer: SummarizerService,
) -> DetailView:
    """Build a detail view that fetches variants in-process."""
    return DetailView(
        reader.extract,
        summarizer.summarize,
        cache_size=settings.session_cache_size,
    )
