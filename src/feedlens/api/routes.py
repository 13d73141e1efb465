"""API routes for feedlens."""

from functools import lru_cache
from urllib.parse import urlsplit

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse

from feedlens import __version__
from feedlens.api.models import (
    HealthResponse,
    MediaAttachmentModel,
    NormalizeRequest,
    NormalizeResponse,
    ReaderResponse,
    SummaryRequest,
    SummaryResponse,
)
from feedlens.clients.gemini import GeminiClient
from feedlens.clients.reader import ExtractionError, ReaderClient
from feedlens.config import get_settings
from feedlens.content.cover import select_cover
from feedlens.content.normalize import normalize
from feedlens.content.urls import resolve_url
from feedlens.models import Article
from feedlens.services.summarizer import SummarizerService, SummaryError
from feedlens.utils.errors import URL_UNRESOLVABLE
from feedlens.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1", tags=["api"])


def _is_fetchable_url(url: str) -> bool:
    """Check if a URL is an absolute http(s) URL."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return parts.scheme in ("http", "https") and bool(parts.netloc)


@lru_cache(maxsize=1)
def get_summarizer() -> SummarizerService:
    """Get the shared summarizer; AI points need a configured GCP project."""
    settings = get_settings()
    gemini = None
    if settings.gcp_project_id:
        gemini = GeminiClient(
            project_id=settings.gcp_project_id,
            region=settings.gcp_region,
            model_name=settings.gemini_model,
        )
    return SummarizerService(
        gemini,
        temperature=settings.summary_temperature,
        max_output_tokens=settings.summary_max_output_tokens,
    )


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="healthy", version=__version__)


@router.post("/normalize", response_model=NormalizeResponse)
async def normalize_content(request: NormalizeRequest) -> NormalizeResponse:
    """Sanitize article markup and drop attachments it already shows.

    The cover is picked from the declared media and the filtered markup, so
    tracking pixels and avatars never become thumbnails.
    """
    media = tuple(m.to_domain() for m in request.media)
    content = normalize(request.markup, request.base_url, media, strict=request.strict)
    cover = select_cover(Article(id="", content_html=content.html, media=media))
    return NormalizeResponse(
        html=content.html,
        attachments=[MediaAttachmentModel.from_domain(a) for a in content.attachments],
        cover=resolve_url(request.base_url, cover) if cover else None,
    )


@router.get("/reader", response_model=ReaderResponse)
async def reader_view(
    url: str | None = Query(default=None, description="Article source URL"),
) -> ReaderResponse | JSONResponse:
    """Extract a reader view of an article's source page.

    Fetch and extraction failures are reported as ``fallback=true`` with an
    ``error`` reason, the same way a low-quality extraction is.
    """
    if not url or not _is_fetchable_url(url.strip()):
        logger.warning("Rejected reader URL", url=url)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": URL_UNRESOLVABLE},
        )
    url = url.strip()

    settings = get_settings()
    async with ReaderClient(
        timeout=settings.reader_timeout,
        user_agent=settings.reader_user_agent,
        min_content_length=settings.reader_min_content_length,
    ) as reader:
        try:
            result = await reader.extract(url)
        except ExtractionError as e:
            return ReaderResponse(fallback=True, error=e.reason, source_url=url)

    return ReaderResponse.from_domain(result)


@router.post("/summary", response_model=SummaryResponse)
async def summary(request: SummaryRequest) -> SummaryResponse | JSONResponse:
    """Generate key points for an article."""
    logger.info("Summary endpoint called", article_id=request.id)
    try:
        result = await get_summarizer().summarize(request.to_domain())
    except SummaryError as e:
        return JSONResponse(
            status_code=422,
            content={"error": e.reason},
        )
    return SummaryResponse.from_domain(result)
