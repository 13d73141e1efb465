"""Pydantic models for API requests and responses."""

from typing import Literal

from pydantic import BaseModel, Field

from feedlens.models import Article, ExtractionResult, MediaAttachment, SummaryResult


class MediaAttachmentModel(BaseModel):
    """A declared media attachment."""

    type: str = Field(default="", description="MIME type")
    url: str = Field(default="", description="Attachment URL")
    length: int | None = Field(default=None, description="Size in bytes, if declared")

    def to_domain(self) -> MediaAttachment:
        return MediaAttachment(type=self.type, url=self.url, length=self.length)

    @classmethod
    def from_domain(cls, attachment: MediaAttachment) -> "MediaAttachmentModel":
        return cls(type=attachment.type, url=attachment.url, length=attachment.length)


class NormalizeRequest(BaseModel):
    """Request model for the normalize endpoint."""

    markup: str = Field(description="Raw article HTML")
    base_url: str | None = Field(default=None, description="URL the markup came from")
    media: list[MediaAttachmentModel] = Field(
        default_factory=list, description="Attachments declared alongside the markup"
    )
    strict: bool = Field(default=False, description="Also remove vector graphics")


class NormalizeResponse(BaseModel):
    """Response model for the normalize endpoint."""

    html: str = Field(description="Sanitized, filtered markup")
    attachments: list[MediaAttachmentModel] = Field(
        description="Attachments not already shown inline"
    )
    cover: str | None = Field(
        default=None, description="Thumbnail URL for list views, if any"
    )


class ReaderResponse(BaseModel):
    """Response model for the reader endpoint."""

    title: str = Field(default="", description="Article title")
    content_html: str = Field(default="", description="Extracted article markup")
    word_count: int = Field(default=0, description="Words in the extracted text")
    fallback: bool = Field(default=False, description="Whether feed content should be shown")
    error: str | None = Field(default=None, description="Why the extraction fell back")
    byline: str | None = None
    site_name: str | None = None
    source_url: str | None = None
    excerpt: str | None = None
    published_time: str | None = None
    image: str | None = None

    @classmethod
    def from_domain(cls, result: ExtractionResult) -> "ReaderResponse":
        return cls(
            title=result.title,
            content_html=result.content_html,
            word_count=result.word_count,
            fallback=result.fallback,
            error=result.error,
            byline=result.byline,
            site_name=result.site_name,
            source_url=result.source_url,
            excerpt=result.excerpt,
            published_time=result.published_time,
            image=result.image,
        )


class SummaryRequest(BaseModel):
    """Request model for the summary endpoint."""

    id: int | str = Field(description="Article identifier")
    title: str = Field(default="", description="Article title")
    content_html: str = Field(default="", description="Article markup")
    summary_text: str | None = Field(default=None, description="Feed-supplied summary")
    source_title: str | None = Field(default=None, description="Feed or site name")

    def to_domain(self) -> Article:
        return Article(
            id=self.id,
            title=self.title,
            content_html=self.content_html,
            summary_text=self.summary_text,
            source_title=self.source_title,
        )


class SummaryResponse(BaseModel):
    """Response model for the summary endpoint."""

    points: list[str] = Field(description="Key points, possibly empty")
    source: Literal["ai", "fallback"] = Field(description="Where the points came from")
    reason: str | None = Field(default=None, description="Why a fallback was used")

    @classmethod
    def from_domain(cls, result: SummaryResult) -> "SummaryResponse":
        return cls(points=result.points, source=result.source, reason=result.reason)


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str = Field(description="Health status")
    version: str = Field(description="Application version")
