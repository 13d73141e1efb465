"""Unit tests for API routes."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from feedlens.clients.reader import ExtractionError, ReaderClient
from feedlens.main import app
from feedlens.models import ExtractionResult, SummaryResult
from feedlens.services.summarizer import SummaryError


@pytest.fixture
def client() -> TestClient:
    """Create a test client."""
    return TestClient(app)


class TestHealth:
    """Tests for the health endpoint."""

    def test_health(self, client: TestClient) -> None:
        """Should report healthy."""
        response = client.get("/api/v1/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestNormalizeEndpoint:
    """Tests for POST /api/v1/normalize."""

    def test_hides_inline_attachment(self, client: TestClient) -> None:
        """An attachment shown inline is not listed again."""
        response = client.post(
            "/api/v1/normalize",
            json={
                "markup": '<p>Hi</p><img src="/photo-800x600.jpg">',
                "base_url": "https://site.com/a/",
                "media": [
                    {"type": "image/jpeg", "url": "https://site.com/photo.jpg"},
                    {"type": "audio/mpeg", "url": "https://site.com/ep.mp3", "length": 1024},
                ],
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert 'src="https://site.com/photo-800x600.jpg"' in body["html"]
        assert body["attachments"] == [
            {"type": "audio/mpeg", "url": "https://site.com/ep.mp3", "length": 1024}
        ]

    def test_cover_prefers_image_attachment(self, client: TestClient) -> None:
        """The declared image is the thumbnail, resolved against the base."""
        response = client.post(
            "/api/v1/normalize",
            json={
                "markup": '<img src="/inline.jpg" width="800">',
                "base_url": "https://site.com/a/",
                "media": [{"type": "image/jpeg", "url": "/cover.jpg"}],
            },
        )
        assert response.json()["cover"] == "https://site.com/cover.jpg"

    def test_cover_from_filtered_markup(self, client: TestClient) -> None:
        """Tracking pixels are gone before the cover is picked."""
        response = client.post(
            "/api/v1/normalize",
            json={
                "markup": (
                    '<img src="/pixel.gif" width="1" height="1">'
                    '<img src="/story.jpg" width="640" height="480">'
                ),
                "base_url": "https://site.com/a/",
            },
        )
        assert response.json()["cover"] == "https://site.com/story.jpg"

    def test_no_cover(self, client: TestClient) -> None:
        """Markup without images has no cover."""
        response = client.post("/api/v1/normalize", json={"markup": "<p>Words</p>"})
        assert response.json()["cover"] is None

    def test_requires_markup(self, client: TestClient) -> None:
        """Markup is required."""
        response = client.post("/api/v1/normalize", json={"base_url": "https://site.com"})
        assert response.status_code == 422


class TestReaderEndpoint:
    """Tests for GET /api/v1/reader."""

    def test_extracts(self, client: TestClient) -> None:
        """Should return the extraction."""
        result = ExtractionResult(
            title="Post",
            content_html="<p>Body</p>",
            word_count=420,
            source_url="https://site.com/post",
        )
        with patch.object(ReaderClient, "extract", AsyncMock(return_value=result)) as extract:
            response = client.get("/api/v1/reader", params={"url": " https://site.com/post "})

        assert response.status_code == 200
        body = response.json()
        assert body["title"] == "Post"
        assert body["word_count"] == 420
        assert body["fallback"] is False
        extract.assert_awaited_once_with("https://site.com/post")

    def test_extraction_error_is_fallback(self, client: TestClient) -> None:
        """Fetch failures come back as a fallback with a reason."""
        with patch.object(
            ReaderClient, "extract", AsyncMock(side_effect=ExtractionError("server returned 404"))
        ):
            response = client.get("/api/v1/reader", params={"url": "https://site.com/gone"})

        assert response.status_code == 200
        body = response.json()
        assert body["fallback"] is True
        assert body["error"] == "server returned 404"
        assert body["source_url"] == "https://site.com/gone"

    @pytest.mark.parametrize("params", [{}, {"url": ""}, {"url": "ftp://site.com/x"}, {"url": "/post"}])
    def test_rejects_bad_url(self, client: TestClient, params: dict[str, str]) -> None:
        """Only absolute http(s) URLs are fetched."""
        response = client.get("/api/v1/reader", params=params)
        assert response.status_code == 400
        assert response.json() == {"error": "Unable to resolve that URL."}


class TestSummaryEndpoint:
    """Tests for POST /api/v1/summary."""

    def test_summary(self, client: TestClient) -> None:
        """Should return generated points."""
        summarizer = MagicMock()
        summarizer.summarize = AsyncMock(return_value=SummaryResult(points=["One."], source="ai"))
        with patch("feedlens.api.routes.get_summarizer", return_value=summarizer):
            response = client.post(
                "/api/v1/summary",
                json={"id": 5, "title": "Post", "content_html": "<p>Body</p>"},
            )

        assert response.status_code == 200
        assert response.json() == {"points": ["One."], "source": "ai", "reason": None}
        article = summarizer.summarize.call_args.args[0]
        assert article.id == 5
        assert article.title == "Post"

    def test_summary_error(self, client: TestClient) -> None:
        """An article with nothing to summarize is rejected."""
        summarizer = MagicMock()
        summarizer.summarize = AsyncMock(side_effect=SummaryError("no article content available"))
        with patch("feedlens.api.routes.get_summarizer", return_value=summarizer):
            response = client.post("/api/v1/summary", json={"id": 5})

        assert response.status_code == 422
        assert response.json() == {"error": "no article content available"}
