"""Unit tests for shared data models."""

from feedlens.models import (
    Article,
    ExtractionResult,
    MediaAttachment,
    parse_media_json,
)


class TestParseMediaJson:
    """Tests for parse_media_json."""

    def test_json_string(self) -> None:
        """Should decode a stored JSON list."""
        media = parse_media_json(
            '[{"type": "image/jpeg", "url": "https://site.com/a.jpg", "length": "2048"}]'
        )
        assert media == [MediaAttachment(type="image/jpeg", url="https://site.com/a.jpg", length=2048)]

    def test_decoded_list(self) -> None:
        """Should accept an already decoded list and skip non-objects."""
        media = parse_media_json([{"type": "audio/mpeg", "url": "u.mp3"}, "junk", 3])
        assert media == [MediaAttachment(type="audio/mpeg", url="u.mp3")]

    def test_malformed(self) -> None:
        """Malformed or non-list payloads give no attachments."""
        assert parse_media_json("{not json") == []
        assert parse_media_json('{"type": "image/png"}') == []
        assert parse_media_json(None) == []
        assert parse_media_json("") == []

    def test_bad_length(self) -> None:
        """An unreadable length is dropped."""
        [media] = parse_media_json([{"type": "image/png", "url": "a.png", "length": "big"}])
        assert media.length is None


class TestMediaAttachment:
    """Tests for MediaAttachment."""

    def test_kind(self) -> None:
        """Should expose the top-level MIME kind."""
        assert MediaAttachment(type="image/jpeg", url="a").kind == "image"
        assert MediaAttachment(type="Video/MP4", url="a").kind == "video"
        assert MediaAttachment(type="application/pdf", url="a").kind == "other"
        assert MediaAttachment(type="", url="a").kind == "other"


class TestArticle:
    """Tests for Article."""

    def test_from_api_response(self) -> None:
        """Should read an item payload with embedded media JSON."""
        article = Article.from_api_response(
            {
                "id": 42,
                "title": "Title",
                "contentHtml": "<p>Body</p>",
                "link": "https://site.com/post",
                "mediaJson": '[{"type": "image/jpeg", "url": "https://site.com/a.jpg"}]',
                "source": {"siteUrl": "https://site.com", "title": "Site"},
            }
        )
        assert article.id == 42
        assert article.base_url == "https://site.com/post"
        assert article.source_title == "Site"
        assert article.media == (MediaAttachment(type="image/jpeg", url="https://site.com/a.jpg"),)

    def test_body_falls_back_to_summary(self) -> None:
        """Should show the summary markup when there is no content."""
        assert Article(id=1, summary_text="<p>Short</p>").body == "<p>Short</p>"
        assert Article(id=1).body == ""

    def test_base_url_falls_back_to_site(self) -> None:
        """Should resolve against the site when the item has no link."""
        assert Article(id=1, site_url="https://site.com").base_url == "https://site.com"


class TestExtractionResult:
    """Tests for ExtractionResult."""

    def test_reading_minutes(self) -> None:
        """Should round reading time up at 200 words per minute."""
        assert ExtractionResult(title="", content_html="", word_count=401).reading_minutes == 3
        assert ExtractionResult(title="", content_html="", word_count=0).reading_minutes is None
