"""Unit tests for URL resolution and canonical keys."""

import pytest

from feedlens.content.urls import (
    canonicalize_media_url,
    is_safe_media_url,
    media_key,
    resolve_url,
)

ABSOLUTE_URLS = [
    "https://site.com/photo.jpg",
    "http://cdn.example.org/a/b/c.png?x=1#frag",
    "//cdn.example.org/hero.webp",
    "mailto:editor@example.org",
    "data:image/png;base64,iVBORw0KGgo=",
]

CANONICAL_INPUTS = [
    "https://site.com/photo.jpg",
    "https://site.com/photo-800x600.jpg?w=1#top",
    "https://site.com/uploads/photo-300x200-1024x768.webp",
    "https://Site.COM/Photo-10X20.PNG",
    "https://site.com/",
    "https://site.com",
    "not a url",
    "/relative/photo-800x600.jpg",
    "//cdn.example.org/photo-800x600.jpg?w=1",
    "",
]


class TestResolveUrl:
    """Tests for resolve_url."""

    def test_resolves_root_relative_reference(self) -> None:
        """Should resolve a root-relative path against the base host."""
        assert resolve_url("https://site.com/a/", "/photo.jpg") == "https://site.com/photo.jpg"

    def test_resolves_document_relative_reference(self) -> None:
        """Should resolve a bare filename against the base directory."""
        assert resolve_url("https://site.com/a/", "img.jpg") == "https://site.com/a/img.jpg"

    @pytest.mark.parametrize("url", ABSOLUTE_URLS)
    @pytest.mark.parametrize("base", ["https://site.com/a/", None, "not a url", ""])
    def test_absolute_reference_is_unchanged(self, base: str | None, url: str) -> None:
        """Should return absolute and protocol-relative references as given."""
        assert resolve_url(base, url) == url

    def test_empty_reference(self) -> None:
        """Should return empty references unchanged."""
        assert resolve_url("https://site.com/", "") == ""
        assert resolve_url("https://site.com/", None) == ""

    def test_whitespace_reference(self) -> None:
        """Should collapse whitespace-only references to empty."""
        assert resolve_url("https://site.com/", "   ") == ""

    def test_missing_base_keeps_reference(self) -> None:
        """Should keep the reference when there is no base."""
        assert resolve_url(None, "/photo.jpg") == "/photo.jpg"

    def test_relative_base_keeps_reference(self) -> None:
        """Should keep the reference when the base is not absolute."""
        assert resolve_url("/a/b/", "photo.jpg") == "photo.jpg"

    def test_malformed_base_keeps_reference(self) -> None:
        """Should never raise on an unparsable base."""
        assert resolve_url("http://[::1", "photo.jpg") == "photo.jpg"


class TestCanonicalizeMediaUrl:
    """Tests for canonicalize_media_url."""

    def test_strips_query_fragment_and_size_suffix(self) -> None:
        """Should reduce a rendition URL to its original asset."""
        assert (
            canonicalize_media_url("https://site.com/photo-800x600.jpg?w=1#top")
            == "https://site.com/photo.jpg"
        )

    def test_strips_stacked_size_suffixes(self) -> None:
        """Should strip every trailing size suffix."""
        assert (
            canonicalize_media_url("https://site.com/uploads/photo-300x200-1024x768.webp")
            == "https://site.com/uploads/photo.webp"
        )

    def test_keeps_size_without_extension(self) -> None:
        """Should only strip a suffix sitting right before an extension."""
        assert (
            canonicalize_media_url("https://site.com/photo-800x600")
            == "https://site.com/photo-800x600"
        )

    def test_keeps_inner_size_segment(self) -> None:
        """Should leave sizes in directory names alone."""
        assert (
            canonicalize_media_url("https://site.com/800x600/photo.jpg")
            == "https://site.com/800x600/photo.jpg"
        )

    def test_unparsable_input_is_its_own_key(self) -> None:
        """Should return non-absolute input unchanged."""
        assert canonicalize_media_url("not a url") == "not a url"

    def test_protocol_relative_url_is_keyed(self) -> None:
        """Scheme-less URLs with a host lose their query and size suffix too."""
        assert (
            canonicalize_media_url("//CDN.site.com/photo-800x600.jpg?w=1#x")
            == "//cdn.site.com/photo.jpg"
        )

    def test_hostless_schemes_are_their_own_key(self) -> None:
        """References without a host are left alone."""
        assert canonicalize_media_url("mailto:editor@site.com") == "mailto:editor@site.com"

    @pytest.mark.parametrize("url", CANONICAL_INPUTS)
    def test_idempotent(self, url: str) -> None:
        """Canonicalizing twice should equal canonicalizing once."""
        once = canonicalize_media_url(url)
        assert canonicalize_media_url(once) == once

    def test_query_variants_share_key(self) -> None:
        """URLs differing only in query share a key."""
        assert canonicalize_media_url("https://site.com/a.jpg?w=100") == canonicalize_media_url(
            "https://site.com/a.jpg?w=1200&q=80"
        )


class TestMediaKey:
    """Tests for media_key."""

    def test_resolves_then_canonicalizes(self) -> None:
        """Should key a relative rendition to its absolute original."""
        assert media_key("https://site.com/a/", "photo-640x480.jpg") == "https://site.com/a/photo.jpg"

    def test_empty_reference_has_no_key(self) -> None:
        """Should return None when there is nothing to key."""
        assert media_key("https://site.com/", "") is None
        assert media_key(None, None) is None


class TestIsSafeMediaUrl:
    """Tests for is_safe_media_url."""

    @pytest.mark.parametrize(
        "url",
        ["https://site.com/a.jpg", "http://site.com/a.jpg", "/a.jpg", "a.jpg", "//cdn.site.com/a.jpg",
         "data:image/png;base64,AAAA"],
    )
    def test_allows_web_and_image_data(self, url: str) -> None:
        """Should allow web URLs, relative references and image data."""
        assert is_safe_media_url(url) is True

    @pytest.mark.parametrize(
        "url", ["javascript:alert(1)", "JavaScript:alert(1)", "data:text/html,<b>x</b>", "file:///etc/x"]
    )
    def test_rejects_other_schemes(self, url: str) -> None:
        """Should reject script, non-image data and local file URLs."""
        assert is_safe_media_url(url) is False
