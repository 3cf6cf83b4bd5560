"""Tests for request parameter normalization."""

from __future__ import annotations

import pytest

from yugaweb.pipeline.normalizer import normalize_request, sanitize_url


class TestSanitizeUrl:
    """Tests for sanitize_url."""

    def test_keeps_ordinary_url(self) -> None:
        url = "https://example.test/org/repo.git?x=1&y=2#frag"
        assert sanitize_url(url) == url

    def test_strips_whitespace_and_control_characters(self) -> None:
        assert sanitize_url(" https://ex.test/r\n.git\t") == "https://ex.test/r.git"

    def test_strips_non_ascii(self) -> None:
        assert sanitize_url("https://exämple.test/é") == "https://exmple.test/"

    def test_keeps_url_punctuation_without_validating(self) -> None:
        # Shell-looking characters that are legal in URLs pass through
        raw = "not a url; `id` $(x)"
        assert sanitize_url(raw) == "notaurl;`id`$(x)"


class TestNormalizeRequest:
    """Tests for normalize_request."""

    def test_empty_revision_defaults_to_head(self) -> None:
        request = normalize_request("https://example.test/repo.git", "", "src")
        assert request.revision == "HEAD"

    def test_empty_subdir_defaults_to_dot(self) -> None:
        request = normalize_request("https://example.test/repo.git", "abc", "")
        assert request.subdir_filter == "."

    @pytest.mark.parametrize("value", [None, ""])
    def test_absent_values_default(self, value) -> None:
        request = normalize_request(value, value, value)

        assert request.source_url == ""
        assert request.revision == "HEAD"
        assert request.subdir_filter == "."

    def test_given_values_kept(self) -> None:
        request = normalize_request("https://example.test/repo.git", "deadbeef", "crates/a")

        assert request.source_url == "https://example.test/repo.git"
        assert request.revision == "deadbeef"
        assert request.subdir_filter == "crates/a"
