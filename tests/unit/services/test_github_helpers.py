"""Unit tests for GitHub helpers.

Tests rate limit parsing, resource URL parsing, timestamp parsing and
error response classification.
"""

from __future__ import annotations

from datetime import UTC, datetime

import httpx
import pytest

from ghtranscript.services.github.exceptions import (
    GitHubAPIError,
    NotFoundError,
    ParseFailureError,
    RateLimitedError,
)
from ghtranscript.services.github.helpers import (
    InvalidResourceURL,
    RateLimitInfo,
    error_message,
    handle_error_response,
    parse_resource_url,
    parse_timestamp,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_response(
    status_code: int = 200,
    json_data: object = None,
    headers: dict[str, str] | None = None,
) -> httpx.Response:
    """Build a fake httpx.Response."""
    return httpx.Response(
        status_code=status_code,
        json=json_data,
        headers=headers or {},
    )


# ═══════════════════════════════════════════════════════════════════════════
# RateLimitInfo
# ═══════════════════════════════════════════════════════════════════════════


class TestRateLimitInfo:
    """Tests for rate limit header parsing."""

    def test_extracts_remaining_and_reset(self):
        resp = _make_response(
            headers={
                "X-RateLimit-Remaining": "42",
                "X-RateLimit-Reset": "1700000000",
            }
        )
        info = RateLimitInfo(resp)

        assert info.remaining == "42"
        assert info.reset_timestamp == 1700000000
        assert info.is_exhausted is False

    def test_detects_exhausted(self):
        resp = _make_response(headers={"X-RateLimit-Remaining": "0"})

        assert RateLimitInfo(resp).is_exhausted is True

    def test_missing_headers(self):
        info = RateLimitInfo(_make_response(headers={}))

        assert info.remaining is None
        assert info.reset_timestamp is None
        assert info.is_exhausted is False


# ═══════════════════════════════════════════════════════════════════════════
# parse_resource_url
# ═══════════════════════════════════════════════════════════════════════════


class TestParseResourceUrl:
    """Tests for turning issue/PR URLs into ResourceRefs."""

    def test_issue_url(self):
        ref = parse_resource_url("https://github.com/octo/hello/issues/42")

        assert (ref.owner, ref.repo, ref.number, ref.is_pull) == ("octo", "hello", 42, False)
        assert str(ref) == "octo/hello#42"
        assert ref.slug == "octo-hello-42"

    def test_pull_url_with_tab_suffix(self):
        ref = parse_resource_url("https://github.com/octo/hello.js/pull/7/files")

        assert ref.repo == "hello.js"
        assert ref.number == 7
        assert ref.is_pull is True

    def test_fragment_and_whitespace_are_ignored(self):
        ref = parse_resource_url("  https://www.github.com/o/r/issues/3#issuecomment-1 \n")

        assert ref.full_name == "o/r"
        assert ref.number == 3

    @pytest.mark.parametrize(
        "url",
        [
            "https://github.com/octo/hello",
            "https://github.com/octo/hello/discussions/1",
            "https://gitlab.com/octo/hello/issues/1",
            "https://github.com/octo/hello/issues/abc",
            "",
        ],
    )
    def test_rejects_other_urls(self, url):
        with pytest.raises(InvalidResourceURL):
            parse_resource_url(url)


# ═══════════════════════════════════════════════════════════════════════════
# parse_timestamp
# ═══════════════════════════════════════════════════════════════════════════


class TestParseTimestamp:
    def test_parses_zulu(self):
        assert parse_timestamp("2024-03-01T12:00:00Z") == datetime(2024, 3, 1, 12, 0, tzinfo=UTC)

    def test_none_and_empty(self):
        assert parse_timestamp(None) is None
        assert parse_timestamp("") is None

    def test_malformed_returns_none(self):
        assert parse_timestamp("yesterday") is None


# ═══════════════════════════════════════════════════════════════════════════
# handle_error_response
# ═══════════════════════════════════════════════════════════════════════════


class TestHandleErrorResponse:
    """Tests for centralized GitHub API error handling."""

    def test_200_does_nothing(self):
        handle_error_response(_make_response(status_code=200), "o/r#1")  # should not raise

    def test_401_raises_auth_error(self):
        with pytest.raises(GitHubAPIError, match="Invalid or expired") as exc_info:
            handle_error_response(_make_response(status_code=401), "o/r#1")

        assert not isinstance(exc_info.value, RateLimitedError)

    def test_404_raises_not_found(self):
        with pytest.raises(NotFoundError, match="Not found: o/r#1") as exc_info:
            handle_error_response(_make_response(status_code=404), "o/r#1")

        assert exc_info.value.status_code == 404

    def test_403_with_rate_limit_exhausted(self):
        resp = _make_response(
            status_code=403,
            headers={"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": "1700000000"},
        )
        with pytest.raises(RateLimitedError, match="rate limit") as exc_info:
            handle_error_response(resp, "o/r#1")

        assert exc_info.value.rate_limit_reset == 1700000000

    def test_403_secondary_rate_limit_message(self):
        resp = _make_response(
            status_code=403,
            json_data={"message": "You have exceeded a secondary rate limit."},
            headers={"X-RateLimit-Remaining": "4000"},
        )
        with pytest.raises(RateLimitedError):
            handle_error_response(resp, "o/r#1")

    def test_429_is_rate_limited(self):
        with pytest.raises(RateLimitedError):
            handle_error_response(_make_response(status_code=429), "o/r#1")

    def test_403_without_rate_limit_raises_forbidden(self):
        resp = _make_response(
            status_code=403,
            json_data={"message": "Resource not accessible by integration"},
            headers={"X-RateLimit-Remaining": "50"},
        )
        with pytest.raises(GitHubAPIError, match="forbidden") as exc_info:
            handle_error_response(resp, "o/r#1")

        assert not isinstance(exc_info.value, RateLimitedError)
        assert "not accessible" in exc_info.value.message

    def test_other_status_raises_generic_error(self):
        with pytest.raises(GitHubAPIError, match="500") as exc_info:
            handle_error_response(_make_response(status_code=500), "o/r#1")

        assert exc_info.value.status_code == 500


class TestErrorMessage:
    def test_prefers_json_message(self):
        assert error_message(_make_response(403, {"message": "Nope"})) == "Nope"

    def test_falls_back_to_text(self):
        resp = httpx.Response(502, text="Bad gateway page")
        assert error_message(resp) == "Bad gateway page"


class TestParseFailureError:
    def test_str_includes_diagnostic(self):
        err = ParseFailureError("Could not fetch o/r#1", 500, diagnostic="Core quota: 10/60")

        assert err.message == "Could not fetch o/r#1"
        assert str(err) == "Could not fetch o/r#1\nCore quota: 10/60"

    def test_str_without_diagnostic(self):
        assert str(ParseFailureError("boom")) == "boom"
