"""Unit tests for issue link discovery and title hydration."""

from unittest.mock import AsyncMock

import pytest

from ghtranscript.services.transcript.context import new_title_cache
from ghtranscript.services.transcript.links import (
    apply_link_titles,
    find_issue_links,
    make_title_lookup,
    resolve_link_titles,
    split_issue_link,
)

URL = "https://github.com/o/r/issues/5"


class TestFindIssueLinks:
    def test_finds_whitespace_preceded_links_in_order(self):
        texts = [
            f"See {URL} and https://github.com/o/r/pull/8",
            f"Again {URL}\nand\thttps://github.com/x/y/issues/1",
        ]

        assert find_issue_links(texts) == [
            URL,
            "https://github.com/o/r/pull/8",
            "https://github.com/x/y/issues/1",
        ]

    def test_ignores_links_not_preceded_by_whitespace(self):
        assert find_issue_links([f"{URL} at start", f"[x]({URL})"]) == []

    def test_ignores_longer_paths(self):
        assert find_issue_links([f"see {URL}/files"]) == []

    def test_ignores_fragment_and_query_suffixes(self):
        assert find_issue_links([f"see {URL}#issuecomment-1 and {URL}?tab=commits"]) == []

    def test_none_bodies_are_skipped(self):
        assert find_issue_links([None, ""]) == []


class TestApplyLinkTitles:
    def test_hydrates_space_prefixed_url(self):
        text = f"Duplicate of {URL}"

        assert apply_link_titles(text, {URL: "Fix crash"}) == f"Duplicate of [Fix crash]({URL})"

    def test_does_not_touch_longer_issue_numbers(self):
        text = " https://github.com/o/r/issues/55"

        assert apply_link_titles(text, {URL: "Fix crash"}) == text

    def test_does_not_touch_fragment_or_query_links(self):
        text = f"see {URL}#issuecomment-1 and {URL}?tab=commits"

        assert apply_link_titles(text, {URL: "Fix crash"}) == text

    def test_only_space_prefixed_occurrences(self):
        text = f"{URL}\n\n- {URL}"

        assert apply_link_titles(text, {URL: "Fix crash"}) == f"{URL}\n\n- [Fix crash]({URL})"

    def test_title_equal_to_url_leaves_text_unchanged(self):
        text = f"see {URL}"

        assert apply_link_titles(text, {URL: URL}) == text


class TestResolveLinkTitles:
    @pytest.mark.anyio
    async def test_resolves_all_urls(self):
        lookup = AsyncMock(side_effect=lambda url: "Fix crash" if url == URL else "Other")

        titles = await resolve_link_titles([URL, "https://github.com/o/r/pull/8"], lookup)

        assert titles == {URL: "Fix crash", "https://github.com/o/r/pull/8": "Other"}

    @pytest.mark.anyio
    async def test_unresolved_urls_leave_text_unchanged(self):
        lookup = AsyncMock(side_effect=lambda url: url)
        text = f"See {URL}"

        titles = await resolve_link_titles([URL], lookup)

        assert titles == {}
        assert apply_link_titles(text, titles) == text

    @pytest.mark.anyio
    async def test_raising_lookup_is_treated_as_unresolved(self):
        lookup = AsyncMock(side_effect=RuntimeError("boom"))

        assert await resolve_link_titles([URL], lookup) == {}

    @pytest.mark.anyio
    async def test_cache_avoids_repeat_lookups(self):
        lookup = AsyncMock(return_value="Fix crash")
        cache = new_title_cache()

        await resolve_link_titles([URL], lookup, cache)
        titles = await resolve_link_titles([URL], lookup, cache)

        assert titles == {URL: "Fix crash"}
        lookup.assert_awaited_once_with(URL)


class TestMakeTitleLookup:
    def test_split_issue_link(self):
        assert split_issue_link("https://github.com/o/r/pull/12") == ("o", "r", 12)
        assert split_issue_link("https://example.com") is None

    @pytest.mark.anyio
    async def test_adapts_fetcher(self):
        fetch = AsyncMock(return_value="Fix crash")

        title = await make_title_lookup(fetch)(URL)

        assert title == "Fix crash"
        fetch.assert_awaited_once_with("o", "r", 5)

    @pytest.mark.anyio
    async def test_missing_title_falls_back_to_url(self):
        lookup = make_title_lookup(AsyncMock(return_value=None))

        assert await lookup(URL) == URL
