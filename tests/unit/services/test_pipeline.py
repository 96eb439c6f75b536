"""Unit tests for the chronological merge, rendering and document assembly."""

from dataclasses import fields
from datetime import UTC

from ghtranscript.schemas import parse_timeline_event
from ghtranscript.services.transcript.context import RenderContext
from ghtranscript.services.transcript.pipeline import build_document, render_timeline
from ghtranscript.services.transcript.render import (
    fence,
    format_time,
    render_comment,
    render_commit,
    render_header,
    render_review,
)
from tests.helpers.factories import (
    ISSUE_REF,
    PULL_REF,
    at,
    make_comment,
    make_commit,
    make_issue,
    make_label_event,
    make_pull_details,
    make_review,
    make_review_comment,
)

CTX = RenderContext(tz=UTC)


def _texts(units):
    return [unit.text for unit in units]


# ═══════════════════════════════════════════════════════════════════════════
# render_timeline
# ═══════════════════════════════════════════════════════════════════════════


class TestRenderTimeline:
    """Tests for ordering and grouping across record kinds."""

    def test_units_are_in_timestamp_order(self):
        records = [make_comment(minutes=20), make_commit(minutes=3), make_review(minutes=10)]
        events = [make_label_event(minutes=1)]

        units = render_timeline(records, events, CTX)

        timestamps = [unit.timestamp for unit in units]
        assert timestamps == sorted(timestamps)
        assert timestamps == [at(1), at(3), at(10), at(20)]

    def test_missing_timestamps_come_first(self):
        records = [make_comment(comment_id=1, minutes=5), make_comment(comment_id=2, body="Undated", minutes=None)]

        texts = _texts(render_timeline(records, [], CTX))

        assert "Undated" in texts[0]
        assert "unknown time" in texts[0]

    def test_label_group_renders_as_one_line(self):
        events = [make_label_event(name="bug"), make_label_event(name="urgent")]

        texts = _texts(render_timeline([], events, CTX))

        assert texts == ["**@alice** added labels bug, urgent · 2024-03-01 12:01 UTC"]

    def test_single_label(self):
        texts = _texts(render_timeline([], [make_label_event(name="bug", kind="unlabeled")], CTX))

        assert texts == ["**@alice** removed label bug · 2024-03-01 12:01 UTC"]

    def test_records_precede_events_at_the_same_instant(self):
        events = [make_label_event(name="bug", minutes=1), make_label_event(name="urgent", minutes=1)]
        records = [make_comment(minutes=1)]

        texts = _texts(render_timeline(records, events, CTX))

        # Records sort ahead of events at the same instant (arrival order)
        assert texts[0].startswith("### 💬 @bob commented")
        assert texts[1] == "**@alice** added labels bug, urgent · 2024-03-01 12:01 UTC"

    def test_ties_keep_arrival_order(self):
        records = [make_comment(comment_id=1, body="first", minutes=4), make_comment(comment_id=2, body="second", minutes=4)]

        texts = _texts(render_timeline(records, [], CTX))

        assert "first" in texts[0]
        assert "second" in texts[1]

    def test_pending_reviews_and_unknown_events_render_nothing(self):
        records = [make_review(state="PENDING")]
        events = [parse_timeline_event({"event": "subscribed", "actor": {"login": "x"}, "created_at": "2024-03-01T12:00:00Z"})]

        assert render_timeline(records, events, CTX) == []

    def test_timeline_event_phrases(self):
        events = [
            parse_timeline_event(
                {"event": "renamed", "actor": {"login": "a"}, "created_at": "2024-03-01T12:02:00Z", "rename": {"from": "Old", "to": "New"}}
            ),
            parse_timeline_event(
                {"event": "closed", "actor": {"login": "a"}, "created_at": "2024-03-01T12:03:00Z", "state_reason": "completed"}
            ),
            parse_timeline_event(
                {"event": "assigned", "actor": {"login": "a"}, "created_at": "2024-03-01T12:04:00Z", "assignee": {"login": "a"}}
            ),
        ]

        texts = _texts(render_timeline([], events, CTX))

        assert "changed the title ~~Old~~ → **New**" in texts[0]
        assert "closed this as completed" in texts[1]
        assert "self-assigned this" in texts[2]


# ═══════════════════════════════════════════════════════════════════════════
# Renderers
# ═══════════════════════════════════════════════════════════════════════════


class TestRenderers:
    def test_format_time_in_given_zone(self):
        assert format_time(at(0), UTC) == "2024-03-01 12:00 UTC"

    def test_fence_outgrows_backtick_runs(self):
        assert fence("a ```` b").startswith("`````\n")

    def test_review_heading(self):
        text = render_review(make_review(state="CHANGES_REQUESTED"), CTX)

        assert text.startswith("### 🔴 @carol requested changes · 2024-03-01 12:10 UTC")
        assert text.endswith("LGTM")

    def test_commit_lists_all_authors(self):
        text = render_commit(make_commit(authors=["alice", "Bob Builder"]), CTX)

        assert text.startswith("### 📝 alice, Bob Builder committed `abc1234`")
        assert "**Fix crash**" in text

    def test_review_comment_includes_hunk(self):
        text = render_timeline([make_review_comment()], [], CTX)[0].text

        assert "commented on `app/main.py`" in text
        assert "```diff\n@@ -1,2 +1,2 @@" in text

    def test_body_rewriting_uses_context(self):
        ctx = RenderContext(
            tz=UTC,
            link_titles={"https://github.com/o/r/issues/9": "Fix crash"},
        )
        comment = make_comment(body="Duplicate of https://github.com/o/r/issues/9")

        text = render_timeline([comment], [], ctx)[0].text

        assert text.endswith("Duplicate of [Fix crash](https://github.com/o/r/issues/9)")

    def test_link_at_the_start_of_a_body_is_hydrated(self):
        url = "https://github.com/o/r/issues/5"
        ctx = RenderContext(tz=UTC, link_titles={url: "Fix crash"})

        text = render_comment(make_comment(body=f" {url}\r\n"), ctx)

        assert text.endswith(f"\n\n[Fix crash]({url})")

    def test_header_for_pull_request(self):
        issue = make_issue(
            pull=make_pull_details(draft=True),
            title="Fix crash",
            number=7,
            html_url="https://github.com/octo/hello/pull/7",
        )

        header = render_header(issue, PULL_REF, CTX)

        assert header.startswith("# Fix crash (#7)\n")
        assert "- **Type:** Pull request" in header
        assert "- **State:** Open (draft)" in header
        assert "- **Branch:** `fix-crash` → `main`" in header
        assert header.endswith("It crashes.")


# ═══════════════════════════════════════════════════════════════════════════
# build_document
# ═══════════════════════════════════════════════════════════════════════════


class TestBuildDocument:
    def test_assembles_header_timeline_and_trailing_sections(self):
        issue = make_issue()
        records = [make_comment(comment_id=1, minutes=5), make_comment(comment_id=2, body="Fixed.", minutes=6)]

        document = build_document(issue, ISSUE_REF, records, [], CTX, ["## Extra\n\nmore"])

        assert document.startswith("# Crash on startup (#5)")
        assert "## Timeline\n\n### 💬 @bob commented" in document
        assert "\n\n---\n\n### 💬 @bob commented" in document
        assert document.index("## Timeline") < document.index("## Extra")
        assert document.endswith("more\n")

    def test_no_activity(self):
        document = build_document(make_issue(body=""), ISSUE_REF, [], [], CTX)

        assert "_No description provided._" in document
        assert "## Timeline\n\n_No activity._\n" in document


class TestRenderContext:
    def test_carries_only_render_inputs(self):
        assert [f.name for f in fields(RenderContext)] == ["image_map", "link_titles", "tz"]

    def test_defaults_are_independent(self):
        first, second = RenderContext(), RenderContext()

        assert first.image_map == {} and first.image_map is not second.image_map
