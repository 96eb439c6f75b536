"""Constants for GitHub API access and transcript content rewriting."""

import re

API_VERSION = "2022-11-28"

# Media types
ACCEPT_JSON = "application/vnd.github+json"
# Adds body_html / body_text next to the markdown body
ACCEPT_FULL_JSON = "application/vnd.github.full+json"
ACCEPT_DIFF = "application/vnd.github.diff"

# Listings are requested at the maximum page size
PER_PAGE = 100

# https://github.com/<owner>/<repo>/issues/<n> or .../pull/<n>, optionally followed
# by /files, ?query or #fragment
RESOURCE_URL_PATTERN = re.compile(
    r"^https?://(?:www\.)?github\.com/"
    r"(?P<owner>[A-Za-z0-9_.-]+)/(?P<repo>[A-Za-z0-9_.-]+)/"
    r"(?P<kind>issues|pull)/(?P<number>\d+)"
    r"(?:[/?#].*)?$"
)

# Bare issue/PR URLs inside markdown bodies; only whitespace-preceded ones are hydrated
ISSUE_LINK_PATTERN = re.compile(
    r"(?<=\s)https://github\.com/[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+/(?:issues|pull)/\d+(?![\w/#?])"
)
ISSUE_LINK_PARTS = re.compile(
    r"https://github\.com/(?P<owner>[^/]+)/(?P<repo>[^/]+)/(?:issues|pull)/(?P<number>\d+)"
)

UUID_PATTERN = re.compile(r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}")

# Authenticated (JWT-signed) image URLs as they appear in rendered HTML
AUTHENTICATED_IMAGE_HOST = "private-user-images.githubusercontent.com"
AUTHENTICATED_IMAGE_PATTERN = re.compile(
    r"https://private-user-images\.githubusercontent\.com/[^\s\"'<>)]+"
)

# Attachment references as they appear in markdown bodies
ATTACHMENT_URL_PATTERN = re.compile(
    r"https://github\.com/user-attachments/assets/(?P<id>"
    + UUID_PATTERN.pattern
    + r")"
)

# Externally hosted images referenced from markdown, matched by extension
EXTERNAL_IMAGE_PATTERN = re.compile(
    r"https?://[^\s\"'<>()\[\]]+\.(?:png|jpe?g|gif|webp|svg)(?:\?[^\s\"'<>()\[\]]*)?",
    re.IGNORECASE,
)

CO_AUTHOR_PATTERN = re.compile(
    r"^co-authored-by:\s*(?P<name>[^<\n]+?)\s*(?:<[^>\n]*>)?\s*$",
    re.IGNORECASE | re.MULTILINE,
)

IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif", ".webp", ".svg")
DEFAULT_IMAGE_EXTENSION = ".png"

# Timeline event kinds that collapse into one line when repeated by the same
# actor at the same instant
GROUPABLE_EVENT_KINDS = frozenset(
    {"labeled", "unlabeled", "assigned", "unassigned", "review_requested"}
)

# Legacy commit status states -> icon
STATUS_ICONS = {
    "success": "✅",
    "failure": "❌",
    "error": "❌",
    "pending": "⏳",
}

# Check run conclusions -> icon (only consulted once a run is completed)
CHECK_CONCLUSION_ICONS = {
    "success": "✅",
    "failure": "❌",
    "timed_out": "⌛",
    "cancelled": "🚫",
    "action_required": "⚠️",
    "neutral": "⚪",
    "skipped": "⏭️",
    "stale": "⚪",
}

PENDING_ICON = "⏳"
UNKNOWN_ICON = "❔"

# Outcomes that make the overall status failing
FAILING_OUTCOMES = frozenset({"failure", "error", "timed_out", "cancelled", "action_required"})
