"""Status normalization: native status/list/column labels to board columns."""

from __future__ import annotations

from .models import CanonicalStatus, PlatformKind

# Checked in this order; the first set with a keyword contained in the
# lower-cased label wins.
STATUS_KEYWORDS: list[tuple[CanonicalStatus, tuple[str, ...]]] = [
    (CanonicalStatus.DONE, ("done", "complete", "closed", "resolved")),
    (CanonicalStatus.IN_PROGRESS, ("progress", "doing", "working", "active", "running")),
    (CanonicalStatus.REVIEW, ("review", "testing", "qa", "verification")),
    (CanonicalStatus.TODO, ("to do", "todo", "open", "new", "backlog")),
]

DEFAULT_STATUS = CanonicalStatus.TODO

# Outbound status names used when moving an item on platforms that take a
# status string rather than a container.
NATIVE_STATUS_NAMES: dict[PlatformKind, dict[CanonicalStatus, str]] = {
    PlatformKind.TICKET_TRACKER: {
        CanonicalStatus.TODO: "To Do",
        CanonicalStatus.IN_PROGRESS: "In Progress",
        CanonicalStatus.REVIEW: "In Review",
        CanonicalStatus.DONE: "Done",
    },
    PlatformKind.HIERARCHICAL_TOOL: {
        CanonicalStatus.TODO: "to do",
        CanonicalStatus.IN_PROGRESS: "in progress",
        CanonicalStatus.REVIEW: "review",
        CanonicalStatus.DONE: "complete",
    },
}


def normalize(native_label: str | None) -> CanonicalStatus:
    """Map a native label to a canonical status.

    "Reopened" lands in Todo through the "open" keyword. That is the current
    classification policy, not an accident of matching.
    """
    lowered = (native_label or "").lower()
    for status, keywords in STATUS_KEYWORDS:
        if any(kw in lowered for kw in keywords):
            return status
    return DEFAULT_STATUS


def keywords_for(status: CanonicalStatus) -> tuple[str, ...]:
    for candidate, keywords in STATUS_KEYWORDS:
        if candidate is status:
            return keywords
    raise ValueError(f"Unknown status: {status!r}")


def label_matches(label: str, status: CanonicalStatus) -> bool:
    """True if ``label`` contains any keyword of ``status``'s keyword set."""
    lowered = label.lower()
    return any(kw in lowered for kw in keywords_for(status))


def native_status_name(platform: PlatformKind, status: CanonicalStatus) -> str:
    return NATIVE_STATUS_NAMES[platform][status]


def parse_status(raw: str) -> CanonicalStatus:
    """Parse a user-typed column name ("done", "In Progress", "in-progress")."""
    cleaned = raw.strip().lower().replace("-", "_").replace(" ", "_")
    aliases = {
        "todo": CanonicalStatus.TODO,
        "to_do": CanonicalStatus.TODO,
        "in_progress": CanonicalStatus.IN_PROGRESS,
        "inprogress": CanonicalStatus.IN_PROGRESS,
        "review": CanonicalStatus.REVIEW,
        "in_review": CanonicalStatus.REVIEW,
        "done": CanonicalStatus.DONE,
    }
    if cleaned not in aliases:
        raise ValueError(f"Unknown status: {raw!r}")
    return aliases[cleaned]
