"""Tests for status normalization."""

import pytest

from unified_board.models import CanonicalStatus, PlatformKind
from unified_board.status import (
    STATUS_KEYWORDS,
    label_matches,
    native_status_name,
    normalize,
    parse_status,
)


@pytest.mark.parametrize(
    "label, expected",
    [
        ("To Do", CanonicalStatus.TODO),
        ("In Progress", CanonicalStatus.IN_PROGRESS),
        ("Code Review", CanonicalStatus.REVIEW),
        ("Closed", CanonicalStatus.DONE),
    ],
)
def test_common_labels(label, expected):
    assert normalize(label) is expected


@pytest.mark.parametrize(
    "label",
    ["Done - awaiting review", "Closed (reopen if needed)", "Resolved in QA", "complete / new"],
)
def test_done_keyword_beats_review_and_todo(label):
    assert normalize(label) is CanonicalStatus.DONE


def test_progress_checked_before_review():
    assert normalize("Code Review - In Progress") is CanonicalStatus.IN_PROGRESS


def test_review_wins_without_progress_or_done_keyword():
    assert normalize("Ready for QA") is CanonicalStatus.REVIEW
    assert normalize("Verification") is CanonicalStatus.REVIEW


def test_reopened_is_todo():
    """'Reopened' matches the 'open' keyword; this is the accepted policy."""
    assert normalize("Reopened") is CanonicalStatus.TODO


def test_unknown_and_empty_labels_default_to_todo():
    assert normalize("Icebox") is CanonicalStatus.TODO
    assert normalize("") is CanonicalStatus.TODO
    assert normalize(None) is CanonicalStatus.TODO


def test_case_insensitive():
    assert normalize("DOING") is CanonicalStatus.IN_PROGRESS
    assert normalize("Backlog") is CanonicalStatus.TODO


def test_keyword_order_is_done_progress_review_todo():
    assert [status for status, _ in STATUS_KEYWORDS] == [
        CanonicalStatus.DONE,
        CanonicalStatus.IN_PROGRESS,
        CanonicalStatus.REVIEW,
        CanonicalStatus.TODO,
    ]


def test_label_matches_uses_target_keywords():
    assert label_matches("Doing", CanonicalStatus.IN_PROGRESS)
    assert label_matches("QA", CanonicalStatus.REVIEW)
    assert label_matches("Backlog", CanonicalStatus.TODO)
    assert not label_matches("Shipped", CanonicalStatus.DONE)


def test_native_status_names():
    assert native_status_name(PlatformKind.TICKET_TRACKER, CanonicalStatus.REVIEW) == "In Review"
    assert native_status_name(PlatformKind.HIERARCHICAL_TOOL, CanonicalStatus.DONE) == "complete"


def test_parse_status_aliases():
    assert parse_status("In Progress") is CanonicalStatus.IN_PROGRESS
    assert parse_status("in-progress") is CanonicalStatus.IN_PROGRESS
    assert parse_status("DONE") is CanonicalStatus.DONE
    with pytest.raises(ValueError):
        parse_status("archived")
