"""Tests for commit age filtering and per-branch dedup."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from email.utils import format_datetime

import pytest

from diff_mail.filters import BranchDedup, is_old_commit, parse_commit_date

NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=UTC)


def _rfc2822(moment: datetime) -> str:
    return format_datetime(moment)


def test_threshold_unset_is_never_old() -> None:
    assert is_old_commit(_rfc2822(NOW - timedelta(days=400)), None, now=NOW) is False


@pytest.mark.parametrize("threshold", [0, -7])
def test_non_positive_threshold_is_never_old(threshold: int) -> None:
    assert is_old_commit(_rfc2822(NOW - timedelta(days=400)), threshold, now=NOW) is False


def test_commit_newer_than_threshold_is_not_old() -> None:
    assert is_old_commit(_rfc2822(NOW - timedelta(seconds=1)), 1, now=NOW) is False


def test_commit_older_than_threshold_is_old() -> None:
    assert is_old_commit(_rfc2822(NOW - timedelta(days=2, seconds=1)), 1, now=NOW) is True


@pytest.mark.parametrize("date", [None, "", "not a date"])
def test_unreadable_date_is_not_old(date: str | None) -> None:
    assert is_old_commit(date, 1, now=NOW) is False


def test_parse_commit_date_formats() -> None:
    assert parse_commit_date("Tue, 13 Oct 2009 10:20:30 +0200") == datetime(
        2009, 10, 13, 8, 20, 30, tzinfo=UTC
    )
    assert parse_commit_date("2009-10-13T10:20:30+02:00") == datetime(
        2009, 10, 13, 8, 20, 30, tzinfo=UTC
    )


def test_dedup_disabled_renders_everything() -> None:
    dedup = BranchDedup(enabled=False)
    assert dedup.should_render("abc", "refs/heads/main") is True
    assert dedup.should_render("abc", "refs/heads/topic") is True


def test_dedup_skips_commit_seen_on_other_branch() -> None:
    dedup = BranchDedup(enabled=True)
    assert dedup.should_render("abc", "refs/heads/main") is True
    assert dedup.should_render("abc", "refs/heads/topic") is False
    assert dedup.should_render("abc", "refs/heads/main") is True
    assert dedup.should_render("def", "refs/heads/topic") is True
