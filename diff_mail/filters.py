"""Commit filters: age threshold and cross-branch dedup."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from email.utils import parsedate_to_datetime

logger = logging.getLogger(__name__)


def parse_commit_date(value: str | None) -> datetime | None:
    """Parse an RFC 2822 or ISO 8601 date; None when it cannot be read."""
    if not value or not value.strip():
        return None
    text = value.strip()
    try:
        parsed = parsedate_to_datetime(text)
    except (TypeError, ValueError, IndexError):
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def is_old_commit(
    date: str | None,
    threshold_days: int | None,
    *,
    now: datetime | None = None,
) -> bool:
    """Return True when the commit is older than `threshold_days`.

    A missing or non-positive threshold disables the check, and an unreadable
    date never counts as old.
    """
    if threshold_days is None or threshold_days <= 0:
        return False

    commit_time = parse_commit_date(date)
    if commit_time is None:
        logger.debug(f"Cannot parse commit date {date!r}; not treating commit as old")
        return False

    reference = now if now is not None else datetime.now(tz=UTC)
    return reference - commit_time > timedelta(days=threshold_days)


class BranchDedup:
    """Remember which branch each commit was rendered for during one run."""

    def __init__(self, enabled: bool = False) -> None:
        self.enabled = enabled
        self._seen: dict[str, str | None] = {}

    def should_render(self, commit_id: str, branch: str | None) -> bool:
        """Return False for a commit already rendered for another branch."""
        if not self.enabled:
            return True
        seen_branch = self._seen.get(commit_id, branch)
        if commit_id in self._seen and seen_branch != branch:
            logger.info(f"Commit {commit_id} already rendered for {seen_branch}; skipping")
            return False
        self._seen[commit_id] = branch
        return True
