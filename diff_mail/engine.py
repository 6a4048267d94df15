"""Commit-range rendering: parse, filter and render each revision in order."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

from diff_mail.config import AppConfig
from diff_mail.diff_parser import CommitDiff, DiffParseError, parse_commit
from diff_mail.filters import BranchDedup, is_old_commit
from diff_mail.git import GitError
from diff_mail.links import FileLinkGenerator
from diff_mail.message import MessageIntegrator
from diff_mail.renderer import render_commit_html, render_message_html

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RenderResult:
    """Rendered output for one commit."""

    commit_id: str
    html: str
    author: str
    date: str
    subject: str
    message_html: str
    branch: str | None = None
    file_count: int = 0


class DiffToHtml:
    """Render commits to HTML fragments, keeping results in input order."""

    def __init__(self, config: AppConfig | None = None, *, repo_name: str = "") -> None:
        self.config = config if config is not None else AppConfig()
        self.link_generator = FileLinkGenerator(
            self.config.link_files,
            self.config.backend_settings,
            repo_name=repo_name,
        )
        self.integrator = MessageIntegrator(
            self.config.message_integration,
            self.config.message_map,
        )
        self._dedup = BranchDedup(self.config.unique_commits_per_branch)
        self._results: list[RenderResult] = []

    @property
    def results(self) -> Sequence[RenderResult]:
        return tuple(self._results)

    @property
    def unique_commits_per_branch(self) -> bool:
        return self.config.unique_commits_per_branch

    def message_map(self, message: str) -> str:
        """Escape a commit message and apply integrations and the message map."""
        return render_message_html(message, self.integrator)

    def old_commit(self, commit: CommitDiff) -> bool:
        return is_old_commit(commit.date, self.config.skip_commits_older_than)

    def diff_between_revisions(
        self,
        revisions: Iterable[str],
        fetch_show: Callable[[str], str],
        branch: str | None = None,
    ) -> list[RenderResult]:
        """Render each revision in order and return the results added by this call."""
        rendered: list[RenderResult] = []
        for revision in revisions:
            try:
                show_text = fetch_show(revision)
            except GitError as exc:
                logger.error(f"Cannot read revision {revision}: {exc}")
                continue
            result = self.render_commit(revision, show_text, branch=branch)
            if result is not None:
                rendered.append(result)
        return rendered

    def render_commit(
        self,
        revision: str,
        show_text: str,
        branch: str | None = None,
    ) -> RenderResult | None:
        """Render one commit; None when a filter suppresses it."""
        try:
            commit = parse_commit(show_text)
        except DiffParseError as exc:
            logger.warning(f"Cannot parse revision {revision}: {exc}; rendering without files")
            commit = CommitDiff(id=revision)
        except Exception:
            logger.exception(f"Unexpected error parsing revision {revision}; rendering bare")
            commit = CommitDiff(id=revision)

        if self.old_commit(commit):
            logger.info(f"Skipping commit {commit.id}: older than configured threshold")
            return None

        if not self._dedup.should_render(commit.id, branch):
            return None

        message_html = self.message_map(commit.message)
        result = RenderResult(
            commit_id=commit.id,
            html=render_commit_html(
                commit,
                link_generator=self.link_generator,
                message_html=message_html,
            ),
            author=commit.author,
            date=commit.date,
            subject=commit.subject,
            message_html=message_html,
            branch=branch,
            file_count=len(commit.files),
        )
        self._results.append(result)
        logger.debug(f"Rendered commit {commit.id} with {result.file_count} files")
        return result

    def generate_file_link(self, path: str, commit_id: str | None = None) -> str:
        """Anchor for `path` at `commit_id`, defaulting to the last rendered commit."""
        if commit_id is None:
            commit_id = self._results[-1].commit_id if self._results else ""
        return self.link_generator.link(path, commit_id)
