"""File-browser links for rendered file headers."""

from __future__ import annotations

import html
import logging
from typing import Any

logger = logging.getLogger(__name__)

LINK_TEMPLATES: dict[str, str] = {
    "stash": "{path}/repos/{repository}/browse/{file}?at={commit}",
    "github": "{path}/{repository}/blob/{commit}/{file}",
    "gitlab": "{path}/{repository}/-/blob/{commit}/{file}",
    "gitweb": "{path}?p={project};f={file};hb={commit}",
    "cgit": "{path}/{project}/tree/{file}?id={commit}",
    "trac": "{path}/browser/{file}?rev={commit}",
    "redmine": "{path}/projects/{project}/repository/revisions/{commit}/entry/{file}",
}

SUPPORTED_BACKENDS = frozenset(LINK_TEMPLATES)


class FileLinkGenerator:
    """Build `<a href='…'>path</a>` anchors for one hosting backend."""

    def __init__(
        self,
        backend: str | None = None,
        settings: dict[str, Any] | None = None,
        repo_name: str = "",
    ) -> None:
        if backend is not None and backend not in SUPPORTED_BACKENDS:
            choices = ", ".join(sorted(SUPPORTED_BACKENDS))
            raise ValueError(f"link_files must be one of: {choices}")
        self.backend = backend
        self.settings = dict(settings or {})
        self.repo_name = repo_name
        self._warned = False

    @property
    def enabled(self) -> bool:
        return self.backend is not None and bool(self.settings.get("path"))

    def url(self, path: str, commit: str) -> str | None:
        """Return the browse URL for a file at a commit, or None when disabled."""
        if self.backend is None:
            return None
        if not self.enabled:
            if not self._warned:
                logger.warning(
                    f"link_files is set to {self.backend!r} but [{self.backend}].path is missing"
                )
                self._warned = True
            return None

        return LINK_TEMPLATES[self.backend].format(
            path=str(self.settings["path"]).rstrip("/"),
            project=self.settings.get("project") or self.repo_name,
            repository=self.settings.get("repository") or self.repo_name,
            file=path,
            commit=commit,
        )

    def link(self, path: str, commit: str) -> str:
        """Return an anchor for `path`, or the escaped path when links are off."""
        url = self.url(path, commit)
        label = html.escape(path, quote=False)
        if url is None:
            return label
        return f"<a href='{html.escape(url, quote=True)}'>{label}</a>"
