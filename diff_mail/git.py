"""Git subprocess helpers."""

from __future__ import annotations

from pathlib import Path, PurePosixPath
from subprocess import CalledProcessError, run


class GitError(RuntimeError):
    """Raised when git command execution fails."""


NULL_REVISION = "0" * 40

WHITESPACE_FLAGS = {"all": ["-w"], "change": ["-b"], "none": []}


def show(repo: Path, revision: str, *, ignore_whitespace: str = "all") -> str:
    """Return `git show` output in the layout the parser expects."""
    try:
        whitespace_flags = WHITESPACE_FLAGS[ignore_whitespace]
    except KeyError as exc:
        raise GitError(f"unknown whitespace mode: {ignore_whitespace}") from exc
    return _run_git(
        repo,
        [
            "show",
            revision.strip(),
            "--date=rfc2822",
            "--pretty=fuller",
            "--no-color",
            "-M0.5",
            *whitespace_flags,
        ],
    )


def new_commits(repo: Path, base: str, head: str) -> list[str]:
    """Return revisions reachable from head but not base, oldest first.

    A null base (new branch) yields only the head commit.
    """
    if base.strip() == NULL_REVISION:
        return _run_git(repo, ["rev-parse", "--verify", head.strip()]).split()
    return _run_git(repo, ["rev-list", "--reverse", f"{base.strip()}..{head.strip()}"]).split()


def describe(repo: Path, revision: str) -> str:
    return _run_git(repo, ["describe", "--always", revision.strip()]).strip()


def repo_name(repo: Path) -> str:
    """Return `hooks.emailprefix` or the repository directory name."""
    try:
        prefix = _run_git(repo, ["config", "hooks.emailprefix"]).strip()
    except GitError:
        prefix = ""
    if prefix:
        return prefix

    try:
        toplevel = _run_git(repo, ["rev-parse", "--show-toplevel"]).strip()
    except GitError:
        toplevel = ""
    if not toplevel:
        toplevel = str(repo.resolve())
    name = PurePosixPath(toplevel.replace("\\", "/")).name
    return name.removesuffix(".git")


def _run_git(repo: Path, args: list[str]) -> str:
    try:
        completed = run(
            ["git", *args],
            cwd=repo,
            check=True,
            capture_output=True,
            text=True,
        )
    except CalledProcessError as exc:
        stderr = (exc.stderr or "").strip()
        raise GitError(stderr or f"git {' '.join(args)} failed") from exc
    except FileNotFoundError as exc:
        raise GitError("git executable not found") from exc

    return completed.stdout
