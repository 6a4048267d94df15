"""Integration tests using synthetic git repositories."""

from __future__ import annotations

import shutil
from functools import partial

import pytest

from diff_mail.diff_parser import FileStatus, parse_commit
from diff_mail.engine import DiffToHtml
from diff_mail.git import NULL_REVISION, GitError, describe, new_commits, repo_name, show
from tests.helpers_git import (
    build_numbered_lines,
    commit_all,
    git,
    init_repo,
    write_binary,
    write_file,
)

pytestmark = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")


def test_five_commit_range_renders_in_order(tmp_path) -> None:
    repo = init_repo(tmp_path)
    for index in range(1, 5):
        write_file(repo, f"src/file{index}.txt", build_numbered_lines(f"base{index}", 30))
    base = commit_all(repo, "baseline")

    expected: list[str] = []
    for commit_no in range(1, 6):
        touched = (commit_no - 1) % 4 + 1
        for index in range(1, touched + 1):
            lines = build_numbered_lines(f"base{index}", 30).splitlines()
            lines[2] = f"changed by commit {commit_no}"
            lines[25] = f"also changed by commit {commit_no}"
            write_file(repo, f"src/file{index}.txt", "\n".join(lines) + "\n")
        expected.append(commit_all(repo, f"commit {commit_no} refs #{commit_no}"))
    head = expected[-1]

    revisions = new_commits(repo, base, head)
    assert revisions == expected

    engine = DiffToHtml()
    results = engine.diff_between_revisions(
        revisions, partial(show, repo, ignore_whitespace="none"), "refs/heads/main"
    )

    assert [result.commit_id for result in results] == expected
    for commit_no, result in enumerate(results, start=1):
        touched = (commit_no - 1) % 4 + 1
        assert "@@" not in result.html
        assert result.html.count("<h2>") == touched
        # Lines 3 and 26 are too far apart for git to join the hunks.
        assert result.html.count("<table>") == 2 * touched
        assert result.subject == f"commit {commit_no} refs #{commit_no}"


def test_real_git_statuses(tmp_path) -> None:
    repo = init_repo(tmp_path)
    write_file(repo, "docs/README", "old docs\n")
    write_binary(repo, "img/up.png", bytes(range(0, 64)))
    write_file(repo, "notes/draft.txt", build_numbered_lines("draft", 10))
    commit_all(repo, "baseline")

    (repo / "docs/README").unlink()
    (repo / "img/up.png").unlink()
    write_file(repo, "docs/GUIDE", "new docs\n")
    write_binary(repo, "img/down.png", b"\x00" + bytes(range(255, 127, -1)))
    git(repo, "mv", "notes/draft.txt", "notes/final.txt")
    head = commit_all(repo, "reshuffle")

    commit = parse_commit(show(repo, head))
    statuses = {file_diff.path: file_diff.status for file_diff in commit.files}
    assert statuses == {
        "docs/GUIDE": FileStatus.ADDED,
        "docs/README": FileStatus.DELETED,
        "img/down.png": FileStatus.BINARY_ADDED,
        "img/up.png": FileStatus.BINARY_DELETED,
        "notes/final.txt": FileStatus.RENAMED,
    }

    html = DiffToHtml().render_commit(head, show(repo, head)).html
    assert "Added binary file img/down.png" in html
    assert "Deleted binary file img/up.png" in html
    assert "Renamed file notes/draft.txt to notes/final.txt" in html


def test_new_branch_yields_only_head(tmp_path) -> None:
    repo = init_repo(tmp_path)
    write_file(repo, "a.txt", "a\n")
    commit_all(repo, "first")
    write_file(repo, "a.txt", "b\n")
    head = commit_all(repo, "second")

    assert new_commits(repo, NULL_REVISION, head) == [head]


def test_repo_name_prefers_email_prefix(tmp_path) -> None:
    repo = init_repo(tmp_path)
    assert repo_name(repo) == "repo"
    git(repo, "config", "hooks.emailprefix", "[acme]")
    assert repo_name(repo) == "[acme]"


def test_show_unknown_revision_raises(tmp_path) -> None:
    repo = init_repo(tmp_path)
    with pytest.raises(GitError):
        show(repo, "deadbeef")


def test_describe_falls_back_to_abbreviated_hash(tmp_path) -> None:
    repo = init_repo(tmp_path)
    write_file(repo, "a.txt", "a\n")
    head = commit_all(repo, "first")

    assert head.startswith(describe(repo, head))
    git(repo, "tag", "-a", "v1.0", "-m", "release")
    assert describe(repo, head) == "v1.0"
