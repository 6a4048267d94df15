"""Parser for `git show` output: commit header, file sections and hunks."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from re import Match, compile

logger = logging.getLogger(__name__)

HUNK_HEADER_RE = compile(
    r"^@@ -(?P<old_start>\d+)(?:,(?P<old_count>\d+))? "
    r"\+(?P<new_start>\d+)(?:,(?P<new_count>\d+))? @@(?P<section>.*)$"
)
DIFF_GIT_RE = compile(r"^diff --git (?P<old>\S.*?) (?P<new>[ab]/.+|/dev/null)$")
BINARY_MARKER_RE = compile(r"^Binary files (?P<old>.+) and (?P<new>.+) differ$")
COMMIT_LINE_RE = compile(r"^commit [0-9a-f]{7,64}\b")

SECTION_PREFIXES = ("diff --git ", "diff --cc ", "diff --combined ")
DEV_NULL = "/dev/null"


class DiffParseError(ValueError):
    """Raised when diff text cannot be parsed."""


class LineKind(Enum):
    """Kind of a line inside a hunk."""

    CONTEXT = "context"
    ADDED = "added"
    REMOVED = "removed"


class FileStatus(Enum):
    """File-level change classification."""

    MODIFIED = "modified"
    ADDED = "added"
    DELETED = "deleted"
    RENAMED = "renamed"
    BINARY_ADDED = "binary-added"
    BINARY_DELETED = "binary-deleted"
    BINARY_MODIFIED = "binary-modified"

    @property
    def is_binary(self) -> bool:
        return self in {
            FileStatus.BINARY_ADDED,
            FileStatus.BINARY_DELETED,
            FileStatus.BINARY_MODIFIED,
        }


@dataclass(frozen=True, slots=True)
class DiffLine:
    """A single line within a diff hunk."""

    kind: LineKind
    text: str
    left_lineno: int | None
    right_lineno: int | None
    no_newline: bool = False


@dataclass(frozen=True, slots=True)
class Hunk:
    """A diff hunk."""

    old_start: int
    old_count: int
    new_start: int
    new_count: int
    section: str = ""
    lines: tuple[DiffLine, ...] = ()


@dataclass(frozen=True, slots=True)
class HunkHeader:
    """Parsed hunk header values."""

    old_start: int
    old_count: int
    new_start: int
    new_count: int
    section: str


@dataclass(frozen=True, slots=True)
class FileDiff:
    """A parsed file-level diff."""

    old_path: str | None
    new_path: str | None
    status: FileStatus
    hunks: tuple[Hunk, ...] = ()

    @property
    def path(self) -> str:
        """Best-effort canonical path for reporting."""
        if self.status in {FileStatus.DELETED, FileStatus.BINARY_DELETED}:
            return self.old_path or "<unknown>"
        return self.new_path or self.old_path or "<unknown>"


@dataclass(frozen=True, slots=True)
class CommitDiff:
    """One revision as printed by `git show --pretty=fuller`."""

    id: str
    author: str = ""
    date: str = ""
    message: str = ""
    files: tuple[FileDiff, ...] = ()
    merge_parents: tuple[str, ...] = ()
    committer: str = ""
    commit_date: str = ""

    @property
    def subject(self) -> str:
        for line in self.message.splitlines():
            if line.strip():
                return line.strip()
        return ""

    @property
    def is_merge(self) -> bool:
        return len(self.merge_parents) > 1


@dataclass(slots=True)
class _CommitHeader:
    id: str
    author: str = ""
    date: str = ""
    committer: str = ""
    commit_date: str = ""
    merge_parents: tuple[str, ...] = ()
    message_lines: list[str] = field(default_factory=list)


def parse_commit(text: str) -> CommitDiff:
    """Parse the full output of one `git show` call.

    File sections with broken hunk headers are skipped with a warning. A
    missing commit header raises DiffParseError.
    """
    lines = text.splitlines()
    body_start = _first_section_index(lines)
    header = parse_commit_header(lines[:body_start])

    files: list[FileDiff] = []
    for section in split_file_sections(lines[body_start:]):
        try:
            files.append(parse_file_section(section))
        except DiffParseError as exc:
            logger.warning(f"Skipping file section in commit {header.id}: {exc}")

    return CommitDiff(
        id=header.id,
        author=header.author,
        date=header.date,
        message="\n".join(header.message_lines).strip("\n"),
        files=tuple(files),
        merge_parents=header.merge_parents,
        committer=header.committer,
        commit_date=header.commit_date,
    )


def split_commits(text: str) -> list[str]:
    """Split concatenated `git show`/`git log -p` output into per-commit texts."""
    chunks: list[list[str]] = []
    for raw_line in text.splitlines():
        if COMMIT_LINE_RE.match(raw_line) or not chunks:
            chunks.append([])
        chunks[-1].append(raw_line)
    return ["\n".join(chunk) for chunk in chunks if any(line.strip() for line in chunk)]


def parse_commit_header(lines: list[str]) -> _CommitHeader:
    """Parse the metadata block that precedes the first file section."""
    header: _CommitHeader | None = None
    in_message = False

    for raw_line in lines:
        if header is None:
            if raw_line.startswith("commit "):
                fields = raw_line.split()
                if len(fields) < 2:
                    raise DiffParseError("Missing commit id")
                header = _CommitHeader(id=fields[1])
            continue

        if in_message:
            header.message_lines.append(raw_line[4:] if raw_line.startswith("    ") else raw_line)
            continue

        if not raw_line.strip():
            in_message = True
            continue

        key, _, value = raw_line.partition(":")
        value = value.strip()
        if key == "Author":
            header.author = value
        elif key in {"AuthorDate", "Date"}:
            header.date = value
        elif key == "Commit":
            header.committer = value
        elif key == "CommitDate":
            header.commit_date = value
        elif key == "Merge":
            header.merge_parents = tuple(value.split())

    if header is None:
        raise DiffParseError("Missing commit header line")
    return header


def split_file_sections(lines: list[str]) -> list[list[str]]:
    """Split diff body lines into per-file sections."""
    sections: list[list[str]] = []
    current: list[str] | None = None
    for raw_line in lines:
        if raw_line.startswith(SECTION_PREFIXES):
            current = [raw_line]
            sections.append(current)
        elif current is not None:
            current.append(raw_line)
    return sections


def parse_file_section(lines: list[str]) -> FileDiff:
    """Parse one `diff --git` section into a FileDiff."""
    if not lines or not lines[0].startswith(SECTION_PREFIXES):
        raise DiffParseError("File section must start with a diff header")

    old_path, new_path = _paths_from_diff_header(lines[0])
    new_file = deleted_file = renamed = binary = False
    index = 1

    while index < len(lines) and not lines[index].startswith("@@"):
        raw_line = lines[index]
        index += 1
        if raw_line.startswith("new file mode"):
            new_file = True
        elif raw_line.startswith("deleted file mode"):
            deleted_file = True
        elif raw_line.startswith("rename from "):
            old_path = raw_line[len("rename from ") :]
            renamed = True
        elif raw_line.startswith("rename to "):
            new_path = raw_line[len("rename to ") :]
            renamed = True
        elif raw_line.startswith("--- "):
            parsed = _parse_path(raw_line[4:])
            if parsed is None:
                new_file = True
            else:
                old_path = parsed
        elif raw_line.startswith("+++ "):
            parsed = _parse_path(raw_line[4:])
            if parsed is None:
                deleted_file = True
            else:
                new_path = parsed
        elif raw_line == "GIT binary patch":
            binary = True
        else:
            marker = BINARY_MARKER_RE.match(raw_line)
            if marker is not None:
                binary = True
                binary_old = _parse_path(marker.group("old"))
                binary_new = _parse_path(marker.group("new"))
                new_file = new_file or binary_old is None
                deleted_file = deleted_file or binary_new is None

    if new_file:
        old_path = None
    if deleted_file:
        new_path = None

    if binary:
        return FileDiff(
            old_path=old_path,
            new_path=new_path,
            status=_binary_status(old_path, new_path),
        )

    hunks = _parse_hunks(lines[index:])
    return FileDiff(
        old_path=old_path,
        new_path=new_path,
        status=_text_status(old_path, new_path, renamed),
        hunks=tuple(hunks),
    )


def parse_hunk_header(header: str) -> HunkHeader:
    match: Match[str] | None = HUNK_HEADER_RE.match(header)
    if match is None:
        raise DiffParseError(f"Invalid hunk header: {header}")

    old_count = int(match.group("old_count")) if match.group("old_count") else 1
    new_count = int(match.group("new_count")) if match.group("new_count") else 1
    section = match.group("section").strip()

    return HunkHeader(
        old_start=int(match.group("old_start")),
        old_count=old_count,
        new_start=int(match.group("new_start")),
        new_count=new_count,
        section=section,
    )


def _parse_hunks(lines: list[str]) -> list[Hunk]:
    hunks: list[Hunk] = []
    index = 0
    while index < len(lines):
        if not lines[index].startswith("@@"):
            index += 1
            continue
        header = parse_hunk_header(lines[index])
        body, index = _parse_hunk_body(header, lines, index + 1)
        hunks.append(
            Hunk(
                old_start=header.old_start,
                old_count=header.old_count,
                new_start=header.new_start,
                new_count=header.new_count,
                section=header.section,
                lines=tuple(body),
            )
        )
    return hunks


def _parse_hunk_body(
    header: HunkHeader, lines: list[str], index: int
) -> tuple[list[DiffLine], int]:
    body: list[DiffLine] = []
    old_lineno = header.old_start
    new_lineno = header.new_start
    old_left = header.old_count
    new_left = header.new_count

    while index < len(lines):
        raw_line = lines[index]
        if raw_line.startswith("@@"):
            break
        index += 1

        if raw_line.startswith("\\"):
            if body:
                previous = body[-1]
                body[-1] = DiffLine(
                    kind=previous.kind,
                    text=previous.text,
                    left_lineno=previous.left_lineno,
                    right_lineno=previous.right_lineno,
                    no_newline=True,
                )
            continue

        if old_left <= 0 and new_left <= 0:
            # Trailing text after the hunk (e.g. a signature); nothing to number.
            continue

        if raw_line.startswith("+"):
            body.append(DiffLine(LineKind.ADDED, raw_line[1:], None, new_lineno))
            new_lineno += 1
            new_left -= 1
        elif raw_line.startswith("-"):
            body.append(DiffLine(LineKind.REMOVED, raw_line[1:], old_lineno, None))
            old_lineno += 1
            old_left -= 1
        elif raw_line.startswith(" ") or raw_line == "":
            body.append(DiffLine(LineKind.CONTEXT, raw_line[1:], old_lineno, new_lineno))
            old_lineno += 1
            new_lineno += 1
            old_left -= 1
            new_left -= 1
        else:
            break

    return body, index


def _first_section_index(lines: list[str]) -> int:
    for index, raw_line in enumerate(lines):
        if raw_line.startswith(SECTION_PREFIXES):
            return index
    return len(lines)


def _paths_from_diff_header(line: str) -> tuple[str | None, str | None]:
    match = DIFF_GIT_RE.match(line)
    if match is not None:
        return (_parse_path(match.group("old")), _parse_path(match.group("new")))
    # Combined diffs name a single path.
    path = line.split(maxsplit=2)[-1]
    return (path, path)


def _parse_path(value: str) -> str | None:
    token = value.strip().split("\t", 1)[0]
    if token == DEV_NULL:
        return None
    return _strip_ab_prefix(token)


def _strip_ab_prefix(path: str) -> str:
    if path.startswith("a/") or path.startswith("b/"):
        return path[2:]
    return path


def _binary_status(old_path: str | None, new_path: str | None) -> FileStatus:
    if old_path is None and new_path is not None:
        return FileStatus.BINARY_ADDED
    if new_path is None and old_path is not None:
        return FileStatus.BINARY_DELETED
    return FileStatus.BINARY_MODIFIED


def _text_status(old_path: str | None, new_path: str | None, renamed: bool) -> FileStatus:
    if old_path is None and new_path is not None:
        return FileStatus.ADDED
    if new_path is None and old_path is not None:
        return FileStatus.DELETED
    if renamed or old_path != new_path:
        return FileStatus.RENAMED
    return FileStatus.MODIFIED
