"""Hunk grouping and removed/added line pairing."""

from __future__ import annotations

from dataclasses import dataclass

from diff_mail.diff_parser import DiffLine, Hunk, LineKind


@dataclass(frozen=True, slots=True)
class LineBoundary:
    """Line numbers on each side at the edge of a hunk.

    `added` is the right-hand (new file) number, `removed` the left-hand (old
    file) number. Either is None when that side has no lines in the hunk.
    """

    added: int | None
    removed: int | None


@dataclass(frozen=True, slots=True)
class DisplayRow:
    """One logical row of output: left and/or right line."""

    left: DiffLine | None
    right: DiffLine | None

    @property
    def is_context(self) -> bool:
        return self.left is not None and self.left.kind is LineKind.CONTEXT

    @property
    def is_modified(self) -> bool:
        return (
            self.left is not None
            and self.right is not None
            and self.left.kind is LineKind.REMOVED
            and self.right.kind is LineKind.ADDED
        )


def lines_are_sequential(prev: LineBoundary, next_: LineBoundary) -> bool:
    """Return True when no lines were skipped between two hunk boundaries.

    Only sides defined on both ends are compared; one consecutive side is
    enough.
    """
    for prev_value, next_value in (
        (prev.added, next_.added),
        (prev.removed, next_.removed),
    ):
        if prev_value is None or next_value is None:
            continue
        if prev_value + 1 == next_value:
            return True
    return False


def hunk_start(hunk: Hunk) -> LineBoundary:
    """First emitted line numbers of a hunk."""
    added = next((line.right_lineno for line in hunk.lines if line.right_lineno is not None), None)
    removed = next((line.left_lineno for line in hunk.lines if line.left_lineno is not None), None)
    return LineBoundary(added=added, removed=removed)


def hunk_end(hunk: Hunk) -> LineBoundary:
    """Last emitted line numbers of a hunk."""
    added = next(
        (line.right_lineno for line in reversed(hunk.lines) if line.right_lineno is not None),
        None,
    )
    removed = next(
        (line.left_lineno for line in reversed(hunk.lines) if line.left_lineno is not None),
        None,
    )
    return LineBoundary(added=added, removed=removed)


def group_hunks(hunks: tuple[Hunk, ...] | list[Hunk]) -> list[list[Hunk]]:
    """Merge runs of sequential hunks; each group renders as one table."""
    groups: list[list[Hunk]] = []
    for hunk in hunks:
        if groups and lines_are_sequential(hunk_end(groups[-1][-1]), hunk_start(hunk)):
            groups[-1].append(hunk)
        else:
            groups.append([hunk])
    return groups


def pair_lines(lines: tuple[DiffLine, ...] | list[DiffLine]) -> list[DisplayRow]:
    """Pair each removed run with the added run that follows it."""
    rows: list[DisplayRow] = []
    removed: list[DiffLine] = []
    added: list[DiffLine] = []

    def flush() -> None:
        for index in range(max(len(removed), len(added))):
            rows.append(
                DisplayRow(
                    left=removed[index] if index < len(removed) else None,
                    right=added[index] if index < len(added) else None,
                )
            )
        removed.clear()
        added.clear()

    for line in lines:
        if line.kind is LineKind.REMOVED:
            if added:
                flush()
            removed.append(line)
        elif line.kind is LineKind.ADDED:
            added.append(line)
        elif line.kind is LineKind.CONTEXT:
            flush()
            rows.append(DisplayRow(left=line, right=line))
        else:
            raise ValueError(f"Unhandled line kind: {line.kind}")

    flush()
    return rows
