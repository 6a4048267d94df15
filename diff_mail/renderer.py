"""HTML rendering of parsed commits."""

from __future__ import annotations

import html
from collections.abc import Sequence
from typing import TYPE_CHECKING

from diff_mail.diff_parser import CommitDiff, FileDiff, FileStatus
from diff_mail.links import FileLinkGenerator
from diff_mail.message import MessageIntegrator
from diff_mail.pairing import DisplayRow, group_hunks, pair_lines
from diff_mail.word_diff import Segment, highlight_pair

if TYPE_CHECKING:
    from diff_mail.engine import RenderResult

TAB_WIDTH = 4
NO_NEWLINE_ROW = (
    '<tr class="nonl"><td class="ln"></td><td class="ln"></td>'
    "<td>\\&nbsp;No&nbsp;newline&nbsp;at&nbsp;end&nbsp;of&nbsp;file</td></tr>"
)


def render_commit_html(
    commit: CommitDiff,
    *,
    link_generator: FileLinkGenerator | None = None,
    message_html: str | None = None,
) -> str:
    """Render one commit: metadata block followed by every file."""
    html_parts = [
        "<div class='commit'>",
        "<div class='commit-meta'>",
        f"<p><strong>Commit:</strong> <code>{html.escape(commit.id)}</code></p>",
        f"<p><strong>Author:</strong> {html.escape(commit.author)}</p>",
        f"<p><strong>Date:</strong> {html.escape(commit.date)}</p>",
    ]
    if commit.is_merge:
        parents = " ".join(html.escape(parent) for parent in commit.merge_parents)
        html_parts.append(f"<p><strong>Merge:</strong> {parents}</p>")
    if commit.committer and (
        commit.committer != commit.author or commit.commit_date != commit.date
    ):
        committed = html.escape(commit.committer)
        if commit.commit_date:
            committed += f", {html.escape(commit.commit_date)}"
        html_parts.append(f"<p><strong>Committer:</strong> {committed}</p>")
    html_parts.append("</div>")
    if message_html is None:
        message_html = render_message_html(commit.message)
    html_parts.append(f"<div class='commit-message'>{message_html}</div>")

    for file_diff in commit.files:
        html_parts.extend(render_file_html(file_diff, commit.id, link_generator))

    html_parts.append("</div>")
    return "\n".join(html_parts)


def render_file_html(
    file_diff: FileDiff,
    commit_id: str,
    link_generator: FileLinkGenerator | None = None,
) -> list[str]:
    """Render the heading and hunk tables of one file."""
    html_parts = [f"<h2>{file_heading(file_diff, commit_id, link_generator)}</h2>"]
    if file_diff.status.is_binary:
        return html_parts

    for group in group_hunks(file_diff.hunks):
        html_parts.append("<table>")
        for hunk in group:
            if hunk.section:
                html_parts.append(_tr("section", None, None, format_text(hunk.section)))
            for row in pair_lines(hunk.lines):
                html_parts.extend(render_row(row))
        html_parts.append("</table>")
    return html_parts


def file_heading(
    file_diff: FileDiff,
    commit_id: str,
    link_generator: FileLinkGenerator | None = None,
) -> str:
    """Status-specific heading text for a file, with a browse link when configured."""
    status = file_diff.status

    def linked(path: str | None) -> str:
        if path is None:
            return ""
        if link_generator is None:
            return html.escape(path, quote=False)
        return link_generator.link(path, commit_id)

    def plain(path: str | None) -> str:
        return html.escape(path or "", quote=False)

    if status is FileStatus.ADDED:
        return f"Added file {linked(file_diff.new_path)}"
    if status is FileStatus.DELETED:
        return f"Deleted file {plain(file_diff.old_path)}"
    if status is FileStatus.BINARY_ADDED:
        return f"Added binary file {linked(file_diff.new_path)}"
    if status is FileStatus.BINARY_DELETED:
        return f"Deleted binary file {plain(file_diff.old_path)}"
    if status is FileStatus.BINARY_MODIFIED:
        return f"Changed binary file {linked(file_diff.path)}"
    if status is FileStatus.RENAMED:
        return f"Renamed file {plain(file_diff.old_path)} to {linked(file_diff.new_path)}"
    if status is FileStatus.MODIFIED:
        return linked(file_diff.path)
    raise ValueError(f"Unhandled file status: {status}")


def render_row(row: DisplayRow) -> list[str]:
    """Render a display row as one or two `<tr>` elements."""
    left, right = row.left, row.right
    if row.is_context and left is not None:
        rows = [_tr("", left.left_lineno, left.right_lineno, format_text(left.text))]
        if left.no_newline:
            rows.append(NO_NEWLINE_ROW)
        return rows

    old_content = new_content = None
    if row.is_modified and left is not None and right is not None:
        old_segments, new_segments = highlight_pair(left.text, right.text)
        old_content = render_segments(old_segments, "rr")
        new_content = render_segments(new_segments, "aa")

    rows = []
    if left is not None:
        content = old_content if old_content is not None else format_text(left.text)
        rows.append(_tr("r", left.left_lineno, None, content))
        if left.no_newline:
            rows.append(NO_NEWLINE_ROW)
    if right is not None:
        content = new_content if new_content is not None else format_text(right.text)
        rows.append(_tr("a", None, right.right_lineno, content))
        if right.no_newline:
            rows.append(NO_NEWLINE_ROW)
    return rows


def render_segments(segments: Sequence[Segment], css_class: str) -> str:
    """Render segments, wrapping changed ones in a highlight span."""
    output: list[str] = []
    for segment in segments:
        text = format_text(segment.text)
        if segment.changed:
            output.append(f'<span class="{css_class}">{text}</span>')
        else:
            output.append(text)
    return "".join(output)


def format_text(text: str) -> str:
    """Escape a line for a table cell, keeping its indentation visible."""
    expanded = text.replace("\t", " " * TAB_WIDTH)
    return html.escape(expanded, quote=True).replace(" ", "&nbsp;")


def render_message_html(message: str, integrator: MessageIntegrator | None = None) -> str:
    """Escape a commit message, apply link rewriting and keep line breaks."""
    escaped = html.escape(message, quote=False)
    if integrator is not None:
        escaped = integrator.transform(escaped)
    return escaped.replace("\n", "<br />\n")


def render_document(
    results: Sequence[RenderResult],
    stylesheet: str,
    *,
    title: str = "Commit notification",
) -> str:
    """Wrap rendered commits into a complete HTML email body."""
    html_parts = [
        "<!DOCTYPE html>",
        "<html>",
        "<head>",
        "<meta charset='utf-8'>",
        f"<title>{html.escape(title)}</title>",
        "<style>",
        stylesheet,
        "</style>",
        "</head>",
        "<body>",
        f"<h1>{html.escape(title)}</h1>",
    ]
    for result in results:
        html_parts.append(result.html)
    html_parts.append("</body>")
    html_parts.append("</html>")
    return "\n".join(html_parts)


def _tr(css_class: str, left: int | None, right: int | None, content: str) -> str:
    class_attr = f' class="{css_class}"' if css_class else ""
    left_cell = "" if left is None else str(left)
    right_cell = "" if right is None else str(right)
    return (
        f"<tr{class_attr}><td class=\"ln\">{left_cell}</td>"
        f"<td class=\"ln\">{right_cell}</td><td>{content}</td></tr>"
    )
