"""Tests for HTML rendering of commits."""

from __future__ import annotations

import re
from pathlib import Path

from diff_mail.diff_parser import CommitDiff, parse_commit, parse_file_section
from diff_mail.engine import RenderResult
from diff_mail.links import FileLinkGenerator
from diff_mail.message import MessageIntegrator
from diff_mail.renderer import (
    file_heading,
    format_text,
    render_commit_html,
    render_document,
    render_file_html,
    render_message_html,
)

FIXTURE_DIR = Path(__file__).parent / "fixtures" / "show"


def _render_fixture(name: str, link_generator: FileLinkGenerator | None = None) -> str:
    commit = parse_commit((FIXTURE_DIR / name).read_text(encoding="utf-8"))
    return render_commit_html(commit, link_generator=link_generator)


def _headings(output: str) -> list[str]:
    return [re.sub(r"<[^>]+>", "", item) for item in re.findall(r"<h2>(.*?)</h2>", output)]


def test_commit_without_files_has_no_headers_or_tables() -> None:
    output = render_commit_html(CommitDiff(id="abc123", message="Nothing changed"))
    assert "<h2>" not in output
    assert "<table>" not in output
    assert "Nothing changed" in output


def test_status_specific_headings() -> None:
    output = _render_fixture("statuses.txt")

    assert _headings(output) == [
        "guides/index.txt",
        "Added binary file guides/images/icons/11.png",
        "Deleted binary file guides/icons/up.png",
        "Deleted file guides/icons/README",
        "Added file guides/images/icons/README",
        "Renamed file guides/old_name.txt to guides/new_name.txt",
        "Changed binary file guides/logo.png",
    ]
    # Binary files have no tables.
    assert output.count("<table>") == 4


def test_non_sequential_hunks_render_as_separate_tables() -> None:
    output = _render_fixture("modified.txt")
    assert output.count("<table>") == 2
    assert "@@" not in output


def test_modified_row_has_word_highlights_and_line_numbers() -> None:
    output = _render_fixture("modified.txt")

    assert (
        '<tr class="r"><td class="ln">6</td><td class="ln"></td>'
        '<td>&nbsp;&nbsp;def&nbsp;<span class="rr">create_btn</span>(name)</td></tr>'
    ) in output
    assert '<span class="aa">create_button</span>' in output
    assert '<span class="aa">,&nbsp;style</span>' in output


def test_added_line_has_only_right_number() -> None:
    output = _render_fixture("broken_hunk.txt")
    assert (
        '<tr class="a"><td class="ln"></td><td class="ln">2</td>'
        "<td>require&nbsp;&#x27;iconv&#x27;</td></tr>"
    ) in output
    assert output.count('<tr class="r">') == 0


def test_context_row_has_both_numbers() -> None:
    output = _render_fixture("modified.txt")
    assert (
        '<tr><td class="ln">3</td><td class="ln">3</td>'
        "<td>&nbsp;&nbsp;def&nbsp;initialize(label)</td></tr>"
    ) in output


def test_headings_link_files_when_backend_configured() -> None:
    generator = FileLinkGenerator(
        "github", {"path": "https://github.com", "repository": "acme/guides"}
    )
    commit = parse_commit((FIXTURE_DIR / "statuses.txt").read_text(encoding="utf-8"))

    added = file_heading(commit.files[4], commit.id, generator)
    assert added == (
        "Added file <a href='https://github.com/acme/guides/blob/"
        "dce6ade4cdc2833b53bd600ef10f9bce83c7102d/guides/images/icons/README'>"
        "guides/images/icons/README</a>"
    )
    # Deleted files no longer exist at the commit.
    assert file_heading(commit.files[3], commit.id, generator) == "Deleted file guides/icons/README"


def test_format_text_escapes_markup_and_keeps_indentation() -> None:
    assert format_text("\tif a < b:") == "&nbsp;&nbsp;&nbsp;&nbsp;if&nbsp;a&nbsp;&lt;&nbsp;b:"


def test_render_message_html_escapes_before_linking() -> None:
    integrator = MessageIntegrator({"redmine": "http://redmine.example.com"})
    output = render_message_html("Fix <b> tag\nrefs #7", integrator)
    assert output == (
        'Fix &lt;b&gt; tag<br />\nrefs <a href="http://redmine.example.com/issues/7">#7</a>'
    )


def test_wiki_title_with_markup_characters_is_escaped_once() -> None:
    integrator = MessageIntegrator({"wiki": "http://w"})
    assert render_message_html("[[A & B]]", integrator) == (
        '<a href="http://w/A_&amp;_B">[[A &amp; B]]</a>'
    )
    assert render_message_html("[[x<y]]", integrator) == (
        '<a href="http://w/x&lt;y">[[x&lt;y]]</a>'
    )


def test_render_document_wraps_results_with_stylesheet() -> None:
    result = RenderResult(
        commit_id="abc",
        html="<div class='commit'>x</div>",
        author="A",
        date="",
        subject="Subject",
        message_html="Subject",
    )
    document = render_document([result], "td { color: red; }", title="Push to main")
    assert document.startswith("<!DOCTYPE html>")
    assert "td { color: red; }" in document
    assert "<title>Push to main</title>" in document
    assert "<div class='commit'>x</div>" in document


def test_hunk_section_is_shown_without_hunk_markers() -> None:
    output = _render_fixture("modified.txt")
    assert (
        '<tr class="section"><td class="ln"></td><td class="ln"></td>'
        "<td>module&nbsp;Buttons</td></tr>"
    ) in output
    assert "<td>def&nbsp;render</td>" in output
    assert "@@" not in output


def test_missing_trailing_newline_is_marked_on_each_side() -> None:
    file_diff = parse_file_section(
        [
            "diff --git a/foo.txt b/foo.txt",
            "--- a/foo.txt",
            "+++ b/foo.txt",
            "@@ -1 +1 @@",
            "-old",
            "\\ No newline at end of file",
            "+new",
            "\\ No newline at end of file",
        ]
    )
    rows = [row for row in render_file_html(file_diff, "abc") if row.startswith("<tr")]

    assert [re.match(r'<tr(?: class="(\w+)")?', row).group(1) for row in rows] == [
        "r",
        "nonl",
        "a",
        "nonl",
    ]
    assert "\\&nbsp;No&nbsp;newline&nbsp;at&nbsp;end&nbsp;of&nbsp;file" in rows[1]


def test_merge_parents_and_distinct_committer_are_listed() -> None:
    commit = CommitDiff(
        id="abc",
        author="Ann <ann@example.com>",
        date="Tue, 13 Oct 2009 10:20:30 +0200",
        committer="Bob <bob@example.com>",
        commit_date="Wed, 14 Oct 2009 09:00:00 +0000",
        merge_parents=("1111111", "2222222"),
    )
    output = render_commit_html(commit)

    assert "<p><strong>Merge:</strong> 1111111 2222222</p>" in output
    assert (
        "<p><strong>Committer:</strong> Bob &lt;bob@example.com&gt;, "
        "Wed, 14 Oct 2009 09:00:00 +0000</p>"
    ) in output


def test_committer_matching_author_is_not_repeated() -> None:
    output = _render_fixture("modified.txt")
    assert "Committer:" not in output
    assert "Merge:" not in output
