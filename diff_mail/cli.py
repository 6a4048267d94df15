"""CLI entrypoint for diff-mail."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Annotated

import typer

from diff_mail import __version__
from diff_mail.config import AppConfig, default_config_template, load_app_config
from diff_mail.diff_parser import split_commits
from diff_mail.engine import DiffToHtml, RenderResult
from diff_mail.git import GitError, new_commits, repo_name, show
from diff_mail.logs import configure_logging
from diff_mail.renderer import render_document
from diff_mail.styles import load_stylesheet

app = typer.Typer(
    name="diff-mail",
    no_args_is_help=True,
    help="Render git commits as HTML for email notifications.",
)


def version_callback(value: bool) -> None:
    """Print version and exit when --version is provided."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option("--version", help="Show version and exit.", callback=version_callback),
    ] = False,
) -> None:
    """Root command callback."""
    _ = version


@app.command("render")
def render_command(
    repo: Annotated[Path, typer.Option(help="Repository path.")] = Path("."),
    base: Annotated[str | None, typer.Option(help="Old revision of the pushed ref.")] = None,
    head: Annotated[str | None, typer.Option(help="New revision of the pushed ref.")] = None,
    branch: Annotated[str | None, typer.Option(help="Ref name, e.g. refs/heads/main.")] = None,
    show_file: Annotated[
        list[Path] | None,
        typer.Option(
            "--show-file",
            exists=True,
            dir_okay=False,
            help="File holding saved `git show` output.",
        ),
    ] = None,
    stdin: Annotated[bool, typer.Option(help="Read `git show` output from stdin.")] = False,
    out: Annotated[
        Path | None, typer.Option("--out", help="Write the HTML document here.")
    ] = None,
    title: Annotated[str | None, typer.Option(help="Document title.")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log debug output.")] = False,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """Render commits to an HTML email body."""
    app_config = _load_config_or_raise(repo, config_file)
    configure_logging(verbose=verbose, debug=app_config.debug)

    if show_file and stdin:
        raise typer.BadParameter("Use either --show-file or --stdin, not both.")

    if (base is None) ^ (head is None):
        raise typer.BadParameter("Provide both --base and --head together.")

    if not show_file and not stdin and base is None:
        raise typer.BadParameter("Provide --base/--head, --show-file or --stdin.")

    results = _render_results(
        app_config,
        repo=repo,
        base=base,
        head=head,
        branch=branch,
        show_files=show_file or [],
        stdin=stdin,
    )
    document = render_document(
        results,
        load_stylesheet(_resolve_stylesheet(repo, app_config)),
        title=title or _default_title(results),
    )

    if out is None:
        typer.echo(document)
        return
    out_path = out.resolve()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(document, encoding="utf-8")
    typer.echo(f"Wrote {len(results)} commit(s) to {out_path}")


@app.command("config")
def config_command(
    repo: Annotated[Path, typer.Option(help="Repository path.")] = Path("."),
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """Show resolved configuration."""
    output_format = format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    app_config = _load_config_or_raise(repo, config_file)
    payload = app_config.to_dict()

    if output_format == "json":
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    lines = [
        "Resolved configuration:",
        f"- source: {payload['source'] or 'defaults'}",
        f"- link_files: {payload['link_files']}",
        f"- message_integration: {payload['message_integration']}",
        f"- message_map: {payload['message_map']}",
        f"- skip_commits_older_than: {payload['skip_commits_older_than']}",
        f"- unique_commits_per_branch: {payload['unique_commits_per_branch']}",
        f"- ignore_whitespace: {payload['ignore_whitespace']}",
        f"- stylesheet: {payload['stylesheet']}",
        f"- debug: {payload['debug']}",
    ]
    typer.echo("\n".join(lines))


@app.command("config-init")
def config_init_command(
    out: Annotated[Path, typer.Option(help="Output path for starter config TOML.")] = Path(
        ".diff-mail.toml"
    ),
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite if file already exists."),
    ] = False,
) -> None:
    """Create a starter repository config file."""
    out_path = out.resolve()
    if out_path.exists() and not force:
        raise typer.BadParameter(
            f"Refusing to overwrite existing file: {out_path}. Use --force to overwrite."
        )
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(default_config_template(), encoding="utf-8")
    typer.echo(f"Wrote starter config: {out_path}")


@app.command("config-validate")
def config_validate_command(
    repo: Annotated[Path, typer.Option(help="Repository path.")] = Path("."),
    config_file: Annotated[
        Path,
        typer.Option("--config", help="Path to config TOML file to validate."),
    ] = Path(".diff-mail.toml"),
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
) -> None:
    """Validate a config file."""
    output_format = format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    app_config = _load_config_or_raise(repo, config_file)
    payload = {
        "ok": True,
        "source": app_config.source,
        "link_files": app_config.link_files,
    }
    if output_format == "json":
        typer.echo(json.dumps(payload, sort_keys=True))
        return
    typer.echo(
        "\n".join(
            [
                "Config is valid.",
                f"- source: {payload['source']}",
                f"- link_files: {payload['link_files']}",
            ]
        )
    )


def main() -> None:
    """Console script entrypoint."""
    app()


def _render_results(
    app_config: AppConfig,
    *,
    repo: Path,
    base: str | None,
    head: str | None,
    branch: str | None,
    show_files: list[Path],
    stdin: bool,
) -> list[RenderResult]:
    if show_files or stdin:
        engine = DiffToHtml(app_config, repo_name=repo.resolve().name)
        if show_files:
            texts = [(path.stem, path.read_text(encoding="utf-8")) for path in show_files]
        else:
            chunks = split_commits(sys.stdin.read())
            texts = [(f"stdin-{index}", text) for index, text in enumerate(chunks, start=1)]
        results: list[RenderResult] = []
        for revision, text in texts:
            result = engine.render_commit(revision, text, branch=branch)
            if result is not None:
                results.append(result)
        return results

    if base is None or head is None:
        raise typer.BadParameter("Provide both --base and --head together.")
    try:
        revisions = new_commits(repo, base, head)
        engine = DiffToHtml(app_config, repo_name=repo_name(repo))
    except GitError as exc:
        raise typer.BadParameter(str(exc)) from exc

    return engine.diff_between_revisions(
        revisions,
        lambda revision: show(repo, revision, ignore_whitespace=app_config.ignore_whitespace),
        branch=branch,
    )


def _resolve_stylesheet(repo: Path, app_config: AppConfig) -> Path | None:
    if app_config.stylesheet is None:
        return None
    if app_config.stylesheet.is_absolute():
        return app_config.stylesheet
    return repo.resolve() / app_config.stylesheet


def _default_title(results: list[RenderResult]) -> str:
    if len(results) == 1 and results[0].subject:
        return results[0].subject
    return f"{len(results)} new commit(s)"


def _load_config_or_raise(repo: Path, config_file: Path | None = None) -> AppConfig:
    try:
        return load_app_config(repo, config_path=config_file)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="config") from exc
