"""Stylesheet for the generated email body."""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_STYLESHEET = "\n".join(
    [
        "body { font-family: Arial, sans-serif; font-size: 13px; color: #333; }",
        "h1 { font-size: 16px; border-bottom: 2px solid #3498db; padding-bottom: 6px; }",
        "h2 { font-size: 14px; background: #ecf0f1; padding: 4px 8px; margin: 16px 0 0; }",
        ".commit-meta { color: #7f8c8d; margin: 4px 0 12px; }",
        ".commit-message { margin: 8px 0 12px; }",
        "table { border-collapse: collapse; width: 100%; margin-bottom: 6px; "
        "font-family: monospace; }",
        "td { padding: 0 6px; vertical-align: top; white-space: nowrap; }",
        "td.ln { color: #7f8c8d; text-align: right; width: 1%; "
        "border-right: 1px solid #bdc3c7; }",
        "tr.r td { background: #fdecea; }",
        "tr.a td { background: #eafaf1; }",
        "span.rr { background: #f5b7b1; }",
        "span.aa { background: #abebc6; }",
        "tr.section td { color: #7f8c8d; background: #f4f6f7; font-style: italic; }",
        "tr.nonl td { color: #7f8c8d; }",
    ]
)

_stylesheet: str | None = None


def load_stylesheet(path: Path | None = None) -> str:
    """Return the stylesheet text, reading it once per process.

    An unreadable custom file falls back to the default stylesheet.
    """
    global _stylesheet
    if _stylesheet is None:
        _stylesheet = _read_stylesheet(path)
    return _stylesheet


def reset_stylesheet() -> None:
    """Forget the cached stylesheet so the next load reads it again."""
    global _stylesheet
    _stylesheet = None


def _read_stylesheet(path: Path | None) -> str:
    if path is None:
        return DEFAULT_STYLESHEET
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        logger.warning(f"Cannot read stylesheet {path}: {exc}; using default")
        return DEFAULT_STYLESHEET
