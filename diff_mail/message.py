"""Commit-message rewriting: tracker/wiki links and custom substitutions."""

from __future__ import annotations

import html
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

ANCHOR_RE = re.compile(r"(<a\b[^>]*>.*?</a>)", re.IGNORECASE | re.DOTALL)


@dataclass(frozen=True, slots=True)
class IntegrationPattern:
    """How one family of integrations finds references and builds URLs."""

    pattern: re.Pattern[str]
    build_url: Callable[[str, re.Match[str]], str]


def _wiki_url(base: str, match: re.Match[str]) -> str:
    # Messages arrive HTML-escaped; the anchor escapes the href again.
    title = html.unescape(match.group(1)).strip()
    return f"{base}/{title.replace(' ', '_')}"


def _issue_url(base: str, match: re.Match[str]) -> str:
    return f"{base}/issues/{match.group(1)}"


def _bugzilla_url(base: str, match: re.Match[str]) -> str:
    return f"{base}/show_bug.cgi?id={match.group(1)}"


WIKI = IntegrationPattern(re.compile(r"\[\[([^\[\]]+)\]\]"), _wiki_url)
ISSUE_TRACKER = IntegrationPattern(re.compile(r"(?<![\w&#/])#(\d+)\b"), _issue_url)
BUGZILLA = IntegrationPattern(re.compile(r"\bBUG\s*#?(\d+)\b", re.IGNORECASE), _bugzilla_url)

INTEGRATION_KINDS: dict[str, IntegrationPattern] = {
    "mediawiki": WIKI,
    "wiki": WIKI,
    "redmine": ISSUE_TRACKER,
    "tracker": ISSUE_TRACKER,
    "issues": ISSUE_TRACKER,
    "bugzilla": BUGZILLA,
}


class MessageIntegrator:
    """Rewrite commit messages using `message_integration` and `message_map`.

    `integrations` maps an integration name to its base URL; None means the
    feature is not configured and messages pass through untouched.
    """

    def __init__(
        self,
        integrations: dict[str, str] | None = None,
        message_map: dict[str, str] | None = None,
    ) -> None:
        self.integrations = integrations
        self.message_map = [
            (re.compile(pattern), replacement)
            for pattern, replacement in (message_map or {}).items()
        ]

    def integrate(self, text: str) -> str:
        """Turn wiki and issue references into links."""
        if self.integrations is None:
            return text

        result = text
        for name, base_url in self.integrations.items():
            kind = INTEGRATION_KINDS.get(name.lower())
            if kind is None:
                logger.warning(f"Unknown message integration {name!r}; ignoring")
                continue
            result = _replace_outside_links(result, kind, base_url.rstrip("/"))
        return result

    def apply_message_map(self, text: str) -> str:
        """Apply configured regex substitutions in order."""
        for pattern, replacement in self.message_map:
            text = pattern.sub(replacement, text)
        return text

    def transform(self, text: str) -> str:
        return self.apply_message_map(self.integrate(text))


def _replace_outside_links(text: str, kind: IntegrationPattern, base_url: str) -> str:
    def to_anchor(match: re.Match[str]) -> str:
        href = html.escape(kind.build_url(base_url, match), quote=True)
        return f'<a href="{href}">{match.group(0)}</a>'

    chunks = ANCHOR_RE.split(text)
    # Odd indexes hold existing anchors captured by the split.
    for index in range(0, len(chunks), 2):
        chunks[index] = kind.pattern.sub(to_anchor, chunks[index])
    return "".join(chunks)
