"""Configuration loading for diff-mail."""

from __future__ import annotations

import re
import tempfile
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from diff_mail.links import SUPPORTED_BACKENDS

CONFIG_FILENAMES = (".diff-mail.toml", "diff-mail.toml")
PYPROJECT_FILENAME = "pyproject.toml"
PYPROJECT_TOOL_KEYS = ("diff_mail", "diff-mail")

WHITESPACE_MODES = {"all", "change", "none"}
DEFAULT_LOG_DIRECTORY = Path(tempfile.gettempdir())
LOG_NAME = "diff-mail.log"


@dataclass(slots=True)
class DebugConfig:
    """Debug log file settings."""

    enabled: bool = False
    log_directory: Path | None = None

    @property
    def log_path(self) -> Path | None:
        if not self.enabled:
            return None
        return (self.log_directory or DEFAULT_LOG_DIRECTORY) / LOG_NAME

    def to_dict(self) -> dict[str, Any]:
        return {
            "enabled": self.enabled,
            "log_directory": str(self.log_directory) if self.log_directory else None,
        }


@dataclass(slots=True)
class AppConfig:
    """Runtime configuration values resolved from project files."""

    link_files: str | None = None
    link_settings: dict[str, dict[str, str]] = field(default_factory=dict)
    message_integration: dict[str, str] | None = None
    message_map: dict[str, str] = field(default_factory=dict)
    skip_commits_older_than: int | None = None
    unique_commits_per_branch: bool = False
    ignore_whitespace: str = "all"
    stylesheet: Path | None = None
    debug: DebugConfig = field(default_factory=DebugConfig)
    source: str | None = None

    @property
    def backend_settings(self) -> dict[str, str]:
        """Settings table of the configured link backend."""
        if self.link_files is None:
            return {}
        return self.link_settings.get(self.link_files, {})

    def to_dict(self) -> dict[str, Any]:
        return {
            "link_files": self.link_files,
            "links": {name: dict(values) for name, values in self.link_settings.items()},
            "message_integration": (
                dict(self.message_integration) if self.message_integration is not None else None
            ),
            "message_map": dict(self.message_map),
            "skip_commits_older_than": self.skip_commits_older_than,
            "unique_commits_per_branch": self.unique_commits_per_branch,
            "ignore_whitespace": self.ignore_whitespace,
            "stylesheet": str(self.stylesheet) if self.stylesheet else None,
            "debug": self.debug.to_dict(),
            "source": self.source,
        }


def load_app_config(repo: Path, config_path: Path | None = None) -> AppConfig:
    """Load config from explicit path or repository-local files with precedence."""
    repo = repo.resolve()
    if config_path is not None:
        resolved = config_path if config_path.is_absolute() else (repo / config_path)
        if not resolved.exists():
            raise ValueError(f"Config file does not exist: {resolved}")
        mapping = _extract_config_mapping(_load_toml(resolved), source_path=resolved)
        return config_from_mapping(mapping, source=str(resolved))

    for filename in CONFIG_FILENAMES:
        resolved = repo / filename
        if resolved.exists():
            mapping = _extract_config_mapping(_load_toml(resolved), source_path=resolved)
            return config_from_mapping(mapping, source=str(resolved))

    pyproject_path = repo / PYPROJECT_FILENAME
    if pyproject_path.exists():
        mapping = _extract_config_mapping(_load_toml(pyproject_path), source_path=pyproject_path)
        if mapping:
            return config_from_mapping(mapping, source=str(pyproject_path))

    return AppConfig()


def default_config_template() -> str:
    """Return a starter config template."""
    return "\n".join(
        [
            '# One of: cgit, github, gitlab, gitweb, redmine, stash, trac',
            'link_files = "github"',
            'ignore_whitespace = "all"',
            "skip_commits_older_than = 0",
            "unique_commits_per_branch = false",
            '# stylesheet = "notification.css"',
            "",
            "[github]",
            'path = "https://github.com"',
            'repository = "owner/project"',
            "",
            "[message_integration]",
            'mediawiki = "http://example.com/wiki"',
            'redmine = "http://redmine.example.com"',
            "",
            "[message_map]",
            '"\\\\bJIRA-(\\\\d+)" = '
            '"<a href=\\"https://jira.example.com/browse/JIRA-\\\\1\\">JIRA-\\\\1</a>"',
            "",
            "[debug]",
            "enabled = false",
            '# log_directory = "/var/log/diff-mail"',
            "",
        ]
    )


def config_from_mapping(mapping: dict[str, Any], *, source: str | None = None) -> AppConfig:
    """Build an AppConfig from an already-loaded mapping."""
    raw_link = mapping.get("link_files")
    link_files = (
        None
        if raw_link in (None, "", "none")
        else _as_choice(raw_link, set(SUPPORTED_BACKENDS), "link_files")
    )

    link_settings: dict[str, dict[str, str]] = {}
    for backend in sorted(SUPPORTED_BACKENDS):
        table = _as_table(mapping.get(backend), backend)
        if table:
            link_settings[backend] = _as_str_mapping(table, backend)

    raw_integration = mapping.get("message_integration")
    message_integration = (
        None
        if raw_integration is None
        else _as_str_mapping(
            _as_table(raw_integration, "message_integration"), "message_integration"
        )
    )

    message_map = _as_str_mapping(
        _as_table(mapping.get("message_map"), "message_map"), "message_map"
    )
    for pattern in message_map:
        try:
            re.compile(pattern)
        except re.error as exc:
            raise ValueError(f"message_map pattern {pattern!r} is invalid: {exc}") from exc

    raw_stylesheet = mapping.get("stylesheet")
    stylesheet = Path(_as_str(raw_stylesheet, "stylesheet")) if raw_stylesheet else None

    return AppConfig(
        link_files=link_files,
        link_settings=link_settings,
        message_integration=message_integration,
        message_map=message_map,
        skip_commits_older_than=_as_days(mapping.get("skip_commits_older_than")),
        unique_commits_per_branch=_as_bool(
            mapping.get("unique_commits_per_branch", False), "unique_commits_per_branch"
        ),
        ignore_whitespace=_as_choice(
            mapping.get("ignore_whitespace", "all"), WHITESPACE_MODES, "ignore_whitespace"
        ),
        stylesheet=stylesheet,
        debug=_parse_debug_config(_as_table(mapping.get("debug"), "debug")),
        source=source,
    )


def _parse_debug_config(value: dict[str, Any]) -> DebugConfig:
    raw_directory = value.get("log_directory")
    return DebugConfig(
        enabled=_as_bool(value.get("enabled", False), "debug.enabled"),
        log_directory=Path(_as_str(raw_directory, "debug.log_directory"))
        if raw_directory
        else None,
    )


def _load_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as file_obj:
            loaded = tomllib.load(file_obj)
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Invalid TOML in {path}: {exc}") from exc
    if not isinstance(loaded, dict):
        return {}
    return loaded


def _extract_config_mapping(loaded: dict[str, Any], *, source_path: Path) -> dict[str, Any]:
    if source_path.name == PYPROJECT_FILENAME:
        section = _find_pyproject_tool_section(loaded)
        return section if section is not None else {}

    tool_section = _find_pyproject_tool_section(loaded)
    if tool_section is not None:
        return tool_section
    return loaded


def _find_pyproject_tool_section(loaded: dict[str, Any]) -> dict[str, Any] | None:
    tool = loaded.get("tool")
    if not isinstance(tool, dict):
        return None
    for key in PYPROJECT_TOOL_KEYS:
        section = tool.get(key)
        if isinstance(section, dict):
            return section
    return None


def _as_table(value: Any, field_name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{field_name} must be a table/object")
    return value


def _as_str_mapping(value: dict[str, Any], field_name: str) -> dict[str, str]:
    parsed: dict[str, str] = {}
    for key, raw in value.items():
        if not isinstance(raw, str):
            raise ValueError(f"{field_name}.{key} must be a string")
        parsed[key] = raw
    return parsed


def _as_str(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a string")
    return value


def _as_choice(raw: Any, allowed: set[str], field_name: str) -> str:
    value = str(raw).lower()
    if value not in allowed:
        choices = ", ".join(sorted(allowed))
        raise ValueError(f"{field_name} must be one of: {choices}")
    return value


def _as_days(raw: Any) -> int | None:
    if raw is None:
        return None
    if isinstance(raw, bool):
        raise ValueError("skip_commits_older_than must be an integer")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str):
        try:
            return int(raw.strip())
        except ValueError as exc:
            raise ValueError("skip_commits_older_than must be an integer") from exc
    raise ValueError("skip_commits_older_than must be an integer")


def _as_bool(raw: Any, field_name: str) -> bool:
    if not isinstance(raw, bool):
        raise ValueError(f"{field_name} must be a boolean")
    return raw
