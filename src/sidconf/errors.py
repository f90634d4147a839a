"""Error types and user-facing error formatting for sidconf."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional


class ConfigError(RuntimeError):
    pass


class NoSectionSelected(RuntimeError):
    """Raised when key operations are attempted without a selected section."""


class ErrorKind(Enum):
    """Kinds of problems found while loading a configuration file."""
    STRUCTURAL = "structural"
    COERCION = "coercion"
    IO = "io"


@dataclass(frozen=True)
class ConfigIssue:
    """A non-fatal problem found while loading or reading the document."""
    kind: ErrorKind
    message: str
    section: Optional[str] = None
    key: Optional[str] = None
    line: Optional[int] = None  # 1-based, structural issues only


def format_issue(issue: ConfigIssue) -> str:
    """Format a single issue as one line of text."""
    where = []
    if issue.line is not None:
        where.append(f"line {issue.line}")
    if issue.section:
        where.append(f"[{issue.section}]")
    if issue.key:
        where.append(issue.key)
    prefix = " ".join(where)
    return f"{issue.kind.value}: {prefix}: {issue.message}" if prefix else f"{issue.kind.value}: {issue.message}"


def format_config_error(error: Exception) -> str:
    """Format configuration-related error messages."""
    error_str = str(error)

    if "cannot get config path" in error_str.lower():
        return (
            "Cannot determine the configuration directory. Please either:\n"
            "  • Set SIDPLAYFP_CONFIG=/path/to/sidplayfp.ini, or\n"
            "  • Set HOME (or XDG_CONFIG_HOME) to a valid directory"
        )

    if "not a directory" in error_str.lower():
        return (
            f"Configuration directory error: {error_str}\n"
            "A file is in the way of the configuration directory."
        )

    return f"Configuration error: {error_str}"


def suggest_troubleshooting_steps(issues: Iterable[ConfigIssue]) -> list[str]:
    """Suggest troubleshooting steps based on the issues found."""
    kinds = {issue.kind for issue in issues}
    suggestions = []

    if ErrorKind.IO in kinds:
        suggestions.extend([
            "Check that the configuration file and its directory are readable and writable",
            "Show the file location in use: sidconfctl path",
        ])

    if ErrorKind.STRUCTURAL in kinds:
        suggestions.extend([
            "Section headers must look like [Name]",
            "Settings must look like Key = Value",
        ])

    if ErrorKind.COERCION in kinds:
        suggestions.extend([
            "Booleans are written as true or false",
            "Times are written as seconds or MM:SS[.mmm]",
            "Clear a value (Key =) to fall back to its default",
        ])

    return suggestions
