"""Terminal color helpers for conversion diagnostics.

ANSI styling with TTY detection and NO_COLOR / FORCE_COLOR support.
Only the handful of semantic helpers used by the exception classes live here.
"""

from __future__ import annotations

import os
import re
import sys
from typing import Literal

_CODES = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "dim": "\033[2m",
    "cyan": "\033[36m",
    "yellow": "\033[33m",
    "green": "\033[32m",
    "bright_red": "\033[91m",
    "bright_green": "\033[92m",
    "bright_blue": "\033[94m",
    "magenta": "\033[35m",
}

Style = Literal[
    "reset", "bold", "dim", "cyan", "yellow", "green",
    "bright_red", "bright_green", "bright_blue", "magenta",
]

_ANSI = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")


def _should_use_colors() -> bool:
    """Decide once whether diagnostics get ANSI styling.

    FORCE_COLOR wins over NO_COLOR; otherwise colors follow stderr being a TTY,
    since conversion errors are usually reported by a build pipeline on stderr.
    """
    if os.environ.get("FORCE_COLOR"):
        return True
    if os.environ.get("NO_COLOR"):
        return False
    return sys.stderr.isatty()


_USE_COLORS = _should_use_colors()


def supports_color() -> bool:
    return _USE_COLORS


def style(text: str, *styles: Style) -> str:
    """Wrap text in ANSI codes when colors are enabled.

    Example:
        >>> style("L-SCP-001", "bright_red", "bold")
        '\\033[91m\\033[1mL-SCP-001\\033[0m'  # colors on
        'L-SCP-001'                           # colors off
    """
    if not _USE_COLORS or not styles:
        return text
    prefix = "".join(_CODES[s] for s in styles)
    return f"{prefix}{text}{_CODES['reset']}"


def strip_colors(text: str) -> str:
    """Remove ANSI sequences, e.g. before asserting on a message."""
    return _ANSI.sub("", text)


def error_code(text: str) -> str:
    return style(text, "bright_red", "bold")


def location(text: str) -> str:
    return style(text, "cyan")


def identifier(text: str) -> str:
    """A template identifier such as ``this.title`` or ``item.name``."""
    return style(text, "magenta")


def metadata_path(text: str) -> str:
    """A metadata location an operator has to edit."""
    return style(text, "yellow", "bold")


def hint(text: str) -> str:
    return style(text, "green")


def suggestion(text: str) -> str:
    return style(text, "bright_green", "bold")


def dim_text(text: str) -> str:
    return style(text, "dim")


def docs_url(text: str) -> str:
    return style(text, "bright_blue")


def format_error_header(code: str | None, message: str) -> str:
    if code:
        return f"{error_code(code)}: {message}"
    return message


def format_source_line(lineno: int, content: str, is_error: bool = False) -> str:
    """Render one numbered source line, marking the offending one with ``>``."""
    marker = ">" if is_error else " "
    number = style(f"{marker}{lineno:>3}", "yellow")
    body = style(content, "bright_red") if is_error else dim_text(content)
    return f"{number} | {body}"
