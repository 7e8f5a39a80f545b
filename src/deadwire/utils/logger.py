"""Terminal-safe logging for deadwire.

Detects terminal encoding and provides ASCII alternatives for Unicode glyphs
so rich output does not crash on Windows terminals without UTF-8 support.
Module loggers are standard ``logging`` loggers rendered through rich.
"""
import sys
import locale
import logging
import os
from typing import Optional

from rich.logging import RichHandler


# Unicode to ASCII glyph mapping for non-UTF-8 terminals
ICON_MAP = {
    '✓': '[OK]',
    '✔': '[OK]',
    '✗': '[FAIL]',
    '✘': '[FAIL]',
    '⚠': '[WARN]',
    '→': '->',
    '←': '<-',
    '⇒': '=>',
    '│': '|',
    '─': '-',
    '┌': '+',
    '┐': '+',
    '└': '+',
    '┘': '+',
    '├': '+',
    '┤': '+',
    '┬': '+',
    '┴': '+',
    '┼': '+',
    '…': '...',
    '•': '*',
}

LOGGER_NAMESPACE = "deadwire"
_handler_installed = False


def detect_terminal_encoding() -> str:
    """Detect the terminal's encoding capability.

    Returns:
        str: Terminal encoding ('utf-8', 'cp1252', 'ascii', etc.)
    """
    if hasattr(sys.stdout, 'encoding') and sys.stdout.encoding:
        return sys.stdout.encoding.lower()

    try:
        return locale.getpreferredencoding().lower()
    except Exception:
        pass

    return 'ascii'


def is_utf8_capable() -> bool:
    """Check if the terminal can handle UTF-8 Unicode characters."""
    return detect_terminal_encoding() in ('utf-8', 'utf8', 'utf_8')


def sanitize_for_terminal(text: str) -> str:
    """Replace Unicode glyphs with ASCII equivalents if terminal doesn't support UTF-8.

    Args:
        text: Text potentially containing Unicode glyphs

    Returns:
        str: Sanitized text safe for current terminal
    """
    if is_utf8_capable():
        return text

    sanitized = text
    for unicode_char, ascii_replacement in ICON_MAP.items():
        sanitized = sanitized.replace(unicode_char, ascii_replacement)

    return sanitized


def configure_logging(level: Optional[str | int] = None) -> None:
    """Install the rich handler on the package logger.

    Level priority:
    1. Explicit ``level`` argument
    2. DEADWIRE_LOG_LEVEL environment variable
    3. WARNING

    Args:
        level: Logging level name or number
    """
    global _handler_installed
    from .safe_console import SafeConsole

    if level is None:
        level = os.getenv("DEADWIRE_LOG_LEVEL", "WARNING")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING

    root = logging.getLogger(LOGGER_NAMESPACE)
    if not _handler_installed:
        handler = RichHandler(
            console=SafeConsole(stderr=True),
            show_path=False,
            rich_tracebacks=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(handler)
        root.propagate = False
        _handler_installed = True
    root.setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the ``deadwire`` namespace.

    Args:
        name: Usually ``__name__`` of the calling module
    """
    if not name.startswith(LOGGER_NAMESPACE):
        name = f"{LOGGER_NAMESPACE}.{name}"
    return logging.getLogger(name)
