"""Rich console that degrades to ASCII on terminals without UTF-8 support."""
from rich.console import Console
from rich.markup import escape
from typing import Any
from .logger import sanitize_for_terminal, is_utf8_capable


class SafeConsole(Console):
    """Console used for CLI tables and log records.

    On non-UTF-8 terminals string arguments have their glyphs replaced with
    ASCII equivalents before rich renders them.
    """

    def __init__(self, *args, **kwargs):
        self._needs_sanitization = not is_utf8_capable()
        if self._needs_sanitization:
            kwargs['legacy_windows'] = True
        super().__init__(*args, **kwargs)

    def print(self, *objects: Any, **kwargs) -> None:
        if self._needs_sanitization:
            objects = tuple(
                sanitize_for_terminal(obj) if isinstance(obj, str) else obj
                for obj in objects
            )
        super().print(*objects, **kwargs)

    def error(self, message: str) -> None:
        """Print an error line; the message is not interpreted as markup."""
        self.print(f"[bold red]Error:[/bold red] {escape(message)}")
