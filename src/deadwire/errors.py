"""Error taxonomy for the dead code analyzer.

Only ConfigurationError ever reaches callers of ``analyze``. Pattern
mismatches in the DI graph builder are expected and are not errors.
"""
from pathlib import Path
from typing import Optional


class DeadwireError(Exception):
    """Base class for all deadwire errors."""


class ConfigurationError(DeadwireError):
    """Project configuration is missing or unparsable. Aborts the analysis."""

    def __init__(self, message: str, config_path: Optional[str | Path] = None):
        self.config_path = str(config_path) if config_path is not None else None
        if self.config_path:
            message = f"{message} ({self.config_path})"
        super().__init__(message)


class SymbolAnalysisError(DeadwireError):
    """References could not be computed for one symbol.

    The symbol is skipped: no finding is emitted for it.
    """

    def __init__(self, symbol_name: str, reason: str):
        self.symbol_name = symbol_name
        self.reason = reason
        super().__init__(f"{symbol_name}: {reason}")
