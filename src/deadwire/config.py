"""Configuration management for deadwire.

Loads environment variables (optionally from a .env file in the working
directory) and builds the settings structure injected into the analyzer.
"""
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Iterable, Optional
from dotenv import load_dotenv

# Keep in sync with pyproject.toml
__version__ = "1.0.0"


@dataclass(frozen=True)
class AnalyzerSettings:
    """Allowlists, exemptions and naming conventions used by the analyzer.

    File globs are matched against POSIX paths relative to the directory
    holding the tsconfig.
    """
    allowlisted_classes: frozenset[str] = frozenset()
    allowlisted_files: tuple[str, ...] = ()
    # Tokens consumed only through multi-injection patterns this tool cannot see
    exempt_tokens: frozenset[str] = frozenset()
    token_object: str = "TOKENS"
    container_name: str = "container"
    lookup_methods: tuple[str, ...] = ("get", "getAsync", "getAll", "getAllAsync")
    registration_pattern: str = r"register\w+\.(?:ts|tsx|mts|cts)$"
    source_root: str = "src"
    test_path_segments: tuple[str, ...] = ("tests", "test", "__tests__", "__mocks__")
    test_file_suffixes: tuple[str, ...] = (".test", ".spec")
    excluded_path_segments: tuple[str, ...] = (
        "node_modules", "dist", "build", "generated", "__generated__", "coverage",
    )
    include_functions: bool = False

    def extended(self, allowlisted_classes: Iterable[str] = (),
                 allowlisted_files: Iterable[str] = (),
                 exempt_tokens: Iterable[str] = (),
                 include_functions: Optional[bool] = None) -> "AnalyzerSettings":
        """Return a copy with extra allowlist entries.

        Args:
            allowlisted_classes: Class names to add to the allowlist
            allowlisted_files: File globs to add to the allowlist
            exempt_tokens: Token names to add to the exemption list
            include_functions: Override the dead-function pass switch

        Returns:
            New AnalyzerSettings instance
        """
        return replace(
            self,
            allowlisted_classes=self.allowlisted_classes | frozenset(allowlisted_classes),
            allowlisted_files=self.allowlisted_files + tuple(
                pattern for pattern in allowlisted_files if pattern not in self.allowlisted_files
            ),
            exempt_tokens=self.exempt_tokens | frozenset(exempt_tokens),
            include_functions=self.include_functions if include_functions is None else include_functions,
        )


def _split_list(value: Optional[str]) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


class Config:
    """Configuration loader with environment variable support."""

    def __init__(self, env_file: Optional[str | Path] = None):
        """Initialize config by loading .env file.

        Args:
            env_file: Explicit .env path (defaults to ./.env)
        """
        env_path = Path(env_file) if env_file else Path.cwd() / ".env"
        load_dotenv(env_path)

    @property
    def allowlisted_classes(self) -> list[str]:
        """Class names that are never reported (DEADWIRE_ALLOWLIST_CLASSES)."""
        return _split_list(os.getenv("DEADWIRE_ALLOWLIST_CLASSES"))

    @property
    def allowlisted_files(self) -> list[str]:
        """File globs that are never reported (DEADWIRE_ALLOWLIST_FILES)."""
        return _split_list(os.getenv("DEADWIRE_ALLOWLIST_FILES"))

    @property
    def exempt_tokens(self) -> list[str]:
        """Token names exempt from unresolved-token checks (DEADWIRE_EXEMPT_TOKENS)."""
        return _split_list(os.getenv("DEADWIRE_EXEMPT_TOKENS"))

    @property
    def token_object(self) -> str:
        return os.getenv("DEADWIRE_TOKEN_OBJECT", "TOKENS")

    @property
    def source_root(self) -> str:
        return os.getenv("DEADWIRE_SOURCE_ROOT", "src")

    @property
    def include_functions(self) -> bool:
        return os.getenv("DEADWIRE_INCLUDE_FUNCTIONS", "").lower() in ("1", "true", "yes", "on")

    @property
    def log_level(self) -> str:
        """Get log level from environment with fallback.

        Returns:
            Logging level name
        """
        return os.getenv("DEADWIRE_LOG_LEVEL", "WARNING")

    def analyzer_settings(self) -> AnalyzerSettings:
        """Build analyzer settings from the environment.

        Returns:
            AnalyzerSettings instance
        """
        return AnalyzerSettings(
            allowlisted_classes=frozenset(self.allowlisted_classes),
            allowlisted_files=tuple(self.allowlisted_files),
            exempt_tokens=frozenset(self.exempt_tokens),
            token_object=self.token_object,
            source_root=self.source_root,
            include_functions=self.include_functions,
        )


# Singleton instance
_config = None


def get_config() -> Config:
    """Get or create singleton Config instance.

    Returns:
        Config instance
    """
    global _config
    if _config is None:
        _config = Config()
    return _config
