"""Tree-sitter parser for TypeScript sources."""
from pathlib import Path
from tree_sitter import Language, Parser, Tree
import tree_sitter_typescript as tstypescript


class LanguageParser:
    """TypeScript/TSX parser using the tree-sitter v0.22+ API."""

    SUPPORTED_LANGUAGES = {
        '.ts': 'typescript',
        '.mts': 'typescript',
        '.cts': 'typescript',
        '.tsx': 'tsx',
    }

    def __init__(self, language: str):
        """Initialize parser for given language (typescript, tsx).

        Args:
            language: One of 'typescript', 'tsx'

        Raises:
            ValueError: If language is not supported
        """
        self.language = language
        self.parser = self._create_parser()

    def _create_parser(self) -> Parser:
        """Factory method using the Parser(Language(capsule)) API.

        Returns:
            Configured Parser instance

        Raises:
            ValueError: If language is not supported
        """
        if self.language == 'typescript':
            lang = Language(tstypescript.language_typescript())
        elif self.language == 'tsx':
            lang = Language(tstypescript.language_tsx())
        else:
            raise ValueError(f"Unsupported language: {self.language}")

        return Parser(lang)

    def parse_source(self, source_code: bytes | str) -> Tree:
        """Parse in-memory source and return the tree-sitter Tree."""
        if isinstance(source_code, str):
            source_code = source_code.encode('utf-8')
        return self.parser.parse(source_code)

    @classmethod
    def is_supported(cls, file_path: str | Path) -> bool:
        """Check whether a path is a parseable TypeScript source (not a .d.ts)."""
        name = Path(file_path).name.lower()
        if name.endswith(('.d.ts', '.d.mts', '.d.cts')):
            return False
        return Path(name).suffix in cls.SUPPORTED_LANGUAGES
