"""Path classification: test files, registration modules, barrels, allowlists.

All predicates take POSIX paths relative to the project directory.
"""
import fnmatch
import re
from pathlib import PurePosixPath
from typing import Optional

from ..config import AnalyzerSettings


class PathRules:
    """Decide which files are analyzable and which references are discounted."""

    BARREL_STEMS = {'index'}

    def __init__(self, settings: Optional[AnalyzerSettings] = None,
                 source_root: Optional[str] = None):
        """Initialize path rules.

        Args:
            settings: Analyzer settings (defaults to AnalyzerSettings())
            source_root: Relative source root; '' or '.' means the whole project
        """
        self.settings = settings or AnalyzerSettings()
        self.source_root = (source_root or '').strip('/')
        if self.source_root == '.':
            self.source_root = ''
        self._registration = re.compile(self.settings.registration_pattern)
        self._test_segments = {segment.lower() for segment in self.settings.test_path_segments}
        self._excluded_segments = {segment.lower() for segment in self.settings.excluded_path_segments}

    @staticmethod
    def _parts(relative_path: str) -> tuple[str, ...]:
        return PurePosixPath(relative_path).parts

    def is_test_path(self, relative_path: str) -> bool:
        """Check if a file lives in a test directory or is a *.test / *.spec file."""
        parts = self._parts(relative_path)
        if any(part.lower() in self._test_segments for part in parts[:-1]):
            return True
        # Foo.test.ts -> ['Foo', 'test', 'ts']
        pieces = parts[-1].split('.')
        return any(f'.{piece}' in self.settings.test_file_suffixes for piece in pieces[1:-1])

    def is_registration_file(self, relative_path: str) -> bool:
        """Check if a file follows the DI registration-module naming convention."""
        return self._registration.search(PurePosixPath(relative_path).name) is not None

    def is_barrel(self, relative_path: str) -> bool:
        """Check if a file is a barrel (index.*) re-export module."""
        name = PurePosixPath(relative_path).name
        return name.split('.', 1)[0] in self.BARREL_STEMS

    def is_excluded(self, relative_path: str) -> bool:
        """Check if a file is generated or vendored."""
        return any(part.lower() in self._excluded_segments for part in self._parts(relative_path))

    def is_under_source_root(self, relative_path: str) -> bool:
        if not self.source_root:
            return not relative_path.startswith('../')
        return relative_path == self.source_root or relative_path.startswith(self.source_root + '/')

    def is_allowlisted(self, relative_path: str) -> bool:
        """Check if a file matches one of the allowlisted file globs."""
        return any(fnmatch.fnmatchcase(relative_path, pattern)
                   for pattern in self.settings.allowlisted_files)

    def is_analyzable(self, relative_path: str) -> bool:
        """Check if declarations in a file are candidates for dead code findings.

        A file is analyzable when it is under the source root and is not
        generated, a test, a barrel, a DI registration module or allowlisted.
        """
        return (
            self.is_under_source_root(relative_path)
            and not self.is_excluded(relative_path)
            and not self.is_test_path(relative_path)
            and not self.is_barrel(relative_path)
            and not self.is_registration_file(relative_path)
            and not self.is_allowlisted(relative_path)
        )
