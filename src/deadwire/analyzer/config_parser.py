"""tsconfig.json parsing and source file discovery.

Handles the JSON-with-comments dialect TypeScript accepts (line and block
comments, trailing commas), follows ``extends`` chains and expands the
``files``/``include``/``exclude`` settings into a sorted list of source files.
"""
import json
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from ..errors import ConfigurationError
from .parser import LanguageParser


# Strings are matched first so comment markers inside them survive
_COMMENT_PATTERN = re.compile(
    r'("(?:\\.|[^"\\])*")|(//[^\n]*)|(/\*.*?\*/)',
    re.DOTALL,
)
_TRAILING_COMMA_PATTERN = re.compile(r'("(?:\\.|[^"\\])*")|,(\s*[}\]])')

DEFAULT_EXCLUDES = ['node_modules', 'bower_components', 'jspm_packages']

# Directories never walked while expanding include patterns
PRUNED_DIRECTORIES = {'node_modules', '.git', '.hg', '.svn'}


def strip_json_comments(content: str) -> str:
    """Remove comments and trailing commas from JSONC text.

    Args:
        content: Raw tsconfig text

    Returns:
        Plain JSON text
    """
    def drop_comment(match: re.Match) -> str:
        return match.group(1) if match.group(1) is not None else ''

    def drop_comma(match: re.Match) -> str:
        return match.group(1) if match.group(1) is not None else match.group(2)

    content = _COMMENT_PATTERN.sub(drop_comment, content)
    return _TRAILING_COMMA_PATTERN.sub(drop_comma, content)


def glob_to_regex(pattern: str) -> re.Pattern:
    """Translate a tsconfig glob into a regex over relative POSIX paths.

    ``**/`` matches any directory depth, ``*`` and ``?`` stay within one
    path segment.
    """
    pattern = pattern.replace('\\', '/')
    if pattern.startswith('./'):
        pattern = pattern[2:]
    regex = ''
    i = 0
    while i < len(pattern):
        if pattern.startswith('**/', i):
            regex += '(?:.*/)?'
            i += 3
        elif pattern.startswith('**', i):
            regex += '.*'
            i += 2
        elif pattern[i] == '*':
            regex += '[^/]*'
            i += 1
        elif pattern[i] == '?':
            regex += '[^/]'
            i += 1
        else:
            regex += re.escape(pattern[i])
            i += 1
    return re.compile(regex + r'\Z')


@dataclass
class TsConfig:
    """A resolved tsconfig: the project directory plus its file selection."""
    config_path: Path
    project_dir: Path
    compiler_options: Dict = field(default_factory=dict)
    files: Optional[List[str]] = None
    include: Optional[List[str]] = None
    exclude: Optional[List[str]] = None

    @property
    def root_dir(self) -> Optional[str]:
        root_dir = self.compiler_options.get('rootDir')
        return root_dir if isinstance(root_dir, str) else None

    def _effective_include(self) -> List[str]:
        if self.include is not None:
            return self.include
        if self.files is not None:
            return []
        return ['**/*']

    def _effective_exclude(self) -> List[str]:
        if self.exclude is not None:
            return self.exclude
        excludes = list(DEFAULT_EXCLUDES)
        out_dir = self.compiler_options.get('outDir')
        if isinstance(out_dir, str):
            excludes.append(out_dir)
        return excludes

    def _pattern_regexes(self, patterns: List[str]) -> List[re.Pattern]:
        regexes = []
        for pattern in patterns:
            pattern = pattern.replace('\\', '/').rstrip('/')
            if pattern.startswith('./'):
                pattern = pattern[2:]
            if not pattern:
                continue
            last_segment = pattern.rsplit('/', 1)[-1]
            # A bare directory means everything beneath it
            if '*' not in last_segment and (self.project_dir / pattern).is_dir():
                regexes.append(glob_to_regex(pattern + '/**/*'))
            regexes.append(glob_to_regex(pattern))
        return regexes

    def source_files(self) -> List[Path]:
        """Expand files/include/exclude into the project's source files.

        Returns:
            Sorted list of absolute paths
        """
        include = self._pattern_regexes(self._effective_include())
        exclude = self._pattern_regexes(self._effective_exclude())
        selected = set()

        for file_name in self.files or []:
            candidate = (self.project_dir / file_name).resolve()
            if candidate.is_file() and LanguageParser.is_supported(candidate):
                selected.add(candidate)

        if include:
            for dir_path, dir_names, file_names in os.walk(self.project_dir):
                dir_names[:] = sorted(d for d in dir_names if d not in PRUNED_DIRECTORIES)
                for file_name in file_names:
                    if not LanguageParser.is_supported(file_name):
                        continue
                    path = Path(dir_path) / file_name
                    relative = path.relative_to(self.project_dir).as_posix()
                    if not any(regex.match(relative) for regex in include):
                        continue
                    if any(regex.match(relative) for regex in exclude):
                        continue
                    selected.add(path)

        return sorted(selected, key=lambda p: self.relative_path(p))

    def relative_path(self, path: Path) -> str:
        """POSIX path of ``path`` relative to the project directory."""
        try:
            return Path(path).relative_to(self.project_dir).as_posix()
        except ValueError:
            return Path(os.path.relpath(path, self.project_dir)).as_posix()


class TsConfigParser:
    """Parse a tsconfig.json (following ``extends``) into a TsConfig."""

    def __init__(self, config_path: str | Path):
        """Initialize the parser.

        Args:
            config_path: tsconfig.json file, or a directory containing one
        """
        path = Path(config_path)
        if path.is_dir():
            path = path / 'tsconfig.json'
        self.config_path = path.resolve()

    def parse(self) -> TsConfig:
        """Read and resolve the configuration.

        Returns:
            TsConfig for the project

        Raises:
            ConfigurationError: If the config (or a base it extends) is missing
                or unparsable
        """
        data = self._load_chain(self.config_path, seen=set())
        return TsConfig(
            config_path=self.config_path,
            project_dir=self.config_path.parent,
            compiler_options=data.get('compilerOptions', {}),
            files=data.get('files'),
            include=data.get('include'),
            exclude=data.get('exclude'),
        )

    def _read(self, path: Path) -> Dict:
        if not path.is_file():
            raise ConfigurationError("TypeScript configuration not found", path)
        try:
            content = path.read_text(encoding='utf-8-sig')
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigurationError(f"Cannot read TypeScript configuration: {e}", path) from e
        try:
            data = json.loads(strip_json_comments(content))
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid TypeScript configuration: {e}", path) from e
        if not isinstance(data, dict):
            raise ConfigurationError("TypeScript configuration must be a JSON object", path)
        return data

    def _load_chain(self, path: Path, seen: set) -> Dict:
        """Load a config and merge every base it extends.

        Paths inside a base config are rebased so they stay relative to the
        directory of the config that is being parsed.
        """
        if path in seen:
            raise ConfigurationError("Circular 'extends' in TypeScript configuration", path)
        seen.add(path)

        data = self._read(path)
        extends = data.get('extends')
        if extends is None:
            return data
        if isinstance(extends, str):
            extends = [extends]
        if not isinstance(extends, list):
            raise ConfigurationError("'extends' must be a string or a list", path)

        merged: Dict = {}
        for base_ref in extends:
            base_path = self._resolve_extends(base_ref, path.parent)
            base = self._load_chain(base_path, seen)
            base = self._rebase(base, base_path.parent, path.parent)
            merged = self._merge(merged, base)

        return self._merge(merged, data)

    def _resolve_extends(self, reference: str, base_dir: Path) -> Path:
        if not isinstance(reference, str) or not reference:
            raise ConfigurationError("Invalid 'extends' entry", base_dir)

        candidates = []
        if reference.startswith(('.', '/')) or re.match(r'^[A-Za-z]:[\\/]', reference):
            target = (base_dir / reference)
            candidates += [target, target.with_name(target.name + '.json')]
        else:
            # Package reference, looked up in node_modules walking upwards
            for directory in [base_dir, *base_dir.parents]:
                target = directory / 'node_modules' / reference
                candidates += [
                    target,
                    target.with_name(target.name + '.json'),
                    target / 'tsconfig.json',
                ]

        for candidate in candidates:
            if candidate.is_file():
                return candidate.resolve()
        raise ConfigurationError(f"Cannot resolve extended configuration '{reference}'", base_dir)

    def _rebase(self, data: Dict, base_dir: Path, target_dir: Path) -> Dict:
        if base_dir == target_dir:
            return data

        def rebase(entry: str) -> str:
            return Path(os.path.relpath(base_dir / entry, target_dir)).as_posix()

        rebased = dict(data)
        for key in ('files', 'include', 'exclude'):
            if isinstance(data.get(key), list):
                rebased[key] = [rebase(entry) for entry in data[key] if isinstance(entry, str)]
        options = dict(data.get('compilerOptions', {}))
        for key in ('rootDir', 'outDir'):
            if isinstance(options.get(key), str):
                options[key] = rebase(options[key])
        rebased['compilerOptions'] = options
        return rebased

    def _merge(self, base: Dict, child: Dict) -> Dict:
        merged = dict(base)
        for key, value in child.items():
            if key == 'extends':
                continue
            if key == 'compilerOptions' and isinstance(value, dict):
                merged[key] = {**base.get(key, {}), **value}
            else:
                merged[key] = value
        return merged
