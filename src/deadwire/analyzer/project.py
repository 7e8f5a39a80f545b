"""In-memory project model and the path-keyed loader that caches it."""
import asyncio
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List

from tree_sitter import Tree

from ..errors import SymbolAnalysisError
from ..utils.logger import get_logger
from .config_parser import TsConfig, TsConfigParser
from .extractor import EntityExtractor, FileDeclarations
from .hierarchy import TypeHierarchy
from .models import ClassInfo, InterfaceInfo, Reference, Symbol, SymbolKind
from .parser import LanguageParser

logger = get_logger(__name__)

# Occurrence node types that can refer to a class, interface or function.
# `{ Widget }` reads the binding, `{ Widget: 1 }` and `cfg.Widget` do not.
VALUE_REFERENCE_KINDS = {
    'identifier',
    'type_identifier',
    'shorthand_property_identifier',
}
# Occurrence node types that can refer to a method or interface method
MEMBER_REFERENCE_KINDS = {
    'property_identifier',
    'private_property_identifier',
    'shorthand_property_identifier_pattern',
}
MEMBER_SYMBOL_KINDS = {SymbolKind.METHOD, SymbolKind.INTERFACE_METHOD}


@dataclass(frozen=True)
class SourceFile:
    """A parsed source file of the project."""
    path: str  # POSIX, relative to the project directory
    absolute_path: Path
    language: str
    text: str
    source: bytes
    tree: Tree

    @property
    def has_errors(self) -> bool:
        return self.tree.root_node.has_error


class ProjectModel:
    """Immutable view over a parsed TypeScript project.

    Holds the sorted source files, the top-level declarations of each file,
    a name index of every identifier occurrence and the type hierarchy.
    """

    def __init__(self, config: TsConfig, files: List[SourceFile],
                 declarations: Dict[str, FileDeclarations]):
        self.config = config
        self._files = tuple(files)
        self._files_by_path = {source_file.path: source_file for source_file in files}

        self.classes: tuple[ClassInfo, ...] = tuple(
            info for source_file in files for info in declarations[source_file.path].classes)
        self.interfaces: tuple[InterfaceInfo, ...] = tuple(
            info for source_file in files for info in declarations[source_file.path].interfaces)
        self.functions: tuple[Symbol, ...] = tuple(
            symbol for source_file in files for symbol in declarations[source_file.path].functions)

        self._classes_by_name: Dict[str, List[ClassInfo]] = {}
        for info in self.classes:
            self._classes_by_name.setdefault(info.name, []).append(info)
        self._interfaces_by_name: Dict[str, List[InterfaceInfo]] = {}
        for info in self.interfaces:
            self._interfaces_by_name.setdefault(info.name, []).append(info)

        self._occurrences: Dict[str, List[Reference]] = {}
        for source_file in files:
            for occurrence in declarations[source_file.path].occurrences:
                self._occurrences.setdefault(occurrence.name, []).append(occurrence)

        self.hierarchy = TypeHierarchy.build(self.classes, self.interfaces)

    @property
    def config_path(self) -> Path:
        return self.config.config_path

    @property
    def project_dir(self) -> Path:
        return self.config.project_dir

    def list_source_files(self) -> List[SourceFile]:
        """Source files in stable (sorted relative path) order."""
        return list(self._files)

    def get_full_text(self, source_file: SourceFile | str) -> str:
        """Full text of a source file (by descriptor or relative path)."""
        if isinstance(source_file, str):
            source_file = self._files_by_path[source_file]
        return source_file.text

    def find_classes(self, name: str) -> List[ClassInfo]:
        return list(self._classes_by_name.get(name, ()))

    def find_interfaces(self, name: str) -> List[InterfaceInfo]:
        return list(self._interfaces_by_name.get(name, ()))

    def resolve_source_root(self, default: str = 'src') -> str:
        """Relative source root: ``compilerOptions.rootDir``, else ``default`` if it
        exists, else the whole project ('')."""
        root_dir = self.config.root_dir
        if root_dir:
            candidate = (self.project_dir / root_dir).resolve()
            relative = self.config.relative_path(candidate)
            return '' if relative == '.' else relative
        if default and (self.project_dir / default).is_dir():
            return Path(default).as_posix().strip('/')
        return ''

    def find_references(self, symbol: Symbol) -> List[Reference]:
        """Every syntactic occurrence of a symbol project-wide.

        The symbol's own declaration occurrence is always included.
        Declarations of other symbols sharing the name are not references.
        Member accesses count for a method only when the receiver's declared
        type is unknown or belongs to the hierarchy of the method's owner, so
        ``console.warn()`` is not a use of ``Logger.warn``. Property accesses
        count for classes, interfaces and functions only through a namespace
        import (``ns.Widget``).

        Args:
            symbol: Declaration to look up

        Returns:
            References in file order

        Raises:
            SymbolAnalysisError: If the declaration contains syntax errors
        """
        if symbol.malformed:
            raise SymbolAnalysisError(symbol.qualified_name, "declaration contains syntax errors")

        is_member = symbol.kind in MEMBER_SYMBOL_KINDS
        owner_types = self.hierarchy.related_types(symbol.container) if is_member and symbol.container else None

        references = []
        for occurrence in self._occurrences.get(symbol.name, ()):
            if occurrence.file_path == symbol.file_path and occurrence.offset == symbol.name_offset:
                references.append(occurrence)
            elif occurrence.is_declaration:
                continue
            elif is_member:
                if occurrence.node_kind not in MEMBER_REFERENCE_KINDS:
                    continue
                if (owner_types is not None and occurrence.receiver_type is not None
                        and occurrence.receiver_type not in owner_types):
                    continue
                references.append(occurrence)
            elif occurrence.node_kind in VALUE_REFERENCE_KINDS or occurrence.namespace_access:
                references.append(occurrence)
        return references


class ProjectLoader:
    """Loads project models, caching one model per resolved config path.

    At most one load per config path is in flight: concurrent callers for
    the same path wait on a per-path lock and then share the cached model.
    Different paths load independently.
    """

    def __init__(self):
        self._models: Dict[Path, ProjectModel] = {}
        self._locks: Dict[Path, threading.Lock] = {}
        self._guard = threading.Lock()

    @staticmethod
    def cache_key(config_path: str | Path) -> Path:
        return TsConfigParser(config_path).config_path

    def _lock_for(self, key: Path) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def load(self, config_path: str | Path) -> ProjectModel:
        """Return the model for a config path, loading it on first use.

        Args:
            config_path: tsconfig.json path, or the directory holding it

        Returns:
            Cached or freshly loaded ProjectModel

        Raises:
            ConfigurationError: If the config cannot be located or parsed
        """
        key = self.cache_key(config_path)
        model = self._models.get(key)
        if model is not None:
            return model

        with self._lock_for(key):
            model = self._models.get(key)
            if model is None:
                model = self._build(key)
                self._models[key] = model
            else:
                logger.debug("Project model for %s loaded by another caller", key)
        return model

    async def load_async(self, config_path: str | Path) -> ProjectModel:
        """Load in a worker thread; same caching guarantees as load()."""
        return await asyncio.to_thread(self.load, config_path)

    def is_cached(self, config_path: str | Path) -> bool:
        return self.cache_key(config_path) in self._models

    def invalidate(self, config_path: str | Path) -> bool:
        """Drop the cached model for a config path.

        Returns:
            True if a model was cached
        """
        key = self.cache_key(config_path)
        with self._lock_for(key):
            return self._models.pop(key, None) is not None

    def clear(self):
        """Drop every cached model together with its per-path lock."""
        with self._guard:
            self._models.clear()
            self._locks.clear()

    def _build(self, config_path: Path) -> ProjectModel:
        config = TsConfigParser(config_path).parse()
        logger.info("Loading TypeScript project %s", config.config_path)

        parsers: Dict[str, LanguageParser] = {}
        files = []
        declarations = {}
        for path in config.source_files():
            relative = config.relative_path(path)
            try:
                source = path.read_bytes()
                text = source.decode('utf-8')
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Skipping unreadable source file %s: %s", relative, e)
                continue

            language = LanguageParser.SUPPORTED_LANGUAGES[path.suffix.lower()]
            parser = parsers.get(language)
            if parser is None:
                parser = parsers[language] = LanguageParser(language)
            tree = parser.parse_source(source)
            if tree.root_node.has_error:
                logger.debug("Syntax errors in %s", relative)

            files.append(SourceFile(
                path=relative,
                absolute_path=path,
                language=language,
                text=text,
                source=source,
                tree=tree,
            ))
            declarations[relative] = EntityExtractor(relative).extract(tree, source)

        logger.info("Parsed %d source files", len(files))
        return ProjectModel(config, files, declarations)


# Shared loader so repeated analyses of one config reuse the parsed model
_loader = None


def get_project_loader() -> ProjectLoader:
    """Get or create the process-wide ProjectLoader."""
    global _loader
    if _loader is None:
        _loader = ProjectLoader()
    return _loader
