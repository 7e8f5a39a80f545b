"""DI graph builder: bindings from registration modules, resolutions from every file.

Bindings and resolutions are recognized by bounded textual patterns, not by
semantic resolution of the container API. A call or decorator that does not
match is ignored.
"""
import re
from typing import Iterator, List, Optional

from ..config import AnalyzerSettings
from ..utils.logger import get_logger
from .models import DiBinding, DiGraph, DiResolution, ResolutionKind
from .path_rules import PathRules
from .project import ProjectModel, SourceFile

logger = get_logger(__name__)


class DiGraphBuilder:
    """Build the DI graph of a loaded project."""

    def __init__(self, settings: Optional[AnalyzerSettings] = None):
        """Initialize the builder.

        Args:
            settings: Token object, container name and lookup method names
        """
        self.settings = settings or AnalyzerSettings()
        self.path_rules = PathRules(self.settings)

        token = re.escape(self.settings.token_object)
        container = re.escape(self.settings.container_name)
        lookups = '|'.join(re.escape(method) for method in self.settings.lookup_methods)

        # `.to(Widget)` closing the call chain text
        self._to_pattern = re.compile(r'\.to\(\s*([A-Za-z_$][\w$]*)\s*\)\s*$')
        self._token_pattern = re.compile(rf'\b{token}\.([A-Za-z_$][\w$]*)')
        self._resolution_patterns = [
            (ResolutionKind.INJECT,
             re.compile(rf'@inject\(\s*{token}\.([A-Za-z_$][\w$]*)')),
            (ResolutionKind.MULTI_INJECT,
             re.compile(rf'@multiInject\(\s*{token}\.([A-Za-z_$][\w$]*)')),
            (ResolutionKind.CONTAINER_LOOKUP,
             re.compile(rf'\b{container}\s*\.\s*(?:{lookups})\s*(?:<.*?>)?\s*\([^)]*?\b{token}\.([A-Za-z_$][\w$]*)')),
        ]

    def build(self, model: ProjectModel) -> DiGraph:
        """Scan the project for bindings and resolutions.

        Args:
            model: Loaded project model

        Returns:
            DiGraph with bindings and resolutions in file traversal order
        """
        bindings: List[DiBinding] = []
        resolutions: List[DiResolution] = []

        for source_file in model.list_source_files():
            if self.path_rules.is_registration_file(source_file.path):
                bindings.extend(self.extract_bindings(source_file))
            resolutions.extend(
                self.extract_resolutions(source_file.path, model.get_full_text(source_file)))

        logger.info("DI graph: %d bindings, %d resolutions", len(bindings), len(resolutions))
        return DiGraph(bindings=tuple(bindings), resolutions=tuple(resolutions))

    def extract_bindings(self, source_file: SourceFile) -> List[DiBinding]:
        """Extract ``bind(TOKENS.X).to(Class)`` bindings from a registration module.

        Only the first binding of a token within one file is kept.
        """
        bindings = []
        seen_tokens = set()
        for node in self._call_expressions(source_file.tree.root_node):
            text = source_file.source[node.start_byte:node.end_byte].decode('utf-8', errors='replace')
            to_match = self._to_pattern.search(text)
            if not to_match:
                continue
            token_match = self._token_pattern.search(text)
            if not token_match:
                continue
            token_name = token_match.group(1)
            if token_name in seen_tokens:
                continue
            seen_tokens.add(token_name)
            bindings.append(DiBinding(
                token_name=token_name,
                class_name=to_match.group(1),
                file_path=source_file.path,
                line=node.start_point[0] + 1,
            ))
        return bindings

    def extract_resolutions(self, file_path: str, text: str) -> List[DiResolution]:
        """Extract inject, multi-inject and container lookup sites from file text.

        Returns:
            Resolutions ordered by position in the file
        """
        matches = []
        for kind, pattern in self._resolution_patterns:
            for match in pattern.finditer(text):
                matches.append((match.start(), kind, match.group(1)))
        matches.sort(key=lambda entry: entry[0])

        return [
            DiResolution(
                token_name=token_name,
                file_path=file_path,
                line=text.count('\n', 0, offset) + 1,
                kind=kind,
            )
            for offset, kind, token_name in matches
        ]

    def _call_expressions(self, root) -> Iterator:
        """Yield call_expression nodes in document order."""
        stack = [root]
        while stack:
            node = stack.pop()
            if node.type == 'call_expression':
                yield node
            stack.extend(reversed(node.children))
