"""Dead code analysis over the DI graph and classified symbol references.

Runs five passes in order: unresolved DI tokens, phantom tokens, dead
classes, dead methods and dead interface methods, plus an opt-in pass for
dead top-level functions. Findings come out in pass order, each pass in
file-then-declaration order, so repeated runs produce identical output.
"""
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

from ..config import AnalyzerSettings
from ..errors import SymbolAnalysisError
from ..utils.logger import get_logger
from .graph_builder import DiGraphBuilder
from .models import ClassInfo, DeadCodeCategory, DeadCodeItem, DiGraph, Reference, Symbol
from .path_rules import PathRules
from .project import ProjectLoader, ProjectModel, get_project_loader
from .reference_classifier import ReferenceClassifier

logger = get_logger(__name__)

ZERO_CALL_SITES = "(zero external call-sites)"


class DeadCodeAnalyzer:
    """Detect dead classes, methods, interface methods and inconsistent DI wiring."""

    def __init__(self, loader: Optional[ProjectLoader] = None,
                 graph_builder: Optional[DiGraphBuilder] = None,
                 classifier: Optional[ReferenceClassifier] = None,
                 settings: Optional[AnalyzerSettings] = None):
        """Initialize the analyzer.

        Args:
            loader: Project loader (defaults to the shared, caching loader)
            graph_builder: DI graph builder
            classifier: Reference classifier
            settings: Allowlists, exemptions and naming conventions
        """
        self.settings = settings or AnalyzerSettings()
        self.loader = loader or get_project_loader()
        self.graph_builder = graph_builder or DiGraphBuilder(self.settings)
        self.classifier = classifier or ReferenceClassifier(PathRules(self.settings))

    def analyze(self, config_path: str | Path) -> List[DeadCodeItem]:
        """Run every pass against a project.

        Args:
            config_path: tsconfig.json path, or the directory holding it

        Returns:
            Ordered list of findings

        Raises:
            ConfigurationError: If the project cannot be loaded
        """
        model = self.loader.load(config_path)
        path_rules = PathRules(self.settings, model.resolve_source_root(self.settings.source_root))
        logger.info("Analyzing %s (source root: %s)", model.config_path, path_rules.source_root or '.')

        graph = self.graph_builder.build(model)

        items: List[DeadCodeItem] = []
        token_items, orphaned_classes = self.find_unresolved_tokens(graph)
        items.extend(token_items)
        items.extend(self.find_phantom_tokens(graph))

        class_items, dead_classes = self.find_dead_classes(model, path_rules, orphaned_classes)
        items.extend(class_items)
        items.extend(self.find_dead_methods(model, path_rules, dead_classes))
        items.extend(self.find_dead_interface_methods(model, path_rules))
        if self.settings.include_functions:
            items.extend(self.find_dead_functions(model, path_rules))

        # Allowlisted files never produce findings, whatever the pass
        items = [item for item in items if not path_rules.is_allowlisted(item.file_path)]

        logger.info("Dead code analysis finished: %d findings", len(items))
        return items

    def find_unresolved_tokens(self, graph: DiGraph) -> Tuple[List[DeadCodeItem], Dict[str, Tuple[str, ...]]]:
        """Pass 1: bindings whose token is never resolved.

        Returns:
            (findings, orphaned classes) where orphaned classes maps a class
            name to its unresolved tokens, for classes bound only to tokens
            nobody resolves
        """
        resolved = graph.resolved_tokens
        items = []
        unresolved_by_class: Dict[str, List[str]] = {}
        live_classes: Set[str] = set()

        for binding in graph.bindings:
            if binding.token_name in resolved or binding.token_name in self.settings.exempt_tokens:
                live_classes.add(binding.class_name)
                continue
            tokens = unresolved_by_class.setdefault(binding.class_name, [])
            if binding.token_name not in tokens:
                tokens.append(binding.token_name)
            items.append(DeadCodeItem(
                category=DeadCodeCategory.UNRESOLVED_DI_TOKEN,
                symbol_name=self._token_label(binding.token_name),
                file_path=binding.file_path,
                line=binding.line,
                column=1,
                detail=f"bound to {binding.class_name} but never injected or looked up",
                related_tokens=(binding.token_name,),
            ))

        orphaned = {
            class_name: tuple(tokens)
            for class_name, tokens in unresolved_by_class.items()
            if class_name not in live_classes
        }
        return items, orphaned

    def find_phantom_tokens(self, graph: DiGraph) -> List[DeadCodeItem]:
        """Pass 2: tokens resolved somewhere but never bound (first site wins)."""
        bound = graph.bound_tokens
        items = []
        reported = set()
        for resolution in graph.resolutions:
            if resolution.token_name in bound or resolution.token_name in reported:
                continue
            reported.add(resolution.token_name)
            items.append(DeadCodeItem(
                category=DeadCodeCategory.PHANTOM_TOKEN,
                symbol_name=self._token_label(resolution.token_name),
                file_path=resolution.file_path,
                line=resolution.line,
                column=1,
                detail=f"resolved via {resolution.kind.value} but no binding registers it",
                related_tokens=(resolution.token_name,),
            ))
        return items

    def find_dead_classes(self, model: ProjectModel, path_rules: PathRules,
                          orphaned_classes: Dict[str, Tuple[str, ...]]
                          ) -> Tuple[List[DeadCodeItem], Set[Tuple[str, str]]]:
        """Pass 3: exported classes with zero call-sites.

        References from registration modules do not count for a class that is
        bound only to unresolved tokens: the binding is its sole use and
        nobody ever asks the container for it.

        Returns:
            (findings, dead classes keyed by (file, class name))
        """
        items = []
        dead = set()
        for class_info in self._candidate_classes(model, path_rules):
            if not class_info.symbol.is_exported:
                continue
            symbol = class_info.symbol
            references = self._references(model, symbol)
            if references is None:
                continue

            tokens = orphaned_classes.get(class_info.name, ())
            if tokens:
                references = [
                    reference for reference in references
                    if not path_rules.is_registration_file(reference.file_path)
                ]

            if self.classifier.count_call_sites(references, symbol.file_path) > 0:
                continue

            if tokens:
                token_list = ', '.join(self._token_label(token) for token in tokens)
                detail = f"unused and DI-orphaned: bound only to unresolved {token_list}"
            else:
                detail = ZERO_CALL_SITES
            dead.add((symbol.file_path, class_info.name))
            items.append(DeadCodeItem(
                category=DeadCodeCategory.DEAD_CLASS,
                symbol_name=class_info.name,
                file_path=symbol.file_path,
                line=symbol.line,
                column=1,
                detail=detail,
                related_tokens=tokens,
            ))
        return items, dead

    def find_dead_methods(self, model: ProjectModel, path_rules: PathRules,
                          dead_classes: Set[Tuple[str, str]]) -> List[DeadCodeItem]:
        """Pass 4: non-private methods of live classes with zero call-sites.

        Unexported classes are included: they are never reported dead
        themselves, but their unused methods are.
        """
        items = []
        for class_info in self._candidate_classes(model, path_rules):
            if (class_info.symbol.file_path, class_info.name) in dead_classes:
                continue
            for method in class_info.methods:
                if method.is_private:
                    continue
                if self.classifier.is_abstract_override(model, class_info, method):
                    continue
                if self.classifier.is_interface_implementation(model, class_info, method):
                    continue

                symbol = method.symbol
                references = self._references(model, symbol)
                if references is None:
                    continue
                if self.classifier.count_call_sites(references, symbol.file_path) == 0:
                    items.append(DeadCodeItem(
                        category=DeadCodeCategory.DEAD_METHOD,
                        symbol_name=symbol.qualified_name,
                        file_path=symbol.file_path,
                        line=symbol.line,
                        column=symbol.column,
                        detail=ZERO_CALL_SITES,
                    ))
        return items

    def find_dead_interface_methods(self, model: ProjectModel, path_rules: PathRules) -> List[DeadCodeItem]:
        """Pass 5: methods of exported interfaces that are never called anywhere."""
        items = []
        for interface in model.interfaces:
            if not interface.symbol.is_exported or not path_rules.is_analyzable(interface.symbol.file_path):
                continue
            for symbol in interface.methods:
                references = self._references(model, symbol)
                if references is None:
                    continue
                if self.classifier.count_call_sites(references, symbol.file_path) == 0:
                    items.append(DeadCodeItem(
                        category=DeadCodeCategory.DEAD_INTERFACE_METHOD,
                        symbol_name=symbol.qualified_name,
                        file_path=symbol.file_path,
                        line=symbol.line,
                        column=symbol.column,
                        detail="(never called on any value of this interface type)",
                    ))
        return items

    def find_dead_functions(self, model: ProjectModel, path_rules: PathRules) -> List[DeadCodeItem]:
        """Exported top-level functions with zero call-sites (opt-in)."""
        items = []
        for symbol in model.functions:
            if not symbol.is_exported or not path_rules.is_analyzable(symbol.file_path):
                continue
            references = self._references(model, symbol)
            if references is None:
                continue
            if self.classifier.count_call_sites(references, symbol.file_path) == 0:
                items.append(DeadCodeItem(
                    category=DeadCodeCategory.DEAD_FUNCTION,
                    symbol_name=symbol.name,
                    file_path=symbol.file_path,
                    line=symbol.line,
                    column=1,
                    detail=ZERO_CALL_SITES,
                ))
        return items

    def _candidate_classes(self, model: ProjectModel, path_rules: PathRules) -> List[ClassInfo]:
        """Non-allowlisted classes declared in analyzable files."""
        return [
            class_info for class_info in model.classes
            if class_info.name not in self.settings.allowlisted_classes
            and path_rules.is_analyzable(class_info.symbol.file_path)
        ]

    def _references(self, model: ProjectModel, symbol: Symbol) -> Optional[List[Reference]]:
        try:
            return model.find_references(symbol)
        except SymbolAnalysisError as e:
            logger.debug("Skipping %s: %s", symbol.qualified_name, e.reason)
            return None

    def _token_label(self, token_name: str) -> str:
        return f"{self.settings.token_object}.{token_name}"
