"""Reporter that runs the analyzer and hands out diagnostics."""
from pathlib import Path
from typing import List, Optional

from ..analyzer.dead_code_analyzer import DeadCodeAnalyzer
from ..utils.logger import get_logger
from .diagnostic import Diagnostic, to_diagnostics

logger = get_logger(__name__)


class DeadCodeReporter:
    """Collect dead code diagnostics for a project."""

    def __init__(self, analyzer: Optional[DeadCodeAnalyzer] = None):
        self.analyzer = analyzer or DeadCodeAnalyzer()

    def collect_diagnostics(self, config_path: str | Path) -> List[Diagnostic]:
        """Analyze a project and map every finding to a Diagnostic.

        Raises:
            ConfigurationError: If the project cannot be loaded
        """
        diagnostics = to_diagnostics(self.analyzer.analyze(config_path))
        logger.debug("Collected %d dead code diagnostics", len(diagnostics))
        return diagnostics
