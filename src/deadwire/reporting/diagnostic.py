"""Uniform diagnostic records for dead code findings."""
from dataclasses import asdict, dataclass
from typing import Dict, Iterable, List, Optional, assert_never

from ..analyzer.models import DeadCodeCategory, DeadCodeItem

DIAGNOSTIC_SOURCE = 'dead-code'
DIAGNOSTIC_SEVERITY = 'warning'


@dataclass(frozen=True)
class Diagnostic:
    """A finding in the shape downstream reporting consumes."""
    id: str
    source: str
    file: str
    line: int
    column: int
    severity: str
    code: str
    message: str
    detail: Optional[str] = None

    def to_dict(self) -> Dict:
        return asdict(self)


def format_message(item: DeadCodeItem) -> str:
    """Human-readable message for a finding, one template per category."""
    category = item.category
    if category is DeadCodeCategory.UNRESOLVED_DI_TOKEN:
        return f"Unresolved DI token: {item.symbol_name}"
    elif category is DeadCodeCategory.PHANTOM_TOKEN:
        return f"Phantom token: {item.symbol_name} is referenced but never bound"
    elif category is DeadCodeCategory.DEAD_CLASS:
        return f"Dead class: {item.symbol_name} has no call-sites"
    elif category is DeadCodeCategory.DEAD_METHOD:
        return f"Dead method: {item.symbol_name}() has no call-sites"
    elif category is DeadCodeCategory.DEAD_INTERFACE_METHOD:
        return f"Dead interface method: {item.symbol_name}() is never called"
    elif category is DeadCodeCategory.DEAD_FUNCTION:
        return f"Dead function: {item.symbol_name}() has no call-sites"
    else:
        assert_never(category)


def to_diagnostic(item: DeadCodeItem) -> Diagnostic:
    """Map one finding to a Diagnostic."""
    code = item.category.value
    return Diagnostic(
        id=f"{DIAGNOSTIC_SOURCE}:{item.file_path}:{item.line}:{item.column}:{code}",
        source=DIAGNOSTIC_SOURCE,
        file=item.file_path,
        line=item.line,
        column=item.column,
        severity=DIAGNOSTIC_SEVERITY,
        code=code,
        message=format_message(item),
        detail=item.detail,
    )


def to_diagnostics(items: Iterable[DeadCodeItem]) -> List[Diagnostic]:
    return [to_diagnostic(item) for item in items]
