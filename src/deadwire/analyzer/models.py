"""Value records shared by the project model, the DI graph and the analyzer."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class SymbolKind(str, Enum):
    """Classification tag of a declaration."""
    CLASS = 'class'
    METHOD = 'method'
    INTERFACE = 'interface'
    INTERFACE_METHOD = 'interface-method'
    FUNCTION = 'function'


class ResolutionKind(str, Enum):
    """How a DI token is consumed."""
    INJECT = 'inject'
    MULTI_INJECT = 'multi-inject'
    CONTAINER_LOOKUP = 'container-lookup'


class DeadCodeCategory(str, Enum):
    """Categories of dead code findings."""
    # Token is bound but never resolved via @inject/@multiInject or a container lookup
    UNRESOLVED_DI_TOKEN = 'unresolved-di-token'
    # Token is resolved somewhere but never bound
    PHANTOM_TOKEN = 'phantom-token'
    DEAD_CLASS = 'dead-class'
    DEAD_METHOD = 'dead-method'
    # Interface method never called on any value of that interface type
    DEAD_INTERFACE_METHOD = 'dead-interface-method'
    DEAD_FUNCTION = 'dead-function'


@dataclass(frozen=True)
class Symbol:
    """A class, method, interface, interface method or function declaration.

    ``line``/``column`` locate the declaration (1-based); ``name_offset`` is the
    byte offset of the declaration's name node, which identifies the symbol's
    own declaration site among the name occurrences of the project.
    """
    name: str
    qualified_name: str
    kind: SymbolKind
    file_path: str
    line: int
    column: int
    is_exported: bool
    name_offset: int
    container: Optional[str] = None
    malformed: bool = False


@dataclass(frozen=True)
class Reference:
    """A syntactic occurrence of a name.

    ``node_kind`` and ``parent_kind`` are tree-sitter node types.
    ``is_declaration`` is True when the occurrence is the ``name`` of a
    declaration node (class, method, signature, variable, ...).

    For the property of a member access (``obj.name``), ``receiver_type`` is
    the type the file declares for ``obj`` (None when it cannot be told) and
    ``namespace_access`` is True when ``obj`` is a namespace import.
    """
    name: str
    file_path: str
    line: int
    column: int
    offset: int
    node_kind: str
    parent_kind: str
    is_declaration: bool = False
    receiver_type: Optional[str] = None
    namespace_access: bool = False


@dataclass(frozen=True)
class MethodInfo:
    """A member declared in a class body."""
    symbol: Symbol
    accessibility: str = 'public'  # public, protected, private
    is_abstract: bool = False
    is_static: bool = False
    is_accessor: bool = False
    is_constructor: bool = False

    @property
    def name(self) -> str:
        return self.symbol.name

    @property
    def is_private(self) -> bool:
        return self.accessibility == 'private' or self.symbol.name.startswith('#')


@dataclass(frozen=True)
class ClassInfo:
    """A top-level class declaration with the facts the heuristics need."""
    symbol: Symbol
    base_class: Optional[str] = None
    implements: tuple[str, ...] = ()
    members: tuple[MethodInfo, ...] = ()
    is_abstract: bool = False

    @property
    def name(self) -> str:
        return self.symbol.name

    @property
    def methods(self) -> tuple[MethodInfo, ...]:
        """Concrete methods (no constructors, accessors or abstract signatures)."""
        return tuple(
            member for member in self.members
            if not (member.is_constructor or member.is_accessor or member.is_abstract)
        )

    def get_member(self, name: str) -> Optional[MethodInfo]:
        for member in self.members:
            if member.name == name:
                return member
        return None


@dataclass(frozen=True)
class InterfaceInfo:
    """A top-level interface declaration."""
    symbol: Symbol
    extends: tuple[str, ...] = ()
    methods: tuple[Symbol, ...] = ()
    # Method and property signature names
    member_names: frozenset[str] = frozenset()

    @property
    def name(self) -> str:
        return self.symbol.name


@dataclass(frozen=True)
class DiBinding:
    """A ``container.bind(TOKENS.X).to(Class)`` declaration."""
    token_name: str
    class_name: str
    file_path: str
    line: int


@dataclass(frozen=True)
class DiResolution:
    """A site where a DI token is consumed."""
    token_name: str
    file_path: str
    line: int
    kind: ResolutionKind


@dataclass(frozen=True)
class DiGraph:
    """All bindings and resolutions of one project snapshot."""
    bindings: tuple[DiBinding, ...] = ()
    resolutions: tuple[DiResolution, ...] = ()

    @property
    def bound_tokens(self) -> set[str]:
        return {binding.token_name for binding in self.bindings}

    @property
    def resolved_tokens(self) -> set[str]:
        return {resolution.token_name for resolution in self.resolutions}


@dataclass(frozen=True)
class DeadCodeItem:
    """A single dead code finding."""
    category: DeadCodeCategory
    symbol_name: str
    file_path: str
    line: int
    column: int
    detail: Optional[str] = None
    # Token names that tie a dead class to unresolved bindings
    related_tokens: tuple[str, ...] = ()
