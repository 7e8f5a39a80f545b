"""Declaration and name-occurrence extraction from TypeScript syntax trees."""
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Set, Tuple
from tree_sitter import Tree, Node

from .models import ClassInfo, InterfaceInfo, MethodInfo, Reference, Symbol, SymbolKind


# Parents whose `name` child is a declaration rather than a use
DECLARATION_KINDS = {
    'class_declaration',
    'abstract_class_declaration',
    'class',
    'method_definition',
    'abstract_method_signature',
    'function_declaration',
    'generator_function_declaration',
    'function_signature',
    'interface_declaration',
    'method_signature',
    'property_signature',
    'public_field_definition',
    'variable_declarator',
    'type_alias_declaration',
    'enum_declaration',
}

# Identifier-like node types indexed as name occurrences
OCCURRENCE_KINDS = {
    'identifier',
    'type_identifier',
    'property_identifier',
    'private_property_identifier',
    'shorthand_property_identifier',
    'shorthand_property_identifier_pattern',
}

CLASS_KINDS = {'class_declaration', 'abstract_class_declaration'}
CLASS_NODE_KINDS = CLASS_KINDS | {'class'}
FUNCTION_KINDS = {'function_declaration', 'generator_function_declaration'}
MEMBER_KINDS = {'method_definition', 'abstract_method_signature'}
MEMBER_NAME_KINDS = {'property_identifier', 'private_property_identifier'}
PARAMETER_KINDS = {'required_parameter', 'optional_parameter'}
IMPORT_BINDING_KINDS = {'import_specifier', 'import_clause', 'namespace_import'}
# Modifiers that turn a constructor parameter into a class field
PARAMETER_PROPERTY_MODIFIERS = {'accessibility_modifier', 'override_modifier', 'readonly'}

# Objects supplied by the runtime; members reached through them are never project code
GLOBAL_OBJECTS = {
    'console', 'process', 'Math', 'JSON', 'Object', 'Array', 'Promise', 'Reflect',
    'Number', 'String', 'Boolean', 'Date', 'Symbol', 'Intl', 'Buffer',
    'window', 'document', 'globalThis', 'navigator', 'localStorage', 'sessionStorage',
}


@dataclass
class FileDeclarations:
    """Everything extracted from one source file."""
    classes: List[ClassInfo] = field(default_factory=list)
    interfaces: List[InterfaceInfo] = field(default_factory=list)
    functions: List[Symbol] = field(default_factory=list)
    occurrences: List[Reference] = field(default_factory=list)


@dataclass
class TypeScope:
    """Declared types of the names bound in one file.

    Names are tracked per file rather than per block; a name bound more than
    once with different types (or once without a type) maps to None.
    """
    bindings: Dict[str, Optional[str]] = field(default_factory=dict)
    # (class name, field name) -> declared type
    field_types: Dict[Tuple[str, str], str] = field(default_factory=dict)
    namespaces: Set[str] = field(default_factory=set)

    def bind(self, name: str, type_name: Optional[str]):
        if name in self.bindings and self.bindings[name] != type_name:
            self.bindings[name] = None
        else:
            self.bindings[name] = type_name


class EntityExtractor:
    """Extract classes, interfaces, functions and name occurrences from syntax trees."""

    def __init__(self, file_path: str):
        """Initialize extractor for one file.

        Args:
            file_path: POSIX path of the file relative to the project directory
        """
        self.file_path = file_path

    def extract(self, tree: Tree, source_code: bytes) -> FileDeclarations:
        """Extract top-level declarations and every name occurrence.

        Args:
            tree: Parsed tree-sitter Tree
            source_code: Original source code bytes

        Returns:
            FileDeclarations for the file
        """
        declarations = FileDeclarations()
        root = tree.root_node
        local_exports = self._local_export_names(root, source_code)

        for node, outer, exported in self._top_level_declarations(root):
            name_node = node.child_by_field_name('name')
            if name_node is None:
                continue
            name = self._text(name_node, source_code)
            is_exported = exported or name in local_exports

            if node.type in CLASS_KINDS:
                declarations.classes.append(
                    self._build_class(node, outer, name_node, source_code, is_exported))
            elif node.type == 'interface_declaration':
                declarations.interfaces.append(
                    self._build_interface(node, outer, name_node, source_code, is_exported))
            elif node.type in FUNCTION_KINDS:
                declarations.functions.append(
                    self._symbol(name, name, SymbolKind.FUNCTION, outer, name_node, is_exported))

        declarations.occurrences = self.extract_occurrences(tree, source_code)
        return declarations

    def extract_occurrences(self, tree: Tree, source_code: bytes) -> List[Reference]:
        """Record every identifier-like node with its syntactic parent.

        Args:
            tree: Parsed tree-sitter Tree
            source_code: Original source code bytes

        Returns:
            List of Reference objects in document order
        """
        scope = self.collect_scope(tree, source_code)
        occurrences = []
        for node, parent in self._traverse(tree.root_node):
            if node.type not in OCCURRENCE_KINDS:
                continue
            parent_kind = parent.type if parent is not None else ''
            is_declaration = (
                parent_kind in DECLARATION_KINDS
                and parent.child_by_field_name('name') == node
            )

            receiver_type = None
            namespace_access = False
            if parent_kind == 'member_expression' and parent.child_by_field_name('property') == node:
                receiver_type = self._receiver_type(parent, scope, source_code)
                receiver = parent.child_by_field_name('object')
                namespace_access = (
                    receiver is not None and receiver.type == 'identifier'
                    and self._text(receiver, source_code) in scope.namespaces
                )

            occurrences.append(Reference(
                name=self._text(node, source_code),
                file_path=self.file_path,
                line=node.start_point[0] + 1,
                column=node.start_point[1] + 1,
                offset=node.start_byte,
                node_kind=node.type,
                parent_kind=parent_kind,
                is_declaration=is_declaration,
                receiver_type=receiver_type,
                namespace_access=namespace_access,
            ))
        return occurrences

    def collect_scope(self, tree: Tree, source_code: bytes) -> TypeScope:
        """Collect the declared types of variables, parameters and class fields.

        Variables take their annotation, or the class of a ``new`` initializer.
        Imports and unannotated names are bound without a type, so they shadow
        runtime globals of the same name.
        """
        scope = TypeScope()
        for node, parent in self._traverse(tree.root_node):
            if node.type == 'variable_declarator':
                name_node = node.child_by_field_name('name')
                if name_node is not None and name_node.type == 'identifier':
                    scope.bind(self._text(name_node, source_code), self._declared_type(node, source_code))
            elif node.type in PARAMETER_KINDS:
                pattern = node.child_by_field_name('pattern')
                if pattern is not None and pattern.type == 'identifier':
                    scope.bind(self._text(pattern, source_code),
                               self._annotation_type(node.child_by_field_name('type'), source_code))
            elif node.type == 'identifier' and parent is not None and parent.type in IMPORT_BINDING_KINDS:
                name = self._text(node, source_code)
                scope.bind(name, None)
                if parent.type == 'namespace_import':
                    scope.namespaces.add(name)
            elif node.type in FUNCTION_KINDS:
                name_node = node.child_by_field_name('name')
                if name_node is not None:
                    scope.bind(self._text(name_node, source_code), None)
            elif node.type in CLASS_NODE_KINDS:
                self._collect_fields(node, source_code, scope)
        return scope

    def _collect_fields(self, class_node: Node, source_code: bytes, scope: TypeScope):
        name_node = class_node.child_by_field_name('name')
        body = class_node.child_by_field_name('body')
        if name_node is None or body is None:
            return
        class_name = self._text(name_node, source_code)
        # A class name used as a receiver reaches its static members
        scope.bind(class_name, class_name)

        for member in body.named_children:
            if member.type == 'public_field_definition':
                field_name = member.child_by_field_name('name')
                type_name = self._declared_type(member, source_code)
                if field_name is not None and type_name:
                    scope.field_types[(class_name, self._text(field_name, source_code))] = type_name
            elif member.type == 'method_definition':
                method_name = member.child_by_field_name('name')
                parameters = member.child_by_field_name('parameters')
                if method_name is None or parameters is None:
                    continue
                if self._text(method_name, source_code) != 'constructor':
                    continue
                for parameter in parameters.named_children:
                    if parameter.type not in PARAMETER_KINDS:
                        continue
                    if not any(child.type in PARAMETER_PROPERTY_MODIFIERS for child in parameter.children):
                        continue
                    pattern = parameter.child_by_field_name('pattern')
                    type_name = self._annotation_type(parameter.child_by_field_name('type'), source_code)
                    if pattern is not None and pattern.type == 'identifier' and type_name:
                        scope.field_types[(class_name, self._text(pattern, source_code))] = type_name

    def _receiver_type(self, member: Node, scope: TypeScope, source_code: bytes) -> Optional[str]:
        """Type of the object in ``object.property``, when the file declares it."""
        receiver = member.child_by_field_name('object')
        if receiver is None:
            return None
        if receiver.type == 'this':
            return self._enclosing_class(member, source_code)
        if receiver.type == 'new_expression':
            return self._constructed_type(receiver, source_code)
        if receiver.type == 'identifier':
            name = self._text(receiver, source_code)
            if name in scope.bindings:
                return scope.bindings[name]
            return name if name in GLOBAL_OBJECTS else None
        if receiver.type == 'member_expression':
            inner = receiver.child_by_field_name('object')
            field_name = receiver.child_by_field_name('property')
            if inner is not None and inner.type == 'this' and field_name is not None:
                class_name = self._enclosing_class(receiver, source_code)
                return scope.field_types.get((class_name, self._text(field_name, source_code)))
        return None

    def _enclosing_class(self, node: Node, source_code: bytes) -> Optional[str]:
        current = node.parent
        while current is not None:
            if current.type in CLASS_NODE_KINDS:
                name_node = current.child_by_field_name('name')
                return self._text(name_node, source_code) if name_node is not None else None
            current = current.parent
        return None

    def _declared_type(self, node: Node, source_code: bytes) -> Optional[str]:
        """Annotated type of a variable or field, else the class it is constructed from."""
        annotation = node.child_by_field_name('type')
        if annotation is not None:
            return self._annotation_type(annotation, source_code)
        value = node.child_by_field_name('value')
        if value is not None and value.type == 'new_expression':
            return self._constructed_type(value, source_code)
        return None

    def _annotation_type(self, annotation: Optional[Node], source_code: bytes) -> Optional[str]:
        if annotation is None or not annotation.named_children:
            return None
        type_node = annotation.named_children[0]
        if type_node.type == 'predefined_type':
            name = self._text(type_node, source_code)
            return None if name in ('any', 'unknown') else name
        # Unions, arrays and function types stay untyped
        return self._type_name(type_node, source_code)

    def _constructed_type(self, new_expression: Node, source_code: bytes) -> Optional[str]:
        constructor = new_expression.child_by_field_name('constructor')
        if constructor is None:
            return None
        if constructor.type == 'identifier':
            return self._text(constructor, source_code)
        if constructor.type == 'member_expression':
            prop = constructor.child_by_field_name('property')
            if prop is not None:
                return self._text(prop, source_code)
        return None

    def _traverse(self, node: Node) -> Iterator[Tuple[Node, Optional[Node]]]:
        """Iteratively traverse tree using a stack and yield (node, parent) pairs."""
        stack = [(node, None)]
        while stack:
            current, parent = stack.pop()
            yield current, parent
            # Reverse order keeps left-to-right traversal
            stack.extend((child, current) for child in reversed(current.children))

    def _text(self, node: Node, source_code: bytes) -> str:
        return source_code[node.start_byte:node.end_byte].decode('utf-8', errors='replace')

    def _top_level_declarations(self, root: Node) -> Iterator[Tuple[Node, Node, bool]]:
        """Yield (declaration, outermost node, exported-by-statement) for program statements.

        The outermost node is the export statement when the declaration is
        exported inline, so its position includes decorators and modifiers.
        """
        for statement in root.named_children:
            if statement.type == 'export_statement':
                declaration = statement.child_by_field_name('declaration')
                if declaration is not None:
                    yield declaration, statement, True
            elif statement.type in CLASS_KINDS | FUNCTION_KINDS | {'interface_declaration'}:
                yield statement, statement, False

    def _local_export_names(self, root: Node, source_code: bytes) -> Set[str]:
        """Names exported by ``export { A, B as C }`` and ``export default A``."""
        names = set()
        for statement in root.named_children:
            if statement.type != 'export_statement':
                continue
            if statement.child_by_field_name('source') is not None:
                continue
            value = statement.child_by_field_name('value')
            if value is not None and value.type == 'identifier':
                names.add(self._text(value, source_code))
            for child in statement.named_children:
                if child.type != 'export_clause':
                    continue
                for specifier in child.named_children:
                    if specifier.type == 'export_specifier':
                        name_node = specifier.child_by_field_name('name')
                        if name_node is not None:
                            names.add(self._text(name_node, source_code))
        return names

    def _symbol(self, name: str, qualified_name: str, kind: SymbolKind, node: Node,
                name_node: Node, is_exported: bool, container: Optional[str] = None) -> Symbol:
        return Symbol(
            name=name,
            qualified_name=qualified_name,
            kind=kind,
            file_path=self.file_path,
            line=node.start_point[0] + 1,
            column=node.start_point[1] + 1,
            is_exported=is_exported,
            name_offset=name_node.start_byte,
            container=container,
            malformed=node.has_error,
        )

    def _build_class(self, node: Node, outer: Node, name_node: Node,
                     source_code: bytes, is_exported: bool) -> ClassInfo:
        name = self._text(name_node, source_code)
        base_class, implements = self._extract_heritage(node, source_code)

        members = []
        body = node.child_by_field_name('body')
        if body is not None:
            for child in body.named_children:
                if child.type in MEMBER_KINDS:
                    member = self._build_member(child, name, is_exported, source_code)
                    if member is not None:
                        members.append(member)

        return ClassInfo(
            symbol=self._symbol(name, name, SymbolKind.CLASS, outer, name_node, is_exported),
            base_class=base_class,
            implements=tuple(implements),
            members=tuple(members),
            is_abstract=node.type == 'abstract_class_declaration',
        )

    def _build_member(self, node: Node, class_name: str, class_exported: bool,
                      source_code: bytes) -> Optional[MethodInfo]:
        """Build a MethodInfo from a method_definition or abstract_method_signature."""
        name_node = node.child_by_field_name('name')
        # Computed and string-literal names cannot be tracked by name
        if name_node is None or name_node.type not in MEMBER_NAME_KINDS:
            return None
        name = self._text(name_node, source_code)

        accessibility = 'public'
        is_static = False
        is_accessor = False
        for child in node.children:
            if child.type == 'accessibility_modifier':
                accessibility = self._text(child, source_code)
            elif not child.is_named and child.type == 'static':
                is_static = True
            elif not child.is_named and child.type in ('get', 'set', 'static get'):
                is_accessor = True

        return MethodInfo(
            symbol=self._symbol(name, f"{class_name}.{name}", SymbolKind.METHOD, node,
                                name_node, class_exported, container=class_name),
            accessibility=accessibility,
            is_abstract=node.type == 'abstract_method_signature',
            is_static=is_static,
            is_accessor=is_accessor,
            is_constructor=name == 'constructor',
        )

    def _build_interface(self, node: Node, outer: Node, name_node: Node,
                         source_code: bytes, is_exported: bool) -> InterfaceInfo:
        name = self._text(name_node, source_code)

        extends = []
        for child in node.named_children:
            if child.type == 'extends_type_clause':
                for type_node in child.named_children:
                    type_name = self._type_name(type_node, source_code)
                    if type_name:
                        extends.append(type_name)

        methods = []
        seen_methods = set()
        member_names = set()
        body = node.child_by_field_name('body')
        if body is not None:
            for member in body.named_children:
                if member.type not in ('method_signature', 'property_signature'):
                    continue
                member_name_node = member.child_by_field_name('name')
                if member_name_node is None or member_name_node.type not in MEMBER_NAME_KINDS:
                    continue
                member_name = self._text(member_name_node, source_code)
                member_names.add(member_name)
                # Overloads repeat the signature; the first one stands for all
                if member.type == 'method_signature' and member_name not in seen_methods:
                    seen_methods.add(member_name)
                    methods.append(self._symbol(
                        member_name, f"{name}.{member_name}", SymbolKind.INTERFACE_METHOD,
                        member, member_name_node, is_exported, container=name))

        return InterfaceInfo(
            symbol=self._symbol(name, name, SymbolKind.INTERFACE, outer, name_node, is_exported),
            extends=tuple(extends),
            methods=tuple(methods),
            member_names=frozenset(member_names),
        )

    def _extract_heritage(self, node: Node, source_code: bytes) -> Tuple[Optional[str], List[str]]:
        """Extract the base class and implemented interfaces of a class.

        Parses ``class Foo extends Bar implements A, B<T>`` into
        ``('Bar', ['A', 'B'])``.
        """
        base_class = None
        implements = []

        for child in node.children:
            if child.type != 'class_heritage':
                continue
            for clause in child.named_children:
                if clause.type == 'extends_clause':
                    value = clause.child_by_field_name('value')
                    if value is not None and value.type == 'identifier':
                        base_class = self._text(value, source_code)
                    elif value is not None and value.type == 'member_expression':
                        # ns.Base -> Base
                        prop = value.child_by_field_name('property')
                        if prop is not None:
                            base_class = self._text(prop, source_code)
                elif clause.type == 'implements_clause':
                    for type_node in clause.named_children:
                        type_name = self._type_name(type_node, source_code)
                        if type_name:
                            implements.append(type_name)

        return base_class, implements

    def _type_name(self, node: Node, source_code: bytes) -> Optional[str]:
        """Simple name of a type reference (``A``, ``A<T>``, ``ns.A``)."""
        if node.type in ('type_identifier', 'identifier'):
            return self._text(node, source_code)
        if node.type in ('generic_type', 'nested_type_identifier'):
            name_node = node.child_by_field_name('name')
            if name_node is not None:
                return self._type_name(name_node, source_code)
        return None
