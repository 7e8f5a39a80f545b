"""Class and interface hierarchy graph using NetworkX."""
from typing import Iterable, List, Set
import networkx as nx

from .models import ClassInfo, InterfaceInfo


class TypeHierarchy:
    """Tracks extends/implements relationships between declared types.

    Edge (A, B) means "A extends or implements B". Nodes are type names and
    carry a ``kinds`` attribute ({'class'}, {'interface'} or both when a
    class and an interface share a name).
    """

    def __init__(self):
        """Initialize an empty hierarchy."""
        self.graph = nx.DiGraph()

    def _add_node(self, name: str, kind: str):
        if name in self.graph:
            self.graph.nodes[name]['kinds'].add(kind)
        else:
            self.graph.add_node(name, kinds={kind})

    def add_class(self, info: ClassInfo):
        """Add a class and its extends/implements edges.

        Args:
            info: Class declaration facts
        """
        self._add_node(info.name, 'class')
        if info.base_class:
            if info.base_class not in self.graph:
                self.graph.add_node(info.base_class, kinds=set())
            self.graph.add_edge(info.name, info.base_class, relation='extends')
        for interface_name in info.implements:
            if interface_name not in self.graph:
                self.graph.add_node(interface_name, kinds=set())
            self.graph.add_edge(info.name, interface_name, relation='implements')

    def add_interface(self, info: InterfaceInfo):
        """Add an interface and its extends edges."""
        self._add_node(info.name, 'interface')
        for base in info.extends:
            if base not in self.graph:
                self.graph.add_node(base, kinds=set())
            self.graph.add_edge(info.name, base, relation='extends')

    @classmethod
    def build(cls, classes: Iterable[ClassInfo], interfaces: Iterable[InterfaceInfo]) -> 'TypeHierarchy':
        hierarchy = cls()
        # Interfaces first so a name declared both ways keeps both kinds
        for interface in interfaces:
            hierarchy.add_interface(interface)
        for info in classes:
            hierarchy.add_class(info)
        return hierarchy

    def base_classes(self, class_name: str) -> List[str]:
        """Direct base classes of a class (normally zero or one)."""
        if class_name not in self.graph:
            return []
        return [
            target for _, target, relation in self.graph.out_edges(class_name, data='relation')
            if relation == 'extends'
        ]

    def related_types(self, type_name: str) -> Set[str]:
        """A type together with all of its supertypes and subtypes.

        A member declared on ``type_name`` can be reached through a value of
        any of these types.
        """
        if type_name not in self.graph:
            return {type_name}
        return {type_name} | nx.ancestors(self.graph, type_name) | nx.descendants(self.graph, type_name)

    def interfaces_of(self, class_name: str) -> Set[str]:
        """All interfaces a class implements, directly or through its bases.

        Interface ``extends`` chains are followed transitively, so a class
        implementing ``AuditLogger extends Logger`` also implements ``Logger``.
        """
        return self._collect_interfaces(class_name, visited=set())

    def _collect_interfaces(self, class_name: str, visited: Set[str]) -> Set[str]:
        # Cyclic extends chains only occur in broken code, but must not recurse forever
        if class_name in visited or class_name not in self.graph:
            return set()
        visited.add(class_name)
        interfaces = set()
        for _, target, relation in self.graph.out_edges(class_name, data='relation'):
            if relation == 'implements':
                interfaces.add(target)
                interfaces.update(nx.descendants(self.graph, target))
        for base in self.base_classes(class_name):
            interfaces.update(self._collect_interfaces(base, visited))
        return interfaces
