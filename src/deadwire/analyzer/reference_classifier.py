"""Reference classification: genuine call-sites versus everything else.

A reference is a call-site unless it lives in a test file, is the symbol's
own declaration, or sits in an import, export or type-only position.
"""
from enum import Enum
from typing import Iterable, Optional

from .models import ClassInfo, MethodInfo, Reference
from .path_rules import PathRules
from .project import ProjectModel


IMPORT_KINDS = {
    'import_specifier',
    'import_clause',
    'import_statement',
    'namespace_import',
    'import_require_clause',
}
EXPORT_KINDS = {
    'export_specifier',
    'export_clause',
    'export_statement',
}
# Parents that make any identifier beneath them a type-level use
TYPE_PARENT_KINDS = {
    'type_query',
    'nested_type_identifier',
}


class ReferenceCategory(str, Enum):
    TEST = 'test'
    DECLARATION = 'declaration'
    IMPORT = 'import'
    EXPORT = 'export'
    TYPE = 'type'
    CALL_SITE = 'call-site'


class ReferenceClassifier:
    """Classify raw references and apply the method suppression heuristics."""

    def __init__(self, path_rules: Optional[PathRules] = None):
        self.path_rules = path_rules or PathRules()

    def classify(self, reference: Reference, declaring_file: str) -> ReferenceCategory:
        """Classify one reference.

        Args:
            reference: Raw occurrence from ProjectModel.find_references
            declaring_file: File holding the symbol's declaration

        Returns:
            ReferenceCategory of the reference
        """
        if self.path_rules.is_test_path(reference.file_path):
            return ReferenceCategory.TEST
        if reference.is_declaration and reference.file_path == declaring_file:
            return ReferenceCategory.DECLARATION
        if reference.parent_kind in IMPORT_KINDS:
            return ReferenceCategory.IMPORT
        if reference.parent_kind in EXPORT_KINDS:
            return ReferenceCategory.EXPORT
        if reference.node_kind == 'type_identifier' or reference.parent_kind in TYPE_PARENT_KINDS:
            return ReferenceCategory.TYPE
        return ReferenceCategory.CALL_SITE

    def count_call_sites(self, references: Iterable[Reference], declaring_file: str) -> int:
        """Count references that are genuine call-sites. Zero means dead."""
        return sum(
            1 for reference in references
            if self.classify(reference, declaring_file) is ReferenceCategory.CALL_SITE
        )

    def is_abstract_override(self, model: ProjectModel, class_info: ClassInfo,
                             method: MethodInfo) -> bool:
        """Check if a protected method implements an abstract method of its base class.

        Template methods are invoked polymorphically by the base class, so no
        direct call-site for the override ever appears.
        """
        if method.accessibility != 'protected':
            return False
        for base_name in model.hierarchy.base_classes(class_info.name):
            for base in model.find_classes(base_name):
                member = base.get_member(method.name)
                if member is not None and member.is_abstract:
                    return True
        return False

    def is_interface_implementation(self, model: ProjectModel, class_info: ClassInfo,
                                    method: MethodInfo) -> bool:
        """Check if any interface implemented by the class declares the method name.

        Such methods are judged at the interface-method level instead.
        """
        for interface_name in model.hierarchy.interfaces_of(class_info.name):
            for interface in model.find_interfaces(interface_name):
                if method.name in interface.member_names:
                    return True
        return False
