"""Tests for declaration and occurrence extraction from TypeScript sources."""
from deadwire.analyzer.parser import LanguageParser
from deadwire.analyzer.extractor import EntityExtractor
from deadwire.analyzer.models import SymbolKind


def extract(code: bytes, file_path: str = 'src/sample.ts', language: str = 'typescript'):
    parser = LanguageParser(language)
    tree = parser.parse_source(code)
    return EntityExtractor(file_path).extract(tree, code)


def test_exported_and_local_classes():
    """Inline exports, export clauses and unexported classes."""
    code = b"""
export class Exported {}
class ViaClause {}
class Hidden {}
export { ViaClause };
"""
    declarations = extract(code)
    exported = {info.name: info.symbol.is_exported for info in declarations.classes}

    assert exported == {'Exported': True, 'ViaClause': True, 'Hidden': False}


def test_class_location_includes_decorators():
    """A decorated exported class starts at its decorator."""
    code = b"""import { injectable } from 'inversify';

@injectable()
export class Service {}
"""
    declarations = extract(code)
    service = declarations.classes[0]

    assert service.symbol.line == 3
    assert service.symbol.file_path == 'src/sample.ts'


def test_class_heritage_and_members():
    """Base class, implemented interfaces and member modifiers."""
    code = b"""
export abstract class Job extends ns.Base implements Runnable, Named<string> {
  constructor(private readonly id: string) { super(); }
  get label(): string { return this.id; }
  static create(): Job { return null as any; }
  public run(): void {}
  protected abstract step(): void;
  private hidden(): void {}
  #secret(): void {}
}
"""
    job = extract(code).classes[0]

    assert job.is_abstract
    assert job.base_class == 'Base'
    assert job.implements == ('Runnable', 'Named')

    members = {member.name: member for member in job.members}
    assert members['constructor'].is_constructor
    assert members['label'].is_accessor
    assert members['create'].is_static
    assert members['step'].is_abstract
    assert members['step'].accessibility == 'protected'
    assert members['hidden'].is_private
    assert members['#secret'].is_private
    assert not members['run'].is_private

    # Constructors, accessors and abstract signatures are not methods
    assert {method.name for method in job.methods} == {'create', 'run', 'hidden', '#secret'}
    assert members['run'].symbol.qualified_name == 'Job.run'
    assert members['run'].symbol.kind is SymbolKind.METHOD


def test_interface_members_and_extends():
    """Interface method signatures, property signatures and extends."""
    code = b"""
export interface AuditLogger extends Logger, Closeable<void> {
  level: string;
  audit(event: string): void;
  audit(event: string, data: unknown): void;
  flush(): void;
}
"""
    interface = extract(code).interfaces[0]

    assert interface.extends == ('Logger', 'Closeable')
    assert [symbol.name for symbol in interface.methods] == ['audit', 'flush']
    assert interface.member_names == frozenset({'level', 'audit', 'flush'})
    assert interface.methods[0].kind is SymbolKind.INTERFACE_METHOD
    assert interface.methods[0].qualified_name == 'AuditLogger.audit'


def test_top_level_functions():
    code = b"""
export function used(): void {}
function internal(): void {}
"""
    functions = {symbol.name: symbol.is_exported for symbol in extract(code).functions}

    assert functions == {'used': True, 'internal': False}


def test_occurrences_record_parent_kind_and_declarations():
    """Every identifier-like node is recorded with its syntactic parent."""
    code = b"""import { Widget } from './Widget';
export class Holder {
  make(): Widget { return new Widget(); }
}
"""
    declarations = extract(code)
    widget = [occ for occ in declarations.occurrences if occ.name == 'Widget']
    holder = [occ for occ in declarations.occurrences if occ.name == 'Holder']

    assert [occ.parent_kind for occ in widget] == ['import_specifier', 'type_annotation', 'new_expression']
    assert widget[1].node_kind == 'type_identifier'
    assert not any(occ.is_declaration for occ in widget)

    assert len(holder) == 1
    assert holder[0].is_declaration
    assert holder[0].offset == declarations.classes[0].symbol.name_offset


def test_tsx_sources_parse():
    code = b"""
export class Panel {
  render() { return <div className="panel" />; }
}
"""
    declarations = extract(code, 'src/Panel.tsx', 'tsx')

    assert [info.name for info in declarations.classes] == ['Panel']
    assert not declarations.classes[0].symbol.malformed


def test_supported_extensions():
    assert LanguageParser.is_supported('src/a.ts')
    assert LanguageParser.is_supported('src/a.tsx')
    assert LanguageParser.is_supported('src/a.mts')
    assert not LanguageParser.is_supported('src/a.d.ts')
    assert not LanguageParser.is_supported('src/a.js')


def receivers(declarations, name):
    return [(occ.line, occ.receiver_type) for occ in declarations.occurrences
            if occ.name == name and occ.parent_kind == 'member_expression']


def test_member_receivers_use_declared_types():
    """Receivers are typed from fields, parameters, annotations and constructors."""
    code = b"""import type { Logger } from './Logger';
import * as util from './util';

export class Service {
  private readonly cache: Cache = new Cache();

  constructor(private readonly log: Logger, plain: Logger) {}

  run(input: string, opts: any): void {
    this.log.warn(input);
    this.cache.warn();
    this.warn();
    console.warn(input);
    new Helper().warn();
    const local: Logger = this.log;
    local.warn();
    opts.warn();
    unknownThing.warn();
    util.warn();
  }

  warn(): void {}
}
"""
    declarations = extract(code)

    assert receivers(declarations, 'warn') == [
        (10, 'Logger'),
        (11, 'Cache'),
        (12, 'Service'),
        (13, 'console'),
        (14, 'Helper'),
        (16, 'Logger'),
        (17, None),
        (18, None),
        (19, None),
    ]
    util_access = [occ for occ in declarations.occurrences if occ.name == 'warn' and occ.line == 19]
    assert util_access[0].namespace_access


def test_shadowed_global_is_untyped():
    code = b"""export function report(console: unknown): void {
  console.warn('shadowed');
}
"""
    assert receivers(extract(code), 'warn') == [(2, None)]


def test_conflicting_declarations_are_untyped():
    code = b"""export function first(item: Circle): void { item.area(); }
export function second(item: Square): void { item.area(); }
export function third(shape: Circle): void { shape.area(); }
"""
    assert receivers(extract(code), 'area') == [(1, None), (2, None), (3, 'Circle')]
