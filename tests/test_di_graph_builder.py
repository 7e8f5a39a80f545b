"""Tests for DI binding and resolution extraction."""

import pytest
from pathlib import Path

from deadwire.analyzer.graph_builder import DiGraphBuilder
from deadwire.analyzer.models import ResolutionKind
from deadwire.analyzer.parser import LanguageParser
from deadwire.analyzer.project import ProjectLoader, SourceFile
from deadwire.config import AnalyzerSettings


FIXTURES_DIR = Path(__file__).parent / 'fixtures' / 'di_project'


@pytest.fixture
def builder():
    return DiGraphBuilder()


@pytest.fixture
def graph(builder):
    model = ProjectLoader().load(FIXTURES_DIR)
    return builder.build(model)


def source_file(path: str, code: str) -> SourceFile:
    source = code.encode('utf-8')
    return SourceFile(
        path=path,
        absolute_path=Path(path),
        language='typescript',
        text=code,
        source=source,
        tree=LanguageParser('typescript').parse_source(source),
    )


class TestFixtureGraph:
    """Bindings and resolutions of the fixture project."""

    def test_bindings(self, graph):
        bindings = [(b.token_name, b.class_name, b.file_path, b.line) for b in graph.bindings]
        assert bindings == [
            ('FOO', 'Widget', 'src/di/registerServices.ts', 10),
            ('LOGGER', 'ConsoleLogger', 'src/di/registerServices.ts', 11),
            ('REPORTER', 'Reporter', 'src/di/registerServices.ts', 12),
            ('PLUGINS', 'AuditPlugin', 'src/di/registerServices.ts', 13),
        ]

    def test_resolutions(self, graph):
        resolutions = [(r.token_name, r.file_path, r.line, r.kind) for r in graph.resolutions]
        assert resolutions == [
            ('LOGGER', 'src/app/Reporter.ts', 9, ResolutionKind.INJECT),
            ('BAR', 'src/app/Reporter.ts', 10, ResolutionKind.INJECT),
            ('PLUGINS', 'src/app/Reporter.ts', 11, ResolutionKind.MULTI_INJECT),
            ('REPORTER', 'src/main.ts', 14, ResolutionKind.CONTAINER_LOOKUP),
        ]

    def test_token_sets(self, graph):
        assert graph.bound_tokens == {'FOO', 'LOGGER', 'REPORTER', 'PLUGINS'}
        assert graph.resolved_tokens == {'LOGGER', 'BAR', 'PLUGINS', 'REPORTER'}


class TestBindingPatterns:
    """Call expressions that do and do not produce bindings."""

    def test_chained_scope_produces_one_binding(self, builder):
        code = "container.bind<Foo>(TOKENS.FOO).to(Foo).inSingletonScope();\n"
        bindings = builder.extract_bindings(source_file('src/registerFoo.ts', code))
        assert [(b.token_name, b.class_name, b.line) for b in bindings] == [('FOO', 'Foo', 1)]

    def test_unmatched_calls_are_ignored(self, builder):
        code = """
container.bind(TOKENS.SELF).toSelf();
container.bind(TOKENS.VALUE).toConstantValue(42);
container.bind(OTHER.X).to(Thing);
router.to(Page);
"""
        assert builder.extract_bindings(source_file('src/registerMisc.ts', code)) == []

    def test_multiline_binding_uses_call_start_line(self, builder):
        code = """
container
  .bind(TOKENS.CACHE)
  .to(RedisCache);
"""
        bindings = builder.extract_bindings(source_file('src/registerCache.ts', code))
        assert [(b.token_name, b.class_name, b.line) for b in bindings] == [('CACHE', 'RedisCache', 2)]

    def test_custom_token_object(self):
        builder = DiGraphBuilder(AnalyzerSettings(token_object='TYPES'))
        code = "container.bind(TYPES.Db).to(Database);\ncontainer.bind(TOKENS.X).to(Y);\n"
        bindings = builder.extract_bindings(source_file('src/registerDb.ts', code))
        assert [(b.token_name, b.class_name) for b in bindings] == [('Db', 'Database')]


class TestResolutionPatterns:
    """Textual resolution patterns over full file text."""

    def test_whitespace_inside_decorators(self, builder):
        text = "class A {\n  constructor(@inject( TOKENS.A ) a: A,\n    @multiInject(\n      TOKENS.B) b: B[]) {}\n}\n"
        resolutions = builder.extract_resolutions('src/A.ts', text)
        assert [(r.token_name, r.line, r.kind) for r in resolutions] == [
            ('A', 2, ResolutionKind.INJECT),
            ('B', 3, ResolutionKind.MULTI_INJECT),
        ]

    @pytest.mark.parametrize('call', [
        'container.get(TOKENS.X)',
        'container.get<Service>(TOKENS.X)',
        'container.getAsync<Map<string, Service>>(TOKENS.X)',
        'container.getAll(TOKENS.X)',
        'container.getAllAsync( TOKENS.X )',
    ])
    def test_container_lookups(self, builder, call):
        resolutions = builder.extract_resolutions('src/a.ts', f"const s = {call};\n")
        assert [(r.token_name, r.kind) for r in resolutions] == [('X', ResolutionKind.CONTAINER_LOOKUP)]

    def test_non_container_receivers_are_ignored(self, builder):
        text = "cache.get(TOKENS.X);\ncontainer.resolve(TOKENS.Y);\n"
        assert builder.extract_resolutions('src/a.ts', text) == []

    def test_resolutions_are_ordered_by_position(self, builder):
        text = "container.get(TOKENS.LATE);\n@inject(TOKENS.EARLY)\n"
        resolutions = builder.extract_resolutions('src/a.ts', "@multiInject(TOKENS.FIRST)\n" + text)
        assert [r.token_name for r in resolutions] == ['FIRST', 'LATE', 'EARLY']
        assert [r.line for r in resolutions] == [1, 2, 3]
