"""Tests for mapping findings to diagnostics."""

import pytest
from pathlib import Path

from deadwire.analyzer.dead_code_analyzer import DeadCodeAnalyzer
from deadwire.analyzer.models import DeadCodeCategory, DeadCodeItem
from deadwire.analyzer.project import ProjectLoader
from deadwire.errors import ConfigurationError
from deadwire.reporting.diagnostic import format_message, to_diagnostic, to_diagnostics
from deadwire.reporting.reporter import DeadCodeReporter


FIXTURES_DIR = Path(__file__).parent / 'fixtures' / 'di_project'


def item(category, name='Thing', **kwargs):
    defaults = dict(file_path='src/thing.ts', line=4, column=3)
    defaults.update(kwargs)
    return DeadCodeItem(category=category, symbol_name=name, **defaults)


@pytest.mark.parametrize('category, name, message', [
    (DeadCodeCategory.UNRESOLVED_DI_TOKEN, 'TOKENS.FOO', 'Unresolved DI token: TOKENS.FOO'),
    (DeadCodeCategory.PHANTOM_TOKEN, 'TOKENS.BAR', 'Phantom token: TOKENS.BAR is referenced but never bound'),
    (DeadCodeCategory.DEAD_CLASS, 'Widget', 'Dead class: Widget has no call-sites'),
    (DeadCodeCategory.DEAD_METHOD, 'Helper.run', 'Dead method: Helper.run() has no call-sites'),
    (DeadCodeCategory.DEAD_INTERFACE_METHOD, 'Logger.warn', 'Dead interface method: Logger.warn() is never called'),
    (DeadCodeCategory.DEAD_FUNCTION, 'unusedFormatter', 'Dead function: unusedFormatter() has no call-sites'),
])
def test_message_templates(category, name, message):
    assert format_message(item(category, name)) == message


def test_every_category_has_a_message():
    for category in DeadCodeCategory:
        assert format_message(item(category))


def test_diagnostic_fields():
    diagnostic = to_diagnostic(item(DeadCodeCategory.DEAD_METHOD, 'Helper.run', detail='(zero external call-sites)'))

    assert diagnostic.id == 'dead-code:src/thing.ts:4:3:dead-method'
    assert diagnostic.source == 'dead-code'
    assert diagnostic.severity == 'warning'
    assert diagnostic.code == 'dead-method'
    assert (diagnostic.file, diagnostic.line, diagnostic.column) == ('src/thing.ts', 4, 3)
    assert diagnostic.detail == '(zero external call-sites)'


def test_to_dict_is_json_ready():
    data = to_diagnostic(item(DeadCodeCategory.DEAD_CLASS)).to_dict()

    assert data == {
        'id': 'dead-code:src/thing.ts:4:3:dead-class',
        'source': 'dead-code',
        'file': 'src/thing.ts',
        'line': 4,
        'column': 3,
        'severity': 'warning',
        'code': 'dead-class',
        'message': 'Dead class: Thing has no call-sites',
        'detail': None,
    }


def test_order_is_preserved():
    items = [item(DeadCodeCategory.PHANTOM_TOKEN, 'TOKENS.B'), item(DeadCodeCategory.DEAD_CLASS, 'A')]
    assert [d.code for d in to_diagnostics(items)] == ['phantom-token', 'dead-class']


class TestReporter:
    """DeadCodeReporter over the fixture project."""

    def test_collect_diagnostics(self):
        reporter = DeadCodeReporter(DeadCodeAnalyzer(loader=ProjectLoader()))
        diagnostics = reporter.collect_diagnostics(FIXTURES_DIR)

        assert [d.code for d in diagnostics] == [
            'unresolved-di-token',
            'phantom-token',
            'dead-class',
            'dead-class',
            'dead-method',
            'dead-method',
            'dead-interface-method',
        ]
        assert all(d.severity == 'warning' for d in diagnostics)
        assert len({d.id for d in diagnostics}) == len(diagnostics)

    def test_configuration_error_propagates(self, tmp_path):
        reporter = DeadCodeReporter(DeadCodeAnalyzer(loader=ProjectLoader()))
        with pytest.raises(ConfigurationError):
            reporter.collect_diagnostics(tmp_path / 'tsconfig.json')
