"""Tests for the deadwire CLI."""

import json
import pytest
from pathlib import Path
from typer.testing import CliRunner

from deadwire.main import app


FIXTURES_DIR = Path(__file__).parent / 'fixtures' / 'di_project'


@pytest.fixture
def runner():
    return CliRunner()


def test_audit_json(runner):
    result = runner.invoke(app, ['audit', str(FIXTURES_DIR / 'tsconfig.json'), '--format', 'json'])

    assert result.exit_code == 0, result.output
    diagnostics = json.loads(result.stdout)
    assert [d['message'] for d in diagnostics][:2] == [
        'Unresolved DI token: TOKENS.FOO',
        'Phantom token: TOKENS.BAR is referenced but never bound',
    ]
    assert {d['source'] for d in diagnostics} == {'dead-code'}


def test_audit_options_extend_settings(runner):
    result = runner.invoke(app, [
        'audit', str(FIXTURES_DIR), '-f', 'json',
        '--allow-class', 'Orphan',
        '--allow-file', 'src/widget/*',
        '--exempt-token', 'FOO',
        '--include-functions',
    ])

    assert result.exit_code == 0, result.output
    messages = [d['message'] for d in json.loads(result.stdout)]
    assert 'Dead class: Orphan has no call-sites' not in messages
    assert 'Unresolved DI token: TOKENS.FOO' not in messages
    assert 'Dead function: unusedFormatter() has no call-sites' in messages


def test_audit_table(runner):
    result = runner.invoke(app, ['audit', str(FIXTURES_DIR)])

    assert result.exit_code == 0, result.output
    assert 'Dead Code Findings' in result.output
    assert '8 findings' in result.output


def test_fail_on_findings(runner):
    result = runner.invoke(app, ['audit', str(FIXTURES_DIR), '--fail-on-findings'])
    assert result.exit_code == 1


def test_missing_config_exit_code(runner, tmp_path):
    result = runner.invoke(app, ['audit', str(tmp_path / 'tsconfig.json')])
    assert result.exit_code == 2


def test_unknown_format(runner):
    result = runner.invoke(app, ['audit', str(FIXTURES_DIR), '--format', 'xml'])
    assert result.exit_code == 2


def test_graph_command(runner):
    result = runner.invoke(app, ['graph', str(FIXTURES_DIR)])

    assert result.exit_code == 0, result.output
    assert '4 bindings, 4 resolutions' in result.output


def test_version(runner):
    result = runner.invoke(app, ['--version'])
    assert result.exit_code == 0
    assert 'deadwire' in result.output
