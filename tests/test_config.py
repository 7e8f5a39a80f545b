"""Tests for environment configuration and analyzer settings."""

import os

from deadwire.config import AnalyzerSettings, Config


def test_defaults(monkeypatch, tmp_path):
    for name in ('DEADWIRE_ALLOWLIST_CLASSES', 'DEADWIRE_ALLOWLIST_FILES', 'DEADWIRE_EXEMPT_TOKENS',
                 'DEADWIRE_TOKEN_OBJECT', 'DEADWIRE_SOURCE_ROOT', 'DEADWIRE_INCLUDE_FUNCTIONS'):
        monkeypatch.delenv(name, raising=False)

    settings = Config(env_file=tmp_path / 'missing.env').analyzer_settings()

    assert settings == AnalyzerSettings()
    assert settings.token_object == 'TOKENS'
    assert settings.source_root == 'src'
    assert not settings.include_functions


def test_environment_lists(monkeypatch, tmp_path):
    monkeypatch.setenv('DEADWIRE_ALLOWLIST_CLASSES', 'Orphan, Legacy ,')
    monkeypatch.setenv('DEADWIRE_ALLOWLIST_FILES', 'src/generated/*')
    monkeypatch.setenv('DEADWIRE_EXEMPT_TOKENS', 'PLUGINS')
    monkeypatch.setenv('DEADWIRE_TOKEN_OBJECT', 'TYPES')
    monkeypatch.setenv('DEADWIRE_INCLUDE_FUNCTIONS', 'true')

    settings = Config(env_file=tmp_path / 'missing.env').analyzer_settings()

    assert settings.allowlisted_classes == frozenset({'Orphan', 'Legacy'})
    assert settings.allowlisted_files == ('src/generated/*',)
    assert settings.exempt_tokens == frozenset({'PLUGINS'})
    assert settings.token_object == 'TYPES'
    assert settings.include_functions


def test_env_file_is_loaded(monkeypatch, tmp_path):
    monkeypatch.delenv('DEADWIRE_SOURCE_ROOT', raising=False)
    env_file = tmp_path / '.env'
    env_file.write_text('DEADWIRE_SOURCE_ROOT=lib\n', encoding='utf-8')

    config = Config(env_file=env_file)
    try:
        assert config.source_root == 'lib'
    finally:
        os.environ.pop('DEADWIRE_SOURCE_ROOT', None)


def test_extended_settings_keep_existing_entries():
    base = AnalyzerSettings(allowlisted_classes=frozenset({'A'}), allowlisted_files=('x/*',))
    extended = base.extended(allowlisted_classes=['B'], allowlisted_files=['x/*', 'y/*'],
                             exempt_tokens=['T'], include_functions=True)

    assert extended.allowlisted_classes == frozenset({'A', 'B'})
    assert extended.allowlisted_files == ('x/*', 'y/*')
    assert extended.exempt_tokens == frozenset({'T'})
    assert extended.include_functions
    assert base.extended().include_functions is False
