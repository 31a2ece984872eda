"""Tests for environment-driven configuration."""
import pytest

from reftrace import config as config_module
from reftrace.config import AnalysisOptions, Config, get_config

ENV_VARS = [
    'REFTRACE_SOURCE_TYPE',
    'REFTRACE_GLOBALS',
    'REFTRACE_TRACE_MODE',
    'REFTRACE_LIBRARY_MODULES',
    'REFTRACE_GLOBAL_OBJECTS',
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Start every test from an empty REFTRACE_* environment and no .env file.

    setenv before delenv registers each variable with monkeypatch, so values
    that load_dotenv writes during a test are removed afterwards too.
    """
    for name in ENV_VARS:
        monkeypatch.setenv(name, 'placeholder')
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(config_module, '_config', None)


def test_defaults():
    options = Config().to_options()
    assert options == AnalysisOptions()
    assert options.source_type == 'module'
    assert options.trace_mode == 'esm'
    assert options.library_modules == ('vue', '@vue/composition-api')
    assert options.global_objects == ('Vue',)
    assert options.globals == ()


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv('REFTRACE_SOURCE_TYPE', 'Script')
    monkeypatch.setenv('REFTRACE_GLOBALS', '$ref, $$ ,')
    monkeypatch.setenv('REFTRACE_TRACE_MODE', 'all')
    monkeypatch.setenv('REFTRACE_LIBRARY_MODULES', 'vue-demi')

    options = Config().to_options()
    assert options.source_type == 'script'
    assert options.globals == ('$ref', '$$')
    assert options.trace_mode == 'all'
    assert options.library_modules == ('vue-demi',)


@pytest.mark.parametrize('name, value', [
    ('REFTRACE_TRACE_MODE', 'everything'),
    ('REFTRACE_SOURCE_TYPE', 'commonjs'),
])
def test_invalid_values_raise(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError, match=name):
        Config()


def test_dotenv_file_is_loaded(tmp_path):
    (tmp_path / '.env').write_text("REFTRACE_TRACE_MODE=global\n")
    assert Config().trace_mode == 'global'


def test_get_config_is_a_singleton():
    assert get_config() is get_config()


def test_options_are_immutable():
    options = AnalysisOptions()
    with pytest.raises(AttributeError):
        options.trace_mode = 'all'
