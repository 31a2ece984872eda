"""Tests for the reftrace command line interface."""
import pytest
from typer.testing import CliRunner

from reftrace import config as config_module
from reftrace.main import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def fresh_config(monkeypatch):
    monkeypatch.setattr(config_module, '_config', None)


@pytest.fixture
def sources(fixtures_dir):
    return fixtures_dir / 'sources'


def test_refs_lists_ref_object_references(sources):
    result = runner.invoke(app, ['refs', str(sources / 'counter.js')])
    assert result.exit_code == 0, result.output
    assert "3 reference(s)" in result.output


def test_refs_with_chain(sources):
    result = runner.invoke(app, ['refs', str(sources / 'counter.js'), '--chain'])
    assert result.exit_code == 0, result.output
    assert "3 reference(s)" in result.output


def test_refs_without_matches(sources):
    result = runner.invoke(app, ['refs', str(sources / 'plain.js')])
    assert result.exit_code == 0
    assert "No ref-object references found." in result.output


def test_reactive_reports_escape_hints(sources):
    result = runner.invoke(app, ['reactive', str(sources / 'Counter.vue')])
    assert result.exit_code == 0, result.output
    assert "3 reference(s), 1 inside $$()" in result.output


def test_language_override(sources, tmp_path):
    script = tmp_path / 'snippet.txt'
    script.write_text((sources / 'counter.js').read_text())
    result = runner.invoke(app, ['refs', str(script), '--language', 'javascript'])
    assert result.exit_code == 0, result.output
    assert "3 reference(s)" in result.output


def test_missing_file_exits_with_error(tmp_path):
    result = runner.invoke(app, ['refs', str(tmp_path / 'missing.js')])
    assert result.exit_code == 1
    assert "Error:" in result.output


def test_unsupported_extension_exits_with_error(tmp_path):
    path = tmp_path / 'module.py'
    path.write_text("x = 1\n")
    result = runner.invoke(app, ['reactive', str(path)])
    assert result.exit_code == 1
    assert "Unsupported file type" in result.output


def test_invalid_configuration_exits_with_error(sources, monkeypatch):
    monkeypatch.setenv('REFTRACE_TRACE_MODE', 'sideways')
    result = runner.invoke(app, ['refs', str(sources / 'counter.js')])
    assert result.exit_code == 1
    assert "REFTRACE_TRACE_MODE" in result.output


def test_version():
    result = runner.invoke(app, ['--version'])
    assert result.exit_code == 0
    assert config_module.__version__ in result.output
