"""Tests for AnalysisContext construction and its result cache."""
import pytest

from reftrace.config import AnalysisOptions
from reftrace.analyzer.context import AnalysisContext, ResultCache
from reftrace.analyzer.estree import Node


def test_from_file_picks_grammar_by_extension(fixtures_dir):
    context = AnalysisContext.from_file(fixtures_dir / 'sources' / 'Counter.vue')
    assert context.program.type == 'Program'
    assert context.file_path.name == 'Counter.vue'
    assert len(context.source) == len((fixtures_dir / 'sources' / 'Counter.vue').read_bytes())


def test_from_file_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        AnalysisContext.from_file(tmp_path / 'gone.ts')


def test_from_file_unsupported_extension(tmp_path):
    path = tmp_path / 'notes.md'
    path.write_text("# hi\n")
    with pytest.raises(ValueError, match="Unsupported file type"):
        AnalysisContext.from_file(path)


def test_options_reach_scope_analysis():
    context = AnalysisContext.from_source("x", options=AnalysisOptions(source_type='script',
                                                                      globals=('x',)))
    assert context.program.sourceType == 'script'
    assert 'x' in context.global_scope.set
    assert [scope.type for scope in context.scope_manager.scopes] == ['global']


class TestResultCache:
    """Per-program memoization."""

    def test_compute_runs_once(self):
        cache = ResultCache()
        program = Node('Program', (0, 0), (1, 0), body=[])
        calls = []

        def compute():
            calls.append(1)
            return object()

        first = cache.get_or_compute('kind', program, compute)
        second = cache.get_or_compute('kind', program, compute)
        assert first is second
        assert len(calls) == 1
        assert ('kind', program) in cache
        assert cache.get('other', program) is None

    def test_entries_are_keyed_by_program(self):
        cache = ResultCache()
        first = Node('Program', (0, 0), (1, 0), body=[])
        second = Node('Program', (0, 0), (1, 0), body=[])
        cache.get_or_compute('kind', first, lambda: 'a')
        assert cache.get_or_compute('kind', second, lambda: 'b') == 'b'
        assert cache.get('kind', first) == 'a'
