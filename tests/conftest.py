"""Shared fixtures: parse a snippet into an AnalysisContext and look up identifiers."""
from pathlib import Path
import pytest

from reftrace.config import AnalysisOptions
from reftrace.analyzer.context import AnalysisContext
from reftrace.analyzer.estree import iter_nodes


FIXTURES_DIR = Path(__file__).parent / 'fixtures'


def _is_binding_or_reference(node) -> bool:
    """Skip identifiers that only name a property or an imported export."""
    parent = node.parent
    if parent is None:
        return True
    if parent.type == 'MemberExpression' and parent.property is node and not parent.computed:
        return False
    if parent.type == 'Property' and parent.key is node and not parent.computed:
        return False
    if parent.type == 'ImportSpecifier' and parent.imported is node:
        return False
    return True


@pytest.fixture
def analyze():
    """Factory fixture: analyze(code, language='javascript', **options) -> AnalysisContext."""
    def _analyze(code: str, language: str = 'javascript', **options) -> AnalysisContext:
        return AnalysisContext.from_source(code, language=language,
                                           options=AnalysisOptions(**options))
    return _analyze


@pytest.fixture
def identifiers():
    """Factory fixture: identifiers(context, name) -> occurrences in source order."""
    def _identifiers(context: AnalysisContext, name: str):
        found = [
            node for node in iter_nodes(context.program)
            if node.type == 'Identifier' and node.name == name and _is_binding_or_reference(node)
        ]
        return sorted(found, key=lambda node: node.range[0])
    return _identifiers


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR
