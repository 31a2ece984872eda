"""Analysis context: one parsed program plus everything derived from it."""
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union
from weakref import WeakKeyDictionary
from tree_sitter import Tree

from .estree import Node, build_estree
from .parser import LanguageParser
from .scope import Scope, ScopeManager, analyze_scope
from ..config import AnalysisOptions


class ResultCache:
    """Per-program memo of extractor results.

    Keyed by extractor kind, then weakly by the Program node, so results die
    with the tree they describe.
    """

    def __init__(self):
        self._entries: Dict[str, WeakKeyDictionary] = {}

    def get(self, kind: str, program: Node) -> Optional[Any]:
        bucket = self._entries.get(kind)
        if bucket is None:
            return None
        return bucket.get(program)

    def get_or_compute(self, kind: str, program: Node, compute: Callable[[], Any]) -> Any:
        """Return the cached result, computing and storing it on first use."""
        bucket = self._entries.setdefault(kind, WeakKeyDictionary())
        result = bucket.get(program)
        if result is None:
            result = compute()
            bucket[program] = result
        return result

    def __contains__(self, key) -> bool:
        kind, program = key
        bucket = self._entries.get(kind)
        return bucket is not None and program in bucket


class AnalysisContext:
    """A parsed program with its resolved scopes."""

    def __init__(self, source: bytes, program: Node, scope_manager: ScopeManager,
                 options: Optional[AnalysisOptions] = None,
                 file_path: Optional[Path] = None):
        self.source = source
        self.program = program
        self.scope_manager = scope_manager
        self.options = options or AnalysisOptions()
        self.file_path = file_path
        self.cache = ResultCache()

    @property
    def global_scope(self) -> Scope:
        return self.scope_manager.global_scope or self.scope_manager.scopes[0]

    @classmethod
    def from_source(cls, source_code: Union[str, bytes], language: str = 'javascript',
                    options: Optional[AnalysisOptions] = None,
                    file_path: Optional[Path] = None) -> 'AnalysisContext':
        """Parse source text and resolve its scopes.

        Args:
            source_code: Program text
            language: 'javascript', 'typescript', 'tsx' or 'vue'
            options: Analysis options (defaults to AnalysisOptions())
            file_path: Where the source came from, for display only

        Returns:
            AnalysisContext

        Raises:
            ValueError: If language is not supported
        """
        parser = LanguageParser(language)
        return cls._from_tree(parser, parser.parse_source(source_code), source_code,
                              options, file_path)

    @classmethod
    def _from_tree(cls, parser: LanguageParser, tree: Tree, source_code: Union[str, bytes],
                   options: Optional[AnalysisOptions],
                   file_path: Optional[Path]) -> 'AnalysisContext':
        options = options or AnalysisOptions()
        source_bytes, _ = parser.prepare_source(source_code)
        program = build_estree(tree, source_bytes, options.source_type)
        scope_manager = analyze_scope(program, options.source_type, options.globals)
        return cls(source_bytes, program, scope_manager, options, file_path)

    @classmethod
    def from_file(cls, file_path: Union[str, Path], language: Optional[str] = None,
                  options: Optional[AnalysisOptions] = None) -> 'AnalysisContext':
        """Parse a source file, picking the grammar from its extension.

        Args:
            file_path: Path to a .js/.ts/.tsx/.vue (etc.) file
            language: Override the extension-based grammar choice
            options: Analysis options

        Returns:
            AnalysisContext

        Raises:
            ValueError: If the extension (or language) is not supported
            FileNotFoundError: If the file is missing or unreadable
        """
        file_path = Path(file_path)
        if language is None:
            parser = LanguageParser.from_file_extension(file_path)
            if parser is None:
                raise ValueError(f"Unsupported file type: {file_path.suffix or file_path.name}")
        else:
            parser = LanguageParser(language)

        tree = parser.parse_file(file_path)
        if tree is None:
            raise FileNotFoundError(f"Cannot read {file_path}")
        return cls._from_tree(parser, tree, file_path.read_bytes(), options, file_path)
