"""Tree-sitter parser for JavaScript, TypeScript and Vue single-file components."""
import re
from pathlib import Path
from typing import Optional, Tuple, Union
from tree_sitter import Language, Parser, Tree
import tree_sitter_javascript as tsjavascript
import tree_sitter_typescript as tstypescript


# <script ...>...</script> blocks inside a .vue file
SCRIPT_BLOCK_RE = re.compile(rb'<script\b([^>]*)>(.*?)</script\s*>', re.DOTALL | re.IGNORECASE)
LANG_ATTR_RE = re.compile(rb'\blang\s*=\s*["\']?([\w-]+)')
SETUP_ATTR_RE = re.compile(rb'\bsetup\b')


def extract_vue_script(source_code: bytes) -> Tuple[bytes, str]:
    """Mask everything but the script blocks of a Vue SFC.

    A plain `<script>` and a `<script setup>` block are kept together, so
    imports made in one are visible from the other. Every byte outside them is
    replaced by a space (newlines are kept), so byte offsets and line numbers
    of the parsed script match the original file exactly.

    Args:
        source_code: Raw bytes of the .vue file

    Returns:
        (masked source, language) where language is 'javascript', 'typescript'
        or 'tsx'. A file without a script block yields an all-blank source.
    """
    blocks = list(SCRIPT_BLOCK_RE.finditer(source_code))
    if not blocks:
        return re.sub(rb'[^\n]', b' ', source_code), 'javascript'

    # <script setup> decides the grammar; both blocks must share one anyway
    chosen = next((m for m in blocks if SETUP_ATTR_RE.search(m.group(1))), blocks[0])

    lang_match = LANG_ATTR_RE.search(chosen.group(1))
    lang = lang_match.group(1).decode('ascii').lower() if lang_match else 'js'
    language = {'ts': 'typescript', 'tsx': 'tsx'}.get(lang, 'javascript')

    parts = []
    position = 0
    for block in blocks:
        start, end = block.span(2)
        parts.append(re.sub(rb'[^\n]', b' ', source_code[position:start]))
        parts.append(source_code[start:end])
        position = end
    parts.append(re.sub(rb'[^\n]', b' ', source_code[position:]))
    return b''.join(parts), language


class LanguageParser:
    """Multi-language parser using tree-sitter v0.22+ API."""

    SUPPORTED_LANGUAGES = {
        '.js': 'javascript',
        '.jsx': 'javascript',
        '.mjs': 'javascript',
        '.cjs': 'javascript',
        '.ts': 'typescript',
        '.mts': 'typescript',
        '.cts': 'typescript',
        '.tsx': 'tsx',
        '.vue': 'vue',
    }

    def __init__(self, language: str):
        """Initialize parser for given language (javascript, typescript, tsx, vue).

        Args:
            language: One of 'javascript', 'typescript', 'tsx', 'vue'

        Raises:
            ValueError: If language is not supported
        """
        self.language = language
        self.parser = self._create_parser(language)

    @staticmethod
    def _create_parser(language: str) -> Parser:
        """Factory method using the tree-sitter v0.22+ API.

        CRITICAL: The grammar packages hand out PyCapsules that must be wrapped
        with Language() before they reach Parser().

        Raises:
            ValueError: If language is not supported
        """
        if language in ('javascript', 'vue'):
            # .vue files start out as JavaScript; a lang="ts" block re-parses
            lang = Language(tsjavascript.language())
        elif language == 'typescript':
            lang = Language(tstypescript.language_typescript())
        elif language == 'tsx':
            lang = Language(tstypescript.language_tsx())
        else:
            raise ValueError(f"Unsupported language: {language}")

        return Parser(lang)

    def parse_source(self, source_code: Union[str, bytes]) -> Tree:
        """Parse in-memory source code.

        For Vue files the script block is extracted first; use
        prepare_source() to get the exact bytes the tree was built from.

        Args:
            source_code: Source text (str is encoded as UTF-8)

        Returns:
            Parsed Tree object
        """
        source_bytes, language = self.prepare_source(source_code)
        if language != self.language and self.language == 'vue':
            return self._create_parser(language).parse(source_bytes)
        return self.parser.parse(source_bytes)

    def prepare_source(self, source_code: Union[str, bytes]) -> Tuple[bytes, str]:
        """Return (bytes to parse, effective grammar) for the given source.

        Args:
            source_code: Source text

        Returns:
            Tuple of the bytes handed to tree-sitter and the grammar name used
        """
        if isinstance(source_code, str):
            source_code = source_code.encode('utf-8')
        if self.language == 'vue':
            return extract_vue_script(source_code)
        return source_code, self.language

    def parse_file(self, file_path: Union[str, Path]) -> Optional[Tree]:
        """Parse file and return tree-sitter Tree.

        Args:
            file_path: Path to source file to parse

        Returns:
            Parsed Tree object, or None if the file is missing or unreadable
        """
        file_path = Path(file_path)

        if not file_path.exists():
            return None

        try:
            with open(file_path, 'rb') as f:
                source_code = f.read()
        except (IOError, OSError):
            return None
        return self.parse_source(source_code)

    @classmethod
    def from_file_extension(cls, file_path: Union[str, Path]) -> Optional['LanguageParser']:
        """Create parser based on file extension.

        Args:
            file_path: Path to determine language from

        Returns:
            LanguageParser instance, or None if extension not supported
        """
        extension = Path(file_path).suffix.lower()

        language = cls.SUPPORTED_LANGUAGES.get(extension)
        if language:
            return cls(language)
        return None
