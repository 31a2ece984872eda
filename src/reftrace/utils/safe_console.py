"""Rich Console that degrades gracefully on non-UTF-8 terminals."""
from typing import Any
from rich.console import Console
from .logger import sanitize_for_terminal, is_utf8_capable


class SafeConsole(Console):
    """Console that swaps Unicode glyphs for ASCII when the terminal needs it.

    Only plain string arguments are rewritten; renderables such as tables pass
    through untouched (rich handles their box characters itself).
    """

    def __init__(self, *args, **kwargs):
        self._needs_sanitization = not is_utf8_capable()
        super().__init__(*args, **kwargs)

    def print(self, *objects: Any, **kwargs) -> None:
        """Print with automatic glyph sanitization.

        Args:
            *objects: Objects to print (same as rich Console.print)
            **kwargs: Keyword arguments (same as rich Console.print)
        """
        if self._needs_sanitization:
            objects = tuple(
                sanitize_for_terminal(obj) if isinstance(obj, str) else obj
                for obj in objects
            )
        super().print(*objects, **kwargs)
