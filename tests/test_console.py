"""Tests for terminal-safe output."""
import io

from reftrace.utils import logger
from reftrace.utils.safe_console import SafeConsole


def test_sanitize_passthrough_on_utf8(monkeypatch):
    monkeypatch.setattr(logger, 'is_utf8_capable', lambda: True)
    assert logger.sanitize_for_terminal("a → b ✓") == "a → b ✓"


def test_sanitize_replaces_glyphs(monkeypatch):
    monkeypatch.setattr(logger, 'is_utf8_capable', lambda: False)
    assert logger.sanitize_for_terminal("a → b ✓") == "a -> b [OK]"


def test_safe_console_sanitizes_strings(monkeypatch):
    monkeypatch.setattr('reftrace.utils.safe_console.is_utf8_capable', lambda: False)
    monkeypatch.setattr(logger, 'is_utf8_capable', lambda: False)
    buffer = io.StringIO()
    console = SafeConsole(file=buffer, width=80)
    console.print("ref → value")
    assert buffer.getvalue().strip() == "ref -> value"
