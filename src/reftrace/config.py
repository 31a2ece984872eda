"""Configuration management for reftrace.

Loads environment variables and provides centralized config access.
"""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple
from dotenv import load_dotenv

__version__ = "0.1.0"

SOURCE_TYPES = ('module', 'script')
TRACE_MODES = ('esm', 'global', 'all')


@dataclass(frozen=True)
class AnalysisOptions:
    """Settings consumed by one analysis run."""
    source_type: str = 'module'
    globals: Tuple[str, ...] = ()
    trace_mode: str = 'esm'
    library_modules: Tuple[str, ...] = ('vue', '@vue/composition-api')
    global_objects: Tuple[str, ...] = ('Vue',)


def _split_list(value: Optional[str]) -> Tuple[str, ...]:
    if not value:
        return ()
    return tuple(item.strip() for item in value.split(',') if item.strip())


class Config:
    """Configuration loader with environment variable support."""

    def __init__(self, env_path: Optional[Path] = None):
        """Initialize config by loading .env file.

        Args:
            env_path: .env file to load (defaults to ./.env in the working directory)

        Raises:
            ValueError: If a variable holds an unsupported value
        """
        load_dotenv(env_path or Path.cwd() / ".env")
        self._validate()

    def _validate(self):
        """Validate enumerated settings.

        Raises:
            ValueError: If REFTRACE_SOURCE_TYPE or REFTRACE_TRACE_MODE is invalid
        """
        if self.source_type not in SOURCE_TYPES:
            raise ValueError(
                f"REFTRACE_SOURCE_TYPE must be one of {', '.join(SOURCE_TYPES)}, "
                f"got '{self.source_type}'"
            )
        if self.trace_mode not in TRACE_MODES:
            raise ValueError(
                f"REFTRACE_TRACE_MODE must be one of {', '.join(TRACE_MODES)}, "
                f"got '{self.trace_mode}'"
            )

    @property
    def source_type(self) -> str:
        """Scope analysis mode: 'module' (default) or 'script'."""
        return os.getenv("REFTRACE_SOURCE_TYPE", "module").strip().lower()

    @property
    def globals(self) -> Tuple[str, ...]:
        """Names declared as globals, e.g. `$ref,$$` from an eslint globals list."""
        return _split_list(os.getenv("REFTRACE_GLOBALS"))

    @property
    def trace_mode(self) -> str:
        """How factory calls are found.

        Returns:
            'esm' (imports only), 'global' (library globals only) or 'all'
        """
        return os.getenv("REFTRACE_TRACE_MODE", "esm").strip().lower()

    @property
    def library_modules(self) -> Tuple[str, ...]:
        return _split_list(os.getenv("REFTRACE_LIBRARY_MODULES", "vue,@vue/composition-api"))

    @property
    def global_objects(self) -> Tuple[str, ...]:
        return _split_list(os.getenv("REFTRACE_GLOBAL_OBJECTS", "Vue"))

    def to_options(self) -> AnalysisOptions:
        """Snapshot the current settings.

        Returns:
            Immutable AnalysisOptions
        """
        return AnalysisOptions(
            source_type=self.source_type,
            globals=self.globals,
            trace_mode=self.trace_mode,
            library_modules=self.library_modules,
            global_objects=self.global_objects,
        )


# Singleton instance
_config = None


def get_config() -> Config:
    """Get or create singleton Config instance.

    Returns:
        Config instance
    """
    global _config
    if _config is None:
        _config = Config()
    return _config
