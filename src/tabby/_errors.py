"""Tabby error hierarchy.

All tabby-specific errors inherit from TabbyError for easy catching.
"""


class TabbyError(Exception):
    """Base error for all tabby operations."""


class ConfigError(TabbyError):
    """Invalid or missing configuration (project file, output dir, targets)."""


class DataError(TabbyError):
    """Error loading the data directory or its cache file."""


class RenderError(TabbyError):
    """Error rendering a single file."""


class HookError(TabbyError):
    """A hook returned a value that breaks its type contract."""


class ExtensionError(TabbyError):
    """An extension script could not be loaded or is not callable."""
