"""
Plugin error taxonomy.

Only LoaderUnavailableError ever escapes a load batch. Everything else is
caught per plugin and reported through that plugin's LoadResult, or (for the
two warnings) logged and skipped.
"""

from typing import Any


class PluginHostError(Exception):
    """Base exception for plugin host errors."""

    pass


class EntryPointNotFoundError(PluginHostError):
    """Raised when a plugin path resolves to no loadable entry file."""

    pass


class DependencyLinkWarning(PluginHostError):
    """Raised for a single failed symlink; always caught by the linker."""

    pass


class ImportRewriteWarning(PluginHostError):
    """Raised when a source file cannot be read or rewritten; always caught."""

    pass


class PluginLoadError(PluginHostError):
    """
    Raised when a plugin fails to load.

    Attributes:
        diagnostics: Module resolution diagnostics, attached when the failure
            looks like a missing module
    """

    def __init__(self, message: str, diagnostics: dict[str, Any] | None = None):
        super().__init__(message)
        self.diagnostics = diagnostics

    def __str__(self) -> str:
        message = super().__str__()
        if not self.diagnostics:
            return message
        details = ", ".join(f"{k}={v}" for k, v in self.diagnostics.items())
        return f"{message} [diagnostics: {details}]"


class LoaderUnavailableError(PluginHostError):
    """
    Raised when the plugin loader capability cannot be acquired.

    Attributes:
        diagnostics: Module resolution diagnostics at the time of failure
    """

    def __init__(self, message: str, diagnostics: dict[str, Any] | None = None):
        super().__init__(message)
        self.diagnostics = diagnostics


class PluginDownloadError(PluginHostError):
    """Raised when a plugin archive cannot be fetched or extracted."""

    pass
