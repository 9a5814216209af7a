"""Exception hierarchy shared by the client, discovery and check modules."""

from __future__ import annotations


class ExtensionError(Exception):
    """Base class for all errors raised by this package."""


class ConfigError(ExtensionError):
    """Invalid settings, target attributes or check parameters."""


class TransportError(ExtensionError):
    """A backend call failed: network, non-success status or undecodable body."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class PaginationError(TransportError):
    """The paged collection never reached the total announced by the first page."""
