"""
Domain-specific exception hierarchy for the OpenVoice gateway.

All custom exceptions inherit from GatewayException so the API layer can map
each family onto a single HTTP status.
"""

from typing import Any


class GatewayException(Exception):
    """
    Base exception for all gateway errors.

    Attributes:
        message: Human-readable error message (what callers see in the JSON body)
        context: Additional context for debugging
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        self.message = message
        self.context = context or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


# ============================================================================
# Upstream Exceptions
# ============================================================================

class UpstreamError(GatewayException):
    """Upstream synthesis service could not be reached or aborted mid-response."""

    def __init__(self, url: str, original_error: Exception):
        detail = str(original_error) or type(original_error).__name__
        super().__init__(
            f"Upstream request to {url} failed: {detail}",
            context={"url": url, "original": repr(original_error)}
        )
        self.url = url
        self.original_error = original_error
        self.detail = detail


# ============================================================================
# Filesystem Exceptions
# ============================================================================

class DirectoryListingError(GatewayException):
    """Root directory could not be read."""

    def __init__(self, directory: str, reason: str):
        super().__init__(
            f"Failed to read {directory}: {reason}",
            context={"directory": directory}
        )
        self.directory = directory


class FileAccessError(GatewayException):
    """Base class for file retrieval errors surfaced as not-found."""
    pass


class PathTraversalError(FileAccessError):
    """Requested name resolves outside its root directory."""

    def __init__(self, name: str):
        super().__init__("Invalid path", context={"name": name})
        self.name = name


class FileNotFoundInRootError(FileAccessError):
    """Requested name does not refer to a regular file inside the root."""

    def __init__(self, name: str):
        super().__init__(f"File not found: {name}", context={"name": name})
        self.name = name
