"""Custom exception hierarchy for skyform.

All skyform-specific exceptions inherit from SkyformError, enabling
users to catch all skyform exceptions with a single except clause.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from skyform.types import ResourceState


class SkyformError(Exception):
    """Base exception for all skyform errors."""


class ConfigurationError(SkyformError):
    """Raised for invalid configuration or missing required settings."""


class ImmutableFieldError(ConfigurationError):
    """Raised when an in-place update touches a field that forces replacement."""

    def __init__(self, fields: tuple[str, ...]) -> None:
        self.fields = fields
        super().__init__(
            f"Fields {', '.join(fields)} cannot be updated in place; the server must be replaced"
        )


class RemoteAPIError(SkyformError):
    """Raised when the remote API answers with an error or cannot be reached."""

    def __init__(self, status: int, body: str = "") -> None:
        self.status = status
        self.body = body
        super().__init__(f"API error {status}: {body}")


class NotFoundError(RemoteAPIError):
    """Raised when the remote API reports the resource does not exist."""

    def __init__(self, body: str = "") -> None:
        super().__init__(404, body)


class CreateServerError(SkyformError):
    """Raised when the creation request fails. No server id was recorded."""

    def __init__(self, image: str) -> None:
        self.image = image
        super().__init__(f"Error creating server with image {image}")


class DefineError(SkyformError):
    """Raised when define fails after the server was created.

    The server exists remotely: ``resource_id`` and ``state`` carry what
    must be persisted so the caller can retry or destroy it.
    """

    def __init__(self, state: ResourceState, message: str) -> None:
        self.state = state
        self.resource_id = state.id
        super().__init__(f"{message} (server {state.id})")


class PowerOnError(DefineError):
    """Raised when the power-on action for a new server fails."""


class ReadinessError(DefineError):
    """Raised when polling for readiness fails."""


class ReadinessTimeoutError(ReadinessError):
    """Raised when the server does not become ready within the timeout."""


class ObserveError(DefineError):
    """Raised when the post-creation read of a new server fails."""
