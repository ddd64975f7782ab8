"""Scaleway provider configuration.

Immutable configuration dataclass for the Scaleway compute API.
"""

from __future__ import annotations

import os
import typing
from dataclasses import dataclass

from skyform.core.exceptions import ConfigurationError

if typing.TYPE_CHECKING:
    from skyform.providers.scaleway.client import ScalewayClient

DEFAULT_API_URL = "https://cp-par1.scaleway.com"


@dataclass(frozen=True, slots=True)
class Scaleway:
    """Scaleway compute API configuration.

    Example:
        >>> from skyform.providers.scaleway import Scaleway
        >>> config = Scaleway(organization="...")

    Args:
        token: API token. Falls back to SCALEWAY_TOKEN env var.
        organization: Organization id added to creation requests.
            Falls back to SCALEWAY_ORGANIZATION env var.
        api_url: Compute API endpoint for the target zone.
        request_timeout: Per-request timeout in seconds. Default: 30.
        stop_timeout: Seconds to wait for a server to stop before deletion.
            Default: 300.
        poll_interval: Seconds between state polls while stopping. Default: 5.
    """

    token: str | None = None
    organization: str | None = None
    api_url: str = DEFAULT_API_URL
    request_timeout: float = 30.0
    stop_timeout: float = 300.0
    poll_interval: float = 5.0

    @property
    def type(self) -> str: return "scaleway"

    def resolved_token(self) -> str:
        token = self.token or os.environ.get("SCALEWAY_TOKEN")
        if not token:
            raise ConfigurationError(
                "Scaleway token not found. Set SCALEWAY_TOKEN environment variable."
            )
        return token

    def resolved_organization(self) -> str | None:
        return self.organization or os.environ.get("SCALEWAY_ORGANIZATION")

    def create_client(self) -> ScalewayClient:
        from skyform.providers.scaleway.client import ScalewayClient
        return ScalewayClient(self)
