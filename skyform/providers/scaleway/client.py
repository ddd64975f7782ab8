"""Async HTTP client for the Scaleway compute API."""

from __future__ import annotations

from typing import Any

from loguru import logger

from skyform.api import PowerAction
from skyform.core.exceptions import NotFoundError, RemoteAPIError
from skyform.infra.http import HttpClient, HttpError, TokenAuth
from skyform.infra.retry import on_status_code, retry
from skyform.types import ServerDefinition, ServerPatch, ServerResponse
from skyform.wait import wait_for_state

from .config import Scaleway

# POST /servers is not idempotent: only an explicit throttling answer is repeated.
_CREATE_RETRYABLE = on_status_code(429)
_IDEMPOTENT_RETRYABLE = on_status_code(0, 429, 503)


def is_stopped(server: ServerResponse) -> bool:
    return server.get("state") == "stopped"


class ScalewayClient:
    """Async HTTP client for the Scaleway compute API.

    Implements ``InstanceAPI``. Returns TypedDicts directly from API responses.

    Example:
        async with Scaleway(organization="...").create_client() as client:
            server_id = await client.create_server({...})
    """

    def __init__(self, config: Scaleway | None = None) -> None:
        self.config = config or Scaleway()
        self._http = HttpClient(
            self.config.api_url,
            TokenAuth(self.config.resolved_token()),
            timeout=self.config.request_timeout,
            default_headers={"Content-Type": "application/json"},
        )
        self._log = logger.bind(provider="scaleway", component="client")

    async def __aenter__(self) -> ScalewayClient:
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self._http.close()

    async def _request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
    ) -> Any:
        try:
            return await self._http.request(method, path, json=json)
        except HttpError as e:
            if e.status == 404:
                raise NotFoundError(e.body) from e
            self._log.warning(
                "API error {method} {path}: {status}",
                method=method, path=path, status=e.status,
            )
            raise RemoteAPIError(e.status, e.body) from e

    @retry(on=_IDEMPOTENT_RETRYABLE, max_attempts=5, base_delay=1.0)
    async def _idempotent_request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
    ) -> Any:
        return await self._request(method, path, json)

    @retry(on=_CREATE_RETRYABLE, max_attempts=5, base_delay=1.0)
    async def _create_request(self, body: dict[str, Any]) -> Any:
        return await self._request("POST", "/servers", json=body)

    # =========================================================================
    # Server Management
    # =========================================================================

    async def create_server(self, definition: ServerDefinition) -> str:
        """Create a server and return its id. The server is left stopped."""
        body: dict[str, Any] = dict(definition)
        organization = self.config.resolved_organization()
        if organization and "organization" not in body:
            body["organization"] = organization

        result = await self._create_request(body)
        if not result or "server" not in result:
            raise RemoteAPIError(0, "Failed to create server: empty response")
        server_id: str = result["server"]["id"]
        self._log.debug("Created server {server_id}", server_id=server_id)
        return server_id

    async def set_power_state(self, server_id: str, action: PowerAction) -> None:
        await self._idempotent_request("POST", f"/servers/{server_id}/action", json={"action": action})

    async def get_server(self, server_id: str) -> ServerResponse:
        result = await self._idempotent_request("GET", f"/servers/{server_id}")
        if not result or "server" not in result:
            raise RemoteAPIError(0, f"Malformed response for server {server_id}")
        return result["server"]

    async def patch_server(self, server_id: str, patch: ServerPatch) -> None:
        await self._idempotent_request("PATCH", f"/servers/{server_id}", json=dict(patch))

    async def delete_server(self, server_id: str) -> None:
        await self._idempotent_request("DELETE", f"/servers/{server_id}")

    async def delete_server_safely(self, server_id: str) -> None:
        """Stop the server if needed, then delete it.

        Attached volumes are detached by the API and kept: they are
        existing volumes owned by the caller.
        """
        server = await self.get_server(server_id)
        if not is_stopped(server):
            self._log.debug(
                "Stopping server {server_id} (state: {state})",
                server_id=server_id, state=server.get("state"),
            )
            if server.get("state") != "stopping":
                await self.set_power_state(server_id, "poweroff")
            await wait_for_state(
                self,
                server_id,
                is_stopped,
                timeout=self.config.stop_timeout,
                interval=self.config.poll_interval,
            )
        await self.delete_server(server_id)
        self._log.debug("Deleted server {server_id}", server_id=server_id)
