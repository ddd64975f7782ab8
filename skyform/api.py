"""Remote API contract consumed by the reconciler."""

from __future__ import annotations

from typing import Literal, Protocol, TypeAlias, runtime_checkable

from skyform.types import ServerDefinition, ServerPatch, ServerResponse

PowerAction: TypeAlias = Literal["poweron", "poweroff", "reboot"]


@runtime_checkable
class InstanceAPI(Protocol):
    """What the reconciler needs from a compute API client.

    Implementations raise ``NotFoundError`` when a server does not exist
    and ``RemoteAPIError`` for any other failed request. Retry and backoff
    on throttling belong to the implementation.
    """

    async def create_server(self, definition: ServerDefinition) -> str: ...

    async def set_power_state(self, server_id: str, action: PowerAction) -> None: ...

    async def get_server(self, server_id: str) -> ServerResponse: ...

    async def patch_server(self, server_id: str, patch: ServerPatch) -> None: ...

    async def delete_server_safely(self, server_id: str) -> None: ...
