from __future__ import annotations

from typing import Any

import pytest

from skyform.api import PowerAction
from skyform.core.exceptions import NotFoundError
from skyform.reconciler import InstanceReconciler
from skyform.types import DeclaredConfig, ServerDefinition, ServerPatch, ServerResponse


class FakeInstanceAPI:
    """In-memory InstanceAPI.

    Servers boot to ``running`` after ``ready_after`` reads once powered on.
    ``failures`` maps a method name to the exception it raises.
    """

    def __init__(
        self,
        *,
        public_ip: str = "1.2.3.4",
        private_ip: str = "10.0.0.5",
        ready_after: int = 1,
        never_ready: bool = False,
    ) -> None:
        self.servers: dict[str, ServerResponse] = {}
        self.calls: list[tuple[str, Any]] = []
        self.failures: dict[str, Exception] = {}
        self._public_ip = public_ip
        self._private_ip = private_ip
        self._ready_after = ready_after
        self._never_ready = never_ready
        self._reads: dict[str, int] = {}
        self._next_id = 1

    def _maybe_fail(self, method: str) -> None:
        if exc := self.failures.get(method):
            raise exc

    def calls_to(self, method: str) -> list[Any]:
        return [args for name, args in self.calls if name == method]

    async def create_server(self, definition: ServerDefinition) -> str:
        self.calls.append(("create_server", definition))
        self._maybe_fail("create_server")
        server_id = f"srv-{self._next_id}"
        self._next_id += 1
        self.servers[server_id] = {
            "id": server_id,
            "name": definition["name"],
            "state": "stopped",
            "state_detail": "",
            "public_ip": None,
            "private_ip": None,
        }
        return server_id

    async def set_power_state(self, server_id: str, action: PowerAction) -> None:
        self.calls.append(("set_power_state", (server_id, action)))
        self._maybe_fail("set_power_state")
        if server_id not in self.servers:
            raise NotFoundError(f"server {server_id} not found")
        self.servers[server_id]["state"] = "starting" if action == "poweron" else "stopped"

    async def get_server(self, server_id: str) -> ServerResponse:
        self.calls.append(("get_server", server_id))
        self._maybe_fail("get_server")
        if server_id not in self.servers:
            raise NotFoundError(f"server {server_id} not found")
        server = self.servers[server_id]
        if server["state"] == "starting" and not self._never_ready:
            self._reads[server_id] = self._reads.get(server_id, 0) + 1
            if self._reads[server_id] >= self._ready_after:
                server["state"] = "running"
                server["public_ip"] = {"address": self._public_ip}
                server["private_ip"] = self._private_ip
        return dict(server)  # type: ignore[return-value]

    async def patch_server(self, server_id: str, patch: ServerPatch) -> None:
        self.calls.append(("patch_server", (server_id, patch)))
        self._maybe_fail("patch_server")
        if server_id not in self.servers:
            raise NotFoundError(f"server {server_id} not found")
        if "name" in patch:
            self.servers[server_id]["name"] = patch["name"]

    async def delete_server_safely(self, server_id: str) -> None:
        self.calls.append(("delete_server_safely", server_id))
        self._maybe_fail("delete_server_safely")
        if self.servers.pop(server_id, None) is None:
            raise NotFoundError(f"server {server_id} not found")


@pytest.fixture
def make_api() -> type[FakeInstanceAPI]:
    return FakeInstanceAPI


@pytest.fixture
def api() -> FakeInstanceAPI:
    return FakeInstanceAPI()


@pytest.fixture
def reconciler(api: FakeInstanceAPI) -> InstanceReconciler:
    return InstanceReconciler(api, ready_timeout=1.0, poll_interval=0.01)


@pytest.fixture
def web1() -> DeclaredConfig:
    return DeclaredConfig(name="web1", image="img-123", volumes={"0": "vol-abc"})

