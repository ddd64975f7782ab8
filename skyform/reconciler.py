"""Instance reconciler: maps a declared server onto the remote API.

Four operations, called by an orchestrator that owns timing and
persistence. Each takes the state it needs and returns the new state (or
the patch it sent); nothing is stored here.

    absent -> define -> running -> update* -> delete -> absent

A server removed out-of-band is detected by ``observe``, which clears the id.
"""

from __future__ import annotations

from dataclasses import replace

from loguru import logger

from skyform.api import InstanceAPI
from skyform.core.exceptions import (
    ConfigurationError,
    CreateServerError,
    ImmutableFieldError,
    NotFoundError,
    ObserveError,
    PowerOnError,
    ReadinessError,
    ReadinessTimeoutError,
    RemoteAPIError,
)
from skyform.schema import force_new_fields
from skyform.types import (
    ComputedState,
    ConnectionInfo,
    DeclaredConfig,
    ResourceState,
    ServerDefinition,
    ServerPatch,
    ServerResponse,
    VolumeRef,
)
from skyform.wait import ServerNotReadyError, wait_until_ready

# =============================================================================
# Pure translation
# =============================================================================


def build_definition(config: DeclaredConfig) -> ServerDefinition:
    """Creation request for a declared server. Undeclared optionals are omitted."""
    definition: ServerDefinition = {
        "name": config.name,
        "image": config.image,
        "volumes": dict(config.volumes),
    }
    if config.dynamic_ip_required is not None:
        definition["dynamic_ip_required"] = config.dynamic_ip_required
    if config.bootscript is not None:
        definition["bootscript"] = config.bootscript
    if config.tags is not None:
        definition["tags"] = list(config.tags)
    return definition


def translate_volumes(volumes: dict[str, str]) -> dict[str, VolumeRef]:
    return {slot: {"id": volume_id} for slot, volume_id in volumes.items()}


def build_patch(old: DeclaredConfig, new: DeclaredConfig) -> ServerPatch:
    """Sparse patch holding only the in-place fields that changed.

    Raises:
        ImmutableFieldError: If a field that forces replacement differs.
    """
    immutable = tuple(f for f in force_new_fields() if getattr(old, f) != getattr(new, f))
    if immutable:
        raise ImmutableFieldError(immutable)

    patch: ServerPatch = {}
    if old.name != new.name:
        patch["name"] = new.name
    if dict(old.volumes) != dict(new.volumes):
        patch["volumes"] = translate_volumes(dict(new.volumes))
    return patch


def project_server(server: ServerResponse) -> ComputedState:
    public_ip = server.get("public_ip") or {}
    return ComputedState(
        ipv4_address=public_ip.get("address") or "",
        ipv4_address_private=server.get("private_ip") or "",
        state=server.get("state") or "",
        state_detail=server.get("state_detail") or "",
    )


def connection_info(computed: ComputedState) -> ConnectionInfo:
    return ConnectionInfo(host=computed.ipv4_address)


# =============================================================================
# Reconciler
# =============================================================================


class InstanceReconciler:
    """Create, read, update and delete one server through an InstanceAPI.

    Args:
        api: Remote API client.
        ready_timeout: Seconds to wait for a new server to report running.
        poll_interval: Seconds between readiness polls.
    """

    def __init__(
        self,
        api: InstanceAPI,
        *,
        ready_timeout: float = 300.0,
        poll_interval: float = 5.0,
    ) -> None:
        self._api = api
        self._ready_timeout = ready_timeout
        self._poll_interval = poll_interval
        self._log = logger.bind(component="reconciler")

    async def define(self, config: DeclaredConfig) -> ResourceState:
        """Create the server, power it on, wait for it and read it back.

        Once the create call succeeds, every failure is a DefineError
        carrying the new id so the caller can record it.
        """
        if not config.name or not config.image:
            raise ConfigurationError("Server name and image must not be empty")

        try:
            server_id = await self._api.create_server(build_definition(config))
        except RemoteAPIError as e:
            raise CreateServerError(config.image) from e

        partial = ResourceState(config=config, id=server_id)
        log = self._log.bind(server_id=server_id)
        log.info("Server created from image {image}", image=config.image)

        try:
            await self._api.set_power_state(server_id, "poweron")
        except Exception as e:
            raise PowerOnError(partial, "Error powering on server") from e

        try:
            await wait_until_ready(
                self._api,
                server_id,
                timeout=self._ready_timeout,
                interval=self._poll_interval,
            )
        except ServerNotReadyError as e:
            raise ReadinessTimeoutError(partial, str(e)) from e
        except Exception as e:
            raise ReadinessError(partial, "Error waiting for server to become ready") from e

        log.info("Server is running")

        try:
            state = await self.observe(partial)
        except Exception as e:
            raise ObserveError(partial, "Error reading created server") from e
        if not state.exists:
            raise ObserveError(partial, "Created server not found")
        return state

    async def observe(self, state: ResourceState) -> ResourceState:
        """Refresh computed fields from the remote server.

        A server the API reports as missing yields a state without id.
        """
        if state.id is None:
            return state

        try:
            server = await self._api.get_server(state.id)
        except NotFoundError:
            self._log.info("Server {server_id} is gone, clearing it", server_id=state.id)
            return state.cleared()

        computed = project_server(server)
        return replace(state, computed=computed, connection=connection_info(computed))

    async def update(self, state: ResourceState, new_config: DeclaredConfig) -> ServerPatch:
        """Send the sparse patch between the recorded and the new config.

        Computed fields are not refreshed; call ``observe`` afterwards.
        """
        if state.id is None:
            raise ConfigurationError("Cannot update a server that does not exist")

        patch = build_patch(state.config, new_config)
        self._log.debug(
            "Patching server {server_id}: {fields}",
            server_id=state.id, fields=sorted(patch) or "nothing",
        )
        await self._api.patch_server(state.id, patch)
        return patch

    async def delete(self, state: ResourceState) -> None:
        """Safely delete the server. A missing server is an error here."""
        if state.id is None:
            raise ConfigurationError("Cannot delete a server that does not exist")

        self._log.info("Deleting server {server_id}", server_id=state.id)
        await self._api.delete_server_safely(state.id)
