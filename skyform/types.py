"""Resource records and remote API shapes.

Declared configuration, computed state and the resource state handed back
to the caller are frozen dataclasses. Remote request and response bodies
are TypedDicts - no conversion layer beyond the projection in the reconciler.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, NotRequired, TypedDict

# =============================================================================
# Declared / Computed
# =============================================================================


@dataclass(frozen=True, slots=True)
class DeclaredConfig:
    """Desired-state fields of a server.

    Optional fields use None for "not declared", which is distinct from
    False, "" or an empty tuple: only declared fields are sent on create.

    Args:
        name: Server name. Mutable in place.
        image: Image reference. Changing it forces replacement.
        volumes: Attachment slot -> existing volume id. Mutable in place.
        dynamic_ip_required: Request a dynamic public IP. Set once.
        bootscript: Bootscript reference. Set once.
        tags: Server tags. Set once.
    """

    name: str
    image: str
    volumes: Mapping[str, str] = field(default_factory=dict)
    dynamic_ip_required: bool | None = None
    bootscript: str | None = None
    tags: tuple[str, ...] | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "volumes", MappingProxyType(dict(self.volumes)))
        if self.tags is not None:
            object.__setattr__(self, "tags", tuple(self.tags))

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "image": self.image,
            "volumes": dict(self.volumes),
        }
        if self.dynamic_ip_required is not None:
            data["dynamic_ip_required"] = self.dynamic_ip_required
        if self.bootscript is not None:
            data["bootscript"] = self.bootscript
        if self.tags is not None:
            data["tags"] = list(self.tags)
        return data


@dataclass(frozen=True, slots=True)
class ComputedState:
    """Fields only the remote side produces. Replaced wholesale on every read."""

    ipv4_address: str = ""
    ipv4_address_private: str = ""
    state: str = ""
    state_detail: str = ""


@dataclass(frozen=True, slots=True)
class ConnectionInfo:
    """How downstream tooling reaches the server."""

    host: str
    type: str = "ssh"

    def as_dict(self) -> dict[str, str]:
        return {"type": self.type, "host": self.host}


@dataclass(frozen=True, slots=True)
class ResourceState:
    """Everything the caller persists for one declared server.

    ``id`` is None until the server is created and again once it is gone.
    """

    config: DeclaredConfig
    id: str | None = None
    computed: ComputedState = field(default_factory=ComputedState)
    connection: ConnectionInfo | None = None

    @property
    def exists(self) -> bool:
        return self.id is not None

    def cleared(self) -> ResourceState:
        return replace(self, id=None, computed=ComputedState(), connection=None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "config": self.config.to_dict(),
            "computed": {
                "ipv4_address": self.computed.ipv4_address,
                "ipv4_address_private": self.computed.ipv4_address_private,
                "state": self.computed.state,
                "state_detail": self.computed.state_detail,
            },
            "connection": self.connection.as_dict() if self.connection else None,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ResourceState:
        from skyform.schema import parse_config

        conn = data.get("connection")
        return cls(
            config=parse_config(data["config"]),
            id=data.get("id"),
            computed=ComputedState(**data.get("computed", {})),
            connection=ConnectionInfo(host=conn["host"], type=conn.get("type", "ssh")) if conn else None,
        )


# =============================================================================
# Remote shapes
# =============================================================================


class VolumeRef(TypedDict):
    """Volume attachment as the API expects it in a patch."""

    id: str


class ServerDefinition(TypedDict):
    """Body of a server creation request."""

    name: str
    image: str
    volumes: dict[str, str]
    dynamic_ip_required: NotRequired[bool]
    bootscript: NotRequired[str]
    tags: NotRequired[list[str]]
    organization: NotRequired[str]


class ServerPatch(TypedDict, total=False):
    """Sparse patch: keys absent here are left untouched remotely."""

    name: str
    volumes: dict[str, VolumeRef]


class PublicIP(TypedDict):
    id: NotRequired[str]
    address: str
    dynamic: NotRequired[bool]


class VolumeResponse(TypedDict):
    id: str
    name: NotRequired[str]
    size: NotRequired[int]
    volume_type: NotRequired[str]


class ServerResponse(TypedDict):
    """Server as returned by the API."""

    id: str
    name: NotRequired[str]
    state: str  # stopped, starting, running, stopping
    state_detail: NotRequired[str]
    public_ip: NotRequired[PublicIP | None]
    private_ip: NotRequired[str | None]
    image: NotRequired[dict[str, Any] | None]
    volumes: NotRequired[dict[str, VolumeResponse]]
    tags: NotRequired[list[str]]
    dynamic_ip_required: NotRequired[bool]
