"""Declared schema of the server resource.

The table mirrors what the orchestrator sees: which fields the user sets,
which the remote side computes, and which can change in place.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from skyform.core.exceptions import ConfigurationError
from skyform.types import DeclaredConfig


class Direction(Enum):
    IN = "in"
    OUT = "out"


class Mutability(Enum):
    MUTABLE = "mutable"
    FORCE_NEW = "force_new"
    SET_ONCE = "set_once"
    COMPUTED = "computed"


@dataclass(frozen=True, slots=True)
class Field:
    name: str
    type: type
    direction: Direction
    mutability: Mutability
    required: bool = False


SCHEMA: tuple[Field, ...] = (
    Field("name", str, Direction.IN, Mutability.MUTABLE, required=True),
    Field("image", str, Direction.IN, Mutability.FORCE_NEW, required=True),
    Field("volumes", dict, Direction.IN, Mutability.MUTABLE, required=True),
    Field("dynamic_ip_required", bool, Direction.IN, Mutability.SET_ONCE),
    Field("bootscript", str, Direction.IN, Mutability.SET_ONCE),
    Field("tags", list, Direction.IN, Mutability.SET_ONCE),
    Field("ipv4_address", str, Direction.OUT, Mutability.COMPUTED),
    Field("ipv4_address_private", str, Direction.OUT, Mutability.COMPUTED),
    Field("state", str, Direction.OUT, Mutability.COMPUTED),
    Field("state_detail", str, Direction.OUT, Mutability.COMPUTED),
)

FIELDS: dict[str, Field] = {f.name: f for f in SCHEMA}


def declared_fields() -> tuple[str, ...]:
    return tuple(f.name for f in SCHEMA if f.direction is Direction.IN)


def mutable_fields() -> tuple[str, ...]:
    """Fields that can be changed with a sparse patch."""
    return tuple(f.name for f in SCHEMA if f.mutability is Mutability.MUTABLE)


def force_new_fields() -> tuple[str, ...]:
    """Fields whose change requires destroying and recreating the server.

    Set-once fields are included: the API has no in-place path for them.
    """
    return tuple(
        f.name for f in SCHEMA
        if f.mutability in (Mutability.FORCE_NEW, Mutability.SET_ONCE)
    )


def _check_type(name: str, value: Any, problems: list[str]) -> None:
    match name, value:
        case ("name" | "image" | "bootscript"), str():
            if name != "bootscript" and not value.strip():
                problems.append(f"'{name}' must not be empty")
        case "volumes", Mapping():
            for slot, volume_id in value.items():
                if not isinstance(slot, str) or not isinstance(volume_id, str):
                    problems.append(f"'volumes' entry {slot!r} must map a string slot to a volume id")
        case "tags", list() | tuple():
            if not all(isinstance(t, str) for t in value):
                problems.append("'tags' must be a list of strings")
        case "dynamic_ip_required", bool():
            pass
        case _:
            problems.append(
                f"'{name}' must be of type {FIELDS[name].type.__name__}, got {type(value).__name__}"
            )


def parse_config(raw: Mapping[str, Any]) -> DeclaredConfig:
    """Validate a raw configuration block and build a DeclaredConfig.

    Optional keys that are missing, or explicitly null, stay None so they
    are not forwarded on create.

    Raises:
        ConfigurationError: Listing every problem found.
    """
    problems: list[str] = []

    for key in raw:
        fld = FIELDS.get(key)
        if fld is None:
            problems.append(f"unknown field '{key}'")
        elif fld.direction is Direction.OUT:
            problems.append(f"'{key}' is computed and cannot be set")

    for fld in SCHEMA:
        if fld.direction is not Direction.IN:
            continue
        value = raw.get(fld.name)
        if value is None:
            if fld.required:
                problems.append(f"missing required field '{fld.name}'")
            continue
        _check_type(fld.name, value, problems)

    if problems:
        raise ConfigurationError("Invalid server configuration: " + "; ".join(problems))

    tags = raw.get("tags")
    return DeclaredConfig(
        name=raw["name"],
        image=raw["image"],
        volumes=dict(raw["volumes"]),
        dynamic_ip_required=raw.get("dynamic_ip_required"),
        bootscript=raw.get("bootscript"),
        tags=tuple(tags) if tags is not None else None,
    )
