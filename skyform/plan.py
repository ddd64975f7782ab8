"""Decide what an apply has to do for one declared server."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from skyform.schema import declared_fields, force_new_fields
from skyform.types import DeclaredConfig, ResourceState


class Action(Enum):
    NOOP = "noop"
    CREATE = "create"
    UPDATE = "update"
    REPLACE = "replace"
    DELETE = "delete"


@dataclass(frozen=True, slots=True)
class Plan:
    action: Action
    changed: tuple[str, ...] = ()

    @property
    def requires_replacement(self) -> bool:
        return self.action is Action.REPLACE


def _normalized(config: DeclaredConfig, field: str) -> object:
    value = getattr(config, field)
    if field == "volumes":
        return dict(value)
    return value


def changed_fields(old: DeclaredConfig, new: DeclaredConfig) -> tuple[str, ...]:
    """Declared fields that differ, in schema order."""
    return tuple(
        f for f in declared_fields()
        if _normalized(old, f) != _normalized(new, f)
    )


def plan(state: ResourceState, desired: DeclaredConfig | None) -> Plan:
    """Plan the transition from the recorded state to the desired config.

    ``desired=None`` means the resource was removed from the configuration.
    """
    if desired is None:
        return Plan(Action.DELETE) if state.exists else Plan(Action.NOOP)

    if not state.exists:
        return Plan(Action.CREATE, declared_fields())

    changed = changed_fields(state.config, desired)
    if not changed:
        return Plan(Action.NOOP)
    if any(f in force_new_fields() for f in changed):
        return Plan(Action.REPLACE, changed)
    return Plan(Action.UPDATE, changed)
