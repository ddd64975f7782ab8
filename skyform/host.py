"""Minimal orchestration host.

Applies a declared server configuration through the reconciler and hands
back the state to persist. Persistence itself stays with the caller.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeAlias
from dataclasses import replace

from loguru import logger

from skyform.core.exceptions import DefineError
from skyform.plan import Action, Plan, plan as make_plan
from skyform.reconciler import InstanceReconciler
from skyform.types import DeclaredConfig, ResourceState

PartialStateHook: TypeAlias = Callable[[ResourceState], None]


class Host:
    """Drive one declared server through refresh, plan and apply.

    Args:
        reconciler: Reconciler bound to a remote API.
        on_partial: Called with the partially created state when define
            fails after the server exists, before the error propagates.
    """

    def __init__(
        self,
        reconciler: InstanceReconciler,
        *,
        on_partial: PartialStateHook | None = None,
    ) -> None:
        self._reconciler = reconciler
        self._on_partial = on_partial
        self._log = logger.bind(component="host")

    async def refresh(self, state: ResourceState) -> ResourceState:
        return await self._reconciler.observe(state)

    async def plan(self, state: ResourceState, desired: DeclaredConfig | None) -> tuple[ResourceState, Plan]:
        current = await self.refresh(state)
        return current, make_plan(current, desired)

    async def apply(self, state: ResourceState, desired: DeclaredConfig | None) -> ResourceState:
        current, p = await self.plan(state, desired)
        self._log.info(
            "Apply {action} ({changed})",
            action=p.action.value, changed=", ".join(p.changed) or "-",
        )

        match p.action:
            case Action.NOOP:
                return current
            case Action.CREATE:
                assert desired is not None
                return await self._define(desired)
            case Action.UPDATE:
                assert desired is not None
                await self._reconciler.update(current, desired)
                return await self._reconciler.observe(replace(current, config=desired))
            case Action.REPLACE:
                assert desired is not None
                await self._reconciler.delete(current)
                return await self._define(desired)
            case Action.DELETE:
                await self._reconciler.delete(current)
                return current.cleared()

    async def _define(self, desired: DeclaredConfig) -> ResourceState:
        try:
            return await self._reconciler.define(desired)
        except DefineError as e:
            if self._on_partial is not None:
                self._on_partial(e.state)
            raise
