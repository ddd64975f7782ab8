"""Wire configuration, logging, API client and reconciler together."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from skyform.config import (
    load_config,
    resolve_logging,
    resolve_provider,
    resolve_reconciler_settings,
)
from skyform.host import Host, PartialStateHook
from skyform.observability.logging import setup_logging, teardown_logging
from skyform.reconciler import InstanceReconciler


@asynccontextmanager
async def session(
    *,
    project_dir: Path | None = None,
    global_path: Path | None = None,
    on_partial: PartialStateHook | None = None,
) -> AsyncIterator[Host]:
    """Open a host bound to the configured provider.

    Example:
        async with session() as host:
            state = await host.apply(ResourceState(config=cfg), cfg)
    """
    raw = load_config(project_dir=project_dir, global_path=global_path)
    provider = resolve_provider(raw)
    settings = resolve_reconciler_settings(raw)
    log_config = resolve_logging(raw) if raw["logging"] else None

    handler_ids = setup_logging(log_config) if log_config else []
    try:
        async with provider.create_client() as client:
            reconciler = InstanceReconciler(
                client,
                ready_timeout=settings.ready_timeout,
                poll_interval=settings.poll_interval,
            )
            yield Host(reconciler, on_partial=on_partial)
    finally:
        if handler_ids:
            teardown_logging(handler_ids)
