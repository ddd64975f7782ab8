"""Readiness polling for newly created servers."""

from __future__ import annotations

from collections.abc import Callable

from loguru import logger
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_delay,
    wait_fixed,
)

from skyform.api import InstanceAPI
from skyform.types import ServerResponse

READY_STATES = frozenset({"running"})


class _ServerPendingError(Exception):
    def __init__(self, state: str) -> None:
        self.state = state
        super().__init__(f"server is {state}")


class ServerNotReadyError(TimeoutError):
    """The server did not reach the wanted state before the deadline."""

    def __init__(self, server_id: str, timeout: float, last_state: str | None) -> None:
        self.server_id = server_id
        self.timeout = timeout
        self.last_state = last_state
        super().__init__(
            f"Timeout waiting for server {server_id} after {timeout:.1f}s "
            f"(last state: {last_state or 'unknown'})"
        )


def is_running(server: ServerResponse) -> bool:
    return server.get("state") in READY_STATES


async def wait_for_state(
    api: InstanceAPI,
    server_id: str,
    ready_check: Callable[[ServerResponse], bool],
    *,
    timeout: float = 300.0,
    interval: float = 5.0,
) -> ServerResponse:
    """Poll the server until ``ready_check`` accepts it.

    Errors raised by the API while polling propagate immediately; only
    "not there yet" is retried.

    Raises:
        ServerNotReadyError: If the deadline passes first.
    """
    log = logger.bind(component="wait", server_id=server_id)
    last_state: str | None = None

    @retry(
        stop=stop_after_delay(timeout),
        wait=wait_fixed(interval),
        retry=retry_if_exception_type(_ServerPendingError),
        reraise=True,
    )
    async def _check() -> ServerResponse:
        nonlocal last_state
        server = await api.get_server(server_id)
        last_state = server.get("state")
        if not ready_check(server):
            log.debug("Server state: {state}", state=last_state)
            raise _ServerPendingError(last_state or "unknown")
        return server

    try:
        return await _check()
    except _ServerPendingError as e:
        raise ServerNotReadyError(server_id, timeout, last_state) from e


async def wait_until_ready(
    api: InstanceAPI,
    server_id: str,
    *,
    timeout: float = 300.0,
    interval: float = 5.0,
) -> ServerResponse:
    """Block until the server reports ``running``."""
    return await wait_for_state(api, server_id, is_running, timeout=timeout, interval=interval)
