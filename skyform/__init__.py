"""skyform - declarative cloud servers reconciled against a compute API.

Example:

    from skyform import ResourceState, parse_config, session

    config = parse_config({"name": "web1", "image": "img-123", "volumes": {}})

    async with session() as host:
        state = await host.apply(ResourceState(config=config), config)
        print(state.connection.as_dict())
"""

from loguru import logger

from skyform.api import InstanceAPI, PowerAction
from skyform.config import ReconcilerSettings, load_config
from skyform.core.exceptions import (
    ConfigurationError,
    CreateServerError,
    DefineError,
    ImmutableFieldError,
    NotFoundError,
    ObserveError,
    PowerOnError,
    ReadinessError,
    ReadinessTimeoutError,
    RemoteAPIError,
    SkyformError,
)
from skyform.host import Host
from skyform.observability import LogConfig, setup_logging, teardown_logging
from skyform.plan import Action, Plan, plan
from skyform.providers.scaleway import Scaleway, ScalewayClient
from skyform.reconciler import InstanceReconciler, build_definition, build_patch
from skyform.schema import SCHEMA, parse_config
from skyform.session import session
from skyform.types import (
    ComputedState,
    ConnectionInfo,
    DeclaredConfig,
    ResourceState,
)

logger.disable("skyform")

__all__ = [
    # Reconciler
    "InstanceReconciler",
    "InstanceAPI",
    "PowerAction",
    "build_definition",
    "build_patch",
    # Orchestration
    "Host",
    "Action",
    "Plan",
    "plan",
    "session",
    # Types
    "ComputedState",
    "ConnectionInfo",
    "DeclaredConfig",
    "ResourceState",
    "SCHEMA",
    "parse_config",
    # Providers
    "Scaleway",
    "ScalewayClient",
    # Config
    "ReconcilerSettings",
    "load_config",
    "LogConfig",
    "setup_logging",
    "teardown_logging",
    # Errors
    "SkyformError",
    "ConfigurationError",
    "ImmutableFieldError",
    "RemoteAPIError",
    "NotFoundError",
    "CreateServerError",
    "DefineError",
    "PowerOnError",
    "ReadinessError",
    "ReadinessTimeoutError",
    "ObserveError",
]
