"""TOML-based provider and reconciler configuration.

Loads ~/.skyform/defaults.toml (global) and skyform.toml (project),
merges them, and resolves the provider, reconciler and logging sections.

    [provider]
    type = "scaleway"
    organization = "..."

    [reconciler]
    ready_timeout = 600

    [logging]
    level = "DEBUG"
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, fields
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeAlias, TypeVar

from skyform.core.exceptions import ConfigurationError
from skyform.observability.logging import LogConfig

if TYPE_CHECKING:
    from skyform.providers.scaleway.config import Scaleway

    ProviderConfig: TypeAlias = Scaleway

RawConfig: TypeAlias = dict[str, Any]

T = TypeVar("T")

GLOBAL_CONFIG_PATH = Path.home() / ".skyform" / "defaults.toml"
PROJECT_CONFIG_NAME = "skyform.toml"


@dataclass(frozen=True, slots=True)
class ReconcilerSettings:
    """Tuning for the reconciler.

    Args:
        ready_timeout: Seconds to wait for a new server to be running.
        poll_interval: Seconds between readiness polls.
    """

    ready_timeout: float = 300.0
    poll_interval: float = 5.0


def _deep_merge(base: RawConfig, override: RawConfig) -> RawConfig:
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _read_toml(path: Path) -> RawConfig:
    if not path.is_file():
        return {}
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Invalid TOML in {path}: {e}") from e


def load_config(
    *,
    project_dir: Path | None = None,
    global_path: Path | None = None,
) -> RawConfig:
    global_cfg = _read_toml(global_path or GLOBAL_CONFIG_PATH)
    project_path = (project_dir or Path.cwd()) / PROJECT_CONFIG_NAME
    project_cfg = _read_toml(project_path)

    merged = _deep_merge(global_cfg, project_cfg)
    merged.setdefault("provider", {})
    merged.setdefault("reconciler", {})
    merged.setdefault("logging", {})
    return merged


def _get_provider_map() -> dict[str, type]:
    from skyform.providers.scaleway.config import Scaleway

    return {
        "scaleway": Scaleway,
    }


def _build(cls: type[T], section: str, raw: RawConfig) -> T:
    known = {f.name for f in fields(cls)}  # type: ignore[arg-type]
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigurationError(f"Unknown keys in [{section}]: {', '.join(unknown)}")
    return cls(**raw)


def resolve_provider(config: RawConfig) -> ProviderConfig:
    raw = dict(config.get("provider", {}))
    provider_type = raw.pop("type", "scaleway")

    provider_map = _get_provider_map()
    cls = provider_map.get(provider_type)
    if cls is None:
        raise ConfigurationError(
            f"Unknown provider type '{provider_type}'. "
            f"Valid: {', '.join(provider_map)}"
        )
    return _build(cls, "provider", raw)


def resolve_reconciler_settings(config: RawConfig) -> ReconcilerSettings:
    return _build(ReconcilerSettings, "reconciler", dict(config.get("reconciler", {})))


def resolve_logging(config: RawConfig) -> LogConfig:
    return _build(LogConfig, "logging", dict(config.get("logging", {})))
