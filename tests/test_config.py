from pathlib import Path

import pytest

from skyform.config import (
    ReconcilerSettings,
    _deep_merge,
    load_config,
    resolve_logging,
    resolve_provider,
    resolve_reconciler_settings,
)
from skyform.core.exceptions import ConfigurationError
from skyform.observability.logging import LogConfig
from skyform.providers.scaleway import Scaleway

pytestmark = [pytest.mark.unit]


class TestDeepMerge:
    def test_shallow_override(self):
        assert _deep_merge({"a": 1, "b": 2}, {"b": 3}) == {"a": 1, "b": 3}

    def test_nested_merge(self):
        base = {"provider": {"type": "scaleway", "organization": "org-1"}}
        override = {"provider": {"organization": "org-2"}}
        assert _deep_merge(base, override) == {
            "provider": {"type": "scaleway", "organization": "org-2"},
        }

    def test_empty_override(self):
        assert _deep_merge({"a": 1}, {}) == {"a": 1}


class TestLoadConfig:
    def test_no_files_returns_empty_sections(self, tmp_path: Path):
        result = load_config(project_dir=tmp_path / "nope", global_path=tmp_path / "nope.toml")
        assert result == {"provider": {}, "reconciler": {}, "logging": {}}

    def test_project_overrides_global(self, tmp_path: Path):
        global_toml = tmp_path / "defaults.toml"
        global_toml.write_text('[reconciler]\nready_timeout = 60\npoll_interval = 2\n')
        project_dir = tmp_path / "project"
        project_dir.mkdir()
        (project_dir / "skyform.toml").write_text("[reconciler]\nready_timeout = 600\n")

        result = load_config(project_dir=project_dir, global_path=global_toml)

        assert result["reconciler"] == {"ready_timeout": 600, "poll_interval": 2}

    def test_invalid_toml(self, tmp_path: Path):
        (tmp_path / "skyform.toml").write_text("[reconciler\n")
        with pytest.raises(ConfigurationError, match="Invalid TOML"):
            load_config(project_dir=tmp_path, global_path=tmp_path / "nope.toml")


class TestResolve:
    def test_provider(self, tmp_path: Path):
        (tmp_path / "skyform.toml").write_text(
            '[provider]\n'
            'type = "scaleway"\n'
            'organization = "org-1"\n'
            'api_url = "https://cp-ams1.scaleway.com"\n'
        )
        raw = load_config(project_dir=tmp_path, global_path=tmp_path / "nope.toml")
        provider = resolve_provider(raw)
        assert provider == Scaleway(organization="org-1", api_url="https://cp-ams1.scaleway.com")
        assert provider.type == "scaleway"

    def test_provider_type_defaults_to_scaleway(self):
        assert isinstance(resolve_provider({"provider": {}}), Scaleway)

    def test_unknown_provider_type(self):
        with pytest.raises(ConfigurationError, match="Unknown provider type 'aws'"):
            resolve_provider({"provider": {"type": "aws"}})

    def test_unknown_provider_key(self):
        with pytest.raises(ConfigurationError, match="zone"):
            resolve_provider({"provider": {"zone": "par1"}})

    def test_reconciler_settings(self):
        settings = resolve_reconciler_settings({"reconciler": {"ready_timeout": 10}})
        assert settings == ReconcilerSettings(ready_timeout=10, poll_interval=5.0)

    def test_logging(self):
        assert resolve_logging({"logging": {"level": "DEBUG"}}) == LogConfig(level="DEBUG")
