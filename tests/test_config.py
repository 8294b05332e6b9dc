"""
Tests for configuration loading — pxp-agent.yml and module config files.
"""

import textwrap
from pathlib import Path

import pytest

from pxp_agent.core.config.loader import (
    AGENT_CONFIG_ENV,
    AgentConfiguration,
    ConfigError,
    find_config_file,
    load_configuration,
    load_module_config,
)


@pytest.fixture(autouse=True)
def _no_config_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv(AGENT_CONFIG_ENV, raising=False)


@pytest.fixture
def valid_agent_yml(tmp_path: Path) -> Path:
    """Create a valid pxp-agent.yml in a temp directory."""
    content = textwrap.dedent("""\
        broker_ws_uri: wss://broker.example.com:8142/pcp/
        client_type: agent
        ca: /etc/pxp/ssl/ca.pem
        crt: /etc/pxp/ssl/agent.pem
        key: /etc/pxp/ssl/agent.key
        connection_timeout: 10
        modules_dir: modules
        modules_config_dir: /etc/pxp/modules
        spool_dir: spool
    """)
    path = tmp_path / "pxp-agent.yml"
    path.write_text(content)
    return path


class TestLoadConfiguration:
    """Tests for load_configuration()."""

    def test_load_valid_config(self, valid_agent_yml: Path):
        config = load_configuration(valid_agent_yml)
        assert config.broker_ws_uri == "wss://broker.example.com:8142/pcp/"
        assert config.ca == "/etc/pxp/ssl/ca.pem"
        assert config.connection_timeout == 10

    def test_relative_dirs_resolved(self, valid_agent_yml: Path, tmp_path: Path):
        config = load_configuration(valid_agent_yml)
        assert config.modules_dir == str((tmp_path / "modules").resolve())
        assert config.spool_dir == str((tmp_path / "spool").resolve())
        assert config.modules_config_dir == "/etc/pxp/modules"

    def test_empty_file_uses_defaults(self, tmp_path: Path):
        path = tmp_path / "pxp-agent.yml"
        path.write_text("")
        config = load_configuration(path)
        assert config.client_type == "agent"
        assert config.connection_timeout == 5

    def test_missing_file_raises(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="not found"):
            load_configuration(tmp_path / "nonexistent.yml")

    def test_invalid_yaml_raises(self, tmp_path: Path):
        path = tmp_path / "pxp-agent.yml"
        path.write_text(":: invalid: yaml: [")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_configuration(path)

    def test_non_mapping_raises(self, tmp_path: Path):
        path = tmp_path / "pxp-agent.yml"
        path.write_text("- just\n- a\n- list\n")
        with pytest.raises(ConfigError, match="Expected a YAML mapping"):
            load_configuration(path)

    def test_invalid_value_raises(self, tmp_path: Path):
        path = tmp_path / "pxp-agent.yml"
        path.write_text("connection_timeout: -3\n")
        with pytest.raises(ConfigError, match="Invalid agent configuration"):
            load_configuration(path)

    def test_auto_search_fails(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        isolated = tmp_path / "isolated"
        isolated.mkdir()
        monkeypatch.chdir(isolated)
        with pytest.raises(ConfigError, match=r"No pxp-agent\.yml found"):
            load_configuration(None)

    def test_env_var(self, valid_agent_yml: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv(AGENT_CONFIG_ENV, str(valid_agent_yml))
        assert load_configuration(None).connection_timeout == 10


class TestFindConfigFile:
    """Tests for find_config_file()."""

    def test_find_in_parent_dir(self, tmp_path: Path):
        (tmp_path / "pxp-agent.yml").write_text("client_type: agent\n")
        subdir = tmp_path / "a" / "b"
        subdir.mkdir(parents=True)
        result = find_config_file(subdir)
        assert result is not None
        assert result.parent == tmp_path.resolve()

    def test_not_found_returns_none(self, tmp_path: Path):
        subdir = tmp_path / "deep" / "nested"
        subdir.mkdir(parents=True)
        assert find_config_file(subdir) is None


class TestModuleConfig:
    """Tests for load_module_config()."""

    def test_load(self, tmp_path: Path):
        (tmp_path / "pkg.conf").write_text('{"proxy": "http://proxy:3128"}')
        assert load_module_config(tmp_path, "pkg") == {"proxy": "http://proxy:3128"}

    def test_missing_returns_none(self, tmp_path: Path):
        assert load_module_config(tmp_path, "pkg") is None

    def test_invalid_json(self, tmp_path: Path):
        (tmp_path / "pkg.conf").write_text("{oops")
        with pytest.raises(ConfigError, match="Invalid JSON"):
            load_module_config(tmp_path, "pkg")

    def test_not_an_object(self, tmp_path: Path):
        (tmp_path / "pkg.conf").write_text("[1]")
        with pytest.raises(ConfigError, match="Expected a JSON object"):
            load_module_config(tmp_path, "pkg")


class TestAgentConfiguration:
    def test_defaults(self):
        config = AgentConfiguration()
        assert config.broker_ws_uri == ""
        assert config.spool_dir == "spool"

    def test_resolve_paths_keeps_absolute(self, tmp_path: Path):
        config = AgentConfiguration(modules_dir="/opt/modules").resolve_paths(tmp_path)
        assert config.modules_dir == "/opt/modules"
