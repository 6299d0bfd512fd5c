"""Behavior tests for configuration loading functionality."""

import tempfile
from pathlib import Path

import pytest
import yaml

from playground_sync.infrastructure.config.loader import (
    CONFIG_ENV_VAR,
    ConfigLoader,
)
from playground_sync.infrastructure.config.models import (
    BrokerConfig,
    HttpConfig,
    RpcConfig,
)


@pytest.fixture
def write_config():
    """Write a YAML mapping to a temporary file and clean it up."""
    paths = []

    def _write(data) -> Path:
        with tempfile.NamedTemporaryFile(
            mode="w", suffix=".yaml", delete=False
        ) as f:
            yaml.dump(data, f)
            paths.append(Path(f.name))
        return paths[-1]

    yield _write

    for path in paths:
        path.unlink()


class TestDefaults:
    """Test behavior without a configuration file."""

    def test_defaults_without_file(self):
        """Test that every setting has a default.

        Given - No config path and an empty environment
        When - The broker config is requested
        Then - Default values are returned
        """
        # Given - Loader with no file
        loader = ConfigLoader(environ={})

        # When - Load everything
        config = loader.get_broker_config()

        # Then - Defaults throughout
        assert isinstance(config, BrokerConfig)
        assert config.http == HttpConfig()
        assert config.http.port == 4242
        assert config.http.submit_timeout_seconds is None
        assert config.rpc == RpcConfig()
        assert config.rpc.protocol_version == "2024-11-05"
        assert config.logging.level == "INFO"

    def test_shipped_default_file_matches_built_in_defaults(self):
        default_yaml = (
            Path(__file__).parents[4] / "config" / "default.yaml"
        )

        config = ConfigLoader(default_yaml, environ={}).get_broker_config()

        assert config == BrokerConfig()

    def test_missing_explicit_file_raises(self):
        loader = ConfigLoader(Path("/nonexistent/broker.yaml"), environ={})

        with pytest.raises(FileNotFoundError):
            loader.load()


class TestFileLoading:
    """Test values read from YAML."""

    def test_custom_values(self, write_config):
        """Test loading every section from a file.

        Given - A YAML file overriding http, rpc and logging settings
        When - The loader reads it
        Then - The config objects carry the file's values
        """
        path = write_config(
            {
                "http": {
                    "host": "0.0.0.0",
                    "port": 9000,
                    "cors_origins": ["http://localhost:5173"],
                    "submit_timeout_seconds": 30,
                    "max_waiting_submitters": 50,
                },
                "rpc": {"server_name": "relay", "max_workers": 2},
                "logging": {"level": "debug"},
            }
        )

        config = ConfigLoader(path, environ={}).get_broker_config()

        assert config.http.host == "0.0.0.0"
        assert config.http.port == 9000
        assert config.http.cors_origins == ["http://localhost:5173"]
        assert config.http.submit_timeout_seconds == 30.0
        assert config.http.max_waiting_submitters == 50
        assert config.rpc.server_name == "relay"
        assert config.rpc.max_workers == 2
        assert config.logging.level == "DEBUG"

    def test_path_from_environment_variable(self, write_config):
        path = write_config({"http": {"port": 5000}})

        loader = ConfigLoader(environ={CONFIG_ENV_VAR: str(path)})

        assert loader.config_path == path
        assert loader.get_http_config().port == 5000

    def test_single_cors_origin_string_becomes_list(self, write_config):
        path = write_config({"http": {"cors_origins": "http://a.test"}})

        http = ConfigLoader(path, environ={}).get_http_config()

        assert http.cors_origins == ["http://a.test"]

    def test_top_level_must_be_mapping(self, write_config):
        path = write_config(["not", "a", "mapping"])

        with pytest.raises(ValueError, match="expected a mapping"):
            ConfigLoader(path, environ={}).load()

    def test_load_is_cached(self, write_config):
        path = write_config({"http": {"port": 5000}})
        loader = ConfigLoader(path, environ={})

        first = loader.load()
        path.write_text("http:\n  port: 6000\n")

        assert loader.load() is first
        assert loader.get_http_config().port == 5000


class TestEnvironmentOverrides:
    """Test PORT and HOST overrides."""

    def test_port_and_host_override_file(self, write_config):
        """Test that environment values win over the file.

        Given - A file setting port 9000 and PORT=8123 in the environment
        When - The http config is requested
        Then - The environment values are used
        """
        path = write_config({"http": {"port": 9000, "host": "127.0.0.1"}})

        http = ConfigLoader(
            path, environ={"PORT": "8123", "HOST": "0.0.0.0"}
        ).get_http_config()

        assert http.port == 8123
        assert http.host == "0.0.0.0"

    def test_non_numeric_port_rejected(self):
        loader = ConfigLoader(environ={"PORT": "http"})

        with pytest.raises(ValueError, match="Invalid port"):
            loader.get_http_config()


class TestValidation:
    """Test rejection of invalid values."""

    @pytest.mark.parametrize("port", [0, 70000, -1])
    def test_port_out_of_range(self, write_config, port):
        path = write_config({"http": {"port": port}})

        with pytest.raises(ValueError, match="between 1 and 65535"):
            ConfigLoader(path, environ={}).get_http_config()

    @pytest.mark.parametrize("timeout", [0, -5, "soon", True])
    def test_invalid_submit_timeout(self, write_config, timeout):
        path = write_config({"http": {"submit_timeout_seconds": timeout}})

        with pytest.raises(ValueError, match="submit_timeout_seconds"):
            ConfigLoader(path, environ={}).get_http_config()

    def test_invalid_cors_origins(self, write_config):
        path = write_config({"http": {"cors_origins": [1, 2]}})

        with pytest.raises(ValueError, match="cors_origins"):
            ConfigLoader(path, environ={}).get_http_config()

    @pytest.mark.parametrize("limit", [0, -3, "lots", False])
    def test_invalid_max_waiting_submitters(self, write_config, limit):
        path = write_config({"http": {"max_waiting_submitters": limit}})

        with pytest.raises(ValueError, match="max_waiting_submitters"):
            ConfigLoader(path, environ={}).get_http_config()

    @pytest.mark.parametrize("workers", [0, "many", 1.5])
    def test_invalid_max_workers(self, write_config, workers):
        path = write_config({"rpc": {"max_workers": workers}})

        with pytest.raises(ValueError, match="max_workers"):
            ConfigLoader(path, environ={}).get_rpc_config()

    def test_invalid_log_level(self, write_config):
        path = write_config({"logging": {"level": "verbose"}})

        with pytest.raises(ValueError, match="Invalid logging level"):
            ConfigLoader(path, environ={}).get_logging_config()

    def test_section_must_be_mapping(self, write_config):
        path = write_config({"http": "localhost"})

        with pytest.raises(ValueError, match="Invalid 'http' section"):
            ConfigLoader(path, environ={}).get_http_config()
