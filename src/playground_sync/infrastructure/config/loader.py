"""Configuration loading utilities.

This module loads and validates the broker's YAML configuration. Every
setting has a default, so the broker runs without any configuration file.

Resolution order for the file:
1. Explicit path argument
2. Environment variable PLAYGROUND_SYNC_CONFIG
3. No file (defaults only)

The PORT and HOST environment variables override the http section.
"""

import logging
import os
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml

from .models import BrokerConfig, HttpConfig, LoggingConfig, RpcConfig

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "PLAYGROUND_SYNC_CONFIG"

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class ConfigLoader:
    """Loads and manages broker configuration from YAML files.

    Parameters
    ----------
    config_path : Optional[Path]
        Path to the configuration file. If None, the PLAYGROUND_SYNC_CONFIG
        environment variable is consulted; if that is unset too, only
        defaults are used.
    environ : Optional[Mapping[str, str]]
        Environment used for overrides. Defaults to os.environ.

    Attributes
    ----------
    config_path : Optional[Path]
        The resolved configuration file path, if any
    _config_data : Optional[Dict]
        Cached configuration data
    """

    def __init__(
        self,
        config_path: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        """Initialize the config loader with a path."""
        self._environ = os.environ if environ is None else environ
        if config_path is None and self._environ.get(CONFIG_ENV_VAR):
            config_path = Path(self._environ[CONFIG_ENV_VAR])
        self.config_path = Path(config_path) if config_path else None
        self._config_data: Optional[Dict] = None

    def load(self) -> Dict:
        """Load raw configuration data from the YAML file.

        Loads the YAML file and caches the result. Subsequent calls
        return the cached data.

        Returns
        -------
        Dict
            The parsed YAML configuration, empty when no file is configured

        Raises
        ------
        FileNotFoundError
            If a configuration path was given but doesn't exist
        yaml.YAMLError
            If the YAML file is malformed
        ValueError
            If the top level of the file is not a mapping
        """
        if self._config_data is None:
            if self.config_path is None:
                self._config_data = {}
                return self._config_data

            if not self.config_path.exists():
                raise FileNotFoundError(
                    f"Configuration file not found: {self.config_path}"
                )

            with open(self.config_path) as f:
                try:
                    data = yaml.safe_load(f) or {}
                except yaml.YAMLError as e:
                    raise yaml.YAMLError(
                        f"Failed to parse config file {self.config_path}: {e}"
                    )

            if not isinstance(data, dict):
                raise ValueError(
                    f"Invalid config format in {self.config_path}, "
                    "expected a mapping."
                )

            logger.debug(f"Loaded configuration from {self.config_path}")
            self._config_data = data

        return self._config_data

    def _section(self, name: str) -> Dict:
        section = self.load().get(name) or {}
        if not isinstance(section, dict):
            raise ValueError(
                f"Invalid '{name}' section: expected a mapping, "
                f"got {type(section).__name__}"
            )
        return section

    def get_http_config(self) -> HttpConfig:
        """Get submission surface configuration.

        Values from the http section are overridden by the PORT and HOST
        environment variables.

        Returns
        -------
        HttpConfig
            The HTTP configuration with defaults applied

        Raises
        ------
        ValueError
            If any http setting is invalid
        """
        http_data = dict(self._section("http"))
        defaults = HttpConfig()

        if self._environ.get("HOST"):
            http_data["host"] = self._environ["HOST"]
        if self._environ.get("PORT"):
            http_data["port"] = self._environ["PORT"]

        try:
            port = int(http_data.get("port", defaults.port))
        except (TypeError, ValueError):
            raise ValueError(
                f"Invalid port: {http_data.get('port')}. Must be an integer."
            )
        if not 0 < port < 65536:
            raise ValueError(
                f"Invalid port: {port}. Must be between 1 and 65535."
            )

        cors_origins = http_data.get("cors_origins", defaults.cors_origins)
        if isinstance(cors_origins, str):
            cors_origins = [cors_origins]
        if not isinstance(cors_origins, list) or not all(
            isinstance(origin, str) for origin in cors_origins
        ):
            raise ValueError(
                f"Invalid cors_origins: {cors_origins}. "
                "Must be a list of strings."
            )

        timeout = http_data.get("submit_timeout_seconds")
        if timeout is not None:
            if (
                isinstance(timeout, bool)
                or not isinstance(timeout, (int, float))
                or timeout <= 0
            ):
                raise ValueError(
                    f"Invalid submit_timeout_seconds: {timeout}. "
                    "Must be a positive number or null."
                )
            timeout = float(timeout)

        max_waiting = http_data.get(
            "max_waiting_submitters", defaults.max_waiting_submitters
        )
        if (
            isinstance(max_waiting, bool)
            or not isinstance(max_waiting, int)
            or max_waiting <= 0
        ):
            raise ValueError(
                f"Invalid max_waiting_submitters: {max_waiting}. "
                "Must be a positive integer."
            )

        return HttpConfig(
            host=str(http_data.get("host", defaults.host)),
            port=port,
            cors_origins=cors_origins,
            submit_timeout_seconds=timeout,
            max_waiting_submitters=max_waiting,
        )

    def get_rpc_config(self) -> RpcConfig:
        """Get consumer surface configuration.

        Returns
        -------
        RpcConfig
            The RPC configuration with defaults applied

        Raises
        ------
        ValueError
            If max_workers is not a positive integer
        """
        rpc_data = self._section("rpc")
        defaults = RpcConfig()

        max_workers = rpc_data.get("max_workers", defaults.max_workers)
        if (
            isinstance(max_workers, bool)
            or not isinstance(max_workers, int)
            or max_workers <= 0
        ):
            raise ValueError(
                f"Invalid max_workers: {max_workers}. "
                "Must be a positive integer."
            )

        return RpcConfig(
            server_name=str(rpc_data.get("server_name", defaults.server_name)),
            server_version=str(
                rpc_data.get("server_version", defaults.server_version)
            ),
            protocol_version=str(
                rpc_data.get("protocol_version", defaults.protocol_version)
            ),
            max_workers=max_workers,
        )

    def get_logging_config(self) -> LoggingConfig:
        """Get logging configuration.

        Raises
        ------
        ValueError
            If the level is not a standard logging level name
        """
        level = str(self._section("logging").get("level", "INFO")).upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(
                f"Invalid logging level '{level}'. "
                f"Valid levels are: {', '.join(sorted(VALID_LOG_LEVELS))}"
            )
        return LoggingConfig(level=level)

    def get_broker_config(self) -> BrokerConfig:
        """Get the complete broker configuration."""
        return BrokerConfig(
            http=self.get_http_config(),
            rpc=self.get_rpc_config(),
            logging=self.get_logging_config(),
        )
