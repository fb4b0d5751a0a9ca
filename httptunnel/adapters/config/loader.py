"""
Configuration loader with priority: CLI > env > TOML > defaults
"""
import os
import tomllib
from pathlib import Path
from typing import Dict, Any, Optional, Mapping

from ...core.constants import (
    ENV_PROXY_HOST,
    ENV_PROXY_PORT,
    ENV_PROXY_AUTH,
    ENV_PROXY_TIMEOUT,
)
from ...core.exceptions import ConfigError


class ConfigLoader:
    """Configuration loader with priority support"""

    env_mappings = {
        ENV_PROXY_HOST: "proxy.host",
        ENV_PROXY_PORT: "proxy.port",
        ENV_PROXY_AUTH: "proxy.auth",
        ENV_PROXY_TIMEOUT: "proxy.timeout",
    }
    verbatim_keys = frozenset({"host", "auth"})

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self._environ = os.environ if environ is None else environ

    def load_toml(self, path: Path) -> Dict[str, Any]:
        """Load TOML configuration file"""
        path = path.expanduser()
        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        try:
            return tomllib.loads(path.read_text(encoding='utf-8'))
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Failed to parse TOML configuration: {e}") from e

    def load_env(self) -> Dict[str, Any]:
        """Load configuration from environment variables"""
        config: Dict[str, Any] = {}

        for env_key, config_key in self.env_mappings.items():
            value = self._environ.get(env_key)
            if not value:
                continue
            section, key = config_key.split(".")
            # Hosts and credentials stay verbatim, "1234" must not become an int
            converted = value if key in self.verbatim_keys else self._convert_value(value)
            config.setdefault(section, {})[key] = converted

        return config

    def _convert_value(self, value: str) -> Any:
        """Convert string value to appropriate type"""
        try:
            return int(value)
        except ValueError:
            pass

        try:
            return float(value)
        except ValueError:
            pass

        return value

    def merge_configs(self, *configs: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge multiple configurations with priority.
        Later configs override earlier ones.
        """
        result: Dict[str, Any] = {}

        for config in configs:
            result = self._deep_merge(result, config)

        return result

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries, ignoring unset (None) overrides"""
        result = base.copy()

        for key, value in override.items():
            if value is None:
                continue
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def load(
        self,
        toml_path: Optional[Path] = None,
        cli_overrides: Optional[Dict[str, Any]] = None,
        use_env: bool = True,
    ) -> Dict[str, Any]:
        """
        Load configuration with priority: CLI > env > TOML > defaults

        Args:
            toml_path: Path to TOML configuration file
            cli_overrides: CLI parameter overrides
            use_env: Whether to load from environment variables

        Returns:
            Merged configuration dictionary
        """
        configs = []

        # 1. Load TOML if provided
        if toml_path:
            configs.append(self.load_toml(toml_path))

        # 2. Load environment variables
        if use_env:
            env_config = self.load_env()
            if env_config:
                configs.append(env_config)

        # 3. Apply CLI overrides (highest priority)
        if cli_overrides:
            configs.append(cli_overrides)

        return self.merge_configs(*configs)
