"""
Configuration loader with priority: CLI > env > TOML > defaults
"""
import os
import tomllib
from pathlib import Path
from typing import Dict, Any, Optional

from ...core.constants import DEFAULT_SSH_PORT, DEFAULT_SSH_TIMEOUT, DEFAULT_AUTH_METHOD
from ...core.exceptions import ConfigError
from ...core.interfaces import PromptProvider
from ...core.utils import load_ssh_config
from ...domain.fetch.models import ConnectionParams, FetchConfig


class ConfigLoader:
    """Configuration loader with priority support"""

    # No password mapping: secrets never come from the environment
    ENV_MAPPINGS = {
        "BATCHFETCH_HOST": "host",
        "BATCHFETCH_USER": "user",
        "BATCHFETCH_PORT": "port",
        "BATCHFETCH_AUTH": "auth",
        "BATCHFETCH_KEY": "key",
        "BATCHFETCH_TIMEOUT": "timeout",
        "BATCHFETCH_SSH_ALIAS": "ssh_alias",
        "BATCHFETCH_OUTPUT_DIR": "fetch.output_dir",
        "BATCHFETCH_PRESERVE_STRUCTURE": "fetch.preserve_structure",
        "BATCHFETCH_FALLBACK_PER_REQUEST": "fetch.fallback_per_request",
    }

    def __init__(self, environ: Optional[Dict[str, str]] = None):
        self._environ = os.environ if environ is None else environ

    def load_toml(self, path: Path) -> Dict[str, Any]:
        """Load TOML configuration file"""
        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        try:
            data = tomllib.loads(path.read_text(encoding='utf-8'))
        except (tomllib.TOMLDecodeError, UnicodeDecodeError) as e:
            raise ConfigError(f"Failed to parse TOML configuration {path}: {e}") from e

        if "password" in data:
            raise ConfigError(f"{path}: passwords are not read from configuration files")
        return data

    def load_env(self) -> Dict[str, Any]:
        """Load configuration from environment variables"""
        config: Dict[str, Any] = {}

        for env_key, config_key in self.ENV_MAPPINGS.items():
            value = self._environ.get(env_key)
            if not value:
                continue
            if "." in config_key:
                section, key = config_key.split(".", 1)
                config.setdefault(section, {})[key] = self._convert_value(value)
            else:
                config[config_key] = self._convert_value(value)

        return config

    def _convert_value(self, value: str) -> Any:
        """Convert string value to appropriate type"""
        if value.lower() in ("true", "yes"):
            return True
        if value.lower() in ("false", "no"):
            return False

        try:
            return int(value)
        except ValueError:
            pass

        return value

    def merge_configs(self, *configs: Dict[str, Any]) -> Dict[str, Any]:
        """Merge configurations; later ones override earlier ones"""
        result: Dict[str, Any] = {}
        for config in configs:
            result = self._deep_merge(result, config)
        return result

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        result = base.copy()

        for key, value in override.items():
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
        Load configuration with priority: CLI > env > TOML

        Args:
            toml_path: Path to TOML configuration file
            cli_overrides: CLI parameter overrides; None values are ignored
            use_env: Whether to load from environment variables

        Returns:
            Merged configuration dictionary
        """
        configs = []

        if toml_path:
            configs.append(self.load_toml(Path(toml_path).expanduser()))

        if use_env:
            env_config = self.load_env()
            if env_config:
                configs.append(env_config)

        if cli_overrides:
            configs.append(_drop_none(cli_overrides))

        return self.merge_configs(*configs)


def _drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    result = {}
    for key, value in data.items():
        if isinstance(value, dict):
            result[key] = _drop_none(value)
        elif value is not None:
            result[key] = value
    return result


# ============================================================
# Typed views
# ============================================================

def resolve_connection_params(
    cfg: Dict[str, Any],
    prompts: Optional[PromptProvider] = None,
) -> ConnectionParams:
    """
    Resolve connection parameters from merged configuration.

    A ~/.ssh/config Host alias (ssh_alias, or a host that matches one)
    fills in host, user, port and key file; explicit values win. Missing host/user are asked for
    when a prompt provider is given.

    Raises:
        ConfigError: Required values missing or invalid
    """
    params: Dict[str, Any] = {}

    alias = cfg.get("ssh_alias") or cfg.get("host")
    entry: Dict[str, Any] = {}
    if alias:
        try:
            entry = load_ssh_config(alias)
        except ConfigError:
            entry = {}
        if cfg.get("ssh_alias") or entry.get("host") != alias:
            params.update({k: v for k, v in entry.items() if v is not None})
        else:
            entry = {}

    for key in ("host", "user", "port", "auth", "timeout"):
        if cfg.get(key) is not None:
            params[key] = cfg[key]
    # An alias given as host resolves to its HostName
    if entry.get("host") and cfg.get("host") == alias:
        params["host"] = entry["host"]
    if cfg.get("key") is not None:
        params["key_file"] = cfg["key"]

    if not params.get("host") and prompts is not None:
        params["host"] = prompts.prompt("Remote host")
    if not params.get("user") and prompts is not None:
        params["user"] = prompts.prompt("Remote user", default=os.getenv("USER") or None)

    if not params.get("host"):
        raise ConfigError("Remote host is required")
    if not params.get("user"):
        raise ConfigError("Remote user is required")

    auth = params.get("auth") or ("key" if params.get("key_file") else DEFAULT_AUTH_METHOD)
    if auth not in ("password", "key", "agent"):
        raise ConfigError(f"Unsupported auth method: {auth}")
    if auth == "key" and not params.get("key_file"):
        raise ConfigError("Key authentication requires a key file (--key)")

    try:
        port = int(params.get("port", DEFAULT_SSH_PORT))
        timeout = float(params.get("timeout", DEFAULT_SSH_TIMEOUT))
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid port or timeout: {e}") from e

    return ConnectionParams(
        host=params["host"],
        user=params["user"],
        port=port,
        auth=auth,
        key_file=str(Path(params["key_file"]).expanduser()) if params.get("key_file") else None,
        timeout=timeout,
    )


def resolve_fetch_config(cfg: Dict[str, Any]) -> FetchConfig:
    """Build FetchConfig from the [fetch] section"""
    section = cfg.get("fetch", {})
    if not isinstance(section, dict):
        raise ConfigError("[fetch] must be a table")
    return FetchConfig.from_dict(section)
