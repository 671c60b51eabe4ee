"""Configuration models and loader for principalfs.

Configuration sources, in discovery order:

1. An explicit path (``kind: Config`` YAML manifest or TOML file)
2. The ``PRINCIPALFS_CONFIG_PATH`` environment variable
3. ``pyproject.toml`` ``[tool.principalfs]`` in the working directory or a parent
4. Built-in defaults

Environment variables override whatever was loaded::

    export PRINCIPALFS_PROVIDER_ROOT=/system/userManager
    export PRINCIPALFS_NESTED_RESOURCES=false
    export PRINCIPALFS_LOG_LEVEL=DEBUG
    export PRINCIPALFS_LOG_FORMAT=rich

Example TOML::

    [tool.principalfs]
    provider_root = "/system/userManager"
    resources_for_nested_properties = true

    [tool.principalfs.logging]
    level = "DEBUG"
    format = "rich"
"""

from __future__ import annotations

import os
import re
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from principalfs.kernel.domain.resources import DEFAULT_PROVIDER_ROOT
from principalfs.kernel.exceptions import ConfigurationError
from principalfs.kernel.logging import get_logger

logger = get_logger(__name__)

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")
_TRUTHY_VALUES = frozenset({"true", "1", "yes", "on", "enabled"})
_FALSY_VALUES = frozenset({"false", "0", "no", "off", "disabled"})


class ProviderConfig(BaseModel):
    """Settings of the authorizable resource provider.

    Examples
    --------
    >>> ProviderConfig().provider_root
    '/system/userManager'
    >>> ProviderConfig(provider_root="/um/").provider_root
    '/um'
    """

    model_config = ConfigDict(frozen=True)

    provider_root: str = Field(
        default=DEFAULT_PROVIDER_ROOT,
        description="Root path of the user manager resources",
    )
    resources_for_nested_properties: bool = Field(
        default=True,
        description="Provide 'sling/[user|group]/properties' nodes for nested containers",
    )

    @field_validator("provider_root")
    @classmethod
    def validate_provider_root(cls, v: str) -> str:
        """Require an absolute root and drop any trailing slash."""
        if not v.startswith("/"):
            raise ValueError(f"provider_root must start with '/': {v!r}")
        stripped = v.rstrip("/")
        if not stripped:
            raise ValueError("provider_root cannot be '/'")
        return stripped


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Logging settings, passed to :func:`~principalfs.kernel.logging.configure_logging`."""

    level: Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    format: Literal["console", "json", "structured", "rich"] = "structured"
    output_file: str | None = None
    use_color: bool = True
    include_timestamp: bool = True


@dataclass(frozen=True, slots=True)
class PrincipalFSConfig:
    """Complete principalfs configuration."""

    provider: ProviderConfig = field(default_factory=ProviderConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _parse_bool_env(value: str) -> bool:
    """Parse a boolean environment variable value.

    Raises
    ------
    ValueError
        If value is not a recognized boolean word
    """
    normalized = value.lower().strip()
    if normalized in _TRUTHY_VALUES:
        return True
    if normalized in _FALSY_VALUES:
        return False
    expected = sorted(_TRUTHY_VALUES | _FALSY_VALUES)
    raise ValueError(f"Invalid boolean value: {value!r}. Expected one of: {expected}")


def _substitute_env_vars(data: Any) -> Any:
    """Recursively replace ``${VAR}`` references with environment values."""
    if isinstance(data, str):
        return _ENV_VAR_PATTERN.sub(lambda m: os.environ.get(m.group(1), m.group(0)), data)
    if isinstance(data, dict):
        return {key: _substitute_env_vars(value) for key, value in data.items()}
    if isinstance(data, list):
        return [_substitute_env_vars(item) for item in data]
    return data


def _find_config_file(path: str | Path | None) -> Path | None:
    if path:
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        return config_path

    if env_path := os.getenv("PRINCIPALFS_CONFIG_PATH"):
        config_path = Path(env_path)
        if config_path.exists():
            logger.debug("Using config from PRINCIPALFS_CONFIG_PATH: {}", config_path)
            return config_path
        logger.warning("PRINCIPALFS_CONFIG_PATH set but file not found: {}", config_path)

    current = Path.cwd()
    while True:
        pyproject = current / "pyproject.toml"
        if pyproject.exists():
            with pyproject.open("rb") as f:
                data = tomllib.load(f)
            if "principalfs" in data.get("tool", {}):
                return pyproject
        if current == current.parent:
            return None
        current = current.parent


def _read_config_data(config_path: Path) -> dict[str, Any]:
    if config_path.suffix in (".yaml", ".yml"):
        with config_path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        if not isinstance(data, dict) or data.get("kind") != "Config":
            raise ConfigurationError(
                str(config_path), "YAML config files must be a 'kind: Config' manifest"
            )
        spec = data.get("spec", {})
        if not isinstance(spec, dict):
            raise ConfigurationError(str(config_path), "'spec' must be a mapping")
        return spec

    with config_path.open("rb") as f:
        data = tomllib.load(f)
    if "tool" in data and "principalfs" in data["tool"]:
        return data["tool"]["principalfs"]
    if config_path.name == "pyproject.toml":
        logger.warning("No [tool.principalfs] section found in pyproject.toml, using defaults")
        return {}
    return data


def _parse_config(data: dict[str, Any]) -> PrincipalFSConfig:
    logging_data = data.get("logging", {})
    provider_data = {key: value for key, value in data.items() if key != "logging"}
    try:
        provider = ProviderConfig(**provider_data)
        logging_config = LoggingConfig(**logging_data)
    except (TypeError, ValueError) as e:
        raise ConfigurationError("principalfs", str(e)) from e
    return PrincipalFSConfig(provider=provider, logging=logging_config)


def _apply_env_overrides(config: PrincipalFSConfig) -> PrincipalFSConfig:
    provider_updates: dict[str, Any] = {}
    if root := os.getenv("PRINCIPALFS_PROVIDER_ROOT"):
        provider_updates["provider_root"] = root
    if nested := os.getenv("PRINCIPALFS_NESTED_RESOURCES"):
        try:
            provider_updates["resources_for_nested_properties"] = _parse_bool_env(nested)
        except ValueError as e:
            raise ConfigurationError("PRINCIPALFS_NESTED_RESOURCES", str(e)) from e

    logging_updates: dict[str, Any] = {}
    if level := os.getenv("PRINCIPALFS_LOG_LEVEL"):
        logging_updates["level"] = level.upper()
    if log_format := os.getenv("PRINCIPALFS_LOG_FORMAT"):
        logging_updates["format"] = log_format.lower()

    provider = config.provider
    if provider_updates:
        try:
            provider = ProviderConfig(**{**provider.model_dump(), **provider_updates})
        except ValueError as e:
            raise ConfigurationError("principalfs", str(e)) from e
    return PrincipalFSConfig(provider=provider, logging=replace(config.logging, **logging_updates))


def load_config(path: str | Path | None = None) -> PrincipalFSConfig:
    """Load principalfs configuration.

    Parameters
    ----------
    path : str | Path | None
        Explicit YAML or TOML file. If None, the discovery order of this
        module applies.

    Returns
    -------
    PrincipalFSConfig
        Parsed configuration with environment substitutions and overrides

    Raises
    ------
    FileNotFoundError
        If an explicit path does not exist
    ConfigurationError
        If the file content is invalid
    """
    config_path = _find_config_file(path)
    if config_path is None:
        logger.debug("No principalfs configuration file found, using defaults")
        return _apply_env_overrides(PrincipalFSConfig())

    logger.info("Loading configuration from {path}", path=config_path)
    data = _substitute_env_vars(_read_config_data(config_path))
    return _apply_env_overrides(_parse_config(data))


__all__ = [
    "LoggingConfig",
    "PrincipalFSConfig",
    "ProviderConfig",
    "load_config",
]
