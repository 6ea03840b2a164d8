"""Configuration management for Mane."""

from __future__ import annotations

import os
import textwrap
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigError
from .models import ManeConfig
from .resolver import ENV_PREFIX, flatten_for_env, parse_env_overrides, resolve_with_precedence

DEFAULT_HOME_DIRNAME = ".mane"
DEFAULT_CONFIG_PATH = Path("~") / DEFAULT_HOME_DIRNAME / "config.yaml"
_CONFIG_HEADER = textwrap.dedent(
    """\
    # Mane configuration file
    # Manage with `mane config set KEY --value VALUE` or `mane config edit`.
    # Environment variables of the form MANE__SECTION__KEY override these values.
    """
)


def expand_path(value: str | Path) -> Path:
    """Return ``value`` with ``~`` and environment variables expanded.

    Args:
        value: Path-like configuration value.

    Returns:
        Path: Absolute path suitable for filesystem access.
    """

    return Path(os.path.expandvars(str(value))).expanduser()


class ConfigManager:
    """Load and persist the configuration file, applying precedence rules."""

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._config_path = (config_path or DEFAULT_CONFIG_PATH).expanduser()
        self._env = env if env is not None else os.environ

    @property
    def config_path(self) -> Path:
        """Return the resolved configuration path."""
        return self._config_path

    def load(
        self,
        *,
        cli_overrides: Mapping[str, Any] | None = None,
        include_env: bool = True,
        ensure_file: bool = True,
        env_overrides: Mapping[str, str] | None = None,
    ) -> ManeConfig:
        """Return the effective configuration.

        Args:
            cli_overrides: Dotted-key overrides supplied by command-line flags.
            include_env: Whether ``MANE__`` environment variables participate.
            ensure_file: Create the configuration file with defaults when missing.
            env_overrides: Explicit environment mapping used instead of ``os.environ``.

        Returns:
            ManeConfig: Validated configuration.

        Raises:
            ConfigError: If the file or any override is invalid.
        """
        if ensure_file:
            self.ensure_exists()

        env_data: dict[str, Any] | None = None
        if include_env:
            source = env_overrides if env_overrides is not None else self._env
            env_data = parse_env_overrides(source) or None

        return resolve_with_precedence(
            defaults=ManeConfig(),
            file_overrides=self._read_file(),
            env_overrides=env_data,
            cli_overrides=cli_overrides,
        )

    def load_file_overrides(self) -> dict[str, Any]:
        """Return raw overrides stored on disk."""
        return self._read_file()

    def save(self, config: ManeConfig | Mapping[str, Any]) -> None:
        """Persist configuration data to disk."""
        if isinstance(config, ManeConfig):
            data = config.model_dump(mode="python")
        else:
            data = dict(config)
        self._write_file(data)

    def ensure_exists(self) -> Path:
        """Create a configuration file with defaults if one does not exist."""
        if not self._config_path.exists():
            self._write_file(ManeConfig().model_dump(mode="python"))
        return self._config_path

    def read_text(self) -> str:
        """Return the current configuration file contents."""
        if not self._config_path.exists():
            return ""
        return self._config_path.read_text(encoding="utf-8")

    def _read_file(self) -> dict[str, Any]:
        if not self._config_path.exists():
            return {}

        try:
            raw = yaml.safe_load(self._config_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse {self._config_path}: {exc}") from exc

        if not isinstance(raw, dict):
            raise ConfigError("Configuration file must contain a mapping at the top level.")
        return raw

    def _write_file(self, data: Mapping[str, Any]) -> None:
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        body = yaml.safe_dump(dict(data), sort_keys=False)
        self._config_path.write_text(
            f"{_CONFIG_HEADER}# Last updated: {stamp}\n{body}", encoding="utf-8"
        )


__all__ = [
    "ConfigManager",
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_HOME_DIRNAME",
    "ENV_PREFIX",
    "ManeConfig",
    "expand_path",
    "flatten_for_env",
    "parse_env_overrides",
    "resolve_with_precedence",
]
