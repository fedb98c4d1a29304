"""Configuration for mediaingest.

Configuration is static for the life of a run: it is read once from YAML,
layered with ``MEDIAINGEST__SECTION__KEY`` environment overrides and passed
explicitly to every component. Loading never writes; only
``mediaingest config set`` creates or edits the file.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigError
from .models import IngestConfig
from .resolver import ENV_PREFIX, overrides_from_env, resolve_with_precedence

DEFAULT_CONFIG_PATH = Path("~/.mediaingest/config.yaml")
_CONFIG_HEADER = (
    "# mediaingest configuration\n"
    "# Read once per run. Edit by hand or with `mediaingest config set`.\n"
)


class ConfigManager:
    """Read the configuration file and apply override layers."""

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._config_path = (config_path or DEFAULT_CONFIG_PATH).expanduser()
        self._env = os.environ if env is None else env

    @property
    def config_path(self) -> Path:
        return self._config_path

    def load(
        self,
        *,
        include_env: bool = True,
        cli_overrides: Mapping[str, Any] | None = None,
    ) -> IngestConfig:
        """Return the effective configuration without touching the file.

        A missing file contributes nothing, so defaults plus overrides apply.

        Raises:
            ConfigError: If the file cannot be read or any layer fails validation.
        """
        return resolve_with_precedence(
            defaults=IngestConfig(),
            file_overrides=self._stored(),
            env_overrides=overrides_from_env(self._env) if include_env else None,
            cli_overrides=cli_overrides,
        )

    def set_value(self, key: str, value: Any) -> bool:
        """Store ``value`` under the dotted ``key`` in the configuration file.

        The file is seeded with defaults when missing. The stored result is
        validated before anything is written.

        Args:
            key: Dotted path such as ``stability.threshold_seconds``.
            value: Already parsed value.

        Returns:
            bool: ``False`` when the file already held ``value``.

        Raises:
            ConfigError: If the key is malformed or the result is invalid.
        """
        segments = [segment.strip() for segment in key.split(".") if segment.strip()]
        if not segments:
            raise ConfigError(
                "KEY must specify a dotted path such as 'stability.threshold_seconds'."
            )

        self.ensure_exists()
        stored = self._stored()
        node = stored
        for segment in segments[:-1]:
            child = node.get(segment)
            if child is None:
                child = node[segment] = {}
            elif not isinstance(child, dict):
                raise ConfigError(
                    f"Cannot assign into '{segment}' because it is not a mapping in "
                    f"{self._config_path}."
                )
            node = child

        leaf = segments[-1]
        if leaf in node and node[leaf] == value:
            return False
        node[leaf] = value
        resolve_with_precedence(defaults=IngestConfig(), file_overrides=stored)
        self.save(stored)
        return True

    def save(self, config: IngestConfig | Mapping[str, Any]) -> None:
        """Write ``config`` to the configuration file.

        Raises:
            ConfigError: If the file cannot be written.
        """
        if isinstance(config, IngestConfig):
            data = config.model_dump(mode="json")
        else:
            data = dict(config)
        try:
            self._config_path.parent.mkdir(parents=True, exist_ok=True)
            self._config_path.write_text(
                _CONFIG_HEADER + yaml.safe_dump(data, sort_keys=False), encoding="utf-8"
            )
        except OSError as exc:
            raise ConfigError(
                f"Unable to write configuration file {self._config_path}: {exc}"
            ) from exc

    def ensure_exists(self) -> Path:
        """Write a file holding the defaults when none exists yet."""
        if not self._config_path.exists():
            self.save(IngestConfig())
        return self._config_path

    def read_text(self) -> str:
        if not self._config_path.exists():
            return ""
        return self._config_path.read_text(encoding="utf-8")

    def _stored(self) -> dict[str, Any]:
        try:
            text = self._config_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            raise ConfigError(
                f"Unable to read configuration file {self._config_path}: {exc}"
            ) from exc

        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse configuration file: {exc}") from exc

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError("Configuration file must contain a mapping at the top level.")
        return data


__all__ = [
    "ConfigError",
    "ConfigManager",
    "DEFAULT_CONFIG_PATH",
    "ENV_PREFIX",
    "IngestConfig",
    "overrides_from_env",
    "resolve_with_precedence",
]
