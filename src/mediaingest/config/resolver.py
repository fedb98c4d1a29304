"""Layering of configuration sources into a validated :class:`IngestConfig`."""

from __future__ import annotations

from typing import Any, Mapping

import yaml
from pydantic import ValidationError

from .exceptions import ConfigError
from .models import IngestConfig

ENV_PREFIX = "MEDIAINGEST__"


def overrides_from_env(env: Mapping[str, str]) -> dict[str, Any]:
    """Collect ``MEDIAINGEST__SECTION__KEY`` variables into nested overrides.

    Values are parsed as YAML so ``false``, ``30`` and ``[beet, import]`` keep
    their types; text YAML rejects is used verbatim.

    Args:
        env: Environment mapping, usually ``os.environ``.

    Returns:
        dict[str, Any]: Nested overrides keyed by lower-cased section and field.
    """
    overrides: dict[str, Any] = {}
    for name in sorted(env):
        if not name.startswith(ENV_PREFIX):
            continue
        segments = [segment.lower() for segment in name[len(ENV_PREFIX) :].split("__")]
        if not all(segments):
            continue
        raw = env[name]
        try:
            value = yaml.safe_load(raw)
        except yaml.YAMLError:
            value = raw
        _place(overrides, segments, value, origin="environment")
    return overrides


def resolve_with_precedence(
    *,
    defaults: IngestConfig,
    file_overrides: Mapping[str, Any] | None = None,
    env_overrides: Mapping[str, Any] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> IngestConfig:
    """Merge configuration sources: defaults < file < environment < CLI.

    Keys of any layer may be dotted (``stability.threshold_seconds``).

    Raises:
        ConfigError: If a layer is malformed or the merged result is invalid.
    """
    merged = defaults.model_dump(mode="json")
    layers = (("file", file_overrides), ("environment", env_overrides), ("cli", cli_overrides))
    for origin, source in layers:
        if source:
            merged = _merge(merged, _layer(source, origin=origin))

    try:
        return IngestConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration values: {_describe(exc)}") from exc


def _layer(source: Mapping[str, Any], *, origin: str) -> dict[str, Any]:
    if not isinstance(source, Mapping):
        raise ConfigError(f"{origin.capitalize()} overrides must be a mapping.")
    layer: dict[str, Any] = {}
    for key, value in source.items():
        if not isinstance(key, str):
            raise ConfigError(f"{origin.capitalize()} override keys must be strings.")
        if isinstance(value, Mapping):
            value = _layer(value, origin=origin)
        _place(layer, key.split("."), value, origin=origin)
    return layer


def _place(target: dict[str, Any], segments: list[str], value: Any, *, origin: str) -> None:
    node = target
    for segment in segments[:-1]:
        child = node.get(segment)
        if child is None:
            child = node[segment] = {}
        elif not isinstance(child, dict):
            raise ConfigError(
                f"{origin.capitalize()} override {'.'.join(segments)} conflicts with a "
                f"non-mapping value at '{segment}'."
            )
        node = child
    leaf = segments[-1]
    current = node.get(leaf)
    if isinstance(current, dict) and isinstance(value, Mapping):
        node[leaf] = _merge(current, value)
    else:
        node[leaf] = value


def _merge(base: dict[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            merged[key] = _merge(current, value)
        else:
            merged[key] = value
    return merged


def _describe(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )


__all__ = ["ENV_PREFIX", "overrides_from_env", "resolve_with_precedence"]
