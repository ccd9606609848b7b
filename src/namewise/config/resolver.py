"""Configuration resolution helpers."""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from copy import deepcopy
from typing import Any, Dict, Mapping

import yaml
from pydantic import ValidationError

from .exceptions import ConfigError
from .models import NamewiseConfig

ENV_PREFIX = "NAMEWISE__"


def resolve_with_precedence(
    *,
    defaults: NamewiseConfig,
    file_overrides: Mapping[str, Any] | None = None,
    env_overrides: Mapping[str, Any] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> NamewiseConfig:
    """Merge configuration sources: defaults < file < environment < CLI.

    Args:
        defaults: Baseline configuration.
        file_overrides: Nested mapping read from the YAML file.
        env_overrides: Nested mapping derived from ``NAMEWISE__`` variables.
        cli_overrides: Mapping whose keys may be dotted paths.

    Returns:
        NamewiseConfig: Validated configuration.

    Raises:
        ConfigError: If a source is malformed or the merged values are invalid.
    """
    merged = defaults.model_dump(mode="python")
    for name, source in (
        ("file", file_overrides),
        ("environment", env_overrides),
        ("cli", cli_overrides),
    ):
        if source is None:
            continue
        merged = _deep_merge(merged, _normalize_mapping(source, source_name=name))

    try:
        return NamewiseConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration values: {exc}") from exc


def flatten_for_env(config: NamewiseConfig) -> Dict[str, str]:
    """Flatten the config into ``NAMEWISE__SECTION__KEY`` variable mappings."""
    flat: Dict[str, str] = {}

    def _recurse(prefix: list[str], value: Any) -> None:
        if isinstance(value, dict):
            for key, child in value.items():
                _recurse(prefix + [str(key)], child)
            return
        env_key = ENV_PREFIX + "__".join(part.upper() for part in prefix)
        if isinstance(value, list):
            flat[env_key] = yaml.safe_dump(value, default_flow_style=True).strip()
        else:
            flat[env_key] = "null" if value is None else str(value)

    for key, value in config.model_dump(mode="python").items():
        _recurse([str(key)], value)
    return flat


def parse_env_overrides(env: Mapping[str, str]) -> dict[str, Any]:
    """Return nested overrides for every ``NAMEWISE__`` variable in ``env``.

    Values are parsed as YAML literals so ``"0.5"`` becomes a float and
    ``"true"`` a boolean; unparsable values are kept verbatim.
    """
    overrides: dict[str, Any] = {}
    for key, raw_value in env.items():
        if not key.startswith(ENV_PREFIX):
            continue
        path = [segment.lower() for segment in key[len(ENV_PREFIX) :].split("__") if segment]
        if not path:
            continue
        try:
            value: Any = yaml.safe_load(raw_value)
        except yaml.YAMLError:
            value = raw_value
        assign_nested(overrides, path, value)
    return overrides


def assign_nested(target: dict[str, Any], path: list[str], value: Any) -> None:
    """Set ``value`` at ``path`` inside ``target``, creating parents as needed.

    Raises:
        ConfigError: If an intermediate segment already holds a scalar.
    """
    node = target
    for segment in path[:-1]:
        existing = node.get(segment)
        if existing is None:
            existing = {}
            node[segment] = existing
        elif not isinstance(existing, dict):
            raise ConfigError(f"Cannot assign {'.'.join(path)}: {segment} is not a section.")
        node = existing
    node[path[-1]] = value


def _normalize_mapping(
    source: Mapping[str, Any], *, source_name: str, split_keys: bool = True
) -> dict[str, Any]:
    if not isinstance(source, MappingABC):
        raise ConfigError(f"{source_name.capitalize()} overrides must be a mapping.")

    result: dict[str, Any] = {}
    for key, value in dict(source).items():
        if not isinstance(key, str):
            raise ConfigError(f"{source_name.capitalize()} override keys must be strings.")
        if isinstance(value, MappingABC):
            value = _normalize_mapping(value, source_name=source_name, split_keys=False)
        path = key.split(".") if split_keys else [key]
        try:
            if isinstance(value, dict) and isinstance(_lookup(result, path), dict):
                value = _deep_merge(_lookup(result, path), value)
            assign_nested(result, path, value)
        except ConfigError as exc:
            raise ConfigError(f"{source_name.capitalize()} override error: {exc}") from exc
    return result


def _lookup(target: Mapping[str, Any], path: list[str]) -> Any:
    node: Any = target
    for segment in path:
        if not isinstance(node, MappingABC):
            return None
        node = node.get(segment)
    return node


def _deep_merge(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    merged = {key: deepcopy(value) for key, value in base.items()}
    for key, value in overrides.items():
        if isinstance(value, MappingABC) and isinstance(merged.get(key), MappingABC):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = deepcopy(value)
    return merged


__all__ = [
    "ENV_PREFIX",
    "resolve_with_precedence",
    "flatten_for_env",
    "parse_env_overrides",
    "assign_nested",
]
