"""YAML configuration loader with flat overrides."""
from __future__ import annotations

from dataclasses import fields
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from dfars.inference.samplers import ARSConfig


def load_config(path: Path) -> dict[str, Any]:
    """Load a YAML config file into a dictionary."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config {path} must be a YAML mapping at top-level.")
    return data


def merge_overrides(config: dict[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    """Merge flat key overrides into a nested config dictionary.

    Dotted keys such as ``"ars.max_iterations"`` address nested sections.
    """
    merged = dict(config)
    for key, value in overrides.items():
        *parents, leaf = key.split(".")
        node = merged
        for part in parents:
            child = node.get(part)
            child = dict(child) if isinstance(child, Mapping) else {}
            node[part] = child
            node = child
        node[leaf] = value
    return merged


def ars_config_from_mapping(config: Optional[Mapping[str, Any]]) -> ARSConfig:
    """Build an :class:`ARSConfig` from the ``ars`` section of a config (or the mapping itself)."""
    if not config:
        return ARSConfig()
    section = config.get("ars", config)
    if section is None:
        return ARSConfig()
    if not isinstance(section, Mapping):
        raise ValueError("The 'ars' config section must be a mapping.")
    allowed = {f.name for f in fields(ARSConfig)}
    unknown = sorted(set(section) - allowed)
    if unknown:
        raise ValueError(f"Unknown ARS config keys: {unknown}; expected a subset of {sorted(allowed)}.")
    return ARSConfig(**dict(section))


def load_ars_config(path: Path, overrides: Optional[Mapping[str, Any]] = None) -> ARSConfig:
    """Read a YAML file, apply overrides, and return the resulting :class:`ARSConfig`."""
    config = load_config(path)
    if overrides:
        config = merge_overrides(config, overrides)
    return ars_config_from_mapping(config)
