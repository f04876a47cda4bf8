"""Target-key mapping helpers for Data Factory scripts.

This module provides a consistent way to resolve the factory locator
(subscription_id, resource_group, factory_name) either directly or via a
target-key mapping sourced from YAML or environment variables.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

DEFAULT_TARGETS_CONFIG = "config/targets.yaml"
TARGETS_ENV_VAR = "ADF_TARGETS_JSON"
SUBSCRIPTION_ENV_VAR = "AZURE_SUBSCRIPTION_ID"

_LOCATOR_FIELDS = ("subscription_id", "resource_group", "factory_name")


@dataclass(frozen=True)
class FactoryLocator:
    """Identifies one Data Factory instance."""

    subscription_id: str
    resource_group: str
    factory_name: str

    @property
    def factory_path(self) -> str:
        return (
            f"/subscriptions/{self.subscription_id}"
            f"/resourceGroups/{self.resource_group}"
            f"/providers/Microsoft.DataFactory/factories/{self.factory_name}"
        )


def load_target_mapping(config_path: str | None) -> dict[str, dict[str, Any]]:
    """Load the target-key -> Data Factory mapping.

    The mapping can be supplied from:
    - a YAML file (preferred), or
    - a JSON payload in `ADF_TARGETS_JSON`.

    The file can either be a raw mapping or contain a top-level `targets` key.
    Grouped entries are supported, e.g.:

    ```yaml
    targets:
      ingest:
        dev: { subscription_id: "...", resource_group: "...", factory_name: "..." }
        prod: { subscription_id: "...", resource_group: "...", factory_name: "..." }
    ```

    which is flattened to keys like `ingest_dev` / `ingest_prod`. An entry may
    omit `subscription_id`; it is then taken from `AZURE_SUBSCRIPTION_ID` or
    the command line.

    Args:
        config_path: Optional explicit YAML path.

    Returns:
        Normalized mapping keyed by target key.

    Raises:
        FileNotFoundError: If neither file nor env mapping is available.
        ValueError: If the mapping is malformed.
    """
    mapping = _load_mapping_from_file(config_path)
    if mapping is None:
        mapping = _load_mapping_from_env()

    if mapping is None:
        source_hint = config_path or DEFAULT_TARGETS_CONFIG
        raise FileNotFoundError(
            "No target mapping found. Provide --config-path, create "
            f"{source_hint}, or export JSON via {TARGETS_ENV_VAR}.",
        )

    if not isinstance(mapping, dict):
        raise ValueError("Target entries must be provided as a mapping.")

    return _normalize_mapping(mapping)


def resolve_factory_locator(
    subscription_id: str | None,
    resource_group: str | None,
    factory_name: str | None,
    target_key: str | None,
    config_path: str | None,
) -> FactoryLocator:
    """Resolve the factory locator directly or via target-key mapping.

    Explicit values win over mapping values; the subscription falls back to
    `AZURE_SUBSCRIPTION_ID`.

    Raises:
        ValueError: If required identifiers cannot be resolved.
    """
    resolved = {
        "subscription_id": subscription_id,
        "resource_group": resource_group,
        "factory_name": factory_name,
    }

    if target_key:
        mapping = load_target_mapping(config_path)
        entry = mapping.get(target_key)
        if not entry:
            available = ", ".join(sorted(mapping.keys()))
            raise ValueError(
                f"Target key '{target_key}' not found. Available entries: {available or 'none'}",
            )
        for field_name in _LOCATOR_FIELDS:
            resolved[field_name] = resolved[field_name] or str(entry.get(field_name) or "")

    resolved["subscription_id"] = resolved["subscription_id"] or os.getenv(SUBSCRIPTION_ENV_VAR)

    missing = [name for name in _LOCATOR_FIELDS if not resolved[name]]
    if missing:
        raise ValueError(
            f"Missing {', '.join(missing)}. Provide --subscription-id/--resource-group/"
            "--factory-name or specify --target-key with a valid mapping.",
        )

    return FactoryLocator(**{name: str(resolved[name]) for name in _LOCATOR_FIELDS})


def _resolve_mapping_path(config_path: str | None) -> Path | None:
    if config_path:
        return Path(config_path)

    default_targets_path = Path(DEFAULT_TARGETS_CONFIG)
    if default_targets_path.exists():
        return default_targets_path

    return None


def _load_mapping_from_file(config_path: str | None) -> dict[str, Any] | None:
    path_to_load = _resolve_mapping_path(config_path)
    if not path_to_load or not path_to_load.exists():
        return None

    with open(path_to_load, "r", encoding="utf-8") as config_file:
        raw_data = yaml.safe_load(config_file) or {}

    if not isinstance(raw_data, dict):
        raise ValueError("Target config must be a mapping.")

    # Support both: top-level mapping, or wrapped in `targets:`.
    raw_mapping = raw_data.get("targets", raw_data)
    if raw_mapping is None:
        return None
    if not isinstance(raw_mapping, dict):
        raise ValueError("Target config must be a mapping.")
    return raw_mapping


def _load_mapping_from_env() -> dict[str, Any] | None:
    env_payload = os.getenv(TARGETS_ENV_VAR)
    if not env_payload:
        return None

    try:
        parsed = json.loads(env_payload)
    except json.JSONDecodeError as exc:
        raise ValueError(
            f"Failed to parse {TARGETS_ENV_VAR} environment variable as JSON.",
        ) from exc

    if not isinstance(parsed, dict):
        raise ValueError(f"{TARGETS_ENV_VAR} must contain a JSON object mapping.")
    return parsed


def _is_target_entry(value: dict[str, Any]) -> bool:
    return {"resource_group", "factory_name"} <= set(value.keys())


def _clean_entry(key: str, value: dict[str, Any]) -> dict[str, Any]:
    cleaned: dict[str, Any] = {}
    for name in _LOCATOR_FIELDS:
        field_value = value.get(name)
        if field_value is None and name == "subscription_id":
            cleaned[name] = None
            continue
        if not isinstance(field_value, str) or not field_value.strip():
            raise ValueError(f"Target key '{key}' field '{name}' must be a non-empty string.")
        cleaned[name] = field_value.strip()
    return cleaned


def _normalize_mapping(mapping: dict[str, Any]) -> dict[str, dict[str, Any]]:
    cleaned: dict[str, dict[str, Any]] = {}

    for key, value in mapping.items():
        if not isinstance(value, dict):
            raise ValueError(f"Target key '{key}' configuration must be a mapping.")

        if _is_target_entry(value):
            cleaned[key] = _clean_entry(key, value)
            continue

        # Allow grouping keys (e.g., ingest: { dev: {...}, prod: {...} })
        subgroup_added = False
        for sub_key, sub_value in value.items():
            if isinstance(sub_value, dict) and _is_target_entry(sub_value):
                cleaned[f"{key}_{sub_key}"] = _clean_entry(f"{key}_{sub_key}", sub_value)
                subgroup_added = True
        if subgroup_added:
            continue

        raise ValueError(
            f"Target key '{key}' configuration is missing 'resource_group'/'factory_name' "
            "and does not contain sub-entries with those fields.",
        )

    return cleaned
