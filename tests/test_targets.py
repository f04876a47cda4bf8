from __future__ import annotations

import json

import pytest

from utils.targets import FactoryLocator, load_target_mapping, resolve_factory_locator

_ENTRY = {"subscription_id": "sub-1", "resource_group": "rg-1", "factory_name": "adf-1"}


def test_load_target_mapping_flattens_grouped_entries(tmp_path) -> None:
    config = tmp_path / "targets.yaml"
    config.write_text(
        """
targets:
  ingest:
    dev:
      subscription_id: "111"
      resource_group: "rg-dev"
      factory_name: "adf-dev"
    prod:
      subscription_id: "222"
      resource_group: "rg-prod"
      factory_name: "adf-prod"
  reporting:
    resource_group: "rg-rep"
    factory_name: "adf-rep"
""".lstrip(),
        encoding="utf-8",
    )

    mapping = load_target_mapping(str(config))
    assert mapping["ingest_dev"]["factory_name"] == "adf-dev"
    assert mapping["ingest_prod"]["subscription_id"] == "222"
    assert mapping["reporting"]["resource_group"] == "rg-rep"
    assert mapping["reporting"]["subscription_id"] is None


def test_load_target_mapping_rejects_incomplete_entry(tmp_path) -> None:
    config = tmp_path / "targets.yaml"
    config.write_text("targets:\n  broken:\n    factory_name: adf\n", encoding="utf-8")
    with pytest.raises(ValueError, match="broken"):
        load_target_mapping(str(config))


@pytest.mark.parametrize(
    "entry_yaml",
    [
        "resource_group: rg\n    factory_name: 123",
        "resource_group: [rg-a, rg-b]\n    factory_name: adf",
        "resource_group: '   '\n    factory_name: adf",
        "resource_group: rg\n    factory_name: adf\n    subscription_id: {id: 1}",
    ],
)
def test_load_target_mapping_rejects_non_string_fields(tmp_path, entry_yaml: str) -> None:
    config = tmp_path / "targets.yaml"
    config.write_text(f"targets:\n  site_a:\n    {entry_yaml}\n", encoding="utf-8")
    with pytest.raises(ValueError, match="site_a.*must be a non-empty string"):
        load_target_mapping(str(config))


def test_load_target_mapping_strips_grouped_fields(monkeypatch) -> None:
    payload = {"ingest": {"dev": {"resource_group": " rg-dev ", "factory_name": "adf-dev\n"}}}
    monkeypatch.setenv("ADF_TARGETS_JSON", json.dumps(payload))
    mapping = load_target_mapping(None)
    assert mapping["ingest_dev"] == {
        "subscription_id": None,
        "resource_group": "rg-dev",
        "factory_name": "adf-dev",
    }


def test_load_target_mapping_from_env(monkeypatch) -> None:
    monkeypatch.setenv("ADF_TARGETS_JSON", json.dumps({"site_a": _ENTRY}))
    mapping = load_target_mapping(None)
    assert mapping["site_a"] == _ENTRY


def test_load_target_mapping_invalid_env_json(monkeypatch) -> None:
    monkeypatch.setenv("ADF_TARGETS_JSON", "{not json")
    with pytest.raises(ValueError, match="ADF_TARGETS_JSON"):
        load_target_mapping(None)


def test_resolve_factory_locator_prefers_direct_values(monkeypatch) -> None:
    monkeypatch.setenv("ADF_TARGETS_JSON", json.dumps({"site_a": _ENTRY}))
    locator = resolve_factory_locator("sub-9", None, "adf-9", "site_a", None)
    assert locator == FactoryLocator("sub-9", "rg-1", "adf-9")


def test_resolve_factory_locator_uses_subscription_env(monkeypatch) -> None:
    monkeypatch.setenv("AZURE_SUBSCRIPTION_ID", "sub-env")
    locator = resolve_factory_locator(None, "rg", "adf", None, None)
    assert locator.subscription_id == "sub-env"
    assert locator.factory_path == (
        "/subscriptions/sub-env/resourceGroups/rg/providers/Microsoft.DataFactory/factories/adf"
    )


def test_resolve_factory_locator_unknown_key(monkeypatch) -> None:
    monkeypatch.setenv("ADF_TARGETS_JSON", json.dumps({"site_a": _ENTRY}))
    with pytest.raises(ValueError, match="Available entries: site_a"):
        resolve_factory_locator(None, None, None, "site_b", None)


def test_resolve_factory_locator_raises_on_missing(monkeypatch) -> None:
    monkeypatch.delenv("AZURE_SUBSCRIPTION_ID", raising=False)
    with pytest.raises(ValueError, match="subscription_id"):
        resolve_factory_locator(None, "rg", "adf", None, None)
