"""Tests for the provider catalog loader."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from llm_consensus.models.catalog import DEFAULT_CATALOG, load_provider_catalog


def test_default_profiles() -> None:
    catalog = load_provider_catalog()
    assert set(catalog.profile_names()) >= {"balanced", "premium", "economical", "fast", "accurate", "fallback"}
    assert len(catalog.profile("fallback")) == 1
    accurate = catalog.profile("accurate")
    assert [d.provider_id for d in accurate] == ["openai", "anthropic", "google"]
    assert accurate[1].model_id == "claude-sonnet-4-20250514"
    assert catalog.pricing["gpt-4o-mini"].input_per_million == pytest.approx(0.15)


def test_unknown_profile() -> None:
    with pytest.raises(ValueError, match="Unknown profile"):
        load_provider_catalog().profile("gold")


def test_yaml_override(tmp_path: Path) -> None:
    config = {
        "models": {"local": {"provider": "openai", "api_model": "gpt-4.1-mini", "weight": 2}},
        "profiles": {"solo": ["local"]},
    }
    path = tmp_path / "profiles.yaml"
    path.write_text(yaml.safe_dump(config), encoding="utf-8")

    catalog = load_provider_catalog(config_path=path)
    (descriptor,) = catalog.profile("solo")
    assert descriptor.model_id == "gpt-4.1-mini"
    assert descriptor.weight == 2.0
    assert catalog.profile_names() == ["solo"]


def test_invalid_catalogs_rejected() -> None:
    with pytest.raises(ValueError, match="unknown models"):
        load_provider_catalog(raw_config={"models": {}, "profiles": {"p": ["missing"]}})
    with pytest.raises(ValueError, match="empty"):
        load_provider_catalog(raw_config={"models": DEFAULT_CATALOG["models"], "profiles": {"p": []}})
    with pytest.raises(ValueError, match="provider"):
        load_provider_catalog(raw_config={"models": {"m": {"cost": "low"}}, "profiles": {}})
    with pytest.raises(ValueError):
        load_provider_catalog(raw_config={"models": {}})
