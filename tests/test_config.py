"""Tests for AppConfig helpers."""

from __future__ import annotations

from pathlib import Path

import pytest

from sqlplex import config as config_module
from sqlplex.config import AppConfig, ConnectionConfig, load_config, save_config
from sqlplex.models import Connection


def test_connection_map_keys_by_name() -> None:
    config = AppConfig(
        connections=[
            ConnectionConfig(name="aws", plugin="hub/aws@latest"),
            ConnectionConfig(name="gcp", plugin="gcp"),
        ]
    )

    result = config.connection_map()

    assert result == {
        "aws": Connection(name="aws", plugin_name="hub/aws@latest"),
        "gcp": Connection(name="gcp", plugin_name="gcp"),
    }
    assert result["aws"].plugin_identity == "hub/aws"


def test_effective_search_path_uses_default_when_unset() -> None:
    config = AppConfig(search_path_prefix=["aws"])

    assert config.effective_search_path(["public", "aws", "gcp"]) == ("aws", "public", "gcp")


def test_effective_search_path_override_replaces_default() -> None:
    config = AppConfig(search_path=["gcp"])

    assert config.effective_search_path(["public"]) == ("gcp",)


def test_load_config_returns_defaults_when_missing(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config_module, "CONFIG_FILE", tmp_path / "config.toml")

    result = load_config()

    assert result == AppConfig()


def test_load_config_reads_values(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text(
        """
dsn = "postgres://steward@localhost:9193/steward"
trace_suggestions = true
search_path_prefix = ["aws"]

[[connections]]
name = "aws"
plugin = "hub/aws@latest"

[[connections]]
name = "broken"

[[connections]]
name = "gcp"
plugin = "gcp"
"""
    )
    monkeypatch.setattr(config_module, "CONFIG_FILE", config_path)

    result = load_config()

    assert result.dsn == "postgres://steward@localhost:9193/steward"
    assert result.trace_suggestions is True
    assert result.search_path is None
    assert result.search_path_prefix == ["aws"]
    assert [entry.name for entry in result.connections] == ["aws", "gcp"]


def test_load_config_handles_toml_errors(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text("dsn = [unterminated")
    monkeypatch.setattr(config_module, "CONFIG_FILE", config_path)

    result = load_config()

    assert result == AppConfig()


def test_with_connection_adds_and_replaces() -> None:
    config = AppConfig().with_connection("aws", "aws@1")

    updated = config.with_connection("aws", "aws@2").with_connection("gcp", "gcp")

    assert updated.connection_map()["aws"].plugin_name == "aws@2"
    assert set(updated.connection_map()) == {"aws", "gcp"}
    assert updated.without_connection("aws").connection_map().keys() == {"gcp"}
    assert config.connection_map()["aws"].plugin_name == "aws@1"


def test_save_config_round_trips(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config_path = tmp_path / "nested" / "config.toml"
    monkeypatch.setattr(config_module, "CONFIG_FILE", config_path)
    original = AppConfig(
        host="localhost",
        port=9193,
        database="steward",
        search_path=["public", "aws"],
        connections=[ConnectionConfig(name="aws", plugin="hub/aws@latest")],
    )

    save_config(original)

    content = config_path.read_text()
    assert "[[connections]]" in content
    assert 'plugin = "hub/aws@latest"' in content
    assert "port = 9193" in content
    assert load_config() == original
