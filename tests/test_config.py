"""
Tests for configuration resolution and config files.
"""

import json

import pytest
import yaml

from accessibility_conformance.utils.config import (
    DEFAULT_CONFIG,
    ConfigManager,
    config_manager,
    load_config_file,
    save_config,
)
from accessibility_conformance.utils.logging_helper import ConfigurationError


class TestConfigManager:

    def test_section_defaults(self):
        assert config_manager.get_config(section="versioning") == DEFAULT_CONFIG["versioning"]

    def test_defaults_are_not_shared(self):
        config = config_manager.get_config(section="analysis")
        config["max_findings"] = 99
        assert config_manager.get_config(section="analysis")["max_findings"] == 5

    def test_environment_overrides_are_typed(self, monkeypatch):
        monkeypatch.setenv("ACR_APPLICABILITY_MAX_FRAGMENTS", "7")
        monkeypatch.setenv("ACR_APPLICABILITY_ENABLED", "false")
        monkeypatch.setenv("ACR_VERSIONING_RETRY_BACKOFF_SECONDS", "0.5")
        applicability = config_manager.get_config(section="applicability")
        assert applicability["max_fragments"] == 7
        assert applicability["enabled"] is False
        assert config_manager.get_config(section="versioning")["retry_backoff_seconds"] == 0.5

    def test_unconvertible_environment_value_is_ignored(self, monkeypatch):
        monkeypatch.setenv("ACR_APPLICABILITY_MAX_FRAGMENTS", "many")
        assert config_manager.get_config(section="applicability")["max_fragments"] == 50

    def test_precedence(self, monkeypatch):
        config_manager.set_user_config({"max_fragments": 10}, "applicability")
        assert config_manager.get_config(section="applicability")["max_fragments"] == 10

        monkeypatch.setenv("ACR_APPLICABILITY_MAX_FRAGMENTS", "20")
        assert config_manager.get_config(section="applicability")["max_fragments"] == 20
        assert config_manager.get_config({"max_fragments": 30}, section="applicability")["max_fragments"] == 30

    def test_user_config_without_section(self):
        manager = ConfigManager({"analysis": {"max_findings": 5}, "flag": False})
        manager.set_user_config({"analysis": {"max_findings": 3}, "flag": True})
        assert manager.get_config() == {"analysis": {"max_findings": 3}, "flag": True}
        manager.reset()
        assert manager.get_config(section="analysis") == {"max_findings": 5}

    def test_update_defaults(self):
        manager = ConfigManager({})
        manager.update_defaults({"url": "sqlite://"}, section="database")
        assert manager.get_config(section="database") == {"url": "sqlite://"}


class TestConfigFiles:

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("applicability:\n  max_fragments: 12\n", encoding="utf-8")
        assert load_config_file(str(path)) == {"applicability": {"max_fragments": 12}}

    def test_load_empty_yaml(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("", encoding="utf-8")
        assert load_config_file(str(path)) == {}

    def test_load_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"versioning": {"max_attempts": 5}}), encoding="utf-8")
        assert load_config_file(str(path))["versioning"]["max_attempts"] == 5

    @pytest.mark.parametrize(
        "name,content",
        [
            ("config.toml", "x = 1"),
            ("config.yaml", "key: [unclosed"),
            ("config.json", "{not json"),
            ("config.yaml", "- just\n- a list\n"),
        ],
    )
    def test_load_errors(self, tmp_path, name, content):
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_config_file(str(path))

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_config_file(str(tmp_path / "missing.yaml"))

    def test_save(self, tmp_path):
        yaml_path = tmp_path / "saved.yaml"
        json_path = tmp_path / "saved.json"
        save_config(DEFAULT_CONFIG, str(yaml_path))
        save_config(DEFAULT_CONFIG, str(json_path), "json")
        assert yaml.safe_load(yaml_path.read_text(encoding="utf-8")) == DEFAULT_CONFIG
        assert json.loads(json_path.read_text(encoding="utf-8")) == DEFAULT_CONFIG

    def test_save_errors(self, tmp_path):
        with pytest.raises(ConfigurationError):
            save_config({}, str(tmp_path / "saved.ini"), "ini")
        with pytest.raises(ConfigurationError):
            save_config({}, str(tmp_path / "missing-dir" / "saved.yaml"))
