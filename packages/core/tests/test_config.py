"""Tests for configuration loading."""

import pytest

from mrlens_core.checks.types import DEFAULT_CATEGORY_WEIGHTS, CheckCategory, CheckStatus
from mrlens_core.config import DEFAULT_CONFIG, load_category_weights, load_check_configs, load_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "GITHUB_TOKEN",
        "ANTHROPIC_API_KEY",
        "OPENAI_API_KEY",
        "HTTPS_PROXY",
        "https_proxy",
        "HTTP_PROXY",
        "http_proxy",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults_applied_when_no_config_file(tmp_path):
    config = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    assert config["tenant"] == "default"
    assert config["store"] == "sqlite"
    assert config["gold_score_threshold"] == 85
    assert config["gold_min_overlap"] == 5
    assert config["gold_max_references"] == 3
    assert config["llm_max_retries"] == 3
    assert config["ai_enabled"] is False
    assert config["proxy_url"] is None


def test_defaults_are_not_shared_between_loads(tmp_path):
    config = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    config["checks"]["secrets"] = {"enabled": False}
    assert DEFAULT_CONFIG["checks"] == {}


def test_config_file_overrides_defaults(tmp_path):
    cfg = tmp_path / ".mrlens.yml"
    cfg.write_text("model: anthropic\ngold_score_threshold: 90\n")
    config = load_config(config_path=str(cfg))
    assert config["model"] == "anthropic"
    assert config["gold_score_threshold"] == 90


def test_empty_config_file(tmp_path):
    cfg = tmp_path / ".mrlens.yml"
    cfg.write_text("")
    assert load_config(config_path=str(cfg))["store"] == "sqlite"


def test_non_mapping_config_file_is_rejected(tmp_path):
    cfg = tmp_path / ".mrlens.yml"
    cfg.write_text("- just\n- a list\n")
    with pytest.raises(ValueError, match="mapping"):
        load_config(config_path=str(cfg))


def test_cli_overrides_take_precedence(tmp_path):
    cfg = tmp_path / ".mrlens.yml"
    cfg.write_text("model: anthropic\n")
    config = load_config(config_path=str(cfg), cli_overrides={"model": "openai"})
    assert config["model"] == "openai"


def test_none_cli_override_is_ignored(tmp_path):
    cfg = tmp_path / ".mrlens.yml"
    cfg.write_text("model: anthropic\n")
    config = load_config(config_path=str(cfg), cli_overrides={"model": None})
    assert config["model"] == "anthropic"


def test_credentials_come_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("GITHUB_TOKEN", "ghp_test")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    config = load_config(config_path=str(tmp_path / "none.yml"))
    assert config["github_token"] == "ghp_test"
    assert config["openai_api_key"] == "sk-test"
    assert config["anthropic_api_key"] is None


def test_proxy_falls_back_to_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("HTTP_PROXY", "http://proxy:3128")
    config = load_config(config_path=str(tmp_path / "none.yml"))
    assert config["proxy_url"] == "http://proxy:3128"


def test_https_proxy_preferred(tmp_path, monkeypatch):
    monkeypatch.setenv("HTTP_PROXY", "http://plain:3128")
    monkeypatch.setenv("HTTPS_PROXY", "http://secure:3128")
    assert load_config(config_path=str(tmp_path / "none.yml"))["proxy_url"] == "http://secure:3128"


def test_configured_proxy_wins(tmp_path, monkeypatch):
    monkeypatch.setenv("HTTPS_PROXY", "http://env:3128")
    cfg = tmp_path / ".mrlens.yml"
    cfg.write_text("proxy_url: http://file:3128\n")
    assert load_config(config_path=str(cfg))["proxy_url"] == "http://file:3128"


class TestLoadCheckConfigs:
    def test_empty(self):
        assert load_check_configs({}) == []

    def test_parses_overrides(self):
        [config] = load_check_configs(
            {"checks": {"large-diff": {"enabled": True, "severity": "fail", "thresholds": {"maxLines": 100}}}}
        )
        assert config.check_key == "large-diff"
        assert config.severity_override == CheckStatus.FAIL
        assert config.thresholds == {"maxLines": 100}

    def test_disable_check(self):
        [config] = load_check_configs({"checks": {"secrets": {"enabled": False}}})
        assert config.enabled is False
        assert config.severity_override is None

    def test_null_settings_mean_defaults(self):
        [config] = load_check_configs({"checks": {"secrets": None}})
        assert config.enabled is True

    def test_unknown_check_key(self):
        with pytest.raises(ValueError, match="Unknown check key"):
            load_check_configs({"checks": {"no-such-check": {}}})

    def test_unknown_field(self):
        with pytest.raises(ValueError, match="Unknown field"):
            load_check_configs({"checks": {"secrets": {"level": "high"}}})

    def test_bad_severity(self):
        with pytest.raises(ValueError, match="severity"):
            load_check_configs({"checks": {"secrets": {"severity": "CRITICAL"}}})

    def test_thresholds_must_be_mapping(self):
        with pytest.raises(ValueError, match="thresholds"):
            load_check_configs({"checks": {"large-diff": {"thresholds": [1, 2]}}})

    def test_checks_must_be_mapping(self):
        with pytest.raises(ValueError):
            load_check_configs({"checks": ["secrets"]})


class TestLoadCategoryWeights:
    def test_defaults(self):
        assert load_category_weights({}) == DEFAULT_CATEGORY_WEIGHTS

    def test_merges_case_insensitive_names(self):
        weights = load_category_weights({"category_weights": {"security": 40}})
        assert weights[CheckCategory.SECURITY] == 40
        assert weights[CheckCategory.TESTING] == DEFAULT_CATEGORY_WEIGHTS[CheckCategory.TESTING]

    def test_unknown_category(self):
        with pytest.raises(ValueError, match="Unknown category"):
            load_category_weights({"category_weights": {"STYLE": 5}})

    @pytest.mark.parametrize("weight", [0, -1, "high", True])
    def test_invalid_weights(self, weight):
        with pytest.raises(ValueError, match="positive number"):
            load_category_weights({"category_weights": {"SECURITY": weight}})
