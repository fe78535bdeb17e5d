import copy
import os
from pathlib import Path
from typing import Optional

import yaml

from mrlens_core.checks.registry import CHECKS
from mrlens_core.checks.types import DEFAULT_CATEGORY_WEIGHTS, CheckCategory, CheckConfig, CheckStatus

DEFAULT_CONFIG: dict = {
    "tenant": "default",
    "store": "sqlite",  # sqlite | memory
    "store_path": ".mrlens.db",
    "gold_score_threshold": 85,
    "gold_min_overlap": 5,
    "gold_max_references": 3,
    "ai_enabled": False,
    "model": "openai",  # openai | anthropic
    "model_name": None,  # None = provider default
    "llm_timeout": 120,
    "llm_max_retries": 3,
    "proxy_url": None,  # None = fall back to HTTPS_PROXY / HTTP_PROXY
    "max_suggestions": 5,
    "max_prompt_chars": 6000,
    "max_lines_per_file": 40,
    "checks": {},  # {check_key: {enabled, severity, thresholds}}
    "category_weights": {},  # {CATEGORY: weight}, merged onto the defaults
}

_CHECK_FIELDS = {"enabled", "severity", "thresholds"}


def _env_proxy() -> Optional[str]:
    for name in ("HTTPS_PROXY", "https_proxy", "HTTP_PROXY", "http_proxy"):
        value = os.environ.get(name)
        if value:
            return value
    return None


def load_config(config_path: str = ".mrlens.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .mrlens.yml in the current directory
      3. CLI argument overrides
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        if not isinstance(file_config, dict):
            raise ValueError(f"{config_path} must contain a mapping at the top level")
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    # Resolve credentials from environment variables
    config["github_token"] = os.environ.get("GITHUB_TOKEN")
    config["anthropic_api_key"] = os.environ.get("ANTHROPIC_API_KEY")
    config["openai_api_key"] = os.environ.get("OPENAI_API_KEY")
    if not config.get("proxy_url"):
        config["proxy_url"] = _env_proxy()

    return config


def _parse_severity(key: str, value) -> Optional[CheckStatus]:
    if value is None:
        return None
    try:
        return CheckStatus(str(value).upper())
    except ValueError:
        raise ValueError(f"checks.{key}.severity must be one of PASS, WARN, FAIL (got {value!r})")


def load_check_configs(config: dict) -> list[CheckConfig]:
    """
    Turn the ``checks`` mapping into CheckConfig overrides.

    Unknown check keys, unknown fields, bad severities and non-mapping
    thresholds raise ValueError so a typo never silently disables nothing.
    """
    raw = config.get("checks") or {}
    if not isinstance(raw, dict):
        raise ValueError("checks must be a mapping of check key to settings")

    configs = []
    for key, settings in raw.items():
        if key not in CHECKS:
            raise ValueError(f"Unknown check key in config: {key}")
        settings = settings or {}
        if not isinstance(settings, dict):
            raise ValueError(f"checks.{key} must be a mapping")
        unknown = set(settings) - _CHECK_FIELDS
        if unknown:
            raise ValueError(f"Unknown field(s) for checks.{key}: {', '.join(sorted(unknown))}")
        thresholds = settings.get("thresholds") or {}
        if not isinstance(thresholds, dict):
            raise ValueError(f"checks.{key}.thresholds must be a mapping")

        configs.append(
            CheckConfig(
                check_key=key,
                enabled=bool(settings.get("enabled", True)),
                severity_override=_parse_severity(key, settings.get("severity")),
                thresholds=dict(thresholds),
            )
        )
    return configs


def load_category_weights(config: dict) -> dict[CheckCategory, float]:
    """Merge ``category_weights`` onto the defaults. Weights must be positive numbers."""
    weights = dict(DEFAULT_CATEGORY_WEIGHTS)
    raw = config.get("category_weights") or {}
    if not isinstance(raw, dict):
        raise ValueError("category_weights must be a mapping of category to weight")

    for name, weight in raw.items():
        try:
            category = CheckCategory(str(name).upper())
        except ValueError:
            raise ValueError(f"Unknown category in category_weights: {name}")
        if isinstance(weight, bool) or not isinstance(weight, (int, float)) or weight <= 0:
            raise ValueError(f"category_weights.{name} must be a positive number (got {weight!r})")
        weights[category] = weight
    return weights
