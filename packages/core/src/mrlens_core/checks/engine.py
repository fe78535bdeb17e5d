"""Runs the registered checks against a changeset."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from mrlens_core.checks.registry import ALL_CHECKS
from mrlens_core.checks.types import CheckConfig, CheckContext, CheckDefinition, CheckResult, CheckStatus

logger = logging.getLogger(__name__)


def _neutral_result(definition: CheckDefinition, error: Exception) -> CheckResult:
    return CheckResult(
        key=definition.key,
        title=definition.title,
        category=definition.category,
        status=CheckStatus.PASS,
        details=f"Check could not be evaluated ({type(error).__name__}); treated as passing.",
    )


def run_checks(
    context: CheckContext,
    tenant_configs: Optional[list[CheckConfig]] = None,
    checks: Optional[list[CheckDefinition]] = None,
) -> list[CheckResult]:
    """Evaluate every enabled check in registry order.

    Disabled checks produce no result. A severity override replaces the
    status only; title, details and location are kept as the check wrote
    them. A check that raises is logged and reported as PASS; the override
    does not apply to that neutral result.
    """
    configs = {c.check_key: c for c in tenant_configs or []}
    results: list[CheckResult] = []

    for definition in checks if checks is not None else ALL_CHECKS:
        config = configs.get(definition.key)
        if config is not None and not config.enabled:
            logger.debug("Check %s disabled by tenant config", definition.key)
            continue

        thresholds = dict(config.thresholds) if config is not None else {}
        try:
            result = definition.evaluate(context, thresholds)
        except Exception as e:
            logger.warning("Check %s failed and was degraded to PASS: %s", definition.key, e)
            result = _neutral_result(definition, e)
        else:
            if config is not None and config.severity_override is not None:
                result = replace(result, status=config.severity_override)

        results.append(result)

    return results
