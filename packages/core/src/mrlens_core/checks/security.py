"""Security checks."""

from __future__ import annotations

import re

from mrlens_core.checks.base import CODE_EXTENSIONS, Issue, check, flag, has_extension, ok
from mrlens_core.checks.diff import added_lines_by_file
from mrlens_core.checks.types import CheckCategory, CheckContext, CheckDefinition, CheckStatus

SECURITY_CHECKS: list[CheckDefinition] = []

_SECRET_RE = re.compile(r"(api_key|secret|token|password|private_key|access_token)\s*[:=]", re.IGNORECASE)
_LOGGER_SECRET_RE = re.compile(r"(logger|logging|log)\.\w+\s*\([^)]*(token|secret|password|api_key)", re.IGNORECASE)
_CREDENTIAL_RES = [
    re.compile(r"password\s*=\s*[\"'][^\"']+[\"']", re.IGNORECASE),
    re.compile(r"username\s*=\s*[\"'](admin|root|user|test)[\"']", re.IGNORECASE),
    re.compile(r"api[_-]?endpoint\s*=\s*[\"']https?://", re.IGNORECASE),
]
_SQL_CALL_RE = re.compile(r"(query|sql|execute|exec)\s*\([^)]*\+", re.IGNORECASE)
_SQL_FORMAT_RE = re.compile(r"(query|execute|exec)\s*\(\s*(f[\"']|`[^`]*\$\{)", re.IGNORECASE)
_XSS_RES = [
    re.compile(r"innerHTML\s*=\s*[^;]*(request|query|body)\.", re.IGNORECASE),
    re.compile(r"dangerouslySetInnerHTML", re.IGNORECASE),
    re.compile(r"\|\s*safe\b|mark_safe\s*\("),
]
_INSECURE_RANDOM_RE = re.compile(r"Math\.random\(\)|\brandom\.(random|randint|choice)\(")
_SENSITIVE_CONTEXT = ("token", "id", "password", "secret")


def _scan(ctx: CheckContext, pattern: re.Pattern, extensions: tuple[str, ...] | None = None) -> list[Issue]:
    issues = []
    for path, lines in added_lines_by_file(ctx.changes).items():
        if extensions and not has_extension(path, extensions):
            continue
        issues.extend(Issue(path, line.line_no) for line in lines if pattern.search(line.text))
    return issues


@check(
    SECURITY_CHECKS,
    key="secrets",
    title="Potential secrets detected",
    category=CheckCategory.SECURITY,
    default_severity=CheckStatus.FAIL,
    rationale="Prevents accidental commit of API keys, tokens, or passwords.",
)
def secrets(ctx, thresholds):
    issues = _scan(ctx, _SECRET_RE)
    if issues:
        return flag(issues, CheckStatus.FAIL, "Potential secrets detected", "Found potential secret patterns:")
    return ok("No secrets detected", "No obvious secret patterns found.")


@check(
    SECURITY_CHECKS,
    key="logging-secrets",
    title="Secrets in logger calls",
    category=CheckCategory.SECURITY,
    default_severity=CheckStatus.FAIL,
    rationale="Prevents logging sensitive data that could be exposed.",
)
def logging_secrets(ctx, thresholds):
    issues = _scan(ctx, _LOGGER_SECRET_RE)
    if issues:
        return flag(
            issues,
            CheckStatus.FAIL,
            "Secrets in logger calls",
            "Found potential secrets in logger calls:",
            "Never log secrets or tokens.",
        )
    return ok("No secrets in logs", "No secrets found in logger calls.")


@check(
    SECURITY_CHECKS,
    key="hardcoded-credentials",
    title="Hardcoded credentials",
    category=CheckCategory.SECURITY,
    default_severity=CheckStatus.FAIL,
    rationale="Prevents hardcoded usernames, passwords, or API endpoints.",
)
def hardcoded_credentials(ctx, thresholds):
    issues = []
    for path, lines in added_lines_by_file(ctx.changes).items():
        for line in lines:
            if any(p.search(line.text) for p in _CREDENTIAL_RES):
                issues.append(Issue(path, line.line_no))
    if issues:
        return flag(
            issues,
            CheckStatus.FAIL,
            "Hardcoded credentials detected",
            "Found hardcoded credentials:",
            "Use environment variables or secure config.",
        )
    return ok("No hardcoded credentials", "No hardcoded credentials detected.")


@check(
    SECURITY_CHECKS,
    key="sql-injection-risk",
    title="SQL injection risk",
    category=CheckCategory.SECURITY,
    default_severity=CheckStatus.WARN,
    rationale="Detects potential SQL injection vulnerabilities from string concatenation.",
)
def sql_injection_risk(ctx, thresholds):
    issues = []
    for path, lines in added_lines_by_file(ctx.changes).items():
        if not has_extension(path, CODE_EXTENSIONS + (".sql",)):
            continue
        for line in lines:
            if _SQL_CALL_RE.search(line.text) or _SQL_FORMAT_RE.search(line.text):
                issues.append(Issue(path, line.line_no))
    if issues:
        return flag(
            issues,
            CheckStatus.WARN,
            "Potential SQL injection risk",
            "Found SQL queries built from string concatenation or interpolation:",
            "Use parameterized queries or ORM methods.",
        )
    return ok("No SQL injection risks", "No obvious SQL injection risks detected.")


@check(
    SECURITY_CHECKS,
    key="xss-risk",
    title="XSS risk in user input",
    category=CheckCategory.SECURITY,
    default_severity=CheckStatus.WARN,
    rationale="Detects unescaped user input that could lead to XSS vulnerabilities.",
)
def xss_risk(ctx, thresholds):
    issues = []
    for path, lines in added_lines_by_file(ctx.changes).items():
        if not has_extension(path, CODE_EXTENSIONS + (".html", ".jinja", ".j2")):
            continue
        for line in lines:
            if any(p.search(line.text) for p in _XSS_RES):
                issues.append(Issue(path, line.line_no))
    if issues:
        return flag(
            issues,
            CheckStatus.WARN,
            "Potential XSS risk",
            "Found unescaped user input:",
            "Ensure user input is properly sanitized.",
        )
    return ok("No XSS risks", "No obvious XSS risks detected.")


@check(
    SECURITY_CHECKS,
    key="insecure-random",
    title="Insecure random number generation",
    category=CheckCategory.SECURITY,
    default_severity=CheckStatus.WARN,
    rationale="Detects non-cryptographic randomness used for security-sensitive values.",
)
def insecure_random(ctx, thresholds):
    issues = []
    for path, lines in added_lines_by_file(ctx.changes).items():
        texts = [line.text for line in lines]
        for i, line in enumerate(lines):
            if not _INSECURE_RANDOM_RE.search(line.text):
                continue
            # Only flag when the surrounding lines suggest a security-sensitive value.
            window = " ".join(texts[max(0, i - 2) : i + 3]).lower()
            if any(word in window for word in _SENSITIVE_CONTEXT):
                issues.append(Issue(path, line.line_no))
    if issues:
        return flag(
            issues,
            CheckStatus.WARN,
            "Insecure random number generation",
            "Found non-cryptographic randomness used for security-sensitive values:",
            "Use crypto.randomBytes() or the secrets module instead.",
        )
    return ok("Secure random generation", "No insecure random number generation detected.")
