"""Scrubbing of sensitive content before anything is sent to an external model.

Two layers: a path filter deciding which files may be read at all, and a
line-level pass over the text that is about to leave the process. A line
that matches any sensitive pattern is dropped entirely rather than masked,
so partial secrets never survive. Emails and phone numbers are masked in
place.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

SENSITIVE_PATTERNS: list[tuple[str, re.Pattern]] = [
    # Provider tokens and keys
    ("gitlab_token", re.compile(r"\bglpat-[a-zA-Z0-9_-]{20,}\b", re.IGNORECASE)),
    ("github_token", re.compile(r"\bgh[pousr]_[a-zA-Z0-9]{20,}\b")),
    ("openai_key", re.compile(r"\bsk-[a-zA-Z0-9_-]{20,}\b", re.IGNORECASE)),
    ("aws_access_key", re.compile(r"\bAKIA[0-9A-Z]{16}\b")),
    ("private_token_header", re.compile(r"\bPRIVATE-TOKEN\s*[:=]\s*\S+", re.IGNORECASE)),
    ("bearer_token", re.compile(r"\bBearer\s+[a-zA-Z0-9_-]{20,}\b", re.IGNORECASE)),
    ("api_key", re.compile(r"\bapi[_-]?key\s*[:=]\s*\S+", re.IGNORECASE)),
    ("secret_key", re.compile(r"\bsecret[_-]?key\s*[:=]\s*\S+", re.IGNORECASE)),
    ("access_token", re.compile(r"\baccess[_-]?token\s*[:=]\s*\S+", re.IGNORECASE)),
    # Key material
    ("rsa_private_key", re.compile(r"-----BEGIN\s+(RSA\s+)?PRIVATE\s+KEY-----", re.IGNORECASE)),
    ("ec_private_key", re.compile(r"-----BEGIN\s+EC\s+PRIVATE\s+KEY-----", re.IGNORECASE)),
    ("dsa_private_key", re.compile(r"-----BEGIN\s+DSA\s+PRIVATE\s+KEY-----", re.IGNORECASE)),
    # Passwords
    ("password", re.compile(r"\bpassword\s*[:=]\s*\S+", re.IGNORECASE)),
    ("passwd", re.compile(r"\bpasswd\s*[:=]\s*\S+", re.IGNORECASE)),
    ("pwd", re.compile(r"\bpwd\s*[:=]\s*\S+", re.IGNORECASE)),
    ("jwt", re.compile(r"\beyJ[a-zA-Z0-9_-]+\.[a-zA-Z0-9_-]+\.[a-zA-Z0-9_-]+\b")),
    # Generic assignments
    ("secret", re.compile(r"\bsecret\s*[:=]\s*\S+", re.IGNORECASE)),
    ("token", re.compile(r"\btoken\s*[:=]\s*\S+", re.IGNORECASE)),
    ("auth_token", re.compile(r"\bauth[_-]?token\s*[:=]\s*\S+", re.IGNORECASE)),
]

EMAIL_PATTERN = re.compile(r"\b[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}\b")
PHONE_PATTERN = re.compile(r"\b\d{3}[-.]?\d{3}[-.]?\d{4}\b")

EMAIL_MASK = "[EMAIL_REDACTED]"
PHONE_MASK = "[PHONE_REDACTED]"

DENYLIST = (
    ".env",
    ".env.local",
    ".env.production",
    ".pem",
    ".key",
    ".p12",
    ".pfx",
    "secrets/",
    "credentials/",
    "id_rsa",
    "id_dsa",
    "id_ecdsa",
    "id_ed25519",
    ".ssh/",
    "config/secrets",
    "private/",
    ".secret",
    "node_modules/",
    "vendor/",
    "third_party/",
    "dist/",
    "build/",
    "coverage/",
)

ALLOWLIST_DIRS = ("apps/", "packages/", "infra/", "scripts/", "prisma/", "src/", "lib/", "tests/")
ALLOWLIST_EXTENSIONS = (
    ".ts",
    ".tsx",
    ".js",
    ".jsx",
    ".py",
    ".json",
    ".md",
    ".yml",
    ".yaml",
    ".toml",
    ".sql",
    ".prisma",
    ".sh",
    ".ps1",
)


@dataclass
class RedactionReport:
    lines_removed: int = 0
    patterns_matched: list[str] = field(default_factory=list)
    chars_removed: int = 0

    @property
    def altered(self) -> bool:
        return self.lines_removed > 0 or bool(self.patterns_matched)


def _note(report: RedactionReport, name: str) -> None:
    if name not in report.patterns_matched:
        report.patterns_matched.append(name)


def redact_text(text: str) -> tuple[str, RedactionReport]:
    """Drop sensitive lines and mask contact details.

    Returns the scrubbed text and a report of what was altered. The report
    lists each distinct pattern name once, in first-seen order.
    """
    report = RedactionReport()
    kept: list[str] = []

    for line in text.split("\n"):
        matched = [name for name, pattern in SENSITIVE_PATTERNS if pattern.search(line)]
        if matched:
            for name in matched:
                _note(report, name)
            report.lines_removed += 1
            report.chars_removed += len(line)
            continue

        if EMAIL_PATTERN.search(line):
            line = EMAIL_PATTERN.sub(EMAIL_MASK, line)
            _note(report, "email")
        if PHONE_PATTERN.search(line):
            line = PHONE_PATTERN.sub(PHONE_MASK, line)
            _note(report, "phone")
        kept.append(line)

    return "\n".join(kept), report


def is_denylisted(file_path: str) -> bool:
    path = file_path.lower()
    return any(pattern in path for pattern in DENYLIST)


def is_allowlisted(file_path: str) -> bool:
    path = file_path.lower()
    return path.startswith(ALLOWLIST_DIRS) or path.endswith(ALLOWLIST_EXTENSIONS)


def should_process_file(file_path: str) -> bool:
    """The denylist always wins; otherwise the allowlist must admit the path."""
    if is_denylisted(file_path):
        return False
    return is_allowlisted(file_path)
