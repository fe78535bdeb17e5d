"""Token fingerprints of merge requests for deterministic similarity matching."""

from __future__ import annotations

import hashlib
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Optional

from mrlens_core.checks.diff import added_lines
from mrlens_core.checks.types import Change

MAX_SIGNATURE_TOKENS = 30

STOPWORDS = frozenset(
    """
    the a an and or but in on at to for of with by from up about into through during including
    until against among throughout despite towards upon concerning this that these those is are
    was were be been being have has had having do does did doing will would should could may
    might must can cannot shall ought i you he she it we they me him her us them my your his its
    our their mine yours hers ours theirs what which who whom whose where when why how all each
    every both few more most other some such no nor not only own same so than too very just now
    """.split()
)

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")
_PATH_SEPARATOR_RE = re.compile(r"[/\\]")
_EXTENSION_RE = re.compile(r"\.[^.]+$")
_WORD_SEPARATOR_RE = re.compile(r"[-_]")
_CAMEL_BOUNDARY_RE = re.compile(r"(?=[A-Z])")


@dataclass(frozen=True)
class FeatureSignature:
    tokens: list[str] = field(default_factory=list)
    hash: str = ""


def text_tokens(text: str) -> list[str]:
    """Lowercase words longer than two characters, minus stopwords and pure numbers."""
    return [
        token
        for token in _NON_ALNUM_RE.split(text.lower())
        if len(token) > 2 and token not in STOPWORDS and not token.isdigit()
    ]


def path_tokens(path: str) -> list[str]:
    tokens = []
    for part in _PATH_SEPARATOR_RE.split(path):
        name = _EXTENSION_RE.sub("", part)
        for word in _WORD_SEPARATOR_RE.split(name):
            for piece in _CAMEL_BOUNDARY_RE.split(word):
                piece = piece.lower()
                if len(piece) > 2 and piece not in STOPWORDS:
                    tokens.append(piece)
    return tokens


def diff_tokens(diff: str) -> list[str]:
    tokens = []
    for line in added_lines(diff):
        content = line.text.strip()
        if len(content) < 3:
            continue
        tokens.extend(text_tokens(content))
    return tokens


def signature_hash(tokens: Iterable[str]) -> str:
    return hashlib.sha256("|".join(tokens).encode("utf-8")).hexdigest()


def compute_feature_signature(
    title: Optional[str],
    description: Optional[str],
    changes: list[Change],
) -> FeatureSignature:
    """Fingerprint a merge request by its most frequent tokens.

    Tokens come from the title, the description, every changed path and
    every added diff line. The 30 most frequent are kept (ties broken
    alphabetically), then sorted alphabetically and hashed, so the same
    input always yields the same signature.
    """
    counts: Counter[str] = Counter()
    if title:
        counts.update(text_tokens(title))
    if description:
        counts.update(text_tokens(description))
    for change in changes:
        counts.update(path_tokens(change.path))
    for change in changes:
        counts.update(diff_tokens(change.diff))

    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    tokens = sorted(token for token, _ in ranked[:MAX_SIGNATURE_TOKENS])
    return FeatureSignature(tokens=tokens, hash=signature_hash(tokens))


def jaccard_similarity(a: Iterable[str], b: Iterable[str]) -> float:
    set_a, set_b = set(a), set(b)
    if not set_a and not set_b:
        return 1.0
    if not set_a or not set_b:
        return 0.0
    return len(set_a & set_b) / len(set_a | set_b)


def overlap_count(a: Iterable[str], b: Iterable[str]) -> int:
    return len(set(a) & set(b))
