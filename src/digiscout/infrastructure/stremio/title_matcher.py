"""Title normalisation and candidate scoring for provider search results.

Pure transformation logic. No I/O, no framework dependencies.
The provider's search is noisy (sequels, spin-offs, series with the
same name as a movie), so every hit is scored against the reference
title from the metadata service and only a positive winner is used.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

import structlog

from digiscout.domain.entities.stremio import (
    MediaKind,
    ScoredCandidate,
    SearchCandidate,
)

log = structlog.get_logger(__name__)

_LEADING_ARTICLE_RE = re.compile(r"^(?:the|an|a)\s+")
_SEPARATOR_RE = re.compile(r"[:\-.]")
_WHITESPACE_RE = re.compile(r"\s+")
# Release year suffix added by the metadata service, e.g. "Dune (2021)".
_YEAR_SUFFIX_RE = re.compile(r"\s*\(\d{4}\).*$")

KIND_MATCH_BONUS = 100
KIND_MISMATCH_PENALTY = -50
EXACT_NAME_BONUS = 60
PREFIX_NAME_BONUS = 20
CONTAINS_NAME_BONUS = 10


def normalize_title(text: str | None) -> str:
    """Lowercase, drop one leading article, spell out ``&``, flatten separators.

    >>> normalize_title("The Matrix")
    'matrix'
    >>> normalize_title("A&B")
    'a and b'
    """
    if not text:
        return ""
    text = _SEPARATOR_RE.sub(" ", text.lower())
    text = _WHITESPACE_RE.sub(" ", text).strip()
    # Article is stripped from the flattened text so "The-Matrix" loses it too.
    text = _LEADING_ARTICLE_RE.sub("", text, count=1)
    text = text.replace("&", " and ")
    return _WHITESPACE_RE.sub(" ", text).strip()


def strip_year_suffix(title: str) -> str:
    """Remove a trailing ``(YYYY)`` (and anything after it) from a title."""
    return _YEAR_SUFFIX_RE.sub("", title).strip()


def score_candidate(
    candidate: SearchCandidate,
    normalized_target: str,
    target_kind: MediaKind,
) -> int:
    """Score one hit against an already-normalised target title."""
    score = (
        KIND_MATCH_BONUS
        if candidate.media_kind == target_kind
        else KIND_MISMATCH_PENALTY
    )

    name = normalize_title(candidate.name)
    if name == normalized_target:
        score += EXACT_NAME_BONUS
    elif name.startswith(normalized_target):
        score += PREFIX_NAME_BONUS
    elif normalized_target in name:
        score += CONTAINS_NAME_BONUS
    return score


def rank_candidates(
    candidates: Iterable[SearchCandidate],
    target_title: str,
    target_kind: MediaKind,
) -> list[ScoredCandidate]:
    """Score all hits and order them best-first.

    Equal scores keep the provider's original result order (explicit
    secondary key on the original index).
    """
    normalized_target = normalize_title(target_title)
    scored = [
        ScoredCandidate(
            candidate=c,
            score=score_candidate(c, normalized_target, target_kind),
            index=i,
        )
        for i, c in enumerate(candidates)
    ]
    scored.sort(key=lambda s: (-s.score, s.index))

    for s in scored:
        log.debug(
            "candidate_scored",
            name=s.candidate.name,
            kind=s.candidate.media_kind,
            score=s.score,
        )
    return scored


def select_best(ranked: list[ScoredCandidate]) -> ScoredCandidate | None:
    """Return the top-ranked hit if its score is strictly positive."""
    if not ranked:
        return None
    best = ranked[0]
    if best.score <= 0:
        log.warning(
            "no_good_match",
            best_name=best.candidate.name,
            best_score=best.score,
        )
        return None
    log.info("match_winner", name=best.candidate.name, score=best.score)
    return best
