"""Fuzzy ranking of candidate paths against search keywords.

Each keyword contributes independently to a path's score:

- 3 when the keyword is a substring of the basename,
- 1 when it is a substring of the path but not of the basename,
- 0.5 when its characters appear in order somewhere in the path,
- 0 otherwise.

Scores are summed across keywords; there is no requirement that every keyword
matches. Paths scoring 0 are dropped and the rest are ordered by descending
score, then by path.
"""

from __future__ import annotations

import locale
import posixpath
from dataclasses import dataclass
from typing import List, Sequence

BASENAME_SCORE = 3.0
PATH_SCORE = 1.0
SUBSEQUENCE_SCORE = 0.5


@dataclass(frozen=True)
class ScoredCandidate:
    path: str
    score: float


def split_keywords(text: str) -> List[str]:
    """Lowercase ``text`` and split it on whitespace, dropping empty tokens."""
    return text.lower().split()


def _is_subsequence(keyword: str, text: str) -> bool:
    position = -1
    for char in keyword:
        position = text.find(char, position + 1)
        if position < 0:
            return False
    return True


def keyword_score(path: str, keyword: str) -> float:
    lowered = path.lower()
    if keyword in lowered:
        basename = posixpath.basename(lowered)
        return BASENAME_SCORE if keyword in basename else PATH_SCORE
    if _is_subsequence(keyword, lowered):
        return SUBSEQUENCE_SCORE
    return 0.0


def score(path: str, keywords: Sequence[str]) -> float:
    return sum(keyword_score(path, keyword) for keyword in keywords)


def score_candidates(candidates: Sequence[str], keywords: Sequence[str]) -> List[ScoredCandidate]:
    """Score and order candidates, dropping those that match no keyword."""
    scored = [ScoredCandidate(path, score(path, keywords)) for path in candidates]
    kept = [item for item in scored if item.score > 0]
    kept.sort(key=lambda item: (-item.score, locale.strxfrm(item.path), item.path))
    return kept


def rank(candidates: Sequence[str], keywords: Sequence[str]) -> List[str]:
    """Return candidates ordered by relevance to ``keywords``.

    An empty keyword list returns the candidates unchanged. Equal scores
    are ordered with ``locale.strxfrm``, so ties follow the process's
    ``LC_COLLATE``: under the C locale that is code-point order
    (``"B/x.py"`` before ``"a/x.py"``). ``main()`` adopts the user's locale.
    """
    if not keywords:
        return list(candidates)
    return [item.path for item in score_candidates(candidates, keywords)]
