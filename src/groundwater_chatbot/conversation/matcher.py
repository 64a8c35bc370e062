from __future__ import annotations

from typing import Callable, List, Optional, Sequence

from groundwater_chatbot.config import MATCH_THRESHOLD, SUGGESTION_LIMIT

# A scorer takes two normalized strings and returns a similarity in [0, 1].
Scorer = Callable[[str, str], float]

CONTAINMENT_WEIGHT = 0.8
OVERLAP_WEIGHT = 0.2


def normalize(value: Optional[str]) -> str:
    if value is None:
        return ""
    return str(value).strip().lower()


def containment_overlap_score(a: str, b: str) -> float:
    """
    Similarity used for administrative names.

    Substring containment of the shorter string in the longer one carries
    most of the weight; character-set overlap (intersection over union) adds
    a small residual. Capped at 1.
    """
    if a == b:
        return 1.0

    longer, shorter = (a, b) if len(a) > len(b) else (b, a)
    if not longer:
        return 1.0

    score = 0.0
    if shorter in longer:
        score += CONTAINMENT_WEIGHT

    chars_a, chars_b = set(a), set(b)
    union = chars_a | chars_b
    score += (len(chars_a & chars_b) / len(union)) * OVERLAP_WEIGHT

    return min(score, 1.0)


class Matcher:
    """
    Resolve free text against a short list of canonical names.

    Exact (trimmed, case-insensitive) match wins; otherwise the best fuzzy
    candidate at or above the threshold. Returns the candidate with its
    original casing, or None.
    """

    def __init__(self, scorer: Scorer = containment_overlap_score, threshold: float = MATCH_THRESHOLD) -> None:
        self.scorer = scorer
        self.threshold = threshold

    def exact(self, text: Optional[str], candidates: Sequence[str]) -> Optional[str]:
        target = normalize(text)
        for candidate in candidates:
            if normalize(candidate) == target:
                return candidate
        return None

    def fuzzy(self, text: Optional[str], candidates: Sequence[str]) -> Optional[str]:
        query = normalize(text)
        if not query or not candidates:
            return None

        best: Optional[str] = None
        best_score = 0.0
        for candidate in candidates:
            score = self.scorer(query, normalize(candidate))
            # strict '>' keeps the first candidate on ties
            if score > best_score and score >= self.threshold:
                best = candidate
                best_score = score
        return best

    def resolve(self, text: Optional[str], candidates: Sequence[str]) -> Optional[str]:
        if not normalize(text):
            return None
        match = self.exact(text, candidates)
        if match is not None:
            return match
        return self.fuzzy(text, candidates)


_DEFAULT_MATCHER = Matcher()


def resolve(text: Optional[str], candidates: Sequence[str]) -> Optional[str]:
    return _DEFAULT_MATCHER.resolve(text, candidates)


def suggest(text: Optional[str], candidates: Sequence[str], limit: int = SUGGESTION_LIMIT) -> List[str]:
    """First `limit` candidates whose normalized name contains the normalized input."""
    needle = normalize(text)
    return [c for c in candidates if needle in normalize(c)][:limit]
