"""
Spelling suggestions for unresolved names.

Levenshtein distance with an early cut-off, used to turn
"name 'lenn' is not defined" into "... (did you mean 'len'?)".
"""

from typing import Iterable, List, Optional

from .config import MAX_SUGGESTION_DISTANCE


def edit_distance(s1: str, s2: str, max_distance: int) -> int:
    """
    Levenshtein distance between s1 and s2.

    Returns -1 as soon as the distance is known to exceed max_distance.
    """
    if abs(len(s1) - len(s2)) > max_distance:
        return -1
    previous: List[int] = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1, start=1):
        current = [i] + [0] * len(s2)
        row_min = i
        for j, c2 in enumerate(s2, start=1):
            cost = 0 if c1 == c2 else 1
            current[j] = min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost)
            row_min = min(row_min, current[j])
        if row_min > max_distance:
            return -1
        previous = current
    distance = previous[-1]
    return distance if distance <= max_distance else -1


def suggest(word: str, candidates: Iterable[str]) -> Optional[str]:
    """
    Closest candidate to word, or None.

    Shorter words tolerate fewer typos. Comparison ignores case; candidates
    are scanned in sorted order so ties always resolve the same way.
    """
    limit = min(MAX_SUGGESTION_DISTANCE, (len(word) + 1) // 2)
    best: Optional[str] = None
    best_distance = limit + 1
    lowered = word.lower()
    for candidate in sorted(set(candidates)):
        if candidate == word:
            continue
        d = edit_distance(lowered, candidate.lower(), limit)
        if 0 <= d < best_distance:
            best, best_distance = candidate, d
    return best


def did_you_mean(word: str, candidates: Iterable[str]) -> str:
    """Suffix for an error message: " (did you mean 'x'?)" or ""."""
    suggestion = suggest(word, candidates)
    return "" if suggestion is None else f" (did you mean '{suggestion}'?)"
