"""Edit-distance suggestions for unrecognized identifiers."""

from typing import Iterable, List


def edit_distance(a: str, b: str) -> int:
    """Levenshtein distance between two strings."""
    if len(a) < len(b):
        a, b = b, a

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            if char_a == char_b:
                current.append(previous[j - 1])
            else:
                current.append(1 + min(previous[j - 1], previous[j], current[j - 1]))
        previous = current

    return previous[-1]


class FuzzyMatcher:
    """Suggests known identifiers that resemble an unknown one.

    Candidates that contain the input (or are contained in it) are preferred;
    otherwise candidates within ``max_distance`` edits qualify. Results keep
    the order of ``candidates``.
    """

    def __init__(self, max_distance: int = 2, max_suggestions: int = 3):
        self.max_distance = max_distance
        self.max_suggestions = max_suggestions

    def find_similar(self, value: str, candidates: Iterable[str]) -> List[str]:
        value_lower = value.lower()
        similar: List[str] = []

        for candidate in candidates:
            candidate_lower = candidate.lower()
            if candidate_lower == value_lower:
                continue

            if candidate_lower in value_lower or value_lower in candidate_lower:
                similar.append(candidate)
            elif edit_distance(value_lower, candidate_lower) <= self.max_distance:
                similar.append(candidate)

            if len(similar) >= self.max_suggestions:
                break

        return similar
