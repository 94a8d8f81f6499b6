"""
Tag similarity helpers used to warn about near-duplicate custom tags
"""
from typing import Iterable, List


def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance between two strings"""
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(min(
                previous[j] + 1,         # deletion
                current[j - 1] + 1,      # insertion
                previous[j - 1] + cost,  # substitution
            ))
        previous = current
    return previous[-1]


def find_similar_tags(value: str, existing_tags: Iterable[str]) -> List[str]:
    """Find existing tags that equal, contain, are contained in, or sit 1-2 edits from value"""
    normalized = (value or "").strip().lower()
    if not normalized:
        return []

    similar = []
    for tag in existing_tags:
        candidate = tag.strip().lower()
        if candidate == normalized or normalized in candidate or candidate in normalized:
            similar.append(tag)
            continue
        distance = levenshtein_distance(normalized, candidate)
        if 1 <= distance <= 2:
            similar.append(tag)
    return similar
