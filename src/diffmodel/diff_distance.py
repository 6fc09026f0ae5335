"""Edit distance metrics used to pair similar deleted and inserted lines."""

from typing import Callable, List


# Takes two lines and returns a dissimilarity score in [0, 1]
DistanceMetric = Callable[[str, str], float]


def levenshtein(a: str, b: str) -> int:
    """
    Calculate the Levenshtein distance between two strings.

    The distance is the minimum number of single character insertions,
    deletions or substitutions needed to turn one string into the other.
    Only two rows of the dynamic programming table are kept, sized by the
    shorter string.

    Args:
        a: First string
        b: Second string

    Returns:
        The edit distance
    """
    if len(a) < len(b):
        a, b = b, a

    if not b:
        return len(a)

    previous: List[int] = list(range(len(b) + 1))
    current: List[int] = [0] * (len(b) + 1)

    for i, a_char in enumerate(a, 1):
        current[0] = i
        for j, b_char in enumerate(b, 1):
            substitution = previous[j - 1] + (a_char != b_char)
            current[j] = min(previous[j] + 1, current[j - 1] + 1, substitution)

        previous, current = current, previous

    return previous[len(b)]


def normalized_levenshtein(a: str, b: str) -> float:
    """
    Levenshtein distance divided by the length of the longer string.

    Args:
        a: First string
        b: Second string

    Returns:
        0.0 for identical strings up to 1.0 for completely different ones
    """
    longest = max(len(a), len(b))
    if longest == 0:
        return 0.0

    return levenshtein(a, b) / longest
