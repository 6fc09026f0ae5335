"""
Pairing of deleted and inserted lines.

Given the deleted and inserted lines of a change, the matcher repeatedly
finds the most similar (deleted, inserted) pair, splits both sequences around
it and carries on with the parts before and after the pair.  Pairs feed sub-line
highlighting, anything left over is reported as plain deletions/insertions.

The number of distance evaluations per call is capped so that large and very
dissimilar changes degrade to "no pairing" instead of stalling.
"""

import logging
from typing import Dict, List, Sequence, Tuple

from diffmodel.diff_distance import DistanceMetric, normalized_levenshtein
from diffmodel.diff_matcher_config import DiffMatcherConfig
from diffmodel.diff_types import ChangeRun, DiffBlock, DiffLine, LineType, MatchGroup, MatchGroupKind


# (deleted start, deleted end, inserted start, inserted end), half open
_MatchRange = Tuple[int, int, int, int]


class DiffLineMatcher:
    """Greedy divide and conquer matcher for deleted/inserted lines."""

    def __init__(
        self,
        config: DiffMatcherConfig | None = None,
        distance: DistanceMetric = normalized_levenshtein
    ):
        """
        Initialize the matcher.

        Args:
            config: Matcher options, defaults are used if not provided
            distance: Function returning a dissimilarity in [0, 1] for two lines
        """
        self._config = config or DiffMatcherConfig()
        self._distance = distance
        self._logger = logging.getLogger("DiffLineMatcher")
        self._comparisons = 0

    @property
    def config(self) -> DiffMatcherConfig:
        """Get the matcher options."""
        return self._config

    @property
    def comparisons(self) -> int:
        """Number of distance evaluations performed by the last call to `match`."""
        return self._comparisons

    def match(self, deleted: Sequence[str], inserted: Sequence[str]) -> List[MatchGroup]:
        """
        Pair up similar deleted and inserted lines.

        Every input line ends up in exactly one group, and groups come back in
        the original line order.

        Args:
            deleted: Deleted lines, in diff order
            inserted: Inserted lines, in diff order

        Returns:
            Ordered match groups
        """
        self._comparisons = 0
        max_size = self._config.max_line_size_in_block_for_comparison
        deleted_ok = [len(line) <= max_size for line in deleted]
        inserted_ok = [len(line) <= max_size for line in inserted]

        # Distances keyed by indexes into the full sequences, shared by every
        # sub-range of this call
        cache: Dict[Tuple[int, int], float] = {}

        groups: List[MatchGroup] = []
        stack: List[_MatchRange | MatchGroup] = [(0, len(deleted), 0, len(inserted))]

        while stack:
            item = stack.pop()
            if isinstance(item, MatchGroup):
                groups.append(item)
                continue

            best = self._find_best_match(item, deleted, inserted, deleted_ok, inserted_ok, cache)
            if best is None:
                self._append_unmatched(groups, item, deleted, inserted)
                continue

            d_lo, d_hi, i_lo, i_hi = item
            d_best, i_best, score = best
            pair = MatchGroup(
                kind=MatchGroupKind.PAIRED,
                deleted=(deleted[d_best],),
                inserted=(inserted[i_best],),
                deleted_start=d_best,
                inserted_start=i_best,
                score=score,
            )

            # Pushed in reverse: lines before the pair, the pair, lines after it
            stack.append((d_best + 1, d_hi, i_best + 1, i_hi))
            stack.append(pair)
            stack.append((d_lo, d_best, i_lo, i_best))

        return _coalesce(groups)

    def _find_best_match(
        self,
        match_range: _MatchRange,
        deleted: Sequence[str],
        inserted: Sequence[str],
        deleted_ok: List[bool],
        inserted_ok: List[bool],
        cache: Dict[Tuple[int, int], float]
    ) -> Tuple[int, int, float] | None:
        """
        Find the closest eligible pair in a range.

        Ties go to the earliest deleted line, then the earliest inserted line.

        Returns:
            (deleted index, inserted index, distance), or None if the range is
            empty, too expensive to search or has no pair within the threshold
        """
        d_lo, d_hi, i_lo, i_hi = match_range
        if d_lo >= d_hi or i_lo >= i_hi:
            return None

        deleted_indexes = [d for d in range(d_lo, d_hi) if deleted_ok[d]]
        inserted_indexes = [i for i in range(i_lo, i_hi) if inserted_ok[i]]
        if not deleted_indexes or not inserted_indexes:
            return None

        remaining = self._config.matching_max_comparisons - self._comparisons
        pairs = len(deleted_indexes) * len(inserted_indexes)
        if pairs > remaining:
            needed = pairs
            if cache:
                needed = sum(1 for d in deleted_indexes for i in inserted_indexes if (d, i) not in cache)

            if needed > remaining:
                self._logger.debug(
                    "Skipping line matching: %d comparisons needed, %d left in budget",
                    needed,
                    remaining
                )
                return None

        best: Tuple[int, int, float] | None = None
        for d in deleted_indexes:
            for i in inserted_indexes:
                score = cache.get((d, i))
                if score is None:
                    score = self._distance(deleted[d], inserted[i])
                    cache[(d, i)] = score
                    self._comparisons += 1

                if best is None or score < best[2]:
                    best = (d, i, score)

        if best is None or best[2] > self._config.threshold:
            return None

        return best

    def _append_unmatched(
        self,
        groups: List[MatchGroup],
        match_range: _MatchRange,
        deleted: Sequence[str],
        inserted: Sequence[str]
    ) -> None:
        d_lo, d_hi, i_lo, i_hi = match_range
        if d_lo < d_hi:
            groups.append(MatchGroup(
                kind=MatchGroupKind.DELETED,
                deleted=tuple(deleted[d_lo:d_hi]),
                deleted_start=d_lo,
                inserted_start=i_lo,
            ))

        if i_lo < i_hi:
            groups.append(MatchGroup(
                kind=MatchGroupKind.INSERTED,
                inserted=tuple(inserted[i_lo:i_hi]),
                deleted_start=d_hi,
                inserted_start=i_lo,
            ))

    def match_block(self, block: DiffBlock) -> List[ChangeRun]:
        """
        Match every change run in a hunk.

        A change run is a sequence of deleted lines followed by a sequence of
        inserted lines, bounded by context lines.  Runs are matched
        independently, each with its own comparison budget.

        Args:
            block: Parsed hunk

        Returns:
            One entry per change run, in hunk order
        """
        runs: List[ChangeRun] = []
        deleted_lines: List[DiffLine] = []
        inserted_lines: List[DiffLine] = []

        def flush() -> None:
            if not deleted_lines and not inserted_lines:
                return

            groups = self.match(
                [line.content for line in deleted_lines],
                [line.content for line in inserted_lines]
            )
            runs.append(ChangeRun(tuple(deleted_lines), tuple(inserted_lines), tuple(groups)))
            deleted_lines.clear()
            inserted_lines.clear()

        for line in block.lines:
            if line.line_type == LineType.DELETE:
                if inserted_lines:
                    flush()

                deleted_lines.append(line)

            elif line.line_type == LineType.INSERT:
                inserted_lines.append(line)

            else:
                flush()

        flush()
        return runs


def _coalesce(groups: List[MatchGroup]) -> List[MatchGroup]:
    """Merge adjacent unmatched groups of the same kind."""
    result: List[MatchGroup] = []
    for group in groups:
        if result and group.kind != MatchGroupKind.PAIRED and result[-1].kind == group.kind:
            previous = result[-1]
            result[-1] = MatchGroup(
                kind=group.kind,
                deleted=previous.deleted + group.deleted,
                inserted=previous.inserted + group.inserted,
                deleted_start=previous.deleted_start,
                inserted_start=previous.inserted_start,
            )
            continue

        result.append(group)

    return result


def match_lines(
    deleted: Sequence[str],
    inserted: Sequence[str],
    distance: DistanceMetric = normalized_levenshtein,
    config: DiffMatcherConfig | None = None
) -> List[MatchGroup]:
    """
    Pair up similar deleted and inserted lines.

    Args:
        deleted: Deleted lines, in diff order
        inserted: Inserted lines, in diff order
        distance: Function returning a dissimilarity in [0, 1] for two lines
        config: Matcher options, defaults are used if not provided

    Returns:
        Ordered match groups
    """
    return DiffLineMatcher(config, distance).match(deleted, inserted)


def match_block(
    block: DiffBlock,
    config: DiffMatcherConfig | None = None,
    distance: DistanceMetric = normalized_levenshtein
) -> List[ChangeRun]:
    """
    Match every change run in a parsed hunk.

    Args:
        block: Parsed hunk
        config: Matcher options, defaults are used if not provided
        distance: Function returning a dissimilarity in [0, 1] for two lines

    Returns:
        One entry per change run, in hunk order
    """
    return DiffLineMatcher(config, distance).match_block(block)
