"""Tests for the deleted/inserted line matcher."""

import pytest

from diffmodel.diff_distance import normalized_levenshtein
from diffmodel.diff_line_matcher import DiffLineMatcher, match_block, match_lines
from diffmodel.diff_matcher_config import DiffMatcherConfig
from diffmodel.diff_types import DiffBlock, DiffLine, LineType, MatchGroupKind


def _flatten(groups):
    deleted = [line for group in groups for line in group.deleted]
    inserted = [line for group in groups for line in group.inserted]
    return deleted, inserted


class TestDiffLineMatcherBasic:
    """Test basic line pairing."""

    def test_similar_lines_paired(self, matcher_config_custom):
        """Test that two similar lines are paired."""
        groups = match_lines(
            ["hello world"],
            ["hello rust"],
            normalized_levenshtein,
            matcher_config_custom(threshold=0.5)
        )

        assert len(groups) == 1
        group = groups[0]
        assert group.kind == MatchGroupKind.PAIRED
        assert group.deleted == ("hello world",)
        assert group.inserted == ("hello rust",)
        assert group.score == pytest.approx(5 / 11)

    def test_dissimilar_lines_unmatched(self):
        """Test that lines beyond the threshold stay unmatched."""
        groups = match_lines(["abc"], ["xyz"])

        assert [g.kind for g in groups] == [MatchGroupKind.DELETED, MatchGroupKind.INSERTED]
        assert groups[0].deleted == ("abc",)
        assert groups[0].score is None
        assert groups[1].inserted == ("xyz",)
        assert groups[1].deleted_start == 1
        assert groups[1].inserted_start == 0

    def test_identical_lists(self):
        """Test that identical lines pair up in order."""
        groups = match_lines(["a = 1", "b = 2"], ["a = 1", "b = 2"])

        assert [g.kind for g in groups] == [MatchGroupKind.PAIRED, MatchGroupKind.PAIRED]
        assert [(g.deleted_start, g.inserted_start) for g in groups] == [(0, 0), (1, 1)]
        assert all(g.score == 0.0 for g in groups)

    def test_empty_inputs(self):
        """Test empty and one-sided inputs."""
        assert match_lines([], []) == []

        groups = match_lines(["only deleted"], [])
        assert len(groups) == 1
        assert groups[0].kind == MatchGroupKind.DELETED

        groups = match_lines([], ["only inserted", "and another"])
        assert len(groups) == 1
        assert groups[0].kind == MatchGroupKind.INSERTED
        assert groups[0].inserted == ("only inserted", "and another")

    def test_unmatched_lines_around_pair(self, matcher_config_custom):
        """Test lines before and after a pair are kept in order."""
        deleted = ["removed entirely", "value = compute(x)", "zzzz"]
        inserted = ["value = compute(y)", "qqqq"]
        groups = match_lines(deleted, inserted, config=matcher_config_custom())

        assert [g.kind for g in groups] == [
            MatchGroupKind.DELETED,
            MatchGroupKind.PAIRED,
            MatchGroupKind.DELETED,
            MatchGroupKind.INSERTED,
        ]
        assert groups[1].deleted_start == 1
        assert groups[1].inserted_start == 0
        assert _flatten(groups) == (deleted, inserted)

    def test_every_line_in_one_group(self):
        """Test that groups partition both inputs in order."""
        deleted = ["def foo():", "    return 1", "x = 2", "print(x)", "# done"]
        inserted = ["def foo(a):", "    return a", "y = 3", "print(y)"]
        groups = match_lines(deleted, inserted)

        assert _flatten(groups) == (deleted, inserted)
        for group in groups:
            if group.kind == MatchGroupKind.PAIRED:
                assert len(group.deleted) == 1
                assert len(group.inserted) == 1
                assert group.score <= 0.25

    def test_tie_goes_to_earliest_lines(self):
        """Test that equal distances prefer the earliest deleted line."""
        groups = match_lines(["same", "same"], ["same"])

        assert groups[0].kind == MatchGroupKind.PAIRED
        assert groups[0].deleted_start == 0
        assert groups[1].kind == MatchGroupKind.DELETED
        assert groups[1].deleted_start == 1

    def test_custom_distance(self):
        """Test matching with a caller supplied metric."""
        def first_char(a, b):
            return 0.0 if a[:1] == b[:1] else 1.0

        groups = match_lines(["apple", "banana"], ["blueberry", "cherry"], first_char)

        assert [g.kind for g in groups] == [
            MatchGroupKind.DELETED,
            MatchGroupKind.PAIRED,
            MatchGroupKind.INSERTED,
        ]
        assert groups[1].deleted == ("banana",)
        assert groups[1].inserted == ("blueberry",)


class TestDiffLineMatcherLimits:
    """Test comparison budget and line length limits."""

    def test_budget_too_small(self, matcher_config_custom):
        """Test that a range needing more comparisons than allowed is not matched."""
        matcher = DiffLineMatcher(matcher_config_custom(matching_max_comparisons=3))
        groups = matcher.match(["a", "b"], ["a", "b"])

        assert [g.kind for g in groups] == [MatchGroupKind.DELETED, MatchGroupKind.INSERTED]
        assert matcher.comparisons == 0

    def test_zero_budget(self, matcher_config_custom):
        """Test that a zero budget disables pairing."""
        groups = match_lines(["x"], ["x"], config=matcher_config_custom(matching_max_comparisons=0))

        assert [g.kind for g in groups] == [MatchGroupKind.DELETED, MatchGroupKind.INSERTED]

    def test_budget_never_exceeded(self, matcher_config_custom):
        """Test that the comparison count stays within the budget."""
        deleted = [f"line number {i} old" for i in range(12)]
        inserted = [f"line number {i} new" for i in range(12)]
        matcher = DiffLineMatcher(matcher_config_custom(matching_max_comparisons=200))
        groups = matcher.match(deleted, inserted)

        assert matcher.comparisons <= 200
        assert _flatten(groups) == (deleted, inserted)

    def test_cached_distances_not_recounted(self):
        """Test that sub-ranges reuse distances computed for the full range."""
        matcher = DiffLineMatcher()
        matcher.match(["a", "b"], ["a", "b"])

        assert matcher.comparisons == 4

    def test_comparisons_reset_per_call(self):
        """Test that the comparison count covers only the last call."""
        matcher = DiffLineMatcher()
        matcher.match(["a", "b"], ["a", "b"])
        matcher.match(["a"], ["a"])

        assert matcher.comparisons == 1

    def test_long_lines_not_compared(self, matcher_config_custom):
        """Test that lines over the size limit are never paired."""
        config = matcher_config_custom(max_line_size_in_block_for_comparison=5, threshold=0.5)
        matcher = DiffLineMatcher(config)
        groups = matcher.match(["a very long line", "abc"], ["a very long line!", "abd"])

        assert [g.kind for g in groups] == [
            MatchGroupKind.DELETED,
            MatchGroupKind.INSERTED,
            MatchGroupKind.PAIRED,
        ]
        assert groups[2].deleted == ("abc",)
        assert groups[2].inserted == ("abd",)
        assert matcher.comparisons == 1

    def test_threshold_boundary(self, matcher_config_custom):
        """Test that a distance equal to the threshold still pairs."""
        config = matcher_config_custom(threshold=0.25)
        groups = match_lines(["abcd"], ["abcx"], config=config)

        assert groups[0].kind == MatchGroupKind.PAIRED
        assert groups[0].score == pytest.approx(0.25)

    def test_matcher_uses_default_config(self):
        """Test that the matcher falls back to default options."""
        matcher = DiffLineMatcher()

        assert matcher.config == DiffMatcherConfig()
        assert matcher.comparisons == 0


class TestMatchBlock:
    """Test matching the change runs of a parsed block."""

    def test_runs_split_by_context(self, parser):
        """Test that context lines separate change runs."""
        diff_text = """--- a/f.py
+++ b/f.py
@@ -1,3 +1,3 @@
-foo = 1
+foo = 2
 ctx
-bar
+baz
"""
        block = parser.parse(diff_text)[0].blocks[0]
        runs = match_block(block)

        assert len(runs) == 2
        assert [line.content for line in runs[0].deleted] == ["foo = 1"]
        assert [line.content for line in runs[0].inserted] == ["foo = 2"]
        assert [g.kind for g in runs[0].groups] == [MatchGroupKind.PAIRED]
        assert runs[0].groups[0].score == pytest.approx(1 / 7)

        assert [g.kind for g in runs[1].groups] == [MatchGroupKind.DELETED, MatchGroupKind.INSERTED]

    def test_delete_after_insert_starts_new_run(self):
        """Test that a deletion following insertions starts a new run."""
        block = DiffBlock(
            old_start_lines=(1,),
            old_line_counts=(2,),
            new_start_line=1,
            new_line_count=2,
            header="@@ -1,2 +1,2 @@",
            lines=(
                DiffLine(LineType.DELETE, "a", old_number=1, prefix="-"),
                DiffLine(LineType.INSERT, "b", new_number=1, prefix="+"),
                DiffLine(LineType.DELETE, "c", old_number=2, prefix="-"),
                DiffLine(LineType.INSERT, "d", new_number=2, prefix="+"),
            )
        )
        runs = DiffLineMatcher().match_block(block)

        assert len(runs) == 2
        assert runs[1].deleted[0].old_number == 2
        assert runs[1].inserted[0].new_number == 2

    def test_context_only_block(self):
        """Test that a block without changes has no runs."""
        block = DiffBlock(
            old_start_lines=(1,),
            old_line_counts=(1,),
            new_start_line=1,
            new_line_count=1,
            header="@@ -1 +1 @@",
            lines=(DiffLine(LineType.CONTEXT, "same", 1, 1, " "),)
        )

        assert match_block(block) == []
