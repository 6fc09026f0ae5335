"""Shared fixtures and sample diffs for diffmodel tests."""

import pytest
from typing import List

from diffmodel.diff_matcher_config import DiffMatcherConfig
from diffmodel.diff_parser import DiffParser
from diffmodel.diff_parser_config import DiffParserConfig
from diffmodel.diff_types import DiffFile, LineType


GIT_MODIFY_DIFF = """diff --git a/test.txt b/test.txt
index 1234567..abcdefg 100644
--- a/test.txt
+++ b/test.txt
@@ -1,3 +1,4 @@
 line1
-line2
+line2 modified
+new line
 line3
"""

GIT_MULTI_FILE_DIFF = """diff --git a/file1.txt b/file1.txt
index 1234567..abcdefg 100644
--- a/file1.txt
+++ b/file1.txt
@@ -1 +1 @@
-old
+new
diff --git a/file2.txt b/file2.txt
index 1234567..abcdefg 100644
--- a/file2.txt
+++ b/file2.txt
@@ -1 +1 @@
-foo
+bar
"""

COMBINED_DIFF = """diff --combined file.txt
index abc123,def456..789012
--- a/file.txt
+++ b/file.txt
@@@ -1,3 -1,3 +1,4 @@@
  unchanged
 -deleted from second
- deleted from first
 +added over second
++added in both
"""


def make_changed_lines_diff(count: int, name: str = 'big.txt') -> str:
    """Build a single file diff that replaces `count` lines with `count` new ones."""
    half = count // 2
    lines = [
        f"--- a/{name}",
        f"+++ b/{name}",
        f"@@ -1,{half} +1,{count - half} @@",
    ]
    lines.extend(f"-old line {i}" for i in range(half))
    lines.extend(f"+new line {i}" for i in range(count - half))
    return '\n'.join(lines) + '\n'


class DiffTestHelpers:
    """Helper utilities for diff testing."""

    @staticmethod
    def line_types(diff_file: DiffFile, block_index: int = 0) -> List[LineType]:
        """Get the line types of one block."""
        return [line.line_type for line in diff_file.blocks[block_index].lines]

    @staticmethod
    def count_lines(diff_file: DiffFile, line_type: LineType) -> int:
        """Count lines of a given type across all blocks of a file."""
        return sum(
            1 for block in diff_file.blocks for line in block.lines
            if line.line_type == line_type
        )


@pytest.fixture
def parser():
    """Create a parser with default options."""
    return DiffParser()


@pytest.fixture
def parser_custom():
    """Factory for parsers with custom options."""
    def _create_parser(**options):
        return DiffParser(DiffParserConfig(**options))
    return _create_parser


@pytest.fixture
def matcher_config_custom():
    """Factory for matcher configurations."""
    def _create_config(
        matching_max_comparisons: int = 2500,
        max_line_size_in_block_for_comparison: int = 200,
        threshold: float = 0.25
    ):
        return DiffMatcherConfig(
            matching_max_comparisons=matching_max_comparisons,
            max_line_size_in_block_for_comparison=max_line_size_in_block_for_comparison,
            threshold=threshold
        )
    return _create_config


@pytest.fixture
def helpers():
    """Provide test helper utilities."""
    return DiffTestHelpers


@pytest.fixture
def git_modify_diff():
    """A git diff modifying one file."""
    return GIT_MODIFY_DIFF


@pytest.fixture
def git_multi_file_diff():
    """A git diff modifying two files."""
    return GIT_MULTI_FILE_DIFF


@pytest.fixture
def combined_diff():
    """A combined diff for a merge with two parents."""
    return COMBINED_DIFF


@pytest.fixture
def changed_lines_diff():
    """Factory for diffs with a given number of changed lines."""
    return make_changed_lines_diff
