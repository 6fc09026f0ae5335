"""Shared dataclasses for parsed diffs and line matching results."""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class LineType(Enum):
    """Classification of a line inside a hunk."""

    INSERT = "insert"
    DELETE = "delete"
    CONTEXT = "context"


@dataclass(frozen=True)
class DiffLine:
    """Represents a single line in a diff hunk."""

    line_type: LineType
    content: str  # The line content without the +/-/space marker(s)
    old_number: int | None = None  # Present for context and deleted lines
    new_number: int | None = None  # Present for context and inserted lines
    prefix: str = ""  # The marker character(s) that were stripped
    truncated: bool = False  # Content was cut to the configured maximum length
    no_newline_at_end: bool = False  # Followed by "\ No newline at end of file"


@dataclass(frozen=True)
class DiffBlock:
    """Represents a single hunk from a unified or combined diff."""

    old_start_lines: Tuple[int, ...]  # One starting line per merge parent
    old_line_counts: Tuple[int, ...]  # One line count per merge parent
    new_start_line: int
    new_line_count: int
    header: str  # Raw "@@ ... @@" text, kept verbatim for display
    lines: Tuple[DiffLine, ...] = ()

    @property
    def old_start_line(self) -> int:
        """Starting line in the (first) original file."""
        return self.old_start_lines[0] if self.old_start_lines else 0

    @property
    def old_start_line2(self) -> int | None:
        """Starting line in the second merge parent, for combined diffs."""
        return self.old_start_lines[1] if len(self.old_start_lines) > 1 else None

    @property
    def old_line_count(self) -> int:
        """Line count in the (first) original file."""
        return self.old_line_counts[0] if self.old_line_counts else 0


@dataclass(frozen=True)
class DiffFile:
    """
    One logical file in a diff, with its metadata and hunks.

    Names are None until the parser resolves them. Combined diffs record one
    old mode and one checksum per merge parent, so those fields hold tuples
    when `is_combined` is set.
    """

    old_name: str | None = None
    new_name: str | None = None
    added_lines: int = 0
    deleted_lines: int = 0
    is_combined: bool = False
    is_git_diff: bool = False
    language: str = ""
    blocks: Tuple[DiffBlock, ...] = ()
    parent_count: int = 1

    is_binary: bool = False
    is_too_big: bool = False
    is_new: bool = False
    is_deleted: bool = False
    is_rename: bool = False
    is_copy: bool = False

    old_mode: str | Tuple[str, ...] | None = None
    new_mode: str | None = None
    deleted_file_mode: str | None = None
    new_file_mode: str | None = None
    checksum_before: str | Tuple[str, ...] | None = None
    checksum_after: str | None = None
    mode: str | None = None
    unchanged_percentage: int | None = None
    changed_percentage: int | None = None
    too_big_message: str | None = None

    @property
    def file_path(self) -> str:
        """Get the primary file path for this diff."""
        return self.new_name or self.old_name or ""


class MatchGroupKind(Enum):
    """Kinds of runs produced by the line matcher."""

    DELETED = "deleted"
    INSERTED = "inserted"
    PAIRED = "paired"


@dataclass(frozen=True)
class MatchGroup:
    """
    A run of lines produced by the line matcher.

    `deleted_start` and `inserted_start` are offsets into the sequences that
    were passed to the matcher, so callers can map a group back to the
    original diff lines.
    """

    kind: MatchGroupKind
    deleted: Tuple[str, ...] = ()
    inserted: Tuple[str, ...] = ()
    deleted_start: int = 0
    inserted_start: int = 0
    score: float | None = None  # Distance of the pair, only for PAIRED groups


@dataclass(frozen=True)
class HighlightSpan:
    """A piece of a line, flagged when it differs from its paired line."""

    text: str
    changed: bool


@dataclass(frozen=True)
class HighlightedLines:
    """Sub-line highlight spans for a paired deleted/inserted line."""

    old_spans: Tuple[HighlightSpan, ...]
    new_spans: Tuple[HighlightSpan, ...]


@dataclass(frozen=True)
class ChangeRun:
    """
    Consecutive deleted lines followed by consecutive inserted lines in a hunk,
    together with the matcher's pairing of them.
    """

    deleted: Tuple[DiffLine, ...]
    inserted: Tuple[DiffLine, ...]
    groups: Tuple[MatchGroup, ...]
