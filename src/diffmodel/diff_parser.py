"""
Unified diff parsing.

Handles the dialects produced by GNU diff, `git diff` (including rename, copy,
mode and binary metadata) and git's combined diffs for merge commits.  The
parser is a two-state scanner: it seeks file and hunk headers, and while
inside a hunk it classifies each line by its leading marker(s).

Malformed input never raises.  Unrecognized lines outside a hunk are ignored
and unrecognized lines inside a hunk end that hunk.
"""

import dataclasses
from dataclasses import dataclass, field
from enum import Enum, auto
import functools
import logging
import posixpath
import re
from typing import List, Tuple

from diffmodel.diff_parser_config import DiffParserConfig
from diffmodel.diff_types import DiffBlock, DiffFile, DiffLine, LineType


_OLD_MODE = re.compile(r'^old mode (\d{6})')
_NEW_MODE = re.compile(r'^new mode (\d{6})')
_DELETED_FILE_MODE = re.compile(r'^deleted file mode (\d{6}(?:,\d{6})*)')
_NEW_FILE_MODE = re.compile(r'^new file mode (\d{6})')

_COPY_FROM = re.compile(r'^copy from "?(.+?)"?$')
_COPY_TO = re.compile(r'^copy to "?(.+?)"?$')
_RENAME_FROM = re.compile(r'^rename from "?(.+?)"?$')
_RENAME_TO = re.compile(r'^rename to "?(.+?)"?$')

_SIMILARITY_INDEX = re.compile(r'^similarity index (\d+)%')
_DISSIMILARITY_INDEX = re.compile(r'^dissimilarity index (\d+)%')
_INDEX = re.compile(r'^index ([\da-z]+)\.\.([\da-z]+)\s*(\d{6})?')
_COMBINED_INDEX = re.compile(r'^index ([\da-z]+(?:,[\da-z]+)+)\.\.([\da-z]+)')
_COMBINED_MODE = re.compile(r'^mode (\d{6}(?:,\d{6})+)\.\.(\d{6})')

_BINARY_FILES = re.compile(r'^Binary files "?(.+?)"? and "?(.+?)"? differ')
_BINARY_PATCH = re.compile(r'^GIT binary patch')

# "@@ -1,2 +1,3 @@" for plain diffs, one extra "@" and one extra old range
# per additional merge parent for combined diffs
_HUNK_HEADER = re.compile(r'^(@{2,})((?: -\d+(?:,\d+)?)+) \+(\d+)(?:,(\d+))? \1')
_HUNK_OLD_RANGE = re.compile(r'-(\d+)(?:,(\d+))?')

_GIT_DIFF_START = re.compile(r'^diff --git "?([a-ciow]/.+?)"? "?([a-ciow]/.+?)"?$')
_GIT_DIFF_START_ANY = re.compile(r'^diff --git "?(\S+?)"? "?(\S+?)"?$')
_COMBINED_DIFF_START = re.compile(r'^diff --(?:combined|cc) "?(.+?)"?$')

_TIMESTAMP = re.compile(r'\s+\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}(?:\.\d+)? [+-]\d{4}.*$')

OLD_FILE_NAME_HEADER = '--- '
NEW_FILE_NAME_HEADER = '+++ '
HUNK_HEADER_PREFIX = '@@'
DEV_NULL = '/dev/null'


class DiffParserState(Enum):
    """Scanner states."""

    SEEKING = auto()  # Looking for the next file or hunk header
    IN_HUNK = auto()  # Consuming the lines of the current hunk


@functools.lru_cache(maxsize=4096)
def classify_markers(markers: str) -> LineType | None:
    """
    Classify the marker column(s) of a hunk line.

    One marker per merge parent: a line is an insertion when some parent
    shows '+' and none shows '-', a deletion when some parent shows '-' and
    none shows '+', and context otherwise.

    Args:
        markers: The leading marker characters, one per parent

    Returns:
        The line type, or None if the markers are not valid hunk markers
    """
    if not markers or any(ch not in '+- ' for ch in markers):
        return None

    inserted = '+' in markers
    deleted = '-' in markers
    if inserted and not deleted:
        return LineType.INSERT

    if deleted and not inserted:
        return LineType.DELETE

    return LineType.CONTEXT


def get_filename(name: str, prefixes: Tuple[str, ...]) -> str:
    """
    Clean up a file name taken from a diff header.

    Removes a trailing tab separated timestamp, surrounding quotes and the
    first matching path prefix.

    Args:
        name: Raw name text (without the "--- "/"+++ " header)
        prefixes: Prefixes to try stripping, in priority order

    Returns:
        The cleaned file name
    """
    name = name.split('\t', 1)[0]
    name = _TIMESTAMP.sub('', name)
    if len(name) > 1 and name.startswith('"') and name.endswith('"'):
        name = name[1:-1]

    for prefix in prefixes:
        if name.startswith(prefix):
            return name[len(prefix):]

    return name


def get_extension(filename: str | None) -> str:
    """Get the file extension used as the language hint, without the dot."""
    if not filename:
        return ""

    return posixpath.splitext(posixpath.basename(filename))[1][1:]


def _find_hunk_headers_ahead(lines: List[str]) -> List[bool]:
    """
    For each line, work out if a "---", "+++", "@@" triple follows it before
    the next "diff" line.

    Args:
        lines: All lines of the diff

    Returns:
        One flag per line
    """
    ahead = [False] * (len(lines) + 1)
    for index in range(len(lines) - 1, -1, -1):
        line = lines[index]
        if line.startswith('diff'):
            ahead[index] = False
            continue

        if (
            index + 2 < len(lines)
            and line.startswith(OLD_FILE_NAME_HEADER)
            and lines[index + 1].startswith(NEW_FILE_NAME_HEADER)
            and lines[index + 2].startswith(HUNK_HEADER_PREFIX)
        ):
            ahead[index] = True
            continue

        ahead[index] = ahead[index + 1]

    return ahead


@dataclass
class _BlockBuilder:
    """Mutable hunk under construction."""

    old_start_lines: Tuple[int, ...]
    old_line_counts: Tuple[int, ...]
    new_start_line: int
    new_line_count: int
    header: str
    lines: List[DiffLine] = field(default_factory=list)

    def build(self) -> DiffBlock:
        return DiffBlock(
            old_start_lines=self.old_start_lines,
            old_line_counts=self.old_line_counts,
            new_start_line=self.new_start_line,
            new_line_count=self.new_line_count,
            header=self.header,
            lines=tuple(self.lines),
        )


@dataclass
class _FileBuilder:
    """Mutable file record under construction."""

    old_name: str | None = None
    new_name: str | None = None
    added_lines: int = 0
    deleted_lines: int = 0
    is_combined: bool = False
    is_git_diff: bool = False
    parent_count: int = 1
    blocks: List[DiffBlock] = field(default_factory=list)

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

    # Parser bookkeeping, not part of the result
    old_header_seen: bool = False
    new_header_seen: bool = False
    possible_old_name: str | None = None
    possible_new_name: str | None = None

    def has_content(self) -> bool:
        """Check if anything file-like has been seen for this record."""
        return bool(
            self.blocks
            or self.is_git_diff
            or self.old_header_seen
            or self.new_header_seen
            or self.possible_new_name
            or self.is_binary
        )

    def resolve_names(self) -> None:
        """Fill in names from the "diff --git" line where headers gave none."""
        if self.old_name is None and not self.old_header_seen:
            self.old_name = self.possible_old_name

        if self.new_name is None:
            if self.possible_new_name is not None:
                self.new_name = self.possible_new_name

            elif self.is_deleted:
                # A "+++ /dev/null" file keeps the name it was deleted under
                self.new_name = self.old_name

    def build(self) -> DiffFile:
        return DiffFile(
            old_name=self.old_name,
            new_name=self.new_name,
            added_lines=self.added_lines,
            deleted_lines=self.deleted_lines,
            is_combined=self.is_combined,
            is_git_diff=self.is_git_diff,
            language=get_extension(self.new_name or self.old_name),
            blocks=tuple(self.blocks),
            parent_count=self.parent_count,
            is_binary=self.is_binary,
            is_too_big=self.is_too_big,
            is_new=self.is_new,
            is_deleted=self.is_deleted,
            is_rename=self.is_rename,
            is_copy=self.is_copy,
            old_mode=self.old_mode,
            new_mode=self.new_mode,
            deleted_file_mode=self.deleted_file_mode,
            new_file_mode=self.new_file_mode,
            checksum_before=self.checksum_before,
            checksum_after=self.checksum_after,
            mode=self.mode,
            unchanged_percentage=self.unchanged_percentage,
            changed_percentage=self.changed_percentage,
            too_big_message=self.too_big_message,
        )


class DiffParser:
    """Parser for unified, git and combined diff text."""

    def __init__(self, config: DiffParserConfig | None = None):
        """
        Initialize the parser.

        Args:
            config: Parser options, defaults are used if not provided
        """
        self._config = config or DiffParserConfig()
        self._logger = logging.getLogger("DiffParser")
        self._reset()

    def _reset(self) -> None:
        self._files: List[DiffFile] = []
        self._file: _FileBuilder | None = None
        self._block: _BlockBuilder | None = None
        self._state = DiffParserState.SEEKING
        self._old_line = 0
        self._new_line = 0
        self._old_remaining = 0
        self._new_remaining = 0
        self._counted_hunk = False
        self._dropped_files = 0

    @property
    def config(self) -> DiffParserConfig:
        """Get the parser options."""
        return self._config

    @property
    def dropped_files(self) -> int:
        """Number of file records dropped by the last parse for lack of a new name."""
        return self._dropped_files

    def parse(self, diff_text: str) -> List[DiffFile]:
        """
        Parse diff text into structured file records.

        Args:
            diff_text: Complete diff text in any supported dialect

        Returns:
            Parsed files, in the order they appear in the diff
        """
        self._reset()

        normalized = diff_text.replace('\r\n', '\n').replace('\r', '\n')
        lines = normalized.split('\n')
        hunk_headers_ahead = _find_hunk_headers_ahead(lines)

        for index, line in enumerate(lines):
            # Skip empty lines and unmerged path markers
            if not line or line.startswith('*'):
                continue

            prev_line = lines[index - 1] if index > 0 else None
            next_line = lines[index + 1] if index + 1 < len(lines) else None
            after_next_line = lines[index + 2] if index + 2 < len(lines) else None

            starts_file_headers = (
                line.startswith(OLD_FILE_NAME_HEADER)
                and next_line is not None and next_line.startswith(NEW_FILE_NAME_HEADER)
                and after_next_line is not None and after_next_line.startswith(HUNK_HEADER_PREFIX)
            )

            if self._expects_hunk_line() and not starts_file_headers:
                if self._add_hunk_line(line):
                    continue

            if line.startswith('\\'):
                self._annotate_no_newline()
                continue

            if line.startswith('diff --git') or _COMBINED_DIFF_START.match(line):
                self._start_git_file(line)
                continue

            if line.startswith('Binary files') and (self._file is None or not self._file.is_git_diff):
                self._start_binary_file(line)
                continue

            if self._file is None or (not self._file.is_git_diff and starts_file_headers):
                self._start_file()

            current = self._file
            assert current is not None

            # Everything up to the next file header is skipped once a file is too big
            if current.is_too_big:
                continue

            if self._handle_name_header(line, prev_line, next_line):
                continue

            if line.startswith(HUNK_HEADER_PREFIX):
                self._start_block(line)
                continue

            if self._state == DiffParserState.IN_HUNK:
                if not self._hunk_is_full() and self._add_hunk_line(line):
                    continue

                # Anything else inside a hunk, or anything after the lines its
                # header counted (such as a "-- " mail signature), ends it
                self._save_block()

            self._handle_metadata(line, not hunk_headers_ahead[index])

        self._save_block()
        self._save_file()

        if self._dropped_files:
            self._logger.debug("Dropped %d file record(s) with no resolved name", self._dropped_files)

        return self._files

    def _expects_hunk_line(self) -> bool:
        """
        Check if the current hunk header says more lines belong to the hunk.

        While lines are still expected, a deleted line that happens to start
        with "-- " is content, not a file header.  Combined hunks count lines
        per parent, so they fall back to marker based detection.
        """
        if self._state != DiffParserState.IN_HUNK or self._file is None or self._file.is_combined:
            return False

        return self._old_remaining > 0 or self._new_remaining > 0

    def _hunk_is_full(self) -> bool:
        """Check if a hunk with a parsed single parent header has all its lines."""
        return self._counted_hunk and self._old_remaining <= 0 and self._new_remaining <= 0

    def _start_file(self) -> None:
        self._save_block()
        self._save_file()
        self._file = _FileBuilder()

    def _start_git_file(self, line: str) -> None:
        self._start_file()
        current = self._file
        assert current is not None
        current.is_git_diff = True

        match = _GIT_DIFF_START.match(line) or _GIT_DIFF_START_ANY.match(line)
        if match:
            current.possible_old_name = get_filename(match.group(1), self._config.src_prefixes())
            current.possible_new_name = get_filename(match.group(2), self._config.dst_prefixes())
            return

        match = _COMBINED_DIFF_START.match(line)
        if match:
            current.is_combined = True
            current.possible_old_name = match.group(1)
            current.possible_new_name = match.group(1)

    def _start_binary_file(self, line: str) -> None:
        self._start_file()
        current = self._file
        assert current is not None
        current.is_binary = True

        match = _BINARY_FILES.match(line)
        if match:
            self._set_binary_names(current, match.group(1), match.group(2), possible=True)

    def _set_binary_names(self, current: _FileBuilder, old: str, new: str, possible: bool) -> None:
        old_name = get_filename(old, self._config.src_prefixes())
        new_name = get_filename(new, self._config.dst_prefixes())

        if old_name == DEV_NULL:
            current.is_new = True
            current.old_header_seen = True
            old_name = None

        if new_name == DEV_NULL:
            current.is_deleted = True
            new_name = old_name

        if possible:
            current.possible_old_name = old_name
            current.possible_new_name = new_name
            return

        current.old_name = old_name
        current.new_name = new_name

    def _save_block(self) -> None:
        if self._block is not None and self._file is not None:
            self._file.blocks.append(self._block.build())

        self._block = None
        self._state = DiffParserState.SEEKING

    def _save_file(self) -> None:
        current = self._file
        self._file = None
        if current is None:
            return

        current.resolve_names()
        if current.new_name is None:
            # Files without a destination name are not reported
            if current.has_content():
                self._dropped_files += 1
                self._logger.debug("Dropping file record with no new name (old name %r)", current.old_name)

            return

        self._files.append(current.build())

    def _handle_name_header(self, line: str, prev_line: str | None, next_line: str | None) -> bool:
        """
        Handle "--- " and "+++ " file name headers.

        Returns:
            True if the line was consumed as a header
        """
        current = self._file
        assert current is not None

        is_old_header = line.startswith(OLD_FILE_NAME_HEADER)
        is_new_header = line.startswith(NEW_FILE_NAME_HEADER)
        prev_is_old = prev_line is not None and prev_line.startswith(OLD_FILE_NAME_HEADER)
        next_is_new = next_line is not None and next_line.startswith(NEW_FILE_NAME_HEADER)

        if is_old_header and next_is_new and not current.old_header_seen:
            self._save_block()
            current.old_header_seen = True
            name = get_filename(line[len(OLD_FILE_NAME_HEADER):], self._config.src_prefixes())
            if name == DEV_NULL:
                current.is_new = True
                current.old_name = None

            else:
                current.old_name = name

            return True

        if is_new_header and prev_is_old and not current.new_header_seen:
            self._save_block()
            current.new_header_seen = True
            name = get_filename(line[len(NEW_FILE_NAME_HEADER):], self._config.dst_prefixes())
            if name == DEV_NULL:
                current.is_deleted = True

            else:
                current.new_name = name

            return True

        return False

    def _start_block(self, line: str) -> None:
        self._save_block()
        current = self._file
        assert current is not None

        old_starts: Tuple[int, ...] = (0,)
        old_counts: Tuple[int, ...] = (0,)
        new_start = 0
        new_count = 0
        parents = 1
        parsed = False

        match = _HUNK_HEADER.match(line)
        ranges = _HUNK_OLD_RANGE.findall(match.group(2)) if match else []
        if match and len(ranges) == len(match.group(1)) - 1:
            parents = len(ranges)
            parsed = True
            old_starts = tuple(int(start) for start, _ in ranges)
            old_counts = tuple(int(count) if count else 1 for _, count in ranges)
            new_start = int(match.group(3))
            new_count = int(match.group(4)) if match.group(4) is not None else 1

        else:
            self._logger.warning("Failed to parse hunk header, starting at 0: %r", line)

        current.parent_count = parents
        current.is_combined = parents > 1

        self._old_line = old_starts[0]
        self._new_line = new_start
        self._old_remaining = old_counts[0]
        self._new_remaining = new_count
        self._counted_hunk = parsed and parents == 1

        self._block = _BlockBuilder(
            old_start_lines=old_starts,
            old_line_counts=old_counts,
            new_start_line=new_start,
            new_line_count=new_count,
            header=line,
        )
        self._state = DiffParserState.IN_HUNK

    def _add_hunk_line(self, line: str) -> bool:
        """
        Add a line to the current hunk.

        Returns:
            True if the line carried valid hunk markers and was consumed
        """
        current = self._file
        block = self._block
        assert current is not None and block is not None

        markers = line[:current.parent_count]
        if len(markers) < current.parent_count:
            return False

        line_type = classify_markers(markers)
        if line_type is None:
            return False

        if line_type != LineType.CONTEXT and self._exceeds_max_changes(current):
            self._mark_too_big(current)
            return True

        content = line[current.parent_count:]
        truncated = False
        max_length = self._config.diff_max_line_length
        if max_length is not None and len(content) > max_length:
            content = content[:max_length]
            truncated = True

        if line_type == LineType.INSERT:
            diff_line = DiffLine(line_type, content, None, self._new_line, markers, truncated)
            current.added_lines += 1
            self._new_line += 1
            self._new_remaining -= 1

        elif line_type == LineType.DELETE:
            diff_line = DiffLine(line_type, content, self._old_line, None, markers, truncated)
            current.deleted_lines += 1
            self._old_line += 1
            self._old_remaining -= 1

        else:
            diff_line = DiffLine(line_type, content, self._old_line, self._new_line, markers, truncated)
            self._old_line += 1
            self._new_line += 1
            self._old_remaining -= 1
            self._new_remaining -= 1

        block.lines.append(diff_line)
        return True

    def _exceeds_max_changes(self, current: _FileBuilder) -> bool:
        max_changes = self._config.diff_max_changes
        return max_changes is not None and current.added_lines + current.deleted_lines >= max_changes

    def _mark_too_big(self, current: _FileBuilder) -> None:
        """Stop collecting lines for a file that has too many changes."""
        self._save_block()
        current.is_too_big = True
        current.too_big_message = self._config.too_big_message(len(self._files))
        self._logger.debug(
            "File %r exceeds %d changes, skipping the rest of it",
            current.new_name or current.possible_new_name,
            self._config.diff_max_changes
        )

    def _annotate_no_newline(self) -> None:
        """Flag the previous hunk line as having no newline at end of file."""
        if self._state != DiffParserState.IN_HUNK or self._block is None or not self._block.lines:
            return

        self._block.lines[-1] = dataclasses.replace(self._block.lines[-1], no_newline_at_end=True)

    def _handle_metadata(self, line: str, no_hunk_header_ahead: bool) -> None:
        """
        Record git extended header information for the current file.

        Args:
            line: The line to inspect
            no_hunk_header_ahead: True if no file header triple follows before
                the next "diff" line; rename and copy names are only taken
                from metadata in that case
        """
        current = self._file
        assert current is not None

        match = _OLD_MODE.match(line)
        if match:
            current.old_mode = match.group(1)
            return

        match = _NEW_MODE.match(line)
        if match:
            current.new_mode = match.group(1)
            return

        match = _DELETED_FILE_MODE.match(line)
        if match:
            current.deleted_file_mode = match.group(1)
            current.is_deleted = True
            return

        match = _NEW_FILE_MODE.match(line)
        if match:
            current.new_file_mode = match.group(1)
            current.is_new = True
            return

        match = _COPY_FROM.match(line)
        if match:
            if no_hunk_header_ahead:
                current.old_name = match.group(1)

            current.is_copy = True
            return

        match = _COPY_TO.match(line)
        if match:
            if no_hunk_header_ahead:
                current.new_name = match.group(1)

            current.is_copy = True
            return

        match = _RENAME_FROM.match(line)
        if match:
            if no_hunk_header_ahead:
                current.old_name = match.group(1)

            current.is_rename = True
            return

        match = _RENAME_TO.match(line)
        if match:
            if no_hunk_header_ahead:
                current.new_name = match.group(1)

            current.is_rename = True
            return

        match = _BINARY_FILES.match(line)
        if match:
            current.is_binary = True
            self._set_binary_names(current, match.group(1), match.group(2), possible=False)
            return

        if _BINARY_PATCH.match(line):
            current.is_binary = True
            return

        match = _SIMILARITY_INDEX.match(line)
        if match:
            current.unchanged_percentage = int(match.group(1))
            return

        match = _DISSIMILARITY_INDEX.match(line)
        if match:
            current.changed_percentage = int(match.group(1))
            return

        match = _INDEX.match(line)
        if match:
            current.checksum_before = match.group(1)
            current.checksum_after = match.group(2)
            current.mode = match.group(3)
            return

        match = _COMBINED_INDEX.match(line)
        if match:
            current.checksum_before = tuple(match.group(1).split(','))
            current.checksum_after = match.group(2)
            return

        match = _COMBINED_MODE.match(line)
        if match:
            current.old_mode = tuple(match.group(1).split(','))
            current.new_mode = match.group(2)


def parse(diff_text: str, config: DiffParserConfig | None = None) -> List[DiffFile]:
    """
    Parse diff text into structured file records.

    Args:
        diff_text: Complete diff text in any supported dialect
        config: Parser options, defaults are used if not provided

    Returns:
        Parsed files, in the order they appear in the diff
    """
    return DiffParser(config).parse(diff_text)
