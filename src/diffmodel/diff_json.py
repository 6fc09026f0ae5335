"""
JSON encoding of parsed diffs.

Field names are camelCase.  Optional fields are left out when unset (None, or
False for the optional flags), except for line numbers which are always
written and may be null.  Decoding rebuilds an identical model; line match
results (`matches`, written only on request) are derived data and are not
decoded.
"""

import json
from typing import Any, Dict, List, Sequence, Tuple

from diffmodel.diff_exceptions import DiffSerializationError
from diffmodel.diff_line_matcher import DiffLineMatcher
from diffmodel.diff_types import ChangeRun, DiffBlock, DiffFile, DiffLine, LineType, MatchGroup


# (attribute, JSON key) pairs for the optional file flags and metadata
_FILE_FLAGS: Tuple[Tuple[str, str], ...] = (
    ('is_binary', 'isBinary'),
    ('is_too_big', 'isTooBig'),
    ('is_new', 'isNew'),
    ('is_deleted', 'isDeleted'),
    ('is_rename', 'isRename'),
    ('is_copy', 'isCopy'),
)

_FILE_OPTIONAL: Tuple[Tuple[str, str], ...] = (
    ('new_mode', 'newMode'),
    ('deleted_file_mode', 'deletedFileMode'),
    ('new_file_mode', 'newFileMode'),
    ('checksum_after', 'checksumAfter'),
    ('mode', 'mode'),
    ('unchanged_percentage', 'unchangedPercentage'),
    ('changed_percentage', 'changedPercentage'),
    ('too_big_message', 'tooBigMessage'),
)

# Fields that hold one value per merge parent in combined diffs
_FILE_MULTI: Tuple[Tuple[str, str], ...] = (
    ('old_mode', 'oldMode'),
    ('checksum_before', 'checksumBefore'),
)


def line_to_dict(line: DiffLine) -> Dict[str, Any]:
    """Convert a diff line to a JSON compatible dictionary."""
    data: Dict[str, Any] = {
        'type': line.line_type.value,
        'prefix': line.prefix,
        'content': line.content,
        'oldNumber': line.old_number,
        'newNumber': line.new_number,
    }
    if line.truncated:
        data['truncated'] = True

    if line.no_newline_at_end:
        data['noNewlineAtEnd'] = True

    return data


def match_group_to_dict(group: MatchGroup) -> Dict[str, Any]:
    """Convert a match group to a JSON compatible dictionary."""
    data: Dict[str, Any] = {
        'kind': group.kind.value,
        'deleted': list(group.deleted),
        'inserted': list(group.inserted),
        'deletedStart': group.deleted_start,
        'insertedStart': group.inserted_start,
    }
    if group.score is not None:
        data['score'] = group.score

    return data


def change_run_to_dict(run: ChangeRun) -> Dict[str, Any]:
    """
    Convert a matched change run to a JSON compatible dictionary.

    Lines are referenced by their line numbers rather than repeated.
    """
    return {
        'oldNumbers': [line.old_number for line in run.deleted],
        'newNumbers': [line.new_number for line in run.inserted],
        'groups': [match_group_to_dict(group) for group in run.groups],
    }


def block_to_dict(block: DiffBlock, matcher: DiffLineMatcher | None = None) -> Dict[str, Any]:
    """
    Convert a diff block to a JSON compatible dictionary.

    Args:
        block: Parsed hunk
        matcher: If given, the hunk's change runs are matched and written
            under `matches`

    Returns:
        Dictionary form of the block
    """
    data: Dict[str, Any] = {
        'oldStartLine': block.old_start_line,
    }
    if block.old_start_line2 is not None:
        data['oldStartLine2'] = block.old_start_line2

    if len(block.old_start_lines) > 2:
        data['oldStartLines'] = list(block.old_start_lines)

    data['oldLineCount'] = block.old_line_count
    if len(block.old_line_counts) > 1:
        data['oldLineCounts'] = list(block.old_line_counts)

    data['newStartLine'] = block.new_start_line
    data['newLineCount'] = block.new_line_count
    data['header'] = block.header
    data['lines'] = [line_to_dict(line) for line in block.lines]
    if matcher is not None:
        data['matches'] = [change_run_to_dict(run) for run in matcher.match_block(block)]

    return data


def file_to_dict(diff_file: DiffFile, matcher: DiffLineMatcher | None = None) -> Dict[str, Any]:
    """Convert a diff file to a JSON compatible dictionary."""
    data: Dict[str, Any] = {}
    if diff_file.old_name is not None:
        data['oldName'] = diff_file.old_name

    data['newName'] = diff_file.new_name
    data['addedLines'] = diff_file.added_lines
    data['deletedLines'] = diff_file.deleted_lines
    data['isCombined'] = diff_file.is_combined
    data['isGitDiff'] = diff_file.is_git_diff
    data['language'] = diff_file.language
    data['blocks'] = [block_to_dict(block, matcher) for block in diff_file.blocks]

    if diff_file.parent_count != 1:
        data['parentCount'] = diff_file.parent_count

    for attr, key in _FILE_FLAGS:
        if getattr(diff_file, attr):
            data[key] = True

    for attr, key in _FILE_MULTI:
        value = getattr(diff_file, attr)
        if value is not None:
            data[key] = list(value) if isinstance(value, tuple) else value

    for attr, key in _FILE_OPTIONAL:
        value = getattr(diff_file, attr)
        if value is not None:
            data[key] = value

    return data


def files_to_dict(
    files: Sequence[DiffFile],
    matcher: DiffLineMatcher | None = None
) -> List[Dict[str, Any]]:
    """Convert parsed files to JSON compatible dictionaries."""
    return [file_to_dict(diff_file, matcher) for diff_file in files]


def files_to_json(
    files: Sequence[DiffFile],
    pretty: bool = False,
    matcher: DiffLineMatcher | None = None
) -> str:
    """
    Serialize parsed files to JSON text.

    Args:
        files: Parsed diff files
        pretty: Indent the output for readability
        matcher: If given, each block also carries its matched change runs

    Returns:
        JSON text
    """
    data = files_to_dict(files, matcher)
    if pretty:
        return json.dumps(data, indent=2, ensure_ascii=False)

    return json.dumps(data, separators=(',', ':'), ensure_ascii=False)


def line_from_dict(data: Dict[str, Any]) -> DiffLine:
    """Rebuild a diff line from its dictionary form."""
    return DiffLine(
        line_type=LineType(data['type']),
        content=data['content'],
        old_number=data.get('oldNumber'),
        new_number=data.get('newNumber'),
        prefix=data.get('prefix', ''),
        truncated=data.get('truncated', False),
        no_newline_at_end=data.get('noNewlineAtEnd', False),
    )


def block_from_dict(data: Dict[str, Any]) -> DiffBlock:
    """Rebuild a diff block from its dictionary form."""
    if 'oldStartLines' in data:
        old_starts = tuple(data['oldStartLines'])

    elif 'oldStartLine2' in data:
        old_starts = (data['oldStartLine'], data['oldStartLine2'])

    else:
        old_starts = (data['oldStartLine'],)

    if 'oldLineCounts' in data:
        old_counts = tuple(data['oldLineCounts'])

    else:
        old_counts = (data.get('oldLineCount', 0),)

    return DiffBlock(
        old_start_lines=old_starts,
        old_line_counts=old_counts,
        new_start_line=data['newStartLine'],
        new_line_count=data.get('newLineCount', 0),
        header=data['header'],
        lines=tuple(line_from_dict(line) for line in data['lines']),
    )


def file_from_dict(data: Dict[str, Any]) -> DiffFile:
    """Rebuild a diff file from its dictionary form."""
    values: Dict[str, Any] = {
        'old_name': data.get('oldName'),
        'new_name': data['newName'],
        'added_lines': data['addedLines'],
        'deleted_lines': data['deletedLines'],
        'is_combined': data['isCombined'],
        'is_git_diff': data['isGitDiff'],
        'language': data.get('language', ''),
        'blocks': tuple(block_from_dict(block) for block in data['blocks']),
        'parent_count': data.get('parentCount', 1),
    }

    for attr, key in _FILE_FLAGS:
        values[attr] = data.get(key, False)

    for attr, key in _FILE_MULTI:
        value = data.get(key)
        values[attr] = tuple(value) if isinstance(value, list) else value

    for attr, key in _FILE_OPTIONAL:
        values[attr] = data.get(key)

    return DiffFile(**values)


def files_from_json(text: str) -> List[DiffFile]:
    """
    Rebuild parsed files from JSON text.

    Args:
        text: JSON produced by `files_to_json`

    Returns:
        The decoded files

    Raises:
        DiffSerializationError: If the text is not valid JSON or does not
            describe diff files
    """
    try:
        data = json.loads(text)

    except json.JSONDecodeError as e:
        raise DiffSerializationError(f"Invalid JSON: {e}", {'position': e.pos}) from e

    if not isinstance(data, list):
        raise DiffSerializationError("Invalid diff JSON: root must be an array")

    files: List[DiffFile] = []
    for index, item in enumerate(data):
        try:
            files.append(file_from_dict(item))

        except KeyError as e:
            raise DiffSerializationError(
                f"Invalid diff JSON: file {index} is missing field {e}",
                {'file_index': index, 'field': e.args[0]}
            ) from e

        except (TypeError, ValueError, AttributeError) as e:
            raise DiffSerializationError(
                f"Invalid diff JSON: file {index}: {e}",
                {'file_index': index}
            ) from e

    return files
