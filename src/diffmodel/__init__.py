"""
Unified diff parsing and changed line matching.

This package turns diff text (GNU diff, git diff and git combined diffs) into
a structured, renderer independent model, and pairs up similar deleted and
inserted lines so renderers can highlight changes within a line.
"""

from diffmodel.diff_distance import DistanceMetric, levenshtein, normalized_levenshtein
from diffmodel.diff_exceptions import (
    DiffConfigError,
    DiffError,
    DiffSerializationError,
)
from diffmodel.diff_highlighter import highlight_line_pair
from diffmodel.diff_json import files_from_json, files_to_dict, files_to_json
from diffmodel.diff_line_matcher import DiffLineMatcher, match_block, match_lines
from diffmodel.diff_matcher_config import DiffMatcherConfig
from diffmodel.diff_parser import DiffParser, parse
from diffmodel.diff_parser_config import DEFAULT_TOO_BIG_MESSAGE, DiffParserConfig
from diffmodel.diff_settings import DiffSettings
from diffmodel.diff_types import (
    ChangeRun,
    DiffBlock,
    DiffFile,
    DiffLine,
    HighlightedLines,
    HighlightSpan,
    LineType,
    MatchGroup,
    MatchGroupKind,
)

__all__ = [
    # Exceptions
    'DiffError',
    'DiffConfigError',
    'DiffSerializationError',
    # Types
    'LineType',
    'DiffLine',
    'DiffBlock',
    'DiffFile',
    'MatchGroupKind',
    'MatchGroup',
    'ChangeRun',
    'HighlightSpan',
    'HighlightedLines',
    # Configuration
    'DiffParserConfig',
    'DiffMatcherConfig',
    'DiffSettings',
    'DEFAULT_TOO_BIG_MESSAGE',
    # Parsing
    'DiffParser',
    'parse',
    # Matching
    'DistanceMetric',
    'levenshtein',
    'normalized_levenshtein',
    'DiffLineMatcher',
    'match_lines',
    'match_block',
    # Highlighting and serialization
    'highlight_line_pair',
    'files_to_dict',
    'files_to_json',
    'files_from_json',
]
