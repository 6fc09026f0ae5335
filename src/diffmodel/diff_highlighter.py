"""Sub-line change highlighting for paired deleted/inserted lines."""

import difflib
import re
from typing import List, Tuple

from diffmodel.diff_exceptions import DiffConfigError
from diffmodel.diff_types import HighlightSpan, HighlightedLines


HIGHLIGHT_STYLES = ('word', 'char')
DEFAULT_MAX_LINE_LENGTH_HIGHLIGHT = 10000

_WORD_TOKEN = re.compile(r'\w+|\s+|[^\w\s]', re.UNICODE)


def _tokenize(text: str, style: str) -> List[str]:
    if style == 'char':
        return list(text)

    return _WORD_TOKEN.findall(text)


def _append_span(spans: List[HighlightSpan], text: str, changed: bool) -> None:
    if not text:
        return

    if spans and spans[-1].changed == changed:
        spans[-1] = HighlightSpan(spans[-1].text + text, changed)
        return

    spans.append(HighlightSpan(text, changed))


def highlight_line_pair(
    old_line: str,
    new_line: str,
    style: str = 'word',
    max_line_length: int = DEFAULT_MAX_LINE_LENGTH_HIGHLIGHT
) -> HighlightedLines:
    """
    Work out which parts of a modified line changed.

    Args:
        old_line: Content of the deleted line
        new_line: Content of the inserted line
        style: 'word' to compare word/whitespace/punctuation tokens, 'char'
            to compare individual characters
        max_line_length: Lines longer than this are returned unhighlighted

    Returns:
        Spans covering each line in order, flagged where they differ

    Raises:
        DiffConfigError: If the style or length limit is invalid
    """
    if style not in HIGHLIGHT_STYLES:
        raise DiffConfigError(
            f"Unknown highlight style: {style!r}",
            {'option': 'style', 'value': style, 'allowed': HIGHLIGHT_STYLES}
        )

    if max_line_length < 0:
        raise DiffConfigError(
            f"max_line_length must not be negative, got {max_line_length}",
            {'option': 'max_line_length', 'value': max_line_length}
        )

    if len(old_line) > max_line_length or len(new_line) > max_line_length:
        old_plain: Tuple[HighlightSpan, ...] = (HighlightSpan(old_line, False),) if old_line else ()
        new_plain: Tuple[HighlightSpan, ...] = (HighlightSpan(new_line, False),) if new_line else ()
        return HighlightedLines(old_plain, new_plain)

    old_tokens = _tokenize(old_line, style)
    new_tokens = _tokenize(new_line, style)
    matcher = difflib.SequenceMatcher(None, old_tokens, new_tokens, autojunk=False)

    old_spans: List[HighlightSpan] = []
    new_spans: List[HighlightSpan] = []
    for tag, a1, a2, b1, b2 in matcher.get_opcodes():
        old_text = ''.join(old_tokens[a1:a2])
        new_text = ''.join(new_tokens[b1:b2])
        changed = tag != 'equal'
        _append_span(old_spans, old_text, changed)
        _append_span(new_spans, new_text, changed)

    return HighlightedLines(tuple(old_spans), tuple(new_spans))
