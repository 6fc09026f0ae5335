"""Configuration for the diff parser."""

from dataclasses import dataclass
from typing import Callable

from diffmodel.diff_exceptions import DiffConfigError


DEFAULT_TOO_BIG_MESSAGE = "Diff too big to be displayed"

# Path prefixes git and other tools put in front of file names
BASE_FILENAME_PREFIXES = ("a/", "b/", "i/", "w/", "c/", "o/")


@dataclass
class DiffParserConfig:
    """
    Options for `DiffParser`.

    Attributes:
        src_prefix: Extra prefix to strip from source file paths
        dst_prefix: Extra prefix to strip from destination file paths
        diff_max_changes: Maximum added + deleted lines per file before the
            file is marked too big
        diff_max_line_length: Maximum length of a stored line; longer lines
            are truncated
        diff_too_big_message: Message attached to too big files, either a
            string or a callable receiving the index of the file in the output
    """

    src_prefix: str | None = None
    dst_prefix: str | None = None
    diff_max_changes: int | None = None
    diff_max_line_length: int | None = None
    diff_too_big_message: str | Callable[[int], str] | None = None

    def __post_init__(self) -> None:
        """Reject invalid options up front."""
        for name in ('diff_max_changes', 'diff_max_line_length'):
            value = getattr(self, name)
            if value is None:
                continue

            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise DiffConfigError(
                    f"{name} must be a positive integer, got {value!r}",
                    {'option': name, 'value': value}
                )

        for name in ('src_prefix', 'dst_prefix'):
            value = getattr(self, name)
            if value is not None and not isinstance(value, str):
                raise DiffConfigError(
                    f"{name} must be a string, got {value!r}",
                    {'option': name, 'value': value}
                )

        message = self.diff_too_big_message
        if message is not None and not isinstance(message, str) and not callable(message):
            raise DiffConfigError(
                "diff_too_big_message must be a string or a callable",
                {'option': 'diff_too_big_message', 'value': message}
            )

    def too_big_message(self, file_index: int) -> str:
        """
        Get the message to attach to a file that exceeded the change limit.

        Args:
            file_index: Index of the file within the parsed output

        Returns:
            The configured message, or the default one
        """
        message = self.diff_too_big_message
        if message is None:
            return DEFAULT_TOO_BIG_MESSAGE

        if isinstance(message, str):
            return message

        return message(file_index)

    def src_prefixes(self) -> tuple[str, ...]:
        """Prefixes recognized in front of source file names."""
        if self.src_prefix:
            return (self.src_prefix,) + BASE_FILENAME_PREFIXES

        return BASE_FILENAME_PREFIXES

    def dst_prefixes(self) -> tuple[str, ...]:
        """Prefixes recognized in front of destination file names."""
        if self.dst_prefix:
            return (self.dst_prefix,) + BASE_FILENAME_PREFIXES

        return BASE_FILENAME_PREFIXES
