"""Configuration for the line matcher."""

from dataclasses import dataclass

from diffmodel.diff_exceptions import DiffConfigError


@dataclass
class DiffMatcherConfig:
    """
    Options for `DiffLineMatcher`.

    Attributes:
        matching_max_comparisons: Maximum number of distance evaluations per
            matcher call; larger problems are reported as unmatched
        max_line_size_in_block_for_comparison: Lines longer than this are
            never paired
        threshold: Largest distance (0.0 to 1.0) at which two lines are
            still considered the same line modified
    """

    matching_max_comparisons: int = 2500
    max_line_size_in_block_for_comparison: int = 200
    threshold: float = 0.25

    def __post_init__(self) -> None:
        """Reject invalid options up front."""
        for name in ('matching_max_comparisons', 'max_line_size_in_block_for_comparison'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise DiffConfigError(
                    f"{name} must be a non-negative integer, got {value!r}",
                    {'option': name, 'value': value}
                )

        threshold = self.threshold
        if isinstance(threshold, bool) or not isinstance(threshold, (int, float)) or not 0.0 <= threshold <= 1.0:
            raise DiffConfigError(
                f"threshold must be between 0.0 and 1.0, got {threshold!r}",
                {'option': 'threshold', 'value': threshold}
            )
