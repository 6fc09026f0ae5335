"""
Settings file support for the command line tool.

A settings file is YAML with optional `parser` and `matcher` sections whose
keys are the option names of `DiffParserConfig` and `DiffMatcherConfig`:

    parser:
      src_prefix: old/
      diff_max_changes: 1000
    matcher:
      threshold: 0.3
"""

import dataclasses
from dataclasses import dataclass, field
import os
from typing import Any, Dict

import yaml

from diffmodel.diff_exceptions import DiffConfigError
from diffmodel.diff_matcher_config import DiffMatcherConfig
from diffmodel.diff_parser_config import DiffParserConfig


@dataclass
class DiffSettings:
    """Parser and matcher options loaded together."""

    parser: DiffParserConfig = field(default_factory=DiffParserConfig)
    matcher: DiffMatcherConfig = field(default_factory=DiffMatcherConfig)

    @classmethod
    def load_from_file(cls, settings_path: str) -> 'DiffSettings':
        """
        Load settings from a YAML file.

        Args:
            settings_path: Path to the settings file

        Returns:
            The loaded settings

        Raises:
            FileNotFoundError: If the file does not exist
            DiffConfigError: If the file content is not valid settings
        """
        if not os.path.exists(settings_path):
            raise FileNotFoundError(f"Settings file not found: {settings_path}")

        with open(settings_path, 'r', encoding='utf-8') as f:
            try:
                data = yaml.safe_load(f)

            except yaml.YAMLError as e:
                raise DiffConfigError(f"Invalid settings file {settings_path}: {e}") from e

        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: Any) -> 'DiffSettings':
        """
        Build settings from a parsed mapping.

        Args:
            data: Mapping with optional 'parser' and 'matcher' sections

        Returns:
            The settings

        Raises:
            DiffConfigError: If sections or keys are unknown, or values invalid
        """
        if not isinstance(data, dict):
            raise DiffConfigError("Settings must be a mapping")

        unknown = set(data) - {'parser', 'matcher'}
        if unknown:
            raise DiffConfigError(
                f"Unknown settings sections: {', '.join(sorted(unknown))}",
                {'sections': sorted(unknown)}
            )

        parser_options = _section(data, 'parser', DiffParserConfig)
        matcher_options = _section(data, 'matcher', DiffMatcherConfig)
        return cls(
            parser=DiffParserConfig(**parser_options),
            matcher=DiffMatcherConfig(**matcher_options)
        )

    def with_overrides(self, parser: Dict[str, Any], matcher: Dict[str, Any]) -> 'DiffSettings':
        """
        Get a copy with some options replaced; None values are ignored.

        Args:
            parser: Parser option overrides
            matcher: Matcher option overrides

        Returns:
            The updated settings
        """
        parser_changes = {key: value for key, value in parser.items() if value is not None}
        matcher_changes = {key: value for key, value in matcher.items() if value is not None}
        return DiffSettings(
            parser=dataclasses.replace(self.parser, **parser_changes),
            matcher=dataclasses.replace(self.matcher, **matcher_changes)
        )


def _section(data: Dict[str, Any], name: str, config_class: type) -> Dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise DiffConfigError(f"Settings section '{name}' must be a mapping")

    allowed = {config_field.name for config_field in dataclasses.fields(config_class)}
    unknown = set(section) - allowed
    if unknown:
        raise DiffConfigError(
            f"Unknown {name} settings: {', '.join(sorted(unknown))}",
            {'section': name, 'keys': sorted(unknown)}
        )

    return section
