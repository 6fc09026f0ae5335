"""
Command-line interface: read diff text, write the parsed model as JSON.
"""

import argparse
import io
import logging
import sys
from typing import List

from diffmodel.diff_exceptions import DiffError
from diffmodel.diff_json import files_to_json
from diffmodel.diff_line_matcher import DiffLineMatcher
from diffmodel.diff_parser import DiffParser
from diffmodel.diff_settings import DiffSettings


def setup_logging(verbose: bool) -> None:
    """Send log output to stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr
    )


def read_stdin() -> str:
    """Read diff text from stdin, replacing bytes that are not valid UTF-8."""
    stream = io.TextIOWrapper(sys.stdin.buffer, encoding='utf-8', errors='replace')
    try:
        return stream.read()

    finally:
        # Keep sys.stdin open
        stream.detach()


def build_arg_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog='diffmodel',
        description="Convert unified diff text into a structured JSON model",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  git diff | %(prog)s --pretty             # Parse diff from stdin
  %(prog)s changes.patch -o changes.json    # Parse a patch file
  %(prog)s changes.patch --max-changes 500  # Mark big files as too big
  %(prog)s changes.patch --match-lines      # Include paired changed lines
        """
    )
    parser.add_argument('input', nargs='?', default='-',
                        help="Diff file to read, '-' or omitted for stdin")
    parser.add_argument('--config', '-c', help='YAML settings file')
    parser.add_argument('--src-prefix', help='Extra prefix to strip from source paths')
    parser.add_argument('--dst-prefix', help='Extra prefix to strip from destination paths')
    parser.add_argument('--max-changes', type=int,
                        help='Changed lines per file before it is marked too big')
    parser.add_argument('--max-line-length', type=int,
                        help='Truncate diff lines longer than this')
    parser.add_argument('--match-lines', action='store_true',
                        help='Pair similar deleted and inserted lines in each block')
    parser.add_argument('--threshold', type=float,
                        help='Largest distance (0.0 to 1.0) at which lines are paired')
    parser.add_argument('--output', '-o', help='Output file path')
    parser.add_argument('--pretty', action='store_true', help='Indent the JSON output')
    parser.add_argument('--verbose', '-v', action='store_true', help='Verbose logging')
    return parser


def main(argv: List[str] | None = None) -> int:
    """Main CLI entry point."""
    args = build_arg_parser().parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = DiffSettings.load_from_file(args.config) if args.config else DiffSettings()
        settings = settings.with_overrides(
            parser={
                'src_prefix': args.src_prefix,
                'dst_prefix': args.dst_prefix,
                'diff_max_changes': args.max_changes,
                'diff_max_line_length': args.max_line_length,
            },
            matcher={
                'threshold': args.threshold,
            }
        )

        if args.input == '-':
            diff_text = read_stdin()

        else:
            with open(args.input, 'r', encoding='utf-8', errors='replace') as f:
                diff_text = f.read()

        parser = DiffParser(settings.parser)
        files = parser.parse(diff_text)
        matcher = DiffLineMatcher(settings.matcher) if args.match_lines else None
        output = files_to_json(files, pretty=args.pretty, matcher=matcher)

        if args.output:
            with open(args.output, 'w', encoding='utf-8') as f:
                f.write(output)
                f.write('\n')

        else:
            sys.stdout.write(output)
            sys.stdout.write('\n')

    except (DiffError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0
