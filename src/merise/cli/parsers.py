"""
CLI argument parser configuration.

Command Structure:
    - validate <files...> [--level {mcd,mld,mpd}] [--json] [--strict]
    - convert  <files...> [--from {mcd,mld}] [--to {mld,mpd}] [-o OUT]
    - sql      <files...> [--from {mcd,mld,mpd}] [-o OUT]
"""

import argparse

from ..constants import InheritanceStrategy, ModelLevel, SqlDialect

LEVEL_CHOICES = [level.value for level in ModelLevel]


# ============================================================================
# Shared Flag Group Builders
# ============================================================================

def add_input_flags(parser: argparse.ArgumentParser) -> None:
    """Add input files and the shared config/logging flags."""
    parser.add_argument('files', nargs='+', help='Micro-syntax or Markdown files')
    parser.add_argument('--config', '-c', help='Path to a JSON configuration file')
    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Override the configured log level'
    )
    parser.add_argument('--log-file', help='Also write logs to this file')


def add_conversion_flags(parser: argparse.ArgumentParser) -> None:
    """Add flags overriding the conversion configuration."""
    parser.add_argument(
        '--strategy',
        choices=list(InheritanceStrategy.values()),
        help='Default inheritance strategy'
    )
    parser.add_argument(
        '--dialect',
        choices=list(SqlDialect.values()),
        help='Target SQL dialect'
    )
    parser.add_argument(
        '--varchar-length',
        type=int,
        help='Length of VARCHAR columns matched by no naming rule'
    )


def add_output_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        '--output', '-o',
        help='Output file (single input) or directory (several inputs); stdout by default'
    )


# ============================================================================
# Main Parser
# ============================================================================

def create_argument_parser() -> argparse.ArgumentParser:
    """
    Create and configure the main argument parser.

    Returns:
        Configured ArgumentParser with all subcommands.
    """
    parser = argparse.ArgumentParser(
        prog='merise',
        description="Merise conceptual / logical / physical model toolchain",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    %(prog)s validate shop.mcd
    %(prog)s validate notes.md --level mld --json
    %(prog)s convert shop.mcd --to mld
    %(prog)s convert shop.mld --to mpd --dialect postgresql -o shop.mpd
    %(prog)s sql shop.mcd --strategy single_table -o shop.sql
        """,
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    _add_validate_parser(subparsers)
    _add_convert_parser(subparsers)
    _add_sql_parser(subparsers)

    return parser


def _add_validate_parser(subparsers: argparse._SubParsersAction) -> None:
    """Add the validate command parser."""
    parser = subparsers.add_parser(
        'validate',
        help='Parse and validate a model at any level'
    )
    add_input_flags(parser)
    parser.add_argument(
        '--level', '-l',
        choices=LEVEL_CHOICES,
        help='Model level (detected when omitted)'
    )
    parser.add_argument(
        '--json',
        action='store_true',
        help='Print the validation result as JSON'
    )
    parser.add_argument(
        '--strict',
        action='store_true',
        help='Treat warnings as errors'
    )


def _add_convert_parser(subparsers: argparse._SubParsersAction) -> None:
    """Add the convert command parser."""
    parser = subparsers.add_parser(
        'convert',
        help='Convert a model to the next level and print it in micro-syntax'
    )
    add_input_flags(parser)
    add_conversion_flags(parser)
    add_output_flags(parser)
    parser.add_argument(
        '--from',
        dest='from_level',
        choices=[ModelLevel.MCD.value, ModelLevel.MLD.value],
        help='Input level (detected when omitted)'
    )
    parser.add_argument(
        '--to',
        dest='to_level',
        choices=[ModelLevel.MLD.value, ModelLevel.MPD.value],
        help='Output level (the level after the input by default)'
    )


def _add_sql_parser(subparsers: argparse._SubParsersAction) -> None:
    """Add the sql command parser."""
    parser = subparsers.add_parser(
        'sql',
        help='Generate SQL DDL from a model at any level'
    )
    add_input_flags(parser)
    add_conversion_flags(parser)
    add_output_flags(parser)
    parser.add_argument(
        '--from',
        dest='from_level',
        choices=LEVEL_CHOICES,
        help='Input level (detected when omitted)'
    )
