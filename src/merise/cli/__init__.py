"""
Command line interface for the Merise toolchain.

Usage:
    merise validate model.mcd
    merise convert model.mcd --to mpd --dialect postgresql
    merise sql model.mcd -o schema.sql
"""

from .commands import BaseCommand, ConvertCommand, SqlCommand, ValidateCommand, COMMANDS
from .parsers import create_argument_parser

__all__ = [
    "BaseCommand",
    "ConvertCommand",
    "SqlCommand",
    "ValidateCommand",
    "COMMANDS",
    "create_argument_parser",
]
