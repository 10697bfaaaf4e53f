"""
Shared utilities used by every level: block extraction, issue reporting
and conversion results.
"""

from .blocks import RawBlock, BlockScan, extract_blocks, split_items, split_outside_brackets
from .validation import (
    Severity,
    IssueCategory,
    ValidationIssue,
    ValidationResult,
    ParseResult,
    MeriseError,
    MeriseSyntaxError,
    ConfigError,
)
from .conversion import ConversionResult

__all__ = [
    "RawBlock",
    "BlockScan",
    "extract_blocks",
    "split_items",
    "split_outside_brackets",
    "Severity",
    "IssueCategory",
    "ValidationIssue",
    "ValidationResult",
    "ParseResult",
    "MeriseError",
    "MeriseSyntaxError",
    "ConfigError",
    "ConversionResult",
]
