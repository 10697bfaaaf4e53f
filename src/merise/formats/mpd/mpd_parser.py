"""
MPD Parser.

Parses the physical micro-syntax into an ``MpdModel``::

    TABLE COMMANDE {
        id_commande INT [PK] [NOT NULL]
        total DECIMAL(10,2) [CHECK(total >= 0)]
        id_client INT [FK -> CLIENT.id_client ON DELETE CASCADE ON UPDATE CASCADE] [NOT NULL]
    }

Each column is ``name TYPE`` followed by any number of bracket flags in any
order. This is also the format produced by ``MpdModel.to_text()``.
"""

import logging
import re
from pathlib import Path
from typing import List, Optional, Tuple, Union

from ...constants import ConstraintKind
from ...shared.blocks import RawBlock, extract_blocks, split_items
from ...shared.validation import IssueCategory, ParseResult, ValidationResult
from ..mld.mld_parser import parse_foreign_key_flag
from .mpd_models import CONSTRAINT_ORDER, MpdColumn, MpdConstraint, MpdForeignKey, MpdModel, MpdTable

logger = logging.getLogger(__name__)

COLUMN_PATTERN = re.compile(
    r'^(\w+)\s+(\w+(?:\s*\(\s*\d+\s*(?:,\s*\d+\s*)?\))?)\s*(.*)$'
)
CHECK_PATTERN = re.compile(r'^CHECK\s*\((.*)\)$', re.IGNORECASE | re.DOTALL)


def split_bracket_groups(text: str) -> Tuple[List[str], str]:
    """
    Split ``[..] [..]`` into group contents, honoring nested parentheses.

    CHECK expressions may contain ``]`` inside parentheses, which a plain
    regex would cut short.

    Returns:
        (group contents, text found outside any group)
    """
    groups: List[str] = []
    outside: List[str] = []
    current: List[str] = []
    in_group = False
    paren_depth = 0

    for ch in text:
        if not in_group:
            if ch == "[":
                in_group = True
                current = []
                paren_depth = 0
            else:
                outside.append(ch)
            continue
        if ch == "(":
            paren_depth += 1
        elif ch == ")":
            paren_depth = max(paren_depth - 1, 0)
        elif ch == "]" and paren_depth == 0:
            groups.append("".join(current).strip())
            in_group = False
            continue
        current.append(ch)

    if in_group:
        outside.append("[" + "".join(current))
    return groups, "".join(outside).strip()


class MpdParser:
    """
    Parse physical micro-syntax documents.

    Unknown flags are ignored; text after the type that is not inside a
    bracket group is a syntax error.
    """

    def parse(self, source: str) -> ParseResult[MpdModel]:
        model = MpdModel()
        validation = ValidationResult(source="mpd")
        scan = extract_blocks(source)

        for line_no, text in scan.stray_lines:
            validation.error(
                IssueCategory.SYNTAX_ERROR,
                f'Unexpected text outside of a block: "{text}"',
                location=f"line {line_no}",
            )

        for block in scan.blocks:
            if block.keyword.upper() != "TABLE":
                validation.error(
                    IssueCategory.UNKNOWN_KEYWORD,
                    f'Unknown keyword "{block.keyword}" (expected TABLE); block skipped',
                    location=f"line {block.line}",
                )
                continue
            if not block.closed:
                validation.error(IssueCategory.UNTERMINATED_BLOCK, "Missing closing brace", location=block.label)
            model.tables.append(self._parse_table_block(block, validation))

        validation.statistics["table_count"] = len(model.tables)
        logger.info(f"Parsed MPD: {len(model.tables)} tables, {validation.error_count} errors")
        return ParseResult(model=model, validation=validation)

    def parse_file(self, file_path: Union[str, Path]) -> ParseResult[MpdModel]:
        """
        Parse a physical document from disk.

        Raises:
            FileNotFoundError: If the file doesn't exist.
        """
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"MPD file not found: {file_path}")
        result = self.parse(path.read_text(encoding="utf-8"))
        result.validation.source = str(path)
        return result

    def _parse_table_block(self, block: RawBlock, validation: ValidationResult) -> MpdTable:
        table = MpdTable(name=block.name)
        for item in split_items(block.body):
            column = self._parse_column(item, block, validation)
            if column is not None:
                table.columns.append(column)
        return table

    def _parse_column(self, item: str, block: RawBlock, validation: ValidationResult) -> Optional[MpdColumn]:
        match = COLUMN_PATTERN.match(item)
        if not match:
            validation.error(
                IssueCategory.SYNTAX_ERROR,
                f'Invalid column "{item}" (expected: name TYPE [FLAGS])',
                location=block.label,
            )
            return None

        name, sql_type = match.group(1), "".join(match.group(2).split())
        groups, outside = split_bracket_groups(match.group(3))
        if outside:
            validation.error(
                IssueCategory.SYNTAX_ERROR,
                f'Unexpected text "{outside}" in column "{name}"',
                location=block.label,
            )
            return None

        column = MpdColumn(name=name, sql_type=sql_type)
        for flag in groups:
            upper = " ".join(flag.split()).upper()
            check = CHECK_PATTERN.match(flag)
            if upper == "PK":
                column.is_primary_key = True
            elif upper == "NOT NULL":
                column.constraints.append(MpdConstraint(ConstraintKind.NOT_NULL))
            elif upper == "UNIQUE":
                column.constraints.append(MpdConstraint(ConstraintKind.UNIQUE))
            elif check:
                column.constraints.append(MpdConstraint(ConstraintKind.CHECK, check.group(1).strip() or None))
            else:
                fk = parse_foreign_key_flag(flag, name, validation, block.label)
                if fk is None:
                    logger.debug(f"Ignoring unknown flag [{flag}] on {block.name}.{name}")
                    continue
                column.foreign_key = MpdForeignKey(
                    column_name=name,
                    referenced_table=fk.referenced_table,
                    referenced_column=fk.referenced_column,
                    on_delete=fk.on_delete,
                    on_update=fk.on_update,
                )

        column.constraints.sort(key=lambda c: CONSTRAINT_ORDER.index(c.kind))
        return column


def parse_mpd(source: str) -> ParseResult[MpdModel]:
    """Convenience wrapper around ``MpdParser().parse``."""
    return MpdParser().parse(source)
