"""
MLD Parser.

Parses the logical micro-syntax into an ``MldModel``::

    TABLE COMMANDE {
        id_commande [PK]
        id_client [FK -> CLIENT.id_client ON DELETE SET NULL]
    }

This is also the format produced by ``MldModel.to_text()``.
"""

import logging
import re
from pathlib import Path
from typing import List, Optional, Tuple, Union

from ...constants import ReferentialAction
from ...shared.blocks import RawBlock, extract_blocks, split_items
from ...shared.validation import IssueCategory, ParseResult, ValidationResult
from .mld_models import MldColumn, MldForeignKey, MldModel, MldTable

logger = logging.getLogger(__name__)

COLUMN_PATTERN = re.compile(r'^(\w+)((?:\s*\[[^\]]*\])*)\s*$')
FLAG_GROUP_PATTERN = re.compile(r'\[([^\]]*)\]')
FOREIGN_KEY_PATTERN = re.compile(r'^FK\s*->\s*(\w+)\.(\w+)\s*(.*)$', re.IGNORECASE)
ACTION_PATTERN = re.compile(
    r'ON\s+(DELETE|UPDATE)\s+(.+?)(?=\s+ON\s+(?:DELETE|UPDATE)\b|$)',
    re.IGNORECASE,
)


def parse_foreign_key_flag(
    flag: str,
    column_name: str,
    validation: ValidationResult,
    location: str,
) -> Optional[MldForeignKey]:
    """
    Parse the inside of an ``[FK -> Table.col ...]`` flag.

    ON DELETE / ON UPDATE may appear in either order. An unrecognized action
    is left unset and reported as a warning.

    Returns:
        The foreign key, or None when ``flag`` is not an FK flag.
    """
    match = FOREIGN_KEY_PATTERN.match(flag.strip())
    if not match:
        return None

    fk = MldForeignKey(
        column_name=column_name,
        referenced_table=match.group(1),
        referenced_column=match.group(2),
    )
    for event, raw_action in ACTION_PATTERN.findall(match.group(3)):
        action = ReferentialAction.parse(raw_action)
        if action is None:
            validation.warning(
                IssueCategory.UNKNOWN_REFERENTIAL_ACTION,
                f'Unknown referential action "{raw_action.strip()}" on column "{column_name}"; left unset',
                location=location,
            )
            continue
        if event.upper() == "DELETE":
            fk.on_delete = action
        else:
            fk.on_update = action
    return fk


def split_flags(text: str) -> Tuple[List[str], str]:
    """
    Return the contents of every ``[...]`` group and the text left outside them.
    """
    flags = [group.strip() for group in FLAG_GROUP_PATTERN.findall(text)]
    remainder = FLAG_GROUP_PATTERN.sub(" ", text).strip()
    return flags, remainder


class MldParser:
    """
    Parse logical micro-syntax documents.

    Only ``TABLE`` blocks are allowed; any other keyword is an error and the
    block is skipped.
    """

    def parse(self, source: str) -> ParseResult[MldModel]:
        model = MldModel()
        validation = ValidationResult(source="mld")
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
        logger.info(f"Parsed MLD: {len(model.tables)} tables, {validation.error_count} errors")
        return ParseResult(model=model, validation=validation)

    def parse_file(self, file_path: Union[str, Path]) -> ParseResult[MldModel]:
        """
        Parse a logical document from disk.

        Raises:
            FileNotFoundError: If the file doesn't exist.
        """
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"MLD file not found: {file_path}")
        result = self.parse(path.read_text(encoding="utf-8"))
        result.validation.source = str(path)
        return result

    def _parse_table_block(self, block: RawBlock, validation: ValidationResult) -> MldTable:
        table = MldTable(name=block.name)
        for item in split_items(block.body):
            column = self._parse_column(item, block, validation)
            if column is not None:
                table.columns.append(column)
        logger.debug(f"Table {table.name}: {len(table.columns)} columns")
        return table

    def _parse_column(self, item: str, block: RawBlock, validation: ValidationResult) -> Optional[MldColumn]:
        match = COLUMN_PATTERN.match(item)
        if not match:
            validation.error(
                IssueCategory.SYNTAX_ERROR,
                f'Invalid column "{item}"',
                location=block.label,
            )
            return None

        column = MldColumn(name=match.group(1))
        flags, _ = split_flags(match.group(2))
        for flag in flags:
            if flag.upper() == "PK":
                column.is_primary_key = True
                continue
            fk = parse_foreign_key_flag(flag, column.name, validation, block.label)
            if fk is not None:
                column.foreign_key = fk
            else:
                logger.debug(f"Ignoring unknown flag [{flag}] on {block.name}.{column.name}")
        return column


def parse_mld(source: str) -> ParseResult[MldModel]:
    """Convenience wrapper around ``MldParser().parse``."""
    return MldParser().parse(source)
