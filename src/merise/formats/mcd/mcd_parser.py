"""
MCD Parser.

Parses the conceptual micro-syntax into an ``McdModel``. Supported blocks
(single-line or multi-line bodies, items one per line or comma separated)::

    ENTITY CLIENT { id_client [PK], nom, age [DERIVED] }
    RELATION passe { CLIENT (0,n), COMMANDE (1,1), date_passage }
    INHERITANCE personne { PARENT PERSONNE  CHILDREN CLIENT, SALARIE  STRATEGY single_table }
    ASSOCIATIVE ligne ON contient { remise }

Usage:
    from merise.formats.mcd import McdParser

    parser = McdParser()
    result = parser.parse(text)
    if result.is_valid:
        model = result.model
"""

import logging
import re
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Tuple, Union

from ...constants import Cardinality, InheritanceStrategy
from ...shared.blocks import RawBlock, extract_blocks, is_comment, split_items
from ...shared.validation import IssueCategory, ParseResult, Severity, ValidationResult
from .mcd_models import (
    MISSING_IDENTIFIER_RECOMMENDATION,
    ORPHAN_RECOMMENDATION,
    McdAssociativeEntity,
    McdAttribute,
    McdEntity,
    McdInheritance,
    McdModel,
    McdParticipant,
    McdRelation,
)

logger = logging.getLogger(__name__)

ATTRIBUTE_PATTERN = re.compile(r'^(\w+)\s*((?:\[[^\]]*\]\s*)*)$')
FLAG_GROUP_PATTERN = re.compile(r'\[([^\]]*)\]')
PARTICIPANT_PATTERN = re.compile(r'^(\w+)\s*\(([^()]*)\)$')
INHERITANCE_TOKEN_PATTERN = re.compile(r'[^\s,]+|,')
DIRECTIVES = ("PARENT", "CHILDREN", "STRATEGY")
ASSOCIATIVE_ON_PATTERN = re.compile(r'^ON\s+(\w+)$', re.IGNORECASE)
NAME_PATTERN = re.compile(r'^\w+$')


def parse_attribute(text: str) -> Optional[McdAttribute]:
    """
    Parse ``name [FLAG]...`` into an attribute.

    Recognized flags are ``PK`` and ``DERIVED``; unknown flags are ignored.

    Returns:
        The attribute, or None if the text is malformed.
    """
    match = ATTRIBUTE_PATTERN.match(text.strip())
    if not match:
        return None

    flags = set()
    for group in FLAG_GROUP_PATTERN.findall(match.group(2) or ""):
        flags.update(token.upper() for token in re.split(r'[,\s]+', group) if token)

    return McdAttribute(
        name=match.group(1),
        is_primary_key="PK" in flags,
        is_derived="DERIVED" in flags,
    )


def _inheritance_tokens(body: str) -> Iterator[Tuple[str, bool, bool]]:
    """Yield ``(word, starts_line, after_comma)`` for each word of an inheritance body."""
    for line in body.splitlines():
        stripped = line.strip()
        if not stripped or is_comment(stripped):
            continue
        starts_line = True
        after_comma = False
        for match in INHERITANCE_TOKEN_PATTERN.finditer(stripped):
            if match.group() == ",":
                after_comma = True
                continue
            yield match.group(), starts_line, after_comma
            starts_line = False
            after_comma = False


class McdParser:
    """
    Parse conceptual micro-syntax documents.

    Syntax errors are scoped to the offending block; sibling blocks keep
    being parsed. Orphan entities are reported as warnings.

    Example:
        >>> result = McdParser().parse("ENTITY A { id_a [PK] }")
        >>> result.model.entities[0].primary_key
        'id_a'
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, Callable[[RawBlock, McdModel, ValidationResult], None]] = {
            "ENTITY": self._parse_entity_block,
            "RELATION": self._parse_relation_block,
            "INHERITANCE": self._parse_inheritance_block,
            "ASSOCIATIVE": self._parse_associative_block,
        }

    def parse(self, source: str) -> ParseResult[McdModel]:
        """
        Parse a conceptual document.

        Args:
            source: Document text.

        Returns:
            ParseResult holding the model and syntax errors/warnings.
        """
        model = McdModel()
        validation = ValidationResult(source="mcd")
        scan = extract_blocks(source)

        for line_no, text in scan.stray_lines:
            validation.error(
                IssueCategory.SYNTAX_ERROR,
                f'Unexpected text outside of a block: "{text}"',
                location=f"line {line_no}",
            )

        for block in scan.blocks:
            handler = self._handlers.get(block.keyword.upper())
            if handler is None:
                validation.error(
                    IssueCategory.UNKNOWN_KEYWORD,
                    f'Unknown keyword "{block.keyword}"; block skipped',
                    location=f"line {block.line}",
                )
                continue
            if not block.closed:
                validation.error(
                    IssueCategory.UNTERMINATED_BLOCK,
                    "Missing closing brace",
                    location=block.label,
                )
            handler(block, model, validation)

        for entity in model.orphan_entities():
            validation.add_issue(
                severity=Severity.WARNING,
                category=IssueCategory.ORPHAN_ENTITY,
                message=f'Orphan entity "{entity.name}" does not appear in any relation or inheritance',
                location=f"ENTITY {entity.name}",
                recommendation=ORPHAN_RECOMMENDATION,
            )

        validation.statistics.update({
            "entity_count": len(model.entities),
            "relation_count": len(model.relations),
            "inheritance_count": len(model.inheritances),
            "associative_count": len(model.associative_entities),
        })
        logger.info(
            f"Parsed MCD: {len(model.entities)} entities, {len(model.relations)} relations, "
            f"{validation.error_count} errors"
        )
        return ParseResult(model=model, validation=validation)

    def parse_file(self, file_path: Union[str, Path]) -> ParseResult[McdModel]:
        """
        Parse a conceptual document from disk.

        Raises:
            FileNotFoundError: If the file doesn't exist.
        """
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"MCD file not found: {file_path}")
        result = self.parse(path.read_text(encoding="utf-8"))
        result.validation.source = str(path)
        return result

    # ------------------------------------------------------------------
    # Block handlers
    # ------------------------------------------------------------------

    def _parse_attributes(
        self,
        items: List[str],
        block: RawBlock,
        validation: ValidationResult,
    ) -> List[McdAttribute]:
        attributes: List[McdAttribute] = []
        for item in items:
            attr = parse_attribute(item)
            if attr is None:
                validation.error(
                    IssueCategory.SYNTAX_ERROR,
                    f'Invalid attribute "{item}"',
                    location=block.label,
                )
                continue
            attributes.append(attr)
        return attributes

    def _parse_entity_block(self, block: RawBlock, model: McdModel, validation: ValidationResult) -> None:
        entity = McdEntity(
            name=block.name,
            attributes=self._parse_attributes(split_items(block.body), block, validation),
        )
        if not entity.primary_key_attributes:
            validation.error(
                IssueCategory.MISSING_PRIMARY_KEY,
                f'Entity "{entity.name}" has no [PK] identifier',
                location=block.label,
                recommendation=MISSING_IDENTIFIER_RECOMMENDATION,
            )
        model.entities.append(entity)
        logger.debug(f"Entity {entity.name}: {len(entity.attributes)} attributes")

    def _parse_relation_block(self, block: RawBlock, model: McdModel, validation: ValidationResult) -> None:
        relation = McdRelation(name=block.name)

        for item in split_items(block.body):
            participant_match = PARTICIPANT_PATTERN.match(item)
            if participant_match:
                entity_name, raw_cardinality = participant_match.group(1), participant_match.group(2)
                cardinality = Cardinality.parse(raw_cardinality)
                if cardinality is None:
                    validation.error(
                        IssueCategory.INVALID_CARDINALITY,
                        f'Invalid cardinality "{raw_cardinality.strip()}" for entity '
                        f'"{entity_name}" in relation "{block.name}"',
                        location=block.label,
                        recommendation=f"Use one of {', '.join(c.value for c in Cardinality)}",
                    )
                    continue
                relation.participants.append(McdParticipant(entity_name, cardinality))
                continue

            attr = parse_attribute(item)
            if attr is None:
                validation.error(
                    IssueCategory.SYNTAX_ERROR,
                    f'Invalid participant or attribute "{item}"',
                    location=block.label,
                )
                continue
            relation.attributes.append(attr)

        if len(relation.participants) < 2:
            validation.error(
                IssueCategory.INSUFFICIENT_PARTICIPANTS,
                f'Relation "{block.name}" needs at least 2 participants '
                f'(found {len(relation.participants)})',
                location=block.label,
            )

        model.relations.append(relation)

    def _parse_inheritance_block(self, block: RawBlock, model: McdModel, validation: ValidationResult) -> None:
        inheritance = McdInheritance(name=block.name)
        tokens = list(_inheritance_tokens(block.body))

        index = 0
        while index < len(tokens):
            word = tokens[index][0]
            directive = word.upper()
            index += 1

            if directive == "CHILDREN":
                children = []
                while index < len(tokens):
                    child, starts_line, after_comma = tokens[index]
                    if child.upper() in DIRECTIVES and (starts_line or (children and not after_comma)):
                        break
                    children.append(child)
                    index += 1
                inheritance.child_entities = children
                continue

            if directive not in DIRECTIVES:
                validation.error(
                    IssueCategory.SYNTAX_ERROR,
                    f'Unexpected text "{word}" (expected PARENT, CHILDREN or STRATEGY)',
                    location=block.label,
                )
                continue

            # PARENT and STRATEGY take exactly one word on the same line
            argument = ""
            if index < len(tokens) and not tokens[index][1]:
                argument = tokens[index][0]
                index += 1

            if directive == "PARENT":
                if NAME_PATTERN.match(argument):
                    inheritance.parent_entity = argument
                else:
                    validation.error(
                        IssueCategory.SYNTAX_ERROR,
                        f'Invalid PARENT "{argument}"',
                        location=block.label,
                    )
            else:
                try:
                    inheritance.strategy = InheritanceStrategy(argument)
                except ValueError:
                    validation.error(
                        IssueCategory.INVALID_STRATEGY,
                        f'Unknown inheritance strategy "{argument}" '
                        f'(expected one of {", ".join(InheritanceStrategy.values())})',
                        location=block.label,
                    )

        if not inheritance.parent_entity:
            validation.error(
                IssueCategory.MISSING_REQUIRED,
                f'Inheritance "{block.name}": PARENT is not defined',
                location=block.label,
            )
        if not inheritance.child_entities:
            validation.error(
                IssueCategory.MISSING_REQUIRED,
                f'Inheritance "{block.name}": no CHILDREN defined',
                location=block.label,
            )

        model.inheritances.append(inheritance)

    def _parse_associative_block(self, block: RawBlock, model: McdModel, validation: ValidationResult) -> None:
        on_match = ASSOCIATIVE_ON_PATTERN.match(block.extra)
        if not on_match:
            validation.error(
                IssueCategory.MISSING_REQUIRED,
                f'Associative entity "{block.name}": missing ON clause '
                f'(syntax: ASSOCIATIVE name ON relation {{ ... }})',
                location=block.label,
            )
            return

        model.associative_entities.append(McdAssociativeEntity(
            name=block.name,
            relation_name=on_match.group(1),
            attributes=self._parse_attributes(split_items(block.body), block, validation),
        ))


def parse_mcd(source: str) -> ParseResult[McdModel]:
    """Convenience wrapper around ``McdParser().parse``."""
    return McdParser().parse(source)
