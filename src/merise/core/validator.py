"""
Structural validator for every Merise level.

The validator is read-only: it never mutates the model it checks and can be
run against a conceptual, logical or physical model independently of any
conversion or SQL generation.

Checks:
- Conceptual: identifier presence, relation arity, references to undefined
  entities, duplicate names, orphan entities.
- Logical / physical: primary key presence, dangling foreign keys, duplicate
  table and column names, foreign-key cycles.
- Physical only: foreign-key columns whose type differs from the referenced
  column's type.

Usage:
    from merise.core.validator import MeriseValidator

    validator = MeriseValidator()
    result = validator.validate_mld(mld_model)
    if not result.is_valid:
        print(result.get_summary())
"""

import logging
from collections import Counter
from typing import Dict, List, Set, Union

from ..formats.mcd.mcd_models import MISSING_IDENTIFIER_RECOMMENDATION, ORPHAN_RECOMMENDATION, McdModel
from ..formats.mld.mld_models import MldModel
from ..formats.mld.mld_type_mapper import downgrade_serial
from ..formats.mpd.mpd_models import MpdModel
from ..shared.validation import IssueCategory, Severity, ValidationResult

logger = logging.getLogger(__name__)

RelationalModel = Union[MldModel, MpdModel]


def detect_cycles(model: RelationalModel) -> List[List[str]]:
    """
    Find foreign-key cycles among the tables of a logical or physical model.

    Depth-first traversal keeping a visited set and the current path; each
    back edge yields the cycle as a closed path, e.g. ``["A", "B", "A"]``.
    Self-references are reported as ``["A", "A"]``.
    """
    graph: Dict[str, List[str]] = {}
    for table in model.tables:
        targets = graph.setdefault(table.name, [])
        for column in table.columns:
            fk = column.foreign_key
            if fk is not None and fk.referenced_table not in targets:
                targets.append(fk.referenced_table)

    cycles: List[List[str]] = []
    visited: Set[str] = set()
    on_stack: Set[str] = set()
    path: List[str] = []

    def visit(name: str) -> None:
        visited.add(name)
        on_stack.add(name)
        path.append(name)
        for target in graph.get(name, []):
            if target not in graph:
                continue
            if target in on_stack:
                cycles.append(path[path.index(target):] + [target])
            elif target not in visited:
                visit(target)
        path.pop()
        on_stack.discard(name)

    for name in graph:
        if name not in visited:
            visit(name)
    return cycles


class MeriseValidator:
    """
    Validate Merise models at any level.

    Example:
        >>> result = MeriseValidator().validate_mcd(mcd)
        >>> [str(i) for i in result.warnings]
        ['ENTITY PRODUIT: Orphan entity "PRODUIT" ...']
    """

    def __init__(self, strict_mode: bool = False):
        """
        Initialize the validator.

        Args:
            strict_mode: If True, warnings are reported as errors.
        """
        self.strict_mode = strict_mode

    def validate_mcd(self, model: McdModel) -> ValidationResult:
        result = ValidationResult(source="mcd")
        entity_names = set(model.get_entity_names())

        for name, count in Counter(model.get_entity_names()).items():
            if count > 1:
                result.error(IssueCategory.DUPLICATE_NAME, f'Entity "{name}" is declared {count} times')

        for entity in model.entities:
            if not entity.primary_key_attributes:
                result.error(
                    IssueCategory.MISSING_PRIMARY_KEY,
                    f'Entity "{entity.name}" has no [PK] identifier',
                    location=f"ENTITY {entity.name}",
                    recommendation=MISSING_IDENTIFIER_RECOMMENDATION,
                )

        for relation in model.relations:
            location = f"RELATION {relation.name}"
            if len(relation.participants) < 2:
                result.error(
                    IssueCategory.INSUFFICIENT_PARTICIPANTS,
                    f'Relation "{relation.name}" needs at least 2 participants',
                    location=location,
                )
            for participant in relation.participants:
                if participant.entity_name not in entity_names:
                    result.error(
                        IssueCategory.INVALID_REFERENCE,
                        f'Entity "{participant.entity_name}" is not defined',
                        location=location,
                    )

        for inheritance in model.inheritances:
            location = f"INHERITANCE {inheritance.name}"
            members = ([inheritance.parent_entity] if inheritance.parent_entity else []) \
                + inheritance.child_entities
            for name in members:
                if name not in entity_names:
                    result.error(
                        IssueCategory.INVALID_REFERENCE,
                        f'Entity "{name}" is not defined',
                        location=location,
                    )

        relation_names = {r.name for r in model.relations}
        for associative in model.associative_entities:
            if associative.relation_name not in relation_names:
                result.error(
                    IssueCategory.INVALID_REFERENCE,
                    f'Relation "{associative.relation_name}" is not defined',
                    location=f"ASSOCIATIVE {associative.name}",
                )

        for entity in model.orphan_entities():
            result.warning(
                IssueCategory.ORPHAN_ENTITY,
                f'Orphan entity "{entity.name}" does not appear in any relation or inheritance',
                location=f"ENTITY {entity.name}",
                recommendation=ORPHAN_RECOMMENDATION,
            )

        result.statistics.update({
            "entity_count": len(model.entities),
            "relation_count": len(model.relations),
        })
        return self._finish(result)

    def validate_mld(self, model: MldModel) -> ValidationResult:
        result = ValidationResult(source="mld")
        self._check_relational(model, result)
        return self._finish(result)

    def validate_mpd(self, model: MpdModel) -> ValidationResult:
        result = ValidationResult(source="mpd")
        self._check_relational(model, result)

        for table in model.tables:
            for column in table.foreign_key_columns:
                fk = column.foreign_key
                target_table = model.get_table(fk.referenced_table)
                target = target_table.get_column(fk.referenced_column) if target_table else None
                if target is None:
                    continue
                expected = downgrade_serial(target.sql_type)
                if column.sql_type.upper() != expected.upper():
                    result.warning(
                        IssueCategory.TYPE_MISMATCH,
                        f'Column "{column.name}" is {column.sql_type} but references '
                        f'{fk.referenced_table}.{fk.referenced_column} ({expected})',
                        location=f"TABLE {table.name}",
                    )
        return self._finish(result)

    def _check_relational(self, model: RelationalModel, result: ValidationResult) -> None:
        tables = {}
        for name, count in Counter(model.get_table_names()).items():
            if count > 1:
                result.error(IssueCategory.DUPLICATE_NAME, f'Table "{name}" is declared {count} times')
        for table in model.tables:
            tables.setdefault(table.name, table)

        for table in model.tables:
            location = f"TABLE {table.name}"
            if not table.primary_key_columns:
                result.error(
                    IssueCategory.MISSING_PRIMARY_KEY,
                    f'Table "{table.name}" has no primary key',
                    location=location,
                )

            for name, count in Counter(c.name for c in table.columns).items():
                if count > 1:
                    result.error(
                        IssueCategory.DUPLICATE_NAME,
                        f'Column "{name}" appears {count} times',
                        location=location,
                    )

            for column in table.foreign_key_columns:
                fk = column.foreign_key
                target = tables.get(fk.referenced_table)
                if target is None:
                    result.error(
                        IssueCategory.INVALID_REFERENCE,
                        f'Column "{column.name}" references unknown table "{fk.referenced_table}"',
                        location=location,
                    )
                elif target.get_column(fk.referenced_column) is None:
                    result.error(
                        IssueCategory.INVALID_REFERENCE,
                        f'Column "{column.name}" references unknown column '
                        f'"{fk.referenced_table}.{fk.referenced_column}"',
                        location=location,
                    )

        for cycle in detect_cycles(model):
            result.warning(
                IssueCategory.FOREIGN_KEY_CYCLE,
                f"Foreign-key cycle: {' -> '.join(cycle)}",
                location=f"TABLE {cycle[0]}",
                recommendation="Make one foreign key of the cycle nullable so rows can be inserted",
            )

        result.statistics["table_count"] = len(model.tables)

    def _finish(self, result: ValidationResult) -> ValidationResult:
        if self.strict_mode:
            for issue in result.issues:
                if issue.severity is Severity.WARNING:
                    issue.severity = Severity.ERROR
        logger.info(
            f"Validated {result.source}: {result.error_count} errors, {result.warning_count} warnings"
        )
        return result
