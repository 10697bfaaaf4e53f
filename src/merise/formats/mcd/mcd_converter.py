"""
MCD to MLD Converter.

Applies the Merise conceptual-to-logical rules:

1. Every entity becomes a table; derived attributes are dropped.
2. Binary relations are classified by cardinality:
   - one/many: foreign key on the "one" side, referencing the "many" side;
   - one/one: foreign key on the (1,1) side, the first declared one when
     both are (1,1);
   - many/many: associative table named after the relation.
3. Relations with more than two participants become associative tables.
4. Inheritance groups are flattened (table_per_class, single_table,
   table_per_subclass), per-group STRATEGY winning over the default.
5. Associative entities enrich (or create) the table of their relation.

When several binary relations bind the same pair of entities, each foreign
key is suffixed with its relation name (``id_adresse_livraison``,
``id_adresse_facturation``).

Usage:
    from merise.formats.mcd import McdToMldConverter

    converter = McdToMldConverter(config)
    result = converter.convert(mcd_model)
    mld_model = result.model
"""

import logging
from collections import Counter
from dataclasses import replace
from typing import Dict, List, Optional, Tuple

from ...config import ConversionConfig
from ...constants import ConversionDefaults, InheritanceStrategy
from ...shared.conversion import ConversionResult
from ...shared.validation import IssueCategory, ValidationResult
from ..mld.mld_models import MldColumn, MldForeignKey, MldModel, MldTable
from .mcd_models import (
    McdAssociativeEntity,
    McdAttribute,
    McdEntity,
    McdInheritance,
    McdModel,
    McdParticipant,
    McdRelation,
)

logger = logging.getLogger(__name__)

PairKey = Tuple[str, str]


def make_pair_key(first: str, second: str) -> PairKey:
    """Canonical key of an unordered entity pair."""
    a, b = sorted((first, second))
    return a, b


def count_relation_pairs(relations: List[McdRelation]) -> Counter:
    """Count binary relations per unordered entity pair."""
    counts: Counter = Counter()
    for relation in relations:
        if relation.is_binary:
            counts[make_pair_key(*relation.entity_names)] += 1
    return counts


class McdToMldConverter:
    """
    Convert a conceptual model into a logical model.

    The input model is never modified; every table and column of the result
    is freshly allocated.

    Example:
        >>> result = McdToMldConverter().convert(mcd)
        >>> [t.name for t in result.model.tables]
        ['CLIENT', 'COMMANDE']
    """

    def __init__(self, config: Optional[ConversionConfig] = None):
        """
        Initialize the converter.

        Args:
            config: Conversion settings; only ``inheritance_strategy`` is used here.
        """
        self.config = config or ConversionConfig()

        # Per-call tracking, reset by convert()
        self._entities: Dict[str, McdEntity] = {}
        self._tables: Dict[str, MldTable] = {}
        self._relation_tables: Dict[str, str] = {}
        self._validation = ValidationResult()

    @property
    def inheritance_strategy(self) -> InheritanceStrategy:
        return self.config.inheritance_strategy

    def convert(self, mcd: McdModel) -> ConversionResult[MldModel]:
        """
        Convert a conceptual model.

        Args:
            mcd: Parsed conceptual model (treated as read-only).

        Returns:
            ConversionResult with the logical model and conversion warnings.
        """
        self._entities = {}
        self._tables = {}
        self._relation_tables = {}
        self._validation = ValidationResult(source="mcd->mld")

        for entity in mcd.entities:
            self._entities.setdefault(entity.name, entity)

        # First pass: entities -> tables
        for entity in mcd.entities:
            if entity.name in self._tables:
                self._validation.warning(
                    IssueCategory.DUPLICATE_NAME,
                    f'Entity "{entity.name}" declared twice; later declaration ignored',
                    location=f"ENTITY {entity.name}",
                )
                continue
            self._tables[entity.name] = MldTable(
                name=entity.name,
                columns=_attribute_columns(entity.attributes),
            )

        # Second pass: relations
        pair_counts = count_relation_pairs(mcd.relations)
        for relation in mcd.relations:
            if len(relation.participants) < 2:
                self._validation.warning(
                    IssueCategory.SKIPPED_CONSTRUCT,
                    f'Relation "{relation.name}" has fewer than 2 participants; skipped',
                    location=f"RELATION {relation.name}",
                )
                continue
            if relation.is_binary:
                self._convert_binary_relation(relation, pair_counts)
            else:
                self._create_associative_table(relation)

        # Third pass: inheritance
        for inheritance in mcd.inheritances:
            strategy = inheritance.strategy or self.inheritance_strategy
            self._apply_inheritance(inheritance, strategy)

        # Fourth pass: associative entities
        for associative in mcd.associative_entities:
            self._promote_associative_entity(associative, mcd)

        self._report_dangling_references()

        model = MldModel(tables=list(self._tables.values()))
        self._validation.statistics["table_count"] = len(model.tables)
        logger.info(
            f"Converted MCD to MLD: {len(mcd.entities)} entities -> {len(model.tables)} tables "
            f"({self._validation.warning_count} warnings)"
        )
        return ConversionResult(model=model, validation=self._validation)

    # ------------------------------------------------------------------
    # Relations
    # ------------------------------------------------------------------

    def _convert_binary_relation(self, relation: McdRelation, pair_counts: Counter) -> None:
        first, second = relation.participants
        card1, card2 = first.cardinality, second.cardinality

        role: Optional[str] = None
        if pair_counts[make_pair_key(*relation.entity_names)] > 1 or relation.is_reflexive:
            role = relation.name

        if card1.is_one and card2.is_many:
            holder, referenced = first, second
        elif card1.is_many and card2.is_one:
            holder, referenced = second, first
        elif card1.is_one and card2.is_one:
            # Both sides at most one: the (1,1) side holds the key, first declared wins a tie
            if card1.is_mandatory:
                holder, referenced = first, second
            else:
                holder, referenced = second, first
        else:
            self._create_associative_table(relation)
            return

        logger.debug(
            f"Relation {relation.name}: FK on {holder.entity_name} -> {referenced.entity_name}"
            f"{f' (role {role})' if role else ''}"
        )
        self._add_foreign_key(holder.entity_name, referenced.entity_name, relation, role)
        self._add_relation_attributes(holder.entity_name, relation)

    def _add_foreign_key(
        self,
        holder_name: str,
        referenced_name: str,
        relation: McdRelation,
        role: Optional[str],
    ) -> None:
        location = f"RELATION {relation.name}"
        table = self._tables.get(holder_name)
        referenced = self._entities.get(referenced_name)
        if table is None or referenced is None:
            missing = holder_name if table is None else referenced_name
            self._validation.warning(
                IssueCategory.INVALID_REFERENCE,
                f'Entity "{missing}" is not defined; foreign key not created',
                location=location,
            )
            return

        referenced_pk = referenced.primary_key
        if referenced_pk is None:
            self._validation.warning(
                IssueCategory.MISSING_PRIMARY_KEY,
                f'Entity "{referenced_name}" has no identifier; foreign key not created',
                location=location,
            )
            return

        column_name = f"{referenced_pk}_{role}" if role else referenced_pk
        if table.has_column(column_name):
            self._validation.warning(
                IssueCategory.DUPLICATE_NAME,
                f'Column "{column_name}" already exists in "{holder_name}"; foreign key not created',
                location=location,
            )
            return

        table.columns.append(MldColumn(
            name=column_name,
            is_primary_key=False,
            foreign_key=MldForeignKey(
                column_name=column_name,
                referenced_table=referenced_name,
                referenced_column=referenced_pk,
            ),
        ))

    def _add_relation_attributes(self, table_name: str, relation: McdRelation) -> None:
        table = self._tables.get(table_name)
        if table is None:
            return
        for column in _attribute_columns(relation.attributes, keep_primary_key=False):
            if not table.has_column(column.name):
                table.columns.append(column)

    def _participant_key_columns(self, participants: List[McdParticipant], location: str) -> List[MldColumn]:
        """
        One primary-and-foreign key column per participant.

        Participants sharing the same identifier name get the lower-cased
        entity name appended; a positional suffix resolves any remaining
        clash (an entity taking part twice).
        """
        keys: List[Tuple[McdParticipant, str]] = []
        for participant in participants:
            entity = self._entities.get(participant.entity_name)
            pk = entity.primary_key if entity else None
            if pk is None:
                self._validation.warning(
                    IssueCategory.INVALID_REFERENCE,
                    f'Participant "{participant.entity_name}" has no identifier; key column skipped',
                    location=location,
                )
                continue
            keys.append((participant, pk))

        usage = Counter(pk for _, pk in keys)
        used: set = set()
        columns: List[MldColumn] = []
        for participant, pk in keys:
            name = f"{pk}_{participant.entity_name.lower()}" if usage[pk] > 1 else pk
            if name in used:
                index = 2
                while f"{name}_{index}" in used:
                    index += 1
                name = f"{name}_{index}"
            used.add(name)
            columns.append(MldColumn(
                name=name,
                is_primary_key=True,
                foreign_key=MldForeignKey(
                    column_name=name,
                    referenced_table=participant.entity_name,
                    referenced_column=pk,
                ),
            ))
        return columns

    def _create_associative_table(self, relation: McdRelation) -> None:
        location = f"RELATION {relation.name}"
        if relation.name in self._tables:
            self._validation.error(
                IssueCategory.DUPLICATE_NAME,
                f'Associative table "{relation.name}" collides with an existing table; relation skipped',
                location=location,
            )
            return

        table = MldTable(
            name=relation.name,
            columns=self._participant_key_columns(relation.participants, location),
        )
        for column in _attribute_columns(relation.attributes, keep_primary_key=False):
            if not table.has_column(column.name):
                table.columns.append(column)

        self._tables[table.name] = table
        self._relation_tables[relation.name] = table.name
        logger.debug(f"Relation {relation.name}: associative table with {len(table.columns)} columns")

    # ------------------------------------------------------------------
    # Inheritance
    # ------------------------------------------------------------------

    def _apply_inheritance(self, inheritance: McdInheritance, strategy: InheritanceStrategy) -> None:
        location = f"INHERITANCE {inheritance.name}"
        parent = self._entities.get(inheritance.parent_entity)
        parent_pk = parent.primary_key if parent else None
        if parent is None or parent_pk is None:
            self._validation.warning(
                IssueCategory.SKIPPED_CONSTRUCT,
                f'Parent "{inheritance.parent_entity}" is undefined or has no identifier; inheritance skipped',
                location=location,
            )
            return

        logger.debug(f"Inheritance {inheritance.name}: strategy {strategy.value}")
        if strategy is InheritanceStrategy.TABLE_PER_CLASS:
            self._inherit_table_per_class(inheritance, parent_pk, location)
        elif strategy is InheritanceStrategy.SINGLE_TABLE:
            self._inherit_single_table(inheritance, parent_pk, location)
        else:
            self._inherit_table_per_subclass(inheritance, parent, location)

    def _inherit_table_per_class(self, inheritance: McdInheritance, parent_pk: str, location: str) -> None:
        parent_name = inheritance.parent_entity
        for child_name in inheritance.child_entities:
            table = self._child_table(child_name, location)
            if table is None:
                continue
            existing = [
                c.name for c in table.columns
                if c.foreign_key and c.foreign_key.referenced_table == parent_name
            ]
            if existing:
                self._validation.warning(
                    IssueCategory.SKIPPED_CONSTRUCT,
                    f'"{child_name}" already references "{parent_name}" through "{existing[0]}"; '
                    f'inherited key not added',
                    location=location,
                )
                continue
            clashing = table.get_column(parent_pk)
            if clashing is not None and clashing.foreign_key is not None:
                self._validation.warning(
                    IssueCategory.DUPLICATE_NAME,
                    f'Column "{parent_pk}" of "{child_name}" is already a foreign key; '
                    f'link to parent not created',
                    location=location,
                )
                continue

            # Same-named plain column is replaced by the inherited key
            table.columns = [c for c in table.columns if c.name != parent_pk]
            table.columns.insert(0, MldColumn(
                name=parent_pk,
                is_primary_key=True,
                foreign_key=MldForeignKey(
                    column_name=parent_pk,
                    referenced_table=parent_name,
                    referenced_column=parent_pk,
                ),
            ))

    def _inherit_single_table(self, inheritance: McdInheritance, parent_pk: str, location: str) -> None:
        parent_name = inheritance.parent_entity
        parent_table = self._tables.get(parent_name)
        if parent_table is None:
            self._validation.warning(
                IssueCategory.SKIPPED_CONSTRUCT,
                f'Parent table "{parent_name}" no longer exists; inheritance skipped',
                location=location,
            )
            return

        discriminator = ConversionDefaults.DISCRIMINATOR_COLUMN
        if not parent_table.has_column(discriminator):
            parent_table.columns.append(MldColumn(name=discriminator))

        for child_name in inheritance.child_entities:
            child_table = self._child_table(child_name, location)
            if child_table is None:
                continue
            for column in child_table.columns:
                if column.is_primary_key or parent_table.has_column(column.name):
                    continue
                parent_table.columns.append(column)
            del self._tables[child_name]
            self._retarget_references(child_name, parent_name, parent_pk)

    def _inherit_table_per_subclass(self, inheritance: McdInheritance, parent: McdEntity, location: str) -> None:
        parent_table = self._tables.get(parent.name)
        if parent_table is not None:
            inherited = parent_table.columns
        else:
            inherited = _attribute_columns(parent.attributes)

        for child_name in inheritance.child_entities:
            table = self._child_table(child_name, location)
            if table is None:
                continue
            copies = [_copy_column(c) for c in inherited if not table.has_column(c.name)]
            table.columns = copies + table.columns

        if parent_table is not None:
            del self._tables[parent.name]

    def _child_table(self, child_name: str, location: str) -> Optional[MldTable]:
        table = self._tables.get(child_name)
        if table is None:
            self._validation.warning(
                IssueCategory.INVALID_REFERENCE,
                f'Child table "{child_name}" does not exist; skipped',
                location=location,
            )
        return table

    def _retarget_references(self, old_table: str, new_table: str, new_column: str) -> None:
        for table in self._tables.values():
            for column in table.columns:
                fk = column.foreign_key
                if fk is not None and fk.referenced_table == old_table:
                    fk.referenced_table = new_table
                    fk.referenced_column = new_column

    # ------------------------------------------------------------------
    # Associative entities
    # ------------------------------------------------------------------

    def _promote_associative_entity(self, associative: McdAssociativeEntity, mcd: McdModel) -> None:
        location = f"ASSOCIATIVE {associative.name}"
        relation = mcd.get_relation(associative.relation_name)
        if relation is None:
            self._validation.warning(
                IssueCategory.INVALID_REFERENCE,
                f'Relation "{associative.relation_name}" is not defined; associative entity skipped',
                location=location,
            )
            return

        table_name = self._relation_tables.get(relation.name)
        table = self._tables.get(table_name) if table_name else None
        if table is None:
            if associative.name in self._tables:
                self._validation.error(
                    IssueCategory.DUPLICATE_NAME,
                    f'Associative entity "{associative.name}" collides with an existing table; skipped',
                    location=location,
                )
                return
            table = MldTable(
                name=associative.name,
                columns=self._participant_key_columns(relation.participants, location),
            )
            self._tables[table.name] = table
            self._relation_tables[relation.name] = table.name

        for column in _attribute_columns(associative.attributes):
            if not table.has_column(column.name):
                table.columns.append(column)

    def _report_dangling_references(self) -> None:
        for table in self._tables.values():
            for column in table.foreign_key_columns:
                if column.foreign_key.referenced_table not in self._tables:
                    self._validation.warning(
                        IssueCategory.INVALID_REFERENCE,
                        f'Column "{column.name}" references table "{column.foreign_key.referenced_table}" '
                        f'which is not part of the logical model',
                        location=f"TABLE {table.name}",
                    )


def _attribute_columns(attributes: List[McdAttribute], keep_primary_key: bool = True) -> List[MldColumn]:
    """Plain columns for the non-derived attributes."""
    return [
        MldColumn(name=attr.name, is_primary_key=keep_primary_key and attr.is_primary_key)
        for attr in attributes
        if not attr.is_derived
    ]


def _copy_column(column: MldColumn) -> MldColumn:
    fk = replace(column.foreign_key) if column.foreign_key else None
    return MldColumn(name=column.name, is_primary_key=column.is_primary_key, foreign_key=fk)


def convert_mcd_to_mld(mcd: McdModel, config: Optional[ConversionConfig] = None) -> ConversionResult[MldModel]:
    """Convenience wrapper around ``McdToMldConverter(config).convert``."""
    return McdToMldConverter(config).convert(mcd)
