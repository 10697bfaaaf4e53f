"""
MLD to MPD Converter.

Assigns SQL types and constraints to a logical model in two phases:

1. Every column that is not a foreign key gets a type from the ordered
   name rules of ``mld_type_mapper``; resolutions are recorded per
   (table, column).
2. Every foreign-key column takes the recorded type of the column it
   references, following chains of foreign keys. An auto-increment marker
   (``SERIAL``) is downgraded to its plain integer type. When nothing was
   recorded, the rules are applied to the foreign column's own name.

Constraints: NOT NULL on primary and foreign keys, UNIQUE on any column
whose name contains "email". Referential actions default to CASCADE.
"""

import logging
from typing import Dict, Optional, Set, Tuple

from ...config import ConversionConfig
from ...constants import ConstraintKind, ConversionDefaults
from ...shared.conversion import ConversionResult
from ...shared.validation import IssueCategory, ValidationResult
from ..mpd.mpd_models import MpdColumn, MpdConstraint, MpdForeignKey, MpdModel, MpdTable
from .mld_models import MldColumn, MldModel
from .mld_type_mapper import downgrade_serial, infer_sql_type

logger = logging.getLogger(__name__)

ColumnKey = Tuple[str, str]


class MldToMpdConverter:
    """
    Convert a logical model into a physical model.

    Example:
        >>> config = ConversionConfig(sql_dialect=SqlDialect.POSTGRESQL)
        >>> result = MldToMpdConverter(config).convert(mld)
        >>> result.model.get_table("CLIENT").get_column("id_client").sql_type
        'SERIAL'
    """

    def __init__(self, config: Optional[ConversionConfig] = None):
        self.config = config or ConversionConfig()
        self._resolved: Dict[ColumnKey, str] = {}
        self._columns: Dict[ColumnKey, MldColumn] = {}
        self._validation = ValidationResult()

    def convert(self, mld: MldModel) -> ConversionResult[MpdModel]:
        self._resolved = {}
        self._columns = {}
        self._validation = ValidationResult(source="mld->mpd")

        for table in mld.tables:
            for column in table.columns:
                self._columns.setdefault((table.name, column.name), column)

        # Phase 1: columns resolved from their own name
        for table in mld.tables:
            for column in table.columns:
                if column.foreign_key is None:
                    self._resolved[(table.name, column.name)] = self._infer(column.name, column.is_primary_key)

        # Phase 2: foreign keys take the type of what they reference
        model = MpdModel()
        for table in mld.tables:
            mpd_table = MpdTable(name=table.name)
            for column in table.columns:
                key = (table.name, column.name)
                if column.foreign_key is not None:
                    sql_type = self._resolve_foreign_type(key, set())
                else:
                    sql_type = self._resolved[key]
                mpd_table.columns.append(self._build_column(column, sql_type))
            model.tables.append(mpd_table)

        self._validation.statistics["table_count"] = len(model.tables)
        logger.info(
            f"Converted MLD to MPD ({self.config.sql_dialect.value}): {len(model.tables)} tables"
        )
        return ConversionResult(model=model, validation=self._validation)

    def _infer(self, name: str, is_primary_key: bool) -> str:
        return infer_sql_type(
            name,
            is_primary_key,
            self.config.sql_dialect,
            self.config.default_varchar_length,
        )

    def _resolve_foreign_type(self, key: ColumnKey, visiting: Set[ColumnKey]) -> str:
        """Type of the foreign-key column ``key``, memoized in ``_resolved``."""
        if key in self._resolved:
            return downgrade_serial(self._resolved[key])

        column = self._columns[key]
        fk = column.foreign_key
        target: ColumnKey = (fk.referenced_table, fk.referenced_column)
        visiting.add(key)

        if target in self._resolved:
            sql_type = downgrade_serial(self._resolved[target])
        elif target in self._columns and self._columns[target].foreign_key is not None \
                and target not in visiting:
            sql_type = self._resolve_foreign_type(target, visiting)
        else:
            reason = "a foreign-key cycle" if target in visiting else "an unknown column"
            self._validation.warning(
                IssueCategory.TYPE_MISMATCH,
                f'Column "{key[1]}" references {reason} ({target[0]}.{target[1]}); '
                f'type inferred from its own name',
                location=f"TABLE {key[0]}",
            )
            sql_type = downgrade_serial(self._infer(column.name, False))

        self._resolved[key] = sql_type
        logger.debug(f"{key[0]}.{key[1]} -> {sql_type} (from {target[0]}.{target[1]})")
        return sql_type

    @staticmethod
    def _build_column(column: MldColumn, sql_type: str) -> MpdColumn:
        constraints = []
        if column.is_primary_key or column.foreign_key is not None:
            constraints.append(MpdConstraint(ConstraintKind.NOT_NULL))
        if "email" in column.name.lower():
            constraints.append(MpdConstraint(ConstraintKind.UNIQUE))

        foreign_key = None
        if column.foreign_key is not None:
            fk = column.foreign_key
            foreign_key = MpdForeignKey(
                column_name=column.name,
                referenced_table=fk.referenced_table,
                referenced_column=fk.referenced_column,
                on_delete=fk.on_delete or ConversionDefaults.DEFAULT_REFERENTIAL_ACTION,
                on_update=fk.on_update or ConversionDefaults.DEFAULT_REFERENTIAL_ACTION,
            )

        return MpdColumn(
            name=column.name,
            sql_type=sql_type,
            is_primary_key=column.is_primary_key,
            foreign_key=foreign_key,
            constraints=constraints,
        )


def convert_mld_to_mpd(mld: MldModel, config: Optional[ConversionConfig] = None) -> ConversionResult[MpdModel]:
    """Convenience wrapper around ``MldToMpdConverter(config).convert``."""
    return MldToMpdConverter(config).convert(mld)
