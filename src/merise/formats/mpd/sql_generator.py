"""
SQL DDL Generator.

Emits ``CREATE TABLE`` statements for a physical model, in dependency order.

MariaDB / MySQL:
    backtick identifiers, AUTO_INCREMENT on integer ``id`` keys, named
    ``fk_<table>_<column>`` constraints, InnoDB/utf8mb4 trailer,
    BOOLEAN -> TINYINT(1), SERIAL -> INT.

PostgreSQL:
    double-quoted identifiers, unnamed constraints, native SERIAL,
    DATETIME -> TIMESTAMP, DOUBLE -> DOUBLE PRECISION.

Usage:
    from merise.formats.mpd import generate_sql

    ddl = generate_sql(mpd_model, SqlDialect.POSTGRESQL)
"""

import logging
import re
from typing import Dict, List, Optional, Set, Union

from ...constants import ConstraintKind, ConversionDefaults, SqlConfig, SqlDialect
from .mpd_models import MpdColumn, MpdModel, MpdTable

logger = logging.getLogger(__name__)

POSTGRES_TYPE_MAP: Dict[str, str] = {
    "DATETIME": "TIMESTAMP",
    "DOUBLE": "DOUBLE PRECISION",
}

MYSQL_TYPE_MAP: Dict[str, str] = {
    "SERIAL": "INT",
    "BOOLEAN": "TINYINT(1)",
}

INTEGER_TYPE_PATTERN = re.compile(r'^(TINYINT|SMALLINT|MEDIUMINT|INT|INTEGER|BIGINT)(\(\d+\))?$', re.IGNORECASE)


def topological_sort(tables: List[MpdTable]) -> List[MpdTable]:
    """
    Order tables so that referenced tables come before referencing ones.

    Each round emits, in their original order, every remaining table whose
    dependencies were all emitted. Self-references and references to tables
    outside the list are ignored. When a round emits nothing (a cycle), all
    remaining tables are emitted in their current order.
    """
    names = {table.name for table in tables}
    dependencies = [
        {ref for ref in table.referenced_tables() if ref in names}
        for table in tables
    ]

    ordered: List[MpdTable] = []
    emitted: Set[str] = set()
    remaining = list(range(len(tables)))

    while remaining:
        ready = [i for i in remaining if dependencies[i] <= emitted]
        if not ready:
            logger.debug(
                f"Foreign-key cycle among {[tables[i].name for i in remaining]}; emitting in current order"
            )
            ordered.extend(tables[i] for i in remaining)
            break
        for i in ready:
            ordered.append(tables[i])
            emitted.add(tables[i].name)
        remaining = [i for i in remaining if i not in ready]

    return ordered


class SqlGenerator:
    """
    Dialect-aware DDL emitter.

    Example:
        >>> generator = SqlGenerator(SqlDialect.MARIADB)
        >>> print(generator.generate(model))
    """

    def __init__(self, dialect: Union[SqlDialect, str] = ConversionDefaults.SQL_DIALECT):
        self.dialect = SqlDialect(dialect)
        self.quote_char = '`' if self.dialect.is_mysql_family else '"'

    def quote(self, identifier: str) -> str:
        return f"{self.quote_char}{identifier}{self.quote_char}"

    def map_type(self, sql_type: str) -> str:
        """Apply the dialect's type substitutions."""
        type_map = MYSQL_TYPE_MAP if self.dialect.is_mysql_family else POSTGRES_TYPE_MAP
        return type_map.get(sql_type.upper(), sql_type)

    def generate(self, model: MpdModel) -> str:
        """Complete DDL script: header, then one statement per table."""
        lines = [
            SqlConfig.HEADER_RULE,
            "-- SQL script generated by merise",
            f"-- Dialect: {self.dialect.label}",
            SqlConfig.HEADER_RULE,
            "",
        ]
        for table in topological_sort(model.tables):
            lines.append(self.generate_create_table(table))
            lines.append("")

        logger.info(f"Generated {self.dialect.label} DDL for {len(model.tables)} tables")
        return "\n".join(lines)

    def generate_create_table(self, table: MpdTable) -> str:
        indent = SqlConfig.INDENT
        parts: List[str] = [f"{indent}{self._column_definition(column)}" for column in table.columns]

        pk_columns = [self.quote(c.name) for c in table.primary_key_columns]
        if pk_columns:
            parts.append(f"{indent}PRIMARY KEY ({', '.join(pk_columns)})")

        for column in table.foreign_key_columns:
            parts.append(f"{indent}{self._foreign_key_clause(table, column)}")

        closing = f") {SqlConfig.MYSQL_TABLE_TRAILER};" if self.dialect.is_mysql_family else ");"
        return "\n".join([
            f"CREATE TABLE {self.quote(table.name)} (",
            ",\n".join(parts),
            closing,
        ])

    def _column_definition(self, column: MpdColumn) -> str:
        sql_type = self.map_type(column.sql_type)
        definition = f"{self.quote(column.name)} {sql_type}"
        for constraint in column.constraints:
            if constraint.kind is ConstraintKind.CHECK and not constraint.expression:
                continue
            definition += f" {constraint.to_sql()}"
        if self._is_auto_increment(column, sql_type):
            definition += f" {SqlConfig.AUTO_INCREMENT}"
        return definition

    def _is_auto_increment(self, column: MpdColumn, mapped_type: str) -> bool:
        name = column.name.lower()
        return (
            self.dialect.is_mysql_family
            and column.is_primary_key
            and column.foreign_key is None
            and INTEGER_TYPE_PATTERN.match(mapped_type) is not None
            and (name.startswith("id") or name.endswith("id"))
        )

    def _foreign_key_clause(self, table: MpdTable, column: MpdColumn) -> str:
        fk = column.foreign_key
        on_delete = (fk.on_delete or ConversionDefaults.DEFAULT_REFERENTIAL_ACTION).value
        on_update = (fk.on_update or ConversionDefaults.DEFAULT_REFERENTIAL_ACTION).value
        actions = f"ON DELETE {on_delete} ON UPDATE {on_update}"

        if self.dialect.is_mysql_family:
            constraint_name = f"fk_{table.name.lower()}_{fk.column_name.lower()}"
            return (
                f"CONSTRAINT {self.quote(constraint_name)} FOREIGN KEY ({self.quote(fk.column_name)}) "
                f"REFERENCES {self.quote(fk.referenced_table)} ({self.quote(fk.referenced_column)}) {actions}"
            )
        return (
            f"FOREIGN KEY ({self.quote(fk.column_name)}) "
            f"REFERENCES {self.quote(fk.referenced_table)}({self.quote(fk.referenced_column)}) {actions}"
        )


def generate_sql(model: MpdModel, dialect: Optional[Union[SqlDialect, str]] = None) -> str:
    """Convenience wrapper around ``SqlGenerator(dialect).generate``."""
    return SqlGenerator(dialect or ConversionDefaults.SQL_DIALECT).generate(model)
