"""
Name-based SQL type inference.

The rule set is plain data: an ordered list of ``TypeRule`` entries, each a
predicate over the lower-cased column name (and whether it is a primary key)
plus a resolver producing the SQL type for a dialect. The first matching
rule wins; ``default_rule`` applies when none match.

    >>> infer_sql_type("id_client", True, SqlDialect.MARIADB, 255)
    'INT'
    >>> infer_sql_type("prix_unitaire", False, SqlDialect.POSTGRESQL, 255)
    'DECIMAL(10,2)'
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from ...constants import ConversionDefaults, SqlDialect

Predicate = Callable[[str, bool], bool]
Resolver = Callable[[SqlDialect, int], str]

# Auto-increment markers and the plain integer type a foreign key takes instead
SERIAL_DOWNGRADES: Dict[str, str] = {
    "SERIAL": "INT",
    "BIGSERIAL": "BIGINT",
    "SMALLSERIAL": "SMALLINT",
}

MONEY_PREFIXES: Tuple[str, ...] = ("prix", "montant", "total", "price", "amount")
QUANTITY_PREFIXES: Tuple[str, ...] = ("quantite", "nombre", "nb_", "quantity", "count", "num_")
BOOLEAN_PREFIXES: Tuple[str, ...] = ("est_", "is_", "has_", "a_")
LONG_TEXT_NAMES: Tuple[str, ...] = ("description", "contenu", "content", "commentaire")


@dataclass(frozen=True)
class TypeRule:
    """One name-pattern rule: ``resolver`` applies when ``predicate`` matches."""
    name: str
    predicate: Predicate
    resolver: Resolver

    def matches(self, column_name: str, is_primary_key: bool) -> bool:
        return self.predicate(column_name.lower(), is_primary_key)


def _is_id_name(name: str) -> bool:
    return name == "id" or name.startswith("id_") or name.endswith("_id")


def _is_ref_name(name: str) -> bool:
    return name == "ref" or name.startswith("ref_") or name.endswith("_ref")


def _is_date_name(name: str) -> bool:
    return name == "date" or name.startswith("date_") or name.endswith("_date")


def _auto_increment(dialect: SqlDialect, _length: int) -> str:
    return "SERIAL" if dialect is SqlDialect.POSTGRESQL else "INT"


def _timestamp(dialect: SqlDialect, _length: int) -> str:
    return "TIMESTAMP" if dialect is SqlDialect.POSTGRESQL else "DATETIME"


def _fixed(sql_type: str) -> Resolver:
    return lambda _dialect, _length: sql_type


def _varchar(length: int) -> str:
    return f"VARCHAR({length})"


TYPE_RULES: List[TypeRule] = [
    TypeRule(
        "auto_increment_key",
        lambda name, is_pk: is_pk and (name.startswith("id") or name.endswith("id")),
        _auto_increment,
    ),
    TypeRule("identifier", lambda name, _: _is_id_name(name), _fixed("INT")),
    TypeRule(
        "reference",
        lambda name, _: _is_ref_name(name),
        _fixed(_varchar(ConversionDefaults.REFERENCE_VARCHAR_LENGTH)),
    ),
    TypeRule("timestamp", lambda name, _: "datetime" in name or "timestamp" in name, _timestamp),
    TypeRule("date", lambda name, _: _is_date_name(name), _fixed("DATE")),
    TypeRule("money", lambda name, _: name.startswith(MONEY_PREFIXES), _fixed("DECIMAL(10,2)")),
    TypeRule("quantity", lambda name, _: name.startswith(QUANTITY_PREFIXES), _fixed("INT")),
    TypeRule(
        "boolean",
        lambda name, _: name.endswith("_bool") or name.startswith(BOOLEAN_PREFIXES),
        _fixed("BOOLEAN"),
    ),
    TypeRule("long_text", lambda name, _: name in LONG_TEXT_NAMES, _fixed("TEXT")),
    TypeRule(
        "discriminator",
        lambda name, _: name in (ConversionDefaults.DISCRIMINATOR_COLUMN, "type"),
        _fixed(_varchar(ConversionDefaults.DISCRIMINATOR_VARCHAR_LENGTH)),
    ),
]

default_rule = TypeRule("default", lambda _name, _pk: True, lambda _dialect, length: _varchar(length))


def match_rule(column_name: str, is_primary_key: bool, rules: Optional[List[TypeRule]] = None) -> TypeRule:
    """Return the first rule matching the column, or ``default_rule``."""
    for rule in TYPE_RULES if rules is None else rules:
        if rule.matches(column_name, is_primary_key):
            return rule
    return default_rule


def infer_sql_type(
    column_name: str,
    is_primary_key: bool,
    dialect: SqlDialect,
    varchar_length: int = ConversionDefaults.DEFAULT_VARCHAR_LENGTH,
    rules: Optional[List[TypeRule]] = None,
) -> str:
    """Resolve a SQL type from a column name."""
    return match_rule(column_name, is_primary_key, rules).resolver(dialect, varchar_length)


def downgrade_serial(sql_type: str) -> str:
    """Plain integer type for an auto-increment marker; other types unchanged."""
    return SERIAL_DOWNGRADES.get(sql_type.upper(), sql_type)


def is_serial(sql_type: str) -> bool:
    return sql_type.upper() in SERIAL_DOWNGRADES
