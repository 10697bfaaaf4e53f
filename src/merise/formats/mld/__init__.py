"""
MLD (Logical Data Model) Module

Key Components:
- mld_models: Tables, columns and foreign keys, with micro-syntax output
- mld_parser: TABLE blocks with [PK] and [FK -> Table.col] flags
- mld_type_mapper: Ordered name rules for SQL type inference
- mld_converter: Logical-to-physical conversion with FK type propagation
"""

from .mld_models import MldForeignKey, MldColumn, MldTable, MldModel

from .mld_parser import MldParser, parse_mld

from .mld_type_mapper import (
    TypeRule,
    TYPE_RULES,
    default_rule,
    infer_sql_type,
    downgrade_serial,
)

from .mld_converter import MldToMpdConverter, convert_mld_to_mpd

__all__ = [
    # Models
    "MldForeignKey",
    "MldColumn",
    "MldTable",
    "MldModel",
    # Parser
    "MldParser",
    "parse_mld",
    # Type rules
    "TypeRule",
    "TYPE_RULES",
    "default_rule",
    "infer_sql_type",
    "downgrade_serial",
    # Converter
    "MldToMpdConverter",
    "convert_mld_to_mpd",
]
