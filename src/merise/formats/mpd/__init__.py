"""
MPD (Physical Data Model) Module

Key Components:
- mpd_models: Typed columns, constraints and referential actions
- mpd_parser: TABLE blocks with a type token and bracket flags
- sql_generator: Dialect-aware CREATE TABLE emission in dependency order
"""

from .mpd_models import MpdConstraint, MpdForeignKey, MpdColumn, MpdTable, MpdModel

from .mpd_parser import MpdParser, parse_mpd

from .sql_generator import SqlGenerator, generate_sql, topological_sort

__all__ = [
    # Models
    "MpdConstraint",
    "MpdForeignKey",
    "MpdColumn",
    "MpdTable",
    "MpdModel",
    # Parser
    "MpdParser",
    "parse_mpd",
    # SQL
    "SqlGenerator",
    "generate_sql",
    "topological_sort",
]
