"""
Centralized test fixtures for the Merise toolchain test suite.

Usage:
    from fixtures import CLIENT_COMMANDE_MCD, SIMPLE_MLD, SIMPLE_MPD

Or use the pytest fixtures in conftest.py which import from here.
"""

from .mcd_fixtures import (
    CLIENT_COMMANDE_MCD,
    INLINE_MCD,
    TWO_RELATIONS_SAME_PAIR_MCD,
    MANY_TO_MANY_MCD,
    TERNARY_MCD,
    ONE_TO_ONE_MCD,
    REFLEXIVE_MCD,
    INHERITANCE_MCD,
    INHERITANCE_WITH_STRATEGY_MCD,
    ASSOCIATIVE_MCD,
    INVALID_CARDINALITY_MCD,
    UNKNOWN_KEYWORD_MCD,
    MISSING_PK_MCD,
    UNTERMINATED_MCD,
)

from .mld_fixtures import (
    SIMPLE_MLD,
    CHAIN_MLD,
    CYCLIC_MLD,
    ACTIONS_MLD,
    SIMPLE_MPD,
)

__all__ = [
    "CLIENT_COMMANDE_MCD",
    "INLINE_MCD",
    "TWO_RELATIONS_SAME_PAIR_MCD",
    "MANY_TO_MANY_MCD",
    "TERNARY_MCD",
    "ONE_TO_ONE_MCD",
    "REFLEXIVE_MCD",
    "INHERITANCE_MCD",
    "INHERITANCE_WITH_STRATEGY_MCD",
    "ASSOCIATIVE_MCD",
    "INVALID_CARDINALITY_MCD",
    "UNKNOWN_KEYWORD_MCD",
    "MISSING_PK_MCD",
    "UNTERMINATED_MCD",
    "SIMPLE_MLD",
    "CHAIN_MLD",
    "CYCLIC_MLD",
    "ACTIONS_MLD",
    "SIMPLE_MPD",
]
