"""
MCD (Conceptual Data Model) Module

Parses the conceptual micro-syntax and converts conceptual models into
logical models.

Key Components:
- mcd_models: Entities, relations, inheritance groups, associative entities
- mcd_parser: ENTITY / RELATION / INHERITANCE / ASSOCIATIVE blocks
- mcd_converter: Merise conceptual-to-logical rules

Usage:
    from merise.formats.mcd import McdParser, McdToMldConverter

    result = McdParser().parse(text)
    mld = McdToMldConverter(config).convert(result.model).model
"""

from .mcd_models import (
    McdAttribute,
    McdEntity,
    McdParticipant,
    McdRelation,
    McdInheritance,
    McdAssociativeEntity,
    McdModel,
)

from .mcd_parser import McdParser, parse_attribute, parse_mcd

from .mcd_converter import McdToMldConverter, convert_mcd_to_mld

__all__ = [
    # Models
    "McdAttribute",
    "McdEntity",
    "McdParticipant",
    "McdRelation",
    "McdInheritance",
    "McdAssociativeEntity",
    "McdModel",
    # Parser
    "McdParser",
    "parse_attribute",
    "parse_mcd",
    # Converter
    "McdToMldConverter",
    "convert_mcd_to_mld",
]
