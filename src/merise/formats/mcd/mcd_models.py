"""
Conceptual Data Model (MCD) data structures.

The conceptual level describes entities, the relations binding them with
cardinalities, generalizations (inheritance groups) and associative
entities promoted from relations.

Models:
- McdAttribute: Attribute of an entity, relation or associative entity
- McdEntity: Entity with its ordered attributes
- McdParticipant: Entity taking part in a relation, with its cardinality
- McdRelation: Relation between two or more entities
- McdInheritance: Parent entity specialized by child entities
- McdAssociativeEntity: Relation promoted to an entity with own attributes
- McdModel: Complete conceptual model
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from ...constants import Cardinality, InheritanceStrategy

ORPHAN_RECOMMENDATION = "Link the entity through a RELATION or INHERITANCE block, or remove it"
MISSING_IDENTIFIER_RECOMMENDATION = "Mark the identifying attribute with [PK]"


@dataclass
class McdAttribute:
    """
    Attribute of a conceptual construct.

    Attributes:
        name: Attribute name.
        is_primary_key: Part of the entity identifier.
        is_derived: Computed attribute, never materialized as a column.
    """
    name: str
    is_primary_key: bool = False
    is_derived: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "isPrimaryKey": self.is_primary_key,
            "isDerived": self.is_derived,
        }


@dataclass
class McdEntity:
    """An entity and its attributes in declaration order."""
    name: str
    attributes: List[McdAttribute] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "attributes": [a.to_dict() for a in self.attributes],
        }

    @property
    def primary_key_attributes(self) -> List[McdAttribute]:
        return [a for a in self.attributes if a.is_primary_key]

    @property
    def primary_key(self) -> Optional[str]:
        """Name of the first identifier attribute, if any."""
        for attr in self.attributes:
            if attr.is_primary_key:
                return attr.name
        return None


@dataclass
class McdParticipant:
    """An entity taking part in a relation."""
    entity_name: str
    cardinality: Cardinality

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entityName": self.entity_name,
            "cardinality": self.cardinality.value,
        }


@dataclass
class McdRelation:
    """
    Relation (association) between entities.

    Attributes:
        name: Relation name, also used to name associative tables and
            to qualify foreign keys when several relations bind the same pair.
        participants: Participants in declaration order.
        attributes: Attributes carried by the relation itself.
    """
    name: str
    participants: List[McdParticipant] = field(default_factory=list)
    attributes: List[McdAttribute] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "participants": [p.to_dict() for p in self.participants],
            "attributes": [a.to_dict() for a in self.attributes],
        }

    @property
    def is_binary(self) -> bool:
        return len(self.participants) == 2

    @property
    def is_reflexive(self) -> bool:
        """Binary relation whose two participants are the same entity."""
        return self.is_binary and self.participants[0].entity_name == self.participants[1].entity_name

    @property
    def entity_names(self) -> List[str]:
        return [p.entity_name for p in self.participants]


@dataclass
class McdInheritance:
    """
    Generalization of a parent entity into child entities.

    ``strategy`` overrides the conversion-wide default when set.
    """
    name: str
    parent_entity: str = ""
    child_entities: List[str] = field(default_factory=list)
    strategy: Optional[InheritanceStrategy] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "name": self.name,
            "parentEntity": self.parent_entity,
            "childEntities": list(self.child_entities),
        }
        if self.strategy:
            result["strategy"] = self.strategy.value
        return result


@dataclass
class McdAssociativeEntity:
    """A relation promoted to an entity carrying its own attributes."""
    name: str
    relation_name: str
    attributes: List[McdAttribute] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "relationName": self.relation_name,
            "attributes": [a.to_dict() for a in self.attributes],
        }


@dataclass
class McdModel:
    """Complete conceptual model."""
    entities: List[McdEntity] = field(default_factory=list)
    relations: List[McdRelation] = field(default_factory=list)
    inheritances: List[McdInheritance] = field(default_factory=list)
    associative_entities: List[McdAssociativeEntity] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entities": [e.to_dict() for e in self.entities],
            "relations": [r.to_dict() for r in self.relations],
            "inheritances": [i.to_dict() for i in self.inheritances],
            "associativeEntities": [a.to_dict() for a in self.associative_entities],
        }

    def get_entity(self, name: str) -> Optional[McdEntity]:
        for entity in self.entities:
            if entity.name == name:
                return entity
        return None

    def get_relation(self, name: str) -> Optional[McdRelation]:
        for relation in self.relations:
            if relation.name == name:
                return relation
        return None

    def get_entity_names(self) -> List[str]:
        return [e.name for e in self.entities]

    def referenced_entity_names(self) -> Set[str]:
        """Entities mentioned by a relation participant or an inheritance group."""
        used: Set[str] = set()
        for relation in self.relations:
            used.update(relation.entity_names)
        for inheritance in self.inheritances:
            if inheritance.parent_entity:
                used.add(inheritance.parent_entity)
            used.update(inheritance.child_entities)
        return used

    def orphan_entities(self) -> List[McdEntity]:
        """Entities never referenced by a relation or an inheritance group."""
        used = self.referenced_entity_names()
        return [e for e in self.entities if e.name not in used]
