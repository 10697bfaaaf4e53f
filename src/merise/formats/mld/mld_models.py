"""
Logical Data Model (MLD) data structures.

The logical level is relational but type-free: tables, ordered columns,
primary-key flags and foreign keys.

Models:
- MldForeignKey: Reference from a column to a column of another table
- MldColumn: Table column
- MldTable: Table with ordered columns
- MldModel: Complete logical model, re-serializable to the micro-syntax
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ...constants import ReferentialAction


@dataclass
class MldForeignKey:
    """
    Foreign key descriptor.

    Attributes:
        column_name: Source column holding the reference.
        referenced_table: Table being referenced.
        referenced_column: Column of the referenced table.
        on_delete: Optional referential action carried to the physical level.
        on_update: Optional referential action carried to the physical level.
    """
    column_name: str
    referenced_table: str
    referenced_column: str
    on_delete: Optional[ReferentialAction] = None
    on_update: Optional[ReferentialAction] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "columnName": self.column_name,
            "referencedTable": self.referenced_table,
            "referencedColumn": self.referenced_column,
        }
        if self.on_delete:
            result["onDelete"] = self.on_delete.value
        if self.on_update:
            result["onUpdate"] = self.on_update.value
        return result

    def to_flag(self) -> str:
        """Micro-syntax flag, e.g. ``[FK -> CLIENT.id_client ON DELETE SET NULL]``."""
        text = f"[FK -> {self.referenced_table}.{self.referenced_column}"
        if self.on_delete:
            text += f" ON DELETE {self.on_delete.value}"
        if self.on_update:
            text += f" ON UPDATE {self.on_update.value}"
        return text + "]"


@dataclass
class MldColumn:
    """Column of a logical table."""
    name: str
    is_primary_key: bool = False
    foreign_key: Optional[MldForeignKey] = None

    @property
    def is_foreign_key(self) -> bool:
        return self.foreign_key is not None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "name": self.name,
            "isPrimaryKey": self.is_primary_key,
        }
        if self.foreign_key:
            result["foreignKey"] = self.foreign_key.to_dict()
        return result

    def to_text(self) -> str:
        flags: List[str] = []
        if self.is_primary_key:
            flags.append("[PK]")
        if self.foreign_key:
            flags.append(self.foreign_key.to_flag())
        return " ".join([self.name] + flags)


@dataclass
class MldTable:
    """Logical table."""
    name: str
    columns: List[MldColumn] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "columns": [c.to_dict() for c in self.columns],
        }

    def get_column(self, name: str) -> Optional[MldColumn]:
        for column in self.columns:
            if column.name == name:
                return column
        return None

    def has_column(self, name: str) -> bool:
        return self.get_column(name) is not None

    @property
    def primary_key_columns(self) -> List[MldColumn]:
        return [c for c in self.columns if c.is_primary_key]

    @property
    def foreign_key_columns(self) -> List[MldColumn]:
        return [c for c in self.columns if c.foreign_key]

    def to_text(self) -> str:
        lines = [f"TABLE {self.name} {{"]
        lines.extend(f"    {column.to_text()}" for column in self.columns)
        lines.append("}")
        return "\n".join(lines)


@dataclass
class MldModel:
    """Complete logical model."""
    tables: List[MldTable] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"tables": [t.to_dict() for t in self.tables]}

    def get_table(self, name: str) -> Optional[MldTable]:
        for table in self.tables:
            if table.name == name:
                return table
        return None

    def get_table_names(self) -> List[str]:
        return [t.name for t in self.tables]

    def to_text(self) -> str:
        """Re-serialize to the logical micro-syntax (one TABLE block per table)."""
        return "\n\n".join(table.to_text() for table in self.tables)
