"""
Physical Data Model (MPD) data structures.

The physical level adds SQL types, column constraints and referential
actions to the logical tables. Models are produced in one pass from a
finished logical model and are not mutated afterwards.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ...constants import ConstraintKind, ReferentialAction

CONSTRAINT_ORDER = (ConstraintKind.NOT_NULL, ConstraintKind.UNIQUE, ConstraintKind.CHECK)


@dataclass
class MpdConstraint:
    """Column constraint; ``expression`` is only used by CHECK."""
    kind: ConstraintKind
    expression: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"kind": self.kind.value}
        if self.expression is not None:
            result["expression"] = self.expression
        return result

    def to_flag(self) -> str:
        if self.kind is ConstraintKind.CHECK:
            return f"[CHECK({self.expression or ''})]"
        return f"[{self.kind.value}]"

    def to_sql(self) -> str:
        if self.kind is ConstraintKind.CHECK:
            return f"CHECK ({self.expression or ''})"
        return self.kind.value


@dataclass
class MpdForeignKey:
    """Foreign key with its referential actions."""
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
        text = f"[FK -> {self.referenced_table}.{self.referenced_column}"
        if self.on_delete:
            text += f" ON DELETE {self.on_delete.value}"
        if self.on_update:
            text += f" ON UPDATE {self.on_update.value}"
        return text + "]"


@dataclass
class MpdColumn:
    """
    Typed column.

    Attributes:
        name: Column name.
        sql_type: Resolved SQL type, e.g. ``VARCHAR(255)``.
        is_primary_key: Part of the table's primary key.
        foreign_key: Reference to another table, if any.
        constraints: Constraints in canonical order (NOT NULL, UNIQUE, CHECK).
    """
    name: str
    sql_type: str
    is_primary_key: bool = False
    foreign_key: Optional[MpdForeignKey] = None
    constraints: List[MpdConstraint] = field(default_factory=list)

    @property
    def is_foreign_key(self) -> bool:
        return self.foreign_key is not None

    def has_constraint(self, kind: ConstraintKind) -> bool:
        return any(c.kind is kind for c in self.constraints)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "name": self.name,
            "sqlType": self.sql_type,
            "isPrimaryKey": self.is_primary_key,
            "constraints": [c.to_dict() for c in self.constraints],
        }
        if self.foreign_key:
            result["foreignKey"] = self.foreign_key.to_dict()
        return result

    def to_text(self) -> str:
        parts = [self.name, self.sql_type]
        if self.is_primary_key:
            parts.append("[PK]")
        if self.foreign_key:
            parts.append(self.foreign_key.to_flag())
        for kind in CONSTRAINT_ORDER:
            parts.extend(c.to_flag() for c in self.constraints if c.kind is kind)
        return " ".join(parts)


@dataclass
class MpdTable:
    """Physical table."""
    name: str
    columns: List[MpdColumn] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "columns": [c.to_dict() for c in self.columns],
        }

    def get_column(self, name: str) -> Optional[MpdColumn]:
        for column in self.columns:
            if column.name == name:
                return column
        return None

    @property
    def primary_key_columns(self) -> List[MpdColumn]:
        return [c for c in self.columns if c.is_primary_key]

    @property
    def foreign_key_columns(self) -> List[MpdColumn]:
        return [c for c in self.columns if c.foreign_key]

    def referenced_tables(self) -> List[str]:
        """Distinct tables referenced by this table's foreign keys, self excluded."""
        names: List[str] = []
        for column in self.foreign_key_columns:
            target = column.foreign_key.referenced_table
            if target != self.name and target not in names:
                names.append(target)
        return names

    def to_text(self) -> str:
        lines = [f"TABLE {self.name} {{"]
        lines.extend(f"    {column.to_text()}" for column in self.columns)
        lines.append("}")
        return "\n".join(lines)


@dataclass
class MpdModel:
    """Complete physical model."""
    tables: List[MpdTable] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"tables": [t.to_dict() for t in self.tables]}

    def get_table(self, name: str) -> Optional[MpdTable]:
        for table in self.tables:
            if table.name == name:
                return table
        return None

    def get_table_names(self) -> List[str]:
        return [t.name for t in self.tables]

    def to_text(self) -> str:
        """Re-serialize to the physical micro-syntax."""
        return "\n\n".join(table.to_text() for table in self.tables)
