"""
Centralized constants for the Merise modeling toolchain.

This module provides a single source of truth for the enumerations, default
values and limits used throughout the conceptual, logical and physical
layers and by the command line interface.
"""

from enum import Enum, IntEnum
from typing import Final, Optional


# ============================================================================
# Exit Codes
# ============================================================================

class ExitCode(IntEnum):
    """Standard exit codes for CLI commands.

    Following Unix conventions:
    - 0: Success
    - 1: General error
    - 2: Validation/syntax error
    - 3+: Specific error categories
    """
    SUCCESS = 0
    ERROR = 1
    VALIDATION_ERROR = 2
    CONFIG_ERROR = 3
    FILE_NOT_FOUND = 5


# ============================================================================
# Modeling Enumerations
# ============================================================================

class Cardinality(str, Enum):
    """
    Merise participation pairs (minimum, maximum).

    Only the four classical pairs are accepted; anything else is a syntax
    error at parse time.
    """
    ZERO_ONE = "0,1"
    ONE_ONE = "1,1"
    ZERO_MANY = "0,n"
    ONE_MANY = "1,n"

    @property
    def is_one(self) -> bool:
        """Maximum participation is 1."""
        return self.value.endswith(",1")

    @property
    def is_many(self) -> bool:
        """Maximum participation is n."""
        return self.value.endswith(",n")

    @property
    def is_mandatory(self) -> bool:
        """Exactly one, i.e. (1,1)."""
        return self is Cardinality.ONE_ONE

    @classmethod
    def parse(cls, text: str) -> Optional["Cardinality"]:
        """
        Normalize a raw ``min,max`` text into a cardinality.

        Whitespace is ignored and ``N`` is accepted for ``n``.

        Returns:
            The matching Cardinality, or None when the pair is not allowed.
        """
        normalized = "".join(text.split()).lower()
        for member in cls:
            if member.value == normalized:
                return member
        return None


class InheritanceStrategy(str, Enum):
    """How a generalization is flattened into tables."""
    TABLE_PER_CLASS = "table_per_class"
    SINGLE_TABLE = "single_table"
    TABLE_PER_SUBCLASS = "table_per_subclass"

    @classmethod
    def values(cls) -> tuple:
        return tuple(member.value for member in cls)


class SqlDialect(str, Enum):
    """Target SQL dialects."""
    MARIADB = "mariadb"
    MYSQL = "mysql"
    POSTGRESQL = "postgresql"

    @property
    def is_mysql_family(self) -> bool:
        """Backtick-quoting family sharing the engine/charset trailer."""
        return self in (SqlDialect.MARIADB, SqlDialect.MYSQL)

    @property
    def label(self) -> str:
        return DIALECT_LABELS[self.value]

    @classmethod
    def values(cls) -> tuple:
        return tuple(member.value for member in cls)


DIALECT_LABELS: Final[dict] = {
    "mariadb": "MariaDB",
    "mysql": "MySQL",
    "postgresql": "PostgreSQL",
}


class ReferentialAction(str, Enum):
    """Action applied to a foreign key when the referenced row changes."""
    CASCADE = "CASCADE"
    SET_NULL = "SET NULL"
    SET_DEFAULT = "SET DEFAULT"
    RESTRICT = "RESTRICT"
    NO_ACTION = "NO ACTION"

    @classmethod
    def parse(cls, text: Optional[str]) -> Optional["ReferentialAction"]:
        """Return the action named by ``text`` or None if unrecognized."""
        if not text:
            return None
        normalized = " ".join(text.split()).upper()
        for member in cls:
            if member.value == normalized:
                return member
        return None


class ConstraintKind(str, Enum):
    """Column constraint kinds of the physical model."""
    NOT_NULL = "NOT NULL"
    UNIQUE = "UNIQUE"
    CHECK = "CHECK"


class ModelLevel(str, Enum):
    """Abstraction levels of the Merise methodology."""
    MCD = "mcd"
    MLD = "mld"
    MPD = "mpd"

    @property
    def fence_tag(self) -> str:
        """Markdown fenced code block language tag for this level."""
        return f"merise-{self.value}"


# ============================================================================
# Conversion Defaults
# ============================================================================

class ConversionDefaults:
    """Default values for conversion-time configuration."""

    INHERITANCE_STRATEGY: Final[str] = InheritanceStrategy.TABLE_PER_CLASS.value
    """Inheritance flattening used when a group has no STRATEGY override."""

    SQL_DIALECT: Final[str] = SqlDialect.MARIADB.value
    """Dialect used for type resolution and DDL emission."""

    DEFAULT_VARCHAR_LENGTH: Final[int] = 255
    """Length of VARCHAR columns whose name matches no inference rule."""

    REFERENCE_VARCHAR_LENGTH: Final[int] = 20
    """Length of VARCHAR columns holding short business references."""

    DISCRIMINATOR_VARCHAR_LENGTH: Final[int] = 50
    """Length of the single-table inheritance discriminator column."""

    DISCRIMINATOR_COLUMN: Final[str] = "type_discriminator"
    """Name of the column added by single-table inheritance."""

    DEFAULT_REFERENTIAL_ACTION: Final[ReferentialAction] = ReferentialAction.CASCADE
    """ON DELETE / ON UPDATE action used when none is specified."""


class SqlConfig:
    """DDL emission constants."""

    MYSQL_TABLE_TRAILER: Final[str] = (
        "ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 COLLATE=utf8mb4_unicode_ci"
    )
    """Trailer appended after the closing parenthesis in the backtick family."""

    AUTO_INCREMENT: Final[str] = "AUTO_INCREMENT"

    INDENT: Final[str] = "    "

    HEADER_RULE: Final[str] = "-- " + "=" * 44


# ============================================================================
# Logging Configuration
# ============================================================================

class LoggingConfig:
    """Logging configuration."""

    DEFAULT_LOG_LEVEL: Final[str] = "WARNING"
    """Default logging level for the CLI."""

    LOG_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    """Default log format string."""

    DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"
    """Default date format for logs."""

    DEFAULT_FORMAT_STYLE: Final[str] = "text"
    """Human-readable formatter style."""

    JSON_DATE_FORMAT: Final[str] = "%Y-%m-%dT%H:%M:%S.%fZ"
    """ISO-8601 timestamp format for structured logs."""

    SUPPORTED_FORMATS: Final[tuple] = ("text", "json")
    """Supported formatter styles."""

    MAX_LOG_FILE_MB: Final[int] = 10
    """Maximum log file size before rotation (MB)."""

    LOG_BACKUP_COUNT: Final[int] = 5
    """Number of backup log files to keep."""


# ============================================================================
# CLI
# ============================================================================

class CLIConfig:
    """Command line behaviour constants."""

    PROGRESS_THRESHOLD: Final[int] = 5
    """Show a progress bar when more input files than this are given."""

    DEFAULT_CONFIG_FILENAME: Final[str] = "merise.json"
