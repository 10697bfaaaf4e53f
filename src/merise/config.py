"""
Conversion configuration.

``ConversionConfig`` is the explicit value passed into every conversion
call. Nothing in the toolchain reads ambient or global configuration; the
CLI builds a config from an optional JSON file and command-line overrides.

Example config file::

    {
        "conversion": {
            "inheritance_strategy": "single_table",
            "sql_dialect": "postgresql",
            "default_varchar_length": 120
        },
        "logging": {"level": "INFO", "file": "merise.log", "format": "text"}
    }
"""

import json
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .constants import ConversionDefaults, InheritanceStrategy, SqlDialect
from .shared.validation import ConfigError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConversionConfig:
    """
    Conversion-time settings.

    Attributes:
        inheritance_strategy: Default flattening for inheritance groups
            without their own STRATEGY.
        sql_dialect: Dialect used for type resolution and DDL emission.
        default_varchar_length: Length of VARCHAR columns matched by no rule.
        log_settings: Raw "logging" section, consumed by the CLI only.
    """
    inheritance_strategy: InheritanceStrategy = InheritanceStrategy(ConversionDefaults.INHERITANCE_STRATEGY)
    sql_dialect: SqlDialect = SqlDialect(ConversionDefaults.SQL_DIALECT)
    default_varchar_length: int = ConversionDefaults.DEFAULT_VARCHAR_LENGTH
    log_settings: Dict[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.default_varchar_length, int) or isinstance(self.default_varchar_length, bool) \
                or self.default_varchar_length <= 0:
            raise ConfigError(
                f"default_varchar_length must be a positive integer, got {self.default_varchar_length!r}"
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConversionConfig":
        """
        Build a config from a dictionary.

        Accepts either a flat dictionary of conversion keys or a full config
        file layout with ``conversion`` and ``logging`` sections.

        Raises:
            ConfigError: If a value is not recognized.
        """
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration must be a JSON object, got {type(data).__name__}")

        section = data.get("conversion", data)
        if not isinstance(section, dict):
            raise ConfigError("'conversion' section must be a JSON object")

        kwargs: Dict[str, Any] = {}
        if "inheritance_strategy" in section:
            kwargs["inheritance_strategy"] = _parse_strategy(section["inheritance_strategy"])
        if "sql_dialect" in section:
            kwargs["sql_dialect"] = _parse_dialect(section["sql_dialect"])
        if "default_varchar_length" in section:
            kwargs["default_varchar_length"] = _parse_length(section["default_varchar_length"])

        log_section = data.get("logging", {})
        if not isinstance(log_section, dict):
            raise ConfigError("'logging' section must be a JSON object")
        kwargs["log_settings"] = dict(log_section)

        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "conversion": {
                "inheritance_strategy": self.inheritance_strategy.value,
                "sql_dialect": self.sql_dialect.value,
                "default_varchar_length": self.default_varchar_length,
            },
            "logging": dict(self.log_settings),
        }

    def with_overrides(
        self,
        inheritance_strategy: Optional[str] = None,
        sql_dialect: Optional[str] = None,
        default_varchar_length: Optional[int] = None,
    ) -> "ConversionConfig":
        """Return a copy with the given non-None values replaced."""
        changes: Dict[str, Any] = {}
        if inheritance_strategy is not None:
            changes["inheritance_strategy"] = _parse_strategy(inheritance_strategy)
        if sql_dialect is not None:
            changes["sql_dialect"] = _parse_dialect(sql_dialect)
        if default_varchar_length is not None:
            changes["default_varchar_length"] = _parse_length(default_varchar_length)
        return replace(self, **changes)


def _parse_strategy(value: Any) -> InheritanceStrategy:
    try:
        return InheritanceStrategy(value)
    except ValueError:
        raise ConfigError(
            f"Unknown inheritance strategy {value!r} "
            f"(expected one of {', '.join(InheritanceStrategy.values())})"
        )


def _parse_dialect(value: Any) -> SqlDialect:
    try:
        return SqlDialect(str(value).lower())
    except ValueError:
        raise ConfigError(
            f"Unknown SQL dialect {value!r} (expected one of {', '.join(SqlDialect.values())})"
        )


def _parse_length(value: Any) -> int:
    try:
        length = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"default_varchar_length must be an integer, got {value!r}")
    if length <= 0:
        raise ConfigError(f"default_varchar_length must be positive, got {length}")
    return length


def load_config(config_path: Union[str, Path]) -> ConversionConfig:
    """
    Load a conversion configuration from a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigError: If the file is not valid JSON or holds invalid values.
    """
    path = Path(config_path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise FileNotFoundError(f"Configuration file not found: {config_path}")
    except json.JSONDecodeError as e:
        raise ConfigError(
            f"Invalid JSON in configuration file {config_path} at line {e.lineno}, column {e.colno}: {e.msg}"
        )
    except UnicodeDecodeError as e:
        raise ConfigError(f"File encoding error in {config_path}: {e}")

    config = ConversionConfig.from_dict(data)
    logger.debug(f"Loaded configuration from {path}: {config.to_dict()['conversion']}")
    return config
