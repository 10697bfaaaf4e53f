"""
Merise data modeling toolchain.

Refines a conceptual data model (MCD) into a logical model (MLD), a
physical model (MPD) and finally SQL DDL.

Usage:
    from merise import MerisePipeline, ConversionConfig, ModelLevel, OutputTarget

    result = MerisePipeline(ConversionConfig()).run(text, ModelLevel.MCD, OutputTarget.SQL)
    print(result.sql)
"""

from .config import ConversionConfig, load_config
from .constants import (
    Cardinality,
    ConstraintKind,
    ExitCode,
    InheritanceStrategy,
    ModelLevel,
    ReferentialAction,
    SqlDialect,
)
from .core import MerisePipeline, MeriseValidator, OutputTarget, PipelineError, detect_cycles
from .formats.mcd import McdModel, McdParser, McdToMldConverter, convert_mcd_to_mld, parse_mcd
from .formats.mld import MldModel, MldParser, MldToMpdConverter, convert_mld_to_mpd, parse_mld
from .formats.mpd import MpdModel, MpdParser, SqlGenerator, generate_sql, parse_mpd, topological_sort
from .shared import ConfigError, MeriseError, MeriseSyntaxError, ValidationResult

__version__ = "1.0.0"

__all__ = [
    "ConversionConfig",
    "load_config",
    "Cardinality",
    "ConstraintKind",
    "ExitCode",
    "InheritanceStrategy",
    "ModelLevel",
    "ReferentialAction",
    "SqlDialect",
    "MerisePipeline",
    "MeriseValidator",
    "OutputTarget",
    "PipelineError",
    "detect_cycles",
    "McdModel",
    "McdParser",
    "McdToMldConverter",
    "convert_mcd_to_mld",
    "parse_mcd",
    "MldModel",
    "MldParser",
    "MldToMpdConverter",
    "convert_mld_to_mpd",
    "parse_mld",
    "MpdModel",
    "MpdParser",
    "SqlGenerator",
    "generate_sql",
    "parse_mpd",
    "topological_sort",
    "ConfigError",
    "MeriseError",
    "MeriseSyntaxError",
    "ValidationResult",
]
