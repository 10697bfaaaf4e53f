"""
Cross-level services: structural validation and the conversion pipeline.

Usage:
    from merise.core import MeriseValidator, MerisePipeline, OutputTarget
"""

from .validator import MeriseValidator, detect_cycles
from .pipeline import (
    MerisePipeline,
    OutputTarget,
    PipelineError,
    PipelineResult,
    PipelineStage,
)

__all__ = [
    "MeriseValidator",
    "detect_cycles",
    "MerisePipeline",
    "OutputTarget",
    "PipelineError",
    "PipelineResult",
    "PipelineStage",
]
