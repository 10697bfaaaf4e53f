"""
Conversion pipeline.

Chains the stages of the toolchain for one document::

    parse -> validate -> MCD->MLD -> MLD->MPD -> SQL

The pipeline starts at the level of the input document and stops at the
requested target. Issues of every stage are merged into one
``ValidationResult``; the pipeline stops at the first stage that records an
error, so a model carrying errors never flows downstream.

Usage:
    from merise.core.pipeline import MerisePipeline, OutputTarget

    pipeline = MerisePipeline(config)
    result = pipeline.run(text, ModelLevel.MCD, OutputTarget.SQL)
    if result.succeeded:
        print(result.sql)
    else:
        print(result.validation.get_summary())
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from ..config import ConversionConfig
from ..constants import ModelLevel
from ..formats.mcd.mcd_converter import McdToMldConverter
from ..formats.mcd.mcd_models import McdModel
from ..formats.mcd.mcd_parser import McdParser
from ..formats.mld.mld_converter import MldToMpdConverter
from ..formats.mld.mld_models import MldModel
from ..formats.mld.mld_parser import MldParser
from ..formats.mpd.mpd_models import MpdModel
from ..formats.mpd.mpd_parser import MpdParser
from ..formats.mpd.sql_generator import SqlGenerator
from ..shared.validation import MeriseError, ValidationIssue, ValidationResult
from .validator import MeriseValidator

logger = logging.getLogger(__name__)


class PipelineStage(str, Enum):
    """Stages of the pipeline, in execution order."""
    PARSE = "parse"
    VALIDATE = "validate"
    MCD_TO_MLD = "mcd_to_mld"
    MLD_TO_MPD = "mld_to_mpd"
    GENERATE_SQL = "generate_sql"


class OutputTarget(str, Enum):
    """What the pipeline should produce."""
    MLD = "mld"
    MPD = "mpd"
    SQL = "sql"


_LEVEL_RANK = {ModelLevel.MCD: 0, ModelLevel.MLD: 1, ModelLevel.MPD: 2}
_TARGET_RANK = {OutputTarget.MLD: 1, OutputTarget.MPD: 2, OutputTarget.SQL: 3}


class PipelineError(MeriseError):
    """Raised when a stage records errors and the caller asked to raise."""

    def __init__(self, stage: PipelineStage, issues: List[ValidationIssue]):
        self.stage = stage
        self.issues = issues
        details = "; ".join(str(i) for i in issues)
        super().__init__(f"Pipeline stopped at stage '{stage.value}': {details}")


@dataclass
class PipelineResult:
    """
    Everything produced by a pipeline run.

    Attributes:
        validation: Issues of every stage that ran, in order.
        completed_stages: Stages that ran to completion.
        failed_stage: Stage that recorded errors, if the run stopped early.
        mcd / mld / mpd: Models produced or parsed along the way.
        sql: Generated DDL when the target was SQL.
        duration_seconds: Wall-clock time of the run.
    """
    validation: ValidationResult = field(default_factory=ValidationResult)
    completed_stages: List[PipelineStage] = field(default_factory=list)
    failed_stage: Optional[PipelineStage] = None
    mcd: Optional[McdModel] = None
    mld: Optional[MldModel] = None
    mpd: Optional[MpdModel] = None
    sql: Optional[str] = None
    duration_seconds: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.failed_stage is None

    def output_text(self, target: OutputTarget) -> Optional[str]:
        """The requested artifact as text (micro-syntax or DDL)."""
        if target is OutputTarget.SQL:
            return self.sql
        model = self.mld if target is OutputTarget.MLD else self.mpd
        return model.to_text() if model is not None else None

    def get_summary(self) -> str:
        status = "completed" if self.succeeded else f"failed at {self.failed_stage.value}"
        lines = [
            f"Pipeline {status}",
            f"  Stages: {', '.join(s.value for s in self.completed_stages) or 'none'}",
            f"  Errors: {self.validation.error_count}",
            f"  Warnings: {self.validation.warning_count}",
        ]
        if self.duration_seconds > 0:
            lines.append(f"  Duration: {self.duration_seconds:.3f}s")
        return "\n".join(lines)


class MerisePipeline:
    """
    Run parse, validation, conversions and SQL generation in sequence.

    Example:
        >>> result = MerisePipeline().run(mcd_text, ModelLevel.MCD, OutputTarget.MLD)
        >>> print(result.mld.to_text())
    """

    def __init__(
        self,
        config: Optional[ConversionConfig] = None,
        validator: Optional[MeriseValidator] = None,
    ):
        self.config = config or ConversionConfig()
        self.validator = validator or MeriseValidator()

    def run(
        self,
        source: str,
        level: ModelLevel = ModelLevel.MCD,
        target: OutputTarget = OutputTarget.SQL,
        raise_on_error: bool = False,
    ) -> PipelineResult:
        """
        Run the pipeline on a document.

        Args:
            source: Micro-syntax text at ``level``.
            level: Abstraction level of ``source``.
            target: Artifact to produce.
            raise_on_error: Raise PipelineError instead of returning a failed result.

        Raises:
            ValueError: If ``target`` is not below ``level``.
            PipelineError: If a stage records errors and ``raise_on_error`` is set.
        """
        level = ModelLevel(level)
        target = OutputTarget(target)
        if _TARGET_RANK[target] < _LEVEL_RANK[level]:
            raise ValueError(f"Cannot produce {target.value} from a {level.value} document")

        start = time.perf_counter()
        result = PipelineResult(validation=ValidationResult(source=level.value))
        try:
            self._execute(source, level, target, result)
        finally:
            result.duration_seconds = time.perf_counter() - start

        if not result.succeeded:
            logger.warning(f"Pipeline stopped at {result.failed_stage.value}")
            if raise_on_error:
                raise PipelineError(result.failed_stage, result.validation.errors)
        else:
            logger.info(f"Pipeline {level.value} -> {target.value} completed in {result.duration_seconds:.3f}s")
        return result

    def _execute(self, source: str, level: ModelLevel, target: OutputTarget, result: PipelineResult) -> None:
        # Parse
        if level is ModelLevel.MCD:
            parsed = McdParser().parse(source)
            result.mcd = parsed.model
        elif level is ModelLevel.MLD:
            parsed = MldParser().parse(source)
            result.mld = parsed.model
        else:
            parsed = MpdParser().parse(source)
            result.mpd = parsed.model
        if not self._record(result, PipelineStage.PARSE, parsed.validation):
            return

        # Validate
        if level is ModelLevel.MCD:
            checked = self.validator.validate_mcd(result.mcd)
            # The parser already reported orphans and missing identifiers
            checked.issues = [i for i in checked.issues if i not in parsed.validation.issues]
        elif level is ModelLevel.MLD:
            checked = self.validator.validate_mld(result.mld)
        else:
            checked = self.validator.validate_mpd(result.mpd)
        if not self._record(result, PipelineStage.VALIDATE, checked):
            return

        if level is ModelLevel.MCD:
            converted = McdToMldConverter(self.config).convert(result.mcd)
            result.mld = converted.model
            if not self._record(result, PipelineStage.MCD_TO_MLD, converted.validation):
                return
        if target is OutputTarget.MLD:
            return

        if level is not ModelLevel.MPD:
            typed = MldToMpdConverter(self.config).convert(result.mld)
            result.mpd = typed.model
            if not self._record(result, PipelineStage.MLD_TO_MPD, typed.validation):
                return
            if target is OutputTarget.MPD:
                return

        if target is OutputTarget.SQL:
            result.sql = SqlGenerator(self.config.sql_dialect).generate(result.mpd)
            result.completed_stages.append(PipelineStage.GENERATE_SQL)

    @staticmethod
    def _record(result: PipelineResult, stage: PipelineStage, validation: ValidationResult) -> bool:
        """Merge a stage's issues; return False when the stage recorded errors."""
        result.validation.merge(validation)
        if not validation.is_valid:
            result.failed_stage = stage
            return False
        result.completed_stages.append(stage)
        return True
