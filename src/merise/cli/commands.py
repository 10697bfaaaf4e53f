"""
CLI command implementations.

Each command handles one subcommand and returns an ``ExitCode``:

- ValidateCommand: parse + structural validation
- ConvertCommand: MCD -> MLD -> MPD, printed in micro-syntax
- SqlCommand: full pipeline down to DDL

Commands accept several input files; a progress bar is shown when more than
``CLIConfig.PROGRESS_THRESHOLD`` files are processed. The exit code of a
multi-file run is the highest code of its files.
"""

import argparse
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional, Type

from tqdm import tqdm

from ..config import ConversionConfig
from ..constants import CLIConfig, ExitCode, ModelLevel
from ..core.pipeline import MerisePipeline, OutputTarget
from ..core.validator import MeriseValidator
from ..formats.mcd.mcd_parser import McdParser
from ..formats.mld.mld_parser import MldParser
from ..formats.mpd.mpd_parser import MpdParser
from ..shared.validation import ConfigError, ValidationResult
from .helpers import build_config, read_input, setup_logging, write_output

logger = logging.getLogger(__name__)

OUTPUT_SUFFIXES: Dict[OutputTarget, str] = {
    OutputTarget.MLD: ".mld",
    OutputTarget.MPD: ".mpd",
    OutputTarget.SQL: ".sql",
}


# ============================================================================
# Base Command Class
# ============================================================================

class BaseCommand(ABC):
    """
    Base class for CLI commands.

    Handles logging setup, configuration loading and the per-file loop;
    subclasses implement ``process_file``.
    """

    def __init__(self, config: Optional[ConversionConfig] = None):
        """
        Initialize the command.

        Args:
            config: Pre-built configuration (for tests); loaded from the
                command line when omitted.
        """
        self.config = config

    def execute(self, args: argparse.Namespace) -> int:
        """
        Execute the command.

        Args:
            args: Parsed command-line arguments.

        Returns:
            Exit code (0 for success, non-zero for error).
        """
        try:
            if self.config is None:
                self.config = build_config(
                    config_path=args.config,
                    strategy=getattr(args, 'strategy', None),
                    dialect=getattr(args, 'dialect', None),
                    varchar_length=getattr(args, 'varchar_length', None),
                )
        except FileNotFoundError as e:
            print(f"Error: {e}")
            return ExitCode.FILE_NOT_FOUND
        except ConfigError as e:
            print(f"Configuration error: {e}")
            return ExitCode.CONFIG_ERROR

        setup_logging(args.log_level, args.log_file, config=self.config.log_settings)

        files = args.files
        exit_code = ExitCode.SUCCESS
        for file_path in tqdm(
            files,
            desc=f"merise {args.command}",
            unit="file",
            disable=len(files) <= CLIConfig.PROGRESS_THRESHOLD,
        ):
            code = self._run_file(file_path, args, multiple=len(files) > 1)
            exit_code = max(exit_code, code)
        return int(exit_code)

    def _run_file(self, file_path: str, args: argparse.Namespace, multiple: bool) -> ExitCode:
        try:
            return self.process_file(file_path, args, multiple)
        except FileNotFoundError as e:
            logger.error(str(e))
            print(f"Error: {e}")
            return ExitCode.FILE_NOT_FOUND
        except ValueError as e:
            logger.error(f"{file_path}: {e}")
            print(f"Error: {e}")
            return ExitCode.ERROR
        except OSError as e:
            logger.error(f"{file_path}: {e}")
            print(f"Error: {e}")
            return ExitCode.ERROR

    @abstractmethod
    def process_file(self, file_path: str, args: argparse.Namespace, multiple: bool) -> ExitCode:
        """Handle one input file."""


def resolve_output_path(output: Optional[str], file_path: str, target: OutputTarget, multiple: bool) -> Optional[str]:
    """
    ``--output`` is a file for a single input and a directory for several.
    """
    if not output:
        return None
    if not multiple:
        return output
    return str(Path(output) / (Path(file_path).stem + OUTPUT_SUFFIXES[target]))


# ============================================================================
# Commands
# ============================================================================

class ValidateCommand(BaseCommand):
    """Parse a document and run the structural validator."""

    def process_file(self, file_path: str, args: argparse.Namespace, multiple: bool) -> ExitCode:
        text, level = read_input(file_path, args.level)

        validator = MeriseValidator(strict_mode=args.strict)
        if level is ModelLevel.MCD:
            parsed = McdParser().parse(text)
            checked = validator.validate_mcd(parsed.model)
        elif level is ModelLevel.MLD:
            parsed = MldParser().parse(text)
            checked = validator.validate_mld(parsed.model)
        else:
            parsed = MpdParser().parse(text)
            checked = validator.validate_mpd(parsed.model)

        report = ValidationResult(source=file_path)
        report.extend(parsed.validation.issues)
        report.extend(i for i in checked.issues if i not in parsed.validation.issues)
        report.statistics.update(parsed.validation.statistics)
        report.statistics["level"] = level.value

        if args.json:
            print(json.dumps(report.to_dict(), indent=2, ensure_ascii=False))
        else:
            print(report.get_summary())

        return ExitCode.SUCCESS if report.is_valid else ExitCode.VALIDATION_ERROR


class ConvertCommand(BaseCommand):
    """Convert a model down one or two levels and print it in micro-syntax."""

    def process_file(self, file_path: str, args: argparse.Namespace, multiple: bool) -> ExitCode:
        text, level = read_input(file_path, args.from_level)
        if level is ModelLevel.MPD:
            raise ValueError(f"{file_path} is already a physical model; use 'merise sql' to generate DDL")

        if args.to_level:
            target = OutputTarget(args.to_level)
        else:
            target = OutputTarget.MLD if level is ModelLevel.MCD else OutputTarget.MPD

        return _run_pipeline(self.config, text, level, target, file_path, args.output, multiple)


class SqlCommand(BaseCommand):
    """Run the full pipeline down to SQL DDL."""

    def process_file(self, file_path: str, args: argparse.Namespace, multiple: bool) -> ExitCode:
        text, level = read_input(file_path, args.from_level)
        return _run_pipeline(self.config, text, level, OutputTarget.SQL, file_path, args.output, multiple)


def _run_pipeline(
    config: ConversionConfig,
    text: str,
    level: ModelLevel,
    target: OutputTarget,
    file_path: str,
    output: Optional[str],
    multiple: bool,
) -> ExitCode:
    result = MerisePipeline(config).run(text, level, target)
    result.validation.source = file_path

    if not result.succeeded:
        print(result.validation.get_summary())
        return ExitCode.VALIDATION_ERROR

    for issue in result.validation.warnings:
        logger.warning(f"{file_path}: {issue}")

    output_path = resolve_output_path(output, file_path, target, multiple)
    write_output(result.output_text(target), output_path)
    if output_path:
        logger.info(f"Wrote {target.value} for {file_path} to {output_path}")
    return ExitCode.SUCCESS


COMMANDS: Dict[str, Type[BaseCommand]] = {
    'validate': ValidateCommand,
    'convert': ConvertCommand,
    'sql': SqlCommand,
}
