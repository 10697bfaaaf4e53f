"""
CLI helper utilities.

This module provides shared utilities for CLI commands including:
- Logging setup (text or JSON, optional rotating log file)
- Configuration loading with command-line overrides
- Input reading, including fenced ``merise-*`` blocks in Markdown files
- Model level detection
"""

import json
import logging
import re
import sys
from datetime import datetime, timezone
from logging import Handler
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

from ..config import ConversionConfig, load_config
from ..constants import CLIConfig, LoggingConfig, ModelLevel
from ..shared.blocks import extract_blocks, split_items

# Type alias for log levels
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

FENCE_PATTERN = re.compile(r'^```\s*(merise-(?:mcd|mld|mpd))\s*$\n(.*?)^```\s*$', re.MULTILINE | re.DOTALL)
TYPED_COLUMN_PATTERN = re.compile(r'^\w+\s+\w+')
MCD_KEYWORDS = {"ENTITY", "RELATION", "INHERITANCE", "ASSOCIATIVE"}
MARKDOWN_SUFFIXES = {".md", ".markdown"}


class JSONFormatter(logging.Formatter):
    """A lightweight JSON formatter for structured logging."""

    _RESERVED_FIELDS = {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "process",
        "processName",
        "taskName",
    }

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc).strftime(
            LoggingConfig.JSON_DATE_FORMAT
        )
        payload: Dict[str, Any] = {
            "timestamp": timestamp,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        # Extra fields supplied via extra=
        for key, value in record.__dict__.items():
            if key in self._RESERVED_FIELDS or key.startswith("_") or key in payload:
                continue
            try:
                json.dumps(value)
                payload[key] = value
            except TypeError:
                payload[key] = str(value)

        return json.dumps(payload, ensure_ascii=False)


_MANAGED_HANDLERS: List[Handler] = []


def _clear_managed_handlers() -> None:
    """Remove handlers that were added by this module."""
    global _MANAGED_HANDLERS
    root_logger = logging.getLogger()
    for handler in _MANAGED_HANDLERS:
        root_logger.removeHandler(handler)
        handler.close()
    _MANAGED_HANDLERS = []


def _coerce_positive_int(value: Any, default: int) -> int:
    """Convert config-provided values to positive integers."""
    try:
        numeric = int(value)
        return numeric if numeric > 0 else default
    except (TypeError, ValueError):
        return default


def setup_logging(
    level: Optional[LogLevel] = None,
    log_file: Optional[str] = None,
    *,
    config: Optional[Dict[str, Any]] = None,
) -> Optional[str]:
    """
    Configure the root logger for a CLI run.

    Console output goes to stderr so that generated DDL or micro-syntax on
    stdout stays clean.

    Args:
        level: Log level; overrides the config's ``level`` when given.
        log_file: Log file path; overrides the config's ``file`` when given.
        config: The ``logging`` section of the configuration file
            (``level``, ``file``, ``format``, ``rotation``).

    Returns:
        The log file path used, or None if logging to console only.
    """
    config_dict = dict(config or {})

    resolved_level = str(level or config_dict.get('level', LoggingConfig.DEFAULT_LOG_LEVEL))
    log_level = getattr(logging, resolved_level.upper(), logging.WARNING)
    file_path = log_file if log_file is not None else config_dict.get('file')

    format_style = str(config_dict.get('format', LoggingConfig.DEFAULT_FORMAT_STYLE)).lower()
    if format_style not in LoggingConfig.SUPPORTED_FORMATS:
        format_style = LoggingConfig.DEFAULT_FORMAT_STYLE

    formatter: logging.Formatter
    if format_style == 'json':
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(fmt=LoggingConfig.LOG_FORMAT, datefmt=LoggingConfig.DATE_FORMAT)

    handlers: List[Handler] = []
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    handlers.append(console_handler)

    if file_path:
        rotation_cfg = config_dict.get('rotation') if isinstance(config_dict.get('rotation'), dict) else {}
        max_mb = _coerce_positive_int(rotation_cfg.get('max_mb'), LoggingConfig.MAX_LOG_FILE_MB)
        backup_count = _coerce_positive_int(rotation_cfg.get('backup_count'), LoggingConfig.LOG_BACKUP_COUNT)
        log_dir = Path(file_path).parent
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            file_path,
            maxBytes=max_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding='utf-8',
        )
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    _clear_managed_handlers()
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in handlers:
        root_logger.addHandler(handler)
        _MANAGED_HANDLERS.append(handler)

    if file_path:
        logging.getLogger(__name__).info(f"Logging to: {file_path}")
    return file_path


def build_config(
    config_path: Optional[str] = None,
    strategy: Optional[str] = None,
    dialect: Optional[str] = None,
    varchar_length: Optional[int] = None,
) -> ConversionConfig:
    """
    Load the configuration file (if any) and apply command-line overrides.

    Without ``config_path``, ``merise.json`` in the working directory is used
    when it exists.

    Raises:
        FileNotFoundError: If an explicit config path does not exist.
        ConfigError: If the file or an override holds an invalid value.
    """
    if config_path:
        config = load_config(config_path)
    elif Path(CLIConfig.DEFAULT_CONFIG_FILENAME).exists():
        config = load_config(CLIConfig.DEFAULT_CONFIG_FILENAME)
    else:
        config = ConversionConfig()
    return config.with_overrides(
        inheritance_strategy=strategy,
        sql_dialect=dialect,
        default_varchar_length=varchar_length,
    )


def extract_code_block(content: str, level: Optional[ModelLevel] = None) -> Optional[Tuple[str, ModelLevel]]:
    """
    Return the first fenced ``merise-*`` block of a Markdown document.

    Args:
        content: Markdown text.
        level: Only accept blocks of this level.

    Returns:
        (block text, level of the block), or None when no block matches.
    """
    for match in FENCE_PATTERN.finditer(content):
        block_level = ModelLevel(match.group(1).split("-", 1)[1])
        if level is None or block_level is level:
            return match.group(2), block_level
    return None


def detect_level(text: str) -> Optional[ModelLevel]:
    """
    Guess the level of a micro-syntax document from its blocks.

    Conceptual keywords mean MCD; TABLE blocks whose columns carry a type
    token mean MPD, otherwise MLD.
    """
    scan = extract_blocks(text)
    if not scan.blocks:
        return None
    if any(block.keyword.upper() in MCD_KEYWORDS for block in scan.blocks):
        return ModelLevel.MCD
    for block in scan.blocks:
        for item in split_items(block.body):
            return ModelLevel.MPD if TYPED_COLUMN_PATTERN.match(item) else ModelLevel.MLD
    return ModelLevel.MLD


def read_input(file_path: Union[str, Path], level: Optional[str] = None) -> Tuple[str, ModelLevel]:
    """
    Read a micro-syntax document, from a plain file or a Markdown fence.

    Args:
        file_path: Input path.
        level: Level forced by the user; detected otherwise.

    Returns:
        (document text, level)

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If no usable content or level could be determined.
    """
    path = Path(file_path)
    if not path.is_file():
        raise FileNotFoundError(f"Input file not found: {file_path}")

    content = path.read_text(encoding='utf-8')
    forced = ModelLevel(level) if level else None

    if path.suffix.lower() in MARKDOWN_SUFFIXES or "```merise-" in content:
        block = extract_code_block(content, forced)
        if block is None:
            wanted = forced.fence_tag if forced else "merise-mcd, merise-mld or merise-mpd"
            raise ValueError(f"No ```{wanted} block found in {file_path}")
        return block

    detected = forced or detect_level(content)
    if detected is None:
        raise ValueError(f"Could not determine the model level of {file_path}; use --level/--from")
    return content, detected


def write_output(text: str, output_path: Optional[str]) -> None:
    """Write to ``output_path``, or to stdout when it is None."""
    if output_path:
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text if text.endswith("\n") else text + "\n", encoding='utf-8')
    else:
        print(text)

