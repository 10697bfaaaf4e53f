"""
Validation result types shared by every level of the toolchain.

Parsers, converters and the structural validator never raise for problems
found in a model; they record ``ValidationIssue`` objects in a
``ValidationResult`` and hand it back alongside the model. Callers decide
whether a result carrying errors may flow downstream.

Usage:
    from merise.shared.validation import Severity, IssueCategory, ValidationResult

    result = ValidationResult(source="mcd")
    result.add_issue(
        severity=Severity.ERROR,
        category=IssueCategory.MISSING_PRIMARY_KEY,
        message='Entity "CLIENT" has no [PK] attribute',
        location="ENTITY CLIENT",
    )
    if not result.is_valid:
        print(result.get_summary())
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, Iterable, List, Optional, TypeVar


class Severity(Enum):
    """Severity levels for issues."""
    ERROR = "error"         # Model must not be used downstream
    WARNING = "warning"     # Advisory only
    INFO = "info"


class IssueCategory(Enum):
    """Categories of issues, from syntax to structure."""
    SYNTAX_ERROR = "syntax_error"
    UNKNOWN_KEYWORD = "unknown_keyword"
    UNTERMINATED_BLOCK = "unterminated_block"
    INVALID_CARDINALITY = "invalid_cardinality"
    INVALID_STRATEGY = "invalid_strategy"
    MISSING_REQUIRED = "missing_required"
    MISSING_PRIMARY_KEY = "missing_primary_key"
    INSUFFICIENT_PARTICIPANTS = "insufficient_participants"
    INVALID_REFERENCE = "invalid_reference"
    DUPLICATE_NAME = "duplicate_name"
    ORPHAN_ENTITY = "orphan_entity"
    FOREIGN_KEY_CYCLE = "foreign_key_cycle"
    TYPE_MISMATCH = "type_mismatch"
    UNKNOWN_REFERENTIAL_ACTION = "unknown_referential_action"
    SKIPPED_CONSTRUCT = "skipped_construct"


class MeriseError(Exception):
    """Base class for toolchain exceptions."""


class MeriseSyntaxError(MeriseError):
    """Raised on demand when a parse result carrying errors is used."""

    def __init__(self, message: str, issues: Optional[List["ValidationIssue"]] = None):
        self.issues = list(issues or [])
        super().__init__(message)


class ConfigError(MeriseError):
    """Raised for invalid configuration values or files."""


@dataclass
class ValidationIssue:
    """A single problem found in a model or its source text."""
    severity: Severity
    category: IssueCategory
    message: str
    location: Optional[str] = None
    recommendation: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "severity": self.severity.value,
            "category": self.category.value,
            "message": self.message,
        }
        if self.location:
            result["location"] = self.location
        if self.recommendation:
            result["recommendation"] = self.recommendation
        return result

    def __str__(self) -> str:
        if self.location:
            return f"{self.location}: {self.message}"
        return self.message


@dataclass
class ValidationResult:
    """
    Ordered collection of issues plus free-form statistics.

    Attributes:
        source: Label of what was checked (a level name or a file path).
        issues: Issues in the order they were found.
        statistics: Counters collected while checking (entity_count, ...).
    """
    source: Optional[str] = None
    issues: List[ValidationIssue] = field(default_factory=list)
    statistics: Dict[str, Any] = field(default_factory=dict)

    def add_issue(
        self,
        severity: Severity,
        category: IssueCategory,
        message: str,
        location: Optional[str] = None,
        recommendation: Optional[str] = None,
    ) -> ValidationIssue:
        """Create, record and return a new issue."""
        issue = ValidationIssue(
            severity=severity,
            category=category,
            message=message,
            location=location,
            recommendation=recommendation,
        )
        self.issues.append(issue)
        return issue

    def error(
        self,
        category: IssueCategory,
        message: str,
        location: Optional[str] = None,
        recommendation: Optional[str] = None,
    ) -> ValidationIssue:
        return self.add_issue(Severity.ERROR, category, message, location, recommendation)

    def warning(
        self,
        category: IssueCategory,
        message: str,
        location: Optional[str] = None,
        recommendation: Optional[str] = None,
    ) -> ValidationIssue:
        return self.add_issue(Severity.WARNING, category, message, location, recommendation)

    def extend(self, issues: Iterable[ValidationIssue]) -> None:
        self.issues.extend(issues)

    def merge(self, other: "ValidationResult") -> None:
        """Append another result's issues and statistics into this one."""
        self.issues.extend(other.issues)
        self.statistics.update(other.statistics)

    @property
    def errors(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity is Severity.ERROR]

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity is Severity.WARNING]

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def warning_count(self) -> int:
        return len(self.warnings)

    @property
    def is_valid(self) -> bool:
        """True when no error-level issue was recorded."""
        return self.error_count == 0

    def by_category(self, category: IssueCategory) -> List[ValidationIssue]:
        return [i for i in self.issues if i.category is category]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "is_valid": self.is_valid,
            "error_count": self.error_count,
            "warning_count": self.warning_count,
            "issues": [i.to_dict() for i in self.issues],
            "statistics": self.statistics,
        }

    def get_summary(self) -> str:
        """Generate a human-readable report."""
        lines = []
        lines.append("=" * 60)
        lines.append(f"VALIDATION REPORT{f' - {self.source}' if self.source else ''}")
        lines.append("=" * 60)
        if self.is_valid:
            lines.append("RESULT: valid")
        else:
            lines.append("RESULT: invalid")
        lines.append(f"  Errors:   {self.error_count}")
        lines.append(f"  Warnings: {self.warning_count}")

        if self.statistics:
            lines.append("")
            lines.append("STATISTICS:")
            for key, value in self.statistics.items():
                lines.append(f"  {key}: {value}")

        if self.issues:
            lines.append("")
            lines.append("-" * 60)
            icons = {"error": "✗", "warning": "⚠", "info": "ℹ"}
            for issue in self.issues:
                icon = icons.get(issue.severity.value, "•")
                lines.append(f"  {icon} {issue}")
                if issue.recommendation:
                    lines.append(f"    → {issue.recommendation}")

        lines.append("=" * 60)
        return "\n".join(lines)


TModel = TypeVar("TModel")


@dataclass
class ParseResult(Generic[TModel]):
    """
    Model produced by a parser together with the issues found in the text.

    Blocks with syntax errors are still represented in ``model`` when
    enough of them could be read; callers are expected to check
    ``is_valid`` before trusting the model.
    """
    model: TModel
    validation: ValidationResult = field(default_factory=ValidationResult)

    @property
    def errors(self) -> List[ValidationIssue]:
        return self.validation.errors

    @property
    def warnings(self) -> List[ValidationIssue]:
        return self.validation.warnings

    @property
    def is_valid(self) -> bool:
        return self.validation.is_valid

    def raise_for_errors(self) -> TModel:
        """Return the model, or raise MeriseSyntaxError if errors were recorded."""
        if not self.is_valid:
            details = "; ".join(str(e) for e in self.errors)
            raise MeriseSyntaxError(
                f"{self.validation.error_count} error(s) while parsing: {details}",
                issues=self.errors,
            )
        return self.model
