"""
Conversion result returned by the model converters.
"""

from dataclasses import dataclass, field
from typing import Generic, TypeVar

from .validation import ValidationResult

TModel = TypeVar("TModel")


@dataclass
class ConversionResult(Generic[TModel]):
    """
    Freshly built target model plus conversion-time issues.

    Attributes:
        model: The converted model (never aliased with the input).
        validation: Warnings and errors raised while applying the rules.
    """
    model: TModel
    validation: ValidationResult = field(default_factory=ValidationResult)

    @property
    def is_valid(self) -> bool:
        return self.validation.is_valid

