"""Validation package."""

from haseela.validation.validator import (
    DocumentValidator,
    LedgerInputValidator,
    ValidationIssue,
    ValidationResult,
    parse_amount,
)

__all__ = [
    "DocumentValidator",
    "LedgerInputValidator",
    "ValidationIssue",
    "ValidationResult",
    "parse_amount",
]
