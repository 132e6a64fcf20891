"""
Input and Document Validation

Two kinds of input reach the ledger from outside:

MUTATION INPUT:
- Client names, task titles and prices, goal amounts
- Typed by the user, so blank strings and non-numbers are expected
- A failed check means the mutation is simply not performed

EXTERNAL DOCUMENTS:
- Imported backup files and records read back from a store
- A minimal schema check runs before the full model parse:
  `clients` and `goals` must be present and must be lists

IMPORTANT: Validation never fixes input. It reports issues and the
caller decides what to do.
"""

import math
from typing import Any, Optional

from pydantic import BaseModel, Field


class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'not_a_number', 'out_of_range')"
    )
    message: str


class ValidationResult(BaseModel):
    """Outcome of one validation pass."""

    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.issues

    @property
    def messages(self) -> list[str]:
        return [issue.message for issue in self.issues]


def parse_amount(value: Any) -> Optional[float]:
    """
    Parse a user-entered amount.

    Accepts ints, floats and numeric strings. Returns None for anything
    that is not a finite number.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(amount):
        return None
    return amount


class LedgerInputValidator:
    """Checks mutation input before any new state is built."""

    def validate_client_name(self, name: Any) -> ValidationResult:
        issues = []
        if not isinstance(name, str) or not name.strip():
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Client name is required",
            ))
        return ValidationResult(issues=issues)

    def validate_task(self, title: Any, price: Any) -> ValidationResult:
        issues = []

        if not isinstance(title, str) or not title.strip():
            issues.append(ValidationIssue(
                field="title",
                issue_type="missing",
                message="Task title is required",
            ))

        amount = parse_amount(price)
        if amount is None:
            issues.append(ValidationIssue(
                field="price",
                issue_type="not_a_number",
                message=f"Price is not a number: {price!r}",
            ))
        elif amount < 0:
            issues.append(ValidationIssue(
                field="price",
                issue_type="out_of_range",
                message="Price cannot be negative",
            ))

        return ValidationResult(issues=issues)

    def validate_goal_amount(self, amount: Any) -> ValidationResult:
        issues = []
        parsed = parse_amount(amount)
        if parsed is None:
            issues.append(ValidationIssue(
                field="target_amount",
                issue_type="not_a_number",
                message=f"Goal amount is not a number: {amount!r}",
            ))
        elif parsed <= 0:
            issues.append(ValidationIssue(
                field="target_amount",
                issue_type="out_of_range",
                message="Goal amount must be greater than zero",
            ))
        return ValidationResult(issues=issues)


class DocumentValidator:
    """
    Minimal schema check for state documents coming from outside.

    This runs before the full pydantic parse so that obviously foreign
    files (an array, a config file, a different app's backup) get a
    clear message instead of a wall of field errors.
    """

    REQUIRED_COLLECTIONS = ("clients", "goals")

    def validate(self, document: Any) -> ValidationResult:
        if not isinstance(document, dict):
            return ValidationResult(issues=[ValidationIssue(
                field="document",
                issue_type="invalid_format",
                message="Document must be a JSON object",
            )])

        issues = []
        for name in self.REQUIRED_COLLECTIONS:
            if name not in document:
                issues.append(ValidationIssue(
                    field=name,
                    issue_type="missing",
                    message=f"Document has no '{name}' field",
                ))
            elif not isinstance(document[name], list):
                issues.append(ValidationIssue(
                    field=name,
                    issue_type="invalid_format",
                    message=f"'{name}' must be a list",
                ))
        return ValidationResult(issues=issues)
