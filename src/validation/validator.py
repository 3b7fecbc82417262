"""
Input Validation

DESIGN DECISION: Raw form input is checked BEFORE any record is built.
A refused input never becomes a partial Transaction and never reaches
the aggregation engine.

Checks mirror the entry form:
- Description must be present
- Amount must parse (comma or dot as decimal separator) and be positive
- Category must be chosen for manual entries
- Type and status must be known values
- Fixed expense day must be a day of month

IMPORTANT: Validation NEVER silently fixes issues.
It reports them and the caller decides what to show.
"""

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from pydantic import ValidationError

from src.models.finance import (
    FixedExpenseDraft,
    Transaction,
    TransactionDraft,
    TransactionStatus,
    TransactionType,
)
from src.models.validation import ValidationIssue, ValidationResult


class InputRejectedError(ValueError):
    """Raw input was refused; nothing was constructed."""

    def __init__(self, result: ValidationResult):
        self.result = result
        messages = "; ".join(issue.message for issue in result.issues if issue.severity == "error")
        super().__init__(messages or "Input rejected")

    @property
    def issues(self) -> list[ValidationIssue]:
        return self.result.issues


def parse_amount(value: Any) -> Optional[Decimal]:
    """
    Parse a user-entered amount.

    Accepts numbers and strings using either ',' or '.' as decimal separator.
    Returns None when the value cannot be read as a number.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float)):
        amount = Decimal(str(value))
    else:
        text = str(value).strip().replace(",", ".")
        if not text:
            return None
        try:
            amount = Decimal(text)
        except InvalidOperation:
            return None
    # NaN and infinities cannot be compared or summed
    if not amount.is_finite():
        return None
    return amount


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _error(field: str, issue_type: str, message: str, fix: Optional[str] = None) -> ValidationIssue:
    return ValidationIssue(
        field=field,
        issue_type=issue_type,
        message=message,
        severity="error",
        suggested_fix=fix,
    )


def _pydantic_issues(exc: ValidationError) -> list[ValidationIssue]:
    issues = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ())) or "record"
        issues.append(_error(location, err.get("type", "invalid"), err.get("msg", "Invalid value")))
    return issues


class TransactionValidator:
    """
    Validates transaction form input and builds drafts from it.

    Usage:
        draft = TransactionValidator().build_draft(form_data)
    """

    def __init__(self, require_category: bool = True):
        """
        Args:
            require_category: Manual entries must pick a category.
                              Imports may leave it empty (falls back to the default).
        """
        self._require_category = require_category

    def validate(self, data: dict) -> ValidationResult:
        """Check raw input without building anything."""
        issues = []

        if _is_blank(data.get("description")):
            issues.append(_error(
                "description",
                "missing",
                "La descripción es obligatoria",
                "Escribe una breve descripción del movimiento",
            ))

        raw_amount = data.get("amount")
        amount = parse_amount(raw_amount)
        if _is_blank(raw_amount):
            issues.append(_error("amount", "missing", "El importe es obligatorio"))
        elif amount is None:
            issues.append(_error(
                "amount",
                "invalid_format",
                f"Importe no válido: {raw_amount!r}",
                "Usa solo números, con coma o punto para los decimales",
            ))
        elif amount <= 0:
            issues.append(_error("amount", "out_of_range", "El importe debe ser mayor que cero"))

        transaction_type = data.get("type")
        if transaction_type not in {t.value for t in TransactionType} and not isinstance(
            transaction_type, TransactionType
        ):
            issues.append(_error("type", "invalid_value", f"Tipo desconocido: {transaction_type!r}"))

        status = data.get("status")
        if status is not None and status not in {s.value for s in TransactionStatus} and not isinstance(
            status, TransactionStatus
        ):
            issues.append(_error("status", "invalid_value", f"Estado desconocido: {status!r}"))

        if self._require_category and _is_blank(data.get("category")):
            issues.append(_error(
                "category",
                "missing",
                "Selecciona una categoría",
            ))

        raw_date = data.get("date")
        if _is_blank(raw_date):
            issues.append(_error("date", "missing", "La fecha es obligatoria"))
        elif not isinstance(raw_date, date):
            try:
                date.fromisoformat(str(raw_date))
            except ValueError:
                issues.append(_error(
                    "date",
                    "invalid_format",
                    f"Fecha no válida: {raw_date!r}",
                    "Usa el formato AAAA-MM-DD",
                ))

        return ValidationResult(
            is_valid=not any(issue.severity == "error" for issue in issues),
            issues=issues,
        )

    def _normalized(self, data: dict) -> dict:
        normalized = dict(data)
        normalized["amount"] = parse_amount(data.get("amount"))
        normalized.setdefault("status", TransactionStatus.PAID.value)
        if normalized["status"] is None:
            normalized["status"] = TransactionStatus.PAID.value
        return normalized

    def build_draft(self, data: dict) -> TransactionDraft:
        """
        Validate and build a draft for the add-transaction intent.

        Raises:
            InputRejectedError: If any error-level issue is found
        """
        result = self.validate(data)
        if not result.is_valid:
            raise InputRejectedError(result)
        payload = self._normalized(data)
        payload.pop("id", None)
        try:
            return TransactionDraft.model_validate(payload)
        except ValidationError as e:
            raise InputRejectedError(ValidationResult(is_valid=False, issues=_pydantic_issues(e)))

    def build_transaction(self, data: dict) -> Transaction:
        """
        Validate a full record for the edit intent (id required).

        Raises:
            InputRejectedError: If the id is missing or any field is invalid
        """
        result = self.validate(data)
        if _is_blank(data.get("id")):
            result = ValidationResult(
                is_valid=False,
                issues=result.issues + [_error("id", "missing", "Falta el identificador del movimiento")],
            )
        if not result.is_valid:
            raise InputRejectedError(result)
        try:
            return Transaction.model_validate(self._normalized(data))
        except ValidationError as e:
            raise InputRejectedError(ValidationResult(is_valid=False, issues=_pydantic_issues(e)))

    @staticmethod
    def get_user_friendly_summary(result: ValidationResult) -> str:
        """One line per problem, for showing next to the form."""
        if result.is_valid and not result.warnings:
            return "✅ Todo correcto."

        lines = []
        for issue in result.issues:
            if issue.severity == "error":
                lines.append(f"❌ {issue.message}")
                if issue.suggested_fix:
                    lines.append(f"   💡 {issue.suggested_fix}")
        for warning in result.warnings:
            lines.append(f"⚠️ {warning}")
        return "\n".join(lines)


class FixedExpenseValidator:
    """Validates the recurring expense form."""

    def validate(self, data: dict) -> ValidationResult:
        issues = []

        if _is_blank(data.get("description")):
            issues.append(_error("description", "missing", "La descripción es obligatoria"))

        amount = parse_amount(data.get("amount"))
        if amount is None:
            issues.append(_error("amount", "invalid_format", "Importe no válido"))
        elif amount <= 0:
            issues.append(_error("amount", "out_of_range", "El importe debe ser mayor que cero"))

        day = data.get("day")
        if not _is_blank(day):
            try:
                day_number = int(day)
            except (TypeError, ValueError):
                issues.append(_error("day", "invalid_format", f"Día no válido: {day!r}"))
            else:
                if not 1 <= day_number <= 31:
                    issues.append(_error("day", "out_of_range", "El día debe estar entre 1 y 31"))

        return ValidationResult(
            is_valid=not any(issue.severity == "error" for issue in issues),
            issues=issues,
        )

    def build_draft(self, data: dict) -> FixedExpenseDraft:
        """
        Raises:
            InputRejectedError: If any error-level issue is found
        """
        result = self.validate(data)
        if not result.is_valid:
            raise InputRejectedError(result)
        payload = dict(data)
        payload.pop("id", None)
        payload["amount"] = parse_amount(data.get("amount"))
        if _is_blank(payload.get("day")):
            payload["day"] = None
        else:
            payload["day"] = int(payload["day"])
        try:
            return FixedExpenseDraft.model_validate(payload)
        except ValidationError as e:
            raise InputRejectedError(ValidationResult(is_valid=False, issues=_pydantic_issues(e)))
