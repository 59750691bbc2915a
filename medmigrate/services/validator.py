"""Validation service for migration records."""

import re
import logging
from typing import Any, Callable, Dict, List
from datetime import date, datetime

from dateutil import parser as date_parser

from ..models.schema import (
    RuleType,
    TargetSchema,
    FieldRule,
)
from ..models.record import ValidationError

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class RecordValidator:
    """
    Validator for transformed rows before they are written.

    Rules only apply to columns present in the row: a legacy dump that
    never had a column is not penalised for it.

    Supports:
    - Required field validation (None and "" both count as missing)
    - Type validation (string, number, date, email)
    - Max length validation
    - Enum validation
    """

    def __init__(self):
        """Initialize the validator."""
        self._type_checks: Dict[RuleType, Callable[[str, Any, FieldRule], List[ValidationError]]] = {
            RuleType.STRING: self._check_string,
            RuleType.NUMBER: self._check_number,
            RuleType.DATE: self._check_date,
            RuleType.EMAIL: self._check_email,
        }

    def validate_record(self, data: Dict[str, Any], schema: TargetSchema) -> List[ValidationError]:
        """
        Validate a row against a target schema's rules.

        Args:
            data: Row payload keyed by target column
            schema: The target table schema

        Returns:
            List of validation errors
        """
        errors = []

        for field_name, rule in schema.rules.items():
            if field_name in data:
                errors.extend(self._validate_field(field_name, data[field_name], rule))

        return errors

    def is_valid(self, data: Dict[str, Any], schema: TargetSchema) -> bool:
        """Quick check if a row is valid."""
        return not self.validate_record(data, schema)

    def _validate_field(self, field_name: str, value: Any, rule: FieldRule) -> List[ValidationError]:
        """Validate a single field."""
        if rule.required and (value is None or value == ""):
            return [ValidationError(
                field=field_name,
                message=f"{field_name} is required",
                error_type="required",
            )]

        if value is None:
            return []  # Optional field with no value is OK

        return self._type_checks[rule.type](field_name, value, rule)

    def _check_string(self, field_name: str, value: Any, rule: FieldRule) -> List[ValidationError]:
        if not isinstance(value, str):
            return [ValidationError(
                field=field_name,
                message=f"{field_name} must be a string",
                error_type="type",
                value=value,
            )]

        errors = []
        if rule.max_length and len(value) > rule.max_length:
            errors.append(ValidationError(
                field=field_name,
                message=f"{field_name} must be at most {rule.max_length} characters",
                error_type="max_length",
                value=len(value),
            ))

        if rule.enum_values and value not in rule.enum_values:
            errors.append(ValidationError(
                field=field_name,
                message=f"{field_name} must be one of: {', '.join(rule.enum_values)}",
                error_type="enum",
                value=value,
            ))

        return errors

    def _check_number(self, field_name: str, value: Any, rule: FieldRule) -> List[ValidationError]:
        if self._is_number(value):
            return []
        return [ValidationError(
            field=field_name,
            message=f"{field_name} must be a number",
            error_type="type",
            value=value,
        )]

    def _check_date(self, field_name: str, value: Any, rule: FieldRule) -> List[ValidationError]:
        if self._is_valid_date(value):
            return []
        return [ValidationError(
            field=field_name,
            message=f"{field_name} must be a valid date",
            error_type="type",
            value=value,
        )]

    def _check_email(self, field_name: str, value: Any, rule: FieldRule) -> List[ValidationError]:
        if isinstance(value, str) and not EMAIL_PATTERN.match(value):
            return [ValidationError(
                field=field_name,
                message=f"{field_name} must be a valid email address",
                error_type="format",
                value=value,
            )]
        return []

    def _is_number(self, value: Any) -> bool:
        """Numbers and numeric strings; booleans are not numbers."""
        if isinstance(value, bool):
            return False
        if isinstance(value, (int, float)):
            return True
        if isinstance(value, str):
            try:
                float(value)
                return True
            except ValueError:
                return False
        return False

    def _is_valid_date(self, value: Any) -> bool:
        """Check if value is a date, or a string dateutil can read as one."""
        if isinstance(value, (date, datetime)):
            return True
        if not isinstance(value, str) or not value.strip():
            return False
        try:
            date_parser.parse(value)
            return True
        except (ValueError, OverflowError):
            return False
