# ================================================================================
# Response Validator
# ================================================================================
#
# Rule-based validation of restful-booker JSON responses, with a summary
# attached to the Allure report.
#
# Besides generic field rules it ships the shape checks used across the suite:
#   - validate_booking:     a booking object (firstname, totalprice, bookingdates, ...)
#   - validate_auth_token:  the body returned by POST /auth
#
# ================================================================================

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Tuple

import allure
from loguru import logger


class ValidationType(Enum):
    EQUAL = "equal"
    NOT_EQUAL = "not_equal"
    IS_NOT_NULL = "is_not_null"
    CONTAINS = "contains"
    REGEX_MATCH = "regex_match"
    LENGTH_GREATER_THAN = "length_greater_than"
    TYPE_CHECK = "type_check"
    RANGE = "range"
    IN_LIST = "in_list"


@dataclass
class ValidationRule:
    """
    A single check against one response field.

    Attributes:
        field: Dot path into the body, e.g. ``bookingdates.checkin`` or ``items[0].id``
        validation_type: Kind of check
        expected: Expected value, pattern, type name or range
        description: Shown in logs and the Allure summary
        required: Missing optional fields pass
    """
    field: str
    validation_type: ValidationType
    expected: Any = None
    description: str = ""
    required: bool = True


@dataclass
class ValidationResult:
    passed: bool
    rule: ValidationRule
    actual_value: Any = None
    error_message: str = ""


_MISSING = object()

_TYPE_MAP = {
    "string": str,
    "str": str,
    "int": int,
    "integer": int,
    "number": (int, float),
    "bool": bool,
    "boolean": bool,
    "list": list,
    "array": list,
    "dict": dict,
    "object": dict,
    "null": type(None),
}

ISO_DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"

BOOKING_RULES: List[ValidationRule] = [
    ValidationRule("firstname", ValidationType.TYPE_CHECK, "string", "firstname is a string"),
    ValidationRule("lastname", ValidationType.TYPE_CHECK, "string", "lastname is a string"),
    ValidationRule("totalprice", ValidationType.TYPE_CHECK, "number", "totalprice is a number"),
    ValidationRule("depositpaid", ValidationType.TYPE_CHECK, "boolean", "depositpaid is a boolean"),
    ValidationRule("bookingdates", ValidationType.TYPE_CHECK, "object", "bookingdates is an object"),
    ValidationRule("bookingdates.checkin", ValidationType.REGEX_MATCH, ISO_DATE_PATTERN, "checkin is YYYY-MM-DD"),
    ValidationRule("bookingdates.checkout", ValidationType.REGEX_MATCH, ISO_DATE_PATTERN, "checkout is YYYY-MM-DD"),
    ValidationRule(
        "additionalneeds", ValidationType.TYPE_CHECK, "string", "additionalneeds is a string", required=False
    ),
]

AUTH_TOKEN_RULES: List[ValidationRule] = [
    ValidationRule("token", ValidationType.TYPE_CHECK, "string", "token is a string"),
    ValidationRule("token", ValidationType.LENGTH_GREATER_THAN, 0, "token is not empty"),
]


class ResponseValidator:
    """
    Example:
        validator = ResponseValidator()
        validator.validate_and_assert(
            body,
            [ValidationRule("bookingid", ValidationType.TYPE_CHECK, "integer")],
        )
        validator.validate_booking(body["booking"], expected=payload)
    """

    def __init__(self):
        self._validation_handlers = {
            ValidationType.EQUAL: self._validate_equal,
            ValidationType.NOT_EQUAL: self._validate_not_equal,
            ValidationType.IS_NOT_NULL: self._validate_is_not_null,
            ValidationType.CONTAINS: self._validate_contains,
            ValidationType.REGEX_MATCH: self._validate_regex_match,
            ValidationType.LENGTH_GREATER_THAN: self._validate_length_greater_than,
            ValidationType.TYPE_CHECK: self._validate_type_check,
            ValidationType.RANGE: self._validate_range,
            ValidationType.IN_LIST: self._validate_in_list,
        }

    def validate(self, response_data: Any, rules: List[ValidationRule]) -> List[ValidationResult]:
        with allure.step(f"Validating response against {len(rules)} rules"):
            results = []
            for rule in rules:
                result = self._apply_rule(response_data, rule)
                results.append(result)

                status_icon = "✅" if result.passed else "❌"
                log_msg = f"{status_icon} {rule.description or rule.field}: {result.passed}"
                if result.passed:
                    logger.debug(log_msg)
                else:
                    logger.warning(f"{log_msg} - {result.error_message}")

            self._attach_validation_summary(results)
            return results

    def validate_and_assert(self, response_data: Any, rules: List[ValidationRule]) -> None:
        """
        Raises:
            AssertionError: Listing every failed rule
        """
        results = self.validate(response_data, rules)
        failures = [r for r in results if not r.passed]

        if failures:
            error_text = "\n".join(f"- {f.rule.field}: {f.error_message}" for f in failures)
            raise AssertionError(
                f"Response validation failed ({len(failures)}/{len(results)} rules):\n{error_text}"
            )

    def validate_booking(self, booking: Any, expected: Dict[str, Any] = None) -> None:
        """
        Assert ``booking`` has the restful-booker booking shape.

        When ``expected`` (e.g. the request payload) is given, every field in
        it must also match, nested ``bookingdates`` included.
        """
        rules = list(BOOKING_RULES)
        if expected:
            rules.extend(self._equality_rules(expected))
        self.validate_and_assert(booking, rules)

    def validate_auth_token(self, response_data: Any) -> None:
        """Assert a ``POST /auth`` body carries a non-empty token."""
        self.validate_and_assert(response_data, AUTH_TOKEN_RULES)

    @classmethod
    def _equality_rules(cls, expected: Dict[str, Any], prefix: str = "") -> List[ValidationRule]:
        rules = []
        for key, value in expected.items():
            path = f"{prefix}{key}"
            if isinstance(value, dict):
                rules.extend(cls._equality_rules(value, f"{path}."))
            else:
                rules.append(ValidationRule(path, ValidationType.EQUAL, value, f"{path} matches"))
        return rules

    def _apply_rule(self, response_data: Any, rule: ValidationRule) -> ValidationResult:
        actual_value = self._get_nested_value(response_data, rule.field)
        if actual_value is _MISSING:
            if rule.required:
                return ValidationResult(False, rule, error_message=f"Required field not found: {rule.field}")
            return ValidationResult(True, rule, error_message=f"Optional field not found: {rule.field}")

        handler = self._validation_handlers.get(rule.validation_type)
        if handler is None:
            return ValidationResult(
                False, rule, actual_value, f"Unknown validation type: {rule.validation_type}"
            )

        try:
            passed, error_message = handler(actual_value, rule.expected)
        except (TypeError, ValueError) as e:
            return ValidationResult(False, rule, actual_value, f"Validation error: {e}")
        return ValidationResult(passed, rule, actual_value, error_message)

    @staticmethod
    def _get_nested_value(data: Any, key_path: str) -> Any:
        """Resolve ``a.b[0].c``; returns ``_MISSING`` when any step is absent."""
        current = data
        for key in key_path.split("."):
            array_match = re.fullmatch(r"(\w+)\[(\d+)\]", key)
            try:
                if array_match:
                    current = current[array_match.group(1)][int(array_match.group(2))]
                else:
                    current = current[key]
            except (KeyError, IndexError, TypeError):
                return _MISSING
        return current

    # Validation handlers
    @staticmethod
    def _validate_equal(actual: Any, expected: Any) -> Tuple[bool, str]:
        passed = actual == expected
        return passed, "" if passed else f"Expected '{expected}', got '{actual}'"

    @staticmethod
    def _validate_not_equal(actual: Any, expected: Any) -> Tuple[bool, str]:
        passed = actual != expected
        return passed, "" if passed else f"Expected not equal to '{expected}'"

    @staticmethod
    def _validate_is_not_null(actual: Any, expected: Any) -> Tuple[bool, str]:
        passed = actual is not None
        return passed, "" if passed else "Expected non-null value, got null"

    @staticmethod
    def _validate_contains(actual: Any, expected: Any) -> Tuple[bool, str]:
        passed = str(expected) in str(actual)
        return passed, "" if passed else f"'{actual}' does not contain '{expected}'"

    @staticmethod
    def _validate_regex_match(actual: Any, expected: str) -> Tuple[bool, str]:
        try:
            passed = re.match(expected, str(actual)) is not None
        except re.error as e:
            return False, f"Invalid regex pattern: {e}"
        return passed, "" if passed else f"'{actual}' does not match pattern '{expected}'"

    @staticmethod
    def _validate_length_greater_than(actual: Any, expected: int) -> Tuple[bool, str]:
        actual_len = len(actual) if hasattr(actual, "__len__") else 0
        passed = actual_len > expected
        return passed, "" if passed else f"Expected length > {expected}, got {actual_len}"

    @staticmethod
    def _validate_type_check(actual: Any, expected: str) -> Tuple[bool, str]:
        expected_type = _TYPE_MAP.get(expected.lower())
        if expected_type is None:
            return False, f"Unknown type: {expected}"

        # bool is an int subclass; keep the two apart
        if isinstance(actual, bool) and expected.lower() not in ("bool", "boolean"):
            passed = False
        else:
            passed = isinstance(actual, expected_type)
        return passed, "" if passed else f"Expected type {expected}, got {type(actual).__name__}"

    @staticmethod
    def _validate_range(actual: Any, expected: Dict) -> Tuple[bool, str]:
        min_val = expected.get("min")
        max_val = expected.get("max")
        if min_val is not None and actual < min_val:
            return False, f"Value {actual} is less than minimum {min_val}"
        if max_val is not None and actual > max_val:
            return False, f"Value {actual} is greater than maximum {max_val}"
        return True, ""

    @staticmethod
    def _validate_in_list(actual: Any, expected: List) -> Tuple[bool, str]:
        passed = actual in expected
        return passed, "" if passed else f"'{actual}' not in {expected}"

    @staticmethod
    def _attach_validation_summary(results: List[ValidationResult]) -> None:
        passed_count = sum(1 for r in results if r.passed)
        summary_lines = [
            f"Total Rules: {len(results)}",
            f"Passed: {passed_count}",
            f"Failed: {len(results) - passed_count}",
            "",
            "Details:",
            "-" * 40,
        ]
        for result in results:
            line = f"{'✅ PASS' if result.passed else '❌ FAIL'} | {result.rule.field}"
            if not result.passed:
                line += f" | {result.error_message}"
            summary_lines.append(line)

        allure.attach(
            "\n".join(summary_lines),
            name="Validation Summary",
            attachment_type=allure.attachment_type.TEXT,
        )


__all__ = [
    "ResponseValidator",
    "ValidationRule",
    "ValidationResult",
    "ValidationType",
    "BOOKING_RULES",
    "AUTH_TOKEN_RULES",
]
