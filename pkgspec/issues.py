"""Validation errors, their codes and the warnings-as-errors switch."""

from __future__ import annotations

import enum
import os

ENV_VAR_WARNINGS_AS_ERRORS = "PACKAGE_SPEC_WARNINGS_AS_ERRORS"

_TRUE_VALUES = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE_VALUES = {"0", "f", "F", "FALSE", "false", "False"}


class ErrorCode(str, enum.Enum):
    """Codes that allow specific validation errors to be filtered."""

    UNASSIGNED = ""
    NON_GA_SPEC_ON_GA_PACKAGE = "non_ga_spec_on_ga_package"
    PRERELEASE_FEATURE_ON_GA_PACKAGE = "prerelease_feature_on_ga_package"
    KIBANA_DASHBOARD_WITHOUT_FILTER = "kibana_dashboard_without_filter"
    KIBANA_DASHBOARD_WITH_QUERY_BUT_NO_FILTER = "kibana_dashboard_with_query_but_no_filter"
    KIBANA_DANGLING_OBJECT_IDS = "kibana_dangling_object_ids"
    VISUALIZATION_BY_VALUE = "visualization_by_value"
    MINIMUM_KIBANA_VERSION = "minimum_kibana_version"
    MESSAGE_RENAME_TO_EVENT_ORIGINAL = "message_rename_to_event_original"


class ValidationError(Exception):
    """A validation problem found in a package, optionally carrying a code."""

    def __init__(self, message: object, code: ErrorCode = ErrorCode.UNASSIGNED) -> None:
        self.message = str(message)
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ValidationError):
            return NotImplemented
        return self.message == other.message and self.code == other.code

    def __hash__(self) -> int:
        return hash((self.message, self.code))


def is_defined_warnings_as_errors() -> bool:
    """Return True when the environment asks for warnings to be treated as errors."""
    value = os.environ.get(ENV_VAR_WARNINGS_AS_ERRORS)
    if value is None:
        return False
    if value in _TRUE_VALUES:
        return True
    return False


def enable_warnings_as_errors() -> None:
    """Turn warnings into errors for this process."""
    os.environ[ENV_VAR_WARNINGS_AS_ERRORS] = "true"


def disable_warnings_as_errors() -> None:
    """Stop treating warnings as errors for this process."""
    os.environ.pop(ENV_VAR_WARNINGS_AS_ERRORS, None)