"""Turn coded validation errors into warnings."""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable

from ..issues import ValidationError, is_defined_warnings_as_errors

logger = logging.getLogger(__name__)

Validation = Callable[[Any], list[ValidationError]]


def _is_unassigned(error: ValidationError) -> bool:
    return error.code == ValidationError("").code


def warn_on(validation: Validation) -> Validation:
    """Wrap a validation so that its coded errors are logged as warnings.

    Errors without a code are returned as they are. When warnings are treated
    as errors, everything is returned.
    """

    @functools.wraps(validation)
    def wrapper(fsys: Any) -> list[ValidationError]:
        errors = list(validation(fsys) or [])
        if is_defined_warnings_as_errors():
            return errors

        kept: list[ValidationError] = []
        for error in errors:
            if not _is_unassigned(error):
                logger.warning("Warning: %s", error)
                continue
            kept.append(error)
        return kept

    return wrapper