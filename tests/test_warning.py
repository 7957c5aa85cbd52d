import logging

import pytest

from pkgspec.issues import (
    ErrorCode,
    ValidationError,
    disable_warnings_as_errors,
    enable_warnings_as_errors,
)
from pkgspec.semantic.warning import warn_on


@pytest.fixture(autouse=True)
def _clean_env():
    disable_warnings_as_errors()
    yield
    disable_warnings_as_errors()


def _validation(errors):
    def run(fsys):
        return list(errors)

    return run


def test_coded_errors_are_filtered_out():
    errors = [
        ValidationError("plain problem"),
        ValidationError("coded problem", ErrorCode.VISUALIZATION_BY_VALUE),
    ]
    result = warn_on(_validation(errors))(None)
    assert [str(e) for e in result] == ["plain problem"]


def test_coded_errors_are_logged(caplog):
    errors = [ValidationError("coded problem", ErrorCode.MINIMUM_KIBANA_VERSION)]
    with caplog.at_level(logging.WARNING):
        result = warn_on(_validation(errors))(None)
    assert result == []
    assert "Warning: coded problem" in caplog.text


def test_warnings_as_errors_keeps_everything():
    enable_warnings_as_errors()
    errors = [
        ValidationError("plain problem"),
        ValidationError("coded problem", ErrorCode.VISUALIZATION_BY_VALUE),
    ]
    result = warn_on(_validation(errors))(None)
    assert [str(e) for e in result] == ["plain problem", "coded problem"]


def test_no_errors_gives_empty_list():
    assert warn_on(_validation([]))(None) == []


def test_order_of_unassigned_errors_is_kept():
    errors = [
        ValidationError("first"),
        ValidationError("skipped", ErrorCode.VISUALIZATION_BY_VALUE),
        ValidationError("second"),
    ]
    result = warn_on(_validation(errors))(None)
    assert [str(e) for e in result] == ["first", "second"]