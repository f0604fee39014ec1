"""Tests for missive.errors — hierarchy and messages."""

import pytest

from missive.errors import (
    ConfigurationError,
    InvalidArgumentError,
    InvalidPortError,
    InvalidSchemeError,
    MissiveError,
    OperationError,
    ParseError,
)


class TestHierarchy:
    @pytest.mark.parametrize(
        "cls",
        [InvalidArgumentError, ParseError, InvalidSchemeError, InvalidPortError, OperationError, ConfigurationError],
    )
    def test_all_derive_from_missive_error(self, cls: type) -> None:
        assert issubclass(cls, MissiveError)

    def test_invalid_argument_is_value_error(self) -> None:
        assert issubclass(InvalidArgumentError, ValueError)
        assert issubclass(ParseError, ValueError)

    def test_operation_error_is_runtime_error(self) -> None:
        assert issubclass(OperationError, RuntimeError)

    def test_uri_errors_are_invalid_arguments(self) -> None:
        for cls in (ParseError, InvalidSchemeError, InvalidPortError):
            assert issubclass(cls, InvalidArgumentError)


class TestMessages:
    def test_parse_error_default(self) -> None:
        assert str(ParseError()) == "Unable to parse URI"

    def test_invalid_scheme(self) -> None:
        err = InvalidSchemeError("ftp")
        assert err.scheme == "ftp"
        assert str(err) == 'Invalid HTTP scheme "ftp" provided'

    def test_invalid_port(self) -> None:
        err = InvalidPortError(70000)
        assert err.port == 70000
        assert str(err) == 'Invalid HTTP port "70000". Must be between 1 and 65535'

    def test_catch_as_builtin(self) -> None:
        with pytest.raises(ValueError):
            raise InvalidSchemeError("ftp")
