"""Tests for wren.errors — exception hierarchy and error bodies."""

import pytest

from wren.errors import (
    ConfigurationError,
    HTTPError,
    InternalError,
    InvalidVersion,
    MethodNotAllowed,
    NotFound,
    UnsupportedMediaType,
    WrenError,
)


class TestHierarchy:
    @pytest.mark.parametrize(
        "error",
        [NotFound(), MethodNotAllowed(frozenset({"GET"})), InvalidVersion(), InternalError()],
    )
    def test_http_errors_are_wren_errors(self, error: HTTPError) -> None:
        assert isinstance(error, HTTPError)
        assert isinstance(error, WrenError)

    def test_configuration_error(self) -> None:
        assert issubclass(ConfigurationError, WrenError)
        assert not issubclass(ConfigurationError, HTTPError)


class TestStatusAndCode:
    @pytest.mark.parametrize(
        ("error", "status", "code"),
        [
            (NotFound(), 404, "ResourceNotFound"),
            (MethodNotAllowed(frozenset({"GET"})), 405, "MethodNotAllowed"),
            (InvalidVersion(), 400, "InvalidVersion"),
            (UnsupportedMediaType(), 415, "UnsupportedMediaType"),
            (InternalError(), 500, "InternalError"),
        ],
    )
    def test_status_and_code(self, error: HTTPError, status: int, code: str) -> None:
        assert error.status == status
        assert error.code == code

    def test_body(self) -> None:
        assert NotFound("no user").body == {"code": "ResourceNotFound", "message": "no user"}

    def test_str(self) -> None:
        assert str(NotFound("no user")) == "404: no user"
        assert str(HTTPError(status=418)) == "418"

    def test_internal_error_default_message(self) -> None:
        assert InternalError().detail == "Internal Server Error"


class TestMethodNotAllowed:
    def test_allow_header_sorted(self) -> None:
        error = MethodNotAllowed(frozenset({"POST", "GET", "DELETE"}))
        assert error.headers == (("Allow", "DELETE, GET, POST"),)
        assert "DELETE, GET, POST" in error.detail

    def test_custom_detail(self) -> None:
        error = MethodNotAllowed(frozenset({"GET"}), "read only")
        assert error.detail == "read only"


class TestFrozen:
    def test_cannot_mutate(self) -> None:
        error = NotFound()
        with pytest.raises(AttributeError):
            error.status = 500  # type: ignore[misc]

    def test_can_be_raised_and_caught(self) -> None:
        with pytest.raises(NotFound) as info:
            raise NotFound("gone")
        assert info.value.detail == "gone"
