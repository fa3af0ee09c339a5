"""Failure taxonomy for link extraction."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from .models.links import Link


class ErrorKind(str, Enum):
    """The five kinds of failure an extraction can record."""

    NETWORK = "network"
    TIMEOUT = "timeout"
    AUTHENTICATION = "authentication"
    PARSE = "parse"
    VALIDATION = "validation"


class LinkscopeError(Exception):
    """
    Base class for every failure linkscope records or raises.

    Subclasses set ``kind`` so diagnostics can dispatch on a closed set of
    variants instead of on the class hierarchy.
    """

    kind: ErrorKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        """Convert the error to a JSON-ready dictionary."""
        return {"type": type(self).__name__, "kind": self.kind.value, "message": self.message}


class NetworkError(LinkscopeError):
    """Connection or name resolution failure."""

    kind = ErrorKind.NETWORK

    def __init__(
        self,
        message: str,
        url: str,
        retries: int = 0,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.retries = retries
        self.cause = cause

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update(url=self.url, retries=self.retries)
        if self.cause is not None:
            data["cause"] = str(self.cause)
        return data


class PageTimeoutError(LinkscopeError):
    """Navigation or content wait exceeded its budget."""

    kind = ErrorKind.TIMEOUT

    def __init__(self, message: str, url: str, timeout: int) -> None:
        super().__init__(message)
        self.url = url
        self.timeout = timeout  # milliseconds

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update(url=self.url, timeout=self.timeout)
        return data


class AuthenticationError(LinkscopeError):
    """The page answered HTTP 401 or 403."""

    kind = ErrorKind.AUTHENTICATION

    def __init__(self, message: str, url: str, status_code: int) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update(url=self.url, status_code=self.status_code)
        return data


class ParseError(LinkscopeError):
    """Page content could not be interpreted."""

    kind = ErrorKind.PARSE

    def __init__(
        self,
        message: str,
        url: str,
        partial_links: Optional[list[Link]] = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.partial_links = partial_links or []

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update(url=self.url, partial_links=len(self.partial_links))
        return data


class ValidationError(LinkscopeError):
    """Caller-supplied input was rejected."""

    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, parameter: str, rule: str) -> None:
        super().__init__(message)
        self.parameter = parameter
        self.rule = rule

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update(parameter=self.parameter, rule=self.rule)
        return data


def error_to_dict(error: BaseException) -> dict[str, Any]:
    """Serialize any exception, falling back to type and message."""
    if isinstance(error, LinkscopeError):
        return error.to_dict()
    return {"type": type(error).__name__, "message": str(error)}
