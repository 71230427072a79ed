"""Transport-level errors delivered to httpx callers in place of real network failures."""

from typing import TYPE_CHECKING, Any, cast

import httpx

from stubport.constants import ECONNABORTED, TIMEOUT_MESSAGE

if TYPE_CHECKING:
    from stubport.client.response import SyntheticResponse

__all__ = [
    "StubTimeoutError",
    "StubTransportError",
    "UnmatchedRequestError",
    "create_error",
    "create_timeout",
]


class StubTransportError(httpx.TransportError):
    """A simulated transport failure carrying an error code and the originating request."""

    def __init__(
        self,
        message: str,
        *,
        request: httpx.Request,
        code: str | None = None,
        response: "SyntheticResponse | None" = None,
    ) -> None:
        super().__init__(message, request=request)
        self.code = code
        self.response = response


class StubTimeoutError(StubTransportError, httpx.ReadTimeout):
    """A simulated request timeout."""


class UnmatchedRequestError(StubTransportError):
    """Raised to synchronous callers when no stub answers their request."""


_ERRORS_BY_CODE: dict[str, type[StubTransportError]] = {
    ECONNABORTED: StubTimeoutError,
}


def create_error(
    message: str,
    request: httpx.Request,
    code: str | None = None,
    response: "SyntheticResponse | None" = None,
) -> StubTransportError:
    """
    Build a transport error for a request.

    Args:
        message: Human readable description.
        request: The original httpx request the error belongs to.
        code: Transport error code, e.g. ``ECONNABORTED``.
        response: Synthetic response attached to the error, if any.

    Returns:
        An exception instance whose class reflects the error code.
    """
    error_cls = _ERRORS_BY_CODE.get(code or "", StubTransportError)
    return error_cls(message, request=request, code=code, response=response)


def create_timeout(request: httpx.Request, timeout: Any) -> StubTimeoutError:
    """Build the error for a request that ran out of time after ``timeout`` ms."""
    return cast(
        StubTimeoutError,
        create_error(TIMEOUT_MESSAGE.format(timeout=timeout), request, ECONNABORTED),
    )
