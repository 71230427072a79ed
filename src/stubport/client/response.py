from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import httpx

from stubport.errors import StubTransportError
from stubport.models.stub import ResponseSpec

if TYPE_CHECKING:
    from stubport.client.request import InterceptedRequest

__all__ = ["SyntheticResponse", "settle"]


@dataclass(frozen=True)
class SyntheticResponse:
    """The outcome delivered for an intercepted request in place of a real response."""

    request: "InterceptedRequest" = field(repr=False)
    data: Any = None
    status: int | None = None
    status_text: str | None = None
    headers: dict[str, str] = field(default_factory=dict)
    code: str | None = None

    @classmethod
    def from_spec(cls, request: "InterceptedRequest", spec: ResponseSpec) -> "SyntheticResponse":
        # lower-case header keys, as httpx exposes them
        headers = {key.lower(): value for key, value in spec.headers.items()}
        data = spec.response_text if spec.response_text is not None else spec.response
        return cls(
            request=request,
            data=data,
            status=spec.status,
            status_text=spec.status_text,
            headers=headers,
            code=spec.code,
        )

    @classmethod
    def from_error(
        cls, request: "InterceptedRequest", error: StubTransportError
    ) -> "SyntheticResponse":
        return cls(request=request, code=error.code)

    @property
    def config(self) -> httpx.Request:
        return self.request.config

    def to_httpx(self) -> httpx.Response:
        """Build the httpx response the client receives."""
        content: dict[str, Any] = {}
        if isinstance(self.data, bytes):
            content["content"] = self.data
        elif isinstance(self.data, str):
            content["text"] = self.data
        elif self.data is not None:
            content["json"] = self.data

        extensions = {}
        if self.status_text:
            extensions["reason_phrase"] = self.status_text.encode("ascii")

        return httpx.Response(
            self.status if self.status is not None else 200,
            headers=self.headers,
            request=self.config,
            extensions=extensions,
            **content,
        )


def settle(
    resolve: Callable[[httpx.Response], Any],
    reject: Callable[[BaseException], Any],
    response: "SyntheticResponse | httpx.Response",
    *,
    raise_for_status: bool = True,
) -> None:
    """
    Hand a synthetic response to the right continuation.

    httpx decides which statuses are failures: anything ``raise_for_status``
    rejects goes to ``reject`` as an ``httpx.HTTPStatusError``.

    Args:
        resolve: Called with the httpx response on success.
        reject: Called with the status error on failure.
        response: The response to deliver, synthetic or already built.
        raise_for_status: When False every status resolves, as plain httpx does.
    """
    http_response = response.to_httpx() if isinstance(response, SyntheticResponse) else response
    if raise_for_status:
        try:
            http_response.raise_for_status()
        except httpx.HTTPStatusError as e:
            reject(e)
            return
    resolve(http_response)
