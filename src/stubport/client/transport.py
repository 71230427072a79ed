import asyncio
from typing import TYPE_CHECKING, Any

import httpx

from stubport.errors import UnmatchedRequestError

if TYPE_CHECKING:
    from stubport.engine import Interceptor

__all__ = ["AsyncStubTransport", "StubTransport"]


class StubTransport(httpx.BaseTransport):
    """
    Synchronous transport that answers requests from registered stubs.

    A blocking caller cannot be left pending, so a request no stub answers
    raises UnmatchedRequestError instead.
    """

    def __init__(self, interceptor: "Interceptor", client: httpx.Client | None = None) -> None:
        self.interceptor = interceptor
        self.client = client

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        outcome: dict[str, Any] = {}

        call = self.interceptor.intercept(
            request,
            resolve=lambda response: outcome.setdefault("response", response),
            reject=lambda error: outcome.setdefault("error", error),
            client=self.client,
        )
        if not call.settled:
            raise UnmatchedRequestError(
                f"No stub matched {call.method} {call.url}", request=request
            )

        self.interceptor.scheduler.run_until(lambda: call.delivered)

        if "error" in outcome:
            raise outcome["error"]
        return outcome["response"]


def _resolve_future(future: "asyncio.Future[httpx.Response]", response: httpx.Response) -> None:
    # the awaiting task may have been cancelled by a bounded wait
    if not future.done():
        future.set_result(response)


def _reject_future(future: "asyncio.Future[httpx.Response]", error: BaseException) -> None:
    if not future.done():
        future.set_exception(error)


class AsyncStubTransport(httpx.AsyncBaseTransport):
    """
    Asynchronous transport that answers requests from registered stubs.

    A request no stub answers stays pending until someone responds to it.
    """

    def __init__(
        self, interceptor: "Interceptor", client: httpx.AsyncClient | None = None
    ) -> None:
        self.interceptor = interceptor
        self.client = client

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        future: asyncio.Future[httpx.Response] = asyncio.get_running_loop().create_future()

        self.interceptor.intercept(
            request,
            resolve=lambda response: _resolve_future(future, response),
            reject=lambda error: _reject_future(future, error),
            client=self.client,
        )
        return await future
