from collections.abc import Callable, Mapping
from typing import Any

import httpx
from loguru import logger

from stubport.client.response import SyntheticResponse, settle
from stubport.errors import create_timeout
from stubport.exceptions import AlreadySettledError
from stubport.models.config import Config
from stubport.models.stub import ResponseSpec
from stubport.scheduler import Deferred, Scheduler

__all__ = ["InterceptedRequest", "derive_xsrf_header"]

HttpClient = httpx.Client | httpx.AsyncClient


def _same_origin(url: httpx.URL, base_url: httpx.URL) -> bool:
    if base_url.is_relative_url:
        return False
    return (url.scheme, url.host, url.port) == (base_url.scheme, base_url.host, base_url.port)


def derive_xsrf_header(
    request: httpx.Request,
    client: HttpClient | None,
    cookie_name: str,
    with_credentials: bool = False,
) -> str | None:
    """
    Read the XSRF token a browser-like client would send along with ``request``.

    The token comes from the client's cookie jar and only applies to
    credentialed or same-origin requests.
    """
    if client is None:
        return None
    if not (with_credentials or _same_origin(request.url, client.base_url)):
        return None
    return client.cookies.get(cookie_name)


def _timeout_ms(request: httpx.Request) -> int:
    read = request.extensions.get("timeout", {}).get("read")
    return 0 if read is None else int(read * 1000)


class InterceptedRequest:
    """
    One outgoing call captured by the stub transport.

    A snapshot of the request as it left the client, plus the two
    continuations the transport is waiting on. Exactly one of them is called,
    once, when the outcome is delivered.
    """

    def __init__(
        self,
        resolve: Callable[[httpx.Response], Any],
        reject: Callable[[BaseException], Any],
        config: httpx.Request,
        *,
        scheduler: Scheduler,
        settings: Config | None = None,
        client: HttpClient | None = None,
    ) -> None:
        """
        Capture a request.

        Args:
            resolve: Continuation receiving the delivered httpx response.
            reject: Continuation receiving the delivered error.
            config: The original httpx request, passed through untouched.
            scheduler: Schedules delivery of the outcome.
            settings: Engine settings (XSRF names, status policy).
            client: The client the request came from, for cookies and origin.
        """
        settings = settings or Config()
        self.resolve = resolve
        self.reject = reject
        self.config = config
        self._scheduler = scheduler
        self._raise_for_status = settings.raise_for_status

        self.method = config.method.upper()
        self.url = str(config.url)
        self.path = config.url.raw_path.decode("ascii")
        self.base_path = client.base_url.raw_path.decode("ascii") if client is not None else None
        self.headers = httpx.Headers(config.headers)
        self.timeout = _timeout_ms(config)
        self.with_credentials = bool(config.extensions.get("with_credentials", False))
        self.response_type = config.extensions.get("response_type")

        xsrf_value = derive_xsrf_header(
            config, client, settings.xsrf_cookie_name, self.with_credentials
        )
        if xsrf_value:
            self.headers[settings.xsrf_header_name] = xsrf_value

        self.settled = False
        self.delivered = False

    def respond_with(self, res: ResponseSpec | Mapping[str, Any] | None = None) -> Deferred:
        """
        Respond to this request with a specified result.

        Whether the caller sees a response or an ``httpx.HTTPStatusError`` is
        decided by httpx's own status policy.

        Args:
            res: The response to deliver; a ResponseSpec or an equivalent mapping.

        Returns:
            A Deferred resolving with the SyntheticResponse once delivered.
        """
        response = SyntheticResponse.from_spec(self, ResponseSpec.coerce(res))
        # built now so a bad body fails here rather than inside the delivery task
        http_response = response.to_httpx()
        return self._deliver(
            lambda: settle(
                self.resolve, self.reject, http_response, raise_for_status=self._raise_for_status
            ),
            response,
        )

    def respond_with_timeout(self) -> Deferred:
        """
        Respond to this request with a timeout.

        Returns:
            A Deferred resolving with the timeout's SyntheticResponse once the
            caller has been handed the StubTimeoutError.
        """
        error = create_timeout(self.config, self.timeout)
        response = SyntheticResponse.from_error(self, error)
        error.response = response
        return self._deliver(lambda: self.reject(error), response)

    def _deliver(self, deliver: Callable[[], None], response: SyntheticResponse) -> Deferred:
        if self.settled:
            raise AlreadySettledError(f"{self.method} {self.url} has already been responded to")
        self.settled = True

        handle = Deferred()

        def _run() -> None:
            self.delivered = True
            try:
                deliver()
            except Exception as e:
                handle.reject(e)
                raise
            handle.resolve(response)
            logger.debug(f"Delivered {response.status or response.code} for {self.method} {self.url}")

        self._scheduler.wait(_run)
        return handle

    def describe(self) -> tuple[str, str, str]:
        return (self.method, self.url, "delivered" if self.delivered else "pending")

    def __repr__(self) -> str:
        return f"<InterceptedRequest {self.method} {self.url}>"
