from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from typing import Any, TypeVar

import httpx
from loguru import logger
from rich.console import Console

from stubport.client.request import InterceptedRequest
from stubport.client.transport import AsyncStubTransport, StubTransport
from stubport.exceptions import AlreadyInstalledError, NotInstalledError, StubNotCalledError
from stubport.matching import UrlMatcher
from stubport.models.config import Config
from stubport.models.stub import ResponseSpec, Stub
from stubport.scheduler import Deferred, ScheduledTask, Scheduler
from stubport.tracker import Tracker

__all__ = ["Interceptor"]

R = TypeVar("R")

ResponseLike = ResponseSpec | Mapping[str, Any] | None
HttpClient = httpx.Client | httpx.AsyncClient


def _describe_url(url: UrlMatcher) -> str:
    return url if isinstance(url, str) else f"/{url.pattern}/"


class Interceptor:
    """
    Intercepts the requests of an httpx client and answers them from stubs.

    All state (stub registry, request history, the installed client and the
    transport it had before) lives on the instance, so independent tests can
    each use their own interceptor.
    """

    def __init__(self, config: Config | None = None, scheduler: Scheduler | None = None) -> None:
        """
        Initialize the interceptor.

        Args:
            config: Engine settings; read from the environment when omitted.
            scheduler: Delivery scheduler; a real-clock one using ``config.delay`` by default.
        """
        self.config = config or Config()
        self.scheduler = scheduler or Scheduler(delay=self.config.delay)
        self.stubs: Tracker[Stub] = Tracker("Stubs")
        self.requests: Tracker[InterceptedRequest] = Tracker("Requests")

        self._client: HttpClient | None = None
        self._default_transport: httpx.BaseTransport | httpx.AsyncBaseTransport | None = None
        self._default_mounts: dict[Any, Any] | None = None

    @property
    def delay(self) -> float:
        return self.scheduler.delay

    @delay.setter
    def delay(self, value: float) -> None:
        self.scheduler.delay = value

    @property
    def installed(self) -> bool:
        return self._client is not None

    def install(self, client: HttpClient) -> None:
        """
        Route a client's requests through the stub transport.

        Raises:
            AlreadyInstalledError: If this interceptor is already installed.
            TypeError: If ``client`` is not an httpx client.
        """
        if self._client is not None:
            raise AlreadyInstalledError(
                "Interceptor is already installed; uninstall it before installing again."
            )

        transport: httpx.BaseTransport | httpx.AsyncBaseTransport
        if isinstance(client, httpx.AsyncClient):
            transport = AsyncStubTransport(self, client)
        elif isinstance(client, httpx.Client):
            transport = StubTransport(self, client)
        else:
            raise TypeError(f"Expected an httpx client, got {type(client).__name__}")

        self._default_transport = client._transport
        self._default_mounts = client._mounts
        client._transport = transport  # type: ignore[assignment]
        # mounted proxy transports would otherwise take precedence
        client._mounts = {}
        self._client = client
        logger.debug(f"Installed stub transport on {type(client).__name__}")

    def uninstall(self, client: HttpClient | None = None) -> None:
        """
        Restore the client's own transport and forget all stubs and requests.

        Raises:
            NotInstalledError: If nothing is installed, or ``client`` is not the installed one.
        """
        if self._client is None:
            raise NotInstalledError("Interceptor is not installed.")
        if client is not None and client is not self._client:
            raise NotInstalledError("Interceptor is installed on a different client.")

        self._client._transport = self._default_transport  # type: ignore[assignment]
        self._client._mounts = self._default_mounts  # type: ignore[assignment]
        logger.debug(f"Uninstalled stub transport from {type(self._client).__name__}")

        self._client = None
        self._default_transport = None
        self._default_mounts = None
        self.stubs.reset()
        self.requests.reset()

    @contextmanager
    def mock(self, client: HttpClient) -> Iterator["Interceptor"]:
        """Install on ``client`` for the duration of a ``with`` block, uninstalling even on failure."""
        self.install(client)
        try:
            yield self
        finally:
            self.uninstall(client)

    def with_mock(self, client: HttpClient, fn: Callable[["Interceptor"], R]) -> R:
        """
        Run a single function with the stub transport installed.

        Args:
            client: The client to intercept.
            fn: Called with this interceptor.

        Returns:
            Whatever ``fn`` returns.
        """
        with self.mock(client):
            return fn(self)

    def intercept(
        self,
        request: httpx.Request,
        resolve: Callable[[httpx.Response], Any],
        reject: Callable[[BaseException], Any],
        client: HttpClient | None = None,
    ) -> InterceptedRequest:
        """
        Record a request and answer it from the first matching stub.

        Stubs are scanned in registration order. When none matches, the
        request is tracked but left pending.

        Args:
            request: The outgoing httpx request.
            resolve: Continuation for a delivered response.
            reject: Continuation for a delivered error.
            client: The client the request came from.

        Returns:
            The tracked request.
        """
        call = InterceptedRequest(
            resolve,
            reject,
            request,
            scheduler=self.scheduler,
            settings=self.config,
            client=client,
        )
        self.requests.track(call)
        logger.debug(f"Intercepted {call.method} {call.url}")

        for stub in self.stubs:
            if not stub.matches(call):
                continue

            logger.debug(f"Matched {call.method} {call.url} to stub {_describe_url(stub.url)}")
            if stub.timeout:
                call.respond_with_timeout()
            else:
                call.respond_with(stub.response)
            stub.fire(call)
            break
        else:
            logger.debug(f"No stub for {call.method} {call.url}; leaving it pending")

        return call

    def stub_request(
        self, url: UrlMatcher, response: ResponseLike = None, *, method: str | None = None
    ) -> Stub:
        """
        Answer every request matching a URL or pattern with a response.

        Args:
            url: Exact URL or compiled pattern.
            response: The response to use when a match is made.
            method: Restrict the stub to one HTTP method.

        Returns:
            The registered stub.
        """
        stub = Stub(url, ResponseSpec.coerce(response), method=method)
        self.stubs.track(stub)
        return stub

    def stub_once(self, method: str, url: UrlMatcher, response: ResponseLike = None) -> Deferred:
        """
        Answer the first request matching a method and a URL or pattern.

        Returns:
            A Deferred resolved with the matched request at match time.
        """
        signal = Deferred()
        self.stubs.track(Stub(url, ResponseSpec.coerce(response), method=method, signal=signal))
        return signal

    def stub_failure(
        self,
        method: str,
        url: UrlMatcher,
        response: ResponseLike = None,
        *,
        within: float | None = None,
    ) -> Deferred:
        """
        Like :meth:`stub_once`, but reject if no request matches in time.

        Useful to show that a certain request was *not* made.

        Args:
            method: HTTP method.
            url: Exact URL or compiled pattern.
            response: The response to use when a match is made.
            within: Window in ms; ``Config.failure_window`` by default.

        Returns:
            A Deferred resolved on match, or rejected with StubNotCalledError.
        """
        signal = self.stub_once(method, url, response)
        window = self.config.failure_window if within is None else within
        self.scheduler.wait(lambda: signal.reject(StubNotCalledError()), window)
        return signal

    def stub_timeout(self, url: UrlMatcher, *, method: str | None = None) -> Stub:
        """Answer requests matching a URL or pattern with a simulated timeout."""
        stub = Stub(url, method=method, timeout=True)
        self.stubs.track(stub)
        return stub

    def wait(
        self,
        callback: Callable[[], Any] | float | None = None,
        delay: float | None = None,
    ) -> ScheduledTask | Deferred:
        """Defer a callback, or return a Deferred, by ``delay`` ms (default :attr:`delay`)."""
        return self.scheduler.wait(callback, delay)

    def debug(self, console: Console | None = None) -> None:
        """Dump registered stubs and intercepted requests."""
        self.stubs.debug(console)
        self.requests.debug(console)

