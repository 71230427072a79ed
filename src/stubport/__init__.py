from loguru import logger

from .client import AsyncStubTransport, InterceptedRequest, StubTransport, SyntheticResponse
from .engine import Interceptor
from .errors import StubTimeoutError, StubTransportError, UnmatchedRequestError
from .exceptions import (
    AlreadyInstalledError,
    AlreadySettledError,
    NotInstalledError,
    StubNotCalledError,
    StubportError,
    TrackerLookupError,
)
from .models import Config, ResponseSpec, Stub
from .scheduler import Deferred, Scheduler, SystemClock, VirtualClock
from .tracker import Tracker

__all__ = [
    "AlreadyInstalledError",
    "AlreadySettledError",
    "AsyncStubTransport",
    "Config",
    "Deferred",
    "InterceptedRequest",
    "Interceptor",
    "NotInstalledError",
    "ResponseSpec",
    "Scheduler",
    "Stub",
    "StubNotCalledError",
    "StubTimeoutError",
    "StubTransport",
    "StubTransportError",
    "StubportError",
    "SyntheticResponse",
    "SystemClock",
    "Tracker",
    "TrackerLookupError",
    "UnmatchedRequestError",
    "VirtualClock",
]

# silent until stubport.logging.configure_logging() is called
logger.disable("stubport")
