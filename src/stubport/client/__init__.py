from .request import InterceptedRequest
from .response import SyntheticResponse, settle
from .transport import AsyncStubTransport, StubTransport

__all__ = [
    "AsyncStubTransport",
    "InterceptedRequest",
    "StubTransport",
    "SyntheticResponse",
    "settle",
]
