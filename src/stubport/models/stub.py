from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from stubport.matching import UrlMatcher, method_matches, url_matches

if TYPE_CHECKING:
    from stubport.client.request import InterceptedRequest
    from stubport.scheduler import Deferred

__all__ = ["ResponseSpec", "Stub"]


class ResponseSpec(BaseModel):
    """Canned response a stub or a manual respond call delivers."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    status: int | None = 200
    response: Any = None
    response_text: str | None = Field(default=None, alias="responseText")
    headers: dict[str, str] = Field(default_factory=dict)
    status_text: str | None = Field(default=None, alias="statusText")
    code: str | None = None

    @field_validator("status_text")
    @classmethod
    def _ascii_status_text(cls, value: str | None) -> str | None:
        if value is not None and not value.isascii():
            raise ValueError("status text must be ASCII to fit in an HTTP status line")
        return value

    @field_validator("headers")
    @classmethod
    def _ascii_headers(cls, value: dict[str, str]) -> dict[str, str]:
        for key, item in value.items():
            if not (key.isascii() and item.isascii()):
                raise ValueError(f"header {key!r} must be ASCII")
        return value

    @classmethod
    def coerce(cls, value: "ResponseSpec | Mapping[str, Any] | None") -> "ResponseSpec":
        if value is None:
            return cls()
        if isinstance(value, cls):
            return value
        return cls.model_validate(dict(value))


@dataclass
class Stub:
    """
    A registered response rule.

    Stubs are kept in registration order and the first match wins, so the
    registry is a list scanned front to back rather than a lookup table.
    ``method`` is upper-cased on construction and ``fired`` flips once a
    one-shot stub has been matched.
    """

    url: UrlMatcher
    response: ResponseSpec = field(default_factory=ResponseSpec)
    method: str | None = None
    timeout: bool = False
    signal: "Deferred | None" = None
    fired: bool = field(default=False, init=False)

    def __post_init__(self) -> None:
        if self.method is not None:
            self.method = self.method.upper()

    @property
    def one_shot(self) -> bool:
        return self.signal is not None

    def matches(self, request: "InterceptedRequest") -> bool:
        """Whether this stub answers ``request``. Fired one-shot stubs never match again."""
        if self.one_shot and self.fired:
            return False
        if not method_matches(self.method, request.method):
            return False
        return url_matches(self.url, request.url, request.path, request.base_path)

    def fire(self, request: "InterceptedRequest") -> None:
        """Notify whoever registered a one-shot stub that it has been matched."""
        if self.signal is None or self.fired:
            return
        self.fired = True
        self.signal.resolve(request)

    def describe(self) -> tuple[str, str, str]:
        url = self.url.pattern if not isinstance(self.url, str) else self.url
        if self.timeout:
            detail = "timeout"
        else:
            body = self.response.response_text or self.response.response
            detail = f"{self.response.status}, {body if body is not None else '{}'}"
        return (self.method or "*", url, detail)
