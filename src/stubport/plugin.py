"""pytest plugin providing a ready-made interceptor fixture."""

from collections.abc import Iterator

import pytest

from stubport.engine import Interceptor
from stubport.logging import configure_logging
from stubport.models.config import Config

__all__ = ["stub_engine"]


@pytest.fixture
def stub_engine() -> Iterator[Interceptor]:
    """
    An Interceptor for one test.

    Install it on the client under test; it is uninstalled after the test if
    the test left it installed.
    """
    config = Config()
    if config.log_level.upper() != "WARNING":
        configure_logging(config.log_level)

    interceptor = Interceptor(config)
    try:
        yield interceptor
    finally:
        if interceptor.installed:
            interceptor.uninstall()
