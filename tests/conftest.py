from collections.abc import AsyncGenerator, Generator

import httpx
import pytest
import pytest_asyncio

from stubport import Config, Interceptor, Scheduler, VirtualClock

BASE_URL = "http://api.test"


@pytest.fixture
def config() -> Config:
    """Settings that ignore any .env file in the working directory."""
    return Config(_env_file=None)  # type: ignore[call-arg]


@pytest.fixture
def interceptor(config: Config) -> Interceptor:
    return Interceptor(config)


@pytest.fixture
def virtual_interceptor(config: Config) -> Interceptor:
    """Interceptor whose deliveries only happen when the test advances the clock."""
    return Interceptor(config, Scheduler(VirtualClock(), delay=config.delay))


@pytest_asyncio.fixture
async def client(interceptor: Interceptor) -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient(base_url=BASE_URL) as client:
        interceptor.install(client)
        yield client
        if interceptor.installed:
            interceptor.uninstall(client)


@pytest.fixture
def sync_client(virtual_interceptor: Interceptor) -> Generator[httpx.Client, None, None]:
    with httpx.Client(base_url=BASE_URL) as client:
        virtual_interceptor.install(client)
        yield client
        if virtual_interceptor.installed:
            virtual_interceptor.uninstall(client)
