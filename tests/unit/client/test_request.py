import httpx
import pytest

from stubport.client.request import InterceptedRequest, derive_xsrf_header
from stubport.errors import StubTimeoutError
from stubport.exceptions import AlreadySettledError
from stubport.scheduler import Scheduler, VirtualClock


@pytest.fixture
def scheduler():
    return Scheduler(VirtualClock(), delay=1)


@pytest.fixture
def outcomes():
    return {"resolved": [], "rejected": []}


def make_request(request, scheduler, outcomes, config, client=None):
    return InterceptedRequest(
        outcomes["resolved"].append,
        outcomes["rejected"].append,
        request,
        scheduler=scheduler,
        settings=config,
        client=client,
    )


def test_snapshot_of_resolved_request(scheduler, outcomes, config):
    client = httpx.Client(base_url="http://api.test", timeout=2.5, auth=("fred", "secret"))
    request = client.build_request("get", "/users", params={"page": 2})

    call = make_request(request, scheduler, outcomes, config)

    assert call.method == "GET"
    assert call.url == "http://api.test/users?page=2"
    assert call.path == "/users?page=2"
    assert call.timeout == 2500
    assert call.with_credentials is False
    assert call.response_type is None
    assert call.config is request
    assert call.settled is False


def test_auth_header_comes_from_client(virtual_interceptor):
    with httpx.Client(base_url="http://api.test", auth=("fred", "secret")) as client:
        virtual_interceptor.install(client)
        virtual_interceptor.stub_request("/me", {"status": 204})
        client.get("/me")

        call = virtual_interceptor.requests.most_recent()
        assert call.headers["Authorization"] == "Basic ZnJlZDpzZWNyZXQ="
        virtual_interceptor.uninstall(client)


def test_timeout_disabled_reports_zero(scheduler, outcomes, config):
    client = httpx.Client(timeout=None)
    call = make_request(client.build_request("GET", "http://api.test/"), scheduler, outcomes, config)

    assert call.timeout == 0


def test_extensions_carry_credentials_and_response_type(scheduler, outcomes, config):
    request = httpx.Request(
        "GET",
        "http://api.test/file",
        extensions={"with_credentials": True, "response_type": "blob"},
    )
    call = make_request(request, scheduler, outcomes, config)

    assert call.with_credentials is True
    assert call.response_type == "blob"


def test_xsrf_header_added_for_same_origin(scheduler, outcomes, config):
    client = httpx.Client(base_url="http://api.test", cookies={"XSRF-TOKEN": "tok"})
    call = make_request(client.build_request("POST", "/users"), scheduler, outcomes, config, client)

    assert call.headers["X-XSRF-TOKEN"] == "tok"


def test_xsrf_header_skipped_cross_origin(scheduler, outcomes, config):
    client = httpx.Client(base_url="http://api.test", cookies={"XSRF-TOKEN": "tok"})
    request = client.build_request("POST", "http://elsewhere.test/users")

    call = make_request(request, scheduler, outcomes, config, client)

    assert "X-XSRF-TOKEN" not in call.headers


def test_xsrf_header_sent_cross_origin_with_credentials():
    client = httpx.Client(base_url="http://api.test", cookies={"XSRF-TOKEN": "tok"})
    request = client.build_request("GET", "http://elsewhere.test/users")

    assert derive_xsrf_header(request, client, "XSRF-TOKEN", with_credentials=True) == "tok"
    assert derive_xsrf_header(request, None, "XSRF-TOKEN", with_credentials=True) is None


def test_respond_with_delivers_after_scheduler_runs(scheduler, outcomes, config):
    call = make_request(httpx.Request("GET", "http://api.test/users/1"), scheduler, outcomes, config)

    handle = call.respond_with({"status": 200, "response": {"id": 1}})

    assert call.settled is True
    assert call.delivered is False
    assert outcomes["resolved"] == []
    assert not handle.done()

    scheduler.advance(1)

    assert call.delivered is True
    assert outcomes["resolved"][0].json() == {"id": 1}
    assert handle.result().status == 200


def test_respond_with_error_status_rejects(scheduler, outcomes, config):
    call = make_request(httpx.Request("GET", "http://api.test/users/1"), scheduler, outcomes, config)

    call.respond_with({"status": 404})
    scheduler.advance(1)

    assert outcomes["resolved"] == []
    error = outcomes["rejected"][0]
    assert isinstance(error, httpx.HTTPStatusError)
    assert error.response.status_code == 404


def test_respond_with_timeout_rejects_with_aborted_code(scheduler, outcomes, config):
    request = httpx.Request(
        "GET", "http://api.test/slow", extensions={"timeout": {"read": 3.0}}
    )
    call = make_request(request, scheduler, outcomes, config)

    handle = call.respond_with_timeout()
    scheduler.advance(1)

    error = outcomes["rejected"][0]
    assert isinstance(error, StubTimeoutError)
    assert isinstance(error, httpx.TimeoutException)
    assert error.code == "ECONNABORTED"
    assert str(error) == "timeout of 3000ms exceeded"
    assert error.request is request
    assert error.response is handle.result()
    assert handle.result().code == "ECONNABORTED"


def test_second_response_raises(scheduler, outcomes, config):
    call = make_request(httpx.Request("GET", "http://api.test/"), scheduler, outcomes, config)
    call.respond_with({"status": 200})

    with pytest.raises(AlreadySettledError):
        call.respond_with({"status": 500})
    with pytest.raises(AlreadySettledError):
        call.respond_with_timeout()

    scheduler.flush()
    assert len(outcomes["resolved"]) == 1
    assert outcomes["rejected"] == []
