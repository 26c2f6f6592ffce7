"""Executor tests."""

import asyncio
import json

import httpx
import pytest

from relay_tools.base import HttpMethod
from relay_tools.exceptions import NetworkError, ProviderError
from relay_tools.executor import Executor
from relay_tools.mapping import PreparedRequest


def get_request(**overrides) -> PreparedRequest:
    values = {"method": HttpMethod.GET, "url": "https://api.example.com/items/42"}
    values.update(overrides)
    return PreparedRequest(**values)


@pytest.fixture
def executor(http_client):
    return Executor(http_client, timeout_seconds=5)


@pytest.mark.asyncio
async def test_success_returns_json(executor, provider):
    """Test success returns JSON."""
    provider.handler = lambda request: httpx.Response(200, json={"name": "Widget"})

    data = await executor.execute(get_request(headers={"Authorization": "Bearer sk"}))

    assert data == {"name": "Widget"}
    sent = provider.requests[0]
    assert sent.method == "GET"
    assert str(sent.url) == "https://api.example.com/items/42"
    assert sent.headers["Authorization"] == "Bearer sk"
    assert sent.content == b""


@pytest.mark.asyncio
async def test_query_and_body_sent(executor, provider):
    """Test query and body sent."""
    request = get_request(
        method=HttpMethod.POST,
        query=[("labels", "a,b")],
        json_body={"text": "hi"},
    )

    await executor.execute(request)

    sent = provider.requests[0]
    assert sent.url.query == b"labels=a,b"
    assert json.loads(sent.content) == {"text": "hi"}


@pytest.mark.asyncio
async def test_non_json_body_returned_as_text(executor, provider):
    """Test non JSON body returned as text."""
    provider.handler = lambda request: httpx.Response(200, text="OK")

    assert await executor.execute(get_request()) == "OK"


@pytest.mark.asyncio
async def test_empty_body_returns_none(executor, provider):
    """Test empty body returns none."""
    provider.handler = lambda request: httpx.Response(204)

    assert await executor.execute(get_request()) is None


@pytest.mark.asyncio
async def test_non_2xx_is_provider_error(executor, provider):
    """Test non 2xx is provider error."""
    provider.handler = lambda request: httpx.Response(
        404, json={"error": {"message": "No such customer"}}
    )

    with pytest.raises(ProviderError) as exc_info:
        await executor.execute(get_request())

    error = exc_info.value
    assert error.message == "External API Error (404)"
    assert error.status_code == 404
    assert json.loads(error.body) == {"error": {"message": "No such customer"}}
    assert error.details["parsed"] == {"error": {"message": "No such customer"}}


@pytest.mark.asyncio
async def test_connection_failure_is_network_error(executor, provider):
    """Test connection failure is network error."""
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    provider.handler = refuse

    with pytest.raises(NetworkError, match="connection refused"):
        await executor.execute(get_request())


@pytest.mark.asyncio
async def test_transport_timeout_is_network_error(executor, provider):
    """Test transport timeout is network error."""
    def slow(request):
        raise httpx.ReadTimeout("read timed out", request=request)

    provider.handler = slow

    with pytest.raises(NetworkError, match="did not respond"):
        await executor.execute(get_request())


@pytest.mark.asyncio
async def test_overall_timeout_enforced():
    """Test overall timeout enforced."""
    async def hang(request):
        await asyncio.sleep(10)
        return httpx.Response(200)

    client = httpx.AsyncClient(transport=httpx.MockTransport(hang))
    executor = Executor(client, timeout_seconds=0.05)

    with pytest.raises(NetworkError) as exc_info:
        await executor.execute(get_request())

    assert exc_info.value.details["timeout_seconds"] == 0.05


@pytest.mark.asyncio
async def test_cancelling_caller_aborts_request():
    """Test cancelling caller aborts request."""
    started = asyncio.Event()
    release = asyncio.Event()
    aborted = []

    async def hang(request):
        started.set()
        try:
            await release.wait()
        except asyncio.CancelledError:
            aborted.append(str(request.url))
            raise
        return httpx.Response(200)

    executor = Executor(httpx.AsyncClient(transport=httpx.MockTransport(hang)), timeout_seconds=5)
    task = asyncio.ensure_future(executor.execute(get_request()))
    await started.wait()

    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert aborted == ["https://api.example.com/items/42"]
