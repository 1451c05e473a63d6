import httpx
import pytest

from infrastructure.http.base import Fresh, NotModified, TransportFailure
from infrastructure.http.httpx_adapter import HttpxAdapter, HttpxOptions, redact_url

URL = 'https://rates.test/api/latest.json?app_id=secret'


def adapter_for(handler) -> HttpxAdapter:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpxAdapter(HttpxOptions(), client=client)


@pytest.mark.asyncio
async def test_success_returns_body_and_lower_cased_headers():
    def handler(request):
        return httpx.Response(200, content=b'{"base": "USD"}', headers={'ETag': '"v1"'})

    result = await adapter_for(handler).get(URL, {})

    assert isinstance(result, Fresh)
    assert result.body == b'{"base": "USD"}'
    assert result.headers['etag'] == '"v1"'


@pytest.mark.asyncio
async def test_request_headers_are_sent():
    seen = {}

    def handler(request):
        seen.update(request.headers)
        return httpx.Response(304)

    result = await adapter_for(handler).get(URL, {'If-None-Match': '"v1"'})

    assert isinstance(result, NotModified)
    assert seen['if-none-match'] == '"v1"'


@pytest.mark.asyncio
async def test_error_status_is_a_failure_without_credentials():
    def handler(request):
        return httpx.Response(401, text='Invalid App ID')

    result = await adapter_for(handler).get(URL, {})

    assert isinstance(result, TransportFailure)
    assert result.error.status_code == 401
    assert 'HTTP 401: Invalid App ID' in str(result.error)
    assert 'secret' not in str(result.error)


@pytest.mark.asyncio
async def test_connection_error_is_a_failure():
    def handler(request):
        raise httpx.ConnectError('Connection refused', request=request)

    result = await adapter_for(handler).get(URL, {})

    assert isinstance(result, TransportFailure)
    assert result.error.reason == 'Request failed: ConnectError'
    assert result.error.status_code is None


@pytest.mark.asyncio
async def test_timeout_is_a_failure():
    def handler(request):
        raise httpx.ReadTimeout('too slow', request=request)

    result = await adapter_for(handler).get(URL, {})

    assert isinstance(result, TransportFailure)
    assert result.error.reason == 'Request timed out: ReadTimeout'


def test_redact_url_drops_query():
    assert redact_url(URL) == 'https://rates.test/api/latest.json'


def test_options_reject_unknown_keys():
    with pytest.raises(ValueError):
        HttpxOptions(retries=3)
