from urllib.parse import urlsplit, urlunsplit

import httpx
from pydantic import BaseModel, ConfigDict, Field

from domain.exceptions.rates import TransportError
from infrastructure.http.base import Fresh, HttpAdapter, HttpResult, NotModified, TransportFailure


def redact_url(url: str) -> str:
    """Drop the query string, which carries provider credentials."""
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


class HttpxOptions(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    timeout: float = Field(default=10.0, gt=0)
    verify_ssl: bool = True
    follow_redirects: bool = True
    headers: dict[str, str] = Field(default_factory=dict)


class HttpxAdapter(HttpAdapter):
    name = "httpx"
    options_model = HttpxOptions

    def __init__(self, options: HttpxOptions | None = None, client: httpx.AsyncClient | None = None):
        self.options = options or HttpxOptions()
        headers = {"accept": "application/json", **self.options.headers}
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(self.options.timeout),
            verify=self.options.verify_ssl,
            follow_redirects=self.options.follow_redirects,
            headers=headers,
        )

    async def get(self, url: str, headers: dict[str, str]) -> HttpResult:
        safe_url = redact_url(url)
        try:
            response = await self._client.get(url, headers=headers)
        except httpx.TimeoutException as e:
            return TransportFailure(TransportError(safe_url, f"Request timed out: {e.__class__.__name__}"))
        except httpx.RequestError as e:
            return TransportFailure(TransportError(safe_url, f"Request failed: {e.__class__.__name__}"))

        response_headers = {key.lower(): value for key, value in response.headers.items()}

        if response.status_code == httpx.codes.NOT_MODIFIED:
            return NotModified(response_headers)

        if not response.is_success:
            return TransportFailure(
                TransportError(
                    safe_url,
                    f"HTTP {response.status_code}: {response.text[:200]}",
                    status_code=response.status_code,
                )
            )

        return Fresh(response_headers, response.content)

    async def close(self) -> None:
        await self._client.aclose()
