import logging
import threading

from infrastructure.http.base import Fresh, HttpAdapter, HttpResult, NotModified, TransportFailure

logger = logging.getLogger(__name__)


class ETagTransport:
    """
    Conditional GET on top of an HttpAdapter.

    Remembers the (etag, date) validators of the last response for each URL
    and sends them back as If-None-Match / If-Modified-Since, so an unchanged
    resource comes back as NotModified instead of a full body. The validator
    table belongs to this instance only.
    """

    def __init__(self, adapter: HttpAdapter):
        self.adapter = adapter
        self._validators: dict[str, tuple[str, str]] = {}
        self._lock = threading.Lock()

    async def get(self, url: str, headers: dict[str, str] | None = None) -> HttpResult:
        request_headers = dict(headers or {})
        validator = self.validator_for(url)
        if validator is not None:
            etag, modified_since = validator
            request_headers["If-None-Match"] = etag
            request_headers["If-Modified-Since"] = modified_since

        result = await self.adapter.get(url, request_headers)

        if isinstance(result, (Fresh, NotModified)):
            self._remember(url, result.headers)
        elif isinstance(result, TransportFailure):
            logger.debug(f"GET failed, keeping validators: {result.error}")

        return result

    def validator_for(self, url: str) -> tuple[str, str] | None:
        return self._validators.get(url)

    def forget(self, url: str) -> None:
        with self._lock:
            self._validators.pop(url, None)

    def clear(self) -> None:
        with self._lock:
            self._validators.clear()

    def _remember(self, url: str, headers: dict[str, str]) -> None:
        etag = headers.get("etag")
        modified = headers.get("last-modified") or headers.get("date")

        with self._lock:
            # A lone etag or date cannot build a conditional request.
            if etag and modified:
                self._validators[url] = (etag, modified)
            else:
                self._validators.pop(url, None)

    async def close(self) -> None:
        await self.adapter.close()
