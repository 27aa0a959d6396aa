"""A minimal asynchronous WebDriver client."""

from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)

FALLBACK_WEBDRIVER_URLS = (
    "http://localhost:9515",
    "http://localhost:4723",
    "http://localhost:9222",
    "http://127.0.0.1:4444",
)

_REQUEST_TIMEOUT = httpx.Timeout(60.0)


class WebDriverError(Exception):
    """Raised when a WebDriver server cannot be reached or reports an error."""

    def __init__(self, error: str, message: str = "") -> None:
        self.error = error
        self.message = message
        super().__init__(f"{error}: {message}" if message else error)


def _value_of(response: httpx.Response) -> Any:
    try:
        body = response.json()
    except ValueError:
        if response.is_error:
            raise WebDriverError(
                f"HTTP {response.status_code}", response.text
            ) from None
        raise WebDriverError("invalid response", response.text) from None

    if not isinstance(body, dict):
        raise WebDriverError("invalid response", repr(body))

    value = body.get("value")
    if isinstance(value, dict) and "error" in value:
        raise WebDriverError(str(value["error"]), str(value.get("message", "")))
    status = body.get("status")
    if status not in (None, 0):
        message = value.get("message", "") if isinstance(value, dict) else str(value)
        raise WebDriverError(f"status {status}", str(message))
    if response.is_error:
        raise WebDriverError(f"HTTP {response.status_code}", response.text)
    return value


class WebDriverClient:
    """A session on a WebDriver server that can load pages and read their source."""

    def __init__(
        self, webdriver_url: str, session_id: str, http: httpx.AsyncClient
    ) -> None:
        self.webdriver_url = webdriver_url
        self.session_id: str | None = session_id
        self._http = http

    @classmethod
    async def connect(cls, webdriver_url: str) -> WebDriverClient:
        """Open a new session on the server; raise WebDriverError on failure."""
        base = webdriver_url.rstrip("/")
        http = httpx.AsyncClient(timeout=_REQUEST_TIMEOUT)
        try:
            try:
                response = await http.post(
                    f"{base}/session", json={"capabilities": {"alwaysMatch": {}}}
                )
            except httpx.HTTPError as exc:
                raise WebDriverError(
                    "connection failed", f"{webdriver_url}: {exc}"
                ) from exc
            body_session = None
            try:
                raw = response.json()
                if isinstance(raw, dict):
                    body_session = raw.get("sessionId")
            except ValueError:
                pass
            value = _value_of(response)
            session_id = (
                value.get("sessionId") if isinstance(value, dict) else None
            ) or body_session
            if not isinstance(session_id, str) or not session_id:
                raise WebDriverError("session not created", "no session id returned")
        except BaseException:
            await http.aclose()
            raise
        return cls(base, session_id, http)

    async def _command(
        self, method: str, path: str, payload: dict[str, Any] | None = None
    ) -> Any:
        if self.session_id is None:
            raise WebDriverError("invalid session id", "session is closed")
        url = f"{self.webdriver_url}/session/{self.session_id}{path}"
        try:
            response = await self._http.request(method, url, json=payload)
        except httpx.HTTPError as exc:
            raise WebDriverError("request failed", f"{url}: {exc}") from exc
        return _value_of(response)

    async def goto(self, url: str) -> None:
        """Navigate the session to a URL."""
        await self._command("POST", "/url", {"url": url})

    async def source(self) -> str:
        """Return the source of the current page."""
        value = await self._command("GET", "/source")
        if not isinstance(value, str):
            raise WebDriverError("invalid response", "page source is not a string")
        return value

    async def close(self) -> None:
        """End the session and release the connection."""
        try:
            if self.session_id is not None:
                await self._command("DELETE", "")
        finally:
            self.session_id = None
            await self._http.aclose()

    async def __aenter__(self) -> WebDriverClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


async def connect_with_fallback(
    worker_id: int, webdriver_url: str
) -> WebDriverClient | None:
    """Connect to the given server, then to common alternatives; None if all fail."""
    try:
        client = await WebDriverClient.connect(webdriver_url)
    except WebDriverError as exc:
        logger.error(
            "Worker %s failed to connect to WebDriver at %s: %s",
            worker_id,
            webdriver_url,
            exc,
        )
    else:
        logger.debug(
            "Worker %s connected to WebDriver at %s", worker_id, webdriver_url
        )
        return client

    for url in FALLBACK_WEBDRIVER_URLS:
        if url == webdriver_url:
            continue
        logger.info("Worker %s trying fallback WebDriver URL: %s", worker_id, url)
        try:
            client = await WebDriverClient.connect(url)
        except WebDriverError:
            continue
        logger.debug("Worker %s connected to fallback WebDriver at %s", worker_id, url)
        return client

    logger.error("Worker %s failed to connect to any WebDriver servers", worker_id)
    logger.error(
        "Make sure a WebDriver server is running or set the WEBDRIVER_URL "
        "environment variable"
    )
    return None