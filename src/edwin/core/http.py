"""
Shared JSON-over-HTTP client for capability providers.

Retries are private to this client: 429, 5xx and timeouts back off
exponentially; other failures surface at once as ``UpstreamError``.
"""

import asyncio
import logging
from typing import Any

import aiohttp

from edwin.utils.errors import UpstreamError

logger = logging.getLogger(__name__)

RETRYABLE_STATUS = {429, 500, 502, 503, 504}


class JsonHttpClient:
    """Thin aiohttp wrapper bound to one base URL."""

    def __init__(
        self,
        base_url: str,
        headers: dict[str, str] | None = None,
        timeout_seconds: float = 30.0,
        max_retries: int = 2,
        service_name: str | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.headers = {"Content-Type": "application/json", **(headers or {})}
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries
        self.service_name = service_name or self.base_url
        self.session: aiohttp.ClientSession | None = None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure HTTP session is available."""
        if self.session is None or self.session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
            self.session = aiohttp.ClientSession(timeout=timeout, headers=self.headers)
        return self.session

    def url_for(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    async def request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json_body: Any = None,
    ) -> Any:
        """Send a request and decode the JSON body.

        Args:
            method: HTTP method
            path: Path relative to the base URL, or an absolute URL
            params: Query parameters; ``None`` values are dropped
            json_body: Body to send as JSON

        Returns:
            Decoded JSON (or text when the body is not JSON)

        Raises:
            UpstreamError: On non-success status, network failure or timeout
        """
        session = await self._ensure_session()
        url = self.url_for(path)
        query = {k: str(v) for k, v in (params or {}).items() if v is not None}
        operation = f"{method} {path}"

        for attempt in range(self.max_retries + 1):
            try:
                async with session.request(method, url, params=query or None, json=json_body) as response:
                    if 200 <= response.status < 300:
                        try:
                            return await response.json(content_type=None)
                        except ValueError:
                            return await response.text()

                    error_text = await response.text()
                    if response.status in RETRYABLE_STATUS and attempt < self.max_retries:
                        logger.warning(
                            f"{self.service_name} returned {response.status} for {operation}, retrying"
                        )
                        await asyncio.sleep(2 ** attempt)
                        continue

                    raise UpstreamError(
                        f"{self.service_name} request failed: {response.status} {response.reason or ''} {error_text}".strip(),
                        operation=operation,
                        target=url,
                        status=response.status,
                    )

            except UpstreamError:
                raise
            except asyncio.TimeoutError as e:
                if attempt == self.max_retries:
                    raise UpstreamError(
                        f"{self.service_name} request timed out after {self.timeout_seconds}s",
                        operation=operation,
                        target=url,
                    ) from e
                await asyncio.sleep(2 ** attempt)
            except aiohttp.ClientError as e:
                if attempt == self.max_retries:
                    raise UpstreamError(
                        f"{self.service_name} request failed: {e}",
                        operation=operation,
                        target=url,
                    ) from e
                logger.warning(f"Request attempt {attempt + 1} to {self.service_name} failed: {e}")
                await asyncio.sleep(2 ** attempt)

        raise UpstreamError(f"{self.service_name}: max retries exceeded", operation=operation, target=url)

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json_body: Any = None, params: dict[str, Any] | None = None) -> Any:
        return await self.request("POST", path, params=params, json_body=json_body)

    async def close(self) -> None:
        """Close the underlying session."""
        if self.session and not self.session.closed:
            await self.session.close()
        self.session = None
