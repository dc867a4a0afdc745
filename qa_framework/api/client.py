"""
HTTP client for API tests.

Wraps an aiohttp session with request/response logging, bearer or basic
authentication and a single normalized error shape (``ApiError``) for both
HTTP error statuses and transport failures.
"""

import asyncio
import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Union

import aiohttp

from ..core.config import Config
from ..core.exceptions import ApiError
from ..core.logging_config import log_api_request


DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
    "User-Agent": "QA-Framework/1.0",
}


@dataclass
class ApiResponse:
    """A completed HTTP exchange with its decoded body."""

    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    data: Any = None
    url: str = ""
    method: str = "GET"
    elapsed_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class ApiClient:
    """
    Asynchronous HTTP test client bound to one base URL.

    Use as an async context manager, or call ``close()`` when done. The
    underlying session is created on first request.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        config: Optional[Config] = None,
        timeout_ms: Optional[int] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the API client.

        Args:
            base_url: Base URL; defaults to the configured API base URL
            config: Optional configuration snapshot
            timeout_ms: Total request timeout; defaults to the configured one
            logger: Optional logger instance
        """
        if base_url is None and config is None:
            raise ValueError("Either base_url or config is required")

        self.base_url = (base_url or config.api_base_url).rstrip("/")
        self.timeout_ms = timeout_ms or (config.api_timeout if config else 30000)
        self.logger = logger or logging.getLogger(__name__)
        self._headers: Dict[str, str] = dict(DEFAULT_HEADERS)
        if config is not None and config.api_key:
            self._headers["X-API-Key"] = config.api_key
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout_ms / 1000)
            )
        return self._session

    def _build_url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    # Headers

    def set_auth_token(self, token: str, scheme: str = "Bearer") -> None:
        if scheme not in ("Bearer", "Basic"):
            raise ValueError(f"Unsupported auth scheme: {scheme}")
        self._headers["Authorization"] = f"{scheme} {token}"
        self.logger.info("Authorization token set")

    def remove_auth_token(self) -> None:
        self._headers.pop("Authorization", None)
        self.logger.info("Authorization token removed")

    def set_headers(self, headers: Mapping[str, str]) -> None:
        self._headers.update(headers)
        self.logger.info(f"Custom headers set: {', '.join(headers)}")

    @property
    def headers(self) -> Dict[str, str]:
        return dict(self._headers)

    # Requests

    async def request(
        self,
        method: str,
        path: str,
        json_body: Any = None,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        data: Any = None,
        raw: bool = False,
    ) -> ApiResponse:
        """
        Perform one HTTP request.

        Args:
            method: HTTP method
            path: Path relative to the base URL (or an absolute URL)
            json_body: Body serialized as JSON
            params: Query string parameters
            headers: Extra headers for this request only
            data: Raw or form body (``aiohttp.FormData``)
            raw: Return the body as bytes instead of decoding it

        Returns:
            ApiResponse for a status below 400

        Raises:
            ApiError: On a status of 400 or above, or a transport failure
        """
        method = method.upper()
        request_headers = dict(self._headers)
        if data is not None:
            # Let aiohttp set the multipart boundary
            request_headers.pop("Content-Type", None)
        if headers:
            request_headers.update(headers)

        log_api_request(self.logger, method, path)
        started = time.monotonic()

        try:
            async with self._get_session().request(
                method,
                self._build_url(path),
                json=json_body,
                params=params,
                data=data,
                headers=request_headers,
            ) as response:
                body = await response.read()
                status = response.status
                response_headers = {k: v for k, v in response.headers.items()}
                content_type = response.content_type
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.logger.error(f"API Error [{method} {path}]: {e!r}")
            raise ApiError(
                f"API Error: {e!r}", status=None, data=None, url=path, method=method
            ) from e

        elapsed_ms = (time.monotonic() - started) * 1000
        payload = body if raw else self._decode(body, content_type)
        log_api_request(self.logger, method, path, status, elapsed_ms)

        if status >= 400:
            self.logger.error(
                f"API Error [{method} {path}]: status {status}",
                extra={"event": "API_ERROR", "metadata": {"status": status, "data": payload}},
            )
            raise ApiError(
                f"API Error: request failed with status code {status}",
                status=status,
                data=payload,
                url=path,
                method=method,
            )

        self.logger.debug(
            "API Response Details",
            extra={"metadata": {"status": status, "data_size": len(body)}},
        )
        return ApiResponse(
            status=status,
            headers=response_headers,
            data=payload,
            url=path,
            method=method,
            elapsed_ms=elapsed_ms,
        )

    @staticmethod
    def _decode(body: bytes, content_type: str) -> Any:
        if not body:
            return None
        text = body.decode("utf-8", errors="replace")
        if content_type == "application/json" or content_type.endswith("+json"):
            try:
                return json.loads(text)
            except ValueError:
                return text
        return text

    async def get(self, path: str, **kwargs) -> ApiResponse:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, json_body: Any = None, **kwargs) -> ApiResponse:
        return await self.request("POST", path, json_body=json_body, **kwargs)

    async def put(self, path: str, json_body: Any = None, **kwargs) -> ApiResponse:
        return await self.request("PUT", path, json_body=json_body, **kwargs)

    async def patch(self, path: str, json_body: Any = None, **kwargs) -> ApiResponse:
        return await self.request("PATCH", path, json_body=json_body, **kwargs)

    async def delete(self, path: str, **kwargs) -> ApiResponse:
        return await self.request("DELETE", path, **kwargs)

    async def upload_file(
        self,
        path: str,
        file: Union[str, Path, bytes],
        field_name: str = "file",
        fields: Optional[Mapping[str, Any]] = None,
    ) -> ApiResponse:
        """Upload a file (path or raw bytes) as multipart form data."""
        form = aiohttp.FormData()
        if isinstance(file, bytes):
            form.add_field(field_name, file, filename=field_name)
        else:
            file_path = Path(file)
            form.add_field(field_name, file_path.read_bytes(), filename=file_path.name)

        for key, value in (fields or {}).items():
            form.add_field(key, str(value))

        return await self.request("POST", path, data=form)

    async def download_file(self, path: str, **kwargs) -> bytes:
        response = await self.request("GET", path, raw=True, **kwargs)
        self.logger.info(
            f"File downloaded: {path}",
            extra={
                "metadata": {
                    "size": len(response.data),
                    "content_type": response.headers.get("Content-Type"),
                }
            },
        )
        return response.data

    async def health_check(self, endpoint: str = "/health") -> bool:
        """Return True for a 2xx response; never raises."""
        try:
            response = await self.get(endpoint)
        except ApiError as e:
            self.logger.error(f"Health check failed {endpoint}: {e}")
            return False
        self.logger.info(f"Health check {endpoint}: status {response.status}, healthy={response.ok}")
        return response.ok

    async def batch_requests(
        self, requests: List[Callable[[], Awaitable[ApiResponse]]]
    ) -> List[ApiResponse]:
        """
        Run request thunks concurrently.

        Results keep the order of ``requests``; any failure fails the batch.
        """
        try:
            responses = await asyncio.gather(*(request() for request in requests))
        except Exception as e:
            self.logger.error(f"Batch requests failed: {e}")
            raise
        self.logger.info(f"Batch requests completed: {len(responses)}")
        return list(responses)
