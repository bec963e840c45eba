import asyncio
from typing import Any, Mapping, Optional

import aiohttp
from yarl import URL

from .constants import API_BASE_URL, CONTENT_TYPE_JSON
from .errors import ValrApiError, ValrNetworkError, ValrRateLimitError
from .http_client import AuthHeaders, classify_error, parse_body, serialize_body
from .logging_setup import logger
from .rate_limit_policy import RateLimitManager
from .request_signer import build_request_path


class AsyncHttpClient:
    """Async VALR transport using aiohttp.

    Same contract as ``HttpClient``: the signed path is sent verbatim (as an
    already-encoded ``yarl.URL``), failures are raised as typed errors and
    nothing is retried.

    Usage:
        async with AsyncHttpClient() as http:
            server_time = await http.get("/v1/public/time")
    """

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        timeout: float = 30.0,
        *,
        auth_headers: Optional[AuthHeaders] = None,
        rate_limiter: Optional[RateLimitManager] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.auth_headers = auth_headers
        self.rate_limiter = rate_limiter
        self.session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def open(self) -> None:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(headers={"Content-Type": CONTENT_TYPE_JSON})

    async def close(self) -> None:
        if self.session:
            await self.session.close()

    async def request(self, method: str, path: str, params: Optional[Mapping[str, Any]] = None, body: Any = None) -> Any:
        if not self.session:
            raise ValrApiError("Session not initialized; use 'async with' or call open()")

        verb = method.upper()
        request_path = build_request_path(path, params)
        body_str = serialize_body(body)

        if self.rate_limiter is not None and not await self.rate_limiter.wait_if_needed_async(request_path):
            raise ValrRateLimitError(f"Client-side rate limit wait exceeded for {request_path}")

        headers = {}
        if self.auth_headers is not None:
            headers.update(self.auth_headers(verb, request_path, body_str))

        url = URL(f"{self.base_url}{request_path}", encoded=True)
        logger.debug(f"{verb} {request_path}")

        try:
            async with self.session.request(
                verb,
                url,
                headers=headers,
                data=body_str.encode("utf-8") if body_str else None,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as resp:
                text = await resp.text()
                status = resp.status
                resp_headers = resp.headers
        except asyncio.TimeoutError as e:
            logger.warning(f"{verb} {request_path} timed out")
            raise ValrNetworkError(f"Request timeout: {e}", response=e)
        except aiohttp.ClientError as e:
            logger.warning(f"{verb} {request_path} failed without response: {e}")
            raise ValrNetworkError(f"Request failed: {e}", response=e)

        data = parse_body(text)
        if not (200 <= status < 300):
            error = classify_error(status, data, resp_headers)
            logger.warning(f"{verb} {request_path} -> {status} {type(error).__name__}: {error}")
            raise error

        return data

    async def get(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, body: Any = None, params: Optional[Mapping[str, Any]] = None) -> Any:
        return await self.request("POST", path, params=params, body=body)

    async def put(self, path: str, body: Any = None) -> Any:
        return await self.request("PUT", path, body=body)

    async def patch(self, path: str, body: Any = None) -> Any:
        return await self.request("PATCH", path, body=body)

    async def delete(self, path: str, body: Any = None, params: Optional[Mapping[str, Any]] = None) -> Any:
        return await self.request("DELETE", path, params=params, body=body)
