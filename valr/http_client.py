import json
from typing import Any, Callable, Dict, Mapping, Optional

import requests

from .constants import API_BASE_URL, CONTENT_TYPE_JSON, HEADER_RATE_LIMITED
from .errors import (
    ValrApiError,
    ValrAuthenticationError,
    ValrNetworkError,
    ValrRateLimitError,
    ValrValidationError,
)
from .logging_setup import logger
from .rate_limit_policy import RateLimitManager
from .request_signer import build_request_path

# (verb, request_path, body) -> headers
AuthHeaders = Callable[[str, str, str], Dict[str, str]]


def serialize_body(body: Any) -> str:
    """Compact JSON, the exact bytes that are both signed and sent."""
    if body is None:
        return ""
    if isinstance(body, str):
        return body
    return json.dumps(body, separators=(",", ":"))


def classify_error(status: int, data: Any, headers: Mapping[str, str]) -> ValrApiError:
    """Map a non-2xx response onto the matching ValrApiError subclass."""
    message = data.get("message") if isinstance(data, dict) else None

    rate_limited = str(headers.get(HEADER_RATE_LIMITED, "")).lower() == "true"
    if status == 429 or rate_limited:
        return ValrRateLimitError(message or "API rate limit exceeded", status_code=status, response=data)

    if status in (401, 403):
        return ValrAuthenticationError(message or "Authentication failed", status_code=status, response=data)

    if status == 400:
        errors = None
        if isinstance(data, dict):
            errors = data.get("errors") or (data.get("validationErrors") or {}).get("errors")
        return ValrValidationError(message or "Validation failed", errors=errors, status_code=status, response=data)

    return ValrApiError(message or f"API request failed with status {status}", status_code=status, response=data)


def parse_body(text: str) -> Any:
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return text


class HttpClient:
    """Synchronous VALR transport on a requests.Session.

    The request path (query string included) is built once by
    ``build_request_path``, signed, and pinned onto the prepared request so
    requests cannot re-encode the query after signing. No retries are
    performed; failures are raised as typed ``ValrApiError`` subclasses.
    """

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        timeout: float = 30.0,
        *,
        auth_headers: Optional[AuthHeaders] = None,
        rate_limiter: Optional[RateLimitManager] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.auth_headers = auth_headers
        self.rate_limiter = rate_limiter
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": CONTENT_TYPE_JSON})

    def _prepare(self, method: str, request_path: str, body_str: str) -> requests.PreparedRequest:
        verb = method.upper()
        headers = {}
        if self.auth_headers is not None:
            headers.update(self.auth_headers(verb, request_path, body_str))

        url = f"{self.base_url}{request_path}"
        req = requests.Request(verb, url, headers=headers, data=body_str.encode("utf-8") if body_str else None)
        prepared = self.session.prepare_request(req)
        # Send exactly what was signed
        prepared.url = url
        return prepared

    def request(self, method: str, path: str, params: Optional[Mapping[str, Any]] = None, body: Any = None) -> Any:
        request_path = build_request_path(path, params)
        body_str = serialize_body(body)

        if self.rate_limiter is not None and not self.rate_limiter.wait_if_needed(request_path):
            raise ValrRateLimitError(f"Client-side rate limit wait exceeded for {request_path}")

        prepared = self._prepare(method, request_path, body_str)
        logger.debug(f"{prepared.method} {request_path}")

        # proxies, verify and cert from the environment, as Session.request applies them
        settings = self.session.merge_environment_settings(prepared.url, {}, None, None, None)
        try:
            resp = self.session.send(prepared, timeout=self.timeout, **settings)
        except requests.exceptions.RequestException as e:
            logger.warning(f"{prepared.method} {request_path} failed without response: {e}")
            raise ValrNetworkError(f"Request failed: {e}", response=e)

        data = parse_body(resp.text)
        if not resp.ok:
            error = classify_error(resp.status_code, data, resp.headers)
            logger.warning(f"{prepared.method} {request_path} -> {resp.status_code} {type(error).__name__}: {error}")
            raise error

        return data

    def get(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, body: Any = None, params: Optional[Mapping[str, Any]] = None) -> Any:
        return self.request("POST", path, params=params, body=body)

    def put(self, path: str, body: Any = None) -> Any:
        return self.request("PUT", path, body=body)

    def patch(self, path: str, body: Any = None) -> Any:
        return self.request("PATCH", path, body=body)

    def delete(self, path: str, body: Any = None, params: Optional[Mapping[str, Any]] = None) -> Any:
        return self.request("DELETE", path, params=params, body=body)

    def close(self) -> None:
        self.session.close()
