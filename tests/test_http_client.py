import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from valr.errors import (
    ValrApiError,
    ValrAuthenticationError,
    ValrNetworkError,
    ValrRateLimitError,
    ValrValidationError,
)
from valr.http_client import HttpClient, classify_error, serialize_body
from valr.rate_limit_policy import RateLimitManager, RateLimitQuota
from valr.request_signer import build_auth_headers, sign_request

API_KEY = "b9fb68df5485639d03c3171cf6e49b89e52fd78d5c313819b9c592b59c689f33"
API_SECRET = "4961b74efac86b25cce8fbe4c9811c4c7a787b7a5996660afcc2e287ad864363"


def _response(status=200, text="", headers=None):
    resp = MagicMock()
    resp.status_code = status
    resp.ok = 200 <= status < 400
    resp.text = text
    resp.headers = headers or {}
    return resp


def _signed_client(**kwargs):
    def auth(verb, path, body):
        return build_auth_headers(API_KEY, API_SECRET, verb=verb, path=path, body=body)

    return HttpClient(base_url="https://api.valr.com", auth_headers=auth, **kwargs)


def test_serialize_body_is_compact():
    assert serialize_body(None) == ""
    assert serialize_body({"pair": "BTCZAR", "side": "BUY"}) == '{"pair":"BTCZAR","side":"BUY"}'
    assert serialize_body('{"raw":1}') == '{"raw":1}'


def test_sent_url_is_exactly_the_signed_path():
    """The query string on the wire is the one that was signed, unencoded."""
    http = _signed_client()
    with patch.object(http.session, "send", return_value=_response(text="[]")) as mock_send:
        http.get("/v1/orders/history", params={"startTime": "2024-01-01T00:00:00Z", "limit": 5, "skip": None})

    prepared = mock_send.call_args[0][0]
    signed_path = "/v1/orders/history?limit=5&startTime=2024-01-01T00:00:00Z"
    assert prepared.url == f"https://api.valr.com{signed_path}"

    ts = int(prepared.headers["X-VALR-TIMESTAMP"])
    assert prepared.headers["X-VALR-SIGNATURE"] == sign_request(API_SECRET, ts, "GET", signed_path)
    assert prepared.headers["X-VALR-API-KEY"] == API_KEY


def test_sent_body_is_exactly_the_signed_body():
    http = _signed_client()
    order = {"pair": "BTCZAR", "side": "BUY", "quoteAmount": "100"}
    with patch.object(http.session, "send", return_value=_response(text='{"id": "o1"}')) as mock_send:
        result = http.post("/v1/orders/market", body=order)

    assert result == {"id": "o1"}
    prepared = mock_send.call_args[0][0]
    body = prepared.body.decode("utf-8")
    assert body == json.dumps(order, separators=(",", ":"))
    ts = int(prepared.headers["X-VALR-TIMESTAMP"])
    assert prepared.headers["X-VALR-SIGNATURE"] == sign_request(API_SECRET, ts, "POST", "/v1/orders/market", body=body)
    assert prepared.method == "POST"


def test_unauthenticated_request_has_no_auth_headers():
    http = HttpClient()
    with patch.object(http.session, "send", return_value=_response(text='{"epochTime": 1}')) as mock_send:
        assert http.get("/v1/public/time") == {"epochTime": 1}

    prepared = mock_send.call_args[0][0]
    assert "X-VALR-SIGNATURE" not in prepared.headers
    assert prepared.url == "https://api.valr.com/v1/public/time"


def test_empty_response_returns_none():
    http = HttpClient()
    with patch.object(http.session, "send", return_value=_response(status=202, text="")):
        assert http.delete("/v1/orders/order", body={"orderId": "x", "pair": "BTCZAR"}) is None


@pytest.mark.parametrize(
    "status, headers, error_cls",
    [
        (429, {}, ValrRateLimitError),
        (503, {"x-valr-ratelimited": "true"}, ValrRateLimitError),
        (401, {}, ValrAuthenticationError),
        (403, {}, ValrAuthenticationError),
        (400, {}, ValrValidationError),
        (404, {}, ValrApiError),
        (500, {}, ValrApiError),
    ],
)
def test_non_2xx_is_classified(status, headers, error_cls):
    http = HttpClient()
    resp = _response(status=status, text='{"message": "nope"}', headers=headers)
    with patch.object(http.session, "send", return_value=resp):
        with pytest.raises(error_cls, match="nope") as excinfo:
            http.get("/v1/account/balances")
    assert type(excinfo.value) is error_cls
    assert excinfo.value.status_code == status


def test_validation_error_carries_field_errors():
    error = classify_error(400, {"message": "bad", "validationErrors": {"errors": {"price": ["must be positive"]}}}, {})
    assert isinstance(error, ValrValidationError)
    assert error.errors == {"price": ["must be positive"]}


def test_generic_error_without_message_uses_status():
    error = classify_error(502, "Bad Gateway", {})
    assert type(error) is ValrApiError
    assert "502" in str(error)
    assert error.response == "Bad Gateway"


def test_no_response_raises_network_error():
    http = HttpClient()
    with patch.object(http.session, "send", side_effect=requests.exceptions.ConnectionError("refused")):
        with pytest.raises(ValrNetworkError, match="refused") as excinfo:
            http.get("/v1/public/time")
    assert excinfo.value.status_code is None


def test_errors_are_not_retried():
    http = HttpClient()
    with patch.object(http.session, "send", return_value=_response(status=429, text="")) as mock_send:
        with pytest.raises(ValrRateLimitError):
            http.get("/v1/public/time")
    assert mock_send.call_count == 1


def test_rate_limiter_exhausted_raises_before_sending():
    limiter = RateLimitManager({"default": RateLimitQuota(requests_per_window=1, window_seconds=60)})
    http = HttpClient(rate_limiter=limiter)
    with patch.object(limiter, "wait_if_needed", return_value=False):
        with patch.object(http.session, "send") as mock_send:
            with pytest.raises(ValrRateLimitError, match="Client-side"):
                http.get("/v1/public/time")
    mock_send.assert_not_called()


def test_rate_limiter_records_requests():
    limiter = RateLimitManager({"default": RateLimitQuota(requests_per_window=5, window_seconds=60)})
    http = HttpClient(rate_limiter=limiter)
    with patch.object(http.session, "send", return_value=_response(text="{}")):
        http.get("/v1/public/time")
        http.get("/v1/public/status")
    assert len(limiter.states["default"].request_times) == 2


def test_environment_proxy_and_ca_bundle_are_applied(monkeypatch, tmp_path):
    """HTTPS_PROXY and REQUESTS_CA_BUNDLE reach the send call like Session.request."""
    ca_bundle = tmp_path / "ca.pem"
    ca_bundle.write_text("")
    for name in ("https_proxy", "all_proxy", "ALL_PROXY", "no_proxy", "NO_PROXY", "CURL_CA_BUNDLE"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HTTPS_PROXY", "http://proxy.local:3128")
    monkeypatch.setenv("REQUESTS_CA_BUNDLE", str(ca_bundle))

    http = HttpClient()
    with patch.object(http.session, "send", return_value=_response(text="{}")) as mock_send:
        http.get("/v1/public/time")

    kwargs = mock_send.call_args.kwargs
    assert kwargs["proxies"]["https"] == "http://proxy.local:3128"
    assert kwargs["verify"] == str(ca_bundle)
    assert kwargs["timeout"] == 30.0
