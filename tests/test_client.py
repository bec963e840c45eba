from unittest.mock import MagicMock, patch

import pytest

from valr.client import ValrClient
from valr.config import ValrConfig
from valr.errors import InvalidCredentialsError, ValrConfigurationError
from valr.request_signer import sign_request
from valr.secrets import ValrCredentials

API_KEY = "b9fb68df5485639d03c3171cf6e49b89e52fd78d5c313819b9c592b59c689f33"
API_SECRET = "4961b74efac86b25cce8fbe4c9811c4c7a787b7a5996660afcc2e287ad864363"


def _ok(text="{}"):
    resp = MagicMock()
    resp.status_code = 200
    resp.ok = True
    resp.text = text
    resp.headers = {}
    return resp


def test_unauthenticated_client():
    client = ValrClient()
    assert not client.is_authenticated
    assert client.subaccount_id is None


def test_partial_credentials_rejected():
    with pytest.raises(ValrConfigurationError, match="together"):
        ValrClient(api_key=API_KEY)


def test_malformed_credentials_rejected():
    with pytest.raises(InvalidCredentialsError):
        ValrClient(api_key="abc", api_secret=API_SECRET)


def test_endpoint_groups_present():
    client = ValrClient(API_KEY, API_SECRET)
    for group in ("public", "account", "trading", "wallets", "health"):
        assert getattr(client, group)._http is client.http


def test_subaccount_property_normalizes_empty_to_none():
    client = ValrClient(API_KEY, API_SECRET, subaccount_id="")
    assert client.subaccount_id is None
    client.subaccount_id = "42"
    assert client.subaccount_id == "42"
    client.subaccount_id = None
    assert client.subaccount_id is None


def test_account_call_is_signed_with_subaccount():
    client = ValrClient(API_KEY, API_SECRET, subaccount_id="42")
    with patch.object(client.http.session, "send", return_value=_ok("[]")) as mock_send:
        assert client.account.get_balances(exclude_zero_balances=True) == []

    prepared = mock_send.call_args[0][0]
    path = "/v1/account/balances?excludeZeroBalances=true"
    ts = int(prepared.headers["X-VALR-TIMESTAMP"])
    assert prepared.url == f"https://api.valr.com{path}"
    assert prepared.headers["X-VALR-SUB-ACCOUNT-ID"] == "42"
    assert prepared.headers["X-VALR-SIGNATURE"] == sign_request(API_SECRET, ts, "GET", path, subaccount_id="42")


def test_clearing_subaccount_stops_impersonation():
    client = ValrClient(API_KEY, API_SECRET, subaccount_id="42")
    client.subaccount_id = None
    with patch.object(client.http.session, "send", return_value=_ok()) as mock_send:
        client.account.get_trade_fees()
    assert "X-VALR-SUB-ACCOUNT-ID" not in mock_send.call_args[0][0].headers


def test_public_call_without_credentials_sends_no_signature():
    client = ValrClient()
    with patch.object(client.http.session, "send", return_value=_ok('{"epochTime": 1}')) as mock_send:
        assert client.public.get_server_time() == {"epochTime": 1}
    assert "X-VALR-API-KEY" not in mock_send.call_args[0][0].headers


def test_trading_call_sends_compact_body():
    client = ValrClient(API_KEY, API_SECRET)
    order = {"pair": "BTCZAR", "side": "SELL", "quantity": "0.1", "price": "1000000", "postOnly": True}
    with patch.object(client.http.session, "send", return_value=_ok('{"id": "abc"}')) as mock_send:
        assert client.trading.place_limit_order(order) == {"id": "abc"}

    prepared = mock_send.call_args[0][0]
    assert prepared.method == "POST"
    assert prepared.url == "https://api.valr.com/v1/orders/limit"
    assert prepared.body == b'{"pair":"BTCZAR","side":"SELL","quantity":"0.1","price":"1000000","postOnly":true}'


def test_cancel_order_uses_delete_with_body():
    client = ValrClient(API_KEY, API_SECRET)
    with patch.object(client.http.session, "send", return_value=_ok("")) as mock_send:
        assert client.trading.cancel_order({"orderId": "o1", "pair": "BTCZAR"}) is None
    prepared = mock_send.call_args[0][0]
    assert prepared.method == "DELETE"
    assert prepared.body == b'{"orderId":"o1","pair":"BTCZAR"}'


def test_from_credentials_carries_subaccount():
    client = ValrClient.from_credentials(ValrCredentials(API_KEY, API_SECRET, "9"))
    assert client.is_authenticated
    assert client.subaccount_id == "9"


def test_from_config_applies_api_settings():
    config = ValrConfig()
    config.api.base_url = "https://sandbox.example.com/"
    config.api.timeout = 5.0
    config.rate_limit.enabled = True
    config.rate_limit.per_key_per_minute = 100

    client = ValrClient.from_config(config)
    assert client.http.base_url == "https://sandbox.example.com"
    assert client.http.timeout == 5.0
    assert client.http.rate_limiter.quotas["default"].requests_per_window == 100
    assert not client.is_authenticated


def test_from_config_without_rate_limit():
    client = ValrClient.from_config(ValrConfig(), ValrCredentials(API_KEY, API_SECRET))
    assert client.http.rate_limiter is None
    assert client.is_authenticated


def test_context_manager_closes_session():
    client = ValrClient()
    with patch.object(client.http.session, "close") as mock_close:
        with client:
            pass
    mock_close.assert_called_once()
