"""Endpoint groups for the VALR REST API.

Each method maps to exactly one remote endpoint and hands the path, query
parameters and body to the transport. With ``HttpClient`` the methods return
the decoded JSON; with ``AsyncHttpClient`` they return an awaitable of it.
Query parameters use the API's own camelCase names, e.g.
``{"skip": 0, "limit": 100, "startTime": "2024-01-01T00:00:00Z"}``.
"""
from typing import Any, Dict, Mapping, Optional

Params = Optional[Mapping[str, Any]]
Body = Dict[str, Any]


class _ApiGroup:
    def __init__(self, http):
        self._http = http


class PublicAPI(_ApiGroup):
    """Market data endpoints; no authentication required."""

    def get_server_time(self):
        return self._http.get("/v1/public/time")

    def get_status(self):
        return self._http.get("/v1/public/status")

    def get_currencies(self):
        return self._http.get("/v1/public/currencies")

    def get_currency_pairs(self):
        return self._http.get("/v1/public/pairs")

    def get_currency_pairs_by_type(self, pair_type: str):
        """pair_type is SPOT or FUTURES."""
        return self._http.get(f"/v1/public/pairs/{pair_type}")

    def get_market_summary(self):
        return self._http.get("/v1/public/marketsummary")

    def get_market_summary_for_pair(self, pair: str):
        return self._http.get(f"/v1/public/{pair}/marketsummary")

    def get_order_book(self, pair: str):
        return self._http.get(f"/v1/public/{pair}/orderbook")

    def get_full_order_book(self, pair: str):
        return self._http.get(f"/v1/public/{pair}/orderbook/full")

    def get_trade_history(self, pair: str, params: Params = None):
        return self._http.get(f"/v1/public/{pair}/trades", params=params)

    def get_order_types(self, params: Params = None):
        return self._http.get("/v1/public/ordertypes", params=params)

    def get_order_types_for_pair(self, pair: str):
        return self._http.get(f"/v1/public/{pair}/ordertypes")

    def get_price_buckets(self, pair: str, params: Params = None):
        return self._http.get(f"/v1/public/{pair}/buckets", params=params)

    def get_mark_price_buckets(self, pair: str, params: Params = None):
        return self._http.get(f"/v1/public/{pair}/markprice/buckets", params=params)


class AccountAPI(_ApiGroup):
    """Balances, history, subaccounts and API keys."""

    def get_balances(self, exclude_zero_balances: Optional[bool] = None):
        return self._http.get("/v1/account/balances", params={"excludeZeroBalances": exclude_zero_balances})

    def get_transaction_history(self, params: Params = None):
        return self._http.get("/v1/account/transactionhistory", params=params)

    def get_trade_history(self, params: Params = None):
        return self._http.get("/v1/account/tradehistory", params=params)

    def get_trade_history_for_pair(self, pair: str, params: Params = None):
        return self._http.get(f"/v1/account/{pair}/tradehistory", params=params)

    def get_trade_fees(self):
        return self._http.get("/v1/account/fees/trade")

    def get_subaccounts(self):
        return self._http.get("/v1/account/subaccounts")

    def create_subaccount(self, label: str):
        return self._http.post("/v1/account/subaccount", body={"label": label})

    def transfer_between_accounts(self, request: Body):
        """Move funds between primary and subaccounts.

        Expects fromId, toId, currencyCode and amount.
        """
        return self._http.post("/v1/account/subaccounts/transfer", body=request)

    def get_api_keys(self):
        return self._http.get("/v1/account/api-keys")

    def delete_api_key(self, key_id: str):
        return self._http.delete(f"/v1/account/api-keys/{key_id}")


class TradingAPI(_ApiGroup):
    """Order placement, status, history, modification and cancellation."""

    def place_limit_order(self, request: Body):
        return self._http.post("/v1/orders/limit", body=request)

    def place_limit_order_v2(self, request: Body):
        return self._http.post("/v2/orders/limit", body=request)

    def place_market_order(self, request: Body):
        return self._http.post("/v1/orders/market", body=request)

    def place_market_order_v2(self, request: Body):
        return self._http.post("/v2/orders/market", body=request)

    def place_stop_limit_order(self, request: Body):
        return self._http.post("/v1/orders/stop/limit", body=request)

    def place_stop_limit_order_v2(self, request: Body):
        return self._http.post("/v2/orders/stop/limit", body=request)

    def place_batch_orders(self, request: Body):
        return self._http.post("/v1/batch/orders", body=request)

    def get_order_status(self, pair: str, order_id: str):
        return self._http.get(f"/v1/orders/{pair}/orderid/{order_id}")

    def get_order_status_by_customer_id(self, pair: str, customer_order_id: str):
        return self._http.get(f"/v1/orders/{pair}/customerorderid/{customer_order_id}")

    def get_all_open_orders(self):
        return self._http.get("/v1/orders/open")

    def get_order_history(self, params: Params = None):
        return self._http.get("/v1/orders/history", params=params)

    def get_order_history_summary(self, order_id: str):
        return self._http.get(f"/v1/orders/history/summary/orderid/{order_id}")

    def get_order_history_summary_by_customer_id(self, customer_order_id: str):
        return self._http.get(f"/v1/orders/history/summary/customerorderid/{customer_order_id}")

    def get_order_history_detail(self, order_id: str):
        return self._http.get(f"/v1/orders/history/detail/orderid/{order_id}")

    def get_order_history_detail_by_customer_id(self, customer_order_id: str):
        return self._http.get(f"/v1/orders/history/detail/customerorderid/{customer_order_id}")

    def modify_order(self, request: Body):
        return self._http.put("/v1/orders/modify", body=request)

    def modify_order_v2(self, request: Body):
        return self._http.put("/v2/orders/modify", body=request)

    def cancel_order(self, request: Body):
        """Cancel one order; request carries pair plus orderId or customerOrderId."""
        return self._http.delete("/v1/orders/order", body=request)

    def cancel_order_v2(self, request: Body):
        return self._http.delete("/v2/orders/order", body=request)

    def get_simple_quote(self, pair: str, request: Body):
        return self._http.post(f"/v1/simple/{pair}/quote", body=request)

    def place_simple_order(self, pair: str, request: Body):
        return self._http.post(f"/v1/simple/{pair}/order", body=request)

    def get_simple_order_status(self, pair: str, order_id: str):
        return self._http.get(f"/v1/simple/{pair}/order/{order_id}")


class WalletsAPI(_ApiGroup):

    def get_crypto_deposit_address(self, currency: str, network_type: Optional[str] = None):
        return self._http.get(
            f"/v1/wallet/crypto/{currency}/deposit/address",
            params={"networkType": network_type},
        )

    def withdraw_crypto(self, request: Body):
        return self._http.post(f"/v1/wallet/crypto/{request['currency']}/withdraw", body=request)

    def get_crypto_withdrawal_status(self, currency: str, withdrawal_id: str):
        return self._http.get(f"/v1/wallet/crypto/{currency}/withdraw/{withdrawal_id}")

    def get_bank_accounts(self, currency: str):
        return self._http.get(f"/v1/wallet/fiat/{currency}/accounts")

    def withdraw_fiat(self, request: Body):
        return self._http.post(f"/v1/wallet/fiat/{request['currency']}/withdraw", body=request)

    def get_fiat_deposit_reference(self, currency: str):
        return self._http.get(f"/v1/wallet/fiat/{currency}/deposit")


class HealthAPI(_ApiGroup):

    def get_health(self):
        return self._http.get("/v1/health")
