"""VALR REST client facades.

Example:
    >>> from valr.client import ValrClient
    >>> from valr.secrets import load_credentials
    >>>
    >>> public = ValrClient()
    >>> public.public.get_server_time()
    >>>
    >>> creds = load_credentials()
    >>> client = ValrClient.from_credentials(creds)
    >>> client.account.get_balances(exclude_zero_balances=True)
"""
from typing import Dict, Optional

from .api import AccountAPI, HealthAPI, PublicAPI, TradingAPI, WalletsAPI
from .async_http_client import AsyncHttpClient
from .config import ValrConfig
from .constants import API_BASE_URL, RATE_LIMITS
from .http_client import HttpClient
from .logging_setup import logger
from .rate_limit_policy import RateLimitManager, RateLimitQuota, default_quotas
from .request_signer import build_auth_headers, check_credentials
from .secrets import ValrCredentials


def _rate_limiter_from_config(config: ValrConfig) -> Optional[RateLimitManager]:
    if not config.rate_limit.enabled:
        return None
    quotas = default_quotas()
    if config.rate_limit.per_key_per_minute != RATE_LIMITS["per_key_per_minute"]:
        quotas["default"] = RateLimitQuota(requests_per_window=config.rate_limit.per_key_per_minute, window_seconds=60)
    return RateLimitManager(quotas)


class _SignedClient:
    """Credential handling shared by the sync and async facades."""

    def __init__(self, api_key: Optional[str], api_secret: Optional[str], subaccount_id: Optional[str]):
        self._authenticated = check_credentials(api_key, api_secret)
        self._api_key = api_key
        self._api_secret = api_secret
        self.subaccount_id = subaccount_id

    @property
    def is_authenticated(self) -> bool:
        return self._authenticated

    @property
    def subaccount_id(self) -> Optional[str]:
        return self._subaccount_id

    @subaccount_id.setter
    def subaccount_id(self, value: Optional[str]) -> None:
        """Impersonate a subaccount on subsequent requests; None clears it."""
        self._subaccount_id = value or None

    def _auth_headers(self, verb: str, request_path: str, body: str) -> Dict[str, str]:
        if not self._authenticated:
            return {}
        return build_auth_headers(
            self._api_key,
            self._api_secret,
            verb=verb,
            path=request_path,
            body=body,
            subaccount_id=self._subaccount_id,
        )

    def _init_groups(self, http) -> None:
        self.public = PublicAPI(http)
        self.account = AccountAPI(http)
        self.trading = TradingAPI(http)
        self.wallets = WalletsAPI(http)
        self.health = HealthAPI(http)


class ValrClient(_SignedClient):
    """Synchronous VALR API client.

    Without credentials only ``public`` and ``health`` endpoints will succeed;
    no authentication headers are sent.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        *,
        base_url: str = API_BASE_URL,
        timeout: float = 30.0,
        subaccount_id: Optional[str] = None,
        rate_limiter: Optional[RateLimitManager] = None,
    ):
        super().__init__(api_key, api_secret, subaccount_id)
        self.http = HttpClient(
            base_url=base_url,
            timeout=timeout,
            auth_headers=self._auth_headers,
            rate_limiter=rate_limiter,
        )
        self._init_groups(self.http)
        logger.debug(f"ValrClient ready (base_url={base_url}, authenticated={self.is_authenticated})")

    @classmethod
    def from_credentials(cls, credentials: ValrCredentials, **kwargs) -> "ValrClient":
        """Create a client from ValrCredentials (loaded via secrets module)."""
        kwargs.setdefault("subaccount_id", credentials.subaccount_id)
        return cls(api_key=credentials.api_key, api_secret=credentials.api_secret, **kwargs)

    @classmethod
    def from_config(cls, config: ValrConfig, credentials: Optional[ValrCredentials] = None) -> "ValrClient":
        kwargs = dict(
            base_url=config.api.base_url,
            timeout=config.api.timeout,
            rate_limiter=_rate_limiter_from_config(config),
        )
        if credentials is None:
            return cls(**kwargs)
        return cls.from_credentials(credentials, **kwargs)

    def close(self) -> None:
        self.http.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class AsyncValrClient(_SignedClient):
    """Async VALR API client on aiohttp.

    Usage:
        async with AsyncValrClient(api_key, api_secret) as client:
            balances = await client.account.get_balances()
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        *,
        base_url: str = API_BASE_URL,
        timeout: float = 30.0,
        subaccount_id: Optional[str] = None,
        rate_limiter: Optional[RateLimitManager] = None,
    ):
        super().__init__(api_key, api_secret, subaccount_id)
        self.http = AsyncHttpClient(
            base_url=base_url,
            timeout=timeout,
            auth_headers=self._auth_headers,
            rate_limiter=rate_limiter,
        )
        self._init_groups(self.http)

    @classmethod
    def from_credentials(cls, credentials: ValrCredentials, **kwargs) -> "AsyncValrClient":
        kwargs.setdefault("subaccount_id", credentials.subaccount_id)
        return cls(api_key=credentials.api_key, api_secret=credentials.api_secret, **kwargs)

    @classmethod
    def from_config(cls, config: ValrConfig, credentials: Optional[ValrCredentials] = None) -> "AsyncValrClient":
        kwargs = dict(
            base_url=config.api.base_url,
            timeout=config.api.timeout,
            rate_limiter=_rate_limiter_from_config(config),
        )
        if credentials is None:
            return cls(**kwargs)
        return cls.from_credentials(credentials, **kwargs)

    async def __aenter__(self):
        await self.http.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.http.close()

    async def close(self) -> None:
        await self.http.close()
