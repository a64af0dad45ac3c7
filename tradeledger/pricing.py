"""Spot price lookup with a short-lived in-process cache.

Quotes come from the Binance public ``/api/v3/ticker/price`` endpoint.
The PnL engine never calls this module; callers resolve prices first
and pass the resulting map in.
"""

import logging
import time
from decimal import Decimal, InvalidOperation
from typing import Callable, Iterable, Optional

import httpx

from tradeledger.exceptions import PriceFetchError
from tradeledger.models import PriceQuote

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.binance.com"
DEFAULT_TTL_SECONDS = 30.0


def normalize_symbol(symbol: str) -> str:
    """Convert "SOL/USDT" to the venue form "SOLUSDT"."""
    return symbol.replace("/", "").upper()


class PriceCache:
    """Quotes keyed by symbol, each valid for ``ttl_seconds`` after fetch."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, PriceQuote] = {}

    def get(self, symbol: str) -> Optional[PriceQuote]:
        """Return the cached quote if it is still fresh."""
        quote = self._entries.get(symbol)
        if quote is None:
            return None
        if self.now() - quote.updated_at >= self.ttl_seconds:
            return None
        return quote

    def now(self) -> float:
        return self._clock()

    def put(self, symbol: str, quote: PriceQuote) -> None:
        self._entries[symbol] = quote

    def clear(self) -> None:
        self._entries.clear()


class PriceProvider:
    """Fetches spot prices, serving repeated lookups from a PriceCache."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        cache: Optional[PriceCache] = None,
        client: Optional[httpx.Client] = None,
    ):
        """Initialize the provider.

        Args:
            base_url: Root URL of the price API.
            timeout: Request timeout in seconds.
            cache: Cache to use; a fresh one with the default TTL otherwise.
            client: Optional preconfigured HTTP client.
        """
        self.cache = cache or PriceCache()
        self._client = client or httpx.Client(base_url=base_url, timeout=timeout)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "PriceProvider":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def fetch_price(self, symbol: str) -> PriceQuote:
        """Fetch a fresh quote, bypassing the cache.

        Raises:
            PriceFetchError: On transport errors, non-2xx responses or an
                unreadable payload.
        """
        try:
            response = self._client.get(
                "/api/v3/ticker/price", params={"symbol": normalize_symbol(symbol)}
            )
            response.raise_for_status()
            data = response.json()
            price = Decimal(str(data["price"]))
        except httpx.HTTPStatusError as e:
            raise PriceFetchError(symbol, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise PriceFetchError(symbol, str(e)) from e
        except (KeyError, TypeError, ValueError, InvalidOperation) as e:
            raise PriceFetchError(symbol, f"unexpected payload: {e}") from e

        return PriceQuote(
            symbol=data.get("symbol", normalize_symbol(symbol)),
            price=price,
            updated_at=self.cache.now(),
        )

    def get_price(self, symbol: str) -> PriceQuote:
        """Return a quote from cache, fetching it if missing or stale."""
        cached = self.cache.get(symbol)
        if cached is not None:
            logger.debug("Price cache hit for %s", symbol)
            return cached

        logger.debug("Price cache miss for %s", symbol)
        quote = self.fetch_price(symbol)
        self.cache.put(symbol, quote)
        return quote

    def get_prices(self, symbols: Iterable[str]) -> dict[str, PriceQuote]:
        """Quotes for each unique symbol.

        Symbols whose lookup fails are left out of the result, which the
        PnL engine treats as "no market price".
        """
        prices: dict[str, PriceQuote] = {}
        for symbol in dict.fromkeys(symbols):
            try:
                prices[symbol] = self.get_price(symbol)
            except PriceFetchError as e:
                logger.warning("Price unavailable: %s", e)
        return prices
