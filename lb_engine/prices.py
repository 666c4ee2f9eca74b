"""
USD Price Source (CoinGecko)

Цены токенов в USD для метрик позиции.

GET https://api.coingecko.com/api/v3/simple/price?ids=ethereum,usd-coin&vs_currencies=usd

Цены кэшируются на 60 секунд. Если API недоступен - используются
фиксированные fallback цены, снимок помечается как degraded.
"""

import logging
import threading
import time
from typing import Dict, Iterable, Optional

import requests

from .errors import PriceSourceError
from .math.metrics import PRICE_TTL_SECONDS, PriceSnapshot

logger = logging.getLogger(__name__)

COINGECKO_BASE_URL = "https://api.coingecko.com/api/v3"

# Символ токена -> CoinGecko id
COINGECKO_IDS = {
    "WETH": "ethereum",
    "ETH": "ethereum",
    "USDC": "usd-coin",
    "EURC": "euro-coin",
    "USDT": "tether",
    "DAI": "dai",
    "WBTC": "wrapped-bitcoin",
}

# Цены при недоступном API
FALLBACK_USD_PRICES = {
    "WETH": 3500.0,
    "ETH": 3500.0,
    "USDC": 1.0,
    "EURC": 1.05,
    "USDT": 1.0,
    "DAI": 1.0,
}


class PriceCache:
    """
    Thread-safe кэш USD цен с TTL.

    Usage:
        cache = PriceCache(ttl=60)
        cache.set("WETH", PriceSnapshot(3500.0, time.time()))
        snapshot = cache.get("WETH")  # None если нет или устарела
    """

    def __init__(self, ttl: float = PRICE_TTL_SECONDS):
        self.ttl = ttl
        self._cache: Dict[str, PriceSnapshot] = {}
        self._lock = threading.Lock()

    def get(self, symbol: str, now: float = None) -> Optional[PriceSnapshot]:
        key = symbol.upper()
        with self._lock:
            snapshot = self._cache.get(key)
        if snapshot is None or not snapshot.is_fresh(now=now, ttl=self.ttl):
            return None
        return snapshot

    def set(self, symbol: str, snapshot: PriceSnapshot):
        with self._lock:
            self._cache[symbol.upper()] = snapshot

    def clear(self):
        with self._lock:
            self._cache.clear()


class CoinGeckoPriceSource:
    """
    Источник USD цен через CoinGecko simple/price.

    Использование:
        source = CoinGeckoPriceSource()
        snapshot = source.get_usd_price("WETH")
        print(snapshot.value, snapshot.degraded)
        ratio = source.get_pair_price("WETH", "USDC")
    """

    def __init__(
        self,
        timeout: float = 10.0,
        ttl: float = PRICE_TTL_SECONDS,
        ids: Dict[str, str] = None,
        fallback_prices: Dict[str, float] = None,
        session: requests.Session = None
    ):
        self.timeout = timeout
        self.ids = dict(COINGECKO_IDS if ids is None else ids)
        self.fallback_prices = dict(FALLBACK_USD_PRICES if fallback_prices is None else fallback_prices)
        self.cache = PriceCache(ttl=ttl)
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})

    def fetch_usd_prices(self, coin_ids: Iterable[str]) -> Dict[str, float]:
        """
        Запрос цен по CoinGecko id.

        Returns:
            {coin_id: usd_price} для id, которые вернул API

        Raises:
            PriceSourceError: таймаут, сетевая ошибка, non-200 или невалидный JSON
        """
        ids = ",".join(sorted(set(coin_ids)))
        url = f"{COINGECKO_BASE_URL}/simple/price"

        try:
            resp = self.session.get(
                url,
                params={"ids": ids, "vs_currencies": "usd"},
                timeout=self.timeout
            )
        except requests.exceptions.Timeout:
            raise PriceSourceError(f"Timeout fetching prices ({self.timeout}s)")
        except requests.exceptions.RequestException as e:
            raise PriceSourceError(f"Request failed: {e}")

        if resp.status_code != 200:
            raise PriceSourceError(f"CoinGecko API error: {resp.text[:200]}", status_code=resp.status_code)

        try:
            body = resp.json()
        except ValueError:
            raise PriceSourceError("Invalid JSON response", status_code=resp.status_code)

        prices = {}
        for coin_id, data in body.items():
            usd = data.get("usd") if isinstance(data, dict) else None
            if isinstance(usd, (int, float)) and usd > 0:
                prices[coin_id] = float(usd)
        return prices

    def get_usd_price(self, symbol: str, now: float = None) -> PriceSnapshot:
        """
        USD цена токена.

        Порядок: свежий кэш -> CoinGecko -> fallback (degraded).
        Неизвестный символ без fallback даёт снимок с value=None.

        Args:
            symbol: Символ токена (WETH, USDC, ...)
            now: Текущее время (unix seconds), для тестов
        """
        symbol = symbol.upper()
        if now is None:
            now = time.time()

        cached = self.cache.get(symbol, now=now)
        if cached is not None:
            return cached

        coin_id = self.ids.get(symbol)
        price = None
        if coin_id is not None:
            try:
                price = self.fetch_usd_prices([coin_id]).get(coin_id)
            except PriceSourceError as e:
                logger.warning(f"Price fetch for {symbol} failed: {e}")

        if price is not None:
            snapshot = PriceSnapshot(value=price, fetched_at=now)
        else:
            fallback = self.fallback_prices.get(symbol)
            if fallback is not None:
                logger.warning(f"Using fallback price for {symbol}: ${fallback}")
            snapshot = PriceSnapshot(value=fallback, fetched_at=now, degraded=True)

        # Пустые снимки не кэшируем, следующий вызов попробует снова
        if snapshot.value is not None:
            self.cache.set(symbol, snapshot)
        return snapshot

    def get_pair_price(self, symbol_a: str, symbol_b: str, now: float = None) -> Optional[float]:
        """Цена A в единицах B (priceA / priceB) или None."""
        price_a = self.get_usd_price(symbol_a, now=now).value
        price_b = self.get_usd_price(symbol_b, now=now).value
        if not price_a or not price_b:
            return None
        return price_a / price_b
