"""Provider-tunable THORChain parameters fetched from the info server.

Parameters are cached process-wide and refreshed at most once per interval.
A failed refresh keeps the previous values; a successful one replaces the
whole parameter set at once.
"""

import logging
import time
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable, Optional, Sequence

import httpx

from swapquote.contracts.thorchain import AssetSpread, ExchangeInfo, parse_exchange_info
from swapquote.errors import ProviderProtocolError
from swapquote.routing.transport import fetch_waterfall

logger = logging.getLogger(__name__)

# BTC/BCH have ~10 min blocks and the most price movement between quote and
# settlement, LTC/DOGE/DASH ~2 min. Faster chains use the defaults.
VOLATILITY_SPREAD_DEFAULT = Decimal("0.0075")
LIKE_KIND_VOLATILITY_SPREAD_DEFAULT = Decimal("0.005")
PER_ASSET_SPREAD_DEFAULT = (
    AssetSpread(source_plugin_id="bitcoin", volatility_spread=Decimal("0.015")),
    AssetSpread(source_plugin_id="bitcoincash", volatility_spread=Decimal("0.015")),
    AssetSpread(source_plugin_id="dogecoin", volatility_spread=Decimal("0.01")),
    AssetSpread(source_plugin_id="litecoin", volatility_spread=Decimal("0.01")),
    AssetSpread(source_plugin_id="dash", volatility_spread=Decimal("0.01")),
)


@dataclass(frozen=True)
class ExchangeParameters:
    """One consistent snapshot of tunable parameters."""

    midgard_servers: tuple[str, ...]
    thornode_servers: tuple[str, ...]
    affiliate_fee_basis: int
    volatility_spread: Decimal = VOLATILITY_SPREAD_DEFAULT
    like_kind_volatility_spread: Decimal = LIKE_KIND_VOLATILITY_SPREAD_DEFAULT
    per_asset_spread: tuple[AssetSpread, ...] = field(default=PER_ASSET_SPREAD_DEFAULT)
    last_refreshed_at: Optional[float] = None

    def merge_info(self, info: ExchangeInfo, refreshed_at: float) -> "ExchangeParameters":
        """New snapshot from an info server reply; absent optional fields keep current values."""
        thorchain = info.thorchain
        return ExchangeParameters(
            midgard_servers=tuple(thorchain.midgard_servers),
            thornode_servers=tuple(thorchain.thornode_servers or self.thornode_servers),
            affiliate_fee_basis=(
                thorchain.affiliate_fee_basis
                if thorchain.affiliate_fee_basis is not None
                else self.affiliate_fee_basis
            ),
            volatility_spread=thorchain.volatility_spread,
            like_kind_volatility_spread=thorchain.like_kind_volatility_spread,
            per_asset_spread=tuple(thorchain.per_asset_spread),
            last_refreshed_at=refreshed_at,
        )


class ExchangeInfoCache:
    """TTL cache around the info server's exchange parameters."""

    def __init__(
        self,
        defaults: ExchangeParameters,
        info_servers: Sequence[str],
        app_id: str = "edge",
        refresh_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._params = defaults
        self.info_servers = list(info_servers)
        self.app_id = app_id
        self.refresh_seconds = refresh_seconds
        self._clock = clock

    @property
    def parameters(self) -> ExchangeParameters:
        return self._params

    def is_stale(self) -> bool:
        last = self._params.last_refreshed_at
        return last is None or self._clock() - last > self.refresh_seconds

    async def get(self, client: httpx.AsyncClient) -> ExchangeParameters:
        """Current parameters, refreshing first if they are stale."""
        if self.is_stale():
            await self.refresh(client)
        return self._params

    async def refresh(self, client: httpx.AsyncClient) -> bool:
        """
        Fetch fresh parameters.

        Returns:
            True if the parameters were replaced, False if the previous
            values were kept because the fetch failed
        """
        path = f"v1/exchangeInfo/{self.app_id}"
        try:
            response = await fetch_waterfall(client, self.info_servers, path)
            info = parse_exchange_info(response.json(), url=str(response.url))
        except (ProviderProtocolError, ValueError) as e:
            logger.warning(f"Error getting exchange info, keeping previous values: {e}")
            return False

        self._params = self._params.merge_info(info, self._clock())
        logger.info(
            f"Exchange info refreshed: spread={self._params.volatility_spread} "
            f"like_kind={self._params.like_kind_volatility_spread}"
        )
        return True
