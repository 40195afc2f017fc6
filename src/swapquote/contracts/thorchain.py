"""THORChain, Midgard and info-server reply schemas.

Replies are validated strictly; any mismatch becomes a ProviderProtocolError.
"""

from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from swapquote.errors import ProviderProtocolError

PROVIDER = "thorchain"
POOL_AVAILABLE = "available"


class Pool(BaseModel):
    """Midgard pool snapshot, one asset paired against RUNE."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    asset: str = Field(..., description="Pool asset, e.g. ETH.USDC-0XA0B8...")
    status: str = Field(default=POOL_AVAILABLE)
    asset_price: Decimal = Field(..., alias="assetPrice", ge=0, description="Price in RUNE")
    asset_price_usd: Decimal = Field(..., alias="assetPriceUSD", ge=0)
    asset_depth: Decimal = Field(default=Decimal(0), alias="assetDepth", ge=0)
    base_depth: Decimal = Field(default=Decimal(0), alias="runeDepth", ge=0)

    @property
    def chain(self) -> str:
        return self.asset.split(".", 1)[0]

    @property
    def symbol(self) -> str:
        """Asset ticker without chain or contract, e.g. USDC."""
        return self.asset.split(".", 1)[-1].split("-", 1)[0]

    @property
    def contract_address(self) -> Optional[str]:
        """Token contract address (lowercased), None for mainnet coins."""
        parts = self.asset.split("-", 1)
        return parts[1].lower() if len(parts) == 2 else None

    @property
    def is_swappable(self) -> bool:
        return self.status == POOL_AVAILABLE and self.asset_depth > 0 and self.base_depth > 0

    def matches(self, chain: str, symbol: str) -> bool:
        return self.chain == chain and self.symbol == symbol


class InboundAddress(BaseModel):
    """THORNode vault entry for one chain."""

    model_config = ConfigDict(populate_by_name=True)

    chain: str
    address: str
    outbound_fee: Decimal = Field(..., ge=0, description="Outbound fee, 1e8 units of the gas asset")
    halted: bool = False
    pub_key: Optional[str] = None
    router: Optional[str] = None
    dust_threshold: Optional[Decimal] = None


class AssetSpread(BaseModel):
    """Per-asset volatility spread rule; unset fields match anything."""

    model_config = ConfigDict(populate_by_name=True)

    source_plugin_id: Optional[str] = Field(default=None, alias="sourcePluginId")
    source_token_id: Optional[str] = Field(default=None, alias="sourceTokenId")
    source_currency_code: Optional[str] = Field(default=None, alias="sourceCurrencyCode")
    dest_plugin_id: Optional[str] = Field(default=None, alias="destPluginId")
    dest_token_id: Optional[str] = Field(default=None, alias="destTokenId")
    dest_currency_code: Optional[str] = Field(default=None, alias="destCurrencyCode")
    volatility_spread: Decimal = Field(..., alias="volatilitySpread", ge=0, lt=1)

    def matches(
        self,
        from_plugin_id: str,
        from_token_id: Optional[str],
        from_currency_code: str,
        to_plugin_id: str,
        to_token_id: Optional[str],
        to_currency_code: str,
    ) -> bool:
        pairs = (
            (self.source_plugin_id, from_plugin_id),
            (self.source_token_id, from_token_id),
            (self.source_currency_code, from_currency_code),
            (self.dest_plugin_id, to_plugin_id),
            (self.dest_token_id, to_token_id),
            (self.dest_currency_code, to_currency_code),
        )
        return all(rule is None or rule == value for rule, value in pairs)


class ThorchainInfo(BaseModel):
    """Provider-tunable parameters published by the info server."""

    model_config = ConfigDict(populate_by_name=True)

    per_asset_spread: list[AssetSpread] = Field(default_factory=list, alias="perAssetSpread")
    volatility_spread: Decimal = Field(..., alias="volatilitySpread", ge=0, lt=1)
    like_kind_volatility_spread: Decimal = Field(..., alias="likeKindVolatilitySpread", ge=0, lt=1)
    midgard_servers: list[str] = Field(..., alias="midgardServers")
    thornode_servers: Optional[list[str]] = Field(default=None, alias="thornodeServers")
    affiliate_fee_basis: Optional[int] = Field(default=None, alias="affiliateFeeBasis", ge=0, lt=10000)


class _SwapPlugins(BaseModel):
    thorchain: ThorchainInfo


class _SwapInfo(BaseModel):
    plugins: _SwapPlugins


class ExchangeInfo(BaseModel):
    """Info server ``v1/exchangeInfo/{app_id}`` reply."""

    swap: _SwapInfo

    @property
    def thorchain(self) -> ThorchainInfo:
        return self.swap.plugins.thorchain


_pools_adapter = TypeAdapter(list[Pool])
_inbound_adapter = TypeAdapter(list[InboundAddress])


def _validate(adapter: TypeAdapter, data: Any, what: str, url: Optional[str] = None):
    try:
        return adapter.validate_python(data)
    except ValidationError as e:
        raise ProviderProtocolError(
            f"Invalid {what} reply: {e.error_count()} validation errors",
            PROVIDER,
            url=url,
        ) from e


def parse_pools(data: Any, url: Optional[str] = None) -> list[Pool]:
    """Validate a Midgard ``v2/pools`` reply."""
    return _validate(_pools_adapter, data, "pools", url)


def parse_inbound_addresses(data: Any, url: Optional[str] = None) -> list[InboundAddress]:
    """Validate a THORNode ``thorchain/inbound_addresses`` reply."""
    return _validate(_inbound_adapter, data, "inbound_addresses", url)


def parse_exchange_info(data: Any, url: Optional[str] = None) -> ExchangeInfo:
    """Validate an info server exchange parameters reply."""
    return _validate(TypeAdapter(ExchangeInfo), data, "exchangeInfo", url)
