"""Pytest configuration and fixtures."""

import os
from decimal import ROUND_FLOOR, Decimal
from typing import Optional

import pytest

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["DEBUG"] = "true"

from swapquote.contracts.thorchain import Pool
from swapquote.wallet import CurrencyWallet, SpendInfo, Transaction

DECIMALS = {
    "BTC": 8,
    "BCH": 8,
    "LTC": 8,
    "DOGE": 8,
    "RUNE": 8,
    "ETH": 18,
    "WETH": 18,
    "AVAX": 18,
    "USDC": 6,
    "ATOM": 6,
}


class FakeWallet(CurrencyWallet):
    """In-memory wallet recording every spend it builds."""

    def __init__(
        self,
        plugin_id: str,
        currency_code: str,
        address: str,
        balance: str = "0",
        tokens: Optional[dict[str, str]] = None,
        token_balances: Optional[dict[str, str]] = None,
        max_spendable: Optional[str] = None,
        network_fee: str = "2000",
        wallet_id: Optional[str] = None,
    ):
        self._plugin_id = plugin_id
        self._currency_code = currency_code
        self._tokens = tokens or {}
        self._id = wallet_id or f"{plugin_id}-wallet"
        self.address = address
        self.balance = balance
        self.token_balances = token_balances or {}
        self.max_spendable = max_spendable
        self.network_fee = network_fee
        self.spends: list[SpendInfo] = []
        self.max_spendable_calls: list[SpendInfo] = []

    @property
    def id(self) -> str:
        return self._id

    @property
    def plugin_id(self) -> str:
        return self._plugin_id

    @property
    def currency_code(self) -> str:
        return self._currency_code

    @property
    def tokens(self) -> dict[str, str]:
        return self._tokens

    def get_balance(self, token_id: Optional[str] = None) -> str:
        if token_id is None:
            return self.balance
        return self.token_balances.get(token_id, "0")

    async def get_receive_address(self, token_id: Optional[str] = None) -> str:
        return self.address

    async def native_to_denomination(self, native_amount: str, currency_code: str) -> str:
        scale = Decimal(10) ** DECIMALS[currency_code]
        return format(Decimal(native_amount) / scale, "f")

    async def denomination_to_native(self, amount: str, currency_code: str) -> str:
        scale = Decimal(10) ** DECIMALS[currency_code]
        return str((Decimal(amount) * scale).to_integral_value(rounding=ROUND_FLOOR))

    async def get_max_spendable(self, spend_info: SpendInfo) -> str:
        self.max_spendable_calls.append(spend_info)
        if self.max_spendable is not None:
            return self.max_spendable
        return self.get_balance(spend_info.token_id)

    async def make_spend(self, spend_info: SpendInfo) -> Transaction:
        self.spends.append(spend_info)
        target = spend_info.spend_targets[0]
        currency_code = self._tokens.get(spend_info.token_id, self._currency_code)
        if spend_info.token_id is None:
            return Transaction(
                currency_code=currency_code,
                native_amount=target.native_amount or "0",
                network_fee=self.network_fee,
                spend_info=spend_info,
            )
        return Transaction(
            currency_code=currency_code,
            native_amount=target.native_amount or "0",
            network_fee="0",
            parent_network_fee=self.network_fee,
            token_id=spend_info.token_id,
            spend_info=spend_info,
        )


USDC_TOKEN_ID = "a0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
USDC_POOL_ASSET = "ETH.USDC-0XA0B86991C6218B36C1D19D4A2E9EB0CE3606EB48"


@pytest.fixture
def btc_wallet() -> FakeWallet:
    """Bitcoin wallet holding 2 BTC."""
    return FakeWallet("bitcoin", "BTC", "bc1quser", balance="200000000")


@pytest.fixture
def eth_wallet() -> FakeWallet:
    """Ethereum wallet holding 10 ETH and 1000 USDC."""
    return FakeWallet(
        "ethereum",
        "ETH",
        "0xuser",
        balance="10000000000000000000",
        tokens={USDC_TOKEN_ID: "USDC"},
        token_balances={USDC_TOKEN_ID: "1000000000"},
        network_fee="420000000000000",
    )


@pytest.fixture
def rune_wallet() -> FakeWallet:
    return FakeWallet("thorchainrune", "RUNE", "thor1user")


@pytest.fixture
def btc_pool() -> Pool:
    """BTC pool: 10,000 BTC against 20,000 RUNE (pool units)."""
    return Pool(
        asset="BTC.BTC",
        status="available",
        asset_price=Decimal("2"),
        asset_price_usd=Decimal("60000"),
        asset_depth=Decimal("1000000000000"),
        base_depth=Decimal("2000000000000"),
    )


@pytest.fixture
def eth_pool() -> Pool:
    """ETH pool: 5,000 ETH against 20,000 RUNE (pool units)."""
    return Pool(
        asset="ETH.ETH",
        status="available",
        asset_price=Decimal("4"),
        asset_price_usd=Decimal("3000"),
        asset_depth=Decimal("500000000000"),
        base_depth=Decimal("2000000000000"),
    )


@pytest.fixture
def usdc_pool() -> Pool:
    return Pool(
        asset=USDC_POOL_ASSET,
        status="available",
        asset_price=Decimal("0.2"),
        asset_price_usd=Decimal("1"),
        asset_depth=Decimal("500000000000000"),
        base_depth=Decimal("100000000000000"),
    )


@pytest.fixture
def pools(btc_pool, eth_pool, usdc_pool) -> list[Pool]:
    return [btc_pool, eth_pool, usdc_pool]


def pool_json(pool: Pool) -> dict:
    """Midgard wire form of a pool."""
    return {
        "asset": pool.asset,
        "status": pool.status,
        "assetPrice": str(pool.asset_price),
        "assetPriceUSD": str(pool.asset_price_usd),
        "assetDepth": str(pool.asset_depth),
        "runeDepth": str(pool.base_depth),
    }
