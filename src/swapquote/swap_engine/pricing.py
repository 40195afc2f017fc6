"""THORChain quote pricing.

Turns pool snapshots and wallet amounts into quote amounts. Every money value
is a Decimal; only the pool ratio math in :mod:`swapquote.swap_engine.amm`
runs in floating point.

Fee order for a ``from`` quote:
    1. pool swap (double swap through RUNE)
    2. volatility spread
    3. affiliate fee
    4. outbound network fee, floored at 1 USD of the destination asset
A ``to`` quote reverses the same steps.
"""

import logging
from dataclasses import dataclass, replace
from decimal import ROUND_CEILING, ROUND_FLOOR, Decimal
from typing import Iterable, Optional, Sequence

from swapquote.contracts.thorchain import AssetSpread, Pool
from swapquote.errors import BelowMinimumError, PricingUnavailableError
from swapquote.routing.codes import is_like_kind
from swapquote.swap_engine import amm
from swapquote.wallet import CurrencyWallet

logger = logging.getLogger(__name__)

PROVIDER = "thorchain"

THOR_LIMIT_UNITS = Decimal("100000000")  # THORChain normalizes every asset to 1e8
MIN_USD_SWAP = Decimal("30")
MIN_USD_NETWORK_FEE = Decimal("1")
RUNE_NETWORK_FEE = Decimal("2000000")  # 0.02 RUNE, 1e8 units

RUNE_CHAIN = "THOR"
RUNE_SYMBOL = "RUNE"


@dataclass
class SwapCalcParams:
    """Inputs for one quote calculation.

    ``network_fee`` and ``min_amount`` are in display units of the
    destination and source currency respectively. ``to_base`` swaps through
    the source pool only, for RUNE destinations.
    """

    from_wallet: CurrencyWallet
    from_currency_code: str
    to_wallet: CurrencyWallet
    to_currency_code: str
    native_amount: str
    source_pool: Pool
    dest_pool: Pool
    volatility_spread: Decimal
    affiliate_fee: Decimal
    network_fee: Decimal
    min_amount: Optional[Decimal] = None
    min_usd_swap: Decimal = MIN_USD_SWAP
    to_base: bool = False


@dataclass
class SwapCalcResult:
    """Quote amounts; ``limit`` is the minimum output placed in the memo."""

    from_native_amount: str
    from_exchange_amount: Decimal
    to_native_amount: str
    to_exchange_amount: Decimal
    limit: str
    network_fee: Decimal


# ======================
# Unit conversion
# ======================

def _fmt(amount: Decimal) -> str:
    """Plain (non-scientific) decimal string for the wallet."""
    return format(amount, "f")


def _to_integer(amount, rounding: str = ROUND_FLOOR) -> str:
    return _fmt(Decimal(amount).to_integral_value(rounding=rounding))


def to_pool_units(amount: Decimal) -> float:
    return float(amount * THOR_LIMIT_UNITS)


def from_pool_units(amount: float) -> Decimal:
    return Decimal(repr(amount)) / THOR_LIMIT_UNITS


# ======================
# Pools and fees
# ======================

def find_pool(pools: Iterable[Pool], chain: str, symbol: str) -> Optional[Pool]:
    """Swappable pool for CHAIN.SYMBOL; empty or unavailable pools count as missing."""
    for pool in pools:
        if pool.matches(chain, symbol) and pool.is_swappable:
            return pool
    return None


def make_rune_pool(pools: Sequence[Pool]) -> Pool:
    """Synthetic RUNE pool priced from the BTC pool."""
    btc_pool = find_pool(pools, "BTC", "BTC")
    if btc_pool is None or btc_pool.asset_price <= 0:
        raise PricingUnavailableError(RUNE_CHAIN, RUNE_SYMBOL, PROVIDER)
    return Pool(
        asset=f"{RUNE_CHAIN}.{RUNE_SYMBOL}",
        asset_price=Decimal(1),
        asset_price_usd=btc_pool.asset_price_usd / btc_pool.asset_price,
    )


def calc_network_fee(
    chain: str,
    gas_asset: str,
    symbol: str,
    outbound_fee: Decimal,
    pools: Sequence[Pool],
) -> Decimal:
    """
    Outbound fee in display units of the destination asset.

    Args:
        chain: Destination THORChain chain code
        gas_asset: Coin the chain's outbound fee is paid in
        symbol: Destination asset ticker
        outbound_fee: Fee from inbound_addresses, 1e8 units of ``gas_asset``
        pools: Current pools

    Raises:
        PricingUnavailableError: a token fee needs a pool that is missing
    """
    if chain == RUNE_CHAIN:
        return RUNE_NETWORK_FEE / THOR_LIMIT_UNITS

    fee = outbound_fee / THOR_LIMIT_UNITS
    if symbol == gas_asset:
        return fee

    gas_pool = find_pool(pools, chain, gas_asset)
    if gas_pool is None:
        raise PricingUnavailableError(chain, gas_asset, PROVIDER)
    token_pool = find_pool(pools, chain, symbol)
    if token_pool is None or token_pool.asset_price <= 0:
        raise PricingUnavailableError(chain, symbol, PROVIDER)

    return fee * gas_pool.asset_price / token_pool.asset_price


def floor_network_fee(fee: Decimal, dest_pool: Pool) -> Decimal:
    """Raise the fee to at least 1 USD worth of the destination asset."""
    if dest_pool.asset_price_usd <= 0:
        raise PricingUnavailableError(dest_pool.chain, dest_pool.symbol, PROVIDER)
    if fee * dest_pool.asset_price_usd < MIN_USD_NETWORK_FEE:
        return MIN_USD_NETWORK_FEE / dest_pool.asset_price_usd
    return fee


def affiliate_fee_from_basis(basis_points: int) -> Decimal:
    return Decimal(basis_points) / Decimal(10000)


def get_volatility_spread(
    from_plugin_id: str,
    from_token_id: Optional[str],
    from_currency_code: str,
    to_plugin_id: str,
    to_token_id: Optional[str],
    to_currency_code: str,
    volatility_spread: Decimal,
    like_kind_volatility_spread: Decimal,
    per_asset_spread: Sequence[AssetSpread],
) -> Decimal:
    """First matching per-asset rule, else the like-kind or default spread."""
    for rule in per_asset_spread:
        if rule.matches(
            from_plugin_id, from_token_id, from_currency_code,
            to_plugin_id, to_token_id, to_currency_code,
        ):
            return rule.volatility_spread

    if is_like_kind(from_currency_code, to_currency_code):
        return like_kind_volatility_spread
    return volatility_spread


def min_exchange_amount(
    source_pool: Pool,
    min_amount: Optional[Decimal] = None,
    min_usd_swap: Decimal = MIN_USD_SWAP,
) -> Decimal:
    """Smallest source amount: the USD minimum or the declared one, whichever is larger."""
    minimum = min_amount or Decimal(0)
    if source_pool.asset_price_usd > 0:
        minimum = max(minimum, min_usd_swap / source_pool.asset_price_usd)
    return minimum


# ======================
# Quote math
# ======================

def _pool_output(amount: Decimal, params: SwapCalcParams) -> Decimal:
    x = to_pool_units(amount)
    if params.to_base:
        y = amm.swap_output(x, params.source_pool, True)
    else:
        y = amm.double_swap_output(x, params.source_pool, params.dest_pool)
    return from_pool_units(y)


def _pool_input(amount: Decimal, params: SwapCalcParams) -> Decimal:
    y = to_pool_units(amount)
    try:
        if params.to_base:
            x = amm.swap_input(y, params.source_pool, True)
        else:
            x = amm.double_swap_input(y, params.source_pool, params.dest_pool)
    except ValueError as e:
        logger.debug(f"Pool input failed: {e}")
        raise PricingUnavailableError(params.dest_pool.chain, params.dest_pool.symbol, PROVIDER) from e
    return from_pool_units(x)


async def calc_swap_from(params: SwapCalcParams, dont_check_limits: bool = False) -> SwapCalcResult:
    """
    Quote the destination amount for a given source amount.

    Raises:
        BelowMinimumError: ``from`` side when the source amount is under the
            minimum; ``to`` side when fees consume the whole output
    """
    from_wallet = params.from_wallet
    to_wallet = params.to_wallet

    from_exchange = Decimal(
        await from_wallet.native_to_denomination(params.native_amount, params.from_currency_code)
    )
    logger.debug(f"fromExchangeAmount: {from_exchange}")

    if not dont_check_limits:
        minimum = min_exchange_amount(params.source_pool, params.min_amount, params.min_usd_swap)
        if from_exchange < minimum:
            native_min = await from_wallet.denomination_to_native(_fmt(minimum), params.from_currency_code)
            raise BelowMinimumError(native_min, params.from_currency_code, "from", PROVIDER)

    to_exchange = _pool_output(from_exchange, params)
    logger.debug(f"toExchangeAmount from pools: {to_exchange}")

    to_exchange *= Decimal(1) - params.volatility_spread
    to_exchange *= Decimal(1) - params.affiliate_fee
    network_fee = floor_network_fee(params.network_fee, params.dest_pool)
    to_exchange -= network_fee
    logger.debug(f"toExchangeAmount w/fees (network fee {network_fee}): {to_exchange}")

    if to_exchange <= 0:
        fee_native = await to_wallet.denomination_to_native(_fmt(network_fee), params.to_currency_code)
        raise BelowMinimumError(
            _to_integer(fee_native, ROUND_CEILING), params.to_currency_code, "to", PROVIDER
        )

    to_native = await to_wallet.denomination_to_native(_fmt(to_exchange), params.to_currency_code)

    return SwapCalcResult(
        from_native_amount=params.native_amount,
        from_exchange_amount=from_exchange,
        to_native_amount=_to_integer(to_native),
        to_exchange_amount=to_exchange,
        limit=_to_integer(to_exchange * THOR_LIMIT_UNITS),
        network_fee=network_fee,
    )


async def calc_swap_to(params: SwapCalcParams) -> SwapCalcResult:
    """
    Quote the source amount needed to receive a given destination amount.

    Raises:
        BelowMinimumError: ``to`` side, carrying the destination amount the
            minimum source amount would produce
        PricingUnavailableError: the pools cannot output the requested amount
    """
    from_wallet = params.from_wallet
    to_wallet = params.to_wallet

    to_exchange = Decimal(
        await to_wallet.native_to_denomination(params.native_amount, params.to_currency_code)
    )
    limit = _to_integer(to_exchange * THOR_LIMIT_UNITS)

    network_fee = floor_network_fee(params.network_fee, params.dest_pool)
    gross = (to_exchange + network_fee) / (Decimal(1) - params.volatility_spread)
    logger.debug(f"toExchangeAmount w/fees (network fee {network_fee}): {gross}")

    from_exchange = _pool_input(gross, params) / (Decimal(1) - params.affiliate_fee)
    logger.debug(f"fromExchangeAmount: {from_exchange}")

    minimum = min_exchange_amount(params.source_pool, params.min_amount, params.min_usd_swap)
    if from_exchange < minimum:
        native_min = await from_wallet.denomination_to_native(_fmt(minimum), params.from_currency_code)
        at_minimum = await calc_swap_from(
            replace(params, native_amount=_to_integer(native_min, ROUND_CEILING)),
            dont_check_limits=True,
        )
        to_native_min = await to_wallet.denomination_to_native(
            _fmt(at_minimum.to_exchange_amount), params.to_currency_code
        )
        raise BelowMinimumError(
            _to_integer(to_native_min, ROUND_CEILING), params.to_currency_code, "to", PROVIDER
        )

    from_native = await from_wallet.denomination_to_native(_fmt(from_exchange), params.from_currency_code)

    return SwapCalcResult(
        from_native_amount=_to_integer(from_native, ROUND_CEILING),
        from_exchange_amount=from_exchange,
        to_native_amount=params.native_amount,
        to_exchange_amount=to_exchange,
        limit=limit,
        network_fee=network_fee,
    )
