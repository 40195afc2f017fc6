"""THORChain quote engine.

amm: constant-product pool math (floats, pool units)
pricing: Decimal quote amounts, fee composition and minimums
exchange_info: provider-tunable parameters, refreshed at most once a minute
"""

from swapquote.swap_engine.amm import double_swap_input, double_swap_output, swap_input, swap_output
from swapquote.swap_engine.pricing import (
    SwapCalcParams,
    SwapCalcResult,
    calc_network_fee,
    calc_swap_from,
    calc_swap_to,
    get_volatility_spread,
)
from swapquote.swap_engine.exchange_info import ExchangeInfoCache, ExchangeParameters

__all__ = [
    "swap_output",
    "swap_input",
    "double_swap_output",
    "double_swap_input",
    "SwapCalcParams",
    "SwapCalcResult",
    "calc_swap_from",
    "calc_swap_to",
    "calc_network_fee",
    "get_volatility_spread",
    "ExchangeInfoCache",
    "ExchangeParameters",
]
