"""Constant-product pool math (THORChain continuous liquidity pools).

Amounts are floats in pool units (1e8 per coin). These are the only
functions in the package that use floating point; callers convert to and
from Decimal around them.

Formulas follow https://dev.thorchain.org/concepts/math.html
"""

import math

from swapquote.contracts.thorchain import Pool


def _reserves(pool: Pool, into_base: bool) -> tuple[float, float]:
    """(input reserve, output reserve). Swapping into base means asset in, RUNE out."""
    asset_depth = float(pool.asset_depth)
    base_depth = float(pool.base_depth)
    return (asset_depth, base_depth) if into_base else (base_depth, asset_depth)


def swap_output(amount: float, pool: Pool, into_base: bool) -> float:
    """
    Output of a single-pool swap.

    y = x * X * Y / (x + X)^2
    """
    x_reserve, y_reserve = _reserves(pool, into_base)
    return amount * x_reserve * y_reserve / (amount + x_reserve) ** 2


def swap_input(amount: float, pool: Pool, into_base: bool) -> float:
    """
    Input needed for a single-pool swap to output ``amount``.

    Smaller root of the inverted output formula:
        part1 = X * Y / y - 2X
        x = (part1 - sqrt(part1^2 - 4X^2)) / 2
    evaluated as 2X^2 / (part1 + sqrt(...)) to avoid cancellation on deep pools.

    Raises:
        ValueError: ``amount`` is not positive or exceeds what the pool can
            output (at most a quarter of the output reserve)
    """
    if amount <= 0:
        raise ValueError(f"Output amount must be positive, got {amount}")

    x_reserve, y_reserve = _reserves(pool, into_base)
    part1 = x_reserve * y_reserve / amount - 2 * x_reserve
    discriminant = part1 * part1 - 4 * x_reserve * x_reserve
    if discriminant < 0 or part1 <= 0:
        raise ValueError(f"Output {amount} exceeds capacity of pool {pool.asset}")

    return 2 * x_reserve * x_reserve / (part1 + math.sqrt(discriminant))


def double_swap_output(amount: float, source_pool: Pool, dest_pool: Pool) -> float:
    """Swap source asset into RUNE, then RUNE into the destination asset."""
    rune = swap_output(amount, source_pool, True)
    return swap_output(rune, dest_pool, False)


def double_swap_input(amount: float, source_pool: Pool, dest_pool: Pool) -> float:
    """Source amount needed for a double swap to output ``amount``."""
    rune = swap_input(amount, dest_pool, False)
    return swap_input(rune, source_pool, True)
