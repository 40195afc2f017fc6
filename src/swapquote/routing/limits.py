"""Amount resolution and provider bound checks."""

import copy
import logging
from decimal import Decimal
from typing import Awaitable, Callable, Optional

from swapquote.errors import AboveMaximumError, BelowMinimumError, LimitDirection
from swapquote.routing.base import QuoteFor, SwapOrder, SwapRequest
from swapquote.wallet import CurrencyWallet

logger = logging.getLogger(__name__)

QuoteFn = Callable[[SwapRequest], Awaitable[SwapOrder]]


async def resolve_max_amount(quote_fn: QuoteFn, request: SwapRequest) -> SwapRequest:
    """
    Turn a ``max`` request into a concrete ``from`` request.

    Quotes the full balance once to learn where the funds go, then asks the
    wallet how much it can actually send there after chain fees. A
    preliminary transaction paid in the same coin is deducted as well.

    Args:
        quote_fn: Provider quote function producing a provisional SwapOrder
        request: Swap request

    Returns:
        The request unchanged unless it asked for ``max``
    """
    if request.quote_for != QuoteFor.MAX:
        return request

    wallet = request.from_wallet
    balance = wallet.get_balance(request.from_token_id)
    provisional = request.with_amount(balance, QuoteFor.FROM)
    order = await quote_fn(provisional)

    spend_info = copy.deepcopy(order.spend_info)
    spend_info.spend_targets[0].native_amount = None
    max_amount = int(await wallet.get_max_spendable(spend_info))

    if order.pre_tx is not None and request.from_currency_code == wallet.currency_code:
        max_amount -= int(order.pre_tx.network_fee)
        max_amount = max(max_amount, 0)

    logger.debug(f"Resolved max {request.from_currency_code}: balance={balance} max={max_amount}")
    return request.with_amount(str(max_amount), QuoteFor.FROM)


async def check_amount_limits(
    wallet: CurrencyWallet,
    amount: Decimal,
    currency_code: str,
    minimum: Optional[Decimal] = None,
    maximum: Optional[Decimal] = None,
    direction: LimitDirection = "from",
    provider: Optional[str] = None,
) -> None:
    """
    Raise if ``amount`` falls outside a provider's declared bounds.

    Amounts and bounds are in display units of ``currency_code``; the raised
    error carries the violated bound converted to native units.
    """
    if minimum is not None and amount < minimum:
        native = await wallet.denomination_to_native(format(minimum, "f"), currency_code)
        raise BelowMinimumError(native, currency_code, direction, provider)
    if maximum is not None and amount > maximum:
        native = await wallet.denomination_to_native(format(maximum, "f"), currency_code)
        raise AboveMaximumError(native, currency_code, direction, provider)
