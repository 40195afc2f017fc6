"""Build normalized swap orders and quotes from computed amounts.

The assembler never touches the network. Provider code computes amounts and
addresses, then hands them here to get a :class:`SwapOrder`; the only awaited
call is :func:`make_swap_quote`, which asks the wallet to build the spend.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from swapquote.routing.base import SwapOrder, SwapQuote, SwapRequest
from swapquote.routing.expiry import DEFAULT_MARGIN_SECONDS, ensure_in_future, utcnow
from swapquote.routing.fee_cache import FeeOverrideCache
from swapquote.wallet import Memo, SpendInfo, SpendTarget, SwapPayout, Transaction

logger = logging.getLogger(__name__)


def default_expiration(lifetime_seconds: float, now: Optional[datetime] = None) -> datetime:
    """Expiration for providers that do not return one."""
    return (now or utcnow()) + timedelta(seconds=lifetime_seconds)


def pin_custom_fees(
    fee_cache: Optional[FeeOverrideCache],
    session_id: Optional[str],
    custom_network_fee: Optional[dict],
) -> dict:
    """
    Merge fees already pinned for a session over freshly computed ones.

    The merged map is written back so every later spend in the session sees
    the same values.
    """
    fees = dict(custom_network_fee or {})
    if fee_cache is None or session_id is None:
        return fees

    pinned = fee_cache.get_fees(session_id)
    if pinned:
        fees.update(pinned)
    if fees:
        fee_cache.set_fees(session_id, fees)
    return fees


def assemble_swap_order(
    request: SwapRequest,
    provider: str,
    from_native_amount: str,
    to_native_amount: str,
    deposit_address: str,
    payout_address: str,
    memo: Optional[Memo] = None,
    spend_native_amount: Optional[str] = None,
    is_estimate: bool = False,
    pre_tx: Optional[Transaction] = None,
    metadata_notes: Optional[str] = None,
    expiration_date: Optional[datetime] = None,
    custom_network_fee: Optional[dict] = None,
    fee_cache: Optional[FeeOverrideCache] = None,
    fee_session_id: Optional[str] = None,
    margin_seconds: float = DEFAULT_MARGIN_SECONDS,
    now: Optional[datetime] = None,
) -> SwapOrder:
    """
    Build a SwapOrder.

    Args:
        request: Concrete (non-max) request
        provider: Provider name recorded in the payout
        from_native_amount: Amount the user sends, native units
        to_native_amount: Amount the user receives, native units
        deposit_address: Where the spend goes (vault, router or deposit address)
        payout_address: Where the provider pays out
        memo: Memo or calldata attached to the spend
        spend_native_amount: Amount on the spend target when it differs from
            ``from_native_amount`` (e.g. "0" for router token deposits)
        is_estimate: Payout amount is not guaranteed
        pre_tx: Preliminary transaction, e.g. a token approval
        metadata_notes: Human readable route description
        expiration_date: Provider expiration; pushed to at least now + margin
        custom_network_fee: Fee fields the wallet must use
        fee_cache: Cache pinning fees across builds in one session
        fee_session_id: Session the fees belong to

    Returns:
        SwapOrder ready for make_swap_quote
    """
    for label, amount in (("from", from_native_amount), ("to", to_native_amount)):
        if int(amount) < 0:
            raise ValueError(f"Negative {label} amount: {amount}")

    payout = SwapPayout(
        currency_code=request.to_currency_code,
        native_amount=to_native_amount,
        address=payout_address,
        wallet_id=request.to_wallet.id,
        provider=provider,
        is_estimate=is_estimate,
    )

    target_amount = from_native_amount if spend_native_amount is None else spend_native_amount
    spend_info = SpendInfo(
        spend_targets=[SpendTarget(public_address=deposit_address, native_amount=target_amount)],
        token_id=request.from_token_id,
        memos=[memo] if memo is not None else [],
        custom_network_fee=pin_custom_fees(fee_cache, fee_session_id, custom_network_fee),
        swap_data=payout,
        metadata={"notes": metadata_notes} if metadata_notes else {},
    )

    order = SwapOrder(
        provider=provider,
        request=request,
        spend_info=spend_info,
        payout=payout,
        from_native_amount=from_native_amount,
        expiration_date=ensure_in_future(expiration_date, margin_seconds, now),
        pre_tx=pre_tx,
        metadata_notes=metadata_notes,
    )
    logger.debug(
        f"Assembled {provider} order: {from_native_amount} {request.from_currency_code} -> "
        f"{to_native_amount} {request.to_currency_code}"
    )
    return order


async def make_swap_quote(order: SwapOrder) -> SwapQuote:
    """
    Ask the source wallet to build the spend and wrap it in a SwapQuote.

    The reported network fee is the main transaction's mainnet fee plus the
    preliminary transaction's, both in the source chain's mainnet coin.
    Wallet errors propagate unchanged.
    """
    request = order.request
    tx = await order.request.from_wallet.make_spend(order.spend_info)

    network_fee = int(tx.mainnet_fee)
    if order.pre_tx is not None:
        network_fee += int(order.pre_tx.mainnet_fee)

    return SwapQuote(
        provider=order.provider,
        request=request,
        from_native_amount=order.from_native_amount,
        to_native_amount=order.to_native_amount,
        network_fee=str(network_fee),
        network_fee_currency_code=request.from_wallet.currency_code,
        destination_address=order.payout.address,
        transaction=tx,
        is_estimate=order.payout.is_estimate,
        expiration_date=order.expiration_date,
        pre_tx=order.pre_tx,
        metadata_notes=order.metadata_notes,
    )
