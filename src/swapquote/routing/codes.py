"""Currency and chain code normalization shared by every provider.

Providers spell chains and currencies differently from the wallet. These
helpers translate request codes into a provider's spelling and reject pairs a
provider has disabled.
"""

import logging
from dataclasses import dataclass
from typing import Literal, Optional, Union

from swapquote.errors import UnsupportedPairError
from swapquote.routing.base import SwapRequest
from swapquote.wallet import CurrencyWallet

logger = logging.getLogger(__name__)

ALL_CODES = "allCodes"
ALL_TOKENS = "allTokens"

InvalidCodeRule = Union[Literal["allCodes", "allTokens"], list[str]]
# {"from": {plugin_id: rule}, "to": {plugin_id: rule}}
InvalidCodes = dict[str, dict[str, InvalidCodeRule]]
MainnetTranscription = dict[str, Optional[str]]
CurrencyTranscription = dict[str, dict[str, str]]

DEFAULT_INVALID_CODES: InvalidCodes = {
    "from": {"ethereum": ["REP"]},
    "to": {"ethereum": ["REP"]},
}

DEFAULT_MAINNET_TRANSCRIPTION: dict[str, str] = {
    "optimism": "OP",  # mainnet code is ETH
    "zksync": "ZKSYNC",  # mainnet code is also ETH
}

DEFAULT_CURRENCY_TRANSCRIPTION: CurrencyTranscription = {
    "ethereum": {"REPV2": "REP"},
}

LIKE_KIND_ASSETS = (
    ("BTC", "WBTC", "SBTC", "RBTC"),
    ("ETH", "WETH"),
    ("USDC", "USDT", "DAI"),
)


@dataclass(frozen=True)
class ResolvedCodes:
    """Request codes in a provider's spelling."""

    from_code: str
    to_code: str
    from_chain: str
    to_chain: str


def get_currency_code(wallet: CurrencyWallet, token_id: Optional[str] = None) -> str:
    """Currency code of the wallet's mainnet coin or one of its tokens."""
    if token_id is None:
        return wallet.currency_code
    return wallet.tokens[token_id]


def _merge_mainnet(table: Optional[MainnetTranscription]) -> MainnetTranscription:
    merged: MainnetTranscription = dict(DEFAULT_MAINNET_TRANSCRIPTION)
    merged.update(table or {})
    return merged


def _merge_currency(table: Optional[CurrencyTranscription]) -> CurrencyTranscription:
    merged: CurrencyTranscription = {k: dict(v) for k, v in DEFAULT_CURRENCY_TRANSCRIPTION.items()}
    for plugin_id, codes in (table or {}).items():
        merged.setdefault(plugin_id, {}).update(codes)
    return merged


def resolve_codes(
    request: SwapRequest,
    mainnet_transcription: Optional[MainnetTranscription] = None,
    currency_transcription: Optional[CurrencyTranscription] = None,
) -> ResolvedCodes:
    """
    Translate a request's codes into a provider's spelling.

    Args:
        request: Swap request
        mainnet_transcription: plugin id -> provider chain code
        currency_transcription: plugin id -> {wallet code: provider code}

    Returns:
        ResolvedCodes; untranslated codes pass through unchanged
    """
    mainnets = _merge_mainnet(mainnet_transcription)
    currencies = _merge_currency(currency_transcription)

    from_plugin = request.from_plugin_id
    to_plugin = request.to_plugin_id

    return ResolvedCodes(
        from_code=currencies.get(from_plugin, {}).get(
            request.from_currency_code, request.from_currency_code
        ),
        to_code=currencies.get(to_plugin, {}).get(request.to_currency_code, request.to_currency_code),
        from_chain=mainnets.get(from_plugin) or request.from_wallet.currency_code,
        to_chain=mainnets.get(to_plugin) or request.to_wallet.currency_code,
    )


def _is_disabled(
    table: InvalidCodes, direction: str, plugin_id: str, mainnet_code: str, code: str
) -> bool:
    rule = table.get(direction, {}).get(plugin_id)
    if rule is None:
        return False
    if rule == ALL_CODES:
        return True
    if rule == ALL_TOKENS:
        return code != mainnet_code
    return code in rule


def is_same_asset(request: SwapRequest) -> bool:
    """Check if both sides name the same currency on the same chain."""
    return (
        request.from_plugin_id == request.to_plugin_id
        and request.from_currency_code == request.to_currency_code
    )


def reject_invalid_pair(
    invalid_codes: Optional[InvalidCodes],
    request: SwapRequest,
    provider: Optional[str] = None,
) -> None:
    """
    Raise UnsupportedPairError if the provider disabled either side.

    The caller's table is checked in addition to the built-in defaults;
    a match in either rejects the pair. Self-swaps are always rejected.
    """
    from_main = request.from_wallet.currency_code
    to_main = request.to_wallet.currency_code

    for table in (invalid_codes or {}, DEFAULT_INVALID_CODES):
        if _is_disabled(table, "from", request.from_plugin_id, from_main, request.from_currency_code) or (
            _is_disabled(table, "to", request.to_plugin_id, to_main, request.to_currency_code)
        ):
            logger.debug(
                f"Disabled pair {request.from_plugin_id}:{request.from_currency_code} -> "
                f"{request.to_plugin_id}:{request.to_currency_code}"
            )
            raise _unsupported(request, provider)

    if is_same_asset(request):
        raise _unsupported(request, provider)


def require_supported_chains(
    mainnet_transcription: MainnetTranscription,
    request: SwapRequest,
    provider: Optional[str] = None,
) -> None:
    """Raise UnsupportedPairError unless both chains map to a provider chain code."""
    if (
        mainnet_transcription.get(request.from_plugin_id) is None
        or mainnet_transcription.get(request.to_plugin_id) is None
    ):
        raise _unsupported(request, provider)


def is_like_kind(from_code: str, to_code: str) -> bool:
    """Check if both codes belong to the same asset family (e.g. BTC and WBTC)."""
    return any(from_code in group and to_code in group for group in LIKE_KIND_ASSETS)


def _unsupported(request: SwapRequest, provider: Optional[str]) -> UnsupportedPairError:
    return UnsupportedPairError(
        request.from_currency_code,
        request.to_currency_code,
        from_chain=request.from_plugin_id,
        to_chain=request.to_plugin_id,
        provider=provider,
    )
