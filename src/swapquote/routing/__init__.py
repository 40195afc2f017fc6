"""Provider-agnostic swap quote routing.

Shared helpers every provider integration uses:
- Code normalization and invalid-pair rejection
- Max-amount resolution and bound checks
- Quote assembly, expiry margins and fee pinning
- Server-list waterfall and fixed-to-estimate fallback

Providers:
- THORChain: Cross-chain native swaps priced from pool depths
"""

from swapquote.routing.assembler import assemble_swap_order, make_swap_quote
from swapquote.routing.base import QuoteFor, SwapOrder, SwapProvider, SwapQuote, SwapRequest
from swapquote.routing.codes import (
    ResolvedCodes,
    get_currency_code,
    is_like_kind,
    reject_invalid_pair,
    require_supported_chains,
    resolve_codes,
)
from swapquote.routing.expiry import ensure_in_future
from swapquote.routing.factory import (
    create_exchange_info_cache,
    create_providers,
    create_thorchain_provider,
    get_exchange_info_cache,
    get_fee_cache,
)
from swapquote.routing.fee_cache import FeeOverrideCache
from swapquote.routing.limits import check_amount_limits, resolve_max_amount
from swapquote.routing.transport import fetch_waterfall, with_fallback

__all__ = [
    # Base classes
    "QuoteFor",
    "SwapRequest",
    "SwapOrder",
    "SwapQuote",
    "SwapProvider",
    # Helpers
    "ResolvedCodes",
    "resolve_codes",
    "reject_invalid_pair",
    "require_supported_chains",
    "is_like_kind",
    "get_currency_code",
    "resolve_max_amount",
    "check_amount_limits",
    "ensure_in_future",
    "FeeOverrideCache",
    "assemble_swap_order",
    "make_swap_quote",
    "fetch_waterfall",
    "with_fallback",
    # Factory functions
    "create_thorchain_provider",
    "create_providers",
    "create_exchange_info_cache",
    "get_exchange_info_cache",
    "get_fee_cache",
]
