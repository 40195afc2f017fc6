"""Provider-agnostic swap request, order and quote types."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Optional

from swapquote.wallet import CurrencyWallet, SpendInfo, SwapPayout, Transaction

logger = logging.getLogger(__name__)


class QuoteFor(str, Enum):
    """Which amount of the request is authoritative."""

    FROM = "from"  # nativeAmount is what the user sends
    TO = "to"  # nativeAmount is what the user wants to receive
    MAX = "max"  # send the whole spendable balance


@dataclass(frozen=True)
class SwapRequest:
    """A normalized swap request.

    ``native_amount`` is an integer string in the smallest unit of the side
    ``quote_for`` designates. ``MAX`` requests are resolved into ``FROM``
    before any quote math runs.
    """

    from_wallet: CurrencyWallet
    to_wallet: CurrencyWallet
    from_currency_code: str
    to_currency_code: str
    native_amount: str
    quote_for: QuoteFor = QuoteFor.FROM
    from_token_id: Optional[str] = None
    to_token_id: Optional[str] = None

    @property
    def from_plugin_id(self) -> str:
        return self.from_wallet.plugin_id

    @property
    def to_plugin_id(self) -> str:
        return self.to_wallet.plugin_id

    def with_amount(self, native_amount: str, quote_for: Optional[QuoteFor] = None) -> "SwapRequest":
        """Copy of this request with a new amount (and optionally direction)."""
        return replace(self, native_amount=native_amount, quote_for=quote_for or self.quote_for)


@dataclass
class SwapOrder:
    """Provider-agnostic result of a quote, before the wallet builds the spend."""

    provider: str
    request: SwapRequest
    spend_info: SpendInfo
    payout: SwapPayout
    from_native_amount: str
    expiration_date: Optional[datetime] = None
    pre_tx: Optional[Transaction] = None
    metadata_notes: Optional[str] = None

    @property
    def to_native_amount(self) -> str:
        return self.payout.native_amount


@dataclass
class SwapQuote:
    """Wallet-facing quote: the built transaction plus everything to display."""

    provider: str
    request: SwapRequest
    from_native_amount: str
    to_native_amount: str
    network_fee: str
    network_fee_currency_code: str
    destination_address: str
    transaction: Transaction
    is_estimate: bool = False
    expiration_date: Optional[datetime] = None
    pre_tx: Optional[Transaction] = None
    metadata_notes: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for display or storage."""
        return {
            "provider": self.provider,
            "from_currency_code": self.request.from_currency_code,
            "to_currency_code": self.request.to_currency_code,
            "from_native_amount": self.from_native_amount,
            "to_native_amount": self.to_native_amount,
            "network_fee": self.network_fee,
            "network_fee_currency_code": self.network_fee_currency_code,
            "destination_address": self.destination_address,
            "is_estimate": self.is_estimate,
            "expiration_date": self.expiration_date.isoformat() if self.expiration_date else None,
            "has_pre_tx": self.pre_tx is not None,
        }


class SwapProvider(ABC):
    """Abstract base class for exchange providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name identifier."""
        pass

    @abstractmethod
    async def fetch_swap_quote(self, request: SwapRequest) -> SwapQuote:
        """
        Get a swap quote.

        Args:
            request: Normalized swap request

        Returns:
            SwapQuote ready for the wallet to sign

        Raises:
            SwapError: the pair, amount or provider reply was rejected
        """
        pass
