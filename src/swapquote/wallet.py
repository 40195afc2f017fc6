"""Wallet collaborator boundary.

The wallet subsystem holds balances, converts between native and display
denominations and builds spends. The quote engine only talks to it through
:class:`CurrencyWallet`; implementations live in the host application.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Literal, Optional

logger = logging.getLogger(__name__)

MemoType = Literal["text", "hex"]


@dataclass
class Memo:
    """Memo or tag attached to a spend."""

    type: MemoType
    value: str


@dataclass
class SpendTarget:
    """Destination of a spend.

    ``native_amount`` may be None when asking the wallet for the
    maximum spendable amount.
    """

    public_address: str
    native_amount: Optional[str] = None


@dataclass
class SwapPayout:
    """Payout side of a swap, attached to the spend for record keeping."""

    currency_code: str
    native_amount: str
    address: str
    wallet_id: str
    provider: str
    is_estimate: bool = False


@dataclass
class SpendInfo:
    """Spend descriptor handed to the wallet."""

    spend_targets: list[SpendTarget]
    token_id: Optional[str] = None
    memos: list[Memo] = field(default_factory=list)
    custom_network_fee: dict = field(default_factory=dict)
    swap_data: Optional[SwapPayout] = None
    metadata: dict = field(default_factory=dict)


@dataclass
class Transaction:
    """Unsigned transaction built by the wallet."""

    currency_code: str
    native_amount: str
    network_fee: str
    parent_network_fee: Optional[str] = None
    token_id: Optional[str] = None
    txid: Optional[str] = None
    spend_info: Optional[SpendInfo] = None

    @property
    def mainnet_fee(self) -> str:
        """Fee paid in the chain's mainnet coin."""
        return self.parent_network_fee if self.parent_network_fee is not None else self.network_fee


class CurrencyWallet(ABC):
    """A wallet for one chain, optionally holding tokens on that chain."""

    @property
    @abstractmethod
    def id(self) -> str:
        """Wallet identifier."""
        pass

    @property
    @abstractmethod
    def plugin_id(self) -> str:
        """Chain identifier, e.g. ``bitcoin`` or ``ethereum``."""
        pass

    @property
    @abstractmethod
    def currency_code(self) -> str:
        """Mainnet coin currency code, e.g. ``BTC``."""
        pass

    @property
    def tokens(self) -> dict[str, str]:
        """Enabled tokens as token id -> currency code."""
        return {}

    @abstractmethod
    def get_balance(self, token_id: Optional[str] = None) -> str:
        """Native balance of the mainnet coin or a token."""
        pass

    @abstractmethod
    async def get_receive_address(self, token_id: Optional[str] = None) -> str:
        """Address that receives funds for this wallet."""
        pass

    @abstractmethod
    async def native_to_denomination(self, native_amount: str, currency_code: str) -> str:
        """Convert a native integer amount to a decimal display amount."""
        pass

    @abstractmethod
    async def denomination_to_native(self, amount: str, currency_code: str) -> str:
        """Convert a decimal display amount to a native amount."""
        pass

    @abstractmethod
    async def get_max_spendable(self, spend_info: SpendInfo) -> str:
        """Largest native amount spendable to the given targets after fees."""
        pass

    @abstractmethod
    async def make_spend(self, spend_info: SpendInfo) -> Transaction:
        """Build an unsigned transaction.

        May raise chain-specific errors such as insufficient funds; those
        propagate to the caller unchanged.
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id={self.id}, plugin={self.plugin_id})"
