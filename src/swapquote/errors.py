"""Exception hierarchy for swap quoting.

Every error carries the data a caller needs to render an actionable message
(which pair, which bound, which provider) as attributes, not just text.
"""

from typing import Literal, Optional

LimitDirection = Literal["from", "to"]


class SwapError(Exception):
    """Base class for quote failures."""

    def __init__(self, message: str, provider: Optional[str] = None):
        self.provider = provider
        super().__init__(message)


class UnsupportedPairError(SwapError):
    """A currency/chain combination is disabled or identical on both sides."""

    def __init__(
        self,
        from_code: str,
        to_code: str,
        from_chain: Optional[str] = None,
        to_chain: Optional[str] = None,
        provider: Optional[str] = None,
    ):
        self.from_code = from_code
        self.to_code = to_code
        self.from_chain = from_chain
        self.to_chain = to_chain
        route = f"{from_chain or '?'}:{from_code} -> {to_chain or '?'}:{to_code}"
        super().__init__(f"Unsupported swap pair {route}", provider)


class SwapLimitError(SwapError):
    """Amount outside a provider-declared bound.

    Attributes:
        native_amount: The bound, in native units of ``currency_code``
        currency_code: Currency the bound is expressed in
        direction: Which side of the swap the bound applies to
    """

    kind = "limit"

    def __init__(
        self,
        native_amount: str,
        currency_code: str,
        direction: LimitDirection = "from",
        provider: Optional[str] = None,
    ):
        self.native_amount = native_amount
        self.currency_code = currency_code
        self.direction = direction
        super().__init__(
            f"Amount {self.kind} of {native_amount} {currency_code} ({direction} side)",
            provider,
        )


class BelowMinimumError(SwapLimitError):
    """Amount is below the provider minimum."""

    kind = "below minimum"


class AboveMaximumError(SwapLimitError):
    """Amount is above the provider maximum."""

    kind = "above maximum"


class PricingUnavailableError(SwapError):
    """A required pool or rate is missing, so no fee or rate can be computed."""

    def __init__(self, chain: str, asset: str, provider: Optional[str] = None):
        self.chain = chain
        self.asset = asset
        super().__init__(f"Cannot price {chain}.{asset}", provider)


class ProviderProtocolError(SwapError):
    """Provider reply failed validation or returned a transport failure."""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
        url: Optional[str] = None,
    ):
        self.status_code = status_code
        self.url = url
        super().__init__(message, provider)
