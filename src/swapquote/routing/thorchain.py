"""THORChain cross-chain swap quotes.

Quotes are computed locally from Midgard pool depths and THORNode vault
data rather than THORNode's quote endpoint, so the volatility spread and
affiliate fee can be applied by the wallet.

Swaps are executed by sending funds to the chain's inbound vault (or the
EVM router) with a memo:

    =:CHAIN.ASSET:DESTINATION:LIMIT:AFFILIATE:BPS

API docs: https://dev.thorchain.org/
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import AsyncIterator, Optional, Sequence

import httpx

from swapquote.chains import get_chain, get_gas_limit, get_mainnet_transcription
from swapquote.contracts.thorchain import (
    InboundAddress,
    Pool,
    parse_inbound_addresses,
    parse_pools,
)
from swapquote.errors import ProviderProtocolError, UnsupportedPairError
from swapquote.routing.assembler import assemble_swap_order, default_expiration, make_swap_quote
from swapquote.routing.base import QuoteFor, SwapOrder, SwapProvider, SwapQuote, SwapRequest
from swapquote.routing.codes import (
    InvalidCodes,
    ResolvedCodes,
    reject_invalid_pair,
    require_supported_chains,
    resolve_codes,
)
from swapquote.routing.expiry import DEFAULT_MARGIN_SECONDS
from swapquote.routing.fee_cache import FeeOverrideCache
from swapquote.routing.limits import resolve_max_amount
from swapquote.routing.transport import fetch_waterfall, with_fallback
from swapquote.swap_engine.exchange_info import ExchangeInfoCache, ExchangeParameters
from swapquote.swap_engine.pricing import (
    MIN_USD_SWAP,
    RUNE_CHAIN,
    RUNE_SYMBOL,
    SwapCalcParams,
    affiliate_fee_from_basis,
    calc_network_fee,
    calc_swap_from,
    calc_swap_to,
    find_pool,
    get_volatility_spread,
    make_rune_pool,
)
from swapquote.wallet import Memo, SpendInfo, SpendTarget, Transaction

logger = logging.getLogger(__name__)

PROVIDER = "thorchain"
DISPLAY_NAME = "THORChain"

INVALID_CURRENCY_CODES: InvalidCodes = {
    "from": {},
    "to": {"zcash": ["ZEC"]},
}


class DepositEncoder(ABC):
    """Builds EVM calldata for router deposits and token approvals."""

    @abstractmethod
    async def get_deposit_data(
        self,
        router: str,
        vault: str,
        asset_address: str,
        native_amount: str,
        memo: str,
    ) -> str:
        """Hex calldata for ``depositWithExpiry`` on the THORChain router."""
        pass

    @abstractmethod
    async def get_approval_data(
        self,
        router: str,
        asset_address: str,
        native_amount: str,
    ) -> Optional[str]:
        """Hex calldata approving the router, or None if the allowance suffices."""
        pass


def build_swap_memo(chain: str, asset: str, address: str, limit: str, affiliate: str, points: int) -> str:
    return f"=:{chain}.{asset}:{address}:{limit}:{affiliate}:{points}"


def find_inbound(addresses: Sequence[InboundAddress], chain: str) -> Optional[InboundAddress]:
    """Non-halted vault for a chain."""
    for address in addresses:
        if address.chain == chain and not address.halted:
            return address
    return None


def _read_json(response: httpx.Response):
    try:
        return response.json()
    except ValueError as e:
        raise ProviderProtocolError(
            f"Invalid JSON from {response.url}", PROVIDER, response.status_code, str(response.url)
        ) from e


class THORChainProvider(SwapProvider):
    """THORChain swap provider.

    Supports native coins on BTC, BCH, LTC, DOGE, GAIA and EVM chains, EVM
    tokens through the router (requires a DepositEncoder), and RUNE as a
    destination.
    """

    def __init__(
        self,
        exchange_info: ExchangeInfoCache,
        fee_cache: FeeOverrideCache,
        thorname: str = "ej",
        ninerealms_client_id: str = "",
        min_usd_swap: Decimal = MIN_USD_SWAP,
        quote_expiration_seconds: float = 60,
        expiry_margin_seconds: float = DEFAULT_MARGIN_SECONDS,
        http_timeout: float = 30.0,
        deposit_encoder: Optional[DepositEncoder] = None,
        client: Optional[httpx.AsyncClient] = None,
        invalid_codes: Optional[InvalidCodes] = None,
    ):
        """Initialize THORChain provider.

        Args:
            exchange_info: Shared exchange parameter cache
            fee_cache: Shared fee override cache
            thorname: Affiliate THORName placed in memos
            ninerealms_client_id: x-client-id header for Nine Realms servers
            deposit_encoder: EVM calldata builder; without one EVM token
                sources are unsupported
            client: HTTP client to reuse; a new one is opened per quote otherwise
        """
        self.exchange_info = exchange_info
        self.fee_cache = fee_cache
        self.thorname = thorname
        self.min_usd_swap = min_usd_swap
        self.quote_expiration_seconds = quote_expiration_seconds
        self.expiry_margin_seconds = expiry_margin_seconds
        self.http_timeout = http_timeout
        self.deposit_encoder = deposit_encoder
        self.invalid_codes = invalid_codes if invalid_codes is not None else INVALID_CURRENCY_CODES
        self._client = client
        self.headers = {
            "Content-Type": "application/json",
            "x-client-id": ninerealms_client_id,
        }

    @property
    def name(self) -> str:
        return DISPLAY_NAME

    @asynccontextmanager
    async def _http_client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self.http_timeout) as client:
            yield client

    async def fetch_swap_quote(self, request: SwapRequest) -> SwapQuote:
        """Quote a swap, trying a fixed-limit quote first and an estimate second."""
        session_id = self.fee_cache.create_session()

        async with self._http_client() as client:

            async def fetch_order(req: SwapRequest) -> SwapOrder:
                return await with_fallback(
                    lambda: self._fetch_order(client, req, session_id, is_estimate=False),
                    lambda: self._fetch_order(client, req, session_id, is_estimate=True),
                )

            request = await resolve_max_amount(fetch_order, request)
            order = await fetch_order(request)

        return await make_swap_quote(order)

    # ======================
    # Network
    # ======================

    async def _fetch_inbound_addresses(
        self, client: httpx.AsyncClient, params: ExchangeParameters
    ) -> list[InboundAddress]:
        response = await fetch_waterfall(
            client, params.thornode_servers, "thorchain/inbound_addresses", self.headers, PROVIDER
        )
        return parse_inbound_addresses(_read_json(response), url=str(response.url))

    async def _fetch_pools(self, client: httpx.AsyncClient, params: ExchangeParameters) -> list[Pool]:
        response = await fetch_waterfall(client, params.midgard_servers, "v2/pools", self.headers, PROVIDER)
        return parse_pools(_read_json(response), url=str(response.url))

    # ======================
    # Quote
    # ======================

    def _unsupported(self, request: SwapRequest, codes: Optional[ResolvedCodes] = None) -> UnsupportedPairError:
        return UnsupportedPairError(
            request.from_currency_code,
            request.to_currency_code,
            from_chain=codes.from_chain if codes else request.from_plugin_id,
            to_chain=codes.to_chain if codes else request.to_plugin_id,
            provider=PROVIDER,
        )

    async def _fetch_order(
        self,
        client: httpx.AsyncClient,
        request: SwapRequest,
        session_id: str,
        is_estimate: bool = False,
    ) -> SwapOrder:
        reject_invalid_pair(self.invalid_codes, request, PROVIDER)
        transcription = get_mainnet_transcription()
        require_supported_chains(transcription, request, PROVIDER)
        codes = resolve_codes(request, transcription)

        from_chain = get_chain(request.from_plugin_id)
        to_chain = get_chain(request.to_plugin_id)
        if codes.from_chain == RUNE_CHAIN:
            raise self._unsupported(request, codes)
        if request.from_token_id is not None and not from_chain.is_evm:
            raise self._unsupported(request, codes)

        params = await self.exchange_info.get(client)
        to_address = await request.to_wallet.get_receive_address(request.to_token_id)

        inbound_addresses, pools = await asyncio.gather(
            self._fetch_inbound_addresses(client, params),
            self._fetch_pools(client, params),
        )

        inbound = find_inbound(inbound_addresses, codes.from_chain)
        if inbound is None:
            logger.info(f"No active THORChain vault for {codes.from_chain}")
            raise self._unsupported(request, codes)

        to_rune = codes.to_chain == RUNE_CHAIN and codes.to_code == RUNE_SYMBOL
        outbound_fee = Decimal(0)
        if codes.to_chain != RUNE_CHAIN:
            outbound = find_inbound(inbound_addresses, codes.to_chain)
            if outbound is None:
                logger.info(f"No active THORChain vault for {codes.to_chain}")
                raise self._unsupported(request, codes)
            outbound_fee = outbound.outbound_fee

        source_pool = find_pool(pools, codes.from_chain, codes.from_code)
        dest_pool = make_rune_pool(pools) if to_rune else find_pool(pools, codes.to_chain, codes.to_code)
        if source_pool is None or dest_pool is None:
            raise self._unsupported(request, codes)

        network_fee = calc_network_fee(
            codes.to_chain, to_chain.gas_asset, codes.to_code, outbound_fee, pools
        )
        logger.debug(f"{codes.to_chain}.{codes.to_code} outbound fee {network_fee}")

        spread = Decimal(0)
        if not is_estimate:
            spread = get_volatility_spread(
                request.from_plugin_id,
                request.from_token_id,
                request.from_currency_code,
                request.to_plugin_id,
                request.to_token_id,
                request.to_currency_code,
                params.volatility_spread,
                params.like_kind_volatility_spread,
                params.per_asset_spread,
            )

        calc_params = SwapCalcParams(
            from_wallet=request.from_wallet,
            from_currency_code=request.from_currency_code,
            to_wallet=request.to_wallet,
            to_currency_code=request.to_currency_code,
            native_amount=request.native_amount,
            source_pool=source_pool,
            dest_pool=dest_pool,
            volatility_spread=spread,
            affiliate_fee=affiliate_fee_from_basis(params.affiliate_fee_basis),
            network_fee=network_fee,
            min_usd_swap=self.min_usd_swap,
            to_base=to_rune,
        )
        if request.quote_for == QuoteFor.TO:
            result = await calc_swap_to(calc_params)
        else:
            result = await calc_swap_from(calc_params)

        memo_text = build_swap_memo(
            codes.to_chain,
            codes.to_code,
            to_address,
            "0" if is_estimate else result.limit,
            self.thorname,
            params.affiliate_fee_basis,
        )

        deposit_address = inbound.address
        memo = Memo("text", memo_text)
        spend_amount = None
        pre_tx = None
        custom_network_fee = {}

        if from_chain.is_evm:
            if request.from_token_id is None:
                memo = Memo("hex", "0x" + memo_text.encode().hex())
            else:
                deposit_address, memo, pre_tx = await self._make_token_deposit(
                    request, codes, inbound, source_pool, result.from_native_amount, memo_text
                )
                spend_amount = "0"
            gas_limit = get_gas_limit(request.from_plugin_id, request.from_token_id)
            if gas_limit is not None:
                custom_network_fee["gasLimit"] = gas_limit

        route = (
            f"{codes.from_chain}.{codes.from_code} -> {codes.to_chain}.{codes.to_code}"
            if to_rune
            else f"{codes.from_chain}.{codes.from_code} -> RUNE -> {codes.to_chain}.{codes.to_code}"
        )
        notes = f"{DISPLAY_NAME} {'estimate' if is_estimate else 'swap'}: {route}"

        return assemble_swap_order(
            request,
            PROVIDER,
            from_native_amount=result.from_native_amount,
            to_native_amount=result.to_native_amount,
            deposit_address=deposit_address,
            payout_address=to_address,
            memo=memo,
            spend_native_amount=spend_amount,
            is_estimate=is_estimate,
            pre_tx=pre_tx,
            metadata_notes=notes,
            expiration_date=default_expiration(self.quote_expiration_seconds),
            custom_network_fee=custom_network_fee,
            fee_cache=self.fee_cache,
            fee_session_id=session_id,
            margin_seconds=self.expiry_margin_seconds,
        )

    async def _make_token_deposit(
        self,
        request: SwapRequest,
        codes: ResolvedCodes,
        inbound: InboundAddress,
        source_pool: Pool,
        native_amount: str,
        memo_text: str,
    ) -> tuple[str, Memo, Optional[Transaction]]:
        """Router deposit for an EVM token: (router address, calldata memo, approval tx)."""
        asset_address = source_pool.contract_address
        if self.deposit_encoder is None or asset_address is None:
            raise self._unsupported(request, codes)
        if inbound.router is None:
            raise ProviderProtocolError(f"Missing router address for {codes.from_chain}", PROVIDER)

        data = await self.deposit_encoder.get_deposit_data(
            inbound.router, inbound.address, asset_address, native_amount, memo_text
        )

        pre_tx = None
        approval = await self.deposit_encoder.get_approval_data(inbound.router, asset_address, native_amount)
        if approval is not None:
            pre_tx = await request.from_wallet.make_spend(
                SpendInfo(
                    spend_targets=[SpendTarget(public_address=asset_address, native_amount="0")],
                    token_id=request.from_token_id,
                    memos=[Memo("hex", approval)],
                    metadata={"name": DISPLAY_NAME, "category": "expense:Token Approval"},
                )
            )

        return inbound.router, Memo("hex", data), pre_tx
