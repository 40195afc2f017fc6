"""Factory for creating swap providers from settings.

Caches shared across providers (fee overrides, exchange parameters) are
created once per process here and injected into each provider.
"""

import logging
from functools import lru_cache
from typing import Optional

import httpx

from swapquote.config import Settings, get_settings
from swapquote.routing.base import SwapProvider
from swapquote.routing.fee_cache import FeeOverrideCache
from swapquote.swap_engine.exchange_info import ExchangeInfoCache, ExchangeParameters

logger = logging.getLogger(__name__)


@lru_cache
def get_fee_cache() -> FeeOverrideCache:
    """Process-wide fee override cache."""
    return FeeOverrideCache(ttl_seconds=get_settings().fee_cache_ttl_seconds)


def create_exchange_info_cache(settings: Optional[Settings] = None) -> ExchangeInfoCache:
    """Create an exchange parameter cache seeded with configured defaults."""
    settings = settings or get_settings()
    defaults = ExchangeParameters(
        midgard_servers=tuple(settings.midgard_servers),
        thornode_servers=tuple(settings.thornode_servers),
        affiliate_fee_basis=settings.affiliate_fee_basis,
    )
    return ExchangeInfoCache(
        defaults,
        settings.info_servers,
        app_id=settings.app_id,
        refresh_seconds=settings.exchange_info_refresh_seconds,
    )


@lru_cache
def get_exchange_info_cache() -> ExchangeInfoCache:
    """Process-wide THORChain exchange parameter cache."""
    return create_exchange_info_cache()


def create_thorchain_provider(
    settings: Optional[Settings] = None,
    deposit_encoder=None,
    client: Optional[httpx.AsyncClient] = None,
    fee_cache: Optional[FeeOverrideCache] = None,
    exchange_info: Optional[ExchangeInfoCache] = None,
) -> SwapProvider:
    """Create THORChain provider.

    THORChain doesn't require API keys. Without a deposit encoder, EVM token
    sources are rejected as unsupported pairs.
    """
    from swapquote.routing.thorchain import THORChainProvider

    settings = settings or get_settings()
    if deposit_encoder is None:
        logger.info("THORChain provider created without deposit encoder; EVM tokens disabled")

    return THORChainProvider(
        exchange_info=exchange_info or get_exchange_info_cache(),
        fee_cache=fee_cache or get_fee_cache(),
        thorname=settings.thorname,
        ninerealms_client_id=settings.ninerealms_client_id,
        min_usd_swap=settings.min_usd_swap,
        quote_expiration_seconds=settings.quote_expiration_seconds,
        expiry_margin_seconds=settings.expiry_margin_seconds,
        http_timeout=settings.http_timeout,
        deposit_encoder=deposit_encoder,
        client=client,
    )


def create_providers(settings: Optional[Settings] = None, deposit_encoder=None) -> dict[str, SwapProvider]:
    """All configured providers keyed by name."""
    provider = create_thorchain_provider(settings, deposit_encoder=deposit_encoder)
    return {provider.name: provider}
