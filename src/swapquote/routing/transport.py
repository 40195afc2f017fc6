"""Resilience helpers for provider network calls.

Only two patterns exist: walking an ordered list of equivalent servers, and
falling back once from a fixed-rate quote to an estimate quote.
"""

import logging
from typing import Awaitable, Callable, Optional, Sequence, TypeVar

import httpx

from swapquote.errors import ProviderProtocolError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def fetch_waterfall(
    client: httpx.AsyncClient,
    servers: Sequence[str],
    path: str,
    headers: Optional[dict] = None,
    provider: Optional[str] = None,
) -> httpx.Response:
    """
    GET ``path`` from each server in order and return the first 2xx reply.

    Args:
        client: Shared HTTP client
        servers: Equivalent base URLs, tried in order
        path: Path appended to each server
        headers: Extra request headers

    Raises:
        ProviderProtocolError: every server failed or none were given
    """
    last_error: Optional[ProviderProtocolError] = None

    for server in servers:
        url = f"{server.rstrip('/')}/{path.lstrip('/')}"
        try:
            response = await client.get(url, headers=headers)
        except httpx.HTTPError as e:
            logger.warning(f"{url} failed: {e}")
            last_error = ProviderProtocolError(f"Request to {url} failed: {e}", provider, url=url)
            continue

        if response.is_success:
            return response

        logger.warning(f"{url} returned HTTP {response.status_code}")
        last_error = ProviderProtocolError(
            f"HTTP {response.status_code} from {url}",
            provider,
            status_code=response.status_code,
            url=url,
        )

    if last_error is None:
        raise ProviderProtocolError(f"No servers configured for {path}", provider)
    raise last_error


async def with_fallback(
    primary: Callable[[], Awaitable[T]],
    fallback: Callable[[], Awaitable[T]],
) -> T:
    """
    Run ``primary``; on a provider protocol failure run ``fallback`` once.

    If both fail the primary error is raised, since it describes the quote
    the caller actually asked for. Limit and pair errors are not retried.
    """
    try:
        return await primary()
    except ProviderProtocolError as primary_error:
        logger.info(f"Primary quote failed, trying fallback: {primary_error}")
        try:
            return await fallback()
        except ProviderProtocolError as fallback_error:
            logger.debug(f"Fallback quote failed too: {fallback_error}")
            raise primary_error from fallback_error
