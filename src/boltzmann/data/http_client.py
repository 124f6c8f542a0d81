import aiohttp, asyncio
from loguru import logger
from typing import Optional, Dict, Any
from contextlib import asynccontextmanager

from .errors import MalformedUpstreamData, NetworkFailure, ProviderError, UpstreamRejected

DEFAULT_TIMEOUT_SECONDS = 10.0


@asynccontextmanager
async def http_session(timeout: float = DEFAULT_TIMEOUT_SECONDS):
    async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=timeout)) as s:
        yield s


async def get_json(
    url: str,
    params: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    provider: Optional[str] = None,
) -> Any:
    """GET ``url`` and decode the JSON body, mapping failures onto the provider error taxonomy."""
    logger.debug(f"GET {url} params={sorted((params or {}).keys())}")
    try:
        async with http_session(timeout) as s:
            async with s.get(url, params=params, headers=headers) as r:
                if r.status == 429:
                    raise UpstreamRejected("rate limit exceeded (HTTP 429)", provider)
                if r.status >= 400:
                    body = await r.text(errors="replace")
                    raise UpstreamRejected(f"HTTP {r.status}: {body[:200]}", provider)
                return await r.json(content_type=None)
    except ProviderError:
        raise
    except ValueError as e:
        raise MalformedUpstreamData(f"response is not valid JSON: {e}", provider) from e
    except asyncio.TimeoutError as e:
        raise NetworkFailure(f"request timed out after {timeout}s", provider) from e
    except aiohttp.ClientError as e:
        raise NetworkFailure(str(e) or type(e).__name__, provider) from e
