"""Retrieve the source page markup."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import aiohttp

from ..core.errors import FetchError
from .html_normalize import decode_bytes_auto
from .policy import FetchConfig

logger = logging.getLogger(__name__)


def _headers(config: FetchConfig) -> dict:
    return {
        "User-Agent": config.user_agent,
        "Accept": "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8",
        "Accept-Language": config.accept_language,
        "Accept-Encoding": "gzip, deflate",
    }


async def fetch_page(url: str, config: Optional[FetchConfig] = None) -> str:
    """Return the decoded body of ``url`` or raise FetchError.

    A single attempt: retrying is left to whoever schedules the run.
    """

    config = config or FetchConfig()
    timeout = aiohttp.ClientTimeout(total=config.timeout)
    try:
        async with aiohttp.ClientSession(headers=_headers(config), timeout=timeout) as session:
            async with session.get(url, allow_redirects=True) as resp:
                status = resp.status
                if not 200 <= status < 300:
                    raise FetchError(url, "unexpected status", status=status)
                body = await resp.read()
                headers = {"content-type": resp.headers.get("Content-Type", "")}
    except asyncio.TimeoutError as exc:
        raise FetchError(url, f"timed out after {config.timeout:g}s") from exc
    except aiohttp.ClientError as exc:
        raise FetchError(url, f"{type(exc).__name__}: {exc}") from exc

    text = decode_bytes_auto(body, headers)
    logger.info("fetched %s (%d bytes)", url, len(body))
    return text


__all__ = ["fetch_page"]
