"""Bounded, failure-isolated reachability checks.

``verify_many`` starts exactly ``concurrency`` worker coroutines that pull
``(index, url)`` items from one queue. Each URL walks
UNTRIED -> PROBED -> REACHABLE | UNREACHABLE: a HEAD probe first, then a GET
fallback (body never read) when the probe errors or returns an unexpected
status. Workers only write their own slot of a pre-sized result list, so the
output is already in input order.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import aiohttp

from ..core.errors import VerificationError
from .policy import VerifyConfig

logger = logging.getLogger(__name__)


class ProbeState(str, Enum):
    UNTRIED = "untried"
    PROBED = "probed"
    REACHABLE = "reachable"
    UNREACHABLE = "unreachable"


@dataclass(frozen=True)
class ProbeOutcome:
    url: str
    state: ProbeState
    method: Optional[str] = None
    status: Optional[int] = None
    error: Optional[str] = None

    @property
    def reachable(self) -> bool:
        return self.state is ProbeState.REACHABLE


def is_live_status(status: int) -> bool:
    return 200 <= status < 400


class ReachabilityVerifier:
    """Async liveness checker with a fixed-size worker pool."""

    def __init__(self, config: Optional[VerifyConfig] = None) -> None:
        self.config = config or VerifyConfig()
        if self.config.concurrency < 1:
            raise ValueError("concurrency must be at least 1")

    async def verify_many(self, urls: Sequence[str]) -> List[bool]:
        outcomes = await self.check_many(urls)
        return [outcome.reachable for outcome in outcomes]

    async def check_many(self, urls: Sequence[str]) -> List[ProbeOutcome]:
        total = len(urls)
        results: List[ProbeOutcome] = [ProbeOutcome(url=u, state=ProbeState.UNTRIED) for u in urls]
        if not total:
            return results

        queue: "asyncio.Queue[Tuple[int, str]]" = asyncio.Queue()
        for index, url in enumerate(urls):
            queue.put_nowait((index, url))

        timeout = aiohttp.ClientTimeout(total=self.config.timeout)
        connector = aiohttp.TCPConnector(limit=self.config.concurrency)
        headers = {"User-Agent": self.config.user_agent}
        async with aiohttp.ClientSession(connector=connector, headers=headers, timeout=timeout) as session:
            workers = [
                asyncio.create_task(self._worker(worker_id, session, queue, results))
                for worker_id in range(min(self.config.concurrency, total))
            ]
            try:
                await asyncio.gather(*workers)
            finally:
                for worker in workers:
                    worker.cancel()

        reachable = sum(1 for outcome in results if outcome.reachable)
        logger.info("verified %d url(s): %d reachable", total, reachable)
        return results

    async def _worker(
        self,
        worker_id: int,
        session: aiohttp.ClientSession,
        queue: "asyncio.Queue[Tuple[int, str]]",
        results: List[ProbeOutcome],
    ) -> None:
        while True:
            try:
                index, url = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            try:
                results[index] = await self.check(session, url)
            finally:
                queue.task_done()
            if self.config.probe_delay > 0 and not queue.empty():
                await asyncio.sleep(self.config.probe_delay)

    async def check(self, session: aiohttp.ClientSession, url: str) -> ProbeOutcome:
        """Run the two-step probe for a single URL; never raises."""

        outcome = await self.probe(session, url)
        if outcome.state is ProbeState.PROBED:
            outcome = await self.fallback(session, outcome)
        return outcome

    async def probe(self, session: aiohttp.ClientSession, url: str) -> ProbeOutcome:
        """HEAD request; REACHABLE on a live status, otherwise PROBED."""

        try:
            status = await self._request_status(session, "HEAD", url)
        except VerificationError as exc:
            logger.debug("HEAD %s failed: %s", url, exc)
            return ProbeOutcome(url=url, state=ProbeState.PROBED, method="HEAD", error=str(exc))
        if is_live_status(status):
            return ProbeOutcome(url=url, state=ProbeState.REACHABLE, method="HEAD", status=status)
        logger.debug("HEAD %s returned %d; retrying with GET", url, status)
        return ProbeOutcome(url=url, state=ProbeState.PROBED, method="HEAD", status=status)

    async def fallback(self, session: aiohttp.ClientSession, probed: ProbeOutcome) -> ProbeOutcome:
        """GET request (body never read) that settles a PROBED outcome."""

        url = probed.url
        try:
            status = await self._request_status(session, "GET", url)
        except VerificationError as exc:
            logger.debug("GET %s failed: %s", url, exc)
            return ProbeOutcome(url=url, state=ProbeState.UNREACHABLE, method="GET", error=str(exc))
        state = ProbeState.REACHABLE if is_live_status(status) else ProbeState.UNREACHABLE
        return ProbeOutcome(url=url, state=state, method="GET", status=status)

    async def _request_status(self, session: aiohttp.ClientSession, method: str, url: str) -> int:
        """Issue one request and return its status; the response is released on exit."""

        try:
            async with session.request(method, url, allow_redirects=True) as resp:
                return resp.status
        except asyncio.TimeoutError as exc:
            raise VerificationError(f"timed out after {self.config.timeout:g}s") from exc
        except (aiohttp.ClientError, ValueError) as exc:
            raise VerificationError(f"{type(exc).__name__}: {exc}") from exc


__all__ = [
    "ProbeState",
    "ProbeOutcome",
    "ReachabilityVerifier",
    "is_live_status",
]
