# 05.10.26

import re
import time
import logging
from dataclasses import dataclass
from typing import List, Optional, Union


# External libraries
import httpx


# Internal utilities
from StreamTier.utils import config_manager


# Variable
logger = logging.getLogger(__name__)
PLACEHOLDER = '_TIER/'
TIER_TOKEN_RE = re.compile(r'_(\d{3,5})/(?=[^/]*$)')
TIMEOUT = config_manager.get_int('REQUESTS', 'timeout')
USER_AGENT = config_manager.get('REQUESTS', 'user_agent')


@dataclass(frozen=True)
class ProbeResult:
    tier: int
    status: Union[int, str]
    exists: bool


class TierProbe:
    def __init__(self, url: str, client: Optional[httpx.Client] = None, delay: Optional[float] = None):
        """
        Discover which bitrate tiers a CDN serves for one segment.

        Args:
            url: Working segment URL, either with a '_TIER/' placeholder or a real '_{tier}/' token
            client: httpx client to use, a default one is created when omitted
            delay: Pause between requests in seconds (PROBE.delay)
        """
        if PLACEHOLDER not in url and not TIER_TOKEN_RE.search(url.split('?', 1)[0]):
            raise ValueError(f"No tier token (_TIER/ or _1234/) in {url}")

        self.url = url
        self.client = client
        self.delay = delay if delay is not None else config_manager.get_float('PROBE', 'delay', 0.1)

    def build_url(self, tier: int) -> str:
        if PLACEHOLDER in self.url:
            return self.url.replace(PLACEHOLDER, f"_{tier}/", 1)

        path, sep, query = self.url.partition('?')
        return TIER_TOKEN_RE.sub(f"_{tier}/", path, count=1) + sep + query

    def check(self, client: httpx.Client, tier: int) -> ProbeResult:
        url = self.build_url(tier)
        try:
            response = client.head(url)
            exists = response.is_success
            logger.debug(f"{tier} kbps: {response.status_code}")
            return ProbeResult(tier=tier, status=response.status_code, exists=exists)

        except httpx.HTTPError as e:
            logger.warning(f"{tier} kbps: {e}")
            return ProbeResult(tier=tier, status='error', exists=False)

    def run(self, start: Optional[int] = None, stop: Optional[int] = None, step: Optional[int] = None) -> List[ProbeResult]:
        """
        Probe tiers from start down to stop.

        Returns:
            List[ProbeResult]: One entry per tier, highest first
        """
        start = start if start is not None else config_manager.get_int('PROBE', 'start', 12500)
        stop = stop if stop is not None else config_manager.get_int('PROBE', 'stop', 500)
        step = step if step is not None else config_manager.get_int('PROBE', 'step', 500)

        if step <= 0 or start < stop:
            raise ValueError(f"Invalid probe range {start}..{stop} step {step}")

        tiers = list(range(start, stop - 1, -step))
        results = []

        client = self.client or httpx.Client(timeout=TIMEOUT, follow_redirects=True, headers={'User-Agent': USER_AGENT})
        try:
            for index, tier in enumerate(tiers):
                results.append(self.check(client, tier))
                if self.delay and index < len(tiers) - 1:
                    time.sleep(self.delay)
        finally:
            if self.client is None:
                client.close()

        available = [r.tier for r in results if r.exists]
        logger.info(f"Available tiers: {', '.join(map(str, available)) or 'none'}")
        return results

    @staticmethod
    def available(results: List[ProbeResult]) -> List[int]:
        return [result.tier for result in results if result.exists]
