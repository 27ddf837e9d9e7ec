# 03.10.26

import re
import logging
from typing import Dict, List, Optional, Sequence, Tuple
from urllib.parse import urljoin


# Logic
from ..models import ActiveQuality, ParseResult, Representation
from ..estimator import estimate_height
from ..url_classifier import URLClassifier


# Variable
logger = logging.getLogger(__name__)
STREAM_INF = '#EXT-X-STREAM-INF:'
BANDWIDTH_RE = re.compile(r'(?<![-A-Z])BANDWIDTH=(\d+)')
RESOLUTION_RE = re.compile(r'RESOLUTION=(\d+)x(\d+)')
CODECS_RE = re.compile(r'CODECS="([^"]+)"')


class HLSParser:
    def __init__(self, content: str, url: Optional[str] = None, known: Sequence[Representation] = ()):
        """
        Line scanner for HLS master and media playlists.

        Args:
            content: Raw m3u8 text
            url: Request URL that fetched the playlist, if any
            known: Representations of the current session, used to match media playlists
        """
        self.content = content or ''
        self.url = url
        self.known = tuple(known)

    def parse(self) -> ParseResult:
        """Parse the playlist. Never raises: a broken playlist yields an empty result."""
        try:
            lines = self.content.splitlines()

            if not any(line.strip().startswith(STREAM_INF) for line in lines):
                return ParseResult(active_quality=self._match_media_playlist(), manifest_type='hls')

            variants = self.parse_variants(lines)
            representations = self.deduplicate(variants)
            logger.debug(f"HLS master: {len(variants)} variants, {len(representations)} unique heights")
            return ParseResult(representations=representations, manifest_type='hls')

        except Exception as e:
            logger.error(f"Error parsing HLS manifest: {e}")
            return ParseResult(manifest_type='hls')

    def parse_variants(self, lines: List[str]) -> List[Representation]:
        variants = []

        for i, raw in enumerate(lines):
            line = raw.strip()
            if not line.startswith(STREAM_INF):
                continue

            attrs = line[len(STREAM_INF):]
            bandwidth, width, height, codecs = self._parse_stream_inf(attrs)
            variant_url = self._next_uri(lines, i + 1)

            if not height and not bandwidth:
                continue

            if not height:
                height = estimate_height(bandwidth / 1000) or 0

            if variant_url and self.url:
                variant_url = urljoin(self.url, variant_url)

            variants.append(Representation(
                id=f"hls_{len(variants)}",
                height=height,
                width=width,
                bandwidth=bandwidth,
                codecs=codecs,
                hls_tier=URLClassifier.extract_hls_tier(variant_url),
                dai_id=URLClassifier.extract_dai_id(variant_url),
                variant_url=variant_url
            ))

        return variants

    @staticmethod
    def _parse_stream_inf(attrs: str) -> Tuple[int, int, int, Optional[str]]:
        bandwidth = width = height = 0
        codecs = None

        bandwidth_match = BANDWIDTH_RE.search(attrs)
        if bandwidth_match:
            bandwidth = int(bandwidth_match.group(1))

        resolution_match = RESOLUTION_RE.search(attrs)
        if resolution_match:
            width = int(resolution_match.group(1))
            height = int(resolution_match.group(2))

        codecs_match = CODECS_RE.search(attrs)
        if codecs_match:
            codecs = codecs_match.group(1)

        return bandwidth, width, height, codecs

    @staticmethod
    def _next_uri(lines: List[str], start: int) -> Optional[str]:
        for line in lines[start:]:
            line = line.strip()
            if line and not line.startswith('#'):
                return line
        return None

    @staticmethod
    def deduplicate(variants: List[Representation]) -> List[Representation]:
        """
        Collapse variants to one per height.

        Archived streams reuse a height at several tiers, so the (height, tier)
        pass runs first and the per-height pass keeps the highest bandwidth.
        """
        by_tier: Dict[Tuple[int, Optional[str]], Representation] = {}
        for rep in variants:
            key = (rep.height, rep.hls_tier)
            current = by_tier.get(key)
            if current is None or rep.bandwidth > current.bandwidth:
                by_tier[key] = rep

        by_height: Dict[int, Representation] = {}
        for rep in by_tier.values():
            if not rep.height:
                continue
            current = by_height.get(rep.height)
            if current is None or rep.bandwidth > current.bandwidth:
                by_height[rep.height] = rep

        return sorted(by_height.values(), key=lambda r: r.height, reverse=True)

    def _match_media_playlist(self) -> Optional[ActiveQuality]:
        """A media playlist fetched through a DAI variant URL tells which tier is playing."""
        if not self.url or not self.known:
            return None

        for rep in self.known:
            if rep.dai_id and rep.dai_id in self.url:
                bitrate = round(rep.bandwidth / 1000) if rep.bandwidth else None
                logger.debug(f"Active DAI variant {rep.dai_id}: {rep.resolution}")
                return ActiveQuality(resolution=rep.resolution, bitrate=bitrate, dai_id=rep.dai_id)

        return None


def parse_hls(content: str, url: Optional[str] = None, known: Sequence[Representation] = ()) -> ParseResult:
    return HLSParser(content, url, known).parse()
