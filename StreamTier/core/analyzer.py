# 04.10.26

import logging
from typing import Optional, Sequence


# Logic
from .models import ArchivedStream, Representation, SegmentQuality
from .constants import ARCHIVED_HLS_RE, SEGMENT_TIER_RE
from .estimator import estimate_resolution
from .url_classifier import URLClassifier
from .session import ManifestSession, EVENT_ARCHIVED_STREAM, EVENT_SEGMENT_QUALITY


# Variable
logger = logging.getLogger(__name__)


def _to_int(value: Optional[str]) -> Optional[int]:
    try:
        return int(value) if value else None
    except ValueError:
        return None


class SegmentAnalyzer:
    def __init__(self, session: ManifestSession):
        self.session = session

    def analyze(self, url: str) -> Optional[SegmentQuality]:
        """
        Infer the quality of a requested segment and publish it.

        Args:
            url: Segment URL as it goes on the wire

        Returns:
            SegmentQuality: What the URL reveals, or None for audio, non-segments or nothing known
        """
        try:
            representations = self.session.get_representations()
            self.detect_archived(url, representations)

            quality = self.infer(url, representations)
            if quality is not None:
                self.session.last_quality = quality
                self.session.emit(EVENT_SEGMENT_QUALITY, quality)
            return quality

        except Exception as e:
            logger.error(f"Error analyzing {url}: {e}")
            return None

    def detect_archived(self, url: str, representations: Sequence[Representation]) -> None:
        """An HLS tier URL with no tier data in the manifest means the stream cannot be rewritten."""
        if not url or self.session.archived:
            return

        match = ARCHIVED_HLS_RE.search(url)
        if not match or any(rep.hls_tier for rep in representations):
            return

        if self.session.mark_archived():
            logger.info(f"Archived HLS stream detected (tier {match.group(1)}), quality cannot be forced")
            self.session.emit(EVENT_ARCHIVED_STREAM, ArchivedStream(current_tier=match.group(1)))

    @staticmethod
    def infer(url: str, representations: Sequence[Representation]) -> Optional[SegmentQuality]:
        if not URLClassifier.is_segment_url(url) or URLClassifier.is_audio_url(url):
            return None

        path = URLClassifier.get_path(url)
        cmcd = URLClassifier.parse_cmcd(url)
        cmcd_bitrate = _to_int(cmcd.get('br'))
        max_bitrate = _to_int(cmcd.get('tb'))

        resolution = URLClassifier.extract_resolution_hint(path)
        is_estimated = False
        exact_bandwidth = None
        requested_tier = None

        if resolution:
            height = int(resolution[:-1])
            match = next((rep for rep in representations if rep.height == height), None)
            if match is not None:
                exact_bandwidth = match.effective_bandwidth

        else:
            tier_match = SEGMENT_TIER_RE.search(path)
            if tier_match:
                requested_tier = int(tier_match.group(1))
                match = next((rep for rep in representations if rep.dash_tier == tier_match.group(1)), None)
                if match is not None:
                    resolution = match.resolution
                else:
                    resolution = estimate_resolution(requested_tier)
                    is_estimated = True

            if not resolution:
                match = next((rep for rep in representations if rep.dai_id and rep.dai_id in path), None)
                if match is not None:
                    resolution = match.resolution
                    exact_bandwidth = match.bandwidth

        if not resolution and cmcd_bitrate:
            resolution = estimate_resolution(cmcd_bitrate)
            is_estimated = True

        if not (resolution or cmcd_bitrate or exact_bandwidth):
            return None

        if exact_bandwidth:
            bitrate = round(exact_bandwidth / 1000)
        elif requested_tier:
            bitrate = requested_tier
        else:
            bitrate = cmcd_bitrate

        return SegmentQuality(resolution=resolution, is_estimated=is_estimated, bitrate=bitrate, max_bitrate=max_bitrate)
