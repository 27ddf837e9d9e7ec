# 04.10.26

import logging
from typing import Optional, Sequence, Union


# Internal utilities
from StreamTier.utils import config_manager


# Logic
from .models import ParseResult, QualityConfig, Representation, SegmentQuality
from .parser import parse_manifest
from .rewrite import rewrite, rewrite_to, next_best, select_fallback
from .analyzer import SegmentAnalyzer
from .session import ManifestSession, EVENT_MANIFEST_DATA, EVENT_ACTIVE_QUALITY


# Variable
logger = logging.getLogger(__name__)


def config_from_settings() -> QualityConfig:
    """Initial selection from the QUALITY section of the config file."""
    return QualityConfig(
        force_max=config_manager.get_bool('QUALITY', 'force_max'),
        forced_id=config_manager.get('QUALITY', 'forced_id') or None
    )


class QualityEngine:
    def __init__(self, session: Optional[ManifestSession] = None):
        """
        Facade tying manifest parsing, URL rewriting and segment analysis to one session.

        Args:
            session: Shared store. A new one seeded from the config file is created when omitted
        """
        self.session = session or ManifestSession(config_from_settings())
        self.analyzer = SegmentAnalyzer(self.session)

    @property
    def representations(self):
        return self.session.get_representations()

    def set_config(self, config: QualityConfig) -> None:
        self.session.set_config(config)

    def ingest_manifest(self, content: Union[str, bytes, None], url: Optional[str] = None) -> ParseResult:
        """
        Parse manifest text and publish what it reveals.

        A master playlist or MPD with video representations replaces the session
        list; a matched DAI media playlist only updates the active quality.
        Anything else leaves the session untouched.
        """
        result = parse_manifest(content, url, self.session.get_representations())

        if result.active_quality is not None:
            self.session.active_quality = result.active_quality
            self.session.emit(EVENT_ACTIVE_QUALITY, result.active_quality)

        if result.representations:
            self.session.set_representations(result.representations)
            self.session.emit(EVENT_MANIFEST_DATA, list(result.representations))
            logger.info(f"Loaded {len(result.representations)} {result.manifest_type} representations: {', '.join(rep.resolution for rep in result.representations)}")

        return result

    def rewrite(self, url: str, config: Optional[QualityConfig] = None, representations: Optional[Sequence[Representation]] = None) -> str:
        """Rewrite against the session state, or an explicit (possibly stale) snapshot."""
        if representations is None:
            representations = self.session.get_representations()
        if config is None:
            config = self.session.get_config()
        return rewrite(url, representations, config, self.session)

    def analyze(self, url: str) -> Optional[SegmentQuality]:
        return self.analyzer.analyze(url)

    def next_best(self, representations: Optional[Sequence[Representation]] = None) -> Optional[Representation]:
        if representations is None:
            representations = self.session.get_representations()
        return next_best(representations)

    def fallback_url(self, original: str, failed: str, representations: Optional[Sequence[Representation]] = None) -> Optional[str]:
        """
        URL one tier below the current max, for a rewritten request that failed.

        Args:
            original: URL as the player requested it
            failed: Rewritten URL that was rejected

        Returns:
            str: Fallback URL, or None when there is no acceptable tier or it would repeat a tried URL
        """
        if representations is None:
            representations = self.session.get_representations()

        fallback = select_fallback(representations)
        if fallback is None:
            return None

        candidate = rewrite_to(original, representations, fallback)
        if candidate in (original, failed):
            return None

        logger.debug(f"Fallback to {fallback.id} ({fallback.resolution}): {candidate}")
        return candidate
