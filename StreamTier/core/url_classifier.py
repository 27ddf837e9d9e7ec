# 03.10.26

from typing import Dict, Optional
from urllib.parse import urlsplit, parse_qs, unquote


# Logic
from .constants import (
    SEGMENT_EXTENSIONS, MANIFEST_EXTENSIONS, AUDIO_MARKERS, AD_TOKENS,
    RESOLUTION_HINT_RE, DAI_VARIANT_RE, HLS_TIER_PATTERNS
)


class URLClassifier:
    """Pure predicates over request URLs. Malformed input yields False/None, never an exception."""

    @staticmethod
    def get_path(url: Optional[str]) -> str:
        if not url or not isinstance(url, str):
            return ''
        try:
            return urlsplit(url).path
        except ValueError:
            return url.split('?', 1)[0]

    @staticmethod
    def is_segment_url(url: Optional[str]) -> bool:
        path = URLClassifier.get_path(url)
        return any(ext in path for ext in SEGMENT_EXTENSIONS)

    @staticmethod
    def is_manifest_url(url: Optional[str]) -> bool:
        if not url or not isinstance(url, str):
            return False
        return any(ext in url for ext in MANIFEST_EXTENSIONS)

    @staticmethod
    def extract_resolution_hint(path: Optional[str]) -> Optional[str]:
        """Return the '_720p_' style token of a path as '720p'."""
        if not path or not isinstance(path, str):
            return None
        match = RESOLUTION_HINT_RE.search(path)
        return match.group(1) if match else None

    @staticmethod
    def parse_cmcd(url: Optional[str]) -> Dict[str, str]:
        """Decode the CMCD query parameter into its key/value pairs."""
        if not url or not isinstance(url, str):
            return {}
        try:
            query = urlsplit(url).query
        except ValueError:
            return {}

        values = parse_qs(query).get('CMCD')
        if not values:
            return {}

        pairs = {}
        for item in unquote(values[0]).split(','):
            key, _, value = item.partition('=')
            if key:
                pairs[key.strip()] = value.strip().strip('"')
        return pairs

    @staticmethod
    def is_audio_url(url: Optional[str]) -> bool:
        if not url or not isinstance(url, str):
            return False
        if any(marker in url for marker in AUDIO_MARKERS):
            return True
        return URLClassifier.parse_cmcd(url).get('ot') == 'a'

    @staticmethod
    def is_ad_url(url: Optional[str]) -> bool:
        if not url or not isinstance(url, str):
            return False
        lowered = url.lower()
        return any(token in lowered for token in AD_TOKENS)

    @staticmethod
    def is_dai_playlist_url(url: Optional[str]) -> bool:
        """DAI variant playlists carry ad tokens but are the live quality switch point."""
        if not url or not isinstance(url, str):
            return False
        lowered = url.lower()
        return '/variant/' in lowered and '.m3u8' in lowered

    @staticmethod
    def extract_dai_id(url: Optional[str]) -> Optional[str]:
        if not url or not isinstance(url, str):
            return None
        match = DAI_VARIANT_RE.search(url)
        return match.group(1) if match else None

    @staticmethod
    def extract_hls_tier(url: Optional[str]) -> Optional[str]:
        if not url or not isinstance(url, str):
            return None
        for pattern in HLS_TIER_PATTERNS:
            match = pattern.search(url)
            if match:
                return match.group(1)
        return None
