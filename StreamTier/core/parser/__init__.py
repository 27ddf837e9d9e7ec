# 03.10.26

import logging
from typing import Optional, Sequence, Union


# Logic
from ..models import ParseResult, Representation
from .hls import HLSParser, parse_hls
from .dash import DASHParser, parse_dash
from .disambiguation import AdContentClassifier


# Variable
logger = logging.getLogger(__name__)


def detect_manifest_type(content: Union[str, bytes, None]) -> Optional[str]:
    """Return 'hls' for a leading #EXTM3U, 'dash' for a leading <?xml or <MPD, else None."""
    if not content:
        return None

    if isinstance(content, bytes):
        content = content[:512].decode('utf-8', errors='ignore')

    head = content.lstrip('\ufeff').lstrip()
    if head.startswith('#EXTM3U'):
        return 'hls'
    if head.startswith('<?xml') or head.startswith('<MPD'):
        return 'dash'
    return None


def parse_manifest(content: Union[str, bytes, None], url: Optional[str] = None, known: Sequence[Representation] = ()) -> ParseResult:
    """
    Dispatch manifest text to the matching parser.

    Args:
        content: Raw manifest body
        url: Request URL that fetched it
        known: Current session representations, needed to match HLS media playlists

    Returns:
        ParseResult: Empty when the format is unknown or the document is broken
    """
    manifest_type = detect_manifest_type(content)

    if manifest_type == 'hls':
        if isinstance(content, bytes):
            content = content.decode('utf-8', errors='replace')
        return parse_hls(content, url, known)

    if manifest_type == 'dash':
        return parse_dash(content, url)

    logger.debug(f"Unknown manifest format: {url}")
    return ParseResult()


__all__ = [
    "AdContentClassifier",
    "DASHParser",
    "HLSParser",
    "detect_manifest_type",
    "parse_dash",
    "parse_hls",
    "parse_manifest",
]
