# 02.10.26

import re


# Internal utilities
from StreamTier.utils import config_manager


# URL classification
SEGMENT_EXTENSIONS = tuple(config_manager.get_list('URLS', 'segment_extensions'))
MANIFEST_EXTENSIONS = tuple(config_manager.get_list('URLS', 'manifest_extensions'))
AUDIO_MARKERS = tuple(config_manager.get_list('MARKERS', 'audio_markers'))

# Ad / content disambiguation
AD_TOKENS = tuple(token.lower() for token in config_manager.get_list('MARKERS', 'ad_tokens'))
STUDIO_MARKERS = tuple(token.lower() for token in config_manager.get_list('MARKERS', 'studio_markers'))
CONTENT_MARKERS = tuple(token.lower() for token in config_manager.get_list('MARKERS', 'content_markers'))

# Tier ladder
KNOWN_TIERS = tuple(int(t) for t in config_manager.get_list('TIERS', 'known_tiers'))
MAX_TO_AVERAGE_RATIO = config_manager.get_float('TIERS', 'max_to_average_ratio', 1.3)
FUZZY_TOLERANCE = config_manager.get_float('TIERS', 'fuzzy_tolerance', 0.4)

# Target selection
MAX_TARGET_HEIGHT = config_manager.get_int('QUALITY', 'max_target_height', 1080)
FALLBACK_MIN_HEIGHT = config_manager.get_int('QUALITY', 'fallback_min_height', 720)

# Ascending (ceiling kbps, label); the last bucket is open ended
BITRATE_RESOLUTION_MAP = (
    (200, '234p'),
    (400, '270p'),
    (900, '360p'),
    (1700, '480p'),
    (2500, '540p'),
    (4200, '720p'),
    (6000, '1080p'),
    (12000, '1440p'),
    (float('inf'), '2160p'),
)


# Shared patterns
RESOLUTION_HINT_RE = re.compile(r'_(\d{3,4}p)_')
DASH_TIER_RE = re.compile(r'_(\d{3,5})(?=[/.])')
TRAILING_TIER_RE = re.compile(r'_(\d{3,5})$')
LANGUAGE_TAG_RE = re.compile(r'_[a-z]{3}[A-Z]{2}(?:_|$)')
DAI_VARIANT_RE = re.compile(r'/variant/([a-f0-9]{32})/', re.IGNORECASE)
ARCHIVED_HLS_RE = re.compile(r'manifest_video_(\d+)_')
SEGMENT_TIER_RE = re.compile(r'_(\d{3,5})/seg_')

# Ordered: the first pattern that matches a variant URL yields the HLS tier
HLS_TIER_PATTERNS = (
    re.compile(r'manifest_video_(\d+)[_/]'),
    re.compile(r'video[_/](\d+)[_/]'),
)

# Ordered: explicit segment numbers are more reliable than the template capture
SEGMENT_NUMBER_PATTERNS = (
    re.compile(r'seg_(\d+)\.'),
    re.compile(r'segment_(\d+)_'),
)
