# 04.10.26

import re
from functools import lru_cache
from typing import Dict, NamedTuple, Optional, Tuple


# Logic
from ..models import Representation
from ..constants import SEGMENT_NUMBER_PATTERNS


# Ordered heuristic tables, first match wins
HLS_SEGMENT_RE = re.compile(r'manifest_video_(\d+)_(\d+)_(\d+)\.mp4')
RESOLUTION_TOKEN_RE = re.compile(r'_(\d{3,4}p)_')
PATH_ID_SEGMENT_RE = re.compile(r'/([^/?]+)(?=/[^/]*?seg_)', re.IGNORECASE)
TIER_BEFORE_SEGMENT_RE = re.compile(r'_(\d{3,5})/seg_')
BARE_TIER_SEGMENT_RE = re.compile(r'_(\d{3,5})/seg_(\d+)\.m4s')

# DASH template identifiers, with the optional printf width ($Number%05d$)
PLACEHOLDER_RE = re.compile(r'\$(Number|RepresentationID|Bandwidth|Time)(?:%0(\d+)d)?\$')
PLACEHOLDER_PATTERNS = {
    'Number': r'(\d+)',
    'Time': r'(\d+)',
    'RepresentationID': r'([^/]+)',
    'Bandwidth': r'(\d+)',
}


class CompiledTemplate(NamedTuple):
    regex: re.Pattern
    groups: Tuple[str, ...]

    def captures(self, match: re.Match) -> Dict[str, str]:
        """First capture of each identifier."""
        values = {}
        for index, name in enumerate(self.groups, start=1):
            values.setdefault(name, match.group(index))
        return values


@lru_cache(maxsize=256)
def compile_template(template: str) -> CompiledTemplate:
    """
    Turn a SegmentTemplate media string into a matcher anchored to the end of a path.

    Literal characters are escaped and each identifier becomes a capture group.
    """
    parts = []
    groups = []
    position = 0

    for match in PLACEHOLDER_RE.finditer(template):
        parts.append(re.escape(template[position:match.start()]))
        parts.append(PLACEHOLDER_PATTERNS[match.group(1)])
        groups.append(match.group(1))
        position = match.end()

    parts.append(re.escape(template[position:]))
    return CompiledTemplate(re.compile(''.join(parts) + '$'), tuple(groups))


def expand_template(template: str, target: Representation, number: Optional[str] = None, time: Optional[str] = None) -> str:
    """
    Substitute the identifiers of a template for one representation.

    $Bandwidth$ takes the URL tier when it was read from the manifest, the
    declared bandwidth otherwise. Identifiers without a value are left as is.
    """
    if target.dash_tier and not target.tier_estimated:
        bandwidth = target.dash_tier
    else:
        bandwidth = str(target.bandwidth) if target.bandwidth else target.dash_tier

    values = {
        'Number': number,
        'Time': time,
        'RepresentationID': target.manifest_id,
        'Bandwidth': bandwidth,
    }

    def substitute(match: re.Match) -> str:
        value = values.get(match.group(1))
        if value is None:
            return match.group(0)

        value = str(value)
        width = match.group(2)
        if width and value.isdigit():
            value = value.zfill(int(width))
        return value

    return PLACEHOLDER_RE.sub(substitute, template)


def template_identifies(compiled: CompiledTemplate, match: re.Match, rep: Representation) -> bool:
    """True when the identifiers captured from a URL belong to this representation."""
    captured = compiled.captures(match)

    rep_id = captured.get('RepresentationID')
    if rep_id is not None and rep_id != rep.manifest_id:
        return False

    bandwidth = captured.get('Bandwidth')
    if bandwidth is not None and bandwidth not in (rep.dash_tier, str(rep.bandwidth)):
        return False

    return True


def extract_segment_number(path: str, fallback: Optional[str] = None) -> Optional[str]:
    """Explicit seg_N / segment_N_ tokens are more reliable than the template capture."""
    for pattern in SEGMENT_NUMBER_PATTERNS:
        match = pattern.search(path)
        if match:
            return match.group(1)
    return fallback


def split_query(url: str) -> Tuple[str, str]:
    """Split off the query string, keeping its leading '?' so it can be reattached verbatim."""
    path, sep, query = url.partition('?')
    return path, sep + query
