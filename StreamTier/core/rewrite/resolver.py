# 04.10.26

import logging
from typing import Callable, Optional, Sequence, Tuple


# Logic
from ..models import QualityConfig, Representation
from ..session import ManifestSession
from ..constants import DAI_VARIANT_RE, MAX_TARGET_HEIGHT
from ..url_classifier import URLClassifier
from .patterns import (
    HLS_SEGMENT_RE, RESOLUTION_TOKEN_RE, PATH_ID_SEGMENT_RE, TIER_BEFORE_SEGMENT_RE, BARE_TIER_SEGMENT_RE, PLACEHOLDER_RE,
    compile_template, expand_template, template_identifies, extract_segment_number, split_query
)


# Variable
logger = logging.getLogger(__name__)

Strategy = Callable[[str, str, Sequence[Representation], Representation], Optional[str]]


def select_target(representations: Sequence[Representation], config: Optional[QualityConfig]) -> Optional[Representation]:
    """
    Pick the representation the configuration asks for.

    Args:
        representations: Known representations, highest first
        config: Current selection

    Returns:
        Representation: forced id match, else the first at max target height (or the best) when forcing max
    """
    if not representations or config is None:
        return None

    if config.forced_id:
        return next((rep for rep in representations if rep.id == config.forced_id), None)

    if config.force_max:
        return next((rep for rep in representations if rep.height >= MAX_TARGET_HEIGHT), representations[0])

    return None


def is_rewritable(url: Optional[str]) -> bool:
    """Audio never changes; ad traffic is left alone except DAI variant playlists, which carry the live tier."""
    if not url or not isinstance(url, str):
        return False
    if URLClassifier.is_audio_url(url):
        return False
    if URLClassifier.is_ad_url(url) and not URLClassifier.is_dai_playlist_url(url):
        return False
    return True


def _rewrite_dai_variant(path: str, query: str, representations: Sequence[Representation], target: Representation) -> Optional[str]:
    if not target.dai_id:
        return None

    match = DAI_VARIANT_RE.search(path)
    if not match or match.group(1).lower() == target.dai_id.lower():
        return None

    return path.replace(f"/variant/{match.group(1)}/", f"/variant/{target.dai_id}/", 1) + query


def _rewrite_hls_tier(path: str, query: str, representations: Sequence[Representation], target: Representation) -> Optional[str]:
    if not target.hls_tier:
        return None

    match = HLS_SEGMENT_RE.search(path)
    if not match or match.group(1) == target.hls_tier:
        return None

    _, track, segment = match.groups()
    return path.replace(match.group(0), f"manifest_video_{target.hls_tier}_{track}_{segment}.mp4", 1) + query


def _rewrite_template(path: str, query: str, representations: Sequence[Representation], target: Representation) -> Optional[str]:
    """
    Find the representation whose template produced this URL and splice in the target template.

    Several representations often share one template, so a match whose captured
    id/bandwidth identifies the representation wins over a plain pattern match.
    """
    if not target.template:
        return None

    source = None
    for rep in representations:
        if not rep.template:
            continue

        compiled = compile_template(rep.template)
        match = compiled.regex.search(path)
        if not match:
            continue

        if template_identifies(compiled, match, rep):
            source = (rep, compiled, match)
            break
        if source is None:
            source = (rep, compiled, match)

    if source is None:
        return None

    rep, compiled, match = source
    if rep.id == target.id:
        return None

    captured = compiled.captures(match)
    number = extract_segment_number(path, captured.get('Number'))
    suffix = expand_template(target.template, target, number, captured.get('Time'))

    # A placeholder left without a value would address nothing
    if PLACEHOLDER_RE.search(suffix):
        logger.debug(f"Template {target.template} cannot be filled from {path}")
        return None

    return path[:match.start()] + suffix + query


def _rewrite_resolution(path: str, query: str, representations: Sequence[Representation], target: Representation) -> Optional[str]:
    match = RESOLUTION_TOKEN_RE.search(path)
    if not match or not target.height:
        return None

    current, wanted = match.group(1), target.resolution
    if current == wanted:
        return None

    new_path = path.replace(f"_{current}_", f"_{wanted}_", 1)

    # Packaging id of the directory holding the segment
    if target.path_id and '_' in target.path_id and '$' not in target.path_id:
        segment = PATH_ID_SEGMENT_RE.search(new_path)
        if segment and segment.group(1) != target.path_id:
            return new_path.replace(f"/{segment.group(1)}/", f"/{target.path_id}/", 1) + query

    if target.dash_tier:
        tier = TIER_BEFORE_SEGMENT_RE.search(new_path)
        if tier and tier.group(1) != target.dash_tier:
            new_path = new_path.replace(f"_{tier.group(1)}/seg_", f"_{target.dash_tier}/seg_", 1)

    return new_path + query


def _rewrite_bare_tier(path: str, query: str, representations: Sequence[Representation], target: Representation) -> Optional[str]:
    if not target.dash_tier:
        return None

    match = BARE_TIER_SEGMENT_RE.search(path)
    if not match or match.group(1) == target.dash_tier:
        return None

    return path.replace(match.group(0), f"_{target.dash_tier}/seg_{match.group(2)}.m4s", 1) + query


# Ordered, first changed URL wins
STRATEGIES: Tuple[Tuple[str, Strategy], ...] = (
    ('dai_variant', _rewrite_dai_variant),
    ('hls_tier', _rewrite_hls_tier),
    ('template', _rewrite_template),
    ('resolution', _rewrite_resolution),
    ('bare_tier', _rewrite_bare_tier),
)


def rewrite_to(url: str, representations: Sequence[Representation], target: Optional[Representation]) -> str:
    """
    Rewrite a URL so it addresses an explicit target representation.

    Args:
        url: Outgoing request URL
        representations: Known representations, possibly a stale snapshot
        target: Representation to address

    Returns:
        str: Rewritten URL, or the original when no strategy applies
    """
    if target is None or not representations or not is_rewritable(url):
        return url

    try:
        path, query = split_query(url)

        for name, strategy in STRATEGIES:
            candidate = strategy(path, query, representations, target)
            if candidate and candidate != url:
                logger.debug(f"Rewrite [{name}] -> {target.id}: {url} => {candidate}")
                return candidate

    except Exception as e:
        logger.error(f"Error rewriting {url}: {e}")

    return url


def rewrite(url: str, representations: Sequence[Representation], config: Optional[QualityConfig], session: Optional[ManifestSession] = None) -> str:
    """
    Rewrite a segment or playlist URL towards the configured quality.

    A missing forced id is reported once per representation list of the
    given session, or on every call without one.

    Returns the URL unchanged when nothing is known, the URL is audio or ad
    traffic, no selection is active, or the forced id is not in the list.
    """
    if not representations or not is_rewritable(url):
        return url

    if config is None or not config.is_active:
        return url

    target = select_target(representations, config)
    if target is None:
        if config.forced_id and (session is None or session.mark_missing_target(config.forced_id)):
            logger.warning(f"Forced representation {config.forced_id} not found among {len(representations)} known")
        return url

    return rewrite_to(url, representations, target)
