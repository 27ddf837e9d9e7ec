# 02.10.26

from typing import Optional, Union


# Logic
from .constants import BITRATE_RESOLUTION_MAP, KNOWN_TIERS, MAX_TO_AVERAGE_RATIO, FUZZY_TOLERANCE


Number = Union[int, float]


def estimate_resolution(bitrate_kbps: Optional[Number]) -> Optional[str]:
    """
    Map a bitrate to the coarse resolution bucket of the encoding ladder.

    Args:
        bitrate_kbps: Bitrate in kbps

    Returns:
        str: Label from '234p' (up to 200 kbps) to '2160p', or None for a zero, negative or missing bitrate
    """
    if not bitrate_kbps or bitrate_kbps < 0:
        return None

    for ceiling, label in BITRATE_RESOLUTION_MAP:
        if bitrate_kbps <= ceiling:
            return label

    return BITRATE_RESOLUTION_MAP[-1][1]


def estimate_height(bitrate_kbps: Optional[Number]) -> Optional[int]:
    """Same as estimate_resolution, as an integer height (234 ... 2160)."""
    label = estimate_resolution(bitrate_kbps)
    return int(label[:-1]) if label else None


def match_known_tier(bandwidth: Optional[Number]) -> Optional[str]:
    """
    Guess the average-bitrate URL tier of a representation from its declared maximum.

    The manifest bandwidth runs about 1.3x above the tier written in segment URLs,
    so the scaled value is snapped to the nearest known tier when it lies within
    the configured relative tolerance.

    Args:
        bandwidth: Declared bandwidth in bits/second

    Returns:
        str: Tier such as '4500', or None when nothing is close enough
    """
    if not bandwidth or bandwidth <= 0 or not KNOWN_TIERS:
        return None

    target = round(bandwidth / 1000) / MAX_TO_AVERAGE_RATIO
    closest = min(KNOWN_TIERS, key=lambda tier: abs(tier - target))

    if abs(closest - target) / target < FUZZY_TOLERANCE:
        return str(closest)
    return None


def estimate_tier(bandwidth: Optional[Number]) -> Optional[str]:
    """Known-tier match first, then the plain kbps value."""
    tier = match_known_tier(bandwidth)
    if tier is None and bandwidth and bandwidth > 0:
        tier = str(round(bandwidth / 1000))
    return tier
