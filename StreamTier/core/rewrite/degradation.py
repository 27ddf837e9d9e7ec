# 04.10.26

import logging
from typing import Optional, Sequence


# Logic
from ..models import Representation
from ..constants import MAX_TARGET_HEIGHT, FALLBACK_MIN_HEIGHT


# Variable
logger = logging.getLogger(__name__)


def current_max(representations: Sequence[Representation]) -> Optional[Representation]:
    if not representations:
        return None
    return next((rep for rep in representations if rep.height >= MAX_TARGET_HEIGHT), representations[0])


def next_best(representations: Sequence[Representation]) -> Optional[Representation]:
    """
    Step one tier below the current max.

    Args:
        representations: Known representations, highest first

    Returns:
        Representation: Entry after the current max, or None at the bottom of the list
    """
    best = current_max(representations)
    if best is None:
        return None

    index = list(representations).index(best)
    if index + 1 < len(representations):
        return representations[index + 1]
    return None


def select_fallback(representations: Sequence[Representation], min_height: int = FALLBACK_MIN_HEIGHT) -> Optional[Representation]:
    """next_best, accepted only while it still holds min_height."""
    candidate = next_best(representations)
    if candidate is None:
        return None

    if candidate.height < min_height:
        logger.debug(f"Fallback {candidate.id} ({candidate.resolution}) below {min_height}p, not attempted")
        return None
    return candidate
