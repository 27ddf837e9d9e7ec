# 03.10.26

from typing import Iterable, List, Optional, Sequence


# Logic
from ..models import Classification, Representation
from ..constants import AD_TOKENS, STUDIO_MARKERS, CONTENT_MARKERS, LANGUAGE_TAG_RE


class AdContentClassifier:
    """
    Best-effort split of inserted ad streams from program content.

    The marker lists are tuned to one provider's packaging; they come from the
    MARKERS config section so they can be retuned without code changes.
    """

    def __init__(self, ad_tokens: Optional[Sequence[str]] = None, studio_markers: Optional[Sequence[str]] = None, content_markers: Optional[Sequence[str]] = None):
        self.ad_tokens = tuple(t.lower() for t in (ad_tokens if ad_tokens is not None else AD_TOKENS))
        self.studio_markers = tuple(t.lower() for t in (studio_markers if studio_markers is not None else STUDIO_MARKERS))
        self.content_markers = tuple(t.lower() for t in (content_markers if content_markers is not None else CONTENT_MARKERS))

    def has_ad_token(self, value: Optional[str]) -> bool:
        if not value:
            return False
        lowered = value.lower()
        return any(token in lowered for token in self.ad_tokens)

    def has_studio_marker(self, value: Optional[str]) -> bool:
        if not value:
            return False
        lowered = value.lower()
        return any(marker in lowered for marker in self.studio_markers)

    def has_content_marker(self, value: Optional[str]) -> bool:
        if not value:
            return False
        lowered = value.lower()
        if any(marker in lowered for marker in self.content_markers):
            return True
        return LANGUAGE_TAG_RE.search(value) is not None

    def classify(self, base_url: Optional[str], raw_id: Optional[str], path_id: Optional[str], template: Optional[str]) -> Classification:
        """
        Classify one representation from its addressing fragments.

        Returns:
            Classification: AD on any ad-network token, CONTENT when the path id
            carries a studio/content marker, UNKNOWN otherwise
        """
        if any(self.has_ad_token(value) for value in (base_url, raw_id, path_id, template)):
            return Classification.AD

        if path_id and (self.has_studio_marker(path_id) or self.has_content_marker(path_id)):
            return Classification.CONTENT

        return Classification.UNKNOWN

    @staticmethod
    def filter_content(reps: Iterable[Representation]) -> List[Representation]:
        """Once any genuine content stream is known, drop everything else. Otherwise keep all."""
        reps = list(reps)
        if any(rep.is_content for rep in reps):
            return [rep for rep in reps if rep.is_content]
        return reps
