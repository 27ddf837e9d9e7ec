# 03.10.26

import logging
from collections import Counter
from typing import Dict, List, Optional, Sequence, Tuple, Union


# External libraries
from lxml import etree
from isodate import parse_duration, ISO8601Error


# Logic
from ..models import ParseResult, Representation
from ..estimator import estimate_height, estimate_tier
from ..constants import DASH_TIER_RE, TRAILING_TIER_RE, RESOLUTION_HINT_RE
from .disambiguation import AdContentClassifier


# Variable
logger = logging.getLogger(__name__)
XML_PARSER = etree.XMLParser(no_network=True, resolve_entities=False, remove_comments=True)


def duration_seconds(value: Optional[str]) -> int:
    """
    Whole seconds of an ISO-8601 duration such as mediaPresentationDuration.

    Calendar durations (months, years) have no fixed length and give 0,
    as do empty or malformed values.
    """
    if not value or not value.strip():
        return 0

    try:
        return max(int(parse_duration(value.strip()).total_seconds()), 0)
    except (ISO8601Error, ValueError, AttributeError) as e:
        logger.debug(f"Ignoring presentation duration {value!r}: {e}")
        return 0


def format_approx_duration(seconds: int) -> str:
    """'~48m55s' or '~1h02m03s'; empty for unknown lengths."""
    if not seconds or seconds < 0:
        return ""

    minutes, secs = divmod(int(seconds), 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"~{hours}h{minutes:02d}m{secs:02d}s"
    return f"~{minutes}m{secs:02d}s"


class NamespaceManager:
    """Lets 'mpd:' paths work on manifests with or without the DASH default namespace"""

    def __init__(self, root: etree._Element):
        self.default_ns = root.nsmap.get(None) if root.nsmap else None
        self.nsmap = {'mpd': self.default_ns} if self.default_ns else {}

    def _qualify(self, path: str) -> str:
        return path if self.default_ns else path.replace('mpd:', '')

    def find(self, element: etree._Element, path: str) -> Optional[etree._Element]:
        return element.find(self._qualify(path), namespaces=self.nsmap)

    def findall(self, element: etree._Element, path: str) -> List[etree._Element]:
        return element.findall(self._qualify(path), namespaces=self.nsmap)


class TierInference:
    """Reads the average-bitrate tier and the packaging path id out of addressing fragments"""

    def __init__(self, classifier: AdContentClassifier):
        self.classifier = classifier

    @staticmethod
    def find_tier(sources: Sequence[Optional[str]]) -> Optional[str]:
        for source in sources:
            if not source:
                continue
            match = DASH_TIER_RE.search(source)
            if match:
                return match.group(1)
        return None

    def find_path_id(self, sources: Sequence[Optional[str]]) -> Optional[str]:
        """
        First path segment that looks like a packaging id.

        Qualifies when it has an underscore and either a studio marker or more
        than three underscore separated tokens. Template placeholders are skipped.
        """
        for source in sources:
            if not source:
                continue

            path = source.split('?', 1)[0]
            for segment in path.split('/'):
                if '$' in segment or '_' not in segment:
                    continue
                if self.classifier.has_studio_marker(segment) or len(segment.split('_')) > 3:
                    return segment

        return None

    @staticmethod
    def find_height_hint(sources: Sequence[Optional[str]]) -> int:
        for source in sources:
            if not source:
                continue
            match = RESOLUTION_HINT_RE.search(source)
            if match:
                return int(match.group(1)[:-1])
        return 0


class RepresentationFilter:
    """Filters and deduplicates representations"""

    @staticmethod
    def is_better(candidate: Representation, incumbent: Representation) -> bool:
        """Content beats non-content, a path id beats none, then bandwidth decides."""
        if incumbent.is_content and not candidate.is_content:
            return False
        if candidate.is_content and not incumbent.is_content:
            return True
        if candidate.path_id and not incumbent.path_id and candidate.bandwidth >= incumbent.bandwidth:
            return True
        return candidate.is_content == incumbent.is_content and candidate.bandwidth > incumbent.bandwidth

    @staticmethod
    def deduplicate_by_height(reps: List[Representation]) -> List[Representation]:
        """Keep BEST representation per height, sorted highest first"""
        by_height: Dict[int, Representation] = {}

        for rep in reps:
            existing = by_height.get(rep.height)
            if existing is None or RepresentationFilter.is_better(rep, existing):
                by_height[rep.height] = rep

        return sorted(by_height.values(), key=lambda r: r.height, reverse=True)


class DASHParser:
    def __init__(self, content: Union[str, bytes], url: Optional[str] = None, classifier: Optional[AdContentClassifier] = None):
        """
        Extract video representations from an MPD document.

        Args:
            content: Raw MPD XML
            url: Request URL, used only for diagnostics
            classifier: Ad/content classifier, defaults to the configured markers
        """
        self.content = content
        self.url = url
        self.classifier = classifier or AdContentClassifier()
        self.tiers = TierInference(self.classifier)
        self.ns = None

    def parse(self) -> ParseResult:
        """Parse the manifest. Never raises: a broken document yields an empty result."""
        try:
            root = self._load_root()
            self.ns = NamespaceManager(root)
            duration = duration_seconds(root.get('mediaPresentationDuration'))

            parsed = self.parse_representations(root)
            content_only = self.classifier.filter_content(parsed)
            representations = RepresentationFilter.deduplicate_by_height(content_only)

            logger.debug(f"DASH {self.url or ''}: {len(parsed)} video representations, {len(parsed) - len(content_only)} dropped as non-content, {len(representations)} unique heights")
            return ParseResult(representations=representations, manifest_type='dash', duration=duration)

        except Exception as e:
            logger.error(f"Error parsing DASH manifest: {e}")
            return ParseResult(manifest_type='dash')

    def _load_root(self) -> etree._Element:
        data = self.content.encode('utf-8') if isinstance(self.content, str) else self.content
        return etree.fromstring(data.strip(), parser=XML_PARSER)

    def parse_representations(self, root: etree._Element) -> List[Representation]:
        """Walk every AdaptationSet in document order; the set index makes ids unique."""
        representations = []

        for adapt_idx, adapt_set in enumerate(self.ns.findall(root, './/mpd:AdaptationSet')):
            representations.extend(self.parse_adaptation_set(adapt_set, adapt_idx))

        return representations

    def parse_adaptation_set(self, adapt_set: etree._Element, adapt_idx: int) -> List[Representation]:
        representations = []
        seen_ids = Counter()

        adapt_template = self._template_media(adapt_set)

        for rep_idx, rep_elem in enumerate(self.ns.findall(adapt_set, 'mpd:Representation')):
            if not self._is_video(adapt_set, rep_elem):
                continue

            raw_id = rep_elem.get('id')
            synth_id = f"s{adapt_idx}-{raw_id if raw_id is not None else rep_idx}"

            # Repeated ids inside one set still need distinct handles
            seen_ids[synth_id] += 1
            if seen_ids[synth_id] > 1:
                synth_id = f"{synth_id}-{seen_ids[synth_id] - 1}"

            rep = self._parse_representation(rep_elem, synth_id, raw_id, adapt_template)
            if rep is not None:
                representations.append(rep)

        return representations

    def _parse_representation(self, rep_elem: etree._Element, synth_id: str, raw_id: Optional[str], adapt_template: Optional[str]) -> Optional[Representation]:
        bandwidth = self._int_attr(rep_elem, 'bandwidth')
        width = self._int_attr(rep_elem, 'width')
        height = self._int_attr(rep_elem, 'height')

        base_url = None
        base_elem = self.ns.find(rep_elem, 'mpd:BaseURL')
        if base_elem is not None and base_elem.text and base_elem.text.strip():
            base_url = base_elem.text.strip()

        template = self._template_media(rep_elem) or adapt_template
        sources = (base_url, raw_id, template)

        dash_tier, tier_estimated = self._infer_tier(sources, bandwidth)
        path_id = self.tiers.find_path_id(sources)
        if path_id:
            trailing = TRAILING_TIER_RE.search(path_id)
            if trailing:
                dash_tier, tier_estimated = trailing.group(1), False

        if not height:
            height = self.tiers.find_height_hint(sources) or estimate_height(bandwidth / 1000) or 0

        if not height:
            logger.debug(f"Skipping representation {synth_id}: no height or bandwidth")
            return None

        return Representation(
            id=synth_id,
            raw_id=raw_id,
            height=height,
            width=width,
            bandwidth=bandwidth,
            codecs=rep_elem.get('codecs'),
            dash_tier=dash_tier,
            tier_estimated=tier_estimated,
            template=template,
            base_url=base_url,
            path_id=path_id,
            classification=self.classifier.classify(base_url, raw_id, path_id, template)
        )

    def _infer_tier(self, sources: Sequence[Optional[str]], bandwidth: int) -> Tuple[Optional[str], bool]:
        tier = self.tiers.find_tier(sources)
        if tier:
            return tier, False

        tier = estimate_tier(bandwidth)
        return tier, tier is not None

    def _template_media(self, element: etree._Element) -> Optional[str]:
        seg_template = self.ns.find(element, 'mpd:SegmentTemplate')
        if seg_template is None:
            return None
        return seg_template.get('media') or None

    def _is_video(self, adapt_set: etree._Element, rep_elem: etree._Element) -> bool:
        """Video when any declared type mentions it. Undeclared sets count as video."""
        declared = [value for value in (adapt_set.get('contentType'), adapt_set.get('mimeType')) if value]
        if not declared and rep_elem.get('mimeType'):
            declared = [rep_elem.get('mimeType')]

        if not declared:
            return True
        return any('video' in value.lower() for value in declared)

    @staticmethod
    def _int_attr(element: etree._Element, name: str) -> int:
        try:
            return int(element.get(name, 0))
        except (TypeError, ValueError):
            return 0


def parse_dash(content: Union[str, bytes], url: Optional[str] = None) -> ParseResult:
    return DASHParser(content, url).parse()
