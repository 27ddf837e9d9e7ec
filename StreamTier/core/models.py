# 02.10.26

import time
from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


class Classification(str, Enum):
    """Outcome of the ad/content heuristics for one representation."""
    CONTENT = 'content'
    AD = 'ad'
    UNKNOWN = 'unknown'


@dataclass
class Representation:
    """One advertised or inferred quality tier."""
    id: str
    height: int = 0
    width: int = 0
    bandwidth: int = 0
    raw_id: Optional[str] = None
    codecs: Optional[str] = None
    dash_tier: Optional[str] = None
    tier_estimated: bool = False
    hls_tier: Optional[str] = None
    dai_id: Optional[str] = None
    template: Optional[str] = None
    base_url: Optional[str] = None
    path_id: Optional[str] = None
    variant_url: Optional[str] = None
    classification: Classification = Classification.UNKNOWN

    @property
    def is_content(self) -> bool:
        return self.classification == Classification.CONTENT

    @property
    def is_hls(self) -> bool:
        return self.id.startswith('hls_')

    @property
    def resolution(self) -> str:
        return f"{self.height}p"

    @property
    def manifest_id(self) -> str:
        """Identifier as written in the manifest, used for $RepresentationID$."""
        return self.raw_id if self.raw_id is not None else self.id

    @property
    def effective_bandwidth(self) -> int:
        """Average bitrate from the URL tier when known, else the declared maximum."""
        if self.dash_tier and self.dash_tier.isdigit():
            return int(self.dash_tier) * 1000
        return self.bandwidth

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'raw_id': self.raw_id,
            'height': self.height,
            'width': self.width,
            'bandwidth': self.bandwidth,
            'resolution': self.resolution,
            'codecs': self.codecs,
            'dash_tier': self.dash_tier,
            'hls_tier': self.hls_tier,
            'dai_id': self.dai_id,
            'template': self.template,
            'base_url': self.base_url,
            'path_id': self.path_id,
            'variant_url': self.variant_url,
            'is_content': self.is_content,
            'classification': self.classification.value,
        }


@dataclass(frozen=True)
class QualityConfig:
    """User selection: force the best tier or a specific representation id."""
    force_max: bool = False
    forced_id: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return bool(self.force_max or self.forced_id)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "QualityConfig":
        """Accept both the collaborator wire shape (forceMax/forcedId) and snake_case."""
        data = data or {}
        force_max = data.get('forceMax', data.get('force_max', False))
        forced_id = data.get('forcedId', data.get('forced_id'))
        return cls(force_max=bool(force_max), forced_id=str(forced_id) if forced_id else None)

    def to_dict(self) -> Dict[str, Any]:
        return {'forceMax': self.force_max, 'forcedId': self.forced_id}


@dataclass(frozen=True)
class ActiveQuality:
    """Tier currently playing, learned from a DAI variant playlist request."""
    resolution: str
    bitrate: Optional[int]
    dai_id: str


@dataclass(frozen=True)
class ArchivedStream:
    """Archived HLS stream whose tiers cannot be rewritten."""
    current_tier: str


@dataclass(frozen=True)
class SegmentQuality:
    """Live stats inferred from one segment request."""
    resolution: Optional[str]
    is_estimated: bool
    bitrate: Optional[int]
    max_bitrate: Optional[int] = None
    timestamp: float = field(default_factory=time.time)


@dataclass
class ParseResult:
    """What a manifest parse produced. Empty representations means nothing new."""
    representations: List[Representation] = field(default_factory=list)
    active_quality: Optional[ActiveQuality] = None
    manifest_type: Optional[str] = None
    duration: int = 0
