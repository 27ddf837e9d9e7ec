# 04.10.26

from .models import (
    Classification, Representation, QualityConfig,
    ActiveQuality, ArchivedStream, SegmentQuality, ParseResult
)
from .estimator import estimate_resolution, estimate_height, estimate_tier
from .url_classifier import URLClassifier
from .parser import parse_manifest, detect_manifest_type
from .rewrite import rewrite, rewrite_to, next_best, select_fallback
from .session import ManifestSession
from .analyzer import SegmentAnalyzer
from .engine import QualityEngine

__all__ = [
    "Classification",
    "Representation",
    "QualityConfig",
    "ActiveQuality",
    "ArchivedStream",
    "SegmentQuality",
    "ParseResult",
    "estimate_resolution",
    "estimate_height",
    "estimate_tier",
    "URLClassifier",
    "parse_manifest",
    "detect_manifest_type",
    "rewrite",
    "rewrite_to",
    "next_best",
    "select_fallback",
    "ManifestSession",
    "SegmentAnalyzer",
    "QualityEngine",
]
