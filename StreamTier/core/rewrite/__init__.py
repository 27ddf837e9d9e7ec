# 04.10.26

from .resolver import rewrite, rewrite_to, select_target, is_rewritable
from .degradation import next_best, select_fallback, current_max

__all__ = [
    "rewrite",
    "rewrite_to",
    "select_target",
    "is_rewritable",
    "next_best",
    "select_fallback",
    "current_max",
]
