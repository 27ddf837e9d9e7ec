# 05.10.26

from .middleware import QualityTransport, AsyncQualityTransport, create_client, create_async_client
from .probe import TierProbe, ProbeResult

__all__ = [
    "QualityTransport",
    "AsyncQualityTransport",
    "create_client",
    "create_async_client",
    "TierProbe",
    "ProbeResult",
]
