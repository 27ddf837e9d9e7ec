# 04.10.26

import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Tuple


# Logic
from .models import ActiveQuality, QualityConfig, Representation, SegmentQuality


# Variable
logger = logging.getLogger(__name__)
Listener = Callable[[str, Any], None]

EVENT_MANIFEST_DATA = 'manifest_data'
EVENT_ACTIVE_QUALITY = 'active_quality'
EVENT_ARCHIVED_STREAM = 'archived_stream'
EVENT_SEGMENT_QUALITY = 'segment_quality'


class ManifestSession:
    def __init__(self, config: Optional[QualityConfig] = None):
        """
        Store of the current representation list and quality selection.

        Each value is swapped whole under the lock; readers get immutable
        snapshots, so an in-flight rewrite never sees a half-updated list.
        """
        self._lock = threading.Lock()
        self._representations: Tuple[Representation, ...] = ()
        self._config = config or QualityConfig()
        self._listeners: List[Listener] = []
        self._archived = False
        self._active_quality: Optional[ActiveQuality] = None
        self._last_quality: Optional[SegmentQuality] = None
        self._missing_targets: Set[str] = set()

    def get_representations(self) -> Tuple[Representation, ...]:
        with self._lock:
            return self._representations

    def set_representations(self, representations: Sequence[Representation]) -> None:
        snapshot = tuple(representations)
        with self._lock:
            self._representations = snapshot
            self._missing_targets.clear()
        logger.debug(f"Session now holds {len(snapshot)} representations")

    def get_config(self) -> QualityConfig:
        with self._lock:
            return self._config

    def set_config(self, config: QualityConfig) -> None:
        with self._lock:
            self._config = config
        logger.debug(f"Quality config set to {config.to_dict()}")

    @property
    def active_quality(self) -> Optional[ActiveQuality]:
        with self._lock:
            return self._active_quality

    @active_quality.setter
    def active_quality(self, value: Optional[ActiveQuality]) -> None:
        with self._lock:
            self._active_quality = value

    @property
    def last_quality(self) -> Optional[SegmentQuality]:
        with self._lock:
            return self._last_quality

    @last_quality.setter
    def last_quality(self, value: Optional[SegmentQuality]) -> None:
        with self._lock:
            self._last_quality = value

    def mark_archived(self) -> bool:
        """Flag the stream as archived. Returns True only for the first call."""
        with self._lock:
            if self._archived:
                return False
            self._archived = True
            return True

    def mark_missing_target(self, forced_id: str) -> bool:
        """Record a forced id absent from the current list. True only the first time per list."""
        with self._lock:
            if forced_id in self._missing_targets:
                return False
            self._missing_targets.add(forced_id)
            return True

    @property
    def archived(self) -> bool:
        with self._lock:
            return self._archived

    def reset(self) -> None:
        """Forget the stream (new playback). Config and listeners are kept."""
        with self._lock:
            self._representations = ()
            self._archived = False
            self._active_quality = None
            self._last_quality = None
            self._missing_targets.clear()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener called as listener(event, payload). Returns an unsubscribe callable."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def emit(self, event: str, payload: Any) -> None:
        with self._lock:
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                listener(event, payload)
            except Exception as e:
                logger.error(f"Listener failed on {event}: {e}")

    def snapshot(self) -> Dict[str, Any]:
        """Plain dict view for display and debugging."""
        with self._lock:
            return {
                'representations': [rep.to_dict() for rep in self._representations],
                'config': self._config.to_dict(),
                'archived': self._archived,
                'active_quality': self._active_quality,
                'last_quality': self._last_quality,
            }
