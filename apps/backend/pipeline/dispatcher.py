"""
Platform detection and routing.

The current address is tested against a fixed, ordered list of substring
rules; the first match picks the PlatformExtractor. Unsupported addresses
are an expected outcome and simply produce None.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Tuple

from .document import DocumentSource, HTMLDocument
from .models import JobRecord, Platform
from .monitoring import get_metrics
from .platforms import EXTRACTOR_CLASSES, PlatformExtractor
from .readiness import DEFAULT_INTERVAL_SECONDS, DEFAULT_MAX_ATTEMPTS
from .snapshot import SnapshotManager

logger = logging.getLogger(__name__)

# First match wins
PLATFORM_RULES: List[Tuple[str, Platform]] = [
    ('linkedin.com/jobs', Platform.LINKEDIN),
    ('boards.greenhouse.io', Platform.GREENHOUSE),
    ('jobs.lever.co', Platform.LEVER),
]


def detect_platform(url: Optional[str]) -> Optional[Platform]:
    """Return the platform for url, or None when unsupported."""
    if not url:
        return None
    lowered = url.lower()
    for pattern, platform in PLATFORM_RULES:
        if pattern in lowered:
            return platform
    return None


class ExtractionDispatcher:
    """Routes a page to the extractor for its platform."""

    def __init__(
        self,
        selector_overrides: Optional[Dict[str, Dict[str, List[str]]]] = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        interval: float = DEFAULT_INTERVAL_SECONDS,
        snapshot_manager: Optional[SnapshotManager] = None,
        extractors: Optional[Dict[Platform, PlatformExtractor]] = None,
    ):
        self.selector_overrides = selector_overrides or {}
        self.max_attempts = max_attempts
        self.interval = interval
        self.snapshot_manager = snapshot_manager
        self._extractors: Dict[Platform, PlatformExtractor] = dict(extractors or {})

    @classmethod
    def from_settings(cls, settings) -> 'ExtractionDispatcher':
        """Build a dispatcher from core.config.Settings."""
        snapshot_manager = None
        if settings.snapshot_path:
            snapshot_manager = SnapshotManager(settings.snapshot_path)
        return cls(
            selector_overrides=settings.selector_overrides,
            max_attempts=settings.ready_max_attempts,
            interval=settings.ready_interval_seconds,
            snapshot_manager=snapshot_manager,
        )

    def get_extractor(self, platform: Platform) -> PlatformExtractor:
        extractor = self._extractors.get(platform)
        if extractor is None:
            extractor_cls = EXTRACTOR_CLASSES[platform]
            extractor = extractor_cls(
                selector_overrides=self.selector_overrides.get(platform.value),
                max_attempts=self.max_attempts,
                interval=self.interval,
            )
            self._extractors[platform] = extractor
        return extractor

    def detect_platform(self, url: Optional[str]) -> Optional[Platform]:
        return detect_platform(url)

    async def extract(self, source: DocumentSource,
                      cancel_event: Optional[asyncio.Event] = None) -> Optional[JobRecord]:
        """
        Detect the platform of source and extract from it.

        Returns:
            JobRecord, or None when the platform is unsupported or
            extraction hit a hard fault
        """
        platform = self.detect_platform(source.url)
        if platform is None:
            logger.info(f"[dispatcher] Not a supported job platform: {source.url[:80]}")
            get_metrics().record_extraction('none', 'unsupported')
            return None

        logger.info(f"[dispatcher] Detected platform {platform.value} for {source.url[:80]}")
        record = await self.get_extractor(platform).extract(source, cancel_event=cancel_event)

        if record is not None and self.snapshot_manager:
            await self._save_snapshot(source, record)
        return record

    async def _save_snapshot(self, source: DocumentSource, record: JobRecord):
        try:
            document = await source.snapshot()
        except Exception as e:
            logger.warning(f"[dispatcher] Could not re-read page for snapshot: {e}")
            return
        html = str(document.soup) if isinstance(document, HTMLDocument) else ""
        await self.snapshot_manager.save_snapshot(source.url, html, record.to_dict())
