"""
Per-platform extractors.

Every platform runs the same pipeline: optional render wait, ordered
selector resolution per field, scored fallback for an empty title or
description, then tech-keyword matching over the description. Platforms
only differ in their selector lists and whether they need to wait for
client-side rendering.
"""

import asyncio
import logging
from abc import ABC
from typing import Dict, List, Optional, Sequence

from .document import DocumentAccessor, DocumentSource
from .keywords import KeywordMatcher, keyword_matcher
from .models import FieldKind, JobRecord, Platform
from .monitoring import get_metrics
from .readiness import (
    DEFAULT_INTERVAL_SECONDS,
    DEFAULT_MAX_ATTEMPTS,
    ReadinessProbe,
    RenderReadinessWaiter,
)
from .scoring import CandidateScorer
from .selector_resolver import SelectorResolver

logger = logging.getLogger(__name__)

FIELDS = ('title', 'company', 'description', 'location')

# LinkedIn frequently renames classes, so each field carries several generations of markup
LINKEDIN_SELECTORS: Dict[str, List[str]] = {
    'title': [
        'h1.top-card-layout__title',
        'h1.topcard__title',
        '.jobs-unified-top-card__job-title',
        '.job-details-jobs-unified-top-card__job-title',
        'h1.t-24.t-bold',
        'h1[class*="job-title"]',
        'h1',
    ],
    'company': [
        '.topcard__org-name-link',
        '.topcard__flavor-row a',
        '.jobs-unified-top-card__company-name',
        '.job-details-jobs-unified-top-card__company-name',
        'a[data-tracking-control-name="public_jobs_topcard-org-name"]',
        '.jobs-unified-top-card__subtitle-primary-grouping a',
        'a[class*="company-name"]',
    ],
    'description': [
        '.show-more-less-html__markup',
        '.jobs-description__content',
        '.jobs-description-content__text',
        '#job-details',
        '.jobs-description',
        '.description__text',
        'article[class*="jobs-description"]',
        'div[class*="job-description"]',
    ],
    'location': [
        '.topcard__flavor-row .topcard__flavor--bullet',
        '.jobs-unified-top-card__bullet',
        '.job-details-jobs-unified-top-card__primary-description-container',
        '.jobs-unified-top-card__primary-description',
        'span[class*="job-location"]',
    ],
}

GREENHOUSE_SELECTORS: Dict[str, List[str]] = {
    'title': ['h1.app-title', '.job__title h1', 'h1.section-header'],
    'company': ['.company-name', '.job__header .company-name'],
    'description': ['#content', '.content', '.job__description'],
    'location': ['.location', '.job__location'],
}

LEVER_SELECTORS: Dict[str, List[str]] = {
    'title': ['.posting-headline h2'],
    'company': ['.main-header-text-item-1', '.main-header-text a'],
    'description': ['.content', '.section-wrapper'],
    'location': ['.location', '.posting-categories .location'],
}

LINKEDIN_READINESS_PROBES = [
    ReadinessProbe('heading', 'h1'),
    ReadinessProbe('top-card', '.top-card-layout, .jobs-unified-top-card, .job-details-jobs-unified-top-card__job-title'),
    ReadinessProbe('description', '.show-more-less-html__markup, .jobs-description, #job-details'),
]


class PlatformExtractor(ABC):
    """
    Base class for platform extractors.

    Subclasses set `platform`, `selectors` and, for pages rendered in the
    browser after load, `readiness_probes`.
    """

    platform: Platform
    selectors: Dict[str, List[str]] = {}
    readiness_probes: Sequence[ReadinessProbe] = ()

    def __init__(
        self,
        selector_overrides: Optional[Dict[str, List[str]]] = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        interval: float = DEFAULT_INTERVAL_SECONDS,
        waiter: Optional[RenderReadinessWaiter] = None,
        scorer: Optional[CandidateScorer] = None,
        matcher: Optional[KeywordMatcher] = None,
        use_fallback: bool = True,
    ):
        """
        Initialize extractor.

        Args:
            selector_overrides: Extra selectors per field, tried before the built-in ones
            max_attempts: Readiness tick budget (render-deferred platforms only)
            interval: Seconds between readiness ticks
            waiter: Custom waiter (tests inject one with a fake sleep)
            scorer: Fallback scorer for empty title/description
            matcher: Tech keyword matcher
            use_fallback: Disable to rely on selectors alone
        """
        self.candidate_lists = self._merge_selectors(selector_overrides or {})
        self.max_attempts = max_attempts
        self.interval = interval
        self.waiter = waiter
        if self.waiter is None and self.needs_render_wait:
            self.waiter = RenderReadinessWaiter(self.readiness_probes)
        self.scorer = scorer or CandidateScorer()
        self.matcher = matcher or keyword_matcher
        self.use_fallback = use_fallback
        self.logger = logging.getLogger(f"{__name__}.{self.platform.value}")

    @property
    def needs_render_wait(self) -> bool:
        return bool(self.readiness_probes)

    def _merge_selectors(self, overrides: Dict[str, List[str]]) -> Dict[str, List[str]]:
        merged = {}
        for field_name in FIELDS:
            extra = list(overrides.get(field_name, []))
            builtin = [s for s in self.selectors.get(field_name, []) if s not in extra]
            merged[field_name] = extra + builtin
        return merged

    async def extract(self, source: DocumentSource,
                      cancel_event: Optional[asyncio.Event] = None) -> Optional[JobRecord]:
        """
        Extract a JobRecord from source.

        Empty fields yield a sparse record. Any fault while reading the
        document yields None instead of a partially built record.
        """
        try:
            if self.waiter is not None:
                max_attempts = self.max_attempts if source.live else min(self.max_attempts, 1)
                await self.waiter.wait_until_ready(
                    source, max_attempts, self.interval, cancel_event
                )
            document = await source.snapshot()
            record = self.extract_from_document(document, source.url)
        except Exception as e:
            self.logger.error(f"[extractor] {self.platform.value} extraction failed for {source.url[:80]}: {e}",
                              exc_info=True)
            get_metrics().record_extraction(self.platform.value, 'failed')
            return None

        status = 'ok' if all((record.job_title, record.company, record.description)) else 'partial'
        get_metrics().record_extraction(self.platform.value, status)
        self.logger.info(f"[extractor] {status}: {record}")
        return record

    def extract_from_document(self, document: DocumentAccessor, url: str) -> JobRecord:
        """Synchronous resolve -> fallback -> match over one document snapshot."""
        resolver = SelectorResolver(document)
        values = {
            field_name: resolver.resolve(self.candidate_lists[field_name], f"{self.platform.value}.{field_name}")
            for field_name in FIELDS
        }

        if self.use_fallback:
            for kind in (FieldKind.TITLE, FieldKind.DESCRIPTION):
                if not values[kind.value]:
                    values[kind.value] = self.scorer.recover(document, kind)

        tech_stack = self.matcher.match(values['description'])

        return JobRecord(
            platform=self.platform,
            job_title=values['title'],
            company=values['company'],
            location=values['location'],
            description=values['description'],
            tech_stack=tuple(tech_stack),
            url=url,
        )

    def __repr__(self):
        return f"<{self.__class__.__name__}(platform={self.platform.value}, wait={self.needs_render_wait})>"


class LinkedInExtractor(PlatformExtractor):
    """LinkedIn renders the posting client-side, so it waits for markup first."""
    platform = Platform.LINKEDIN
    selectors = LINKEDIN_SELECTORS
    readiness_probes = LINKEDIN_READINESS_PROBES


class GreenhouseExtractor(PlatformExtractor):
    platform = Platform.GREENHOUSE
    selectors = GREENHOUSE_SELECTORS


class LeverExtractor(PlatformExtractor):
    platform = Platform.LEVER
    selectors = LEVER_SELECTORS


EXTRACTOR_CLASSES = {
    Platform.LINKEDIN: LinkedInExtractor,
    Platform.GREENHOUSE: GreenhouseExtractor,
    Platform.LEVER: LeverExtractor,
}
