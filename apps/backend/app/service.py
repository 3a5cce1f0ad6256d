"""
Extract -> analyze -> persist flow.

A job is stored even when analysis fails, with a sanitized analysisError
next to the extracted fields, so the history reflects every attempt.
"""
import asyncio
import logging
from typing import Any, Dict, Optional

from core.config import Settings
from core.errors import sanitize_error_message
from core.storage import JobStore
from pipeline.dispatcher import ExtractionDispatcher
from pipeline.document import DocumentSource
from pipeline.models import JobRecord
from app.analyzer import AnalysisError, JobAnalyzer, validate_api_key

logger = logging.getLogger(__name__)


class JobAnalysisService:
    """Glue between the extraction core and its analyzer/storage collaborators."""

    def __init__(self, store: JobStore, analyzer: JobAnalyzer, dispatcher: ExtractionDispatcher,
                 fallback_api_key: Optional[str] = None):
        self.store = store
        self.analyzer = analyzer
        self.dispatcher = dispatcher
        self.fallback_api_key = fallback_api_key

    @classmethod
    def from_settings(cls, settings: Settings) -> 'JobAnalysisService':
        return cls(
            store=JobStore.from_settings(settings),
            analyzer=JobAnalyzer(model=settings.analyzer_model, timeout=settings.analyzer_timeout),
            dispatcher=ExtractionDispatcher.from_settings(settings),
            fallback_api_key=settings.anthropic_api_key,
        )

    async def extract(self, source: DocumentSource,
                      cancel_event: Optional[asyncio.Event] = None) -> Optional[JobRecord]:
        return await self.dispatcher.extract(source, cancel_event=cancel_event)

    def _resolve_api_key(self) -> str:
        api_key = self.store.get_api_key() or self.fallback_api_key
        if not api_key:
            raise AnalysisError(
                "No API key configured. Set one with 'jobhunt set-key' or ANTHROPIC_API_KEY."
            )
        if not validate_api_key(api_key):
            raise AnalysisError("Invalid API key format. Please check your Claude API key.")
        return api_key

    async def analyze(self, job: Dict[str, Any]) -> Dict[str, Any]:
        """
        Analyze and persist a job dict.

        Returns:
            {"success": True, "analysis": text, "jobId": id}

        Raises:
            AnalysisError (or whatever the analyzer raised) after the job
            has been saved with analysisError
        """
        try:
            api_key = self._resolve_api_key()
            logger.info(f"[service] Analyzing {job.get('jobTitle') or job.get('url')}")
            result = await self.analyzer.analyze_job(job, api_key=api_key)

            job_id = self.store.save_job({
                **job,
                'analysis': result['analysis'],
                'analyzedAt': result['analyzedAt'],
            })
            return {
                'success': True,
                'analysis': result['analysis'],
                'jobId': job_id,
            }
        except Exception as e:
            logger.error(f"[service] Error analyzing job: {e}")
            if self.store.save_job({**job, 'analysisError': sanitize_error_message(e)}) is None:
                logger.error("[service] Could not save job after failed analysis")
            raise

    async def extract_and_analyze(self, source: DocumentSource) -> Optional[Dict[str, Any]]:
        """Extract from source and analyze; None when nothing could be extracted."""
        record = await self.extract(source)
        if record is None:
            return None
        return await self.analyze(record.to_dict())
