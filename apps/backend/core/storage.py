"""
Job storage.

A small key-value store persisted as one JSON document:

    {"jobs": [...newest first...], "claudeApiKey": "...", "settings": {...}}

The job history is capped (oldest evicted) and large text fields are
truncated before they are written. Failures are logged and reported
through return values; callers never see storage exceptions.
"""

import os
import json
import time
import hashlib
import logging
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

from pipeline.models import utc_timestamp

logger = logging.getLogger(__name__)

MAX_STORED_JOBS = 100
MAX_TEXT_CHARS = 20000
TRUNCATED_FIELDS = ('description', 'analysis')

DEFAULT_SETTINGS = {
    'autoAnalyze': False,
    'showNotifications': True,
    'analysisDepth': 'detailed',
}


def generate_job_id(job: Dict[str, Any]) -> str:
    """job_<url hash>_<epoch millis>"""
    url_hash = hashlib.sha256((job.get('url') or '').encode()).hexdigest()[:12]
    return f"job_{url_hash}_{int(time.time() * 1000)}"


def truncate_text_fields(job: Dict[str, Any], max_chars: int) -> Dict[str, Any]:
    truncated = dict(job)
    for key in TRUNCATED_FIELDS:
        value = truncated.get(key)
        if isinstance(value, str) and len(value) > max_chars:
            truncated[key] = value[:max_chars] + "..."
    return truncated


class JobStore:
    """Capped job history plus API key and settings."""

    def __init__(self, path: str, max_jobs: int = MAX_STORED_JOBS, max_text_chars: int = MAX_TEXT_CHARS):
        self.path = Path(path)
        self.max_jobs = max_jobs
        self.max_text_chars = max_text_chars

    @classmethod
    def from_settings(cls, settings) -> 'JobStore':
        return cls(settings.storage_path, settings.max_stored_jobs, settings.max_text_chars)

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        with open(self.path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return data if isinstance(data, dict) else {}

    def _write(self, data: Dict[str, Any]):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), prefix='.storage-', suffix='.json')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except Exception:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def _update(self, key: str, value: Any):
        data = self._read()
        data[key] = value
        self._write(data)

    # Jobs

    def save_job(self, job: Dict[str, Any]) -> Optional[str]:
        """
        Insert or update a job.

        Args:
            job: JobRecord dict plus optional analysis fields; 'id' is
                generated when absent

        Returns:
            The job id, or None if the write failed
        """
        try:
            job = truncate_text_fields(job, self.max_text_chars)
            if not job.get('id'):
                job['id'] = generate_job_id(job)

            jobs = self.get_all_jobs()
            existing_index = next((i for i, j in enumerate(jobs) if j.get('id') == job['id']), None)
            if existing_index is not None:
                jobs[existing_index] = {**jobs[existing_index], **job, 'updatedAt': utc_timestamp()}
            else:
                jobs.insert(0, job)

            self._update('jobs', jobs[:self.max_jobs])
            logger.info(f"[storage] Job saved: {job['id']}")
            return job['id']
        except Exception as e:
            logger.error(f"[storage] Error saving job: {e}", exc_info=True)
            return None

    def get_all_jobs(self) -> List[Dict[str, Any]]:
        try:
            jobs = self._read().get('jobs') or []
            return list(jobs)
        except Exception as e:
            logger.error(f"[storage] Error retrieving jobs: {e}")
            return []

    def get_job(self, job_id: str) -> Optional[Dict[str, Any]]:
        return next((job for job in self.get_all_jobs() if job.get('id') == job_id), None)

    def delete_job(self, job_id: str) -> bool:
        """Delete a job; False when it does not exist or is still present afterwards."""
        try:
            jobs = self.get_all_jobs()
            if not any(job.get('id') == job_id for job in jobs):
                logger.warning(f"[storage] Job not found for deletion: {job_id}")
                return False

            self._update('jobs', [job for job in jobs if job.get('id') != job_id])

            if self.get_job(job_id) is not None:
                logger.error(f"[storage] Job deletion failed, job still exists: {job_id}")
                return False

            logger.info(f"[storage] Job deleted: {job_id}")
            return True
        except Exception as e:
            logger.error(f"[storage] Error deleting job: {e}")
            return False

    def clear_all_jobs(self) -> bool:
        try:
            self._update('jobs', [])
            logger.info("[storage] All jobs cleared")
            return True
        except Exception as e:
            logger.error(f"[storage] Error clearing jobs: {e}")
            return False

    # API key

    def save_api_key(self, api_key: str) -> bool:
        try:
            self._update('claudeApiKey', api_key)
            logger.info("[storage] API key saved")
            return True
        except Exception as e:
            logger.error(f"[storage] Error saving API key: {e}")
            return False

    def get_api_key(self) -> Optional[str]:
        try:
            return self._read().get('claudeApiKey') or None
        except Exception as e:
            logger.error(f"[storage] Error retrieving API key: {e}")
            return None

    # Settings

    def save_settings(self, settings: Dict[str, Any]) -> bool:
        """Merge settings into the stored ones."""
        try:
            merged = {**self.get_settings(), **settings}
            self._update('settings', merged)
            logger.info("[storage] Settings saved")
            return True
        except Exception as e:
            logger.error(f"[storage] Error saving settings: {e}")
            return False

    def get_settings(self) -> Dict[str, Any]:
        try:
            stored = self._read().get('settings')
        except Exception as e:
            logger.error(f"[storage] Error retrieving settings: {e}")
            return {}
        return dict(stored) if stored else dict(DEFAULT_SETTINGS)
