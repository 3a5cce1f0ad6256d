"""
Snapshot manager.

Saves the raw HTML a JobRecord was extracted from, next to the record
itself, so selector regressions on a redesigned board can be replayed.
"""

import json
import hashlib
import logging
from pathlib import Path
from typing import Dict, Optional
from urllib.parse import urlparse

from .models import utc_timestamp

logger = logging.getLogger(__name__)


class SnapshotManager:
    """Manages snapshots of extracted pages."""

    def __init__(self, base_path: str):
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)

        logger.info(f"Snapshot manager initialized: {self.base_path}")

    def _paths(self, url: str):
        domain = urlparse(url).netloc.replace('www.', '') or 'unknown'
        url_hash = hashlib.sha256(url.encode()).hexdigest()[:16]
        domain_dir = self.base_path / domain
        return domain_dir, domain_dir / f"{url_hash}.html", domain_dir / f"{url_hash}.meta.json"

    async def save_snapshot(self, url: str, html: str, record: Dict):
        """Save HTML snapshot and metadata. Failures are logged, never raised."""
        try:
            domain_dir, html_path, meta_path = self._paths(url)
            domain_dir.mkdir(parents=True, exist_ok=True)

            with open(html_path, 'w', encoding='utf-8') as f:
                f.write(html)

            metadata = {
                "url": url,
                "snapshot_at": utc_timestamp(),
                "html_size": len(html),
                "record": record,
            }
            with open(meta_path, 'w', encoding='utf-8') as f:
                json.dump(metadata, f, indent=2, ensure_ascii=False)

            logger.debug(f"Saved snapshot: {html_path}")
        except Exception as e:
            logger.error(f"Failed to save snapshot: {e}")

    def retrieve_snapshot(self, url: str) -> Optional[Dict]:
        """Retrieve snapshot metadata for a URL, with the HTML under 'html'."""
        try:
            _, html_path, meta_path = self._paths(url)
            if not meta_path.exists():
                return None
            with open(meta_path, 'r', encoding='utf-8') as f:
                metadata = json.load(f)
            if html_path.exists():
                metadata['html'] = html_path.read_text(encoding='utf-8')
            return metadata
        except Exception as e:
            logger.error(f"Failed to retrieve snapshot: {e}")

        return None
