"""
Data models for the extraction pipeline.

JobRecord is the normalized value handed to the analyzer and storage
collaborators; ScoredCandidate only lives for the duration of one
fallback scan.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from bs4 import Tag


class Platform(Enum):
    """Supported job boards."""
    LINKEDIN = "linkedin"
    GREENHOUSE = "greenhouse"
    LEVER = "lever"


class FieldKind(Enum):
    """Logical fields that the fallback scorer knows how to recover."""
    TITLE = "title"
    DESCRIPTION = "description"


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a Z suffix."""
    now = datetime.now(timezone.utc)
    return now.strftime('%Y-%m-%dT%H:%M:%S.') + f"{now.microsecond // 1000:03d}Z"


@dataclass(frozen=True)
class JobRecord:
    """Normalized job posting produced by a PlatformExtractor."""

    platform: Platform
    job_title: str = ""
    company: str = ""
    location: str = ""
    description: str = ""
    tech_stack: Tuple[str, ...] = ()
    url: str = ""
    extracted_at: str = field(default_factory=utc_timestamp)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the keys the analyzer and storage expect."""
        return {
            "platform": self.platform.value,
            "jobTitle": self.job_title,
            "company": self.company,
            "location": self.location,
            "description": self.description,
            "techStack": list(self.tech_stack),
            "url": self.url,
            "extractedAt": self.extracted_at,
        }

    def to_analyzer_payload(self) -> Dict[str, Any]:
        """Subset of fields consumed by the analyzer."""
        data = self.to_dict()
        return {key: data[key] for key in
                ("jobTitle", "company", "location", "platform", "description", "techStack")}

    def __str__(self) -> str:
        return f"{self.job_title or '?'} at {self.company or '?'} [{self.platform.value}]"


@dataclass
class ScoredCandidate:
    """One element considered by the fallback scorer."""

    element: Optional[Tag]
    text: str
    score: int
