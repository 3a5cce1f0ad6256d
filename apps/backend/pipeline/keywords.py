"""
Tech-stack keyword matcher.

Detection is plain case-insensitive substring containment so compound
forms ("Node.js/Express", "ReactJS") are still caught. This trades some
false positives ("Go" inside "Good", "Java" inside "JavaScript") for
recall; the analyzer downstream tolerates the noise.
"""

import logging
from typing import Iterable, List, Optional, Sequence

logger = logging.getLogger(__name__)

# Canonical display forms. Output order follows this list, not the text.
TECH_KEYWORDS = (
    # Languages
    'JavaScript', 'TypeScript', 'Python', 'Java', 'C++', 'C#', 'Ruby', 'Go', 'Rust', 'PHP', 'Swift', 'Kotlin',
    # Frontend
    'React', 'Vue', 'Angular', 'Svelte', 'Next.js', 'Nuxt', 'HTML', 'CSS', 'Tailwind', 'Bootstrap',
    # Backend
    'Node.js', 'Express', 'Django', 'Flask', 'FastAPI', 'Spring', 'Rails', 'ASP.NET',
    # Databases
    'PostgreSQL', 'MySQL', 'MongoDB', 'Redis', 'Elasticsearch', 'DynamoDB', 'Cassandra',
    # Cloud/DevOps
    'AWS', 'Azure', 'GCP', 'Docker', 'Kubernetes', 'Terraform', 'Jenkins', 'GitHub Actions',
    # Other
    'GraphQL', 'REST', 'API', 'Git', 'Linux', 'CI/CD', 'Microservices', 'Agile', 'Scrum',
)

# Lowercase twin of TECH_KEYWORDS, built on first use
_tech_keywords_lower: Optional[List[str]] = None


def get_tech_keywords_lower() -> List[str]:
    """Return the cached lowercase keyword list (idempotent to rebuild)."""
    global _tech_keywords_lower
    if _tech_keywords_lower is None:
        _tech_keywords_lower = [tech.lower() for tech in TECH_KEYWORDS]
    return _tech_keywords_lower


def dedupe_preserving_order(items: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result


class KeywordMatcher:
    """Finds canonical technology names mentioned in free text."""

    def __init__(self, keywords: Optional[Sequence[str]] = None):
        # Custom lists get their own lowercase copy; the default shares the process cache
        self.keywords = tuple(keywords) if keywords is not None else TECH_KEYWORDS
        self._lower = None if keywords is None else [k.lower() for k in self.keywords]

    def _keywords_lower(self) -> List[str]:
        if self._lower is not None:
            return self._lower
        return get_tech_keywords_lower()

    def match(self, text: Optional[str]) -> List[str]:
        """
        Return canonical names whose lowercase form occurs in text.

        Args:
            text: Arbitrary text, may be empty or None

        Returns:
            Canonical names in keyword-list order, without duplicates
        """
        if not text:
            return []

        lower_text = text.lower()
        lower_keywords = self._keywords_lower()
        found = [
            canonical
            for canonical, lowered in zip(self.keywords, lower_keywords)
            if lowered in lower_text
        ]
        return dedupe_preserving_order(found)


# Module-level default instance
keyword_matcher = KeywordMatcher()


def extract_tech_stack(text: Optional[str]) -> List[str]:
    """Convenience wrapper around the default matcher."""
    return keyword_matcher.match(text)
