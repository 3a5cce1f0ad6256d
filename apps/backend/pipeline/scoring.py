"""
Scored fallback for fields whose selectors all failed.

Markup for a posting's title and description is the most volatile part of
a job board, so when every selector misses we scan a broad set of
elements and rank them by lexical and structural signals. The weights are
kept in plain tables so the policy can be tuned and tested apart from the
scan.
"""

import logging
from typing import Dict, List, Optional, Sequence

from bs4 import Tag

from .document import DocumentAccessor
from .models import FieldKind, ScoredCandidate
from .monitoring import get_metrics

logger = logging.getLogger(__name__)

# Signal -> weight for title candidates
TITLE_SCORING: Dict[str, int] = {
    'length_ideal': 10,        # 20 <= len <= 150
    'length_acceptable': 5,    # 10 <= len < 200, outside the ideal band
    'role_keyword': 20,
    'heading_h1': 15,
    'heading_h2': 10,
    'heading_h3': 5,
    'navigation_phrase': -50,
}

TITLE_LENGTH_IDEAL = (20, 150)
TITLE_LENGTH_ACCEPTABLE = (10, 200)

ROLE_KEYWORDS = [
    'engineer', 'developer', 'manager', 'senior', 'junior', 'lead', 'principal',
    'staff', 'analyst', 'designer', 'scientist', 'architect', 'director',
    'specialist', 'consultant', 'intern', 'administrator', 'coordinator',
]

# Site chrome rather than posting content
NAVIGATION_PHRASES = [
    'sign in', 'sign up', 'log in', 'join now', 'join linkedin', 'join to apply',
    'forgot password', 'user agreement', 'cookie policy',
]

DESCRIPTION_POLICY = {
    'min_length': 300,     # exclusive
    'max_length': 20000,   # exclusive
    'max_short_lines': 200,  # more short lines than this reads as page layout
    'short_line_chars': 40,
}

POOL_SELECTORS = {
    FieldKind.TITLE: 'h1, h2, h3, p',
    FieldKind.DESCRIPTION: 'div, section, article, main',
}


def contains_navigation_phrase(text: str) -> bool:
    lower = text.lower()
    return any(phrase in lower for phrase in NAVIGATION_PHRASES)


class CandidateScorer:
    """Ranks broadly scanned elements for a title or description."""

    def __init__(self, title_scoring: Optional[Dict[str, int]] = None,
                 description_policy: Optional[Dict[str, int]] = None):
        self.title_scoring = title_scoring or TITLE_SCORING
        self.description_policy = description_policy or DESCRIPTION_POLICY

    def build_pool(self, document: DocumentAccessor, kind: FieldKind) -> List[Tag]:
        """Elements to consider for kind, in document order."""
        return document.select_all(POOL_SELECTORS[kind])

    @staticmethod
    def element_text(element: Tag, kind: FieldKind) -> str:
        text = element.get_text().strip()
        if kind is FieldKind.TITLE:
            text = " ".join(text.split())
        return text

    def score_title(self, text: str, tag_name: Optional[str] = None) -> int:
        weights = self.title_scoring
        lower = text.lower()
        length = len(text)
        score = 0

        ideal_min, ideal_max = TITLE_LENGTH_IDEAL
        ok_min, ok_max = TITLE_LENGTH_ACCEPTABLE
        if ideal_min <= length <= ideal_max:
            score += weights['length_ideal']
        elif ok_min <= length < ok_max:
            score += weights['length_acceptable']

        if any(keyword in lower for keyword in ROLE_KEYWORDS):
            score += weights['role_keyword']

        if tag_name in ('h1', 'h2', 'h3'):
            score += weights[f'heading_{tag_name}']

        if contains_navigation_phrase(text):
            score += weights['navigation_phrase']

        return score

    def accepts_description(self, text: str) -> bool:
        policy = self.description_policy
        if not (policy['min_length'] < len(text) < policy['max_length']):
            return False
        if contains_navigation_phrase(text):
            return False
        short_lines = [
            line for line in text.splitlines()
            if line.strip() and len(line.strip()) < policy['short_line_chars']
        ]
        return len(short_lines) <= policy['max_short_lines']

    def score_candidates(self, pool: Sequence[Tag], kind: FieldKind) -> List[ScoredCandidate]:
        """
        Score every element in pool and drop the ones that fail the policy.

        Title candidates keep their heuristic score (only positive scores
        survive); description candidates score by length.
        """
        scored = []
        for element in pool:
            text = self.element_text(element, kind)
            if not text:
                continue
            if kind is FieldKind.TITLE:
                score = self.score_title(text, element.name)
                if score <= 0:
                    continue
            else:
                if not self.accepts_description(text):
                    continue
                score = len(text)
            scored.append(ScoredCandidate(element=element, text=text, score=score))
        return scored

    def score_and_pick_best(self, pool: Sequence[Tag], kind: FieldKind) -> str:
        """Highest score wins, ties go to the earliest element; empty string when nothing survives."""
        best: Optional[ScoredCandidate] = None
        for candidate in self.score_candidates(pool, kind):
            if best is None or candidate.score > best.score:
                best = candidate
        if best is None:
            return ""
        return best.text

    def recover(self, document: DocumentAccessor, kind: FieldKind) -> str:
        """Scan document and return the best candidate text for kind."""
        pool = self.build_pool(document, kind)
        text = self.score_and_pick_best(pool, kind)
        get_metrics().record_fallback(kind.value, bool(text))
        if text:
            logger.debug(f"[scoring] Recovered {kind.value} from {len(pool)} candidates: {text[:60]!r}")
        else:
            logger.info(f"[scoring] No {kind.value} candidate survived among {len(pool)} elements")
        return text
