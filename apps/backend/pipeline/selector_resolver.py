"""
Prioritized selector resolution.

Each logical field has an ordered list of CSS selectors, most specific
first and generic last. The first selector whose first match has
non-empty text wins; later selectors are never consulted.
"""

import logging
from typing import Optional, Sequence

from .document import DocumentAccessor
from .monitoring import get_metrics

logger = logging.getLogger(__name__)


class ResolveOutcome:
    """Which candidate produced a field value, if any."""

    def __init__(self, field_label: str, text: str = "", index: Optional[int] = None,
                 selector: Optional[str] = None, tried: int = 0):
        self.field_label = field_label
        self.text = text
        self.index = index
        self.selector = selector
        self.tried = tried

    @property
    def matched(self) -> bool:
        return self.index is not None

    def __repr__(self):
        if self.matched:
            return f"ResolveOutcome({self.field_label}: #{self.index} {self.selector!r})"
        return f"ResolveOutcome({self.field_label}: no match after {self.tried})"


class SelectorResolver:
    """Synchronous first-non-empty-match probe over a document."""

    def __init__(self, document: DocumentAccessor):
        self.document = document

    def resolve_with_outcome(self, candidates: Sequence[str], field_label: str) -> ResolveOutcome:
        """
        Try candidates strictly in order.

        Not-found is never an error. Anything the document itself raises
        (e.g. DocumentAccessError) propagates to the caller.
        """
        tried = 0
        for index, selector in enumerate(candidates):
            tried += 1
            text = self.document.text_of(selector)
            if text:
                logger.debug(f"[selectors] {field_label}: candidate #{index} '{selector}' matched")
                get_metrics().record_selector(field_label, True, index)
                return ResolveOutcome(field_label, text=text, index=index, selector=selector, tried=tried)

        logger.debug(f"[selectors] {field_label}: all {tried} candidates failed")
        get_metrics().record_selector(field_label, False)
        return ResolveOutcome(field_label, tried=tried)

    def resolve(self, candidates: Sequence[str], field_label: str) -> str:
        """Return the first non-empty match, or an empty string."""
        return self.resolve_with_outcome(candidates, field_label).text
