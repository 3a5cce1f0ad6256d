"""
Tests for ordered selector resolution.
"""

import pytest

from pipeline.document import DocumentAccessError, HTMLDocument
from pipeline.monitoring import get_metrics
from pipeline.selector_resolver import SelectorResolver


HTML = """
<html><body>
  <h1 id="a">Engineer</h1>
  <h2 id="b">Other heading</h2>
  <div id="blank">   </div>
  <span class="loc">  Berlin, Germany  </span>
</body></html>
"""


class TestSelectorResolver:
    """Test first-non-empty-match semantics."""

    def setup_method(self):
        self.resolver = SelectorResolver(HTMLDocument(HTML, url="https://example.com"))

    def test_empty_candidate_list(self):
        assert self.resolver.resolve([], "title") == ""

    def test_skips_missing_selectors(self):
        assert self.resolver.resolve(["#missing", "#a"], "title") == "Engineer"

    def test_first_match_wins(self):
        assert self.resolver.resolve(["#b", "#a"], "title") == "Other heading"

    def test_blank_text_counts_as_miss(self):
        assert self.resolver.resolve(["#blank", "#a"], "title") == "Engineer"

    def test_text_is_trimmed(self):
        assert self.resolver.resolve([".loc"], "location") == "Berlin, Germany"

    def test_all_fail(self):
        assert self.resolver.resolve(["#nope", ".nothing"], "company") == ""

    def test_outcome_reports_index_and_attempts(self):
        outcome = self.resolver.resolve_with_outcome(["#missing", "#blank", "#a", "#b"], "title")
        assert outcome.matched
        assert outcome.index == 2
        assert outcome.selector == "#a"
        assert outcome.tried == 3

    def test_outcome_no_match(self):
        outcome = self.resolver.resolve_with_outcome(["#x", "#y"], "title")
        assert not outcome.matched
        assert outcome.text == ""
        assert outcome.tried == 2

    def test_metrics_recorded(self):
        self.resolver.resolve(["#missing", "#a"], "title")
        self.resolver.resolve(["#missing"], "company")
        counters = get_metrics().get_stats()['counters']
        assert counters["selector:title:hit"] == 1
        assert counters["selector:title:index:1"] == 1
        assert counters["selector:company:miss"] == 1

    def test_detached_document_propagates(self):
        document = HTMLDocument(HTML)
        document.close()
        with pytest.raises(DocumentAccessError):
            SelectorResolver(document).resolve(["#a"], "title")


class TestHTMLDocument:

    def test_requires_html(self):
        with pytest.raises(DocumentAccessError):
            HTMLDocument(None)

    def test_text_of_absent_is_none(self):
        document = HTMLDocument(HTML)
        assert document.text_of("#missing") is None
        assert document.text_of("#blank") is None
        assert document.exists("#a")
        assert not document.exists("#missing")
