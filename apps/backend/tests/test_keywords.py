"""
Tests for tech-stack keyword matching.
"""

from pipeline.keywords import (
    TECH_KEYWORDS,
    KeywordMatcher,
    dedupe_preserving_order,
    extract_tech_stack,
    get_tech_keywords_lower,
)


class TestKeywordMatcher:
    """Test substring keyword detection."""

    def test_detects_canonical_names_in_list_order(self):
        text = "We use docker and AWS, with a python backend."
        assert extract_tech_stack(text) == ["Python", "AWS", "Docker"]

    def test_case_insensitive(self):
        assert extract_tech_stack("KUBERNETES everywhere") == ["Kubernetes"]

    def test_empty_and_none(self):
        assert extract_tech_stack("") == []
        assert extract_tech_stack(None) == []

    def test_no_duplicates_when_mentioned_twice(self):
        result = extract_tech_stack("Redis, redis and more REDIS")
        assert result == ["Redis"]

    def test_react_counted_once(self):
        assert extract_tech_stack("We use React and react-router").count("React") == 1

    def test_every_result_occurs_in_text(self):
        text = "Senior engineer: TypeScript, GraphQL gateway, Postgres via PostgreSQL driver, CI/CD on Jenkins"
        result = extract_tech_stack(text)
        assert result
        assert len(result) == len(set(result))
        for name in result:
            assert name.lower() in text.lower()

    def test_substring_false_positives_are_kept(self):
        # "Java" is contained in "JavaScript", "Go" in "good"
        result = extract_tech_stack("Good JavaScript skills")
        assert "JavaScript" in result
        assert "Java" in result
        assert "Go" in result

    def test_compound_forms(self):
        result = extract_tech_stack("Node.js/Express services")
        assert "Node.js" in result
        assert "Express" in result

    def test_custom_keyword_list(self):
        matcher = KeywordMatcher(["Pandas", "NumPy"])
        assert matcher.match("numpy and pandas") == ["Pandas", "NumPy"]
        assert matcher.match("nothing here") == []


class TestKeywordHelpers:

    def test_lowercase_cache_matches_canonical_list(self):
        lowered = get_tech_keywords_lower()
        assert len(lowered) == len(TECH_KEYWORDS)
        assert lowered[0] == TECH_KEYWORDS[0].lower()
        assert get_tech_keywords_lower() is lowered

    def test_dedupe_preserving_order(self):
        assert dedupe_preserving_order(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]
