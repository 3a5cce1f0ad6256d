"""
Tests for the per-platform extractors.
"""

import pytest

from pipeline.document import DocumentAccessError, DocumentSource, HTMLDocument, StaticDocumentSource
from pipeline.models import JobRecord, Platform
from pipeline.monitoring import get_metrics
from pipeline.platforms import (
    EXTRACTOR_CLASSES,
    GreenhouseExtractor,
    LeverExtractor,
    LinkedInExtractor,
)
from pipeline.readiness import RenderReadinessWaiter

GREENHOUSE_URL = "https://boards.greenhouse.io/acme/jobs/123"
GREENHOUSE_HTML = """
<html><body>
  <div id="app_body">
    <h1 class="app-title">Data Engineer</h1>
    <span class="company-name">Acme</span>
    <div class="location">Remote, US</div>
    <div id="content">We are hiring. Stack: Python, AWS, Docker.</div>
  </div>
</body></html>
"""

LEVER_URL = "https://jobs.lever.co/acme/abc-123"
LEVER_HTML = """
<html><body>
  <div class="main-header-text"><a href="/acme">Acme Robotics</a></div>
  <div class="posting-headline">
    <h2>Firmware Engineer</h2>
    <div class="posting-categories"><div class="location">Toronto</div></div>
  </div>
  <div class="section-wrapper">Embedded C++ and Linux experience.</div>
</body></html>
"""

LINKEDIN_URL = "https://www.linkedin.com/jobs/view/4242"
LONG_DESCRIPTION = "Build distributed systems with Kubernetes and Terraform. " * 10


async def no_sleep(seconds):
    return None


class DetachedSource(DocumentSource):
    """Hands out a document that is already detached."""

    def __init__(self, url):
        self.url = url

    async def snapshot(self):
        document = HTMLDocument(GREENHOUSE_HTML, url=self.url)
        document.close()
        return document


class BrokenSource(DocumentSource):

    def __init__(self, url):
        self.url = url

    async def snapshot(self):
        raise DocumentAccessError("tab closed")


class TestGreenhouseExtractor:
    """Test extraction from server-rendered Greenhouse markup."""

    @pytest.mark.asyncio
    async def test_end_to_end(self):
        record = await GreenhouseExtractor().extract(StaticDocumentSource(GREENHOUSE_HTML, GREENHOUSE_URL))

        assert isinstance(record, JobRecord)
        assert record.platform is Platform.GREENHOUSE
        assert record.job_title == "Data Engineer"
        assert record.company == "Acme"
        assert record.location == "Remote, US"
        assert record.description == "We are hiring. Stack: Python, AWS, Docker."
        assert record.tech_stack == ("Python", "AWS", "Docker")
        assert record.url == GREENHOUSE_URL
        assert record.extracted_at.endswith("Z")

    @pytest.mark.asyncio
    async def test_serialized_keys(self):
        record = await GreenhouseExtractor().extract(StaticDocumentSource(GREENHOUSE_HTML, GREENHOUSE_URL))
        data = record.to_dict()

        assert data["platform"] == "greenhouse"
        assert data["jobTitle"] == "Data Engineer"
        assert data["techStack"] == ["Python", "AWS", "Docker"]
        assert set(record.to_analyzer_payload()) == {
            "jobTitle", "company", "location", "platform", "description", "techStack"
        }

    @pytest.mark.asyncio
    async def test_repeated_extraction_is_stable(self):
        source = StaticDocumentSource(GREENHOUSE_HTML, GREENHOUSE_URL)
        extractor = GreenhouseExtractor()

        first = (await extractor.extract(source)).to_dict()
        second = (await extractor.extract(source)).to_dict()
        first.pop("extractedAt")
        second.pop("extractedAt")

        assert first == second

    @pytest.mark.asyncio
    async def test_detached_document_returns_none(self):
        record = await GreenhouseExtractor().extract(DetachedSource(GREENHOUSE_URL))

        assert record is None
        assert get_metrics().get_stats()['counters']["extraction:greenhouse:failed"] == 1

    @pytest.mark.asyncio
    async def test_unreadable_source_returns_none(self):
        assert await GreenhouseExtractor().extract(BrokenSource(GREENHOUSE_URL)) is None

    @pytest.mark.asyncio
    async def test_sparse_record_when_fields_missing(self):
        html = "<html><body><h1 class='app-title'>QA Analyst</h1></body></html>"
        record = await GreenhouseExtractor().extract(StaticDocumentSource(html, GREENHOUSE_URL))

        assert record.job_title == "QA Analyst"
        assert record.company == ""
        assert record.description == ""
        assert record.tech_stack == ()
        assert get_metrics().get_stats()['counters']["extraction:greenhouse:partial"] == 1

    @pytest.mark.asyncio
    async def test_selector_overrides_take_precedence(self):
        html = GREENHOUSE_HTML.replace(
            '<h1 class="app-title">Data Engineer</h1>',
            '<h2 class="custom-title">Lead Data Engineer</h2><h1 class="app-title">Data Engineer</h1>'
        )
        extractor = GreenhouseExtractor(selector_overrides={'title': ['h2.custom-title']})

        assert extractor.candidate_lists['title'][0] == 'h2.custom-title'
        assert 'h1.app-title' in extractor.candidate_lists['title']

        record = await extractor.extract(StaticDocumentSource(html, GREENHOUSE_URL))
        assert record.job_title == "Lead Data Engineer"

    def test_static_platforms_do_not_wait(self):
        assert GreenhouseExtractor().waiter is None
        assert LeverExtractor().waiter is None


class TestLeverExtractor:

    @pytest.mark.asyncio
    async def test_end_to_end(self):
        record = await LeverExtractor().extract(StaticDocumentSource(LEVER_HTML, LEVER_URL))

        assert record.platform is Platform.LEVER
        assert record.job_title == "Firmware Engineer"
        assert record.company == "Acme Robotics"
        assert record.location == "Toronto"
        assert "C++" in record.tech_stack
        assert "Linux" in record.tech_stack


class TestLinkedInExtractor:
    """Test the render-deferred platform."""

    def make_extractor(self, **kwargs):
        waiter = RenderReadinessWaiter(LinkedInExtractor.readiness_probes, sleep=no_sleep)
        return LinkedInExtractor(max_attempts=2, interval=0.01, waiter=waiter, **kwargs)

    def test_waits_by_default(self):
        extractor = LinkedInExtractor()
        assert extractor.needs_render_wait
        assert isinstance(extractor.waiter, RenderReadinessWaiter)

    @pytest.mark.asyncio
    async def test_top_card_markup(self):
        html = f"""
        <html><body>
          <div class="top-card-layout">
            <h1 class="top-card-layout__title">Senior Backend Engineer</h1>
            <a class="topcard__org-name-link">Initech</a>
          </div>
          <div class="show-more-less-html__markup">{LONG_DESCRIPTION}</div>
        </body></html>
        """
        record = await self.make_extractor().extract(StaticDocumentSource(html, LINKEDIN_URL))

        assert record.platform is Platform.LINKEDIN
        assert record.job_title == "Senior Backend Engineer"
        assert record.company == "Initech"
        assert "Kubernetes" in record.tech_stack
        assert "Terraform" in record.tech_stack

    @pytest.mark.asyncio
    async def test_fallback_recovers_title_and_description(self):
        html = f"""
        <html><body>
          <p>Sign in to see who you already know</p>
          <h2>Senior Backend Engineer</h2>
          <div class="posting-body">{LONG_DESCRIPTION}</div>
        </body></html>
        """
        record = await self.make_extractor().extract(StaticDocumentSource(html, LINKEDIN_URL))

        assert record.job_title == "Senior Backend Engineer"
        assert record.description == LONG_DESCRIPTION.strip()
        assert record.company == ""
        assert "Kubernetes" in record.tech_stack

        counters = get_metrics().get_stats()['counters']
        assert counters["readiness:exhausted"] == 1
        assert counters["fallback:title:success"] == 1
        assert counters["fallback:description:success"] == 1

    @pytest.mark.asyncio
    async def test_static_source_waits_one_tick(self):
        sleeps = []

        async def record_sleep(seconds):
            sleeps.append(seconds)

        waiter = RenderReadinessWaiter(LinkedInExtractor.readiness_probes, sleep=record_sleep)
        extractor = LinkedInExtractor(max_attempts=5, interval=0.5, waiter=waiter)
        html = "<html><body><h2>Senior Backend Engineer</h2></body></html>"

        record = await extractor.extract(StaticDocumentSource(html, LINKEDIN_URL))

        assert record.job_title == "Senior Backend Engineer"
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_live_source_uses_full_budget(self):
        sleeps = []

        async def record_sleep(seconds):
            sleeps.append(seconds)

        class LiveSource(DocumentSource):
            url = LINKEDIN_URL

            async def snapshot(self):
                return HTMLDocument("<html><body><p>Loading</p></body></html>", url=self.url)

        waiter = RenderReadinessWaiter(LinkedInExtractor.readiness_probes, sleep=record_sleep)
        extractor = LinkedInExtractor(max_attempts=3, interval=0.5, waiter=waiter)

        await extractor.extract(LiveSource())

        assert sleeps == [0.5, 0.5]

    @pytest.mark.asyncio
    async def test_fallback_can_be_disabled(self):
        html = "<html><body><h2>Senior Backend Engineer</h2></body></html>"
        record = await self.make_extractor(use_fallback=False).extract(StaticDocumentSource(html, LINKEDIN_URL))

        assert record.job_title == ""
        assert record.description == ""


def test_every_platform_has_an_extractor():
    assert set(EXTRACTOR_CLASSES) == set(Platform)
    for platform, extractor_cls in EXTRACTOR_CLASSES.items():
        assert extractor_cls.platform is platform
