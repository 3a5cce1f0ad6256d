"""
Command-line entry point.

    jobhunt extract https://boards.greenhouse.io/acme/jobs/123
    jobhunt extract https://www.linkedin.com/jobs/view/42 --browser
    jobhunt extract https://jobs.lever.co/acme/abc --html saved.html --json
    jobhunt analyze https://boards.greenhouse.io/acme/jobs/123
    jobhunt jobs list
    jobhunt set-key sk-ant-... --test
    jobhunt settings --set autoAnalyze=true
"""
import sys
import json
import asyncio
import argparse
import logging
from typing import Any, Dict, List, Optional

import httpx

from core.config import Settings, get_settings
from core.errors import sanitize_error_message
from core.storage import JobStore
from crawler.html_fetch import HTMLFetcher, load_html_file
from pipeline.dispatcher import detect_platform
from pipeline.document import DocumentAccessError
from pipeline.models import JobRecord, Platform
from app.analyzer import JobAnalyzer, validate_api_key
from app.service import JobAnalysisService

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='jobhunt', description='Extract and analyze job postings')
    parser.add_argument('--log-level', default=None, help='Logging level (default: JOBHUNT_LOG_LEVEL or INFO)')
    subparsers = parser.add_subparsers(dest='command', required=True)

    for name, help_text in (('extract', 'Extract a job posting'),
                            ('analyze', 'Extract, analyze and save a job posting')):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument('url', help='Job posting URL')
        sub.add_argument('--html', help='Read HTML from this file instead of fetching url')
        sub.add_argument('--browser', action='store_true',
                         help='Render the page in a headless browser (default for LinkedIn)')
        if name == 'extract':
            sub.add_argument('--json', action='store_true', help='Print the record as JSON')

    jobs = subparsers.add_parser('jobs', help='Inspect saved jobs')
    jobs_sub = jobs.add_subparsers(dest='jobs_command', required=True)
    jobs_sub.add_parser('list', help='List saved jobs')
    show = jobs_sub.add_parser('show', help='Show one saved job')
    show.add_argument('job_id')
    delete = jobs_sub.add_parser('delete', help='Delete one saved job')
    delete.add_argument('job_id')
    jobs_sub.add_parser('clear', help='Delete every saved job')

    set_key = subparsers.add_parser('set-key', help='Store the Claude API key')
    set_key.add_argument('api_key')
    set_key.add_argument('--test', action='store_true', help='Check the key against the API first')

    settings = subparsers.add_parser('settings', help='Show or update settings')
    settings.add_argument('--set', dest='assignments', action='append', default=[],
                          metavar='KEY=VALUE', help='Update a setting (repeatable)')
    return parser


def parse_setting_value(raw: str) -> Any:
    lowered = raw.lower()
    if lowered in ('true', 'false'):
        return lowered == 'true'
    try:
        return int(raw)
    except ValueError:
        return raw


def format_record(record: JobRecord) -> str:
    lines = [
        f"Platform:    {record.platform.value}",
        f"Title:       {record.job_title or '-'}",
        f"Company:     {record.company or '-'}",
        f"Location:    {record.location or '-'}",
        f"Tech stack:  {', '.join(record.tech_stack) or '-'}",
        f"URL:         {record.url}",
        f"Extracted:   {record.extracted_at}",
        "",
        record.description[:1000] + ('...' if len(record.description) > 1000 else ''),
    ]
    return "\n".join(lines)


async def _extract(args, service: JobAnalysisService, settings: Settings) -> Optional[JobRecord]:
    if args.html:
        return await service.extract(load_html_file(args.html, args.url))

    if args.browser or detect_platform(args.url) is Platform.LINKEDIN:
        # Imported lazily so static extraction works without browsers installed
        from crawler.browser_crawler import BrowserCrawler
        async with BrowserCrawler().open(args.url) as source:
            return await service.extract(source)

    source = await HTMLFetcher(timeout=settings.fetch_timeout).fetch(args.url)
    return await service.extract(source)


async def _extract_or_report(args, service: JobAnalysisService, settings: Settings) -> Optional[JobRecord]:
    """Extract, printing the reason to stderr when nothing could be extracted."""
    try:
        record = await _extract(args, service, settings)
    except (DocumentAccessError, httpx.HTTPError, OSError) as e:
        logger.error(f"[cli] Could not load {args.url}: {e}")
        print(f"Could not load page: {sanitize_error_message(e)}", file=sys.stderr)
        return None
    if record is None:
        print("Could not extract job data. Make sure the URL is a supported job posting.", file=sys.stderr)
    return record


async def cmd_extract(args, service: JobAnalysisService, settings: Settings) -> int:
    record = await _extract_or_report(args, service, settings)
    if record is None:
        return 1
    if args.json:
        print(json.dumps(record.to_dict(), indent=2, ensure_ascii=False))
    else:
        print(format_record(record))
    return 0


async def cmd_analyze(args, service: JobAnalysisService, settings: Settings) -> int:
    record = await _extract_or_report(args, service, settings)
    if record is None:
        return 1
    try:
        result = await service.analyze(record.to_dict())
    except Exception as e:
        print(f"Analysis failed: {sanitize_error_message(e)}", file=sys.stderr)
        return 1
    print(result['analysis'])
    if result['jobId'] is None:
        print("Analysis completed but the job could not be saved.", file=sys.stderr)
        return 1
    print(f"\nSaved as {result['jobId']}")
    return 0


def cmd_jobs(args, store: JobStore) -> int:
    if args.jobs_command == 'list':
        jobs = store.get_all_jobs()
        if not jobs:
            print("No saved jobs")
        for job in jobs:
            status = 'error' if job.get('analysisError') else ('analyzed' if job.get('analysis') else 'saved')
            print(f"{job.get('id')}  [{status}]  {job.get('jobTitle') or '?'} at {job.get('company') or '?'}")
        return 0
    if args.jobs_command == 'show':
        job = store.get_job(args.job_id)
        if job is None:
            print(f"Job not found: {args.job_id}", file=sys.stderr)
            return 1
        print(json.dumps(job, indent=2, ensure_ascii=False))
        return 0
    if args.jobs_command == 'delete':
        return 0 if store.delete_job(args.job_id) else 1
    return 0 if store.clear_all_jobs() else 1


async def cmd_set_key(args, store: JobStore, settings: Settings) -> int:
    if not validate_api_key(args.api_key):
        print("Invalid API key format. Claude API keys start with 'sk-ant-'.", file=sys.stderr)
        return 1
    if args.test:
        analyzer = JobAnalyzer(model=settings.analyzer_model, timeout=settings.analyzer_timeout)
        if not await analyzer.test_api_key(args.api_key):
            print("The API key was rejected.", file=sys.stderr)
            return 1
    return 0 if store.save_api_key(args.api_key) else 1


def cmd_settings(args, store: JobStore) -> int:
    if args.assignments:
        updates: Dict[str, Any] = {}
        for assignment in args.assignments:
            key, sep, value = assignment.partition('=')
            if not sep or not key:
                print(f"Expected KEY=VALUE, got {assignment!r}", file=sys.stderr)
                return 2
            updates[key.strip()] = parse_setting_value(value.strip())
        if not store.save_settings(updates):
            return 1
    print(json.dumps(store.get_settings(), indent=2))
    return 0


async def run(args, settings: Settings) -> int:
    service = JobAnalysisService.from_settings(settings)
    if args.command == 'extract':
        return await cmd_extract(args, service, settings)
    if args.command == 'analyze':
        return await cmd_analyze(args, service, settings)
    if args.command == 'jobs':
        return cmd_jobs(args, service.store)
    if args.command == 'set-key':
        return await cmd_set_key(args, service.store, settings)
    return cmd_settings(args, service.store)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()

    logging.basicConfig(
        level=(args.log_level or settings.log_level).upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    return asyncio.run(run(args, settings))


if __name__ == '__main__':
    sys.exit(main())
