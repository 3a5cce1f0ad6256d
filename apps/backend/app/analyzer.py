"""
Job analyzer backed by the Anthropic Messages API.

Consumes the analyzer payload of a JobRecord and returns free-text
analysis. Transport errors, 429 and 5xx responses are retried with
exponential backoff; anything else fails fast with AnalysisError.
"""

import re
import logging
from typing import Any, Dict, Optional

import httpx
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from pipeline.models import utc_timestamp

logger = logging.getLogger(__name__)

ANTHROPIC_API_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"
DEFAULT_MODEL = "claude-3-5-sonnet-20241022"
MAX_TOKENS = 4096
DEFAULT_TIMEOUT = 60.0
MAX_RETRIES = 3
MAX_INPUT_LENGTH = 50000

INJECTION_PATTERNS = [
    re.compile(r'ignore\s+(previous|all|above|prior)\s+(instructions?|commands?|prompts?)', re.I),
    re.compile(r'disregard\s+(previous|all|above|prior)\s+(instructions?|commands?)', re.I),
    re.compile(r'forget\s+(previous|all|above|prior)\s+(instructions?|commands?)', re.I),
    re.compile(r'new\s+(instructions?|task|role|system)', re.I),
    re.compile(r'you\s+are\s+now', re.I),
    re.compile(r'act\s+as\s+(a|an)\s+\w+', re.I),
    re.compile(r'system\s*:', re.I),
    re.compile(r'assistant\s*:', re.I),
    re.compile(r'\[SYSTEM\]', re.I),
    re.compile(r'\[INST\]', re.I),
]


class AnalysisError(Exception):
    """Raised when a job cannot be analyzed."""
    pass


class RetryableResponseError(Exception):
    """429/5xx response; retried by tenacity."""

    def __init__(self, response: httpx.Response):
        super().__init__(f"API request failed with status {response.status_code}")
        self.response = response


def validate_api_key(api_key: Optional[str]) -> bool:
    """Anthropic keys start with sk-ant- and are longer than 20 characters."""
    if not api_key or not isinstance(api_key, str):
        return False
    return api_key.strip().startswith('sk-ant-') and len(api_key) > 20


def sanitize_user_input(text: Optional[str]) -> str:
    """Redact prompt-injection phrasing from scraped text and cap its length."""
    if not text:
        return ''

    sanitized = text
    detected = False
    for pattern in INJECTION_PATTERNS:
        if pattern.search(sanitized):
            detected = True
            sanitized = pattern.sub('[REDACTED]', sanitized)

    if detected:
        logger.warning("[analyzer] Potential prompt injection detected and sanitized")

    if len(sanitized) > MAX_INPUT_LENGTH:
        sanitized = sanitized[:MAX_INPUT_LENGTH] + '\n[Content truncated due to length]'

    return sanitized


def build_analysis_prompt(job: Dict[str, Any]) -> str:
    title = sanitize_user_input(job.get('jobTitle') or 'Not specified')
    company = sanitize_user_input(job.get('company') or 'Not specified')
    location = sanitize_user_input(job.get('location') or 'Not specified')
    description = sanitize_user_input(job.get('description'))
    tech_stack = job.get('techStack') or []
    tech_line = f"**Detected Tech Stack:** {', '.join(tech_stack)}" if tech_stack else ''

    return f"""You are a career advisor helping someone analyze a job posting. Please provide a comprehensive analysis of the following job posting:

**Job Title:** {title}
**Company:** {company}
**Location:** {location}
**Platform:** {job.get('platform') or 'Unknown'}

**Job Description:**
{description}

{tech_line}

Please provide:

1. **Summary:** A brief 2-3 sentence overview of the role
2. **Key Responsibilities:** List the main responsibilities mentioned
3. **Required Skills:** List hard and soft skills required
4. **Tech Stack:** Technologies mentioned (programming languages, frameworks, tools)
5. **Experience Level:** Estimate the experience level (entry, mid, senior, etc.)
6. **Red Flags:** Any concerning aspects (if any)
7. **Green Flags:** Positive aspects of the role
8. **Questions to Ask:** 3-5 important questions to ask during the interview
9. **Match Score:** On a scale of 1-10, how well does this align with typical career progression (provide reasoning)

Format your response in clear sections with headers."""


class JobAnalyzer:
    """Sends a normalized job to Claude and returns the analysis text."""

    def __init__(self, api_key: Optional[str] = None, model: str = DEFAULT_MODEL,
                 timeout: float = DEFAULT_TIMEOUT):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout

    def _headers(self, api_key: str) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-api-key": api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }

    @retry(
        stop=stop_after_attempt(MAX_RETRIES),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type((httpx.TransportError, RetryableResponseError)),
        reraise=True
    )
    async def _post_messages(self, api_key: str, payload: Dict[str, Any]) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(ANTHROPIC_API_URL, json=payload, headers=self._headers(api_key))
        if response.status_code == 429 or response.status_code >= 500:
            logger.warning(f"[analyzer] HTTP {response.status_code}, will retry")
            raise RetryableResponseError(response)
        return response

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            data = response.json()
            message = (data.get('error') or {}).get('message')
        except Exception:
            message = None
        return message or f"API request failed with status {response.status_code}"

    async def analyze_job(self, job: Dict[str, Any], api_key: Optional[str] = None) -> Dict[str, str]:
        """
        Analyze a job.

        Args:
            job: JobRecord dict (analyzer payload keys)
            api_key: Overrides the key given at construction

        Returns:
            {"analysis": text, "analyzedAt": ISO timestamp}

        Raises:
            AnalysisError: missing key, empty description or API failure
        """
        api_key = api_key or self.api_key
        if not api_key:
            raise AnalysisError("API key is required")
        if not job or not job.get('description'):
            raise AnalysisError("Invalid job data provided")

        payload = {
            "model": self.model,
            "max_tokens": MAX_TOKENS,
            "messages": [{"role": "user", "content": build_analysis_prompt(job)}],
        }

        try:
            response = await self._post_messages(api_key, payload)
        except httpx.TimeoutException as e:
            raise AnalysisError("Request timeout - Claude API took too long to respond") from e
        except httpx.TransportError as e:
            raise AnalysisError(f"Failed to fetch: {e}") from e
        except RetryableResponseError as e:
            raise AnalysisError(self._error_message(e.response)) from e

        if response.status_code >= 400:
            raise AnalysisError(self._error_message(response))

        data = response.json()
        content = data.get('content') or []
        analysis = content[0].get('text', '') if content else ''
        logger.info(f"[analyzer] Analysis received ({len(analysis)} chars)")

        return {
            "analysis": analysis,
            "analyzedAt": utc_timestamp(),
        }

    async def test_api_key(self, api_key: str) -> bool:
        """Make a minimal request to check that api_key is accepted."""
        payload = {
            "model": self.model,
            "max_tokens": 100,
            "messages": [{"role": "user", "content": 'Say "OK" if you can read this.'}],
        }
        try:
            response = await self._post_messages(api_key, payload)
        except Exception as e:
            logger.error(f"[analyzer] Error testing API key: {e}")
            return False
        return response.status_code < 400
