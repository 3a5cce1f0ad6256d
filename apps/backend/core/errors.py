"""
User-facing error messages.

Exceptions raised deep in the pipeline can carry file paths, stack-trace
fragments or raw HTTP bodies. Anything shown to a user or persisted next
to a job goes through sanitize_error_message first.
"""

import re
from typing import Union

MAX_ERROR_LENGTH = 200
GENERIC_ERROR = "An error occurred. Please try again."

SENSITIVE_PATTERNS = [
    re.compile(r'at\s+[\w.]+\s+\(', re.I),          # stack frames
    re.compile(r'File\s+"[^"]+",\s+line\s+\d+,?', re.I),
    re.compile(r'file://\S*', re.I),
    re.compile(r'chrome-extension://\S*', re.I),
    re.compile(r'(?:/[\w.-]+){2,}\.py', re.I),       # absolute module paths
    re.compile(r'\s+at\s+', re.I),
]

FRIENDLY_MESSAGES = [
    (('failed to fetch', 'connecterror', 'connection refused', 'name or service not known'),
     "Network error. Please check your internet connection."),
    (('unauthorized', '401'),
     "Invalid API key. Please check your Claude API key in settings."),
    (('rate limit', '429'),
     "Rate limit exceeded. Please try again in a few moments."),
]


def sanitize_error_message(error: Union[BaseException, str, None]) -> str:
    """Strip sensitive fragments from an error and map common failures to friendly text."""
    if error is None:
        message = "An unknown error occurred"
    elif isinstance(error, BaseException):
        message = str(error) or error.__class__.__name__
    else:
        message = str(error)

    sanitized = message
    for pattern in SENSITIVE_PATTERNS:
        sanitized = pattern.sub(' ', sanitized)
    sanitized = re.sub(r'\s{2,}', ' ', sanitized)

    if len(sanitized) > MAX_ERROR_LENGTH:
        sanitized = sanitized[:MAX_ERROR_LENGTH - 3] + '...'

    lowered = sanitized.lower()
    for needles, friendly in FRIENDLY_MESSAGES:
        if any(needle in lowered for needle in needles):
            return friendly

    return sanitized.strip() or GENERIC_ERROR
