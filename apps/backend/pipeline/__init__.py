"""
Resilient job-posting extraction pipeline.

Turns third-party job-board markup (LinkedIn, Greenhouse, Lever) into a
normalized JobRecord: platform detection, prioritized selector lists,
render-readiness polling, scored fallback heuristics and tech-keyword
matching.
"""

__version__ = "1.0.0"
