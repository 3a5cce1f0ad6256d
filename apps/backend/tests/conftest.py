"""
Shared fixtures for pipeline tests.
"""

import pytest

from core.config import reset_settings
from pipeline.monitoring import get_metrics


@pytest.fixture(autouse=True)
def clean_state():
    """Metrics and settings are process-wide singletons; start every test fresh."""
    get_metrics().reset()
    reset_settings()
    yield
    get_metrics().reset()
    reset_settings()
