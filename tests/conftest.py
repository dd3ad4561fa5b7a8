"""
Shared fixtures for SonoReport tests.
"""

import pytest

from sonoreport.api.middleware import limiter
from sonoreport.core.llm_engine import LLMEngine


class StubEngine(LLMEngine):
    """Drafting model double: returns a canned answer or raises."""

    def __init__(self, response=None, error=None, available=True):
        super().__init__(api_key="")
        self.response = response if response is not None else {}
        self.error = error
        self.available = available
        self.calls = []

    def complete_json(self, system, content):
        self.calls.append((system, content))
        if self.error is not None:
            raise self.error
        return self.response

    def is_available(self):
        return self.available


@pytest.fixture
def stub_engine():
    """Factory for stub engines."""
    return StubEngine


@pytest.fixture(autouse=True)
def disable_rate_limiting():
    """Rate limits would trip on repeated test client calls."""
    limiter.enabled = False
    yield
    limiter.enabled = True
