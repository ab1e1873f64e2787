from __future__ import annotations

import asyncio
import os
import sys
from typing import Any, Callable, List, Optional, Union

import pytest

# Ensure repo root is importable for salary/ai/database/middleware
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from ai.generative_client import GenerativeClient  # noqa: E402
from salary.models import SalaryDatabaseEntry  # noqa: E402
from salary.reference_data import load_location_tables  # noqa: E402


class FakeTransport:
    """
    Stand-in for OllamaClient

    Each call pops the next scripted item: a string is returned as the raw
    model text, an exception is raised.
    """

    def __init__(self, responses: Optional[List[Union[str, BaseException]]] = None,
                 delay: float = 0.0):
        self.responses = list(responses or [])
        self.delay = delay
        self.calls: List[dict] = []
        self.closed = False

    async def generate(self, prompt, system_prompt=None, temperature=0.3,
                       max_tokens=500, json_mode=True):
        self.calls.append({
            "prompt": prompt,
            "system_prompt": system_prompt,
            "temperature": temperature,
            "max_tokens": max_tokens,
        })
        if self.delay:
            await asyncio.sleep(self.delay)
        if not self.responses:
            raise AssertionError("FakeTransport ran out of scripted responses")
        item = self.responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    async def close(self):
        self.closed = True


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def tables():
    return load_location_tables()


@pytest.fixture
def make_entry() -> Callable[..., SalaryDatabaseEntry]:
    def _make(**overrides: Any) -> SalaryDatabaseEntry:
        values = dict(
            title="Software Engineer",
            title_normalized="software engineer",
            company="",
            city="bengaluru",
            state="",
            country="IN",
            experience_level="mid",
            salary_min=1000000,
            salary_max=2000000,
            salary_median=1500000,
            currency="INR",
            source="public",
        )
        values.update(overrides)
        return SalaryDatabaseEntry(**values)

    return _make


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_client() -> Callable[..., GenerativeClient]:
    """GenerativeClient over a FakeTransport with zero backoff"""
    def _make(transport: FakeTransport, max_retries: int = 3) -> GenerativeClient:
        return GenerativeClient(
            transport,
            max_retries=max_retries,
            base_delay=0.0,
            rate_limit_base_delay=0.0,
        )

    return _make
