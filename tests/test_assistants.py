import json

import pytest

from ai.assistants import IcebreakerGenerator, ResumeMatcher, match_status
from ai.models import IntentType, ProfileData
from ai.prompts import build_connect_prompt, strip_pii
from database.cache_store import MemoryCacheStore
from salary.cache import TieredCache
from tests.conftest import FakeTransport


def _match_json(**overrides):
    data = {
        "matchPercent": 82,
        "status": "strong",
        "summary": "Solid backend fit.",
        "matchedSkills": ["python", "sql"],
        "missingSkills": ["kubernetes"],
    }
    data.update(overrides)
    return json.dumps(data)


def test_strip_pii():
    text = "Jane jane.doe+jobs@example.com, +1 415-555-0100, SSN 123-45-6789"

    cleaned = strip_pii(text)

    assert "example.com" not in cleaned
    assert "415" not in cleaned
    assert "6789" not in cleaned
    assert "[EMAIL]" in cleaned and "[PHONE]" in cleaned and "[SSN]" in cleaned


@pytest.mark.parametrize("percent, status", [(75, "strong"), (74, "moderate"), (50, "moderate"), (49, "weak")])
def test_match_status_thresholds(percent, status):
    assert match_status(percent) == status


@pytest.mark.asyncio
async def test_resume_match_strips_pii_and_caches(make_client, fake_clock):
    transport = FakeTransport([_match_json()])
    cache = TieredCache(MemoryCacheStore(), clock=fake_clock)
    matcher = ResumeMatcher(make_client(transport), cache)

    first = await matcher.match("Jane, jane@example.com, Python dev", "Backend engineer, Python")
    second = await matcher.match("Jane, jane@example.com, Python dev", "Backend engineer, Python")

    assert len(transport.calls) == 1
    assert "jane@example.com" not in transport.calls[0]["prompt"]
    assert first.match_percent == 82
    assert second.to_dict()["matchedSkills"] == ["python", "sql"]


@pytest.mark.asyncio
async def test_resume_match_clamps_model_output(make_client):
    transport = FakeTransport([_match_json(
        matchPercent=130,
        status="weak",
        matchedSkills=[f"skill{i}" for i in range(8)],
    )])

    result = await ResumeMatcher(make_client(transport)).match("resume", "jd")

    assert result.match_percent == 100
    assert result.status == "strong"
    assert len(result.matched_skills) == 5


@pytest.mark.asyncio
async def test_icebreaker_truncates_long_messages(make_client):
    long_message = "Loved your talk on distributed tracing at KubeCon " * 10
    transport = FakeTransport([json.dumps({"message": long_message, "hashtags": ["#observability", "sre"]})])
    profile = ProfileData(name="Priya", headline="SRE at Acme", current_company="Acme")

    message = await IcebreakerGenerator(make_client(transport)).generate(profile, IntentType.REFERRAL)

    assert len(message.message) <= 280
    assert message.message.endswith("...")
    assert message.hashtags == ["observability", "sre"]
    assert message.to_dict()["intent"] == "referral"
    assert "asking for a job referral" in transport.calls[0]["prompt"]


def test_connect_prompt_without_resume_context():
    profile = ProfileData.from_dict({"name": "Priya", "recentActivity": ["Posted about SLOs", "Shared a paper"]})

    prompt = build_connect_prompt(profile, IntentType.CONNECT)

    assert "Not provided" in prompt
    assert "Posted about SLOs; Shared a paper" in prompt
