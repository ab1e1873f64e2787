import json

import httpx
import pytest

from ai.errors import (
    MalformedResponseError,
    RateLimitedError,
    UnavailableError,
    classify_error,
    is_rate_limit,
)
from ai.generative_client import GenerativeClient
from ai.ollama_client import OllamaClient
from ai.salary_estimator import SalaryEstimator
from salary.models import MatchType
from tests.conftest import FakeTransport


def _estimate_json(**overrides):
    data = {
        "salaryMin": 1200000,
        "salaryMax": 1850000,
        "salaryMedian": 1500000,
        "currency": "INR",
        "confidence": "medium",
    }
    data.update(overrides)
    return json.dumps(data)


def _status_error(status: int) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "http://localhost:11434/api/chat")
    response = httpx.Response(status, request=request)
    return httpx.HTTPStatusError(f"HTTP {status}", request=request, response=response)


# ========== errors ==========

def test_classify_error_maps_status_codes():
    assert isinstance(classify_error(_status_error(429)), RateLimitedError)
    assert isinstance(classify_error(_status_error(503)), RateLimitedError)

    error = classify_error(_status_error(500))
    assert isinstance(error, UnavailableError)
    assert error.status_code == 500
    assert isinstance(error.__cause__, httpx.HTTPStatusError)


def test_rate_limit_detected_from_message():
    assert is_rate_limit(RuntimeError("Resource has been exhausted (quota)"))
    assert is_rate_limit(RuntimeError("got 429 from upstream"))
    assert not is_rate_limit(RuntimeError("connection refused"))


def test_rate_limited_error_carries_429():
    assert RateLimitedError().status_code == 429


# ========== GenerativeClient ==========

@pytest.mark.asyncio
async def test_generate_json_parses_first_response(make_client):
    transport = FakeTransport(['{"ok": true}'])

    result = await make_client(transport).generate_json("prompt", temperature=0.1, max_tokens=64)

    assert result == {"ok": True}
    assert transport.calls[0]["temperature"] == 0.1
    assert transport.calls[0]["max_tokens"] == 64


@pytest.mark.asyncio
async def test_malformed_response_is_retried(make_client):
    transport = FakeTransport(["not json at all", '```json\n{"ok": 1,}\n```'])

    result = await make_client(transport).generate_json("prompt")

    assert result == {"ok": 1}
    assert len(transport.calls) == 2


@pytest.mark.asyncio
async def test_exhausted_rate_limit_raises_429(make_client):
    transport = FakeTransport([_status_error(429)] * 3)

    with pytest.raises(RateLimitedError) as exc_info:
        await make_client(transport).generate_json("prompt")

    assert exc_info.value.status_code == 429
    assert len(transport.calls) == 3


@pytest.mark.asyncio
async def test_other_failures_keep_their_cause(make_client):
    transport = FakeTransport([RuntimeError("boom")] * 2)

    with pytest.raises(UnavailableError) as exc_info:
        await make_client(transport, max_retries=2).generate_json("prompt")

    assert isinstance(exc_info.value.__cause__, RuntimeError)
    assert len(transport.calls) == 2


@pytest.mark.asyncio
async def test_parse_errors_count_as_malformed(make_client):
    transport = FakeTransport(['{"a": 1}'])

    def parse(data):
        return data["missing"]

    with pytest.raises(MalformedResponseError):
        await make_client(transport, max_retries=1).generate_json("prompt", parse=parse)


def test_backoff_is_longer_after_rate_limit():
    client = GenerativeClient(FakeTransport())

    assert client.backoff_delay(RateLimitedError(), 1) == 3.0
    assert client.backoff_delay(RateLimitedError(), 2) == 9.0
    assert client.backoff_delay(MalformedResponseError("bad"), 1) == 1.0
    assert client.backoff_delay(UnavailableError("down"), 2) == 3.0


# ========== OllamaClient ==========

@pytest.mark.asyncio
async def test_ollama_client_posts_chat_request_in_json_mode():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"message": {"role": "assistant", "content": ' {"ok": true} '}})

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client = OllamaClient(base_url="http://ollama:11434/", model="test-model", http_client=http_client)

    text = await client.generate("hello", system_prompt="sys", temperature=0.2, max_tokens=99)
    await http_client.aclose()

    assert text == '{"ok": true}'
    assert seen["url"] == "http://ollama:11434/api/chat"
    assert seen["body"]["format"] == "json"
    assert seen["body"]["model"] == "test-model"
    assert seen["body"]["options"] == {"temperature": 0.2, "num_predict": 99}
    assert seen["body"]["messages"][0] == {"role": "system", "content": "sys"}


@pytest.mark.asyncio
async def test_ollama_client_maps_429():
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(429)))
    client = OllamaClient(http_client=http_client)

    with pytest.raises(RateLimitedError):
        await client.generate("hello")
    await http_client.aclose()


# ========== SalaryEstimator ==========

@pytest.mark.asyncio
async def test_estimate_builds_ai_result(make_client):
    transport = FakeTransport([_estimate_json()])
    estimator = SalaryEstimator(make_client(transport))

    result = await estimator.estimate("Growth Hacker", "Acme", "Pune, India")

    assert result.found
    assert result.match_type == MatchType.AI_ESTIMATE
    assert result.is_ai_estimate
    assert result.confidence == "medium"
    assert result.label == "₹12.0L - ₹18.5L"
    assert "Pune, India" in transport.calls[0]["prompt"]
    assert "Growth Hacker" in transport.calls[0]["prompt"]


@pytest.mark.asyncio
async def test_estimate_reorders_swapped_values_and_defaults_confidence(make_client):
    transport = FakeTransport([_estimate_json(salaryMin=1850000, salaryMax=1200000, confidence="very sure")])

    result = await SalaryEstimator(make_client(transport)).estimate("Growth Hacker", "", "Pune")

    assert (result.salary_min, result.salary_median, result.salary_max) == (1200000, 1500000, 1850000)
    assert result.confidence == "low"


@pytest.mark.asyncio
@pytest.mark.parametrize("bad", [
    _estimate_json(currency="XYZ"),
    _estimate_json(salaryMin=-5),
    _estimate_json(salaryMedian="lots"),
    "[1, 2, 3]",
])
async def test_invalid_estimates_are_rejected(make_client, bad):
    transport = FakeTransport([bad])

    with pytest.raises(MalformedResponseError):
        await SalaryEstimator(make_client(transport, max_retries=1)).estimate("Growth Hacker", "", "Pune")


@pytest.mark.asyncio
async def test_ollama_availability_check():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/tags":
            return httpx.Response(200, json={"models": []})
        return httpx.Response(404)

    up = httpx.AsyncClient(transport=httpx.MockTransport(handler))

    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    down = httpx.AsyncClient(transport=httpx.MockTransport(refuse))

    assert await OllamaClient(http_client=up).is_available() is True
    assert await OllamaClient(http_client=down).is_available() is False
    await up.aclose()
    await down.aclose()
