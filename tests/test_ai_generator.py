import httpx
import pytest

from vocab_lists.service.ai_generator import (
    AIGenerationError,
    ListGenerator,
    OpenRouterClient,
    parse_generated_text,
)
from vocab_lists.service.quota_service import QuotaAccount, QuotaExceeded


def test_parse_strips_numbering_and_bullets():
    text = "1. Cat\n2) Dog\n\n- Bird\n* Fish\n  • Lion  \n"
    items = parse_generated_text(text, expected_count=10)
    assert [i.display for i in items] == ["Cat", "Dog", "Bird", "Fish", "Lion"]
    assert [i.position for i in items] == [1, 2, 3, 4, 5]


def test_parse_truncates_and_drops_long_lines():
    text = "\n".join(["Cat", "x" * 81, "Dog", "Bird"])
    assert [i.display for i in parse_generated_text(text, expected_count=2)] == ["Cat", "Dog"]


def _client(handler, api_key="key"):
    return OpenRouterClient(
        api_key=api_key,
        api_url="https://ai.test/v1/chat/completions",
        model="test-model",
        http=httpx.Client(transport=httpx.MockTransport(handler)),
    )


def test_client_requires_key():
    with pytest.raises(AIGenerationError):
        _client(lambda r: httpx.Response(200), api_key="").complete("hi")


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="boom"),
        httpx.Response(200, json={"choices": []}),
        httpx.Response(200, json={"choices": [{"message": {"content": ""}}]}),
        httpx.Response(200, text="not json"),
    ],
)
def test_client_errors(response):
    with pytest.raises(AIGenerationError):
        _client(lambda r: response).complete("hi")


def test_network_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(AIGenerationError):
        _client(handler).complete("hi")


def test_unknown_category_does_not_consume(quota_repo, user_id, clock):
    quota = QuotaAccount(quota_repo, daily_limit=5, clock=clock)
    generator = ListGenerator(_client(lambda r: httpx.Response(500)), quota)
    with pytest.raises(ValueError):
        generator.generate(user_id, "plants", 10)
    assert quota.peek(user_id).used == 0


def test_exhausted_quota_skips_provider(quota_repo, user_id, clock):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={"choices": [{"message": {"content": "a\nb"}}]})

    quota = QuotaAccount(quota_repo, daily_limit=1, clock=clock)
    generator = ListGenerator(_client(handler), quota, max_retries=0)
    items, status = generator.generate(user_id, "food", 2)
    assert [i.display for i in items] == ["a", "b"]
    assert status.remaining == 0

    with pytest.raises(QuotaExceeded):
        generator.generate(user_id, "food", 2)
    assert len(calls) == 1
