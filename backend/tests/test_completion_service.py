"""
Tests for the OpenAI completion adapter and its context budget.
"""
import httpx
import openai
import pytest
from unittest.mock import MagicMock

from creative_rag.exceptions import InvalidConfiguration, InvalidInput, UpstreamUnavailable
from creative_rag.services.completion_service import CompletionService

REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def char_counter(text):
    """One token per character keeps budgets easy to reason about."""
    return len(text)


def make_service(max_context_tokens=100, response_tokens=20, answer="An answer.", side_effect=None):
    client = MagicMock()
    if side_effect is not None:
        client.chat.completions.create.side_effect = side_effect
    else:
        client.chat.completions.create.return_value = MagicMock(
            choices=[MagicMock(message=MagicMock(content=answer))]
        )
    service = CompletionService(
        api_key="sk-test",
        model="gpt-4o-mini",
        max_context_tokens=max_context_tokens,
        response_tokens=response_tokens,
        temperature=0.3,
        client=client,
        token_counter=char_counter,
    )
    return service, client


def sent_messages(client):
    return client.chat.completions.create.call_args.kwargs["messages"]


def test_complete_sends_system_and_user_messages():
    service, client = make_service()
    answer = service.complete("SYS", "some context", "Why?")

    assert answer == "An answer."
    messages = sent_messages(client)
    assert messages[0] == {"role": "system", "content": "SYS"}
    assert messages[1]["role"] == "user"
    assert "some context" in messages[1]["content"]
    assert messages[1]["content"].endswith("Question: Why?")
    assert client.chat.completions.create.call_args.kwargs["max_tokens"] == 20


def test_context_budget():
    service, _ = make_service(max_context_tokens=100, response_tokens=20)
    # 100 - 20 reserved - 10 system - 5 question
    assert service.context_budget("s" * 10, "q" * 5) == 65


def test_long_context_is_cut_from_the_tail():
    service, client = make_service(max_context_tokens=100, response_tokens=20)
    context = "A" * 50 + "B" * 50
    system_prompt = "S" * 10

    service.complete(system_prompt, context, "Why?")

    messages = sent_messages(client)
    assert messages[0]["content"] == system_prompt
    # budget = 100 - 20 - 10 - 4 = 66
    assert "Context:\n" + "A" * 50 + "B" * 16 + "\n\n" in messages[1]["content"]


def test_short_context_is_untouched():
    service, _ = make_service()
    assert service.truncate_context("abc", 10) == "abc"


def test_budget_never_negative():
    service, _ = make_service(max_context_tokens=30, response_tokens=20)
    assert service.context_budget("S" * 50, "Why?") == 0
    assert service.truncate_context("context", 0) == ""


def test_empty_question_is_invalid_input():
    service, client = make_service()
    with pytest.raises(InvalidInput):
        service.complete("SYS", "ctx", "  ")
    client.chat.completions.create.assert_not_called()


@pytest.mark.parametrize("error", [
    openai.APIConnectionError(request=REQUEST),
    openai.APITimeoutError(request=REQUEST),
    openai.RateLimitError("slow down", response=httpx.Response(429, request=REQUEST), body=None),
    openai.InternalServerError("boom", response=httpx.Response(500, request=REQUEST), body=None),
])
def test_transport_errors_become_upstream_unavailable(error):
    service, _ = make_service(side_effect=error)
    with pytest.raises(UpstreamUnavailable):
        service.complete("SYS", "ctx", "Why?")


@pytest.mark.parametrize("error", [
    openai.AuthenticationError("bad key", response=httpx.Response(401, request=REQUEST), body=None),
    openai.PermissionDeniedError("no access", response=httpx.Response(403, request=REQUEST), body=None),
])
def test_rejected_credentials_are_invalid_configuration(error):
    service, client = make_service(side_effect=error)
    with pytest.raises(InvalidConfiguration):
        service.complete("SYS", "ctx", "Why?")
    assert client.chat.completions.create.call_count == 1


def test_counts_tokens_with_tiktoken_by_default(monkeypatch):
    encoder = MagicMock()
    encoder.encode.side_effect = lambda text: text.split()
    monkeypatch.setattr("creative_rag.services.completion_service.tiktoken.get_encoding", lambda name: encoder)

    service = CompletionService(api_key="sk-test", client=MagicMock())
    assert service.count_tokens("three small words") == 3
    assert service.count_tokens("") == 0
