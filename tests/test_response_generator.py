"""
Tests for reply generation and the AI gateway client
"""
import json

import httpx
import pytest

from academy_support.core.errors import GenerationError
from academy_support.models.case import AgentPersona, CaseMessage, MessageSender
from academy_support.services.ai_client import AIClient
from academy_support.services.personas import PERSONAS, build_system_prompt
from academy_support.services.response_generator import ResponseGenerator

from conftest import FakeTextGenerator


def _history(count):
    return [CaseMessage(sender=MessageSender.USER, content=f"message {i}") for i in range(count)]


async def test_generate_reply_passes_persona_and_history():
    """Test generator receives persona, history and the message"""
    generator = FakeTextGenerator(reply="  Follow the white rabbit.  ")
    responses = ResponseGenerator(generator)

    reply = await responses.generate_reply(AgentPersona.TRINITY, "hi", _history(2))

    assert reply.text == "Follow the white rabbit."
    assert not reply.is_fallback
    assert generator.calls[0]["persona"] == AgentPersona.TRINITY
    assert generator.calls[0]["message"] == "hi"
    assert len(generator.calls[0]["history"]) == 2


async def test_history_is_capped_to_latest():
    """Test at most twenty history messages reach the generator"""
    generator = FakeTextGenerator()
    responses = ResponseGenerator(generator, history_limit=50)

    await responses.generate_reply(AgentPersona.MORPHEUS, "hi", _history(30))

    history = generator.calls[0]["history"]
    assert len(history) == 20
    assert history[0].content == "message 10"
    assert history[-1].content == "message 29"


@pytest.mark.parametrize("persona", list(AgentPersona))
async def test_generation_failure_uses_fallback(persona):
    """Test a generation error becomes the persona's apology"""
    generator = FakeTextGenerator()
    generator.error = GenerationError("timeout")

    reply = await ResponseGenerator(generator).generate_reply(persona, "hi", [])

    assert reply.is_fallback
    assert reply.text == PERSONAS[persona].fallback_reply
    assert reply.error == "timeout"


async def test_blank_reply_uses_fallback():
    """Test an empty generated reply is never sent"""
    reply = await ResponseGenerator(FakeTextGenerator(reply="   ")).generate_reply(
        AgentPersona.MORPHEUS, "hi", []
    )
    assert reply.is_fallback
    assert reply.text == PERSONAS[AgentPersona.MORPHEUS].fallback_reply


def test_fallbacks_are_distinct_per_persona():
    """Test each persona apologises in its own voice"""
    morpheus = PERSONAS[AgentPersona.MORPHEUS]
    trinity = PERSONAS[AgentPersona.TRINITY]
    assert morpheus.fallback_reply != trinity.fallback_reply
    assert morpheus.temperature == 0.7
    assert trinity.temperature == 0.8


def test_template_rendering():
    """Test fixed templates are filled from context"""
    responses = ResponseGenerator(FakeTextGenerator())

    status = responses.template("status", case_id="abcd1234", agent="Trinity (Voice)", status="Escalated")
    assert "abcd1234" in status
    assert "Trinity (Voice)" in status
    assert "Escalated" in status
    assert responses.template("unknown_command") == "Unknown command. Use /help to see available options."


def test_system_prompt_includes_history():
    """Test the system prompt carries the recent conversation"""
    prompt = build_system_prompt(PERSONAS[AgentPersona.MORPHEUS], _history(2))
    assert prompt.startswith("You are Morpheus")
    assert "Recent conversation:\nuser: message 0\nuser: message 1" in prompt


async def test_ai_client_posts_chat_completion():
    """Test the gateway request body and reply extraction"""
    captured = {}

    def handler(request):
        captured["url"] = str(request.url)
        captured["auth"] = request.headers.get("authorization")
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"choices": [{"message": {"content": " Welcome, Neo. "}}]})

    client = AIClient(
        base_url="https://gateway.test/v1/",
        api_key="secret",
        model="test-model",
        transport=httpx.MockTransport(handler)
    )
    reply = await client.generate(AgentPersona.TRINITY, [], "hello")
    await client.close()

    assert reply == "Welcome, Neo."
    assert captured["url"] == "https://gateway.test/v1/chat/completions"
    assert captured["auth"] == "Bearer secret"
    assert captured["body"]["model"] == "test-model"
    assert captured["body"]["temperature"] == 0.8
    assert captured["body"]["messages"][0]["role"] == "system"
    assert captured["body"]["messages"][1] == {"role": "user", "content": "hello"}


@pytest.mark.parametrize("response", [
    httpx.Response(500, json={"error": "upstream"}),
    httpx.Response(200, content=b"not json"),
    httpx.Response(200, json={"choices": []}),
    httpx.Response(200, json={"choices": [{"message": {"content": ""}}]}),
])
async def test_ai_client_errors_raise_generation_error(response):
    """Test gateway failures surface as GenerationError"""
    client = AIClient(base_url="https://gateway.test/v1", api_key="", transport=httpx.MockTransport(lambda request: response))

    with pytest.raises(GenerationError):
        await client.generate(AgentPersona.MORPHEUS, [], "hello")
    await client.close()


async def test_ai_client_timeout_raises_generation_error():
    """Test a gateway timeout surfaces as GenerationError"""
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    client = AIClient(base_url="https://gateway.test/v1", api_key="", transport=httpx.MockTransport(handler))

    with pytest.raises(GenerationError):
        await client.generate(AgentPersona.MORPHEUS, [], "hello")
    await client.close()


async def test_ai_client_bad_gateway_url_raises_generation_error():
    """Test a malformed gateway URL surfaces as GenerationError"""
    client = AIClient(
        base_url="http://gateway.test:notaport/v1",
        api_key="",
        transport=httpx.MockTransport(lambda request: httpx.Response(200))
    )

    with pytest.raises(GenerationError):
        await client.generate(AgentPersona.MORPHEUS, [], "hello")
    await client.close()
