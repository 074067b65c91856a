"""Prompt Enhancement Client — tests for best-effort enhancement.

Invariants tested:
    - No API key -> no SDK client, original prompt returned
    - Successful call returns the first text block, stripped
    - SDK errors, unexpected errors and empty output all return the original prompt
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import anthropic
import httpx

from blockestate.infrastructure.enhancement_client import AnthropicPromptEnhancer

PROMPT = "Create a detailed visualization of a loft. ref:1-abc-xyz"


def _enhancer(create):
    enhancer = AnthropicPromptEnhancer(api_key="sk-ant-test", model="claude-test")
    enhancer.client = SimpleNamespace(messages=SimpleNamespace(create=create))
    return enhancer


def _response(*blocks):
    return SimpleNamespace(content=list(blocks))


def _text(text):
    return SimpleNamespace(type="text", text=text)


async def test_no_key_returns_prompt_without_client():
    enhancer = AnthropicPromptEnhancer(api_key=None, model="claude-test")
    assert enhancer.client is None
    assert await enhancer.enhance(PROMPT, "Default", "Not specified", "Nostalgic") == PROMPT


async def test_returns_enhanced_text():
    create = AsyncMock(return_value=_response(_text("  A sunlit loft. ref:1-abc-xyz \n")))
    result = await _enhancer(create).enhance(PROMPT, "Watercolor", "1920s", "Serene")
    assert result == "A sunlit loft. ref:1-abc-xyz"


async def test_request_shape():
    create = AsyncMock(return_value=_response(_text("ok")))
    await _enhancer(create).enhance(PROMPT, "Watercolor", "1920s", "Serene")
    kwargs = create.call_args.kwargs
    assert kwargs["model"] == "claude-test"
    assert kwargs["messages"] == [{"role": "user", "content": PROMPT}]
    assert "Style preference: Watercolor" in kwargs["system"]
    assert "Era preference: 1920s" in kwargs["system"]
    assert "Mood preference: Serene" in kwargs["system"]


async def test_skips_non_text_blocks():
    create = AsyncMock(return_value=_response(
        SimpleNamespace(type="thinking", thinking="..."), _text("enhanced"),
    ))
    assert await _enhancer(create).enhance(PROMPT, "a", "b", "c") == "enhanced"


async def test_timeout_returns_prompt():
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    create = AsyncMock(side_effect=anthropic.APITimeoutError(request=request))
    assert await _enhancer(create).enhance(PROMPT, "a", "b", "c") == PROMPT


async def test_api_error_returns_prompt():
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    create = AsyncMock(side_effect=anthropic.APIConnectionError(request=request))
    assert await _enhancer(create).enhance(PROMPT, "a", "b", "c") == PROMPT


async def test_unexpected_error_returns_prompt():
    create = AsyncMock(side_effect=RuntimeError("boom"))
    assert await _enhancer(create).enhance(PROMPT, "a", "b", "c") == PROMPT


async def test_empty_output_returns_prompt():
    create = AsyncMock(return_value=_response(_text("   ")))
    assert await _enhancer(create).enhance(PROMPT, "a", "b", "c") == PROMPT
