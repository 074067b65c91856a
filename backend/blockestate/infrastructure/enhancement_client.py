"""Prompt Enhancement Client — best-effort prompt rewrite via the Anthropic Messages API.

Invariants:
    - enhance() never raises for provider problems: any failure returns the original prompt
    - No credential configured -> no outbound call, original prompt returned
    - Never retried here (SDK retries disabled); retry policy belongs to the orchestrator

Design Decisions:
    - AsyncAnthropic with max_retries=0: a slow enhancement must not delay generation
    - Style/era/mood go into the system prompt; the composed prompt is the only user turn
"""

import logging

import anthropic
from anthropic import APIError, APITimeoutError

logger = logging.getLogger(__name__)

_SYSTEM_TEMPLATE = """You are an expert prompt engineer for image generation models.
Your task is to enhance the following real estate property description into a detailed,
visually rich prompt that will produce a high-quality image when fed to an image generation model.

Focus on visual details, lighting, perspective, and composition.
Include specific architectural elements, materials, and surroundings.
Keep any trailing "ref:" token exactly as given at the end of your output.

Style preference: {style}
Era preference: {era}
Mood preference: {mood}

Do not include any explanations or notes. Only output the enhanced prompt text."""


class AnthropicPromptEnhancer:
    """Rewrites composed prompts; degrades to identity on any failure."""

    def __init__(
        self,
        api_key: str | None,
        model: str,
        max_tokens: int = 1024,
        timeout_seconds: float = 30.0,
        temperature: float = 0.7,
    ):
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.client = (
            anthropic.AsyncAnthropic(
                api_key=api_key, timeout=timeout_seconds, max_retries=0,
            )
            if api_key else None
        )

    async def enhance(self, prompt: str, style: str, era: str, mood: str) -> str:
        """Return an enhanced prompt, or `prompt` unchanged if enhancement fails."""
        if self.client is None:
            logger.info("No enhancement credential configured, using composed prompt")
            return prompt
        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                system=_SYSTEM_TEMPLATE.format(style=style, era=era, mood=mood),
                messages=[{"role": "user", "content": prompt}],
            )
        except APITimeoutError:
            logger.warning("Prompt enhancement timed out, using composed prompt")
            return prompt
        except APIError as e:
            logger.warning(f"Prompt enhancement failed, using composed prompt: {e}")
            return prompt
        except Exception as e:
            logger.error(
                f"Unexpected enhancement error, using composed prompt: {e}",
                exc_info=True,
            )
            return prompt

        text = _first_text(response)
        if not text:
            logger.warning("Prompt enhancement returned no text, using composed prompt")
            return prompt
        return text

    async def aclose(self) -> None:
        if self.client is not None:
            await self.client.close()


def _first_text(response) -> str:
    """Text of the first text block, stripped; empty string if the shape is unexpected."""
    for block in getattr(response, "content", None) or []:
        if getattr(block, "type", None) == "text":
            return (getattr(block, "text", "") or "").strip()
    return ""
