from __future__ import annotations

import logging
import os

from readcraft.providers.base import LLMProvider

log = logging.getLogger("readcraft.llm")


class AnthropicProvider(LLMProvider):
    def __init__(self, model: str = "claude-sonnet-4-20250514"):
        import anthropic
        self.client = anthropic.AsyncAnthropic(
            api_key=os.environ.get("ANTHROPIC_API_KEY", ""),
        )
        self.model = model

    async def generate(
        self,
        prompt: str,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        json_mode: bool = False,
    ) -> str:
        messages = [{"role": "user", "content": prompt}]
        # Prefilling "{" keeps the reply a bare JSON object
        if json_mode:
            messages.append({"role": "assistant", "content": "{"})
        log.info("── PROMPT (%s) ──\n%s", self.model, prompt)
        message = await self.client.messages.create(
            model=self.model,
            max_tokens=max_tokens or 2000,
            temperature=temperature,
            messages=messages,
        )
        content = message.content[0].text
        if json_mode:
            content = "{" + content
        log.info("── RESPONSE (%s) ──\n%.500s", self.model, content)
        return content

    def name(self) -> str:
        return f"anthropic/{self.model}"
