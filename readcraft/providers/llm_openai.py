from __future__ import annotations

import logging
import os

from readcraft.providers.base import LLMProvider

log = logging.getLogger("readcraft.llm")


class OpenAIProvider(LLMProvider):
    def __init__(self, model: str = "gpt-4o"):
        import openai
        self.client = openai.AsyncOpenAI(
            api_key=os.environ.get("OPENAI_API_KEY", ""),
        )
        self.model = model

    async def generate(
        self,
        prompt: str,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        json_mode: bool = False,
    ) -> str:
        kwargs: dict = {}
        if max_tokens:
            kwargs["max_tokens"] = max_tokens
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        log.info("── PROMPT (%s) ──\n%s", self.model, prompt)
        resp = await self.client.chat.completions.create(
            model=self.model,
            temperature=temperature,
            messages=[{"role": "user", "content": prompt}],
            **kwargs,
        )
        content = resp.choices[0].message.content or ""
        log.info("── RESPONSE (%s) ──\n%.500s", self.model, content)
        return content

    def name(self) -> str:
        return f"openai/{self.model}"
