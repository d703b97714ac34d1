from __future__ import annotations

from abc import ABC, abstractmethod


class LLMProvider(ABC):
    @abstractmethod
    async def generate(
        self,
        prompt: str,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        json_mode: bool = False,
    ) -> str:
        """Return the model's raw text. *json_mode* asks for a JSON object where supported."""
        ...

    @abstractmethod
    def name(self) -> str:
        ...
