"""
OpenAI GPT provider implementation.
"""
from .base import SDKProvider
from config import LLM_MAX_TOKENS, OPENAI_API_KEY, OPENAI_MODEL


class OpenAIProvider(SDKProvider):
    """OpenAI chat completions; the system prompt travels as the first message."""

    def __init__(
        self,
        model: str = OPENAI_MODEL,
        max_tokens: int = LLM_MAX_TOKENS,
        api_key: str = OPENAI_API_KEY,
    ):
        self.model = model
        self.max_tokens = max_tokens
        super().__init__(api_key)

    @property
    def name(self) -> str:
        return "openai"

    def _build_client(self, api_key: str):
        from openai import OpenAI
        return OpenAI(api_key=api_key)

    def _request(self, system_prompt: str, messages: list[dict], timeout: float) -> str:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "system", "content": system_prompt}, *messages],
            max_tokens=self.max_tokens,
            timeout=timeout,
        )
        return response.choices[0].message.content or ""
