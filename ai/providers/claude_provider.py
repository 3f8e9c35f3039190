"""
Anthropic Claude provider implementation.
"""
from .base import SDKProvider
from config import ANTHROPIC_API_KEY, CLAUDE_MODEL, CLAUDE_THINKING_BUDGET, LLM_MAX_TOKENS


class ClaudeProvider(SDKProvider):
    """
    Anthropic Messages API.

    With `thinking_budget` > 0 the request enables extended thinking; the API
    needs max_tokens above the budget, so the answer allowance is added on top.
    """

    def __init__(
        self,
        model: str = CLAUDE_MODEL,
        max_tokens: int = LLM_MAX_TOKENS,
        thinking_budget: int = CLAUDE_THINKING_BUDGET,
        api_key: str = ANTHROPIC_API_KEY,
    ):
        self.model = model
        self.max_tokens = max_tokens
        self.thinking_budget = thinking_budget
        super().__init__(api_key)

    @property
    def name(self) -> str:
        return "claude"

    def _build_client(self, api_key: str):
        import anthropic
        return anthropic.Anthropic(api_key=api_key)

    def _request(self, system_prompt: str, messages: list[dict], timeout: float) -> str:
        params = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "system": system_prompt,
            "messages": messages,
            "timeout": timeout,
        }
        if self.thinking_budget > 0:
            params["thinking"] = {"type": "enabled", "budget_tokens": self.thinking_budget}
            params["max_tokens"] = self.thinking_budget + self.max_tokens

        response = self.client.messages.create(**params)
        # Only text blocks feed the move parser; thinking blocks are dropped.
        return "".join(block.text for block in response.content if getattr(block, "type", "") == "text")
