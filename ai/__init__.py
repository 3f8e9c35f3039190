"""
AI package: automated Black Box players driven by an LLM provider.

Nothing in `game/` imports this package; players only use the session's
command/observation surface.
"""
from .llm_player import LLMPlayer, PlayResult, PlayerState
from .context_builder import ContextBuilder
