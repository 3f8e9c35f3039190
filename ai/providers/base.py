"""
LLM provider interface.

A provider turns (system prompt, conversation) into one reply string. SDK-backed
providers build their client once, at construction, and report a missing key
or package through is_available() instead of raising.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

logger = logging.getLogger(__name__)


class BaseLLMProvider(ABC):
    """Abstract base class for LLM providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name for logging/debugging."""

    @abstractmethod
    def complete(
        self,
        system_prompt: str,
        messages: list[dict],
        timeout: float = 90.0
    ) -> str:
        """
        Send a completion request to the LLM.

        Args:
            system_prompt: The rules/instruction prompt
            messages: Conversation so far, as [{"role": ..., "content": ...}]
                with the newest user turn last
            timeout: Maximum time to wait for response

        Returns:
            The LLM's response text

        Raises:
            RuntimeError: the provider is unavailable or the API call failed
        """

    def is_available(self) -> bool:
        """Check if the provider is properly configured."""
        return True


class SDKProvider(BaseLLMProvider):
    """A provider backed by a vendor SDK client built from an API key."""

    def __init__(self, api_key: str):
        self.client: Optional[Any] = None
        if not api_key:
            logger.warning("%s: API key not set", self.name)
            return
        try:
            self.client = self._build_client(api_key)
        except ImportError:
            logger.warning("%s: SDK package not installed", self.name)
        except Exception as e:
            logger.warning("%s: failed to initialize client: %s", self.name, e)

    @abstractmethod
    def _build_client(self, api_key: str) -> Any:
        """Construct the SDK client; may raise ImportError."""

    @abstractmethod
    def _request(self, system_prompt: str, messages: list[dict], timeout: float) -> str:
        """One API round trip. Returns the reply text (possibly empty)."""

    def is_available(self) -> bool:
        return self.client is not None

    def complete(
        self,
        system_prompt: str,
        messages: list[dict],
        timeout: float = 90.0
    ) -> str:
        if self.client is None:
            raise RuntimeError(f"{self.name} client not available")
        try:
            text = self._request(system_prompt, messages, timeout)
        except Exception as e:
            raise RuntimeError(f"{self.name} API error: {e}") from e
        if not text:
            raise RuntimeError(f"{self.name} API returned no text")
        return text
