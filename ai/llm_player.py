"""
LLM Player - drives one Black Box session with an LLM provider.

The loop is an explicit, bounded state machine:

    AWAITING_MOVE --rays exhausted--> FINAL_ANSWER
    AWAITING_MOVE / FINAL_ANSWER --guess/check accepted--> DONE
    AWAITING_MOVE --consecutive failures/iteration limit--> GAVE_UP
    FINAL_ANSWER --first failed turn/iteration limit--> GAVE_UP

Every provider call gets a fixed number of attempts with a backoff schedule;
every rejected move is fed back to the model on its next turn. The session
itself never retries anything.
"""
from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

from ai.context_builder import ContextBuilder
from ai.prompt_templates import (
    PARSE_ERROR, VALID_ACTIONS, allowed_actions, build_system_prompt, build_turn_prompt
)
from config import (
    LLM_MAX_RETRIES, LLM_PROVIDER, LLM_RETRY_BACKOFF, LLM_TIMEOUT,
    MAX_CONSECUTIVE_FAILURES, MAX_ITERATIONS,
)
from game.errors import BlackBoxError, ModeUnavailable
from game.scoring import ScoreBreakdown, calculate_score
from game.session import GameResult, Session

logger = logging.getLogger(__name__)


class PlayerState(str, Enum):
    AWAITING_MOVE = "awaiting_move"
    FINAL_ANSWER = "final_answer"
    DONE = "done"
    GAVE_UP = "gave_up"


class EndReason(str, Enum):
    ANSWERED = "answered"
    RAY_LIMIT = "ray_limit"
    CONSECUTIVE_FAILURES = "consecutive_failures"
    ITERATION_LIMIT = "iteration_limit"
    PROVIDER_UNAVAILABLE = "provider_unavailable"


@dataclass
class MoveRecord:
    """One turn of the loop, kept for reports/debugging."""

    action: str
    ok: bool
    detail: str = ""
    reasoning: str = ""
    response_time_ms: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": self.action,
            "ok": self.ok,
            "detail": self.detail,
            "reasoning": self.reasoning,
            "response_time_ms": self.response_time_ms,
        }


@dataclass
class PlayResult:
    reason: EndReason
    score: ScoreBreakdown
    result: Optional[GameResult] = None
    rays_used: int = 0
    invalid_moves: int = 0
    hypothesis_actions: int = 0
    iterations: int = 0
    api_calls: int = 0
    moves: list[MoveRecord] = field(default_factory=list)

    @property
    def answered(self) -> bool:
        return self.reason is EndReason.ANSWERED

    def to_dict(self) -> dict[str, Any]:
        return {
            "reason": self.reason.value,
            "score": self.score.to_dict(),
            "result": None if self.result is None else self.result.to_dict(),
            "rays_used": self.rays_used,
            "invalid_moves": self.invalid_moves,
            "hypothesis_actions": self.hypothesis_actions,
            "iterations": self.iterations,
            "api_calls": self.api_calls,
            "moves": [m.to_dict() for m in self.moves],
        }


def create_provider(provider_name: str):
    """Create the named LLM provider, falling back to the mock provider."""
    try:
        if provider_name == "claude":
            from ai.providers.claude_provider import ClaudeProvider
            return ClaudeProvider()
        elif provider_name == "openai":
            from ai.providers.openai_provider import OpenAIProvider
            return OpenAIProvider()
        elif provider_name == "mock":
            from ai.providers.mock_provider import MockProvider
            return MockProvider()
        else:
            logger.warning("Unknown provider: %s, using mock", provider_name)
            from ai.providers.mock_provider import MockProvider
            return MockProvider()
    except Exception as e:
        logger.warning("Failed to create provider %s: %s; falling back to mock provider", provider_name, e)
        from ai.providers.mock_provider import MockProvider
        return MockProvider()


class LLMPlayer:
    """
    Plays a session to completion (or give-up) through an LLM provider.

    Args:
        provider: A BaseLLMProvider; created from `provider_name` if omitted
        provider_name: claude, openai or mock (defaults to LLM_PROVIDER)
        max_consecutive_failures: Give up after this many failed turns in a row
        max_iterations: Hard cap on turns (fire + mark/unmark + answers)
        max_retries: Extra attempts per provider call
        backoff: Seconds to wait before each retry; the last entry repeats
        timeout: Per-call provider timeout
        sleep: Injected for tests
    """

    def __init__(
        self,
        provider=None,
        provider_name: Optional[str] = None,
        *,
        max_consecutive_failures: int = MAX_CONSECUTIVE_FAILURES,
        max_iterations: int = MAX_ITERATIONS,
        max_retries: int = LLM_MAX_RETRIES,
        backoff: tuple[float, ...] = LLM_RETRY_BACKOFF,
        timeout: float = LLM_TIMEOUT,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.provider = provider if provider is not None else create_provider(provider_name or LLM_PROVIDER)
        self.max_consecutive_failures = int(max_consecutive_failures)
        self.max_iterations = int(max_iterations)
        self.max_retries = max(0, int(max_retries))
        self.backoff = tuple(backoff) or (0.0,)
        self.timeout = float(timeout)
        self._sleep = sleep
        self.state = PlayerState.AWAITING_MOVE

    def play(self, session: Session) -> PlayResult:
        """Run the loop until the session finishes or the player gives up."""
        if not self.provider.is_available():
            logger.warning("provider %s is not available", self.provider.name)
            self.state = PlayerState.GAVE_UP
            return self._result(session, EndReason.PROVIDER_UNAVAILABLE, _Counters())

        system_prompt = build_system_prompt(
            guess_count=session.guess_count,
            max_rays=session.max_rays,
            hypothesis_mode=session.hypothesis_mode,
        )
        messages: list[dict] = []
        counters = _Counters()
        feedback = ""
        consecutive_failures = 0
        self.state = PlayerState.AWAITING_MOVE

        while True:
            if session.is_finished:
                self.state = PlayerState.DONE
                return self._result(session, EndReason.ANSWERED, counters)
            if self.state is PlayerState.FINAL_ANSWER and consecutive_failures:
                # One final answer is requested once the rays run out; a failed turn ends the round.
                self.state = PlayerState.GAVE_UP
                return self._result(session, EndReason.RAY_LIMIT, counters)
            if consecutive_failures >= self.max_consecutive_failures:
                self.state = PlayerState.GAVE_UP
                return self._result(session, EndReason.CONSECUTIVE_FAILURES, counters)
            if counters.iterations >= self.max_iterations:
                self.state = PlayerState.GAVE_UP
                return self._result(session, EndReason.ITERATION_LIMIT, counters)

            counters.iterations += 1
            if session.rays_remaining == 0:
                self.state = PlayerState.FINAL_ANSWER

            summary = ContextBuilder.build_summary(ContextBuilder.build_context(session))
            prompt = build_turn_prompt(summary, feedback=feedback, final=self.state is PlayerState.FINAL_ANSWER)
            feedback = ""

            started = time.monotonic()
            text = self._request(system_prompt, [*messages, {"role": "user", "content": prompt}], counters)
            elapsed_ms = int((time.monotonic() - started) * 1000)
            if text is None:
                consecutive_failures += 1
                counters.moves.append(MoveRecord(action="api_error", ok=False, detail="provider call failed"))
                continue

            messages.append({"role": "user", "content": prompt})
            messages.append({"role": "assistant", "content": text})

            move = self._parse_response(text)
            if move is None:
                counters.invalid_moves += 1
                consecutive_failures += 1
                feedback = PARSE_ERROR.format(actions=", ".join(allowed_actions(session.hypothesis_mode)))
                counters.moves.append(MoveRecord(action="unparsed", ok=False, detail=text[:200], response_time_ms=elapsed_ms))
                continue

            try:
                detail = self._apply(session, move)
            except BlackBoxError as e:
                counters.invalid_moves += 1
                consecutive_failures += 1
                feedback = str(e)
                logger.info("invalid move %s: %s", move["action"], e)
                counters.moves.append(
                    MoveRecord(action=move["action"], ok=False, detail=str(e), reasoning=move["reasoning"], response_time_ms=elapsed_ms)
                )
                continue

            consecutive_failures = 0
            if move["action"] in ("mark", "unmark"):
                counters.hypothesis_actions += 1
            counters.moves.append(
                MoveRecord(action=move["action"], ok=True, detail=detail, reasoning=move["reasoning"], response_time_ms=elapsed_ms)
            )

    def _request(self, system_prompt: str, messages: list[dict], counters: "_Counters") -> Optional[str]:
        text, calls = request_with_retries(
            self.provider,
            system_prompt,
            messages,
            max_retries=self.max_retries,
            backoff=self.backoff,
            timeout=self.timeout,
            sleep=self._sleep,
        )
        counters.api_calls += calls
        return text

    def _parse_response(self, response_text: str) -> Optional[dict]:
        """Parse the LLM response into a move dict."""
        move = extract_json_object(response_text)
        if move is None:
            return None

        action = move.get("action", None)
        if not isinstance(action, str):
            return None
        action = action.strip().lower()
        if action not in VALID_ACTIONS:
            return None

        reasoning = move.get("reasoning", "")
        move["action"] = action
        move["reasoning"] = reasoning if isinstance(reasoning, str) else ""
        return move

    def _apply(self, session: Session, move: dict) -> str:
        """Dispatch a parsed move to the session. Raises BlackBoxError on illegal moves."""
        action = move["action"]
        if action == "fire":
            ray = session.fire(move.get("side"), _as_int(move.get("position")))
            logger.info("fired %s", ray.describe())
            return ray.describe()
        if action == "guess":
            result = session.guess(move.get("atoms"))
            return f"guess scored {result.score.total}"
        if action == "check":
            result = session.check()
            return f"check scored {result.score.total}"
        cell = (_as_int(move.get("row")), _as_int(move.get("col")))
        if action == "mark":
            changed = session.mark(cell)
            return f"marked ({cell[0]},{cell[1]})" if changed else f"({cell[0]},{cell[1]}) already marked"
        if action == "unmark":
            changed = session.unmark(cell)
            return f"unmarked ({cell[0]},{cell[1]})" if changed else f"({cell[0]},{cell[1]}) was not marked"
        raise ModeUnavailable(f'Unknown action "{action}".')

    def _result(self, session: Session, reason: EndReason, counters: "_Counters") -> PlayResult:
        if session.result is not None:
            score = session.result.score
        else:
            # Unanswered: every atom counts as missed.
            score = calculate_score(session.rays, 0, session.atom_count)
        logger.info("player finished (%s): score %d", reason.value, score.total)
        return PlayResult(
            reason=reason,
            score=score,
            result=session.result,
            rays_used=len(session.rays),
            invalid_moves=counters.invalid_moves,
            hypothesis_actions=counters.hypothesis_actions,
            iterations=counters.iterations,
            api_calls=counters.api_calls,
            moves=counters.moves,
        )


@dataclass
class _Counters:
    iterations: int = 0
    api_calls: int = 0
    invalid_moves: int = 0
    hypothesis_actions: int = 0
    moves: list[MoveRecord] = field(default_factory=list)


def _as_int(value: Any) -> Any:
    """Models sometimes quote numbers; leave anything else for the session to reject."""
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return value


def request_with_retries(
    provider,
    system_prompt: str,
    messages: list[dict],
    *,
    max_retries: int,
    backoff: tuple[float, ...],
    timeout: float,
    sleep: Callable[[float], None],
) -> tuple[Optional[str], int]:
    """
    Call the provider with bounded retries.

    Returns (text, calls made); text is None once every attempt failed.
    """
    attempts = 1 + max(0, max_retries)
    for attempt in range(attempts):
        try:
            return provider.complete(system_prompt, messages, timeout=timeout), attempt + 1
        except RuntimeError as e:
            logger.warning("%s call failed (attempt %d/%d): %s", provider.name, attempt + 1, attempts, e)
            if attempt + 1 < attempts:
                sleep(backoff[min(attempt, len(backoff) - 1)])
    return None, attempts


def extract_json_object(response_text: str) -> Optional[dict]:
    """The JSON object between the first "{" and the last "}", or None."""
    text = response_text.strip()
    start = text.find('{')
    end = text.rfind('}') + 1
    if start < 0 or end <= start:
        return None
    try:
        value = json.loads(text[start:end])
    except json.JSONDecodeError:
        return None
    return value if isinstance(value, dict) else None
