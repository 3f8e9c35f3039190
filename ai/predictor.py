"""
LLM Predictor - predict mode.

The agent is shown the atoms and one entry point per request and predicts the
ray's outcome; every prediction is graded against the tracer. Provider calls
share the player's retry/backoff policy. A reply that cannot be read as a
prediction is re-asked with a short correction prompt, a bounded number of
times.

By default a detour's exit point is not asked again: the reversed ray retraces
the same path, so its outcome is already known.
"""
from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional

from ai.llm_player import create_provider, extract_json_object, request_with_retries
from ai.prompt_templates import (
    PREDICT_CORRECTION_SYSTEM, PREDICT_SYSTEM_PROMPT, build_predict_correction, build_predict_prompt
)
from config import LLM_MAX_RETRIES, LLM_PROVIDER, LLM_RETRY_BACKOFF, LLM_TIMEOUT, PREDICT_PARSE_ATTEMPTS
from game.board import EdgePoint, all_edge_points
from game.errors import InvalidInput
from game.prediction import Prediction, grade_prediction
from game.tracer import OutcomeKind, RayOutcome, as_atom_set, trace

logger = logging.getLogger(__name__)

_ABSORBED_TEXT_RE = re.compile(r"\babsorb|\bhit\b")
_EXIT_TEXT_RE = re.compile(r"\b(north|south|east|west)\D*?(\d)")


def parse_prediction(text: str) -> Optional[Prediction]:
    """
    Read a prediction from a reply.

    A JSON object wins; without one, plain-language cues are tried in order:
    absorbed/hit, reflected, then the first "<side> ... <digit>" mention.
    """
    data = extract_json_object(text)
    if data is not None:
        try:
            return Prediction.from_dict(data)
        except InvalidInput:
            return None

    lowered = text.lower()
    if _ABSORBED_TEXT_RE.search(lowered):
        return Prediction(OutcomeKind.ABSORBED)
    if "reflect" in lowered:
        return Prediction(OutcomeKind.REFLECTED)
    match = _EXIT_TEXT_RE.search(lowered)
    if match:
        try:
            return Prediction(OutcomeKind.EXITED, EdgePoint.of(match.group(1), int(match.group(2))))
        except InvalidInput:
            return None
    return None


@dataclass
class PredictRecord:
    """One graded (or failed) prediction."""

    entry: EdgePoint
    actual: RayOutcome
    prediction: Optional[Prediction] = None
    correct: bool = False
    error: str = ""  # "", "api_error" or "parse_error"
    parse_attempts: int = 0
    api_calls: int = 0
    raw_response: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "entry": self.entry.to_dict(),
            "predicted": None if self.prediction is None else self.prediction.describe(),
            "actual": self.actual.kind.value,
            "actual_exit": None if self.actual.exit is None else self.actual.exit.to_dict(),
            "correct": self.correct,
            "error": self.error,
            "parse_attempts": self.parse_attempts,
            "api_calls": self.api_calls,
        }


@dataclass
class PredictRun:
    records: list[PredictRecord] = field(default_factory=list)
    skipped: list[EdgePoint] = field(default_factory=list)
    provider_unavailable: bool = False

    @property
    def tested(self) -> int:
        return len(self.records)

    @property
    def correct(self) -> int:
        return sum(1 for r in self.records if r.correct)

    @property
    def accuracy(self) -> float:
        return self.correct / self.tested if self.records else 0.0

    @property
    def api_calls(self) -> int:
        return sum(r.api_calls for r in self.records)

    def to_dict(self) -> dict[str, Any]:
        return {
            "tested": self.tested,
            "correct": self.correct,
            "accuracy": round(self.accuracy, 4),
            "skipped": [str(e) for e in self.skipped],
            "api_calls": self.api_calls,
            "provider_unavailable": self.provider_unavailable,
            "records": [r.to_dict() for r in self.records],
        }


class LLMPredictor:
    """
    Asks an LLM provider to predict ray outcomes for a known atom layout.

    Args:
        provider: A BaseLLMProvider; created from `provider_name` if omitted
        provider_name: claude, openai or mock (defaults to LLM_PROVIDER)
        max_parse_attempts: Replies requested per ray before giving up on parsing
        show_board: Include a text board of the atoms in each prompt
        skip_reverse: Do not ask again for an exit point already covered by a detour
        max_retries / backoff / timeout / sleep: Provider call policy, as for LLMPlayer
    """

    def __init__(
        self,
        provider=None,
        provider_name: Optional[str] = None,
        *,
        max_parse_attempts: int = PREDICT_PARSE_ATTEMPTS,
        show_board: bool = False,
        skip_reverse: bool = True,
        max_retries: int = LLM_MAX_RETRIES,
        backoff: tuple[float, ...] = LLM_RETRY_BACKOFF,
        timeout: float = LLM_TIMEOUT,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.provider = provider if provider is not None else create_provider(provider_name or LLM_PROVIDER)
        self.max_parse_attempts = max(1, int(max_parse_attempts))
        self.show_board = bool(show_board)
        self.skip_reverse = bool(skip_reverse)
        self.max_retries = max(0, int(max_retries))
        self.backoff = tuple(backoff) or (0.0,)
        self.timeout = float(timeout)
        self._sleep = sleep

    def _call(self, system_prompt: str, prompt: str) -> tuple[Optional[str], int]:
        return request_with_retries(
            self.provider,
            system_prompt,
            [{"role": "user", "content": prompt}],
            max_retries=self.max_retries,
            backoff=self.backoff,
            timeout=self.timeout,
            sleep=self._sleep,
        )

    def predict(self, atoms: Iterable[Any], side: Any, position: Any) -> PredictRecord:
        """Ask for and grade one prediction. Raises InvalidInput for a bad layout or entry."""
        atom_set = as_atom_set(atoms)
        entry = EdgePoint.of(side, position)
        record = PredictRecord(entry=entry, actual=trace(atom_set, entry.side, entry.position))

        system_prompt = PREDICT_SYSTEM_PROMPT
        prompt = build_predict_prompt(atom_set, entry, show_board=self.show_board)
        while record.parse_attempts < self.max_parse_attempts:
            record.parse_attempts += 1
            reply, calls = self._call(system_prompt, prompt)
            record.api_calls += calls
            if reply is None:
                record.error = "api_error"
                return record

            record.raw_response = reply
            prediction = parse_prediction(reply)
            if prediction is not None:
                graded = grade_prediction(atom_set, entry.side, entry.position, prediction)
                record.prediction = prediction
                record.correct = graded.correct
                return record

            logger.info("unreadable prediction for %s (attempt %d)", entry, record.parse_attempts)
            system_prompt = PREDICT_CORRECTION_SYSTEM
            prompt = build_predict_correction(atom_set, entry)

        record.error = "parse_error"
        return record

    def run(self, atoms: Iterable[Any], edges: Optional[Iterable[EdgePoint]] = None) -> PredictRun:
        """Predict every edge point (or `edges`) for one layout."""
        atom_set = as_atom_set(atoms)
        if not self.provider.is_available():
            logger.warning("provider %s is not available", self.provider.name)
            return PredictRun(provider_unavailable=True)

        run = PredictRun()
        known: set[EdgePoint] = set()
        for edge in (all_edge_points() if edges is None else edges):
            if edge in known:
                run.skipped.append(edge)
                continue
            known.add(edge)
            record = self.predict(atom_set, edge.side, edge.position)
            run.records.append(record)
            if self.skip_reverse and record.actual.kind is OutcomeKind.EXITED:
                known.add(record.actual.exit)

        logger.info(
            "predict run finished: %d/%d correct, %d reverse rays skipped",
            run.correct,
            run.tested,
            len(run.skipped),
        )
        return run
