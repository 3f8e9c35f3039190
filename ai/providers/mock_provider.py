"""
Mock LLM provider for testing without API keys.
Plays a simple, deterministic probing strategy by reading the turn prompt.
"""
import json
import re
from typing import Optional

from .base import BaseLLMProvider
from config import SIM_SEED
from game.atoms import derive_rng
from game.board import Cell, EdgePoint, entry_cell
from game.tracer import OutcomeKind, trace

_EDGE_RE = re.compile(r"\b(NORTH|SOUTH|EAST|WEST)-(\d)\b")
_ABSORBED_RE = re.compile(r"Ray from (NORTH|SOUTH|EAST|WEST)-(\d): ABSORBED")
_FIRED_RE = re.compile(r"Rays fired: (\d+)/(\d+)")
_MARKED_RE = re.compile(r"Marked atom positions \(\d+/\d+\): (.*)")
_CELL_RE = re.compile(r"\((\d),(\d)\)")
_COUNT_RE = re.compile(r"Find exactly (\d+) hidden atoms")
_ATOM_LIST_RE = re.compile(r"Atoms (?:are located )?at: (.*)")
_PREDICT_ENTRY_RE = re.compile(r"(?:A ray is fired from|Ray from) (NORTH|SOUTH|EAST|WEST)-(\d)")


class MockProvider(BaseLLMProvider):
    """
    Mock provider that simulates an LLM player using rules.

    Fires up to `probes` rays at random unused positions, then answers with the
    entry cells of absorbed rays, topped up with random cells. In predict mode
    (the atoms are in the prompt) it traces the ray and answers exactly.
    """

    def __init__(self, seed: int = SIM_SEED, probes: int = 8):
        self.probes = probes
        self._rng = derive_rng(seed, "mock_provider")
        self._answer: Optional[list[Cell]] = None

    @property
    def name(self) -> str:
        return "mock"

    def complete(
        self,
        system_prompt: str,
        messages: list[dict],
        timeout: float = 90.0
    ) -> str:
        """Generate a move from the latest user turn."""
        prompt = messages[-1]["content"] if messages else ""
        atom_list = _ATOM_LIST_RE.search(prompt)
        if atom_list:
            return self._predict(prompt, atom_list.group(1))

        hypothesis_mode = '"action": "check"' in system_prompt
        count_match = _COUNT_RE.search(system_prompt)
        guess_count = int(count_match.group(1)) if count_match else 4

        marked = self._parse_marked(prompt)
        if "(No rays fired yet)" in prompt and not marked:
            # New round.
            self._answer = None

        available = self._parse_available(prompt)
        fired, max_rays = self._parse_fired(prompt)
        final = "Submit your final answer now" in prompt

        if self._answer is None and not final and available and fired < min(self.probes, max_rays):
            edge = self._rng.choice(available)
            return json.dumps({
                "action": "fire",
                "side": edge.side.value,
                "position": edge.position,
                "reasoning": f"Probing {edge}"
            })

        if self._answer is None:
            self._answer = self._pick_answer(prompt, guess_count)

        if not hypothesis_mode:
            return json.dumps({
                "action": "guess",
                "atoms": [[c.row, c.col] for c in self._answer],
                "reasoning": "Absorbed rays point at their entry cells"
            })

        return json.dumps(self._next_hypothesis_move(marked))

    def _parse_available(self, prompt: str) -> list[EdgePoint]:
        for line in prompt.splitlines():
            if line.startswith("Available positions:"):
                return [EdgePoint.of(side, int(pos)) for side, pos in _EDGE_RE.findall(line)]
        return []

    def _parse_fired(self, prompt: str) -> tuple[int, int]:
        match = _FIRED_RE.search(prompt)
        if not match:
            return 0, 0
        return int(match.group(1)), int(match.group(2))

    def _pick_answer(self, prompt: str, guess_count: int) -> list[Cell]:
        answer: list[Cell] = []
        for side, pos in _ABSORBED_RE.findall(prompt):
            cell = entry_cell(EdgePoint.of(side, int(pos)))
            if cell not in answer:
                answer.append(cell)
        answer = answer[:guess_count]
        while len(answer) < guess_count:
            cell = Cell(self._rng.randint(1, 8), self._rng.randint(1, 8))
            if cell not in answer:
                answer.append(cell)
        return answer

    def _parse_marked(self, prompt: str) -> list[Cell]:
        match = _MARKED_RE.search(prompt)
        if not match:
            return []
        return [Cell(int(r), int(c)) for r, c in _CELL_RE.findall(match.group(1))]

    def _next_hypothesis_move(self, marked: list[Cell]) -> dict:
        for cell in marked:
            if cell not in self._answer:
                return {"action": "unmark", "row": cell.row, "col": cell.col, "reasoning": "Revising"}
        for cell in self._answer:
            if cell not in marked:
                return {"action": "mark", "row": cell.row, "col": cell.col, "reasoning": "Suspected atom"}
        return {"action": "check", "reasoning": "All suspected atoms marked"}

    def _predict(self, prompt: str, atom_text: str) -> str:
        atoms = [Cell(int(r), int(c)) for r, c in _CELL_RE.findall(atom_text)]
        entry = _PREDICT_ENTRY_RE.search(prompt)
        if entry is None:
            return "I cannot tell which ray was fired."
        outcome = trace(atoms, entry.group(1), int(entry.group(2)))
        if outcome.kind is OutcomeKind.ABSORBED:
            answer = {"absorbed": True}
        elif outcome.kind is OutcomeKind.REFLECTED:
            answer = {"reflected": True}
        else:
            answer = {"exit_side": outcome.exit.side.value, "exit_position": outcome.exit.position}
        answer["reasoning"] = f"Traced {entry.group(1)}-{entry.group(2)}"
        return json.dumps(answer)
