"""
QA smoke runner (headless).

Runs the static core guard, then plays every experiment configuration with the
mock provider in both answer modes and in predict mode. Returns a useful exit
code.

Examples:
  python tools/qa_smoke.py
  python tools/qa_smoke.py --seed 3 --probes 12
"""

from __future__ import annotations

import argparse
import subprocess
import sys
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parents[1]
CORE_GUARD = PROJECT_ROOT / "tools" / "core_guard.py"

if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from ai.llm_player import LLMPlayer  # noqa: E402
from ai.predictor import LLMPredictor  # noqa: E402
from ai.providers.mock_provider import MockProvider  # noqa: E402
from game.atoms import CONFIG_NAMES, EXPERIMENT_CONFIGS, config_atoms  # noqa: E402
from game.board import all_edge_points  # noqa: E402
from game.session import Session  # noqa: E402
from game.tracer import OutcomeKind, trace  # noqa: E402


def _run_core_guard(*, title: str) -> int:
    cmd = [sys.executable, str(CORE_GUARD)]
    print(f"\n[qa_smoke] === {title} ===")
    print("[qa_smoke] cmd:", " ".join(cmd))
    completed = subprocess.run(cmd, cwd=str(PROJECT_ROOT))
    print(f"[qa_smoke] exit_code={completed.returncode}")
    return int(completed.returncode)


def _check_tracer(index: int) -> int:
    """Every edge of a config must trace to a normal outcome."""
    atoms = EXPERIMENT_CONFIGS[index - 1]
    bad = 0
    for edge in all_edge_points():
        outcome = trace(atoms, edge.side, edge.position)
        if outcome.kind is OutcomeKind.INTERNAL_ERROR:
            print(f"[qa_smoke] ERROR: config {index} {edge} hit the trace step limit")
            bad += 1
    return bad


def _run_profile(index: int, *, hypotheses: bool, seed: int, probes: int) -> int:
    session = Session.new(config_index=index, hypothesis_mode=hypotheses)
    player = LLMPlayer(provider=MockProvider(seed=seed, probes=probes), sleep=lambda _s: None)
    outcome = player.play(session)
    mode = "hyp" if hypotheses else "guess"
    print(
        f"[qa_smoke] config {index:>2} ({CONFIG_NAMES[index - 1]:<16}) {mode:<5} "
        f"reason={outcome.reason.value} rays={outcome.rays_used} "
        f"invalid={outcome.invalid_moves} score={outcome.score.total}"
    )
    return 0 if outcome.answered and outcome.invalid_moves == 0 else 1


def _run_predict_profile(index: int) -> int:
    """The mock answers predictions by tracing, so anything short of 100% is a bug."""
    predictor = LLMPredictor(provider=MockProvider(), sleep=lambda _s: None)
    run = predictor.run(config_atoms(index))
    print(
        f"[qa_smoke] config {index:>2} ({CONFIG_NAMES[index - 1]:<16}) predict "
        f"correct={run.correct}/{run.tested} skipped={len(run.skipped)}"
    )
    return 0 if run.tested and run.correct == run.tested else 1


def main() -> int:
    ap = argparse.ArgumentParser(description="Run headless QA smoke profiles")
    ap.add_argument("--seed", type=int, default=3, help="mock provider rng seed")
    ap.add_argument("--probes", type=int, default=8, help="rays the mock player fires before answering")
    ap.add_argument("--skip-guard", action="store_true", help="skip the static core guard")
    ns = ap.parse_args()

    rc = 0
    if not ns.skip_guard:
        # Nothing else runs when the core guard fails.
        rc = _run_core_guard(title="core_guard (static)")
        if rc != 0:
            print("\n[qa_smoke] DONE:", f"FAIL (rc={rc})")
            return rc

    print("\n[qa_smoke] === tracer sweep (all configs, all edges) ===")
    for index in range(1, len(EXPERIMENT_CONFIGS) + 1):
        if _check_tracer(index):
            rc = 1

    print("\n[qa_smoke] === mock player (all configs, both modes) ===")
    for index in range(1, len(EXPERIMENT_CONFIGS) + 1):
        for hypotheses in (False, True):
            if _run_profile(index, hypotheses=hypotheses, seed=ns.seed, probes=ns.probes) != 0:
                rc = 1

    print("\n[qa_smoke] === mock predictor (all configs) ===")
    for index in range(1, len(EXPERIMENT_CONFIGS) + 1):
        if _run_predict_profile(index) != 0:
            rc = 1

    print("\n[qa_smoke] DONE:", "PASS" if rc == 0 else f"FAIL (rc={rc})")
    return rc


if __name__ == "__main__":
    raise SystemExit(main())
