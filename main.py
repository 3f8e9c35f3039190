"""
Black Box Sim - the Black Box deduction game played by an LLM.

Usage:
    python main.py [--provider <provider_name>] [--config N | --seed S] [--hypotheses]
    python main.py --predict [--board] [--config N | --seed S]

Providers:
    claude  - Anthropic Claude (requires ANTHROPIC_API_KEY)
    openai  - OpenAI GPT (requires OPENAI_API_KEY)
    mock    - Mock provider for testing (no API key needed)
"""
import argparse
import json
import logging

from ai.llm_player import LLMPlayer, create_provider
from ai.predictor import LLMPredictor
from config import GAME_TITLE, LLM_PROVIDER, LOG_LEVEL, MAX_RAYS, VERSION
from game.atoms import CONFIG_NAMES, EXPERIMENT_CONFIGS, pick_atoms
from game.prediction import Prediction
from game.session import Session


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description=f"{GAME_TITLE} - find hidden atoms by firing rays"
    )
    parser.add_argument(
        "--provider",
        type=str,
        default=LLM_PROVIDER,
        choices=["claude", "openai", "mock"],
        help=f"LLM provider that plays the round (default: {LLM_PROVIDER})"
    )
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "--config",
        type=int,
        choices=range(1, len(EXPERIMENT_CONFIGS) + 1),
        metavar=f"1-{len(EXPERIMENT_CONFIGS)}",
        help="Use a fixed experiment atom layout"
    )
    group.add_argument("--seed", type=int, default=None, help="Seed for a random atom layout")
    parser.add_argument("--hypotheses", action="store_true", help="Answer via mark/unmark/check")
    parser.add_argument("--max-rays", type=int, default=MAX_RAYS, help=f"Ray budget (default: {MAX_RAYS})")
    parser.add_argument(
        "--predict",
        action="store_true",
        help="Predict mode: show the atoms and ask for the outcome of every ray"
    )
    parser.add_argument("--board", action="store_true", help="Predict mode: include a text board in each prompt")
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    return parser.parse_args()


def _banner():
    print("=" * 50)
    print(f"  {GAME_TITLE} v{VERSION}")
    print("=" * 50)


def run_predict(args):
    """Predict every edge point for one layout."""
    atoms = pick_atoms(config_index=args.config, seed=args.seed)
    predictor = LLMPredictor(provider=create_provider(args.provider), show_board=args.board)
    run = predictor.run(atoms)

    if args.json:
        print(json.dumps(run.to_dict(), indent=2))
        return 1 if run.provider_unavailable else 0

    _banner()
    if args.config is not None:
        print(f"Config {args.config}: {CONFIG_NAMES[args.config - 1]}")
    print(f"Provider: {predictor.provider.name}   Mode: predict")
    print(f"Atoms: {' '.join(str(c) for c in sorted(atoms))}")
    print()
    if run.provider_unavailable:
        print(f"Provider {predictor.provider.name} is not available.")
        return 1
    for record in run.records:
        predicted = record.prediction.describe() if record.prediction else record.error
        actual = Prediction(record.actual.kind, record.actual.exit).describe()
        mark = "ok " if record.correct else "BAD"
        print(f"  [{mark}] {str(record.entry):<8} predicted {predicted:<18} actual {actual}")
    print()
    print(
        f"Correct: {run.correct}/{run.tested} ({run.accuracy:.0%}) - "
        f"{len(run.skipped)} reverse rays skipped"
    )
    return 0


def main():
    """Main entry point."""
    args = parse_args()
    logging.basicConfig(level=LOG_LEVEL, format="%(levelname)s %(name)s: %(message)s")
    if args.predict:
        return run_predict(args)

    session = Session.new(
        config_index=args.config,
        seed=args.seed,
        hypothesis_mode=args.hypotheses,
        max_rays=args.max_rays,
    )
    player = LLMPlayer(provider=create_provider(args.provider))
    outcome = player.play(session)

    if args.json:
        print(json.dumps(outcome.to_dict(), indent=2))
        return 0 if outcome.answered else 1

    _banner()
    if args.config is not None:
        print(f"Config {args.config}: {CONFIG_NAMES[args.config - 1]}")
    print(f"Provider: {player.provider.name}   Mode: {'hypotheses' if args.hypotheses else 'guess'}")
    print()
    for ray in session.rays:
        print(f"  {ray.id:>2}. {ray.describe()}")
    print()
    print(f"Ended: {outcome.reason.value}")
    if outcome.result is not None:
        res = outcome.result
        print(f"Guess:  {' '.join(str(c) for c in res.guess)}")
        print(f"Atoms:  {' '.join(str(c) for c in res.atoms)}")
        print(f"Correct: {res.atoms_correct}/{len(res.atoms)}")
    print(
        f"Score: {outcome.score.total} "
        f"(rays {outcome.score.ray_points} + missed {outcome.score.missed_penalty})"
    )
    print(f"Invalid moves: {outcome.invalid_moves}   Iterations: {outcome.iterations}")
    return 0 if outcome.answered else 1


if __name__ == "__main__":
    raise SystemExit(main())
