import json
import unittest

from ai.llm_player import EndReason, LLMPlayer, PlayerState, create_provider
from ai.providers.base import BaseLLMProvider
from ai.providers.mock_provider import MockProvider
from game.session import Session

ATOMS = [(4, 4), (2, 7), (7, 2), (6, 6)]


def move(action: str, **fields) -> str:
    return json.dumps({"action": action, **fields, "reasoning": "test"})


class ScriptedProvider(BaseLLMProvider):
    """Replays canned responses; Exception entries are raised instead."""

    def __init__(self, responses, available: bool = True):
        self.responses = list(responses)
        self.available = available
        self.calls: list[tuple[str, list[dict]]] = []

    @property
    def name(self) -> str:
        return "scripted"

    def is_available(self) -> bool:
        return self.available

    def complete(self, system_prompt, messages, timeout=90.0):
        self.calls.append((system_prompt, [dict(m) for m in messages]))
        if not self.responses:
            raise RuntimeError("script exhausted")
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def make_player(provider, **kwargs) -> tuple[LLMPlayer, list[float]]:
    sleeps: list[float] = []
    kwargs.setdefault("max_consecutive_failures", 5)
    kwargs.setdefault("max_iterations", 100)
    kwargs.setdefault("max_retries", 3)
    kwargs.setdefault("backoff", (1.0, 4.0, 15.0))
    return LLMPlayer(provider=provider, sleep=sleeps.append, **kwargs), sleeps


class PlayLoopTests(unittest.TestCase):
    def test_answered_round(self) -> None:
        provider = ScriptedProvider([
            move("fire", side="north", position=4),
            move("fire", side="west", position=1),
            move("guess", atoms=[[4, 4], [2, 7], [1, 1], [1, 2]]),
        ])
        player, sleeps = make_player(provider)
        result = player.play(Session(ATOMS, max_rays=20))

        self.assertIs(result.reason, EndReason.ANSWERED)
        self.assertTrue(result.answered)
        self.assertIs(player.state, PlayerState.DONE)
        self.assertEqual(result.score.total, 13)
        self.assertEqual(result.result.atoms_correct, 2)
        self.assertEqual((result.rays_used, result.invalid_moves, result.iterations, result.api_calls), (2, 0, 3, 3))
        self.assertEqual(sleeps, [])

        system_prompt, messages = provider.calls[-1]
        self.assertIn("Find exactly 4 hidden atoms", system_prompt)
        self.assertEqual([m["role"] for m in messages], ["user", "assistant", "user", "assistant", "user"])
        self.assertIn("Ray from WEST-1: Exited at NORTH-6", messages[-1]["content"])

    def test_rejected_move_is_fed_back(self) -> None:
        provider = ScriptedProvider([
            move("fire", side="north", position=4),
            move("fire", side="north", position=4),
            move("guess", atoms=ATOMS),
        ])
        player, _ = make_player(provider)
        result = player.play(Session(ATOMS, max_rays=20))

        self.assertTrue(result.answered)
        self.assertEqual(result.invalid_moves, 1)
        self.assertEqual(result.rays_used, 1)
        feedback = provider.calls[2][1][-1]["content"]
        self.assertTrue(feedback.startswith("ERROR: Position NORTH-4 is already used."))
        self.assertFalse(provider.calls[1][1][-1]["content"].startswith("ERROR"))
        self.assertEqual([m.ok for m in result.moves], [True, False, True])

    def test_gives_up_after_consecutive_failures(self) -> None:
        provider = ScriptedProvider(["no idea", "still thinking", '{"action": "jump"}'])
        player, _ = make_player(provider, max_consecutive_failures=3)
        result = player.play(Session(ATOMS, max_rays=20))

        self.assertIs(result.reason, EndReason.CONSECUTIVE_FAILURES)
        self.assertIs(player.state, PlayerState.GAVE_UP)
        self.assertEqual(result.invalid_moves, 3)
        self.assertIsNone(result.result)
        self.assertEqual(result.score.total, 20)
        self.assertIn(
            "ERROR: Your last response was not a valid JSON action. Use one of: fire, guess.",
            provider.calls[1][1][-1]["content"],
        )

    def test_success_resets_failure_count(self) -> None:
        provider = ScriptedProvider([
            "??",
            move("fire", side="north", position=1),
            "??",
            move("guess", atoms=ATOMS),
        ])
        player, _ = make_player(provider, max_consecutive_failures=2)
        result = player.play(Session(ATOMS, max_rays=20))
        self.assertTrue(result.answered)
        self.assertEqual(result.invalid_moves, 2)

    def test_retries_with_backoff(self) -> None:
        provider = ScriptedProvider([
            RuntimeError("overloaded"),
            RuntimeError("overloaded"),
            move("guess", atoms=ATOMS),
        ])
        player, sleeps = make_player(provider)
        result = player.play(Session(ATOMS, max_rays=20))

        self.assertTrue(result.answered)
        self.assertEqual(sleeps, [1.0, 4.0])
        self.assertEqual(result.api_calls, 3)
        self.assertEqual(result.iterations, 1)
        self.assertEqual(result.score.total, 0)

    def test_exhausted_retries_count_as_failures(self) -> None:
        provider = ScriptedProvider([RuntimeError("down")] * 4)
        player, sleeps = make_player(provider, max_retries=1, max_consecutive_failures=2)
        result = player.play(Session(ATOMS, max_rays=20))

        self.assertIs(result.reason, EndReason.CONSECUTIVE_FAILURES)
        self.assertEqual(result.api_calls, 4)
        self.assertEqual(sleeps, [1.0, 1.0])
        self.assertEqual(result.invalid_moves, 0)
        self.assertEqual([m.action for m in result.moves], ["api_error", "api_error"])

    def test_iteration_limit(self) -> None:
        provider = ScriptedProvider([
            move("mark", row=1, col=1),
            move("unmark", row=1, col=1),
        ] * 3)
        player, _ = make_player(provider, max_iterations=6)
        result = player.play(Session(ATOMS, max_rays=20, hypothesis_mode=True))

        self.assertIs(result.reason, EndReason.ITERATION_LIMIT)
        self.assertEqual(result.iterations, 6)
        self.assertEqual(result.hypothesis_actions, 6)
        self.assertEqual(result.invalid_moves, 0)

    def test_ray_limit_then_no_answer(self) -> None:
        provider = ScriptedProvider([
            move("fire", side="north", position=4),
            move("fire", side="north", position=5),
            move("guess", atoms=ATOMS),
        ])
        player, _ = make_player(provider, max_consecutive_failures=5)
        result = player.play(Session(ATOMS, max_rays=1))

        self.assertIs(result.reason, EndReason.RAY_LIMIT)
        self.assertIs(player.state, PlayerState.GAVE_UP)
        self.assertEqual(result.rays_used, 1)
        self.assertEqual(result.invalid_moves, 1)
        self.assertEqual(result.score.total, 1 + 20)
        # Only one final answer is requested.
        self.assertEqual(len(provider.calls), 2)
        final_prompt = provider.calls[1][1][-1]["content"]
        self.assertIn("You have used all your rays. Submit your final answer now.", final_prompt)
        self.assertEqual(result.moves[-1].detail, "Maximum 1 rays reached. Submit your answer.")

    def test_final_answer_after_last_ray(self) -> None:
        provider = ScriptedProvider([
            move("fire", side="north", position=4),
            move("guess", atoms=ATOMS),
        ])
        player, _ = make_player(provider)
        result = player.play(Session(ATOMS, max_rays=1))
        self.assertTrue(result.answered)
        self.assertEqual(result.score.total, 1)

    def test_non_string_action_is_an_invalid_move(self) -> None:
        provider = ScriptedProvider([
            '{"action": ["fire"], "side": "north", "position": 4}',
            '{"action": {}}',
            move("guess", atoms=ATOMS),
        ])
        player, _ = make_player(provider)
        result = player.play(Session(ATOMS, max_rays=20))
        self.assertTrue(result.answered)
        self.assertEqual(result.invalid_moves, 2)
        self.assertEqual(result.rays_used, 0)
        self.assertEqual([m.action for m in result.moves], ["unparsed", "unparsed", "guess"])

    def test_provider_unavailable(self) -> None:
        provider = ScriptedProvider([], available=False)
        player, _ = make_player(provider)
        result = player.play(Session(ATOMS, max_rays=20))

        self.assertIs(result.reason, EndReason.PROVIDER_UNAVAILABLE)
        self.assertEqual(result.api_calls, 0)
        self.assertEqual(provider.calls, [])
        self.assertEqual(result.score.total, 20)

    def test_hypothesis_round(self) -> None:
        provider = ScriptedProvider([
            move("guess", atoms=ATOMS),
            move("mark", row=4, col=4),
            move("mark", row="2", col="7"),
            move("mark", row=7, col=2),
            move("check"),
            move("mark", row=1, col=1),
            move("check"),
        ])
        player, _ = make_player(provider)
        result = player.play(Session(ATOMS, max_rays=20, hypothesis_mode=True))

        self.assertTrue(result.answered)
        self.assertEqual(result.invalid_moves, 2)
        self.assertEqual(result.hypothesis_actions, 4)
        self.assertEqual(result.result.atoms_correct, 3)
        self.assertIn('"action": "check"', provider.calls[0][0])
        self.assertIn("need to mark 1 more position", provider.calls[5][1][-1]["content"])

    def test_to_dict(self) -> None:
        provider = ScriptedProvider([move("guess", atoms=ATOMS)])
        player, _ = make_player(provider)
        data = player.play(Session(ATOMS, max_rays=20)).to_dict()
        self.assertEqual(data["reason"], "answered")
        self.assertEqual(data["score"]["total"], 0)
        self.assertEqual(data["moves"][0]["action"], "guess")
        json.dumps(data)


class ParseResponseTests(unittest.TestCase):
    def setUp(self) -> None:
        self.player, _ = make_player(ScriptedProvider([]))

    def test_json_inside_prose(self) -> None:
        parsed = self.player._parse_response('Sure! {"action": "FIRE", "side": "north", "position": 3} Good luck.')
        self.assertEqual(parsed["action"], "fire")
        self.assertEqual(parsed["reasoning"], "")

    def test_unusable_responses(self) -> None:
        unusable = (
            "",
            "fire north 3",
            "[1, 2]",
            "{broken",
            '{"action": "jump"}',
            '{"action": 3}',
            '{"side": "north"}',
            '{"action": ["fire"]}',
            '{"action": {}}',
            '{"action": null}',
        )
        for text in unusable:
            self.assertIsNone(self.player._parse_response(text), text)

    def test_quoted_numbers_are_accepted(self) -> None:
        provider = ScriptedProvider([
            move("fire", side="North", position="4"),
            move("guess", atoms=ATOMS),
        ])
        player, _ = make_player(provider)
        result = player.play(Session(ATOMS, max_rays=20))
        self.assertEqual(result.invalid_moves, 0)
        self.assertEqual(result.rays_used, 1)


class MockProviderTests(unittest.TestCase):
    def test_plays_plain_round(self) -> None:
        player, _ = make_player(MockProvider(seed=3, probes=8))
        result = player.play(Session.new(config_index=1, max_rays=20))
        self.assertTrue(result.answered)
        self.assertEqual(result.invalid_moves, 0)
        self.assertEqual(result.rays_used, 8)

    def test_plays_hypothesis_round(self) -> None:
        player, _ = make_player(MockProvider(seed=3, probes=4))
        result = player.play(Session.new(config_index=5, max_rays=20, hypothesis_mode=True))
        self.assertTrue(result.answered)
        self.assertEqual(result.invalid_moves, 0)
        self.assertEqual(result.hypothesis_actions, 4)

    def test_answers_when_rays_run_out(self) -> None:
        player, _ = make_player(MockProvider(seed=3, probes=8))
        result = player.play(Session.new(config_index=2, max_rays=3))
        self.assertTrue(result.answered)
        self.assertEqual(result.rays_used, 3)

    def test_provider_is_reusable_across_rounds(self) -> None:
        provider = MockProvider(seed=9, probes=2)
        for index in (3, 4):
            player, _ = make_player(provider)
            self.assertTrue(player.play(Session.new(config_index=index, max_rays=20, hypothesis_mode=True)).answered)

    def test_unknown_provider_falls_back_to_mock(self) -> None:
        self.assertEqual(create_provider("carrier-pigeon").name, "mock")


if __name__ == "__main__":
    unittest.main()
