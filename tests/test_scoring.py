import unittest
from types import SimpleNamespace

from game.scoring import calculate_score, ray_points

DETOUR = SimpleNamespace(is_detour=True)
DIRECT = SimpleNamespace(is_detour=False)


class ScoringTests(unittest.TestCase):
    def test_scenario_total(self) -> None:
        score = calculate_score([DETOUR, DIRECT], atoms_correct=2, total_atoms=4)
        self.assertEqual(score.ray_points, 3)
        self.assertEqual(score.missed_penalty, 10)
        self.assertEqual(score.atoms_missed, 2)
        self.assertEqual(score.total, 13)

    def test_detour_costs_exactly_one_more(self) -> None:
        base = [DIRECT, DETOUR, DIRECT]
        self.assertEqual(ray_points(base + [DETOUR]) - ray_points(base + [DIRECT]), 1)

    def test_each_missed_atom_costs_five(self) -> None:
        totals = [calculate_score([], correct, total_atoms=4).total for correct in range(5)]
        self.assertEqual(totals, [20, 15, 10, 5, 0])

    def test_perfect_round_costs_only_rays(self) -> None:
        score = calculate_score([DIRECT] * 5, atoms_correct=4, total_atoms=4)
        self.assertEqual(score.total, 5)
        self.assertEqual(score.to_dict(), {"ray_points": 5, "missed_penalty": 0, "total": 5, "atoms_missed": 0})

    def test_no_negative_misses(self) -> None:
        self.assertEqual(calculate_score([], atoms_correct=6, total_atoms=4).missed_penalty, 0)


if __name__ == "__main__":
    unittest.main()
