import unittest

from game.atoms import CONFIG_NAMES, EXPERIMENT_CONFIGS, config_atoms, derive_rng, generate_atoms, pick_atoms
from game.board import Cell
from game.errors import InvalidInput


class ConfigTests(unittest.TestCase):
    def test_every_config_is_four_distinct_in_grid_atoms(self) -> None:
        self.assertEqual(len(EXPERIMENT_CONFIGS), 10)
        self.assertEqual(len(CONFIG_NAMES), len(EXPERIMENT_CONFIGS))
        for index in range(1, 11):
            atoms = config_atoms(index)
            self.assertEqual(len(atoms), 4)
            for cell in atoms:
                self.assertTrue(1 <= cell.row <= 8 and 1 <= cell.col <= 8)

    def test_config_lookup_is_one_based(self) -> None:
        self.assertEqual(config_atoms(7), frozenset({Cell(1, 1), Cell(1, 8), Cell(8, 1), Cell(8, 8)}))

    def test_unknown_config(self) -> None:
        for bad in (0, 11, -1, True, "1", None):
            with self.assertRaises(InvalidInput):
                config_atoms(bad)


class SeededDrawTests(unittest.TestCase):
    def test_same_seed_and_tag_repeat(self) -> None:
        a = derive_rng(42, "trial-1")
        b = derive_rng(42, "trial-1")
        self.assertEqual([a.random() for _ in range(5)], [b.random() for _ in range(5)])

    def test_tags_give_independent_streams(self) -> None:
        a = derive_rng(42, "trial-1")
        b = derive_rng(42, "trial-2")
        self.assertNotEqual([a.random() for _ in range(5)], [b.random() for _ in range(5)])

    def test_generate_atoms(self) -> None:
        atoms = generate_atoms(6, derive_rng(5))
        self.assertEqual(len(atoms), 6)
        self.assertEqual(atoms, generate_atoms(6, derive_rng(5)))
        for cell in atoms:
            self.assertTrue(1 <= cell.row <= 8 and 1 <= cell.col <= 8)

    def test_generate_full_and_empty_grid(self) -> None:
        self.assertEqual(len(generate_atoms(64, derive_rng(1))), 64)
        self.assertEqual(generate_atoms(0, derive_rng(1)), frozenset())

    def test_generate_rejects_impossible_counts(self) -> None:
        with self.assertRaises(InvalidInput):
            generate_atoms(65)
        with self.assertRaises(InvalidInput):
            generate_atoms(-1)


if __name__ == "__main__":
    unittest.main()


class PickAtomsTests(unittest.TestCase):
    def test_config_wins_over_seed(self) -> None:
        self.assertEqual(pick_atoms(config_index=3, seed=99), config_atoms(3))

    def test_seeded_draw_matches_generate(self) -> None:
        expected = generate_atoms(4, derive_rng(7, "trial-1"))
        self.assertEqual(pick_atoms(seed=7, trial="trial-1"), expected)
        self.assertEqual(len(pick_atoms(seed=7, num_atoms=6)), 6)
