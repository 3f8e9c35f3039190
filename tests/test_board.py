import unittest

from game.board import (
    Cell, EdgePoint, Side, all_edge_points, entry_cell, exit_edge, flanking_cells, validate_cell,
)
from game.errors import InvalidInput


class SideTests(unittest.TestCase):
    def test_parse_is_case_insensitive(self) -> None:
        self.assertIs(Side.parse("North"), Side.NORTH)
        self.assertIs(Side.parse(" west "), Side.WEST)
        self.assertIs(Side.parse(Side.EAST), Side.EAST)

    def test_parse_rejects_unknown_names(self) -> None:
        for bad in ("up", "", None, 3):
            with self.assertRaises(InvalidInput):
                Side.parse(bad)

    def test_inward_directions(self) -> None:
        self.assertEqual(Side.NORTH.inward, (1, 0))
        self.assertEqual(Side.SOUTH.inward, (-1, 0))
        self.assertEqual(Side.EAST.inward, (0, -1))
        self.assertEqual(Side.WEST.inward, (0, 1))


class EdgePointTests(unittest.TestCase):
    def test_equality_and_hashing(self) -> None:
        self.assertEqual(EdgePoint.of("north", 4), EdgePoint(Side.NORTH, 4))
        self.assertNotEqual(EdgePoint.of("north", 4), EdgePoint.of("south", 4))
        self.assertEqual(len({EdgePoint.of("east", 2), EdgePoint.of("EAST", 2)}), 1)

    def test_str(self) -> None:
        self.assertEqual(str(EdgePoint.of("south", 5)), "SOUTH-5")

    def test_position_out_of_range(self) -> None:
        for bad in (0, 9, -1, "4", 4.0, True):
            with self.assertRaises(InvalidInput):
                EdgePoint.of("north", bad)

    def test_all_edge_points(self) -> None:
        edges = all_edge_points()
        self.assertEqual(len(edges), 32)
        self.assertEqual(len(set(edges)), 32)
        self.assertEqual(edges[0], EdgePoint.of("north", 1))
        self.assertEqual(edges[-1], EdgePoint.of("west", 8))


class GeometryTests(unittest.TestCase):
    def test_entry_cells(self) -> None:
        self.assertEqual(entry_cell(EdgePoint.of("north", 3)), Cell(1, 3))
        self.assertEqual(entry_cell(EdgePoint.of("south", 3)), Cell(8, 3))
        self.assertEqual(entry_cell(EdgePoint.of("west", 6)), Cell(6, 1))
        self.assertEqual(entry_cell(EdgePoint.of("east", 6)), Cell(6, 8))

    def test_exit_edges(self) -> None:
        self.assertEqual(exit_edge(0, 5), EdgePoint.of("north", 5))
        self.assertEqual(exit_edge(9, 5), EdgePoint.of("south", 5))
        self.assertEqual(exit_edge(2, 0), EdgePoint.of("west", 2))
        self.assertEqual(exit_edge(2, 9), EdgePoint.of("east", 2))
        with self.assertRaises(ValueError):
            exit_edge(4, 4)

    def test_flanking_cells(self) -> None:
        # North/south travel: (east, west). East/west travel: (north, south).
        self.assertEqual(flanking_cells(3, 3, (1, 0)), (Cell(3, 4), Cell(3, 2)))
        self.assertEqual(flanking_cells(3, 3, (0, -1)), (Cell(2, 3), Cell(4, 3)))

    def test_validate_cell(self) -> None:
        self.assertEqual(validate_cell([2, 7]), Cell(2, 7))
        self.assertEqual(validate_cell((2, 7)), (2, 7))
        for bad in ([0, 1], [1, 9], [1], "12", None, [1, 2, 3]):
            with self.assertRaises(InvalidInput):
                validate_cell(bad)


if __name__ == "__main__":
    unittest.main()
