import unittest
from planning.core.board import Board, Stone


class TestBoard(unittest.TestCase):
    def test_from_matrix_is_row_major(self):
        matrix = [[0] * 7 for _ in range(7)]
        matrix[1][4] = 1  # row y=1, column x=4
        board = Board.from_matrix(matrix)

        self.assertIs(board.get(4, 1), Stone.BLACK)
        self.assertIs(board.get(1, 4), Stone.EMPTY)

    def test_place_and_clear(self):
        board = Board()
        board.place(2, 3, Stone.WHITE)
        self.assertFalse(board.is_empty(2, 3))

        with self.assertRaises(ValueError):
            board.place(2, 3, Stone.BLACK)

        board.clear(2, 3)
        self.assertTrue(board.is_empty(2, 3))

    def test_out_of_range_access_raises(self):
        board = Board()
        with self.assertRaises(IndexError):
            board.get(7, 0)
        with self.assertRaises(IndexError):
            board.place(-1, 2, Stone.BLACK)

    def test_five_detection(self):
        """Scenario: diagonal five, checked both locally and by full scan."""
        board = Board()
        for i in range(1, 6):
            board.place(i, i, Stone.BLACK)

        self.assertIs(board.five_through(3, 3), Stone.BLACK)
        self.assertTrue(board.has_five(Stone.BLACK))
        self.assertFalse(board.has_five(Stone.WHITE))

    def test_four_is_not_five(self):
        board = Board()
        for x in range(4):
            board.place(x, 0, Stone.WHITE)
        self.assertIsNone(board.five_through(0, 0))
        self.assertFalse(board.has_five(Stone.WHITE))

    def test_blocked_cells(self):
        """Blocked marks fill the board but are not stones."""
        board = Board(size=3)
        for x in range(3):
            for y in range(3):
                board.block(x, y)

        self.assertTrue(board.is_full())
        self.assertFalse(board.has_stones())

        board.clear_blocked()
        self.assertEqual(len(board.empty_cells()), 9)
        self.assertEqual(board.blocked, set())

    def test_copy_is_independent(self):
        board = Board()
        board.place(0, 0, Stone.BLACK)
        clone = board.copy()
        clone.place(1, 1, Stone.WHITE)

        self.assertTrue(board.is_empty(1, 1))
        self.assertIs(clone.get(0, 0), Stone.BLACK)

    def test_render(self):
        board = Board(size=3)
        board.place(0, 0, Stone.BLACK)
        board.place(2, 1, Stone.WHITE)
        lines = board.render().splitlines()

        self.assertEqual(lines[0], "  0 1 2")
        self.assertEqual(lines[1], "0 X . .")
        self.assertEqual(lines[2], "1 . . O")


if __name__ == '__main__':
    unittest.main()
