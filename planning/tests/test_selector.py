import threading
import unittest
from planning.core.board import Board, Stone
from planning.core.constants import WIN_SCORE
from planning.core.multipath import RouteBundle
from planning.core.selector import GameTreeSelector, SearchCancelled


def board_from(stones):
    """stones: {(x, y): Stone} on an empty 7x7 board."""
    board = Board()
    for (x, y), stone in stones.items():
        board.place(x, y, stone)
    return board


B, W = Stone.BLACK, Stone.WHITE

MID_GAME_BOARDS = [
    {(3, 3): B, (3, 4): W, (4, 4): B},
    {(3, 3): B, (2, 2): W, (4, 3): B, (2, 3): W},
    {(1, 1): B, (5, 5): W, (2, 2): B, (4, 4): W, (3, 2): B},
    {(0, 0): B, (6, 6): W, (3, 3): B, (3, 2): W, (2, 4): B, (4, 2): W},
    {(2, 3): B, (3, 3): B, (4, 3): W, (3, 4): W, (2, 4): B, (1, 5): W},
]


class TestGameTreeSelector(unittest.TestCase):
    def setUp(self):
        self.selector = GameTreeSelector()

    def test_empty_board_takes_center(self):
        board = Board()
        self.assertEqual(self.selector.choose_move(board, Stone.BLACK, max_depth=1), (3, 3))

    def test_candidates_stay_near_stones(self):
        board = board_from({(0, 0): B})
        moves = self.selector.candidate_moves(board)

        self.assertEqual(len(moves), 8)
        self.assertEqual(moves[0], (0, 1))
        self.assertNotIn((0, 0), moves)
        self.assertNotIn((3, 0), moves)

    def test_completes_open_four(self):
        """
        Scenario: Black to move with four in row y=3 from x=1 to x=4.
        Both ends are open; either completion wins immediately.
        """
        board = board_from({
            (1, 3): B, (2, 3): B, (3, 3): B, (4, 3): B,
            (1, 4): W, (2, 4): W, (3, 4): W,
        })
        for depth in (1, 2):
            report = self.selector.analyze(board, Stone.BLACK, max_depth=depth)
            self.assertIn(report['best_move'], [(0, 3), (5, 3)])
            self.assertGreaterEqual(report['best_score'], WIN_SCORE)

    def test_blocks_capped_diagonal_four(self):
        """
        Scenario: Black has (1,1)-(4,4), the (0,0) end already capped by White.
        White to move at depth 1 must take (5,5) or Black completes five.
        """
        board = board_from({
            (1, 1): B, (2, 2): B, (3, 3): B, (4, 4): B,
            (0, 0): W, (6, 0): W, (0, 6): W,
        })
        report = self.selector.analyze(board, Stone.WHITE, max_depth=1)

        self.assertEqual(report['best_move'], (5, 5))
        self.assertGreater(report['best_score'], -WIN_SCORE)

    def test_blocks_edge_four_at_depth_one(self):
        """
        Scenario: Black has (0,1)-(0,4) with (0,0) capped by White.
        The shallowest search still sees the reply and takes (0,5).
        """
        board = board_from({
            (0, 1): B, (0, 2): B, (0, 3): B, (0, 4): B,
            (0, 0): W, (3, 3): W,
        })
        self.assertEqual(self.selector.choose_move(board, Stone.WHITE, max_depth=1), (0, 5))

    def test_depth_counts_plies_after_the_move(self):
        board = board_from(MID_GAME_BOARDS[0])
        report = self.selector.analyze(board, Stone.BLACK, max_depth=1)
        # Each root candidate is followed by the opponent replies under it
        self.assertGreater(report["nodes_explored"], len(self.selector.candidate_moves(board)))

    def test_pruning_matches_plain_minimax(self):
        plain = GameTreeSelector(use_pruning=False)
        for stones in MID_GAME_BOARDS:
            board = board_from(stones)
            for side in (Stone.BLACK, Stone.WHITE):
                with self.subTest(stones=stones, side=side):
                    pruned = self.selector.analyze(board, side, max_depth=1)
                    full = plain.analyze(board, side, max_depth=1)
                    self.assertEqual(pruned['best_move'], full['best_move'])
                    self.assertEqual(pruned['best_score'], full['best_score'])
                    self.assertLessEqual(pruned['nodes_explored'], full['nodes_explored'])

    def test_search_restores_board(self):
        board = board_from(MID_GAME_BOARDS[3])
        before = [col[:] for col in board.cells]
        self.selector.analyze(board, Stone.BLACK, max_depth=1)
        self.assertEqual(board.cells, before)

    def test_evaluate_counts_runs(self):
        board = board_from({(1, 1): B, (2, 1): B, (3, 1): B})
        # One run of three plus nine single-stone runs in the other directions
        self.assertEqual(self.selector.evaluate(board), 109)

        board.block(4, 1)
        board.clear(2, 1)
        board.place(5, 1, B)
        # (1,1) and (3,1) split, (5,1) behind the block: every run is a single
        self.assertEqual(self.selector.evaluate(board), 12)

    def test_cancelled_search_leaves_board_untouched(self):
        event = threading.Event()
        selector = GameTreeSelector(cancel_event=event)
        board = board_from(MID_GAME_BOARDS[0])
        before = [col[:] for col in board.cells]

        event.set()
        with self.assertRaises(SearchCancelled):
            selector.choose_move(board, Stone.BLACK, max_depth=2)
        self.assertEqual(board.cells, before)

    def test_time_budget_reaches_full_depth(self):
        board = board_from(MID_GAME_BOARDS[0])
        report = self.selector.analyze(board, Stone.WHITE, max_depth=2, time_budget_ms=60_000)
        expected = self.selector.analyze(board, Stone.WHITE, max_depth=2)

        self.assertEqual(report['depth_reached'], 2)
        self.assertEqual(report['best_move'], expected['best_move'])


class TestRetrySelection(unittest.TestCase):
    def setUp(self):
        self.selector = GameTreeSelector()

    def test_unreachable_cell_is_blocked_then_reverted(self):
        """
        Scenario: the center of an empty board cannot be reached.
        The selector blocks it and falls back to the nearest ring.
        """
        board = Board()
        asked = []

        def plan(cell):
            asked.append(cell)
            if cell == (3, 3):
                return RouteBundle(target=cell)
            return RouteBundle(target=cell, main=[(0, 0), cell])

        decision = self.selector.choose_move_with_route(board, Stone.BLACK, 1, plan)

        self.assertEqual(asked, [(3, 3), (2, 2)])
        self.assertEqual(decision.cell, (2, 2))
        self.assertEqual(decision.retries, 1)
        self.assertTrue(board.is_empty(3, 3))
        self.assertEqual(board.blocked, set())

    def test_exhausted_retries(self):
        board = board_from({(3, 3): B})
        decision = self.selector.choose_move_with_route(
            board, Stone.WHITE, 1, lambda cell: RouteBundle(target=cell), max_retries=3
        )

        self.assertIsNone(decision)
        self.assertEqual(len(board.empty_cells()), 48)
        self.assertEqual(board.blocked, set())

    def test_cancel_after_selection_skips_planning(self):
        """
        Scenario: the flag is set once the pick is made but before its routes
        are planned. The planner must not run.
        """
        event = threading.Event()

        class CancelledAfterPick(GameTreeSelector):
            def choose_move(self, *args, **kwargs):
                move = super().choose_move(*args, **kwargs)
                event.set()
                return move

        selector = CancelledAfterPick(cancel_event=event)
        board = Board()
        asked = []

        def plan(cell):
            asked.append(cell)
            return RouteBundle(target=cell, main=[(0, 0), cell])

        with self.assertRaises(SearchCancelled):
            selector.choose_move_with_route(board, Stone.BLACK, 1, plan)

        self.assertEqual(asked, [])
        self.assertEqual(board.blocked, set())
        self.assertTrue(board.is_empty(3, 3))

    def test_full_board_has_no_move(self):
        board = Board(size=3)
        for x in range(3):
            for y in range(3):
                board.place(x, y, B if (x + y) % 2 else W)

        decision = self.selector.choose_move_with_route(
            board, Stone.BLACK, 1, lambda cell: RouteBundle(target=cell, main=[cell])
        )
        self.assertIsNone(decision)


if __name__ == '__main__':
    unittest.main()
