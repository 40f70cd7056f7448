# planning/core/selector.py
import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .board import Board, Cell, Stone
from .constants import (
    CANDIDATE_RADIUS,
    LINE_DIRECTIONS,
    MAX_SELECTION_RETRIES,
    RUN_SCORES,
    WIN_SCORE,
)
from .multipath import RouteBundle

logger = logging.getLogger(__name__)


class SearchCancelled(Exception):
    """Raised inside the recursion once the cancel flag is set."""


class SearchTimeout(Exception):
    pass


@dataclass
class MoveDecision:
    cell: Cell
    bundle: RouteBundle
    retries: int = 0


class GameTreeSelector:
    def __init__(
        self,
        use_pruning: bool = True,
        radius: int = CANDIDATE_RADIUS,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.use_pruning = use_pruning
        self.radius = radius
        self.cancel_event = cancel_event or threading.Event()
        self.nodes = 0
        self._ai = Stone.BLACK
        self._opponent = Stone.WHITE
        self._deadline: Optional[float] = None

    # --- Entry points ---

    def choose_move(self, board: Board, ai_side: Stone, max_depth: int,
                    time_budget_ms: Optional[int] = None) -> Optional[Cell]:
        """Best cell for `ai_side`, or None when there is nothing to play."""
        return self.analyze(board, ai_side, max_depth, time_budget_ms)["best_move"]

    def analyze(self, board: Board, ai_side: Stone, max_depth: int,
                time_budget_ms: Optional[int] = None) -> dict:
        """
        Root Entry Point.
        Scores every candidate and reports the pick. With a time budget the
        search deepens one ply at a time and keeps the last depth that finished.
        """
        self.nodes = 0
        self._ai = ai_side
        self._opponent = ai_side.opponent()
        self._deadline = None
        if time_budget_ms is not None:
            self._deadline = time.monotonic() + time_budget_ms / 1000.0

        moves = self.candidate_moves(board)
        report = {
            "best_move": moves[0] if moves else None,
            "best_score": None,
            "scores": {},
            "nodes_explored": 0,
            "depth_reached": 0,
        }
        if not moves:
            return report

        depths = range(1, max_depth + 1) if self._deadline is not None else [max_depth]
        for depth in depths:
            try:
                best_move, best_score, scores = self._search_root(board, moves, max(1, depth))
            except SearchTimeout:
                break
            report.update(best_move=best_move, best_score=best_score, scores=scores, depth_reached=depth)

        report["nodes_explored"] = self.nodes
        return report

    def choose_move_with_route(
        self,
        board: Board,
        ai_side: Stone,
        max_depth: int,
        plan: Callable[[Cell], RouteBundle],
        max_retries: int = MAX_SELECTION_RETRIES,
        time_budget_ms: Optional[int] = None,
    ) -> Optional[MoveDecision]:
        """
        Select a move, then make sure it can actually be reached. A cell whose
        bundle has no main route is blocked for the rest of this turn and the
        selection runs again. Blocks are lifted before returning.
        """
        blocked: List[Cell] = []
        try:
            for attempt in range(max_retries):
                move = self.choose_move(board, ai_side, max_depth, time_budget_ms)
                if move is None:
                    return None

                if self.cancel_event.is_set():
                    raise SearchCancelled()
                bundle = plan(move)
                if bundle.found:
                    return MoveDecision(cell=move, bundle=bundle, retries=attempt)

                logger.info("Target %s unreachable, blocking it and reselecting", move)
                board.block(*move)
                blocked.append(move)

            logger.warning("Gave up after %d unreachable targets", max_retries)
            return None
        finally:
            for x, y in blocked:
                board.unblock(x, y)

    # --- Search ---

    def _search_root(self, board: Board, moves: List[Cell], depth: int):
        best_score = -math.inf
        best_move = None
        scores: Dict[Cell, float] = {}

        for move in moves:
            board.place(move[0], move[1], self._ai)
            try:
                # `depth` counts the plies after this move, opponent first.
                # Fail-low replies come back <= alpha and lose the strict > test.
                alpha = best_score if self.use_pruning else -math.inf
                score = self.search(board, depth, False, alpha, math.inf)
            finally:
                board.clear(move[0], move[1])

            scores[move] = score
            if score > best_score:
                best_score = score
                best_move = move

        if best_move is None:
            best_move = moves[0]
        return best_move, best_score, scores

    def search(self, board: Board, depth: int, maximizing: bool,
               alpha: float = -math.inf, beta: float = math.inf) -> float:
        """
        Minimax with optional alpha-beta. Every call leaves the board exactly
        as it found it.
        """
        self.nodes += 1
        if self.cancel_event.is_set():
            raise SearchCancelled()
        if self._deadline is not None and time.monotonic() > self._deadline:
            raise SearchTimeout()

        # 1. Terminal checks, in order
        if board.has_five(self._ai):
            return WIN_SCORE + depth
        if board.has_five(self._opponent):
            return -WIN_SCORE - depth
        if depth == 0 or board.is_full():
            return self.evaluate(board)

        # 2. Recurse
        stone = self._ai if maximizing else self._opponent
        best = -math.inf if maximizing else math.inf

        for x, y in self.candidate_moves(board):
            board.place(x, y, stone)
            try:
                value = self.search(board, depth - 1, not maximizing, alpha, beta)
            finally:
                board.clear(x, y)

            if maximizing:
                best = max(best, value)
                if self.use_pruning:
                    alpha = max(alpha, best)
                    if beta <= alpha:
                        break  # Beta Cutoff
            else:
                best = min(best, value)
                if self.use_pruning:
                    beta = min(beta, best)
                    if beta <= alpha:
                        break  # Alpha Cutoff

        if math.isinf(best):
            # No candidates on a non-full board (only BLOCKED cells left)
            return self.evaluate(board)
        return best

    # --- Move generation ---

    def candidate_moves(self, board: Board) -> List[Cell]:
        """
        Empty cells within `radius` (Chebyshev) of any stone, x-major order.
        An empty board only offers its center.
        """
        if not board.has_stones():
            cx, cy = board.center()
            if board.is_empty(cx, cy):
                return [(cx, cy)]
            return sorted(board.empty_cells(), key=lambda c: (max(abs(c[0] - cx), abs(c[1] - cy)), c))

        size = board.size
        marked = [[False] * size for _ in range(size)]
        for x, y, stone in board.iter_cells():
            if stone not in (Stone.BLACK, Stone.WHITE):
                continue
            for nx in range(max(0, x - self.radius), min(size, x + self.radius + 1)):
                for ny in range(max(0, y - self.radius), min(size, y + self.radius + 1)):
                    if board.cells[nx][ny] is Stone.EMPTY:
                        marked[nx][ny] = True

        moves = [(x, y) for x in range(size) for y in range(size) if marked[x][y]]
        return moves or board.empty_cells()

    # --- Evaluation ---

    def evaluate(self, board: Board) -> int:
        return self._score_runs(board, self._ai) - self._score_runs(board, self._opponent)

    def _score_runs(self, board: Board, stone: Stone) -> int:
        """
        Sums RUN_SCORES over every maximal run of `stone` in the four line
        directions. Open and closed ends score the same.
        """
        score = 0
        for x, y, cell in board.iter_cells():
            if cell is not stone:
                continue
            for dx, dy in LINE_DIRECTIONS:
                # Count each run once, from its first stone
                px, py = x - dx, y - dy
                if board.in_bounds(px, py) and board.cells[px][py] is stone:
                    continue
                run = 1 + board.count_in_direction(x, y, dx, dy, stone)
                score += RUN_SCORES.get(run, 0)
        return score
