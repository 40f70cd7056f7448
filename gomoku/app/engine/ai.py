import asyncio
import logging
import threading
from typing import Callable, Optional

from planning.core.board import Board, Cell, Stone
from planning.core.constants import CANDIDATE_RADIUS, MAX_SELECTION_RETRIES
from planning.core.grid import BoardGrid
from planning.core.multipath import MultiPathGenerator, RouteBundle
from planning.core.pathfinder import GridPathfinder
from planning.core.selector import GameTreeSelector, MoveDecision, SearchCancelled

from gomoku.app.models.enums import Difficulty

logger = logging.getLogger(__name__)

Planner = Callable[[Cell], RouteBundle]


def board_planner(board: Board, seed: Optional[int] = None) -> Planner:
    """
    Plans on the logical board itself: stones are walls and routes enter
    from the board edge. Used when there is no world-space grid.
    """
    grid = BoardGrid(board)
    generator = MultiPathGenerator(GridPathfinder(grid), seed=seed)

    def plan(cell: Cell) -> RouteBundle:
        grid.sync()
        return generator.plan_move(grid.node(*cell))

    return plan


class GomokuAI:
    def __init__(
        self,
        ai_color: Stone,
        difficulty: Difficulty = Difficulty.MEDIUM,
        use_pruning: bool = True,
        radius: int = CANDIDATE_RADIUS,
        max_retries: int = MAX_SELECTION_RETRIES,
        time_budget_ms: Optional[int] = None,
    ):
        self.ai_color = ai_color
        self.difficulty = Difficulty(difficulty)
        self.use_pruning = use_pruning
        self.radius = radius
        self.max_retries = max_retries
        self.time_budget_ms = time_budget_ms
        self._cancel_event: Optional[threading.Event] = None
        self._worker: Optional[asyncio.Future] = None
        self.last_nodes = 0

    @property
    def depth(self) -> int:
        return int(self.difficulty)

    def cancel(self):
        """Stops the running search at its next recursion step."""
        if self._cancel_event is not None:
            self._cancel_event.set()

    async def stop(self):
        """Cancels the search and waits for its worker thread to let go of the planner."""
        self.cancel()
        worker = self._worker
        if worker is None or worker.done():
            return
        try:
            await worker
        except SearchCancelled:
            logger.info("AI (%s) search stopped", self.ai_color.name)

    def get_move(self, board: Board, plan: Optional[Planner] = None,
                 cancel_event: Optional[threading.Event] = None) -> Optional[MoveDecision]:
        """
        Blocking search on `board`. Returns None when there is no reachable
        move. The board is restored before returning.
        """
        # Each search owns its flag so a stale worker never sees a fresh one
        event = cancel_event or threading.Event()
        self._cancel_event = event
        selector = GameTreeSelector(use_pruning=self.use_pruning, radius=self.radius, cancel_event=event)

        decision = selector.choose_move_with_route(
            board,
            self.ai_color,
            self.depth,
            plan or board_planner(board),
            max_retries=self.max_retries,
            time_budget_ms=self.time_budget_ms,
        )
        self.last_nodes = selector.nodes

        if decision is None:
            logger.info("AI (%s) found no playable move", self.ai_color.name)
        else:
            logger.debug("AI (%s) picked %s after %d retries, %d nodes",
                         self.ai_color.name, decision.cell, decision.retries, selector.nodes)
        return decision

    async def get_move_async(self, board: Board, plan: Optional[Planner] = None) -> Optional[MoveDecision]:
        """
        Runs the search on a worker thread against a private copy of the board,
        so the live board is never touched while the search runs.
        Raises SearchCancelled if cancel() was called meanwhile.
        """
        snapshot = board.copy()
        event = threading.Event()
        self._cancel_event = event
        worker = asyncio.ensure_future(asyncio.to_thread(self.get_move, snapshot, plan, event))
        self._worker = worker
        # Cancelling the caller leaves the thread running; stop() waits for it
        decision = await asyncio.shield(worker)
        if event.is_set():
            raise SearchCancelled()
        if decision is not None and not board.is_empty(*decision.cell):
            # The live board changed under us; never commit a stale pick
            raise SearchCancelled()
        return decision
