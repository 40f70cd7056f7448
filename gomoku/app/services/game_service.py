"""
Game Service - Move Orchestration

Single owner of the live game and of every planning component. It handles:
- Human moves: validate, plan routes, animate, commit
- AI moves: search on a worker thread, plan, animate, commit
- Keeping the pathfinding grid and the motion items in sync with placed stones
- Move events for listeners

Only one move is in flight at a time; GameRunner enforces that.
"""

import logging
import time
from typing import Dict, Iterable, List, Optional, Protocol, Sequence

import numpy as np

from planning.core.board import Cell, Stone
from planning.core.grid import Point, SpatialGrid
from planning.core.motion import Entity, MotionSimulator, TickClock, snap_all
from planning.core.multipath import MultiPathGenerator, RouteBundle
from planning.core.pathfinder import GridPathfinder, route_length

from gomoku.app.core.config import Settings, load_settings
from gomoku.app.core.events import GameEvents
from gomoku.app.engine.ai import GomokuAI
from gomoku.app.engine.game import Gomoku
from gomoku.app.models.enums import Difficulty, GameOutcome, GameStatus
from gomoku.app.schemas.game_schema import GameSummary, MoveResult

logger = logging.getLogger(__name__)


class TargetUnreachableError(ValueError):
    """No entry point on the grid edge can reach the requested cell."""


class Presenter(Protocol):
    def spawn_piece(self, stone: Stone, point: Sequence[float], decorative: bool) -> Entity:
        ...

    def destroy_piece(self, entity: Entity):
        ...


class HeadlessPresenter:
    """Keeps pieces as plain entities; nothing is drawn."""

    def __init__(self, extents: Sequence[float] = (0.02, 0.005, 0.02)):
        self.extents = tuple(extents)
        self.live: List[Entity] = []
        self._count = 0

    def spawn_piece(self, stone: Stone, point: Sequence[float], decorative: bool) -> Entity:
        self._count += 1
        kind = "decor" if decorative else "piece"
        entity = Entity(f"{stone.name.lower()}-{kind}-{self._count}", point, self.extents)
        self.live.append(entity)
        return entity

    def destroy_piece(self, entity: Entity):
        if entity in self.live:
            self.live.remove(entity)


class SpeedControl:
    """Playback speed levels; calling the instance returns the current speed."""

    def __init__(self, levels: Sequence[float], level: int = 0):
        if not levels:
            raise ValueError("At least one speed level is required")
        self.levels = list(levels)
        self.level = 0
        self.set_level(level)

    def set_level(self, level: int):
        self.level = max(0, min(level, len(self.levels) - 1))

    def faster(self):
        self.set_level(self.level + 1)

    def slower(self):
        self.set_level(self.level - 1)

    @property
    def speed(self) -> float:
        return self.levels[self.level]

    def __call__(self) -> float:
        return self.speed


class GameService:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        presenter: Optional[Presenter] = None,
        events: Optional[GameEvents] = None,
        decorations: Iterable[Entity] = (),
        player_color: Stone = Stone.BLACK,
    ):
        self.settings = settings or load_settings()
        board_cfg = self.settings.board
        grid_cfg = self.settings.grid
        path_cfg = self.settings.path
        motion_cfg = self.settings.motion

        self.presenter = presenter or HeadlessPresenter(motion_cfg.stone_extents)
        self.events = events or GameEvents()
        self.decorations = list(decorations)
        self.game = Gomoku(board_cfg.size, player_color)
        self.status = GameStatus.PENDING

        # Pathfinding grid spans the board; spacing follows the node count
        count_x = grid_cfg.count_x or board_cfg.size
        count_y = grid_cfg.count_y or count_x
        spacing = board_cfg.cell_size * (board_cfg.size - 1) / max(1, count_x - 1)
        self.origin = np.asarray(board_cfg.origin, dtype=float)
        self.grid = SpatialGrid(count_x, count_y, spacing, board_cfg.origin, grid_cfg.obstacle_padding)
        self.pathfinder = GridPathfinder(self.grid, path_cfg.waypoint_angle_deg)
        self.generator = MultiPathGenerator(self.pathfinder, seed=path_cfg.seed)

        self.speed = SpeedControl(motion_cfg.speed_levels, motion_cfg.default_speed_level)
        self.simulator = MotionSimulator(
            base_speed=motion_cfg.base_speed,
            speed_provider=self.speed,
            clock=TickClock(motion_cfg.tick_duration, motion_cfg.realtime),
            obstacles=self.decorations,
            attraction_strength=motion_cfg.attraction_strength,
            repulsion_strength=motion_cfg.repulsion_strength,
            range_multiplier=motion_cfg.range_multiplier,
            stop_distance=motion_cfg.stop_distance,
            timeout=motion_cfg.timeout,
        )

        self.ai = self._build_ai()
        self.pieces: Dict[Cell, Entity] = {}
        self._rebuild_grid()

    def _build_ai(self) -> GomokuAI:
        ai_cfg = self.settings.ai
        return GomokuAI(
            ai_color=self.game.ai_color,
            difficulty=Difficulty(ai_cfg.difficulty),
            use_pruning=ai_cfg.use_pruning,
            radius=ai_cfg.candidate_radius,
            max_retries=ai_cfg.max_retries,
            time_budget_ms=ai_cfg.time_budget_ms,
        )

    # --- Geometry ---

    def board_point(self, x: int, y: int) -> Point:
        cell = self.settings.board.cell_size
        return tuple(float(v) for v in self.origin + np.array([x * cell, 0.0, y * cell]))

    def _rebuild_grid(self):
        """Obstacles are the static decorations plus every placed stone."""
        obstacles = [d.bounds for d in self.decorations]
        obstacles.extend(p.bounds for p in self.pieces.values())
        self.grid.rebuild(obstacles)

    def plan(self, cell: Cell) -> RouteBundle:
        """Route bundle toward `cell` on the world grid."""
        target = self.grid.nearest_node(self.board_point(*cell))
        bundle = self.generator.plan_move(target, self.settings.path.decorative_routes)
        bundle.target = cell
        return bundle

    # --- Game lifecycle ---

    def start_game(self, player_color: Optional[Stone] = None, difficulty: Optional[Difficulty] = None):
        """Clears the table and begins a new game. The runner handles an AI opening."""
        self.stop_all_movement()
        for entity in list(self.pieces.values()):
            self.presenter.destroy_piece(entity)
        self.pieces.clear()
        self.simulator.clear_items()

        self.game.reset(player_color)
        if difficulty is not None:
            self.settings.ai = self.settings.ai.model_copy(update={"difficulty": int(difficulty)})
        self.ai = self._build_ai()
        self._rebuild_grid()
        self.status = GameStatus.IN_PROGRESS
        logger.info("New game: player %s, AI depth %d", self.game.player_color.name, self.ai.depth)

    def stop_all_movement(self):
        """Aborts a running search. Motion is cancelled through its task."""
        self.ai.cancel()

    async def stop_search(self):
        """Aborts the search and waits until its worker is off the shared grid."""
        await self.ai.stop()

    def is_ai_turn(self) -> bool:
        return self.status is GameStatus.IN_PROGRESS and not self.game.is_player_turn()

    # --- Moves ---

    async def play_human_move(self, x: int, y: int) -> MoveResult:
        """
        Raises ValueError for an illegal move and TargetUnreachableError when
        the cell is legal but no route reaches it. The board is untouched then.
        """
        self._ensure_in_progress()
        if not self.game.is_player_turn():
            raise ValueError("Not the player's turn")
        if not self.game.is_valid_move(x, y):
            raise ValueError(f"Invalid move ({x}, {y})")

        bundle = self.plan((x, y))
        if not bundle.found:
            raise TargetUnreachableError(f"No route reaches ({x}, {y})")

        return await self._execute(bundle, retries=0)

    async def play_ai_move(self) -> MoveResult:
        self._ensure_in_progress()
        if self.game.is_player_turn():
            raise ValueError("Not the AI's turn")

        started = time.monotonic()
        decision = await self.ai.get_move_async(self.game.board, self.plan)
        if decision is None:
            outcome = self.game.declare_draw()
            await self._finish(outcome)
            return MoveResult(outcome=outcome, board=self.game.get_visual_board())

        logger.info("AI plays %s after %.3fs", decision.cell, time.monotonic() - started)
        return await self._execute(decision.bundle, retries=decision.retries)

    async def _execute(self, bundle: RouteBundle, retries: int) -> MoveResult:
        """Animates the bundle, then commits the stone and advances the turn."""
        x, y = bundle.target
        stone = self.game.current_stone
        routes = bundle.routes

        entities = [
            self.presenter.spawn_piece(stone, route[0], decorative=i > 0)
            for i, route in enumerate(routes)
        ]
        main_piece = entities[0]
        committed = False
        started = time.monotonic()

        try:
            motion = await self.simulator.animate_bundle(entities, routes)

            # Every piece lands exactly on the intersection
            snap_all(entities, self.board_point(x, y))
            outcome = self.game.place_stone(
                x, y,
                duration=round(time.monotonic() - started, 3),
                route_length=round(route_length(bundle.main), 4),
                decorative_routes=len(bundle.decorative),
                timed_out=motion.timed_out,
                retries=retries,
            )
            committed = True
        finally:
            for entity in entities[1:]:
                self.presenter.destroy_piece(entity)
            if not committed:
                self.presenter.destroy_piece(main_piece)

        self.pieces[(x, y)] = main_piece
        self.simulator.add_item(main_piece)
        self.grid.add_obstacle(main_piece.bounds)

        await self.events.notify_move((x, y), outcome)
        if outcome is not GameOutcome.NONE:
            await self._finish(outcome)

        return MoveResult(
            cell=(x, y),
            outcome=outcome,
            record=self.game.history[-1],
            board=self.game.get_visual_board(),
        )

    async def _finish(self, outcome: GameOutcome):
        self.status = GameStatus.DRAW if outcome is GameOutcome.DRAW else GameStatus.COMPLETED
        await self.events.notify_complete(outcome)

    def _ensure_in_progress(self):
        if self.status is not GameStatus.IN_PROGRESS or self.game.is_game_over():
            raise ValueError("Game is not in progress")

    def summary(self) -> GameSummary:
        return GameSummary(outcome=self.game.outcome, history=list(self.game.history))
