import logging
from typing import List, Optional

from planning.core.board import Board, Cell, Stone
from planning.core.constants import BOARD_SIZE

from gomoku.app.models.enums import GameOutcome, PlayerType
from gomoku.app.schemas.game_schema import MoveRecord

# Logger setup
logger = logging.getLogger(__name__)


class Gomoku:
    def __init__(self, size: int = BOARD_SIZE, player_color: Stone = Stone.BLACK):
        """
        Turn counter starts at 1; odd turns are Black, even turns White.
        The human plays `player_color`, the AI the other colour.
        """
        self.size = size
        self.board = Board(size)
        self.player_color = player_color
        self.turn = 1
        self.outcome = GameOutcome.NONE
        self.history: List[MoveRecord] = []

    def reset(self, player_color: Optional[Stone] = None):
        if player_color is not None:
            self.player_color = player_color
        self.board.reset()
        self.turn = 1
        self.outcome = GameOutcome.NONE
        self.history = []

    # --- Turn state ---

    @property
    def current_stone(self) -> Stone:
        return Stone.BLACK if self.turn % 2 == 1 else Stone.WHITE

    @property
    def ai_color(self) -> Stone:
        return self.player_color.opponent()

    def is_player_turn(self) -> bool:
        return self.current_stone is self.player_color

    def is_game_over(self) -> bool:
        return self.outcome is not GameOutcome.NONE

    def next_turn(self):
        self.turn += 1

    # --- Moves ---

    def is_valid_move(self, x: int, y: int) -> bool:
        if self.is_game_over() or not self.board.in_bounds(x, y):
            return False
        return self.board.is_empty(x, y)

    def place_stone(self, x: int, y: int, **metadata) -> GameOutcome:
        """
        Places the current side's stone and advances the turn unless the game
        ended. Raises ValueError for an illegal move.
        """
        if not self.is_valid_move(x, y):
            raise ValueError(f"Invalid move ({x}, {y})")

        stone = self.current_stone
        self.board.place(x, y, stone)
        self.history.append(MoveRecord(
            move_number=self.turn,
            player=int(stone),
            player_type=PlayerType.HUMAN if stone is self.player_color else PlayerType.AI,
            x=x,
            y=y,
            **metadata,
        ))

        outcome = self.check_game_state(x, y)
        if outcome is GameOutcome.NONE:
            self.next_turn()
        else:
            self.outcome = outcome
            logger.info("Game over on turn %d: %s", self.turn, outcome)
        return outcome

    def check_game_state(self, x: int, y: int) -> GameOutcome:
        winner = self.board.five_through(x, y)
        if winner is Stone.BLACK:
            return GameOutcome.BLACK_WIN
        if winner is Stone.WHITE:
            return GameOutcome.WHITE_WIN
        if self.board.is_full():
            return GameOutcome.DRAW
        return GameOutcome.NONE

    def declare_draw(self) -> GameOutcome:
        """Used when the side to move has nothing it can play."""
        self.outcome = GameOutcome.DRAW
        logger.info("Game declared a draw on turn %d", self.turn)
        return self.outcome

    @property
    def last_move(self) -> Optional[Cell]:
        if not self.history:
            return None
        return (self.history[-1].x, self.history[-1].y)

    # --- Formatting ---

    def get_visual_board(self) -> str:
        return self.board.render()
