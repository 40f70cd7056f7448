from pydantic import BaseModel, ConfigDict
from typing import List, Optional, Tuple

from gomoku.app.models.enums import GameOutcome, PlayerType


class MoveRecord(BaseModel):
    model_config = ConfigDict(extra='ignore')

    move_number: int
    player: int  # Stone value: 1=Black, 2=White
    player_type: PlayerType
    x: int
    y: int

    duration: Optional[float] = 0.0
    route_length: Optional[float] = 0.0
    decorative_routes: int = 0
    timed_out: bool = False
    retries: int = 0


class MoveResult(BaseModel):
    cell: Optional[Tuple[int, int]] = None
    outcome: GameOutcome = GameOutcome.NONE
    record: Optional[MoveRecord] = None
    board: Optional[str] = None


class GameSummary(BaseModel):
    outcome: GameOutcome
    history: List[MoveRecord]
