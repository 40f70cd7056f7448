from enum import IntEnum, StrEnum


class GameStatus(StrEnum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    DRAW = "DRAW"


class PlayerType(StrEnum):
    HUMAN = "human"
    AI = "ai"


class GameOutcome(StrEnum):
    NONE = "NONE"
    BLACK_WIN = "BLACK_WIN"
    WHITE_WIN = "WHITE_WIN"
    DRAW = "DRAW"


class Difficulty(IntEnum):
    # Value is the search depth
    EASY = 1
    MEDIUM = 2
    HARD = 3
