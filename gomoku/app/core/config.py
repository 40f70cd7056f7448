import logging
import os
from pathlib import Path
from typing import List, Optional, Tuple

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

from planning.core import constants

load_dotenv()

DEFAULT_CONFIG_PATH = "config/settings.yaml"


class BoardSettings(BaseModel):
    size: int = constants.BOARD_SIZE
    # World-space spacing between neighbouring intersections
    cell_size: float = 0.05
    origin: Tuple[float, float, float] = (0.0, 0.0, 0.0)


class GridSettings(BaseModel):
    # Pathfinding grid laid over the board; defaults to one node per intersection
    count_x: Optional[int] = None
    count_y: Optional[int] = None
    obstacle_padding: float = constants.OBSTACLE_PADDING


class PathSettings(BaseModel):
    waypoint_angle_deg: float = constants.WAYPOINT_ANGLE_DEG
    decorative_routes: int = constants.DECORATIVE_ROUTES
    seed: Optional[int] = None


class AISettings(BaseModel):
    difficulty: int = Field(default=2, ge=1, le=3)
    use_pruning: bool = True
    candidate_radius: int = constants.CANDIDATE_RADIUS
    max_retries: int = constants.MAX_SELECTION_RETRIES
    time_budget_ms: Optional[int] = None
    think_delay: float = 1.0


class MotionSettings(BaseModel):
    speed_levels: List[float] = [0.05, 0.1, 0.25, 0.5, 1.0]
    default_speed_level: int = 2
    attraction_strength: float = constants.ATTRACTION_STRENGTH
    repulsion_strength: float = constants.REPULSION_STRENGTH
    range_multiplier: float = constants.REPULSION_RANGE_MULTIPLIER
    stop_distance: float = constants.STOP_DISTANCE
    timeout: float = constants.MOTION_TIMEOUT
    tick_duration: float = constants.TICK_DURATION
    realtime: bool = False
    stone_extents: Tuple[float, float, float] = (0.02, 0.005, 0.02)

    @property
    def base_speed(self) -> float:
        return self.speed_levels[self.default_speed_level]


class Settings(BaseModel):
    model_config = ConfigDict(extra='ignore')

    log_level: str = "INFO"
    board: BoardSettings = BoardSettings()
    grid: GridSettings = GridSettings()
    path: PathSettings = PathSettings()
    ai: AISettings = AISettings()
    motion: MotionSettings = MotionSettings()


def load_settings(config_path: Optional[str] = None) -> Settings:
    """
    Reads the YAML settings file, then applies environment overrides.
    A missing file just means defaults.
    """
    path = Path(config_path or os.getenv("GOMOKU_CONFIG", DEFAULT_CONFIG_PATH))
    data = {}
    if path.exists():
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

    settings = Settings(**data)

    log_level = os.getenv("GOMOKU_LOG_LEVEL")
    if log_level:
        settings.log_level = log_level.upper()

    difficulty = os.getenv("GOMOKU_DIFFICULTY")
    if difficulty:
        settings.ai = settings.ai.model_copy(update={"difficulty": int(difficulty)})

    seed = os.getenv("GOMOKU_SEED")
    if seed:
        settings.path = settings.path.model_copy(update={"seed": int(seed)})

    return settings


def configure_logging(settings: Settings):
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
