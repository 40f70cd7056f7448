# planning/core/constants.py

# --- Board Dimensions ---
BOARD_SIZE = 7
WIN_LENGTH = 5

# --- Scoring System ---
# Terminal scores are biased by the remaining depth:
# Win found with 2 plies left  = +10002
# Loss found with 2 plies left = -10002
WIN_SCORE = 10000

# Static evaluation: run length -> score. Anything else scores 0.
RUN_SCORES = {4: 1000, 3: 100, 2: 10, 1: 1}

# Line directions scanned by the evaluator and the win check:
# horizontal, vertical, diagonal \, diagonal /
LINE_DIRECTIONS = ((1, 0), (0, 1), (1, 1), (1, -1))

# --- Move Generation ---
# Only empty cells within this Chebyshev radius of a stone are searched
CANDIDATE_RADIUS = 2

# Retry bound for "selected cell has no route" in the AI wrapper
MAX_SELECTION_RETRIES = 100

# --- Pathfinding ---
# 4-connected expansion order: left, right, down, up
NEIGHBOR_OFFSETS = ((-1, 0), (1, 0), (0, -1), (0, 1))

# Intermediate points are dropped unless the heading turns by more than this
WAYPOINT_ANGLE_DEG = 1.0

# Node check box half-size, as a fraction of the cell size
OBSTACLE_PADDING = 0.4

# Routes drawn from random perimeter cells in addition to the main route
DECORATIVE_ROUTES = 4

# --- Motion ---
ATTRACTION_STRENGTH = 10.0
REPULSION_STRENGTH = 6.0
REPULSION_RANGE_MULTIPLIER = 2.0
# Repulsion never exceeds this multiple of the attraction magnitude
REPULSION_CAP_RATIO = 1.5
STOP_DISTANCE = 0.001
MOTION_TIMEOUT = 5.0
TICK_DURATION = 1.0 / 60.0

# Numerical floors
EPSILON = 1e-4
FORCE_EPSILON = 1e-5
