# planning/core/grid.py
import math
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from .board import Board, Cell, Stone
from .constants import NEIGHBOR_OFFSETS, OBSTACLE_PADDING

Point = Tuple[float, ...]


@dataclass(eq=False)
class Bounds:
    """Axis-aligned box: center plus half-extents."""
    center: np.ndarray
    extents: np.ndarray

    def __post_init__(self):
        self.center = np.asarray(self.center, dtype=float)
        self.extents = np.abs(np.asarray(self.extents, dtype=float))

    @property
    def min(self) -> np.ndarray:
        return self.center - self.extents

    @property
    def max(self) -> np.ndarray:
        return self.center + self.extents

    def closest_point(self, point) -> np.ndarray:
        return np.clip(np.asarray(point, dtype=float), self.min, self.max)

    def overlaps(self, other: "Bounds") -> bool:
        return bool(np.all(np.abs(self.center - other.center) < self.extents + other.extents))


@dataclass(eq=False)
class PathNode:
    x: int
    y: int
    point: Point
    walkable: bool = True
    g_cost: float = math.inf
    h_cost: float = 0.0
    parent: Optional["PathNode"] = field(default=None, repr=False)

    @property
    def f_cost(self) -> float:
        return self.g_cost + self.h_cost

    @property
    def cell(self) -> Cell:
        return (self.x, self.y)


class Grid:
    """
    Base 4-connected grid. Subclasses decide what a node's point is,
    what a step costs and how the heuristic is measured.
    """

    def __init__(self, count_x: int, count_y: int):
        self.count_x = count_x
        self.count_y = count_y
        self.nodes: List[List[PathNode]] = [
            [PathNode(x, y, self.point_for(x, y)) for y in range(count_y)]
            for x in range(count_x)
        ]

    def point_for(self, x: int, y: int) -> Point:
        raise NotImplementedError

    def step_cost(self, a: PathNode, b: PathNode) -> float:
        raise NotImplementedError

    def heuristic(self, a: PathNode, b: PathNode) -> float:
        raise NotImplementedError

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.count_x and 0 <= y < self.count_y

    def node(self, x: int, y: int) -> PathNode:
        if not self.in_bounds(x, y):
            raise IndexError(f"Node ({x}, {y}) is outside the {self.count_x}x{self.count_y} grid")
        return self.nodes[x][y]

    def iter_nodes(self) -> Iterator[PathNode]:
        for column in self.nodes:
            yield from column

    def reset(self):
        """Full reset before every search: no stale costs or parents survive."""
        for n in self.iter_nodes():
            n.g_cost = math.inf
            n.h_cost = 0.0
            n.parent = None

    def neighbors(self, n: PathNode) -> List[PathNode]:
        result = []
        for dx, dy in NEIGHBOR_OFFSETS:
            nx, ny = n.x + dx, n.y + dy
            if self.in_bounds(nx, ny):
                result.append(self.nodes[nx][ny])
        return result

    def perimeter(self) -> List[PathNode]:
        """Walkable cells on the outer ring, where pieces enter from off-board."""
        max_x = self.count_x - 1
        max_y = self.count_y - 1
        ring = []
        for x in range(self.count_x):
            ring.append(self.nodes[x][0])
            if max_y > 0:
                ring.append(self.nodes[x][max_y])
        for y in range(1, self.count_y - 1):
            ring.append(self.nodes[0][y])
            if max_x > 0:
                ring.append(self.nodes[max_x][y])
        return [n for n in ring if n.walkable]


class SpatialGrid(Grid):
    """
    World-space grid laid over the board. Node (x, y) sits at
    origin + (x * cell_size, 0, y * cell_size); walkability comes from
    obstacle detection.
    """

    def __init__(
        self,
        count_x: int,
        count_y: int,
        cell_size: float,
        origin: Sequence[float] = (0.0, 0.0, 0.0),
        padding: float = OBSTACLE_PADDING,
    ):
        self.cell_size = cell_size
        self.origin = np.asarray(origin, dtype=float)
        self.padding = padding
        self.obstacles: List[Bounds] = []
        super().__init__(count_x, count_y)

    def point_for(self, x: int, y: int) -> Point:
        world = self.origin + np.array([x * self.cell_size, 0.0, y * self.cell_size])
        return tuple(float(v) for v in world)

    def step_cost(self, a: PathNode, b: PathNode) -> float:
        return math.dist(a.point, b.point)

    def heuristic(self, a: PathNode, b: PathNode) -> float:
        return math.dist(a.point, b.point)

    def rebuild(self, obstacles: Optional[Iterable[Bounds]] = None):
        """Recomputes every node's walkable flag against the obstacle set."""
        if obstacles is not None:
            self.obstacles = list(obstacles)
        half = np.full(3, self.cell_size * self.padding)
        for n in self.iter_nodes():
            probe = Bounds(np.asarray(n.point), half)
            n.walkable = not any(probe.overlaps(ob) for ob in self.obstacles)

    def add_obstacle(self, bounds: Bounds):
        self.obstacles.append(bounds)
        self.rebuild()

    def nearest_node(self, point: Sequence[float]) -> PathNode:
        offset = np.asarray(point, dtype=float) - self.origin
        x = int(np.clip(np.floor(offset[0] / self.cell_size + 0.5), 0, self.count_x - 1))
        y = int(np.clip(np.floor(offset[2] / self.cell_size + 0.5), 0, self.count_y - 1))
        return self.nodes[x][y]


class BoardGrid(Grid):
    """
    The logical board seen as a grid: a cell is walkable while it is EMPTY.
    Unit steps, Manhattan heuristic, points are plain (x, y) cells.
    """

    def __init__(self, board: Board):
        self.board = board
        super().__init__(board.size, board.size)
        self.sync()

    def point_for(self, x: int, y: int) -> Point:
        return (x, y)

    def step_cost(self, a: PathNode, b: PathNode) -> float:
        return 1

    def heuristic(self, a: PathNode, b: PathNode) -> float:
        return abs(a.x - b.x) + abs(a.y - b.y)

    def sync(self):
        """Re-reads occupancy from the board."""
        for n in self.iter_nodes():
            n.walkable = self.board.cells[n.x][n.y] is Stone.EMPTY
