# planning/core/pathfinder.py
import heapq
import itertools
import logging
import math
from typing import List, Sequence

from .constants import WAYPOINT_ANGLE_DEG
from .grid import Grid, PathNode, Point

logger = logging.getLogger(__name__)

Route = List[Point]


def route_length(route: Sequence[Sequence[float]]) -> float:
    """Sum of consecutive-point distances (not node count)."""
    return sum(math.dist(route[i - 1], route[i]) for i in range(1, len(route)))


def simplify_route(points: Sequence[Point], angle_deg: float = WAYPOINT_ANGLE_DEG) -> Route:
    """
    Collapses straight runs into single segments.
    Keeps the first and last point; an intermediate point survives only
    if the heading turns by more than `angle_deg` there.
    """
    if len(points) <= 2:
        return list(points)

    min_cos = math.cos(math.radians(angle_deg))
    waypoints = [points[0]]
    for i in range(1, len(points) - 1):
        prev_dir = _unit(waypoints[-1], points[i])
        next_dir = _unit(points[i], points[i + 1])
        if prev_dir is None or next_dir is None:
            continue
        if sum(a * b for a, b in zip(prev_dir, next_dir)) < min_cos:
            waypoints.append(points[i])
    waypoints.append(points[-1])
    return waypoints


def _unit(a: Sequence[float], b: Sequence[float]):
    length = math.dist(a, b)
    if length == 0:
        return None
    return [(bv - av) / length for av, bv in zip(a, b)]


class GridPathfinder:
    def __init__(self, grid: Grid, angle_deg: float = WAYPOINT_ANGLE_DEG):
        self.grid = grid
        self.angle_deg = angle_deg
        self.nodes_expanded = 0

    def find_cells(self, start: PathNode, goal: PathNode) -> List[PathNode]:
        """
        A* from start to goal. Returns the raw node sequence (start -> goal)
        or an empty list when the goal cannot be reached.
        """
        # 1. Full reset: every search starts from clean costs and parents
        self.grid.reset()
        self.nodes_expanded = 0

        start.g_cost = 0.0
        start.h_cost = self.grid.heuristic(start, goal)

        # Heap entries are (f, insertion order, node); the counter keeps
        # equal-f pops deterministic for a fixed grid.
        counter = itertools.count()
        open_heap = [(start.f_cost, next(counter), start)]
        closed = set()

        # 2. Expand lowest f first
        while open_heap:
            _, _, current = heapq.heappop(open_heap)
            if current in closed:
                continue  # stale entry, a cheaper copy was already expanded
            if current is goal:
                return self._retrace(start, goal)

            closed.add(current)
            self.nodes_expanded += 1

            for neighbor in self.grid.neighbors(current):
                if not neighbor.walkable or neighbor in closed:
                    continue
                new_cost = current.g_cost + self.grid.step_cost(current, neighbor)
                if new_cost < neighbor.g_cost:
                    neighbor.g_cost = new_cost
                    neighbor.h_cost = self.grid.heuristic(neighbor, goal)
                    neighbor.parent = current
                    heapq.heappush(open_heap, (neighbor.f_cost, next(counter), neighbor))

        # 3. Open set exhausted: NotFound is an ordinary result
        return []

    def find_route(self, start: PathNode, goal: PathNode) -> Route:
        """Waypoint route between two nodes; empty when unreachable."""
        cells = self.find_cells(start, goal)
        if not cells:
            logger.debug("No route from %s to %s", start.cell, goal.cell)
            return []
        return simplify_route([n.point for n in cells], self.angle_deg)

    def _retrace(self, start: PathNode, goal: PathNode) -> List[PathNode]:
        path = []
        current = goal
        while current is not None:
            path.append(current)
            if current is start:
                break
            current = current.parent
        path.reverse()
        return path
