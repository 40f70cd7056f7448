# planning/core/multipath.py
import logging
import math
import random
from dataclasses import dataclass, field
from typing import List, Optional

from .board import Cell
from .constants import DECORATIVE_ROUTES
from .grid import Grid, PathNode
from .pathfinder import GridPathfinder, Route, route_length

logger = logging.getLogger(__name__)


@dataclass
class RouteBundle:
    target: Cell
    main: Optional[Route] = None
    decorative: List[Route] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return bool(self.main)

    @property
    def routes(self) -> List[Route]:
        """Main route first, then the decorative ones."""
        if not self.main:
            return []
        return [self.main] + list(self.decorative)


class MultiPathGenerator:
    def __init__(self, pathfinder: GridPathfinder, seed: Optional[int] = None):
        self.pathfinder = pathfinder
        self._rng = random.Random(seed)

    @property
    def grid(self) -> Grid:
        return self.pathfinder.grid

    def plan_move(self, target: PathNode, decorative_count: int = DECORATIVE_ROUTES) -> RouteBundle:
        """
        Computes the main route from the best perimeter cell to `target`, plus
        up to `decorative_count` routes from randomly drawn perimeter cells.
        A bundle without a main route means the move cannot be animated now.
        """
        bundle = RouteBundle(target=target.cell)

        # The destination is reachable by definition: a piece is about to land there
        was_walkable = target.walkable
        target.walkable = True
        try:
            candidates = self.grid.perimeter()
            if not candidates:
                return bundle

            # 1. Main route: shortest total length wins, first one on ties
            best_start = None
            best_length = math.inf
            for start in candidates:
                route = self.pathfinder.find_route(start, target)
                if not route:
                    continue
                length = route_length(route)
                if length < best_length:
                    best_length = length
                    best_start = start
                    bundle.main = route

            if bundle.main is None:
                logger.info("No entry point reaches target %s", target.cell)
                return bundle

            # 2. Decorative routes from a random subset of the other entry points
            others = [n for n in candidates if n is not best_start]
            count = max(0, min(decorative_count, len(others)))
            for start in self._rng.sample(others, count):
                route = self.pathfinder.find_route(start, target)
                if route:
                    bundle.decorative.append(route)
        finally:
            target.walkable = was_walkable

        return bundle
