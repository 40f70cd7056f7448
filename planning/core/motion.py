# planning/core/motion.py
"""
Potential-field motion for route bundles.

Each entity follows its own route under attraction toward the next waypoint
and repulsion from obstacles and the other items on the table. Speeds are
scaled so every route of a bundle takes the same nominal time, which makes
the pieces arrive together.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Callable, Dict, Iterable, List, Optional, Sequence

import numpy as np

from .constants import (
    ATTRACTION_STRENGTH,
    EPSILON,
    FORCE_EPSILON,
    MOTION_TIMEOUT,
    REPULSION_CAP_RATIO,
    REPULSION_RANGE_MULTIPLIER,
    REPULSION_STRENGTH,
    STOP_DISTANCE,
    TICK_DURATION,
)
from .grid import Bounds

logger = logging.getLogger(__name__)

MIN_DURATION = 0.01
MIN_SPEED = 1e-4
UP = np.array([0.0, 1.0, 0.0])


class AgentState(StrEnum):
    IDLE = "IDLE"
    TRAVELING = "TRAVELING"
    ARRIVED = "ARRIVED"
    TIMED_OUT = "TIMED_OUT"


@dataclass(eq=False)
class Entity:
    name: str
    position: np.ndarray
    extents: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self):
        self.position = np.asarray(self.position, dtype=float).copy()
        self.extents = np.abs(np.asarray(self.extents, dtype=float))

    @property
    def bounds(self) -> Bounds:
        return Bounds(self.position.copy(), self.extents)


@dataclass(eq=False)
class MotionAgent:
    entity: Entity
    route: List[np.ndarray]
    path_length: float
    speed_ratio: float
    destination: np.ndarray
    elapsed: float = 0.0
    segment: int = 0
    ticks: int = 0
    state: AgentState = AgentState.IDLE


@dataclass
class MotionResult:
    timed_out: bool = False
    ticks: int = 0
    elapsed: float = 0.0
    agents: List[MotionAgent] = field(default_factory=list)

    @property
    def completed(self) -> bool:
        return bool(self.agents) and all(
            a.state in (AgentState.ARRIVED, AgentState.TIMED_OUT) for a in self.agents
        )


class TickClock:
    """
    Frame source for the agents. Simulated by default: every tick advances
    time by `tick_duration` and only yields to the event loop. With
    `realtime=True` each tick actually sleeps for `tick_duration`.
    """

    def __init__(self, tick_duration: float = TICK_DURATION, realtime: bool = False):
        self.tick_duration = tick_duration
        self.realtime = realtime

    async def tick(self) -> float:
        await asyncio.sleep(self.tick_duration if self.realtime else 0)
        return self.tick_duration


def path_length_from(position: Sequence[float], route: Sequence[Sequence[float]]) -> float:
    """Length from `position` through every waypoint of `route`."""
    total = 0.0
    prev = np.asarray(position, dtype=float)
    for point in route:
        p = np.asarray(point, dtype=float)
        total += float(np.linalg.norm(p - prev))
        prev = p
    return total


class MotionSimulator:
    def __init__(
        self,
        base_speed: float = 0.25,
        speed_provider: Optional[Callable[[], float]] = None,
        clock: Optional[TickClock] = None,
        obstacles: Optional[Iterable[Entity]] = None,
        attraction_strength: float = ATTRACTION_STRENGTH,
        repulsion_strength: float = REPULSION_STRENGTH,
        range_multiplier: float = REPULSION_RANGE_MULTIPLIER,
        stop_distance: float = STOP_DISTANCE,
        timeout: float = MOTION_TIMEOUT,
    ):
        self.base_speed = base_speed
        self.speed_provider = speed_provider or (lambda: self.base_speed)
        self.clock = clock or TickClock()
        self.obstacles: List[Entity] = list(obstacles or [])
        self.attraction_strength = attraction_strength
        self.repulsion_strength = repulsion_strength
        self.range_multiplier = range_multiplier
        self.stop_distance = stop_distance
        self.timeout = timeout

        # Placed stones that keep repelling later motion
        self.items: List[Entity] = []
        self._in_flight: List[Entity] = []

    # --- Item registry ---

    def add_item(self, entity: Entity):
        if entity not in self.items:
            self.items.append(entity)

    def remove_item(self, entity: Entity):
        if entity in self.items:
            self.items.remove(entity)

    def clear_items(self):
        self.items.clear()

    @property
    def in_flight(self) -> List[Entity]:
        return list(self._in_flight)

    # --- Animation ---

    async def animate_bundle(self, entities: Sequence[Entity], routes: Sequence[Sequence[Sequence[float]]]) -> MotionResult:
        """
        Moves entities[i] along routes[i], all at once, and returns when every
        agent has arrived or been snapped after a timeout.
        """
        result = MotionResult()
        if not entities or not routes or len(entities) != len(routes):
            return result

        pairs = [(e, r) for e, r in zip(entities, routes) if e is not None and r]
        if not pairs:
            return result

        lengths = [path_length_from(e.position, r) for e, r in pairs]
        max_length = max(lengths)
        if max_length <= 0:
            for entity, route in pairs:
                entity.position = np.asarray(route[-1], dtype=float).copy()
            return result

        base_speed = max(MIN_SPEED, self.base_speed)
        duration = max(MIN_DURATION, max_length / base_speed)

        agents = []
        for (entity, route), length in zip(pairs, lengths):
            points = [np.asarray(p, dtype=float) for p in route]
            agents.append(MotionAgent(
                entity=entity,
                route=points,
                path_length=length,
                speed_ratio=max(MIN_SPEED, length / duration),
                destination=points[-1].copy(),
            ))
        result.agents = agents

        self._in_flight.extend(a.entity for a in agents)
        try:
            await asyncio.gather(*(self._run_agent(a, result) for a in agents))
        finally:
            for agent in agents:
                if agent.entity in self._in_flight:
                    self._in_flight.remove(agent.entity)

        if result.timed_out:
            logger.warning("Motion timed out after %.2fs, snapping %d pieces", self.timeout, len(agents))
            for agent in agents:
                agent.entity.position = agent.destination.copy()

        result.ticks = max(a.ticks for a in agents)
        result.elapsed = max(a.elapsed for a in agents)
        return result

    async def _run_agent(self, agent: MotionAgent, result: MotionResult):
        entity = agent.entity
        agent.state = AgentState.TRAVELING

        for index, waypoint in enumerate(agent.route):
            agent.segment = index
            reached = False

            while not reached and agent.elapsed < self.timeout:
                distance = float(np.linalg.norm(waypoint - entity.position))
                if distance > self.stop_distance:
                    speed_scale = max(MIN_SPEED, self.speed_provider()) / max(MIN_SPEED, self.base_speed)
                    speed = agent.speed_ratio * speed_scale

                    force = self.compute_force(entity, waypoint)
                    if float(np.dot(force, force)) > FORCE_EPSILON:
                        direction = force / np.linalg.norm(force)
                    else:
                        direction = (waypoint - entity.position) / distance

                    dt = await self.clock.tick()
                    step = direction * speed * dt
                    # Never overshoot the waypoint
                    if np.linalg.norm(step) > distance:
                        step = waypoint - entity.position
                    entity.position = entity.position + step
                    agent.elapsed += dt
                    agent.ticks += 1
                else:
                    reached = True

            if agent.elapsed >= self.timeout and not reached:
                result.timed_out = True
                agent.state = AgentState.TIMED_OUT
                entity.position = agent.destination.copy()
                return

            entity.position = waypoint.copy()

        agent.state = AgentState.ARRIVED

    # --- Forces ---

    def compute_force(self, entity: Entity, target: np.ndarray) -> np.ndarray:
        """Attraction toward `target` plus capped repulsion. Not time-scaled."""
        attraction = self._attraction(entity.position, target)
        repulsion = self._total_repulsion(entity)

        cap = float(np.linalg.norm(attraction)) * REPULSION_CAP_RATIO
        magnitude = float(np.linalg.norm(repulsion))
        if magnitude > cap:
            repulsion = repulsion / magnitude * cap if magnitude > 0 else repulsion

        total = attraction + repulsion
        if float(np.dot(total, total)) <= FORCE_EPSILON:
            return np.zeros(3)
        return total

    def _attraction(self, position: np.ndarray, target: np.ndarray) -> np.ndarray:
        direction = target - position
        length = float(np.linalg.norm(direction))
        if length * length <= 1e-7:
            return np.zeros(3)
        return direction / length * self.attraction_strength

    def _total_repulsion(self, entity: Entity) -> np.ndarray:
        total = np.zeros(3)
        for other in self._repulsors():
            if other is entity:
                continue
            total = total + self.repulsion_from(entity, other)
        return total

    def _repulsors(self) -> List[Entity]:
        seen: Dict[int, Entity] = {}
        for e in self.obstacles + self.items + self._in_flight:
            seen.setdefault(id(e), e)
        return list(seen.values())

    def repulsion_from(self, entity: Entity, other: Entity) -> np.ndarray:
        position = entity.position
        other_bounds = other.bounds

        direction = position - other_bounds.closest_point(position)
        distance = float(np.linalg.norm(direction))
        if distance < EPSILON:
            # Inside the other's box: push away from its center instead
            direction = position - other_bounds.center
            distance = float(np.linalg.norm(direction))
            if distance < EPSILON:
                return UP * self.repulsion_strength

        safe = float(np.linalg.norm(entity.extents)) + float(np.linalg.norm(other.extents))
        radius = safe * max(1.0, self.range_multiplier)
        if distance >= radius:
            return np.zeros(3)

        influence = (1.0 - distance / radius) ** 2
        if distance < safe:
            t = (safe - distance) / max(EPSILON, safe)
            influence = influence + (1.0 - influence) * t
            influence = influence ** 1.5

        return direction / distance * (self.repulsion_strength * influence)


def snap_all(entities: Iterable[Entity], point: Sequence[float]):
    """Places every entity exactly on `point`."""
    target = np.asarray(point, dtype=float)
    for entity in entities:
        entity.position = target.copy()

