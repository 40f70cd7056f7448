"""
Game Runner - Turn Scheduling

Drives a GameService on the event loop: human input is played as a task,
and the AI reply is scheduled after a short think delay. Only one move task
exists at a time; starting a new game cancels whatever is in flight.
"""

import asyncio
import logging
from typing import Optional

from planning.core.board import Stone
from planning.core.selector import SearchCancelled

from gomoku.app.models.enums import Difficulty
from gomoku.app.schemas.game_schema import MoveResult
from gomoku.app.services.game_service import GameService

logger = logging.getLogger(__name__)


class GameRunner:
    def __init__(self, service: GameService, think_delay: Optional[float] = None):
        self.service = service
        self.think_delay = service.settings.ai.think_delay if think_delay is None else think_delay
        self.current_task: Optional[asyncio.Task] = None

    def is_busy(self) -> bool:
        return self.current_task is not None and not self.current_task.done()

    async def start_game(self, player_color: Stone = Stone.BLACK, difficulty: Optional[Difficulty] = None):
        """Stops everything in flight, resets the table, lets the AI open if it plays Black."""
        await self.stop()
        self.service.start_game(player_color, difficulty)
        if self.service.is_ai_turn():
            self._schedule_ai()

    async def submit_human_move(self, x: int, y: int) -> MoveResult:
        """
        Plays the human move and schedules the AI reply. Raises ValueError while
        another move is still running or when the move is rejected.
        """
        if self.is_busy():
            raise ValueError("A move is already in progress")

        self.current_task = asyncio.create_task(self.service.play_human_move(x, y))
        result = await self.current_task

        if self.service.is_ai_turn():
            self._schedule_ai()
        return result

    def _schedule_ai(self):
        self.current_task = asyncio.create_task(self._ai_turn())

    async def _ai_turn(self) -> Optional[MoveResult]:
        try:
            # Pacing so the AI does not answer instantly
            await asyncio.sleep(self.think_delay)
            return await self.service.play_ai_move()
        except SearchCancelled:
            logger.info("AI search cancelled; result discarded")
        except ValueError as e:
            logger.error("AI turn rejected: %s", e)
        return None

    async def wait_idle(self) -> Optional[MoveResult]:
        """Waits for the move in flight, if any, and returns its result."""
        if self.current_task is None:
            return None
        return await self.current_task

    async def stop(self):
        """
        Cancels the move in flight: the search at its next node, motion at its
        next tick. Returns only once the search thread has finished.
        """
        task = self.current_task
        self.current_task = None
        if task is not None and not task.done():
            self.service.stop_all_movement()
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                logger.info("Stopped the move in flight")

        await self.service.stop_search()
