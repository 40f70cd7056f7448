import inspect
import logging
from typing import Callable, List, Tuple

from gomoku.app.models.enums import GameOutcome

logger = logging.getLogger(__name__)


class GameEvents:
    def __init__(self):
        self._on_move_listeners: List[Callable] = []
        self._on_complete_listeners: List[Callable] = []

    def subscribe_move(self, callback: Callable):
        """callback(cell, outcome), sync or async, after each committed move."""
        self._on_move_listeners.append(callback)

    def subscribe_complete(self, callback: Callable):
        """callback(outcome) once the game is decided."""
        self._on_complete_listeners.append(callback)

    async def notify_move(self, cell: Tuple[int, int], outcome: GameOutcome):
        for listener in self._on_move_listeners:
            await self._call(listener, cell, outcome)

    async def notify_complete(self, outcome: GameOutcome):
        for listener in self._on_complete_listeners:
            await self._call(listener, outcome)

    async def _call(self, listener: Callable, *args):
        # A failing listener must not break the turn
        try:
            result = listener(*args)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Event listener error")
