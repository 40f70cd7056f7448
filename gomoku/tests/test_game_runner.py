import asyncio
import threading
import time
import unittest

from planning.core.board import Stone
from gomoku.app.services.game_runner import GameRunner
from gomoku.app.services.game_service import GameService, HeadlessPresenter
from gomoku.tests.helpers import fast_settings


class TestGameRunner(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.presenter = HeadlessPresenter()
        self.service = GameService(fast_settings(), presenter=self.presenter)
        self.runner = GameRunner(self.service)

    async def test_ai_opens_when_player_is_white(self):
        await self.runner.start_game(Stone.WHITE)
        result = await self.runner.wait_idle()

        self.assertEqual(result.cell, (3, 3))
        self.assertTrue(self.service.game.is_player_turn())

    async def test_human_move_schedules_ai_reply(self):
        await self.runner.start_game(Stone.BLACK)
        self.assertFalse(self.runner.is_busy())

        await self.runner.submit_human_move(3, 3)
        reply = await self.runner.wait_idle()

        self.assertIsNotNone(reply.cell)
        self.assertEqual(len(self.service.game.history), 2)
        self.assertTrue(self.service.game.is_player_turn())

    async def test_one_move_in_flight(self):
        runner = GameRunner(self.service, think_delay=10.0)
        await runner.start_game(Stone.WHITE)
        self.assertTrue(runner.is_busy())

        with self.assertRaises(ValueError):
            await runner.submit_human_move(3, 3)

        await runner.stop()
        self.assertFalse(runner.is_busy())
        self.assertEqual(self.service.game.history, [])

    async def test_restart_cancels_pending_ai(self):
        runner = GameRunner(self.service, think_delay=10.0)
        await runner.start_game(Stone.WHITE)
        await runner.start_game(Stone.BLACK)

        self.assertFalse(runner.is_busy())
        self.assertTrue(self.service.game.board.is_empty(3, 3))
        self.assertTrue(self.service.game.is_player_turn())

    async def test_stop_waits_for_search_thread(self):
        """
        Scenario: planning is slow and the game is restarted meanwhile.
        stop() returns only after the worker left the shared grid.
        """
        started = threading.Event()
        finished = threading.Event()
        plan = self.service.plan

        def slow_plan(cell):
            started.set()
            time.sleep(0.3)
            try:
                return plan(cell)
            finally:
                finished.set()

        self.service.plan = slow_plan
        await self.runner.start_game(Stone.WHITE)
        while not started.is_set():
            await asyncio.sleep(0.01)

        await self.runner.stop()
        self.assertTrue(finished.is_set())

        await self.runner.start_game(Stone.BLACK)
        self.assertFalse(self.runner.is_busy())
        self.assertTrue(self.service.game.board.is_empty(3, 3))
        self.assertEqual(self.presenter.live, [])

    async def test_stop_during_motion_discards_move(self):
        """
        Scenario: real-time ticks keep the human move animating.
        Stopping mid-flight leaves no stone and no pieces behind.
        """
        service = GameService(
            fast_settings(realtime=True, tick_duration=0.05), presenter=self.presenter
        )
        runner = GameRunner(service)
        await runner.start_game(Stone.BLACK)

        move = asyncio.create_task(runner.submit_human_move(3, 3))
        await asyncio.sleep(0.02)
        self.assertTrue(self.presenter.live)

        await runner.stop()
        with self.assertRaises(asyncio.CancelledError):
            await move

        self.assertTrue(service.game.board.is_empty(3, 3))
        self.assertEqual(self.presenter.live, [])
        self.assertEqual(service.simulator.in_flight, [])


if __name__ == '__main__':
    unittest.main()
