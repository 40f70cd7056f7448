import os
import tempfile
import unittest
from unittest.mock import patch

from gomoku.app.core.config import Settings, load_settings
from gomoku.app.core.events import GameEvents
from gomoku.app.models.enums import GameOutcome


class TestSettings(unittest.TestCase):
    def test_missing_file_gives_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = load_settings("does/not/exist.yaml")
        self.assertEqual(settings, Settings())
        self.assertEqual(settings.board.size, 7)
        self.assertEqual(settings.motion.base_speed, 0.25)

    def test_yaml_and_env_overrides(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "settings.yaml")
            with open(path, "w") as f:
                f.write("board:\n  size: 9\nai:\n  difficulty: 1\n  think_delay: 0.5\n")

            env = {"GOMOKU_DIFFICULTY": "3", "GOMOKU_SEED": "42", "GOMOKU_LOG_LEVEL": "debug"}
            with patch.dict(os.environ, env, clear=True):
                settings = load_settings(path)

        self.assertEqual(settings.board.size, 9)
        self.assertEqual(settings.ai.difficulty, 3)
        self.assertEqual(settings.ai.think_delay, 0.5)
        self.assertEqual(settings.path.seed, 42)
        self.assertEqual(settings.log_level, "DEBUG")

    def test_config_path_from_env(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "other.yaml")
            with open(path, "w") as f:
                f.write("motion:\n  timeout: 2.5\n")
            with patch.dict(os.environ, {"GOMOKU_CONFIG": path}, clear=True):
                settings = load_settings()
        self.assertEqual(settings.motion.timeout, 2.5)


class TestGameEvents(unittest.IsolatedAsyncioTestCase):
    async def test_failing_listener_does_not_block_others(self):
        events = GameEvents()
        seen = []

        def broken(cell, outcome):
            raise RuntimeError("boom")

        async def recorder(cell, outcome):
            seen.append((cell, outcome))

        events.subscribe_move(broken)
        events.subscribe_move(recorder)

        with self.assertLogs("gomoku.app.core.events", level="ERROR"):
            await events.notify_move((3, 3), GameOutcome.NONE)
        self.assertEqual(seen, [((3, 3), GameOutcome.NONE)])

    async def test_complete_listener(self):
        events = GameEvents()
        seen = []
        events.subscribe_complete(seen.append)
        await events.notify_complete(GameOutcome.DRAW)
        self.assertEqual(seen, [GameOutcome.DRAW])


if __name__ == '__main__':
    unittest.main()
