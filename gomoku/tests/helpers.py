from gomoku.app.core.config import AISettings, MotionSettings, PathSettings, Settings


def fast_settings(difficulty: int = 1, think_delay: float = 0.0, **motion) -> Settings:
    """Shallow search, fixed seed and quick simulated motion for tests."""
    settings = Settings()
    settings.ai = AISettings(difficulty=difficulty, think_delay=think_delay)
    settings.path = PathSettings(seed=3, decorative_routes=2)
    settings.motion = MotionSettings(default_speed_level=4, timeout=1.0, **motion)
    return settings
