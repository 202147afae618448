"""PomoTrack: Pomodoro timer with durable progress statistics."""

__version__ = "0.1.0"
