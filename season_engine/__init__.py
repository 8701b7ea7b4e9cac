"""Season turn engine for the Grand Prix team-management game."""

__version__ = "0.4.0"
