"""Container concepts demo: health-check, shutdown and memory-pressure simulator."""

__version__ = "0.1.0"
