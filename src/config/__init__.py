"""Configuration management for the tablescope grid browser."""

from .grid import GridConfig
from .settings import Settings

__all__ = ["Settings", "GridConfig"]
