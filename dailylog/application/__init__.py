"""Application layer modules."""

from .engine import LogEngine
from .config import Config

__all__ = ["LogEngine", "Config"]
