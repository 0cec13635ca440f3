"""Scene-side adapters: influence binding and the headless node."""

from .binding import InfluenceBinding
from .headless_node import HeadlessSceneNode

__all__ = [
    "HeadlessSceneNode",
    "InfluenceBinding",
]
