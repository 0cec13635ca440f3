"""Capability negotiation between expression channels and a node's influence slots."""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from ..core.base_scene_node import BaseSceneNode
from ..core.constants import EXPRESSION_CHANNELS, REQUIRED_MORPH_TARGETS
from ..core.types import ExpressionMap

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InfluenceBinding:
    """
    Intersection of the channels the mapper produces and the slots an asset exposes.

    Computed once when the asset is loaded so the per-frame write loop
    never has to look up or skip unknown slots.
    """

    bound: Tuple[str, ...]
    unbound: Tuple[str, ...]
    missing_required: Tuple[str, ...]

    @classmethod
    def negotiate(cls,
                  node: BaseSceneNode,
                  channels: Iterable[str] = EXPRESSION_CHANNELS,
                  required: Optional[Iterable[str]] = REQUIRED_MORPH_TARGETS) -> "InfluenceBinding":
        """
        Compute the binding for a node.

        Args:
            node: Scene node whose influence slots are inspected
            channels: Channels that can be produced, in write order
            required: Channels an asset is expected to expose; missing ones
                      are reported but are not an error

        Returns:
            InfluenceBinding
        """
        slots = set(node.influence_names())
        channels = tuple(channels)
        bound = tuple(name for name in channels if name in slots)
        unbound = tuple(name for name in channels if name not in slots)
        missing = tuple(name for name in (required or ()) if name not in slots)

        if missing:
            logger.warning("Scene asset is missing required influence slots: %s", ", ".join(missing))
        logger.info("Bound %d of %d expression channels to influence slots", len(bound), len(channels))
        return cls(bound=bound, unbound=unbound, missing_required=missing)

    @property
    def is_complete(self) -> bool:
        """True when every required slot is present."""
        return not self.missing_required

    def write(self, node: BaseSceneNode, expressions: ExpressionMap) -> None:
        """Write the bound channels' values into the node."""
        for name in self.bound:
            node.set_influence(name, expressions.get(name, 0.0))
