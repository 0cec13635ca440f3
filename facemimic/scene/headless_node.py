"""In-memory scene node for headless runs, recording and tests."""

from typing import Dict, Iterable, Optional, Tuple, Any

from ..core.base_scene_node import BaseSceneNode
from ..core.constants import EXPRESSION_CHANNELS, ROTATION_ORDER


class HeadlessSceneNode(BaseSceneNode):
    """
    Scene node that just records what is written to it.

    Starts hidden at the origin, like a freshly loaded model.
    """

    def __init__(self, influences: Optional[Iterable[str]] = None):
        """
        Args:
            influences: Influence slot names exposed by the "asset";
                        all expression channels when None
        """
        names = EXPRESSION_CHANNELS if influences is None else influences
        self.influences: Dict[str, float] = {name: 0.0 for name in names}
        self.position: Tuple[float, float, float] = (0.0, 0.0, 0.0)
        self.rotation: Tuple[float, float, float] = (0.0, 0.0, 0.0)
        self.scale: Tuple[float, float, float] = (1.0, 1.0, 1.0)
        self.rotation_order: str = ROTATION_ORDER
        self.visible: bool = False
        self.write_count: int = 0
        self.closed: bool = False

    def set_transform(self, position, rotation, scale, rotation_order: str = ROTATION_ORDER) -> None:
        self.position = tuple(position)
        self.rotation = tuple(rotation)
        self.scale = tuple(scale)
        self.rotation_order = rotation_order
        self.write_count += 1

    def set_visible(self, visible: bool) -> None:
        self.visible = bool(visible)

    def influence_names(self) -> Iterable[str]:
        return list(self.influences)

    def set_influence(self, name: str, value: float) -> None:
        if name in self.influences:
            self.influences[name] = float(value)

    def snapshot(self) -> Dict[str, Any]:
        """Current node state as a JSON-serializable dict."""
        return {
            "visible": self.visible,
            "position": list(self.position),
            "rotation": list(self.rotation),
            "scale": list(self.scale),
            "rotation_order": self.rotation_order,
            "influences": dict(self.influences),
        }

    def close(self) -> None:
        self.closed = True
