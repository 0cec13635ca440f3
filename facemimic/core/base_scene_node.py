"""Base scene node interface for the driven 3D character."""

from abc import ABC, abstractmethod
from typing import Iterable, Tuple


class BaseSceneNode(ABC):
    """
    Abstract base class for a positionable, rotatable, scalable scene object
    exposing named influence (morph target) slots.

    Scene engines implement this interface; the stabilizer writes to it
    once per render tick.
    """

    @abstractmethod
    def set_transform(self,
                      position: Tuple[float, float, float],
                      rotation: Tuple[float, float, float],
                      scale: Tuple[float, float, float],
                      rotation_order: str = "YXZ") -> None:
        """
        Write the node transform.

        Args:
            position: (x, y, z) in scene units
            rotation: (pitch, yaw, roll) in radians, i.e. about x, y, z
            scale: Per-axis scale
            rotation_order: Euler order string, "YXZ" = yaw, then pitch, then roll
        """
        pass

    @abstractmethod
    def set_visible(self, visible: bool) -> None:
        """Show or hide the node."""
        pass

    @abstractmethod
    def influence_names(self) -> Iterable[str]:
        """Names of the influence slots the loaded asset exposes."""
        pass

    @abstractmethod
    def set_influence(self, name: str, value: float) -> None:
        """Write one influence slot; only called for negotiated names."""
        pass

    def close(self) -> None:
        """Release engine resources."""
        pass

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit with automatic cleanup."""
        self.close()
