"""Input type enumeration for pipeline processing."""

from enum import Enum


class InputType(Enum):
    """Enumeration of supported landmark inputs."""
    VIDEO = "video"
    CAMERA = "camera"
    LANDMARKS = "landmarks"
