"""Incremental JSON recording of landmark frames and stabilized output."""

from typing import Dict, Any, Optional, TextIO
import json
import logging
from pathlib import Path

import numpy as np
import torch

logger = logging.getLogger(__name__)


def to_serializable(item: Any) -> Any:
    """Convert tensors, arrays and objects with to_dict() into JSON-ready values."""
    if item is None:
        return None
    if isinstance(item, torch.Tensor):
        return item.detach().cpu().tolist()
    if isinstance(item, np.ndarray):
        return item.tolist()
    if hasattr(item, "to_dict"):
        return to_serializable(item.to_dict())
    if isinstance(item, dict):
        return {key: to_serializable(value) for key, value in item.items()}
    if isinstance(item, (list, tuple)):
        return [to_serializable(value) for value in item]
    return item


class DataExporter:
    """
    Streams a `{metadata..., "frame_count": n, "data": [...]}` JSON document.

    Items are written as they arrive, so recordings of any length never
    have to be held in memory. `frame_count` is patched in on close.
    """

    def __init__(self, output_path: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        """Initialize data exporter.

        Args:
            output_path: Output file path
            metadata: Optional metadata (fps, width, height, kind, ...)
        """
        self.output_path: Path = Path(output_path)
        self.file: Optional[TextIO] = None
        self.metadata: Dict[str, Any] = metadata or {}
        self.first_item: bool = True
        self.frame_count: int = 0
        self.frame_count_position: int = 0

    def __enter__(self) -> 'DataExporter':
        self.open()
        return self

    def __exit__(self, exc_type: Optional[type], exc_val: Optional[Exception], exc_tb: Optional[Any]) -> None:
        self.close()

    def open(self) -> None:
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self.file = open(self.output_path, 'w', encoding='utf-8')
        self.file.write('{\n')

        for key, value in self.metadata.items():
            if key not in ('frame_count', 'data'):
                self.file.write(f'  {json.dumps(key)}: {json.dumps(to_serializable(value))},\n')

        # Fixed-width placeholder, overwritten in place on close
        self.frame_count_position = self.file.tell()
        self.file.write('  "frame_count": null' + ' ' * 16 + ',\n')

        self.file.write('  "data": [\n')
        logger.debug("Recording to %s", self.output_path)

    def close(self) -> None:
        if self.file:
            self.file.write('\n  ]\n}\n')
            self._update_frame_count()
            self.file.close()
            self.file = None
            logger.info("Wrote %d frames to %s", self.frame_count, self.output_path)

    def write_item(self, item: Any) -> None:
        """Write a single item (None marks a frame without a face)."""
        if self.file is None:
            raise RuntimeError(f"DataExporter for {self.output_path} is not open")

        if not self.first_item:
            self.file.write(',\n')
        else:
            self.first_item = False

        item_json: str = json.dumps(to_serializable(item))
        self.file.write('    ' + item_json)
        self.frame_count += 1
        self.file.flush()

    def _update_frame_count(self) -> None:
        """Overwrite the frame_count placeholder with the actual count."""
        current_pos: int = self.file.tell()
        self.file.seek(self.frame_count_position)
        self.file.write(f'  "frame_count": {self.frame_count}'.ljust(len('  "frame_count": null') + 16))
        self.file.seek(current_pos)
