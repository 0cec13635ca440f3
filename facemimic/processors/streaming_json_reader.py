"""Streaming JSON reader using ijson for token-based parsing."""

from typing import Iterator, Dict, Any, Optional, Union, BinaryIO
from decimal import Decimal
import ijson
from pathlib import Path


def _plain(value: Any) -> Any:
    """Convert ijson Decimals (also nested) to floats."""
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, list):
        return [_plain(v) for v in value]
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    return value


class StreamingJSONReader:
    """True streaming JSON reader for files written by DataExporter."""

    def __init__(self, input_path: Union[str, Path]) -> None:
        """
        Initialize streaming JSON reader.

        Args:
            input_path: Input file path
        """
        self.input_path: Path = Path(input_path)
        self.file: Optional[BinaryIO] = None

    def __enter__(self) -> 'StreamingJSONReader':
        if not self.input_path.exists():
            raise FileNotFoundError(f"Recording not found: {self.input_path}")
        self.file = open(self.input_path, 'rb')  # Binary mode for ijson
        return self

    def __exit__(self, exc_type: Optional[type], exc_val: Optional[Exception], exc_tb: Optional[Any]) -> None:
        if self.file:
            self.file.close()
            self.file = None

    def read_items(self) -> Iterator[Any]:
        """Yield the entries of the 'data' array one at a time."""
        if self.file is None:
            return
        self.file.seek(0)
        for item in ijson.items(self.file, 'data.item'):
            yield _plain(item)

    def get_metadata(self) -> Dict[str, Any]:
        """Read the scalar top-level keys that precede the 'data' array."""
        if self.file is None:
            return {}
        self.file.seek(0)

        metadata: Dict[str, Any] = {}
        for prefix, event, value in ijson.parse(self.file):
            if prefix == 'data' and event == 'start_array':
                break
            # Only top-level scalars
            if not prefix or '.' in prefix:
                continue
            if event in ('string', 'number', 'boolean', 'null'):
                metadata[prefix] = _plain(value)
        return metadata
