"""Streaming utilities for unified single/batch/stream processing."""

from typing import Any, Iterator, Callable, TypeVar, Union, List

import numpy as np
import torch

from ..core.landmarks import is_point

T = TypeVar('T')


def is_iterator(obj: Any) -> bool:
    """
    Check if object is a stream (excluding strings, containers and arrays).

    Args:
        obj: Object to check

    Returns:
        True if object is an iterator that should be treated as stream
    """
    # Exclude common non-stream iterables
    if isinstance(obj, (str, bytes, dict, list, tuple, set, torch.Tensor, np.ndarray)):
        return False

    return hasattr(obj, '__next__') or (hasattr(obj, '__iter__') and not hasattr(obj, '__len__'))


def apply_to_stream(stream: Iterator[T],
                   func: Callable[[T], Any],
                   preserve_none: bool = True) -> Iterator[Any]:
    """
    Apply function to each item in stream.

    Args:
        stream: Input stream
        func: Function to apply to each item
        preserve_none: If True, None values pass through unchanged

    Yields:
        Results of applying func to each stream item
    """
    for item in stream:
        if item is None and preserve_none:
            yield None
        else:
            yield func(item)


def dispatch_frames(input_data: Any,
                    func: Callable[[Any], T]) -> Union[T, Iterator[Any], List[Any]]:
    """
    Route a frame, a list of frames or a frame stream through func.

    - Single frame (tensor, array, sequence of points or None): func(frame)
    - Iterator/generator: lazily mapped iterator, None passes through
    - List/tuple of frames: list, None passes through
    """
    if input_data is None or isinstance(input_data, (torch.Tensor, np.ndarray)):
        return func(input_data)

    if is_iterator(input_data):
        return apply_to_stream(iter(input_data), func, preserve_none=True)

    # A sequence whose items are points is one frame, not a batch
    if is_point(next(iter(input_data), None)):
        return func(input_data)

    return [func(frame) if frame is not None else None for frame in input_data]
