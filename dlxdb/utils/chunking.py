"""
Chunking helpers for bulk requests
"""

from typing import Iterator, List, Sequence, TypeVar

T = TypeVar("T")


def chunk(items: Sequence[T], size: int) -> Iterator[List[T]]:
    """Yield consecutive slices of at most `size` items, preserving order"""
    if size < 1:
        raise ValueError(f"Chunk size must be at least 1, got {size}")
    for start in range(0, len(items), size):
        yield list(items[start:start + size])
