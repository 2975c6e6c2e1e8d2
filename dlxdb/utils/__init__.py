from .chunking import chunk

__all__ = ["chunk"]
