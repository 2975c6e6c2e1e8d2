from .base import ContainerStore
from .memory import MemoryStore

__all__ = ["ContainerStore", "MemoryStore"]
