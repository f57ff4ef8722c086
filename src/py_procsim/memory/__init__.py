"""Memory subsystem — contiguous first-fit allocation.

Re-exports public symbols so callers can write::

    from py_procsim.memory import Block, MemoryAllocator
"""

from py_procsim.memory.allocator import Block, MemoryAllocator

__all__ = [
    "Block",
    "MemoryAllocator",
]
