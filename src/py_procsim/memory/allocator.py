"""Memory allocator — contiguous first-fit allocation with coalescing.

Physical memory is a single flat address space ``[0, total)``.  Each
process asks for one contiguous **block** of a fixed size.  The
allocator tracks two things:

- A **free list** of ``(start, size)`` holes, kept sorted by start.
- An **allocation table** mapping each PID to the block it owns.

First-fit:
    To allocate, scan the free list in address order and take the
    first hole that is large enough.  An exact fit removes the hole;
    a larger hole is shrunk from the front so the remainder stays free.

Coalescing:
    When a block is released it is put back into the free list and
    merged with any neighbour that touches it.  After every release no
    two holes are adjacent — otherwise the allocator would report
    "fragmentation" that is not really there.

Unlike a paged memory manager, variable-size blocks suffer from
**external fragmentation**: the total free space may be enough for a
request while no single hole is.  ``fragmentation()`` measures exactly
that.

Invariant (checked by the tests after every call)::

    free_space + sum(allocation sizes) == total
"""

from bisect import insort
from dataclasses import dataclass


@dataclass(frozen=True, order=True)
class Block:
    """A contiguous region of memory.

    Attributes:
        start: Offset of the first unit of the region.
        size: Number of units in the region.

    """

    start: int
    size: int

    @property
    def end(self) -> int:
        """Return the offset one past the last unit of the region."""
        return self.start + self.size


class MemoryAllocator:
    """Manage a fixed address space with a first-fit free list."""

    def __init__(self, *, total: int) -> None:
        """Create an allocator whose whole address space is free.

        Args:
            total: Capacity of the address space in memory units.

        Raises:
            ValueError: If total is not positive.

        """
        if total <= 0:
            msg = f"Total memory must be positive, got {total}"
            raise ValueError(msg)
        self._total = total
        self._free: list[Block] = [Block(0, total)]
        self._allocations: dict[int, Block] = {}

    @property
    def total(self) -> int:
        """Return the capacity of the address space."""
        return self._total

    @property
    def free_blocks(self) -> list[Block]:
        """Return the free list, sorted by start offset."""
        return list(self._free)

    @property
    def allocations(self) -> dict[int, Block]:
        """Return a copy of the PID → block allocation table."""
        return dict(self._allocations)

    def block_for(self, pid: int) -> Block | None:
        """Return the block owned by *pid*, or None."""
        return self._allocations.get(pid)

    def free_space(self) -> int:
        """Return the sum of all free hole sizes."""
        return sum(block.size for block in self._free)

    def used_space(self) -> int:
        """Return the amount of memory currently allocated."""
        return self._total - self.free_space()

    def largest_free(self) -> int:
        """Return the size of the largest free hole (0 when full)."""
        return max((block.size for block in self._free), default=0)

    def fragmentation(self) -> float:
        """Return external fragmentation as a percentage.

        This is the share of free memory that is *not* part of the
        largest hole — memory that exists but cannot serve one big
        request.  Defined as 0 when nothing is free.
        """
        total_free = self.free_space()
        if total_free == 0:
            return 0.0
        return (total_free - self.largest_free()) / total_free * 100

    def allocate(self, pid: int, size: int) -> Block | None:
        """Allocate a block of *size* units for *pid* using first-fit.

        Args:
            pid: The process requesting memory.
            size: Number of contiguous units requested.

        Returns:
            The allocated block, or None if no hole is large enough.
            On None nothing has changed.

        Raises:
            ValueError: If size is not positive or pid already owns a block.

        """
        if size <= 0:
            msg = f"Allocation size must be positive, got {size}"
            raise ValueError(msg)
        if pid in self._allocations:
            msg = f"PID {pid} already owns {self._allocations[pid]}"
            raise ValueError(msg)

        for index, hole in enumerate(self._free):
            if hole.size < size:
                continue
            block = Block(hole.start, size)
            if hole.size == size:
                del self._free[index]
            else:
                self._free[index] = Block(hole.start + size, hole.size - size)
            self._allocations[pid] = block
            return block
        return None

    def free(self, pid: int) -> Block | None:
        """Release the block owned by *pid* and coalesce the free list.

        Freeing an unknown PID is a no-op.

        Args:
            pid: The process whose memory to release.

        Returns:
            The released block, or None if the PID owned nothing.

        """
        block = self._allocations.pop(pid, None)
        if block is not None:
            self._release(block)
        return block

    def reset(self) -> None:
        """Drop every allocation and make the whole space one free hole."""
        self._allocations.clear()
        self._free = [Block(0, self._total)]

    def _release(self, block: Block) -> None:
        """Insert *block* into the free list and merge adjacent holes.

        The list is sorted before the merge pass, so a single sweep that
        folds each hole into its left neighbour when they touch restores
        the no-adjacent-holes invariant across the whole list.
        """
        insort(self._free, block)
        merged: list[Block] = []
        for hole in self._free:
            if merged and merged[-1].end == hole.start:
                merged[-1] = Block(merged[-1].start, merged[-1].size + hole.size)
            else:
                merged.append(hole)
        self._free = merged

    def __repr__(self) -> str:
        """Return a debug-friendly representation."""
        free = [(b.start, b.size) for b in self._free]
        used = {pid: (b.start, b.size) for pid, b in self._allocations.items()}
        return f"MemoryAllocator(total={self._total}, free={free}, allocations={used})"
