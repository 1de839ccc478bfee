"""
Pre-allocated buffer pools for reducing per-step memory allocation.

Sample grids, cell accumulators and output series are sized once when a
run is initialized and then reused by every step of that run.

Usage:
    pool = BufferPool()

    # Get a zeroed buffer sized to an element's sample grid
    cells = pool.get_zeros("p1:cells", (8, 8))

    # Get an uninitialized buffer (faster, use when you'll overwrite all values)
    points = pool.get("p1:points", (64, 3))

    # Buffers are reused on the next get() call with the same name and shape
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import NDArray


class BufferPool:
    """
    Manages pre-allocated numpy arrays for reuse across time steps.

    Each unique name gets its own buffer that persists across calls. A
    buffer is only reallocated when it is requested with a different
    shape, which does not happen while a run is stepping because element
    geometry is fixed for the run.

    Attributes:
        dtype: Data type for buffers (default: float64)
        _buffers: Dictionary mapping names to pre-allocated arrays

    Example:
        pool = BufferPool()

        # First call allocates
        buf1 = pool.get_zeros("h1:cells", (4, 4))
        buf1 += contribution

        # Second call reuses same memory (zeroed)
        buf1 = pool.get_zeros("h1:cells", (4, 4))
    """

    __slots__ = ("dtype", "_buffers", "allocations")

    def __init__(self, dtype: np.dtype | type = np.float64) -> None:
        """
        Initialize a buffer pool.

        Args:
            dtype: NumPy dtype for buffers (default: float64)
        """
        self.dtype = np.dtype(dtype)
        self._buffers: dict[str, NDArray[np.floating]] = {}
        self.allocations = 0

    def get(self, name: str, shape: tuple[int, ...]) -> NDArray[np.floating]:
        """
        Get a buffer by name (uninitialized).

        Args:
            name: Unique identifier for this buffer
            shape: Required shape

        Returns:
            Pre-allocated array (contents undefined)
        """
        buf = self._buffers.get(name)
        if buf is None or buf.shape != tuple(shape):
            buf = np.empty(shape, dtype=self.dtype)
            self._buffers[name] = buf
            self.allocations += 1
        return buf

    def get_zeros(self, name: str, shape: tuple[int, ...]) -> NDArray[np.floating]:
        """
        Get a zeroed buffer by name.

        Args:
            name: Unique identifier for this buffer
            shape: Required shape

        Returns:
            Pre-allocated array filled with zeros
        """
        buf = self.get(name, shape)
        buf.fill(0.0)
        return buf

    def get_full(self, name: str, shape: tuple[int, ...], fill_value: float) -> NDArray[np.floating]:
        """
        Get a buffer filled with a specific value.

        Args:
            name: Unique identifier for this buffer
            shape: Required shape
            fill_value: Value to fill the buffer with

        Returns:
            Pre-allocated array filled with fill_value
        """
        buf = self.get(name, shape)
        buf.fill(fill_value)
        return buf

    def clear(self) -> None:
        """Release all buffers."""
        self._buffers.clear()

    @property
    def num_buffers(self) -> int:
        """Number of allocated buffers."""
        return len(self._buffers)

    @property
    def memory_bytes(self) -> int:
        """Total memory used by all buffers in bytes."""
        return sum(buf.nbytes for buf in self._buffers.values())

    def __repr__(self) -> str:
        mb = self.memory_bytes / (1024 * 1024)
        return f"BufferPool(dtype={self.dtype}, buffers={self.num_buffers}, memory={mb:.3f}MB)"


class SeriesBuffers:
    """
    Raw per-element output series for one run.

    Each element id maps to a fixed-length float array (24 hourly slots
    for a daily run, one slot per sampled day for a yearly run). Series
    are accumulated in place while stepping and never resized mid-run.

    Example:
        series = SeriesBuffers(["p1", "p2"], length=24)
        series["p1"][12] += 0.8
        series.reset()
    """

    __slots__ = ("length", "_series")

    def __init__(self, element_ids: Iterable[str], length: int) -> None:
        self.length = length
        self._series: dict[str, NDArray[np.floating]] = {eid: np.zeros(length) for eid in element_ids}

    def __getitem__(self, element_id: str) -> NDArray[np.floating]:
        return self._series[element_id]

    def __contains__(self, element_id: object) -> bool:
        return element_id in self._series

    def __iter__(self) -> Iterator[str]:
        return iter(self._series)

    def __len__(self) -> int:
        return len(self._series)

    def items(self):
        return self._series.items()

    def reset(self) -> None:
        """Zero every series in place."""
        for arr in self._series.values():
            arr.fill(0.0)

    def snapshot(self) -> dict[str, NDArray[np.floating]]:
        """Independent copies of all series."""
        return {eid: arr.copy() for eid, arr in self._series.items()}

    def discard(self) -> None:
        """Drop all series (partial results of an aborted run)."""
        self._series.clear()
