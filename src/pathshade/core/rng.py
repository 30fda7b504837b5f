"""Caller-owned uniform random streams for Monte Carlo sampling.

Shading functions never reach for a global random source. Each path being
traced owns one *stream* of a ``RandomStreams`` object and passes it, together
with the stream index, to every sampling call. Streams are independent blocks
of float32 draws in [0, 1) produced on the host by ``numpy.random.Generator``
and consumed on the device through a per-stream cursor, so a parallel kernel
where iteration ``i`` uses stream ``i`` needs no synchronization.

A stream holds ``length`` draws. Host entry points call ``reserve()`` before
each launch, which gives fresh draws to every stream that could run out, so
host-side sampling never repeats a draw. Kernels written by hand must size
``length`` for one launch and call ``reserve()`` or ``refill()`` in between;
a stream read past its end inside a kernel starts over from its first draw.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathshade.core.rng import RandomStreams
    >>> rng = RandomStreams(count=1024, seed=7)
    >>> # Use within a Taichi kernel (one stream per parallel iteration):
    >>> # for i in range(1024):
    >>> #     u = rng.next01(i)
"""

from collections.abc import Sequence

import numpy as np
import taichi as ti

# Number of draws held per stream unless the caller asks otherwise
DEFAULT_STREAM_LENGTH = 64


@ti.data_oriented
class RandomStreams:
    """A set of independent uniform random streams.

    Attributes:
        count: Number of streams.
        length: Number of draws held per stream.
    """

    def __init__(
        self,
        count: int,
        length: int = DEFAULT_STREAM_LENGTH,
        seed: int | None = None,
    ) -> None:
        """Allocate the streams and fill them with fresh draws.

        Args:
            count: Number of streams (one per concurrently traced path).
            length: Draws per stream. Must cover the draws a single launch
                consumes from one stream.
            seed: Seed for the host-side generator. None seeds from the OS.

        Raises:
            ValueError: If count or length is not positive.
        """
        if count <= 0:
            raise ValueError(f"Stream count must be positive, got {count}")
        if length <= 0:
            raise ValueError(f"Stream length must be positive, got {length}")

        self.count = count
        self.length = length
        self._generator = np.random.default_rng(seed)
        self._values = ti.field(dtype=ti.f32, shape=(count, length))
        self._cursors = ti.field(dtype=ti.i32, shape=count)
        self.refill()

    def refill(self) -> None:
        """Replace every stream with fresh draws and rewind all cursors."""
        draws = self._generator.random((self.count, self.length), dtype=np.float32)
        self._values.from_numpy(draws)
        self._cursors.fill(0)

    def load(self, stream: int, values: Sequence[float]) -> None:
        """Script the next draws of one stream.

        The stream is rewound so that its next draws are exactly ``values``,
        in order. Useful for forcing a particular sampling branch.

        Args:
            stream: The stream index.
            values: Draws to place at the head of the stream, each in [0, 1).

        Raises:
            IndexError: If the stream index is out of range.
            ValueError: If there are more values than the stream holds, or a
                value lies outside [0, 1).
        """
        self._check_stream(stream)
        if len(values) > self.length:
            raise ValueError(
                f"Cannot load {len(values)} draws into a stream of length {self.length}"
            )
        for i, value in enumerate(values):
            if not 0.0 <= value < 1.0:
                raise ValueError(f"Draw {i} = {value} is outside [0, 1)")
            self._values[stream, i] = value
        self._cursors[stream] = 0

    def reserve(self, streams: Sequence[int], draws: int) -> None:
        """Make sure each listed stream has at least ``draws`` unused draws.

        Streams whose cursor would run past the end get a fresh block from the
        generator and are rewound. Other streams are left as they are, so
        draws scripted with ``load()`` survive.

        Args:
            streams: The stream indices about to be used.
            draws: The most draws one launch takes from a stream.

        Raises:
            IndexError: If a stream index is out of range.
            ValueError: If draws exceeds the stream length.
        """
        if draws > self.length:
            raise ValueError(
                f"A launch needs {draws} draws per stream but streams hold {self.length}"
            )
        indices = np.asarray(streams, dtype=np.int64).reshape(-1)
        if len(indices) == 0:
            return
        if indices.min() < 0 or indices.max() >= self.count:
            raise IndexError(f"Stream indices must lie in [0, {self.count})")

        cursors = self._cursors.to_numpy()
        exhausted = np.unique(indices[cursors[indices] + draws > self.length])
        if len(exhausted) == 0:
            return
        values = self._values.to_numpy()
        values[exhausted] = self._generator.random(
            (len(exhausted), self.length), dtype=np.float32
        )
        cursors[exhausted] = 0
        self._values.from_numpy(values)
        self._cursors.from_numpy(cursors)

    def consumed(self, stream: int) -> int:
        """Number of draws taken from a stream since it was last rewound."""
        self._check_stream(stream)
        return int(self._cursors[stream])

    def to_numpy(self) -> np.ndarray:
        """Copy of the draws currently held, shape (count, length)."""
        return self._values.to_numpy()

    def _check_stream(self, stream: int) -> None:
        if not 0 <= stream < self.count:
            raise IndexError(f"Stream {stream} is out of range [0, {self.count})")

    @ti.func
    def next01(self, stream: ti.i32) -> ti.f32:
        """Take the next uniform draw in [0, 1) from a stream.

        Args:
            stream: The stream index owned by the calling path.

        Returns:
            The draw. Advances the stream's cursor by one.
        """
        position = self._cursors[stream]
        self._cursors[stream] = position + 1
        return self._values[stream, position % self.length]
