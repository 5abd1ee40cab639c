"""Ring arithmetic mapping wall-clock time onto rotating buckets."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class BucketRing:
    """Fixed-size ring of ``count`` buckets, each ``interval`` seconds wide, cycling every ``span`` seconds."""

    span: float
    interval: float
    count: int

    def index_at(self, timestamp: float) -> int:
        """Return the bucket covering ``timestamp`` (whole seconds since the epoch)."""
        index = int((int(timestamp) % self.span) // self.interval)
        # a span that is not a multiple of the interval leaves a short final slot
        return min(index, self.count - 1)

    def ahead(self, bucket: int, steps: int) -> int:
        return (bucket + steps) % self.count

    def trailing(self, bucket: int, length: int) -> list[int]:
        """Return ``length`` bucket indices ending at ``bucket``, newest first."""
        length = min(length, self.count)
        return [(bucket - offset) % self.count for offset in range(length)]
