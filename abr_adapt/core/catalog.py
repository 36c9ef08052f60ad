"""Representation catalog and the shared rate-to-index mapper.

The catalog is ordered by strictly decreasing bitrate: index 0 is the
highest-bitrate representation, the last index is the lowest. Every
algorithm maps its target rate onto the ladder through this class.
"""

from dataclasses import dataclass
from typing import Any, Hashable, Iterable, List, Optional, Sequence


# Bitrate units
BITS_IN_KBIT = 1000.0


@dataclass(frozen=True)
class Representation:
    """One encoded bitrate variant of the content.

    Attributes:
        bitrate: Encoded bitrate in bits per second.
        id: Opaque identifier owned by the host (e.g. a manifest track id).
    """
    bitrate: int
    id: Optional[Hashable] = None


class RepresentationCatalog:
    """Read-only ladder of representations, highest bitrate first.

    Raises:
        ValueError: If the ladder is empty or not strictly decreasing.
            Both indicate a misconfigured session.
    """

    def __init__(self, representations: Sequence[Representation]):
        if len(representations) == 0:
            raise ValueError("Representation catalog must not be empty")
        for upper, lower in zip(representations, representations[1:]):
            if not upper.bitrate > lower.bitrate:
                raise ValueError(
                    f"Representation catalog must be ordered by strictly decreasing bitrate, "
                    f"got {upper.bitrate} before {lower.bitrate}"
                )
        self._representations: List[Representation] = list(representations)

    @classmethod
    def from_bitrates(cls, bitrates: Iterable[float], ids: Optional[Iterable[Any]] = None) -> 'RepresentationCatalog':
        """Build a catalog from bitrates in bps, given in any order."""
        bitrates = [int(b) for b in bitrates]
        ids = list(ids) if ids is not None else [None] * len(bitrates)
        if len(ids) != len(bitrates):
            raise ValueError(
                f"ids length ({len(ids)}) must match bitrates length ({len(bitrates)})"
            )
        pairs = sorted(zip(bitrates, ids), key=lambda pair: pair[0], reverse=True)
        return cls([Representation(bitrate=b, id=i) for b, i in pairs])

    @classmethod
    def from_kbps(cls, levels_kbps: Iterable[float]) -> 'RepresentationCatalog':
        """Build a catalog from bitrate levels in kbps, given in any order."""
        return cls.from_bitrates(round(level * BITS_IN_KBIT) for level in levels_kbps)

    def __len__(self) -> int:
        return len(self._representations)

    def __getitem__(self, index: int) -> Representation:
        self.check_index(index)
        return self._representations[index]

    def __iter__(self):
        return iter(self._representations)

    def __repr__(self) -> str:
        return f"RepresentationCatalog({self.bitrates})"

    @property
    def bitrates(self) -> List[int]:
        """All bitrates in bps, highest first."""
        return [r.bitrate for r in self._representations]

    @property
    def lowest_index(self) -> int:
        return len(self._representations) - 1

    @property
    def highest_index(self) -> int:
        return 0

    @property
    def lowest_bitrate(self) -> int:
        return self._representations[-1].bitrate

    @property
    def highest_bitrate(self) -> int:
        return self._representations[0].bitrate

    def check_index(self, index: int) -> None:
        """Raise IndexError if `index` does not name a representation."""
        if not 0 <= index < len(self._representations):
            raise IndexError(
                f"Representation index {index} out of range [0, {len(self._representations) - 1}]"
            )

    def bitrate(self, index: int) -> int:
        """Bitrate in bps of the representation at `index`."""
        return self[index].bitrate

    def index_of(self, bitrate: float) -> int:
        """Index of the representation with exactly this bitrate.

        Raises:
            ValueError: If no representation has that bitrate.
        """
        for i, representation in enumerate(self._representations):
            if representation.bitrate == bitrate:
                return i
        raise ValueError(f"No representation exists with bitrate {bitrate}")

    def best_index_below(self, target_rate: float) -> int:
        """Index of the highest bitrate strictly below `target_rate`.

        Falls back to the lowest-bitrate representation when no bitrate is
        below the target.
        """
        for i, representation in enumerate(self._representations):
            if representation.bitrate < target_rate:
                return i
        return self.lowest_index

    def nearest_index_at_or_above(self, target_rate: float) -> int:
        """Index of the lowest bitrate at or above `target_rate`.

        Scans from the bottom of the ladder; returns the highest-bitrate
        representation when the target exceeds every bitrate.
        """
        for i in range(self.lowest_index, -1, -1):
            if self._representations[i].bitrate >= target_rate:
                return i
        return self.highest_index
