"""Lookahead table of per-chunk byte sizes."""

from dataclasses import dataclass
from typing import List, Optional

import numpy as np
from numpy.typing import NDArray

from ..catalog import RepresentationCatalog


BITS_IN_BYTE = 8
MILLISECONDS_IN_SECOND = 1000.0


@dataclass
class LookaheadTable:
    """Byte size of every (chunk, representation) pair, known before playback.

    Row i holds the chunk sizes of catalog index i, so row 0 belongs to the
    highest bitrate.
    """
    sizes: NDArray[np.int64]  # shape: [num_representations, num_chunks]

    def __post_init__(self):
        self.sizes = np.asarray(self.sizes, dtype=np.int64)
        if self.sizes.ndim != 2:
            raise ValueError(f"sizes must be 2-dimensional, got shape {self.sizes.shape}")

    @property
    def num_representations(self) -> int:
        """Number of representations."""
        return self.sizes.shape[0]

    @property
    def num_chunks(self) -> int:
        """Number of chunks."""
        return self.sizes.shape[1]

    def byte_size(self, chunk_index: int, representation_index: int) -> Optional[int]:
        """Size of one chunk in bytes, or None if the pair is not in the table."""
        if not 0 <= chunk_index < self.num_chunks:
            return None
        if not 0 <= representation_index < self.num_representations:
            return None
        return int(self.sizes[representation_index, chunk_index])

    def chunk_sizes(self, chunk_index: int) -> List[int]:
        """Sizes of one chunk for every representation."""
        return self.sizes[:, chunk_index].tolist()

    @classmethod
    def constant_bitrate(
        cls,
        catalog: RepresentationCatalog,
        num_chunks: int,
        chunk_duration_ms: float,
    ) -> 'LookaheadTable':
        """Table of a constant-bitrate encode: every chunk is bitrate * duration."""
        per_chunk = [
            int(round(bitrate * chunk_duration_ms / MILLISECONDS_IN_SECOND / BITS_IN_BYTE))
            for bitrate in catalog.bitrates
        ]
        sizes = np.repeat(np.array(per_chunk, dtype=np.int64)[:, None], num_chunks, axis=1)
        return cls(sizes=sizes)
