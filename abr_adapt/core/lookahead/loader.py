"""Lookahead table loader."""

import os
from typing import Optional

import numpy as np

from .data import LookaheadTable


def load_lookahead(
    size_file_prefix: str,
    num_representations: Optional[int] = None,
    max_chunks: Optional[int] = None,
    lowest_first: bool = False,
) -> LookaheadTable:
    """
    Load chunk sizes for all representations.

    Size files should be named as:
    - {prefix}0, {prefix}1, ..., {prefix}{num_representations-1}

    where the suffix is the catalog index (0 is the highest bitrate). Each
    file contains one chunk size per line (in bytes).

    Args:
        size_file_prefix: Path prefix for size files
                          (e.g., './envivio/video_size_')
        num_representations: Number of representations. If None, auto-detect
                             by counting consecutive existing files.
        max_chunks: Maximum number of chunks to load. If None, load all
                    chunks present in every file.
        lowest_first: If True, suffix 0 is the lowest bitrate and the rows
                      are flipped into catalog order.

    Returns:
        LookaheadTable with sizes for all representations
    """
    if num_representations is None:
        num_representations = 0
        while os.path.exists(f"{size_file_prefix}{num_representations}"):
            num_representations += 1
        if num_representations == 0:
            raise FileNotFoundError(
                f"No chunk size files found with prefix: {size_file_prefix}"
            )

    size_lists = []
    for representation in range(num_representations):
        sizes = []
        with open(f"{size_file_prefix}{representation}", 'r') as f:
            for line in f:
                if line.strip():
                    sizes.append(int(line.split()[0]))
        size_lists.append(sizes)

    num_chunks = min(len(sizes) for sizes in size_lists)
    if max_chunks is not None:
        num_chunks = min(max_chunks, num_chunks)

    if lowest_first:
        size_lists.reverse()

    # Matrix: [num_representations, num_chunks]
    return LookaheadTable(sizes=np.array(
        [sizes[:num_chunks] for sizes in size_lists],
        dtype=np.int64,
    ))
