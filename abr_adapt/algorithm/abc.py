"""Abstract base class for rate-adaptation algorithms.

Every algorithm answers one question: given the current telemetry, which
catalog index should be fetched next, and why. The shared behavior lives in
AbstractAlgorithm.select:

- no data available: lowest index, reason INITIAL;
- degenerate last chunk (zero duration or zero bytes): adaptation skipped,
  previous decision kept;
- compute_index returning None: recomputation suppressed (edge trigger),
  previous decision kept;
- otherwise the computed index, with the reason decided by the algorithm's
  policy (ADAPTIVE_ON_RECOMPUTE).
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from ..core.catalog import RepresentationCatalog
from ..core.telemetry import PlaybackTelemetry


class Reason(Enum):
    """Why a representation was selected."""

    INITIAL = 'initial'  # no adaptation history yet
    ADAPTIVE = 'adaptive'  # recomputed from telemetry


@dataclass(frozen=True)
class Decision:
    """Selected catalog index and the reason for it."""
    index: int
    reason: Reason


class AbstractAlgorithm(ABC):
    """Abstract base class for any rate-adaptation algorithm.

    Subclasses implement compute_index and, if they keep state, reset_state.
    Algorithm state is owned by the instance and never shared.

    Attributes:
        ADAPTIVE_ON_RECOMPUTE: If True, every recomputation reports ADAPTIVE.
            If False, only a change of index does; an unchanged index keeps
            the previous reason.
        catalog: Representation ladder, highest bitrate first.
        telemetry: Telemetry model fed by the host.
        config: Algorithm configuration, or None for algorithms without one.
    """

    ADAPTIVE_ON_RECOMPUTE: bool = True

    def __init__(
        self,
        catalog: RepresentationCatalog,
        telemetry: PlaybackTelemetry,
        config: Optional[Any] = None,
    ):
        self.catalog = catalog
        self.telemetry = telemetry
        self.config = config
        self.reset()

    @property
    def decision(self) -> Decision:
        """The most recent decision."""
        return self._decision

    def reset(self) -> None:
        """Restore the state of a freshly constructed algorithm."""
        self._decision = Decision(self.catalog.lowest_index, Reason.INITIAL)
        self._last_chunk_index: Optional[int] = None
        self.reset_state()

    def reset_state(self) -> None:
        """Reset algorithm-specific state. Override if the algorithm keeps any."""
        pass

    def chunk_changed(self) -> bool:
        """Edge trigger: True once per newly completed chunk index."""
        chunk_index = self.telemetry.last_chunk_index
        if chunk_index == self._last_chunk_index:
            return False
        self._last_chunk_index = chunk_index
        return True

    def select(self, buffered_duration_ms: Optional[float] = None) -> Decision:
        """Decide which representation to fetch next.

        Args:
            buffered_duration_ms: Current buffer occupancy in ms. If None, the
                telemetry's last reported buffer level is used.

        Returns:
            The decision; also kept as `decision`.
        """
        with self.telemetry.lock:
            if buffered_duration_ms is not None:
                self.telemetry.update_buffer(buffered_duration_ms)

            if not self.telemetry.data_available():
                self._decision = Decision(self.catalog.lowest_index, Reason.INITIAL)
                return self._decision

            last_chunk = self.telemetry.last_chunk
            if last_chunk.is_degenerate:
                logging.debug(f"Skipping adaptation for degenerate chunk {last_chunk.chunk_index}")
                return self._decision

            index = self.compute_index(self.telemetry.buffered_duration_ms)
            if index is None:
                return self._decision
            self.catalog.check_index(index)

            previous = self._decision
            if self.ADAPTIVE_ON_RECOMPUTE or index != previous.index:
                reason = Reason.ADAPTIVE
            else:
                reason = previous.reason
            self._decision = Decision(index, reason)
            logging.debug(
                f"{type(self).__name__} selected index {index} "
                f"({self.catalog.bitrate(index)} bps, {reason.value})"
            )
            return self._decision

    @abstractmethod
    def compute_index(self, buffered_duration_ms: float) -> Optional[int]:
        """Compute the next catalog index from the telemetry.

        Called with the telemetry lock held, only when data is available and
        the last chunk is not degenerate.

        Args:
            buffered_duration_ms: Current buffer occupancy in ms.

        Returns:
            Catalog index, or None to keep the previous decision.
        """
        pass
