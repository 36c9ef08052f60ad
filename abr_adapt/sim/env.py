"""Gymnasium environment that plays the host of an AdaptationSession.

Each step downloads one chunk in the StreamingSimulator and reports the
download to the session through the same telemetry calls a player makes,
on a simulated clock. The agent (usually the session's own algorithm, see
abr_adapt.replay) picks the next catalog index from the observation.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

import gymnasium as gym
import numpy as np
from gymnasium import spaces

from ..core.telemetry import ChunkDescriptor
from ..session import AdaptationSession
from .simulator import StreamingSimulator


# Reward parameters
REBUF_PENALTY = 4.3  # 1 sec rebuffering penalty
SMOOTH_PENALTY = 1.0  # penalty for bitrate changes

B_IN_MB = 1000000.0
MILLISECONDS_IN_SECOND = 1000.0


class SimulatedClock:
    """Manually advanced clock in milliseconds."""

    def __init__(self, start_ms: float = 0.0):
        self.now_ms = start_ms

    def __call__(self) -> float:
        return self.now_ms

    def advance(self, duration_ms: float) -> None:
        if duration_ms < 0:
            raise ValueError(f"Cannot advance the clock by {duration_ms} ms")
        self.now_ms += duration_ms

    def reset(self, start_ms: float = 0.0) -> None:
        self.now_ms = start_ms


@dataclass
class Observation:
    """Raw observation of one environment step.

    Attributes:
        delay_ms: Download delay.
        sleep_time_ms: Sleep time while the buffer was full.
        buffer_ms: Buffer level after the step.
        rebuffer_ms: Stall time during the download.
        chunk_index: Index of the downloaded chunk.
        chunk_size: Downloaded chunk size in bytes.
        next_chunk_sizes: Sizes of the next chunk at each catalog index.
        remaining_chunks: Number of chunks left.
        end_of_video: Whether the downloaded chunk was the last.
    """
    delay_ms: float
    sleep_time_ms: float
    buffer_ms: float
    rebuffer_ms: float
    chunk_index: int
    chunk_size: int
    next_chunk_sizes: np.ndarray
    remaining_chunks: int
    end_of_video: bool


class StreamingEnv(gym.Env):
    """Gymnasium environment for trace-driven adaptive streaming.

    Action Space:
        Discrete(len(catalog)) - catalog index, 0 is the highest bitrate

    Reward:
        bitrate_mbps - rebuf_penalty * rebuffer_s - smooth_penalty * |bitrate_mbps change|

    Args:
        simulator: Streaming simulator; its lookahead rows must match the
            session catalog.
        session: Session receiving the telemetry of every download.
        clock: Simulated clock, also the clock of the session telemetry.
        rebuf_penalty: Penalty coefficient for rebuffering.
        smooth_penalty: Penalty coefficient for bitrate changes.
    """

    metadata = {"render_modes": []}

    def __init__(
        self,
        simulator: StreamingSimulator,
        session: AdaptationSession,
        clock: SimulatedClock,
        rebuf_penalty: float = REBUF_PENALTY,
        smooth_penalty: float = SMOOTH_PENALTY,
    ):
        super().__init__()
        if simulator.num_representations != len(session.catalog):
            raise ValueError(
                f"Lookahead representations ({simulator.num_representations}) must match "
                f"catalog length ({len(session.catalog)})"
            )
        if session.telemetry.clock is not clock:
            raise ValueError("Session telemetry must run on the environment clock")

        self.simulator = simulator
        self.session = session
        self.clock = clock
        self.rebuf_penalty = rebuf_penalty
        self.smooth_penalty = smooth_penalty

        self.last_index = self.catalog.lowest_index

        # Observation is a dataclass, not a gym space
        self.observation_space = None
        self.action_space = spaces.Discrete(len(self.catalog))

    @property
    def catalog(self):
        return self.session.catalog

    def _bitrate_mbps(self, index: int) -> float:
        return self.catalog.bitrate(index) / B_IN_MB

    def reset(
        self,
        *,
        seed: Optional[int] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> Tuple[Observation, Dict[str, Any]]:
        """Rewind the simulator and start a fresh session.

        This method does NOT download the first chunk; call step(action)
        after reset().

        Args:
            seed: Random seed for reproducibility
            options: Additional options:
                - reset_time_stamp (bool): Whether to rewind the clock to 0.
                  Default is True.

        Returns:
            Tuple of (observation, info_dict)
        """
        super().reset(seed=seed)
        options = options or {}
        if options.get('reset_time_stamp', True):
            self.clock.reset()

        self.simulator.reset()
        self.session.clear()
        self.session.on_manifest_duration(self.simulator.num_chunks * self.simulator.chunk_duration_ms)
        self.session.on_buffer_update(0.0)
        self.last_index = self.catalog.lowest_index

        observation = Observation(
            delay_ms=0.0,
            sleep_time_ms=0.0,
            buffer_ms=0.0,
            rebuffer_ms=0.0,
            chunk_index=-1,
            chunk_size=0,
            next_chunk_sizes=np.array(self.simulator.lookahead.chunk_sizes(0)),
            remaining_chunks=self.simulator.num_chunks,
            end_of_video=False,
        )
        return observation, {"time_stamp": self.clock()}

    def step(
        self, action: Union[int, np.ndarray]
    ) -> Tuple[Observation, float, bool, bool, Dict[str, Any]]:
        """Download one chunk at the selected catalog index.

        Args:
            action: Catalog index to download

        Returns:
            Tuple of (observation, reward, terminated, truncated, info)
        """
        index = int(action)
        self.catalog.check_index(index)
        result = self.simulator.step(index)

        self.session.on_transfer_start()
        self.clock.advance(result.delay_ms)
        self.session.on_bytes_transferred(result.chunk_size)
        self.session.on_transfer_end()
        self.session.on_stall(result.rebuffer_ms)
        self.session.on_buffer_update(result.buffer_ms)
        self.session.on_chunk_completed(ChunkDescriptor(
            chunk_index=result.chunk_index,
            representation_bitrate=self.catalog.bitrate(index),
            byte_size=result.chunk_size,
            duration_ms=self.simulator.chunk_duration_ms,
            load_duration_ms=result.delay_ms,
        ))
        self.clock.advance(result.sleep_time_ms)

        # reward is bitrate - rebuffer penalty - smooth penalty
        reward = self._bitrate_mbps(index) \
            - self.rebuf_penalty * result.rebuffer_ms / MILLISECONDS_IN_SECOND \
            - self.smooth_penalty * np.abs(self._bitrate_mbps(index) - self._bitrate_mbps(self.last_index))
        self.last_index = index

        if result.end_of_video:
            next_chunk_sizes = np.zeros(len(self.catalog), dtype=np.int64)
        else:
            next_chunk_sizes = np.array(self.simulator.lookahead.chunk_sizes(result.chunk_index + 1))
        observation = Observation(
            delay_ms=result.delay_ms,
            sleep_time_ms=result.sleep_time_ms,
            buffer_ms=result.buffer_ms,
            rebuffer_ms=result.rebuffer_ms,
            chunk_index=result.chunk_index,
            chunk_size=result.chunk_size,
            next_chunk_sizes=next_chunk_sizes,
            remaining_chunks=result.remaining_chunks,
            end_of_video=result.end_of_video,
        )
        info = {
            "time_stamp": self.clock(),
            "bitrate": self.catalog.bitrate(index),
            "reward": float(reward),
        }
        return observation, float(reward), result.end_of_video, False, info

    def render(self) -> None:
        """Render the environment (not implemented for this env)."""
        pass

    def close(self) -> None:
        """Clean up environment resources."""
        pass
