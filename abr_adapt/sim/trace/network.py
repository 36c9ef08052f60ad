"""Trace-driven network link.

Time Unit Convention:
=====================
- Trace data (cooked_time, last_mahimahi_time): SECONDS
- Delays and idle times: MILLISECONDS

The trace is replayed cyclically: after its last entry the link wraps
around to the beginning.
"""

from typing import List


MILLISECONDS_IN_SECOND = 1000.0
B_IN_MB = 1000000.0
BITS_IN_BYTE = 8.0
PACKET_PAYLOAD_PORTION = 0.95
LINK_RTT = 80  # millisec


class NetworkTrace:
    """Replays one bandwidth trace for chunk downloads.

    Args:
        cooked_time: Trace timestamps in seconds, starting at 0.
        cooked_bw: Trace bandwidth in Mbps.
        packet_payload_portion: Portion of each packet that is payload.
        link_rtt: Link round-trip time in milliseconds, added per download.
    """

    def __init__(
        self,
        cooked_time: List[float],
        cooked_bw: List[float],
        packet_payload_portion: float = PACKET_PAYLOAD_PORTION,
        link_rtt: float = LINK_RTT,
    ):
        if len(cooked_time) != len(cooked_bw):
            raise ValueError(
                f"cooked_time length ({len(cooked_time)}) must match cooked_bw length ({len(cooked_bw)})"
            )
        if len(cooked_time) < 2:
            raise ValueError("A network trace needs at least two samples")
        self.cooked_time = cooked_time
        self.cooked_bw = cooked_bw
        self.packet_payload_portion = packet_payload_portion
        self.link_rtt = link_rtt
        self.reset()

    def reset(self) -> None:
        """Rewind to the beginning of the trace."""
        # note: trace file starts with time 0
        self.mahimahi_ptr = 1
        self.last_mahimahi_time = self.cooked_time[self.mahimahi_ptr - 1]

    def _advance_ptr(self) -> None:
        self.last_mahimahi_time = self.cooked_time[self.mahimahi_ptr]
        self.mahimahi_ptr += 1
        if self.mahimahi_ptr >= len(self.cooked_bw):
            # loop back in the beginning
            self.mahimahi_ptr = 1
            self.last_mahimahi_time = 0

    def download(self, size: int) -> float:
        """Download `size` bytes over the link.

        Returns:
            Download delay in milliseconds, including the link RTT.
        """
        delay = 0.0  # in s
        sent = 0.0  # in bytes

        while True:
            throughput = self.cooked_bw[self.mahimahi_ptr] * B_IN_MB / BITS_IN_BYTE
            duration = self.cooked_time[self.mahimahi_ptr] - self.last_mahimahi_time
            packet_payload = throughput * duration * self.packet_payload_portion

            if sent + packet_payload > size and throughput > 0:
                fractional_time = (size - sent) / throughput / self.packet_payload_portion
                delay += fractional_time
                self.last_mahimahi_time += fractional_time
                break

            sent += packet_payload
            delay += duration
            self._advance_ptr()

        return delay * MILLISECONDS_IN_SECOND + self.link_rtt

    def idle(self, idle_ms: float) -> None:
        """Let `idle_ms` of trace time pass without downloading."""
        remaining = idle_ms
        while remaining > 0:
            duration = self.cooked_time[self.mahimahi_ptr] - self.last_mahimahi_time
            if duration > remaining / MILLISECONDS_IN_SECOND:
                self.last_mahimahi_time += remaining / MILLISECONDS_IN_SECOND
                break
            remaining -= duration * MILLISECONDS_IN_SECOND
            self._advance_ptr()
