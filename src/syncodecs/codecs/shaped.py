"""
Shaped Packetizer
=================

Wrapper that fragments the frames of an inner codec into packets no larger
than a payload size, and spreads their delivery across the inner frame's
interval instead of bursting them.

Example:
    The inner codec's frame is 3500 bytes with 40 ms to the next frame;
    payload_size is 1000 and per-packet overhead 0. The packetizer emits
    packets of 1000, 1000, 1000 and 500 bytes, 10 ms apart, then advances
    the inner codec.

Per-Packet Overhead:
    Headers added on the wire (IP, UDP, RTP...) are not part of the
    payload. The packetizer throttles the inner codec's target rate so the
    rate on the wire, payload plus overhead, matches the rate set on the
    packetizer. The overhead factor is taken from the last inner frame:

        factor = (frame_size + n_packets * overhead) / frame_size
        inner_rate = rate / factor

Ownership:
    The packetizer owns its inner codec for its whole lifetime; copying a
    packetizer is not supported.
"""

import logging
import math
from typing import Optional

from syncodecs.codecs.base import Codec
from syncodecs.config import settings
from syncodecs.models.record import FrameRecord


logger = logging.getLogger(__name__)


class ShapedPacketizer(Codec):
    """
    Fragmenting, shaping wrapper around another codec.

    Satisfies HasPayloadLimit. Valid as long as the inner codec is valid.

    Attributes:
        payload_size: Maximum bytes per emitted packet
        per_packet_overhead: Wire bytes added to every packet
    """

    def __init__(
        self,
        inner: Codec,
        payload_size: Optional[int] = None,
        per_packet_overhead: Optional[int] = None,
    ) -> None:
        """
        Initialize the packetizer.

        Args:
            inner: Codec to fragment; owned by the packetizer from now on
            payload_size: Maximum packet payload in bytes
                (defaults to settings.packetizer.payload_size)
            per_packet_overhead: Bytes added to every packet on the wire
                (defaults to settings.packetizer.per_packet_overhead)
        """
        if not isinstance(inner, Codec):
            raise TypeError("inner must be a Codec")
        super().__init__(inner.get_target_rate())

        if payload_size is None:
            payload_size = settings.packetizer.payload_size
        if per_packet_overhead is None:
            per_packet_overhead = settings.packetizer.per_packet_overhead
        if payload_size <= 0:
            raise ValueError("payload_size must be positive")
        if not 0 <= per_packet_overhead < payload_size:
            raise ValueError("per_packet_overhead must be in [0, payload_size)")

        self.payload_size = int(payload_size)
        self.per_packet_overhead = int(per_packet_overhead)
        self._inner = inner
        self._bytes_to_send: int = 0
        self._secs_to_next_frame: float = 0.0
        self._last_overhead_factor: float = 1.0
        self._started: bool = False

        self._prime()

        logger.info(
            f"ShapedPacketizer initialized: inner={type(inner).__name__}, "
            f"payload_size={self.payload_size}B, overhead={self.per_packet_overhead}B"
        )

    def __copy__(self):
        raise TypeError("ShapedPacketizer owns its inner codec and cannot be copied")

    def __deepcopy__(self, memo):
        raise TypeError("ShapedPacketizer owns its inner codec and cannot be copied")

    @property
    def inner(self) -> Codec:
        """The wrapped codec."""
        return self._inner

    @property
    def overhead_factor(self) -> float:
        """Wire bytes per payload byte for the last inner frame."""
        return self._last_overhead_factor

    @property
    def pending_bytes(self) -> int:
        """Bytes of the current inner frame not yet emitted."""
        return self._bytes_to_send

    def is_valid(self) -> bool:
        return super().is_valid() and self._inner.is_valid()

    def get_target_rate(self) -> float:
        """
        Wire rate: the inner codec's rate times the overhead factor of the
        frame being fragmented. Follows the factor as frames change, so it
        can differ from the value the last set_target_rate() returned.
        """
        return self._inner.get_target_rate() * self._last_overhead_factor

    def set_target_rate(self, new_rate_bps: float) -> float:
        """
        Set the wire rate; the inner codec gets the rate left for payload.

        Returns:
            The wire rate matching the rate the inner codec adopted, at the
            current overhead factor
        """
        if self._check_rate(new_rate_bps):
            self._inner.set_target_rate(float(new_rate_bps) / self._last_overhead_factor)
        return self.get_target_rate()

    def _load_inner_frame(self) -> None:
        """Take the inner codec's current frame as the next one to fragment."""
        frame = self._inner.current()
        self._bytes_to_send = frame.size
        self._secs_to_next_frame = frame.seconds_to_next

        if frame.size > 0:
            n_packets = math.ceil(frame.size / self.payload_size)
            self._last_overhead_factor = (frame.size + n_packets * self.per_packet_overhead) / frame.size
        else:
            self._last_overhead_factor = 1.0

    def _next_record(self) -> FrameRecord:
        if self._bytes_to_send == 0:
            if self._started:
                self._inner.advance()
                if not self._inner.is_valid():
                    # Inner codec exhausted; the packetizer is now invalid too
                    return self._current
            self._started = True
            self._load_inner_frame()

        remaining_packets = max(1, math.ceil(self._bytes_to_send / self.payload_size))
        if remaining_packets == 1:
            seconds = self._secs_to_next_frame
        else:
            seconds = self._secs_to_next_frame / remaining_packets

        size = min(self._bytes_to_send, self.payload_size)
        self._bytes_to_send -= size
        self._secs_to_next_frame -= seconds
        return FrameRecord.filler(size, max(0.0, seconds))
