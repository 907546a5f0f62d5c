"""
Perfect Codec
=============

Constant-size, rate-adaptive packet source.

Every record has exactly ``payload_size`` bytes; the interval between
records is chosen so the output matches the target rate exactly:

    seconds_to_next = payload_size * 8 / target_rate_bps

A rate change is visible from the next advance() on.
"""

import logging
from typing import Optional

from syncodecs.codecs.base import Codec
from syncodecs.models.record import FrameRecord


logger = logging.getLogger(__name__)


class PerfectCodec(Codec):
    """
    Codec producing fixed-size packets at a rate-matched cadence.

    Satisfies HasPayloadLimit.

    Attributes:
        payload_size: Size of every record in bytes
    """

    def __init__(self, payload_size: int, initial_rate_bps: Optional[float] = None) -> None:
        """
        Initialize the perfect codec.

        Args:
            payload_size: Bytes per record, must be positive
            initial_rate_bps: Target rate before the host sets one
        """
        super().__init__(initial_rate_bps)
        if payload_size <= 0:
            raise ValueError("payload_size must be positive")

        self.payload_size = int(payload_size)
        self._prime()

        logger.info(
            f"PerfectCodec initialized: payload_size={self.payload_size}B, "
            f"rate={self._target_rate:.0f}bps"
        )

    def _next_record(self) -> FrameRecord:
        seconds = self.payload_size * 8 / self._target_rate
        return FrameRecord.filler(self.payload_size, seconds)
