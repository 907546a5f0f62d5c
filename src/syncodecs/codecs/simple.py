"""
Simple FPS-Based Codec
======================

Constant frame rate, rate-adaptive frame size.

    seconds_to_next = 1 / fps
    frame_size      = target_rate_bps / (fps * 8)   (rounded to whole bytes)
"""

import logging
from typing import Optional

from syncodecs.codecs.base import Codec
from syncodecs.config import settings
from syncodecs.models.record import FrameRecord


logger = logging.getLogger(__name__)


class SimpleFpsBasedCodec(Codec):
    """
    Codec emitting one frame every 1/fps seconds, sized to the target rate.

    Satisfies HasFps.

    Attributes:
        fps: Frames per second
    """

    def __init__(self, fps: Optional[float] = None, initial_rate_bps: Optional[float] = None) -> None:
        """
        Initialize the codec.

        Args:
            fps: Frame rate (defaults to settings.codec.default_fps)
            initial_rate_bps: Target rate before the host sets one
        """
        super().__init__(initial_rate_bps)
        if fps is None:
            fps = settings.codec.default_fps
        if fps <= 0:
            raise ValueError("fps must be positive")

        self.fps = float(fps)
        self._prime()

        logger.info(f"SimpleFpsBasedCodec initialized: fps={self.fps}, rate={self._target_rate:.0f}bps")

    def _next_record(self) -> FrameRecord:
        size = round(self._target_rate / (self.fps * 8))
        return FrameRecord.filler(size, 1.0 / self.fps)
