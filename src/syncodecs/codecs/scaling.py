"""
Trace-Based Codec With Scaling
==============================

Extends the trace-based codec so the output follows the exact target rate
instead of the nearest trace bitrate.

For the current resolution the codec looks up the trace bitrate
immediately below (low) and immediately above (high) the target:

    low <= target <= high : frame size interpolated linearly between the
                            two traces' sizes at the cursor
    target < min bitrate  : size of the lowest trace scaled by target / min
    target > max bitrate  : size of the highest trace scaled by target / max

Bits per pixel for resolution adaptation uses the exact target rate.
"""

import logging
from typing import Optional

import numpy as np

from syncodecs.codecs.trace_based import TraceBasedCodec


logger = logging.getLogger(__name__)


class TraceBasedCodecWithScaling(TraceBasedCodec):
    """
    Trace-based codec with two-sided interpolation and out-of-range scaling.

    Accepts the same arguments as TraceBasedCodec.
    """

    def __init__(self, *args, **kwargs) -> None:
        self._low_rate: Optional[int] = None
        self._high_rate: Optional[int] = None
        super().__init__(*args, **kwargs)

    @property
    def low_rate_kbps(self) -> Optional[int]:
        """Trace bitrate immediately below the target (or the minimum)."""
        return self._low_rate

    @property
    def high_rate_kbps(self) -> Optional[int]:
        """Trace bitrate immediately above the target (or the maximum)."""
        return self._high_rate

    def _match_bitrate(self) -> None:
        rates = self._trace_set.bitrates(self.current_resolution)
        target_kbps = self._target_rate / 1000.0
        below = [rate for rate in rates if rate <= target_kbps]
        above = [rate for rate in rates if rate >= target_kbps]

        if not below:
            self._low_rate = self._high_rate = rates[0]
        elif not above:
            self._low_rate = self._high_rate = rates[-1]
        else:
            self._low_rate = below[-1]
            self._high_rate = above[0]

        self._matched_rate = self._low_rate
        self._log_selection()

    def _log_selection(self) -> None:
        logger.debug(
            f"{type(self).__name__}: resolution={self.current_resolution}, "
            f"low={self._low_rate}kbps, high={self._high_rate}kbps, "
            f"target={self._target_rate:.0f}bps"
        )

    def _frame_size(self) -> int:
        resolution = self.current_resolution
        target_kbps = self._target_rate / 1000.0
        low_size = self._trace_set.frame_size(resolution, self._low_rate, self._frame_index)

        if self._low_rate == self._high_rate:
            # Exact match, or target outside the available range
            return round(low_size * target_kbps / self._low_rate)

        high_size = self._trace_set.frame_size(resolution, self._high_rate, self._frame_index)
        size = np.interp(target_kbps, [self._low_rate, self._high_rate], [low_size, high_size])
        return round(float(size))

    def _current_bpp(self) -> float:
        return self._compute_bpp(self._target_rate, self._target_rate)
