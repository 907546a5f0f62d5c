"""
Statistics Codec
================

Synthetic codec built on a two-phase statistical model of a real encoder.

Phases:
    STEADY:    frame size = target_rate / (fps * 8)
    TRANSIENT: entered after a big target rate change and lasting
               transient_length frames. The first frame is an I-frame,
               i_frame_ratio times a steady frame. The following frames are
               shrunk so the phase averages the target rate, but never below
               min_transient_frame_ratio times a steady frame. When the floor
               is hit (large I-frame, short phase) the phase overshoots the
               target rate; this is part of the model.

Rate Updates:
    - Refused while the cooldown (update_interval seconds of emitted
      frames) since the last accepted update is running
    - A change is big when |old / new - 1| > big_change_ratio (a change
      exactly at the ratio is not big); big changes are adopted as is and
      start a transient phase
    - Other changes are clamped to +/- max_update_ratio of the old rate
      (0 disables the clamp)

Noise:
    Every frame size goes through an add_noise callable before it is
    emitted. The default multiplies by a factor drawn uniformly from
    [1 - rand_max_ratio, 1 + rand_max_ratio].
"""

import logging
from enum import Enum
from typing import Callable, Optional

import numpy as np

from syncodecs.codecs.base import Codec
from syncodecs.config import settings
from syncodecs.models.record import FrameRecord


logger = logging.getLogger(__name__)


AddNoiseFunc = Callable[[float], float]

# Cooldown residue below this is float rounding from summing 1/fps
_COOLDOWN_EPSILON = 1e-9


class CodecPhase(str, Enum):
    """
    Phase of the statistics codec.

    Attributes:
        STEADY: Frames sized to the target rate
        TRANSIENT: I-frame followed by compensating frames
    """

    STEADY = "STEADY"
    TRANSIENT = "TRANSIENT"


class UniformNoise:
    """
    Default noise model: multiplicative uniform noise.

    Attributes:
        max_ratio: Half-width of the noise factor interval

    Example:
        noise = UniformNoise(max_ratio=0.1, rng=np.random.default_rng(7))
        noisy = noise(1000.0)   # somewhere in [900, 1100]
    """

    def __init__(
        self,
        max_ratio: Optional[float] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        if max_ratio is None:
            max_ratio = settings.statistics.rand_max_ratio
        if not 0 <= max_ratio < 1:
            raise ValueError("max_ratio must be in [0, 1)")

        self.max_ratio = max_ratio
        self._rng = rng if rng is not None else np.random.default_rng()

    def __call__(self, size: float) -> float:
        factor = self._rng.uniform(1.0 - self.max_ratio, 1.0 + self.max_ratio)
        return size * float(factor)


class StatisticsCodec(Codec):
    """
    Statistical steady/transient codec.

    Satisfies HasFps. None arguments take their value from
    settings.statistics.

    Attributes:
        fps: Frames per second
        max_update_ratio: Clamp of a non-big rate change (0 = disabled)
        update_interval: Cooldown after an accepted update (seconds)
        big_change_ratio: Threshold of a big rate change
        transient_length: Length of a transient phase (frames)
        i_frame_ratio: I-frame size relative to a steady frame
    """

    def __init__(
        self,
        fps: Optional[float] = None,
        add_noise: Optional[AddNoiseFunc] = None,
        max_update_ratio: Optional[float] = None,
        update_interval: Optional[float] = None,
        big_change_ratio: Optional[float] = None,
        transient_length: Optional[int] = None,
        i_frame_ratio: Optional[float] = None,
        *,
        initial_rate_bps: Optional[float] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        """
        Initialize the statistics codec.

        Args:
            fps: Frame rate (defaults to settings.codec.default_fps)
            add_noise: Noise callable applied to every frame size; defaults
                to UniformNoise using ``rng``
            max_update_ratio: Largest relative change of one update
            update_interval: Seconds during which further updates are refused
            big_change_ratio: Relative change that starts a transient phase
            transient_length: Frames in a transient phase
            i_frame_ratio: I-frame size relative to a steady frame
            initial_rate_bps: Target rate before the host sets one
            rng: Random generator of the default noise model
        """
        super().__init__(initial_rate_bps)
        cfg = settings.statistics
        if fps is None:
            fps = settings.codec.default_fps

        self.fps = float(fps)
        self.max_update_ratio = cfg.max_update_ratio if max_update_ratio is None else max_update_ratio
        self.update_interval = cfg.update_interval if update_interval is None else update_interval
        self.big_change_ratio = cfg.big_change_ratio if big_change_ratio is None else big_change_ratio
        self.transient_length = cfg.transient_length if transient_length is None else transient_length
        self.i_frame_ratio = cfg.i_frame_ratio if i_frame_ratio is None else i_frame_ratio
        self.min_transient_frame_ratio = cfg.min_transient_frame_ratio

        if self.fps <= 0:
            raise ValueError("fps must be positive")
        if self.max_update_ratio < 0:
            raise ValueError("max_update_ratio must be non-negative")
        if self.update_interval < 0:
            raise ValueError("update_interval must be non-negative")
        if self.big_change_ratio <= 0:
            raise ValueError("big_change_ratio must be positive")
        if self.transient_length < 1:
            raise ValueError("transient_length must be at least 1")
        if self.i_frame_ratio <= 0:
            raise ValueError("i_frame_ratio must be positive")

        self._add_noise: AddNoiseFunc = add_noise if add_noise is not None else UniformNoise(rng=rng)
        self._time_to_update: float = 0.0
        self._remaining_burst_frames: int = 0

        self._prime()

        logger.info(
            f"StatisticsCodec initialized: fps={self.fps}, "
            f"max_update_ratio={self.max_update_ratio}, "
            f"update_interval={self.update_interval}s, "
            f"big_change_ratio={self.big_change_ratio}, "
            f"transient_length={self.transient_length}, "
            f"i_frame_ratio={self.i_frame_ratio}"
        )

    @property
    def phase(self) -> CodecPhase:
        """Current model phase."""
        if self._remaining_burst_frames > 0:
            return CodecPhase.TRANSIENT
        return CodecPhase.STEADY

    @property
    def remaining_transient_frames(self) -> int:
        """Frames left in the current transient phase."""
        return self._remaining_burst_frames

    @property
    def time_to_update(self) -> float:
        """Seconds until a new rate update is accepted."""
        return self._time_to_update

    def is_big_change(self, new_rate_bps: float) -> bool:
        """True if moving to ``new_rate_bps`` would start a transient phase."""
        return abs(self._target_rate / new_rate_bps - 1.0) > self.big_change_ratio

    def set_target_rate(self, new_rate_bps: float) -> float:
        """
        Update the target rate subject to cooldown and clamping.

        Returns:
            The rate in use from now on: the old one if refused, the
            clamped one for a limited change, the requested one otherwise
        """
        if not self._check_rate(new_rate_bps):
            return self._target_rate

        if self._time_to_update > 0:
            logger.debug(
                f"StatisticsCodec: rate update to {new_rate_bps:.0f}bps refused, "
                f"{self._time_to_update:.3f}s left"
            )
            return self._target_rate

        new_rate = float(new_rate_bps)
        if self.is_big_change(new_rate):
            self._remaining_burst_frames = self.transient_length
            logger.debug(
                f"StatisticsCodec: big change {self._target_rate:.0f} -> {new_rate:.0f}bps, "
                f"entering transient phase"
            )
        elif self.max_update_ratio > 0:
            low = self._target_rate * (1.0 - self.max_update_ratio)
            high = self._target_rate * (1.0 + self.max_update_ratio)
            new_rate = min(max(new_rate, low), high)

        self._target_rate = new_rate
        self._time_to_update = self.update_interval
        return self._target_rate

    def _next_record(self) -> FrameRecord:
        seconds = 1.0 / self.fps
        steady_size = self._target_rate / (self.fps * 8)
        size = steady_size

        if self._remaining_burst_frames > 0:
            if self._remaining_burst_frames == self.transient_length:
                size = steady_size * self.i_frame_ratio
            else:
                reduction = steady_size * (self.i_frame_ratio - 1.0) / (self.transient_length - 1)
                size = max(steady_size * self.min_transient_frame_ratio, steady_size - reduction)
            self._remaining_burst_frames -= 1

        size = max(0.0, self._add_noise(size))
        self._time_to_update -= seconds
        if self._time_to_update < _COOLDOWN_EPSILON:
            self._time_to_update = 0.0
        return FrameRecord.filler(round(size), seconds)
