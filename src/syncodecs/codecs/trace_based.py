"""
Trace-Based Codec
=================

Replays frame sizes of real encoder traces, mimicking an adaptive bitrate
codec with optional resolution adaptation.

Bitrate Matching:
    Among the traces of the current resolution, the codec picks the highest
    bitrate not above the target rate. If the target is below every
    available bitrate, the lowest one is used (a codec cannot go lower).
    Matching re-runs on every rate or resolution change.

Frame Cursor:
    One index shared by all traces. Switching trace keeps the index, so the
    output still refers to the same moment of the source video. At the end
    of a trace the index wraps to frames_excluded rather than 0, so the
    initial I-frame is not replayed periodically.

Resolution Adaptation (variable mode):
    After each advance the codec computes the bits per pixel (bpp) of the
    current selection:

        bpp = bitrate / (fps * pixels)                  up to 480p
        bpp = bpp_480p * (pixels / pixels_480p) ** 0.75  above 480p

    The second form is Waggoner's power law; bpp_480p uses the bitrate that
    would be matched at 480p for the current target. bpp below the low
    threshold moves one resolution up, above the high threshold one
    resolution down. Only resolutions that have traces are visited.

Fixed Mode:
    Resolution stays at the configured fixed resolution (the middle one by
    default) and adaptation is disabled.
"""

import logging
from pathlib import Path
from typing import Optional, Tuple, Union

from syncodecs.codecs.base import Codec
from syncodecs.config import settings
from syncodecs.models.record import FrameRecord
from syncodecs.models.resolution import pixels_per_frame
from syncodecs.models.trace import TraceSet
from syncodecs.traces.loader import get_trace_set, load_trace_set
from syncodecs.traces.reader import TraceError, TraceReader


logger = logging.getLogger(__name__)


class TraceBasedCodec(Codec):
    """
    Adaptive codec driven by a set of video traces.

    Satisfies HasFps. The codec is permanently invalid if no trace could be
    loaded.

    Attributes:
        fps: Frames per second
        frames_excluded: Index the cursor wraps to
        low_bpp_threshold: bpp below which resolution goes up
        high_bpp_threshold: bpp above which resolution goes down

    Example:
        codec = TraceBasedCodec("traces/", "foreman", fps=25)
        if codec:
            codec.set_target_rate(800_000)
            record = codec.advance().current()
    """

    def __init__(
        self,
        path: Optional[Union[str, Path]],
        file_prefix: str,
        fps: Optional[float] = None,
        fixed: bool = False,
        *,
        reader: Optional[TraceReader] = None,
        trace_set: Optional[TraceSet] = None,
        initial_rate_bps: Optional[float] = None,
    ) -> None:
        """
        Initialize the codec and load its traces.

        Args:
            path: Directory holding the trace files
            file_prefix: Common prefix of the trace files
            fps: Frame rate (defaults to settings.codec.default_fps)
            fixed: Start in fixed resolution mode
            reader: Custom trace reader; bypasses the shared trace cache
            trace_set: Already loaded traces; path and reader are ignored
            initial_rate_bps: Target rate before the host sets one
        """
        super().__init__(initial_rate_bps)
        if fps is None:
            fps = settings.codec.default_fps
        if fps <= 0:
            raise ValueError("fps must be positive")

        cfg = settings.trace
        self.fps = float(fps)
        self.frames_excluded = cfg.frames_excluded
        self.low_bpp_threshold = cfg.low_bpp_threshold
        self.high_bpp_threshold = cfg.high_bpp_threshold
        self.waggoner_exponent = cfg.waggoner_exponent
        self._limit_resolution = cfg.waggoner_limit_resolution
        self._limit_pixels = pixels_per_frame(cfg.waggoner_limit_resolution)

        if trace_set is None:
            trace_set = self._load(path, file_prefix, reader)
        self._trace_set = trace_set
        self._resolutions: Tuple[str, ...] = trace_set.resolutions

        middle = len(self._resolutions) // 2
        self._fixed_mode = bool(fixed)
        self._fixed_res_idx = middle
        self._current_res_idx = middle
        self._frame_index = 0
        self._matched_rate: Optional[int] = None

        if self._trace_data_valid():
            self._match_bitrate()
            logger.info(
                f"{type(self).__name__} initialized: prefix={file_prefix!r}, fps={self.fps}, "
                f"resolutions={list(self._resolutions)}, fixed={self._fixed_mode}"
            )
        else:
            logger.error(f"{type(self).__name__}: no usable traces for prefix {file_prefix!r} in {path}")

        self._prime()

    @staticmethod
    def _load(
        path: Optional[Union[str, Path]],
        prefix: str,
        reader: Optional[TraceReader],
    ) -> TraceSet:
        """Load traces, turning any failure into an empty set."""
        if path is None:
            return TraceSet(prefix, {})
        try:
            if reader is not None:
                return load_trace_set(path, prefix, reader)
            return get_trace_set(path, prefix)
        except (TraceError, OSError) as e:
            logger.error(f"Failed to load traces {prefix!r} from {path}: {e}")
            return TraceSet(prefix, {})

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def is_valid(self) -> bool:
        return super().is_valid() and self._trace_data_valid()

    def set_target_rate(self, new_rate_bps: float) -> float:
        rate = super().set_target_rate(new_rate_bps)
        if self.is_valid():
            self._match_bitrate()
        return rate

    def set_fixed_mode(self, fixed: bool) -> None:
        """
        Switch between fixed and variable resolution mode.

        Entering fixed mode moves to the fixed resolution immediately.
        Leaving it keeps the current resolution; adaptation resumes on the
        next advance.
        """
        self._fixed_mode = bool(fixed)
        if self._fixed_mode and self._trace_data_valid():
            self._current_res_idx = self._fixed_res_idx
            self._match_bitrate()

    def get_fixed_mode(self) -> bool:
        """True if the codec is in fixed resolution mode."""
        return self._fixed_mode

    def set_resolution_for_fixed_mode(self, resolution: Optional[str] = None) -> bool:
        """
        Choose the resolution used in fixed mode.

        Args:
            resolution: Label with traces, or None for the middle
                resolution (index floor(n/2) of the available ones)

        Returns:
            True if accepted, False (and no effect) if there is no trace
            for the label
        """
        if not self._trace_data_valid():
            return False
        if resolution is None:
            idx = len(self._resolutions) // 2
        elif resolution in self._resolutions:
            idx = self._resolutions.index(resolution)
        else:
            logger.debug(f"Rejected fixed resolution {resolution!r}: no traces")
            return False

        self._fixed_res_idx = idx
        if self._fixed_mode:
            self._current_res_idx = idx
            self._match_bitrate()
        return True

    @property
    def trace_set(self) -> TraceSet:
        """The traces this codec replays."""
        return self._trace_set

    @property
    def resolutions(self) -> Tuple[str, ...]:
        """Resolutions with traces, smallest first."""
        return self._resolutions

    @property
    def current_resolution(self) -> Optional[str]:
        """Label of the resolution in use."""
        if not self._resolutions:
            return None
        return self._resolutions[self._current_res_idx]

    @property
    def fixed_resolution(self) -> Optional[str]:
        """Label used in fixed mode."""
        if not self._resolutions:
            return None
        return self._resolutions[self._fixed_res_idx]

    @property
    def matched_bitrate_kbps(self) -> Optional[int]:
        """Bitrate (kbps) of the trace currently replayed."""
        return self._matched_rate

    @property
    def frame_index(self) -> int:
        """Position of the frame cursor."""
        return self._frame_index

    @property
    def bpp(self) -> float:
        """Bits per pixel of the current selection."""
        return self._current_bpp()

    # -------------------------------------------------------------------------
    # Frame generation
    # -------------------------------------------------------------------------

    def _first_record(self) -> FrameRecord:
        return self._frame_record()

    def _next_record(self) -> FrameRecord:
        self._frame_index += 1
        if self._frame_index >= self._trace_set.sequence_length:
            self._frame_index = self._wrap_index()

        record = self._frame_record()
        if not self._fixed_mode:
            self._adjust_resolution()
        return record

    def _wrap_index(self) -> int:
        if self.frames_excluded < self._trace_set.sequence_length:
            return self.frames_excluded
        return 0

    def _frame_record(self) -> FrameRecord:
        return FrameRecord.filler(self._frame_size(), 1.0 / self.fps)

    def _frame_size(self) -> int:
        """Size of the frame under the cursor in the matched trace."""
        return self._trace_set.frame_size(self.current_resolution, self._matched_rate, self._frame_index)

    # -------------------------------------------------------------------------
    # Bitrate matching
    # -------------------------------------------------------------------------

    def _match_at(self, resolution: str) -> int:
        """Highest bitrate of ``resolution`` not above the target, else the lowest."""
        rates = self._trace_set.bitrates(resolution)
        target_kbps = self._target_rate / 1000.0
        eligible = [rate for rate in rates if rate <= target_kbps]
        return eligible[-1] if eligible else rates[0]

    def _match_bitrate(self) -> None:
        self._matched_rate = self._match_at(self.current_resolution)
        self._log_selection()

    def _log_selection(self) -> None:
        logger.debug(
            f"{type(self).__name__}: resolution={self.current_resolution}, "
            f"bitrate={self._matched_rate}kbps, target={self._target_rate:.0f}bps"
        )

    # -------------------------------------------------------------------------
    # Resolution adaptation
    # -------------------------------------------------------------------------

    def _current_bpp(self) -> float:
        matched_bps = self._matched_rate * 1000.0
        if self._trace_set.has_resolution(self._limit_resolution):
            limit_bps = self._match_at(self._limit_resolution) * 1000.0
        else:
            limit_bps = matched_bps
        return self._compute_bpp(matched_bps, limit_bps)

    def _compute_bpp(self, rate_bps: float, limit_rate_bps: float) -> float:
        """
        Bits per pixel for the current resolution.

        Args:
            rate_bps: Rate used at or below the limit resolution
            limit_rate_bps: Rate used for the limit resolution's bpp when the
                current resolution is above it
        """
        pixels = pixels_per_frame(self.current_resolution)
        if pixels <= self._limit_pixels:
            return rate_bps / (self.fps * pixels)

        limit_bpp = limit_rate_bps / (self.fps * self._limit_pixels)
        return limit_bpp * (pixels / self._limit_pixels) ** self.waggoner_exponent

    def _adjust_resolution(self) -> None:
        bpp = self._current_bpp()
        if bpp < self.low_bpp_threshold:
            self._increase_resolution()
        elif bpp > self.high_bpp_threshold:
            self._decrease_resolution()

    def _increase_resolution(self) -> None:
        if self._current_res_idx + 1 < len(self._resolutions):
            self._current_res_idx += 1
            self._match_bitrate()

    def _decrease_resolution(self) -> None:
        if self._current_res_idx > 0:
            self._current_res_idx -= 1
            self._match_bitrate()

    def _trace_data_valid(self) -> bool:
        return not self._trace_set.is_empty()
