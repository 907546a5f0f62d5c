"""
Trace-Based Codec Tests
=======================

Tests for bitrate matching, the frame cursor, fixed mode and resolution
adaptation of TraceBasedCodec.
"""

import pytest

from conftest import encoded_size
from syncodecs import HasFps, InvalidCodecError, TraceBasedCodec
from syncodecs.models.trace import TraceLine, TraceSet
from syncodecs.traces.reader import TraceReader


class TestLoading:
    """Tests for trace loading and validity."""

    def test_loads_trace_directory(self, trace_dir):
        """Verify a codec over a valid directory starts at the middle resolution."""
        codec = TraceBasedCodec(trace_dir, "video", fps=25, fixed=True)
        assert codec.is_valid()
        assert codec.resolutions == ("360p", "480p", "540p", "720p")
        assert codec.current_resolution == "540p"
        assert codec.fixed_resolution == "540p"
        assert isinstance(codec, HasFps)

    def test_first_record_is_frame_zero(self, trace_dir):
        """Verify the first record replays frame 0 of the matched trace."""
        codec = TraceBasedCodec(trace_dir, "video", fps=25, fixed=True)
        record = codec.current()
        assert codec.frame_index == 0
        assert record.size == encoded_size("540p", 500, 0)
        assert record.seconds_to_next == pytest.approx(0.04)

    def test_empty_directory_is_invalid(self, tmp_path):
        """Verify a directory without traces gives an invalid codec."""
        codec = TraceBasedCodec(tmp_path, "video")
        assert not codec.is_valid()
        assert codec.current_resolution is None
        assert codec.set_resolution_for_fixed_mode("480p") is False
        with pytest.raises(InvalidCodecError):
            codec.current()

    def test_missing_directory_is_invalid(self, tmp_path):
        """Verify a nonexistent directory gives an invalid codec."""
        assert not TraceBasedCodec(tmp_path / "nope", "video").is_valid()

    def test_no_path_is_invalid(self):
        """Verify a codec without a trace directory is invalid."""
        codec = TraceBasedCodec(None, "video")
        assert not codec
        codec.advance()
        assert not codec

    def test_unequal_lengths_are_invalid(self, make_trace_dir):
        """Verify traces of different lengths are rejected at load time."""
        make_trace_dir({"480p": [500]}, frames=30)
        directory = make_trace_dir({"480p": [1000]}, frames=25)
        assert not TraceBasedCodec(directory, "video").is_valid()

    @pytest.mark.parametrize("content", [b"0 I \xff\xfe 1\n", b"0 I 1e400 1\n"])
    def test_unreadable_trace_is_invalid(self, tmp_path, content):
        """Verify undecodable or overflowing trace files leave the codec invalid."""
        (tmp_path / "video_480p_500.txt").write_bytes(content)
        codec = TraceBasedCodec(tmp_path, "video")
        assert not codec.is_valid()
        with pytest.raises(InvalidCodecError):
            codec.current()

    def test_codecs_share_trace_set(self, trace_dir):
        """Verify codecs over the same directory share one TraceSet."""
        a = TraceBasedCodec(trace_dir, "video")
        b = TraceBasedCodec(trace_dir, "video", fixed=True)
        assert a.trace_set is b.trace_set

    def test_custom_reader(self, trace_dir):
        """Verify a custom reader loads a private TraceSet."""
        shared = TraceBasedCodec(trace_dir, "video")
        private = TraceBasedCodec(trace_dir, "video", reader=TraceReader(size_column=2))
        assert private.is_valid()
        assert private.trace_set is not shared.trace_set

    def test_injected_trace_set(self):
        """Verify an already loaded TraceSet can be passed in."""
        traces = TraceSet("mem", {"480p": {800: [TraceLine(100 + i) for i in range(25)]}})
        codec = TraceBasedCodec(None, "mem", trace_set=traces)
        assert codec.is_valid()
        assert codec.current().size == 100


class TestBitrateMatching:
    """Tests for choosing the trace bitrate."""

    @pytest.mark.parametrize(
        "target_bps, expected_kbps",
        [
            (150_000, 500),
            (499_999, 500),
            (500_000, 500),
            (999_999, 500),
            (1_500_000, 1000),
            (2_000_000, 2000),
            (9_000_000, 2000),
        ],
    )
    def test_highest_rate_not_above_target(self, trace_dir, target_bps, expected_kbps):
        """Verify matching picks the highest bitrate not above the target, else the lowest."""
        codec = TraceBasedCodec(trace_dir, "video", fixed=True)
        codec.set_target_rate(target_bps)
        assert codec.matched_bitrate_kbps == expected_kbps

    def test_frame_size_from_matched_trace(self, trace_dir):
        """Verify frame sizes come from the matched trace at the cursor."""
        codec = TraceBasedCodec(trace_dir, "video", fixed=True)
        assert codec.set_resolution_for_fixed_mode("480p") is True
        codec.set_target_rate(1_000_000)
        assert codec.advance().current().size == encoded_size("480p", 1000, 1)

    def test_cursor_kept_across_bitrate_change(self, trace_dir):
        """Verify switching trace keeps the frame index."""
        codec = TraceBasedCodec(trace_dir, "video", fixed=True)
        for _ in range(5):
            codec.advance()
        codec.set_target_rate(2_000_000)
        record = codec.advance().current()
        assert codec.frame_index == 6
        assert record.size == encoded_size("540p", 2000, 6)


class TestFrameCursor:
    """Tests for wrapping at the end of a trace."""

    def test_wraps_to_frames_excluded(self, trace_dir):
        """Verify the cursor wraps to 20, never back to frame 0."""
        codec = TraceBasedCodec(trace_dir, "video", fixed=True)
        for _ in range(29):
            codec.advance()
        assert codec.frame_index == 29
        codec.advance()
        assert codec.frame_index == 20

        indices = set()
        for _ in range(200):
            codec.advance()
            indices.add(codec.frame_index)
        assert min(indices) == 20
        assert max(indices) == 29

    def test_short_trace_wraps_to_zero(self, make_trace_dir):
        """Verify traces shorter than the excluded frames wrap to 0."""
        directory = make_trace_dir({"480p": [500]}, frames=10)
        codec = TraceBasedCodec(directory, "video")
        for _ in range(9):
            codec.advance()
        assert codec.frame_index == 9
        codec.advance()
        assert codec.frame_index == 0


class TestFixedMode:
    """Tests for fixed resolution mode."""

    def test_unknown_resolution_rejected(self, trace_dir):
        """Verify resolutions without traces are refused without effect."""
        codec = TraceBasedCodec(trace_dir, "video", fixed=True)
        assert codec.set_resolution_for_fixed_mode("1080p") is False
        assert codec.set_resolution_for_fixed_mode("4k") is False
        assert codec.fixed_resolution == "540p"
        assert codec.current_resolution == "540p"

    def test_none_selects_middle(self, trace_dir):
        """Verify None restores the middle resolution."""
        codec = TraceBasedCodec(trace_dir, "video", fixed=True)
        codec.set_resolution_for_fixed_mode("360p")
        assert codec.set_resolution_for_fixed_mode(None) is True
        assert codec.current_resolution == "540p"

    def test_fixed_resolution_applies_when_entering_fixed_mode(self, trace_dir):
        """Verify the fixed resolution is only used in fixed mode."""
        codec = TraceBasedCodec(trace_dir, "video", fixed=False)
        assert codec.set_resolution_for_fixed_mode("720p") is True
        assert codec.current_resolution == "540p"
        codec.set_fixed_mode(True)
        assert codec.get_fixed_mode() is True
        assert codec.current_resolution == "720p"

    def test_leaving_fixed_mode_keeps_resolution(self, trace_dir):
        """Verify leaving fixed mode does not move the resolution."""
        codec = TraceBasedCodec(trace_dir, "video", fixed=True)
        codec.set_resolution_for_fixed_mode("360p")
        codec.set_fixed_mode(False)
        assert codec.get_fixed_mode() is False
        assert codec.current_resolution == "360p"

    def test_no_adaptation_in_fixed_mode(self, make_trace_dir):
        """Verify resolution stays put in fixed mode even at very low bpp."""
        directory = make_trace_dir({"240p": [500], "360p": [500], "480p": [500]})
        codec = TraceBasedCodec(directory, "video", fixed=True)
        codec.set_resolution_for_fixed_mode("240p")
        for _ in range(5):
            codec.advance()
        assert codec.current_resolution == "240p"


class TestResolutionAdaptation:
    """Tests for bpp-driven resolution changes."""

    def test_bpp_up_to_480p(self, trace_dir):
        """Verify bpp is rate / (fps * pixels) at or below 480p."""
        codec = TraceBasedCodec(trace_dir, "video", fps=25, fixed=True, initial_rate_bps=1_000_000)
        codec.set_resolution_for_fixed_mode("360p")
        assert codec.bpp == pytest.approx(1_000_000 / (25 * 640 * 360))

    def test_bpp_above_480p_uses_power_law(self, trace_dir):
        """Verify bpp above 480p scales the 480p bpp by the pixel ratio to the 0.75."""
        codec = TraceBasedCodec(trace_dir, "video", fps=25, fixed=True, initial_rate_bps=1_000_000)
        codec.set_resolution_for_fixed_mode("720p")
        bpp_480 = 1_000_000 / (25 * 640 * 480)
        assert codec.bpp == pytest.approx(bpp_480 * 3.0 ** 0.75)

    def test_bpp_without_480p_traces(self, make_trace_dir):
        """Verify the current match stands in for 480p when the set has no 480p."""
        directory = make_trace_dir({"720p": [1000]})
        codec = TraceBasedCodec(directory, "video", fps=25, initial_rate_bps=1_000_000)
        assert codec.bpp == pytest.approx(1_000_000 / (25 * 640 * 480) * 3.0 ** 0.75)

    def test_steps_up_one_resolution_per_frame(self, make_trace_dir):
        """Verify low bpp moves up exactly one resolution per advance."""
        directory = make_trace_dir({"240p": [500], "360p": [500], "480p": [500]})
        codec = TraceBasedCodec(directory, "video", fps=25, fixed=True)
        codec.set_resolution_for_fixed_mode("240p")
        codec.set_fixed_mode(False)

        record = codec.advance().current()
        assert record.size == encoded_size("240p", 500, 1)
        assert codec.current_resolution == "360p"

        codec.advance()
        assert codec.current_resolution == "480p"

        codec.advance()
        assert codec.current_resolution == "480p"

    def test_steps_down_on_high_bpp(self, make_trace_dir):
        """Verify high bpp at 720p steps down to 540p and settles there."""
        directory = make_trace_dir({"480p": [1000, 6000], "540p": [1000, 6000], "720p": [1000, 6000]})
        codec = TraceBasedCodec(directory, "video", fps=25, fixed=True, initial_rate_bps=6_000_000)
        codec.set_resolution_for_fixed_mode("720p")
        codec.set_fixed_mode(False)
        assert codec.bpp > codec.high_bpp_threshold

        codec.advance()
        assert codec.current_resolution == "540p"
        assert codec.low_bpp_threshold <= codec.bpp <= codec.high_bpp_threshold

        codec.advance()
        assert codec.current_resolution == "540p"

    def test_rate_change_rematches_after_step(self, make_trace_dir):
        """Verify the bitrate is matched again at the new resolution."""
        directory = make_trace_dir({"240p": [500], "360p": [500, 1000]})
        codec = TraceBasedCodec(directory, "video", fps=25, fixed=True, initial_rate_bps=1_000_000)
        codec.set_resolution_for_fixed_mode("240p")
        assert codec.matched_bitrate_kbps == 500
        codec.set_fixed_mode(False)
        codec.advance()
        assert codec.current_resolution == "360p"
        assert codec.matched_bitrate_kbps == 1000
