"""
Model Tests
===========

Tests for frame records, the resolution table and trace sets.
"""

import dataclasses

import pytest

from syncodecs.models import FrameRecord, RESOLUTION_LABELS, RESOLUTIONS, TraceSet
from syncodecs.models.resolution import get_resolution, pixels_per_frame, resolution_rank
from syncodecs.models.trace import TraceLine


class TestFrameRecord:
    """Tests for FrameRecord."""

    def test_filler_builds_zero_payload(self):
        """Verify filler records carry only their length."""
        record = FrameRecord.filler(1200, 0.04)
        assert record.size == 1200
        assert record.payload == bytes(1200)
        assert record.seconds_to_next == pytest.approx(0.04)

    def test_filler_clamps_negative_size(self):
        """Verify a negative size becomes an empty payload."""
        assert FrameRecord.filler(-5, 0.01).size == 0

    def test_negative_interval_rejected(self):
        """Verify seconds_to_next cannot be negative."""
        with pytest.raises(ValueError):
            FrameRecord(payload=b"", seconds_to_next=-0.1)

    def test_frozen(self):
        """Verify records cannot be modified."""
        record = FrameRecord.filler(10, 0.1)
        with pytest.raises(dataclasses.FrozenInstanceError):
            record.seconds_to_next = 1.0

    def test_to_dict(self):
        """Verify export omits the payload."""
        assert FrameRecord.filler(3, 0.5).to_dict() == {"size": 3, "seconds_to_next": 0.5}


class TestResolutionTable:
    """Tests for the resolution table."""

    def test_order_and_dimensions(self):
        """Verify labels are ordered by pixel count with the known dimensions."""
        assert RESOLUTION_LABELS == ("90p", "180p", "240p", "360p", "480p", "540p", "720p", "1080p")
        pixels = [RESOLUTIONS[label].pixels for label in RESOLUTION_LABELS]
        assert pixels == sorted(pixels)
        assert get_resolution("240p").width == 352
        assert get_resolution("480p").pixels == 640 * 480
        assert pixels_per_frame("1080p") == 1920.0 * 1080.0

    def test_rank(self):
        """Verify ranks follow the table order."""
        assert resolution_rank("90p") == 0
        assert resolution_rank("1080p") == 7

    def test_read_only(self):
        """Verify the table cannot be changed at runtime."""
        with pytest.raises(TypeError):
            RESOLUTIONS["4k"] = None

    def test_unknown_label(self):
        """Verify unknown labels raise KeyError."""
        with pytest.raises(KeyError):
            get_resolution("4k")


class TestTraceSet:
    """Tests for the TraceSet container."""

    @pytest.fixture
    def trace_set(self):
        def lines(base):
            return [TraceLine(base + i) for i in range(5)]

        return TraceSet(
            "clip",
            {
                "720p": {2000: lines(700), 1000: lines(600)},
                "360p": {500: lines(100)},
                "1080p": {},
            },
        )

    def test_resolutions_sorted_and_empty_dropped(self, trace_set):
        """Verify resolutions are ordered and labels without traces are dropped."""
        assert trace_set.resolutions == ("360p", "720p")
        assert not trace_set.has_resolution("1080p")

    def test_bitrates_sorted(self, trace_set):
        """Verify bitrates are ascending."""
        assert trace_set.bitrates("720p") == (1000, 2000)
        assert trace_set.bitrates("480p") == ()

    def test_frame_size_lookup(self, trace_set):
        """Verify frame sizes are looked up by resolution, bitrate and index."""
        assert trace_set.frame_size("720p", 2000, 3) == 703
        assert trace_set.sequence("360p", 500)[0].frame_size == 100

    def test_lengths(self, trace_set):
        """Verify sequence lengths and counts."""
        assert trace_set.sequence_length == 5
        assert len(trace_set) == 3
        assert not trace_set.is_empty()
        assert TraceSet("x", {}).is_empty()
        assert TraceSet("x", {}).sequence_length == 0

    def test_read_only(self, trace_set):
        """Verify the set cannot be mutated."""
        with pytest.raises(TypeError):
            trace_set.data["720p"][3000] = ()
        with pytest.raises(TypeError):
            trace_set.data["480p"] = {}

    def test_negative_frame_size_rejected(self):
        """Verify trace lines cannot hold negative sizes."""
        with pytest.raises(ValueError):
            TraceLine(-1)
