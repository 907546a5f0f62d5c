"""
Data Models
===========

Typed data passed between codecs, trace loading and hosts.

Models:
    Record:
        - FrameRecord: One (payload, seconds_to_next) unit of codec output

    Resolution:
        - Resolution: Label plus pixel dimensions
        - RESOLUTIONS / RESOLUTION_LABELS: Fixed ordered resolution table

    Trace:
        - TraceLine: One frame of a trace file
        - TraceFileInfo: Metadata parsed from a trace file name
        - TraceSet: Read-only sequences keyed by resolution and bitrate
"""

from syncodecs.models.record import FrameRecord
from syncodecs.models.resolution import (
    RESOLUTION_LABELS,
    RESOLUTIONS,
    Resolution,
    get_resolution,
    pixels_per_frame,
    resolution_rank,
)
from syncodecs.models.trace import TraceFileInfo, TraceLine, TraceSet

__all__ = [
    # Record
    "FrameRecord",
    # Resolution
    "Resolution",
    "RESOLUTIONS",
    "RESOLUTION_LABELS",
    "get_resolution",
    "pixels_per_frame",
    "resolution_rank",
    # Trace
    "TraceLine",
    "TraceFileInfo",
    "TraceSet",
]
