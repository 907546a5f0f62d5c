"""
Syncodecs
=========

Synthetic video codecs for evaluating real-time media congestion control.

Each codec is a pull-based generator of (payload, seconds_to_next) records
that reacts to a target bitrate set by the host. Codecs know nothing about
wall-clock time or threads: the host reads the current record, waits on its
own clock, and advances the codec.

Components:
    - codecs: The codec family and the Codec contract
    - models: FrameRecord, resolution table, trace models
    - traces: Trace file reading and trace set loading
    - playback: Simulated-timeline helpers and summaries
    - config: Settings loaded from YAML and environment variables

Example:
    from syncodecs import ShapedPacketizer, SimpleFpsBasedCodec

    codec = ShapedPacketizer(SimpleFpsBasedCodec(fps=30), payload_size=1000)
    codec.set_target_rate(2_000_000)
    for _ in range(100):
        record = codec.current()
        codec.advance()
"""

__version__ = "0.1.0"

from syncodecs.codecs import (
    Codec,
    CodecPhase,
    HasFps,
    HasPayloadLimit,
    InvalidCodecError,
    PerfectCodec,
    ShapedPacketizer,
    SimpleFpsBasedCodec,
    StatisticsCodec,
    TraceBasedCodec,
    TraceBasedCodecWithScaling,
    UniformNoise,
)
from syncodecs.models import FrameRecord, RESOLUTION_LABELS, RESOLUTIONS, Resolution, TraceSet

# Descriptive aliases for the codec family
ConstantRateGenerator = PerfectCodec
SimpleFpsGenerator = SimpleFpsBasedCodec
TraceMatchingGenerator = TraceBasedCodec
InterpolatingTraceGenerator = TraceBasedCodecWithScaling
StatisticalGenerator = StatisticsCodec
ShapingWrapper = ShapedPacketizer

__all__ = [
    "__version__",
    # Codecs
    "Codec",
    "HasFps",
    "HasPayloadLimit",
    "InvalidCodecError",
    "PerfectCodec",
    "SimpleFpsBasedCodec",
    "TraceBasedCodec",
    "TraceBasedCodecWithScaling",
    "StatisticsCodec",
    "CodecPhase",
    "UniformNoise",
    "ShapedPacketizer",
    # Aliases
    "ConstantRateGenerator",
    "SimpleFpsGenerator",
    "TraceMatchingGenerator",
    "InterpolatingTraceGenerator",
    "StatisticalGenerator",
    "ShapingWrapper",
    # Models
    "FrameRecord",
    "Resolution",
    "RESOLUTIONS",
    "RESOLUTION_LABELS",
    "TraceSet",
]
