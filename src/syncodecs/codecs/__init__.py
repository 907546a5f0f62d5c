"""
Codecs Module
=============

The synthetic codec family.

Components:
    - Codec: Abstract pull-based contract (current / advance / target rate)
    - HasFps, HasPayloadLimit: Optional capability traits
    - PerfectCodec: Constant-size packets at a rate-matched cadence
    - SimpleFpsBasedCodec: Constant fps, rate-matched frame size
    - TraceBasedCodec: Replays real encoder traces with resolution adaptation
    - TraceBasedCodecWithScaling: Trace replay interpolated to the exact rate
    - StatisticsCodec: Steady/transient statistical model with noise
    - ShapedPacketizer: Fragments and spreads the frames of another codec
"""

from syncodecs.codecs.base import Codec, HasFps, HasPayloadLimit, InvalidCodecError
from syncodecs.codecs.perfect import PerfectCodec
from syncodecs.codecs.simple import SimpleFpsBasedCodec
from syncodecs.codecs.trace_based import TraceBasedCodec
from syncodecs.codecs.scaling import TraceBasedCodecWithScaling
from syncodecs.codecs.statistics import AddNoiseFunc, CodecPhase, StatisticsCodec, UniformNoise
from syncodecs.codecs.shaped import ShapedPacketizer

__all__ = [
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
    "AddNoiseFunc",
    "ShapedPacketizer",
]
