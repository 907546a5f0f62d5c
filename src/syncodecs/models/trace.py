"""
Trace Models
============

Data models for video traces loaded from disk.

A trace set holds every frame-size sequence obtained by encoding one raw
video at several (resolution, bitrate) pairs:

    TraceSet[resolution_label][bitrate_kbps] -> (TraceLine, TraceLine, ...)

All sequences of one set describe the same source video, so a single frame
index is meaningful across all of them.
"""

from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Mapping, Sequence, Tuple

from syncodecs.models.resolution import RESOLUTION_LABELS, resolution_rank


@dataclass(frozen=True, slots=True)
class TraceLine:
    """
    One frame record of a trace file.

    Attributes:
        frame_size: Encoded frame size in bytes
        fields: All whitespace-separated fields of the line, unparsed
    """

    frame_size: int
    fields: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        """Validate invariants."""
        if self.frame_size < 0:
            raise ValueError("frame_size must be non-negative")


@dataclass(frozen=True, slots=True)
class TraceFileInfo:
    """
    Metadata parsed from a trace file name ``<prefix>_<resolution>_<kbps>.txt``.

    Attributes:
        path: Location of the file
        prefix: Common prefix of the trace set
        resolution: Resolution label
        bitrate_kbps: Encoder target bitrate in kbps
    """

    path: Path
    prefix: str
    resolution: str
    bitrate_kbps: int

    @property
    def sort_key(self) -> Tuple[int, int]:
        """Order by resolution, then bitrate."""
        return resolution_rank(self.resolution), self.bitrate_kbps


class TraceSet:
    """
    Read-only collection of frame-size sequences keyed by resolution and bitrate.

    Built once by the trace loader; never mutated afterwards, so one instance
    can be shared between any number of codecs.

    Attributes:
        prefix: Common file prefix of the set
        resolutions: Labels with at least one bitrate, smallest first
    """

    def __init__(
        self,
        prefix: str,
        sequences: Mapping[str, Mapping[int, Sequence[TraceLine]]],
    ) -> None:
        """
        Initialize the trace set.

        Args:
            prefix: Common file prefix of the set
            sequences: resolution label -> bitrate (kbps) -> frame records
        """
        frozen: Dict[str, Mapping[int, Tuple[TraceLine, ...]]] = {}
        for label in RESOLUTION_LABELS:
            by_rate = sequences.get(label)
            if not by_rate:
                continue
            frozen[label] = MappingProxyType(
                {rate: tuple(by_rate[rate]) for rate in sorted(by_rate)}
            )

        self.prefix = prefix
        self._data: Mapping[str, Mapping[int, Tuple[TraceLine, ...]]] = MappingProxyType(frozen)
        self._resolutions: Tuple[str, ...] = tuple(frozen)

    @property
    def resolutions(self) -> Tuple[str, ...]:
        """Resolutions that have at least one trace, smallest first."""
        return self._resolutions

    @property
    def data(self) -> Mapping[str, Mapping[int, Tuple[TraceLine, ...]]]:
        """Read-only view of the whole set."""
        return self._data

    def bitrates(self, resolution: str) -> Tuple[int, ...]:
        """Available bitrates (kbps) for ``resolution``, ascending."""
        return tuple(self._data.get(resolution, {}))

    def has_resolution(self, resolution: str) -> bool:
        """True if at least one trace exists for ``resolution``."""
        return resolution in self._data

    def sequence(self, resolution: str, bitrate_kbps: int) -> Tuple[TraceLine, ...]:
        """Frame records for one (resolution, bitrate) pair."""
        return self._data[resolution][bitrate_kbps]

    def frame_size(self, resolution: str, bitrate_kbps: int, index: int) -> int:
        """Size in bytes of frame ``index`` of one sequence."""
        return self._data[resolution][bitrate_kbps][index].frame_size

    def lengths(self) -> Dict[Tuple[str, int], int]:
        """Length of every sequence, keyed by (resolution, bitrate)."""
        return {
            (label, rate): len(seq)
            for label, by_rate in self._data.items()
            for rate, seq in by_rate.items()
        }

    @property
    def sequence_length(self) -> int:
        """Length of the shortest sequence (0 for an empty set)."""
        lengths = self.lengths()
        return min(lengths.values()) if lengths else 0

    def is_empty(self) -> bool:
        """True if the set holds no trace at all."""
        return not self._resolutions

    def __len__(self) -> int:
        return sum(len(by_rate) for by_rate in self._data.values())

    def __repr__(self) -> str:
        return (
            f"TraceSet(prefix={self.prefix!r}, "
            f"resolutions={list(self._resolutions)}, "
            f"traces={len(self)}, frames={self.sequence_length})"
        )
