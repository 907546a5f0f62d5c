"""
Resolution Table
================

The fixed, totally ordered set of video resolutions understood by the
trace-based codecs.

The table is built once on import and exposed through a read-only mapping.
Its order (by pixel count) drives resolution adaptation stepping.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Tuple


@dataclass(frozen=True, slots=True)
class Resolution:
    """
    Pixel dimensions of a resolution label.

    Attributes:
        label: Short name used in trace file names (e.g. "720p")
        width: Frame width in pixels
        height: Frame height in pixels
    """

    label: str
    width: int
    height: int

    @property
    def pixels(self) -> int:
        """Number of pixels in one frame."""
        return self.width * self.height


_TABLE = (
    Resolution("90p", 160, 90),
    Resolution("180p", 320, 180),
    Resolution("240p", 352, 240),
    Resolution("360p", 640, 360),
    Resolution("480p", 640, 480),
    Resolution("540p", 960, 540),
    Resolution("720p", 1280, 720),
    Resolution("1080p", 1920, 1080),
)

RESOLUTION_LABELS: Tuple[str, ...] = tuple(res.label for res in _TABLE)

RESOLUTIONS: Mapping[str, Resolution] = MappingProxyType(
    {res.label: res for res in _TABLE}
)


def get_resolution(label: str) -> Resolution:
    """
    Look up a resolution by label.

    Raises:
        KeyError: If the label is not one of RESOLUTION_LABELS
    """
    return RESOLUTIONS[label]


def resolution_rank(label: str) -> int:
    """Position of ``label`` in the ordered table (smallest first)."""
    return RESOLUTION_LABELS.index(label)


def pixels_per_frame(label: str) -> float:
    """Pixels in a frame of ``label``, as a float for bpp arithmetic."""
    return float(RESOLUTIONS[label].pixels)
