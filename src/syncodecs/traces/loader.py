"""
Trace Set Loader
================

Locates trace files in a directory and loads them into a TraceSet.

File Naming:
    <prefix>_<resolution>_<bitrate-kbps>.txt

    - prefix: arbitrary, but the same for all files of one set
    - resolution: one of 90p, 180p, 240p, 360p, 480p, 540p, 720p, 1080p
    - bitrate-kbps: integer within [min_bitrate_kbps, max_bitrate_kbps],
      divisible by bitrate_step_kbps

Files that do not follow the naming rules are skipped with a warning.
All files of a set must hold the same number of frames; a mismatch is
rejected at load time rather than surfacing later as an index error.
"""

import functools
import logging
import re
from pathlib import Path
from typing import Dict, List, Optional, Union

from syncodecs.config import settings
from syncodecs.models.resolution import RESOLUTIONS
from syncodecs.models.trace import TraceFileInfo, TraceLine, TraceSet
from syncodecs.traces.reader import TraceError, TraceReader


logger = logging.getLogger(__name__)


class TraceSetError(TraceError):
    """A trace directory cannot be turned into a usable TraceSet."""


def parse_trace_filename(name: str, prefix: str, directory: Union[str, Path] = ".") -> Optional[TraceFileInfo]:
    """
    Parse ``<prefix>_<resolution>_<kbps><ext>``.

    Args:
        name: File name (no directory part)
        prefix: Expected common prefix
        directory: Directory the file lives in

    Returns:
        TraceFileInfo, or None if the name does not follow the contract
    """
    cfg = settings.trace
    pattern = rf"^{re.escape(prefix)}_(?P<res>[^_]+)_(?P<kbps>\d+){re.escape(cfg.file_extension)}$"
    match = re.match(pattern, name)
    if match is None:
        return None

    label = match.group("res")
    bitrate = int(match.group("kbps"))
    if label not in RESOLUTIONS:
        logger.warning(f"Skipping {name}: unknown resolution {label!r}")
        return None
    if not cfg.min_bitrate_kbps <= bitrate <= cfg.max_bitrate_kbps:
        logger.warning(
            f"Skipping {name}: bitrate {bitrate} kbps outside "
            f"[{cfg.min_bitrate_kbps}, {cfg.max_bitrate_kbps}]"
        )
        return None
    if bitrate % cfg.bitrate_step_kbps != 0:
        logger.warning(f"Skipping {name}: bitrate {bitrate} kbps not a multiple of {cfg.bitrate_step_kbps}")
        return None

    return TraceFileInfo(
        path=Path(directory) / name,
        prefix=prefix,
        resolution=label,
        bitrate_kbps=bitrate,
    )


def scan_trace_directory(path: Union[str, Path], prefix: str) -> List[TraceFileInfo]:
    """
    List the trace files of one set, ordered by resolution then bitrate.

    Raises:
        TraceSetError: If ``path`` is not a directory
    """
    directory = Path(path)
    if not directory.is_dir():
        raise TraceSetError(f"trace directory {directory} does not exist")

    found = []
    for entry in directory.iterdir():
        if not entry.is_file():
            continue
        info = parse_trace_filename(entry.name, prefix, directory)
        if info is not None:
            found.append(info)
    return sorted(found, key=lambda info: info.sort_key)


def load_trace_set(
    path: Union[str, Path],
    prefix: str,
    reader: Optional[TraceReader] = None,
) -> TraceSet:
    """
    Load every trace of one set into memory.

    Args:
        path: Directory holding the trace files
        prefix: Common file prefix
        reader: Trace reader (defaults to TraceReader())

    Returns:
        Read-only TraceSet

    Raises:
        TraceSetError: If no usable file exists, a file is empty, or
            sequences differ in length
        TraceFormatError: If a file cannot be parsed
    """
    if reader is None:
        reader = TraceReader()

    files = scan_trace_directory(path, prefix)
    if not files:
        raise TraceSetError(f"no trace files with prefix {prefix!r} in {path}")

    sequences: Dict[str, Dict[int, List[TraceLine]]] = {}
    for info in files:
        records = reader.read(info.path)
        if not records:
            raise TraceSetError(f"trace file {info.path} holds no frames")
        sequences.setdefault(info.resolution, {})[info.bitrate_kbps] = records

    trace_set = TraceSet(prefix, sequences)

    lengths = trace_set.lengths()
    if len(set(lengths.values())) > 1:
        detail = ", ".join(f"{label}@{rate}={n}" for (label, rate), n in sorted(lengths.items()))
        raise TraceSetError(f"trace files of {prefix!r} differ in length: {detail}")

    logger.info(
        f"Loaded trace set {prefix!r} from {path}: "
        f"{len(trace_set)} traces, resolutions={list(trace_set.resolutions)}, "
        f"{trace_set.sequence_length} frames each"
    )
    return trace_set


@functools.lru_cache(maxsize=32)
def _cached_trace_set(directory: str, prefix: str) -> TraceSet:
    return load_trace_set(directory, prefix)


def get_trace_set(path: Union[str, Path], prefix: str) -> TraceSet:
    """
    Load a trace set once and share it between codecs.

    TraceSets are immutable, so sharing one instance is safe; failed loads
    are not cached.
    """
    return _cached_trace_set(str(Path(path).resolve()), prefix)


def clear_trace_cache() -> None:
    """Drop every cached TraceSet."""
    _cached_trace_set.cache_clear()
