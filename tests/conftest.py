"""
Test Configuration
==================

Pytest fixtures and test configuration for syncodecs.
"""

from pathlib import Path
from typing import Callable, Dict, Iterable, Sequence

import numpy as np
import pytest

from syncodecs.models.resolution import resolution_rank
from syncodecs.traces.loader import clear_trace_cache


def write_trace(directory: Path, prefix: str, resolution: str, kbps: int, sizes: Iterable[int]) -> Path:
    """Write one trace file in the <number> <type> <size> layout."""
    path = directory / f"{prefix}_{resolution}_{kbps}.txt"
    lines = [
        f"{i} {'I' if i == 0 else 'P'} {size} 38.5"
        for i, size in enumerate(sizes)
    ]
    path.write_text("\n".join(lines) + "\n")
    return path


def encoded_size(resolution: str, kbps: int, index: int) -> int:
    """Frame size used by the trace_dir fixture: unique per (res, rate, index)."""
    return resolution_rank(resolution) * 100_000 + kbps * 10 + index


@pytest.fixture(autouse=True)
def _fresh_trace_cache():
    """Keep the shared trace cache from leaking between tests."""
    clear_trace_cache()
    yield
    clear_trace_cache()


@pytest.fixture
def make_trace_dir(tmp_path) -> Callable[..., Path]:
    """
    Build a trace directory.

    Usage:
        make_trace_dir({"480p": [500, 1000]}, frames=30)
    """

    def _make(
        layout: Dict[str, Sequence[int]],
        frames: int = 30,
        prefix: str = "video",
        size_fn: Callable[[str, int, int], int] = encoded_size,
    ) -> Path:
        directory = tmp_path / "traces"
        directory.mkdir(exist_ok=True)
        for resolution, rates in layout.items():
            for kbps in rates:
                write_trace(
                    directory,
                    prefix,
                    resolution,
                    kbps,
                    (size_fn(resolution, kbps, i) for i in range(frames)),
                )
        return directory

    return _make


@pytest.fixture
def trace_dir(make_trace_dir) -> Path:
    """Four resolutions, three bitrates each, 30 frames per trace."""
    return make_trace_dir(
        {
            "360p": [500, 1000, 2000],
            "480p": [500, 1000, 2000],
            "540p": [500, 1000, 2000],
            "720p": [500, 1000, 2000],
        }
    )


@pytest.fixture
def no_noise() -> Callable[[float], float]:
    """Noise model that leaves frame sizes untouched."""
    return lambda size: size


@pytest.fixture
def rng() -> np.random.Generator:
    """Seeded random generator for reproducible noise."""
    return np.random.default_rng(1234)
