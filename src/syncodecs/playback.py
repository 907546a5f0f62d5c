"""
Playback Helpers
================

Drive codecs on a simulated timeline, the way a congestion controller test
harness would.

The codecs themselves never track time: the consumer sums seconds_to_next
across successive records. These helpers do that bookkeeping:

    - play: pull records from one codec, applying a rate schedule
    - interleave: run several codecs on one timeline with a single thread,
      always serving the codec whose next record is due first
    - summarize: achieved rate and size statistics of a played sequence

Example:
    codec = ShapedPacketizer(StatisticsCodec(fps=30), payload_size=1000)
    played = play(codec, 500, rate_schedule={0: 1e6, 250: 2e6})
    print(summarize(played).mean_rate_bps)
"""

import heapq
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Union

import numpy as np
from pydantic import BaseModel, Field

from syncodecs.codecs.base import Codec
from syncodecs.models.record import FrameRecord


logger = logging.getLogger(__name__)


RateSchedule = Union[Mapping[int, float], Callable[[int], Optional[float]]]


@dataclass(frozen=True, slots=True)
class PlayedRecord:
    """
    A record placed on the simulated timeline.

    Attributes:
        source: Name of the codec that produced it
        index: Position in that codec's output
        send_time: Simulated time the record is handed to the network (s)
        size: Payload size in bytes
        seconds_to_next: Wait before the codec's next record
        target_rate: Codec target rate when the record was read (bps)
    """

    source: str
    index: int
    send_time: float
    size: int
    seconds_to_next: float
    target_rate: float

    def to_dict(self) -> dict:
        """Export as dictionary for logging/serialization."""
        return {
            "source": self.source,
            "index": self.index,
            "send_time": round(self.send_time, 6),
            "size": self.size,
            "seconds_to_next": round(self.seconds_to_next, 6),
            "target_rate": round(self.target_rate, 1),
        }


class CodecSummary(BaseModel):
    """Aggregate statistics of a played sequence."""

    records: int = Field(..., ge=0, description="Number of records")
    total_bytes: int = Field(..., ge=0, description="Sum of payload sizes")
    duration_s: float = Field(..., ge=0, description="Sum of inter-record intervals")
    mean_rate_bps: float = Field(..., ge=0, description="total_bytes * 8 / duration_s")
    mean_size: float = Field(..., ge=0, description="Mean payload size in bytes")
    max_size: int = Field(..., ge=0, description="Largest payload in bytes")


def _scheduled_rate(schedule: Optional[RateSchedule], index: int) -> Optional[float]:
    if schedule is None:
        return None
    if callable(schedule):
        return schedule(index)
    return schedule.get(index)


def play(
    codec: Codec,
    n_records: int,
    rate_schedule: Optional[RateSchedule] = None,
    name: str = "codec",
    start_time: float = 0.0,
) -> List[PlayedRecord]:
    """
    Pull up to ``n_records`` records from one codec.

    Args:
        codec: Codec to play
        n_records: Maximum number of records
        rate_schedule: index -> target rate applied before reading that
            record (a mapping, or a callable returning None for "no change")
        name: Source name stored in each record
        start_time: Simulated time of the first record

    Returns:
        Played records; fewer than ``n_records`` if the codec became invalid
    """
    played: List[PlayedRecord] = []
    now = start_time
    for index in range(n_records):
        rate = _scheduled_rate(rate_schedule, index)
        if rate is not None:
            adopted = codec.set_target_rate(rate)
            logger.debug(f"{name}: target rate {rate:.0f}bps requested, {adopted:.0f}bps adopted")
        if not codec.is_valid():
            logger.info(f"{name}: codec invalid after {index} records")
            break

        record = codec.current()
        played.append(PlayedRecord(
            source=name,
            index=index,
            send_time=now,
            size=record.size,
            seconds_to_next=record.seconds_to_next,
            target_rate=codec.get_target_rate(),
        ))
        now += record.seconds_to_next
        codec.advance()
    return played


def interleave(
    codecs: Mapping[str, Codec],
    n_records: int,
    rate_schedule: Optional[RateSchedule] = None,
) -> List[PlayedRecord]:
    """
    Run several codecs on one simulated timeline with a single thread.

    Records are emitted in send-time order; ties go to the codec listed
    first. ``rate_schedule`` is indexed by the global record count and is
    applied to every codec.

    Args:
        codecs: name -> codec
        n_records: Total records to emit across all codecs
        rate_schedule: Global index -> target rate for all codecs

    Returns:
        Played records in timeline order
    """
    due = [(0.0, order, name) for order, name in enumerate(codecs)]
    heapq.heapify(due)
    counts: Dict[str, int] = {name: 0 for name in codecs}
    played: List[PlayedRecord] = []

    while due and len(played) < n_records:
        rate = _scheduled_rate(rate_schedule, len(played))
        if rate is not None:
            for codec in codecs.values():
                codec.set_target_rate(rate)

        send_time, order, name = heapq.heappop(due)
        codec = codecs[name]
        if not codec.is_valid():
            logger.info(f"{name}: codec invalid, dropped from timeline")
            continue

        record = codec.current()
        played.append(PlayedRecord(
            source=name,
            index=counts[name],
            send_time=send_time,
            size=record.size,
            seconds_to_next=record.seconds_to_next,
            target_rate=codec.get_target_rate(),
        ))
        counts[name] += 1
        codec.advance()
        heapq.heappush(due, (send_time + record.seconds_to_next, order, name))
    return played


def summarize(records: Iterable[Union[PlayedRecord, FrameRecord]]) -> CodecSummary:
    """
    Compute size and rate statistics of a record sequence.

    Args:
        records: Played records or raw frame records

    Returns:
        CodecSummary (all zeros for an empty sequence)
    """
    sizes = []
    intervals = []
    for record in records:
        sizes.append(record.size)
        intervals.append(record.seconds_to_next)

    if not sizes:
        return CodecSummary(records=0, total_bytes=0, duration_s=0.0, mean_rate_bps=0.0, mean_size=0.0, max_size=0)

    size_arr = np.asarray(sizes, dtype=np.int64)
    duration = float(np.sum(intervals))
    total = int(size_arr.sum())
    return CodecSummary(
        records=len(sizes),
        total_bytes=total,
        duration_s=duration,
        mean_rate_bps=total * 8 / duration if duration > 0 else 0.0,
        mean_size=float(size_arr.mean()),
        max_size=int(size_arr.max()),
    )
