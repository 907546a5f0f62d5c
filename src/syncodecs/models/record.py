"""
Frame Record Model
==================

The elementary unit produced by every synthetic codec.

Design Rules:
    - Immutable (frozen) once produced
    - Payload contents are filler; only the length is meaningful
    - seconds_to_next is the wait before the consumer advances the codec
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class FrameRecord:
    """
    One packet or frame emitted by a codec.

    Attributes:
        payload: Frame contents (zero bytes for synthetic codecs)
        seconds_to_next: Seconds to wait before advancing to the next record
    """

    payload: bytes
    seconds_to_next: float

    def __post_init__(self) -> None:
        """Validate invariants."""
        if self.seconds_to_next < 0:
            raise ValueError("seconds_to_next must be non-negative")

    @classmethod
    def filler(cls, size: int, seconds_to_next: float) -> "FrameRecord":
        """Build a record of ``size`` zero bytes."""
        return cls(payload=bytes(max(0, int(size))), seconds_to_next=float(seconds_to_next))

    @property
    def size(self) -> int:
        """Payload length in bytes."""
        return len(self.payload)

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the payload."""
        return (
            f"FrameRecord(size={self.size}, "
            f"seconds_to_next={self.seconds_to_next:.6f})"
        )

    def to_dict(self) -> dict:
        """Export as dictionary for logging/serialization."""
        return {
            "size": self.size,
            "seconds_to_next": round(self.seconds_to_next, 6),
        }
