"""
Codec Contract
==============

Abstract base for every synthetic codec, plus optional capability traits.

A codec is a pull-based state machine. The host:
    1. Reads the current record with current()
    2. Waits record.seconds_to_next on its own (simulated) clock
    3. Calls advance() to move to the next record
    4. May call set_target_rate() at any point

The codec never looks at a clock and never spawns work. Once created, a
valid codec already points to its first record.

Validity:
    is_valid() == False means current() must not be called. It signals an
    uninitialized, exhausted or misconfigured codec depending on the
    subclass. A non-positive target rate makes a codec permanently invalid
    instead of raising into the host's loop.

Capabilities:
    HasFps and HasPayloadLimit are structural traits. Codecs expose an
    ``fps`` or ``payload_size`` attribute to satisfy them; there is no
    mixin hierarchy.
"""

import logging
import math
from abc import ABC, abstractmethod
from typing import Iterator, Optional, Protocol, runtime_checkable

from syncodecs.config import settings
from syncodecs.models.record import FrameRecord


logger = logging.getLogger(__name__)


class InvalidCodecError(RuntimeError):
    """Raised when the current record of an invalid codec is read."""


@runtime_checkable
class HasFps(Protocol):
    """Codec that emits frames at a fixed frame rate."""

    fps: float


@runtime_checkable
class HasPayloadLimit(Protocol):
    """Codec whose records never exceed a payload size."""

    payload_size: int


class Codec(ABC):
    """
    Base class of all synthetic codecs.

    Subclasses implement _next_record() and call _prime() at the end of
    their constructor so the first record is available immediately.

    Example:
        codec = SimpleFpsBasedCodec(fps=30)
        codec.set_target_rate(1_000_000)

        elapsed = 0.0
        while codec.is_valid() and elapsed < 10.0:
            record = codec.current()
            send(record.payload)
            elapsed += record.seconds_to_next
            codec.advance()
    """

    def __init__(self, initial_rate_bps: Optional[float] = None) -> None:
        """
        Initialize codec state.

        Args:
            initial_rate_bps: Target rate before the host sets one
                (defaults to settings.codec.initial_target_rate_bps)
        """
        if initial_rate_bps is None:
            initial_rate_bps = settings.codec.initial_target_rate_bps
        if not initial_rate_bps > 0:
            raise ValueError("initial_rate_bps must be positive")

        self._target_rate: float = float(initial_rate_bps)
        self._current: Optional[FrameRecord] = None
        self._misconfigured: bool = False

    # -------------------------------------------------------------------------
    # Public contract
    # -------------------------------------------------------------------------

    def current(self) -> FrameRecord:
        """
        Return the current record.

        Raises:
            InvalidCodecError: If the codec is not valid
        """
        if not self.is_valid() or self._current is None:
            raise InvalidCodecError(f"{type(self).__name__} is not in a valid state")
        return self._current

    def advance(self) -> "Codec":
        """Move to the next record. No-op on an invalid codec."""
        if self.is_valid():
            self._current = self._next_record()
        return self

    def is_valid(self) -> bool:
        """True if the current record can be read and the codec advanced."""
        return not self._misconfigured

    def get_target_rate(self) -> float:
        """Current target rate in bits per second."""
        return self._target_rate

    @property
    def target_rate(self) -> float:
        """Current target rate in bits per second."""
        return self.get_target_rate()

    def set_target_rate(self, new_rate_bps: float) -> float:
        """
        Set the rate the codec strives to achieve.

        Args:
            new_rate_bps: New target rate (bps), must be positive

        Returns:
            The rate adopted from now on. Subclasses may clamp or refuse
            the update; compare with the argument to detect it.
        """
        if not self._check_rate(new_rate_bps):
            return self._target_rate
        self._target_rate = float(new_rate_bps)
        return self._target_rate

    def __bool__(self) -> bool:
        return self.is_valid()

    def __iter__(self) -> Iterator[FrameRecord]:
        """Yield the current record, then advance, until the codec turns invalid."""
        while self.is_valid():
            yield self.current()
            self.advance()

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(target_rate={self.get_target_rate():.0f}bps, "
            f"valid={self.is_valid()})"
        )

    # -------------------------------------------------------------------------
    # Subclass hooks
    # -------------------------------------------------------------------------

    @abstractmethod
    def _next_record(self) -> FrameRecord:
        """Compute the record that follows the current one."""

    def _first_record(self) -> FrameRecord:
        """Compute the record a new codec points to."""
        return self._next_record()

    def _prime(self) -> None:
        """Compute the first record if the codec is usable."""
        if self.is_valid():
            self._current = self._first_record()

    def _check_rate(self, new_rate_bps: float) -> bool:
        """Reject non-positive rates by invalidating the codec."""
        try:
            rate = float(new_rate_bps)
        except (TypeError, ValueError):
            rate = math.nan
        if math.isfinite(rate) and rate > 0:
            return True
        logger.error(
            f"{type(self).__name__}: invalid target rate {new_rate_bps!r}, "
            f"codec is now permanently invalid"
        )
        self._misconfigured = True
        return False
