"""
Domain Entity: Normalized Image

Search state and result of shrinking an image below a byte budget.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List


class NormalizerState(str, Enum):
    """Normalizer lifecycle. ACCEPTED and BEST_EFFORT_RETURNED are terminal."""

    DECODED = "decoded"
    RESIZED = "resized"
    ENCODED = "encoded"
    ACCEPTED = "accepted"
    BEST_EFFORT_RETURNED = "best_effort_returned"


@dataclass
class DecodedImage:
    """Codec-owned raster plus its dimensions."""

    width: int
    height: int
    handle: Any = None


@dataclass
class SearchState:
    """Parameters for the next encode attempt."""

    quality: int
    max_dimension: int
    attempt: int = 0


@dataclass(frozen=True)
class EncodeAttempt:
    attempt: int
    quality: int
    width: int
    height: int
    size: int


@dataclass
class NormalizedImage:
    """
    Encoded output of the normalizer.

    best_effort is True when no attempt fit the budget and the smallest
    encoding seen was returned instead.
    """

    data: bytes
    mime_type: str
    width: int
    height: int
    quality: int
    attempts: int
    best_effort: bool
    final_state: NormalizerState
    source_width: int = 0
    source_height: int = 0
    trace: List[EncodeAttempt] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        return self.mime_type.split("/")[-1]

    def summary(self) -> dict:
        return {
            "size": self.size,
            "mime_type": self.mime_type,
            "width": self.width,
            "height": self.height,
            "quality": self.quality,
            "attempts": self.attempts,
            "best_effort": self.best_effort,
            "source": f"{self.source_width}x{self.source_height}",
        }
