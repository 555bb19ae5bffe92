"""
Domain Service: Image Normalizer

Shrinks an arbitrary image below a byte budget by searching over encode
quality and output dimension. The codec is injected; this module holds
only the search.

Search, per attempt:
1. Fit the image inside max_dimension (downscale only, aspect kept)
2. Encode at the current quality
3. At or under budget -> ACCEPTED
4. Over budget and quality above the floor -> lower quality by one step
5. Over budget at the floor -> shrink max_dimension by a fixed ratio and
   reset quality to the mid value
The attempt count is capped. At the cap the smallest encoding seen is
returned flagged best-effort; the normalizer never fails on size.
"""

from dataclasses import dataclass
from typing import Optional, Protocol, Tuple

from gitmemo.domain.errors import ValidationError
from ..entities import (
    DecodedImage,
    EncodeAttempt,
    NormalizedImage,
    NormalizerState,
    SearchState,
)


class IImageCodec(Protocol):
    """Interface for decoding, resizing and encoding rasters."""

    output_mime_type: str

    def decode(self, data: bytes, mime_type: Optional[str] = None) -> DecodedImage:
        """
        Decode raw bytes.

        Raises:
            ValidationError: input is not a decodable image
        """
        ...

    def resize(self, image: DecodedImage, width: int, height: int) -> DecodedImage:
        ...

    def encode(self, image: DecodedImage, quality: int) -> bytes:
        """Encode in the codec's canonical output format."""
        ...


@dataclass(frozen=True)
class NormalizerPolicy:
    """Tuning for the quality/dimension search."""

    start_quality: int = 85
    quality_step: int = 10
    quality_floor: int = 35
    reset_quality: int = 60
    dimension_ratio: float = 0.75
    max_attempts: int = 12
    min_budget_bytes: int = 4096
    min_dimension: int = 16

    @classmethod
    def from_settings(cls, settings) -> "NormalizerPolicy":
        return cls(
            start_quality=settings.start_quality,
            quality_step=settings.quality_step,
            quality_floor=settings.quality_floor,
            reset_quality=settings.reset_quality,
            dimension_ratio=settings.dimension_ratio,
            max_attempts=settings.max_attempts,
            min_budget_bytes=settings.min_budget_bytes,
            min_dimension=settings.min_dimension,
        )


def fit_within(width: int, height: int, max_dimension: int) -> Tuple[int, int]:
    """Largest size with the same aspect whose longest side is <= max_dimension. Never upscales."""
    longest = max(width, height)
    if longest <= max_dimension:
        return width, height
    scale = max_dimension / longest
    return max(1, round(width * scale)), max(1, round(height * scale))


class ImageNormalizer:
    """
    Domain service for budgeted image re-encoding.

    Args:
        codec: Raster codec (decode/resize/encode)
        policy: Search tuning
    """

    def __init__(self, codec: IImageCodec, policy: Optional[NormalizerPolicy] = None):
        self.codec = codec
        self.policy = policy or NormalizerPolicy()
        if self.policy.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def normalize(
        self,
        raw: bytes,
        source_mime_type: Optional[str],
        budget_bytes: int,
        max_dimension: int,
    ) -> NormalizedImage:
        """
        Re-encode raw image bytes to fit budget_bytes.

        Raises:
            ValidationError: budget below the policy floor, non-positive
                max_dimension, or undecodable input
        """
        policy = self.policy
        if budget_bytes < policy.min_budget_bytes:
            raise ValidationError(
                f"Byte budget must be at least {policy.min_budget_bytes}",
                context={"budget_bytes": budget_bytes},
            )
        if max_dimension <= 0:
            raise ValidationError(
                "max_dimension must be positive", context={"max_dimension": max_dimension}
            )

        source = self.codec.decode(raw, source_mime_type)

        longest = max(source.width, source.height)
        state = SearchState(
            quality=policy.start_quality,
            max_dimension=min(max_dimension, longest),
        )

        trace = []
        best: Optional[NormalizedImage] = None
        current: Optional[DecodedImage] = None

        while state.attempt < policy.max_attempts:
            state.attempt += 1

            width, height = fit_within(source.width, source.height, state.max_dimension)
            if current is None or (current.width, current.height) != (width, height):
                if (width, height) == (source.width, source.height):
                    current = source
                else:
                    current = self.codec.resize(source, width, height)

            data = self.codec.encode(current, state.quality)
            trace.append(EncodeAttempt(
                attempt=state.attempt,
                quality=state.quality,
                width=current.width,
                height=current.height,
                size=len(data),
            ))

            candidate = NormalizedImage(
                data=data,
                mime_type=self.codec.output_mime_type,
                width=current.width,
                height=current.height,
                quality=state.quality,
                attempts=state.attempt,
                best_effort=False,
                final_state=NormalizerState.ACCEPTED,
                source_width=source.width,
                source_height=source.height,
                trace=trace,
            )

            if len(data) <= budget_bytes:
                return candidate

            if best is None or len(data) < len(best.data):
                best = candidate

            if not self._advance(state):
                break

        best.best_effort = True
        best.final_state = NormalizerState.BEST_EFFORT_RETURNED
        best.attempts = state.attempt
        return best

    def _advance(self, state: SearchState) -> bool:
        """Move to the next parameters; False when nothing is left to try."""
        policy = self.policy
        if state.quality > policy.quality_floor:
            state.quality = max(policy.quality_floor, state.quality - policy.quality_step)
            return True

        if state.max_dimension <= policy.min_dimension:
            return False

        state.max_dimension = max(
            policy.min_dimension, int(state.max_dimension * policy.dimension_ratio)
        )
        state.quality = policy.reset_quality
        return True
