from .normalized_image import (
    NormalizerState,
    DecodedImage,
    SearchState,
    EncodeAttempt,
    NormalizedImage,
)

__all__ = [
    "NormalizerState",
    "DecodedImage",
    "SearchState",
    "EncodeAttempt",
    "NormalizedImage",
]
