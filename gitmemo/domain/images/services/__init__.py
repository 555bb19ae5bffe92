from .image_normalizer import ImageNormalizer, IImageCodec, NormalizerPolicy, fit_within

__all__ = [
    "ImageNormalizer",
    "IImageCodec",
    "NormalizerPolicy",
    "fit_within",
]
